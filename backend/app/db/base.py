"""Declarative base shared by all ORM models."""
from sqlalchemy.orm import DeclarativeBase

# Largest value a SQLite INTEGER primary key can hold.
MAX_INTEGER_ID = 2**63 - 1


class Base(DeclarativeBase):
    pass


def id_in_range(value: int) -> bool:
    return 1 <= value <= MAX_INTEGER_ID
