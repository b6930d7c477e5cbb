"""Seat registry behaviour against a real SQLite store."""
import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from app.db.session import Database
from app.models.seat import Seat
from app.services import seats as seat_service

from tests.constants import START


async def _seat(database, seat_id):
    async with database.session() as fresh:
        return await fresh.get(Seat, seat_id)


def test_is_expired_is_strict():
    seat = Seat(id=1, is_reserved=True, reserved_by=1, reserved_until=START)
    assert not seat_service.is_expired(seat, START)
    assert seat_service.is_expired(seat, START + timedelta(microseconds=1))
    assert not seat_service.is_expired(Seat(id=2, is_reserved=False), START)


async def test_list_seats_returns_every_seat_in_order(session, clock):
    seats = await seat_service.list_seats(session, clock())
    assert [seat.id for seat in seats] == list(range(1, 122))
    assert not any(seat.is_reserved for seat in seats)


async def test_reserve_sets_window_and_owner(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    reservation = await seat_service.reserve_seat(session, 5, alice_id, 2, clock())
    await session.commit()

    assert reservation.seat_id == 5
    assert reservation.reserved_until == START + timedelta(hours=2)
    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    assert seats[5].is_reserved
    assert seats[5].reserved_by == alice_id
    assert seats[5].username == "alice"


async def test_reservation_expires_without_cleanup_call(session, database, make_user, clock):
    alice_id = (await make_user("alice")).id
    await seat_service.reserve_seat(session, 5, alice_id, 2, clock())
    await session.commit()

    clock.advance(hours=2)
    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    assert seats[5].is_reserved, "a reservation ending exactly now is still held"

    clock.advance(seconds=1)
    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    await session.commit()
    assert not seats[5].is_reserved
    assert seats[5].username is None

    stored = await _seat(database, 5)
    assert stored.is_reserved is False
    assert stored.reserved_by is None
    assert stored.reserved_until is None


async def test_expired_seat_can_be_reserved_directly(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    bob_id = (await make_user("bob")).id
    await seat_service.reserve_seat(session, 9, alice_id, 1, clock())
    await session.commit()

    clock.advance(hours=1, seconds=1)
    reservation = await seat_service.reserve_seat(session, 9, bob_id, 0.5, clock())
    await session.commit()

    assert reservation.reserved_until == clock() + timedelta(minutes=30)
    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    assert seats[9].reserved_by == bob_id


async def test_reserving_held_seat_conflicts(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    bob_id = (await make_user("bob")).id
    await seat_service.reserve_seat(session, 3, alice_id, 1, clock())
    await session.commit()

    with pytest.raises(Conflict):
        await seat_service.reserve_seat(session, 3, bob_id, 1, clock())


@pytest.mark.parametrize("hours", [0, -1, None, float("nan"), float("-inf"), float("inf")])
async def test_reserve_rejects_unusable_hours(session, make_user, clock, hours):
    alice_id = (await make_user("alice")).id
    with pytest.raises(ValidationError):
        await seat_service.reserve_seat(session, 3, alice_id, hours, clock())


async def test_reserve_unknown_seat_or_user(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    with pytest.raises(NotFound):
        await seat_service.reserve_seat(session, 122, alice_id, 1, clock())
    with pytest.raises(NotFound):
        await seat_service.reserve_seat(session, 1, alice_id + 100, 1, clock())


async def test_concurrent_reservations_admit_exactly_one(database, make_user, clock):
    alice_id = (await make_user("alice")).id
    bob_id = (await make_user("bob")).id

    async def attempt(user_id):
        async with database.session() as own:
            reservation = await seat_service.reserve_seat(own, 42, user_id, 1, clock())
            await own.commit()
            return reservation

    results = await asyncio.gather(attempt(alice_id), attempt(bob_id), return_exceptions=True)

    winners = [result for result in results if isinstance(result, seat_service.Reservation)]
    losers = [result for result in results if isinstance(result, Conflict)]
    assert len(winners) == 1
    assert len(losers) == 1
    stored = await _seat(database, 42)
    assert stored.is_reserved
    assert stored.reserved_by in {alice_id, bob_id}


async def test_cancel_by_owner_frees_seat(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    await seat_service.reserve_seat(session, 7, alice_id, 1, clock())
    await session.commit()

    await seat_service.cancel_reservation(session, 7, alice_id, clock())
    await session.commit()

    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    assert not seats[7].is_reserved


async def test_cancel_by_other_user_is_forbidden(session, database, make_user, clock):
    alice_id = (await make_user("alice")).id
    bob_id = (await make_user("bob")).id
    await seat_service.reserve_seat(session, 7, alice_id, 1, clock())
    await session.commit()

    with pytest.raises(Forbidden):
        await seat_service.cancel_reservation(session, 7, bob_id, clock())
    await session.rollback()

    stored = await _seat(database, 7)
    assert stored.is_reserved
    assert stored.reserved_by == alice_id


async def test_cancel_free_or_missing_seat(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    with pytest.raises(Forbidden):
        await seat_service.cancel_reservation(session, 8, alice_id, clock())
    with pytest.raises(NotFound):
        await seat_service.cancel_reservation(session, 500, alice_id, clock())


async def test_cancel_after_expiry_is_forbidden(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    await seat_service.reserve_seat(session, 8, alice_id, 1, clock())
    await session.commit()

    clock.advance(hours=2)
    with pytest.raises(Forbidden):
        await seat_service.cancel_reservation(session, 8, alice_id, clock())


async def test_reset_all_clears_every_reservation(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    for seat_id in (1, 2, 3):
        await seat_service.reserve_seat(session, seat_id, alice_id, 1, clock())
    await session.commit()

    await seat_service.reset_all_seats(session)
    await session.commit()

    held = await session.scalars(select(Seat.id).where(Seat.is_reserved.is_(True)))
    assert held.all() == []


async def test_sweep_is_idempotent(session, make_user, clock):
    alice_id = (await make_user("alice")).id
    await seat_service.reserve_seat(session, 11, alice_id, 1, clock())
    await seat_service.reserve_seat(session, 12, alice_id, 3, clock())
    await session.commit()

    clock.advance(hours=2)
    assert await seat_service.sweep_expired(session, clock()) == 1
    assert await seat_service.sweep_expired(session, clock()) == 0
    await session.commit()

    seats = {seat.id: seat for seat in await seat_service.list_seats(session, clock())}
    assert not seats[11].is_reserved
    assert seats[12].is_reserved


async def test_seeding_is_idempotent(database):
    assert await database.seed_seats(121) == 0
    async with database.session() as fresh:
        count = len((await fresh.scalars(select(Seat.id))).all())
    assert count == 121


@pytest.mark.parametrize("seat_id", [0, -3, 2**63, 10**20])
async def test_out_of_range_seat_ids_are_not_found(session, make_user, clock, seat_id):
    alice_id = (await make_user("alice")).id
    with pytest.raises(NotFound):
        await seat_service.reserve_seat(session, seat_id, alice_id, 1, clock())
    with pytest.raises(NotFound):
        await seat_service.cancel_reservation(session, seat_id, alice_id, clock())


async def test_concurrent_seeding_keeps_one_row_per_seat(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'startup.db'}"
    first, second = Database(url), Database(url)
    try:
        await first.create_all()
        await asyncio.gather(first.seed_seats(121), second.seed_seats(121))
        async with first.session() as fresh:
            ids = (await fresh.scalars(select(Seat.id).order_by(Seat.id))).all()
    finally:
        await first.dispose()
        await second.dispose()
    assert ids == list(range(1, 122))
