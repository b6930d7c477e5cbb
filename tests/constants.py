from datetime import datetime

SEAT_COUNT = 121
START = datetime(2026, 10, 17, 9, 0, 0)
DEFAULT_PASSWORD = "correct horse"
