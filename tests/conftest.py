import os
from datetime import datetime, timedelta

os.environ.setdefault("CLASSSEAT_SECRET_KEY", "test-secret-key")

from httpx import ASGITransport, AsyncClient  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from app.core.dependencies import get_clock  # noqa: E402
from app.db.session import Database  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services import users as user_service  # noqa: E402

from tests.constants import DEFAULT_PASSWORD, SEAT_COUNT, START  # noqa: E402


class MutableClock:
    """Clock whose reading only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(START)


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'classseat.db'}")
    await db.create_all()
    await db.seed_seats(SEAT_COUNT)
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def make_user(session, clock):
    async def _make(username: str, password: str = DEFAULT_PASSWORD):
        user = await user_service.register_user(session, username, password, clock())
        await session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def client(database, clock):
    app = create_app()
    app.state.database = database
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register and log in through the API, returning bearer headers and the user body."""

    async def _signup(username: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = await client.post("/api/register", json={"username": username, "password": password})
        assert response.status_code == 201, response.text
        response = await client.post("/api/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return {"headers": {"Authorization": f"Bearer {body['accessToken']}"}, "user": body["user"]}

    return _signup
