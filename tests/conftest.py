import pytest
from httpx import ASGITransport, AsyncClient

from booking import BookingEngine
from config import Settings
from database import Database
from directory import RoomDirectory
from main import create_app


# Run anyio-marked tests on asyncio only
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}")


@pytest.fixture
async def database(settings):
    database = Database(settings.database_url)
    await database.open()
    yield database
    await database.close()


@pytest.fixture
def directory(database):
    return RoomDirectory(database)


@pytest.fixture
def engine(database):
    return BookingEngine(database)


@pytest.fixture
async def room(directory):
    return await directory.create_room("Salle A", 10, "Projecteur, Tableau blanc")


@pytest.fixture
async def client(settings):
    app = create_app(settings)
    # ASGITransport does not run lifespan events, so drive them here
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
