from typing import AsyncIterator, Optional

from fastapi import Request
from sqlmodel import SQLModel, select
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app_logger import get_logger
from models import Room

logger = get_logger(__name__)

# Rooms created on first start when the table is empty
DEFAULT_ROOMS = [
    ("Salle A", 10, "Projecteur, Tableau blanc"),
    ("Salle B", 20, "Projecteur, Visioconférence"),
    ("Salle C", 5, "Tableau blanc"),
    ("Salle D", 15, "Projecteur, Tableau blanc, Visioconférence"),
]


def _begin_immediate(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front.

    SQLite has no row locks and pysqlite defers BEGIN until the first write,
    so two processes could both scan a room before either inserts.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the async engine and session factory.

    Opened once at process start and closed at shutdown; handed to the
    components that need storage instead of being imported as a global.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    async def open(self) -> None:
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=self.echo, future=True)
        if self._engine.dialect.name == "sqlite":
            _begin_immediate(self._engine)
        self._sessionmaker = sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        async with self._engine.begin() as conn:
            # This creates the tables if they don't exist
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database opened (%s)", self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database closed")

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    async def seed_rooms(self, rooms=DEFAULT_ROOMS) -> int:
        async with self.session() as session:
            result = await session.execute(select(Room.id).limit(1))
            if result.scalars().first() is not None:
                return 0
            for name, capacity, equipment in rooms:
                session.add(Room(name=name, capacity=capacity, equipment=equipment))
            await session.commit()
        logger.info("Seeded %d default rooms", len(rooms))
        return len(rooms)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
