from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import select

from app_logger import get_logger
from database import Database
from models import Reservation, Room

logger = get_logger(__name__)


class RoomDirectory:
    """Bookable rooms. Rooms are never edited, only created and deleted."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def list_rooms(self) -> List[Room]:
        async with self._database.session() as session:
            result = await session.execute(select(Room).order_by(Room.name))
            return list(result.scalars().all())

    async def get_room(self, room_id: int) -> Optional[Room]:
        async with self._database.session() as session:
            return await session.get(Room, room_id)

    async def room_exists(self, room_id: int) -> bool:
        return await self.get_room(room_id) is not None

    async def create_room(self, name: str, capacity: int, equipment: Optional[str] = None) -> Room:
        room = Room(name=name, capacity=capacity, equipment=equipment or None)
        async with self._database.session() as session:
            session.add(room)
            await session.commit()
            await session.refresh(room)
        logger.info("Room %s (%s) created", room.id, room.name)
        return room

    async def delete_room(self, room_id: int) -> bool:
        async with self._database.session() as session:
            async with session.begin():
                room = await session.get(Room, room_id)
                if room is None:
                    return False
                # Reservations go with their room
                await session.execute(delete(Reservation).where(Reservation.room_id == room_id))
                await session.delete(room)
        logger.info("Room %s deleted", room_id)
        return True
