"""Availability and booking engine.

Owns the half-open overlap rule and the create/delete lifecycle of a
reservation. For a fixed room no two stored reservations may overlap.

Check-then-insert is serialized per room in three layers:

* an ``asyncio.Lock`` per room id, so attempts inside one process queue up;
* the room row is read ``FOR UPDATE`` in the same transaction as the insert,
  which serializes workers on PostgreSQL; on SQLite every transaction opens
  with ``BEGIN IMMEDIATE`` instead (see ``database.py``);
* a unique ``(room_id, start_time)`` constraint, which turns an identical-start
  race into an ``IntegrityError``.

Reservations for different rooms never share a lock.
"""

import asyncio
from datetime import datetime
from typing import List, Optional, Tuple
from weakref import WeakValueDictionary

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app_logger import get_logger
from database import Database
from errors import Forbidden, InvalidInterval, ReservationNotFound, RoomNotFound, SlotUnavailable
from models import Reservation, Room

logger = get_logger(__name__)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True iff ``[a_start, a_end)`` and ``[b_start, b_end)`` share an instant."""
    return a_start < b_end and b_start < a_end


def overlapping(start: datetime, end: datetime):
    """SQL form of :func:`intervals_overlap` against ``Reservation`` rows."""
    return and_(Reservation.start_time < end, Reservation.end_time > start)


def validate_interval(start: datetime, end: datetime) -> None:
    if start.tzinfo is not None or end.tzinfo is not None:
        raise InvalidInterval("Timestamps must be local ISO-8601 values without a UTC offset")
    if not start < end:
        raise InvalidInterval("startTime must be strictly before endTime")


class RoomLocks:
    """Hands out one asyncio.Lock per room id.

    Locks are held weakly and disappear once no request is using them.
    """

    def __init__(self) -> None:
        self._locks: "WeakValueDictionary[int, asyncio.Lock]" = WeakValueDictionary()

    def for_room(self, room_id: int) -> asyncio.Lock:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[room_id] = lock
        return lock


class BookingEngine:
    def __init__(self, database: Database, locks: Optional[RoomLocks] = None) -> None:
        self._database = database
        self._locks = locks or RoomLocks()

    @property
    def locks(self) -> RoomLocks:
        return self._locks

    async def _find_conflict(
        self,
        session,
        room_id: int,
        start: datetime,
        end: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> Optional[int]:
        statement = select(Reservation.id).where(
            Reservation.room_id == room_id, overlapping(start, end)
        )
        if exclude_reservation_id is not None:
            statement = statement.where(Reservation.id != exclude_reservation_id)
        result = await session.execute(statement.limit(1))
        return result.scalars().first()

    async def is_available(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        exclude_reservation_id: Optional[int] = None,
    ) -> bool:
        """Whether no reservation of the room overlaps ``[start, end)``.

        The caller has already checked that the room exists and that
        ``start < end``.
        """
        async with self._database.session() as session:
            conflict = await self._find_conflict(session, room_id, start, end, exclude_reservation_id)
        return conflict is None

    async def create_reservation(
        self, user_id: int, room_id: int, start: datetime, end: datetime
    ) -> Reservation:
        validate_interval(start, end)

        async with self._locks.for_room(room_id):
            async with self._database.session() as session:
                async with session.begin():
                    room = await session.get(Room, room_id, with_for_update=True)
                    if room is None:
                        raise RoomNotFound(room_id)

                    conflict = await self._find_conflict(session, room_id, start, end)
                    if conflict is not None:
                        logger.info(
                            "Rejected reservation for room %s [%s, %s): overlaps reservation %s",
                            room_id, start.isoformat(), end.isoformat(), conflict,
                        )
                        raise SlotUnavailable("This room is already booked for that time slot")

                    reservation = Reservation(
                        user_id=user_id, room_id=room_id, start_time=start, end_time=end
                    )
                    session.add(reservation)
                    try:
                        await session.flush()
                    except IntegrityError as exc:
                        logger.info(
                            "Rejected reservation for room %s [%s, %s): storage constraint",
                            room_id, start.isoformat(), end.isoformat(),
                        )
                        raise SlotUnavailable("This room is already booked for that time slot") from exc

        logger.info(
            "Reservation %s created by user %s for room %s [%s, %s)",
            reservation.id, user_id, room_id, start.isoformat(), end.isoformat(),
        )
        return reservation

    async def delete_reservation(self, reservation_id: int, requesting_user_id: int) -> None:
        async with self._database.session() as session:
            async with session.begin():
                reservation = await session.get(Reservation, reservation_id)
                if reservation is None:
                    raise ReservationNotFound(reservation_id)
                if reservation.user_id != requesting_user_id:
                    raise Forbidden("You can only delete your own reservations")
                await session.delete(reservation)

        logger.info("Reservation %s deleted by user %s", reservation_id, requesting_user_id)

    async def list_for_user(self, user_id: int) -> List[Tuple[Reservation, str]]:
        statement = (
            select(Reservation, Room.name)
            .join(Room, Room.id == Reservation.room_id)
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.start_time.desc())
        )
        async with self._database.session() as session:
            result = await session.execute(statement)
            return [(reservation, room_name) for reservation, room_name in result.all()]

    async def list_for_room(self, room_id: int) -> List[Reservation]:
        statement = (
            select(Reservation)
            .where(Reservation.room_id == room_id)
            .order_by(Reservation.start_time)
        )
        async with self._database.session() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())
