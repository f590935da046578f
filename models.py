from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    capacity: int
    equipment: Optional[str] = None
    created_at: datetime = Field(default_factory=_now, sa_type=DateTime)


class Reservation(SQLModel, table=True):
    __tablename__ = "reservations"
    __table_args__ = (
        # Backstop for identical-start races that slip past the locking
        UniqueConstraint("room_id", "start_time", name="unique_reservation_start"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    room_id: int = Field(foreign_key="rooms.id")
    start_time: datetime = Field(sa_type=DateTime)
    end_time: datetime = Field(sa_type=DateTime)
    created_at: datetime = Field(default_factory=_now, sa_type=DateTime)
