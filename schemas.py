from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Rooms ---

class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    equipment: Optional[str] = None


class RoomRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    capacity: int
    equipment: Optional[str]
    created_at: datetime


class Availability(CamelModel):
    room_id: int
    is_available: bool
    start_time: datetime
    end_time: datetime


# --- Reservations ---

class ReservationCreate(CamelModel):
    room_id: int
    start_time: datetime
    end_time: datetime


class ReservationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    room_id: int
    start_time: datetime
    end_time: datetime
    created_at: datetime
    room_name: Optional[str] = None


class ReservationCreated(BaseModel):
    message: str
    reservation: ReservationRead


class Message(BaseModel):
    message: str


# --- Schedule grid ---

class RoomSchedule(BaseModel):
    room_id: int
    room_name: str
    reservations: List[ReservationRead]
