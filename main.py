import os
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app_logger import get_logger, setup_logging
from booking import BookingEngine, overlapping, validate_interval
from config import Settings
from database import Database, get_session
from directory import RoomDirectory
from errors import BookingError, RoomNotFound
from identity import current_user_id
from models import Reservation, Room
from schemas import (
    Availability,
    Message,
    ReservationCreate,
    ReservationCreated,
    ReservationRead,
    RoomCreate,
    RoomRead,
    RoomSchedule,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def get_booking(request: Request) -> BookingEngine:
    return request.app.state.booking


def get_directory(request: Request) -> RoomDirectory:
    return request.app.state.directory


@router.get("/health")
async def health():
    return {"status": "OK", "timestamp": datetime.now().isoformat()}


# --- Rooms ---

@router.get("/rooms", response_model=List[RoomRead])
async def list_rooms(directory: RoomDirectory = Depends(get_directory)):
    return await directory.list_rooms()


@router.get("/rooms/{room_id}", response_model=RoomRead)
async def get_room(room_id: int, directory: RoomDirectory = Depends(get_directory)):
    room = await directory.get_room(room_id)
    if room is None:
        raise RoomNotFound(room_id)
    return room


@router.post("/rooms", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
async def create_room(payload: RoomCreate, directory: RoomDirectory = Depends(get_directory)):
    return await directory.create_room(payload.name, payload.capacity, payload.equipment)


@router.delete("/rooms/{room_id}", response_model=Message)
async def delete_room(room_id: int, directory: RoomDirectory = Depends(get_directory)):
    if not await directory.delete_room(room_id):
        raise RoomNotFound(room_id)
    return Message(message="Room deleted")


@router.get("/rooms/{room_id}/availability", response_model=Availability)
async def check_availability(
    room_id: int,
    start_time: datetime = Query(alias="startTime"),
    end_time: datetime = Query(alias="endTime"),
    exclude_reservation_id: Optional[int] = Query(default=None, alias="excludeReservationId"),
    directory: RoomDirectory = Depends(get_directory),
    booking: BookingEngine = Depends(get_booking),
):
    if not await directory.room_exists(room_id):
        raise RoomNotFound(room_id)
    validate_interval(start_time, end_time)

    is_available = await booking.is_available(room_id, start_time, end_time, exclude_reservation_id)
    return Availability(
        room_id=room_id, is_available=is_available, start_time=start_time, end_time=end_time
    )


@router.get("/rooms/{room_id}/reservations", response_model=List[ReservationRead])
async def list_room_reservations(
    room_id: int,
    directory: RoomDirectory = Depends(get_directory),
    booking: BookingEngine = Depends(get_booking),
):
    if not await directory.room_exists(room_id):
        raise RoomNotFound(room_id)
    return await booking.list_for_room(room_id)


# --- Reservations ---

@router.post("/reservations", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    user_id: int = Depends(current_user_id),
    booking: BookingEngine = Depends(get_booking),
):
    reservation = await booking.create_reservation(
        user_id, payload.room_id, payload.start_time, payload.end_time
    )
    return ReservationCreated(
        message="Reservation created",
        reservation=ReservationRead.model_validate(reservation),
    )


@router.get("/reservations/me", response_model=List[ReservationRead])
async def my_reservations(
    user_id: int = Depends(current_user_id),
    booking: BookingEngine = Depends(get_booking),
):
    rows = await booking.list_for_user(user_id)
    return [
        ReservationRead.model_validate(reservation).model_copy(update={"room_name": room_name})
        for reservation, room_name in rows
    ]


@router.delete("/reservations/{reservation_id}", response_model=Message)
async def delete_reservation(
    reservation_id: int,
    user_id: int = Depends(current_user_id),
    booking: BookingEngine = Depends(get_booking),
):
    await booking.delete_reservation(reservation_id, user_id)
    return Message(message="Reservation deleted")


# --- Daily schedule grid ---

@router.get("/schedule", response_model=List[RoomSchedule])
async def get_schedule(
    target_date: date,
    session: AsyncSession = Depends(get_session),
):
    day_start = datetime.combine(target_date, time.min)
    day_end = day_start + timedelta(days=1)

    rooms = (await session.execute(select(Room).order_by(Room.name))).scalars().all()

    # Single query for every reservation touching the day
    statement = select(Reservation).where(overlapping(day_start, day_end)).order_by(Reservation.start_time)
    reservations = (await session.execute(statement)).scalars().all()

    by_room: Dict[int, List[ReservationRead]] = defaultdict(list)
    for reservation in reservations:
        by_room[reservation.room_id].append(ReservationRead.model_validate(reservation))

    return [
        RoomSchedule(room_id=room.id, room_name=room.name, reservations=by_room.get(room.id, []))
        for room in rooms
    ]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url, echo=settings.echo_sql)
        await database.open()
        if settings.seed_rooms:
            await database.seed_rooms()
        app.state.database = database
        app.state.directory = RoomDirectory(database)
        app.state.booking = BookingEngine(database)
        logger.info("Booking service ready")
        try:
            yield
        finally:
            await database.close()

    app = FastAPI(title="Meeting Room Booking System", lifespan=lifespan)

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    app.include_router(router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


# `uvicorn main:app` needs DATABASE_URL (or a .env) at import time;
# without it use `uvicorn main:create_app --factory`
app = create_app() if os.environ.get("DATABASE_URL") else None


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
