"""Room-type availability computation.

Pure functions over room types and nightly occupancy snapshots; all I/O
happens in ``application.room_services.RoomTypeAvailabilityService``.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from domain.entities import RoomType
from domain.exceptions import InvalidGuestCountError
from domain.value_objects import DateRange

# room_type_id -> stay_date -> rooms committed (reserved + blocked)
OccupancyByType = Mapping[int, Mapping[date, int]]


class RoomTypeAvailability(BaseModel):
    """Availability of one room type for a whole stay window"""
    room_type_id: int
    code: str
    name: str
    bed_type: Optional[str] = None
    capacity: int
    total_rooms: int
    available: int
    base_rate: Optional[Decimal] = None

    class Config:
        frozen = True


def free_rooms_for_stay(
    total_rooms: int,
    occupied_by_date: Mapping[date, int],
    stay_dates: Iterable[date],
) -> int:
    """Minimum free units across every night of the stay.

    Each night is clamped at zero before taking the minimum, so one overbooked
    night cannot be offset by a quiet one.
    """
    if total_rooms <= 0:
        return 0
    minimum = total_rooms
    for night in stay_dates:
        free = max(0, total_rooms - occupied_by_date.get(night, 0))
        minimum = min(minimum, free)
        if minimum == 0:
            break
    return minimum


def compute_availability(
    room_types: Sequence[RoomType],
    occupancy: OccupancyByType,
    check_in: date,
    check_out: date,
    num_guests: Optional[int] = None,
) -> List[RoomTypeAvailability]:
    """Per-room-type availability for [check_in, check_out), ordered by room type id"""
    window = DateRange.of(check_in, check_out)
    if num_guests is not None and num_guests <= 0:
        raise InvalidGuestCountError("numGuests must be positive")

    stay_dates = window.stay_dates()
    empty: Dict[date, int] = {}
    result = []
    for room_type in sorted(room_types, key=lambda rt: rt.room_type_id):
        if num_guests is not None and room_type.capacity < num_guests:
            continue
        available = free_rooms_for_stay(
            room_type.total_rooms,
            occupancy.get(room_type.room_type_id, empty),
            stay_dates,
        )
        result.append(RoomTypeAvailability(
            room_type_id=room_type.room_type_id,
            code=room_type.code,
            name=room_type.name,
            bed_type=room_type.bed_type,
            capacity=room_type.capacity,
            total_rooms=room_type.total_rooms,
            available=available,
            base_rate=room_type.base_rate,
        ))
    return result
