"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from domain.enums import ReservationStatus, UpgradeStatus, RoomStatus, UserRole


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    hotel_id: int
    room_type_id: int
    check_in: date
    check_out: date
    num_guests: int = Field(ge=1)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: Optional[str] = None


class PatchReservationRequest(BaseModel):
    """Guest-side partial update DTO; only the fields sent are changed"""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    num_guests: Optional[int] = Field(None, ge=1)


class ReservationUpdateRequest(BaseModel):
    """Manager-side partial update DTO; only the fields sent are changed"""
    room_type_id: Optional[int] = None
    room_id: Optional[int] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    num_guests: Optional[int] = Field(None, ge=1)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    price_total: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    status: Optional[ReservationStatus] = None


class ApplyUpgradeRequest(BaseModel):
    """Apply upgrade request DTO"""
    new_room_type_id: int


class UpgradeStatusRequest(BaseModel):
    """Upgrade status change request DTO"""
    upgrade_status: UpgradeStatus


class ReservationSummaryResponse(BaseModel):
    """Reservation list item DTO"""
    reservation_id: int
    hotel_id: int
    hotel_name: Optional[str] = None
    room_type_id: int
    room_type_name: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    num_guests: int
    currency: str
    price_total: Decimal
    status: str


class ReservationDetailResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: int
    user_id: Optional[int] = None
    hotel_id: int
    room_type_id: int
    room_id: Optional[int] = None
    room_number: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    num_guests: int
    currency: str
    price_total: Decimal
    notes: Optional[str] = None
    status: str
    upgrade_status: str
    created_at: datetime
    modified_at: datetime
    canceled_at: Optional[datetime] = None
    upgraded_at: Optional[datetime] = None
    version: int


class StatusHistoryResponse(BaseModel):
    """Status history entry DTO"""
    from_status: str
    to_status: str
    changed_at: datetime
    changed_by_user_id: Optional[int] = None
    reason: Optional[str] = None


# ============================================================================
# HOTEL, ROOM TYPE & AVAILABILITY SCHEMAS
# ============================================================================

class HotelSummaryResponse(BaseModel):
    """Hotel list item DTO"""
    hotel_id: int
    name: str
    city: str
    country: str
    star_rating: Optional[Decimal] = None


class HotelDetailResponse(BaseModel):
    """Hotel detail DTO"""
    hotel_id: int
    name: str
    address: str


class RoomTypeResponse(BaseModel):
    """Room type DTO"""
    room_type_id: int
    code: str
    name: str
    description: Optional[str] = None
    bed_type: Optional[str] = None
    capacity: int
    total_rooms: int
    base_rate: Optional[Decimal] = None


class RoomTypeAvailabilityResponse(BaseModel):
    """Availability of one room type for the requested stay"""
    room_type_id: int
    code: str
    name: str
    bed_type: Optional[str] = None
    capacity: int
    total_rooms: int
    available: int
    base_rate: Optional[Decimal] = None


class DailyPriceRequest(BaseModel):
    """Nightly price override for [start_date, end_date)"""
    start_date: date
    end_date: date
    price: Decimal = Field(ge=0)


class DailyPriceResponse(BaseModel):
    stay_date: date
    price: Decimal


class BlockRoomsRequest(BaseModel):
    """Block rooms request DTO"""
    start_date: date
    end_date: date
    count: int = Field(ge=1)


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class RoomCreateRequest(BaseModel):
    """Create room request DTO"""
    room_type_id: int
    room_number: str = Field(min_length=1, max_length=20)
    floor: Optional[int] = None
    status: Optional[RoomStatus] = None


class RoomUpdateRequest(BaseModel):
    """Update room request DTO"""
    room_type_id: Optional[int] = None
    room_number: Optional[str] = Field(None, min_length=1, max_length=20)
    floor: Optional[int] = None
    status: Optional[RoomStatus] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: int
    hotel_id: int
    room_type_id: int
    room_number: str
    floor: Optional[int] = None
    status: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    disabled: bool
