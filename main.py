from fastapi import FastAPI, HTTPException, Depends, Response
from datetime import date, timedelta
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, PatchReservationRequest, ReservationUpdateRequest,
    ApplyUpgradeRequest, UpgradeStatusRequest,
    ReservationDetailResponse, ReservationSummaryResponse, StatusHistoryResponse,
    # Hotels & availability
    HotelSummaryResponse, HotelDetailResponse, RoomTypeResponse, RoomTypeAvailabilityResponse,
    DailyPriceRequest, DailyPriceResponse, BlockRoomsRequest,
    # Rooms
    RoomCreateRequest, RoomUpdateRequest, RoomResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, get_current_manager, fake_users_db, get_user
from infrastructure.security import verify_password, create_access_token
from infrastructure.config import get_settings
from infrastructure.container import ServiceContainer, build_container
from infrastructure.logging import configure_logging
from domain.auth import User
from domain.enums import ReservationStatus, UpgradeStatus, RoomStatus
from domain.exceptions import NotFoundError

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Hotel Reservation API",
    description="Reservations, room inventory and availability for hotel guests and managers",
    version="1.0.0"
)

# Initialize repositories and services
container = build_container(seed=settings.seed_demo_data)


# Dependency injection
def get_container() -> ServiceContainer:
    return container


def _http_error(e: Exception) -> HTTPException:
    """Translate a domain error into the HTTP status the client sees"""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.name for item in ReservationStatus],
        "description": "Reservation status values: PENDING, CONFIRMED, CANCELED, CHECKED_IN, CHECKED_OUT, NO_SHOW"
    }

@app.get("/api/enums/upgrade-status", tags=["Enum Reference"])
async def get_upgrade_statuses():
    """Get all UpgradeStatus enum values"""
    return {
        "values": [item.name for item in UpgradeStatus],
        "description": "Upgrade status values: NOT_ELIGIBLE, ELIGIBLE, QUEUED, APPLIED, DECLINED"
    }

@app.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus enum values"""
    return {
        "values": [item.name for item in RoomStatus],
        "description": "Room status values: AVAILABLE, MAINTENANCE, OUT_OF_SERVICE"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# PUBLIC HOTEL & AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/hotels", response_model=List[HotelSummaryResponse], tags=["Hotels"])
async def get_all_hotels(c: ServiceContainer = Depends(get_container)):
    """List hotels"""
    hotels = await c.hotels.get_all_hotels()
    return [
        HotelSummaryResponse(hotel_id=h.hotel_id, name=h.name, city=h.city,
                             country=h.country, star_rating=h.star_rating)
        for h in hotels
    ]

@app.get("/hotels/{hotel_id}", response_model=HotelDetailResponse, tags=["Hotels"])
async def get_hotel(hotel_id: int, c: ServiceContainer = Depends(get_container)):
    """Get hotel with its formatted address"""
    try:
        hotel = await c.hotels.get_by_id(hotel_id)
    except NotFoundError as e:
        raise _http_error(e)
    return HotelDetailResponse(hotel_id=hotel.hotel_id, name=hotel.name, address=hotel.full_address())

@app.get("/hotels/{hotel_id}/room-types", response_model=List[RoomTypeResponse], tags=["Hotels"])
async def get_hotel_room_types(hotel_id: int, c: ServiceContainer = Depends(get_container)):
    """List room types of a hotel"""
    try:
        room_types = await c.hotels.get_room_types(hotel_id)
    except NotFoundError as e:
        raise _http_error(e)
    return [_room_type_to_response(rt) for rt in room_types]

@app.get("/hotels/{hotel_id}/room-types/availability",
         response_model=List[RoomTypeAvailabilityResponse], tags=["Hotels"])
async def get_room_type_availability(
    hotel_id: int,
    check_in: date,
    check_out: date,
    num_guests: Optional[int] = None,
    c: ServiceContainer = Depends(get_container)
):
    """Rooms of each type free for every night of [check_in, check_out)"""
    try:
        availability = await c.availability.get_availability(hotel_id, check_in, check_out, num_guests)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return [RoomTypeAvailabilityResponse(**a.model_dump()) for a in availability]

# ============================================================================
# GUEST RESERVATION ENDPOINTS
# ============================================================================

@app.get("/reservations", response_model=List[ReservationSummaryResponse], tags=["Reservations"])
async def list_my_reservations(
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """List the caller's reservations"""
    views = await c.user_reservations.list_my_reservations(current_user.user_id)
    return [
        _reservation_to_summary(v.reservation, v.hotel_name, v.room_type_name)
        for v in views
    ]

@app.post("/reservations", response_model=ReservationDetailResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation"""
    try:
        reservation = await c.user_reservations.create_reservation(
            user_id=current_user.user_id,
            hotel_id=request.hotel_id,
            room_type_id=request.room_type_id,
            check_in=request.check_in,
            check_out=request.check_out,
            num_guests=request.num_guests,
            currency=request.currency or settings.default_currency,
            notes=request.notes
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.get("/reservations/{reservation_id}", response_model=ReservationDetailResponse, tags=["Reservations"])
async def get_my_reservation(
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """Get one of the caller's reservations"""
    try:
        reservation = await c.user_reservations.get_my_reservation(current_user.user_id, reservation_id)
    except NotFoundError as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/reservations/{reservation_id}", response_model=ReservationDetailResponse, tags=["Reservations"])
async def patch_my_reservation(
    reservation_id: int,
    request: PatchReservationRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """Move dates or change the guest count of the caller's reservation"""
    try:
        reservation = await c.user_reservations.patch_my_reservation(
            current_user.user_id, reservation_id, request
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.delete("/reservations/{reservation_id}", status_code=204, tags=["Reservations"])
async def cancel_my_reservation(
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel the caller's reservation"""
    try:
        await c.user_reservations.cancel_my_reservation(current_user.user_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return Response(status_code=204)

# ============================================================================
# MANAGER RESERVATION ENDPOINTS
# ============================================================================

@app.get("/manager/hotels/{hotel_id}/reservations",
         response_model=List[ReservationDetailResponse], tags=["Manager Reservations"])
async def manager_list_reservations(
    hotel_id: int,
    status: Optional[ReservationStatus] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """List reservations of a hotel, filtered by status and/or stay overlap"""
    try:
        reservations = await c.manager_reservations.list_reservations(hotel_id, status, start, end)
    except NotFoundError as e:
        raise _http_error(e)
    return [_reservation_to_detail(r) for r in reservations]

@app.post("/manager/hotels/{hotel_id}/reservations/no-show-sweep",
          response_model=List[ReservationDetailResponse], tags=["Manager Reservations"])
async def manager_sweep_no_shows(
    hotel_id: int,
    as_of: Optional[date] = None,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Mark confirmed reservations whose check-in has passed as NO_SHOW"""
    try:
        marked = await c.manager_reservations.sweep_no_shows(hotel_id, as_of or date.today())
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return [_reservation_to_detail(r) for r in marked]

@app.get("/manager/hotels/{hotel_id}/reservations/{reservation_id}",
         response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_get_reservation(
    hotel_id: int,
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Get reservation by ID"""
    try:
        reservation = await c.manager_reservations.get_reservation(hotel_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.get("/manager/hotels/{hotel_id}/reservations/{reservation_id}/history",
         response_model=List[StatusHistoryResponse], tags=["Manager Reservations"])
async def manager_get_status_history(
    hotel_id: int,
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Status transitions of a reservation, oldest first"""
    try:
        history = await c.manager_reservations.get_status_history(hotel_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return [
        StatusHistoryResponse(
            from_status=h.from_status.value,
            to_status=h.to_status.value,
            changed_at=h.changed_at,
            changed_by_user_id=h.changed_by_user_id,
            reason=h.reason
        )
        for h in history
    ]

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_patch_reservation(
    hotel_id: int,
    reservation_id: int,
    request: ReservationUpdateRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Change any reservation field, including room type, room and status"""
    try:
        reservation = await c.manager_reservations.patch_reservation(
            hotel_id, reservation_id, request, changed_by_user_id=current_user.user_id
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}/apply-upgrade",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_apply_upgrade(
    hotel_id: int,
    reservation_id: int,
    request: ApplyUpgradeRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Move an upgrade-eligible reservation to a new room type"""
    try:
        reservation = await c.manager_reservations.apply_upgrade(
            hotel_id, reservation_id, request.new_room_type_id
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}/upgrade-status",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_change_upgrade_status(
    hotel_id: int,
    reservation_id: int,
    request: UpgradeStatusRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Advance the upgrade workflow of a reservation"""
    try:
        reservation = await c.manager_reservations.change_upgrade_status(
            hotel_id, reservation_id, request.upgrade_status
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}/check-in",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_check_in(
    hotel_id: int,
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Check in guest"""
    try:
        reservation = await c.manager_reservations.check_in(hotel_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}/check-out",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_check_out(
    hotel_id: int,
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Check out guest"""
    try:
        reservation = await c.manager_reservations.check_out(hotel_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.patch("/manager/hotels/{hotel_id}/reservations/{reservation_id}/no-show",
           response_model=ReservationDetailResponse, tags=["Manager Reservations"])
async def manager_mark_no_show(
    hotel_id: int,
    reservation_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Mark reservation as no-show"""
    try:
        reservation = await c.manager_reservations.mark_no_show(hotel_id, reservation_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _reservation_to_detail(reservation)

@app.delete("/manager/hotels/{hotel_id}/reservations/{reservation_id}",
            status_code=204, tags=["Manager Reservations"])
async def manager_cancel_reservation(
    hotel_id: int,
    reservation_id: int,
    reason: Optional[str] = None,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Cancel reservation"""
    try:
        await c.manager_reservations.cancel(hotel_id, reservation_id, reason, current_user.user_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return Response(status_code=204)

# ============================================================================
# MANAGER ROOM & INVENTORY ENDPOINTS
# ============================================================================

@app.get("/manager/hotels/{hotel_id}/rooms", response_model=List[RoomResponse], tags=["Manager Rooms"])
async def manager_list_rooms(
    hotel_id: int,
    status: Optional[RoomStatus] = None,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """List rooms of a hotel"""
    try:
        rooms = await c.rooms.list_rooms(hotel_id, status)
    except NotFoundError as e:
        raise _http_error(e)
    return [_room_to_response(r) for r in rooms]

@app.post("/manager/hotels/{hotel_id}/rooms", response_model=RoomResponse, status_code=201,
          tags=["Manager Rooms"])
async def manager_create_room(
    hotel_id: int,
    request: RoomCreateRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Create room"""
    try:
        room = await c.rooms.create_room(
            hotel_id, request.room_type_id, request.room_number, request.floor, request.status
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _room_to_response(room)

@app.patch("/manager/hotels/{hotel_id}/rooms/{room_id}", response_model=RoomResponse, tags=["Manager Rooms"])
async def manager_update_room(
    hotel_id: int,
    room_id: int,
    request: RoomUpdateRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Update room"""
    try:
        room = await c.rooms.update_room(
            hotel_id, room_id, request.room_type_id, request.room_number, request.floor, request.status
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return _room_to_response(room)

@app.delete("/manager/hotels/{hotel_id}/rooms/{room_id}", status_code=204, tags=["Manager Rooms"])
async def manager_delete_room(
    hotel_id: int,
    room_id: int,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Delete room"""
    try:
        await c.rooms.delete_room(hotel_id, room_id)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return Response(status_code=204)

@app.put("/manager/hotels/{hotel_id}/room-types/{room_type_id}/daily-prices",
         response_model=List[DailyPriceResponse], tags=["Manager Inventory"])
async def manager_set_daily_prices(
    hotel_id: int,
    room_type_id: int,
    request: DailyPriceRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Override the nightly price of a room type for a date range"""
    try:
        prices = await c.inventory.set_daily_prices(
            hotel_id, room_type_id, request.start_date, request.end_date, request.price
        )
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return [DailyPriceResponse(stay_date=p.stay_date, price=p.price) for p in prices]

@app.post("/manager/hotels/{hotel_id}/room-types/{room_type_id}/block", tags=["Manager Inventory"])
async def manager_block_rooms(
    hotel_id: int,
    room_type_id: int,
    request: BlockRoomsRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Block rooms for maintenance/events for a date range"""
    try:
        await c.inventory.block_rooms(hotel_id, room_type_id, request.start_date, request.end_date, request.count)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return {"success": True, "message": f"{request.count} rooms blocked"}

@app.post("/manager/hotels/{hotel_id}/room-types/{room_type_id}/unblock", tags=["Manager Inventory"])
async def manager_unblock_rooms(
    hotel_id: int,
    room_type_id: int,
    request: BlockRoomsRequest,
    c: ServiceContainer = Depends(get_container),
    current_user: User = Depends(get_current_manager)
):
    """Unblock rooms after maintenance for a date range"""
    try:
        await c.inventory.unblock_rooms(hotel_id, room_type_id, request.start_date, request.end_date, request.count)
    except (NotFoundError, ValueError) as e:
        raise _http_error(e)
    return {"success": True, "message": f"{request.count} rooms unblocked"}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_detail(reservation) -> ReservationDetailResponse:
    """Convert Reservation entity to ReservationDetailResponse"""
    return ReservationDetailResponse(
        reservation_id=reservation.reservation_id,
        user_id=reservation.user_id,
        hotel_id=reservation.hotel_id,
        room_type_id=reservation.room_type_id,
        room_id=reservation.room_id,
        # room number needs a join with rooms; left empty for now
        room_number=None,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.nights,
        num_guests=reservation.num_guests,
        currency=reservation.currency,
        price_total=reservation.price_total,
        notes=reservation.notes,
        status=reservation.status.value,
        upgrade_status=reservation.upgrade_status.value,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        canceled_at=reservation.canceled_at,
        upgraded_at=reservation.upgraded_at,
        version=reservation.version
    )

def _reservation_to_summary(reservation, hotel_name, room_type_name) -> ReservationSummaryResponse:
    """Convert Reservation entity to ReservationSummaryResponse"""
    return ReservationSummaryResponse(
        reservation_id=reservation.reservation_id,
        hotel_id=reservation.hotel_id,
        hotel_name=hotel_name,
        room_type_id=reservation.room_type_id,
        room_type_name=room_type_name,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.nights,
        num_guests=reservation.num_guests,
        currency=reservation.currency,
        price_total=reservation.price_total,
        status=reservation.status.value
    )

def _room_type_to_response(room_type) -> RoomTypeResponse:
    """Convert RoomType entity to RoomTypeResponse"""
    return RoomTypeResponse(
        room_type_id=room_type.room_type_id,
        code=room_type.code,
        name=room_type.name,
        description=room_type.description,
        bed_type=room_type.bed_type,
        capacity=room_type.capacity,
        total_rooms=room_type.total_rooms,
        base_rate=room_type.base_rate
    )

def _room_to_response(room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_id=room.room_id,
        hotel_id=room.hotel_id,
        room_type_id=room.room_type_id,
        room_number=room.room_number,
        floor=room.floor,
        status=room.status.value,
        created_at=room.created_at,
        updated_at=room.updated_at
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
