"""Application Services - Hotels, rooms, inventory and availability"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from application.services import EntityGuards, ReservationInventoryService
from domain.availability import RoomTypeAvailability, compute_availability
from domain.entities import Hotel, Room, RoomType, RoomTypeDailyPrice, utcnow
from domain.enums import RoomStatus
from domain.exceptions import DuplicateRoomNumberError, InvalidPriceError, NotFoundError
from domain.repositories import (
    DailyPriceRepository, HotelRepository, InventoryRepository, RoomRepository,
    RoomTypeRepository, UnitOfWork,
)
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)


class HotelService:
    """Public hotel catalogue"""

    def __init__(self, hotel_repo: HotelRepository, room_type_repo: RoomTypeRepository):
        self.hotel_repo = hotel_repo
        self.room_type_repo = room_type_repo

    async def get_all_hotels(self) -> List[Hotel]:
        return await self.hotel_repo.find_all()

    async def get_by_id(self, hotel_id: int) -> Hotel:
        hotel = await self.hotel_repo.find_by_id(hotel_id)
        if hotel is None:
            raise NotFoundError(f"Hotel does not exist: {hotel_id}")
        return hotel

    async def get_room_types(self, hotel_id: int) -> List[RoomType]:
        await self.get_by_id(hotel_id)
        return await self.room_type_repo.find_by_hotel_id(hotel_id)


class RoomTypeAvailabilityService:
    """Reads room types and nightly occupancy, then runs the availability computation"""

    def __init__(self,
                 guards: EntityGuards,
                 room_type_repo: RoomTypeRepository,
                 inventory_repo: InventoryRepository):
        self.guards = guards
        self.room_type_repo = room_type_repo
        self.inventory_repo = inventory_repo

    async def get_availability(self,
                               hotel_id: int,
                               check_in: date,
                               check_out: date,
                               num_guests: Optional[int] = None) -> List[RoomTypeAvailability]:
        window = DateRange.of(check_in, check_out)
        await self.guards.ensure_hotel_exists(hotel_id)

        room_types = await self.room_type_repo.find_by_hotel_id(hotel_id)
        if not room_types:
            return []
        occupancy = await self.inventory_repo.find_occupancy(hotel_id, window.check_in, window.check_out)
        return compute_availability(room_types, occupancy, window.check_in, window.check_out, num_guests)


class ManagerRoomService:
    """Concrete room management for hotel managers"""

    def __init__(self, guards: EntityGuards, room_repo: RoomRepository):
        self.guards = guards
        self.room_repo = room_repo

    async def list_rooms(self, hotel_id: int, status: Optional[RoomStatus] = None) -> List[Room]:
        await self.guards.ensure_hotel_exists(hotel_id)
        return await self.room_repo.find_by_hotel_id(hotel_id, status)

    async def create_room(self,
                          hotel_id: int,
                          room_type_id: int,
                          room_number: str,
                          floor: Optional[int] = None,
                          status: Optional[RoomStatus] = None) -> Room:
        await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        if await self.room_repo.exists_by_room_number(hotel_id, room_number):
            raise DuplicateRoomNumberError(f"Room number already exists: {room_number}")
        room = Room(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            room_number=room_number,
            floor=floor,
            status=status or RoomStatus.AVAILABLE,
        )
        return await self.room_repo.save(room)

    async def update_room(self,
                          hotel_id: int,
                          room_id: int,
                          room_type_id: Optional[int] = None,
                          room_number: Optional[str] = None,
                          floor: Optional[int] = None,
                          status: Optional[RoomStatus] = None) -> Room:
        room = await self.guards.get_room_in_hotel_or_throw(hotel_id, room_id)
        update = {}
        if room_type_id is not None:
            await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
            update["room_type_id"] = room_type_id
        if room_number is not None:
            if room_number != room.room_number and await self.room_repo.exists_by_room_number(hotel_id, room_number):
                raise DuplicateRoomNumberError(f"Room number already exists: {room_number}")
            update["room_number"] = room_number
        if floor is not None:
            update["floor"] = floor
        if status is not None:
            update["status"] = status
        update["updated_at"] = utcnow()
        return await self.room_repo.save(room.model_copy(update=update))

    async def delete_room(self, hotel_id: int, room_id: int) -> None:
        room = await self.guards.get_room_in_hotel_or_throw(hotel_id, room_id)
        await self.room_repo.delete(room.room_id)


class ManagerInventoryService:
    """Manager-side pricing overrides and room blocks"""

    def __init__(self,
                 guards: EntityGuards,
                 daily_price_repo: DailyPriceRepository,
                 inventory_service: ReservationInventoryService,
                 uow: UnitOfWork):
        self.guards = guards
        self.daily_price_repo = daily_price_repo
        self.inventory_service = inventory_service
        self.uow = uow

    async def set_daily_prices(self, hotel_id: int, room_type_id: int,
                               start: date, end: date, price: Decimal) -> List[RoomTypeDailyPrice]:
        """Override the nightly price for every night in [start, end)"""
        window = DateRange.of(start, end)
        if price < 0:
            raise InvalidPriceError("price must be non-negative.")
        async with self.uow.transaction():
            await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
            saved = []
            for night in window.stay_dates():
                saved.append(await self.daily_price_repo.save(RoomTypeDailyPrice(
                    hotel_id=hotel_id,
                    room_type_id=room_type_id,
                    stay_date=night,
                    price=price,
                )))
        logger.info("Daily price %s set for room type %s, %s..%s", price, room_type_id, start, end)
        return saved

    async def block_rooms(self, hotel_id: int, room_type_id: int, start: date, end: date, count: int) -> None:
        window = DateRange.of(start, end)
        async with self.uow.transaction():
            await self.inventory_service.block_rooms(hotel_id, room_type_id, window, count)
        logger.info("Blocked %s rooms of type %s, %s..%s", count, room_type_id, start, end)

    async def unblock_rooms(self, hotel_id: int, room_type_id: int, start: date, end: date, count: int) -> None:
        window = DateRange.of(start, end)
        async with self.uow.transaction():
            await self.inventory_service.unblock_rooms(hotel_id, room_type_id, window, count)
        logger.info("Unblocked %s rooms of type %s, %s..%s", count, room_type_id, start, end)
