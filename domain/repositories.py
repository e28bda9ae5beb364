"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Dict, Optional, List
from datetime import date

from domain.entities import (
    Hotel, RoomType, Room, Reservation, ReservationStatusHistory,
    RoomTypeInventory, RoomTypeDailyPrice,
)
from domain.enums import ReservationStatus, RoomStatus


class HotelRepository(ABC):
    """Repository interface for Hotels"""

    @abstractmethod
    async def save(self, hotel: Hotel) -> Hotel:
        pass

    @abstractmethod
    async def find_by_id(self, hotel_id: int) -> Optional[Hotel]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Hotel]:
        pass

    @abstractmethod
    async def find_names(self, hotel_ids: List[int]) -> Dict[int, str]:
        """Map hotel id to hotel name for the given ids"""
        pass


class RoomTypeRepository(ABC):
    """Repository interface for Room Types"""

    @abstractmethod
    async def save(self, room_type: RoomType) -> RoomType:
        pass

    @abstractmethod
    async def find_by_id(self, room_type_id: int) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: int) -> List[RoomType]:
        """Room types of a hotel ordered by room type id"""
        pass


class RoomRepository(ABC):
    """Repository interface for concrete Rooms"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def find_by_id(self, room_id: int) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_hotel_id(self, hotel_id: int, status: Optional[RoomStatus] = None) -> List[Room]:
        pass

    @abstractmethod
    async def exists_by_room_number(self, hotel_id: int, room_number: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, room_id: int) -> bool:
        pass


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Insert or replace; assigns an id to new reservations"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def find_by_id_and_user_id(self, reservation_id: int, user_id: int) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: int) -> List[Reservation]:
        pass

    @abstractmethod
    async def find_by_hotel_id(
        self,
        hotel_id: int,
        status: Optional[ReservationStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Reservation]:
        """Reservations of a hotel, optionally filtered by status and overlapping [start, end)"""
        pass


class StatusHistoryRepository(ABC):
    """Repository interface for reservation status history"""

    @abstractmethod
    async def save(self, entry: ReservationStatusHistory) -> ReservationStatusHistory:
        pass

    @abstractmethod
    async def find_by_reservation_id(self, reservation_id: int) -> List[ReservationStatusHistory]:
        pass


class InventoryRepository(ABC):
    """Repository interface for nightly room-type inventory"""

    @abstractmethod
    async def find(self, hotel_id: int, room_type_id: int, stay_date: date) -> Optional[RoomTypeInventory]:
        pass

    @abstractmethod
    async def save(self, inventory: RoomTypeInventory) -> RoomTypeInventory:
        pass

    @abstractmethod
    async def find_occupancy(self, hotel_id: int, start: date, end: date) -> Dict[int, Dict[date, int]]:
        """Rooms committed per room type per night for nights in [start, end)"""
        pass


class DailyPriceRepository(ABC):
    """Repository interface for per-night price overrides"""

    @abstractmethod
    async def save(self, price: RoomTypeDailyPrice) -> RoomTypeDailyPrice:
        pass

    @abstractmethod
    async def find_by_range(
        self, hotel_id: int, room_type_id: int, start: date, end: date
    ) -> Dict[date, RoomTypeDailyPrice]:
        """Overrides for nights in [start, end) keyed by night"""
        pass


class UnitOfWork(ABC):
    """Transaction boundary for read-validate-write sequences"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Serialise writers and undo every write if the block raises"""
        pass
