"""In-Memory Repository Implementations"""
import asyncio
import copy
from contextlib import asynccontextmanager
from typing import Optional, List, Dict, Tuple
from datetime import date

from domain.repositories import (
    HotelRepository, RoomTypeRepository, RoomRepository, ReservationRepository,
    StatusHistoryRepository, InventoryRepository, DailyPriceRepository, UnitOfWork,
)
from domain.entities import (
    Hotel, RoomType, Room, Reservation, ReservationStatusHistory,
    RoomTypeInventory, RoomTypeDailyPrice,
)
from domain.enums import ReservationStatus, RoomStatus

InventoryKey = Tuple[int, int, date]


class InMemoryStore:
    """Tables shared by every in-memory repository of one application"""

    def __init__(self):
        self.hotels: Dict[int, Hotel] = {}
        self.room_types: Dict[int, RoomType] = {}
        self.rooms: Dict[int, Room] = {}
        self.reservations: Dict[int, Reservation] = {}
        self.status_history: Dict[int, ReservationStatusHistory] = {}
        self.inventory: Dict[InventoryKey, RoomTypeInventory] = {}
        self.daily_prices: Dict[InventoryKey, RoomTypeDailyPrice] = {}
        self._sequences: Dict[str, int] = {}

    def next_id(self, table: str) -> int:
        self._sequences[table] = self._sequences.get(table, 0) + 1
        return self._sequences[table]

    def snapshot(self) -> dict:
        return copy.deepcopy(self.__dict__)

    def restore(self, state: dict) -> None:
        self.__dict__.update(state)


class InMemoryUnitOfWork(UnitOfWork):
    """Serialises writers on one lock and rolls the store back on error"""

    def __init__(self, store: InMemoryStore):
        self._store = store
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self):
        async with self._lock:
            state = self._store.snapshot()
            try:
                yield
            except BaseException:
                self._store.restore(state)
                raise


class InMemoryHotelRepository(HotelRepository):
    """In-memory implementation of HotelRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, hotel: Hotel) -> Hotel:
        if hotel.hotel_id is None:
            hotel = hotel.model_copy(update={"hotel_id": self._store.next_id("hotels")})
        self._store.hotels[hotel.hotel_id] = hotel
        return hotel

    async def find_by_id(self, hotel_id: int) -> Optional[Hotel]:
        return self._store.hotels.get(hotel_id)

    async def find_all(self) -> List[Hotel]:
        return [self._store.hotels[k] for k in sorted(self._store.hotels)]

    async def find_names(self, hotel_ids: List[int]) -> Dict[int, str]:
        return {
            hotel_id: self._store.hotels[hotel_id].name
            for hotel_id in hotel_ids if hotel_id in self._store.hotels
        }


class InMemoryRoomTypeRepository(RoomTypeRepository):
    """In-memory implementation of RoomTypeRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, room_type: RoomType) -> RoomType:
        if room_type.room_type_id is None:
            room_type = room_type.model_copy(update={"room_type_id": self._store.next_id("room_types")})
        self._store.room_types[room_type.room_type_id] = room_type
        return room_type

    async def find_by_id(self, room_type_id: int) -> Optional[RoomType]:
        return self._store.room_types.get(room_type_id)

    async def find_by_hotel_id(self, hotel_id: int) -> List[RoomType]:
        return sorted(
            (rt for rt in self._store.room_types.values() if rt.hotel_id == hotel_id),
            key=lambda rt: rt.room_type_id,
        )


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, room: Room) -> Room:
        if room.room_id is None:
            room = room.model_copy(update={"room_id": self._store.next_id("rooms")})
        self._store.rooms[room.room_id] = room
        return room

    async def find_by_id(self, room_id: int) -> Optional[Room]:
        return self._store.rooms.get(room_id)

    async def find_by_hotel_id(self, hotel_id: int, status: Optional[RoomStatus] = None) -> List[Room]:
        return [
            r for r in sorted(self._store.rooms.values(), key=lambda r: r.room_id)
            if r.hotel_id == hotel_id and (status is None or r.status == status)
        ]

    async def exists_by_room_number(self, hotel_id: int, room_number: str) -> bool:
        return any(
            r.hotel_id == hotel_id and r.room_number == room_number
            for r in self._store.rooms.values()
        )

    async def delete(self, room_id: int) -> bool:
        if room_id in self._store.rooms:
            del self._store.rooms[room_id]
            return True
        return False


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        if reservation.reservation_id is None:
            reservation = reservation.model_copy(
                update={"reservation_id": self._store.next_id("reservations")}
            )
        self._store.reservations[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        return self._store.reservations.get(reservation_id)

    async def find_by_id_and_user_id(self, reservation_id: int, user_id: int) -> Optional[Reservation]:
        reservation = self._store.reservations.get(reservation_id)
        if reservation is not None and reservation.user_id == user_id:
            return reservation
        return None

    async def find_by_user_id(self, user_id: int) -> List[Reservation]:
        return [r for r in self._all() if r.user_id == user_id]

    async def find_by_hotel_id(
        self,
        hotel_id: int,
        status: Optional[ReservationStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Reservation]:
        has_dates = start is not None and end is not None
        return [
            r for r in self._all()
            if r.hotel_id == hotel_id
            and (status is None or r.status == status)
            and (not has_dates or r.stay_window().overlaps(start, end))
        ]

    def _all(self) -> List[Reservation]:
        return [self._store.reservations[k] for k in sorted(self._store.reservations)]


class InMemoryStatusHistoryRepository(StatusHistoryRepository):
    """In-memory implementation of StatusHistoryRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, entry: ReservationStatusHistory) -> ReservationStatusHistory:
        if entry.history_id is None:
            entry = entry.model_copy(update={"history_id": self._store.next_id("status_history")})
        self._store.status_history[entry.history_id] = entry
        return entry

    async def find_by_reservation_id(self, reservation_id: int) -> List[ReservationStatusHistory]:
        return [
            self._store.status_history[k] for k in sorted(self._store.status_history)
            if self._store.status_history[k].reservation_id == reservation_id
        ]


class InMemoryInventoryRepository(InventoryRepository):
    """In-memory implementation of InventoryRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def find(self, hotel_id: int, room_type_id: int, stay_date: date) -> Optional[RoomTypeInventory]:
        return self._store.inventory.get((hotel_id, room_type_id, stay_date))

    async def save(self, inventory: RoomTypeInventory) -> RoomTypeInventory:
        key = (inventory.hotel_id, inventory.room_type_id, inventory.stay_date)
        self._store.inventory[key] = inventory
        return inventory

    async def find_occupancy(self, hotel_id: int, start: date, end: date) -> Dict[int, Dict[date, int]]:
        occupancy: Dict[int, Dict[date, int]] = {}
        for (h_id, rt_id, d), inventory in self._store.inventory.items():
            if h_id == hotel_id and start <= d < end:
                occupancy.setdefault(rt_id, {})[d] = inventory.occupied
        return occupancy


class InMemoryDailyPriceRepository(DailyPriceRepository):
    """In-memory implementation of DailyPriceRepository"""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def save(self, price: RoomTypeDailyPrice) -> RoomTypeDailyPrice:
        self._store.daily_prices[(price.hotel_id, price.room_type_id, price.stay_date)] = price
        return price

    async def find_by_range(
        self, hotel_id: int, room_type_id: int, start: date, end: date
    ) -> Dict[date, RoomTypeDailyPrice]:
        return {
            d: price for (h_id, rt_id, d), price in self._store.daily_prices.items()
            if h_id == hotel_id and rt_id == room_type_id and start <= d < end
        }
