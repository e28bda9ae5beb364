"""Wires repositories and application services for one in-memory store"""
from application.room_services import (
    HotelService, ManagerInventoryService, ManagerRoomService, RoomTypeAvailabilityService,
)
from application.services import (
    EntityGuards, ManagerReservationService, ReservationInventoryService,
    ReservationOrchestrator, ReservationPricingService, ReservationStatusService,
    UserReservationService,
)
from infrastructure.repositories.in_memory_repositories import (
    InMemoryDailyPriceRepository, InMemoryHotelRepository, InMemoryInventoryRepository,
    InMemoryReservationRepository, InMemoryRoomRepository, InMemoryRoomTypeRepository,
    InMemoryStatusHistoryRepository, InMemoryStore, InMemoryUnitOfWork,
)
from infrastructure.seed import seed_demo_data


class ServiceContainer:
    """Repositories and services sharing one store and one unit of work"""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.uow = InMemoryUnitOfWork(store)

        self.hotel_repo = InMemoryHotelRepository(store)
        self.room_type_repo = InMemoryRoomTypeRepository(store)
        self.room_repo = InMemoryRoomRepository(store)
        self.reservation_repo = InMemoryReservationRepository(store)
        self.history_repo = InMemoryStatusHistoryRepository(store)
        self.inventory_repo = InMemoryInventoryRepository(store)
        self.daily_price_repo = InMemoryDailyPriceRepository(store)

        self.guards = EntityGuards(self.hotel_repo, self.room_type_repo, self.room_repo, self.reservation_repo)
        self.inventory_service = ReservationInventoryService(self.inventory_repo, self.guards)
        self.pricing_service = ReservationPricingService(self.daily_price_repo, self.guards)
        self.status_service = ReservationStatusService(self.reservation_repo, self.history_repo)
        self.orchestrator = ReservationOrchestrator(
            self.guards, self.reservation_repo, self.inventory_service,
            self.pricing_service, self.status_service,
        )

        self.user_reservations = UserReservationService(
            self.reservation_repo, self.hotel_repo, self.room_type_repo, self.orchestrator, self.uow,
        )
        self.manager_reservations = ManagerReservationService(
            self.guards, self.reservation_repo, self.history_repo,
            self.status_service, self.orchestrator, self.uow,
        )
        self.hotels = HotelService(self.hotel_repo, self.room_type_repo)
        self.availability = RoomTypeAvailabilityService(self.guards, self.room_type_repo, self.inventory_repo)
        self.rooms = ManagerRoomService(self.guards, self.room_repo)
        self.inventory = ManagerInventoryService(
            self.guards, self.daily_price_repo, self.inventory_service, self.uow,
        )


def build_container(seed: bool = True) -> ServiceContainer:
    store = InMemoryStore()
    if seed:
        seed_demo_data(store)
    return ServiceContainer(store)
