"""Application Services - Reservation use cases"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, NamedTuple, Optional

from pydantic import BaseModel

from application.adapters import ReservationChangeAdapter
from domain.entities import Hotel, Reservation, ReservationStatusHistory, Room, RoomType, RoomTypeInventory
from domain.enums import ReservationStatus, UpgradeStatus
from domain.exceptions import (
    InvalidGuestCountError, InvalidPriceError, NoAvailabilityError, NotFoundError,
    OwnershipError, ReservationError,
)
from domain.policies import GUEST_POLICY, MANAGER_POLICY, ReservationChangePolicy
from domain.repositories import (
    DailyPriceRepository, HotelRepository, InventoryRepository, ReservationRepository,
    RoomRepository, RoomTypeRepository, StatusHistoryRepository, UnitOfWork,
)
from domain.status_machine import ReservationStatusMachine, UpgradeStatusMachine
from domain.value_objects import DateRange, ReservationChange

logger = logging.getLogger(__name__)


class EntityGuards:
    """Existence and ownership checks shared by the services"""

    def __init__(self,
                 hotel_repo: HotelRepository,
                 room_type_repo: RoomTypeRepository,
                 room_repo: RoomRepository,
                 reservation_repo: ReservationRepository):
        self.hotel_repo = hotel_repo
        self.room_type_repo = room_type_repo
        self.room_repo = room_repo
        self.reservation_repo = reservation_repo

    async def ensure_hotel_exists(self, hotel_id: int) -> Hotel:
        hotel = await self.hotel_repo.find_by_id(hotel_id)
        if hotel is None:
            raise NotFoundError(f"Hotel does not exist: {hotel_id}")
        return hotel

    async def get_room_in_hotel_or_throw(self, hotel_id: int, room_id: int) -> Room:
        await self.ensure_hotel_exists(hotel_id)
        room = await self.room_repo.find_by_id(room_id)
        if room is None:
            raise NotFoundError(f"Room Id does not exist: {room_id}")
        if room.hotel_id != hotel_id:
            raise OwnershipError("Room does not belong to this hotel.")
        return room

    async def get_reservation_in_hotel_or_throw(self, hotel_id: int, reservation_id: int) -> Reservation:
        await self.ensure_hotel_exists(hotel_id)
        reservation = await self.reservation_repo.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation does not exist: {reservation_id}")
        if reservation.hotel_id != hotel_id:
            raise OwnershipError("This reservation does not belong to this hotel.")
        return reservation

    async def get_room_type_in_hotel_or_throw(self, hotel_id: int, room_type_id: int) -> RoomType:
        await self.ensure_hotel_exists(hotel_id)
        room_type = await self.room_type_repo.find_by_id(room_type_id)
        if room_type is None:
            raise NotFoundError(f"Room type does not exist: {room_type_id}")
        if room_type.hotel_id != hotel_id:
            raise OwnershipError(f"Room type does not belong to hotel {hotel_id}")
        return room_type

    async def ensure_room_belongs_to_hotel_and_type(self, hotel_id: int, room_id: int,
                                                    expected_room_type_id: Optional[int]) -> Room:
        room = await self.get_room_in_hotel_or_throw(hotel_id, room_id)
        if expected_room_type_id is not None and room.room_type_id != expected_room_type_id:
            raise OwnershipError("Room's type does not match expected roomTypeId.")
        return room


class StayHold(NamedTuple):
    """One room of a type held for every night of a window"""
    room_type_id: int
    window: DateRange

    @classmethod
    def of(cls, reservation: Reservation) -> "StayHold":
        return cls(reservation.room_type_id, reservation.stay_window())


class ReservationInventoryService:
    """Keeps nightly inventory rows in step with reservation stays"""

    def __init__(self, inventory_repo: InventoryRepository, guards: EntityGuards):
        self.inventory_repo = inventory_repo
        self.guards = guards

    async def apply_range_change(self, hotel_id: int,
                                 old: Optional[StayHold],
                                 new: Optional[StayHold]) -> None:
        """Move one held unit from ``old`` to ``new``.

        Only nights not already held for the same room type count as net
        additions, and every one of them needs a free unit before anything
        is written.
        """
        if old is None and new is None:
            return
        for hold in (old, new):
            if hold is not None:
                await self.guards.get_room_type_in_hotel_or_throw(hotel_id, hold.room_type_id)

        old_dates = set(old.window.stay_dates()) if old else set()
        new_dates = set(new.window.stay_dates()) if new else set()
        same_type = old is not None and new is not None and old.room_type_id == new.room_type_id
        kept = old_dates & new_dates if same_type else set()

        if new is not None:
            for night in sorted(new_dates - kept):
                inventory = await self._get_or_init(hotel_id, new.room_type_id, night)
                if inventory.available <= 0:
                    logger.warning("No availability: hotel=%s room_type=%s night=%s",
                                   hotel_id, new.room_type_id, night)
                    raise NoAvailabilityError(night)

        if old is not None:
            for night in sorted(old_dates - kept):
                inventory = await self.inventory_repo.find(hotel_id, old.room_type_id, night)
                if inventory is not None:
                    await self.inventory_repo.save(
                        inventory.model_copy(update={"reserved": max(0, inventory.reserved - 1)})
                    )

        if new is not None:
            for night in sorted(new_dates - kept):
                inventory = await self._get_or_init(hotel_id, new.room_type_id, night)
                await self.inventory_repo.save(
                    inventory.model_copy(update={"reserved": inventory.reserved + 1})
                )

    async def block_rooms(self, hotel_id: int, room_type_id: int, window: DateRange, count: int) -> None:
        """Take ``count`` units out of service for every night of the window"""
        await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        rows = [await self._get_or_init(hotel_id, room_type_id, d) for d in window.stay_dates()]
        for row in rows:
            if row.available < count:
                raise NoAvailabilityError(row.stay_date)
        for row in rows:
            await self.inventory_repo.save(row.model_copy(update={"blocked": row.blocked + count}))

    async def unblock_rooms(self, hotel_id: int, room_type_id: int, window: DateRange, count: int) -> None:
        await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        rows = [await self._get_or_init(hotel_id, room_type_id, d) for d in window.stay_dates()]
        for row in rows:
            if row.blocked < count:
                raise ReservationError(
                    f"Cannot unblock more than blocked on {row.stay_date.isoformat()}"
                )
        for row in rows:
            await self.inventory_repo.save(row.model_copy(update={"blocked": row.blocked - count}))

    async def _get_or_init(self, hotel_id: int, room_type_id: int, stay_date: date) -> RoomTypeInventory:
        inventory = await self.inventory_repo.find(hotel_id, room_type_id, stay_date)
        if inventory is not None:
            return inventory
        room_type = await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        return await self.inventory_repo.save(RoomTypeInventory(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            stay_date=stay_date,
            total=room_type.total_rooms,
        ))


class ReservationPricingService:
    """Nightly price lookup: daily override if set, base rate otherwise"""

    def __init__(self, daily_price_repo: DailyPriceRepository, guards: EntityGuards):
        self.daily_price_repo = daily_price_repo
        self.guards = guards

    async def quote(self, hotel_id: int, room_type_id: int, window: DateRange) -> Decimal:
        room_type = await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        overrides = await self.daily_price_repo.find_by_range(
            hotel_id, room_type_id, window.check_in, window.check_out
        )
        total = Decimal("0")
        for night in window.stay_dates():
            if night in overrides:
                total += overrides[night].price
            elif room_type.base_rate is not None:
                total += room_type.base_rate
            else:
                raise InvalidPriceError(f"Base rate is not configured for room type {room_type_id}")
        return total


class ReservationStatusService:
    """Applies status transitions and writes the status history"""

    def __init__(self,
                 reservation_repo: ReservationRepository,
                 history_repo: StatusHistoryRepository,
                 status_machine: Optional[ReservationStatusMachine] = None):
        self.reservation_repo = reservation_repo
        self.history_repo = history_repo
        self.status_machine = status_machine or ReservationStatusMachine()

    async def change_status(self,
                            reservation: Reservation,
                            target: ReservationStatus,
                            reason: Optional[str] = None,
                            changed_by_user_id: Optional[int] = None) -> Reservation:
        current = reservation.status
        self.status_machine.ensure_can_transit(current, target)

        saved = await self.reservation_repo.save(reservation.with_status(target))
        await self.history_repo.save(ReservationStatusHistory(
            reservation_id=saved.reservation_id,
            from_status=current,
            to_status=target,
            changed_by_user_id=changed_by_user_id,
            reason=reason,
        ))
        logger.info("Reservation %s status %s -> %s", saved.reservation_id, current.value, target.value)
        return saved


class ReservationOrchestrator:
    """Validates and applies reservation creation, changes and cancellation.

    Callers own the transaction: every method here expects to run inside
    ``UnitOfWork.transaction()`` against the snapshot it was handed.
    """

    def __init__(self,
                 guards: EntityGuards,
                 reservation_repo: ReservationRepository,
                 inventory_service: ReservationInventoryService,
                 pricing_service: ReservationPricingService,
                 status_service: ReservationStatusService):
        self.guards = guards
        self.reservation_repo = reservation_repo
        self.inventory_service = inventory_service
        self.pricing_service = pricing_service
        self.status_service = status_service

    @property
    def status_machine(self) -> ReservationStatusMachine:
        return self.status_service.status_machine

    async def create_reservation(self,
                                 user_id: Optional[int],
                                 hotel_id: int,
                                 room_type_id: int,
                                 check_in: date,
                                 check_out: date,
                                 num_guests: int,
                                 currency: str,
                                 notes: Optional[str] = None) -> Reservation:
        room_type = await self.guards.get_room_type_in_hotel_or_throw(hotel_id, room_type_id)
        window = DateRange.of(check_in, check_out)
        reservation = Reservation.create(
            user_id=user_id,
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=window.check_in,
            check_out=window.check_out,
            num_guests=num_guests,
            currency=currency,
            price_total=Decimal("0"),
            notes=notes,
        )
        self._ensure_capacity(reservation.num_guests, room_type)

        price = await self.pricing_service.quote(hotel_id, room_type_id, window)
        await self.inventory_service.apply_range_change(hotel_id, None, StayHold(room_type_id, window))

        saved = await self.reservation_repo.save(reservation.model_copy(update={"price_total": price}))
        logger.info("Reservation %s created: hotel=%s room_type=%s %s..%s",
                    saved.reservation_id, hotel_id, room_type_id, check_in, check_out)
        return saved

    async def modify_reservation(self,
                                 hotel_id: int,
                                 reservation: Reservation,
                                 change: ReservationChange,
                                 policy: ReservationChangePolicy,
                                 changed_by_user_id: Optional[int] = None) -> Reservation:
        # 1) Boundary and policy gate
        if reservation.hotel_id != hotel_id:
            raise OwnershipError("This reservation does not belong to the hotel.")
        policy.verify(change)
        if change.is_empty():
            return reservation

        # 2) Existence checks
        old_type_id = reservation.room_type_id
        effective_type_id = change.effective_room_type_id(old_type_id)
        room_type = await self.guards.get_room_type_in_hotel_or_throw(hotel_id, effective_type_id)
        type_changed = change.is_changing_room_type(old_type_id)
        dates_changed = change.is_changing_dates(reservation.check_in, reservation.check_out)

        if change.is_present("new_room_id") and change.new_room_id is not None:
            await self.guards.ensure_room_belongs_to_hotel_and_type(
                hotel_id, change.new_room_id, effective_type_id)
        elif type_changed and not change.is_present("new_room_id") and reservation.room_id is not None:
            await self.guards.ensure_room_belongs_to_hotel_and_type(
                hotel_id, reservation.room_id, effective_type_id)

        if (dates_changed or type_changed) and self.status_machine.is_terminal(reservation.status):
            raise ReservationError(
                f"Cannot change the stay of a reservation in status {reservation.status.value}"
            )

        # 3) Merge and validate the resulting snapshot before anything is written
        updated = reservation.apply_change(change)
        if change.is_present("new_num_guests") or type_changed:
            self._ensure_capacity(updated.num_guests, room_type)
        if change.is_present("new_status"):
            self.status_machine.ensure_can_transit(reservation.status, change.new_status)

        # 4) Inventory net switch, then reprice unless the price was set explicitly
        if dates_changed or type_changed:
            await self.inventory_service.apply_range_change(
                hotel_id, StayHold.of(reservation), StayHold.of(updated))
            if not change.is_present("new_price_total"):
                price = await self.pricing_service.quote(hotel_id, updated.room_type_id, updated.stay_window())
                updated = updated.with_price(price)

        # 5) Status transition, if requested and allowed by the policy
        if change.is_present("new_status"):
            if change.new_status == ReservationStatus.CANCELED:
                await self.inventory_service.apply_range_change(hotel_id, StayHold.of(updated), None)
            saved = await self.status_service.change_status(
                updated, change.new_status, changed_by_user_id=changed_by_user_id)
        else:
            saved = await self.reservation_repo.save(updated)

        logger.info("Reservation %s modified by %s: fields=%s",
                    saved.reservation_id, policy.role.value, sorted(change.model_fields_set))
        return saved

    async def cancel(self,
                     reservation: Reservation,
                     reason: Optional[str] = None,
                     changed_by_user_id: Optional[int] = None) -> Reservation:
        if reservation.status == ReservationStatus.CANCELED:
            return reservation
        if reservation.status == ReservationStatus.CHECKED_OUT:
            raise ReservationError("Reservation already checked out and cannot be cancelled now.")
        self.status_machine.ensure_can_transit(reservation.status, ReservationStatus.CANCELED)

        await self.inventory_service.apply_range_change(reservation.hotel_id, StayHold.of(reservation), None)
        return await self.status_service.change_status(
            reservation, ReservationStatus.CANCELED, reason, changed_by_user_id)

    @staticmethod
    def _ensure_capacity(num_guests: int, room_type: RoomType) -> None:
        if num_guests > room_type.capacity:
            raise InvalidGuestCountError(
                f"numGuests {num_guests} exceeds capacity {room_type.capacity} of room type {room_type.code}"
            )


class ReservationView(BaseModel):
    """Reservation enriched with display names for listings"""
    reservation: Reservation
    hotel_name: Optional[str] = None
    room_type_name: Optional[str] = None


class UserReservationService:
    """Reservation use cases of a signed-in guest"""

    def __init__(self,
                 reservation_repo: ReservationRepository,
                 hotel_repo: HotelRepository,
                 room_type_repo: RoomTypeRepository,
                 orchestrator: ReservationOrchestrator,
                 uow: UnitOfWork):
        self.reservation_repo = reservation_repo
        self.hotel_repo = hotel_repo
        self.room_type_repo = room_type_repo
        self.orchestrator = orchestrator
        self.uow = uow

    async def list_my_reservations(self, user_id: int) -> List[ReservationView]:
        reservations = await self.reservation_repo.find_by_user_id(user_id)
        hotel_names = await self.hotel_repo.find_names(sorted({r.hotel_id for r in reservations}))
        room_type_names = {}
        for room_type_id in {r.room_type_id for r in reservations}:
            room_type = await self.room_type_repo.find_by_id(room_type_id)
            if room_type is not None:
                room_type_names[room_type_id] = room_type.name
        return [
            ReservationView(
                reservation=r,
                hotel_name=hotel_names.get(r.hotel_id),
                room_type_name=room_type_names.get(r.room_type_id),
            )
            for r in reservations
        ]

    async def get_my_reservation(self, user_id: int, reservation_id: int) -> Reservation:
        reservation = await self.reservation_repo.find_by_id_and_user_id(reservation_id, user_id)
        if reservation is None:
            raise NotFoundError(f"Reservation not found: {reservation_id}")
        return reservation

    async def create_reservation(self,
                                 user_id: int,
                                 hotel_id: int,
                                 room_type_id: int,
                                 check_in: date,
                                 check_out: date,
                                 num_guests: int,
                                 currency: str,
                                 notes: Optional[str] = None) -> Reservation:
        async with self.uow.transaction():
            return await self.orchestrator.create_reservation(
                user_id, hotel_id, room_type_id, check_in, check_out, num_guests, currency, notes
            )

    async def patch_my_reservation(self, user_id: int, reservation_id: int, request: BaseModel) -> Reservation:
        change = ReservationChangeAdapter.from_user_request(request)
        async with self.uow.transaction():
            reservation = await self.get_my_reservation(user_id, reservation_id)
            return await self.orchestrator.modify_reservation(
                reservation.hotel_id, reservation, change, GUEST_POLICY, changed_by_user_id=user_id
            )

    async def cancel_my_reservation(self, user_id: int, reservation_id: int) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.get_my_reservation(user_id, reservation_id)
            return await self.orchestrator.cancel(reservation, "user-cancel", user_id)


class ManagerReservationService:
    """Reservation use cases of a hotel manager"""

    UPGRADABLE = frozenset({UpgradeStatus.ELIGIBLE, UpgradeStatus.QUEUED, UpgradeStatus.APPLIED})

    def __init__(self,
                 guards: EntityGuards,
                 reservation_repo: ReservationRepository,
                 history_repo: StatusHistoryRepository,
                 status_service: ReservationStatusService,
                 orchestrator: ReservationOrchestrator,
                 uow: UnitOfWork,
                 upgrade_machine: Optional[UpgradeStatusMachine] = None):
        self.guards = guards
        self.reservation_repo = reservation_repo
        self.history_repo = history_repo
        self.status_service = status_service
        self.orchestrator = orchestrator
        self.uow = uow
        self.upgrade_machine = upgrade_machine or UpgradeStatusMachine()

    async def list_reservations(self,
                                hotel_id: int,
                                status: Optional[ReservationStatus] = None,
                                start: Optional[date] = None,
                                end: Optional[date] = None) -> List[Reservation]:
        await self.guards.ensure_hotel_exists(hotel_id)
        return await self.reservation_repo.find_by_hotel_id(hotel_id, status, start, end)

    async def get_reservation(self, hotel_id: int, reservation_id: int) -> Reservation:
        return await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)

    async def get_status_history(self, hotel_id: int, reservation_id: int) -> List[ReservationStatusHistory]:
        await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
        return await self.history_repo.find_by_reservation_id(reservation_id)

    async def patch_reservation(self, hotel_id: int, reservation_id: int, request: BaseModel,
                                changed_by_user_id: Optional[int] = None) -> Reservation:
        change = ReservationChangeAdapter.from_manager_request(request)
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            return await self.orchestrator.modify_reservation(
                hotel_id, reservation, change, MANAGER_POLICY, changed_by_user_id
            )

    async def apply_upgrade(self, hotel_id: int, reservation_id: int, new_room_type_id: int) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            await self.guards.get_room_type_in_hotel_or_throw(hotel_id, new_room_type_id)
            if reservation.upgrade_status not in self.UPGRADABLE:
                raise ReservationError(
                    "You cannot upgrade this reservation because the status is "
                    f"{reservation.upgrade_status.value}"
                )
            change = ReservationChange(new_room_type_id=new_room_type_id)
            updated = await self.orchestrator.modify_reservation(hotel_id, reservation, change, MANAGER_POLICY)
            saved = await self.reservation_repo.save(updated.with_upgrade_status(UpgradeStatus.APPLIED))
            logger.info("Reservation %s upgraded to room type %s", reservation_id, new_room_type_id)
            return saved

    async def change_upgrade_status(self, hotel_id: int, reservation_id: int,
                                    target: UpgradeStatus) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            self.upgrade_machine.ensure_can_transit(reservation.upgrade_status, target)
            return await self.reservation_repo.save(reservation.with_upgrade_status(target))

    async def check_in(self, hotel_id: int, reservation_id: int) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            if reservation.status == ReservationStatus.CANCELED:
                raise ReservationError("Reservation has already been cancelled.")
            if reservation.status == ReservationStatus.CHECKED_IN:
                return reservation
            return await self.status_service.change_status(reservation, ReservationStatus.CHECKED_IN)

    async def check_out(self, hotel_id: int, reservation_id: int) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            if reservation.status == ReservationStatus.CANCELED:
                raise ReservationError("Reservation has already been cancelled.")
            if reservation.status == ReservationStatus.CHECKED_OUT:
                return reservation
            return await self.status_service.change_status(reservation, ReservationStatus.CHECKED_OUT)

    async def mark_no_show(self, hotel_id: int, reservation_id: int) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            return await self.status_service.change_status(reservation, ReservationStatus.NO_SHOW)

    async def sweep_no_shows(self, hotel_id: int, as_of: date) -> List[Reservation]:
        """Mark every CONFIRMED reservation whose check-in is before ``as_of`` as NO_SHOW"""
        await self.guards.ensure_hotel_exists(hotel_id)
        async with self.uow.transaction():
            confirmed = await self.reservation_repo.find_by_hotel_id(hotel_id, ReservationStatus.CONFIRMED)
            marked = []
            for reservation in confirmed:
                if reservation.check_in < as_of:
                    marked.append(await self.status_service.change_status(
                        reservation, ReservationStatus.NO_SHOW, reason="no-show-sweep"))
            return marked

    async def cancel(self, hotel_id: int, reservation_id: int, reason: Optional[str] = None,
                     changed_by_user_id: Optional[int] = None) -> Reservation:
        async with self.uow.transaction():
            reservation = await self.guards.get_reservation_in_hotel_or_throw(hotel_id, reservation_id)
            return await self.orchestrator.cancel(reservation, reason, changed_by_user_id)
