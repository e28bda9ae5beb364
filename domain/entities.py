"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from datetime import datetime, date, timezone
from typing import Optional
from decimal import Decimal

from domain.enums import ReservationStatus, UpgradeStatus, RoomStatus
from domain.exceptions import InvalidGuestCountError, InvalidPriceError
from domain.value_objects import DateRange, ReservationChange


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Hotel(BaseModel):
    """Hotel Entity"""
    hotel_id: Optional[int] = None
    name: str
    brand: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    country: str
    postal_code: Optional[str] = None
    star_rating: Optional[Decimal] = None

    class Config:
        from_attributes = True

    def full_address(self) -> str:
        country_and_postal = " ".join(p for p in (self.country, self.postal_code) if p)
        parts = (self.address_line1, self.address_line2, self.city, self.state, country_and_postal)
        return ", ".join(p for p in parts if p)


class RoomType(BaseModel):
    """Room Type Entity - immutable for the duration of an availability query"""
    room_type_id: Optional[int] = None
    hotel_id: int
    code: str
    name: str
    description: Optional[str] = None
    bed_type: Optional[str] = None
    capacity: int = Field(ge=1)
    total_rooms: int = Field(ge=0)
    base_rate: Optional[Decimal] = None
    ranking: Optional[int] = None

    class Config:
        from_attributes = True
        frozen = True


class Room(BaseModel):
    """Concrete room of a hotel"""
    room_id: Optional[int] = None
    hotel_id: int
    room_type_id: int
    room_number: str
    floor: Optional[int] = None
    status: RoomStatus = RoomStatus.AVAILABLE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity.

    Snapshots are immutable: every mutation method returns a new instance
    and leaves the receiver untouched.
    """

    # Identity
    reservation_id: Optional[int] = None

    # References to other contexts
    user_id: Optional[int] = None
    hotel_id: int
    room_type_id: int
    room_id: Optional[int] = None

    # Stay
    check_in: date
    check_out: date
    nights: int = Field(ge=1)
    num_guests: int = Field(ge=1)

    # Pricing
    currency: str = "USD"
    price_total: Decimal = Decimal("0")
    notes: Optional[str] = None

    # Enums/Status
    status: ReservationStatus = ReservationStatus.PENDING
    upgrade_status: UpgradeStatus = UpgradeStatus.NOT_ELIGIBLE

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)
    canceled_at: Optional[datetime] = None
    upgraded_at: Optional[datetime] = None
    version: int = 1

    class Config:
        from_attributes = True
        frozen = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        user_id: Optional[int],
        hotel_id: int,
        room_type_id: int,
        check_in: date,
        check_out: date,
        num_guests: int,
        currency: str,
        price_total: Decimal,
        notes: Optional[str] = None,
    ) -> "Reservation":
        """Create new PENDING reservation with validation"""
        window = DateRange.of(check_in, check_out)
        Reservation._validate_num_guests(num_guests)
        Reservation._validate_price(price_total)

        return Reservation(
            user_id=user_id,
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=window.check_in,
            check_out=window.check_out,
            nights=window.nights(),
            num_guests=num_guests,
            currency=currency,
            price_total=price_total,
            notes=notes,
            status=ReservationStatus.PENDING,
        )

    # ==================== MODIFICATION METHODS ====================
    def apply_change(self, change: ReservationChange) -> "Reservation":
        """Overlay the present fields of ``change`` onto a copy of this reservation.

        Status is not touched here; transitions go through the status machine.
        """
        update = {}
        if change.is_changing_dates(self.check_in, self.check_out):
            window = DateRange.of(
                change.effective_check_in(self.check_in),
                change.effective_check_out(self.check_out),
            )
            update.update(check_in=window.check_in, check_out=window.check_out, nights=window.nights())
        if change.is_present("new_room_type_id"):
            update["room_type_id"] = change.new_room_type_id
        if change.is_present("new_room_id"):
            update["room_id"] = change.new_room_id
        if change.is_present("new_num_guests"):
            Reservation._validate_num_guests(change.new_num_guests)
            update["num_guests"] = change.new_num_guests
        if change.is_present("new_currency"):
            update["currency"] = change.new_currency
        if change.is_present("new_price_total"):
            Reservation._validate_price(change.new_price_total)
            update["price_total"] = change.new_price_total
        if change.is_present("new_notes"):
            update["notes"] = change.new_notes

        if not update:
            return self
        return self._touch(update)

    def with_price(self, price_total: Decimal) -> "Reservation":
        Reservation._validate_price(price_total)
        return self._touch({"price_total": price_total})

    # ==================== STATE TRANSITION METHODS ====================
    def with_status(self, status: ReservationStatus) -> "Reservation":
        """Copy with a new status; legality is checked by the caller"""
        update = {"status": status}
        if status == ReservationStatus.CANCELED:
            update["canceled_at"] = utcnow()
        return self._touch(update)

    def with_upgrade_status(self, upgrade_status: UpgradeStatus) -> "Reservation":
        update = {"upgrade_status": upgrade_status}
        if upgrade_status == UpgradeStatus.APPLIED:
            update["upgraded_at"] = utcnow()
        return self._touch(update)

    # ==================== QUERY METHODS ====================
    def stay_window(self) -> DateRange:
        return DateRange(check_in=self.check_in, check_out=self.check_out)

    def holds_inventory(self) -> bool:
        """Canceled reservations no longer count towards nightly occupancy"""
        return self.status != ReservationStatus.CANCELED

    # ==================== PRIVATE METHODS ====================
    def _touch(self, update: dict) -> "Reservation":
        update.update(modified_at=utcnow(), version=self.version + 1)
        return self.model_copy(update=update)

    @staticmethod
    def _validate_num_guests(num_guests: Optional[int]) -> None:
        if num_guests is None or num_guests <= 0:
            raise InvalidGuestCountError("numGuests must be positive.")

    @staticmethod
    def _validate_price(price_total: Optional[Decimal]) -> None:
        if price_total is not None and price_total < 0:
            raise InvalidPriceError("priceTotal must be non-negative.")


class ReservationStatusHistory(BaseModel):
    """Audit row written on every reservation status change"""
    history_id: Optional[int] = None
    reservation_id: int
    from_status: ReservationStatus
    to_status: ReservationStatus
    changed_at: datetime = Field(default_factory=utcnow)
    changed_by_user_id: Optional[int] = None
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class RoomTypeInventory(BaseModel):
    """Nightly inventory row of one room type"""

    # Composite Identity
    hotel_id: int
    room_type_id: int
    stay_date: date

    # Capacity Tracking
    total: int = Field(ge=0)
    reserved: int = Field(ge=0, default=0)
    blocked: int = Field(ge=0, default=0)

    class Config:
        from_attributes = True

    @property
    def occupied(self) -> int:
        return self.reserved + self.blocked

    @property
    def available(self) -> int:
        return self.total - self.reserved - self.blocked


class RoomTypeDailyPrice(BaseModel):
    """Per-night price override for a room type"""
    hotel_id: int
    room_type_id: int
    stay_date: date
    price: Decimal = Field(ge=0)
    computed_from: str = "MANAGER"

    class Config:
        from_attributes = True
