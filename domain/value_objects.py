"""Domain Value Objects"""
from pydantic import BaseModel, field_validator, model_validator
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, List, FrozenSet

from domain.enums import ReservationStatus
from domain.exceptions import InvalidDateRangeError


class DateRange(BaseModel):
    """Value Object for a half-open stay window [check_in, check_out)"""
    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out must be after check-in')
        return v

    @classmethod
    def of(cls, check_in: Optional[date], check_out: Optional[date]) -> "DateRange":
        """Build a stay window, raising the domain error instead of a pydantic one"""
        if check_in is None or check_out is None:
            raise InvalidDateRangeError("Check-in and check-out dates are required.")
        if check_out <= check_in:
            raise InvalidDateRangeError("Check out date must be later than check in date.")
        return cls(check_in=check_in, check_out=check_out)

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def stay_dates(self) -> List[date]:
        """Every night covered by the window, in order"""
        return [self.check_in + timedelta(days=i) for i in range(self.nights())]

    def overlaps(self, start: date, end: date) -> bool:
        return self.check_in < end and start < self.check_out

    class Config:
        frozen = True


# Fields of ReservationChange that accept an explicit None when present.
# new_room_id=None unassigns the concrete room, new_notes=None clears notes.
NULLABLE_CHANGE_FIELDS: FrozenSet[str] = frozenset({"new_room_id", "new_notes"})


class ReservationChange(BaseModel):
    """Proposed change to a reservation.

    Only the fields the actor wants to alter are *present*; presence is
    tracked by ``model_fields_set``, so a field explicitly set to ``None`` is
    different from a field never supplied. Absent fields leave the
    reservation untouched.
    """
    new_room_type_id: Optional[int] = None
    new_room_id: Optional[int] = None
    new_check_in: Optional[date] = None
    new_check_out: Optional[date] = None
    new_num_guests: Optional[int] = None
    new_currency: Optional[str] = None
    new_price_total: Optional[Decimal] = None
    new_notes: Optional[str] = None
    new_status: Optional[ReservationStatus] = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def reject_null_for_required_fields(self):
        for name in self.model_fields_set - NULLABLE_CHANGE_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def is_present(self, name: str) -> bool:
        return name in self.model_fields_set

    def is_empty(self) -> bool:
        return not self.model_fields_set

    def is_changing_dates(self, old_in: date, old_out: date) -> bool:
        return (
            (self.is_present("new_check_in") and self.new_check_in != old_in)
            or (self.is_present("new_check_out") and self.new_check_out != old_out)
        )

    def is_changing_room_type(self, old_type_id: int) -> bool:
        return self.is_present("new_room_type_id") and self.new_room_type_id != old_type_id

    def effective_check_in(self, old_in: date) -> date:
        return self.new_check_in if self.is_present("new_check_in") else old_in

    def effective_check_out(self, old_out: date) -> date:
        return self.new_check_out if self.is_present("new_check_out") else old_out

    def effective_room_type_id(self, old_type_id: int) -> int:
        return self.new_room_type_id if self.is_present("new_room_type_id") else old_type_id
