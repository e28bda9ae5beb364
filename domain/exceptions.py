"""Domain Exceptions

Every error the reservation core raises for a caller-fixable request derives
from ``ReservationError`` (a ``ValueError``), so the API layer can translate
the whole family into a 400 response. Missing entities raise ``NotFoundError``.
"""
from datetime import date
from typing import Optional

from domain.enums import ReservationStatus


class ReservationError(ValueError):
    """Base class for rejected reservation mutations and queries"""


class ForbiddenFieldError(ReservationError):
    """The actor's role may not touch a field present in the change"""

    _MESSAGES = {
        "room_type": "Not allowed to change room type.",
        "room": "Not allowed to assign a concrete room.",
    }

    def __init__(self, field: str, target: Optional[ReservationStatus] = None):
        self.field = field
        self.target = target
        if field == "status":
            message = f"Not allowed to change status to {target.value if target else None}"
        else:
            message = self._MESSAGES.get(field, f"Not allowed to change {field}.")
        super().__init__(message)


class InvalidTransitionError(ReservationError):
    """Requested status is not reachable from the current one"""

    def __init__(self, current: ReservationStatus, target: ReservationStatus):
        self.current = current
        self.target = target
        super().__init__(f"Illegal status transition: {current.value} -> {target.value}")


class InvalidDateRangeError(ReservationError):
    pass


class InvalidGuestCountError(ReservationError):
    pass


class InvalidPriceError(ReservationError):
    pass


class NoAvailabilityError(ReservationError):
    def __init__(self, stay_date: date):
        self.stay_date = stay_date
        super().__init__(f"No availability on {stay_date.isoformat()} for the target room type.")


class OwnershipError(ReservationError):
    """Entity exists but does not belong to the hotel or room type in scope"""


class DuplicateRoomNumberError(ReservationError):
    pass


class NotFoundError(LookupError):
    """Referenced hotel, room type, room or reservation does not exist"""
