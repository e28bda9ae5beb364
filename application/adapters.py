"""Request DTO -> ReservationChange adapters.

Each adapter copies only the request fields its actor may send, and only
those the client actually supplied (pydantic ``model_fields_set``), so
absent fields stay absent on the resulting change.
"""
from typing import Iterable

from pydantic import BaseModel

from domain.value_objects import ReservationChange

_CHANGE_FIELDS = {
    "room_type_id": "new_room_type_id",
    "room_id": "new_room_id",
    "check_in": "new_check_in",
    "check_out": "new_check_out",
    "num_guests": "new_num_guests",
    "currency": "new_currency",
    "price_total": "new_price_total",
    "notes": "new_notes",
    "status": "new_status",
}

MANAGER_FIELDS = tuple(_CHANGE_FIELDS)
GUEST_FIELDS = ("check_in", "check_out", "num_guests")


def _copy_present(request: BaseModel, allowed: Iterable[str]) -> ReservationChange:
    present = request.model_fields_set
    return ReservationChange(**{
        _CHANGE_FIELDS[name]: getattr(request, name)
        for name in allowed
        if name in present
    })


class ReservationChangeAdapter:
    """Builds ReservationChange values from inbound requests"""

    @staticmethod
    def from_manager_request(request: BaseModel) -> ReservationChange:
        return _copy_present(request, MANAGER_FIELDS)

    @staticmethod
    def from_user_request(request: BaseModel) -> ReservationChange:
        """Guests may only move dates and change the guest count; anything else is dropped"""
        return _copy_present(request, GUEST_FIELDS)
