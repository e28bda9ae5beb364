"""Reservation change policies, one per actor role"""
from typing import Dict, FrozenSet, NamedTuple

from pydantic import BaseModel

from domain.enums import ReservationStatus, UserRole
from domain.exceptions import ForbiddenFieldError
from domain.value_objects import ReservationChange


class _Capabilities(NamedTuple):
    change_room_type: bool
    assign_concrete_room: bool
    status_targets: FrozenSet[ReservationStatus]


# A new role is a new row here; existing rows never change for it.
_CAPABILITIES: Dict[UserRole, _Capabilities] = {
    UserRole.GUEST: _Capabilities(
        change_room_type=False,
        assign_concrete_room=False,
        status_targets=frozenset(),
    ),
    UserRole.MANAGER: _Capabilities(
        change_room_type=True,
        assign_concrete_room=True,
        status_targets=frozenset(ReservationStatus),
    ),
}


class ReservationChangePolicy(BaseModel):
    """Decides which reservation fields an actor role may alter"""
    role: UserRole

    class Config:
        frozen = True

    @classmethod
    def for_role(cls, role: UserRole) -> "ReservationChangePolicy":
        return cls(role=role)

    @property
    def capabilities(self) -> _Capabilities:
        return _CAPABILITIES[self.role]

    def allow_change_room_type(self) -> bool:
        return self.capabilities.change_room_type

    def allow_assign_concrete_room(self) -> bool:
        return self.capabilities.assign_concrete_room

    def allow_status_change_to(self, target: ReservationStatus) -> bool:
        return target in self.capabilities.status_targets

    def verify(self, change: ReservationChange) -> None:
        """Reject the change on the first forbidden field.

        Checked in a fixed order: room type, concrete room, status.
        Transition legality is not checked here.
        """
        if change.is_present("new_room_type_id") and not self.allow_change_room_type():
            raise ForbiddenFieldError("room_type")
        if change.is_present("new_room_id") and not self.allow_assign_concrete_room():
            raise ForbiddenFieldError("room")
        if change.is_present("new_status") and not self.allow_status_change_to(change.new_status):
            raise ForbiddenFieldError("status", change.new_status)


GUEST_POLICY = ReservationChangePolicy.for_role(UserRole.GUEST)
MANAGER_POLICY = ReservationChangePolicy.for_role(UserRole.MANAGER)
