"""Reservation status and upgrade status transition tables"""
from typing import Dict, FrozenSet

from domain.enums import ReservationStatus, UpgradeStatus
from domain.exceptions import InvalidTransitionError, ReservationError


_ALLOWED: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELED,
    }),
    ReservationStatus.CONFIRMED: frozenset({
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CANCELED,
        ReservationStatus.NO_SHOW,
    }),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.CHECKED_OUT}),
    ReservationStatus.CHECKED_OUT: frozenset(),
    ReservationStatus.CANCELED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[ReservationStatus] = frozenset(
    status for status, targets in _ALLOWED.items() if not targets
)


class ReservationStatusMachine:
    """Legal reservation status transitions"""

    def can_transit(self, current: ReservationStatus, target: ReservationStatus) -> bool:
        return target in _ALLOWED.get(current, frozenset())

    def ensure_can_transit(self, current: ReservationStatus, target: ReservationStatus) -> None:
        if not self.can_transit(current, target):
            raise InvalidTransitionError(current, target)

    def is_terminal(self, status: ReservationStatus) -> bool:
        return status in TERMINAL_STATUSES


_UPGRADE_ALLOWED: Dict[UpgradeStatus, FrozenSet[UpgradeStatus]] = {
    UpgradeStatus.NOT_ELIGIBLE: frozenset({UpgradeStatus.ELIGIBLE}),
    UpgradeStatus.ELIGIBLE: frozenset({UpgradeStatus.QUEUED, UpgradeStatus.APPLIED, UpgradeStatus.DECLINED}),
    UpgradeStatus.QUEUED: frozenset({UpgradeStatus.APPLIED, UpgradeStatus.DECLINED}),
    UpgradeStatus.APPLIED: frozenset(),
    UpgradeStatus.DECLINED: frozenset(),
}


class UpgradeStatusMachine:
    """Upgrade workflow, driven independently of the reservation status"""

    def can_transit(self, current: UpgradeStatus, target: UpgradeStatus) -> bool:
        return target in _UPGRADE_ALLOWED.get(current, frozenset())

    def ensure_can_transit(self, current: UpgradeStatus, target: UpgradeStatus) -> None:
        if not self.can_transit(current, target):
            raise ReservationError(
                f"Illegal upgrade status transition: {current.value} -> {target.value}"
            )
