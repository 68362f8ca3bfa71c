"""
Appointment status machine.

Transitions are looked up in an explicit ``(current status, action)`` table.
The shipped policy allows every action from every status; stricter policies
can be built from the same table shape and passed to ``AppointmentService``.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from ...errors import ValidationError


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class StatusAction(str, Enum):
    approve = "approve"
    cancel = "cancel"
    reschedule = "reschedule"


INITIAL_STATUS = AppointmentStatus.pending

ACTION_TARGETS = MappingProxyType(
    {
        StatusAction.approve: AppointmentStatus.confirmed,
        StatusAction.cancel: AppointmentStatus.cancelled,
        StatusAction.reschedule: AppointmentStatus.pending,
    }
)


class StatusPolicy:
    """Immutable transition table. Missing entries are rejected transitions."""

    def __init__(self, transitions: Mapping[tuple, AppointmentStatus], name: str = "custom"):
        self.name = name
        self._transitions = MappingProxyType(dict(transitions))

    def target(
        self, current: AppointmentStatus, action: StatusAction
    ) -> Optional[AppointmentStatus]:
        return self._transitions.get((current, action))

    def apply(self, current, action: StatusAction) -> AppointmentStatus:
        current = AppointmentStatus(current)
        new_status = self.target(current, action)
        if new_status is None:
            raise ValidationError(
                f"transition not allowed: {action.value} from {current.value}"
            )
        return new_status

    def __repr__(self):
        return f"StatusPolicy(name={self.name!r}, transitions={len(self._transitions)})"


PERMISSIVE_POLICY = StatusPolicy(
    {
        (status, action): target
        for status in AppointmentStatus
        for action, target in ACTION_TARGETS.items()
    },
    name="permissive",
)


def parse_action(token) -> StatusAction:
    try:
        return StatusAction(token)
    except (ValueError, TypeError) as e:
        raise ValidationError("invalid action") from e
