"""Lifecycle transitions shared by lenders and lender products."""
from __future__ import annotations

from typing import Literal

from schemas.enums import LifecycleStatus

Action = Literal["deactivate", "reactivate", "purge"]


class InvalidTransition(ValueError):
    """Raised when an action is not allowed from the record's current status."""

    def __init__(self, current: LifecycleStatus, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} a record that is {current.value}")


def transition(current: LifecycleStatus | str, action: Action) -> LifecycleStatus:
    """
    Return the status after applying action.

    deactivate: active -> deactivated (no-op if already deactivated)
    reactivate: deactivated -> active (no-op if already active)
    purge: any -> purged_pending_deletion
    Nothing leaves purged_pending_deletion.
    """
    current = LifecycleStatus(current)
    if action == "purge":
        return LifecycleStatus.PURGED_PENDING_DELETION
    if current == LifecycleStatus.PURGED_PENDING_DELETION:
        raise InvalidTransition(current, action)
    if action == "deactivate":
        return LifecycleStatus.DEACTIVATED
    if action == "reactivate":
        return LifecycleStatus.ACTIVE
    raise InvalidTransition(current, action)
