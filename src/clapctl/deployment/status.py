"""Stack status vocabulary and terminal-state classification.

CloudFormation reports a closed set of stack status strings. The watcher
reduces each one to a :class:`WatchState`:

  completed statuses -> COMPLETED
  failed statuses    -> FAILED
  anything else      -> IN_PROGRESS

``UPDATE_ROLLBACK_COMPLETE`` is listed in both the completed and the failed
sets. Completion is evaluated first, so it classifies as COMPLETED.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class DeployAction(str, Enum):
    """Lifecycle action being watched."""

    DEPLOY = 'deploy'
    UPDATE = 'update'
    DELETE = 'delete'


class WatchState(str, Enum):
    """Reduced watcher state."""

    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self is not WatchState.IN_PROGRESS


class StackStatus(str, Enum):
    """Stack status strings reported by the infrastructure engine."""

    CREATE_IN_PROGRESS = 'CREATE_IN_PROGRESS'
    CREATE_FAILED = 'CREATE_FAILED'
    CREATE_COMPLETE = 'CREATE_COMPLETE'
    ROLLBACK_IN_PROGRESS = 'ROLLBACK_IN_PROGRESS'
    ROLLBACK_FAILED = 'ROLLBACK_FAILED'
    ROLLBACK_COMPLETE = 'ROLLBACK_COMPLETE'
    DELETE_IN_PROGRESS = 'DELETE_IN_PROGRESS'
    DELETE_FAILED = 'DELETE_FAILED'
    DELETE_COMPLETE = 'DELETE_COMPLETE'
    UPDATE_IN_PROGRESS = 'UPDATE_IN_PROGRESS'
    UPDATE_COMPLETE_CLEANUP_IN_PROGRESS = 'UPDATE_COMPLETE_CLEANUP_IN_PROGRESS'
    UPDATE_COMPLETE = 'UPDATE_COMPLETE'
    UPDATE_FAILED = 'UPDATE_FAILED'
    UPDATE_ROLLBACK_IN_PROGRESS = 'UPDATE_ROLLBACK_IN_PROGRESS'
    UPDATE_ROLLBACK_FAILED = 'UPDATE_ROLLBACK_FAILED'
    UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS = (
        'UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS'
    )
    UPDATE_ROLLBACK_COMPLETE = 'UPDATE_ROLLBACK_COMPLETE'
    REVIEW_IN_PROGRESS = 'REVIEW_IN_PROGRESS'
    IMPORT_IN_PROGRESS = 'IMPORT_IN_PROGRESS'
    IMPORT_COMPLETE = 'IMPORT_COMPLETE'
    IMPORT_ROLLBACK_IN_PROGRESS = 'IMPORT_ROLLBACK_IN_PROGRESS'
    IMPORT_ROLLBACK_FAILED = 'IMPORT_ROLLBACK_FAILED'
    IMPORT_ROLLBACK_COMPLETE = 'IMPORT_ROLLBACK_COMPLETE'


COMPLETED_STATUSES = frozenset(
    {
        StackStatus.CREATE_COMPLETE,
        StackStatus.UPDATE_COMPLETE,
        StackStatus.DELETE_COMPLETE,
        StackStatus.UPDATE_ROLLBACK_COMPLETE,
    }
)

FAILED_STATUSES = frozenset(
    {
        StackStatus.CREATE_FAILED,
        StackStatus.UPDATE_FAILED,
        StackStatus.DELETE_FAILED,
        StackStatus.ROLLBACK_FAILED,
        StackStatus.UPDATE_ROLLBACK_FAILED,
        StackStatus.ROLLBACK_COMPLETE,
        StackStatus.UPDATE_ROLLBACK_COMPLETE,
    }
)

# Resource statuses surfaced as progress while a stack is in flight.
PROGRESS_SIGNALS: Mapping[DeployAction, frozenset[str]] = MappingProxyType(
    {
        DeployAction.DEPLOY: frozenset(
            {StackStatus.CREATE_COMPLETE.value, StackStatus.UPDATE_COMPLETE.value}
        ),
        DeployAction.UPDATE: frozenset({StackStatus.UPDATE_COMPLETE.value}),
        DeployAction.DELETE: frozenset({StackStatus.DELETE_COMPLETE.value}),
    }
)

# Resource listings are expected to fail while resources are not yet (or no
# longer) visible.
RESOURCE_SCAN_TOLERANT_ACTIONS = frozenset({DeployAction.DEPLOY, DeployAction.DELETE})


def parse_status(raw: str) -> StackStatus | None:
    """Return the enum member for ``raw`` or ``None`` for unknown strings."""
    try:
        return StackStatus(raw)
    except ValueError:
        return None


def is_completed(status: str) -> bool:
    return parse_status(status) in COMPLETED_STATUSES


def is_failed(status: str) -> bool:
    return parse_status(status) in FAILED_STATUSES


def classify_status(status: str) -> WatchState:
    """Reduce a raw stack status to a watcher state.

    Completion is checked before failure. Unknown strings are treated as
    in progress, never as an error.
    """
    if is_completed(status):
        return WatchState.COMPLETED
    if is_failed(status):
        return WatchState.FAILED
    return WatchState.IN_PROGRESS


def is_progress_signal(action: DeployAction, resource_status: str) -> bool:
    return resource_status in PROGRESS_SIGNALS[action]


def readable_status(status: str) -> str:
    """``UPDATE_COMPLETE`` -> ``update complete`` for table output."""
    return status.lower().replace('_', ' ')
