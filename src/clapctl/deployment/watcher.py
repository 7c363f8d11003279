"""Deployment watcher: polls stack status until a terminal state.

One cooperative loop, no worker threads:

  1. Read the stack status. A read error during ``delete`` means the stack
     is gone (success); for other actions it aborts with StatusCheckError.
  2. IN_PROGRESS: surface the first resource that just transitioned
     (best effort), sleep ``poll_interval``, repeat.
  3. COMPLETED: stop with success.
  4. FAILED: stop with DeploymentFailedError.

The progress reporter is stopped exactly once on every exit path.

Interrupting the loop (Ctrl+C, task cancellation) only stops watching;
the remote operation keeps running.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from ..errors import DeploymentFailedError, StatusCheckError
from .lifecycle import StackStatusSource
from .status import (
    RESOURCE_SCAN_TOLERANT_ACTIONS,
    DeployAction,
    WatchState,
    classify_status,
    is_progress_signal,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.5


class ProgressReporter(Protocol):
    """Progress sink released when watching ends (a spinner, usually)."""

    def update(self, text: str) -> None: ...
    def stop(self) -> None: ...


class NullProgress:
    """Progress reporter that records updates and discards them."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.stopped = 0

    def update(self, text: str) -> None:
        self.messages.append(text)

    def stop(self) -> None:
        self.stopped += 1


@dataclass(frozen=True, slots=True)
class WatchResult:
    """Terminal outcome of a watch."""

    state: WatchState
    polls: int
    last_status: str | None = None
    disappeared: bool = False


class DeploymentWatcher:
    """Reduce a sequence of status snapshots to a terminal outcome."""

    def __init__(
        self,
        source: StackStatusSource,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._source = source
        self._poll_interval = poll_interval
        self._sleep = sleep

    async def watch(
        self,
        stack_name: str,
        action: DeployAction,
        progress: ProgressReporter | None = None,
    ) -> WatchResult:
        """Block until ``stack_name`` reaches a terminal status.

        Raises:
            StatusCheckError: Status read failed for deploy/update.
            DeploymentFailedError: The stack reached a failure status.
        """
        progress = progress or NullProgress()
        polls = 0
        try:
            while True:
                polls += 1
                try:
                    status = await self._source.get_stack_status(stack_name)
                except Exception as exc:
                    if action is DeployAction.DELETE:
                        logger.info(
                            'Stack no longer readable, treating delete as done: %s',
                            stack_name,
                            extra={'stack_name': stack_name, 'action': action.value},
                        )
                        return WatchResult(
                            state=WatchState.COMPLETED,
                            polls=polls,
                            disappeared=True,
                        )
                    raise StatusCheckError(stack_name, str(exc)) from exc

                state = classify_status(status)
                logger.debug(
                    'Poll %d: %s is %s',
                    polls,
                    stack_name,
                    status,
                    extra={
                        'stack_name': stack_name,
                        'action': action.value,
                        'status': status,
                    },
                )

                if state is WatchState.COMPLETED:
                    return WatchResult(state=state, polls=polls, last_status=status)

                if state is WatchState.FAILED:
                    logger.warning(
                        'Stack %s failed with status %s',
                        stack_name,
                        status,
                        extra={
                            'stack_name': stack_name,
                            'action': action.value,
                            'status': status,
                        },
                    )
                    raise DeploymentFailedError(action.value, status)

                await self._show_first_processed_resource(stack_name, action, progress)
                await self._sleep(self._poll_interval)
        finally:
            progress.stop()

    async def _show_first_processed_resource(
        self,
        stack_name: str,
        action: DeployAction,
        progress: ProgressReporter,
    ) -> bool:
        try:
            statuses = await self._source.get_resource_statuses(stack_name)
        except Exception:
            if action in RESOURCE_SCAN_TOLERANT_ACTIONS:
                logger.debug(
                    'Resources not visible yet for %s',
                    stack_name,
                    extra={'stack_name': stack_name, 'action': action.value},
                )
            else:
                logger.warning(
                    'Resource status scan failed for %s',
                    stack_name,
                    extra={'stack_name': stack_name, 'action': action.value},
                    exc_info=True,
                )
            return False

        for resource, resource_status in statuses.items():
            if is_progress_signal(action, resource_status):
                progress.update(f' {resource} => {resource_status}')
                return True
        return False
