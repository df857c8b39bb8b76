"""Wait for a user to finish authorizing a connection at their bank."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from haven.application.dtos.banking import ConnectionCompleted
from haven.domain.banking.exceptions import (
    AggregatorApiError,
    ConnectionNotLinkedError,
)
from haven.domain.banking.ports import AggregatorPort
from haven.domain.banking.value_objects import RequisitionStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_POLL_SECONDS = 5.0
DEFAULT_MAX_ATTEMPTS = 60


class WatchOutcome(str, Enum):
    LINKED = "linked"
    PENDING = "pending"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class WatchResult:
    outcome: WatchOutcome
    attempts: int
    completed: Optional[ConnectionCompleted] = None
    error: Optional[str] = None

    @property
    def is_linked(self) -> bool:
        return self.outcome == WatchOutcome.LINKED


class ConnectionCompletionWatcher:
    """
    Poll a requisition until it is linked, then complete the connection.

    Used where no browser callback reaches the backend (the CLI). Polling
    stops after ``max_attempts`` checks (outcome ``pending``), after
    ``timeout_seconds`` overall (``timeout``), when ``cancel`` is set
    (``cancelled``) or when the aggregator reports a terminal failure
    (``failed``). Transient aggregator errors, while reading the status or
    while completing, count as an attempt and polling continues. Each
    ``watch()`` call keeps its own attempt count.

    Parameters
    ----------
    aggregator
        Used to read the requisition status
    complete
        Coroutine function completing the connection for a requisition id;
        it owns its own unit of work
    """

    def __init__(  # NOQA: PLR0913
        self,
        aggregator: AggregatorPort,
        complete: Callable[[str], Awaitable[ConnectionCompleted]],
        poll_interval: float = DEFAULT_POLL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self._aggregator = aggregator
        self._complete = complete
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._timeout_seconds = timeout_seconds

    async def watch(
        self,
        requisition_id: str,
        cancel: Optional[asyncio.Event] = None,
    ) -> WatchResult:
        cancel = cancel or asyncio.Event()
        attempts = _AttemptCounter()
        try:
            return await asyncio.wait_for(
                self._poll(requisition_id, cancel, attempts),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.info(
                "Gave up waiting for requisition %s after %.0fs",
                requisition_id,
                self._timeout_seconds,
            )
            return WatchResult(WatchOutcome.TIMEOUT, attempts=attempts.count)

    async def _poll(
        self,
        requisition_id: str,
        cancel: asyncio.Event,
        attempts: _AttemptCounter,
    ) -> WatchResult:
        while attempts.count < self._max_attempts:
            if cancel.is_set():
                return WatchResult(WatchOutcome.CANCELLED, attempts=attempts.count)

            attempts.count += 1
            result = await self._check(requisition_id, attempts.count)
            if result is not None:
                return result

            if attempts.count < self._max_attempts and await self._wait_or_cancel(
                cancel,
            ):
                return WatchResult(WatchOutcome.CANCELLED, attempts=attempts.count)

        return WatchResult(WatchOutcome.PENDING, attempts=attempts.count)

    async def _check(self, requisition_id: str, attempt: int) -> Optional[WatchResult]:
        try:
            requisition = await self._aggregator.get_requisition(requisition_id)
        except AggregatorApiError as e:
            logger.warning(
                "Status check %d for requisition %s failed: %s",
                attempt,
                requisition_id,
                e,
            )
            return None

        failed = RequisitionStatus.terminal_failure_target(requisition.status)
        if not requisition.is_linked and failed is None:
            logger.debug(
                "Requisition %s still %s (attempt %d)",
                requisition_id,
                requisition.status,
                attempt,
            )
            return None

        try:
            completed = await self._complete(requisition_id)
        except ConnectionNotLinkedError as e:
            return WatchResult(WatchOutcome.FAILED, attempts=attempt, error=str(e))
        except AggregatorApiError as e:
            logger.warning(
                "Completing requisition %s failed on attempt %d: %s",
                requisition_id,
                attempt,
                e,
            )
            return None
        return WatchResult(WatchOutcome.LINKED, attempts=attempt, completed=completed)

    async def _wait_or_cancel(self, cancel: asyncio.Event) -> bool:
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self._poll_interval)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass
class _AttemptCounter:
    """Attempts made by one ``watch()`` call, readable after a timeout."""

    count: int = 0
