"""Debounced query trigger.

Turns a rapidly changing input (a search box) into one settled value after a
quiet period::

    trigger = DebouncedQueryTrigger(lambda term: clients.search(term))
    for ch in ("j", "jo", "joa", "joao"):
        trigger.push(ch)          # only "joao" reaches clients.search

States go Idle -> Pending -> Settled -> Idle. The quiet period defaults to
``ADMIN_DEBOUNCE_QUIET_PERIOD`` (0.3 s). A new input while Pending
restarts the timer with the new value. Cancelling only ever cancels the
timer; fetches already dispatched for an earlier term run to completion and
land under their own query key.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Generic, Optional, Protocol, Set, TypeVar

from admin_resources.app.settings import get_resource_settings

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 0.3


class DebounceState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SETTLED = "settled"


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


@dataclass
class DebounceSession(Generic[T]):
    pending_value: Optional[T] = None
    timer_handle: Optional[TimerHandle] = None


class DebouncedQueryTrigger(Generic[T]):
    def __init__(
        self,
        on_settle: Optional[Callable[[T], Any]] = None,
        *,
        quiet_period: Optional[float] = None,
        scheduler: Scheduler = loop_scheduler,
        initial: Optional[T] = None,
    ) -> None:
        if quiet_period is None:
            quiet_period = get_resource_settings().debounce_quiet_period
        if quiet_period < 0:
            raise ValueError("quiet_period must be >= 0")
        self.quiet_period = quiet_period
        self._on_settle = on_settle
        self._schedule = scheduler
        self._session: DebounceSession[T] = DebounceSession()
        self._state = DebounceState.IDLE
        self._waiters: list[asyncio.Future[T]] = []
        self.value: Optional[T] = initial
        self.emitted = 0
        # dispatched downstream work; kept referenced until done
        self.tasks: Set["asyncio.Future[Any]"] = set()

    @property
    def state(self) -> DebounceState:
        return self._state

    @property
    def pending_value(self) -> Optional[T]:
        return self._session.pending_value

    def push(self, value: T) -> None:
        self._cancel_timer()
        self._session = DebounceSession(pending_value=value)
        self._state = DebounceState.PENDING
        self._session.timer_handle = self._schedule(self.quiet_period, self._expire)

    def cancel(self) -> None:
        """Drop the pending value without emitting it."""
        self._cancel_timer()
        self._session = DebounceSession()
        self._state = DebounceState.IDLE

    def flush(self) -> None:
        """Settle right now if a value is pending (e.g. the user hit enter)."""
        if self._state is DebounceState.PENDING:
            self._cancel_timer()
            self._expire()

    async def wait(self) -> T:
        """Resolve with the next emitted value."""
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        return await future

    def _cancel_timer(self) -> None:
        handle = self._session.timer_handle
        if handle is not None:
            handle.cancel()
            self._session.timer_handle = None

    def _expire(self) -> None:
        if self._state is not DebounceState.PENDING:
            return
        value = self._session.pending_value
        self._session = DebounceSession()
        self._state = DebounceState.SETTLED
        try:
            self._emit(value)
        finally:
            self._state = DebounceState.IDLE

    def _emit(self, value: Any) -> None:
        self.value = value
        self.emitted += 1
        logger.debug("Debounced value settled: %r", value)

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(value)

        if self._on_settle is None:
            return
        result = self._on_settle(value)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self.tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Future[Any]") -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Debounced query failed: %s", exc)


__all__ = [
    "DEFAULT_QUIET_PERIOD",
    "DebounceState",
    "DebounceSession",
    "DebouncedQueryTrigger",
    "TimerHandle",
    "Scheduler",
    "loop_scheduler",
]
