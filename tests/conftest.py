"""
Root conftest.py for admin-resources tests.

Provides:
1. Deterministic clock / sleep / timer fakes so cache staleness, retry
   backoff and debounce windows can be stepped by hand
2. An in-memory backend transport that counts calls and can hold a
   request open until the test releases it
3. Query client, sink and resource client fixtures wired to those fakes
"""

from __future__ import annotations

import asyncio
import copy
import itertools
from collections import Counter
from typing import Any, Callable, Dict, List, Optional

import pytest

from admin_resources.cache.client import QueryClient, reset_query_client
from admin_resources.cache.retry import RetryPolicy
from admin_resources.exceptions import NotFoundError
from admin_resources.notify import RecordingNotificationSink
from admin_resources.resources.client import build_resource_client
from admin_resources.resources.transport import Page


# =============================================================================
# TIME FAKES
# =============================================================================


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stands in for asyncio.sleep in retry loops; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class _ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Debounce scheduler whose time only moves when the test says so."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[_ManualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> List[_ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.active if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            timer.cancelled = True
            timer.callback()
        self.now = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


# =============================================================================
# IN-MEMORY TRANSPORT
# =============================================================================


class InMemoryTransport:
    """Backend transport over a dict of records.

    ``calls`` counts every method invocation. Set ``gate`` to an
    ``asyncio.Event`` to hold reads open until the test sets it.
    ``fail_next`` queues exceptions raised by the next calls, in order.
    ``action`` updates the record with ``data``, except ``duplicate`` which
    copies it under a new id.
    """

    def __init__(self, records: Optional[Dict[str, Dict[str, Any]]] = None):
        self.records: Dict[str, Dict[str, Any]] = copy.deepcopy(records or {})
        self.calls: Counter = Counter()
        self.list_params: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None
        self.fail_next: List[BaseException] = []
        self.actions: List[tuple] = []
        self._ids = itertools.count(1000)

    async def _enter(self, name: str) -> None:
        self.calls[name] += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            raise self.fail_next.pop(0)

    async def list(self, params=None) -> Page:
        self.list_params.append(dict(params or {}))
        await self._enter("list")
        rows = [copy.deepcopy(r) for r in self.records.values()]
        term = (params or {}).get("search")
        if term:
            rows = [r for r in rows if term.lower() in str(r.get("name", "")).lower()]
        return Page(data=rows, current_page=1, last_page=1, per_page=len(rows), total=len(rows))

    async def get_by_id(self, id: str) -> Dict[str, Any]:
        await self._enter("get_by_id")
        if id not in self.records:
            raise NotFoundError(f"Record {id} not found")
        return copy.deepcopy(self.records[id])

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._enter("create")
        new_id = str(next(self._ids))
        self.records[new_id] = {"id": new_id, **data}
        return copy.deepcopy(self.records[new_id])

    async def update(self, id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        await self._enter("update")
        if id not in self.records:
            raise NotFoundError(f"Record {id} not found")
        self.records[id].update(data)
        return copy.deepcopy(self.records[id])

    async def delete(self, id: str) -> None:
        await self._enter("delete")
        if self.records.pop(id, None) is None:
            raise NotFoundError(f"Record {id} not found")

    async def action(self, name: str, id: Optional[str], data: Any = None, *, method: str = "POST") -> Dict[str, Any]:
        await self._enter("action")
        self.actions.append((method, name, id, data))
        if id not in self.records:
            raise NotFoundError(f"Record {id} not found")
        if name == "duplicate":
            new_id = str(next(self._ids))
            self.records[new_id] = {**copy.deepcopy(self.records[id]), "id": new_id}
            return copy.deepcopy(self.records[new_id])
        self.records[id].update(data or {})
        return copy.deepcopy(self.records[id])


class RestorableTransport(InMemoryTransport):
    def __init__(self, records=None):
        super().__init__(records)
        self.trash: Dict[str, Dict[str, Any]] = {}

    async def delete(self, id: str) -> None:
        await self._enter("delete")
        record = self.records.pop(id, None)
        if record is None:
            raise NotFoundError(f"Record {id} not found")
        self.trash[id] = record

    async def restore(self, id: str) -> Dict[str, Any]:
        await self._enter("restore")
        if id not in self.trash:
            raise NotFoundError(f"Record {id} not in trash")
        self.records[id] = self.trash.pop(id)
        return copy.deepcopy(self.records[id])


SAMPLE_CLIENTS = {
    "9": {"id": "9", "name": "Maria Souza", "status": "active"},
    "42": {"id": "42", "name": "Joao Silva", "status": "active"},
    "43": {"id": "43", "name": "Ana Lima", "status": "active"},
}


@pytest.fixture
def transport() -> RestorableTransport:
    return RestorableTransport(SAMPLE_CLIENTS)


# =============================================================================
# CLIENT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_query_client():
    reset_query_client()
    yield
    reset_query_client()


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def query_client(clock, sleep, sink) -> QueryClient:
    return QueryClient(
        sink=sink,
        retry=RetryPolicy(retries=1, base_delay=0.5),
        list_stale_after=60.0,
        detail_stale_after=30.0,
        clock=clock,
        sleep=sleep,
    )


@pytest.fixture
def clients(query_client, transport):
    return build_resource_client("clients", transport, label="Client", query_client=query_client)
