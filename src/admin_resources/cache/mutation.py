"""Write path: call the transport, then invalidate, then notify.

The cache is only touched after the transport call succeeded. A failed write
leaves every entry as it was, reports an error outcome to the sink and
re-raises to the caller so form-level handling can run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Optional, Tuple

from admin_resources.exceptions import ConfigurationError, classify_error
from admin_resources.notify import Failure, NotificationSink, NullNotificationSink, Success

from .keys import KeyPrefix, QueryKey, QueryKind, detail_key, entity_prefix
from .store import CacheStore

if TYPE_CHECKING:
    from .query import QueryExecutor

logger = logging.getLogger(__name__)


class Operation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    # entity-specific write (status change, duplicate, ...)
    ACTION = "action"


TransportCall = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class MutationRequest:
    entity: str
    operation: Operation
    label: str = ""
    target_id: Optional[str] = None
    payload: Any = None
    invalidates: Tuple[KeyPrefix, ...] = field(default_factory=tuple)
    purges: Tuple[QueryKey, ...] = field(default_factory=tuple)
    action: Optional[str] = None
    call: Optional[TransportCall] = None
    # write the transport result into the detail entry instead of staling it
    seeds_detail: bool = False

    @property
    def display_label(self) -> str:
        return self.label or self.entity

    @property
    def operation_name(self) -> str:
        return self.action or self.operation.value


def invalidation_plan(
    entity: str,
    operation: Operation,
    target_id: Optional[str] = None,
) -> Tuple[Tuple[KeyPrefix, ...], Tuple[QueryKey, ...]]:
    """Keys a successful write makes stale, and keys it removes outright.

    create                    -> every list of the entity
    update / restore / action -> every list + the record's detail
    delete                    -> every list; the record's detail is purged
    """
    lists = entity_prefix(entity, QueryKind.LIST)
    operation = Operation(operation)
    if operation is Operation.CREATE or target_id in (None, ""):
        return (lists,), ()
    detail = detail_key(entity, target_id)
    if operation is Operation.DELETE:
        return (lists,), (detail,)
    return (lists, detail), ()


def build_request(
    entity: str,
    operation: Operation,
    *,
    label: str = "",
    target_id: Any = None,
    payload: Any = None,
) -> MutationRequest:
    operation = Operation(operation)
    tid = None if target_id is None else str(target_id)
    invalidates, purges = invalidation_plan(entity, operation, tid)
    return MutationRequest(
        entity=entity,
        operation=operation,
        label=label,
        target_id=tid,
        payload=payload,
        invalidates=invalidates,
        purges=purges,
    )


def build_action_request(
    entity: str,
    action: str,
    call: TransportCall,
    *,
    label: str = "",
    target_id: Any = None,
    payload: Any = None,
    seeds_detail: bool = False,
    also_invalidates: Iterable[KeyPrefix] = (),
) -> MutationRequest:
    """Request for an entity-specific write that goes through ``call(transport)``.

    The footprint is the update one. With ``seeds_detail`` the returned record
    becomes the fresh detail entry instead of a stale one (a status change
    returns the updated order, a duplicate returns a different record and
    should not seed).
    """
    if not action:
        raise ValueError("action name is required")
    tid = None if target_id is None else str(target_id)
    invalidates, _ = invalidation_plan(entity, Operation.ACTION, tid)
    if seeds_detail and tid:
        invalidates = tuple(p for p in invalidates if p != detail_key(entity, tid))
    return MutationRequest(
        entity=entity,
        operation=Operation.ACTION,
        label=label,
        target_id=tid,
        payload=payload,
        invalidates=invalidates + tuple(also_invalidates),
        action=action,
        call=call,
        seeds_detail=seeds_detail,
    )


class MutationExecutor:
    def __init__(
        self,
        store: CacheStore,
        sink: Optional[NotificationSink] = None,
        queries: Optional["QueryExecutor"] = None,
    ) -> None:
        self.store = store
        self.sink: NotificationSink = sink or NullNotificationSink()
        # needed to seed detail entries; without it seeding falls back to staling
        self.queries = queries

    async def mutate(self, request: MutationRequest, transport: Any) -> Any:
        log_extra = {"entity": request.entity, "operation": request.operation_name}
        try:
            result = await self._call_transport(request, transport)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = classify_error(exc)
            logger.error(
                "%s %s failed: %s",
                request.display_label,
                request.operation_name,
                error.message,
                extra=log_extra,
            )
            self._notify(request, Failure(message=error.message))
            if error is exc:
                raise
            raise error from exc

        self.apply(request, result)
        logger.info("%s %s succeeded", request.display_label, request.operation_name, extra=log_extra)
        self._notify(request, Success())
        return result

    def apply(self, request: MutationRequest, result: Any = None) -> None:
        """Apply the request's invalidation footprint to the store."""
        for prefix in request.invalidates:
            self.store.mark_stale(prefix)
        for key in request.purges:
            self.store.purge(key)
        if request.seeds_detail and request.target_id:
            key = detail_key(request.entity, request.target_id)
            if self.queries is not None and result is not None:
                self.queries.set_data(key, result)
            else:
                self.store.mark_stale(key)

    async def _call_transport(self, request: MutationRequest, transport: Any) -> Any:
        op = request.operation
        if request.call is not None:
            return await request.call(transport)
        if op is Operation.CREATE:
            return await transport.create(request.payload)
        if op is Operation.ACTION:
            raise ConfigurationError(f"{request.operation_name} has no transport call")

        if not request.target_id:
            raise ConfigurationError(f"{op.value} requires a target id")
        if op is Operation.UPDATE:
            return await transport.update(request.target_id, request.payload)
        if op is Operation.DELETE:
            return await transport.delete(request.target_id)

        restore = getattr(transport, "restore", None)
        if not callable(restore):
            raise ConfigurationError(f"{request.display_label} does not support restore")
        return await restore(request.target_id)

    def _notify(self, request: MutationRequest, outcome: Any) -> None:
        try:
            self.sink.notify(request.display_label, request.operation_name, outcome)
        except Exception:
            logger.exception(
                "Notification sink failed",
                extra={"entity": request.entity, "operation": request.operation_name},
            )


__all__ = [
    "Operation",
    "MutationRequest",
    "MutationExecutor",
    "TransportCall",
    "build_request",
    "build_action_request",
    "invalidation_plan",
]
