"""Canonical query keys.

A key is the triple ``(namespace, kind, params)`` where ``params`` is already
serialised, so two logically identical filter dicts always produce the same
key regardless of insertion order.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any, Mapping, NamedTuple, Optional, Tuple, Union


class QueryKind(StrEnum):
    LIST = "list"
    DETAIL = "detail"


class QueryKey(NamedTuple):
    namespace: str
    kind: str
    params: str

    def matches(self, prefix: "KeyPrefix") -> bool:
        prefix = tuple(prefix)
        return tuple(self[: len(prefix)]) == prefix

    def __str__(self) -> str:
        return f"{self.namespace}:{self.kind}:{self.params}"


KeyPrefix = Union[QueryKey, Tuple[str, ...]]


def _prune(value: Any) -> Any:
    # None behaves like an absent filter
    if isinstance(value, Mapping):
        return {str(k): _prune(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_prune(v) for v in value]
    return value


def serialize_params(params: Optional[Mapping[str, Any]]) -> str:
    return json.dumps(
        _prune(params or {}),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def list_key(namespace: str, params: Optional[Mapping[str, Any]] = None) -> QueryKey:
    return QueryKey(namespace, QueryKind.LIST.value, serialize_params(params))


def detail_key(namespace: str, id: Any) -> QueryKey:
    return QueryKey(namespace, QueryKind.DETAIL.value, str(id))


def entity_prefix(namespace: str, kind: Optional[QueryKind] = None) -> Tuple[str, ...]:
    if kind is None:
        return (namespace,)
    return (namespace, QueryKind(kind).value)


__all__ = [
    "QueryKind",
    "QueryKey",
    "KeyPrefix",
    "serialize_params",
    "list_key",
    "detail_key",
    "entity_prefix",
]
