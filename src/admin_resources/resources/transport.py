from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    data: List[T] = field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: int = 10
    total: int = 0

    def __iter__(self):
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)


@runtime_checkable
class BackendTransport(Protocol):
    """Per-entity network operations.

    ``restore(id)`` and ``action(name, id, data, method=...)`` are optional.
    """

    async def list(self, params: Optional[Mapping[str, Any]] = None) -> Page[Any]:
        ...

    async def get_by_id(self, id: str) -> Any:
        ...

    async def create(self, data: Any) -> Any:
        ...

    async def update(self, id: str, data: Any) -> Any:
        ...

    async def delete(self, id: str) -> None:
        ...


def supports_restore(transport: Any) -> bool:
    return callable(getattr(transport, "restore", None))


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_page(response: Any) -> Page[Any]:
    """Coerce the shapes list endpoints return into a ``Page``.

    Accepts an already paginated ``{"data": [...], "current_page": ...}``
    body, a bare list, or the ``items``/``page``/``total_pages``/``limit``/
    ``count`` variants some endpoints use.
    """
    if isinstance(response, Page):
        return response
    if isinstance(response, list):
        return Page(
            data=list(response),
            current_page=1,
            last_page=1,
            per_page=len(response),
            total=len(response),
        )
    body: Dict[str, Any] = response if isinstance(response, dict) else {}
    if isinstance(body.get("data"), list) and "current_page" in body:
        return Page(
            data=list(body["data"]),
            current_page=_int(body.get("current_page"), 1),
            last_page=_int(body.get("last_page"), 1),
            per_page=_int(body.get("per_page"), len(body["data"])),
            total=_int(body.get("total"), len(body["data"])),
        )
    items = body.get("items") or body.get("data") or []
    return Page(
        data=list(items),
        current_page=_int(body.get("current_page") or body.get("page"), 1),
        last_page=_int(body.get("last_page") or body.get("total_pages"), 1),
        per_page=_int(body.get("per_page") or body.get("limit"), 10),
        total=_int(body.get("total") or body.get("count"), 0),
    )


__all__ = ["Page", "BackendTransport", "supports_restore", "normalize_page"]
