"""Notification sink: where mutation outcomes are reported.

Rendering (toasts, banners) lives outside this package. The sink only
receives ``(entity_label, operation, outcome)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Protocol, Tuple, Union, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    kind: Literal["success"] = "success"


@dataclass(frozen=True)
class Failure:
    message: str
    kind: Literal["error"] = "error"


Outcome = Union[Success, Failure]

_PAST_TENSE = {
    "create": "created",
    "update": "updated",
    "delete": "deleted",
    "restore": "restored",
}

_GERUND = {
    "create": "creating",
    "update": "updating",
    "delete": "deleting",
    "restore": "restoring",
}


@runtime_checkable
class NotificationSink(Protocol):
    def notify(self, entity_label: str, operation: str, outcome: Outcome) -> None:
        ...


def format_notification(entity_label: str, operation: str, outcome: Outcome) -> str:
    op = str(operation)
    if isinstance(outcome, Failure):
        return f"Error {_GERUND.get(op, f'running {op} on')} {entity_label.lower()}: {outcome.message}"
    # custom actions (status, duplicate, ...) have no verb table entry
    return f"{entity_label} {_PAST_TENSE.get(op, f'{op} completed')} successfully"


class NullNotificationSink:
    def notify(self, entity_label: str, operation: str, outcome: Outcome) -> None:
        return None


class LoggingNotificationSink:
    """Default sink for headless use: one log line per outcome."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def notify(self, entity_label: str, operation: str, outcome: Outcome) -> None:
        level = logging.ERROR if isinstance(outcome, Failure) else logging.INFO
        self._log.log(
            level,
            format_notification(entity_label, operation, outcome),
            extra={"entity": entity_label, "operation": str(operation)},
        )


class RecordingNotificationSink:
    """Keeps every notification in memory; handy for tests and scripted runs."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str, Outcome]] = []

    def notify(self, entity_label: str, operation: str, outcome: Outcome) -> None:
        self.events.append((entity_label, str(operation), outcome))

    @property
    def messages(self) -> List[str]:
        return [format_notification(*event) for event in self.events]


__all__ = [
    "Success",
    "Failure",
    "Outcome",
    "NotificationSink",
    "NullNotificationSink",
    "LoggingNotificationSink",
    "RecordingNotificationSink",
    "format_notification",
]
