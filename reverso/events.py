"""Scan lifecycle events and the bus that delivers them to subscribers."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, ClassVar, List, Literal, Optional, Union

from .logging import get_logger
from .models import ProjectSchema, SchemaDiff

ChangeType = Literal["add", "change", "unlink"]


@dataclass(frozen=True)
class ScanStarted:
    type: ClassVar[str] = "start"


@dataclass(frozen=True)
class ScanCompleted:
    schema: ProjectSchema
    diff: SchemaDiff

    type: ClassVar[str] = "complete"


@dataclass(frozen=True)
class ScanFailed:
    error: BaseException

    type: ClassVar[str] = "error"


@dataclass(frozen=True)
class FileChanged:
    changed_file: str
    change_type: ChangeType

    type: ClassVar[str] = "change"


ScanEvent = Union[ScanStarted, ScanCompleted, ScanFailed, FileChanged]
EventHandler = Callable[[ScanEvent], None]


class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`; call it to unsubscribe."""

    def __init__(self, bus: "EventBus", handler: EventHandler) -> None:
        self._bus: Optional[EventBus] = bus
        self.handler = handler

    @property
    def active(self) -> bool:
        return self._bus is not None

    def unsubscribe(self) -> None:
        if self._bus is None:
            return
        self._bus._remove(self.handler)
        self._bus = None

    __call__ = unsubscribe


class EventBus:
    """Delivers scan events to handlers in subscription order.

    A handler that raises is logged and skipped; later handlers and the
    emitting pipeline are unaffected.
    """

    def __init__(self) -> None:
        self._handlers: List[EventHandler] = []
        self._lock = threading.Lock()
        self.logger = get_logger("events")

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: EventHandler) -> Subscription:
        with self._lock:
            self._handlers.append(handler)
        return Subscription(self, handler)

    def emit(self, event: ScanEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                self.logger.exception("Event handler failed for %r event", event.type)

    def _remove(self, handler: EventHandler) -> None:
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass


__all__ = [
    "ChangeType",
    "EventBus",
    "EventHandler",
    "FileChanged",
    "ScanCompleted",
    "ScanEvent",
    "ScanFailed",
    "ScanStarted",
    "Subscription",
]
