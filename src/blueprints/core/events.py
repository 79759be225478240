"""Unit progress events emitted by the orchestrator."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class UnitProgressEvent:
    """Progress of a single deployment unit.

    Status is one of: starting, waiting, complete, error, skipped.
    """

    unit_id: str
    status: str
    message: str = ""
    duration: float | None = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


EventListener = Callable[[UnitProgressEvent], None]


class EventEmitter:
    """Fans progress events out to registered listeners."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: UnitProgressEvent) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not affect the run or the
        other listeners.
        """
        logger.debug(f"[{event.unit_id}] {event.status}: {event.message}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"[{event.unit_id}] Progress listener failed on '{event.status}' event")
