"""
Importer events — a side channel for logging/metrics around handler and
parser invocations.

Listeners are plain callables taking an ImporterEvent.  A failing listener
is logged and ignored: events never change the outcome of an import.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from docimporter.core.constants import EventName, ParseState
from docimporter.core.logging import get_logger

logger = get_logger(__name__)

EventListener = Callable[["ImporterEvent"], None]


@dataclass(frozen=True)
class ImporterEvent:
    """Something happened while importing a document."""

    name: EventName
    reference: str
    subject: Any = None
    parse_state: ParseState | None = None
    exception: BaseException | None = None

    @property
    def is_parsed(self) -> bool:
        return self.parse_state is ParseState.POST

    def __str__(self) -> str:
        text = f"{self.reference} (parse_state: {self.parse_state})"
        if self.subject is not None:
            text += f" - {self.subject}"
        return text


class EventManager:
    """Dispatches events to registered listeners, isolating their failures."""

    def __init__(self, listeners: list[EventListener] | None = None) -> None:
        self._listeners: list[EventListener] = list(listeners or [])

    @property
    def listeners(self) -> list[EventListener]:
        return list(self._listeners)

    def add_listener(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def fire(self, event: ImporterEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning(
                    "Event listener failed",
                    event_name=str(event.name),
                    reference=event.reference,
                    listener=repr(listener),
                    error=str(exc),
                )


class LoggingEventListener:
    """Writes every event to the structured log."""

    def __init__(self, logger_name: str = "docimporter.events") -> None:
        self.logger = get_logger(logger_name)

    def __call__(self, event: ImporterEvent) -> None:
        log = self.logger.bind(
            reference=event.reference,
            parse_state=str(event.parse_state) if event.parse_state else None,
            subject=repr(event.subject) if event.subject is not None else None,
        )
        if event.exception is not None:
            log.warning(str(event.name), error=str(event.exception))
        else:
            log.debug(str(event.name))
