"""A bounded in-process bus carrying note events to subscribers."""

from __future__ import annotations

import threading
from collections import deque

from .domain import NoteEvent
from .logger import Field, Logger

__all__ = ["EventBus", "ConsumeCancelled"]

_POLL_SECONDS = 0.05


class ConsumeCancelled(Exception):
    """Raised when waiting for an event is cancelled."""


class EventBus:
    """Bounded event queue; producing never blocks, a full bus drops the event.

    With a capacity of zero an event is only accepted when a consumer is
    already waiting for it.
    """

    def __init__(self, log: Logger, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._log = log
        self._capacity = capacity
        self._items: deque[NoteEvent] = deque()
        self._waiting = 0
        self._cond = threading.Condition()

    def produce(self, event: NoteEvent) -> bool:
        """Offer an event; return whether the bus accepted it."""
        with self._cond:
            accepted = len(self._items) < self._capacity + self._waiting
            if accepted:
                self._items.append(event)
                self._cond.notify()
        fields = (Field("id", event.id), Field("title", event.title))
        if accepted:
            self._log.info("event has been sent to the bus", *fields)
        else:
            self._log.warn("the bus is full", *fields)
        return accepted

    def consume(self, cancel: threading.Event | None = None) -> NoteEvent:
        """Wait for the next event; raise ConsumeCancelled once cancel is set."""
        with self._cond:
            self._waiting += 1
            try:
                while not self._items:
                    if cancel is not None and cancel.is_set():
                        raise ConsumeCancelled("context canceled")
                    self._cond.wait(None if cancel is None else _POLL_SECONDS)
                return self._items.popleft()
            finally:
                self._waiting -= 1