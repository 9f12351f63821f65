from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from mission_monitor.clock import local_now

LOGGER = logging.getLogger(__name__)


class EventKind(str, Enum):
    TASK_COMPLETED = "task_completed"
    BADGE_EARNED = "badge_earned"
    DAILY_GOAL_ACHIEVED = "daily_goal_achieved"


class CoreEvent(BaseModel):
    """Discrete event handed to presentation-layer subscribers."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: EventKind
    created_at: datetime = Field(default_factory=local_now)
    payload: Mapping[str, Any] = Field(default_factory=dict)

    def get(self, key: str) -> Optional[Any]:
        return self.payload.get(key)


EventCallback = Callable[[CoreEvent], None]


class EventHub:
    """Callback registry; subscriber failures are logged and never reach the emitter."""

    def __init__(self) -> None:
        self._subscribers: dict[EventKind, list[EventCallback]] = defaultdict(list)
        self.history: list[CoreEvent] = []

    def subscribe(self, kind: EventKind, callback: EventCallback) -> None:
        self._subscribers[kind].append(callback)

    def unsubscribe(self, kind: EventKind, callback: EventCallback) -> None:
        callbacks = self._subscribers.get(kind, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, kind: EventKind, **payload: Any) -> CoreEvent:
        event = CoreEvent(kind=kind, payload=payload)
        self.history.append(event)
        self.history = self.history[-50:]
        for callback in list(self._subscribers.get(kind, [])):
            try:
                callback(event)
            except Exception:
                LOGGER.exception("Subscriber for %s failed", kind.value)
        return event


__all__ = ["CoreEvent", "EventCallback", "EventHub", "EventKind"]
