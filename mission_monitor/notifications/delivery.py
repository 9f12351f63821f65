from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Optional, Protocol

import streamlit as st

from mission_monitor.events import CoreEvent, EventHub, EventKind
from mission_monitor.notifications.reminders import (
    NotificationPayload,
    build_badge_earned_payload,
    build_daily_completion_payload,
    build_task_completed_payload,
)

LOGGER = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    def send(self, payload: NotificationPayload) -> None:
        """Show ``payload`` to the user."""


class StreamlitToastChannel:
    """In-page banner rendered with ``st.toast``."""

    def send(self, payload: NotificationPayload) -> None:
        st.toast(f"**{payload.title}**\n\n{payload.body}", icon=payload.icon)


class LoggingChannel:
    """Write notifications to the log, for headless runs."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def send(self, payload: NotificationPayload) -> None:
        LOGGER.log(self.level, "%s %s: %s", payload.icon, payload.title, payload.body)


class NotificationCenter:
    """Route payloads to the native channel when permitted, otherwise to the banner.

    Payloads produced on timer threads are queued with ``enqueue`` and shown by
    ``flush`` on the thread that renders the page.
    """

    def __init__(
        self,
        banner: Optional[NotificationChannel] = None,
        *,
        native: Optional[NotificationChannel] = None,
        permission_granted: bool = False,
    ) -> None:
        self.banner: NotificationChannel = banner if banner is not None else StreamlitToastChannel()
        self.native = native
        self.permission_granted = permission_granted
        self._outbox: Deque[NotificationPayload] = deque()
        self._lock = threading.Lock()

    def show(self, payload: NotificationPayload) -> None:
        if self.permission_granted and self.native is not None:
            self.native.send(payload)
            return
        self.banner.send(payload)

    def enqueue(self, payload: NotificationPayload) -> None:
        with self._lock:
            self._outbox.append(payload)
        LOGGER.debug("Queued notification %s", payload.tag or payload.title)

    def pending(self) -> int:
        with self._lock:
            return len(self._outbox)

    def flush(self) -> int:
        """Show every queued payload in arrival order and return how many were shown."""

        with self._lock:
            payloads = list(self._outbox)
            self._outbox.clear()
        for payload in payloads:
            self.show(payload)
        return len(payloads)

    def subscribe_to(self, events: EventHub) -> None:
        events.subscribe(EventKind.TASK_COMPLETED, self._on_task_completed)
        events.subscribe(EventKind.BADGE_EARNED, self._on_badge_earned)
        events.subscribe(EventKind.DAILY_GOAL_ACHIEVED, self._on_daily_goal)

    def _on_task_completed(self, event: CoreEvent) -> None:
        task = event.get("task")
        if task is not None:
            self.show(build_task_completed_payload(task))

    def _on_badge_earned(self, event: CoreEvent) -> None:
        badge = event.get("badge")
        if badge is not None:
            self.show(build_badge_earned_payload(badge))

    def _on_daily_goal(self, event: CoreEvent) -> None:
        self.show(build_daily_completion_payload())


__all__ = ["LoggingChannel", "NotificationCenter", "NotificationChannel", "StreamlitToastChannel"]
