from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol

from mission_monitor.clock import Clock, as_utc, local_now
from mission_monitor.models import Task
from mission_monitor.notifications.reminders import (
    NotificationPayload,
    ReminderKind,
    build_reminder_payload,
    calculate_reminder_at,
)
from mission_monitor.tasks import TaskLedger

LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Revoke the pending callback."""


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def start_thread_timer(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    """Fire ``callback`` once after ``delay_seconds`` on a daemon timer thread."""

    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class AsyncioTimerFactory:
    """Fire-once timers on an asyncio event loop, for single-threaded hosts."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def __call__(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay_seconds, callback)


class ReminderState(str, Enum):
    SCHEDULED = "scheduled"
    FIRED = "fired"
    CANCELLED = "cancelled"


@dataclass
class ScheduledReminder:
    task_id: str
    kind: ReminderKind
    fire_at: datetime
    payload: NotificationPayload
    state: ReminderState = ReminderState.SCHEDULED
    handle: Optional[TimerHandle] = field(default=None, repr=False)


ReminderKey = tuple[str, ReminderKind]


class ReminderScheduler:
    """Schedule and cancel start-time reminders for tasks.

    Reminders live only in memory. They are derived again from the stored
    tasks on start and whenever the app regains focus.
    """

    def __init__(
        self,
        ledger: TaskLedger,
        deliver: Callable[[NotificationPayload], None],
        *,
        timer_factory: TimerFactory = start_thread_timer,
        clock: Clock = local_now,
        enabled: bool = True,
    ) -> None:
        self.ledger = ledger
        self.deliver = deliver
        self.timer_factory = timer_factory
        self.clock = clock
        self.enabled = enabled
        self._pending: dict[ReminderKey, ScheduledReminder] = {}
        self._finished: dict[ReminderKey, ReminderState] = {}
        self._lock = threading.RLock()

    def schedule_task_notifications(self, task: Task) -> int:
        """Schedule every reminder of ``task`` whose fire instant is still ahead."""

        if not self.enabled or task.completed:
            return 0

        now = self.clock()
        self.cancel_task_notifications(task.id)

        scheduled = 0
        with self._lock:
            for kind in ReminderKind:
                fire_at = calculate_reminder_at(task, kind, now=now)
                if as_utc(fire_at) <= as_utc(now):
                    continue

                key = (task.id, kind)
                reminder = ScheduledReminder(
                    task_id=task.id,
                    kind=kind,
                    fire_at=fire_at,
                    payload=build_reminder_payload(task, kind),
                )
                self._pending[key] = reminder
                self._finished.pop(key, None)
                delay = (as_utc(fire_at) - as_utc(now)).total_seconds()
                reminder.handle = self.timer_factory(delay, partial(self._fire, reminder))
                scheduled += 1

        LOGGER.debug("Scheduled %s reminder(s) for task %s", scheduled, task.id)
        return scheduled

    def cancel_task_notifications(self, task_id: str) -> int:
        cancelled = 0
        with self._lock:
            for kind in ReminderKind:
                key = (task_id, kind)
                reminder = self._pending.pop(key, None)
                if reminder is None:
                    continue
                if reminder.handle is not None:
                    reminder.handle.cancel()
                reminder.state = ReminderState.CANCELLED
                self._finished[key] = ReminderState.CANCELLED
                cancelled += 1
        return cancelled

    def clear_all(self) -> int:
        with self._lock:
            task_ids = {task_id for task_id, _ in self._pending}
        return sum(self.cancel_task_notifications(task_id) for task_id in task_ids)

    def schedule_all_task_notifications(self) -> int:
        """Cancel everything and reschedule from the active user's open tasks."""

        self.clear_all()
        if not self.enabled:
            return 0

        open_tasks = [task for task in self.ledger.list_tasks() if not task.completed]
        scheduled = sum(self.schedule_task_notifications(task) for task in open_tasks)
        LOGGER.info("Scheduled notifications for %s tasks (%s reminders)", len(open_tasks), scheduled)
        return scheduled

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending_reminders(self, task_id: Optional[str] = None) -> list[ScheduledReminder]:
        with self._lock:
            reminders = list(self._pending.values())
        if task_id is None:
            return reminders
        return [reminder for reminder in reminders if reminder.task_id == task_id]

    def state_of(self, task_id: str, kind: ReminderKind) -> Optional[ReminderState]:
        key = (task_id, kind)
        with self._lock:
            if key in self._pending:
                return ReminderState.SCHEDULED
            return self._finished.get(key)

    def notification_stats(self) -> dict[str, object]:
        return {"enabled": self.enabled, "scheduled_count": self.pending_count()}

    def _fire(self, reminder: ScheduledReminder) -> None:
        key = (reminder.task_id, reminder.kind)
        with self._lock:
            if self._pending.get(key) is not reminder:
                return
            del self._pending[key]
            reminder.state = ReminderState.FIRED
            self._finished[key] = ReminderState.FIRED

        try:
            self.deliver(reminder.payload)
        except Exception:
            LOGGER.exception("Delivering reminder %s for task %s failed", reminder.kind.value, reminder.task_id)


__all__ = [
    "AsyncioTimerFactory",
    "ReminderScheduler",
    "ReminderState",
    "ScheduledReminder",
    "TimerFactory",
    "TimerHandle",
    "start_thread_timer",
]
