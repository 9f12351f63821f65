from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from mission_monitor.clock import as_utc
from mission_monitor.models import Badge, Task


class ReminderKind(str, Enum):
    """Independently schedulable offsets from a task's start instant."""

    ONE_HOUR = "oneHour"
    FIVE_MINUTE = "fiveMinute"
    AT_START = "atStart"

    @property
    def offset(self) -> timedelta:
        if self is ReminderKind.ONE_HOUR:
            return timedelta(minutes=60)
        if self is ReminderKind.FIVE_MINUTE:
            return timedelta(minutes=5)
        return timedelta(0)

    @property
    def tag_prefix(self) -> str:
        if self is ReminderKind.ONE_HOUR:
            return "task-1h"
        if self is ReminderKind.FIVE_MINUTE:
            return "task-5m"
        return "task-start"


class NotificationPayload(BaseModel):
    """User-visible alert; ``tag`` lets the delivery channel replace duplicates."""

    title: str
    body: str
    icon: str = "🚀"
    tag: Optional[str] = None


def calculate_reminder_at(task: Task, kind: ReminderKind, *, now: datetime) -> datetime:
    """Return the fire instant of ``kind`` for ``task`` in the zone of ``now``.

    The task's date and start time are read as wall-clock values in the zone
    of ``now``, using the offset in force on the task's own date. The offset
    is subtracted on the absolute timeline.
    """

    starts_at = task.starts_at(now.tzinfo)
    if starts_at.tzinfo is None:
        return starts_at - kind.offset
    return (as_utc(starts_at) - kind.offset).astimezone(starts_at.tzinfo)


def is_reminder_pending(task: Task, kind: ReminderKind, *, now: datetime) -> bool:
    """True when the reminder still lies in the future and the task is open."""

    if task.completed:
        return False
    return as_utc(calculate_reminder_at(task, kind, now=now)) > as_utc(now)


def format_clock_time(task: Task) -> str:
    return task.start_time.strftime("%H:%M")


def build_reminder_payload(task: Task, kind: ReminderKind) -> NotificationPayload:
    tag = f"{kind.tag_prefix}-{task.id}"
    if kind is ReminderKind.ONE_HOUR:
        return NotificationPayload(
            title="⏰ Task Reminder - 1 Hour",
            body=f'"{task.title}" starts in 1 hour at {format_clock_time(task)}',
            icon="⏰",
            tag=tag,
        )
    if kind is ReminderKind.FIVE_MINUTE:
        return NotificationPayload(
            title="🚨 Task Alert - 5 Minutes!",
            body=f'"{task.title}" is starting soon! Get ready.',
            icon="🚨",
            tag=tag,
        )
    return NotificationPayload(
        title="▶️ Task Starting Now!",
        body=f'"{task.title}" is scheduled to start now.',
        icon="▶️",
        tag=tag,
    )


def build_task_completed_payload(task: Task) -> NotificationPayload:
    return NotificationPayload(title="✅ Task Completed!", body=f'Great job completing "{task.title}"!', icon="✅")


def build_badge_earned_payload(badge: Badge) -> NotificationPayload:
    return NotificationPayload(title="🏅 New Badge Earned!", body=f"Achievement unlocked: {badge.title}", icon=badge.icon)


def build_daily_completion_payload() -> NotificationPayload:
    return NotificationPayload(
        title="🎉 Daily Goals Achieved!",
        body="Congratulations! You completed all your tasks for today. You earned a new badge!",
        icon="🏆",
    )


__all__ = [
    "NotificationPayload",
    "ReminderKind",
    "build_badge_earned_payload",
    "build_daily_completion_payload",
    "build_reminder_payload",
    "build_task_completed_payload",
    "calculate_reminder_at",
    "format_clock_time",
    "is_reminder_pending",
]
