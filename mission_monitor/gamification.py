from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Optional, Sequence

from mission_monitor.clock import Clock, local_now
from mission_monitor.constants import RECENT_BADGE_HOURS, STREAK_LOOKBACK_DAYS
from mission_monitor.events import EventHub, EventKind
from mission_monitor.kpis import StatisticsEngine
from mission_monitor.models import Badge, BadgeCategory, BadgeKind, Priority, StoredDocument, Task, TaskStats
from mission_monitor.state_persistence import PersistenceStore
from mission_monitor.tasks import TaskLedger

LOGGER = logging.getLogger(__name__)

FIRST_TASK_THRESHOLD = 1
TASK_MASTER_THRESHOLD = 50
PRIORITIZER_THRESHOLD = 10
ORGANIZER_THRESHOLD = 20
EARLY_BIRD_HOUR = 7
NIGHT_OWL_HOUR = 22
SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class BadgeDefinition:
    kind: BadgeKind
    title: str
    description: str
    icon: str
    category: BadgeCategory


BADGE_CATALOG: Dict[BadgeKind, BadgeDefinition] = {
    definition.kind: definition
    for definition in (
        BadgeDefinition(BadgeKind.FIRST_TASK, "Getting Started", "Complete your first task", "🎯", BadgeCategory.MILESTONE),
        BadgeDefinition(
            BadgeKind.DAILY_COMPLETION,
            "Daily Champion",
            "Complete all tasks in a single day",
            "🏆",
            BadgeCategory.DAILY,
        ),
        BadgeDefinition(
            BadgeKind.STREAK_3, "On Fire", "Complete all tasks for 3 consecutive days", "🔥", BadgeCategory.STREAK
        ),
        BadgeDefinition(
            BadgeKind.STREAK_7, "Unstoppable", "Complete all tasks for 7 consecutive days", "⚡", BadgeCategory.STREAK
        ),
        BadgeDefinition(BadgeKind.EARLY_BIRD, "Early Bird", "Complete a task before 7 AM", "🐦", BadgeCategory.TIME),
        BadgeDefinition(BadgeKind.NIGHT_OWL, "Night Owl", "Complete a task after 10 PM", "🦉", BadgeCategory.TIME),
        BadgeDefinition(BadgeKind.TASK_MASTER, "Task Master", "Complete 50 tasks total", "🎓", BadgeCategory.MILESTONE),
        BadgeDefinition(
            BadgeKind.PRIORITIZER, "Priority Master", "Complete 10 high-priority tasks", "🎭", BadgeCategory.PRIORITY
        ),
        BadgeDefinition(
            BadgeKind.ORGANIZER, "Super Organizer", "Have 20 tasks scheduled in advance", "📋", BadgeCategory.PLANNING
        ),
        BadgeDefinition(
            BadgeKind.WEEKEND_WARRIOR,
            "Weekend Warrior",
            "Complete tasks on both Saturday and Sunday",
            "🏋️",
            BadgeCategory.WEEKEND,
        ),
    )
}


def has_completion_streak(tasks: Sequence[Task], required_days: int, today: date) -> bool:
    """Return True when the latest ``required_days`` planned days were fully completed.

    Walks backward from ``today`` for up to a year. Days without tasks are
    neutral: they neither count nor break the streak. The first day with an
    incomplete task ends the scan.
    """

    tasks_by_day: Dict[date, list[Task]] = {}
    for task in tasks:
        tasks_by_day.setdefault(task.date, []).append(task)

    streak = 0
    for offset in range(STREAK_LOOKBACK_DAYS):
        day_tasks = tasks_by_day.get(today - timedelta(days=offset))
        if not day_tasks:
            continue
        if not all(task.completed for task in day_tasks):
            return False
        streak += 1
        if streak >= required_days:
            return True
    return False


def all_tasks_completed_on(tasks: Sequence[Task], day: date) -> bool:
    day_tasks = [task for task in tasks if task.date == day]
    return bool(day_tasks) and all(task.completed for task in day_tasks)


def completed_before_hour(tasks: Sequence[Task], hour: int) -> bool:
    return any(task.completed and task.completed_at is not None and task.completed_at.hour < hour for task in tasks)


def completed_from_hour(tasks: Sequence[Task], hour: int) -> bool:
    return any(task.completed and task.completed_at is not None and task.completed_at.hour >= hour for task in tasks)


def count_completed(tasks: Sequence[Task], *, priority: Optional[Priority] = None) -> int:
    return sum(1 for task in tasks if task.completed and (priority is None or task.priority is priority))


def count_future_tasks(tasks: Sequence[Task], today: date) -> int:
    return sum(1 for task in tasks if task.date > today)


def completed_on_both_weekend_days(tasks: Sequence[Task]) -> bool:
    weekdays = {task.date.weekday() for task in tasks if task.completed}
    return SATURDAY in weekdays and SUNDAY in weekdays


def evaluate_badge(kind: BadgeKind, stats: TaskStats, tasks: Sequence[Task], today: date) -> bool:
    """Evaluate the condition of one catalog entry."""

    if kind is BadgeKind.FIRST_TASK:
        return stats.completed >= FIRST_TASK_THRESHOLD
    if kind is BadgeKind.DAILY_COMPLETION:
        return all_tasks_completed_on(tasks, today)
    if kind is BadgeKind.STREAK_3:
        return has_completion_streak(tasks, 3, today)
    if kind is BadgeKind.STREAK_7:
        return has_completion_streak(tasks, 7, today)
    if kind is BadgeKind.EARLY_BIRD:
        return completed_before_hour(tasks, EARLY_BIRD_HOUR)
    if kind is BadgeKind.NIGHT_OWL:
        return completed_from_hour(tasks, NIGHT_OWL_HOUR)
    if kind is BadgeKind.TASK_MASTER:
        return stats.completed >= TASK_MASTER_THRESHOLD
    if kind is BadgeKind.PRIORITIZER:
        return count_completed(tasks, priority=Priority.HIGH) >= PRIORITIZER_THRESHOLD
    if kind is BadgeKind.ORGANIZER:
        return count_future_tasks(tasks, today) >= ORGANIZER_THRESHOLD
    if kind is BadgeKind.WEEKEND_WARRIOR:
        return completed_on_both_weekend_days(tasks)
    raise ValueError(f"Unknown badge kind: {kind!r}")


def is_recent_badge(badge: Badge, now: datetime) -> bool:
    return now - badge.earned_at < timedelta(hours=RECENT_BADGE_HOURS)


def _owned_badges(document: StoredDocument) -> list[Badge]:
    if document.current_user is None:
        return []
    return [badge for badge in document.badges if badge.owner_username == document.current_user]


class AchievementEngine:
    """Grant catalog badges to the active user.

    Each badge is granted at most once per user, except ``dailyCompletion``
    which may be granted once per calendar day.
    """

    def __init__(
        self,
        store: PersistenceStore,
        ledger: TaskLedger,
        statistics: StatisticsEngine,
        *,
        events: Optional[EventHub] = None,
        clock: Clock = local_now,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.statistics = statistics
        self.events = events or EventHub()
        self.clock = clock

    def list_badges(self) -> list[Badge]:
        return _owned_badges(self.store.load())

    def check_all_badges(self) -> list[Badge]:
        document = self.store.load()
        if document.current_user is None:
            return []

        tasks = self.ledger.list_tasks()
        stats = self.statistics.compute_stats()
        today = self.clock().date()
        granted_ids = {badge.id for badge in _owned_badges(document)}

        earned: list[Badge] = []
        for kind, definition in BADGE_CATALOG.items():
            if kind is BadgeKind.DAILY_COMPLETION or kind in granted_ids:
                continue
            if evaluate_badge(kind, stats, tasks, today):
                earned.append(self._new_badge(definition, document.current_user))

        if earned:
            document.badges.extend(earned)
            if not self.store.save(document):
                LOGGER.warning("Could not persist %s earned badge(s)", len(earned))
                return []
            for badge in earned:
                LOGGER.info("Badge earned by '%s': %s", badge.owner_username, badge.title)
                self.events.emit(EventKind.BADGE_EARNED, badge=badge)

        daily_badge = self.check_daily_completion_badge()
        if daily_badge is not None:
            earned.append(daily_badge)
        return earned

    def check_daily_completion_badge(self) -> Optional[Badge]:
        """Grant today's ``dailyCompletion`` badge once every task dated today is done."""

        document = self.store.load()
        if document.current_user is None:
            return None

        today = self.clock().date()
        if not all_tasks_completed_on(self.ledger.list_tasks(), today):
            return None

        for badge in _owned_badges(document):
            if badge.id is BadgeKind.DAILY_COMPLETION and badge.earned_at.date() == today:
                return None

        badge = self._new_badge(BADGE_CATALOG[BadgeKind.DAILY_COMPLETION], document.current_user)
        document.badges.append(badge)
        if not self.store.save(document):
            LOGGER.warning("Could not persist daily completion badge for %s", today.isoformat())
            return None

        LOGGER.info("Daily goals achieved by '%s' on %s", badge.owner_username, today.isoformat())
        self.events.emit(EventKind.BADGE_EARNED, badge=badge)
        self.events.emit(EventKind.DAILY_GOAL_ACHIEVED, badge=badge, day=today)
        return badge

    def _new_badge(self, definition: BadgeDefinition, owner: str) -> Badge:
        return Badge(
            id=definition.kind,
            owner_username=owner,
            title=definition.title,
            description=definition.description,
            icon=definition.icon,
            category=definition.category,
            earned_at=self.clock(),
        )


__all__ = [
    "AchievementEngine",
    "BADGE_CATALOG",
    "BadgeDefinition",
    "all_tasks_completed_on",
    "completed_before_hour",
    "completed_from_hour",
    "completed_on_both_weekend_days",
    "count_completed",
    "count_future_tasks",
    "evaluate_badge",
    "has_completion_streak",
    "is_recent_badge",
]
