from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mission_monitor.clock import combine_wall_time
from mission_monitor.constants import DEFAULT_NOTIFICATIONS_ENABLED


class _StoredModel(BaseModel):
    """Base for models persisted in the document; JSON keys are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Priority(str, Enum):
    """Urgency of a task."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        if self is Priority.HIGH:
            return "High Priority"
        if self is Priority.MEDIUM:
            return "Medium Priority"
        return "Low Priority"

    @property
    def icon(self) -> str:
        if self is Priority.HIGH:
            return "🔴"
        if self is Priority.MEDIUM:
            return "🟡"
        return "🟢"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class BadgeKind(str, Enum):
    """Identifiers of the fixed badge catalog."""

    FIRST_TASK = "firstTask"
    DAILY_COMPLETION = "dailyCompletion"
    STREAK_3 = "streak3"
    STREAK_7 = "streak7"
    EARLY_BIRD = "earlyBird"
    NIGHT_OWL = "nightOwl"
    TASK_MASTER = "taskMaster"
    PRIORITIZER = "prioritizer"
    ORGANIZER = "organizer"
    WEEKEND_WARRIOR = "weekendWarrior"


class BadgeCategory(str, Enum):
    MILESTONE = "milestone"
    DAILY = "daily"
    STREAK = "streak"
    TIME = "time"
    PRIORITY = "priority"
    PLANNING = "planning"
    WEEKEND = "weekend"


class User(_StoredModel):
    """Registered account. ``password_hash`` is a demo value, not a secure digest."""

    username: str
    display_name: str
    password_hash: str
    created_at: datetime


class Task(_StoredModel):
    """A planned task owned by one user."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_username: str
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    date: date
    start_time: time
    end_time: time
    completed: bool = False
    created_at: datetime
    completed_at: Optional[datetime] = None

    def starts_at(self, zone: Optional[tzinfo] = None) -> datetime:
        """Combine ``date`` and ``start_time`` into one instant in ``zone``."""

        return combine_wall_time(self.date, self.start_time, zone)

    def ends_at(self, zone: Optional[tzinfo] = None) -> datetime:
        return combine_wall_time(self.date, self.end_time, zone)


class Badge(_StoredModel):
    """Achievement granted to a user by the achievement engine."""

    id: BadgeKind
    owner_username: str
    title: str
    description: str
    icon: str
    category: BadgeCategory
    earned_at: datetime


class Settings(_StoredModel):
    """Process-wide preferences, not scoped to a user."""

    theme: Theme = Theme.LIGHT
    notifications_enabled: bool = Field(default=DEFAULT_NOTIFICATIONS_ENABLED, alias="notifications")


class StoredDocument(_StoredModel):
    """The single persisted document; unit of atomicity for every write."""

    users: dict[str, User] = Field(default_factory=dict)
    current_user: Optional[str] = None
    tasks: list[Task] = Field(default_factory=list)
    badges: list[Badge] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)


class PriorityCounts(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class DayStats(BaseModel):
    total: int = 0
    completed: int = 0
    pending: int = 0


class TaskStats(BaseModel):
    """Aggregate counts derived from the active user's tasks."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    today: DayStats = Field(default_factory=DayStats)
    by_priority: PriorityCounts = Field(default_factory=PriorityCounts)


class DailyCompletionEntry(BaseModel):
    """Per-day task and completion counts for charts."""

    date: date
    total: int = 0
    completed: int = 0


class UserExport(_StoredModel):
    """Snapshot of the active user's data for backup and transfer."""

    user: Optional[User] = None
    tasks: list[Task] = Field(default_factory=list)
    badges: list[Badge] = Field(default_factory=list)
    settings: Optional[Settings] = None


__all__ = [
    "Badge",
    "BadgeCategory",
    "BadgeKind",
    "DailyCompletionEntry",
    "DayStats",
    "Priority",
    "PriorityCounts",
    "Settings",
    "StoredDocument",
    "Task",
    "TaskStats",
    "Theme",
    "User",
    "UserExport",
]
