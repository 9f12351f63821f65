"""Read-only helpers that shape task lists for rendering."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Literal, Sequence

from pydantic import BaseModel

from mission_monitor.clock import as_utc
from mission_monitor.constants import ROLLING_WINDOW_DAYS
from mission_monitor.errors import ValidationError
from mission_monitor.models import Priority, Task

PriorityFilter = Literal["all", "high", "medium", "low"]
StatusFilter = Literal["all", "completed", "pending"]


class TaskFilter(BaseModel):
    priority: PriorityFilter = "all"
    status: StatusFilter = "all"

    def with_value(self, filter_type: str, value: str) -> "TaskFilter":
        if filter_type not in ("priority", "status"):
            raise ValidationError(f"Unknown filter: {filter_type}")
        try:
            return TaskFilter.model_validate({**self.model_dump(), filter_type: value})
        except ValueError as exc:
            raise ValidationError(f"Invalid {filter_type} filter: {value}") from exc


def filter_tasks(tasks: Sequence[Task], task_filter: TaskFilter) -> List[Task]:
    filtered = list(tasks)
    if task_filter.priority != "all":
        wanted = Priority(task_filter.priority)
        filtered = [task for task in filtered if task.priority is wanted]
    if task_filter.status == "completed":
        filtered = [task for task in filtered if task.completed]
    elif task_filter.status == "pending":
        filtered = [task for task in filtered if not task.completed]
    return filtered


def rolling_window_tasks(tasks: Sequence[Task], today: date, *, days: int = ROLLING_WINDOW_DAYS) -> List[Task]:
    """Tasks dated within ``days`` before or after ``today`` (inclusive)."""

    start = today - timedelta(days=days)
    end = today + timedelta(days=days)
    return [task for task in tasks if start <= task.date <= end]


def group_tasks_by_date(tasks: Sequence[Task]) -> Dict[date, List[Task]]:
    """Group by planned date; dates ascending, tasks ordered by start time."""

    groups: Dict[date, List[Task]] = {}
    for task in tasks:
        groups.setdefault(task.date, []).append(task)
    return {day: sorted(groups[day], key=lambda task: task.start_time) for day in sorted(groups)}


def is_task_overdue(task: Task, now: datetime) -> bool:
    if task.completed:
        return False
    return as_utc(task.ends_at(now.tzinfo)) < as_utc(now)


def date_label(day: date, today: date) -> str:
    label = f"{day.strftime('%A, %B')} {day.day}, {day.year}"
    if day == today:
        return f"{label} (Today)"
    if day < today:
        return f"{label} (Past)"
    return f"{label} (Upcoming)"


__all__ = [
    "TaskFilter",
    "date_label",
    "filter_tasks",
    "group_tasks_by_date",
    "is_task_overdue",
    "rolling_window_tasks",
]
