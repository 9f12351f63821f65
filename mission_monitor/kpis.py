from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Sequence

from mission_monitor.clock import Clock, local_now
from mission_monitor.models import DailyCompletionEntry, DayStats, Priority, PriorityCounts, Task, TaskStats
from mission_monitor.tasks import TaskLedger


def compute_stats(tasks: Sequence[Task], today: date) -> TaskStats:
    """Aggregate counts over ``tasks``; "today" matches the task's planned date."""

    completed = sum(1 for task in tasks if task.completed)
    today_tasks = [task for task in tasks if task.date == today]
    today_completed = sum(1 for task in today_tasks if task.completed)

    return TaskStats(
        total=len(tasks),
        completed=completed,
        pending=len(tasks) - completed,
        today=DayStats(
            total=len(today_tasks),
            completed=today_completed,
            pending=len(today_tasks) - today_completed,
        ),
        by_priority=PriorityCounts(
            high=sum(1 for task in tasks if task.priority is Priority.HIGH),
            medium=sum(1 for task in tasks if task.priority is Priority.MEDIUM),
            low=sum(1 for task in tasks if task.priority is Priority.LOW),
        ),
    )


def daily_completion_counts(tasks: Sequence[Task], today: date, *, days: int = 7) -> List[DailyCompletionEntry]:
    """Planned and completed task counts per day for the trailing window, oldest first."""

    totals: Dict[date, int] = defaultdict(int)
    completions: Dict[date, int] = defaultdict(int)
    for task in tasks:
        totals[task.date] += 1
        if task.completed:
            completions[task.date] += 1

    data: List[DailyCompletionEntry] = []
    for offset in range(max(1, days) - 1, -1, -1):
        day = today - timedelta(days=offset)
        data.append(DailyCompletionEntry(date=day, total=totals.get(day, 0), completed=completions.get(day, 0)))
    return data


class StatisticsEngine:
    """Derive statistics from the ledger's current task list."""

    def __init__(self, ledger: TaskLedger, *, clock: Clock = local_now) -> None:
        self.ledger = ledger
        self.clock = clock

    def compute_stats(self) -> TaskStats:
        return compute_stats(self.ledger.list_tasks(), self.clock().date())

    def daily_completion_counts(self, *, days: int = 7) -> List[DailyCompletionEntry]:
        return daily_completion_counts(self.ledger.list_tasks(), self.clock().date(), days=days)


__all__ = ["StatisticsEngine", "compute_stats", "daily_completion_counts"]
