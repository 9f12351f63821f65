from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytest
from fakes import FakeClock, make_task_input

from mission_monitor.events import CoreEvent, EventHub, EventKind
from mission_monitor.gamification import (
    BADGE_CATALOG,
    AchievementEngine,
    has_completion_streak,
    is_recent_badge,
)
from mission_monitor.kpis import StatisticsEngine
from mission_monitor.models import BadgeKind, Task
from mission_monitor.state_persistence import PersistenceStore
from mission_monitor.tasks import TaskLedger

TODAY = date(2026, 3, 11)


def _task(day: date, *, completed: bool) -> Task:
    return Task(
        owner_username="ada",
        title=f"Task on {day.isoformat()}",
        date=day,
        start_time=time(9),
        end_time=time(10),
        completed=completed,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture()
def events() -> EventHub:
    return EventHub()


@pytest.fixture()
def engine(store: PersistenceStore, ledger: TaskLedger, clock: FakeClock, events: EventHub) -> AchievementEngine:
    return AchievementEngine(store, ledger, StatisticsEngine(ledger, clock=clock), events=events, clock=clock)


def _complete_new_task(
    ledger: TaskLedger, day_offset: int = 0, *, base: Optional[datetime] = None, priority: str = "medium"
) -> Task:
    task = ledger.add_task("Task", priority=priority, **make_task_input(day_offset, base=base))
    completed = ledger.complete_task(task.id)
    assert completed is not None
    return completed


def _badge_ids(engine: AchievementEngine) -> list[BadgeKind]:
    return [badge.id for badge in engine.list_badges()]


def test_catalog_covers_every_badge_kind() -> None:
    assert set(BADGE_CATALOG) == set(BadgeKind)


def test_streak_ignores_days_without_tasks() -> None:
    tasks = [
        _task(TODAY - timedelta(days=2), completed=True),
        _task(TODAY - timedelta(days=1), completed=True),
        _task(TODAY, completed=True),
    ]

    assert has_completion_streak(tasks, 3, TODAY) is True
    assert has_completion_streak(tasks, 4, TODAY) is False


def test_streak_is_broken_by_incomplete_day() -> None:
    tasks = [
        _task(TODAY - timedelta(days=4), completed=True),
        _task(TODAY - timedelta(days=3), completed=False),
        _task(TODAY - timedelta(days=1), completed=True),
        _task(TODAY, completed=True),
    ]

    assert has_completion_streak(tasks, 2, TODAY) is True
    assert has_completion_streak(tasks, 3, TODAY) is False


def test_streak_stops_at_today_with_open_task() -> None:
    tasks = [_task(TODAY - timedelta(days=1), completed=True), _task(TODAY, completed=False)]

    assert has_completion_streak(tasks, 1, TODAY) is False


def test_first_completion_grants_first_task_badge(
    engine: AchievementEngine, ledger: TaskLedger, logged_in: str
) -> None:
    ledger.add_task("Open", **make_task_input(1))
    _complete_new_task(ledger)

    earned = engine.check_all_badges()

    assert BadgeKind.FIRST_TASK in [badge.id for badge in earned]
    assert all(badge.owner_username == logged_in for badge in earned)


def test_check_all_badges_is_monotonic(engine: AchievementEngine, ledger: TaskLedger, logged_in: str) -> None:
    _complete_new_task(ledger)
    engine.check_all_badges()
    before = _badge_ids(engine)

    assert engine.check_all_badges() == []
    assert _badge_ids(engine) == before


def test_daily_completion_badge_once_per_day(
    engine: AchievementEngine, ledger: TaskLedger, clock: FakeClock, logged_in: str
) -> None:
    _complete_new_task(ledger)
    engine.check_all_badges()
    engine.check_all_badges()
    assert engine.check_daily_completion_badge() is None

    clock.advance(days=1)
    _complete_new_task(ledger, base=clock.now)
    engine.check_all_badges()

    daily = [badge for badge in engine.list_badges() if badge.id is BadgeKind.DAILY_COMPLETION]
    assert len(daily) == 2
    assert daily[0].earned_at.date() != daily[1].earned_at.date()


def test_daily_completion_requires_all_tasks_of_today(
    engine: AchievementEngine, ledger: TaskLedger, logged_in: str
) -> None:
    _complete_new_task(ledger)
    ledger.add_task("Still open", **make_task_input())

    assert engine.check_daily_completion_badge() is None


def test_streak_badge_after_three_completed_days(
    engine: AchievementEngine, ledger: TaskLedger, logged_in: str
) -> None:
    for offset in (-2, -1, 0):
        _complete_new_task(ledger, offset)

    engine.check_all_badges()

    assert BadgeKind.STREAK_3 in _badge_ids(engine)
    assert BadgeKind.STREAK_7 not in _badge_ids(engine)


def test_early_bird_and_night_owl(
    engine: AchievementEngine, ledger: TaskLedger, clock: FakeClock, logged_in: str
) -> None:
    clock.now = datetime(2026, 3, 11, 6, 30, tzinfo=timezone.utc)
    _complete_new_task(ledger)
    engine.check_all_badges()
    assert BadgeKind.EARLY_BIRD in _badge_ids(engine)
    assert BadgeKind.NIGHT_OWL not in _badge_ids(engine)

    clock.now = datetime(2026, 3, 11, 22, 5, tzinfo=timezone.utc)
    _complete_new_task(ledger)
    engine.check_all_badges()
    assert BadgeKind.NIGHT_OWL in _badge_ids(engine)


def test_weekend_warrior_needs_both_days(
    engine: AchievementEngine, ledger: TaskLedger, logged_in: str
) -> None:
    # 2026-03-07 is a Saturday
    _complete_new_task(ledger, -4)
    engine.check_all_badges()
    assert BadgeKind.WEEKEND_WARRIOR not in _badge_ids(engine)

    _complete_new_task(ledger, -3)
    engine.check_all_badges()
    assert BadgeKind.WEEKEND_WARRIOR in _badge_ids(engine)


def test_prioritizer_counts_high_priority_completions(
    engine: AchievementEngine, ledger: TaskLedger, logged_in: str
) -> None:
    for _ in range(9):
        _complete_new_task(ledger, priority="high")
    _complete_new_task(ledger, priority="low")
    engine.check_all_badges()
    assert BadgeKind.PRIORITIZER not in _badge_ids(engine)

    _complete_new_task(ledger, priority="high")
    engine.check_all_badges()
    assert BadgeKind.PRIORITIZER in _badge_ids(engine)


def test_organizer_counts_future_tasks(engine: AchievementEngine, ledger: TaskLedger, logged_in: str) -> None:
    for _ in range(19):
        ledger.add_task("Planned", **make_task_input(3))
    ledger.add_task("Today", **make_task_input())
    engine.check_all_badges()
    assert BadgeKind.ORGANIZER not in _badge_ids(engine)

    ledger.add_task("Planned", **make_task_input(10))
    engine.check_all_badges()
    assert BadgeKind.ORGANIZER in _badge_ids(engine)


def test_badges_emit_events(
    engine: AchievementEngine, ledger: TaskLedger, events: EventHub, logged_in: str
) -> None:
    received: list[CoreEvent] = []
    events.subscribe(EventKind.BADGE_EARNED, received.append)
    goals: list[CoreEvent] = []
    events.subscribe(EventKind.DAILY_GOAL_ACHIEVED, goals.append)

    _complete_new_task(ledger)
    earned = engine.check_all_badges()

    assert [event.get("badge") for event in received] == earned
    assert len(goals) == 1
    assert goals[0].get("day") == TODAY


def test_no_badges_without_session(engine: AchievementEngine) -> None:
    assert engine.check_all_badges() == []
    assert engine.check_daily_completion_badge() is None
    assert engine.list_badges() == []


def test_is_recent_badge(engine: AchievementEngine, ledger: TaskLedger, clock: FakeClock, logged_in: str) -> None:
    _complete_new_task(ledger)
    badge = engine.check_all_badges()[0]

    assert is_recent_badge(badge, clock.advance(hours=23)) is True
    assert is_recent_badge(badge, clock.advance(hours=2)) is False
