from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

import pytest
from fakes import FakeClock, FakeTimerFactory, RecordingChannel, make_task_input

from mission_monitor.models import Task
from mission_monitor.notifications.reminders import (
    ReminderKind,
    build_reminder_payload,
    calculate_reminder_at,
    is_reminder_pending,
)
from mission_monitor.notifications.scheduler import AsyncioTimerFactory, ReminderScheduler, ReminderState
from mission_monitor.tasks import TaskLedger


@pytest.fixture()
def scheduler(
    ledger: TaskLedger, timers: FakeTimerFactory, clock: FakeClock, banner: RecordingChannel
) -> ReminderScheduler:
    return ReminderScheduler(ledger, banner.send, timer_factory=timers, clock=clock)


def _add(ledger: TaskLedger, start: str, end: str, title: str = "Standup") -> Task:
    return ledger.add_task(title, **make_task_input(start=start, end=end))


def test_calculate_reminder_at_uses_clock_zone(ledger: TaskLedger, logged_in: str, clock: FakeClock) -> None:
    task = _add(ledger, "12:00", "13:00")

    assert calculate_reminder_at(task, ReminderKind.ONE_HOUR, now=clock()) == datetime(
        2026, 3, 11, 11, 0, tzinfo=timezone.utc
    )
    assert calculate_reminder_at(task, ReminderKind.FIVE_MINUTE, now=clock()) == datetime(
        2026, 3, 11, 11, 55, tzinfo=timezone.utc
    )
    assert calculate_reminder_at(task, ReminderKind.AT_START, now=clock()) == task.starts_at(timezone.utc)


def test_task_two_hours_ahead_gets_three_reminders(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    task = _add(ledger, "12:00", "13:00")

    assert scheduler.schedule_task_notifications(task) == 3
    assert sorted(timer.delay for timer in timers.timers) == [3600.0, 6900.0, 7200.0]
    assert scheduler.pending_count() == 3


def test_task_thirty_minutes_ahead_skips_passed_reminder(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    task = _add(ledger, "10:30", "11:00")

    assert scheduler.schedule_task_notifications(task) == 2
    assert sorted(timer.delay for timer in timers.timers) == [1500.0, 1800.0]
    assert scheduler.state_of(task.id, ReminderKind.ONE_HOUR) is None


def test_past_or_completed_task_gets_no_reminders(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    past = _add(ledger, "08:00", "09:00")
    future = _add(ledger, "15:00", "16:00")
    done = ledger.complete_task(future.id)
    assert done is not None

    assert scheduler.schedule_task_notifications(past) == 0
    assert scheduler.schedule_task_notifications(done) == 0
    assert timers.timers == []


def test_rescheduling_replaces_pending_timers(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    task = _add(ledger, "12:00", "13:00")
    scheduler.schedule_task_notifications(task)
    scheduler.schedule_task_notifications(task)

    assert len(timers.timers) == 6
    assert len(timers.active) == 3
    assert scheduler.pending_count() == 3


def test_cancel_marks_reminders_cancelled(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    task = _add(ledger, "12:00", "13:00")
    scheduler.schedule_task_notifications(task)

    assert scheduler.cancel_task_notifications(task.id) == 3
    assert timers.active == []
    assert scheduler.state_of(task.id, ReminderKind.AT_START) is ReminderState.CANCELLED
    assert scheduler.cancel_task_notifications(task.id) == 0


def test_fired_reminder_is_delivered(
    scheduler: ReminderScheduler,
    ledger: TaskLedger,
    timers: FakeTimerFactory,
    banner: RecordingChannel,
    logged_in: str,
) -> None:
    task = _add(ledger, "10:30", "11:00", title="Deploy")
    scheduler.schedule_task_notifications(task)
    five_minute = min(timers.timers, key=lambda timer: timer.delay)

    five_minute.fire()

    assert banner.sent == [build_reminder_payload(task, ReminderKind.FIVE_MINUTE)]
    assert banner.sent[0].tag == f"task-5m-{task.id}"
    assert scheduler.state_of(task.id, ReminderKind.FIVE_MINUTE) is ReminderState.FIRED
    assert scheduler.pending_count() == 1


def test_cancelled_timer_callback_does_not_deliver(
    scheduler: ReminderScheduler,
    ledger: TaskLedger,
    timers: FakeTimerFactory,
    banner: RecordingChannel,
    logged_in: str,
) -> None:
    task = _add(ledger, "12:00", "13:00")
    scheduler.schedule_task_notifications(task)
    stale = timers.timers[0]
    scheduler.cancel_task_notifications(task.id)

    stale.callback()

    assert banner.sent == []


def test_delivery_failure_is_logged(
    ledger: TaskLedger,
    timers: FakeTimerFactory,
    clock: FakeClock,
    logged_in: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def broken(payload: object) -> None:
        raise RuntimeError("channel down")

    scheduler = ReminderScheduler(ledger, broken, timer_factory=timers, clock=clock)
    scheduler.schedule_task_notifications(_add(ledger, "12:00", "13:00"))

    with caplog.at_level(logging.ERROR):
        timers.timers[0].fire()

    assert "Delivering reminder" in caplog.text


def test_schedule_all_covers_open_tasks_only(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    _add(ledger, "12:00", "13:00")
    done = _add(ledger, "14:00", "15:00")
    ledger.complete_task(done.id)
    ledger.add_task("Tomorrow", **make_task_input(1))

    assert scheduler.schedule_all_task_notifications() == 6
    assert scheduler.pending_reminders(done.id) == []

    assert scheduler.schedule_all_task_notifications() == 6
    assert len(timers.active) == 6


def test_disabled_scheduler_schedules_nothing(
    scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str
) -> None:
    task = _add(ledger, "12:00", "13:00")
    scheduler.enabled = False

    assert scheduler.schedule_task_notifications(task) == 0
    assert scheduler.schedule_all_task_notifications() == 0
    assert scheduler.notification_stats() == {"enabled": False, "scheduled_count": 0}


def test_clear_all(scheduler: ReminderScheduler, ledger: TaskLedger, timers: FakeTimerFactory, logged_in: str) -> None:
    scheduler.schedule_task_notifications(_add(ledger, "12:00", "13:00"))
    scheduler.schedule_task_notifications(_add(ledger, "14:00", "15:00"))

    assert scheduler.clear_all() == 6
    assert timers.active == []


def test_is_reminder_pending(ledger: TaskLedger, logged_in: str, clock: FakeClock) -> None:
    task = _add(ledger, "10:30", "11:00")

    assert is_reminder_pending(task, ReminderKind.ONE_HOUR, now=clock()) is False
    assert is_reminder_pending(task, ReminderKind.AT_START, now=clock()) is True


def test_asyncio_timer_factory_fires_on_loop() -> None:
    loop = asyncio.new_event_loop()
    try:
        fired: list[str] = []
        factory = AsyncioTimerFactory(loop)
        factory(0, lambda: fired.append("soon"))
        cancelled = factory(0, lambda: fired.append("never"))
        cancelled.cancel()

        loop.run_until_complete(asyncio.sleep(0.01))

        assert fired == ["soon"]
    finally:
        loop.close()


@pytest.fixture()
def berlin_system_zone(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    if not hasattr(time, "tzset"):
        pytest.skip("system time zone cannot be switched on this platform")
    monkeypatch.setenv("TZ", "Europe/Berlin")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def _task_after_dst_end(ledger: TaskLedger, clock: FakeClock) -> Task:
    # 2026-10-25 03:00 CEST falls back to 02:00 CET
    return ledger.add_task("Review", **make_task_input(2, base=clock.now))


def test_reminders_use_offset_of_task_date_in_zone(
    ledger: TaskLedger, timers: FakeTimerFactory, clock: FakeClock, banner: RecordingChannel, logged_in: str
) -> None:
    clock.now = datetime(2026, 10, 24, 12, 0, tzinfo=ZoneInfo("Europe/Berlin"))
    task = _task_after_dst_end(ledger, clock)
    scheduler = ReminderScheduler(ledger, banner.send, timer_factory=timers, clock=clock)

    starts = calculate_reminder_at(task, ReminderKind.AT_START, now=clock())
    assert starts == datetime(2026, 10, 26, 8, 0, tzinfo=timezone.utc)

    scheduler.schedule_task_notifications(task)
    assert sorted(timer.delay for timer in timers.timers) == [162000.0, 165300.0, 165600.0]


def test_reminders_follow_system_zone_rules(
    berlin_system_zone: None,
    ledger: TaskLedger,
    timers: FakeTimerFactory,
    clock: FakeClock,
    banner: RecordingChannel,
    logged_in: str,
) -> None:
    clock.now = datetime(2026, 10, 24, 12, 0).astimezone()
    assert clock.now.utcoffset() is not None and clock.now.utcoffset().total_seconds() == 7200
    task = _task_after_dst_end(ledger, clock)
    scheduler = ReminderScheduler(ledger, banner.send, timer_factory=timers, clock=clock)

    starts = calculate_reminder_at(task, ReminderKind.AT_START, now=clock())
    assert starts == datetime(2026, 10, 26, 8, 0, tzinfo=timezone.utc)
    assert starts.utcoffset().total_seconds() == 3600

    scheduler.schedule_task_notifications(task)
    assert sorted(timer.delay for timer in timers.timers) == [162000.0, 165300.0, 165600.0]
