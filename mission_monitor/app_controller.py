from __future__ import annotations

import logging
import random
from datetime import date, time
from typing import Optional

from mission_monitor.accounts import AccountDirectory
from mission_monitor.backup import cleanup_old_data
from mission_monitor.clock import Clock, local_now
from mission_monitor.config import AppConfig
from mission_monitor.events import EventHub, EventKind
from mission_monitor.gamification import AchievementEngine
from mission_monitor.kpis import StatisticsEngine
from mission_monitor.models import Badge, Priority, Settings, Task, TaskStats, Theme, User
from mission_monitor.notifications.delivery import NotificationCenter, NotificationChannel
from mission_monitor.notifications.scheduler import ReminderScheduler, TimerFactory, start_thread_timer
from mission_monitor.quotes import Quote, random_quote
from mission_monitor.settings import SettingsService
from mission_monitor.state_persistence import PersistenceStore
from mission_monitor.storage import FileStorageBackend
from mission_monitor.task_views import TaskFilter, filter_tasks
from mission_monitor.tasks import TaskLedger, validate_task_input

LOGGER = logging.getLogger(__name__)


class MissionMonitorApp:
    """Wire the core components together and expose the UI event handlers.

    Every handler runs ledger mutation, persistence, statistics, badges and
    reminders in that order.
    """

    def __init__(
        self,
        store: Optional[PersistenceStore] = None,
        *,
        config: Optional[AppConfig] = None,
        clock: Clock = local_now,
        timer_factory: TimerFactory = start_thread_timer,
        banner: Optional[NotificationChannel] = None,
        native: Optional[NotificationChannel] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.store = store or PersistenceStore(FileStorageBackend(self.config.data_dir))
        self.clock = clock
        self.events = EventHub()
        self.accounts = AccountDirectory(self.store, clock=clock)
        self.ledger = TaskLedger(self.store, clock=clock)
        self.statistics = StatisticsEngine(self.ledger, clock=clock)
        self.achievements = AchievementEngine(
            self.store, self.ledger, self.statistics, events=self.events, clock=clock
        )
        self.settings = SettingsService(self.store)
        self.notifications = NotificationCenter(
            banner, native=native, permission_granted=self.config.native_notifications
        )
        self.notifications.subscribe_to(self.events)
        self.reminders = ReminderScheduler(
            self.ledger,
            self.notifications.enqueue,
            timer_factory=timer_factory,
            clock=clock,
            enabled=self._notifications_wanted(),
        )
        self.task_filter = TaskFilter()
        self.rng = rng
        self.initialized = False

    def _notifications_wanted(self) -> bool:
        return self.config.notifications_enabled and self.store.load().settings.notifications_enabled

    def start(self) -> None:
        """Restore derived state after a (re)load: cleanup, badges and reminders."""

        cleanup_old_data(self.store, self.config.cleanup_days, now=self.clock())
        if self.accounts.is_logged_in():
            self.achievements.check_all_badges()
            self.reminders.schedule_all_task_notifications()
        self.initialized = True
        LOGGER.info("Mission Monitor core initialized")

    def on_focus(self) -> int:
        if not self.initialized:
            return 0
        self.poll_notifications()
        return self.reminders.schedule_all_task_notifications()

    def refresh(self) -> list[Badge]:
        if not self.initialized:
            return []
        self.poll_notifications()
        return self.achievements.check_all_badges()

    def poll_notifications(self) -> int:
        """Show reminders fired by timer threads since the last page run."""

        return self.notifications.flush()

    def shutdown(self) -> None:
        self.reminders.clear_all()
        self.initialized = False

    def register(self, username: str, password: str, display_name: str) -> User:
        user = self.accounts.register(username, password, display_name)
        self._after_login()
        return user

    def login(self, username: str, password: str) -> User:
        user = self.accounts.login(username, password)
        self._after_login()
        return user

    def logout(self) -> None:
        self.reminders.clear_all()
        self.accounts.logout()

    def current_user(self) -> Optional[User]:
        return self.accounts.current_user()

    def _after_login(self) -> None:
        self.achievements.check_all_badges()
        self.reminders.schedule_all_task_notifications()

    def add_task(
        self,
        title: str,
        date: date | str,
        start_time: time | str,
        end_time: time | str,
        *,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
    ) -> Task:
        validate_task_input(title, date, start_time, end_time)
        task = self.ledger.add_task(
            title.strip(), date, start_time, end_time, description=description.strip(), priority=priority
        )
        self.reminders.schedule_task_notifications(task)
        self.achievements.check_all_badges()
        return task

    def edit_task(
        self,
        task_id: str,
        title: str,
        date: date | str,
        start_time: time | str,
        end_time: time | str,
        *,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
    ) -> Optional[Task]:
        validate_task_input(title, date, start_time, end_time)
        updated = self.ledger.update_task(
            task_id,
            title=title.strip(),
            description=description.strip(),
            priority=priority,
            date=date,
            start_time=start_time,
            end_time=end_time,
        )
        if updated is None:
            return None

        self.reminders.cancel_task_notifications(task_id)
        self.reminders.schedule_task_notifications(updated)
        return updated

    def complete_task(self, task_id: str) -> Optional[Task]:
        previous = self.ledger.get_task(task_id)
        was_completed = previous is not None and previous.completed
        task = self.ledger.complete_task(task_id)
        if task is None:
            return None

        self.reminders.cancel_task_notifications(task_id)
        if was_completed:
            return task

        self.events.emit(EventKind.TASK_COMPLETED, task=task)
        self.achievements.check_all_badges()
        self.achievements.check_daily_completion_badge()
        return task

    def delete_task(self, task_id: str) -> bool:
        deleted = self.ledger.delete_task(task_id)
        if deleted:
            self.reminders.cancel_task_notifications(task_id)
        return deleted

    def set_filter(self, filter_type: str, value: str) -> TaskFilter:
        self.task_filter = self.task_filter.with_value(filter_type, value)
        return self.task_filter

    def visible_tasks(self) -> list[Task]:
        return filter_tasks(self.ledger.list_tasks(), self.task_filter)

    def list_tasks(self) -> list[Task]:
        return self.ledger.list_tasks()

    def compute_stats(self) -> TaskStats:
        return self.statistics.compute_stats()

    def list_badges(self) -> list[Badge]:
        return self.achievements.list_badges()

    def quote(self) -> Quote:
        """Motivational quote shown in the page header."""

        return random_quote(self.rng)

    def set_theme(self, theme: Theme | str) -> Settings:
        return self.settings.set_theme(theme)

    def toggle_theme(self) -> Settings:
        return self.settings.toggle_theme()

    def set_notifications_enabled(self, enabled: bool) -> Settings:
        settings = self.settings.set_notifications_enabled(enabled)
        self.reminders.enabled = self._notifications_wanted()
        self.reminders.schedule_all_task_notifications()
        return settings


__all__ = ["MissionMonitorApp"]
