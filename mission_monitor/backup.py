from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional

from mission_monitor.clock import local_now
from mission_monitor.constants import DEFAULT_CLEANUP_DAYS
from mission_monitor.errors import AuthError
from mission_monitor.models import Badge, BadgeKind, Task, UserExport
from mission_monitor.state_persistence import PersistenceStore

LOGGER = logging.getLogger(__name__)


def export_user_data(store: PersistenceStore) -> UserExport:
    """Snapshot the active user's profile, tasks, badges and the settings."""

    document = store.load()
    owner = document.current_user
    if owner is None:
        raise AuthError("Log in to export data")

    return UserExport(
        user=document.users.get(owner),
        tasks=[task for task in document.tasks if task.owner_username == owner],
        badges=[badge for badge in document.badges if badge.owner_username == owner],
        settings=document.settings,
    )


def import_user_data(store: PersistenceStore, data: UserExport | Mapping[str, object]) -> bool:
    """Replace the active user's tasks and badges with the imported ones.

    Collections missing from ``data`` are left untouched; settings are merged.
    Imported records are re-owned by the active user.
    """

    imported = data if isinstance(data, UserExport) else UserExport.model_validate(data)
    document = store.load()
    owner = document.current_user
    if owner is None:
        raise AuthError("Log in to import data")

    if "tasks" in imported.model_fields_set:
        kept = [task for task in document.tasks if task.owner_username != owner]
        document.tasks = kept + [task.model_copy(update={"owner_username": owner}) for task in imported.tasks]

    if "badges" in imported.model_fields_set:
        kept_badges = [badge for badge in document.badges if badge.owner_username != owner]
        document.badges = kept_badges + _unique_badges(
            badge.model_copy(update={"owner_username": owner}) for badge in imported.badges
        )

    if imported.settings is not None:
        document.settings = document.settings.model_copy(update=imported.settings.model_dump(exclude_unset=True))

    LOGGER.info("Imported %s task(s) and %s badge(s) for '%s'", len(imported.tasks), len(imported.badges), owner)
    return store.save(document)


def _unique_badges(badges: Iterable[Badge]) -> list[Badge]:
    """Keep the first grant of each badge; ``dailyCompletion`` is kept once per day."""

    seen: set[tuple[BadgeKind, Optional[date]]] = set()
    unique: list[Badge] = []
    for badge in badges:
        day = badge.earned_at.date() if badge.id is BadgeKind.DAILY_COMPLETION else None
        if (badge.id, day) in seen:
            continue
        seen.add((badge.id, day))
        unique.append(badge)
    return unique


def _closed_at(task: Task) -> datetime:
    return task.completed_at or task.created_at


def cleanup_old_data(
    store: PersistenceStore,
    days_to_keep: int = DEFAULT_CLEANUP_DAYS,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """Drop completed tasks closed before the retention window; open tasks always stay."""

    cutoff = (now or local_now()) - timedelta(days=days_to_keep)
    document = store.load()
    remaining = [task for task in document.tasks if not task.completed or _closed_at(task) > cutoff]
    removed = len(document.tasks) - len(remaining)
    if removed == 0:
        return True

    document.tasks = remaining
    LOGGER.info("Removed %s completed task(s) older than %s days", removed, days_to_keep)
    return store.save(document)


__all__ = ["cleanup_old_data", "export_user_data", "import_user_data"]
