from __future__ import annotations

import logging
from datetime import date, time
from typing import Callable, Final, Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from mission_monitor.clock import Clock, local_now
from mission_monitor.errors import AuthError, ValidationError
from mission_monitor.models import Priority, StoredDocument, Task
from mission_monitor.state_persistence import PersistenceStore

LOGGER = logging.getLogger(__name__)

_UNSET: Final = object()


def _generate_id() -> str:
    return str(uuid4())


def _build_task(values: dict[str, object]) -> Task:
    try:
        return Task.model_validate(values)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


def _parse_time(value: time | str) -> Optional[time]:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def validate_task_input(
    title: str,
    task_date: date | str | None,
    start_time: time | str | None,
    end_time: time | str | None,
) -> None:
    """Check the required form fields before a task reaches the ledger."""

    if not (title or "").strip() or not task_date or not start_time or not end_time:
        raise ValidationError("Please fill in all required fields")

    start = _parse_time(start_time)
    end = _parse_time(end_time)
    if start is None or end is None:
        raise ValidationError("Times must use the HH:MM format")
    if start >= end:
        raise ValidationError("End time must be after start time")


class TaskLedger:
    """CRUD over task records scoped to the active session.

    Reads filter by the session user. Updates and deletes address tasks by id
    only, without re-checking ownership.
    """

    def __init__(
        self,
        store: PersistenceStore,
        *,
        clock: Clock = local_now,
        id_factory: Callable[[], str] = _generate_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

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
        document = self.store.load()
        if document.current_user is None:
            raise AuthError("Log in to add tasks")

        task = _build_task(
            {
                "id": self.id_factory(),
                "owner_username": document.current_user,
                "title": title,
                "description": description or "",
                "priority": priority,
                "date": date,
                "start_time": start_time,
                "end_time": end_time,
                "completed": False,
                "created_at": self.clock(),
            }
        )
        document.tasks.append(task)
        self.store.save(document)
        LOGGER.debug("Added task %s for '%s'", task.id, task.owner_username)
        return task

    def list_tasks(self) -> list[Task]:
        document = self.store.load()
        return _owned_tasks(document)

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        return None

    def update_task(
        self,
        task_id: str,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[Priority | str] = None,
        date: Optional[date | str] = None,
        start_time: Optional[time | str] = None,
        end_time: Optional[time | str] = None,
        completed: Optional[bool] = None,
        completed_at: object = _UNSET,
    ) -> Optional[Task]:
        document = self.store.load()
        for index, task in enumerate(document.tasks):
            if task.id != task_id:
                continue

            updates: dict[str, object] = {}
            if title is not None:
                updates["title"] = title
            if description is not None:
                updates["description"] = description
            if priority is not None:
                updates["priority"] = priority
            if date is not None:
                updates["date"] = date
            if start_time is not None:
                updates["start_time"] = start_time
            if end_time is not None:
                updates["end_time"] = end_time
            if completed_at is not _UNSET:
                updates["completed_at"] = completed_at
            if completed is not None:
                updates["completed"] = bool(completed)
                # completed_at is set exactly when the task is completed
                if not completed:
                    updates["completed_at"] = None
                elif updates.get("completed_at", task.completed_at) is None:
                    updates["completed_at"] = self.clock()

            updated = _build_task({**task.model_dump(), **updates})
            document.tasks[index] = updated
            self.store.save(document)
            return updated

        return None

    def complete_task(self, task_id: str) -> Optional[Task]:
        """Mark a task completed; an already completed task keeps its first ``completed_at``."""

        document = self.store.load()
        for task in document.tasks:
            if task.id == task_id and task.completed and task.completed_at is not None:
                return task

        return self.update_task(task_id, completed=True, completed_at=self.clock())

    def delete_task(self, task_id: str) -> bool:
        document = self.store.load()
        remaining = [task for task in document.tasks if task.id != task_id]
        if len(remaining) == len(document.tasks):
            return False

        document.tasks = remaining
        return self.store.save(document)


def _owned_tasks(document: StoredDocument) -> list[Task]:
    if document.current_user is None:
        return []
    return [task for task in document.tasks if task.owner_username == document.current_user]


__all__ = ["TaskLedger", "validate_task_input"]
