from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

from pydantic_core import to_jsonable_python

from mission_monitor.constants import DATA_FOLDER_NAME, DEFAULT_STATE_FILENAME, STORAGE_KEY

DATA_DIR_ENV_VAR = "MISSION_MONITOR_DATA_DIR"


class StorageBackend(Protocol):
    """A single storage slot holding one serialized document."""

    def load_state(self) -> Optional[object]:
        """Return the decoded slot content, or ``None`` when the slot is empty.

        Implementations raise ``ValueError`` when the content cannot be decoded.
        """

    def save_state(self, state: Mapping[str, object]) -> None:
        """Persist the provided state mapping, replacing the slot content."""


def resolve_data_directory(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Resolve the directory holding the state file."""

    if path is not None:
        explicit_path = Path(path).expanduser()
        if explicit_path.is_dir() or not explicit_path.suffix:
            return explicit_path
        return explicit_path.parent

    env_map: Mapping[str, str] = env if env is not None else os.environ
    raw_value = env_map.get(DATA_DIR_ENV_VAR)
    if raw_value:
        candidate = Path(raw_value).expanduser()
        if candidate.name.lower() == DATA_FOLDER_NAME.lower():
            return candidate
        return candidate / DATA_FOLDER_NAME

    return Path(".data") / DATA_FOLDER_NAME


def resolve_state_file_path(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Resolve the state file path; an explicit file path wins over the environment."""

    if path is not None:
        explicit_path = Path(path).expanduser()
        if explicit_path.is_dir() or not explicit_path.suffix:
            return explicit_path / DEFAULT_STATE_FILENAME
        return explicit_path

    return resolve_data_directory(env=env) / DEFAULT_STATE_FILENAME


def serialize_state(state: Mapping[str, object]) -> str:
    return json.dumps(state, default=to_jsonable_python, ensure_ascii=False, sort_keys=True)


class FileStorageBackend:
    """Persist the document to a JSON file on disk."""

    def __init__(self, path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> None:
        self.path = resolve_state_file_path(path, env=env)

    def load_state(self) -> Optional[object]:
        if not self.path.exists():
            return None

        with self.path.open("r", encoding="utf-8") as file_handle:
            return json.load(file_handle)

    def save_state(self, state: Mapping[str, object]) -> None:
        serialized = serialize_state(state)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with temp_path.open("w", encoding="utf-8") as file_handle:
            file_handle.write(serialized)
        os.replace(temp_path, self.path)


class MemoryStorageBackend:
    """Keep the serialized document in a dict slot, like browser local storage."""

    def __init__(self, key: str = STORAGE_KEY, slots: dict[str, str] | None = None) -> None:
        self.key = key
        self.slots: dict[str, str] = slots if slots is not None else {}

    def load_state(self) -> Optional[object]:
        raw = self.slots.get(self.key)
        if raw is None:
            return None
        return json.loads(raw)

    def save_state(self, state: Mapping[str, object]) -> None:
        self.slots[self.key] = serialize_state(state)


__all__ = [
    "StorageBackend",
    "FileStorageBackend",
    "MemoryStorageBackend",
    "resolve_data_directory",
    "resolve_state_file_path",
    "serialize_state",
    "DATA_DIR_ENV_VAR",
]
