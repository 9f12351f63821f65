from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import streamlit as st
from streamlit.errors import StreamlitSecretNotFoundError

from mission_monitor.constants import DEFAULT_CLEANUP_DAYS, DEFAULT_NOTIFICATIONS_ENABLED
from mission_monitor.storage import DATA_DIR_ENV_VAR

NOTIFICATIONS_ENV_VAR = "MISSION_MONITOR_NOTIFICATIONS"
NATIVE_NOTIFICATIONS_ENV_VAR = "MISSION_MONITOR_NATIVE_NOTIFICATIONS"
CLEANUP_DAYS_ENV_VAR = "MISSION_MONITOR_CLEANUP_DAYS"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_secret(name: str, env: Mapping[str, str]) -> Optional[str]:
    env_value = env.get(name)
    if env_value:
        return str(env_value).strip()
    try:
        value = st.secrets.get(name)
    except StreamlitSecretNotFoundError:
        value = None
    if value:
        return str(value).strip()
    return None


def _parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


@dataclass
class AppConfig:
    data_dir: Optional[Path] = None
    notifications_enabled: bool = DEFAULT_NOTIFICATIONS_ENABLED
    native_notifications: bool = False
    cleanup_days: int = DEFAULT_CLEANUP_DAYS

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> AppConfig:
        """Build the configuration from environment variables, then Streamlit secrets."""

        env_map: Mapping[str, str] = env if env is not None else os.environ
        data_dir = _get_secret(DATA_DIR_ENV_VAR, env_map)
        cleanup_raw = _get_secret(CLEANUP_DAYS_ENV_VAR, env_map)
        try:
            cleanup_days = int(cleanup_raw) if cleanup_raw else DEFAULT_CLEANUP_DAYS
        except ValueError:
            cleanup_days = DEFAULT_CLEANUP_DAYS

        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else None,
            notifications_enabled=_parse_bool(
                _get_secret(NOTIFICATIONS_ENV_VAR, env_map), DEFAULT_NOTIFICATIONS_ENABLED
            ),
            native_notifications=_parse_bool(_get_secret(NATIVE_NOTIFICATIONS_ENV_VAR, env_map), False),
            cleanup_days=max(1, cleanup_days),
        )


__all__ = ["AppConfig", "CLEANUP_DAYS_ENV_VAR", "NATIVE_NOTIFICATIONS_ENV_VAR", "NOTIFICATIONS_ENV_VAR"]
