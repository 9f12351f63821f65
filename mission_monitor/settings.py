from __future__ import annotations

import logging

from mission_monitor.errors import ValidationError
from mission_monitor.models import Settings, Theme
from mission_monitor.state_persistence import PersistenceStore

LOGGER = logging.getLogger(__name__)


class SettingsService:
    """Read and change the process-wide theme and notification preference."""

    def __init__(self, store: PersistenceStore) -> None:
        self.store = store

    def get_settings(self) -> Settings:
        return self.store.load().settings

    def set_theme(self, theme: Theme | str) -> Settings:
        try:
            resolved = Theme(theme)
        except ValueError as exc:
            raise ValidationError(f"Unknown theme: {theme}") from exc

        document = self.store.load()
        document.settings = document.settings.model_copy(update={"theme": resolved})
        self.store.save(document)
        return document.settings

    def toggle_theme(self) -> Settings:
        current = self.get_settings().theme
        return self.set_theme(Theme.DARK if current is Theme.LIGHT else Theme.LIGHT)

    def set_notifications_enabled(self, enabled: bool) -> Settings:
        document = self.store.load()
        document.settings = document.settings.model_copy(update={"notifications_enabled": bool(enabled)})
        self.store.save(document)
        LOGGER.info("Notifications %s", "enabled" if enabled else "disabled")
        return document.settings


__all__ = ["SettingsService"]
