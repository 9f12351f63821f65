"""Local state engine and reminder scheduler for the Mission Monitor task tracker."""

from mission_monitor.app_controller import MissionMonitorApp
from mission_monitor.errors import AuthError, ConflictError, MissionMonitorError, ValidationError
from mission_monitor.state_persistence import PersistenceStore

__all__ = [
    "AuthError",
    "ConflictError",
    "MissionMonitorApp",
    "MissionMonitorError",
    "PersistenceStore",
    "ValidationError",
]
