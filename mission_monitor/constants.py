"""Central constants for storage keys, defaults and engine thresholds."""

STORAGE_KEY: str = "missionMonitorData"
DEFAULT_STATE_FILENAME: str = "mission_monitor_state.json"
DATA_FOLDER_NAME: str = "MissionMonitor"

DEFAULT_THEME: str = "light"
DEFAULT_NOTIFICATIONS_ENABLED: bool = True

MIN_USERNAME_LENGTH: int = 3
MIN_PASSWORD_LENGTH: int = 6

STREAK_LOOKBACK_DAYS: int = 365
ROLLING_WINDOW_DAYS: int = 7
RECENT_BADGE_HOURS: int = 24
DEFAULT_CLEANUP_DAYS: int = 90
