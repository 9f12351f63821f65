from __future__ import annotations


class MissionMonitorError(Exception):
    """Base class for errors surfaced to the presentation layer."""


class ValidationError(MissionMonitorError):
    """Raised for missing or malformed input; no state is changed."""


class ConflictError(MissionMonitorError):
    """Raised when a username is already taken."""


class AuthError(MissionMonitorError):
    """Raised for bad credentials or when no session is active."""


__all__ = ["MissionMonitorError", "ValidationError", "ConflictError", "AuthError"]
