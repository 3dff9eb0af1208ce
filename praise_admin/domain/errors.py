from __future__ import annotations

from typing import Optional


class ResolutionError(Exception):
    """Membership or zone configuration lookup failed while resolving zones.

    Returned inside ``Failure`` by the resolver; consumers render it with a
    retry action.
    """

    retryable = True

    def __init__(self, user_id: str, message: str, *, cause: Optional[BaseException] = None):
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Zone resolution failed for user {user_id}: {message}")


class CacheCorruptError(Exception):
    """A persisted cache value could not be decoded; treated as a miss."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Corrupt cache entry at '{key}': {reason}")


class DataFetchError(Exception):
    """Page or song listing could not be fetched for a zone."""

    retryable = True

    def __init__(self, operation: str, zone_id: Optional[str], *, cause: Optional[BaseException] = None):
        self.operation = operation
        self.zone_id = zone_id
        self.cause = cause
        super().__init__(f"{operation} failed for zone {zone_id or '-'}: {cause}")


class InvalidTransitionError(Exception):
    """Session lifecycle was asked to make a transition it does not allow."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid session transition {current} -> {target}")


__all__ = ["CacheCorruptError", "DataFetchError", "InvalidTransitionError", "ResolutionError"]
