"""Key builders for durable session entries.

Rules:
- Every per-user entry embeds the user id in its key.
- Bump the version suffix when the stored payload shape changes.
"""

from __future__ import annotations


class SessionKeys:
    """Standard key patterns within a store namespace."""

    @staticmethod
    def profile_slot(session_namespace: str) -> str:
        return f"{session_namespace}:profile:v1"

    @staticmethod
    def zone_state(user_id: str) -> str:
        return f"zones:v6:{user_id}"

    @staticmethod
    def zone_preference(user_id: str) -> str:
        return f"zone-pref:{user_id}"


__all__ = ["SessionKeys"]
