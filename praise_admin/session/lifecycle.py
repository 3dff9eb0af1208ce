"""Session lifecycle.

A session starts unauthenticated, resolves its zones, and then alternates
between resolved and switching. A failed resolve parks the session in
``ERROR`` until it is retried. Logout is allowed from every phase.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from praise_admin.domain.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    """Phase of one authenticated client session."""

    UNAUTHENTICATED = "unauthenticated"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    SWITCHING = "switching"
    ERROR = "error"


SESSION_TRANSITIONS: Dict[SessionPhase, FrozenSet[SessionPhase]] = {
    SessionPhase.UNAUTHENTICATED: frozenset({SessionPhase.RESOLVING}),
    SessionPhase.RESOLVING: frozenset({SessionPhase.RESOLVED, SessionPhase.ERROR}),
    # Re-resolving from RESOLVED covers refresh and cache expiry.
    SessionPhase.RESOLVED: frozenset({SessionPhase.SWITCHING, SessionPhase.RESOLVING}),
    SessionPhase.SWITCHING: frozenset({SessionPhase.RESOLVED}),
    SessionPhase.ERROR: frozenset({SessionPhase.RESOLVING}),
}


def can_transition(current: SessionPhase, target: SessionPhase) -> bool:
    if target is SessionPhase.UNAUTHENTICATED:
        return True
    return target in SESSION_TRANSITIONS.get(current, frozenset())


class SessionLifecycle:
    def __init__(self, phase: SessionPhase = SessionPhase.UNAUTHENTICATED) -> None:
        self._phase = phase
        self._previous: Optional[SessionPhase] = None

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def previous(self) -> Optional[SessionPhase]:
        return self._previous

    @property
    def busy(self) -> bool:
        return self._phase in (SessionPhase.RESOLVING, SessionPhase.SWITCHING)

    def transition(self, target: SessionPhase) -> SessionPhase:
        if not can_transition(self._phase, target):
            raise InvalidTransitionError(self._phase.value, target.value)
        if target is not self._phase:
            logger.debug("Session phase %s -> %s", self._phase.value, target.value)
        self._previous, self._phase = self._phase, target
        return target


__all__ = ["SESSION_TRANSITIONS", "SessionLifecycle", "SessionPhase", "can_transition"]
