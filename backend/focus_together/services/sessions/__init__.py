"""Focus session domain services: the timer state machine, its stores, and presence.

Pure session logic lives in ``machine``; HTTP routes and socket handlers
go through the stores and ``presence`` so transport concerns stay out of
the state machine.
"""

from .machine import (
    INACTIVITY_THRESHOLD_MS,
    ActivityState,
    FocusSession,
    PomodoroState,
    SessionSettings,
)
from .presence import ping_session, sweep_inactive
from .store import MemorySessionStore, SessionStore, SqlSessionStore, build_store

__all__ = [
    'INACTIVITY_THRESHOLD_MS',
    'ActivityState',
    'FocusSession',
    'MemorySessionStore',
    'PomodoroState',
    'SessionSettings',
    'SessionStore',
    'SqlSessionStore',
    'build_store',
    'ping_session',
    'sweep_inactive',
]
