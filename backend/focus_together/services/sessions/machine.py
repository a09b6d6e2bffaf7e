"""Focus session state machine.

A session is owned by one visitor, cycles FOCUS -> BREAK/LONG_BREAK -> FOCUS
based on elapsed time, and keeps a roster of participants with their last
liveness ping. Nothing here runs on a timer: phases advance only when
``update_phase`` is called, typically on each ping.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from focus_together.clock import Clock, wall_clock
from focus_together.errors import (
    AlreadyInProgress,
    AlreadyJoined,
    AlreadyPaused,
    AlreadyStarted,
    AlreadyStopped,
    InvalidSettings,
    NotAParticipant,
    NotStarted,
)

INACTIVITY_THRESHOLD_MS = 5 * 60 * 1000


class ActivityState(str, Enum):
    NOT_STARTED = 'NOT_STARTED'
    IN_PROGRESS = 'IN_PROGRESS'
    PAUSED = 'PAUSED'
    STOPPED = 'STOPPED'


class PomodoroState(str, Enum):
    FOCUS = 'FOCUS'
    BREAK = 'BREAK'
    LONG_BREAK = 'LONG_BREAK'


SETTINGS_FIELDS = (
    'focus_duration',
    'break_duration',
    'long_break_duration',
    'num_focus_per_long_break',
)


@dataclass(frozen=True)
class SessionSettings:
    """Timing parameters fixed at creation. Durations are in ms."""
    focus_duration: int
    break_duration: int
    long_break_duration: int
    num_focus_per_long_break: int

    def __post_init__(self):
        for field in SETTINGS_FIELDS:
            value = getattr(self, field)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSettings(f'{field} must be an integer')
            if value <= 0:
                raise InvalidSettings(f'{field} must be greater than zero')

    @classmethod
    def from_json(cls, data) -> 'SessionSettings':
        if not isinstance(data, dict):
            raise InvalidSettings('settings must be a JSON object')
        missing = [field for field in SETTINGS_FIELDS if data.get(field) is None]
        if missing:
            raise InvalidSettings(f"missing fields: {', '.join(missing)}")
        return cls(**{field: data[field] for field in SETTINGS_FIELDS})

    def to_dict(self) -> dict:
        return {field: getattr(self, field) for field in SETTINGS_FIELDS}


class FocusSession:
    """One owner's shared timer. The owner id doubles as the session id."""

    def __init__(
        self,
        settings: SessionSettings,
        owner: str,
        *,
        clock: Clock = wall_clock,
        last_ping: int = 0,
        participants: Optional[Dict[str, int]] = None,
        activity_state: ActivityState = ActivityState.NOT_STARTED,
        pomodoro_state: PomodoroState = PomodoroState.FOCUS,
        pomodoro_time: Optional[int] = None,
        pause_delta: int = 0,
        counter: int = 0,
    ):
        self._settings = settings
        self._owner = owner
        self._clock = clock
        self.last_ping = last_ping
        self.participants: Dict[str, int] = dict(participants or {})
        self.activity_state = ActivityState(activity_state)
        self.pomodoro_state = PomodoroState(pomodoro_state)
        self.pomodoro_time = pomodoro_time
        self.pause_delta = pause_delta
        self.counter = counter

    @classmethod
    def create(cls, settings: SessionSettings, owner: str, clock: Clock = wall_clock) -> 'FocusSession':
        return cls(settings, owner, clock=clock, last_ping=clock())

    @property
    def id(self) -> str:
        return self._owner

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def settings(self) -> SessionSettings:
        return self._settings

    @property
    def started(self) -> bool:
        return self.pomodoro_time is not None

    def bind_clock(self, clock: Clock) -> None:
        self._clock = clock

    # ---- activity transitions ----

    def start(self) -> None:
        if self.started:
            raise AlreadyStarted('session already started')
        self.activity_state = ActivityState.IN_PROGRESS
        self.pomodoro_state = PomodoroState.FOCUS
        self.pomodoro_time = self._clock()

    def pause(self) -> None:
        if self.activity_state == ActivityState.PAUSED:
            raise AlreadyPaused('session already paused')
        if not self.started:
            raise NotStarted('session has not been started')
        self._freeze_elapsed()
        self.activity_state = ActivityState.PAUSED

    def resume(self) -> None:
        if self.activity_state == ActivityState.IN_PROGRESS:
            raise AlreadyInProgress('session already in progress')
        if not self.started:
            raise NotStarted('session has not been started')
        self.activity_state = ActivityState.IN_PROGRESS
        self.pomodoro_time = self._clock() - self.pause_delta

    def stop(self) -> None:
        if self.activity_state == ActivityState.STOPPED:
            raise AlreadyStopped('session already stopped')
        self._freeze_elapsed()
        self.activity_state = ActivityState.STOPPED

    def _freeze_elapsed(self) -> None:
        # Only a running phase accrues time; a paused/stopped one keeps its delta.
        if self.activity_state == ActivityState.IN_PROGRESS:
            self.pause_delta = self._clock() - self.pomodoro_time

    # ---- pomodoro phases ----

    def phase_duration(self, state: Optional[PomodoroState] = None) -> int:
        state = state or self.pomodoro_state
        if state == PomodoroState.FOCUS:
            return self._settings.focus_duration
        if state == PomodoroState.BREAK:
            return self._settings.break_duration
        return self._settings.long_break_duration

    def update_phase(self, catch_up: bool = False) -> int:
        """Advance the pomodoro phase if its duration has elapsed.

        Without ``catch_up`` at most one transition happens and the new phase
        starts at the current time. With ``catch_up`` every elapsed phase is
        stepped through, each new phase starting where the previous one
        ended. Returns the number of transitions made.

        Only an IN_PROGRESS session advances; unstarted, paused and stopped
        sessions keep their phase and return 0.
        """
        if self.activity_state != ActivityState.IN_PROGRESS:
            return 0

        now = self._clock()
        transitions = 0
        while True:
            boundary = self.pomodoro_time + self.phase_duration()
            if now < boundary:
                break

            if self.pomodoro_state == PomodoroState.FOCUS:
                self.counter += 1
                if self.counter % self._settings.num_focus_per_long_break == 0:
                    self.pomodoro_state = PomodoroState.LONG_BREAK
                else:
                    self.pomodoro_state = PomodoroState.BREAK
            else:
                self.pomodoro_state = PomodoroState.FOCUS
            transitions += 1

            if not catch_up:
                self.pomodoro_time = now
                break
            self.pomodoro_time = boundary
        return transitions

    def remaining(self) -> int:
        """Milliseconds left in the current phase (full duration before start)."""
        if not self.started:
            return self.phase_duration()
        if self.activity_state == ActivityState.IN_PROGRESS:
            elapsed = self._clock() - self.pomodoro_time
        else:
            elapsed = self.pause_delta
        return max(0, self.phase_duration() - elapsed)

    # ---- liveness ----

    def ping_owner(self) -> None:
        self.last_ping = self._clock()

    def check_owner_inactive(self) -> bool:
        return self._clock() >= self.last_ping + INACTIVITY_THRESHOLD_MS

    def join(self, participant_id: str) -> None:
        if participant_id in self.participants:
            raise AlreadyJoined(f'{participant_id} already joined this session')
        self.participants[participant_id] = self._clock()

    def ping_participant(self, participant_id: str) -> None:
        self._require_participant(participant_id)
        self.participants[participant_id] = self._clock()

    def leave(self, participant_id: str) -> None:
        self._require_participant(participant_id)
        del self.participants[participant_id]

    def check_participant_inactive(self, participant_id: str) -> bool:
        last_ping = self._require_participant(participant_id)
        return self._clock() >= last_ping + INACTIVITY_THRESHOLD_MS

    def remove_participant_if_inactive(self, participant_id: str) -> bool:
        if not self.check_participant_inactive(participant_id):
            return False
        del self.participants[participant_id]
        return True

    def expire_inactive_participants(self) -> List[str]:
        expired = [pid for pid in list(self.participants) if self.remove_participant_if_inactive(pid)]
        return sorted(expired)

    def _require_participant(self, participant_id: str) -> int:
        try:
            return self.participants[participant_id]
        except KeyError:
            raise NotAParticipant(f'{participant_id} is not in this session') from None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'owner': self.owner,
            'settings': self._settings.to_dict(),
            'activity_state': self.activity_state.value,
            'pomodoro_state': self.pomodoro_state.value,
            'pomodoro_time': self.pomodoro_time,
            'remaining': self.remaining(),
            'counter': self.counter,
            'participants': sorted(self.participants),
        }

    def __repr__(self):
        return (
            f'FocusSession(id={self.id!r}, activity={self.activity_state.value}, '
            f'phase={self.pomodoro_state.value}, counter={self.counter})'
        )
