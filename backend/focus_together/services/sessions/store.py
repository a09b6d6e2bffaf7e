"""Session stores: id -> FocusSession.

Two backends share one contract (create/get/save/delete/ids) plus
``checkout``, which serializes writers of the same session while letting
different sessions proceed in parallel.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from sqlalchemy.exc import SQLAlchemyError

from focus_together import db
from focus_together.clock import Clock, wall_clock
from focus_together.errors import AlreadyExists, NotFound
from focus_together.models import FocusSessionRecord, ParticipantRecord
from .machine import FocusSession, SessionSettings

logger = logging.getLogger(__name__)


class _LockEntry:
    __slots__ = ('lock', 'users')

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class SessionStore:
    def __init__(self, clock: Clock = wall_clock):
        self.clock = clock
        # Entries live only while some checkout holds or waits on them
        self._locks: Dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()

    def create(self, session: FocusSession, overwrite: bool = False) -> None:
        raise NotImplementedError

    def get(self, session_id: str) -> FocusSession:
        raise NotImplementedError

    def save(self, session: FocusSession) -> None:
        """Write back a session that is still stored; a deleted one stays deleted."""
        raise NotImplementedError

    def delete(self, session_id: str) -> None:
        raise NotImplementedError

    def ids(self) -> List[str]:
        raise NotImplementedError

    @contextmanager
    def _session_lock(self, session_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = _LockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[session_id]

    @contextmanager
    def checkout(self, session_id: str) -> Iterator[FocusSession]:
        """Hold the session's lock, yield it, and save it if the block succeeds.

        The lock entry is dropped once no checkout holds or waits on it, so
        lookups of missing ids leave nothing behind.
        """
        with self._session_lock(session_id):
            session = self.get(session_id)
            yield session
            self.save(session)


class MemorySessionStore(SessionStore):
    """Process-local store handing out shared references."""

    def __init__(self, clock: Clock = wall_clock):
        super().__init__(clock)
        self._sessions: Dict[str, FocusSession] = {}
        self._guard = threading.Lock()

    def create(self, session, overwrite=False):
        with self._guard:
            if session.id in self._sessions and not overwrite:
                raise AlreadyExists(f'session {session.id} already exists')
            session.bind_clock(self.clock)
            self._sessions[session.id] = session
        logger.info(f'[store-create] backend=memory session={session.id} overwrite={overwrite}')

    def get(self, session_id):
        with self._guard:
            session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f'unable to find session with id: {session_id}')
        return session

    def save(self, session):
        with self._guard:
            if session.id in self._sessions:
                self._sessions[session.id] = session

    def delete(self, session_id):
        with self._guard:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f'[store-delete] backend=memory session={session_id}')

    def ids(self):
        with self._guard:
            return sorted(self._sessions)


class SqlSessionStore(SessionStore):
    """Flask-SQLAlchemy backed store. Must be used inside an app context.

    Sessions come back detached from the ORM, so changes only land through
    ``save`` (or ``checkout``).
    """

    def create(self, session, overwrite=False):
        existing = FocusSessionRecord.query.filter_by(id=session.id).first()
        try:
            if existing is not None:
                if not overwrite:
                    raise AlreadyExists(f'session {session.id} already exists')
                db.session.delete(existing)
                db.session.flush()
            record = FocusSessionRecord(id=session.id)
            _apply(record, session)
            db.session.add(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        session.bind_clock(self.clock)
        logger.info(f'[store-create] backend=sql session={session.id} overwrite={overwrite}')

    def get(self, session_id):
        record = FocusSessionRecord.query.filter_by(id=session_id).first()
        if record is None:
            raise NotFound(f'unable to find session with id: {session_id}')
        return FocusSession(
            SessionSettings(
                focus_duration=record.focus_duration,
                break_duration=record.break_duration,
                long_break_duration=record.long_break_duration,
                num_focus_per_long_break=record.num_focus_per_long_break,
            ),
            record.id,
            clock=self.clock,
            last_ping=record.last_ping,
            participants={p.participant_id: p.last_ping for p in record.participants},
            activity_state=record.activity_state,
            pomodoro_state=record.pomodoro_state,
            pomodoro_time=record.pomodoro_time,
            pause_delta=record.pause_delta,
            counter=record.counter,
        )

    def save(self, session):
        record = FocusSessionRecord.query.filter_by(id=session.id).first()
        if record is None:
            logger.info(f'[store-save-skip] backend=sql session={session.id} no longer stored')
            return
        try:
            _apply(record, session)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def delete(self, session_id):
        record = FocusSessionRecord.query.filter_by(id=session_id).first()
        if record is None:
            return
        try:
            db.session.delete(record)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        logger.info(f'[store-delete] backend=sql session={session_id}')

    def ids(self):
        rows = FocusSessionRecord.query.with_entities(FocusSessionRecord.id).order_by(FocusSessionRecord.id).all()
        return [row.id for row in rows]


def _apply(record: FocusSessionRecord, session: FocusSession) -> None:
    settings = session.settings
    record.focus_duration = settings.focus_duration
    record.break_duration = settings.break_duration
    record.long_break_duration = settings.long_break_duration
    record.num_focus_per_long_break = settings.num_focus_per_long_break
    record.counter = session.counter
    record.last_ping = session.last_ping
    record.activity_state = session.activity_state.value
    record.pomodoro_state = session.pomodoro_state.value
    record.pomodoro_time = session.pomodoro_time
    record.pause_delta = session.pause_delta

    # Sync roster rows with the in-memory mapping
    current = {p.participant_id: p for p in record.participants}
    for participant_id, row in current.items():
        if participant_id not in session.participants:
            record.participants.remove(row)
    for participant_id, last_ping in session.participants.items():
        row = current.get(participant_id)
        if row is None:
            record.participants.append(ParticipantRecord(participant_id=participant_id, last_ping=last_ping))
        else:
            row.last_ping = last_ping


def build_store(config) -> SessionStore:
    clock = config.get('CLOCK') or wall_clock
    backend = (config.get('SESSION_STORE') or 'sql').lower()
    if backend == 'memory':
        return MemorySessionStore(clock)
    if backend == 'sql':
        return SqlSessionStore(clock)
    raise ValueError(f'unknown SESSION_STORE backend: {backend}')
