import logging

from focus_together.errors import NotAParticipant, NotFound
from .store import SessionStore

logger = logging.getLogger(__name__)


def ping_session(store: SessionStore, session_id: str, visitor_id: str, catch_up: bool = False) -> dict:
    """Record a liveness ping from the owner or a participant, then advance phases.

    A participant ping on a session whose owner went quiet deletes the
    session and reports it as gone. Participants past the inactivity
    threshold are dropped from the roster on every ping.
    """
    owner_gone = False
    with store.checkout(session_id) as session:
        if visitor_id == session.owner:
            session.ping_owner()
        elif visitor_id in session.participants:
            if session.check_owner_inactive():
                owner_gone = True
            else:
                session.ping_participant(visitor_id)
        else:
            raise NotAParticipant(f'{visitor_id} is not in session {session_id}')

        if not owner_gone:
            expired = session.expire_inactive_participants()
            if expired:
                logger.info(f"[participant-expired] session={session_id} participants={','.join(expired)}")
            transitions = session.update_phase(catch_up=catch_up)
            if transitions:
                logger.info(
                    f'[phase-advance] session={session_id} phase={session.pomodoro_state.value} '
                    f'counter={session.counter} transitions={transitions}'
                )
            payload = session.to_dict()

    if owner_gone:
        store.delete(session_id)
        logger.info(f'[session-abandoned] session={session_id} owner inactive')
        raise NotFound(f'session {session_id} was abandoned by its owner')
    return payload


def sweep_inactive(store: SessionStore) -> dict:
    """One explicit pass over every session, deleting abandoned ones and expiring idle participants."""
    deleted = []
    expired_total = 0
    for session_id in store.ids():
        try:
            with store.checkout(session_id) as session:
                if session.check_owner_inactive():
                    deleted.append(session_id)
                    continue
                expired_total += len(session.expire_inactive_participants())
        except NotFound:
            continue
    for session_id in deleted:
        store.delete(session_id)
        logger.info(f'[session-abandoned] session={session_id} owner inactive')
    return {'deleted_sessions': deleted, 'expired_participants': expired_total}
