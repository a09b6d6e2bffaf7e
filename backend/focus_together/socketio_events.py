from flask import current_app
from flask_login import current_user
from flask_socketio import emit

from focus_together import socketio
from focus_together.errors import SessionError
from focus_together.services.sessions import ping_session

NAMESPACE = '/ws'


def handle_connect(auth=None):
    # Identity comes from the cookie issued by the HTTP API
    if not current_user.is_authenticated:
        current_app.logger.info('[ws-reject] connection without visitor cookie')
        return False
    emit('connected', {'id': current_user.id})


def handle_ping_session(data):
    """Socket twin of POST /api/sessions/<id>/ping. Replies to the sender only."""
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'error': 'InvalidRequest', 'message': 'session_id is required', 'code': 400})
        return
    try:
        payload = ping_session(
            current_app.extensions['focus_sessions'],
            session_id,
            current_user.id,
            catch_up=bool(current_app.config.get('PHASE_CATCH_UP')),
        )
    except SessionError as exc:
        emit('error', exc.to_dict())
        return
    emit('session_state', payload)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('ping_session', handle_ping_session, namespace=NAMESPACE)
