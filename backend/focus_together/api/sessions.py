from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from focus_together.errors import NotOwner, SessionError
from focus_together.identity import ensure_visitor
from focus_together.services.sessions import FocusSession, SessionSettings, ping_session

sessions = Blueprint('sessions', __name__)


@sessions.before_request
def _identify_visitor():
    ensure_visitor()


@sessions.errorhandler(SessionError)
def _session_error(exc):
    current_app.logger.info(f'[session-error] name={exc.name} message={exc.message}')
    return jsonify(exc.to_dict()), exc.status_code


def _store():
    return current_app.extensions['focus_sessions']


def _require_owner(session_id):
    if current_user.id != session_id:
        raise NotOwner(f'you are {current_user.id} but are trying to edit {session_id}')


@sessions.route('/', methods=['GET'])
def whoami():
    return jsonify(current_user.to_dict())


@sessions.route('/sessions', methods=['POST'])
def create_session():
    """
    Creates the caller's session from the posted timing settings.
    """
    data = request.get_json(silent=True)
    settings = SessionSettings.from_json(data)
    store = _store()
    session = FocusSession.create(settings, current_user.id, store.clock)
    store.create(session, overwrite=bool(data.get('replace')))
    current_app.logger.info(
        f'[session-create] session={session.id} focus={settings.focus_duration} '
        f'break={settings.break_duration} long_break={settings.long_break_duration} '
        f'every={settings.num_focus_per_long_break}'
    )
    return jsonify(session.to_dict()), 201


@sessions.route('/sessions/mine', methods=['GET'])
def get_own_session():
    return jsonify(_store().get(current_user.id).to_dict())


@sessions.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(_store().get(session_id).to_dict())


@sessions.route('/sessions/<string:session_id>', methods=['DELETE'])
def delete_session(session_id):
    _require_owner(session_id)
    _store().delete(session_id)
    current_app.logger.info(f'[session-delete] session={session_id}')
    return jsonify({'message': f'deleted session {session_id}'})


def _transition(session_id, action):
    _require_owner(session_id)
    with _store().checkout(session_id) as session:
        getattr(session, action)()
        payload = session.to_dict()
    current_app.logger.info(
        f"[session-{action}] session={session_id} activity={payload['activity_state']} "
        f"phase={payload['pomodoro_state']} pomodoro_time={payload['pomodoro_time']}"
    )
    return jsonify(payload)


@sessions.route('/sessions/<string:session_id>/start', methods=['POST'])
def start_session(session_id):
    return _transition(session_id, 'start')


@sessions.route('/sessions/<string:session_id>/pause', methods=['POST'])
def pause_session(session_id):
    return _transition(session_id, 'pause')


@sessions.route('/sessions/<string:session_id>/resume', methods=['POST'])
def resume_session(session_id):
    return _transition(session_id, 'resume')


@sessions.route('/sessions/<string:session_id>/stop', methods=['POST'])
def stop_session(session_id):
    return _transition(session_id, 'stop')


@sessions.route('/sessions/<string:session_id>/ping', methods=['POST'])
def ping(session_id):
    """
    Liveness ping from the owner or a participant; also advances the pomodoro phase.
    """
    payload = ping_session(
        _store(),
        session_id,
        current_user.id,
        catch_up=bool(current_app.config.get('PHASE_CATCH_UP')),
    )
    return jsonify(payload)


@sessions.route('/sessions/<string:session_id>/join', methods=['POST'])
def join_session(session_id):
    with _store().checkout(session_id) as session:
        session.join(current_user.id)
        payload = session.to_dict()
    current_app.logger.info(f'[participant-join] session={session_id} participant={current_user.id}')
    return jsonify(payload)


@sessions.route('/sessions/<string:session_id>/leave', methods=['POST'])
def leave_session(session_id):
    with _store().checkout(session_id) as session:
        session.leave(current_user.id)
        payload = session.to_dict()
    current_app.logger.info(f'[participant-leave] session={session_id} participant={current_user.id}')
    return jsonify(payload)
