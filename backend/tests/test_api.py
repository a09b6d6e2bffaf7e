from focus_together.services.sessions import INACTIVITY_THRESHOLD_MS


def visitor_id(client):
    return client.get('/api/').get_json()['id']


def create(client, body):
    return client.post('/api/sessions', json=body)


def test_visitor_identity_is_stable(client, other_client):
    first = visitor_id(client)
    assert first
    assert visitor_id(client) == first
    assert visitor_id(other_client) != first


def test_create_and_fetch_session(client, other_client, settings_body):
    res = create(client, settings_body)
    assert res.status_code == 201
    owner = visitor_id(client)
    created = res.get_json()
    assert created['id'] == owner
    assert created['settings'] == settings_body
    assert created['activity_state'] == 'NOT_STARTED'
    assert created['pomodoro_state'] == 'FOCUS'
    assert created['pomodoro_time'] is None

    mine = client.get('/api/sessions/mine')
    assert mine.status_code == 200
    assert mine.get_json()['id'] == owner

    seen_by_other = other_client.get(f'/api/sessions/{owner}')
    assert seen_by_other.status_code == 200
    assert seen_by_other.get_json()['settings'] == settings_body


def test_create_rejects_zero_fields(client, settings_body):
    res = create(client, {**settings_body, 'break_duration': 0})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'InvalidSettings'

    res = client.post('/api/sessions', data='not json', content_type='application/json')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'InvalidSettings'


def test_duplicate_create_needs_replace(client, settings_body):
    assert create(client, settings_body).status_code == 201
    res = create(client, settings_body)
    assert res.status_code == 400
    assert res.get_json()['error'] == 'AlreadyExists'

    res = create(client, {**settings_body, 'focus_duration': 4000, 'replace': True})
    assert res.status_code == 201
    assert res.get_json()['settings']['focus_duration'] == 4000


def test_missing_session_is_404(client):
    res = client.get('/api/sessions/mine')
    assert res.status_code == 404
    body = res.get_json()
    assert body['error'] == 'NotFound'
    assert body['code'] == 404


def test_owner_controls_lifecycle(client, clock, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)

    started = client.post(f'/api/sessions/{sid}/start').get_json()
    assert started['activity_state'] == 'IN_PROGRESS'
    assert started['pomodoro_time'] == clock()

    again = client.post(f'/api/sessions/{sid}/start')
    assert again.status_code == 400
    assert again.get_json()['error'] == 'AlreadyStarted'

    clock.advance(400)
    paused = client.post(f'/api/sessions/{sid}/pause').get_json()
    assert paused['activity_state'] == 'PAUSED'
    assert paused['remaining'] == 600

    assert client.post(f'/api/sessions/{sid}/pause').get_json()['error'] == 'AlreadyPaused'

    clock.advance(10_000)
    resumed = client.post(f'/api/sessions/{sid}/resume').get_json()
    assert resumed['activity_state'] == 'IN_PROGRESS'
    assert resumed['remaining'] == 600
    assert client.post(f'/api/sessions/{sid}/resume').get_json()['error'] == 'AlreadyInProgress'

    stopped = client.post(f'/api/sessions/{sid}/stop').get_json()
    assert stopped['activity_state'] == 'STOPPED'
    assert client.post(f'/api/sessions/{sid}/stop').get_json()['error'] == 'AlreadyStopped'


def test_only_owner_may_edit(client, other_client, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    for action in ('start', 'pause', 'resume', 'stop'):
        res = other_client.post(f'/api/sessions/{sid}/{action}')
        assert res.status_code == 403
        assert res.get_json()['error'] == 'NotOwner'
    assert other_client.delete(f'/api/sessions/{sid}').status_code == 403
    assert client.get(f'/api/sessions/{sid}').get_json()['activity_state'] == 'NOT_STARTED'


def test_join_leave_and_ping(client, other_client, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    guest = visitor_id(other_client)

    res = other_client.post(f'/api/sessions/{sid}/ping')
    assert res.status_code == 403
    assert res.get_json()['error'] == 'NotAParticipant'

    joined = other_client.post(f'/api/sessions/{sid}/join').get_json()
    assert joined['participants'] == [guest]
    res = other_client.post(f'/api/sessions/{sid}/join')
    assert res.status_code == 400
    assert res.get_json()['error'] == 'AlreadyJoined'

    assert other_client.post(f'/api/sessions/{sid}/ping').status_code == 200

    left = other_client.post(f'/api/sessions/{sid}/leave').get_json()
    assert left['participants'] == []
    assert other_client.post(f'/api/sessions/{sid}/leave').get_json()['error'] == 'NotAParticipant'


def test_ping_advances_phase(client, clock, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    client.post(f'/api/sessions/{sid}/start')
    start = clock()

    clock.advance(999)
    assert client.post(f'/api/sessions/{sid}/ping').get_json()['pomodoro_state'] == 'FOCUS'

    clock.advance(1)
    body = client.post(f'/api/sessions/{sid}/ping').get_json()
    assert body['pomodoro_state'] == 'BREAK'
    assert body['counter'] == 1
    assert body['pomodoro_time'] == start + 1000

    clock.advance(500)
    body = client.post(f'/api/sessions/{sid}/ping').get_json()
    assert body['pomodoro_state'] == 'FOCUS'
    assert body['pomodoro_time'] == start + 1500

    # A plain read never advances the phase
    clock.advance(5000)
    assert client.get(f'/api/sessions/{sid}').get_json()['pomodoro_state'] == 'FOCUS'


def test_catch_up_config(flask_app, client, clock, settings_body):
    flask_app.config['PHASE_CATCH_UP'] = True
    create(client, settings_body)
    sid = visitor_id(client)
    client.post(f'/api/sessions/{sid}/start')
    start = clock()
    clock.advance(3200)
    body = client.post(f'/api/sessions/{sid}/ping').get_json()
    assert body['pomodoro_state'] == 'FOCUS'
    assert body['counter'] == 2
    assert body['pomodoro_time'] == start + 3000


def test_owner_ping_expires_idle_participants(client, other_client, clock, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    other_client.post(f'/api/sessions/{sid}/join')

    clock.advance(INACTIVITY_THRESHOLD_MS)
    body = client.post(f'/api/sessions/{sid}/ping').get_json()
    assert body['participants'] == []


def test_participant_ping_on_abandoned_session(client, other_client, clock, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    other_client.post(f'/api/sessions/{sid}/join')

    clock.advance(INACTIVITY_THRESHOLD_MS - 1)
    other_client.post(f'/api/sessions/{sid}/ping')
    clock.advance(1)
    res = other_client.post(f'/api/sessions/{sid}/ping')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'NotFound'
    assert client.get('/api/sessions/mine').status_code == 404


def test_delete_session(client, settings_body):
    create(client, settings_body)
    sid = visitor_id(client)
    res = client.delete(f'/api/sessions/{sid}')
    assert res.status_code == 200
    assert client.get(f'/api/sessions/{sid}').status_code == 404
    # Deleting again is not an error
    assert client.delete(f'/api/sessions/{sid}').status_code == 200
