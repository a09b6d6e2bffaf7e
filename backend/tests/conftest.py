import os
import sys
import pytest

# Ensure the backend root (containing the `focus_together` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from focus_together import create_app, db, socketio

# Realistic epoch base for wall-clock-like timestamps
T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def at(self, offset):
        self.now = T0 + offset

    def advance(self, ms):
        self.now += ms


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_STORE = 'sql'
    PHASE_CATCH_UP = False
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    CLOCK = None


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock):
    class ClockedConfig(TestConfig):
        CLOCK = clock

    application = create_app(ClockedConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import focus_together.models  # noqa: F401
        db.create_all()
    # Requests push their own app context so flask.g (and current_user) never leak between clients
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def other_client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def settings_body():
    return {
        'focus_duration': 1000,
        'break_duration': 500,
        'long_break_duration': 2000,
        'num_focus_per_long_break': 3,
    }


@pytest.fixture()
def sio_client(flask_app, client):
    # Issue the visitor cookie over HTTP first so the socket shares the identity
    client.get('/api/')
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=client,
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
