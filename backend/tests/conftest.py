import os
import sys
import pytest

# Ensure the backend root (containing the `clickrank` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from clickrank import create_app, db, dispose_engine, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    # Cheapest bcrypt cost so the suite stays fast
    BCRYPT_LOG_ROUNDS = 4
    SESSION_LIFETIME_HOURS = 24
    LEADERBOARD_SIZE = 3
    GAME_DURATION_SEC = 10
    WTF_CSRF_ENABLED = False


def _build_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        import clickrank.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    dispose_engine(application)


@pytest.fixture()
def flask_app():
    yield from _build_app(TestConfig)


@pytest.fixture()
def file_backed_app(tmp_path):
    """App on a real SQLite file, so worker threads get their own connections."""
    config_class = type('FileTestConfig', (TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'clickrank.db'}",
    })
    yield from _build_app(config_class)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def login_as(client):
    """Register a user through the API and log the test client in as them."""
    def _login_as(name='Alice', email='a@x.com', password='pw123'):
        res = client.post('/register', json={'name': name, 'email': email, 'password': password})
        assert res.status_code == 201
        res = client.post('/login', json={'email': email, 'password': password})
        assert res.status_code == 200
        return res.get_json()['user']
    return _login_as
