import os
import sys
import random
import pytest

# Ensure the backend root (containing the `coinclaim` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from coinclaim import create_app, db, socketio
from coinclaim.services.engine import Catalog, GameWorld
from coinclaim.services.engine.notify import Notifier


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ENGINE_AUTOSTART = False
    ALLOW_MANUAL_TICK = True
    DEFAULT_COMPANION = 'Cat'
    DEFAULT_CURRENCY = 0
    # One coin type keeps HTTP-level flows deterministic
    COIN_TYPES = {'Basic': {'reward': 5, 'health': 10}}
    SPAWN_POINTS = [(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)]


class MemoryStore:
    """Dict-backed progress store standing in for the database."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.saves = []

    def load(self, store, key, fallback=None):
        return self.data.get((store, key), fallback)

    def save(self, store, key, value):
        self.data[(store, key)] = value
        self.saves.append((store, key, value))


class RecordingNotifier(Notifier):
    def __init__(self):
        self.events = []

    def emit(self, event, payload):
        self.events.append((event, payload))

    def named(self, event):
        return [payload for name, payload in self.events if name == event]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def make_app():
    """Build an app from TestConfig with some settings overridden."""
    def _make(**overrides):
        return create_app(type('OverrideConfig', (TestConfig,), overrides))
    return _make


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
def store():
    return MemoryStore()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def make_world(store, notifier):
    def _make(spawn_positions=((0.0, 0.0), (10.0, 0.0), (20.0, 0.0)), coin_types=None, seed=7, **kwargs):
        catalog = Catalog(
            {'Dog': 1, 'Cat': 2, 'Dragon': 5},
            coin_types or {'Basic': {'reward': 5, 'health': 10}},
        )
        kwargs.setdefault('default_companion', 'Cat')
        return GameWorld(
            catalog,
            spawn_positions,
            store,
            notifier=notifier,
            rng=random.Random(seed),
            **kwargs,
        )
    return _make


@pytest.fixture()
def world(make_world):
    return make_world()
