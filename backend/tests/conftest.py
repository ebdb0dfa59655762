import os
import sys
from collections import defaultdict

import pytest

# Ensure the backend root (containing the `solow_game` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from solow_game import create_app, socketio, NAMESPACE
from solow_game.models import GameSettings
from solow_game.services.coordinator import GameCoordinator
from solow_game.services.economy import SolowModel
from solow_game.services.fanout import Fanout
from solow_game.services.roster import StudentRoster


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = []
    TOTAL_ROUNDS = 2
    ROUND_DURATION_SEC = 30
    STUDENT_LIST_PATH = os.path.join(BACKEND_ROOT, 'data', 'students.txt')


class RecordingTransport:
    """Stands in for Socket.IO: keeps every emit and room membership."""

    def __init__(self):
        self.sent = []
        self.rooms = defaultdict(set)

    def emit(self, event, payload, to):
        self.sent.append((event, payload, to))

    def enter(self, handle, room):
        self.rooms[room].add(handle)

    def leave(self, handle, room):
        self.rooms[room].discard(handle)

    def events(self, to=None):
        return [e for e, _, t in self.sent if to is None or t == to]

    def payloads(self, event, to=None):
        return [p for e, p, t in self.sent if e == event and (to is None or t == to)]


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def make_coordinator(transport):
    """Build a coordinator on the recording transport.

    Investments are not capped at output unless ``capped=True``, so round
    arithmetic in tests can use round numbers.
    """
    def _make(capped=False, students=None, spawn=None, sleep=None, **overrides):
        settings = GameSettings(**{'round_duration': 30, **overrides})
        model = SolowModel(cap_investment_at_output=capped)
        roster = StudentRoster(students=students or ['Ann', 'Ben', 'Cy', 'Dee'])
        return GameCoordinator(settings, model, Fanout(transport), roster=roster, spawn=spawn, sleep=sleep)
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect_client(flask_app):
    """Factory for Socket.IO test clients connected with a given role."""
    clients = []

    def _connect(role='player'):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
            auth={'role': role},
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


@pytest.fixture()
def sio_client(connect_client):
    return connect_client('player')


@pytest.fixture()
def instructor_client(connect_client):
    return connect_client('instructor')


@pytest.fixture()
def screen_client(connect_client):
    return connect_client('screen')
