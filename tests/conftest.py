import os
import sys
import pytest

# Ensure the project root (containing the `darkmoon` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from darkmoon import create_app, socketio
from darkmoon.services.rooms import Channel, RoomRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACES = ['/', '/ws']
    FEED_LIMIT = 200
    MAX_COMPLETED_ROLLS = 500
    LOG_LEVEL = 'DEBUG'


class RecordingChannel(Channel):
    """Channel that keeps everything it was asked to send."""

    def __init__(self):
        self.replies = []
        self.sent = []  # (kind, event, payload) in send order
        self.broadcasts = []
        self.subscribed = set()

    def reply(self, event, payload):
        self.replies.append((event, payload))
        self.sent.append(('reply', event, payload))

    def broadcast(self, room_code, event, payload):
        self.broadcasts.append((room_code, event, payload))
        self.sent.append(('broadcast', event, payload))

    def subscribe(self, room_code):
        self.subscribed.add(room_code)

    def unsubscribe(self, room_code):
        self.subscribed.discard(room_code)

    def last_reply(self, event):
        matching = [payload for name, payload in self.replies if name == event]
        return matching[-1] if matching else None

    def feed(self, entry_type=None):
        entries = [payload for _, name, payload in self.broadcasts if name == 'feed_entry']
        if entry_type:
            entries = [e for e in entries if e['type'] == entry_type]
        return entries


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    created = []

    def make(namespace='/'):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=namespace
        )
        created.append((test_client, namespace))
        return test_client

    yield make
    for test_client, namespace in created:
        try:
            if test_client.is_connected(namespace):
                test_client.disconnect(namespace=namespace)
        except Exception:
            pass


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def channel_factory():
    return RecordingChannel
