import sys
from pathlib import Path

import pytest

# Ensure repository root is importable for `import snowglobe`
ROOT = Path(__file__).resolve().parent
REPO_ROOT = ROOT.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from snowglobe.models import ConnectionMetadata  # noqa: E402
from snowglobe.repositories import ConnectionRegistry  # noqa: E402
from snowglobe.services import (  # noqa: E402
    EventRouter,
    LifecycleManager,
    MessageDispatcher,
    PresenceNotifier,
    RegistrationService,
)


class FakeChannel:
    """Records frames instead of writing them to a socket."""

    def __init__(self, alive=True):
        self.frames = []
        self.alive = alive
        self.closed = False

    def send_frame(self, event, data):
        if not self.alive:
            return False
        self.frames.append((event, data))
        return True

    def close(self, code=None, reason=None):
        self.closed = True
        self.alive = False

    def events(self):
        return [event for event, _ in self.frames]

    def of(self, event):
        return [data for name, data in self.frames if name == event]


class FakeClock:
    def __init__(self, now_ms=1_000_000.0):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def dispatcher():
    return MessageDispatcher()


@pytest.fixture
def presence(registry, dispatcher):
    return PresenceNotifier(registry, dispatcher)


@pytest.fixture
def registration(registry, dispatcher, presence):
    return RegistrationService(registry, dispatcher, presence)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def router(registry, dispatcher, clock):
    return EventRouter(registry, dispatcher, clock=clock)


@pytest.fixture
def lifecycle(registry, dispatcher, presence, registration):
    return LifecycleManager(registry, dispatcher, presence, registration)


@pytest.fixture
def metadata():
    return ConnectionMetadata(remote_address="10.0.0.7", user_agent="pytest-agent")


@pytest.fixture
def connect(dispatcher):
    """Attach a fake channel under ``connection_id`` and return it."""

    def _connect(connection_id):
        channel = FakeChannel()
        dispatcher.attach(connection_id, channel)
        return channel

    return _connect
