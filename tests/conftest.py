import os
from datetime import timedelta

os.environ.setdefault("APP_ENV", "testing")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models.base_model import utcnow  # noqa: E402
from services.session_manager import SessionManager  # noqa: E402


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def app():
    """Fresh app on its own in-memory database."""
    app = create_app("testing")
    yield app
    storage = app.extensions["storage"]
    storage.close()
    storage.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions["storage"]


@pytest.fixture
def codec(app):
    return app.extensions["token_codec"]


@pytest.fixture
def credential_store(app):
    return app.extensions["session_manager"].credentials


@pytest.fixture
def session_store(app):
    return app.extensions["session_manager"].sessions


@pytest.fixture
def clock():
    return FrozenClock()


def _manager_from(app, clock, **kwargs):
    base = app.extensions["session_manager"]
    return SessionManager(
        credentials=base.credentials,
        sessions=base.sessions,
        codec=base.codec,
        hasher=base.hasher,
        refresh_ttl=base.refresh_ttl,
        clock=clock,
        **kwargs,
    )


@pytest.fixture
def manager(app, clock):
    """Session manager sharing the app's stores, driven by a controllable clock."""
    return _manager_from(app, clock)


@pytest.fixture
def rotating_manager(app, clock):
    return _manager_from(app, clock, rotate_refresh_tokens=True)


@pytest.fixture
def jane(manager):
    return manager.register(name="Jane", email="jane@x.com", password="secret1")
