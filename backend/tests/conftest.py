import os

# Must be set before ayasync.core.config builds its Settings instance
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ayasync.core.database import Base, get_db, init_db
from ayasync.main import create_app
from ayasync.realtime.broadcaster import Broadcaster


class RecordingBroadcaster(Broadcaster):
    """Broadcaster that remembers every publish, whether or not anyone listens"""

    def __init__(self):
        super().__init__()
        self.published = []

    async def publish(self, room, event, data):
        self.published.append((room, event, data))
        return await super().publish(room, event, data)

    async def broadcast(self, event, data):
        self.published.append((None, event, data))
        return await super().broadcast(event, data)

    def events(self, event):
        return [(room, data) for room, name, data in self.published if name == event]


@pytest.fixture
def db_session_factory():
    # One shared in-memory connection so every session sees the same tables
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def app(db_session_factory, broadcaster):
    application = create_app()
    application.state.broadcaster = broadcaster

    def override_get_db():
        session = db_session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register_user(client):
    def _register(email, password="pw123456", name=None, role=None):
        payload = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        if role is not None:
            payload["role"] = role
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["user"]
    return _register


@pytest.fixture
def login(client):
    def _login(email, password="pw123456"):
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()
    return _login


@pytest.fixture
def make_user(register_user, login):
    """Register and log in; returns (user, auth headers)"""
    def _make(email, name=None, role=None):
        user = register_user(email, name=name, role=role)
        token = login(email)["token"]
        return user, {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", name="Bob")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", name="Admin", role="admin")
