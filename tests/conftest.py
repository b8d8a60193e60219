import os
import uuid

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./linka_test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from app.core import database
from app.core.event_bus import init_event_bus
from app.core.redis import RedisManager
from app.core.websocket_manager import websocket_manager
from app.domains.auth import repository as auth_repository
from app.domains.connections.service import connection_service
from app.shared.models.base import Base
from app.shared.utils.security import create_access_token


class FakeRedis:
    """Counter subset of redis.asyncio.Redis used by the rate limiters"""

    def __init__(self):
        self.store = {}
        self.ttl = {}

    async def incr(self, key):
        self.store[key] = self.store.get(key, 0) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        self.ttl[key] = seconds
        return True

    async def ping(self):
        return True


@pytest.fixture(autouse=True)
def fresh_database(tmp_path):
    path = tmp_path / "linka.db"
    database.import_models()
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    database.configure(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    init_event_bus()
    websocket_manager.offline_buffer.clear()
    yield path


@pytest.fixture(autouse=True)
def fake_redis():
    client = FakeRedis()
    RedisManager.set_client(client)
    yield client
    RedisManager.set_client(None)


@pytest.fixture
def client():
    from app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}

    return _headers


@pytest.fixture
def make_user():
    async def _make(name="Ana", interests=None, **fields):
        data = {
            "email": f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            "password_hash": "unused",
            "name": name,
            "interests": ["musica", "viajes"] if interests is None else interests,
            "looking_for": ["relacion"],
            "values": ["honestidad"],
        }
        data.update(fields)
        return await auth_repository.create_user(data)

    return _make


@pytest.fixture
def active_connection(make_user):
    """Two users with an accepted connection: (connection_id, initiator, receiver)"""

    async def _connect(initiator_interests=None, receiver_interests=None):
        initiator = await make_user("Ana", initiator_interests)
        receiver = await make_user("Bruno", receiver_interests)
        view = await connection_service.initiate(initiator.id, receiver.id)
        await connection_service.accept(view.id, receiver.id)
        return view.id, initiator, receiver

    return _connect


@pytest.fixture
def register(client):
    """Register through the API: returns (user json, auth headers)"""

    def _register(name="Ana", interests=None, **fields):
        body = {
            "email": f"{name.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            "password": "secret123",
            "name": name,
            "interests": ["musica", "viajes"] if interests is None else interests,
            "lookingFor": ["relacion"],
            "values": ["honestidad"],
            **fields,
        }
        r = client.post("/api/auth/register", json=body)
        assert r.status_code == 201, r.text
        data = r.json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register
