import sys
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import delete
from sqlalchemy.pool import StaticPool

from app.core import queue as queue_module
from app.core.config import settings
from app.db.base import Base
from app.db.session import Database
from app.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
from app.models.asset import Asset  # noqa: F401


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, str] = {}

    def ping(self):
        return True

    def get(self, key: str):
        return self._data.get(key)

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False):
        if nx and key in self._data:
            return None
        self._data[key] = str(value)
        return True

    def delete(self, key: str):
        return 1 if self._data.pop(key, None) is not None else 0


class _FakeJob:
    def __init__(self, func, kwargs):
        self.id = uuid.uuid4().hex
        self.func = func
        self.kwargs = kwargs


class _RecordingQueue:
    def __init__(self):
        self.jobs: list[_FakeJob] = []
        self.fail = False

    def enqueue(self, func, **kwargs):
        if self.fail:
            raise ConnectionError("redis unavailable")
        job = _FakeJob(func, kwargs)
        self.jobs.append(job)
        return job


# SQLite in-memory database shared by every connection of the pool.
_database = Database(
    "sqlite+pysqlite:///:memory:",
    engine_kwargs={
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    },
)
Base.metadata.create_all(bind=_database.connect())


@pytest.fixture()
def database():
    yield _database
    with _database.session() as db:
        db.execute(delete(Asset))
        db.commit()


@pytest.fixture()
def db(database):
    with database.session() as session:
        yield session


@pytest.fixture(autouse=True)
def _no_admin_secret(monkeypatch):
    monkeypatch.setattr(settings, "admin_secret", None)


@pytest.fixture()
def mem_redis(monkeypatch):
    r = _MemoryRedis()
    monkeypatch.setattr(queue_module, "get_redis", lambda: r)
    return r


@pytest.fixture()
def job_queue(monkeypatch, mem_redis):
    q = _RecordingQueue()
    monkeypatch.setattr(queue_module, "get_queue", lambda name=None: q)
    return q


@pytest.fixture()
def client(database):
    app = create_app(database=database)
    return TestClient(app)


@pytest.fixture()
def make_asset(client):
    def _make(**overrides):
        payload = {
            "ownerId": "owner-1",
            "name": f"asset_{uuid.uuid4().hex[:8]}",
            "category": "image",
        }
        payload.update(overrides)
        r = client.post("/assets", json=payload)
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _make
