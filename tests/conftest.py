import pytest
from fastapi.testclient import TestClient

from societyhub.config import Settings
from societyhub.db import Base, make_engine, make_session_factory
from societyhub.main import create_app
from societyhub.models import models  # noqa: F401
from societyhub.storage.database_provider import DatabaseStorage
from societyhub.storage.memory_provider import MemoryStorage


def make_settings(**overrides) -> Settings:
    values = dict(
        storage_backend="memory",
        seed_demo_data=False,
        metrics_enabled=False,
        rate_limit="1000/minute",
        jwt_secret="test-secret-0123456789abcdef0123456789",
        dev_otp_code=None,
        strict_status_transitions=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_sqlite_storage() -> DatabaseStorage:
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return DatabaseStorage(make_session_factory(engine))


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    if request.param == "memory":
        return MemoryStorage()
    return make_sqlite_storage()


@pytest.fixture
def app(settings):
    return create_app(settings, storage=MemoryStorage())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def resident(client):
    resp = client.post("/api/users", json={
        "phoneNumber": "+919800000001",
        "name": "Priya Sharma",
        "flatNumber": "B-205",
        "tower": "B",
    })
    assert resp.status_code == 200
    return resp.json()
