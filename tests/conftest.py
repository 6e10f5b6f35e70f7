# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from billager import models  # noqa: F401 ensure models are imported so tables are known
from billager.api import routes
from billager.config import Settings
from billager.db import Base
from billager.gateway import LocalStoreGateway, TableGateway
from billager.main import app
from billager.schemas import ListingDraft
from billager.store import KeyValueStore


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "store.json")

@pytest.fixture(params=["local", "table"])
def gateway(request, store, session_factory):
    if request.param == "local":
        return LocalStoreGateway(store)
    return TableGateway(session_factory, user_id=None)

@pytest.fixture
def make_draft():
    def _make(**overrides):
        fields = {
            "brand": "Volvo",
            "model": "V70",
            "year": "2018",
            "km": "120000",
            "price": "100000",
            "description": "One owner",
            "images": ["file:///a.jpg", "file:///b.jpg"],
            "owner_name": "Kari Nordmann",
            "owner_phone": "+4712345678",
            "owner_email": "kari@example.no",
        }
        fields.update(overrides)
        return ListingDraft(**fields)
    return _make

@pytest.fixture(params=["local", "table"])
def client(request, session_factory, tmp_path):
    cfg = Settings(storage_backend=request.param, local_store_path=str(tmp_path / "api_store.json"))
    app.dependency_overrides[routes.get_session_factory] = lambda: session_factory
    app.dependency_overrides[routes.get_settings] = lambda: cfg
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def auth_headers(client):
    client.post("/auth/signup", json={
        "username": "kari", "email": "kari@example.no", "password": "secret1", "phone": "12345678",
    })
    r = client.post("/auth/signin", json={"email": "kari@example.no", "password": "secret1"})
    return {"X-Session-Token": r.json()["token"]}
