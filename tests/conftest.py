import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RECEIPT_EXTRACTOR"] = "mock"
os.environ["RECEIPT_MOCK_DELAY"] = "0"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["OPENAI_API_KEY"] = ""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from ahorrai.core.dates import get_today
from ahorrai.database import get_session, init_db
from ahorrai.main import app
from ahorrai.services.storage import ObjectStorage, get_storage

TODAY = date(2025, 3, 15)
STORAGE_ENDPOINT = "https://storage.test"
STORAGE_BUCKET = "avatars"

USER_EMAIL = "ana@example.com"
USER_PASSWORD = "secreto123"


class FakeS3Client:
    """Records put_object calls; set ``error`` to make the next upload fail."""

    def __init__(self):
        self.calls = []
        self.error = None

    def put_object(self, **params):
        if self.error is not None:
            raise self.error
        self.calls.append(params)
        return {"ETag": '"fake"'}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def anon_client(engine, s3_client):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_storage] = lambda: ObjectStorage(s3_client, STORAGE_BUCKET, STORAGE_ENDPOINT)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client):
    """Client with a registered user signed in through the session cookie."""
    r = anon_client.post(
        "/auth/register",
        json={"email": USER_EMAIL, "password": USER_PASSWORD, "full_name": "Ana"},
    )
    assert r.status_code == 201, r.text
    r = anon_client.post("/auth/login", json={"email": USER_EMAIL, "password": USER_PASSWORD})
    assert r.status_code == 200, r.text
    anon_client.user = r.json()
    return anon_client


@pytest.fixture
def make_category(client):
    def _make(name="Compras", icon="ShoppingBag", color="#10B981"):
        r = client.post("/categories", json={"name": name, "icon": icon, "color": color})
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def make_expense(client):
    def _make(category_id, amount=25.0, merchant="Starbucks", expense_date=TODAY, **extra):
        payload = {
            "amount": amount,
            "category_id": category_id,
            "merchant": merchant,
            "expense_date": expense_date.isoformat(),
            **extra,
        }
        r = client.post("/expenses", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
