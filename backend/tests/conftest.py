import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blocknotes.main import app
from blocknotes.storage.database import enable_sqlite_foreign_keys, get_db, init_db
from blocknotes.storage.users_store import UsersStore


@pytest.fixture()
def engine():
    # fresh in-memory database per test, FK checks on like the app engine
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_account(db_session):
    """Insert a user row directly and return its id (no password hashing)."""
    counter = itertools.count()

    def _make(name="user"):
        rec = UsersStore(db_session).create(f"{name}-{next(counter)}@example.com", name, "not-a-real-hash")
        return rec.id

    return _make


@pytest.fixture()
def client(engine, tmp_path, monkeypatch):
    # isolate audit log dir and token settings per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JWT_SECRET", "dev-secret-for-tests")
    monkeypatch.setenv("JWT_EXP_MINUTES", "15")
    monkeypatch.setenv("ALLOW_IDENTITY_HINT", "true")

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(client):
    """Register a user through the API and return its public payload."""

    def _make(email="alice@example.com", password="StrongPassw0rd!", name="Alice"):
        r = client.post("/auth/register", json={"email": email, "password": password, "name": name})
        assert r.status_code == 201
        return r.json()["user"]

    return _make


@pytest.fixture()
def user_headers(make_user):
    """Register a user and return identity-hint headers for it."""

    def _headers(email="alice@example.com"):
        user = make_user(email=email, name=email.split("@")[0])
        return {"X-User-Id": user["id"]}

    return _headers
