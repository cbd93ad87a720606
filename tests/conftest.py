from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import bank
import models  # noqa: F401  (registers tables on Base.metadata)
import routers.health
from db import Base, get_db
from main import app

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "question_sets"

ADMIN_TOKEN = "admin-secret"
API_KEY = "client-key"
ADMIN_HEADERS = {"x-admin-token": ADMIN_TOKEN}


@pytest.fixture(autouse=True)
def question_bank(monkeypatch):
    """Every test grades against the fixture bank."""
    monkeypatch.setattr(bank, "_DATA_DIR", FIXTURES)
    bank.reload_bank()
    yield bank


@pytest.fixture(autouse=True)
def tokens(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("GRADING_API_KEY", API_KEY)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'grading.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(session_factory, engine, monkeypatch):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    # health probes talk to the engine directly
    monkeypatch.setattr(routers.health, "engine", engine)
    c = TestClient(app)
    c.headers.update({"x-api-key": API_KEY})
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
