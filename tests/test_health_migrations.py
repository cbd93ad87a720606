from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def test_root(client):
    assert client.get("/").json() == {"ok": True}


def test_health_db(client):
    r = client.get("/health/db")
    assert r.status_code == 200 and r.json()["ok"] is True


def test_health_bank(client):
    r = client.get("/health/bank")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "question_sets": 4}


def test_health_migrations_basic(client):
    r = client.get("/health/migrations")
    assert r.status_code == 200
    b = r.json()
    assert "code_heads" in b and isinstance(b["code_heads"], list)
    assert "db_version" in b


def test_health_migrations_reports_single_head(client, monkeypatch):
    monkeypatch.setenv("ALEMBIC_INI", str(ROOT / "alembic.ini"))
    b = client.get("/health/migrations").json()
    assert b["code_heads"] == ["0001_attempts_answers"]
    # tables come from create_all, not alembic, so the db is unversioned
    assert b["db_version"] is None
    assert b["ok"] is False
