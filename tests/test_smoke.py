import pytest

from app.records import create_app


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_login_and_dashboard_access(client):
    # Anonymous should be sent to the login page
    r = client.get("/dashboard")
    assert r.status_code == 302

    r = client.get("/login")
    assert r.status_code == 200
    assert b"Sign in" in r.data

    r = client.post("/login", data={"username": "admin@example.com", "password": "pw"}, follow_redirects=False)
    assert r.status_code == 302

    r = client.get("/dashboard")
    assert r.status_code == 200


def test_unknown_page_is_404(client):
    r = client.get("/no-such-page")
    assert r.status_code == 404
    assert b"Not found" in r.data


@pytest.mark.parametrize(
    "env",
    [
        {"DATABASE_URL": "sqlite:///prod.db", "SECRET_KEY": "strong-secret"},
        {"DATABASE_URL": "postgresql+psycopg://u:p@localhost/db", "SECRET_KEY": "change-me"},
    ],
)
def test_production_guardrails(monkeypatch, env):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SEED_ON_START", "0")
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    with pytest.raises(RuntimeError):
        create_app()


def test_config_rejects_non_integer_page_size(monkeypatch):
    from app.records.config import load_settings

    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "lots")
    with pytest.raises(RuntimeError):
        load_settings()

    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "20")
    assert load_settings().default_page_size == 20
