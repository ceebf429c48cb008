import pytest
from sqlalchemy import create_engine

from app.records import create_app
from app.records.db import make_sessionmaker, session_scope
from app.records.models import Base, User
from app.records.modules.students.models import Student

CSRF_TOKEN = "test-csrf-token"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SEED_ON_START", "0")
    monkeypatch.delenv("DEFAULT_PAGE_SIZE", raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add_all(
            [
                User(email="admin@example.com", password="pw", role="ADMIN", enabled=True),
                User(email="viewer@example.com", password="pw", role="USER", enabled=True),
                User(email="disabled@example.com", password="pw", role="ADMIN", enabled=False),
            ]
        )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login(client):
    def _login(email: str = "admin@example.com", password: str = "pw"):
        return client.post("/login", data={"username": email, "password": password}, follow_redirects=False)

    return _login


@pytest.fixture()
def post(client):
    """client.post with a valid CSRF token in the form data."""

    def _post(url: str, data: dict | None = None, **kwargs):
        with client.session_transaction() as sess:
            token = sess.setdefault("csrf_token", CSRF_TOKEN)
        payload = dict(data or {})
        payload["csrf_token"] = token
        return client.post(url, data=payload, **kwargs)

    return _post


@pytest.fixture()
def add_students(app):
    """Insert students given as (name, email, major, gpa) tuples; returns their ids."""

    def _add(*rows: tuple[str, str, str, float]) -> list[int]:
        with session_scope(app) as s:
            students = [Student(name=n, email=e, major=m, gpa=g) for n, e, m, g in rows]
            s.add_all(students)
            s.flush()
            return [st.id for st in students]

    return _add


@pytest.fixture()
def s():
    """Bare SQLAlchemy session on an in-memory database, for service-level tests."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = make_sessionmaker(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
