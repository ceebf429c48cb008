from app.records import create_app
from app.records.auth import authenticate, find_user_by_email
from app.records.db import session_scope
from app.records.models import User
from app.records.modules.students.models import Student
from app.records.rbac import user_has_permission


def test_authenticate(app):
    with session_scope(app) as s:
        user = authenticate(s, "admin@example.com", "pw")
        assert user is not None
        assert user.role == "ADMIN"
        assert user.is_admin

        assert authenticate(s, "admin@example.com", "wrong") is None
        assert authenticate(s, "nobody@example.com", "pw") is None
        assert authenticate(s, "disabled@example.com", "pw") is None
        assert authenticate(s, None, "pw") is None
        assert authenticate(s, "", "") is None


def test_user_lookup_is_case_sensitive(app):
    with session_scope(app) as s:
        assert find_user_by_email(s, "admin@example.com") is not None
        assert find_user_by_email(s, "Admin@Example.com") is None


def test_role_capabilities():
    admin = User(email="a", password="a", role="ADMIN", enabled=True)
    viewer = User(email="u", password="u", role="USER", enabled=True)
    disabled = User(email="d", password="d", role="ADMIN", enabled=False)

    for key in ("students.create", "students.edit", "students.delete", "students.import", "students.export"):
        assert user_has_permission(admin, key)
        assert not user_has_permission(viewer, key)
    for key in ("students.view", "dashboard.view"):
        assert user_has_permission(admin, key)
        assert user_has_permission(viewer, key)
    assert not user_has_permission(disabled, "students.view")
    assert not user_has_permission(None, "students.view")


def test_login_redirects_to_dashboard(client, login):
    r = login()
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")

    r = client.get("/dashboard")
    assert r.status_code == 200
    assert b"Total Students" in r.data


def test_login_failure(client, login):
    r = login(password="nope")
    assert r.status_code == 302
    assert "/login?error=true" in r.headers["Location"]

    r = login(email="disabled@example.com")
    assert "/login?error=true" in r.headers["Location"]

    r = client.get("/login?error=true")
    assert b"Invalid username or password" in r.data


def test_unauthenticated_requests_go_to_login(client):
    for path in ("/", "/home", "/dashboard", "/students", "/students/1", "/students/new", "/students/export"):
        r = client.get(path)
        assert r.status_code == 302, path
        assert "/login" in r.headers["Location"], path


def test_home_redirects_to_dashboard(client, login):
    login("viewer@example.com")
    for path in ("/", "/home"):
        r = client.get(path)
        assert r.status_code == 302
        assert r.headers["Location"].endswith("/dashboard")


def test_logout(client, login, post):
    login()
    r = client.post("/logout")
    assert r.status_code == 400
    assert client.get("/dashboard").status_code == 200

    r = post("/logout")
    assert r.status_code == 302
    assert "/login?logout=true" in r.headers["Location"]

    r = client.get("/dashboard")
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]


def test_startup_seeding_runs_once(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'seed.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SEED_ON_START", "1")

    app = create_app()
    create_app()  # second boot must not duplicate anything

    with session_scope(app) as s:
        users = {u.email: u for u in s.query(User).all()}
        assert set(users) == {"admin", "user"}
        assert users["admin"].role == "ADMIN" and users["admin"].password == "admin"
        assert users["user"].role == "USER" and users["user"].password == "user"
        assert s.query(Student).count() == 8

    client = app.test_client()
    r = client.post("/login", data={"username": "admin", "password": "admin"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")
