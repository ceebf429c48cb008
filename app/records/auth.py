from __future__ import annotations

import hmac
import uuid

from flask import Blueprint, current_app, g, redirect, render_template, request, session, url_for
from sqlalchemy.orm import Session

from app.records.db import db_session
from app.records.models import User

bp = Blueprint("auth", __name__)


def find_user_by_email(s: Session, email: str | None) -> User | None:
    """Exact (case-sensitive) lookup by login name."""
    if not email:
        return None
    return s.query(User).filter(User.email == email).one_or_none()


def authenticate(s: Session, email: str | None, password: str | None) -> User | None:
    """
    Return the enabled user whose stored password equals `password`, else None.
    Stored passwords are plain text and compared as-is.
    """
    user = find_user_by_email(s, email)
    if not user or not user.enabled:
        return None
    if not hmac.compare_digest((user.password or "").encode("utf-8"), (password or "").encode("utf-8")):
        return None
    return user


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    if request.path.startswith(("/static/", "/health", "/healthz")):
        return

    user_id = session.get("user_id")
    if not user_id:
        return

    user = db_session().get(User, int(user_id))
    if not user or not user.enabled:
        session.pop("user_id", None)
        return
    g.current_user = user


@bp.get("/login")
def login_get():
    if getattr(g, "current_user", None):
        return redirect(url_for("dashboard.dashboard"))
    return render_template(
        "auth/login.html",
        error=request.args.get("error") is not None,
        logged_out=request.args.get("logout") is not None,
    )


@bp.post("/login")
def login_post():
    username = (request.form.get("username") or request.form.get("email") or "").strip()
    password = request.form.get("password") or ""

    user = authenticate(db_session(), username, password)
    if user is None:
        current_app.logger.warning(
            "Login failed (username=%s request_id=%s)", username, getattr(g, "request_id", None)
        )
        return redirect(url_for("auth.login_get", error="true"))

    session.clear()
    session["user_id"] = user.id
    session.permanent = True
    current_app.logger.info("Login ok (username=%s role=%s)", user.email, user.role)
    return redirect(url_for("dashboard.dashboard"))


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        current_app.logger.info("Logout (username=%s)", user.email)
    session.clear()
    return redirect(url_for("auth.login_get", logout="true"))
