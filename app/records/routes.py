from flask import Blueprint, redirect, url_for

from app.records.rbac import require_login

bp = Blueprint("routes", __name__)


@bp.get("/")
@bp.get("/home")
@require_login
def index():
    return redirect(url_for("dashboard.dashboard"))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """Fast liveness probe. No DB access."""
    return "ok", 200
