import logging
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, render_template, request, session

from app.records.config import load_config
from app.records.db import init_db, session_scope, teardown_db_session
from app.records.models import Base
from app.records.routes import bp as routes_bp
from app.records.auth import bp as auth_bp, load_current_user
from app.records.dashboard import bp as dashboard_bp
from app.records.modules.students.routes import bp as students_bp

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL") or "INFO"
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("app.records").setLevel(level)
    app.logger.setLevel(level)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    _configure_logging(app)

    from app.records.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_permissions() -> dict:
        from app.records.rbac import user_has_permission

        user = getattr(g, "current_user", None)

        def has_perm(key: str) -> bool:
            return user_has_permission(user, key)

        return {
            "has_perm": has_perm,
            "current_user": user,
            "username": user.email if user else None,
            "is_admin": bool(user and user.is_admin),
        }

    @app.template_filter("gpa")
    def _gpa_filter(value, places: int = 2) -> str:
        if value is None:
            return "—"
        return f"{float(value):.{places}f}"

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # The login form may post before a session exists.
            if request.endpoint == "auth.login_post":
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if str(app.config.get("SECRET_KEY") or "") in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(students_bp, url_prefix="/students")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    # One-time initialization: schema + default accounts + sample students, each gated on emptiness.
    if app.config.get("SEED_ON_START"):
        from app.records.seed import seed_defaults

        Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
        with session_scope(app) as s:
            seed_defaults(s)

    @app.errorhandler(400)
    def _err_400(e):  # type: ignore[no-redef]
        return render_template("errors/400.html", message=getattr(e, "description", None)), 400

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        return render_template("errors/403.html", missing_permission=getattr(g, "missing_permission", None)), 403

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        from flask import flash, redirect, url_for

        flash("File too large. Maximum size is 5MB.", "danger")
        return redirect(url_for("students.students_list")), 302

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    logger.info("create_app() complete; app ready to serve (env=%s)", env or "development")
    return app
