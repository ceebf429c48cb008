from flask import Blueprint, current_app, g, render_template

from app.records.db import db_session
from app.records.modules.students.service import dashboard_stats
from app.records.rbac import require_permission

bp = Blueprint("dashboard", __name__)


@bp.get("/dashboard")
@require_permission("dashboard.view")
def dashboard():
    current_app.logger.debug("Dashboard accessed by user: %s", g.current_user.email)
    stats = dashboard_stats(db_session())
    return render_template("dashboard.html", stats=stats)
