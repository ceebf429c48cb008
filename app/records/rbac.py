from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, current_app, g, redirect, request, url_for

from app.records.models import ROLE_ADMIN, ROLE_USER, User

# Capability set per role. Every protected view names exactly one of these keys.
ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset(
        {
            "dashboard.view",
            "students.view",
            "students.create",
            "students.edit",
            "students.delete",
            "students.import",
            "students.export",
        }
    ),
    ROLE_USER: frozenset({"dashboard.view", "students.view"}),
}


def user_has_permission(user: User | None, permission_key: str) -> bool:
    if not user or not user.enabled:
        return False
    return permission_key in ROLE_PERMISSIONS.get(user.role, frozenset())


def login_redirect():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # Unauthenticated → login page.
            if not user or not user.enabled:
                return login_redirect()
            # Authenticated but unauthorized → 403
            if not user_has_permission(user, permission_key):
                g.missing_permission = permission_key
                current_app.logger.warning(
                    "Forbidden: user=%s role=%s missing_permission=%s", user.email, user.role, permission_key
                )
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.enabled:
            return login_redirect()
        return fn(*args, **kwargs)

    return wrapped
