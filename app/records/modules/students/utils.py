from __future__ import annotations

import re

NAME_MIN_LEN = 2
NAME_MAX_LEN = 100
GPA_MIN = 0.0
GPA_MAX = 4.0

SORTABLE_FIELDS = ("id", "name", "email", "major", "gpa")
DEFAULT_SORT = "id"

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_text(s: str | None) -> str:
    return (s or "").strip()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def parse_gpa(raw: str | float | None) -> float | None:
    """Parse a GPA value; None when blank. Raises ValueError when not a decimal."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    raw = raw.strip()
    if not raw:
        return None
    value = float(raw)
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(f"not a finite number: {raw!r}")
    return value


def normalize_sort(sort_by: str | None) -> str:
    sort_by = normalize_text(sort_by)
    return sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT


def validate_student_payload(payload: dict) -> dict[str, str]:
    """
    Validate a student create/update payload.

    Returns a {field: message} dict; empty when the payload is valid.
    `gpa` may be given as a string (form input) or a number.
    """
    errors: dict[str, str] = {}

    name = normalize_text(payload.get("name"))
    if not name:
        errors["name"] = "Name is required"
    elif not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        errors["name"] = f"Name must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters"

    email = normalize_text(payload.get("email"))
    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Email should be valid"

    if not normalize_text(payload.get("major")):
        errors["major"] = "Major is required"

    try:
        gpa = parse_gpa(payload.get("gpa"))
    except ValueError:
        errors["gpa"] = "GPA must be a number"
    else:
        if gpa is None:
            errors["gpa"] = "GPA is required"
        elif gpa < GPA_MIN:
            errors["gpa"] = "GPA must be at least 0.0"
        elif gpa > GPA_MAX:
            errors["gpa"] = "GPA must not exceed 4.0"

    return errors
