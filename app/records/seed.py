from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.records.models import ROLE_ADMIN, ROLE_USER, User
from app.records.modules.students.models import Student

logger = logging.getLogger(__name__)

DEFAULT_USERS = (
    # (login, password, role)
    ("admin", "admin", ROLE_ADMIN),
    ("user", "user", ROLE_USER),
)

SAMPLE_STUDENTS = (
    ("John Doe", "john.doe@example.com", "Computer Science", 3.8),
    ("Jane Smith", "jane.smith@example.com", "Electrical Engineering", 3.9),
    ("Bob Johnson", "bob.johnson@example.com", "Mathematics", 3.5),
    ("Alice Williams", "alice.williams@example.com", "Physics", 3.7),
    ("Charlie Brown", "charlie.brown@example.com", "Chemistry", 3.6),
    ("Diana Prince", "diana.prince@example.com", "Biology", 3.95),
    ("Edward Norton", "edward.norton@example.com", "Economics", 3.4),
    ("Fiona Green", "fiona.green@example.com", "Psychology", 3.75),
)


def seed_users(s: Session) -> int:
    """Insert the default accounts, only when no user exists yet."""
    if s.query(User.id).first() is not None:
        return 0
    s.add_all([User(email=login, password=pw, role=role, enabled=True) for login, pw, role in DEFAULT_USERS])
    s.flush()
    logger.info("Default users created: admin/admin (ADMIN), user/user (USER)")
    return len(DEFAULT_USERS)


def seed_students(s: Session) -> int:
    """Insert the sample students, only when the students table is empty."""
    if s.query(Student.id).first() is not None:
        return 0
    s.add_all([Student(name=n, email=e, major=m, gpa=g) for n, e, m, g in SAMPLE_STUDENTS])
    s.flush()
    logger.info("Sample students data loaded: %s students", len(SAMPLE_STUDENTS))
    return len(SAMPLE_STUDENTS)


def seed_defaults(s: Session) -> None:
    seed_users(s)
    seed_students(s)
