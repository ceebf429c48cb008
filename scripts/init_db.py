import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import script_session  # noqa: E402
from app.records.seed import seed_students, seed_users  # noqa: E402


def seed_only(*, database_url: str | None = None) -> tuple[int, int]:
    """
    Seed default accounts and sample students in an idempotent way.
    Each set is only inserted into an empty table; existing rows are never touched.
    Returns (users_created, students_created).
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///students.db").strip()

    with script_session(db_url) as s:
        users = seed_users(s)
        students = seed_students(s)

    print(f"Initialized database (seed_only): {users} users, {students} students created.")
    return users, students


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
