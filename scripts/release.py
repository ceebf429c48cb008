"""
Deploy-time database step: bring the schema to head and make sure the
default accounts and sample students exist.

DATABASE_URL must be set; production refuses sqlite.

    python scripts/release.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _database_url() -> str:
    url = (os.environ.get("DATABASE_URL") or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set; nothing to migrate.")
    return url


def run_release() -> None:
    db_url = _database_url()
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and db_url.startswith("sqlite"):
        raise RuntimeError("Production release needs a Postgres DATABASE_URL, got sqlite.")

    print(f"[release] env={env or '-'}: upgrading schema to head", flush=True)

    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")
    print("[release] schema up to date; checking default users and sample students", flush=True)

    from scripts import init_db

    users, students = init_db.seed_only(database_url=db_url)
    print(f"[release] seeded {users} users, {students} students", flush=True)


def main() -> None:
    run_release()


if __name__ == "__main__":
    main()
