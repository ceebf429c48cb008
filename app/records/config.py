import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    seed_on_start: bool
    log_level: str
    default_page_size: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///students.db"),
        seed_on_start=_getenv("SEED_ON_START", "1") == "1",
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        default_page_size=_getint("DEFAULT_PAGE_SIZE", 5),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "SEED_ON_START": s.seed_on_start,
        "LOG_LEVEL": s.log_level,
        "DEFAULT_PAGE_SIZE": s.default_page_size,
        # session cookie
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
        # CSV uploads are small; 5MB is plenty
        "MAX_CONTENT_LENGTH": 5 * 1024 * 1024,
    }
