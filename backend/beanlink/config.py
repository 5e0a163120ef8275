# backend/beanlink/config.py
from __future__ import annotations
import os


def _database_url() -> str:
    url = os.environ.get(
        "DATABASE_URL",  # hosted Postgres in production
        "sqlite:///beanlink.sqlite3",  # default local location
    )
    # Hosting providers still hand out the scheme SQLAlchemy 1.4+ rejects
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _csv(value: str | None) -> set[str]:
    if not value:
        return set()
    return {part.strip() for part in value.split(",") if part.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    CORS_ORIGINS = _csv(os.environ.get("CORS_ORIGINS")) or {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    }

    # Lost insert races are replayed as a fresh lookup-then-write this many times
    SYNC_CONFLICT_RETRIES = int(os.environ.get("SYNC_CONFLICT_RETRIES", "1"))
    SYNC_MAX_BATCH_SIZE = int(os.environ.get("SYNC_MAX_BATCH_SIZE", "1000"))

    REGISTRATION_DEFAULT_EDIT_PASSWORD = os.environ.get("REGISTRATION_DEFAULT_EDIT_PASSWORD", "1234")
