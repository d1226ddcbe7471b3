"""
Runtime settings, read from the environment (and .env when present).
"""
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///worklog.db"
DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_CORS_ORIGINS = "http://localhost:3000"


def database_url() -> str:
    return (os.getenv("WORKLOG_DATABASE_URL") or DEFAULT_DATABASE_URL).strip()


def api_url() -> str:
    """Base URL the client uses to reach the store service."""
    return (os.getenv("WORKLOG_API_URL") or DEFAULT_API_URL).strip().rstrip("/")


def cors_origins() -> list[str]:
    raw = os.getenv("WORKLOG_CORS_ORIGINS") or DEFAULT_CORS_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]
