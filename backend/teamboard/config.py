import os
import logging

from dotenv import load_dotenv

from .aggregator import BAND_MOST_FREQUENT, BAND_POLICIES

load_dotenv(override=True)

DEFAULT_DATABASE_URL = "sqlite:///./teamboard.db"
DEFAULT_LOCAL_STORE_PATH = "./teamboard_local.json"

BACKEND_AUTO = "auto"
BACKEND_SQL = "sql"
BACKEND_LOCAL = "local"


def get_database_url() -> str:
    return (os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()


def get_backend_choice() -> str:
    choice = (os.getenv("TEAMBOARD_BACKEND") or BACKEND_AUTO).strip().lower()
    if choice not in (BACKEND_AUTO, BACKEND_SQL, BACKEND_LOCAL):
        raise ValueError(f"Invalid TEAMBOARD_BACKEND: {choice!r}")
    return choice


def get_band_policy() -> str:
    policy = (os.getenv("TEAMBOARD_BAND_POLICY") or BAND_MOST_FREQUENT).strip().lower()
    if policy not in BAND_POLICIES:
        raise ValueError(f"Invalid TEAMBOARD_BAND_POLICY: {policy!r}")
    return policy


def get_local_store_path() -> str:
    return (os.getenv("LOCAL_STORE_PATH") or DEFAULT_LOCAL_STORE_PATH).strip()


def get_allowed_email() -> str:
    return (os.getenv("ALLOWED_EMAIL") or "").strip()


def get_allowed_user_id() -> str:
    return (os.getenv("ALLOWED_USER_ID") or "").strip()


def get_sql_echo() -> bool:
    return (os.getenv("SQL_ECHO") or "").strip() in ("1", "true", "True")


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
