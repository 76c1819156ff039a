"""
Program: «Digital Residue» – file-sharing portal API.
Module: config.py – application settings read from the environment.
"""

import os
import secrets
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    raw_value = os.environ.get(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw_value = os.environ.get(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or secrets.token_hex(32)

    # Falls back to a SQLite file in the Flask instance folder.
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _env_bool("AUTO_CREATE_TABLES", True)

    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))
    MAX_CONTENT_LENGTH = max(1, _env_int("MAX_UPLOAD_MB", 10)) * 1024 * 1024

    EXPIRY_SWEEP_ENABLED = _env_bool("EXPIRY_SWEEP_ENABLED", True)
    EXPIRY_SWEEP_INTERVAL_MINUTES = max(1, _env_int("EXPIRY_SWEEP_INTERVAL_MINUTES", 60))

    # Administrative recovery credential. Unset means the override is disabled.
    OPERATOR_OVERRIDE_CODE = os.environ.get("OPERATOR_OVERRIDE_CODE") or None

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_DIR = os.environ.get("LOG_DIR") or None

    BABEL_DEFAULT_LOCALE = "en"

    SECRET_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    SECRET_CODE_LENGTH = 6

    COMMENT_NAME_MAX_LENGTH = 120
    COMMENT_TEXT_MAX_LENGTH = 4000

    AUTO_DELETE_CHOICES = ("none", "1d", "1w", "2w", "1m")
