"""
Program: «Digital Residue» – file-sharing portal API.
Module: utils/upload_service.py – creation of new uploads.

Purpose:
- Validates an incoming multipart upload before any side effect.
- Issues the one-time secret code that proves ownership for update/delete.
- Computes the optional auto-delete expiry from a fixed set of choices.
"""

import calendar
import secrets
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from extensions import db
from models.upload import Upload
from utils.dates import isoformat_utc, utcnow
from utils.errors import StorageError, UploadValidationError

_FIXED_LIFETIMES = {
    "1d": timedelta(days=1),
    "1w": timedelta(days=7),
    "2w": timedelta(days=14),
}

_AUTO_DELETE_ALIASES = {
    "1-day": "1d",
    "1-week": "1w",
    "2-week": "2w",
    "1-month": "1m",
}


def generate_secret_code(
    length: int = Config.SECRET_CODE_LENGTH,
    alphabet: str = Config.SECRET_CODE_ALPHABET,
) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _add_one_month(value: datetime) -> datetime:
    year = value.year + value.month // 12
    month = value.month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def normalize_auto_delete(selection: str | None) -> str:
    normalized = (selection or "").strip().lower()
    normalized = _AUTO_DELETE_ALIASES.get(normalized, normalized)
    if normalized in {"", "none", "never"}:
        return "none"
    if normalized not in Config.AUTO_DELETE_CHOICES:
        raise UploadValidationError("Unknown auto_delete option")
    return normalized


def compute_expiry(selection: str | None, now: datetime | None = None) -> datetime | None:
    """Absolute expiry for an auto-delete choice, or None when the upload never expires."""
    normalized = normalize_auto_delete(selection)
    if normalized == "none":
        return None

    base = now or utcnow()
    if normalized == "1m":
        return _add_one_month(base)
    return base + _FIXED_LIFETIMES[normalized]


def _required_text(form, field: str) -> str:
    value = form.get(field)
    if not isinstance(value, str):
        return ""
    return value.strip()


def create_upload(file_storage, form, blob_store, now: datetime | None = None) -> dict:
    if file_storage is None:
        raise UploadValidationError("No file uploaded")
    if not file_storage.filename:
        raise UploadValidationError("No file selected")

    mimetype = (file_storage.mimetype or "").lower()
    if not mimetype.startswith("image/"):
        raise UploadValidationError("Only image uploads are allowed")

    title = _required_text(form, "title")
    uploader_name = _required_text(form, "uploader_name")
    if not title or not uploader_name:
        raise UploadValidationError("Title and uploader name are required")

    created_at = now or utcnow()
    expires_at = compute_expiry(form.get("auto_delete"), now=created_at)
    secret_code = generate_secret_code()

    try:
        blob_name = blob_store.save(file_storage, file_storage.filename)
    except OSError as exc:
        current_app.logger.exception("Failed to write uploaded file")
        raise StorageError() from exc

    upload = Upload(
        title=title,
        description=form.get("description") or "",
        tags=form.get("tags") or "",
        filename=blob_name,
        original_name=file_storage.filename,
        uploader_name=uploader_name,
        secret_code=secret_code,
        upload_date=created_at,
        expires_at=expires_at,
    )
    db.session.add(upload)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to store upload metadata")
        blob_store.remove_quietly(blob_name, current_app.logger)
        raise StorageError() from exc

    current_app.logger.info("Stored upload %s as %s", upload.id, blob_name)
    return {
        "id": upload.id,
        "filename": blob_name,
        "secret_code": secret_code,
        "expires_at": isoformat_utc(expires_at),
    }
