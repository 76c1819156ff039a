"""
Program: «Digital Residue» – file-sharing portal API.
Module: utils/mutation_service.py – counters and secret-code gated update/delete.

Purpose:
- Like/download counters are relative updates (``n = n + 1``) so concurrent
  requests never lose increments.
- Update and delete are authorized by the upload's own secret code or, when
  configured, by the operator override code. The override is an
  administrative recovery credential, not a security boundary; each use is
  logged for audit.
"""

import secrets

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.upload import Upload
from utils.errors import StorageError, UploadForbiddenError, UploadNotFoundError, UploadValidationError
from utils.query_service import find_upload


def _codes_match(supplied: str, expected: str | None) -> bool:
    if not expected:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def owner_code_matches(upload: Upload, supplied_code: str) -> bool:
    return _codes_match(supplied_code, upload.secret_code)


def operator_override_matches(supplied_code: str, override_code: str | None) -> bool:
    return _codes_match(supplied_code, override_code)


def authorize(upload: Upload, supplied_code, override_code: str | None = None) -> None:
    if not isinstance(supplied_code, str) or not supplied_code:
        raise UploadValidationError("secret_code is required")

    if owner_code_matches(upload, supplied_code):
        return

    if operator_override_matches(supplied_code, override_code):
        current_app.logger.warning("Operator override used for upload %s", upload.id)
        return

    raise UploadForbiddenError()


def _increment(upload_id: int, column) -> int:
    result = db.session.execute(
        update(Upload).where(Upload.id == upload_id).values({column: column + 1})
    )
    db.session.commit()
    return result.rowcount


def like_upload(upload_id: int) -> None:
    if _increment(upload_id, Upload.like_count) == 0:
        raise UploadNotFoundError()


def record_download(upload_id: int) -> None:
    """Count a download. A failed increment never blocks serving the file."""
    try:
        _increment(upload_id, Upload.download_count)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update download count for upload %s", upload_id)


def open_download(upload_id: int, blob_store):
    upload = find_upload(upload_id)
    blob_name = upload.filename
    original_name = upload.original_name

    record_download(upload_id)

    if not blob_store.exists(blob_name):
        current_app.logger.warning("Blob %s for upload %s is missing", blob_name, upload_id)
        raise UploadNotFoundError()

    return blob_store.path_for(blob_name), original_name


def update_upload(upload_id: int, payload: dict, override_code: str | None = None) -> None:
    secret_code = payload.get("secret_code")
    if not secret_code:
        raise UploadValidationError("secret_code is required")

    upload = find_upload(upload_id)
    authorize(upload, secret_code, override_code)

    changes = {}
    title = payload.get("title")
    if isinstance(title, str) and title.strip():
        changes["title"] = title.strip()
    if isinstance(payload.get("description"), str):
        changes["description"] = payload["description"]
    if isinstance(payload.get("tags"), str):
        changes["tags"] = payload["tags"]

    if not changes:
        raise UploadValidationError("No fields to update")

    for field, value in changes.items():
        setattr(upload, field, value)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update upload %s", upload_id)
        raise StorageError() from exc


def delete_upload(upload_id: int, secret_code, blob_store, override_code: str | None = None) -> None:
    if not secret_code:
        raise UploadValidationError("secret_code is required")

    upload = find_upload(upload_id)
    authorize(upload, secret_code, override_code)

    # Blob first: a crash in between leaves a row without a blob, never a leaked blob.
    blob_store.remove_quietly(upload.filename, current_app.logger)

    db.session.delete(upload)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete upload %s", upload_id)
        raise StorageError() from exc

    current_app.logger.info("Deleted upload %s", upload_id)
