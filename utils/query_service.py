"""
Program: «Digital Residue» – file-sharing portal API.
Module: utils/query_service.py – read-only listing, lookup, search and ranking.

None of the payloads built here carry the secret code.
"""

from sqlalchemy import extract, or_

from extensions import db
from models.upload import Upload
from utils.dates import isoformat_utc
from utils.errors import UploadNotFoundError, UploadValidationError


def serialize_upload(upload: Upload) -> dict:
    return {
        "id": upload.id,
        "title": upload.title,
        "description": upload.description or "",
        "tags": upload.tags or "",
        "filename": upload.filename,
        "original_name": upload.original_name,
        "uploader_name": upload.uploader_name,
        "like_count": upload.like_count or 0,
        "download_count": upload.download_count or 0,
        "upload_date": isoformat_utc(upload.upload_date),
        "expires_at": isoformat_utc(upload.expires_at),
    }


def _newest_first(query):
    return query.order_by(Upload.upload_date.desc(), Upload.id.desc())


def list_uploads() -> list[dict]:
    return [serialize_upload(item) for item in _newest_first(Upload.query).all()]


def find_upload(upload_id: int) -> Upload:
    upload = db.session.get(Upload, upload_id)
    if upload is None:
        raise UploadNotFoundError()
    return upload


def get_upload(upload_id: int) -> dict:
    return serialize_upload(find_upload(upload_id))


def search_uploads(q: str | None = None, tag: str | None = None) -> list[dict]:
    query = Upload.query
    if q:
        query = query.filter(
            or_(
                Upload.title.icontains(q, autoescape=True),
                Upload.description.icontains(q, autoescape=True),
            )
        )
    if tag:
        query = query.filter(Upload.tags.icontains(tag, autoescape=True))
    return [serialize_upload(item) for item in _newest_first(query).all()]


def parse_month(raw_month) -> int | None:
    if raw_month is None or str(raw_month).strip() == "":
        return None
    try:
        month = int(str(raw_month).strip())
    except ValueError:
        raise UploadValidationError("month must be a number between 1 and 12")
    if not 1 <= month <= 12:
        raise UploadValidationError("month must be a number between 1 and 12")
    return month


def leaderboard(month=None) -> list[dict]:
    """Uploads ranked by likes, then downloads. ``month`` (1-12) matches any year."""
    month_number = parse_month(month)
    query = Upload.query
    if month_number is not None:
        query = query.filter(extract("month", Upload.upload_date) == month_number)

    items = query.order_by(
        Upload.like_count.desc(),
        Upload.download_count.desc(),
        Upload.id.asc(),
    ).all()
    return [serialize_upload(item) for item in items]
