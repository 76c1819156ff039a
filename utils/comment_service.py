from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from extensions import db
from models.comment import Comment
from utils.dates import isoformat_utc
from utils.errors import StorageError, UploadValidationError
from utils.query_service import find_upload


def serialize_comment(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "name": comment.name or "",
        "comment": comment.comment,
        "created_at": isoformat_utc(comment.created_at),
    }


def list_comments(upload_id: int) -> list[dict]:
    find_upload(upload_id)
    items = (
        Comment.query.filter_by(upload_id=upload_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    return [serialize_comment(item) for item in items]


def add_comment(upload_id: int, payload: dict) -> dict:
    raw_comment = payload.get("comment")
    text = raw_comment.strip() if isinstance(raw_comment, str) else ""
    if not text:
        raise UploadValidationError("comment is required")

    find_upload(upload_id)

    raw_name = payload.get("name")
    name = str(raw_name).strip() if raw_name is not None else ""

    # Length clamp, not a validation failure.
    comment = Comment(
        upload_id=upload_id,
        name=name[: Config.COMMENT_NAME_MAX_LENGTH],
        comment=text[: Config.COMMENT_TEXT_MAX_LENGTH],
    )
    db.session.add(comment)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to store comment for upload %s", upload_id)
        raise StorageError() from exc

    return {"id": comment.id}
