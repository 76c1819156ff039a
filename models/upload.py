"""
Program: «Digital Residue» – file-sharing portal API.
Module: models/upload.py – ORM model of a shared file.

Purpose:
- Describes the Upload row: display metadata, counters, the blob reference
  on disk and the original client-supplied file name.
- Holds the per-row secret code (ownership proof) and optional expiry.
"""

from extensions import db
from utils.dates import utcnow


class Upload(db.Model):
    __tablename__ = "uploads"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=True, default="")
    tags = db.Column(db.Text, nullable=True, default="")
    # Blob reference inside the upload folder, never shown as the download name
    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_name = db.Column(db.String(255), nullable=False)
    uploader_name = db.Column(db.Text, nullable=False)
    like_count = db.Column(db.Integer, nullable=False, default=0)
    download_count = db.Column(db.Integer, nullable=False, default=0)
    upload_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    secret_code = db.Column(db.String(16), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)

    comments = db.relationship(
        "Comment",
        back_populates="upload",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
