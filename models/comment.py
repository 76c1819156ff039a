"""
Program: «Digital Residue» – file-sharing portal API.
Module: models/comment.py – user comments attached to an upload.
"""

from extensions import db
from utils.dates import utcnow


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    upload_id = db.Column(
        db.Integer,
        db.ForeignKey("uploads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(120), nullable=True, default="")
    comment = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    upload = db.relationship("Upload", back_populates="comments")
