"""
Program: «Digital Residue» – file-sharing portal API.
Module: utils/expiry_sweeper.py – periodic removal of expired uploads.

Purpose:
- ``sweep_expired`` deletes every upload whose ``expires_at`` has passed,
  blob first and then the row (comments cascade).
- ``ExpirySweeper`` runs that sweep on a fixed interval in an APScheduler
  background thread, independent of request handling.

Each run works from a snapshot taken at sweep start, commits per row and
keeps going when a single row fails, so runs are safe to repeat or skip.
"""

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.upload import Upload
from utils.dates import utcnow

logger = logging.getLogger("digital_residue.sweeper")

JOB_ID = "sweep_expired_uploads"


def sweep_expired(blob_store, now: datetime | None = None) -> int:
    """Delete expired uploads and their blobs. Returns the number of rows removed."""
    cutoff = now or utcnow()

    try:
        expired = (
            db.session.query(Upload.id, Upload.filename)
            .filter(Upload.expires_at.isnot(None), Upload.expires_at <= cutoff)
            .all()
        )
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to select expired uploads")
        return 0

    removed = 0
    for upload_id, blob_name in expired:
        blob_store.remove_quietly(blob_name, logger)
        try:
            upload = db.session.get(Upload, upload_id)
            if upload is None:
                continue
            db.session.delete(upload)
            db.session.commit()
            removed += 1
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to delete expired upload %s", upload_id)

    if removed:
        logger.info("Expiry sweep removed %d upload(s)", removed)
    return removed


class ExpirySweeper:
    def __init__(self, app, blob_store, interval_minutes: int = 60):
        self.app = app
        self.blob_store = blob_store
        self.interval_minutes = max(1, int(interval_minutes))
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self, now: datetime | None = None) -> int:
        with self.app.app_context():
            try:
                return sweep_expired(self.blob_store, now=now)
            finally:
                db.session.remove()

    def _run_job(self) -> None:
        try:
            self.run_once()
        except Exception:
            logger.exception("Expiry sweep failed")

    def start(self) -> None:
        if self.running:
            return

        scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
        scheduler.add_job(
            func=self._run_job,
            trigger="interval",
            minutes=self.interval_minutes,
            id=JOB_ID,
            name="Remove expired uploads",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Expiry sweeper started, interval %d minute(s)", self.interval_minutes)

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Expiry sweeper stopped")
