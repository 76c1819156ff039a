from datetime import datetime, timedelta

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from extensions import db
from models.comment import Comment
from models.upload import Upload
from utils.expiry_sweeper import ExpirySweeper, sweep_expired


def _expires_at(payload) -> datetime:
    return datetime.fromisoformat(payload["expires_at"].rstrip("Z"))


def test_sweep_removes_upload_after_its_expiry(app, client, upload_file, blob_store):
    created = upload_file(auto_delete="1d").get_json()
    client.post(f"/api/uploads/{created['id']}/comments", json={"comment": "bye"})
    sweeper = app.extensions["expiry_sweeper"]

    assert sweeper.run_once(now=_expires_at(created) - timedelta(minutes=1)) == 0
    assert client.get(f"/api/uploads/{created['id']}").status_code == 200

    assert sweeper.run_once(now=_expires_at(created) + timedelta(seconds=1)) == 1
    assert client.get(f"/api/uploads/{created['id']}").status_code == 404
    assert client.get("/api/uploads").get_json() == []
    assert not blob_store.exists(created["filename"])
    with app.app_context():
        assert Comment.query.count() == 0


def test_sweep_leaves_uploads_without_expiry(app, client, upload_file):
    keep = upload_file(title="keep").get_json()
    upload_file(title="short lived", auto_delete="1w")

    removed = app.extensions["expiry_sweeper"].run_once(now=datetime.utcnow() + timedelta(days=365))

    assert removed == 1
    items = client.get("/api/uploads").get_json()
    assert [item["id"] for item in items] == [keep["id"]]


def test_sweep_with_no_expired_rows_is_a_no_op(app):
    assert app.extensions["expiry_sweeper"].run_once() == 0


def test_sweep_tolerates_missing_blob(app, upload_file, blob_store):
    created = upload_file(auto_delete="2w").get_json()
    blob_store.remove(created["filename"])

    with app.app_context():
        upload = db.session.get(Upload, created["id"])
        upload.expires_at = datetime.utcnow() - timedelta(seconds=5)
        db.session.commit()

        assert sweep_expired(blob_store) == 1
        assert db.session.get(Upload, created["id"]) is None


def test_sweeper_starts_and_shuts_down(app, blob_store):
    sweeper = ExpirySweeper(app, blob_store, interval_minutes=60)

    sweeper.start()
    try:
        assert sweeper.running
    finally:
        sweeper.shutdown()
    assert not sweeper.running


def test_sweep_continues_after_a_row_fails(app, client, upload_file, blob_store, caplog):
    broken = upload_file(title="broken", auto_delete="1d").get_json()
    healthy = upload_file(title="healthy", auto_delete="1d").get_json()

    def reject_broken_delete(session, flush_context, instances):
        if any(getattr(obj, "id", None) == broken["id"] for obj in session.deleted):
            raise SQLAlchemyError("database is locked")

    event.listen(Session, "before_flush", reject_broken_delete)
    try:
        with caplog.at_level("ERROR"):
            removed = app.extensions["expiry_sweeper"].run_once(now=datetime.utcnow() + timedelta(days=2))
    finally:
        event.remove(Session, "before_flush", reject_broken_delete)

    assert removed == 1
    assert client.get(f"/api/uploads/{healthy['id']}").status_code == 404
    assert not blob_store.exists(healthy["filename"])
    assert client.get(f"/api/uploads/{broken['id']}").status_code == 200
    assert any("Failed to delete expired upload" in record.getMessage() for record in caplog.records)
