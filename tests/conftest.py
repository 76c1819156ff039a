from pathlib import Path
import sys
import os

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-32-characters-min")
os.environ.setdefault("EXPIRY_SWEEP_ENABLED", "false")

import io

import pytest

from app import create_app
from extensions import db


@pytest.fixture()
def app(tmp_path: Path):
    db_path = tmp_path / "test.db"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "AUTO_CREATE_TABLES": True,
            "EXPIRY_SWEEP_ENABLED": False,
            "OPERATOR_OVERRIDE_CODE": None,
        }
    )

    with app.app_context():
        db.drop_all()
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def blob_store(app):
    return app.extensions["blob_store"]


@pytest.fixture()
def upload_file(client):
    def _upload_file(
        title: str = "Sunset",
        uploader_name: str = "Ana",
        filename: str = "photo.png",
        content: bytes = b"\x89PNG\r\n\x1a\nfake-image-bytes",
        content_type: str = "image/png",
        **fields,
    ):
        data = {
            "title": title,
            "uploader_name": uploader_name,
            "file": (io.BytesIO(content), filename, content_type),
        }
        data.update(fields)
        return client.post("/api/upload", data=data, content_type="multipart/form-data")

    return _upload_file
