import logging
import re
from datetime import datetime, timedelta

import pytest

from utils.blob_store import BlobStore
from utils.errors import UploadValidationError
from utils.upload_service import compute_expiry, generate_secret_code

NOW = datetime(2026, 1, 31, 10, 30, 0)


def test_secret_code_uses_unambiguous_alphabet():
    for _ in range(200):
        code = generate_secret_code()
        assert re.fullmatch(r"[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{6}", code)
        assert not set(code) & {"0", "O", "1", "I"}


@pytest.mark.parametrize(
    "selection, expected",
    [
        ("1d", NOW + timedelta(days=1)),
        ("1w", NOW + timedelta(days=7)),
        ("2w", NOW + timedelta(days=14)),
        ("1-week", NOW + timedelta(days=7)),
    ],
)
def test_compute_expiry_fixed_lifetimes(selection, expected):
    assert compute_expiry(selection, now=NOW) == expected


def test_compute_expiry_one_month_clamps_to_month_end():
    assert compute_expiry("1m", now=NOW) == datetime(2026, 2, 28, 10, 30, 0)
    assert compute_expiry("1m", now=datetime(2026, 12, 15)) == datetime(2027, 1, 15)


@pytest.mark.parametrize("selection", [None, "", "none", " NONE "])
def test_compute_expiry_none(selection):
    assert compute_expiry(selection, now=NOW) is None


def test_compute_expiry_rejects_unknown_option():
    with pytest.raises(UploadValidationError):
        compute_expiry("forever", now=NOW)


def test_blob_names_are_unique_and_keep_extension():
    names = {BlobStore.generate_name("Holiday.JPG") for _ in range(50)}
    assert len(names) == 50
    assert all(name.endswith(".jpg") for name in names)
    assert BlobStore.generate_name("no-extension").startswith("file-")


def test_blob_store_rejects_path_traversal(tmp_path):
    store = BlobStore(tmp_path)
    with pytest.raises(ValueError):
        store.path_for("../../etc/passwd")
    assert store.remove("absent.png") is False


def test_remove_quietly_logs_instead_of_raising(tmp_path, caplog):
    store = BlobStore(tmp_path)
    blob = tmp_path / "kept.png"
    blob.write_bytes(b"png")
    logger = logging.getLogger("digital_residue.tests")

    def failing_remove(name):
        raise PermissionError(13, "Permission denied", name)

    assert store.remove_quietly("absent.png", logger) is False

    store.remove = failing_remove
    with caplog.at_level("ERROR"):
        assert store.remove_quietly("kept.png", logger) is False
    assert blob.exists()
    assert any("Failed to delete blob kept.png" in record.getMessage() for record in caplog.records)
