"""
Program: «Digital Residue» – file-sharing portal API.
Module: utils/blob_store.py – local directory holding uploaded file contents.

Blobs are addressed by a server-generated name (UTC timestamp with
microseconds plus a random component, original extension kept). The
client-supplied name is only ever stored in the database row.
"""

import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path

MAX_EXTENSION_LENGTH = 16


class BlobStore:
    def __init__(self, root):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_name(original_name: str | None) -> str:
        extension = os.path.splitext(os.path.basename(original_name or ""))[1].lower()
        if len(extension) > MAX_EXTENSION_LENGTH or not extension[1:].isalnum():
            extension = ""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        return f"file-{timestamp}-{uuid.uuid4().hex[:12]}{extension}"

    def path_for(self, name: str) -> Path:
        if not name or os.path.basename(name) != name or name in {".", ".."}:
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.root / name

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_file()
        except ValueError:
            return False

    def save(self, file_storage, original_name: str | None = None) -> str:
        """Write an uploaded file (werkzeug FileStorage) and return its blob name."""
        self.ensure_root()
        name = self.generate_name(original_name or getattr(file_storage, "filename", None))
        file_storage.save(str(self.path_for(name)))
        return name

    def remove(self, name: str) -> bool:
        """Delete a blob. Returns False when it was already absent."""
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            return False
        return True

    def remove_quietly(self, name: str, logger) -> bool:
        """Best-effort delete: failures are logged, never raised."""
        try:
            if self.remove(name):
                return True
            logger.info("Blob %s was already absent", name)
        except (OSError, ValueError):
            logger.exception("Failed to delete blob %s", name)
        return False

    def clear(self) -> int:
        if not self.root.exists():
            return 0

        removed = 0
        for entry in self.root.iterdir():
            if entry.is_file():
                entry.unlink()
                removed += 1
            elif entry.is_dir():
                shutil.rmtree(entry)
        return removed
