# Overview: Local filesystem blob store for uploads.

"""
Blob store.

Files live under UPLOAD_DESTINATION/<dir>/<uuid><ext> and are served at
/uploads/<dir>/<file>. Callers record metadata only; they never build paths
themselves.
"""
from __future__ import annotations

import os
import uuid
from dataclasses import dataclass

from flask import current_app

from ..enums import MediaType
from ..validation import ValidationError


ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_FILES_COUNT = 10

# Media type -> directory under the upload root
TYPE_DIRECTORIES = {
    MediaType.AVATAR: "avatars",
    MediaType.PRODUCT: "products",
    MediaType.CATEGORY: "categories",
    MediaType.GENERAL: "general",
}

URL_PREFIX = "/uploads"


@dataclass(frozen=True)
class StoredBlob:
    original_name: str
    file_name: str
    path: str
    url: str
    size: int
    mime_type: str

    def to_dict(self) -> dict:
        return {
            "original_name": self.original_name,
            "file_name": self.file_name,
            "path": self.path,
            "url": self.url,
            "size": self.size,
            "mime_type": self.mime_type,
        }


def directory_for(media_type: str) -> str:
    return TYPE_DIRECTORIES.get(media_type, TYPE_DIRECTORIES[MediaType.GENERAL])


def check_upload(mime_type: str | None, size: int) -> None:
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed.")
    if size > MAX_FILE_SIZE:
        raise ValidationError("File too large. Maximum size is 5MB.")


class LocalBlobStore:
    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def ensure_directories(self) -> None:
        for directory in TYPE_DIRECTORIES.values():
            os.makedirs(os.path.join(self.root, directory), exist_ok=True)

    def _full_path(self, relative_path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, relative_path))
        if os.path.commonpath([full, self.root]) != self.root:
            raise ValidationError("Invalid file path")
        return full

    def save(self, payload: bytes, directory: str, original_name: str, mime_type: str) -> StoredBlob:
        _, ext = os.path.splitext(original_name or "")
        file_name = f"{uuid.uuid4()}{ext.lower()}"
        relative_path = f"{directory}/{file_name}"
        full_path = self._full_path(relative_path)

        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as fh:
            fh.write(payload)

        return StoredBlob(
            original_name=original_name,
            file_name=file_name,
            path=relative_path,
            url=f"{URL_PREFIX}/{relative_path}",
            size=len(payload),
            mime_type=mime_type,
        )

    def delete(self, relative_path: str) -> bool:
        """Remove a stored file. Returns False when it was already gone."""
        full_path = self._full_path(relative_path)
        if not os.path.isfile(full_path):
            return False
        os.remove(full_path)
        return True

    def exists(self, relative_path: str) -> bool:
        return os.path.isfile(self._full_path(relative_path))


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(current_app.config["UPLOAD_DESTINATION"])


def read_upload(file_storage) -> bytes:
    """Read a werkzeug FileStorage and run the type and size checks. Nothing is written."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No file uploaded")
    payload = file_storage.read()
    check_upload(file_storage.mimetype, len(payload))
    return payload


def save_upload(file_storage, payload: bytes, directory: str) -> StoredBlob:
    blob = get_blob_store().save(payload, directory, file_storage.filename, file_storage.mimetype)
    current_app.logger.info("Stored upload %s (%d bytes)", blob.path, blob.size)
    return blob


def store_upload(file_storage, directory: str) -> StoredBlob:
    """Validate and store a werkzeug FileStorage without creating a media row."""
    return save_upload(file_storage, read_upload(file_storage), directory)
