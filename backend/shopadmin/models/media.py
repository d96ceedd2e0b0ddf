from __future__ import annotations

from ..extensions import db
from .base import EntityMixin


class Media(EntityMixin, db.Model):
    """Metadata for a stored upload. The bytes live in the blob store at `path`."""
    __tablename__ = "media"

    original_name = db.Column(db.String(255), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    path = db.Column(db.String(500), nullable=False)
    url = db.Column(db.String(500), nullable=False)
    size = db.Column(db.Integer, nullable=False, default=0)
    mime_type = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(32), nullable=False, default="general", index=True)
    alt = db.Column(db.String(255), nullable=True)
    title = db.Column(db.String(500), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_name": self.original_name,
            "file_name": self.file_name,
            "path": self.path,
            "url": self.url,
            "size": self.size,
            "mime_type": self.mime_type,
            "type": self.type,
            "alt": self.alt,
            "title": self.title,
            **self.timestamps_dict(),
        }
