from __future__ import annotations

import uuid

from ..extensions import db
from shopadmin.time_utils import to_utc_z, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class EntityMixin:
    """
    Shared record shape: opaque UUID id, timestamps, soft-delete marker.

    deleted_at is non-null iff the record is logically deleted. Nothing filters
    on it implicitly; every query states its visibility (see query_service).
    """
    id = db.Column(db.String(36), primary_key=True, default=new_id)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self) -> None:
        self.deleted_at = utcnow()

    def mark_restored(self) -> None:
        self.deleted_at = None

    def timestamps_dict(self) -> dict:
        return {
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }
