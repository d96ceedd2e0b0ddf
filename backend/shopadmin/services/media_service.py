# Overview: Service-layer operations for media records backed by the blob store.

from __future__ import annotations

from flask import current_app

from ..enums import MediaType
from ..extensions import db
from ..models import Media
from ..validation import NotFoundError, ValidationError
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate, run_bulk
from .storage_service import MAX_FILES_COUNT, directory_for, get_blob_store, read_upload, save_upload, store_upload


MEDIA_SORT_FIELDS = {
    "created_at": Media.created_at,
    "updated_at": Media.updated_at,
    "original_name": Media.original_name,
    "size": Media.size,
    "type": Media.type,
}


def get_media(media_id: str, *, visibility: str = Visibility.EXCLUDE) -> Media:
    query = db.session.query(Media).filter(Media.id == media_id)
    media = apply_visibility(query, Media, visibility).first()
    if not media:
        raise NotFoundError("Media not found")
    return media


def _media_row(blob, media_type: str, alt: str | None = None, title: str | None = None) -> Media:
    return Media(
        original_name=blob.original_name,
        file_name=blob.file_name,
        path=blob.path,
        url=blob.url,
        size=blob.size,
        mime_type=blob.mime_type,
        type=media_type,
        alt=alt,
        title=title,
    )


def upload_media(*, file_storage, media_type: str = MediaType.GENERAL, alt: str | None = None, title: str | None = None) -> Media:
    blob = store_upload(file_storage, directory_for(media_type))
    media = _media_row(blob, media_type, alt, title)
    db.session.add(media)
    db.session.commit()
    return media


def upload_media_bulk(*, files: list, media_type: str = MediaType.GENERAL) -> list[Media]:
    """All files pass the type and size checks before any of them is written."""
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > MAX_FILES_COUNT:
        raise ValidationError(f"Too many files. Maximum is {MAX_FILES_COUNT}.")
    payloads = [read_upload(f) for f in files]

    directory = directory_for(media_type)
    media = [_media_row(save_upload(f, payload, directory), media_type) for f, payload in zip(files, payloads)]
    db.session.add_all(media)
    db.session.commit()
    return media


def update_media(*, media_id: str, patch: dict) -> Media:
    media = get_media(media_id)
    for key, value in patch.items():
        setattr(media, key, value)
    db.session.commit()
    return media


def delete_media(*, media_id: str) -> None:
    """Hard delete: removes the stored file and the row."""
    media = get_media(media_id, visibility=Visibility.INCLUDE)
    if not get_blob_store().delete(media.path):
        current_app.logger.warning("Media %s file already missing at %s", media.id, media.path)
    db.session.delete(media)
    db.session.commit()


def soft_delete_media(*, media_id: str) -> None:
    media = get_media(media_id)
    media.mark_deleted()
    db.session.commit()


def restore_media(*, media_id: str) -> Media:
    media = get_media(media_id, visibility=Visibility.INCLUDE)
    if not media.is_deleted:
        raise ValidationError("Media is not deleted")
    media.mark_restored()
    db.session.commit()
    return media


def bulk_delete_media(ids: list[str]) -> dict:
    return run_bulk(ids, lambda media_id: delete_media(media_id=media_id))


def bulk_soft_delete_media(ids: list[str]) -> dict:
    return run_bulk(ids, lambda media_id: soft_delete_media(media_id=media_id))


def list_media(q: ListQuery, *, media_type: str | None = None) -> dict:
    query = db.session.query(Media)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            db.or_(Media.original_name.ilike(like), Media.alt.ilike(like), Media.title.ilike(like))
        )
    if media_type:
        query = query.filter(Media.type == media_type)
    query = apply_visibility(query, Media, q.visibility)
    query = apply_sort(query, q, MEDIA_SORT_FIELDS, "created_at")
    return paginate(query, q, lambda m: m.to_dict())


def media_stats() -> dict:
    live = db.session.query(Media).filter(Media.deleted_at.is_(None))
    by_type = {media_type: 0 for media_type in MediaType.ALL}
    for media_type, count in live.with_entities(Media.type, db.func.count(Media.id)).group_by(Media.type).all():
        by_type[media_type] = count
    total_size = live.with_entities(db.func.coalesce(db.func.sum(Media.size), 0)).scalar()
    return {"total": live.count(), "by_type": by_type, "total_size": int(total_size or 0)}
