# Overview: Flask API routes for the media library; multipart uploads plus metadata CRUD.

"""
Media library routes.

DELETE /<id> removes the stored file and the row. Soft delete and restore
are separate routes that keep the file on disk.
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..enums import MediaType
from ..models import Media
from ..request_utils import body_ids, json_payload, raise_if_errors
from ..responses import success
from ..services import media_service
from ..services.query_service import parse_choice_arg, parse_list_query
from ..validation import ModelValidationPolicy, enforce_rules_media, validate_payload

MEDIA_POLICY = ModelValidationPolicy(
    writable_fields={"alt", "title"},
)

UPLOAD_FORM_POLICY = ModelValidationPolicy(
    writable_fields={"type", "alt", "title"},
    required_on_create={"type"},
)

media_bp = Blueprint("media", __name__, url_prefix="/api/admin/media")


def _upload_form() -> dict:
    patch = validate_payload(model=Media, payload=request.form.to_dict(), policy=UPLOAD_FORM_POLICY, partial=False)
    enforce_rules_media(patch)
    return patch


@media_bp.get("")
@require_auth
@require_staff
@require_permission("products.read")
def list_media_route():
    errors = []
    q = parse_list_query(request.args, errors)
    media_type = parse_choice_arg(request.args, "type", MediaType.ALL, errors)
    raise_if_errors(errors)
    return success(media_service.list_media(q, media_type=media_type), "Media retrieved successfully")


@media_bp.get("/stats")
@require_auth
@require_staff
@require_permission("products.read")
def media_stats_route():
    return success(media_service.media_stats(), "Media statistics retrieved successfully")


@media_bp.get("/<media_id>")
@require_auth
@require_staff
@require_permission("products.read")
def get_media_route(media_id: str):
    return success(media_service.get_media(media_id).to_dict(), "Media retrieved successfully")


@media_bp.post("/upload")
@require_auth
@require_staff
@require_permission("products.create")
def upload_media_route():
    """multipart/form-data: file, type, alt (optional), title (optional)."""
    form = _upload_form()
    media = media_service.upload_media(
        file_storage=request.files.get("file"),
        media_type=form["type"],
        alt=form.get("alt"),
        title=form.get("title"),
    )
    return success(media.to_dict(), "Media uploaded successfully", 201)


@media_bp.post("/upload/bulk")
@require_auth
@require_staff
@require_permission("products.create")
def upload_media_bulk_route():
    """multipart/form-data: files (repeated), type."""
    form = _upload_form()
    media = media_service.upload_media_bulk(files=request.files.getlist("files"), media_type=form["type"])
    return success([m.to_dict() for m in media], f"{len(media)} files uploaded successfully", 201)


@media_bp.patch("/<media_id>")
@require_auth
@require_staff
@require_permission("products.update")
def update_media_route(media_id: str):
    patch = validate_payload(model=Media, payload=json_payload(), policy=MEDIA_POLICY, partial=True)
    media = media_service.update_media(media_id=media_id, patch=patch)
    return success(media.to_dict(), "Media updated successfully")


@media_bp.delete("/bulk")
@require_auth
@require_staff
@require_permission("products.delete")
def bulk_delete_media_route():
    ids = body_ids(json_payload())
    return success(media_service.bulk_delete_media(ids), "Bulk delete completed")


@media_bp.post("/bulk/soft-delete")
@require_auth
@require_staff
@require_permission("products.delete")
def bulk_soft_delete_media_route():
    ids = body_ids(json_payload())
    return success(media_service.bulk_soft_delete_media(ids), "Bulk delete completed")


@media_bp.delete("/<media_id>")
@require_auth
@require_staff
@require_permission("products.delete")
def delete_media_route(media_id: str):
    media_service.delete_media(media_id=media_id)
    return success(None, "Media deleted successfully")


@media_bp.patch("/<media_id>/soft-delete")
@require_auth
@require_staff
@require_permission("products.delete")
def soft_delete_media_route(media_id: str):
    media_service.soft_delete_media(media_id=media_id)
    return success(None, "Media deleted successfully")


@media_bp.patch("/<media_id>/restore")
@require_auth
@require_staff
@require_permission("products.update")
def restore_media_route(media_id: str):
    media = media_service.restore_media(media_id=media_id)
    return success(media.to_dict(), "Media restored successfully")
