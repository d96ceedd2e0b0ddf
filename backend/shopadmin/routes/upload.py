# Overview: Flask API routes for plain file uploads (no media record).

"""
Plain upload routes.

Files are stored in the blob store and only their metadata is returned;
callers keep the URL on their own records (user avatar, product images,
category image).
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..enums import MediaType
from ..responses import success
from ..services.storage_service import TYPE_DIRECTORIES, directory_for, get_blob_store, store_upload
from ..validation import NotFoundError

upload_bp = Blueprint("upload", __name__, url_prefix="/api/upload")


def _store(media_type: str):
    blob = store_upload(request.files.get("file"), directory_for(media_type))
    return success(blob.to_dict(), "File uploaded successfully", 201)


@upload_bp.post("/avatar")
@require_auth
def upload_avatar_route():
    return _store(MediaType.AVATAR)


@upload_bp.post("/product")
@require_auth
@require_staff
@require_permission("products.update")
def upload_product_image_route():
    return _store(MediaType.PRODUCT)


@upload_bp.post("/category")
@require_auth
@require_staff
@require_permission("products.update")
def upload_category_image_route():
    return _store(MediaType.CATEGORY)


@upload_bp.post("/general")
@require_auth
@require_staff
@require_permission("products.update")
def upload_general_route():
    return _store(MediaType.GENERAL)


@upload_bp.delete("/<directory>/<filename>")
@require_auth
@require_staff
@require_permission("products.delete")
def delete_upload_route(directory: str, filename: str):
    if directory not in TYPE_DIRECTORIES.values():
        raise NotFoundError("Upload directory not found")

    if not get_blob_store().delete(f"{directory}/{filename}"):
        return success(None, "File not found or already deleted")
    return success(None, "File deleted successfully")
