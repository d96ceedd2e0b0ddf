# Overview: Flask API routes for tags and product-tag assignment.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..models import Tag
from ..request_utils import body_ids, json_payload, raise_if_errors
from ..responses import success
from ..services import tag_service
from ..services.query_service import parse_bool_arg, parse_list_query
from ..validation import MAX_TAG_IDS, ModelValidationPolicy, enforce_rules_tag, validate_payload

TAG_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "description", "is_active", "sort_order"},
    required_on_create={"name", "slug"},
)

tags_bp = Blueprint("tags", __name__, url_prefix="/api/admin/tags")


@tags_bp.post("")
@require_auth
@require_staff
@require_permission("products.create")
def create_tag_route():
    patch = validate_payload(model=Tag, payload=json_payload(), policy=TAG_POLICY, partial=False)
    enforce_rules_tag(patch)
    tag = tag_service.create_tag(patch=patch)
    return success(tag.to_dict(), "Tag created successfully", 201)


@tags_bp.get("")
@require_auth
@require_staff
@require_permission("products.read")
def list_tags_route():
    errors = []
    q = parse_list_query(request.args, errors)
    is_active = parse_bool_arg(request.args, "is_active", errors)
    raise_if_errors(errors)
    return success(tag_service.list_tags(q, is_active=is_active), "Tags retrieved successfully")


@tags_bp.get("/simple")
@require_auth
@require_staff
@require_permission("products.read")
def list_tags_simple_route():
    return success(tag_service.list_tags_simple(), "Tags retrieved successfully")


@tags_bp.get("/stats")
@require_auth
@require_staff
@require_permission("products.read")
def tag_stats_route():
    return success(tag_service.tag_stats(), "Tag statistics retrieved successfully")


@tags_bp.post("/bulk/delete")
@require_auth
@require_staff
@require_permission("products.delete")
def bulk_delete_tags_route():
    ids = body_ids(json_payload())
    return success(tag_service.bulk_delete_tags(ids), "Bulk delete completed")


@tags_bp.post("/bulk/restore")
@require_auth
@require_staff
@require_permission("products.update")
def bulk_restore_tags_route():
    ids = body_ids(json_payload())
    return success(tag_service.bulk_restore_tags(ids), "Bulk restore completed")


@tags_bp.get("/slug/<slug>")
@require_auth
@require_staff
@require_permission("products.read")
def get_tag_by_slug_route(slug: str):
    return success(tag_service.get_tag_by_slug(slug).to_dict(), "Tag retrieved successfully")


# -- product associations --

@tags_bp.get("/product/<product_id>")
@require_auth
@require_staff
@require_permission("products.read")
def product_tags_route(product_id: str):
    return success(tag_service.product_tag_list(product_id=product_id), "Product tags retrieved successfully")


@tags_bp.patch("/product/<product_id>/assign")
@require_auth
@require_staff
@require_permission("products.update")
def assign_tags_route(product_id: str):
    """Replace the product's tags with exactly tag_ids (an empty list clears them)."""
    ids = body_ids(json_payload(), "tag_ids", max_size=MAX_TAG_IDS, allow_empty=True)
    product = tag_service.assign_tags(product_id=product_id, tag_ids=ids)
    return success(product.to_dict(), "Tags assigned successfully")


@tags_bp.patch("/product/<product_id>/remove")
@require_auth
@require_staff
@require_permission("products.update")
def remove_tags_route(product_id: str):
    ids = body_ids(json_payload(), "tag_ids", max_size=MAX_TAG_IDS)
    product = tag_service.remove_tags(product_id=product_id, tag_ids=ids)
    return success(product.to_dict(), "Tags removed successfully")


@tags_bp.get("/<tag_id>")
@require_auth
@require_staff
@require_permission("products.read")
def get_tag_route(tag_id: str):
    return success(tag_service.get_tag(tag_id).to_dict(), "Tag retrieved successfully")


@tags_bp.get("/<tag_id>/products")
@require_auth
@require_staff
@require_permission("products.read")
def tag_products_route(tag_id: str):
    return success(tag_service.tag_products(tag_id=tag_id), "Tag products retrieved successfully")


@tags_bp.patch("/<tag_id>")
@require_auth
@require_staff
@require_permission("products.update")
def update_tag_route(tag_id: str):
    patch = validate_payload(model=Tag, payload=json_payload(), policy=TAG_POLICY, partial=True)
    enforce_rules_tag(patch)
    tag = tag_service.update_tag(tag_id=tag_id, patch=patch)
    return success(tag.to_dict(), "Tag updated successfully")


@tags_bp.delete("/<tag_id>")
@require_auth
@require_staff
@require_permission("products.delete")
def delete_tag_route(tag_id: str):
    tag_service.delete_tag(tag_id=tag_id)
    return success(None, "Tag deleted successfully")


@tags_bp.patch("/<tag_id>/restore")
@require_auth
@require_staff
@require_permission("products.update")
def restore_tag_route(tag_id: str):
    tag = tag_service.restore_tag(tag_id=tag_id)
    return success(tag.to_dict(), "Tag restored successfully")
