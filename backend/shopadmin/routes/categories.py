# Overview: Flask API routes for the category tree; parses input and returns JSON responses.

"""
Category management routes.

Reparenting is validated by the category service: a category can be
neither its own parent nor a child of one of its descendants.
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..models import Category
from ..request_utils import raise_if_errors, json_payload
from ..responses import success
from ..services import category_service
from ..services.query_service import parse_bool_arg, parse_id_arg, parse_list_query
from ..validation import ModelValidationPolicy, enforce_rules_category, validate_payload

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "description", "image", "parent_id", "is_active", "sort_order"},
    required_on_create={"name", "slug"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/admin/categories")


@categories_bp.post("")
@require_auth
@require_staff
@require_permission("products.create")
def create_category_route():
    patch = validate_payload(model=Category, payload=json_payload(), policy=CATEGORY_POLICY, partial=False)
    enforce_rules_category(patch)
    category = category_service.create_category(patch=patch)
    return success(category.to_dict(), "Category created successfully", 201)


@categories_bp.get("")
@require_auth
@require_staff
@require_permission("products.read")
def list_categories_route():
    """
    Query params: page, limit, sort_by (sort_order|name|created_at|updated_at),
    sort_order, search, is_active, parent_id, root_only, include_deleted,
    only_deleted.
    """
    errors = []
    q = parse_list_query(request.args, errors)
    is_active = parse_bool_arg(request.args, "is_active", errors)
    parent_id = parse_id_arg(request.args, "parent_id", errors)
    root_only = parse_bool_arg(request.args, "root_only", errors)
    raise_if_errors(errors)

    result = category_service.list_categories(
        q, is_active=is_active, parent_id=parent_id, root_only=bool(root_only)
    )
    return success(result, "Categories retrieved successfully")


@categories_bp.get("/tree")
@require_auth
@require_staff
@require_permission("products.read")
def category_tree_route():
    return success(category_service.category_tree(), "Category tree retrieved successfully")


@categories_bp.get("/simple")
@require_auth
@require_staff
@require_permission("products.read")
def list_categories_simple_route():
    return success(category_service.list_categories_simple(), "Categories retrieved successfully")


@categories_bp.get("/stats")
@require_auth
@require_staff
@require_permission("products.read")
def category_stats_route():
    return success(category_service.category_stats(), "Category statistics retrieved successfully")


@categories_bp.get("/<category_id>")
@require_auth
@require_staff
@require_permission("products.read")
def get_category_route(category_id: str):
    return success(category_service.category_detail(category_id), "Category retrieved successfully")


@categories_bp.patch("/<category_id>")
@require_auth
@require_staff
@require_permission("products.update")
def update_category_route(category_id: str):
    patch = validate_payload(model=Category, payload=json_payload(), policy=CATEGORY_POLICY, partial=True)
    enforce_rules_category(patch)
    category = category_service.update_category(category_id=category_id, patch=patch)
    return success(category.to_dict(), "Category updated successfully")


@categories_bp.delete("/<category_id>")
@require_auth
@require_staff
@require_permission("products.delete")
def delete_category_route(category_id: str):
    category_service.delete_category(category_id=category_id)
    return success(None, "Category deleted successfully")


@categories_bp.patch("/<category_id>/restore")
@require_auth
@require_staff
@require_permission("products.update")
def restore_category_route(category_id: str):
    category = category_service.restore_category(category_id=category_id)
    return success(category.to_dict(), "Category restored successfully")
