# Overview: Flask API routes for the permission registry.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission, require_roles, require_staff
from ..enums import UserRole
from ..models import Permission
from ..request_utils import json_payload
from ..responses import success
from ..services import permission_service
from ..services.query_service import parse_list_query
from ..validation import ModelValidationPolicy, enforce_rules_permission, validate_payload

PERMISSION_POLICY = ModelValidationPolicy(
    writable_fields={"name", "display_name", "description", "module", "action", "is_active"},
    required_on_create={"name"},
)

permissions_bp = Blueprint("permissions", __name__, url_prefix="/api/admin/permissions")


@permissions_bp.post("")
@require_auth
@require_staff
@require_permission("roles.create")
def create_permission_route():
    patch = validate_payload(model=Permission, payload=json_payload(), policy=PERMISSION_POLICY, partial=False)
    enforce_rules_permission(patch)
    permission = permission_service.create_permission(patch=patch)
    return success(permission.to_dict(), "Permission created successfully", 201)


@permissions_bp.get("")
@require_auth
@require_staff
@require_permission("roles.read")
def list_permissions_route():
    q = parse_list_query(request.args)
    return success(permission_service.list_permissions(q), "Permissions retrieved successfully")


@permissions_bp.get("/grouped")
@require_auth
@require_staff
@require_permission("roles.read")
def grouped_permissions_route():
    return success(permission_service.list_permissions_grouped(), "Permissions retrieved successfully")


@permissions_bp.get("/<permission_id>")
@require_auth
@require_staff
@require_permission("roles.read")
def get_permission_route(permission_id: str):
    permission = permission_service.get_permission(permission_id)
    return success(permission.to_dict(), "Permission retrieved successfully")


@permissions_bp.patch("/<permission_id>")
@require_auth
@require_staff
@require_permission("roles.update")
def update_permission_route(permission_id: str):
    patch = validate_payload(model=Permission, payload=json_payload(), policy=PERMISSION_POLICY, partial=True)
    enforce_rules_permission(patch)
    permission = permission_service.update_permission(permission_id=permission_id, patch=patch)
    return success(permission.to_dict(), "Permission updated successfully")


@permissions_bp.delete("/<permission_id>")
@require_auth
@require_staff
@require_permission("roles.delete")
def delete_permission_route(permission_id: str):
    permission_service.delete_permission(permission_id=permission_id)
    return success(None, "Permission deleted successfully")


@permissions_bp.post("/seed")
@require_auth
@require_roles(UserRole.SUPER_ADMIN)
def seed_permissions_route():
    """Create any missing default permissions (super_admin only). Idempotent."""
    created = permission_service.initialize_permissions()
    current_app.logger.info("Permission seed requested: %d created", created)
    return success({"created": created, "total": permission_service.count_permissions()},
                   "Permissions seeded successfully", 201)
