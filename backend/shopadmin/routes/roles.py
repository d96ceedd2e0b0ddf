# Overview: Flask API routes for roles and their permission sets.

"""
Role management routes.

System roles (super_admin, admin) can be read but never changed: update,
permission assignment and delete answer 403 with a policy message.
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..models import Role
from ..request_utils import body_ids, json_payload, raise_if_errors
from ..responses import success
from ..services import role_service, user_service
from ..services.query_service import parse_bool_arg, parse_list_query
from ..validation import NotFoundError, ModelValidationPolicy, enforce_rules_role, validate_payload

ROLE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "display_name", "description", "is_active"},
    required_on_create={"name"},
    extra_fields={"permission_ids"},
)

roles_bp = Blueprint("roles", __name__, url_prefix="/api/admin/roles")


def _permission_ids(payload: dict):
    if "permission_ids" not in payload:
        return None
    return body_ids(payload, "permission_ids", allow_empty=True)


def _role_detail(role: Role) -> dict:
    data = role.to_dict()
    data["user_count"] = user_service.count_users_with_role(role.id)
    return data


@roles_bp.post("")
@require_auth
@require_staff
@require_permission("roles.create")
def create_role_route():
    payload = json_payload()
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=False)
    enforce_rules_role(patch)

    role = role_service.create_role(patch=patch, permission_ids=_permission_ids(payload))
    return success(role.to_dict(), "Role created successfully", 201)


@roles_bp.get("")
@require_auth
@require_staff
@require_permission("roles.read")
def list_roles_route():
    errors = []
    q = parse_list_query(request.args, errors)
    is_active = parse_bool_arg(request.args, "is_active", errors)
    is_system = parse_bool_arg(request.args, "is_system", errors)
    raise_if_errors(errors)

    result = role_service.list_roles(q, is_active=is_active, is_system=is_system)
    return success(result, "Roles retrieved successfully")


@roles_bp.get("/simple")
@require_auth
@require_staff
@require_permission("roles.read")
def list_roles_simple_route():
    return success(role_service.list_roles_simple(), "Roles retrieved successfully")


@roles_bp.get("/stats")
@require_auth
@require_staff
@require_permission("roles.read")
def role_stats_route():
    return success(role_service.role_stats(), "Role statistics retrieved successfully")


@roles_bp.get("/by-name/<name>")
@require_auth
@require_staff
@require_permission("roles.read")
def get_role_by_name_route(name: str):
    role = role_service.find_role_by_name(name)
    if not role:
        raise NotFoundError("Role not found")
    return success(_role_detail(role), "Role retrieved successfully")


@roles_bp.get("/<role_id>")
@require_auth
@require_staff
@require_permission("roles.read")
def get_role_route(role_id: str):
    return success(_role_detail(role_service.get_role(role_id)), "Role retrieved successfully")


@roles_bp.patch("/<role_id>")
@require_auth
@require_staff
@require_permission("roles.update")
def update_role_route(role_id: str):
    payload = json_payload()
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=True)
    enforce_rules_role(patch)

    role = role_service.update_role(role_id=role_id, patch=patch, permission_ids=_permission_ids(payload))
    return success(role.to_dict(), "Role updated successfully")


@roles_bp.patch("/<role_id>/permissions")
@require_auth
@require_staff
@require_permission("roles.update")
def assign_permissions_route(role_id: str):
    """Full replace: the role ends up with exactly the given permission ids."""
    ids = body_ids(json_payload(), "permission_ids", allow_empty=True)
    role = role_service.assign_permissions(role_id=role_id, permission_ids=ids)
    return success(role.to_dict(), "Permissions assigned successfully")


@roles_bp.delete("/<role_id>")
@require_auth
@require_staff
@require_permission("roles.delete")
def delete_role_route(role_id: str):
    role_service.delete_role(role_id=role_id)
    return success(None, "Role deleted successfully")
