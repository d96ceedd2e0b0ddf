# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User management routes.

SECURITY: every route requires an authenticated admin or super_admin
(role gate) holding the matching users.* permission.
"""
from flask import Blueprint, request

from ..decorators import require_auth, require_permission, require_staff
from ..enums import Gender, UserStatus
from ..models import User
from ..request_utils import body_ids, body_metadata, json_payload, raise_if_errors
from ..responses import success
from ..services import user_service
from ..services.query_service import (
    parse_bool_arg,
    parse_choice_arg,
    parse_datetime_arg,
    parse_id_arg,
    parse_list_query,
)
from ..validation import ModelValidationPolicy, enforce_rules_user, validate_payload

USER_POLICY = ModelValidationPolicy(
    writable_fields={
        "first_name", "last_name", "email", "phone", "birth_date",
        "gender", "role_id", "status", "avatar",
    },
    required_on_create={"first_name", "last_name", "email", "role_id"},
    extra_fields={"password", "metadata"},
)

USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=USER_POLICY.writable_fields | {"is_email_verified", "is_phone_verified"},
    extra_fields={"metadata"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/admin/users")


def _normalize_email(patch: dict) -> dict:
    if patch.get("email"):
        patch["email"] = patch["email"].lower()
    return patch


@users_bp.post("")
@require_auth
@require_staff
@require_permission("users.create")
def create_user_route():
    payload = json_payload()
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)
    metadata, _ = body_metadata(payload)

    password = payload.get("password")
    if not isinstance(password, str) or not password:
        raise_if_errors(["password is required"])

    user = user_service.create_user(patch=_normalize_email(patch), password=password, metadata=metadata)
    return success(user.to_dict(), "User created successfully", 201)


@users_bp.get("")
@require_auth
@require_staff
@require_permission("users.read")
def list_users_route():
    """
    Query params: page, limit, sort_by, sort_order, search, include_deleted,
    only_deleted, status, role_id, gender, is_email_verified,
    is_phone_verified, created_after, created_before.
    """
    errors = []
    q = parse_list_query(request.args, errors)
    status = parse_choice_arg(request.args, "status", UserStatus.ALL, errors)
    role_id = parse_id_arg(request.args, "role_id", errors)
    gender = parse_choice_arg(request.args, "gender", Gender.ALL, errors)
    is_email_verified = parse_bool_arg(request.args, "is_email_verified", errors)
    is_phone_verified = parse_bool_arg(request.args, "is_phone_verified", errors)
    created_after = parse_datetime_arg(request.args, "created_after", errors)
    created_before = parse_datetime_arg(request.args, "created_before", errors)
    raise_if_errors(errors)

    result = user_service.list_users(
        q,
        status=status,
        role_id=role_id,
        gender=gender,
        is_email_verified=is_email_verified,
        is_phone_verified=is_phone_verified,
        created_after=created_after,
        created_before=created_before,
    )
    return success(result, "Users retrieved successfully")


@users_bp.get("/stats")
@require_auth
@require_staff
@require_permission("users.read")
def user_stats_route():
    return success(user_service.user_stats(), "User statistics retrieved successfully")


@users_bp.post("/bulk/delete")
@require_auth
@require_staff
@require_permission("users.delete")
def bulk_delete_users_route():
    ids = body_ids(json_payload())
    return success(user_service.bulk_delete_users(ids), "Bulk delete completed")


@users_bp.post("/bulk/restore")
@require_auth
@require_staff
@require_permission("users.update")
def bulk_restore_users_route():
    ids = body_ids(json_payload())
    return success(user_service.bulk_restore_users(ids), "Bulk restore completed")


@users_bp.get("/<user_id>")
@require_auth
@require_staff
@require_permission("users.read")
def get_user_route(user_id: str):
    return success(user_service.get_user(user_id).to_dict(), "User retrieved successfully")


@users_bp.patch("/<user_id>")
@require_auth
@require_staff
@require_permission("users.update")
def update_user_route(user_id: str):
    payload = json_payload()
    patch = validate_payload(model=User, payload=payload, policy=USER_UPDATE_POLICY, partial=True)
    enforce_rules_user(patch)
    metadata, has_metadata = body_metadata(payload)

    user = user_service.update_user(
        user_id=user_id,
        patch=_normalize_email(patch),
        metadata=metadata,
        set_metadata=has_metadata,
    )
    return success(user.to_dict(), "User updated successfully")


@users_bp.patch("/<user_id>/password")
@require_auth
@require_staff
@require_permission("users.update")
def change_password_route(user_id: str):
    """Admin reset: the current password is not required."""
    payload = json_payload()
    new_password = payload.get("new_password")
    if not isinstance(new_password, str) or not new_password:
        raise_if_errors(["new_password is required"])

    user_service.change_password(user_id=user_id, new_password=new_password, is_admin=True)
    return success(None, "Password changed successfully")


@users_bp.patch("/<user_id>/verify-email")
@require_auth
@require_staff
@require_permission("users.update")
def verify_email_route(user_id: str):
    user = user_service.verify_email(user_id=user_id)
    return success(user.to_dict(), "Email verified successfully")


@users_bp.patch("/<user_id>/verify-phone")
@require_auth
@require_staff
@require_permission("users.update")
def verify_phone_route(user_id: str):
    user = user_service.verify_phone(user_id=user_id)
    return success(user.to_dict(), "Phone verified successfully")


@users_bp.delete("/<user_id>")
@require_auth
@require_staff
@require_permission("users.delete")
def delete_user_route(user_id: str):
    user_service.delete_user(user_id=user_id)
    return success(None, "User deleted successfully")


@users_bp.patch("/<user_id>/restore")
@require_auth
@require_staff
@require_permission("users.update")
def restore_user_route(user_id: str):
    user = user_service.restore_user(user_id=user_id)
    return success(user.to_dict(), "User restored successfully")
