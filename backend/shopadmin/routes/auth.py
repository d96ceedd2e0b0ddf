# Overview: Flask API routes for authentication; login, token refresh and the caller's profile.

"""
Authentication API routes.

Tokens are stateless JWTs; logout is an acknowledgement only and the
client discards its tokens.
"""
from flask import Blueprint, g

from ..decorators import require_auth
from ..request_utils import client_ip, json_payload, raise_if_errors
from ..responses import success
from ..services import auth_service, authorization_service, user_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange email + password for an access and refresh token pair.

    Wrong credentials and non-active accounts are both 401, with
    different messages.
    """
    data = json_payload()
    email = data.get("email")
    password = data.get("password")

    errors = []
    if not isinstance(email, str) or not email.strip():
        errors.append("email is required")
    if not isinstance(password, str) or not password:
        errors.append("password is required")
    raise_if_errors(errors)

    result = auth_service.login(email=email.strip().lower(), password=password, ip_address=client_ip())
    return success(result, "Login successful")


@auth_bp.post("/refresh")
def refresh_route():
    data = json_payload()
    token = data.get("refresh_token")
    if not isinstance(token, str) or not token:
        raise_if_errors(["refresh_token is required"])

    return success(auth_service.refresh(refresh_token=token), "Token refreshed")


@auth_bp.get("/me")
@require_auth
def me_route():
    data = g.current_user.to_dict()
    data["permissions"] = sorted(g.permissions)
    return success(data, "Profile retrieved")


@auth_bp.post("/logout")
@require_auth
def logout_route():
    return success(None, "Logout successful")


@auth_bp.post("/check-permissions")
@require_auth
def check_permissions_route():
    """
    Report which of the given permission names the caller holds.

    Body: {"permissions": ["products.read", ...]}
    """
    data = json_payload()
    names = data.get("permissions")
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise_if_errors(["permissions must be an array of strings"])

    return success({
        "role": g.role_name,
        "results": {name: authorization_service.has_permission(g.identity, name) for name in names},
        "has_all": authorization_service.has_all_permissions(g.identity, names),
        "has_any": authorization_service.has_any_permission(g.identity, names),
    }, "Permissions checked")


@auth_bp.patch("/password")
@require_auth
def change_own_password_route():
    """Change the caller's own password; the current password must match."""
    data = json_payload()
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    errors = []
    if not isinstance(current_password, str) or not current_password:
        errors.append("current_password is required")
    if not isinstance(new_password, str) or not new_password:
        errors.append("new_password is required")
    raise_if_errors(errors)

    user_service.change_password(
        user_id=g.current_user.id,
        new_password=new_password,
        current_password=current_password,
    )
    return success(None, "Password changed successfully")
