# Overview: Request authentication and authorization decorators for API routes.

from functools import wraps
from flask import request, g

from .enums import UserRole
from .responses import error_response
from .services import auth_service, authorization_service
from .services.auth_service import AuthenticationError
from .services.authorization_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'identity')


def require_auth(f):
    """
    Require a valid Bearer access token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.identity: Identity(user_id, role_name, permission_names)
    - g.role_name / g.permissions: shortcuts into g.identity

    Returns 401 if the header is missing, the token is invalid or expired,
    or the account no longer exists or is not active.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return error_response("Authentication required", 401)

        token = auth_header.split(" ", 1)[1].strip()

        try:
            user = auth_service.user_for_access_token(token)
        except AuthenticationError as e:
            return error_response(str(e), 401)

        identity = authorization_service.identity_for_user(user)
        g.current_user = user
        g.identity = identity
        g.role_name = identity.role_name
        g.permissions = identity.permission_names

        return f(*args, **kwargs)

    return decorated_function


def _guarded(check):
    """Build a decorator that runs `check(identity)` after authentication."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return error_response("Authentication required", 401)
            try:
                check(g.identity)
            except PermissionDeniedError as e:
                return error_response("Permission denied", 403, [str(e)])
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_roles(*role_names):
    """Coarse gate: the caller's role must be in the allow-list."""
    return _guarded(lambda identity: authorization_service.authorize(identity, roles=role_names))


# Every admin endpoint is open to admin and super_admin
require_staff = require_roles(*UserRole.STAFF)


def require_permission(permission_name: str):
    """Require a specific permission."""
    return _guarded(lambda identity: authorization_service.authorize(identity, permission=permission_name))


def require_any_permission(*permission_names):
    """Require any of the specified permissions."""
    return _guarded(lambda identity: authorization_service.authorize(identity, any_of=permission_names))


def require_all_permissions(*permission_names):
    """Require all of the specified permissions."""
    return _guarded(lambda identity: authorization_service.authorize(identity, all_of=permission_names))
