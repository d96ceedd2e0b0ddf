# Overview: Service-layer operations for auth; credential checks and JWT issuance.

"""
Authentication.

Access and refresh tokens are HS256 JWTs signed with separate secrets.
Claims: sub (user id), email, role (role name), type (access | refresh).

Only users whose status is "active" may log in or refresh. Everything
else about the request identity (role, permission names) is re-read from
the database on every request, so role changes apply immediately.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from flask import current_app
from jose import JWTError, jwt

from ..enums import UserStatus
from ..models import User
from ..validation import NotFoundError
from .user_service import find_user_by_email, get_user, record_login


CLAIM_SUB = "sub"
CLAIM_EMAIL = "email"
CLAIM_ROLE = "role"
CLAIM_TYPE = "type"
CLAIM_EXP = "exp"
CLAIM_JTI = "jti"

TYPE_ACCESS = "access"
TYPE_REFRESH = "refresh"


class AuthenticationError(Exception):
    """401-level: missing, invalid or expired credentials."""
    pass


def _secret(token_type: str) -> str:
    if token_type == TYPE_REFRESH:
        return current_app.config["JWT_REFRESH_SECRET"]
    return current_app.config["JWT_SECRET"]


def _encode(user: User, token_type: str, expires_delta: timedelta) -> str:
    payload = {
        CLAIM_SUB: user.id,
        CLAIM_EMAIL: user.email,
        CLAIM_ROLE: user.role.name if user.role else "",
        CLAIM_TYPE: token_type,
        CLAIM_JTI: str(uuid4()),
        CLAIM_EXP: datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, _secret(token_type), algorithm=current_app.config["JWT_ALGORITHM"])


def create_access_token(user: User) -> str:
    delta = timedelta(minutes=current_app.config["JWT_EXPIRES_MINUTES"])
    return _encode(user, TYPE_ACCESS, delta)


def create_refresh_token(user: User) -> str:
    delta = timedelta(days=current_app.config["JWT_REFRESH_EXPIRES_DAYS"])
    return _encode(user, TYPE_REFRESH, delta)


def decode_token(token: str, token_type: str = TYPE_ACCESS) -> dict:
    """Verify signature, expiry and token type. Raises AuthenticationError."""
    try:
        payload = jwt.decode(
            token,
            _secret(token_type),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    if payload.get(CLAIM_TYPE) != token_type or not payload.get(CLAIM_SUB):
        raise AuthenticationError("Invalid or expired token")
    return payload


def authenticate(email: str, password: str) -> User:
    """
    Check credentials. Wrong email and wrong password look the same;
    a correct password on a non-active account gets its own message.
    """
    user = find_user_by_email(email)
    if not user or not user.check_password(password):
        raise AuthenticationError("Invalid email or password")

    if user.status != UserStatus.ACTIVE:
        raise AuthenticationError("Account is not active")

    return user


def login(*, email: str, password: str, ip_address: str | None = None) -> dict:
    user = authenticate(email, password)
    record_login(user, ip_address)
    current_app.logger.info("User %s logged in", user.id)
    return {
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
        "token_type": "Bearer",
        "user": user.to_dict(),
    }


def refresh(*, refresh_token: str) -> dict:
    payload = decode_token(refresh_token, TYPE_REFRESH)
    try:
        user = get_user(payload[CLAIM_SUB])
    except NotFoundError as exc:
        raise AuthenticationError("Invalid refresh token") from exc
    if user.status != UserStatus.ACTIVE:
        raise AuthenticationError("Invalid refresh token")
    return {"access_token": create_access_token(user), "token_type": "Bearer"}


def user_for_access_token(token: str) -> User:
    """Resolve a bearer token to a live, active user."""
    payload = decode_token(token, TYPE_ACCESS)
    try:
        user = get_user(payload[CLAIM_SUB])
    except NotFoundError as exc:
        raise AuthenticationError("User not found") from exc
    if user.status != UserStatus.ACTIVE:
        raise AuthenticationError("Account is not active")
    return user
