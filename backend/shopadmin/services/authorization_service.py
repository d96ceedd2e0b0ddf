# Overview: Authorization decisions: coarse role allow-list gate, then exact permission-name checks.

"""
Authorization engine.

An Identity is the resolved {user_id, role_name, permission_names} triple
attached to each authenticated request. Decisions are exact, case-sensitive
set membership over the role's active, non-deleted permission names: no
wildcards and no module matching.

The role gate always runs first. A caller whose role is outside the
endpoint's allow-list is denied without any permission lookup.

Nothing here writes or caches. Denials are logged and raised as
PermissionDeniedError (403), which is distinct from NotFoundError (404)
and ValidationError (400).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from flask import current_app


class PermissionDeniedError(Exception):
    """Raised when the caller's role or permissions do not allow the operation."""
    pass


@dataclass(frozen=True)
class Identity:
    user_id: str
    role_name: str
    permission_names: frozenset = field(default_factory=frozenset)


def identity_for_user(user) -> Identity:
    role = user.role
    return Identity(
        user_id=user.id,
        role_name=role.name if role else "",
        permission_names=role.permission_names if role else frozenset(),
    )


def _granted(subject) -> frozenset:
    # Accepts an Identity, a Role, or a plain collection of names
    names = getattr(subject, "permission_names", subject)
    return names if isinstance(names, frozenset) else frozenset(names)


def has_permission(subject, name: str) -> bool:
    return name in _granted(subject)


def has_any_permission(subject, names: Iterable[str]) -> bool:
    return not _granted(subject).isdisjoint(names)


def has_all_permissions(subject, names: Iterable[str]) -> bool:
    return _granted(subject).issuperset(names)


def role_allowed(role_name: str | None, allowed_roles: Iterable[str]) -> bool:
    return role_name is not None and role_name in set(allowed_roles)


def _deny(identity: Identity, reason: str) -> None:
    current_app.logger.warning(
        "Authorization denied: user=%s role=%s reason=%s",
        identity.user_id,
        identity.role_name,
        reason,
    )
    raise PermissionDeniedError(reason)


def authorize(
    identity: Identity,
    *,
    roles: Iterable[str] | None = None,
    permission: str | None = None,
    any_of: Iterable[str] | None = None,
    all_of: Iterable[str] | None = None,
) -> None:
    """
    Raise PermissionDeniedError unless the identity passes every requested check.

    Order: role allow-list, then permission, then any_of, then all_of.
    """
    if roles is not None and not role_allowed(identity.role_name, roles):
        _deny(identity, "Insufficient role")

    if permission is not None and not has_permission(identity, permission):
        _deny(identity, f"Missing permission: {permission}")

    if any_of is not None:
        any_of = list(any_of)
        if not has_any_permission(identity, any_of):
            _deny(identity, f"Missing any of permissions: {', '.join(any_of)}")

    if all_of is not None:
        all_of = list(all_of)
        if not has_all_permissions(identity, all_of):
            missing = sorted(set(all_of) - identity.permission_names)
            _deny(identity, f"Missing permissions: {', '.join(missing)}")
