# Overview: Service-layer operations for the permission registry; encapsulates business logic and database work.

"""
Permission registry.

Names are unique across all rows, soft-deleted ones included, because the
unique constraint covers them too. Permissions are never hard-deleted:
roles may still reference them, they just stop granting anything.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Permission, role_permissions
from ..permissions import PERMISSION_DEFINITIONS, default_display_name, split_permission_name
from ..validation import ConflictError, NotFoundError, PolicyViolationError
from .persistence import commit_or_conflict
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate


PERMISSION_CONFLICT = "Permission with this name already exists"
PERMISSION_IN_USE = "Permission is assigned to roles; only display_name and description can be changed"

# Fields that define what a permission grants; frozen once any role holds it.
LOCKED_WHEN_ASSIGNED = ("name", "module", "action", "is_active")

PERMISSION_SORT_FIELDS = {
    "created_at": Permission.created_at,
    "name": Permission.name,
    "display_name": Permission.display_name,
    "module": Permission.module,
    "action": Permission.action,
}


def _name_taken(name: str, *, exclude_id: str | None = None) -> bool:
    query = db.session.query(Permission.id).filter(Permission.name == name)
    if exclude_id is not None:
        query = query.filter(Permission.id != exclude_id)
    return query.first() is not None


def _assigned_role_count(permission_id: str) -> int:
    return (
        db.session.query(role_permissions)
        .filter(role_permissions.c.permission_id == permission_id)
        .count()
    )


def get_permission(permission_id: str, *, visibility: str = Visibility.EXCLUDE) -> Permission:
    query = db.session.query(Permission).filter(Permission.id == permission_id)
    permission = apply_visibility(query, Permission, visibility).first()
    if not permission:
        raise NotFoundError("Permission not found")
    return permission


def find_permission_by_name(name: str) -> Permission | None:
    return db.session.query(Permission).filter(Permission.name == name).first()


def create_permission(*, patch: dict) -> Permission:
    """
    Create a permission. display_name defaults to the title-cased name and
    module/action default to the two halves of the dotted name.
    """
    name = patch["name"]
    if _name_taken(name):
        raise ConflictError(PERMISSION_CONFLICT)

    module, action = split_permission_name(name)
    permission = Permission(
        name=name,
        display_name=patch.get("display_name") or default_display_name(name),
        description=patch.get("description"),
        module=patch.get("module") or module,
        action=patch.get("action") or action or module,
        is_active=patch.get("is_active", True),
    )
    db.session.add(permission)
    commit_or_conflict(PERMISSION_CONFLICT)
    return permission


def update_permission(*, permission_id: str, patch: dict) -> Permission:
    permission = get_permission(permission_id)

    locked = [
        key for key in LOCKED_WHEN_ASSIGNED
        if key in patch and patch[key] != getattr(permission, key)
    ]
    if locked and _assigned_role_count(permission.id):
        current_app.logger.warning(
            "Rejected change to assigned permission %s: %s", permission.name, ", ".join(locked)
        )
        raise PolicyViolationError(PERMISSION_IN_USE)

    if "name" in patch and patch["name"] != permission.name:
        if _name_taken(patch["name"], exclude_id=permission.id):
            raise ConflictError(PERMISSION_CONFLICT)

    for key, value in patch.items():
        setattr(permission, key, value)

    commit_or_conflict(PERMISSION_CONFLICT)
    return permission


def delete_permission(*, permission_id: str) -> None:
    """Soft-remove. Role links stay; the permission stops granting."""
    permission = get_permission(permission_id)
    permission.mark_deleted()
    db.session.commit()


def list_permissions(q: ListQuery) -> dict:
    query = db.session.query(Permission)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            db.or_(
                Permission.name.ilike(like),
                Permission.display_name.ilike(like),
                Permission.module.ilike(like),
            )
        )
    query = apply_visibility(query, Permission, Visibility.EXCLUDE)

    sort_field = q.sort_by if q.sort_by in PERMISSION_SORT_FIELDS else "module"
    tiebreak = None
    if sort_field == "module":
        tiebreak = Permission.action.asc() if q.sort_order == "ASC" else Permission.action.desc()
    query = apply_sort(query, q, PERMISSION_SORT_FIELDS, "module", tiebreak=tiebreak)
    return paginate(query, q, lambda p: p.to_dict())


def list_permissions_grouped() -> dict[str, list[dict]]:
    """Active permissions keyed by module, ordered by module then action."""
    permissions = (
        db.session.query(Permission)
        .filter(Permission.is_active.is_(True), Permission.deleted_at.is_(None))
        .order_by(Permission.module.asc(), Permission.action.asc())
        .all()
    )
    grouped: dict[str, list[dict]] = {}
    for permission in permissions:
        grouped.setdefault(permission.module, []).append(permission.to_dict())
    return grouped


def count_permissions() -> int:
    return db.session.query(Permission).filter(Permission.deleted_at.is_(None)).count()


def initialize_permissions() -> int:
    """
    Create Permission rows for every default definition.

    Idempotent: Safe to run multiple times. Existing names are left untouched.
    """
    created_count = 0

    for name, display_name, description, module in PERMISSION_DEFINITIONS:
        if find_permission_by_name(name):
            continue
        _, action = split_permission_name(name)
        db.session.add(Permission(
            name=name,
            display_name=display_name,
            description=description,
            module=module,
            action=action,
        ))
        created_count += 1

    db.session.commit()
    if created_count:
        current_app.logger.info("Seeded %d permissions", created_count)
    return created_count
