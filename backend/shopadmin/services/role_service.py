# Overview: Service-layer operations for roles and their permission sets.

"""
Role store.

System roles (is_system=True) are platform-protected. Every mutating
operation checks the flag first and raises PolicyViolationError before
touching the row, so a rejected attempt leaves the stored role unchanged.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Permission, Role
from ..permissions import DEFAULT_ROLE_PERMISSIONS, DEFAULT_ROLES
from ..validation import ConflictError, NotFoundError, PolicyViolationError, ValidationError
from .persistence import commit_or_conflict
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate


ROLE_CONFLICT = "Role with this name already exists"

ROLE_SORT_FIELDS = {
    "created_at": Role.created_at,
    "updated_at": Role.updated_at,
    "name": Role.name,
    "display_name": Role.display_name,
}


def _guard_system_role(role: Role, message: str) -> None:
    if role.is_system:
        current_app.logger.warning("Rejected mutation of system role %s: %s", role.name, message)
        raise PolicyViolationError(message)


def _name_taken(name: str, *, exclude_id: str | None = None) -> bool:
    query = db.session.query(Role.id).filter(Role.name == name)
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    return query.first() is not None


def resolve_permissions(permission_ids: list[str]) -> list[Permission]:
    """Every id must resolve to a live permission, otherwise nothing is assigned."""
    unique_ids = list(dict.fromkeys(permission_ids))
    if not unique_ids:
        return []
    permissions = (
        db.session.query(Permission)
        .filter(Permission.id.in_(unique_ids), Permission.deleted_at.is_(None))
        .all()
    )
    if len(permissions) != len(unique_ids):
        raise ValidationError("One or more permission IDs are invalid")
    return permissions


def get_role(role_id: str, *, visibility: str = Visibility.EXCLUDE) -> Role:
    query = db.session.query(Role).filter(Role.id == role_id)
    role = apply_visibility(query, Role, visibility).first()
    if not role:
        raise NotFoundError("Role not found")
    return role


def find_role_by_name(name: str) -> Role | None:
    return (
        db.session.query(Role)
        .filter(Role.name == name, Role.deleted_at.is_(None))
        .first()
    )


def create_role(*, patch: dict, permission_ids: list[str] | None = None) -> Role:
    name = patch["name"]
    if _name_taken(name):
        raise ConflictError(ROLE_CONFLICT)

    permissions = resolve_permissions(permission_ids or [])

    role = Role(
        name=name,
        display_name=patch.get("display_name") or name[:1].upper() + name[1:],
        description=patch.get("description"),
        is_active=patch.get("is_active", True),
        is_system=False,
    )
    role.permissions = permissions
    db.session.add(role)
    commit_or_conflict(ROLE_CONFLICT)
    return role


def update_role(*, role_id: str, patch: dict, permission_ids: list[str] | None = None) -> Role:
    role = get_role(role_id)
    _guard_system_role(role, "System roles cannot be modified")

    if "name" in patch and patch["name"] != role.name:
        if _name_taken(patch["name"], exclude_id=role.id):
            raise ConflictError(ROLE_CONFLICT)

    permissions = resolve_permissions(permission_ids) if permission_ids is not None else None

    for key, value in patch.items():
        setattr(role, key, value)
    if permissions is not None:
        role.permissions = permissions

    commit_or_conflict(ROLE_CONFLICT)
    return role


def assign_permissions(*, role_id: str, permission_ids: list[str]) -> Role:
    """Replace the role's permission set with exactly `permission_ids`."""
    role = get_role(role_id)
    _guard_system_role(role, "System role permissions cannot be modified")

    role.permissions = resolve_permissions(permission_ids)
    db.session.commit()
    return role


def delete_role(*, role_id: str) -> None:
    role = get_role(role_id)
    _guard_system_role(role, "System roles cannot be deleted")
    role.mark_deleted()
    db.session.commit()


def list_roles(q: ListQuery, *, is_active: bool | None = None, is_system: bool | None = None) -> dict:
    query = db.session.query(Role)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            db.or_(Role.name.ilike(like), Role.display_name.ilike(like), Role.description.ilike(like))
        )
    if is_active is not None:
        query = query.filter(Role.is_active.is_(is_active))
    if is_system is not None:
        query = query.filter(Role.is_system.is_(is_system))
    query = apply_visibility(query, Role, Visibility.EXCLUDE)
    query = apply_sort(query, q, ROLE_SORT_FIELDS, "created_at")
    return paginate(query, q, lambda r: r.to_dict())


def list_roles_simple() -> list[dict]:
    roles = (
        db.session.query(Role)
        .filter(Role.is_active.is_(True), Role.deleted_at.is_(None))
        .order_by(Role.display_name.asc())
        .all()
    )
    return [{"id": r.id, "name": r.name, "display_name": r.display_name} for r in roles]


def role_stats() -> dict:
    live = db.session.query(Role).filter(Role.deleted_at.is_(None))
    return {
        "total": live.count(),
        "active": live.filter(Role.is_active.is_(True)).count(),
        "system": live.filter(Role.is_system.is_(True)).count(),
    }


def create_default_roles() -> int:
    """
    Create the default roles. Idempotent: existing names are skipped.
    super_admin and admin are system roles.
    """
    created_count = 0
    for name, display_name, description, is_system in DEFAULT_ROLES:
        if db.session.query(Role).filter_by(name=name).first():
            continue
        db.session.add(Role(
            name=name,
            display_name=display_name,
            description=description,
            is_system=is_system,
        ))
        created_count += 1
    db.session.commit()
    if created_count:
        current_app.logger.info("Seeded %d roles", created_count)
    return created_count


def assign_default_role_permissions() -> int:
    """
    Link default permissions to default roles (skips existing links).

    Seeding runs below the system-role guard: it is how system roles get
    their permissions in the first place.
    """
    created_count = 0
    for role_name, permission_names in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            continue

        current = {p.name for p in role.permissions}
        for name in permission_names:
            if name in current:
                continue
            permission = db.session.query(Permission).filter_by(name=name).first()
            if not permission:
                continue
            role.permissions.append(permission)
            created_count += 1

    db.session.commit()
    return created_count
