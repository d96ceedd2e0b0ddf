# Overview: Service-layer operations for user accounts.

from __future__ import annotations

from datetime import datetime

from ..enums import UserStatus
from ..extensions import db
from ..models import Role, User
from ..security import validate_password_strength
from ..validation import ConflictError, NotFoundError, ValidationError
from .persistence import commit_or_conflict
from .query_service import ListQuery, Visibility, apply_sort, apply_visibility, paginate, run_bulk
from shopadmin.time_utils import utcnow


EMAIL_CONFLICT = "Email already exists"
PHONE_CONFLICT = "Phone number already exists"

USER_SORT_FIELDS = {
    "created_at": User.created_at,
    "updated_at": User.updated_at,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "email": User.email,
    "status": User.status,
}


def _taken(column, value, *, exclude_id: str | None = None) -> bool:
    query = db.session.query(User.id).filter(column == value)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _require_role(role_id: str) -> Role:
    role = (
        db.session.query(Role)
        .filter(Role.id == role_id, Role.deleted_at.is_(None))
        .first()
    )
    if not role:
        raise ValidationError("Invalid role ID")
    return role


def get_user(user_id: str, *, visibility: str = Visibility.EXCLUDE) -> User:
    query = db.session.query(User).filter(User.id == user_id)
    user = apply_visibility(query, User, visibility).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def find_user_by_email(email: str) -> User | None:
    return (
        db.session.query(User)
        .filter(User.email == email, User.deleted_at.is_(None))
        .first()
    )


def create_user(*, patch: dict, password: str, metadata: dict | None = None) -> User:
    """
    Create a user. Email and phone conflicts are checked independently;
    the role must exist. The password is hashed by the model.
    """
    if _taken(User.email, patch["email"]):
        raise ConflictError(EMAIL_CONFLICT)
    if patch.get("phone") and _taken(User.phone, patch["phone"]):
        raise ConflictError(PHONE_CONFLICT)
    _require_role(patch["role_id"])
    validate_password_strength(password)

    user = User(**patch)
    user.password_hash = password
    user.meta_data = metadata
    db.session.add(user)
    commit_or_conflict("Email or phone number already exists")
    return user


def update_user(*, user_id: str, patch: dict, metadata=None, set_metadata: bool = False) -> User:
    """
    Changing email or phone resets the matching verification flag.
    Role changes are revalidated.
    """
    user = get_user(user_id)

    email = patch.pop("email", None)
    if email and email != user.email:
        if _taken(User.email, email, exclude_id=user.id):
            raise ConflictError(EMAIL_CONFLICT)
        user.email = email
        user.is_email_verified = False
        user.email_verified_at = None

    if "phone" in patch:
        phone = patch.pop("phone")
        if phone and phone != user.phone:
            if _taken(User.phone, phone, exclude_id=user.id):
                raise ConflictError(PHONE_CONFLICT)
            user.phone = phone
            user.is_phone_verified = False
            user.phone_verified_at = None
        elif phone is None:
            user.phone = None
            user.is_phone_verified = False
            user.phone_verified_at = None

    role_id = patch.pop("role_id", None)
    if role_id and role_id != user.role_id:
        _require_role(role_id)
        user.role_id = role_id

    for key, value in patch.items():
        setattr(user, key, value)
    if set_metadata:
        user.meta_data = metadata

    commit_or_conflict("Email or phone number already exists")
    return user


def change_password(*, user_id: str, new_password: str, current_password: str | None = None, is_admin: bool = False) -> None:
    """
    Non-admin callers who supply a current password must get it right.
    Admins reset without it.
    """
    user = get_user(user_id)

    if not is_admin and current_password:
        if not user.check_password(current_password):
            raise ValidationError("Current password is incorrect")

    validate_password_strength(new_password)
    user.password_hash = new_password
    db.session.commit()


def verify_email(*, user_id: str) -> User:
    user = get_user(user_id)
    user.is_email_verified = True
    user.email_verified_at = utcnow()
    db.session.commit()
    return user


def verify_phone(*, user_id: str) -> User:
    user = get_user(user_id)
    user.is_phone_verified = True
    user.phone_verified_at = utcnow()
    db.session.commit()
    return user


def record_login(user: User, ip_address: str | None) -> None:
    user.last_login_at = utcnow()
    user.last_login_ip = ip_address or ""
    db.session.commit()


def delete_user(*, user_id: str) -> None:
    user = get_user(user_id)
    user.mark_deleted()
    db.session.commit()


def restore_user(*, user_id: str) -> User:
    user = get_user(user_id, visibility=Visibility.INCLUDE)
    if not user.is_deleted:
        raise ValidationError("User is not deleted")
    user.mark_restored()
    db.session.commit()
    return user


def bulk_delete_users(ids: list[str]) -> dict:
    return run_bulk(ids, lambda user_id: delete_user(user_id=user_id))


def bulk_restore_users(ids: list[str]) -> dict:
    return run_bulk(ids, lambda user_id: restore_user(user_id=user_id))


def list_users(
    q: ListQuery,
    *,
    status: str | None = None,
    role_id: str | None = None,
    gender: str | None = None,
    is_email_verified: bool | None = None,
    is_phone_verified: bool | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
) -> dict:
    query = db.session.query(User)
    if q.search:
        like = f"%{q.search}%"
        query = query.filter(
            db.or_(
                User.first_name.ilike(like),
                User.last_name.ilike(like),
                User.email.ilike(like),
                User.phone.ilike(like),
            )
        )
    if status:
        query = query.filter(User.status == status)
    if role_id:
        query = query.filter(User.role_id == role_id)
    if gender:
        query = query.filter(User.gender == gender)
    if is_email_verified is not None:
        query = query.filter(User.is_email_verified.is_(is_email_verified))
    if is_phone_verified is not None:
        query = query.filter(User.is_phone_verified.is_(is_phone_verified))
    if created_after is not None:
        query = query.filter(User.created_at >= created_after)
    if created_before is not None:
        query = query.filter(User.created_at <= created_before)

    query = apply_visibility(query, User, q.visibility)
    query = apply_sort(query, q, USER_SORT_FIELDS, "created_at")
    return paginate(query, q, lambda u: u.to_dict())


def user_stats() -> dict:
    live = db.session.query(User).filter(User.deleted_at.is_(None))
    by_status = {status: 0 for status in UserStatus.ALL}
    rows = live.with_entities(User.status, db.func.count(User.id)).group_by(User.status).all()
    for status, count in rows:
        by_status[status] = count
    return {"total": live.count(), "by_status": by_status}


def count_users_with_role(role_id: str) -> int:
    return (
        db.session.query(User)
        .filter(User.role_id == role_id, User.deleted_at.is_(None))
        .count()
    )
