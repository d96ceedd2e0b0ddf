from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from shopadmin.security import hash_password, looks_hashed, verify_password
from shopadmin.time_utils import parse_iso_date, to_utc_z
from .base import EntityMixin


role_permissions = db.Table(
    "role_permissions",
    db.Column("role_id", db.String(36), db.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    db.Column("permission_id", db.String(36), db.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Permission(EntityMixin, db.Model):
    """
    A named capability, `<module>.<action>` (e.g. "users.create").

    Permissions are shared across roles; a role only owns the join rows.
    Soft-removed permissions stay linked but stop granting anything.
    """
    __tablename__ = "permissions"

    name = db.Column(db.String(100), nullable=False, unique=True)
    display_name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    module = db.Column(db.String(50), nullable=False, index=True)
    action = db.Column(db.String(50), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Permission {self.name!r}>"

    @property
    def grants(self) -> bool:
        return bool(self.is_active) and self.deleted_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "module": self.module,
            "action": self.action,
            "is_active": self.is_active,
            **self.timestamps_dict(),
        }


class Role(EntityMixin, db.Model):
    """
    Role with an owned permission set.

    System roles (is_system) are platform-protected: the role service refuses
    every mutation of them before anything is written.
    """
    __tablename__ = "roles"

    name = db.Column(db.String(50), nullable=False, unique=True)
    display_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_system = db.Column(db.Boolean, nullable=False, default=False)

    permissions = db.relationship("Permission", secondary=role_permissions, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Role {self.name!r} system={self.is_system}>"

    @property
    def permission_names(self) -> frozenset[str]:
        return frozenset(p.name for p in self.permissions if p.grants)

    def has_permission(self, name: str) -> bool:
        return name in self.permission_names

    def has_any_permission(self, names) -> bool:
        return not self.permission_names.isdisjoint(names)

    def has_all_permissions(self, names) -> bool:
        return self.permission_names.issuperset(names)

    def to_dict(self, include_permissions: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "is_active": self.is_active,
            "is_system": self.is_system,
            **self.timestamps_dict(),
        }
        if include_permissions:
            data["permissions"] = [p.to_dict() for p in sorted(self.permissions, key=lambda p: p.name)]
        return data


class User(EntityMixin, db.Model):
    """
    Admin and customer accounts. Exactly one role per user.

    Only users with status "active" may authenticate.
    """
    __tablename__ = "users"

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    phone = db.Column(db.String(20), nullable=True, unique=True)

    # Bcrypt hash; see _hash_password
    password_hash = db.Column(db.String(255), nullable=False)

    avatar = db.Column(db.String(500), nullable=True)
    birth_date = db.Column(db.Date, nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="pending_verification", index=True)

    is_email_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_phone_verified = db.Column(db.Boolean, nullable=False, default=False)
    email_verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    phone_verified_at = db.Column(db.DateTime(timezone=True), nullable=True)

    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_login_ip = db.Column(db.String(64), nullable=True)

    role_id = db.Column(db.String(36), db.ForeignKey("roles.id"), nullable=False, index=True)
    meta_data = db.Column("metadata", db.JSON, nullable=True)

    role = db.relationship("Role", lazy="joined")

    @validates("password_hash")
    def _hash_password(self, key, value):
        # Re-saving an already hashed value must not hash it twice
        if value is None or looks_hashed(value):
            return value
        return hash_password(value)

    @validates("birth_date")
    def _coerce_birth_date(self, key, value):
        if isinstance(value, str):
            return parse_iso_date(value)
        return value

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User {self.email!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "avatar": self.avatar,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "gender": self.gender,
            "status": self.status,
            "is_email_verified": self.is_email_verified,
            "is_phone_verified": self.is_phone_verified,
            "email_verified_at": to_utc_z(self.email_verified_at),
            "phone_verified_at": to_utc_z(self.phone_verified_at),
            "last_login_at": to_utc_z(self.last_login_at),
            "last_login_ip": self.last_login_ip,
            "role_id": self.role_id,
            "role": self.role.to_dict(include_permissions=False) if self.role else None,
            "metadata": self.meta_data,
            **self.timestamps_dict(),
        }
