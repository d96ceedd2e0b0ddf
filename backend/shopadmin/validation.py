from __future__ import annotations
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from shopadmin.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .enums import Gender, MediaType, ProductStatus, UserStatus


# Largest amount a Numeric(12, 0) price column can hold
MAX_PRICE = Decimal("999999999999")

MAX_BULK_IDS = 100
MAX_TAG_IDS = 50

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level: the referenced record is absent or not visible."""


class PolicyViolationError(Exception):
    """403-level: mutation of a platform-protected record (system roles, role-held permissions)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - extra_fields: non-column keys the route handles itself (ids lists, nested variants)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    extra_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {key: c for key, c in mapper.columns.items()}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Decimals (prices, weight); scale 0 columns only take whole amounts
    if isinstance(coltype, Numeric):
        if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
            raise ValidationError(f"{col.key} must be a number")
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        if coltype.scale == 0 and number != number.to_integral_value():
            raise ValidationError(f"{col.key} must be a whole amount")
        return number

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            return d
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, JSON):
        if not isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be an object or array")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Every field problem is collected; a single ValidationError carries them all.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[str] = []
    extra = policy.extra_fields or set()

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        errors.extend(f"{f} is required" for f in missing)

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k in extra:
            continue
        if k not in policy.writable_fields:
            errors.append(f"Field not allowed: {k}")
            continue
        if k not in cols:
            errors.append(f"Unknown field: {k}")
            continue

        col = cols[k]

        if raw is None:
            if not col.nullable:
                errors.append(f"{k} cannot be null")
            else:
                patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as e:
            errors.append(str(e))
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                errors.append(f"{k} cannot be blank")
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors.append(f"{k} exceeds max length {col.type.length}")
                continue

        patch[k] = val

    if errors:
        raise ValidationError("Validation failed", errors)

    return patch


def _raise_if(errors: list[str]) -> None:
    if errors:
        raise ValidationError("Validation failed", errors)


def _min_length(patch: dict, field: str, size: int, errors: list[str]) -> None:
    value = patch.get(field)
    if isinstance(value, str) and len(value) < size:
        errors.append(f"{field} must be at least {size} characters")


def _non_negative(patch: dict, fields: tuple[str, ...], errors: list[str]) -> None:
    for field in fields:
        value = patch.get(field)
        if value is not None and value < 0:
            errors.append(f"{field} must be >= 0")


def _one_of(patch: dict, field: str, allowed: tuple[str, ...], errors: list[str]) -> None:
    value = patch.get(field)
    if value is not None and value not in allowed:
        errors.append(f"{field} must be one of: {', '.join(allowed)}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    errors: list[str] = []
    _min_length(patch, "name", 2, errors)
    _min_length(patch, "slug", 2, errors)
    _non_negative(patch, ("price", "compare_at_price", "cost_price", "quantity", "low_stock_threshold", "weight"), errors)
    for field in ("price", "compare_at_price", "cost_price"):
        value = patch.get(field)
        if value is not None and value > MAX_PRICE:
            errors.append(f"{field} cannot exceed {MAX_PRICE}")
    _one_of(patch, "status", ProductStatus.ALL, errors)
    category_id = patch.get("category_id")
    if category_id is not None and not UUID_RE.match(category_id):
        errors.append("category_id must be a UUID")
    images = patch.get("images")
    if images is not None and (not isinstance(images, list) or not all(isinstance(i, str) for i in images)):
        errors.append("images must be an array of strings")
    _raise_if(errors)


def enforce_rules_variant(patch: dict) -> None:
    errors: list[str] = []
    _non_negative(patch, ("price", "quantity"), errors)
    price = patch.get("price")
    if price is not None and price > MAX_PRICE:
        errors.append(f"price cannot exceed {MAX_PRICE}")
    attributes = patch.get("attributes")
    if attributes is not None:
        if not isinstance(attributes, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in attributes.items()
        ):
            errors.append("attributes must be an object of string values")
    _raise_if(errors)


def enforce_rules_category(patch: dict) -> None:
    errors: list[str] = []
    _min_length(patch, "name", 2, errors)
    _min_length(patch, "slug", 2, errors)
    _non_negative(patch, ("sort_order",), errors)
    parent_id = patch.get("parent_id")
    if parent_id is not None and not UUID_RE.match(parent_id):
        errors.append("parent_id must be a UUID")
    _raise_if(errors)


def enforce_rules_tag(patch: dict) -> None:
    errors: list[str] = []
    _min_length(patch, "name", 2, errors)
    _min_length(patch, "slug", 2, errors)
    slug = patch.get("slug")
    if slug is not None and not SLUG_RE.match(slug):
        errors.append("Slug must be lowercase with hyphens only (e.g., summer-sale)")
    _non_negative(patch, ("sort_order",), errors)
    _raise_if(errors)


def enforce_rules_permission(patch: dict) -> None:
    errors: list[str] = []
    _min_length(patch, "name", 2, errors)
    _raise_if(errors)


def enforce_rules_role(patch: dict) -> None:
    errors: list[str] = []
    _min_length(patch, "name", 2, errors)
    _raise_if(errors)


def enforce_rules_user(patch: dict) -> None:
    errors: list[str] = []
    _min_length(patch, "first_name", 2, errors)
    _min_length(patch, "last_name", 2, errors)
    email = patch.get("email")
    if email is not None and not EMAIL_RE.match(email):
        errors.append("email must be a valid email address")
    phone = patch.get("phone")
    if phone is not None and not PHONE_RE.match(phone):
        errors.append("Invalid phone number format")
    _one_of(patch, "status", UserStatus.ALL, errors)
    _one_of(patch, "gender", Gender.ALL, errors)
    role_id = patch.get("role_id")
    if role_id is not None and not UUID_RE.match(role_id):
        errors.append("role_id must be a UUID")
    _raise_if(errors)


def enforce_rules_media(patch: dict) -> None:
    errors: list[str] = []
    _one_of(patch, "type", MediaType.ALL, errors)
    _raise_if(errors)


def validate_id_list(value: Any, field: str, *, max_size: int = MAX_BULK_IDS, allow_empty: bool = False) -> list[str]:
    """Validate a JSON array of UUID strings (bulk ids, tag ids, permission ids)."""
    if not isinstance(value, list):
        raise ValidationError("Validation failed", [f"{field} must be an array"])
    errors: list[str] = []
    if not value and not allow_empty:
        errors.append(f"{field} must contain at least 1 element")
    if len(value) > max_size:
        errors.append(f"{field} must contain no more than {max_size} elements")
    if any(not isinstance(v, str) or not UUID_RE.match(v) for v in value):
        errors.append(f"each value in {field} must be a UUID")
    _raise_if(errors)
    return value


def validate_metadata(value: Any) -> dict | None:
    """Free-form metadata must be a JSON object (or null to clear)."""
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError("Validation failed", ["metadata must be an object"])
    return value
