# Overview: Pagination, sorting and soft-delete visibility shared by every list endpoint.

"""
Every list query states its soft-delete visibility explicitly:

- Visibility.EXCLUDE: live rows only (default)
- Visibility.INCLUDE: live and soft-deleted rows
- Visibility.ONLY:    soft-deleted rows only

Sort fields are restricted to a per-resource allow-list; an unknown
sort_by silently falls back to the resource default.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from ..enums import SortOrder
from ..validation import UUID_RE, NotFoundError, ValidationError
from shopadmin.time_utils import parse_iso_datetime


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class Visibility:
    EXCLUDE = "exclude"
    INCLUDE = "include"
    ONLY = "only"

    ALL = (EXCLUDE, INCLUDE, ONLY)


def apply_visibility(query, model, visibility: str = Visibility.EXCLUDE):
    if visibility == Visibility.EXCLUDE:
        return query.filter(model.deleted_at.is_(None))
    if visibility == Visibility.ONLY:
        return query.filter(model.deleted_at.isnot(None))
    if visibility == Visibility.INCLUDE:
        return query
    raise ValueError(f"Unknown visibility: {visibility}")


@dataclass(frozen=True)
class ListQuery:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str | None = None
    sort_order: str = SortOrder.DESC
    search: str | None = None
    visibility: str = Visibility.EXCLUDE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def parse_bool_arg(args: Mapping[str, Any], name: str, errors: list[str]) -> bool | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    value = str(raw).strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    errors.append(f"{name} must be a boolean")
    return None


def parse_int_arg(args: Mapping[str, Any], name: str, errors: list[str], *, minimum: int | None = None) -> int | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        errors.append(f"{name} must be an integer")
        return None
    if minimum is not None and value < minimum:
        errors.append(f"{name} must not be less than {minimum}")
        return None
    return value


def parse_choice_arg(args: Mapping[str, Any], name: str, allowed: tuple, errors: list[str]) -> str | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    if raw not in allowed:
        errors.append(f"{name} must be one of: {', '.join(allowed)}")
        return None
    return raw


def parse_id_arg(args: Mapping[str, Any], name: str, errors: list[str]) -> str | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    if not UUID_RE.match(raw):
        errors.append(f"{name} must be a UUID")
        return None
    return raw


def parse_decimal_arg(args: Mapping[str, Any], name: str, errors: list[str]) -> Decimal | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        errors.append(f"{name} must be a number")
        return None
    if not value.is_finite() or value < 0:
        errors.append(f"{name} must be a non-negative number")
        return None
    return value


def parse_datetime_arg(args: Mapping[str, Any], name: str, errors: list[str]) -> datetime | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        errors.append(f"{name} must be an ISO-8601 datetime")
        return None


def parse_list_query(args: Mapping[str, Any], errors: list[str] | None = None) -> ListQuery:
    """
    Build a ListQuery from request query args.

    Problems are appended to `errors` when given (so the caller can add its own
    filter errors); otherwise a ValidationError is raised here.
    """
    own_errors = errors is None
    errors = [] if errors is None else errors

    page = parse_int_arg(args, "page", errors, minimum=1) or DEFAULT_PAGE
    limit = parse_int_arg(args, "limit", errors, minimum=1) or DEFAULT_LIMIT
    if limit > MAX_LIMIT:
        errors.append(f"limit must not be greater than {MAX_LIMIT}")
        limit = MAX_LIMIT

    sort_order = str(args.get("sort_order") or SortOrder.DESC).upper()
    if sort_order not in SortOrder.ALL:
        errors.append("sort_order must be one of: ASC, DESC")
        sort_order = SortOrder.DESC

    include_deleted = parse_bool_arg(args, "include_deleted", errors)
    only_deleted = parse_bool_arg(args, "only_deleted", errors)
    if only_deleted:
        visibility = Visibility.ONLY
    elif include_deleted:
        visibility = Visibility.INCLUDE
    else:
        visibility = Visibility.EXCLUDE

    search = (args.get("search") or "").strip() or None

    if own_errors and errors:
        raise ValidationError("Validation failed", errors)

    return ListQuery(
        page=page,
        limit=limit,
        sort_by=args.get("sort_by") or None,
        sort_order=sort_order,
        search=search,
        visibility=visibility,
    )


def apply_sort(query, q: ListQuery, allowed: Mapping[str, Any], fallback: str, *, tiebreak=None):
    column = allowed.get(q.sort_by) if q.sort_by else None
    if column is None:
        column = allowed[fallback]
    ordered = column.asc() if q.sort_order == SortOrder.ASC else column.desc()
    query = query.order_by(ordered)
    if tiebreak is not None:
        query = query.order_by(tiebreak)
    return query


def paginate(query, q: ListQuery, serialize: Callable[[Any], dict]) -> dict:
    """Execute a sorted query and shape it as {data, meta}."""
    total = query.order_by(None).count()
    rows = query.offset(q.skip).limit(q.limit).all()
    total_pages = (total + q.limit - 1) // q.limit if total > 0 else 0
    return {
        "data": [serialize(r) for r in rows],
        "meta": {
            "total": total,
            "page": q.page,
            "limit": q.limit,
            "total_pages": total_pages,
            "has_next_page": q.page < total_pages,
            "has_previous_page": q.page > 1,
        },
    }


def bulk_result() -> dict:
    return {"success": 0, "failed": 0, "failed_ids": []}


def run_bulk(ids: list[str], action: Callable[[str], Any]) -> dict:
    """
    Attempt `action` for every id in order; one id failing never stops the batch.

    Only domain failures (not found, wrong soft-delete state) are recorded as
    failures; anything else propagates.
    """
    result = bulk_result()
    for item_id in ids:
        try:
            action(item_id)
        except (NotFoundError, ValidationError):
            result["failed"] += 1
            result["failed_ids"].append(item_id)
        else:
            result["success"] += 1
    return result
