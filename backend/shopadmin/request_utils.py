# Overview: Small request-parsing helpers shared by the route modules.

from __future__ import annotations

from flask import request

from .validation import MAX_BULK_IDS, ValidationError, validate_id_list, validate_metadata


def json_payload() -> dict:
    """The JSON object body of the current request, or {} when there is none."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def raise_if_errors(errors: list[str]) -> None:
    if errors:
        raise ValidationError("Validation failed", errors)


def body_ids(payload: dict, field: str = "ids", *, max_size: int = MAX_BULK_IDS, allow_empty: bool = False) -> list[str]:
    if field not in payload:
        raise ValidationError("Validation failed", [f"{field} is required"])
    return validate_id_list(payload[field], field, max_size=max_size, allow_empty=allow_empty)


def body_metadata(payload: dict) -> tuple[dict | None, bool]:
    """(metadata, present). `present` is False when the key was not sent at all."""
    if "metadata" not in payload:
        return None, False
    return validate_metadata(payload["metadata"]), True


def client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr
