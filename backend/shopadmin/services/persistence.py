# Overview: Commit helpers that turn storage unique-constraint violations into ConflictError.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..validation import ConflictError


def commit_or_conflict(message: str = "Resource already exists") -> None:
    """
    Commit the current session.

    Uniqueness pre-checks race under concurrent writers; the unique constraint
    is the final authority. A violation at commit is rolled back and surfaces
    as the same ConflictError the pre-check would have raised.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Unique constraint violated at commit: %s", exc.orig)
        raise ConflictError(message) from exc


def flush_or_conflict(message: str = "Resource already exists") -> None:
    """Flush variant of commit_or_conflict for multi-step writes in one transaction."""
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Unique constraint violated at flush: %s", exc.orig)
        raise ConflictError(message) from exc
