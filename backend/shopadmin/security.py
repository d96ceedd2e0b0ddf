# Overview: Password hashing and strength rules (bcrypt, cost factor 12).

import re

import bcrypt

from .validation import ValidationError


# Full modular-crypt bcrypt hash: $2b$12$ followed by 22 salt and 31 digest chars.
BCRYPT_HASH_RE = re.compile(r"\$2[aby]?\$\d{2}\$[./A-Za-z0-9]{53}")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - 8 to 100 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character from @$!%*?&

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Validation failed", ["password must be a string"])

    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if len(password) > 100:
        errors.append("Password must be at most 100 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one digit")
    if not re.search(r"[@$!%*?&]", password):
        errors.append("Password must contain at least one special character (@$!%*?&)")
    if errors:
        raise PasswordValidationError("Validation failed", errors)


def looks_hashed(value: str) -> bool:
    return BCRYPT_HASH_RE.fullmatch(value) is not None


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. Malformed stored hashes never match.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
