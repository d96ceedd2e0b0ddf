# Overview: Permission system package.
# Re-exports the default permission and role definitions used for seeding.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLES, DEFAULT_ROLE_PERMISSIONS
from .helpers import split_permission_name, default_display_name

__all__ = [
    "PERMISSION_DEFINITIONS",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "split_permission_name",
    "default_display_name",
]
