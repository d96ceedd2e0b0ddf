# Overview: Utility functions for permission lookups and validation.

from .definitions import PERMISSION_DEFINITIONS


def get_all_permission_names():
    """Get list of all default permission names."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_module(module):
    """Get all default permissions in a module."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == module]


def split_permission_name(name):
    """'orders.read' -> ('orders', 'read'). Names without a dot have no action."""
    module, _, action = name.partition(".")
    return module, action


def default_display_name(name):
    """'orders.read' -> 'Orders Read'."""
    return " ".join(part.capitalize() for part in name.split(".") if part)
