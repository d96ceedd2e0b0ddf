# Overview: Default roles and their permission sets.
# Each role is defined as: (name, display_name, description, is_system)

from ..enums import UserRole
from .helpers import get_all_permission_names, get_permissions_by_module
from .modules import PermissionModule


DEFAULT_ROLES = [
    (
        UserRole.SUPER_ADMIN,
        "Super Administrator",
        "Full system access with all permissions",
        True,
    ),
    (
        UserRole.ADMIN,
        "Administrator",
        "Administrative access",
        True,
    ),
    (
        UserRole.VENDOR,
        "Vendor",
        "Vendor/Seller access",
        False,
    ),
    (
        UserRole.CUSTOMER,
        "Customer",
        "Regular customer access",
        False,
    ),
]


def _names(module):
    return [perm[0] for perm in get_permissions_by_module(module)]


DEFAULT_ROLE_PERMISSIONS = {
    UserRole.SUPER_ADMIN: get_all_permission_names(),
    UserRole.ADMIN: get_all_permission_names(),
    UserRole.VENDOR: [n for n in _names(PermissionModule.PRODUCTS) if n != "products.delete"] + ["orders.read"],
    UserRole.CUSTOMER: [],
}
