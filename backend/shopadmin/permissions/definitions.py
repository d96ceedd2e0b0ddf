# Overview: Default permission set seeded at install time.
# Each permission is defined as: (name, display_name, description, module)
# The action is the part of the name after the dot.

from .modules import PermissionModule


def _crud(module, noun):
    return [
        (f"{module}.create", f"Create {noun}", f"Create {noun.lower()}", module),
        (f"{module}.read", f"View {noun}", f"View {noun.lower()}", module),
        (f"{module}.update", f"Update {noun}", f"Update {noun.lower()}", module),
        (f"{module}.delete", f"Delete {noun}", f"Delete {noun.lower()}", module),
    ]


USER_PERMISSIONS = _crud(PermissionModule.USERS, "Users")

ROLE_PERMISSIONS = _crud(PermissionModule.ROLES, "Roles")

PRODUCT_PERMISSIONS = _crud(PermissionModule.PRODUCTS, "Products")

# Seeded for the order module; nothing in this service checks them yet
ORDER_PERMISSIONS = _crud(PermissionModule.ORDERS, "Orders")

SETTINGS_PERMISSIONS = [
    (
        "settings.read",
        "View Settings",
        "View platform settings",
        PermissionModule.SETTINGS,
    ),
    (
        "settings.update",
        "Update Settings",
        "Change platform settings",
        PermissionModule.SETTINGS,
    ),
]


PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + ROLE_PERMISSIONS
    + PRODUCT_PERMISSIONS
    + ORDER_PERMISSIONS
    + SETTINGS_PERMISSIONS
)
