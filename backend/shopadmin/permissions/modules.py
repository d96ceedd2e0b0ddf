# Overview: Permission module constants (the part of a permission name before the dot).


class PermissionModule:
    """Permission modules for grouping and UI display."""
    USERS = "users"
    ROLES = "roles"
    PRODUCTS = "products"
    ORDERS = "orders"
    SETTINGS = "settings"

    ALL = (USERS, ROLES, PRODUCTS, ORDERS, SETTINGS)
