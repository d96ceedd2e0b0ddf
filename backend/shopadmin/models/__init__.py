from .auth import User, Role, Permission, role_permissions
from .catalog import Category, Product, ProductVariant, Tag, product_tags
from .media import Media

__all__ = [
    'User', 'Role', 'Permission', 'role_permissions',
    'Category', 'Product', 'ProductVariant', 'Tag', 'product_tags',
    'Media',
]
