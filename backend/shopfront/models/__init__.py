from .staff import Role, Staff, RefreshToken
from .users import User
from .catalog import Category, Product, ProductHistory
from .orders import Order, OrderItem
from .audit import AuditLog, AuditLogImmutableError

__all__ = [
    'Role', 'Staff', 'RefreshToken',
    'User',
    'Category', 'Product', 'ProductHistory',
    'Order', 'OrderItem',
    'AuditLog', 'AuditLogImmutableError',
]
