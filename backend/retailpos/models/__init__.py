from .users import User
from .customers import Customer
from .catalog import Product
from .orders import Order, OrderItem
from .documents import DocumentSequence
from .carts import CartBackup

__all__ = [
    'User',
    'Customer',
    'Product',
    'Order', 'OrderItem',
    'DocumentSequence',
    'CartBackup',
]
