from .cart import cart_bp
from .orders import orders_bp
from .catalog import catalog_bp
from .admin import admin_bp


__all__ = [
    'cart_bp',
    'orders_bp',
    'catalog_bp',
    'admin_bp',
]
