from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import BigInteger, Integer

# Use BigInteger in production but fall back to Integer for SQLite
BIGINT = BigInteger().with_variant(Integer, "sqlite")

db = SQLAlchemy()

# Re-export common models for convenience
from .user import User  # noqa: F401,E402
from .catalog import Category, Product  # noqa: F401,E402
from .cart import Cart, CartItem  # noqa: F401,E402
from .order import Order, OrderItem, OrderStatusHistory  # noqa: F401,E402
from .counter import Counter  # noqa: F401,E402
