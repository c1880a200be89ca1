import os
import sys
from decimal import Decimal
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db, User, Category, Product


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    from app import create_app
    from app.config import TestingConfig
    app = create_app(TestingConfig)
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture
def users(app):
    users = {
        'customer': User(name='Ana', email='ana@example.com', phone='11999990000', role='customer'),
        'other': User(name='Bruno', email='bruno@example.com', role='customer'),
        'admin': User(name='Kitchen', email='kitchen@example.com', role='admin'),
    }
    db.session.add_all(users.values())
    db.session.commit()
    return users


@pytest.fixture
def tokens(app, users):
    from app.utils import create_access_token
    return {key: create_access_token(user.id, user.role) for key, user in users.items()}


@pytest.fixture
def headers(tokens):
    return {key: {'Authorization': f'Bearer {tok}'} for key, tok in tokens.items()}


@pytest.fixture
def menu(app):
    """Two orderable products (A at 5.00, B at 3.00) and one unavailable product."""
    snacks = Category(name='Snacks', sort_order=1)
    drinks = Category(name='Drinks', sort_order=2)
    db.session.add_all([snacks, drinks])
    db.session.flush()
    products = {
        'A': Product(name='Coxinha', price=Decimal('5.00'), category_id=snacks.id),
        'B': Product(name='Suco', price=Decimal('3.00'), category_id=drinks.id),
        'off': Product(name='Pastel', price=Decimal('6.50'), category_id=snacks.id, is_available=False),
    }
    db.session.add_all(products.values())
    db.session.commit()
    return {'categories': {'snacks': snacks, 'drinks': drinks}, **products}


@pytest.fixture
def filled_cart(app, users, menu):
    """Customer cart holding 2 x A and 1 x B."""
    from app.services.cart_service import CartService
    carts = CartService()
    carts.add_item(users['customer'].id, menu['A'].id, 2, notes='no salt')
    carts.add_item(users['customer'].id, menu['B'].id, 1)
    db.session.commit()
    return carts._find_cart(users['customer'].id)
