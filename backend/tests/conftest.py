"""
Pytest fixtures for retailpos backend tests.

Provides test database setup, model factories, and test client.
"""

import pytest

from retailpos import create_app
from retailpos.config import TestingConfig
from retailpos.extensions import db
from retailpos.models import Customer, Product, User
from retailpos.services import checkout_service
from retailpos.validation import CheckoutItem, CheckoutRequest, NO_DISCOUNT


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cashier(db_session):
    user = User(username="cashier", name="Casey Cashier", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def actor_headers(cashier):
    return {"X-Actor-Id": str(cashier.id)}


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="Jane Doe", email="jane@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(price_cents=1000, tax_rate_bps=1000, stock=10, ...)."""
    counter = {"n": 0}

    def _make(price_cents=1000, tax_rate_bps=1000, stock=10, track_stock=True, **overrides):
        counter["n"] += 1
        product = Product(
            sku=overrides.pop("sku", f"SKU-{counter['n']:03d}"),
            name=overrides.pop("name", f"Product {counter['n']}"),
            price_cents=price_cents,
            tax_rate_bps=tax_rate_bps,
            track_stock=track_stock,
            stock_quantity=stock if track_stock else 0,
            **overrides,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def checkout(cashier):
    """Factory: ring up [(product, qty), ...] and return the completed order."""
    def _checkout(lines, amount_paid_cents=None, discount=NO_DISCOUNT, customer_id=None, payment_method="cash"):
        items = tuple(CheckoutItem(product_id=p.id, quantity=q) for p, q in lines)
        if amount_paid_cents is None:
            amount_paid_cents = 10_000_000
        request = CheckoutRequest(
            items=items,
            payment_method=payment_method,
            amount_paid_cents=amount_paid_cents,
            discount=discount,
            customer_id=customer_id,
        )
        return checkout_service.checkout(request, cashier.id)

    return _checkout
