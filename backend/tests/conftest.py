"""
Pytest fixtures for the billing backend tests.

Provides test database setup, catalog fixtures, and test client.
"""

import pytest
from billing import create_app
from billing.extensions import db
from billing.services import products_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TRANSACTION_RETRY_ATTEMPTS': 2,
        'TRANSACTION_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
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
def make_product(db_session):
    """Factory: create a product through the catalog and receive opening stock."""
    def _make(name="Chips", localized_name="சிப்ஸ்", price=10, stock=0, min_stock_level=None):
        payload = {"name": name, "localizedName": localized_name, "price": price}
        if min_stock_level is not None:
            payload["minStockLevel"] = min_stock_level
        product = products_service.create_product(payload)
        if stock:
            product = products_service.adjust_stock(product.id, stock)
        return product
    return _make


@pytest.fixture(scope='function')
def chips(make_product):
    """Product 1: Chips, price 10, stock 5."""
    return make_product(name="Chips", localized_name="சிப்ஸ்", price=10, stock=5)


@pytest.fixture(scope='function')
def murukku(make_product):
    """Product 2: Murukku, price 25.50, stock 20."""
    return make_product(name="Murukku", localized_name="முறுக்கு", price="25.50", stock=20)
