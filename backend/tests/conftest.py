"""
Pytest fixtures for stockroom backend tests.

Provides test database setup, one user per role, catalog items with stock,
and auth header helpers for the Flask test client.
"""

import pytest
from stockroom import create_app
from stockroom.extensions import db
from stockroom.services import inventory_service, session_service, user_service
from stockroom.services.fulfillment_service import REGISTRY_KEY


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh database and no fulfillment trackers for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions.pop(REGISTRY_KEY, None)

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(name, email, role, store_location=None):
    return user_service.create_user(
        name=name,
        email=email,
        role=role,
        store_location=store_location,
        password=TEST_PASSWORD,
    )


@pytest.fixture(scope='function')
def admin():
    return _make_user("Admin User", "admin@stockapp.com", "admin")


@pytest.fixture(scope='function')
def warehouse_manager():
    return _make_user("Warehouse Manager", "warehouse@stockapp.com", "warehouse-manager")


@pytest.fixture(scope='function')
def sydney_manager():
    return _make_user("Sydney Store Manager", "sydney@stockapp.com", "store-manager", "Sydney")


@pytest.fixture(scope='function')
def melbourne_manager():
    return _make_user("Melbourne Store Manager", "melbourne@stockapp.com", "store-manager", "Melbourne")


@pytest.fixture(scope='function')
def widget():
    """Stock item with a barcode and 100 units on hand."""
    return inventory_service.create_product(
        name="Widget", sku="WID-001", barcode="1111111111111", initial_quantity=100,
    )


@pytest.fixture(scope='function')
def gadget():
    """Stock item with a barcode and 50 units on hand."""
    return inventory_service.create_product(
        name="Gadget", sku="GAD-001", barcode="2222222222222", initial_quantity=50,
    )


def auth_headers(user) -> dict:
    """Authorization headers for a fresh session of user."""
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def warehouse_headers(warehouse_manager):
    return auth_headers(warehouse_manager)


@pytest.fixture(scope='function')
def sydney_headers(sydney_manager):
    return auth_headers(sydney_manager)


@pytest.fixture(scope='function')
def melbourne_headers(melbourne_manager):
    return auth_headers(melbourne_manager)
