"""
Pytest fixtures for Stockroom backend tests.

Provides an in-memory database, seeded reference data, two tenants
(users with their own customers, suppliers and products) and an
authenticated test client.
"""

import pytest
from sqlalchemy import select

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Customer, InventoryTransaction, Product, Supplier, User
from stockroom.services.ledger_service import seed_transaction_types
from stockroom.services.session_service import create_session
from stockroom.services.status_service import seed_status_taxonomy
from stockroom.validation import DocumentHeader


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SERVICE_API_KEY': 'test-service-key',
        'UNIT_OF_WORK_TIMEOUT_SECONDS': 30,
        'ALERT_EMAIL_IN_BACKGROUND': False,
    })

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
    """Fresh data for each test; reference data re-seeded."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        seed_status_taxonomy(db.session)
        seed_transaction_types(db.session)
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_tenant(session, email):
    user = User(email=email, full_name=email.split("@")[0], is_active=True)
    session.add(user)
    session.flush()

    customer = Customer(user_id=user.id, name=f"Customer of {email}")
    supplier = Supplier(user_id=user.id, name=f"Supplier of {email}")
    product = Product(
        user_id=user.id,
        name=f"Widget ({email})",
        quantity=10,
        unit_cost_cents=150,
        unit_price_cents=300,
    )
    other = Product(
        user_id=user.id,
        name=f"Gadget ({email})",
        quantity=5,
        unit_cost_cents=500,
        unit_price_cents=900,
    )
    session.add_all([customer, supplier, product, other])
    session.commit()
    return {"user": user, "customer": customer, "supplier": supplier, "product": product, "other": other}


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """User A with one customer, one supplier, Widget (qty 10) and Gadget (qty 5)."""
    return _make_tenant(db_session, "owner_a@example.com")


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """User B, same shape as tenant_a."""
    return _make_tenant(db_session, "owner_b@example.com")


@pytest.fixture(scope='function')
def auth_headers_a(db_session, tenant_a):
    _, token = create_session(tenant_a["user"].id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def auth_headers_b(db_session, tenant_b):
    _, token = create_session(tenant_b["user"].id)
    return auth_headers(token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def stock_of(product_id: int) -> int:
    """Current quantity straight from the table (bypasses the identity map)."""
    return db.session.execute(select(Product.quantity).where(Product.id == product_id)).scalar_one()


def ledger_rows(product_id: int | None = None) -> list:
    db.session.expire_all()
    query = db.session.query(InventoryTransaction).order_by(InventoryTransaction.id)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    return query.all()


def header(party_id=None, status=None, **kwargs) -> DocumentHeader:
    return DocumentHeader(party_id=party_id, status=status, **kwargs)
