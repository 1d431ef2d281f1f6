"""
Pytest fixtures for BStock backend tests.

Provides test database setup, two tenants (A and B) with owners, a catalog
fixture factory, session-token headers and the Flask test client.
"""

import pytest

from bstock import create_app
from bstock.extensions import db
from bstock.models import User
from bstock.services import auth_service, catalog_service, plan_service, session_service


PASSWORD = "secret-pass"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEV_ENDPOINTS_ENABLED': True,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """bcrypt's minimum cost keeps registration fixtures fast."""
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh database with the plan catalog seeded for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        plan_service.seed_plans(db.session)

        yield db.session

        db.session.rollback()
        db.session.remove()


def register(name: str, phone: str):
    """Register an organization and return (org, owner)."""
    org, owner, _ = auth_service.register_organization(
        db.session,
        organization_name=name,
        phone_number=phone,
        password=PASSWORD,
    )
    return org, owner


@pytest.fixture(scope='function')
def org_a(db_session):
    """Organization A (first tenant) on the free plan."""
    org, _ = register("Org A - Acme Corp", "+15550000001")
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Organization B (second tenant) on the free plan."""
    org, _ = register("Org B - Beta Inc", "+15550000002")
    return org


@pytest.fixture(scope='function')
def owner_a(db_session, org_a):
    return db_session.query(User).filter_by(id=org_a.owner_id).one()


@pytest.fixture(scope='function')
def owner_b(db_session, org_b):
    return db_session.query(User).filter_by(id=org_b.owner_id).one()


@pytest.fixture(scope='function')
def cashier_a(db_session, org_a):
    return auth_service.invite_user(
        db_session,
        org_a.id,
        phone_number="+15550000101",
        password=PASSWORD,
        role="cashier",
    )


@pytest.fixture(scope='function')
def make_product(db_session):
    """
    Factory: create a product with one variant through the catalog service.

    Defaults mirror a typical line: 20 on hand, sells at 100.00, costs 60.00.
    """
    counter = {"n": 0}

    def _make(org, *, quantity=20, sale_price_cents=10000, purchase_price_cents=6000,
              min_stock_level=0, name=None, sku=None, category=None):
        counter["n"] += 1
        n = counter["n"]
        return catalog_service.create_product(db_session, org.id, {
            "name": name or f"Product {n}",
            "category": category,
            "variants": [{
                "sku": sku or f"SKU-{n:03d}",
                "sale_price_cents": sale_price_cents,
                "purchase_price_cents": purchase_price_cents,
                "quantity": quantity,
                "min_stock_level": min_stock_level,
            }],
        })

    return _make


@pytest.fixture(scope='function')
def variant_a(make_product, org_a):
    """Variant in Organization A: 20 on hand at 10000/6000 cents."""
    return make_product(org_a, name="Shirt A", sku="SHIRT-A").variants[0]


@pytest.fixture(scope='function')
def variant_b(make_product, org_b):
    """Variant in Organization B."""
    return make_product(org_b, name="Shirt B", sku="SHIRT-B").variants[0]


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    _, token = session_service.create_session(db.session, user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def owner_headers(db_session, owner_a):
    return headers_for(owner_a)


@pytest.fixture(scope='function')
def cashier_headers(db_session, cashier_a):
    return headers_for(cashier_a)


@pytest.fixture(scope='function')
def owner_b_headers(db_session, owner_b):
    return headers_for(owner_b)


@pytest.fixture(scope='function')
def make_headers(db_session):
    """Factory: Authorization headers for a fresh session of `user`."""
    return headers_for
