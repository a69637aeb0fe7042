"""
Pytest fixtures for SupplyDesk backend tests.

Provides test database setup, two tenant companies with a director and a
user each, a system admin, and helpers to log in through the API.
"""

from decimal import Decimal

import pytest
from supplydesk import create_app
from supplydesk.extensions import db
from supplydesk.middleware import reset_session_context
from supplydesk.models import Company, Product, ROLE_ADMIN, ROLE_DIRECTOR, ROLE_USER
from supplydesk.services.auth_service import create_user

PASSWORD = "password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
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


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()
        reset_session_context()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def company_a(db_session):
    """Create Company A (first tenant)."""
    company = Company(name="Acme Supplies", email="contact@acme.test")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def company_b(db_session):
    """Create Company B (second tenant)."""
    company = Company(name="Beta Trading", email="contact@beta.test")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def admin(db_session):
    return create_user(
        name="System Admin", email="admin@supplydesk.test", password=PASSWORD,
        role=ROLE_ADMIN, company_id=None,
    )


@pytest.fixture(scope='function')
def director_a(db_session, company_a):
    return create_user(
        name="Director A", email="director@acme.test", password=PASSWORD,
        role=ROLE_DIRECTOR, company_id=company_a.id,
    )


@pytest.fixture(scope='function')
def director_b(db_session, company_b):
    return create_user(
        name="Director B", email="director@beta.test", password=PASSWORD,
        role=ROLE_DIRECTOR, company_id=company_b.id,
    )


@pytest.fixture(scope='function')
def user_a(db_session, company_a):
    return create_user(
        name="User A", email="user@acme.test", password=PASSWORD,
        role=ROLE_USER, company_id=company_a.id,
    )


@pytest.fixture(scope='function')
def user_b(db_session, company_b):
    return create_user(
        name="User B", email="user@beta.test", password=PASSWORD,
        role=ROLE_USER, company_id=company_b.id,
    )


def make_product(db_session, company, *, sku, name, price="10.00", quantity=50, min_stock=10, max_stock=None):
    product = Product(
        company_id=company.id,
        sku=sku,
        name=name,
        price=Decimal(price),
        quantity=quantity,
        min_stock=min_stock,
        max_stock=max_stock,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, company_a):
    """Product of Company A: 50 units at 10.00, minimum 10."""
    return make_product(db_session, company_a, sku="ACME-001", name="Widget A")


@pytest.fixture(scope='function')
def product_b(db_session, company_b):
    """Product of Company B: 50 units at 20.00, minimum 10."""
    return make_product(db_session, company_b, sku="BETA-001", name="Widget B", price="20.00")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def _headers_for(app, user) -> dict:
    # A separate client keeps the login cookie out of the test's own client
    return auth_headers(get_auth_token(app.test_client(), user.email))


@pytest.fixture(scope='function')
def admin_headers(app, admin):
    return _headers_for(app, admin)


@pytest.fixture(scope='function')
def director_a_headers(app, director_a):
    return _headers_for(app, director_a)


@pytest.fixture(scope='function')
def director_b_headers(app, director_b):
    return _headers_for(app, director_b)


@pytest.fixture(scope='function')
def user_a_headers(app, user_a):
    return _headers_for(app, user_a)


@pytest.fixture(scope='function')
def user_b_headers(app, user_b):
    return _headers_for(app, user_b)
