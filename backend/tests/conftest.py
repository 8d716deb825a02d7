"""
Pytest fixtures for raffle backend tests.

Provides an in-memory database, sellers with open sessions, the Flask test
client and the CLI runner.
"""

import pytest
from raffle import create_app
from raffle.extensions import db
from raffle.permissions import ROLE_ADMIN
from raffle.services import auth_service


SELLER_PASSWORD = "Secreto123"
ADMIN_PASSWORD = "Admin12345"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        # Fast hashes; production uses 12
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
def cli_runner(app):
    return app.test_cli_runner()


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
def seller(db_session):
    """A regular seller, logged out."""
    return auth_service.create_seller("María Pérez", "maria", SELLER_PASSWORD)


@pytest.fixture(scope='function')
def other_seller(db_session):
    """A second seller, logged out."""
    return auth_service.create_seller("Juana Soto", "juana", SELLER_PASSWORD)


@pytest.fixture(scope='function')
def admin(db_session):
    """The admin who runs the draw, logged out."""
    return auth_service.create_seller("Admin", "admin", ADMIN_PASSWORD, role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def seller_token(seller):
    result = auth_service.validate_credentials("maria", SELLER_PASSWORD)
    assert result.status == "success"
    return result.token


@pytest.fixture(scope='function')
def other_seller_token(other_seller):
    result = auth_service.validate_credentials("juana", SELLER_PASSWORD)
    assert result.status == "success"
    return result.token


@pytest.fixture(scope='function')
def admin_token(admin):
    result = auth_service.validate_credentials("admin", ADMIN_PASSWORD)
    assert result.status == "success"
    return result.token


@pytest.fixture(scope='function')
def seller_headers(seller_token):
    return auth_headers(seller_token)


@pytest.fixture(scope='function')
def admin_headers(admin_token):
    return auth_headers(admin_token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def buyer(**overrides) -> dict:
    """Valid buyer fields for issue_ticket."""
    data = {
        "buyer_name": "Ana González",
        "buyer_phone_number": "+56 9 1234 5678",
        "payment_method": "efectivo",
    }
    data.update(overrides)
    return data
