"""
Pytest fixtures for shop admin backend tests.

Provides test database setup, seeded roles/permissions, users per role
and auth headers, plus the Flask test client.
"""

import itertools

import pytest
from flask import Blueprint, g

from shopadmin import create_app
from shopadmin.decorators import (
    require_all_permissions,
    require_any_permission,
    require_auth,
    require_roles,
)
from shopadmin.enums import UserRole, UserStatus
from shopadmin.extensions import db
from shopadmin.models import Role, User
from shopadmin.responses import success
from shopadmin.services import permission_service, role_service
from shopadmin.services.auth_service import create_access_token


PASSWORD = "Password123!"


def _guarded_blueprint() -> Blueprint:
    """Endpoints that exist only to exercise the decorator combinations."""
    bp = Blueprint("guarded", __name__, url_prefix="/_guarded")

    @bp.get("/any")
    @require_auth
    @require_any_permission("orders.read", "users.delete")
    def any_of():
        return success({"role": g.role_name})

    @bp.get("/all")
    @require_auth
    @require_all_permissions("products.read", "products.delete")
    def all_of():
        return success({"role": g.role_name})

    @bp.get("/super")
    @require_auth
    @require_roles(UserRole.SUPER_ADMIN)
    def super_only():
        return success({"role": g.role_name})

    return bp


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_DESTINATION': str(tmp_path_factory.mktemp("uploads")),
        'JWT_SECRET': 'test-access-secret',
        'JWT_REFRESH_SECRET': 'test-refresh-secret',
    })
    app.register_blueprint(_guarded_blueprint())

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
def setup_roles(db_session):
    """Setup default roles and permissions."""
    permission_service.initialize_permissions()
    role_service.create_default_roles()
    role_service.assign_default_role_permissions()
    db_session.commit()


@pytest.fixture(scope='function')
def make_user(db_session, setup_roles):
    """Factory: create a user with the given role name (active by default)."""
    counter = itertools.count(1)

    def _make(role_name=UserRole.ADMIN, *, email=None, status=UserStatus.ACTIVE, password=PASSWORD):
        role = db_session.query(Role).filter_by(name=role_name).one()
        n = next(counter)
        user = User(
            first_name="Test",
            last_name=f"User{n}",
            email=email or f"{role_name}{n}@shop.test",
            role_id=role.id,
            status=status,
            password_hash=password,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user(UserRole.ADMIN, email="admin@shop.test")


@pytest.fixture(scope='function')
def super_admin_user(make_user):
    return make_user(UserRole.SUPER_ADMIN, email="root@shop.test")


@pytest.fixture(scope='function')
def vendor_user(make_user):
    return make_user(UserRole.VENDOR, email="vendor@shop.test")


@pytest.fixture(scope='function')
def customer_user(make_user):
    return make_user(UserRole.CUSTOMER, email="customer@shop.test")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    return auth_headers(create_access_token(user))


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture(scope='function')
def super_admin_headers(super_admin_user):
    return headers_for(super_admin_user)


@pytest.fixture(scope='function')
def vendor_headers(vendor_user):
    return headers_for(vendor_user)


@pytest.fixture(scope='function')
def customer_headers(customer_user):
    return headers_for(customer_user)


@pytest.fixture(scope='function')
def token_headers(db_session):
    """Returns a function that builds Authorization headers for any user."""
    return headers_for
