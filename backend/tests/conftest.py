"""
Pytest fixtures for GreenVerse backend tests.

Provides the test app on in-memory SQLite, a per-test clean database,
account fixtures for each role and bearer-token helpers.
"""

import pytest

from greenverse import create_app
from greenverse.config import Config
from greenverse.extensions import db
from greenverse.models import Cluster, ClientProfile, Product
from greenverse.roles import Role
from greenverse.services.auth_service import build_user
from greenverse.services.token_service import issue_token

PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(Config(
        database_url="sqlite://",
        jwt_secret="test-secret",
        app_env="testing",
        bcrypt_rounds=4,
    ))

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
def make_user(db_session):
    """Factory: make_user(role, email=..., cluster_id=...) commits and returns a User."""
    counter = {"n": 0}

    def _make(role=Role.CLIENT, email=None, name=None, cluster_id=None, password=PASSWORD):
        counter["n"] += 1
        user = build_user(
            email=email or f"{role.value}{counter['n']}@example.com",
            password=password,
            name=name or f"{role.value.title()} {counter['n']}",
            role=role,
            cluster_id=cluster_id,
        )
        db_session.commit()
        return user

    return _make


@pytest.fixture(scope='function')
def make_cluster(db_session, make_user):
    """Factory: make_cluster(name, capacity) returns (cluster, manager)."""
    def _make(name="North Cluster", capacity=1000, status="Active"):
        cluster = Cluster(
            name=name,
            location="Pune, Maharashtra",
            manager_name=f"{name} Lead",
            capacity=capacity,
            utilization=0,
            status=status,
        )
        db_session.add(cluster)
        db_session.commit()
        manager = make_user(Role.CLUSTER, cluster_id=cluster.id, name=f"{name} Manager")
        cluster.manager_id = manager.id
        db_session.commit()
        return cluster, manager

    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    def _make(name="Bamboo Brush", category="Personal Care", price_cents=2500, stock=10):
        product = Product(name=name, category=category, price_cents=price_cents, stock=stock)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user(Role.ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture(scope='function')
def client_user(make_user):
    return make_user(Role.CLIENT, email="client@example.com", name="Client")


@pytest.fixture(scope='function')
def complete_profile(db_session, client_user):
    profile = ClientProfile(
        user_id=client_user.id,
        phone="9876543210",
        city="Pune",
        district="Pune",
        state="Maharashtra",
        address_line="12 Green Street",
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def cluster_a(make_cluster):
    return make_cluster("North Cluster")


@pytest.fixture(scope='function')
def cluster_b(make_cluster):
    return make_cluster("South Cluster")


def auth_headers(user) -> dict:
    """Authorization header carrying a freshly issued token for user."""
    return {'Authorization': f'Bearer {issue_token(user)}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture(scope='function')
def client_headers(client_user):
    return auth_headers(client_user)


@pytest.fixture(scope='function')
def headers_for(db_session):
    """Fixture form of auth_headers for tests that build their own users."""
    return auth_headers
