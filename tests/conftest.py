"""Pytest configuration: app con SQLite en memoria + datos demo."""

import pytest

from app import create_app
from config import TestConfig
from models import db as _db
from seed import seed_demo_data
from services.identity import Principal
from services.permissions import RoleRegistry, seeded_role_id

DEMO_PASSWORD = "demo123"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        seed_demo_data(_db.session)

    # Sin app context activo: cada request del client arma su propio `g`
    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session
        _db.session.rollback()


@pytest.fixture
def company_id(app):
    from models.company import Company

    with app.app_context():
        return _db.session.query(Company).first().id


@pytest.fixture
def registry(db_session, company_id):
    return RoleRegistry.load(db_session, company_id=company_id)


@pytest.fixture
def role_ids(company_id):
    return {
        key: seeded_role_id(company_id, key)
        for key in ("admin", "manager", "manager-assistant", "employee")
    }


@pytest.fixture
def make_principal(company_id):
    def _make(role_id, **overrides):
        data = dict(
            id=99,
            name="Test User",
            email="test@demo.com",
            role_id=role_id,
            company_id=company_id,
        )
        data.update(overrides)
        return Principal(**data)

    return _make


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, email, password=DEMO_PASSWORD, **extra):
    data = {"email": email, "password": password}
    data.update(extra)
    return client.post("/login", data=data)


@pytest.fixture
def login():
    return _login


@pytest.fixture
def admin_client(client):
    _login(client, "company@demo.com")
    return client


@pytest.fixture
def manager_client(client):
    _login(client, "manager@demo.com")
    return client


@pytest.fixture
def employee_client(client):
    _login(client, "employee@demo.com")
    return client
