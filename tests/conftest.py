import os

os.environ.setdefault("AUTH_API_URL", "http://auth.test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.setdefault("SECURITY_HEADERS_ENABLED", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from salon_api.auth import Principal, get_identity_client
from salon_api.database import Base, get_db
from salon_api.errors import AuthenticationError
from salon_api.main import app
from salon_api.models import Business, BusinessCustomer, Profile, Service
from salon_api.permissions import Role

TOKEN = "test-token"
AUTH_HEADERS = {"Authorization": f"Bearer {TOKEN}"}


class FakeIdentityClient:
    """Stands in for the hosted auth service: one valid token, one principal."""

    def __init__(self, principal: Principal):
        self.principal = principal

    async def get_principal(self, token: str) -> Principal:
        if token != TOKEN:
            raise AuthenticationError()
        return self.principal


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def identity():
    return FakeIdentityClient(
        Principal(user_id="owner-1", email="owner@example.com", roles=frozenset({Role.business_owner}))
    )


@pytest.fixture
def client(session_factory, identity):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed(db):
    """Two businesses, each with a service; a registered customer; a business customer."""
    owner = Profile(full_name="Business Owner", email="owner@example.com")
    customer = Profile(full_name="John Doe", email="john@example.com")
    other_customer = Profile(full_name="Jane Smith", email="jane@example.com")
    db.add_all([owner, customer, other_customer])
    db.flush()

    business = Business(owner_id=owner.id, name="Test Salon", city="Test City")
    other_business = Business(owner_id=owner.id, name="Other Salon", city="Elsewhere")
    db.add_all([business, other_business])
    db.flush()

    service = Service(business_id=business.id, name="Haircut", duration_minutes=60, price=50)
    other_service = Service(
        business_id=other_business.id, name="Manicure", duration_minutes=45, price=35
    )
    walk_in = BusinessCustomer(business_id=business.id, full_name="Walk In")
    other_walk_in = BusinessCustomer(business_id=other_business.id, full_name="Elsewhere Walk In")
    db.add_all([service, other_service, walk_in, other_walk_in])
    db.commit()

    return {
        "business_id": business.id,
        "other_business_id": other_business.id,
        "service_id": service.id,
        "other_service_id": other_service.id,
        "customer_id": customer.id,
        "other_customer_id": other_customer.id,
        "business_customer_id": walk_in.id,
        "other_business_customer_id": other_walk_in.id,
    }
