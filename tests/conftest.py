import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.config import settings
from shared.core.database import Base, get_rent_db
from rent_service.app.main import app
from rent_service.app.models.parties.owners import Owner
from rent_service.app.models.parties.properties import Property
from rent_service.app.models.parties.rentals import Rental
from rent_service.app.models.parties.tenants import Tenant

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def make_rental(db, owner=None, tenant=None, label="A"):
    owner = owner or Owner(
        first_name="Olivia", last_name=f"Owner{label}", email=f"owner{label}-{uuid.uuid4().hex[:6]}@example.com")
    tenant = tenant or Tenant(
        first_name="Theo", last_name=f"Tenant{label}", email=f"tenant{label}-{uuid.uuid4().hex[:6]}@example.com")
    prop = Property(owner=owner, name=f"Flat {label}", address="12 Rue des Lilas")
    rental = Rental(
        identifier=f"RENT-{label}-{uuid.uuid4().hex[:6]}",
        property=prop,
        tenant=tenant,
        start_date=date(2024, 1, 1),
        rent=Decimal("1000.00"),
    )
    db.add_all([owner, tenant, prop, rental])
    db.commit()
    return SimpleNamespace(owner=owner, tenant=tenant, property=prop, rental=rental)


@pytest.fixture()
def seed(db):
    return make_rental(db)


def token_for(user_id, account_type="owner"):
    return jwt.encode(
        {"user_id": str(user_id), "account_type": account_type},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def auth_headers(user_id, account_type="owner"):
    return {"Authorization": f"Bearer {token_for(user_id, account_type)}"}


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_rent_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def rental_factory(db):
    def factory(**kwargs):
        return make_rental(db, **kwargs)
    return factory


@pytest.fixture()
def auth():
    return auth_headers


@pytest.fixture()
def session_factory(db):
    return TestingSessionLocal


@pytest.fixture()
def tableless_session():
    """Session whose queries all fail at the database, as on a broken connection."""
    broken_engine = create_engine("sqlite://")
    session = sessionmaker(bind=broken_engine)()
    try:
        yield session
    finally:
        session.close()
        broken_engine.dispose()
