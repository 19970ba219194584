import os

# settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront.config import Settings
from storefront.database import create_db_and_tables, get_session
from storefront.main import create_app
from storefront.models.product import Product
from storefront.models.user import Role, User
from storefront.services.payment_service import RefundGateway, get_refund_gateway
from storefront.utils.hash import hash_password
from storefront.utils.token import TokenService, TrustTier

SECRET = "test-secret-key"


class FakeRefundGateway(RefundGateway):
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def create_refund(self, payment_reference: str) -> str:
        self.calls.append(payment_reference)
        if self.fail:
            raise RuntimeError("gateway down")
        return f"rfnd_{len(self.calls)}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def tokens():
    return TokenService(SECRET)


@pytest.fixture
def gateway():
    return FakeRefundGateway()


@pytest.fixture
def app(engine, tokens, gateway):
    app = create_app(Settings(secret_key=SECRET, env="test"))
    app.state.token_service = tokens

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_refund_gateway] = lambda: gateway
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role=Role.CUSTOMER, email=None, password="secret-pass", google_id=None):
        counter["n"] += 1
        user = User(
            name=f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            password=hash_password(password) if password else None,
            google_id=google_id,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(session):
    def _make(name="Widget", price="10.00", is_active=True):
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=Decimal(price),
            is_active=is_active,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def auth_headers(tokens):
    def _headers(user, tier=TrustTier.PASSWORD):
        return {"Authorization": f"Bearer {tokens.issue(user, tier)}"}

    return _headers


@pytest.fixture
def failing_gateway():
    return FakeRefundGateway(fail=True)
