import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator

# Override settings for tests before importing app modules
TEST_DATABASE_URL = "sqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["AUCTION_WEBHOOK_SECRET"] = "whsec_auction_test"
os.environ["STORE_CURRENCY"] = "EUR"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("SMTP_FROM_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.dependencies import build_event_bus
from app.events import EventBus
from app.main import app
from app.models.database import Base, get_db
from app.models.product import PRODUCT_TYPE_AUCTION, PRODUCT_TYPE_SIMPLE, Product
from app.models.user import User
from app.services.auction_orders import OrderContext
from app.services.payment_gateways import PaymentGateway

# Create test database engine
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def sign_payload(body: bytes, secret: str = "whsec_auction_test") -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db_session = TestSessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def bus() -> EventBus:
    return build_event_bus()


@pytest.fixture
def context() -> OrderContext:
    return OrderContext(
        payment_gateways={"cod": PaymentGateway(id="cod", title="Cash on delivery", enabled=True)},
        currency="EUR",
        customer_ip="203.0.113.9",
        customer_user_agent="auction-engine/2.1",
    )


@pytest.fixture
def bidder(db: Session) -> User:
    """Winning bidder with a full billing profile."""
    user = User(
        id=7,
        email="jane@example.com",
        display_name="Jane",
        first_name="Jane",
        last_name="Doe",
        billing_address_1="742 Evergreen Terrace",
        billing_address_2="",
        billing_city="Springfield",
        billing_state="OR",
        billing_postcode="97403",
        billing_country="US",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = User(id=8, email="bob@example.com", first_name="Bob", last_name="Roe")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def listing(db: Session, bidder: User) -> Product:
    """Closed auction listing won by ``bidder``."""
    product = Product(
        id=42,
        name="Faberge Egg Replica",
        slug="faberge-egg-replica",
        product_type=PRODUCT_TYPE_AUCTION,
        regular_price=Decimal("100.00"),
        auction_current_bid=Decimal("250.00"),
        auction_current_bidder_id=bidder.id,
        auction_dates_from=datetime.now(timezone.utc) - timedelta(days=7),
        auction_dates_to=datetime.now(timezone.utc) + timedelta(days=1),
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def simple_product(db: Session) -> Product:
    product = Product(
        id=50,
        name="Display Stand",
        slug="display-stand",
        product_type=PRODUCT_TYPE_SIMPLE,
        regular_price=Decimal("15.00"),
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def make_token(user_id: int, expires_in: timedelta = timedelta(hours=1)) -> str:
    return jwt.encode(
        {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


@pytest.fixture
def auth_headers(bidder: User) -> dict[str, str]:
    """Get auth headers with token for the winning bidder."""
    return {"Authorization": f"Bearer {make_token(bidder.id)}"}


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def token_for():
    return make_token
