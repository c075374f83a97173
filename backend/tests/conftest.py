# backend/tests/conftest.py
"""
Shared fixtures for the booking test suite.

Every test gets a fresh in-memory SQLite database. StaticPool keeps a single
connection so the schema created here is visible to every session.
"""

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from tests.factories import make_identity, make_provider

from app.api.dependencies import get_db, get_notification_service, get_payment_adapter
from app.database import Base
from app.main import app
from app.models import Identity, Provider
from app.services.email import EmailService
from app.services.notification_service import NotificationService
from app.services.payment_intent_adapter import PaymentIntentResult
from app.services.sms_service import SMSService


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Create a new database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def customer(db: Session) -> Identity:
    return make_identity(
        db,
        "casey.customer@example.com",
        "Casey Customer",
        phone="+15555550100",
        stripe_customer_id="cus_test_customer",
    )


@pytest.fixture
def other_customer(db: Session) -> Identity:
    return make_identity(db, "olive.other@example.com", "Olive Other")


@pytest.fixture
def provider(db: Session) -> Provider:
    return make_provider(db)


@pytest.fixture
def instant_provider(db: Session) -> Provider:
    return make_provider(
        db,
        email="rapid.owner@example.com",
        business_name="Rapid Maids",
        instant_booking=True,
    )


@pytest.fixture
def provider_owner(db: Session, provider: Provider) -> Identity:
    return db.get(Identity, provider.owner_identity_id)


@pytest.fixture
def service_day() -> date:
    return date.today() + timedelta(days=7)


@pytest.fixture
def payment_adapter() -> MagicMock:
    """Stand-in for the Stripe adapter; intents come back requiring payment."""
    adapter = MagicMock()
    adapter.create_intent.return_value = PaymentIntentResult(
        intent_id="pi_test_123",
        client_secret="pi_test_123_secret",
        status="requires_payment_method",
    )
    return adapter


@pytest.fixture
def notification_service() -> NotificationService:
    """Real notification service with every channel disabled."""
    return NotificationService(
        email_service=EmailService(api_key=""),
        sms_service=SMSService(),
    )


@pytest.fixture
def client(db: Session, payment_adapter, notification_service):
    """Create a test client bound to the test session and fake collaborators."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_adapter] = lambda: payment_adapter
    app.dependency_overrides[get_notification_service] = lambda: notification_service

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()
