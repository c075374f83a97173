# backend/app/models/provider.py
"""
Provider directory models.

Cleaners, the ZIP codes and services they offer, and their per-ZIP travel
fees. These rows are maintained by onboarding and billing; bookings only read
them.
"""

from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.enums import ApprovalStatus, SubscriptionTier
from ..core.constants import DEFAULT_RESPONSE_TIME_HOURS
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Provider(Base):
    """A cleaning business listed on the marketplace."""

    __tablename__ = "providers"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    owner_identity_id = Column(
        String(26), ForeignKey("identities.id"), nullable=False, unique=True, index=True
    )
    business_name = Column(String(255), nullable=False)
    business_email = Column(String(255), nullable=True)
    business_phone = Column(String(30), nullable=True)
    approval_status = Column(
        String(20), nullable=False, default=ApprovalStatus.PENDING.value, index=True
    )
    service_areas = Column(JSON, nullable=False, default=list)
    services = Column(JSON, nullable=False, default=list)
    minimum_hours = Column(Numeric(4, 1), nullable=False, default=Decimal("2.0"))
    instant_booking = Column(Boolean, nullable=False, default=False)
    response_time_hours = Column(Integer, nullable=True, default=DEFAULT_RESPONSE_TIME_HOURS)
    subscription_tier = Column(
        String(20), nullable=False, default=SubscriptionTier.FREE.value
    )

    owner = relationship("Identity", foreign_keys=[owner_identity_id], lazy="joined")
    travel_fees = relationship(
        "ProviderServiceArea", back_populates="provider", cascade="all, delete-orphan"
    )

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED.value

    def serves_zip(self, zip_code: str) -> bool:
        return zip_code in (self.service_areas or [])

    def offers(self, service_type: str) -> bool:
        return service_type in (self.services or [])

    def __repr__(self) -> str:
        return f"<Provider {self.id}: {self.business_name} ({self.approval_status})>"


class ProviderServiceArea(Base):
    """Travel fee a provider charges for a given ZIP code."""

    __tablename__ = "provider_service_areas"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    provider_id = Column(String(26), ForeignKey("providers.id"), nullable=False, index=True)
    zip_code = Column(String(10), nullable=False)
    travel_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    provider = relationship("Provider", back_populates="travel_fees")

    __table_args__ = (
        UniqueConstraint("provider_id", "zip_code", name="uq_provider_service_areas_zip"),
    )
