"""Identity records for authenticated callers (owned by the auth service)."""

from sqlalchemy import Column, String

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Identity(Base):
    """
    An authenticated person. Read-only from the booking orchestrator's view.
    """

    __tablename__ = "identities"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Identity {self.id}: {self.email}>"
