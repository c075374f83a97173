# backend/app/repositories/provider_repository.py
"""Read access to the provider directory."""

from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.provider import Provider, ProviderServiceArea
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProviderRepository(BaseRepository[Provider]):
    def __init__(self, db: Session):
        super().__init__(db, Provider)

    def get_by_owner(self, identity_id: str) -> Optional[Provider]:
        """Provider profile owned by an identity, if the identity is a cleaner."""
        return self.find_one_by(owner_identity_id=identity_id)

    def get_travel_fee(self, provider_id: str, zip_code: str) -> Decimal:
        """Travel fee for a ZIP; zero when the provider has no entry for it."""
        query = self.db.query(ProviderServiceArea.travel_fee).filter(
            ProviderServiceArea.provider_id == provider_id,
            ProviderServiceArea.zip_code == zip_code,
        )
        fee = self._execute_scalar(query)
        return Decimal(str(fee)) if fee is not None else Decimal("0")
