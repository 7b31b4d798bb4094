"""
repositories/donation_repo.py
------------------------------
Data access for donations.
"""

from typing import Optional

from models.entities import DONATION
from repositories.base import BaseRepository


class DonationRepository(BaseRepository):
    """Repository for the donations table."""

    entity = DONATION

    def list_all(self, filters: Optional[dict] = None, order: tuple[str, ...] = ("-createdAt",)) -> list[dict]:
        return super().list_all(filters, order)
