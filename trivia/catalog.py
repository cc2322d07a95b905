"""
Candidate catalog - one provider call per page, plus the last known page count
"""

import logging
from typing import List, Optional

from trivia.errors import UpstreamUnavailable
from trivia.models import Candidate
from trivia.providers.base import VehicleDataProvider

logger = logging.getLogger(__name__)


class CandidateCatalog:
    """Thin data-access layer over a VehicleDataProvider"""

    def __init__(self, provider: VehicleDataProvider):
        self.provider = provider
        self.page_total: Optional[int] = None

    async def fetch_page(self, page_number: int) -> List[Candidate]:
        """Fetch one page of candidates. A single attempt, no retry."""
        try:
            page = await self.provider.fetch(page_number)
        except UpstreamUnavailable:
            logger.error(f"{self.provider.name} unavailable for page {page_number}")
            raise

        if page.total_pages:
            if self.page_total is not None and page.total_pages != self.page_total:
                logger.info(f"{self.provider.name} page count changed: {self.page_total} -> {page.total_pages}")
            self.page_total = page.total_pages

        return list(page.items)

    def page_count_differs(self, expected: int) -> bool:
        """True when the provider reported a page count other than `expected`"""
        return self.page_total is not None and self.page_total != expected
