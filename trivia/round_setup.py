# trivia/round_setup.py - Choose the target and candidate set for a round

import logging
from typing import Dict, List

from trivia.catalog import CandidateCatalog
from trivia.errors import InsufficientCandidates
from trivia.models import Candidate, Round
from trivia.random_source import RandomSource

logger = logging.getLogger(__name__)

DEFAULT_ROUND_DURATION = 5 * 60  # seconds


class RoundSetup:
    def __init__(self, catalog: CandidateCatalog, random_source: RandomSource,
                 round_duration: float = DEFAULT_ROUND_DURATION):
        self.catalog = catalog
        self.random_source = random_source
        self.round_duration = round_duration

    async def select_round(self, page_count: int, candidate_set_size: int) -> Round:
        """
        Build a round from `candidate_set_size` random pages of the catalog.

        Pages are drawn without replacement and fetched one at a time; the
        first item of each page becomes a candidate, and the target is drawn
        uniformly among them.

        Raises:
            UpstreamUnavailable: a page fetch failed
            InsufficientCandidates: fewer distinct candidates than requested
        """
        if candidate_set_size < 1 or candidate_set_size > page_count:
            raise InsufficientCandidates(candidate_set_size, max(page_count, 0))

        pages = self.random_source.sample_distinct(candidate_set_size, 1, page_count)
        logger.debug(f"Selected pages {pages} out of {page_count}")

        candidates: List[Candidate] = []
        seen: Dict[str, Candidate] = {}
        for page in pages:
            items = await self.catalog.fetch_page(page)
            if not items:
                logger.warning(f"Page {page} returned no vehicles")
                continue

            candidate = items[0]
            if candidate.id in seen:
                logger.warning(f"Duplicate candidate {candidate.name} on page {page}")
                continue
            seen[candidate.id] = candidate
            candidates.append(candidate)

        if len(candidates) < candidate_set_size:
            raise InsufficientCandidates(candidate_set_size, len(candidates))

        target = candidates[self.random_source.uniform_int(0, len(candidates) - 1)]
        logger.info(f"Tank for round selected: {target.name} ({target.ammo.describe()})")

        return Round(target=target, candidates=tuple(candidates), duration=self.round_duration)
