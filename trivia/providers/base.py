# trivia/providers/base.py - Abstract base class for vehicle data providers

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from trivia.models import Candidate


@dataclass
class VehiclePage:
    """One page of the provider's vehicle listing"""
    items: List[Candidate]
    total_count: int
    total_pages: int
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


class VehicleDataProvider(ABC):
    """Abstract base class for vehicle listings used to build rounds"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name"""
        pass

    @abstractmethod
    async def fetch(self, page_number: int) -> VehiclePage:
        """
        Fetch one page of vehicles.

        Raises:
            UpstreamUnavailable: on network errors or an unparseable payload
        """
        pass

    async def initialize(self) -> None:
        """Optional initialization (e.g., create HTTP session)"""
        pass

    async def cleanup(self) -> None:
        """Optional cleanup (e.g., close HTTP session)"""
        pass
