# trivia/providers/tankopedia.py - Wargaming encyclopedia (Tankopedia) provider

import asyncio
import logging
import aiohttp
from typing import Any, Dict, List, Optional

from trivia.errors import UpstreamUnavailable
from trivia.models import Ammo, Candidate, ShellType
from trivia.providers.base import VehicleDataProvider, VehiclePage

logger = logging.getLogger(__name__)

PAGE_PLACEHOLDER = "pageNumber"

DEFAULT_API_URL = (
    "https://api.worldoftanks.eu/wot/encyclopedia/vehicles/"
    "?application_id={application_id}&tier=10&limit=1&page_no=pageNumber"
    "&fields=tank_id,name,images.big_icon,default_profile.ammo"
)


def parse_vehicle(raw: Dict[str, Any]) -> Candidate:
    """Build a Candidate from one Tankopedia vehicle entry.

    Only the first ammo slot of the default profile is considered.
    The provider reports damage as [min, average, max]; the middle
    value is the one shown in-game.
    """
    try:
        ammo = raw["default_profile"]["ammo"][0]
        damage = ammo["damage"]
        shell = ShellType(ammo["type"])
        images = raw.get("images") or {}
        return Candidate(
            id=str(raw.get("tank_id", raw["name"])),
            name=raw["name"],
            ammo=Ammo(type=shell, max_damage=int(damage[1])),
            image_url=images.get("big_icon"),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise UpstreamUnavailable(f"Malformed vehicle entry: {e}") from e


def parse_page(payload: Dict[str, Any], page_number: Optional[int] = None) -> VehiclePage:
    """Convert a raw Tankopedia response into a VehiclePage"""
    if not isinstance(payload, dict) or payload.get("status") != "ok":
        error = payload.get("error") if isinstance(payload, dict) else None
        raise UpstreamUnavailable(f"Tankopedia returned an error: {error}", page_number)

    meta = payload.get("meta") or {}
    data = payload.get("data") or {}

    items: List[Candidate] = [parse_vehicle(entry) for entry in data.values() if entry]

    return VehiclePage(
        items=items,
        total_count=int(meta.get("count", len(items))),
        total_pages=int(meta.get("page_total", 0)),
        raw=payload,
    )


class TankopediaProvider(VehicleDataProvider):
    """Provider for the Wargaming Tankopedia vehicle listing"""

    def __init__(self, application_id: str, api_url: str = DEFAULT_API_URL):
        self._api_url = api_url.replace("{application_id}", application_id)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "Tankopedia"

    def page_url(self, page_number: int) -> str:
        return self._api_url.replace(PAGE_PLACEHOLDER, str(page_number))

    async def initialize(self) -> None:
        """Create HTTP session for API calls"""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=5,
                limit_per_host=2,
                ttl_dns_cache=300,
                use_dns_cache=True
            )
            timeout = aiohttp.ClientTimeout(total=15, connect=5)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers={'User-Agent': 'TankTriviaBot/1.0'}
            )
            logger.info("Tankopedia provider session created")

    async def cleanup(self) -> None:
        """Close HTTP session"""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info("Tankopedia provider session closed")

    async def fetch(self, page_number: int) -> VehiclePage:
        if self._session is None or self._session.closed:
            await self.initialize()

        url = self.page_url(page_number)
        try:
            async with self._session.get(url) as resp:
                if resp.status != 200:
                    raise UpstreamUnavailable(f"HTTP error: {resp.status}", page_number)
                payload = await resp.json()
        except (aiohttp.ClientError, ValueError) as e:
            raise UpstreamUnavailable(f"Error fetching Tankopedia page {page_number}: {e}", page_number) from e
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"Timeout fetching Tankopedia page {page_number}", page_number) from e

        page = parse_page(payload, page_number)
        logger.debug(f"Fetched Tankopedia page {page_number}: {[c.name for c in page.items]}")
        return page
