import asyncio
from typing import Dict, List, Optional

import pytest

from trivia.errors import UpstreamUnavailable
from trivia.messenger import AnswerEvent, ChannelMessenger, MessageContent
from trivia.models import Ammo, Candidate, Round, ShellType
from trivia.providers.base import VehicleDataProvider, VehiclePage
from trivia.random_source import RandomSource

START = 1_000_000.0


def make_candidate(name: str, shell: ShellType = ShellType.ARMOR_PIERCING, damage: int = 390,
                   id: Optional[str] = None) -> Candidate:
    return Candidate(id=id or name.lower(), name=name, ammo=Ammo(type=shell, max_damage=damage),
                     image_url=f"https://example.invalid/{name}.png")


class FixedClock:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeProvider(VehicleDataProvider):
    """Serves pages from a dict; a page mapped to an exception raises it"""

    def __init__(self, pages: Dict[int, object], total_pages: Optional[int] = None):
        self.pages = pages
        self.total_pages = total_pages if total_pages is not None else len(pages)
        self.calls: List[int] = []

    @property
    def name(self) -> str:
        return "Fake"

    async def fetch(self, page_number: int) -> VehiclePage:
        self.calls.append(page_number)
        entry = self.pages.get(page_number)
        if isinstance(entry, Exception):
            raise entry
        if entry is None:
            raise UpstreamUnavailable(f"No page {page_number}", page_number)
        items = entry if isinstance(entry, list) else [entry]
        return VehiclePage(items=items, total_count=self.total_pages, total_pages=self.total_pages)


class ScriptedRandomSource(RandomSource):
    """Returns queued offsets from the lower bound; falls back to the lower bound"""

    def __init__(self, offsets=()):
        self.offsets = list(offsets)
        self.calls = []

    def uniform_int(self, minimum: int, maximum: int) -> int:
        self.calls.append((minimum, maximum))
        offset = self.offsets.pop(0) if self.offsets else 0
        value = minimum + offset
        assert minimum <= value <= maximum
        return value


class FakeMessenger(ChannelMessenger):
    """Records everything sent and replays scripted answers as (player, answer, seconds after START)"""

    def __init__(self, answers=(), failing_players=(), ack_delay: float = 0.0, event_gap: float = 0.0):
        self.answers = list(answers)
        self.failing_players = set(failing_players)
        self.ack_delay = ack_delay
        self.event_gap = event_gap
        self.published: List[MessageContent] = []
        self.edits: List[MessageContent] = []
        self.acks: List[tuple] = []

    async def publish(self, content: MessageContent):
        self.published.append(content)
        return len(self.published)

    async def edit(self, handle, content: MessageContent) -> None:
        self.edits.append(content)

    async def collect_interactions(self, handle, window: float):
        for player_id, answer, offset in self.answers:
            if self.event_gap:
                await asyncio.sleep(self.event_gap)
            yield AnswerEvent(player_id=player_id, answer=answer, received_at=START + offset,
                              display_name=f"Player {player_id}")

    async def acknowledge(self, event: AnswerEvent, content: str) -> None:
        if event.player_id in self.failing_players:
            raise RuntimeError("Unknown interaction")
        if self.ack_delay:
            await asyncio.sleep(self.ack_delay)
        self.acks.append((event.player_id, content))


@pytest.fixture
def tanks():
    return {
        "is7": make_candidate("IS-7", ShellType.ARMOR_PIERCING, 490),
        "e100": make_candidate("E 100", ShellType.ARMOR_PIERCING, 750),
        "maus": make_candidate("Maus", ShellType.ARMOR_PIERCING, 490),
        "fv": make_candidate("FV215b 183", ShellType.ARMOR_PIERCING_HE, 1150),
    }


@pytest.fixture
def started_round(tanks):
    round_ = Round(target=tanks["is7"], candidates=tuple(tanks.values()), duration=300)
    round_.start(START)
    return round_
