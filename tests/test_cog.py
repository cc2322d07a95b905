import asyncio
from types import SimpleNamespace

import pytest

from services.trivia_reminder import send_trivia_reminder, stop_trivia_reminder
from trivia.catalog import CandidateCatalog
from trivia.controller import RoundController, RoundState
from trivia.rating_store import JsonRatingStore, month_key
from trivia.trivia import DEFAULT_SETTINGS, TriviaCog

from conftest import FakeMessenger, FakeProvider, FixedClock, ScriptedRandomSource

CHANNEL = SimpleNamespace(id=1)


@pytest.fixture
def provider(tanks):
    return FakeProvider({1: tanks["is7"], 2: tanks["e100"], 3: tanks["maus"], 4: tanks["fv"]})


def _cog(tmp_path, provider, messenger):
    cog = TriviaCog(None, settings=dict(DEFAULT_SETTINGS, data_directory=str(tmp_path), timezone="UTC"))
    cog.controllers[CHANNEL.id] = RoundController(
        catalog=CandidateCatalog(provider),
        messenger=messenger,
        store=cog.store,
        random_source=ScriptedRandomSource(),
        clock=FixedClock(),
        page_limit=4,
    )
    return cog


def test_round_failure_is_logged_not_raised(provider, tmp_path):
    class NoPermission(FakeMessenger):
        async def publish(self, content):
            raise RuntimeError("403 Forbidden (error code: 50013): Missing Permissions")

    async def scenario():
        cog = _cog(tmp_path, provider, NoPermission())
        result = await cog.run_round(CHANNEL)
        return cog, result

    cog, result = asyncio.run(scenario())

    assert result is None
    assert cog.round_tasks == {}
    assert cog._background_tasks == set()
    assert not cog.is_playing(CHANNEL.id)


def test_channel_is_busy_as_soon_as_a_round_starts(provider, tmp_path):
    messenger = FakeMessenger(answers=[("p1", "IS-7", 5.0)], event_gap=0.05)

    async def scenario():
        cog = _cog(tmp_path, provider, messenger)
        watcher = cog.start_round(CHANNEL)
        busy_before_await = cog.is_playing(CHANNEL.id)
        second = await cog.run_round(CHANNEL)
        first = await watcher
        return cog, busy_before_await, first, second

    cog, busy_before_await, first, second = asyncio.run(scenario())

    assert busy_before_await
    assert second is None
    assert first.deltas == {"p1": 70}
    assert len(provider.calls) == 4
    assert len(messenger.published) == 1
    assert not cog.is_playing(CHANNEL.id)


def test_unload_scores_the_running_round(provider, tmp_path):
    messenger = FakeMessenger(answers=[("p1", "IS-7", 5.0), ("p2", "Maus", 6.0)], event_gap=0.2)

    async def scenario():
        cog = _cog(tmp_path, provider, messenger)
        cog.start_round(CHANNEL)
        controller = cog.controllers[CHANNEL.id]
        while controller.state is not RoundState.COLLECTING:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.3)
        await cog.cog_unload()
        return cog

    cog = asyncio.run(scenario())
    reopened = JsonRatingStore(str(tmp_path))

    assert cog._background_tasks == set()
    assert asyncio.run(reopened.read("p1", month_key())).elo == 70
    assert asyncio.run(reopened.read("p2", month_key())) is None
    assert (tmp_path / "backup" / "statistic.json").exists()


def test_stopping_an_idle_reminder_is_harmless():
    assert not send_trivia_reminder.is_running()
    stop_trivia_reminder()
    assert not send_trivia_reminder.is_running()
