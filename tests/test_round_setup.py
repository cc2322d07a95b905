import asyncio

import pytest

from trivia.catalog import CandidateCatalog
from trivia.errors import InsufficientCandidates, UpstreamUnavailable
from trivia.random_source import SystemRandomSource
from trivia.round_setup import RoundSetup

from conftest import FakeProvider, ScriptedRandomSource, make_candidate


def _provider(count=10, total_pages=None):
    pages = {n: make_candidate(f"Tank {n}", damage=300 + n) for n in range(1, count + 1)}
    return FakeProvider(pages, total_pages=total_pages)


def test_select_round_uses_first_item_of_each_drawn_page():
    provider = _provider()
    provider.pages[2] = [make_candidate("Tank 2"), make_candidate("Ignored")]
    # Pages 1..4 in order, then the third candidate as target
    random_source = ScriptedRandomSource([0, 0, 0, 0, 2])
    setup = RoundSetup(CandidateCatalog(provider), random_source, round_duration=120)

    round_ = asyncio.run(setup.select_round(10, 4))

    assert provider.calls == [1, 2, 3, 4]
    assert [c.name for c in round_.candidates] == ["Tank 1", "Tank 2", "Tank 3", "Tank 4"]
    assert round_.target.name == "Tank 3"
    assert round_.duration == 120
    assert round_.started_at is None


def test_pages_are_drawn_without_replacement():
    provider = _provider(count=6)
    setup = RoundSetup(CandidateCatalog(provider), SystemRandomSource(seed=7))

    for _ in range(20):
        round_ = asyncio.run(setup.select_round(6, 4))
        assert len({c.id for c in round_.candidates}) == 4
        assert round_.target in round_.candidates


def test_candidate_set_larger_than_page_count_is_rejected():
    provider = _provider(count=3)
    setup = RoundSetup(CandidateCatalog(provider), ScriptedRandomSource())

    with pytest.raises(InsufficientCandidates):
        asyncio.run(setup.select_round(3, 4))
    assert provider.calls == []


def test_duplicate_vehicles_leave_too_few_candidates():
    duplicate = make_candidate("Twin", id="42")
    provider = FakeProvider({1: duplicate, 2: duplicate, 3: make_candidate("Solo")})
    setup = RoundSetup(CandidateCatalog(provider), ScriptedRandomSource())

    with pytest.raises(InsufficientCandidates) as exc_info:
        asyncio.run(setup.select_round(3, 3))
    assert exc_info.value.found == 2


def test_upstream_failure_aborts_setup():
    provider = _provider(count=4)
    provider.pages[3] = UpstreamUnavailable("HTTP error: 503", 3)
    catalog = CandidateCatalog(provider)
    setup = RoundSetup(catalog, ScriptedRandomSource())

    with pytest.raises(UpstreamUnavailable):
        asyncio.run(setup.select_round(4, 4))
    assert provider.calls == [1, 2, 3]


def test_catalog_remembers_reported_page_count():
    catalog = CandidateCatalog(_provider(count=5, total_pages=80))

    asyncio.run(catalog.fetch_page(1))

    assert catalog.page_total == 80
    assert catalog.page_count_differs(100)
    assert not catalog.page_count_differs(80)
