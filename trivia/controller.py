"""
Round lifecycle: setup -> publish -> collect -> score -> persist -> publish result
"""

import asyncio
import datetime
import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional

from trivia.catalog import CandidateCatalog
from trivia.collector import AnswerCollector
from trivia.embeds import answer_feedback, result_embeds, round_embed
from trivia.errors import AcknowledgeFailure, InsufficientCandidates, UpstreamUnavailable
from trivia.messenger import AnswerEvent, ChannelMessenger, MessageContent
from trivia.models import Round, RoundResult
from trivia.random_source import RandomSource
from trivia.rating_store import RatingStore, month_key
from trivia.round_setup import DEFAULT_ROUND_DURATION, RoundSetup
from trivia.scoring import ScoringEngine

logger = logging.getLogger(__name__)


class RoundState(Enum):
    IDLE = "idle"
    SETUP = "setup"
    FAILED = "failed"
    PUBLISHED = "published"
    COLLECTING = "collecting"
    CANCELLED = "cancelled"
    SCORING = "scoring"
    PERSISTED = "persisted"


class RoundController:
    """Runs trivia rounds for a single channel, one at a time"""

    def __init__(self, catalog: CandidateCatalog, messenger: ChannelMessenger, store: RatingStore,
                 random_source: RandomSource, scoring: Optional[ScoringEngine] = None,
                 page_limit: int = 100, candidate_count: int = 4,
                 answer_window: float = DEFAULT_ROUND_DURATION,
                 clock: Callable[[], float] = time.time,
                 timezone: Optional[datetime.tzinfo] = None,
                 mention: Optional[str] = "@here",
                 on_page_limit_change: Optional[Callable[[int], None]] = None):
        self.catalog = catalog
        self.messenger = messenger
        self.store = store
        self.scoring = scoring or ScoringEngine()
        self.setup = RoundSetup(catalog, random_source, answer_window)

        self.page_limit = page_limit
        self.candidate_count = candidate_count
        self.mention = mention
        self.timezone = timezone
        self.on_page_limit_change = on_page_limit_change
        self._clock = clock

        self._state = RoundState.IDLE
        self._run_lock = asyncio.Lock()
        self._collector: Optional[AnswerCollector] = None
        self._cancel_requested = False
        self.current_round: Optional[Round] = None

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._run_lock.locked()

    def _set_state(self, state: RoundState) -> None:
        logger.debug(f"Round state {self._state.value} -> {state.value}")
        self._state = state

    def cancel(self) -> None:
        """
        Stop the running round. Before publication the round is dropped
        without a trace; once collecting, answers so far are still scored.
        """
        self._cancel_requested = True
        if self._collector is not None:
            self._collector.cancel()

    def _check_page_limit(self) -> None:
        if self.catalog.page_count_differs(self.page_limit):
            logger.info(f"Updating trivia page limit: {self.page_limit} -> {self.catalog.page_total}")
            self.page_limit = self.catalog.page_total
            if self.on_page_limit_change:
                self.on_page_limit_change(self.page_limit)

    async def run_round(self) -> Optional[RoundResult]:
        """
        Play one full round. Returns None when cancelled before the round
        was published.

        Raises:
            UpstreamUnavailable, InsufficientCandidates: setup failed; nothing
                was published or persisted
            RatingStoreError: statistics could not be saved
        """
        async with self._run_lock:
            self._cancel_requested = False
            try:
                self._set_state(RoundState.SETUP)
                try:
                    round_ = await self.setup.select_round(self.page_limit, self.candidate_count)
                except (UpstreamUnavailable, InsufficientCandidates) as e:
                    self._set_state(RoundState.FAILED)
                    logger.error(f"Trivia round setup failed: {e}")
                    raise
                finally:
                    self._check_page_limit()

                if self._cancel_requested:
                    self._set_state(RoundState.FAILED)
                    logger.info("Trivia round cancelled during setup, nothing published")
                    return None

                self.current_round = round_
                # Provisional start so the message can show the deadline
                round_.start(self._clock())
                handle = await self.messenger.publish(MessageContent(
                    text=self.mention,
                    embeds=[round_embed(round_)],
                    choices=[candidate.name for candidate in round_.candidates],
                ))
                # Latency counts from the moment players can see the question
                round_.start(self._clock())
                self._set_state(RoundState.PUBLISHED)
                logger.info("Trivia game message sent to the channel")

                collector = AnswerCollector(round_, self.messenger, self._clock)
                self._collector = collector
                if self._cancel_requested:
                    collector.cancel()

                self._set_state(RoundState.COLLECTING)
                submissions = await collector.collect(
                    self.messenger.collect_interactions(handle, round_.duration)
                )
                if collector.cancelled:
                    self._set_state(RoundState.CANCELLED)

                self._set_state(RoundState.SCORING)
                result = await self._score_and_persist(round_, submissions)
                self._set_state(RoundState.PERSISTED)

                await self._publish_result(handle, round_, result, collector.latest_events())
                return result
            finally:
                self._collector = None
                self.current_round = None
                self._set_state(RoundState.IDLE)

    async def _score_and_persist(self, round_: Round, submissions) -> RoundResult:
        month = month_key(tz=self.timezone)

        previous = {}
        for player_id in submissions:
            previous[player_id] = await self.store.read(player_id, month)

        result = self.scoring.score(round_, submissions, previous)

        await self.store.record_game(month, result.has_participants)

        for player_id, stat in result.stats.items():
            await self.store.write(player_id, month, stat)

        logger.info(f"Trivia statistics updated for {month}: {len(result.stats)} players, "
                    f"{len(result.ranked)} right answers")
        return result

    async def _publish_result(self, handle, round_: Round, result: RoundResult,
                              events: Dict[str, AnswerEvent]) -> None:
        names = {player_id: event.name for player_id, event in events.items()}
        try:
            await self.messenger.edit(handle, MessageContent(embeds=result_embeds(round_, result, names)))
            logger.info("Game message updated with answer and top 3 players")
        except Exception as e:
            logger.error(f"Error publishing trivia result: {e}")

        replies = []
        for player_id, event in events.items():
            if player_id not in result.stats:
                continue
            submission = result.submissions[player_id]
            content = answer_feedback(
                result.correct[player_id],
                result.stats[player_id],
                result.deltas[player_id],
                round_.find_candidate(submission.answer),
            )
            replies.append(self._reply(event, content))
        await asyncio.gather(*replies)

    async def _reply(self, event: AnswerEvent, content: str) -> None:
        try:
            await self.messenger.acknowledge(event, content)
        except Exception as e:
            logger.warning(str(AcknowledgeFailure(f"Could not send result to {event.name}: {e}")))
