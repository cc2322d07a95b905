"""
Answer collection for a running trivia round.

A collector owns the submission mapping for exactly one round. Player
clicks arrive as AnswerEvents from the channel messenger; each accepted
answer replaces the player's previous one and is acknowledged in its own
task so a slow reply to one player never holds up anyone else.
"""

import asyncio
import logging
import time
from typing import AsyncIterable, Callable, Dict, Optional, Set

from trivia.errors import AcknowledgeFailure, RoundClosed
from trivia.messenger import AnswerEvent, ChannelMessenger
from trivia.models import Round, Submission

logger = logging.getLogger(__name__)

ACK_MESSAGE = "Your answer `{answer}` has been recorded!"
CLOSED_MESSAGE = "This round is closed, your answer `{answer}` was not recorded."


class AnswerCollector:
    def __init__(self, round_: Round, messenger: Optional[ChannelMessenger] = None,
                 clock: Callable[[], float] = time.time):
        self.round = round_
        self.messenger = messenger
        self._clock = clock

        self._submissions: Dict[str, Submission] = {}
        self._events: Dict[str, AnswerEvent] = {}
        self._lock = asyncio.Lock()
        self._cancelled = asyncio.Event()
        self._closed = False
        self._ack_tasks: Set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed or self._cancelled.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def snapshot(self) -> Dict[str, Submission]:
        return dict(self._submissions)

    def latest_events(self) -> Dict[str, AnswerEvent]:
        """Most recent accepted event per player, for replying after scoring"""
        return dict(self._events)

    def cancel(self) -> None:
        """Close the window early. Accepted submissions are kept."""
        if not self._cancelled.is_set():
            logger.info("Answer collection cancelled")
        self._cancelled.set()

    async def submit(self, player_id: str, answer: str, received_at: Optional[float] = None) -> Submission:
        """
        Record `answer` as the player's current answer.

        Raises:
            RoundClosed: the window is closed or `received_at` is at or past the deadline
        """
        if received_at is None:
            received_at = self._clock()

        deadline = self.round.deadline
        if deadline is None:
            raise RoundClosed("Round has not started")
        if self.closed or received_at >= deadline:
            raise RoundClosed(f"Answer from {player_id} received after the round closed")

        submission = Submission(
            player_id=player_id,
            answer=answer,
            latency=max(0.0, received_at - self.round.started_at),
        )
        async with self._lock:
            self._submissions[player_id] = submission
        return submission

    async def accept(self, event: AnswerEvent) -> Optional[Submission]:
        """Record an event's answer and acknowledge it in the background"""
        if self.round.find_candidate(event.answer) is None:
            logger.warning(f"Ignoring answer {event.answer!r} from {event.name}: not a candidate")
            return None

        try:
            submission = await self.submit(event.player_id, event.answer, event.received_at)
        except RoundClosed as e:
            logger.debug(str(e))
            self._reply(event, CLOSED_MESSAGE.format(answer=event.answer))
            return None

        async with self._lock:
            self._events[event.player_id] = event
        logger.debug(f"{event.name} answered {event.answer} after {submission.latency:.2f}s")

        self._reply(event, ACK_MESSAGE.format(answer=event.answer))
        return submission

    def _reply(self, event: AnswerEvent, content: str) -> None:
        if self.messenger is None:
            return
        task = asyncio.create_task(self._acknowledge(event, content))
        self._ack_tasks.add(task)
        task.add_done_callback(self._ack_tasks.discard)

    async def _acknowledge(self, event: AnswerEvent, content: str) -> None:
        try:
            await self.messenger.acknowledge(event, content)
        except Exception as e:
            failure = AcknowledgeFailure(f"Could not acknowledge answer from {event.name}: {e}")
            logger.warning(str(failure))

    async def _consume(self, events: AsyncIterable[AnswerEvent]) -> None:
        async for event in events:
            await self.accept(event)
            if self.closed:
                break

    async def collect(self, events: AsyncIterable[AnswerEvent]) -> Dict[str, Submission]:
        """
        Drain `events` until the round deadline or cancellation, whichever
        comes first, and return the final answer of every player.
        """
        if self.round.deadline is None:
            raise RoundClosed("Round has not started")

        consumer = asyncio.create_task(self._consume(events))
        stopper = asyncio.create_task(self._cancelled.wait())
        try:
            remaining = max(0.0, self.round.deadline - self._clock())
            await asyncio.wait({consumer, stopper}, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self._closed = True
            for task in (consumer, stopper):
                task.cancel()
            await asyncio.gather(consumer, stopper, return_exceptions=True)
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

        if consumer.done() and not consumer.cancelled() and consumer.exception() is not None:
            logger.error(f"Answer stream failed: {consumer.exception()}")

        await self.drain_acknowledgements()
        submissions = self.snapshot()
        logger.info(f"Collected {len(submissions)} answers{' (cancelled)' if self.cancelled else ''}")
        return submissions

    async def drain_acknowledgements(self) -> None:
        """Wait for acknowledgements still in flight"""
        if self._ack_tasks:
            await asyncio.gather(*list(self._ack_tasks), return_exceptions=True)
