# trivia/scoring.py - Correctness, ranking and rating updates for trivia rounds

import logging
import math
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Tuple

from trivia.models import Candidate, PlayerMonthlyStat, Round, RoundResult, Submission

logger = logging.getLogger(__name__)

DEFAULT_RESPONSE_TIME_LIMIT = 10.0  # seconds
BASE_GAIN = 60
ELO_SCALE = 0.0001
MEDALS = ["🥇", "🥈", "🥉"]


def is_ammo_equivalent(a: Candidate, b: Candidate) -> bool:
    """Two tanks are interchangeable answers when their shells match"""
    return a.ammo.type == b.ammo.type and a.ammo.max_damage == b.ammo.max_damage


class ScoringEngine:
    def __init__(self, response_time_limit: float = DEFAULT_RESPONSE_TIME_LIMIT):
        self.response_time_limit = response_time_limit

    def is_correct(self, round_: Round, submission: Submission) -> bool:
        """The target itself, or any candidate sharing the target's shell"""
        if submission.answer == round_.target.name:
            return True

        candidate = round_.find_candidate(submission.answer)
        if candidate is None:
            return False
        return is_ammo_equivalent(candidate, round_.target)

    def other_correct_answers(self, round_: Round) -> List[Candidate]:
        return [
            candidate for candidate in round_.candidates
            if candidate.name != round_.target.name and is_ammo_equivalent(candidate, round_.target)
        ]

    def rank(self, round_: Round, submissions: Mapping[str, Submission]) -> List[Tuple[str, Submission]]:
        """Correct submissions, fastest first. sorted() is stable so ties keep insertion order."""
        correct = [
            (player_id, submission) for player_id, submission in submissions.items()
            if self.is_correct(round_, submission)
        ]
        return sorted(correct, key=lambda item: item[1].latency)

    def compute_gain(self, elo_before: int, is_correct: bool, latency: float) -> int:
        """
        Rating change for one answer.

        Gains shrink and losses grow exponentially with the current rating.
        A correct answer within the response time limit earns up to a third
        more, scaled linearly by how fast it came in.
        """
        if not is_correct:
            return -math.floor(BASE_GAIN * math.exp(ELO_SCALE * elo_before))

        gain = math.floor(BASE_GAIN * math.exp(-ELO_SCALE * elo_before))
        if latency <= self.response_time_limit:
            limit = self.response_time_limit
            gain += math.floor((gain / 3) * ((limit - latency) / limit))
        return gain

    def apply(self, stat: PlayerMonthlyStat, is_correct: bool, latency: float) -> PlayerMonthlyStat:
        """Return `stat` updated with one more answer"""
        gain = self.compute_gain(stat.elo, is_correct, latency)
        updated = replace(
            stat,
            elo=max(0, stat.elo + gain),
            participation=stat.participation + 1,
            answer_latencies=stat.answer_latencies + (latency,),
        )
        if is_correct:
            return replace(updated, right_answers=stat.right_answers + 1, win_streak=stat.win_streak + 1)
        return replace(updated, win_streak=0)

    def score(self, round_: Round, submissions: Mapping[str, Submission],
              previous_stats: Optional[Mapping[str, PlayerMonthlyStat]] = None) -> RoundResult:
        """Grade every submission and compute each player's new monthly stats"""
        previous_stats = previous_stats or {}

        correct: Dict[str, bool] = {}
        deltas: Dict[str, int] = {}
        stats: Dict[str, PlayerMonthlyStat] = {}

        for player_id, submission in submissions.items():
            before = previous_stats.get(player_id) or PlayerMonthlyStat()
            is_correct = self.is_correct(round_, submission)
            after = self.apply(before, is_correct, submission.latency)

            correct[player_id] = is_correct
            deltas[player_id] = after.elo - before.elo
            stats[player_id] = after
            logger.debug(f"Player {player_id}: correct={is_correct} elo {before.elo} -> {after.elo}")

        return RoundResult(
            ranked=self.rank(round_, submissions),
            deltas=deltas,
            correct=correct,
            stats=stats,
            other_correct=self.other_correct_answers(round_),
            submissions=dict(submissions),
        )
