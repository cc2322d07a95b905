import pytest

from trivia.models import PlayerMonthlyStat, ShellType, Submission
from trivia.scoring import ScoringEngine, is_ammo_equivalent

from conftest import make_candidate


@pytest.fixture
def engine():
    return ScoringEngine(response_time_limit=10)


def test_instant_right_answer_from_zero_elo_gains_eighty(engine):
    assert engine.compute_gain(0, True, 0.0) == 80


def test_speed_bonus_scales_with_latency(engine):
    assert engine.compute_gain(0, True, 5.0) == 70
    assert engine.compute_gain(0, True, 10.0) == 60
    assert engine.compute_gain(0, True, 10.5) == 60


def test_gain_shrinks_and_loss_grows_with_elo(engine):
    assert engine.compute_gain(1000, True, 60.0) == 54
    assert engine.compute_gain(1000, True, 5.0) == 63
    assert engine.compute_gain(1000, False, 1.0) == -66
    assert engine.compute_gain(0, False, 1.0) == -60


def test_wrong_answer_never_drops_elo_below_zero(engine):
    stat = engine.apply(PlayerMonthlyStat(elo=20, win_streak=3), False, 4.0)

    assert stat.elo == 0
    assert stat.win_streak == 0
    assert stat.participation == 1
    assert stat.answer_latencies == (4.0,)


def test_right_answer_extends_streak(engine):
    stat = engine.apply(PlayerMonthlyStat(elo=100, right_answers=2, win_streak=2, participation=5), True, 30.0)

    assert stat.right_answers == 3
    assert stat.win_streak == 3
    assert stat.participation == 6
    assert stat.elo > 100


def test_ammo_equivalence_requires_type_and_damage():
    ap = make_candidate("A", ShellType.ARMOR_PIERCING, 490)
    same = make_candidate("B", ShellType.ARMOR_PIERCING, 490)
    other_damage = make_candidate("C", ShellType.ARMOR_PIERCING, 440)
    other_type = make_candidate("D", ShellType.HOLLOW_CHARGE, 490)

    assert is_ammo_equivalent(ap, same)
    assert not is_ammo_equivalent(ap, other_damage)
    assert not is_ammo_equivalent(ap, other_type)


def test_candidate_sharing_target_shell_counts_as_right(engine, started_round):
    maus = Submission("p1", "Maus", 12.0)
    e100 = Submission("p2", "E 100", 3.0)

    assert engine.is_correct(started_round, maus)
    assert not engine.is_correct(started_round, e100)
    assert [c.name for c in engine.other_correct_answers(started_round)] == ["Maus"]


def test_ranking_keeps_only_right_answers_fastest_first(engine, started_round):
    submissions = {
        "p1": Submission("p1", "IS-7", 4.0),
        "p2": Submission("p2", "Maus", 2.0),
        "p3": Submission("p3", "E 100", 1.0),
        "p4": Submission("p4", "IS-7", 4.0),
    }

    ranked = engine.rank(started_round, submissions)

    assert [player_id for player_id, _ in ranked] == ["p2", "p1", "p4"]


def test_score_builds_stats_from_previous_month(engine, started_round):
    submissions = {
        "p1": Submission("p1", "IS-7", 5.0),
        "p2": Submission("p2", "FV215b 183", 1.0),
    }
    previous = {"p2": PlayerMonthlyStat(elo=500, participation=1)}

    result = engine.score(started_round, submissions, previous)

    assert result.correct == {"p1": True, "p2": False}
    assert result.stats["p1"].elo == 70
    assert result.deltas["p1"] == 70
    assert result.stats["p2"].elo == 500 - 63
    assert result.deltas["p2"] == -63
    assert result.stats["p2"].participation == 2
    assert [player_id for player_id, _ in result.podium()] == ["p1"]


def test_empty_round_has_no_participants(engine, started_round):
    result = engine.score(started_round, {})

    assert not result.has_participants
    assert result.ranked == []
    assert result.stats == {}
