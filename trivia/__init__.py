"""
Trivia Bot Package

Tank trivia: guess which vehicle fires the shown shell, with a monthly elo per player.
"""

from .trivia import TriviaCog
from .controller import RoundController, RoundState
from .models import Ammo, Candidate, PlayerMonthlyStat, Round, RoundResult, ShellType, Submission
from .rating_store import JsonRatingStore, RatingStore

__all__ = [
    'TriviaCog',
    'RoundController',
    'RoundState',
    'Ammo',
    'Candidate',
    'PlayerMonthlyStat',
    'Round',
    'RoundResult',
    'ShellType',
    'Submission',
    'JsonRatingStore',
    'RatingStore',
]
