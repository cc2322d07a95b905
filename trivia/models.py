from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple


class ShellType(Enum):
    ARMOR_PIERCING = "ARMOR_PIERCING"
    ARMOR_PIERCING_CR = "ARMOR_PIERCING_CR"
    HIGH_EXPLOSIVE = "HIGH_EXPLOSIVE"
    HOLLOW_CHARGE = "HOLLOW_CHARGE"
    ARMOR_PIERCING_HE = "ARMOR_PIERCING_HE"

    @property
    def label(self) -> str:
        """Short name players know the shell by"""
        return SHELL_LABELS[self]


SHELL_LABELS = {
    ShellType.ARMOR_PIERCING: "AP",
    ShellType.ARMOR_PIERCING_CR: "APCR",
    ShellType.HIGH_EXPLOSIVE: "HE",
    ShellType.HOLLOW_CHARGE: "HEAT",
    ShellType.ARMOR_PIERCING_HE: "HESH",
}


@dataclass(frozen=True)
class Ammo:
    type: ShellType
    max_damage: int

    def describe(self) -> str:
        return f"{self.type.label} {self.max_damage}"


@dataclass(frozen=True)
class Candidate:
    id: str
    name: str
    ammo: Ammo
    image_url: Optional[str] = None


@dataclass
class Round:
    """One trivia round: a target hidden among a fixed candidate set"""
    target: Candidate
    candidates: Tuple[Candidate, ...]
    duration: float
    started_at: Optional[float] = None

    def __post_init__(self):
        self.candidates = tuple(self.candidates)
        if self.target not in self.candidates:
            raise ValueError(f"Target {self.target.name} is not among the candidates")

    @property
    def deadline(self) -> Optional[float]:
        if self.started_at is None:
            return None
        return self.started_at + self.duration

    def start(self, now: float) -> None:
        self.started_at = now

    def find_candidate(self, name: str) -> Optional[Candidate]:
        for candidate in self.candidates:
            if candidate.name == name:
                return candidate
        return None


@dataclass(frozen=True)
class Submission:
    player_id: str
    answer: str
    latency: float  # seconds since round start


@dataclass(frozen=True)
class PlayerMonthlyStat:
    elo: int = 0
    right_answers: int = 0
    win_streak: int = 0
    participation: int = 0
    answer_latencies: Tuple[float, ...] = ()

    @property
    def accuracy(self) -> float:
        if self.participation == 0:
            return 0.0
        return self.right_answers / self.participation * 100

    @property
    def avg_latency(self) -> float:
        if not self.answer_latencies:
            return 0.0
        return sum(self.answer_latencies) / len(self.answer_latencies)

    def to_dict(self) -> Dict:
        return {
            "elo": self.elo,
            "right_answer": self.right_answers,
            "win_strick": self.win_streak,
            "participation": self.participation,
            "answer_time": list(self.answer_latencies),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PlayerMonthlyStat":
        return cls(
            elo=int(data.get("elo", 0)),
            right_answers=int(data.get("right_answer", 0)),
            win_streak=int(data.get("win_strick", 0)),
            participation=int(data.get("participation", 0)),
            answer_latencies=tuple(float(t) for t in data.get("answer_time", [])),
        )


@dataclass(frozen=True)
class OverallMonthlyStat:
    games_played: int = 0
    games_without_participation: int = 0

    def record_game(self, had_participants: bool) -> "OverallMonthlyStat":
        return replace(
            self,
            games_played=self.games_played + 1,
            games_without_participation=self.games_without_participation + (0 if had_participants else 1),
        )

    def to_dict(self) -> Dict:
        return {
            "number_of_game": self.games_played,
            "game_without_participation": self.games_without_participation,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "OverallMonthlyStat":
        return cls(
            games_played=int(data.get("number_of_game", 0)),
            games_without_participation=int(data.get("game_without_participation", 0)),
        )


@dataclass
class RoundResult:
    ranked: List[Tuple[str, Submission]]
    deltas: Dict[str, int]
    correct: Dict[str, bool] = field(default_factory=dict)
    stats: Dict[str, PlayerMonthlyStat] = field(default_factory=dict)
    other_correct: List[Candidate] = field(default_factory=list)
    submissions: Dict[str, Submission] = field(default_factory=dict)

    @property
    def has_participants(self) -> bool:
        return bool(self.submissions)

    def podium(self) -> List[Tuple[str, Submission]]:
        """Top three correct answers, fastest first"""
        return self.ranked[:3]
