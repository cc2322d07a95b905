# trivia/random_source.py - Swappable randomness for page and target selection

import random
from abc import ABC, abstractmethod
from typing import List, Optional


class RandomSource(ABC):
    """Source of uniform integers, swapped for a deterministic one in tests"""

    @abstractmethod
    def uniform_int(self, minimum: int, maximum: int) -> int:
        """Return an integer in [minimum, maximum], both ends included"""
        pass

    def sample_distinct(self, count: int, minimum: int, maximum: int) -> List[int]:
        """Draw `count` distinct integers from [minimum, maximum] without replacement.

        Uses a partial Fisher-Yates shuffle so every draw goes through
        uniform_int and stays reproducible with a scripted source.
        """
        pool = list(range(minimum, maximum + 1))
        if count > len(pool):
            raise ValueError(f"Cannot draw {count} distinct values from {len(pool)}")

        for i in range(count):
            j = self.uniform_int(i, len(pool) - 1)
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:count]


class SystemRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def uniform_int(self, minimum: int, maximum: int) -> int:
        return self._random.randint(minimum, maximum)
