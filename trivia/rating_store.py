"""
Monthly trivia statistics storage
"""

import asyncio
import copy
import datetime
import json
import logging
import os
from abc import ABC, abstractmethod
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from trivia.errors import RatingStoreError
from trivia.models import OverallMonthlyStat, PlayerMonthlyStat

logger = logging.getLogger(__name__)

STATISTIC_VERSION = 3


def month_key(now: Optional[datetime.datetime] = None, tz: Optional[datetime.tzinfo] = None) -> str:
    """Bucket key for monthly statistics, e.g. '2026-10'"""
    if now is None:
        now = datetime.datetime.now(tz)
    return now.strftime("%Y-%m")


class RatingStore(ABC):
    """Per-player and overall statistics, bucketed by month.

    A missing record is never an error: reads return None and callers
    fall back to zeroed defaults.
    """

    @abstractmethod
    async def read(self, player_id: str, month: str) -> Optional[PlayerMonthlyStat]:
        pass

    @abstractmethod
    async def write(self, player_id: str, month: str, stat: PlayerMonthlyStat) -> None:
        pass

    @abstractmethod
    async def read_overall(self, month: str) -> Optional[OverallMonthlyStat]:
        pass

    @abstractmethod
    async def write_overall(self, month: str, stat: OverallMonthlyStat) -> None:
        pass

    async def record_game(self, month: str, had_participants: bool) -> OverallMonthlyStat:
        """Count one more round for `month`. Stores shared by several channels should make this atomic."""
        overall = await self.read_overall(month) or OverallMonthlyStat()
        updated = overall.record_game(had_participants)
        await self.write_overall(month, updated)
        return updated

    async def leaderboard(self, month: str, limit: int = 10) -> List[Tuple[str, PlayerMonthlyStat]]:
        return []


class JsonRatingStore(RatingStore):
    """RatingStore persisted to a single JSON file with atomic writes"""

    def __init__(self, data_directory: str = "data"):
        self.path = os.path.join(data_directory, "statistic.json")
        self.backup_path = os.path.join(data_directory, "backup", "statistic.json")
        self._data: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    @staticmethod
    def _initial_data() -> Dict[str, Any]:
        return {"version": STATISTIC_VERSION, "overall": {}, "player": {}}

    def _load_sync(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            logger.info(f"No statistics file at {self.path}, starting fresh")
            return self._initial_data()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RatingStoreError(f"Could not read statistics from {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise RatingStoreError(f"Unexpected statistics layout in {self.path}")
        data.setdefault("overall", {})
        data.setdefault("player", {})
        data["version"] = STATISTIC_VERSION
        return data

    @staticmethod
    def _save_sync(path: str, data: Dict[str, Any]) -> None:
        """Write to a temp file then rename, so a crash never leaves half a file"""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        temp_file = path + ".tmp"
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(temp_file, path)

    async def _ensure_loaded(self) -> Dict[str, Any]:
        if self._data is None:
            loop = asyncio.get_running_loop()
            self._data = await loop.run_in_executor(None, self._load_sync)
        return self._data

    async def _persist(self, data: Dict[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._save_sync, self.path, data))
        except OSError as e:
            raise RatingStoreError(f"Could not write statistics to {self.path}: {e}") from e

    async def _commit(self, change: Callable[[Dict[str, Any]], Any]) -> Any:
        """Apply `change` to a copy and keep it only once it is on disk"""
        async with self._lock:
            data = copy.deepcopy(await self._ensure_loaded())
            outcome = change(data)
            await self._persist(data)
            self._data = data
        return outcome

    async def read(self, player_id: str, month: str) -> Optional[PlayerMonthlyStat]:
        async with self._lock:
            data = await self._ensure_loaded()
            record = data["player"].get(player_id, {}).get(month)
        return PlayerMonthlyStat.from_dict(record) if record is not None else None

    async def write(self, player_id: str, month: str, stat: PlayerMonthlyStat) -> None:
        def change(data):
            data["player"].setdefault(player_id, {})[month] = stat.to_dict()

        await self._commit(change)
        logger.debug(f"Saved {month} stats for player {player_id}: elo={stat.elo}")

    async def read_overall(self, month: str) -> Optional[OverallMonthlyStat]:
        async with self._lock:
            data = await self._ensure_loaded()
            record = data["overall"].get(month)
        return OverallMonthlyStat.from_dict(record) if record is not None else None

    async def write_overall(self, month: str, stat: OverallMonthlyStat) -> None:
        def change(data):
            data["overall"][month] = stat.to_dict()

        await self._commit(change)

    async def record_game(self, month: str, had_participants: bool) -> OverallMonthlyStat:
        def change(data):
            record = data["overall"].get(month)
            current = OverallMonthlyStat.from_dict(record) if record is not None else OverallMonthlyStat()
            updated = current.record_game(had_participants)
            data["overall"][month] = updated.to_dict()
            return updated

        return await self._commit(change)

    async def leaderboard(self, month: str, limit: int = 10) -> List[Tuple[str, PlayerMonthlyStat]]:
        """Players who took part in `month`, highest elo first"""
        async with self._lock:
            data = await self._ensure_loaded()
            entries = [
                (player_id, PlayerMonthlyStat.from_dict(months[month]))
                for player_id, months in data["player"].items()
                if month in months
            ]
        entries.sort(key=lambda item: item[1].elo, reverse=True)
        return entries[:limit]

    async def backup(self) -> None:
        """Copy the current statistics next to the live file"""
        async with self._lock:
            data = copy.deepcopy(await self._ensure_loaded())
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, partial(self._save_sync, self.backup_path, data))
        logger.info(f"Backed up statistics to {self.backup_path}")
