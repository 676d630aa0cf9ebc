"""Persistence adapter that maps game progress onto key-value pairs."""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set

from vocaman import monitoring
from vocaman.models.game_models import Grade, GradeStats, parse_grade
from vocaman.services.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

REWARD_BALANCE_KEY = "rewardBalance"
CURRENT_GRADE_KEY = "currentGrade"


def stats_key(grade: Grade) -> str:
    return f"stats_{grade}"


def solved_key(grade: Grade) -> str:
    return f"solved_{grade}"


class ProgressStore:
    """Reads and writes progress values as JSON.

    Reads never raise: missing, unreadable or malformed values come back as
    None (or an empty default) and are logged. Writes are scheduled as
    asyncio tasks, serialized per key, and always store the most recent
    value for that key. A failed write is remembered and retried the next
    time any value is scheduled.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._locks: Dict[str, asyncio.Lock] = {}
        self._latest: Dict[str, str] = {}
        self._written: Dict[str, str] = {}
        self._failed: Set[str] = set()
        self._pending: Set[asyncio.Task] = set()

    async def _read(self, key: str) -> Optional[Any]:
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.error("Error reading %s from store: %s", key, e)
            monitoring.store_errors.labels(operation="read").inc()
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed value stored under %s", key)
            return None

    async def load_stats(self, grade: Grade) -> Optional[GradeStats]:
        """Get the stored stats of a grade, or None if there are none."""
        data = await self._read(stats_key(grade))
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring stats of grade %s: not an object", grade)
            return None
        try:
            return GradeStats.from_dict(data)
        except ValueError as e:
            logger.warning("Ignoring stats of grade %s: %s", grade, e)
            return None

    async def load_solved(self, grade: Grade) -> List[str]:
        """Get the solved word ids of a grade."""
        data = await self._read(solved_key(grade))
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring solved ids of grade %s: not a list", grade)
            return []
        # dict.fromkeys drops duplicates and keeps the order
        return list(dict.fromkeys(item for item in data if isinstance(item, str)))

    async def load_reward_balance(self) -> int:
        """Get the stored reward balance."""
        data = await self._read(REWARD_BALANCE_KEY)
        if isinstance(data, bool) or not isinstance(data, int) or data < 0:
            if data is not None:
                logger.warning("Ignoring invalid reward balance: %r", data)
            return 0
        return data

    async def load_current_grade(self) -> Optional[Grade]:
        """Get the last selected grade, or None."""
        try:
            raw = await self.store.get(CURRENT_GRADE_KEY)
        except Exception as e:
            logger.error("Error reading %s from store: %s", CURRENT_GRADE_KEY, e)
            monitoring.store_errors.labels(operation="read").inc()
            return None
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            # Older saves wrote the bare text, e.g. all
            value = raw
        try:
            return parse_grade(value)
        except ValueError:
            logger.warning("Ignoring invalid stored grade: %r", raw)
            return None

    def save_stats(self, grade: Grade, stats: GradeStats) -> Optional[asyncio.Task]:
        return self.schedule_write(stats_key(grade), stats.to_dict())

    def save_solved(self, grade: Grade, solved_ids: List[str]) -> Optional[asyncio.Task]:
        return self.schedule_write(solved_key(grade), list(solved_ids))

    def save_reward_balance(self, balance: int) -> Optional[asyncio.Task]:
        return self.schedule_write(REWARD_BALANCE_KEY, balance)

    def save_current_grade(self, grade: Grade) -> Optional[asyncio.Task]:
        return self.schedule_write(CURRENT_GRADE_KEY, grade)

    def schedule_write(self, key: str, payload: Any) -> Optional[asyncio.Task]:
        """Schedule a write of ``payload`` under ``key``.

        Returns the task writing this key; earlier failed keys are retried
        alongside it. Without a running event loop nothing is written: the
        key is kept as pending and written by the next scheduled write or
        flush(), and None is returned.
        """
        self._latest[key] = json.dumps(payload)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, deferring write of %s", key)
            self._failed.add(key)
            return None
        for failed_key in sorted(self._failed - {key}):
            logger.info("Retrying failed write of %s", failed_key)
            self._spawn(loop, failed_key)
        return self._spawn(loop, key)

    def _spawn(self, loop: asyncio.AbstractEventLoop, key: str) -> asyncio.Task:
        task = loop.create_task(self._write(key))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, key: str) -> bool:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            value = self._latest[key]
            if self._written.get(key) == value:
                return True
            try:
                await self.store.set(key, value)
            except Exception as e:
                logger.error("Error writing %s to store: %s", key, e)
                monitoring.store_errors.labels(operation="write").inc()
                self._failed.add(key)
                return False
            self._written[key] = value
            self._failed.discard(key)
            return True

    @property
    def failed_keys(self) -> Set[str]:
        """Keys whose last write failed or was deferred."""
        return set(self._failed)

    async def flush(self) -> None:
        """Retry failed or deferred writes and wait for every write to finish."""
        loop = asyncio.get_running_loop()
        for key in sorted(self._failed):
            self._spawn(loop, key)
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
