"""Tests for the progress persistence adapter."""
import asyncio
import json
from collections import defaultdict
from typing import Optional

import pytest
from sqlalchemy.orm import sessionmaker

from vocaman.models.game_models import ALL_GRADES, GradeStats
from vocaman.services.key_value_store import MemoryKeyValueStore, SqlKeyValueStore
from vocaman.services.progress_store import ProgressStore, solved_key, stats_key


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose reads and writes can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False

    async def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise OSError("storage unavailable")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().set(key, value)


class SlowStore(MemoryKeyValueStore):
    """Memory store that records how many writes per key overlap."""

    def __init__(self):
        super().__init__()
        self.active = defaultdict(int)
        self.max_active = defaultdict(int)

    async def set(self, key: str, value: str) -> None:
        self.active[key] += 1
        self.max_active[key] = max(self.max_active[key], self.active[key])
        await asyncio.sleep(0.01)
        await super().set(key, value)
        self.active[key] -= 1


@pytest.mark.asyncio
async def test_stats_and_solved_round_trip(progress_store: ProgressStore) -> None:
    """Saved values load back unchanged."""
    stats = GradeStats(wins=3, losses=1, current_streak=2, best_streak=3)
    progress_store.save_stats(2, stats)
    progress_store.save_solved(2, ["g2-apple", "BIRD_2_1"])
    progress_store.save_reward_balance(40)
    progress_store.save_current_grade(ALL_GRADES)
    await progress_store.flush()

    assert await progress_store.load_stats(2) == stats
    assert await progress_store.load_solved(2) == ["g2-apple", "BIRD_2_1"]
    assert await progress_store.load_reward_balance() == 40
    assert await progress_store.load_current_grade() == ALL_GRADES


@pytest.mark.asyncio
async def test_round_trip_through_database(session_factory: sessionmaker) -> None:
    progress_store = ProgressStore(SqlKeyValueStore(session_factory))
    stats = GradeStats(wins=1, losses=0, current_streak=1, best_streak=1)
    progress_store.save_stats(1, stats)
    progress_store.save_solved(1, ["g1-cat"])
    await progress_store.flush()

    reloaded = ProgressStore(SqlKeyValueStore(session_factory))
    assert await reloaded.load_stats(1) == stats
    assert await reloaded.load_solved(1) == ["g1-cat"]


@pytest.mark.asyncio
async def test_keys_and_format(progress_store: ProgressStore, memory_store: MemoryKeyValueStore) -> None:
    progress_store.save_stats(1, GradeStats(wins=1, current_streak=1, best_streak=1))
    progress_store.save_current_grade(4)
    await progress_store.flush()

    assert json.loads(memory_store.data["stats_1"]) == {
        "wins": 1,
        "losses": 0,
        "currentStreak": 1,
        "bestStreak": 1,
    }
    assert memory_store.data["currentGrade"] == "4"
    assert stats_key(ALL_GRADES) == "stats_all"
    assert solved_key(3) == "solved_3"


@pytest.mark.asyncio
async def test_missing_values_give_defaults(progress_store: ProgressStore) -> None:
    assert await progress_store.load_stats(1) is None
    assert await progress_store.load_solved(1) == []
    assert await progress_store.load_reward_balance() == 0
    assert await progress_store.load_current_grade() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key, raw",
    [
        ("stats_1", "{broken"),
        ("stats_1", "[1, 2]"),
        ("stats_1", '{"wins": -4}'),
        ("solved_1", '{"a": 1}'),
        ("rewardBalance", '"lots"'),
        ("rewardBalance", "-5"),
        ("currentGrade", "9"),
    ],
)
async def test_malformed_values_are_ignored(key: str, raw: str) -> None:
    """Corrupted data loads as if it were absent."""
    progress_store = ProgressStore(MemoryKeyValueStore({key: raw}))

    assert await progress_store.load_stats(1) is None
    assert await progress_store.load_solved(1) == []
    assert await progress_store.load_reward_balance() == 0
    assert await progress_store.load_current_grade() is None


@pytest.mark.asyncio
async def test_solved_ids_are_deduplicated() -> None:
    progress_store = ProgressStore(MemoryKeyValueStore({"solved_1": '["a", "b", "a", 3]'}))
    assert await progress_store.load_solved(1) == ["a", "b"]


@pytest.mark.asyncio
async def test_bare_current_grade_text_is_accepted() -> None:
    progress_store = ProgressStore(MemoryKeyValueStore({"currentGrade": "all"}))
    assert await progress_store.load_current_grade() == ALL_GRADES


@pytest.mark.asyncio
async def test_read_failures_give_defaults() -> None:
    store = FlakyStore()
    store.data["rewardBalance"] = "30"
    store.fail_reads = True
    progress_store = ProgressStore(store)

    assert await progress_store.load_reward_balance() == 0
    assert await progress_store.load_current_grade() is None
    assert await progress_store.load_stats(1) is None


@pytest.mark.asyncio
async def test_failed_write_is_retried_on_next_write() -> None:
    store = FlakyStore()
    store.fail_writes = True
    progress_store = ProgressStore(store)

    task = progress_store.save_reward_balance(10)
    await progress_store.flush()
    assert task.result() is False
    assert progress_store.failed_keys == {"rewardBalance"}
    assert "rewardBalance" not in store.data

    store.fail_writes = False
    progress_store.save_current_grade(2)
    await progress_store.flush()

    assert store.data["rewardBalance"] == "10"
    assert store.data["currentGrade"] == "2"
    assert progress_store.failed_keys == set()


def test_write_without_event_loop_is_deferred(progress_store: ProgressStore, memory_store: MemoryKeyValueStore) -> None:
    """Writes scheduled outside an event loop are kept and written on flush."""
    assert progress_store.save_reward_balance(10) is None
    assert progress_store.save_reward_balance(20) is None
    assert progress_store.failed_keys == {"rewardBalance"}
    assert memory_store.data == {}

    asyncio.run(progress_store.flush())

    assert memory_store.data["rewardBalance"] == "20"
    assert progress_store.failed_keys == set()


@pytest.mark.asyncio
async def test_deferred_write_is_retried_by_next_write(
    progress_store: ProgressStore, memory_store: MemoryKeyValueStore
) -> None:
    await asyncio.to_thread(progress_store.save_current_grade, 3)

    progress_store.save_reward_balance(10)
    await progress_store.flush()

    assert memory_store.data == {"currentGrade": "3", "rewardBalance": "10"}


@pytest.mark.asyncio
async def test_writes_to_a_key_are_serialized() -> None:
    """Overlapping writes to one key never run concurrently and the last value wins."""
    store = SlowStore()
    progress_store = ProgressStore(store)

    progress_store.save_reward_balance(10)
    await asyncio.sleep(0)
    progress_store.save_reward_balance(20)
    progress_store.save_reward_balance(30)
    await progress_store.flush()

    assert store.max_active["rewardBalance"] == 1
    assert store.data["rewardBalance"] == "30"


if __name__ == "__main__":
    pytest.main([__file__])
