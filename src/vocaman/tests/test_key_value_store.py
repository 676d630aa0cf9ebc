"""Tests for the key-value stores."""
import pytest
from sqlalchemy.orm import sessionmaker

from vocaman.models.models import StoredValue
from vocaman.services.key_value_store import MemoryKeyValueStore, SqlKeyValueStore


@pytest.mark.asyncio
async def test_sql_store_set_get_delete(session_factory: sessionmaker) -> None:
    """Test the database-backed store."""
    store = SqlKeyValueStore(session_factory)

    assert await store.get("stats_1") is None

    await store.set("stats_1", '{"wins": 1}')
    await store.set("stats_1", '{"wins": 2}')
    assert await store.get("stats_1") == '{"wins": 2}'

    db = session_factory()
    try:
        assert db.query(StoredValue).count() == 1
    finally:
        db.close()

    await store.delete("stats_1")
    await store.delete("stats_1")
    assert await store.get("stats_1") is None


@pytest.mark.asyncio
async def test_memory_store() -> None:
    store = MemoryKeyValueStore({"rewardBalance": "10"})

    assert await store.get("rewardBalance") == "10"
    await store.set("currentGrade", "3")
    assert store.data == {"rewardBalance": "10", "currentGrade": "3"}
    await store.delete("rewardBalance")
    assert await store.get("rewardBalance") is None


if __name__ == "__main__":
    pytest.main([__file__])
