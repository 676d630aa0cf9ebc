"""Test configuration."""
import os
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
from dotenv import load_dotenv
from sqlalchemy.orm import sessionmaker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).resolve().parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from vocaman.models.base import create_db_engine, init_db
from vocaman.services.key_value_store import MemoryKeyValueStore
from vocaman.services.progress_store import ProgressStore
from vocaman.services.progress_tracker import ProgressTracker
from vocaman.services.word_corpus import WordCorpus
from vocaman.services.word_pool import WordPool


def make_record(word: str, hint1: str, category: str, record_id: str = None, hint2: str = None) -> Dict[str, Any]:
    """Build a raw corpus record."""
    record = {"word": word, "hints": {"hint1": hint1}, "category": category}
    if hint2 is not None:
        record["hints"]["hint2"] = hint2
    if record_id is not None:
        record["id"] = record_id
    return record


@pytest.fixture
def word_records() -> Dict[int, List[Dict[str, Any]]]:
    """A small corpus: three words in grade 1, one or two in the others."""
    return {
        1: [
            make_record("cat", "고양이", "animal", "g1-cat", "It says meow."),
            make_record("dog", "개", "animal", "g1-dog"),
            make_record("sun", "해", "nature"),
        ],
        2: [
            make_record("apple", "사과", "food", "g2-apple"),
            make_record("bird", "새", "animal"),
        ],
        3: [make_record("tiger", "호랑이", "animal", "g3-tiger")],
        4: [make_record("doctor", "의사", "job", "g4-doctor")],
        5: [make_record("museum", "박물관", "place", "g5-museum")],
        6: [make_record("gravity", "중력", "science")],
    }


@pytest.fixture
def corpus(word_records) -> WordCorpus:
    return WordCorpus.from_records(word_records)


@pytest.fixture
def pool(corpus: WordCorpus) -> WordPool:
    return WordPool(corpus)


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def progress_store(memory_store: MemoryKeyValueStore) -> ProgressStore:
    return ProgressStore(memory_store)


@pytest.fixture
def tracker(progress_store: ProgressStore) -> ProgressTracker:
    return ProgressTracker(progress_store, reset_stats_on_grade_reset=False)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Create a fresh in-memory database for each test."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()
