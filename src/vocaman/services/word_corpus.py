"""Read-only access to the per-grade word lists."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from vocaman.config import settings
from vocaman.models.game_models import GRADES

logger = logging.getLogger(__name__)

WORDS_FILE_TEMPLATE = "words_grade_{grade}.json"


def _is_valid_record(record: Any) -> bool:
    """Check that a raw record has a word, a first hint and a category."""
    if not isinstance(record, dict):
        return False
    word = record.get("word")
    hints = record.get("hints")
    if not isinstance(word, str) or not word.strip().isalpha():
        return False
    if not isinstance(hints, dict) or not isinstance(hints.get("hint1"), str):
        return False
    hint2 = hints.get("hint2")
    if hint2 is not None and not isinstance(hint2, str):
        return False
    if not isinstance(record.get("category", ""), str):
        return False
    record_id = record.get("id")
    return record_id is None or isinstance(record_id, str)


class WordCorpus:
    """Word records grouped by grade.

    Records are loaded lazily from ``words_grade_<n>.json`` files and cached.
    Invalid records are skipped, and an unreadable file leaves its grade
    empty.
    """

    def __init__(self, words_dir: Optional[Path] = None):
        self.words_dir = Path(words_dir) if words_dir is not None else settings.paths.words_dir
        self._records: Dict[int, List[Dict[str, Any]]] = {}

    @classmethod
    def from_records(cls, records: Mapping[int, Iterable[Dict[str, Any]]]) -> "WordCorpus":
        """Build a corpus from in-memory records instead of files."""
        corpus = cls()
        for grade in GRADES:
            corpus._records[grade] = cls._clean(list(records.get(grade, [])), grade)
        return corpus

    def records(self, grade: int) -> List[Dict[str, Any]]:
        """Get the raw records of one grade."""
        if grade not in GRADES:
            raise ValueError(f"Invalid grade: {grade!r}")
        if grade not in self._records:
            self._records[grade] = self._load_file(grade)
        return list(self._records[grade])

    def count(self, grade: int) -> int:
        """Get the number of records of one grade."""
        return len(self.records(grade))

    def _load_file(self, grade: int) -> List[Dict[str, Any]]:
        path = self.words_dir / WORDS_FILE_TEMPLATE.format(grade=grade)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning("Word file not found for grade %s: %s", grade, path)
            return []
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading word file %s: %s", path, e)
            return []

        if isinstance(data, dict):
            # Tolerate the {"wordList": [...]} wrapper
            data = data.get("wordList", [])
        if not isinstance(data, list):
            logger.error("Word file %s does not contain a list", path)
            return []

        records = self._clean(data, grade)
        logger.info("Loaded %d words for grade %s from %s", len(records), grade, path)
        return records

    @staticmethod
    def _clean(data: List[Any], grade: int) -> List[Dict[str, Any]]:
        records = []
        for index, record in enumerate(data):
            if not _is_valid_record(record):
                logger.warning("Skipping malformed word record %d of grade %s", index, grade)
                continue
            records.append(record)
        return records
