"""Service for resolving grades into candidate and eligible words."""
import logging
import random
from typing import Iterable, List, Optional

from vocaman import monitoring
from vocaman.exceptions import NoWordsAvailableError, PoolExhaustedError
from vocaman.models.game_models import ALL_GRADES, GRADES, Grade, Hints, WordEntry
from vocaman.services.word_corpus import WordCorpus

logger = logging.getLogger(__name__)


def make_word_id(word: str, grade: int, index: int) -> str:
    """Synthesize the id of a record that has none.

    The id only depends on the record's content and position, so it is the
    same on every load of an unchanged corpus.
    """
    return f"{word.strip().upper()}_{grade}_{index}"


class WordPool:
    """Service for picking words of a grade."""

    def __init__(self, corpus: WordCorpus):
        """Initialize the service with a word corpus."""
        self.corpus = corpus

    def load_candidates(self, grade: Grade) -> List[WordEntry]:
        """Get every word of a grade; ``"all"`` concatenates grades 1 to 6."""
        grades = GRADES if grade == ALL_GRADES else (grade,)
        candidates = []
        for grade_num in grades:
            candidates.extend(self._entries(grade_num))
        logger.debug("Loaded %d candidates for grade %s", len(candidates), grade)
        return candidates

    def _entries(self, grade: int) -> List[WordEntry]:
        entries = []
        for index, record in enumerate(self.corpus.records(grade)):
            hints = record["hints"]
            entries.append(
                WordEntry(
                    id=record.get("id") or make_word_id(record["word"], grade, index),
                    word=record["word"],
                    hints=Hints(hint1=hints["hint1"], hint2=hints.get("hint2") or None),
                    category=record.get("category", ""),
                    grade=grade,
                )
            )
        return entries

    def pick_eligible(
        self,
        candidates: List[WordEntry],
        solved_ids: Iterable[str],
        grade: Optional[Grade] = None,
    ) -> List[WordEntry]:
        """Get the candidates that are not solved yet.

        Raises NoWordsAvailableError when there are no candidates at all and
        PoolExhaustedError when every candidate is solved.
        """
        if not candidates:
            raise NoWordsAvailableError(grade)

        solved = set(solved_ids)
        eligible = [entry for entry in candidates if entry.id not in solved]
        if not eligible:
            logger.info("Word pool exhausted for grade %s (%d words)", grade, len(candidates))
            monitoring.pool_exhausted.labels(grade=str(grade)).inc()
            raise PoolExhaustedError(grade, len(candidates))
        return eligible

    def choose_word(
        self,
        candidates: List[WordEntry],
        solved_ids: Iterable[str],
        grade: Optional[Grade] = None,
        rng: Optional[random.Random] = None,
    ) -> WordEntry:
        """Pick a random eligible word."""
        eligible = self.pick_eligible(candidates, solved_ids, grade)
        word = (rng or random).choice(eligible)
        logger.debug("Picked word id %s for grade %s", word.id, grade)
        return word

    def count_solved(self, candidates: List[WordEntry], solved_ids: Iterable[str]) -> int:
        """Count the candidates that appear in the solved ids."""
        ids = {entry.id for entry in candidates}
        return len(ids.intersection(solved_ids))
