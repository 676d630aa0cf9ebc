"""Service for tracking per-grade stats, solved words and rewards."""
import logging
from typing import Dict, List, Optional

from vocaman import monitoring
from vocaman.config import settings
from vocaman.models.game_models import GRADE_SELECTORS, Grade, GradeStats
from vocaman.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Service for tracking player progress across rounds.

    The in-memory state is authoritative. Every mutation updates it first
    and then schedules a write through the progress store, so callers never
    wait on storage.
    """

    def __init__(self, store: ProgressStore, reset_stats_on_grade_reset: Optional[bool] = None):
        """Initialize the service with a progress store."""
        self.store = store
        if reset_stats_on_grade_reset is None:
            reset_stats_on_grade_reset = settings.game.reset_stats_on_grade_reset
        self.reset_stats_on_grade_reset = reset_stats_on_grade_reset
        self._stats: Dict[Grade, GradeStats] = {}
        self._solved: Dict[Grade, List[str]] = {}
        self.reward_balance = 0
        self.current_grade: Optional[Grade] = None

    async def load(self) -> None:
        """Load stats and solved ids of every grade, rewards and the current grade."""
        self._stats.clear()
        self._solved.clear()
        for grade in GRADE_SELECTORS:
            stats = await self.store.load_stats(grade)
            if stats is not None:
                self._stats[grade] = stats
            self._solved[grade] = await self.store.load_solved(grade)
        self.reward_balance = await self.store.load_reward_balance()
        self.current_grade = await self.store.load_current_grade()
        logger.info(
            "Progress loaded: %d graded stats, reward balance %d, current grade %s",
            len(self._stats),
            self.reward_balance,
            self.current_grade,
        )

    def stats(self, grade: Grade) -> GradeStats:
        """Get the stats of a grade; empty, unsaved stats if it was never played."""
        if grade not in self._stats:
            return GradeStats()
        return self._stats[grade]

    def stats_by_grade(self) -> Dict[Grade, GradeStats]:
        """Get the stats of every grade that has been played."""
        return {grade: self._stats[grade] for grade in GRADE_SELECTORS if grade in self._stats}

    def solved_ids(self, grade: Grade) -> List[str]:
        """Get the solved word ids of a grade."""
        return list(self._solved.get(grade, []))

    def is_solved(self, grade: Grade, word_id: str) -> bool:
        return word_id in self._solved.get(grade, [])

    def reward_for(self, word_length: int) -> int:
        """Get the reward points for a word of the given length."""
        if word_length >= settings.game.long_word_threshold:
            return settings.game.reward_long_word
        return settings.game.reward_short_word

    def record_win(self, grade: Grade, word_id: str, word_length: int) -> int:
        """Record a won round. Returns the reward points credited."""
        solved = self._solved.setdefault(grade, [])
        newly_solved = word_id not in solved
        if newly_solved:
            solved.append(word_id)
        stats = self._stats.setdefault(grade, GradeStats())
        stats.record_win()
        points = self.reward_for(word_length)
        self.reward_balance += points

        if newly_solved:
            self.store.save_solved(grade, solved)
        self.store.save_stats(grade, stats)
        self.store.save_reward_balance(self.reward_balance)
        monitoring.reward_points.inc(points)

        logger.info(
            "Win recorded for grade %s: word %s, streak %d (best %d), +%d points",
            grade,
            word_id,
            stats.current_streak,
            stats.best_streak,
            points,
        )
        return points

    def record_loss(self, grade: Grade) -> None:
        """Record a lost round. The word is not marked as solved."""
        stats = self._stats.setdefault(grade, GradeStats())
        stats.record_loss()
        self.store.save_stats(grade, stats)
        logger.info("Loss recorded for grade %s: %d losses", grade, stats.losses)

    def reset_grade(self, grade: Grade) -> None:
        """Forget the solved words of a grade so they can be played again."""
        self._solved[grade] = []
        self.store.save_solved(grade, [])
        if self.reset_stats_on_grade_reset and grade in self._stats:
            self._stats[grade] = GradeStats()
            self.store.save_stats(grade, self._stats[grade])
        logger.info("Grade %s reset (stats reset: %s)", grade, self.reset_stats_on_grade_reset)

    def set_current_grade(self, grade: Grade) -> None:
        """Remember the selected grade."""
        self.current_grade = grade
        self.store.save_current_grade(grade)

    async def flush(self) -> None:
        """Write deferred progress and wait until every write has finished."""
        await self.store.flush()
