"""Service tying word pools, rounds, progress and sounds together."""
import logging
import random
from typing import List, Optional

from vocaman.config import settings
from vocaman.exceptions import NoWordsAvailableError, PoolExhaustedError
from vocaman.models.game_models import (
    DashboardRow,
    Grade,
    GradeStats,
    GuessKind,
    GuessMode,
    GuessResult,
    RoundKind,
    WordEntry,
    parse_grade,
)
from vocaman.services.game_session import GameSession
from vocaman.services.progress_tracker import ProgressTracker
from vocaman.services.sound_service import SoundBank, SoundCue
from vocaman.services.word_pool import WordPool

logger = logging.getLogger(__name__)

RESULT_SOUNDS = {
    GuessKind.CORRECT: SoundCue.CORRECT,
    GuessKind.INCORRECT: SoundCue.WRONG,
    GuessKind.ROUND_WON: SoundCue.SUCCESS,
    GuessKind.ROUND_LOST: SoundCue.FAIL,
}


class GameService:
    """Service driving a play session for the presentation layer.

    When every word of a grade is solved the player gets an all-solved
    round; asking for the next round from there clears the grade's solved
    words and starts over with the full pool.
    """

    def __init__(
        self,
        pool: WordPool,
        tracker: ProgressTracker,
        sounds: Optional[SoundBank] = None,
        mode: Optional[GuessMode] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the service with its collaborators."""
        self.pool = pool
        self.tracker = tracker
        self.sounds = sounds
        self.mode = mode or GuessMode(settings.game.guess_mode)
        self.rng = rng or random.Random()
        self.grade: Grade = settings.game.default_grade
        self.session: Optional[GameSession] = None
        self._candidates: List[WordEntry] = []

    async def start(self, grade=None) -> GameSession:
        """Load saved progress and start a round.

        Plays ``grade`` when given, else the saved grade, else the default.
        """
        await self.tracker.load()
        if grade is not None:
            return self.change_grade(grade)
        grade = self.tracker.current_grade
        if grade is None:
            grade = settings.game.default_grade
        return self._activate_grade(grade)

    def change_grade(self, grade) -> GameSession:
        """Switch to another grade and start a round there."""
        return self._activate_grade(parse_grade(grade))

    def _activate_grade(self, grade: Grade) -> GameSession:
        candidates = self.pool.load_candidates(grade)
        fallback = settings.game.default_grade
        if not candidates and grade != fallback:
            logger.warning("No words for grade %s, falling back to grade %s", grade, fallback)
            grade = fallback
            candidates = self.pool.load_candidates(grade)

        self.grade = grade
        self._candidates = candidates
        self.tracker.set_current_grade(grade)
        logger.info("Grade set to %s with %d words", grade, len(candidates))
        return self._start_round()

    def _start_round(self) -> GameSession:
        try:
            word = self.pool.choose_word(
                self._candidates,
                self.tracker.solved_ids(self.grade),
                self.grade,
                rng=self.rng,
            )
        except PoolExhaustedError:
            self.session = GameSession.all_solved(self.grade, self.mode, tracker=self.tracker)
        except NoWordsAvailableError:
            logger.error("No words available for grade %s, showing error round", self.grade)
            self.session = GameSession.no_words(self.grade, self.mode, tracker=self.tracker)
        else:
            self.session = GameSession(word, self.grade, self.mode, tracker=self.tracker, rng=self.rng)
        return self.session

    def next_round(self) -> GameSession:
        """Start the next round; an unfinished round is abandoned."""
        if self.session is not None and self.session.kind == RoundKind.ALL_SOLVED:
            self.tracker.reset_grade(self.grade)
        return self._start_round()

    def reset_grade(self) -> GameSession:
        """Start the current grade over with a new word.

        Solved words are only cleared once every word of the grade is
        solved; otherwise they keep being skipped.
        """
        if self._pool_exhausted():
            self.tracker.reset_grade(self.grade)
        return self._start_round()

    def _pool_exhausted(self) -> bool:
        if not self._candidates:
            return False
        solved = self.pool.count_solved(self._candidates, self.tracker.solved_ids(self.grade))
        return solved >= len(self._candidates)

    def _require_session(self) -> GameSession:
        if self.session is None:
            raise RuntimeError("No round started; call start() first")
        return self.session

    def _feedback(self, result: GuessResult) -> GuessResult:
        if self.sounds is not None:
            self.sounds.play(RESULT_SOUNDS[result.kind])
        return result

    def guess(self, letter: str) -> GuessResult:
        """Evaluate a letter typed on the keyboard."""
        return self._feedback(self._require_session().evaluate_guess(letter))

    def pick_tile(self, index: int) -> GuessResult:
        """Evaluate a picked letter tile."""
        return self._feedback(self._require_session().pick_tile(index))

    def answer(self, text: str) -> GuessResult:
        """Evaluate a whole-word answer."""
        return self._feedback(self._require_session().submit_answer(text))

    def give_up(self) -> bool:
        """End the current round as lost."""
        session = self._require_session()
        if not session.finalize_loss():
            return False
        if self.sounds is not None:
            self.sounds.play(SoundCue.FAIL)
        return True

    @property
    def stats(self) -> GradeStats:
        return self.tracker.stats(self.grade)

    @property
    def reward_balance(self) -> int:
        return self.tracker.reward_balance

    def dashboard(self) -> List[DashboardRow]:
        """Get one row per played grade."""
        rows = []
        for grade, stats in self.tracker.stats_by_grade().items():
            candidates = self.pool.load_candidates(grade)
            rows.append(
                DashboardRow(
                    grade=grade,
                    stats=stats,
                    solved=self.pool.count_solved(candidates, self.tracker.solved_ids(grade)),
                    total=len(candidates),
                    is_current=grade == self.grade,
                )
            )
        return rows

    async def close(self) -> None:
        """Wait for pending progress writes."""
        await self.tracker.flush()
