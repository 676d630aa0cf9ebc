"""Round state machine: guess evaluation, lives and win/loss."""
import logging
import random
from typing import List, Optional, Set

from vocaman import monitoring
from vocaman.config import settings
from vocaman.exceptions import InvalidGuessError, RoundNotActiveError
from vocaman.models.game_models import (
    ALL_SOLVED_ID,
    NO_WORDS_ID,
    GameStatus,
    Grade,
    GuessKind,
    GuessMode,
    GuessResult,
    Hints,
    RoundKind,
    WordEntry,
)
from vocaman.services.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)

ALL_SOLVED_MESSAGE = "Congratulations! You solved every word."
NO_WORDS_MESSAGE = "No word data is available."


class GameSession:
    """One round of guessing a single word.

    A round starts in PLAYING and ends in WON or LOST; both are terminal.
    Guesses are evaluated synchronously. The progress tracker is notified
    exactly once, from finalize_win() or finalize_loss().
    """

    def __init__(
        self,
        word: WordEntry,
        grade: Grade,
        mode: GuessMode = GuessMode.FREE,
        tracker: Optional[ProgressTracker] = None,
        max_lives: Optional[int] = None,
        kind: RoundKind = RoundKind.WORD,
        rng: Optional[random.Random] = None,
    ):
        self.grade = grade
        self.mode = mode
        self.tracker = tracker
        self.max_lives = max_lives if max_lives is not None else settings.game.max_lives
        self.kind = kind
        self.rng = rng or random.Random()
        self.points_earned = 0
        self._start_round(word)

    @classmethod
    def all_solved(cls, grade: Grade, mode: GuessMode = GuessMode.FREE, **kwargs) -> "GameSession":
        """Create the pseudo-round shown once every word of a grade is solved."""
        word = WordEntry(
            id=ALL_SOLVED_ID,
            word="",
            hints=Hints(hint1=ALL_SOLVED_MESSAGE),
            category="Congratulations",
            grade=grade if isinstance(grade, int) else 0,
        )
        return cls(word, grade, mode, kind=RoundKind.ALL_SOLVED, **kwargs)

    @classmethod
    def no_words(cls, grade: Grade, mode: GuessMode = GuessMode.FREE, **kwargs) -> "GameSession":
        """Create the error pseudo-round used when no word can be loaded."""
        word = WordEntry(
            id=NO_WORDS_ID,
            word="",
            hints=Hints(hint1=NO_WORDS_MESSAGE),
            category="Error",
            grade=grade if isinstance(grade, int) else 0,
        )
        session = cls(word, grade, mode, kind=RoundKind.NO_WORDS, **kwargs)
        session.lives_remaining = 0
        return session

    def _start_round(self, word: WordEntry) -> None:
        """Set up a fresh round for ``word``. A new round is a new session."""
        self.word = word
        self.lives_remaining = self.max_lives
        self.attempted_letters: List[str] = []
        self.wrong_letters: List[str] = []
        self.revealed: Set[str] = set()
        self.correct_positions = 0
        self.status = GameStatus.PLAYING
        self._finalized = False

        self.tiles: List[str] = []
        if self.mode == GuessMode.TILES:
            self.tiles = list(word.word)
            self.rng.shuffle(self.tiles)  # Fisher-Yates

        if self.kind == RoundKind.WORD:
            monitoring.rounds_started.labels(grade=str(self.grade)).inc()
            logger.info("Round started for grade %s: word id %s, mode %s", self.grade, word.id, self.mode.value)
        else:
            logger.info("Placeholder round %s for grade %s", self.kind.value, self.grade)

    @property
    def hints(self) -> Hints:
        return self.word.hints

    @property
    def is_active(self) -> bool:
        """Whether the round accepts guesses."""
        return self.kind == RoundKind.WORD and self.status == GameStatus.PLAYING

    @property
    def is_solved(self) -> bool:
        if not self.word.word:
            return False
        if self.mode == GuessMode.FREE:
            return set(self.word.word) <= self.revealed
        return self.correct_positions >= len(self.word.word)

    def masked_word(self, mask: str = "_") -> str:
        """Get the word with unrevealed letters replaced by ``mask``."""
        if self.mode == GuessMode.FREE:
            return "".join(c if c in self.revealed else mask for c in self.word.word)
        return "".join(
            c if i < self.correct_positions else mask for i, c in enumerate(self.word.word)
        )

    def _check_playable(self) -> None:
        if self.kind != RoundKind.WORD:
            raise RoundNotActiveError(f"Round is a {self.kind.value} placeholder")

    @staticmethod
    def _normalize_letter(letter: str) -> str:
        if not isinstance(letter, str) or len(letter.strip()) != 1 or not letter.strip().isalpha():
            raise InvalidGuessError(f"A guess must be a single letter, got {letter!r}")
        return letter.strip().upper()

    def _terminal_result(self, letter: Optional[str] = None) -> GuessResult:
        kind = GuessKind.ROUND_WON if self.status == GameStatus.WON else GuessKind.ROUND_LOST
        return GuessResult(kind=kind, lives_remaining=self.lives_remaining, letter=letter)

    def evaluate_guess(self, letter: str) -> GuessResult:
        """Evaluate one guessed letter.

        Raises InvalidGuessError for anything but a single letter and
        RoundNotActiveError for placeholder rounds. Guesses after the round
        has ended change nothing and repeat the final result.
        """
        self._check_playable()
        letter = self._normalize_letter(letter)
        if self.status != GameStatus.PLAYING:
            return self._terminal_result(letter)

        self.attempted_letters.append(letter)
        if self.mode == GuessMode.FREE:
            correct = self._guess_free(letter)
        else:
            correct = self._guess_positional(letter)

        if correct:
            result = self._after_correct(letter)
        else:
            result = self._after_wrong(letter)
        monitoring.guesses.labels(kind=result.kind.value).inc()
        return result

    def pick_tile(self, index: int) -> GuessResult:
        """Evaluate the letter tile at ``index`` of the remaining tiles."""
        self._check_playable()
        if self.mode != GuessMode.TILES:
            raise RoundNotActiveError("Letter tiles are only used in tiles mode")
        if self.status != GameStatus.PLAYING:
            return self._terminal_result()
        if not 0 <= index < len(self.tiles):
            raise InvalidGuessError(f"No tile at position {index}")

        letter = self.tiles[index]
        self.attempted_letters.append(letter)
        if self._guess_positional(letter, tile_index=index):
            result = self._after_correct(letter)
        else:
            result = self._after_wrong(letter)
        monitoring.guesses.labels(kind=result.kind.value).inc()
        return result

    def submit_answer(self, answer: str) -> GuessResult:
        """Evaluate a whole-word answer. A wrong answer costs one life."""
        self._check_playable()
        text = answer.strip().upper() if isinstance(answer, str) else ""
        if not text.isalpha():
            raise InvalidGuessError(f"An answer must be a word, got {answer!r}")
        if self.status != GameStatus.PLAYING:
            return self._terminal_result()

        if text == self.word.word:
            self.revealed = set(self.word.word)
            self.correct_positions = len(self.word.word)
            self.tiles = []
            result = self._after_correct(None)
        else:
            result = self._after_wrong(None)
        monitoring.guesses.labels(kind=result.kind.value).inc()
        return result

    def _guess_free(self, letter: str) -> bool:
        if letter in self.word.word:
            # Repeating a revealed letter is a no-op
            self.revealed.add(letter)
            return True
        return False

    def _guess_positional(self, letter: str, tile_index: Optional[int] = None) -> bool:
        if self.correct_positions >= len(self.word.word):
            return False
        if letter != self.word.word[self.correct_positions]:
            return False
        self.correct_positions += 1
        if self.mode == GuessMode.TILES:
            if tile_index is not None:
                del self.tiles[tile_index]
            elif letter in self.tiles:
                self.tiles.remove(letter)
        return True

    def _after_correct(self, letter: Optional[str]) -> GuessResult:
        if self.is_solved:
            self.finalize_win()
            return GuessResult(kind=GuessKind.ROUND_WON, lives_remaining=self.lives_remaining, letter=letter)
        return GuessResult(kind=GuessKind.CORRECT, lives_remaining=self.lives_remaining, letter=letter)

    def _after_wrong(self, letter: Optional[str]) -> GuessResult:
        self.lives_remaining = max(self.lives_remaining - 1, 0)
        if letter is not None:
            self.wrong_letters.append(letter)
        logger.debug("Wrong guess %r, %d lives remaining", letter, self.lives_remaining)
        if self.lives_remaining == 0:
            self.finalize_loss()
            return GuessResult(kind=GuessKind.ROUND_LOST, lives_remaining=0, letter=letter)
        return GuessResult(kind=GuessKind.INCORRECT, lives_remaining=self.lives_remaining, letter=letter)

    def finalize_win(self) -> bool:
        """End the round as won and notify the tracker.

        Returns False without changing anything if the round was already
        finalized, is a placeholder, or the word is not solved yet.
        """
        if self._finalized or self.kind != RoundKind.WORD:
            logger.warning("Ignoring finalize_win on a finished or placeholder round")
            return False
        if not self.is_solved:
            logger.warning("Ignoring finalize_win before word %s is solved", self.word.id)
            return False

        self._finalized = True
        self.status = GameStatus.WON
        if self.tracker is not None:
            self.points_earned = self.tracker.record_win(self.grade, self.word.id, len(self.word))
        monitoring.rounds_finished.labels(grade=str(self.grade), outcome="won").inc()
        logger.info("Round won: word id %s, %d lives left", self.word.id, self.lives_remaining)
        return True

    def finalize_loss(self) -> bool:
        """End the round as lost and notify the tracker.

        Can also be called while lives remain, when the player gives up.
        Returns False if the round was already finalized or is a placeholder.
        """
        if self._finalized or self.kind != RoundKind.WORD:
            logger.warning("Ignoring finalize_loss on a finished or placeholder round")
            return False

        self._finalized = True
        self.status = GameStatus.LOST
        if self.tracker is not None:
            self.tracker.record_loss(self.grade)
        monitoring.rounds_finished.labels(grade=str(self.grade), outcome="lost").inc()
        logger.info("Round lost: word id %s", self.word.id)
        return True
