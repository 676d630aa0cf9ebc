"""Models for game-related data structures."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

# A grade selector is one of GRADES or ALL_GRADES
Grade = Union[int, str]

GRADES: Tuple[int, ...] = (1, 2, 3, 4, 5, 6)
ALL_GRADES = "all"
GRADE_SELECTORS: Tuple[Grade, ...] = GRADES + (ALL_GRADES,)

ALL_SOLVED_ID = "ALL_SOLVED"
NO_WORDS_ID = "NO_WORDS"


def parse_grade(value: Any) -> Grade:
    """Turn a stored or typed grade ("3", 3, "all") into a grade selector."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text == ALL_GRADES:
            return ALL_GRADES
        if not text.isdigit():
            raise ValueError(f"Invalid grade: {value!r}")
        value = int(text)
    if isinstance(value, bool) or not isinstance(value, int) or value not in GRADES:
        raise ValueError(f"Invalid grade: {value!r}")
    return value


class GameStatus(Enum):
    """Status of a round."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class GuessMode(Enum):
    """How guesses are matched against the hidden word."""
    FREE = "free"  # letter may be anywhere in the word
    POSITIONAL = "positional"  # letter must be the next unrevealed one
    TILES = "tiles"  # positional, picked from shuffled letter tiles


class RoundKind(Enum):
    """Whether a round holds a real word or a placeholder."""
    WORD = "word"
    ALL_SOLVED = "all_solved"  # every word of the grade is solved
    NO_WORDS = "no_words"  # the corpus has nothing to offer


class GuessKind(Enum):
    """Outcome of a single guess."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    ROUND_WON = "round_won"
    ROUND_LOST = "round_lost"


@dataclass(frozen=True)
class Hints:
    """The two hints shown for a word."""
    hint1: str
    hint2: Optional[str] = None


@dataclass(frozen=True)
class WordEntry:
    """A word of the corpus. The word itself is kept in uppercase."""
    id: str
    word: str
    hints: Hints
    category: str
    grade: int

    def __post_init__(self):
        object.__setattr__(self, "word", self.word.strip().upper())

    def __len__(self) -> int:
        return len(self.word)


@dataclass(frozen=True)
class GuessResult:
    """Result of evaluating a guess.

    ``lives_remaining`` is filled for every kind so that callers can refresh
    the balloons without asking the session again.
    """
    kind: GuessKind
    lives_remaining: int
    letter: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in (GuessKind.ROUND_WON, GuessKind.ROUND_LOST)


@dataclass
class GradeStats:
    """Cumulative results for one grade selector."""
    wins: int = 0
    losses: int = 0
    current_streak: int = 0
    best_streak: int = 0

    def record_win(self) -> None:
        self.wins += 1
        self.current_streak += 1
        self.best_streak = max(self.best_streak, self.current_streak)

    def record_loss(self) -> None:
        self.losses += 1
        self.current_streak = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to the persisted representation."""
        return {
            "wins": self.wins,
            "losses": self.losses,
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradeStats":
        """Create an instance from the persisted representation.

        Missing counters default to 0. Raises ValueError when a counter is
        negative or not an int.
        """
        values = {}
        for attr, key in (
            ("wins", "wins"),
            ("losses", "losses"),
            ("current_streak", "currentStreak"),
            ("best_streak", "bestStreak"),
        ):
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid value for {key}: {value!r}")
            values[attr] = value
        # Keep best >= current even for hand-edited data
        values["best_streak"] = max(values["best_streak"], values["current_streak"])
        return cls(**values)


@dataclass
class DashboardRow:
    """Per-grade statistics line shown on the dashboard."""
    grade: Grade
    stats: GradeStats
    solved: int
    total: int
    is_current: bool = False
