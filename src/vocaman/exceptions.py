"""Exceptions raised by the game core."""


class VocaManError(Exception):
    """Base class for game errors."""


class NoWordsAvailableError(VocaManError):
    """The corpus has no words for the requested grade."""

    def __init__(self, grade):
        super().__init__(f"No words available for grade {grade}")
        self.grade = grade


class PoolExhaustedError(VocaManError):
    """Every word of the requested grade is already solved."""

    def __init__(self, grade, total: int):
        super().__init__(f"All {total} words of grade {grade} are solved")
        self.grade = grade
        self.total = total


class InvalidGuessError(VocaManError, ValueError):
    """A guess is not a single letter."""


class RoundNotActiveError(VocaManError):
    """The current round does not accept guesses."""
