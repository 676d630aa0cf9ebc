"""Tests for game and database models."""
import pytest
from sqlalchemy.orm import sessionmaker

from vocaman.models.game_models import (
    ALL_GRADES,
    GradeStats,
    GuessKind,
    GuessResult,
    Hints,
    WordEntry,
    parse_grade,
)
from vocaman.models.models import StoredValue


@pytest.mark.parametrize("value, expected", [(1, 1), ("6", 6), (" all ", ALL_GRADES), ("ALL", ALL_GRADES)])
def test_parse_grade(value, expected):
    assert parse_grade(value) == expected


@pytest.mark.parametrize("value", [0, 7, "seven", "", None, True, 2.5])
def test_parse_grade_rejects(value):
    with pytest.raises(ValueError):
        parse_grade(value)


def test_word_entry_uppercases_word():
    """Test that words are canonicalized to uppercase."""
    entry = WordEntry(id="x", word=" Cat ", hints=Hints(hint1="고양이"), category="animal", grade=1)
    assert entry.word == "CAT"
    assert len(entry) == 3
    assert entry.hints.hint2 is None


def test_guess_result_terminal():
    assert GuessResult(GuessKind.ROUND_WON, 3).is_terminal
    assert GuessResult(GuessKind.ROUND_LOST, 0).is_terminal
    assert not GuessResult(GuessKind.CORRECT, 6).is_terminal
    assert not GuessResult(GuessKind.INCORRECT, 5).is_terminal


def test_grade_stats_win_and_loss():
    """Test streak bookkeeping."""
    stats = GradeStats()
    stats.record_win()
    stats.record_win()
    assert (stats.wins, stats.current_streak, stats.best_streak) == (2, 2, 2)

    stats.record_loss()
    assert (stats.losses, stats.current_streak, stats.best_streak) == (1, 0, 2)

    stats.record_win()
    assert (stats.current_streak, stats.best_streak) == (1, 2)


def test_grade_stats_dict_round_trip():
    stats = GradeStats(wins=4, losses=2, current_streak=1, best_streak=3)
    data = stats.to_dict()
    assert data == {"wins": 4, "losses": 2, "currentStreak": 1, "bestStreak": 3}
    assert GradeStats.from_dict(data) == stats


def test_grade_stats_from_dict_defaults_and_repairs():
    """Missing counters default to 0 and best streak is never below current."""
    assert GradeStats.from_dict({}) == GradeStats()
    stats = GradeStats.from_dict({"wins": 5, "currentStreak": 4, "bestStreak": 2})
    assert stats.best_streak == 4


@pytest.mark.parametrize("data", [{"wins": -1}, {"losses": "3"}, {"bestStreak": 1.5}, {"currentStreak": True}])
def test_grade_stats_from_dict_rejects(data):
    with pytest.raises(ValueError):
        GradeStats.from_dict(data)


def test_stored_value_creation(session_factory: sessionmaker) -> None:
    """Test storing a key-value row."""
    db = session_factory()
    try:
        db.add(StoredValue(key="rewardBalance", value="30"))
        db.commit()

        row = db.get(StoredValue, "rewardBalance")
        assert row.value == "30"
        assert row.created_at is not None
        assert row.updated_at is not None
    finally:
        db.close()


if __name__ == "__main__":
    pytest.main([__file__])
