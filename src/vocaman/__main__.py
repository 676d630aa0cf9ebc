"""Main entry point: play the game in a terminal."""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from vocaman.config import ensure_directories, settings
from vocaman.exceptions import VocaManError
from vocaman.logging_config import setup_logging
from vocaman.models.base import init_db
from vocaman.models.game_models import ALL_GRADES, GameStatus, GuessKind, GuessMode, RoundKind
from vocaman.monitoring import start_monitoring
from vocaman.services.game_service import GameService
from vocaman.services.key_value_store import SqlKeyValueStore
from vocaman.services.progress_store import ProgressStore
from vocaman.services.progress_tracker import ProgressTracker
from vocaman.services.sound_service import SoundBank
from vocaman.services.word_corpus import WordCorpus
from vocaman.services.word_pool import WordPool

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Type a letter to guess it, a tile number to pick a tile, '=WORD' to answer,\n"
    "':next', ':grade N|all', ':reset', ':stats', ':giveup' or ':quit'."
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vocaman", description="Guess the hidden word before the balloons pop.")
    parser.add_argument("--grade", help="grade to play: 1-6 or 'all'")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in GuessMode],
        default=settings.game.guess_mode,
        help="how letters are guessed",
    )
    parser.add_argument("--log-level", default=None, help="logging level, e.g. DEBUG")
    return parser.parse_args(argv)


def render(service: GameService) -> str:
    """Render the current round as text."""
    session = service.session
    stats = service.stats
    lines = [
        f"Grade {service.grade} | wins {stats.wins} losses {stats.losses} "
        f"streak {stats.current_streak} best {stats.best_streak} | points {service.reward_balance}",
    ]
    if session.kind != RoundKind.WORD:
        lines.append(session.hints.hint1)
        return "\n".join(lines)

    lines.append("Balloons: " + ("o " * session.lives_remaining or "*pop*"))
    lines.append("Word:  " + " ".join(session.masked_word()))
    lines.append(f"Hint 1: {session.hints.hint1}")
    if session.hints.hint2:
        lines.append(f"Hint 2: {session.hints.hint2}")
    if session.wrong_letters:
        lines.append("Wrong: " + ", ".join(session.wrong_letters))
    if session.mode == GuessMode.TILES and session.tiles:
        lines.append("Tiles: " + "  ".join(f"{i + 1}:{c}" for i, c in enumerate(session.tiles)))
    return "\n".join(lines)


def render_dashboard(service: GameService) -> str:
    rows = service.dashboard()
    if not rows:
        return "No games played yet."
    lines = []
    for row in rows:
        name = "All grades" if row.grade == ALL_GRADES else f"Grade {row.grade}"
        marker = " (current)" if row.is_current else ""
        lines.append(
            f"{name}{marker}: wins {row.stats.wins}, losses {row.stats.losses}, "
            f"best streak {row.stats.best_streak}, solved {row.solved}/{row.total}"
        )
    return "\n".join(lines)


def handle_command(service: GameService, text: str) -> Optional[str]:
    """Apply one line of input. Returns a message to show, or None to quit."""
    session = service.session
    if text.startswith(":"):
        command, _, arg = text[1:].partition(" ")
        if command == "quit":
            return None
        if command == "next":
            service.next_round()
            return ""
        if command == "grade":
            service.change_grade(arg)
            return ""
        if command == "reset":
            service.reset_grade()
            return "Starting over!"
        if command == "stats":
            return render_dashboard(service)
        if command == "giveup":
            service.give_up()
            return f"The word was {session.word.word}."
        return HELP_TEXT

    if session.kind == RoundKind.ALL_SOLVED:
        service.next_round()
        return "Starting over!"

    if text.startswith("="):
        result = service.answer(text[1:])
    elif text.isdigit() and session.mode == GuessMode.TILES:
        result = service.pick_tile(int(text) - 1)
    else:
        result = service.guess(text)

    if result.kind == GuessKind.ROUND_WON:
        return f"You got it: {session.word.word}! +{session.points_earned} points. ':next' for another word."
    if result.kind == GuessKind.ROUND_LOST:
        return f"All balloons popped. The word was {session.word.word}. ':next' to try another."
    if result.kind == GuessKind.INCORRECT:
        return "Pop! Try again."
    return "Nice!"


async def play(service: GameService, grade: Optional[str] = None) -> None:
    """Read commands from stdin until the player quits."""
    await service.start(grade)
    print(HELP_TEXT)
    while True:
        print()
        print(render(service))
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        text = line.strip()
        if not text:
            if service.session.status != GameStatus.PLAYING or service.session.kind != RoundKind.WORD:
                service.next_round()
            continue
        try:
            message = handle_command(service, text)
        except VocaManError as e:
            message = str(e)
        except ValueError as e:
            message = f"Invalid input: {e}"
        if message is None:
            break
        if message:
            print(message)


async def main(argv: Optional[List[str]] = None) -> None:
    """Run the game."""
    args = parse_args(argv)
    setup_logging("Starting VocaMan ...", level=args.log_level)

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info("Metrics exposed on port %d", settings.monitoring.port)

    init_db()
    tracker = ProgressTracker(ProgressStore(SqlKeyValueStore()))
    pool = WordPool(WordCorpus())

    async with SoundBank() as sounds:
        service = GameService(pool, tracker, sounds=sounds, mode=GuessMode(args.mode))
        try:
            await play(service, args.grade)
        finally:
            logger.info("Cleaning up...")
            await service.close()


def run() -> None:
    """Console script entry point."""
    ensure_directories()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")


if __name__ == "__main__":
    run()
