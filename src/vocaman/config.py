"""Configuration settings for the game."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
WORDS_DIR = Path(os.getenv("WORDS_DIR", str(Path(__file__).parent / "data")))
SOUNDS_DIR = Path(os.getenv("SOUNDS_DIR", str(DATA_DIR / "sounds")))

# Game settings
MAX_LIVES = 6  # balloons per round
GUESS_MODES = ("free", "positional", "tiles")


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    words_dir: Path = WORDS_DIR
    sounds_dir: Path = SOUNDS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocaman.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class GameSettings:
    """Gameplay and reward settings."""
    max_lives: int = int(os.getenv("MAX_LIVES", str(MAX_LIVES)))
    reward_short_word: int = int(os.getenv("REWARD_SHORT_WORD", "10"))
    reward_long_word: int = int(os.getenv("REWARD_LONG_WORD", "20"))
    long_word_threshold: int = int(os.getenv("LONG_WORD_THRESHOLD", "5"))
    default_grade: int = int(os.getenv("DEFAULT_GRADE", "1"))
    guess_mode: str = os.getenv("GUESS_MODE", "tiles")
    reset_stats_on_grade_reset: bool = os.getenv("RESET_STATS_ON_GRADE_RESET", "false").lower() == "true"


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_game_settings() -> GameSettings:
    """Get game settings."""
    return GameSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    game: GameSettings = field(default_factory=get_game_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.game.max_lives < 1:
            raise ValueError("MAX_LIVES must be positive")

        if self.game.reward_short_word < 0 or self.game.reward_long_word < 0:
            raise ValueError("Reward points cannot be negative")

        if self.game.long_word_threshold < 1:
            raise ValueError("LONG_WORD_THRESHOLD must be positive")

        if self.game.default_grade < 1 or self.game.default_grade > 6:
            raise ValueError("DEFAULT_GRADE must be between 1 and 6")

        if self.game.guess_mode not in GUESS_MODES:
            raise ValueError(f"GUESS_MODE must be one of {', '.join(GUESS_MODES)}")


# Create global settings instance
settings = Settings()
settings.validate()
