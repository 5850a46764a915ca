"""
Scorekinole Configuration

Centralized settings, paths, and constants for the application.
"""

from pathlib import Path
from dataclasses import dataclass
import appdirs


# Application info
APP_NAME = "Scorekinole"
APP_AUTHOR = "Scorekinole"
APP_VERSION = "2.1.7"

# Settings documents written by an older schema are discarded on load
SETTINGS_SCHEMA_VERSION = "2.0.0"


@dataclass(frozen=True)
class Paths:
    """Application paths."""
    # Data directory (stores database)
    data_dir: Path = Path(appdirs.user_data_dir(APP_NAME, APP_AUTHOR))

    # Config directory (stores match settings)
    config_dir: Path = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))

    # Log directory
    log_dir: Path = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))

    @property
    def database(self) -> Path:
        return self.data_dir / "scorekinole.db"

    @property
    def settings(self) -> Path:
        return self.config_dir / "settings.json"

    @property
    def exports(self) -> Path:
        return self.data_dir / "exports"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        for dir_path in [self.data_dir, self.config_dir, self.log_dir, self.exports]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class ScoringSettings:
    """Scoring limits shared by the engine and its collaborators."""
    # Maximum twenties one side can sink in a single round
    max_bonus_singles: int = 8
    max_bonus_doubles: int = 12

    # Completed matches kept in the history log (oldest evicted first)
    history_capacity: int = 10


@dataclass(frozen=True)
class TeamDefaults:
    """Names and colors given to fresh teams."""
    team_a_name: str = "Team 1"
    team_a_color: str = "#D06249"  # orange
    team_b_name: str = "Team 2"
    team_b_color: str = "#3CBCFB"  # light blue


# Singleton instances
PATHS = Paths()
SCORING_SETTINGS = ScoringSettings()
TEAM_DEFAULTS = TeamDefaults()


def init_config() -> None:
    """Initialize configuration and create required directories."""
    PATHS.ensure_directories()
