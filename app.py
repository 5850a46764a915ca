"""
Scorekinole Application Controller

Top-level controller that wires together all application components.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QObject

from services.event_bus import EventBus
from services.storage import MatchStorage
from services.settings import SettingsStore
from engine.scoring import ScoringEngine
from engine.session import new_session
from engine.team import Team, TeamPair
from models.base import init_db
from models.schemas import MatchConfiguration, MatchRecord

logger = logging.getLogger(__name__)


class ScorekinoleApp(QObject):
    """
    Top-level application controller.
    Wires together the scoring engine, storage, settings, and event bus.
    """

    def __init__(self, storage: Optional[MatchStorage] = None,
                 settings: Optional[SettingsStore] = None):
        super().__init__()

        # Core services
        self.event_bus = EventBus()
        if storage is None:
            init_db()
            storage = MatchStorage()
        self.storage = storage
        self.settings = settings or SettingsStore()

        configuration = self.settings.load()
        self.scoring_engine = ScoringEngine(
            storage=self.storage,
            session=new_session(configuration, teams=self._restore_teams()),
        )

        # Wire up signals to event bus
        engine = self.scoring_engine
        engine.score_updated.connect(self.event_bus.score_updated.emit)
        engine.round_completed.connect(self.event_bus.round_completed.emit)
        engine.bonus_requested.connect(self.event_bus.bonus_requested.emit)
        engine.game_won.connect(self.event_bus.game_won.emit)
        engine.match_completed.connect(self.event_bus.match_completed.emit)
        engine.hammer_changed.connect(self.event_bus.hammer_changed.emit)
        engine.state_changed.connect(self.event_bus.state_changed.emit)
        engine.action_rejected.connect(self.event_bus.action_rejected.emit)
        engine.storage_error.connect(self.event_bus.database_error.emit)

        engine.match_completed.connect(lambda _record: self.event_bus.history_changed.emit())

    def _restore_teams(self) -> TeamPair:
        """Team names and colors from the last session, scores start fresh."""
        snapshot = self.storage.load_snapshot()
        if snapshot is None:
            return TeamPair()
        return TeamPair(
            team_a=Team(name=snapshot.team_a.name, color=snapshot.team_a.color),
            team_b=Team(name=snapshot.team_b.name, color=snapshot.team_b.color),
        )

    # ============ Settings ============

    def update_settings(self, configuration: MatchConfiguration) -> None:
        """Save new settings and start a new match under them."""
        self.settings.save(configuration)
        self.scoring_engine.update_configuration(configuration)
        self.event_bus.configuration_changed.emit(configuration)

    # ============ History ============

    def history(self) -> list[MatchRecord]:
        """Stored matches, newest first."""
        return self.storage.list_matches()

    def delete_match(self, match_id: str) -> bool:
        deleted = self.storage.delete_match(match_id)
        if deleted:
            self.event_bus.history_changed.emit()
        return deleted

    def clear_history(self) -> int:
        removed = self.storage.clear_history()
        self.event_bus.history_changed.emit()
        self.event_bus.emit_message("info", f"Removed {removed} match(es) from history")
        return removed

    def export_scoresheet(self, match_id: str, filepath: Union[str, Path],
                          format: str = "pdf") -> bool:
        """
        Export a stored match as a scoresheet.

        Args:
            match_id: Id of the match in the history
            filepath: Output file path
            format: "pdf" or "csv"

        Returns:
            True if export successful
        """
        from services.export import ScoresheetExporter

        record = self.storage.get_match(match_id)
        if record is None:
            logger.warning("Cannot export unknown match %s", match_id)
            return False

        exporter = ScoresheetExporter()

        if format == "pdf":
            return exporter.export_pdf(record, filepath)
        elif format == "csv":
            return exporter.export_csv(record, filepath)

        return False
