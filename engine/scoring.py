"""
Scoring Engine - Qt front for the crokinole match orchestrator.

The ScoringEngine owns one MatchSession, forwards every operator action
to engine.orchestrator, and turns the results into Qt Signals so GUI
layers can react without polling.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal
from sqlalchemy.exc import SQLAlchemyError

from models.match import MatchState, Side
from models.schemas import MatchConfiguration, SessionState
from engine import orchestrator
from engine.orchestrator import ScoreResult
from engine.session import MatchSession, new_session
from engine.team import TeamPair

logger = logging.getLogger(__name__)


class ScoringEngine(QObject):
    """
    Core scoring controller for one scoreboard.
    Emits Qt Signals so GUI layers can react without polling.

    Persistence is optional: with a MatchStorage attached, the session
    snapshot is saved after every accepted action and finished matches
    are appended to the history.
    """

    # Signals
    score_updated = Signal(object)          # SessionState
    round_completed = Signal(object)        # RoundRecord
    bonus_requested = Signal(object)        # Side whose bonus is asked for
    game_won = Signal(object)               # GameRecord
    match_completed = Signal(object)        # MatchRecord
    hammer_changed = Signal(object)         # Side holding the hammer, or None
    state_changed = Signal(str)             # new state name
    action_rejected = Signal(str)           # GuardReason value
    storage_error = Signal(str)             # error message

    def __init__(self, configuration: Optional[MatchConfiguration] = None,
                 storage=None, session: Optional[MatchSession] = None):
        """
        Initialize the scoring engine.

        Args:
            configuration: Settings for the first match (ignored if session is given)
            storage: Optional MatchStorage for snapshots and history
            session: Existing session to drive, mainly for tests
        """
        super().__init__()
        self._session = session or new_session(configuration)
        self._storage = storage
        self._announced_match_id: Optional[str] = None

    @property
    def session(self) -> MatchSession:
        return self._session

    @property
    def state(self) -> MatchState:
        """Current state of the match."""
        return self._session.state

    @property
    def configuration(self) -> MatchConfiguration:
        return self._session.configuration

    @property
    def teams(self) -> TeamPair:
        return self._session.teams

    def get_state(self) -> SessionState:
        """Get the current session snapshot."""
        return orchestrator.get_state(self._session)

    # ============ Operator Actions ============

    def add_points(self, side: Side, delta: int = 1) -> ScoreResult:
        """Add points to a side. Closing a round may request bonus input."""
        return self._dispatch(orchestrator.apply_score, side, delta)

    def correct_score(self, side: Side, amount: int = 1) -> ScoreResult:
        """Take points back from a side, never below zero."""
        return self._dispatch(orchestrator.correct_score, side, amount)

    def submit_bonus(self, side: Side, amount: int) -> ScoreResult:
        """Enter the twenties a side sank in the round just completed."""
        return self._dispatch(orchestrator.submit_bonus, side, amount)

    def select_starting_team(self, side: Side) -> ScoreResult:
        """Pick the side that shoots first; the other side takes the hammer."""
        return self._dispatch(orchestrator.select_starting_team, side)

    def reset_game(self) -> ScoreResult:
        """Start the next game of a point-race match."""
        return self._dispatch(orchestrator.reset_game)

    def reset_match(self) -> ScoreResult:
        """Clear the board. A worthwhile match is kept in the history."""
        return self._dispatch(orchestrator.reset_match)

    def update_configuration(self, configuration: MatchConfiguration) -> ScoreResult:
        """Apply new settings; the current match is closed out first."""
        return self._dispatch(orchestrator.update_configuration, configuration)

    def rename_team(self, side: Side, name: Optional[str] = None,
                    color: Optional[str] = None) -> ScoreResult:
        """Change a side's name and/or color."""
        return self._dispatch(orchestrator.rename_team, side, name, color)

    # ============ Internals ============

    def _dispatch(self, operation, *args) -> ScoreResult:
        previous_state = self._session.state
        previous_holder = self._session.hammer.holder

        result = operation(self._session, *args)

        if not result.accepted:
            self.action_rejected.emit(result.rejected.value)
            return result

        self._persist(result)
        self._emit_result(result, previous_state, previous_holder)
        return result

    def _emit_result(self, result: ScoreResult, previous_state: MatchState,
                     previous_holder: Optional[Side]) -> None:
        if result.state.state != previous_state:
            self.state_changed.emit(result.state.state.value)
        if self._session.hammer.holder != previous_holder:
            self.hammer_changed.emit(self._session.hammer.holder)

        if result.round_record is not None:
            self.round_completed.emit(result.round_record)
        if result.bonus_required:
            self.bonus_requested.emit(result.state.bonus_pending_for)
        if result.game_record is not None:
            self.game_won.emit(result.game_record)
        record = result.match_record
        if record is not None and record.match_id != self._announced_match_id:
            # A decided match comes back again from reset_match
            self._announced_match_id = record.match_id
            self.match_completed.emit(record)

        self.score_updated.emit(result.state)

    def _persist(self, result: ScoreResult) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_snapshot(result.state)
            if result.match_record is not None:
                self._storage.append_match(result.match_record)
        except SQLAlchemyError as e:
            logger.exception("Could not persist match state")
            self.storage_error.emit(str(e))
