"""
Event Bus - Central signal hub for inter-module communication.

All modules connect to this single object rather than directly to each other,
enabling loose coupling between the scoring engine, storage, and displays.
"""

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """
    Central signal hub for Scorekinole.

    The EventBus acts as a mediator between all application components:
    - ScoringEngine emits scoring events
    - Scoreboard displays listen and update
    - The application controller announces history and settings changes

    Usage:
        # In the application controller
        engine.round_completed.connect(self.event_bus.round_completed.emit)

        # In a scoreboard display
        self.event_bus.score_updated.connect(self._on_score_updated)
    """

    # ============ Match Lifecycle ============
    match_completed = Signal(object)        # MatchRecord
    configuration_changed = Signal(object)  # MatchConfiguration

    # ============ Game Lifecycle ============
    game_won = Signal(object)               # GameRecord

    # ============ Round Lifecycle ============
    round_completed = Signal(object)        # RoundRecord
    bonus_requested = Signal(object)        # Side asked for bonus input

    # ============ Scoring Events ============
    score_updated = Signal(object)          # SessionState
    hammer_changed = Signal(object)         # Side or None
    state_changed = Signal(str)             # MatchState value
    action_rejected = Signal(str)           # GuardReason value

    # ============ History ============
    history_changed = Signal()

    # ============ System Events ============
    database_error = Signal(str)            # Database error message
    system_message = Signal(str, str)       # (level, message) - e.g., ("info", "Match saved")

    def __init__(self):
        super().__init__()

    def emit_message(self, level: str, message: str) -> None:
        """Emit a system message (info, warning, error)."""
        self.system_message.emit(level, message)
