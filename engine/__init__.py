"""
Scorekinole Game Engine

Core crokinole scoring logic. Everything except ScoringEngine is plain
Python; ScoringEngine adds the Qt signal layer.
"""

from engine.errors import (
    ScoringError, InvalidInputError, InvalidDeltaError, UnknownTeamError,
    InvalidBonusError, BonusOutOfTurnError, CorruptedBonusError,
)
from engine.team import Team, TeamPair
from engine.rounds import RoundDetector, RoundSignal, detect_round
from engine.hammer import HammerAllocator
from engine.rules import RulesEngine
from engine.bonus import BonusIntake, Continuation
from engine.history import HistoryRecorder
from engine.session import MatchSession, new_session
from engine.orchestrator import (
    GuardReason, ScoreResult,
    apply_score, correct_score, submit_bonus, select_starting_team,
    reset_game, reset_match, get_state, update_configuration, rename_team,
)
from engine.scoring import ScoringEngine

__all__ = [
    "ScoringError",
    "InvalidInputError",
    "InvalidDeltaError",
    "UnknownTeamError",
    "InvalidBonusError",
    "BonusOutOfTurnError",
    "CorruptedBonusError",
    "Team",
    "TeamPair",
    "RoundDetector",
    "RoundSignal",
    "detect_round",
    "HammerAllocator",
    "RulesEngine",
    "BonusIntake",
    "Continuation",
    "HistoryRecorder",
    "MatchSession",
    "new_session",
    "GuardReason",
    "ScoreResult",
    "apply_score",
    "correct_score",
    "submit_bonus",
    "select_starting_team",
    "reset_game",
    "reset_match",
    "get_state",
    "update_configuration",
    "rename_team",
    "ScoringEngine",
]
