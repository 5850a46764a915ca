"""
Scorekinole Models

Enums, SQLAlchemy tables, and pydantic schemas for the scoring system.
"""

from models.base import Base, get_session, get_session_factory, create_db_engine, create_session_factory, init_db
from models.match import (
    Side, GameMode, GameType, MatchState, MatchOutcome,
    MatchHistoryEntry, SessionSnapshot,
)
from models.schemas import (
    MatchConfiguration, SettingsDocument, TeamSnapshot, TeamState,
    RoundSide, RoundRecord, GameSide, GameRecord, MatchRecord, SessionState,
)

__all__ = [
    "Base",
    "get_session",
    "get_session_factory",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "Side",
    "GameMode",
    "GameType",
    "MatchState",
    "MatchOutcome",
    "MatchHistoryEntry",
    "SessionSnapshot",
    "MatchConfiguration",
    "SettingsDocument",
    "TeamSnapshot",
    "TeamState",
    "RoundSide",
    "RoundRecord",
    "GameSide",
    "GameRecord",
    "MatchRecord",
    "SessionState",
]
