"""
Match enums and the persisted match history tables.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Side(enum.Enum):
    """One of the two sides of the board."""
    TEAM_A = "team_a"
    TEAM_B = "team_b"

    @property
    def other(self) -> "Side":
        return Side.TEAM_B if self is Side.TEAM_A else Side.TEAM_A


class GameMode(enum.Enum):
    """
    How a match is decided.

    - POINT_RACE: games to a point threshold, first to N games wins the match
    - FIXED_ROUNDS: a fixed number of rounds, highest total wins (ties allowed)
    """
    POINT_RACE = "points"
    FIXED_ROUNDS = "rounds"


class GameType(enum.Enum):
    """Singles (1v1) or doubles (2v2). Selects the per-round bonus cap."""
    SINGLES = "singles"
    DOUBLES = "doubles"


class MatchState(enum.Enum):
    """State machine states for the match lifecycle."""
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    AWAITING_BONUS_INPUT = "awaiting_bonus_input"
    GAME_WON = "game_won"
    MATCH_WON = "match_won"
    TIED = "tied"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchState.MATCH_WON, MatchState.TIED)


class MatchOutcome(enum.Enum):
    """How a recorded match ended."""
    WON = "won"
    TIED = "tied"
    ABANDONED = "abandoned"


class MatchHistoryEntry(Base):
    """
    One finished (or abandoned) match.

    The full record lives in `payload`; the scalar columns exist for
    ordering and filtering without decoding the JSON.
    """
    __tablename__ = "match_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    match_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    mode: Mapped[GameMode] = mapped_column(SAEnum(GameMode), nullable=False)
    outcome: Mapped[MatchOutcome] = mapped_column(SAEnum(MatchOutcome), nullable=False)
    winner: Mapped[Optional[Side]] = mapped_column(SAEnum(Side), nullable=True)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<MatchHistoryEntry(id={self.id}, match_id='{self.match_id}', outcome={self.outcome.value})>"


class SessionSnapshot(Base):
    """
    Latest team and configuration state of the live session.

    Only one row is ever kept; it is overwritten after every transition.
    """
    __tablename__ = "session_snapshot"

    id: Mapped[int] = mapped_column(primary_key=True)
    state: Mapped[MatchState] = mapped_column(SAEnum(MatchState), nullable=False)
    rounds_played: Mapped[int] = mapped_column(Integer, default=0)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<SessionSnapshot(state={self.state.value}, rounds_played={self.rounds_played})>"
