"""
Pydantic schemas for data validation.

Match configuration, the immutable history records produced by the
engine, and the read-only state snapshot handed to renderers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import SETTINGS_SCHEMA_VERSION, TEAM_DEFAULTS
from models.match import GameMode, GameType, MatchOutcome, MatchState, Side


# ============ Configuration Schemas ============

class MatchConfiguration(BaseModel):
    """
    Settings for one match. Immutable for the lifetime of the match.

    Point-race fields are ignored in FIXED_ROUNDS mode and vice versa.
    """
    model_config = ConfigDict(frozen=True)

    mode: GameMode = GameMode.FIXED_ROUNDS
    points_to_win: int = Field(default=7, ge=1)
    min_points_difference: int = Field(default=2, ge=0)
    games_to_win_match: int = Field(default=1, ge=1)
    rounds_to_play: int = Field(default=4, ge=1)
    track_bonus: bool = False
    track_hammer: bool = False
    game_type: GameType = GameType.SINGLES

    # Display metadata, copied into the history record
    event_title: str = Field(default="", max_length=200)
    match_phase: str = Field(default="", max_length=100)

    @property
    def is_point_race(self) -> bool:
        return self.mode == GameMode.POINT_RACE


class SettingsDocument(BaseModel):
    """The settings file as written to disk."""
    schema_version: str = SETTINGS_SCHEMA_VERSION
    configuration: MatchConfiguration = Field(default_factory=MatchConfiguration)


# ============ Team Schemas ============

class TeamSnapshot(BaseModel):
    """Identity of a team as shown in the history."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=200)
    color: str = Field(default=TEAM_DEFAULTS.team_a_color, pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class TeamState(BaseModel):
    """Scoring state of one team at a point in time."""
    model_config = ConfigDict(frozen=True)

    name: str
    color: str
    points: int = Field(default=0, ge=0)
    bonus_count: int = Field(default=0, ge=0)
    games_won: int = Field(default=0, ge=0)
    has_won: bool = False
    has_hammer: bool = False


# ============ History Records ============

class RoundSide(BaseModel):
    """One side of a completed round."""
    model_config = ConfigDict(frozen=True)

    points_after_round: int = Field(..., ge=0)
    bonus_this_round: int = Field(default=0, ge=0)
    had_hammer: bool = False


class RoundRecord(BaseModel):
    """A completed round."""
    model_config = ConfigDict(frozen=True)

    round_number: int = Field(..., ge=1)
    team_a: RoundSide
    team_b: RoundSide

    def for_side(self, side: Side) -> RoundSide:
        return self.team_a if side == Side.TEAM_A else self.team_b


class GameSide(BaseModel):
    """One side of a finished game."""
    model_config = ConfigDict(frozen=True)

    final_points: int = Field(..., ge=0)
    bonus_total: int = Field(default=0, ge=0)
    had_hammer_at_game_start: bool = False


class GameRecord(BaseModel):
    """A finished game of a point-race match."""
    model_config = ConfigDict(frozen=True)

    game_number: int = Field(..., ge=1)
    rounds: tuple[RoundRecord, ...] = ()
    team_a: GameSide
    team_b: GameSide
    winner: Side

    def for_side(self, side: Side) -> GameSide:
        return self.team_a if side == Side.TEAM_A else self.team_b


class MatchRecord(BaseModel):
    """
    The persisted history entry for one match.

    Point-race matches carry finished `games` plus the rounds of an
    unfinished game in `rounds`; fixed-round matches carry only `rounds`.
    The score columns hold games won (point race) or points (fixed rounds).
    """
    model_config = ConfigDict(frozen=True)

    match_id: str
    started_at: datetime
    ended_at: datetime
    duration_seconds: int = Field(..., ge=0)
    mode: GameMode
    outcome: MatchOutcome
    winner: Optional[Side] = None
    configuration: MatchConfiguration
    team_a: TeamSnapshot
    team_b: TeamSnapshot
    team_a_score: int = Field(default=0, ge=0)
    team_b_score: int = Field(default=0, ge=0)
    games: tuple[GameRecord, ...] = ()
    rounds: tuple[RoundRecord, ...] = ()

    @property
    def all_rounds(self) -> list[RoundRecord]:
        """Every round of the match, across games."""
        return [r for game in self.games for r in game.rounds] + list(self.rounds)

    def bonus_total(self, side: Side) -> int:
        return sum(r.for_side(side).bonus_this_round for r in self.all_rounds)


# ============ State Snapshot ============

class SessionState(BaseModel):
    """
    Immutable snapshot of the current session.
    Handed to renderers and persisted after every transition.
    """
    model_config = ConfigDict(frozen=True)

    state: MatchState
    mode: GameMode
    rounds_played: int = 0
    game_number: int = 1
    team_a: TeamState
    team_b: TeamState
    configuration: MatchConfiguration
    match_id: Optional[str] = None
    bonus_pending_for: Optional[Side] = None
    hammer_selection_required: bool = False

    def team(self, side: Side) -> TeamState:
        return self.team_a if side == Side.TEAM_A else self.team_b
