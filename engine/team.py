"""
Team records for the two sides of the board.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from config import TEAM_DEFAULTS
from models.match import Side
from models.schemas import TeamSnapshot, TeamState


@dataclass
class Team:
    """
    Mutable scoring state for one side.

    Points never drop below zero. Name and color survive every reset.
    """
    name: str
    color: str
    points: int = 0
    bonus_count: int = 0
    games_won: int = 0
    has_won: bool = False
    has_hammer: bool = False

    def add_points(self, delta: int) -> int:
        """Apply a signed delta, clamped at zero. Returns the new total."""
        self.points = max(0, self.points + delta)
        return self.points

    def reset_game(self) -> None:
        """Zero the per-game fields. games_won is kept."""
        self.points = 0
        self.bonus_count = 0
        self.has_won = False

    def reset_match(self) -> None:
        """Zero everything except identity."""
        self.reset_game()
        self.games_won = 0
        self.has_hammer = False

    def snapshot(self) -> TeamSnapshot:
        return TeamSnapshot(name=self.name, color=self.color)

    def state(self) -> TeamState:
        return TeamState(
            name=self.name,
            color=self.color,
            points=self.points,
            bonus_count=self.bonus_count,
            games_won=self.games_won,
            has_won=self.has_won,
            has_hammer=self.has_hammer,
        )


def _default_team_a() -> Team:
    return Team(name=TEAM_DEFAULTS.team_a_name, color=TEAM_DEFAULTS.team_a_color)


def _default_team_b() -> Team:
    return Team(name=TEAM_DEFAULTS.team_b_name, color=TEAM_DEFAULTS.team_b_color)


@dataclass
class TeamPair:
    """Exactly two teams, addressed by Side."""
    team_a: Team = field(default_factory=_default_team_a)
    team_b: Team = field(default_factory=_default_team_b)

    def __getitem__(self, side: Side) -> Team:
        if side is Side.TEAM_A:
            return self.team_a
        if side is Side.TEAM_B:
            return self.team_b
        raise KeyError(side)

    def __iter__(self) -> Iterator[Team]:
        yield self.team_a
        yield self.team_b

    def items(self) -> Iterator[tuple[Side, Team]]:
        yield Side.TEAM_A, self.team_a
        yield Side.TEAM_B, self.team_b

    def winner(self) -> Optional[Side]:
        """The side flagged as having won the current game, if any."""
        for side, team in self.items():
            if team.has_won:
                return side
        return None
