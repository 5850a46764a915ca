"""
Round Detector - decides when a scoring exchange has closed a round.

In crokinole a round is worth two points in total: 2-0 to one side,
or 1-1 when the round is drawn. Points are entered one tap at a time,
so the detector compares each side's gain since the last round
boundary against those three patterns.
"""

import enum
from dataclasses import dataclass, field

from models.match import Side
from engine.team import TeamPair
from engine.errors import CorruptedBonusError


class RoundSignal(enum.Enum):
    """Outcome of inspecting the latest scoring event."""
    ROUND_COMPLETE = "round_complete"
    NO_OP = "no_op"


# (team A gain, team B gain) patterns that close a round
ROUND_PATTERNS = frozenset({(2, 0), (0, 2), (1, 1)})


def detect_round(team_a_change: int, team_b_change: int) -> RoundSignal:
    """Classify the gains since the last boundary."""
    if (team_a_change, team_b_change) in ROUND_PATTERNS:
        return RoundSignal.ROUND_COMPLETE
    return RoundSignal.NO_OP


def _zero_baseline() -> dict[Side, int]:
    return {Side.TEAM_A: 0, Side.TEAM_B: 0}


@dataclass
class RoundDetector:
    """
    Tracks the baseline at the last round boundary and the round counter.

    The counter restarts with every game in point-race mode and runs for
    the whole match in fixed-rounds mode.
    """
    points_baseline: dict[Side, int] = field(default_factory=_zero_baseline)
    bonus_baseline: dict[Side, int] = field(default_factory=_zero_baseline)
    rounds_played: int = 0

    def changes(self, teams: TeamPair) -> tuple[int, int]:
        """Points gained by each side since the last boundary."""
        return (
            teams.team_a.points - self.points_baseline[Side.TEAM_A],
            teams.team_b.points - self.points_baseline[Side.TEAM_B],
        )

    def observe(self, teams: TeamPair, delta: int) -> RoundSignal:
        """
        Inspect the teams after a score change of `delta`.

        Only positive deltas can close a round. On completion the
        baseline advances to the current totals and the counter ticks.
        """
        if delta <= 0:
            return RoundSignal.NO_OP

        signal = detect_round(*self.changes(teams))
        if signal is RoundSignal.ROUND_COMPLETE:
            for side, team in teams.items():
                self.points_baseline[side] = team.points
                self.bonus_baseline[side] = team.bonus_count
            self.rounds_played += 1
        return signal

    def bonus_since_boundary(self, teams: TeamPair, side: Side) -> int:
        """
        Bonus gained by `side` since the last boundary.

        A negative value means the bonus count was lowered outside the
        intake; that is refused rather than recorded.
        """
        delta = teams[side].bonus_count - self.bonus_baseline[side]
        if delta < 0:
            raise CorruptedBonusError(
                f"{side.value} bonus count {teams[side].bonus_count} is below "
                f"its round baseline {self.bonus_baseline[side]}"
            )
        return delta

    def lower_baseline(self, teams: TeamPair, side: Side) -> None:
        """Keep the baseline at or below a score that was corrected downward."""
        self.points_baseline[side] = min(self.points_baseline[side], teams[side].points)

    def reset(self) -> None:
        self.points_baseline = _zero_baseline()
        self.bonus_baseline = _zero_baseline()
        self.rounds_played = 0
