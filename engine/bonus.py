"""
Bonus Intake - collects each side's twenties after a completed round.

The intake is the only point where the match waits on the operator.
It asks for team A first, then team B, and remembers what the engine
should do once both amounts are in.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from models.match import Side
from engine.errors import BonusOutOfTurnError


class Continuation(enum.Enum):
    """What runs once the intake completes."""
    AFTER_HAMMER_TOGGLE = "after_hammer_toggle"
    AFTER_FINAL_ROUND = "after_final_round"
    AFTER_GAME_WIN = "after_game_win"


STEP_ORDER = (Side.TEAM_A, Side.TEAM_B)


@dataclass
class BonusIntake:
    """A suspended round waiting for both bonus amounts."""
    continuation: Continuation
    amounts: dict[Side, int] = field(default_factory=dict)

    @property
    def expected(self) -> Optional[Side]:
        """The side whose bonus is asked for next, or None when complete."""
        for side in STEP_ORDER:
            if side not in self.amounts:
                return side
        return None

    @property
    def is_complete(self) -> bool:
        return self.expected is None

    def submit(self, side: Side, amount: int) -> bool:
        """
        Record one side's amount. Returns True once both are in.

        Raises:
            BonusOutOfTurnError: if `side` is not the one being asked
        """
        expected = self.expected
        if expected is None or side is not expected:
            raise BonusOutOfTurnError(expected or STEP_ORDER[-1], side)
        self.amounts[side] = amount
        return self.is_complete
