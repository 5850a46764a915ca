"""
Errors raised by the scoring engine.

Guard rejections (scoring after a win, scoring while bonus input is
pending, ...) are not errors: they come back as a rejected ScoreResult.
These exceptions are for input the engine refuses to interpret.
"""


class ScoringError(Exception):
    """Base class for scoring engine errors."""


class InvalidInputError(ScoringError, ValueError):
    """The caller passed a value the engine cannot accept."""


class InvalidDeltaError(InvalidInputError):
    """Score delta is negative, zero where not allowed, or not an integer."""


class UnknownTeamError(InvalidInputError):
    """Team reference is not a Side."""


class InvalidBonusError(InvalidInputError):
    """Bonus amount is negative, not an integer, or above the game-type cap."""


class BonusOutOfTurnError(InvalidInputError):
    """Bonus was submitted for a team other than the one being asked."""

    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Bonus input expected for {expected.value}, got {received.value}"
        )


class CorruptedBonusError(ScoringError):
    """A team's bonus count fell below its value at the last round boundary."""
