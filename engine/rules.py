"""
Rules Engine - Enforces crokinole scoring rules.

Handles input validation and game, match, and fixed-round verdicts.
"""

from typing import Optional

from config import SCORING_SETTINGS
from models.match import GameType, Side
from models.schemas import MatchConfiguration
from engine.team import TeamPair
from engine.errors import InvalidDeltaError, InvalidBonusError, UnknownTeamError


def _is_int(value) -> bool:
    # bool is an int subclass but never a valid score
    return isinstance(value, int) and not isinstance(value, bool)


class RulesEngine:
    """
    Stateless crokinole rules.

    Every method is a staticmethod; the engine keeps no per-match state.
    """

    # Maximum twenties per side per round
    BONUS_CAPS = {
        GameType.SINGLES: SCORING_SETTINGS.max_bonus_singles,
        GameType.DOUBLES: SCORING_SETTINGS.max_bonus_doubles,
    }

    @staticmethod
    def bonus_cap(game_type: GameType) -> int:
        return RulesEngine.BONUS_CAPS[game_type]

    # ============ Validation Methods ============

    @staticmethod
    def validate_side(side) -> Side:
        """Make sure a team reference is a Side."""
        if not isinstance(side, Side):
            raise UnknownTeamError(f"Unknown team reference: {side!r}")
        return side

    @staticmethod
    def validate_score_delta(delta) -> int:
        """
        Score deltas are non-negative integers.

        Zero is accepted and changes nothing.
        """
        if not _is_int(delta):
            raise InvalidDeltaError(f"Score delta must be an integer, got {delta!r}")
        if delta < 0:
            raise InvalidDeltaError(
                f"Score delta cannot be negative ({delta}); use a score correction"
            )
        return delta

    @staticmethod
    def validate_correction(amount) -> int:
        """Corrections are positive integers, subtracted from the score."""
        if not _is_int(amount):
            raise InvalidDeltaError(f"Correction must be an integer, got {amount!r}")
        if amount <= 0:
            raise InvalidDeltaError(f"Correction must be positive, got {amount}")
        return amount

    @staticmethod
    def validate_bonus(amount, game_type: GameType) -> int:
        """Bonus amounts lie between 0 and the game-type cap."""
        if not _is_int(amount):
            raise InvalidBonusError(f"Bonus must be an integer, got {amount!r}")
        cap = RulesEngine.bonus_cap(game_type)
        if amount < 0 or amount > cap:
            raise InvalidBonusError(
                f"Bonus must be between 0 and {cap} for {game_type.value}, got {amount}"
            )
        return amount

    # ============ Verdicts ============

    @staticmethod
    def game_winner(config: MatchConfiguration, teams: TeamPair) -> Optional[Side]:
        """
        Determine the game winner in point-race mode.

        A side wins when it reaches the target with the required margin.
        Returns None while the game is undecided or already has a winner.
        TEAM_A is checked first when both sides qualify.
        """
        if teams.winner() is not None:
            return None

        for side, team in teams.items():
            opponent = teams[side.other]
            if (team.points >= config.points_to_win
                    and team.points - opponent.points >= config.min_points_difference):
                return side
        return None

    @staticmethod
    def is_match_won(config: MatchConfiguration, games_won: int) -> bool:
        return games_won >= config.games_to_win_match

    @staticmethod
    def rounds_exhausted(config: MatchConfiguration, rounds_played: int) -> bool:
        """Fixed-rounds mode stops once the configured rounds are played."""
        return not config.is_point_race and rounds_played >= config.rounds_to_play

    @staticmethod
    def final_round_verdict(teams: TeamPair) -> Optional[Side]:
        """
        Determine the fixed-rounds winner from total points.

        Returns:
            The side with more points, or None on a tie
        """
        if teams.team_a.points > teams.team_b.points:
            return Side.TEAM_A
        elif teams.team_b.points > teams.team_a.points:
            return Side.TEAM_B
        return None
