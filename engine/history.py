"""
History Recorder - builds the round, game, and match records.
"""

from datetime import datetime
from typing import Optional

from models.match import MatchOutcome, Side
from models.schemas import (
    GameRecord, GameSide, MatchConfiguration, MatchRecord, RoundRecord, RoundSide,
)
from engine.team import TeamPair


class HistoryRecorder:
    """
    Accumulates completed rounds and finished games for one match.

    Rounds collect in a running list. In point-race mode that list is the
    current game and moves into a GameRecord when the game is won; in
    fixed-rounds mode it holds the whole match.
    """

    def __init__(self):
        self._rounds: list[RoundRecord] = []
        self._games: list[GameRecord] = []

    @property
    def rounds(self) -> tuple[RoundRecord, ...]:
        return tuple(self._rounds)

    @property
    def games(self) -> tuple[GameRecord, ...]:
        return tuple(self._games)

    @property
    def has_content(self) -> bool:
        """True once at least one round has been completed."""
        return bool(self._rounds) or bool(self._games)

    def record_round(self, round_number: int, teams: TeamPair,
                     bonus: dict[Side, int]) -> RoundRecord:
        """
        Append a completed round.

        Args:
            round_number: Counter value after the round closed
            teams: Teams as they stand at the end of the round
            bonus: Bonus gained by each side this round
        """
        sides = {
            side: RoundSide(
                points_after_round=team.points,
                bonus_this_round=bonus.get(side, 0),
                had_hammer=team.has_hammer,
            )
            for side, team in teams.items()
        }
        record = RoundRecord(
            round_number=round_number,
            team_a=sides[Side.TEAM_A],
            team_b=sides[Side.TEAM_B],
        )
        self._rounds.append(record)
        return record

    def close_game(self, teams: TeamPair, winner: Side,
                   start_holder: Optional[Side]) -> GameRecord:
        """Move the running rounds into a finished game."""
        sides = {
            side: GameSide(
                final_points=team.points,
                bonus_total=sum(r.for_side(side).bonus_this_round for r in self._rounds),
                had_hammer_at_game_start=start_holder is side,
            )
            for side, team in teams.items()
        }
        record = GameRecord(
            game_number=len(self._games) + 1,
            rounds=tuple(self._rounds),
            team_a=sides[Side.TEAM_A],
            team_b=sides[Side.TEAM_B],
            winner=winner,
        )
        self._games.append(record)
        self._rounds.clear()
        return record

    def build_match_record(self, match_id: str, started_at: datetime, ended_at: datetime,
                           configuration: MatchConfiguration, teams: TeamPair,
                           outcome: MatchOutcome, winner: Optional[Side]) -> MatchRecord:
        """Assemble the history entry for the match as it stands."""
        if configuration.is_point_race:
            scores = (teams.team_a.games_won, teams.team_b.games_won)
        else:
            scores = (teams.team_a.points, teams.team_b.points)

        return MatchRecord(
            match_id=match_id,
            started_at=started_at,
            ended_at=ended_at,
            duration_seconds=max(0, int((ended_at - started_at).total_seconds())),
            mode=configuration.mode,
            outcome=outcome,
            winner=winner,
            configuration=configuration,
            team_a=teams.team_a.snapshot(),
            team_b=teams.team_b.snapshot(),
            team_a_score=scores[0],
            team_b_score=scores[1],
            games=tuple(self._games),
            rounds=tuple(self._rounds),
        )

    def clear_game(self) -> None:
        """Drop the rounds of an unfinished game."""
        self._rounds.clear()

    def clear(self) -> None:
        self._rounds.clear()
        self._games.clear()
