"""
Match Session - everything the orchestrator needs for one live match.

Sessions are independent of each other; nothing in the engine keeps
module-level state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from models.match import MatchState, Side
from models.schemas import MatchConfiguration, MatchRecord, SessionState
from engine.team import TeamPair
from engine.rounds import RoundDetector
from engine.hammer import HammerAllocator
from engine.bonus import BonusIntake
from engine.history import HistoryRecorder


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MatchSession:
    """
    Aggregate of the teams, configuration, and engine components.

    Mutated only through the operations in engine.orchestrator.
    """
    configuration: MatchConfiguration = field(default_factory=MatchConfiguration)
    teams: TeamPair = field(default_factory=TeamPair)
    detector: RoundDetector = field(default_factory=RoundDetector)
    hammer: HammerAllocator = field(default_factory=HammerAllocator)
    recorder: HistoryRecorder = field(default_factory=HistoryRecorder)
    state: MatchState = MatchState.IDLE
    intake: Optional[BonusIntake] = None
    match_id: Optional[str] = None
    started_at: Optional[datetime] = None
    final_record: Optional[MatchRecord] = None
    clock: Callable[[], datetime] = utc_now

    @property
    def game_number(self) -> int:
        """Number of the game being played (point race)."""
        return len(self.recorder.games) + 1

    @property
    def hammer_selection_required(self) -> bool:
        return self.configuration.track_hammer and self.hammer.needs_selection

    @property
    def bonus_pending_for(self) -> Optional[Side]:
        return self.intake.expected if self.intake is not None else None

    def snapshot(self) -> SessionState:
        """Read-only view of the session."""
        return SessionState(
            state=self.state,
            mode=self.configuration.mode,
            rounds_played=self.detector.rounds_played,
            game_number=self.game_number,
            team_a=self.teams.team_a.state(),
            team_b=self.teams.team_b.state(),
            configuration=self.configuration,
            match_id=self.match_id,
            bonus_pending_for=self.bonus_pending_for,
            hammer_selection_required=self.hammer_selection_required,
        )


def new_session(configuration: Optional[MatchConfiguration] = None,
                teams: Optional[TeamPair] = None,
                clock: Optional[Callable[[], datetime]] = None) -> MatchSession:
    """Create an idle session, optionally with existing teams and a test clock."""
    session = MatchSession(
        configuration=configuration or MatchConfiguration(),
        teams=teams or TeamPair(),
    )
    if clock is not None:
        session.clock = clock
    return session
