"""
Match Orchestrator - sequences the engine components on every event.

Each operation takes a MatchSession, validates its input, checks the
state guards, and returns a ScoreResult. Input the engine cannot
interpret raises an InvalidInputError; a legal input arriving at the
wrong time comes back as a rejected result with the state unchanged.

Flow of a scoring event:

    apply_score -> RoundDetector -> (BonusIntake) -> continuation
                                                     |-> hammer swap
                                                     |-> game win
                                                     '-> final round
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from models.match import MatchOutcome, MatchState, Side
from models.schemas import (
    GameRecord, MatchConfiguration, MatchRecord, RoundRecord, SessionState, TeamSnapshot,
)
from engine.errors import InvalidInputError
from engine.rounds import RoundSignal
from engine.bonus import BonusIntake, Continuation
from engine.rules import RulesEngine
from engine.session import MatchSession

logger = logging.getLogger(__name__)


class GuardReason(enum.Enum):
    """Why an operation was refused."""
    HAMMER_SELECTION_PENDING = "hammer_selection_pending"
    BONUS_INPUT_PENDING = "bonus_input_pending"
    GAME_DECIDED = "game_decided"
    MATCH_DECIDED = "match_decided"
    ROUNDS_EXHAUSTED = "rounds_exhausted"
    NO_BONUS_PENDING = "no_bonus_pending"
    NOT_POINT_RACE = "not_point_race"
    MATCH_NOT_STARTED = "match_not_started"
    HAMMER_NOT_TRACKED = "hammer_not_tracked"
    MATCH_ALREADY_STARTED = "match_already_started"


@dataclass
class ScoreResult:
    """
    Outcome of one orchestrator operation.

    `state` is always the snapshot after the operation (unchanged when
    rejected). The record fields are set only when the operation
    produced that record.
    """
    state: SessionState
    rejected: Optional[GuardReason] = None
    round_record: Optional[RoundRecord] = None
    game_record: Optional[GameRecord] = None
    match_record: Optional[MatchRecord] = None
    bonus_required: bool = False

    @property
    def accepted(self) -> bool:
        return self.rejected is None


def _reject(session: MatchSession, reason: GuardReason, operation: str) -> ScoreResult:
    logger.debug("%s rejected in %s: %s", operation, session.state.value, reason.value)
    return ScoreResult(state=session.snapshot(), rejected=reason)


def _play_guard(session: MatchSession) -> Optional[GuardReason]:
    """Guards shared by every operation that changes the score."""
    if session.state == MatchState.AWAITING_BONUS_INPUT:
        return GuardReason.BONUS_INPUT_PENDING
    if session.hammer_selection_required:
        return GuardReason.HAMMER_SELECTION_PENDING
    if session.state.is_terminal:
        return GuardReason.MATCH_DECIDED
    if session.state == MatchState.GAME_WON:
        return GuardReason.GAME_DECIDED
    if RulesEngine.rounds_exhausted(session.configuration, session.detector.rounds_played):
        return GuardReason.ROUNDS_EXHAUSTED
    return None


def _start_match(session: MatchSession) -> None:
    session.match_id = uuid.uuid4().hex
    session.started_at = session.clock()
    session.state = MatchState.IN_PROGRESS
    logger.info("Match %s started (%s)", session.match_id, session.configuration.mode.value)


def _finish_match(session: MatchSession, outcome: MatchOutcome,
                  winner: Optional[Side]) -> MatchRecord:
    record = session.recorder.build_match_record(
        match_id=session.match_id,
        started_at=session.started_at,
        ended_at=session.clock(),
        configuration=session.configuration,
        teams=session.teams,
        outcome=outcome,
        winner=winner,
    )
    logger.info(
        "Match %s %s: %s %d - %d %s",
        record.match_id, outcome.value,
        record.team_a.name, record.team_a_score, record.team_b_score, record.team_b.name,
    )
    return record


# ============ Round Completion ============

def _choose_continuation(session: MatchSession) -> Continuation:
    config = session.configuration
    if RulesEngine.rounds_exhausted(config, session.detector.rounds_played):
        return Continuation.AFTER_FINAL_ROUND
    if config.is_point_race and RulesEngine.game_winner(config, session.teams) is not None:
        return Continuation.AFTER_GAME_WIN
    return Continuation.AFTER_HAMMER_TOGGLE


def _record_round(session: MatchSession) -> RoundRecord:
    teams = session.teams
    bonus = {side: session.detector.bonus_since_boundary(teams, side) for side in Side}
    return session.recorder.record_round(session.detector.rounds_played, teams, bonus)


def _run_continuation(session: MatchSession, continuation: Continuation,
                      result: ScoreResult) -> None:
    """Finish a completed round: pass the hammer, or settle the game or match."""
    config = session.configuration
    teams = session.teams

    if continuation is Continuation.AFTER_HAMMER_TOGGLE:
        if config.track_hammer:
            holder = session.hammer.swap()
            session.hammer.apply_to(teams)
            logger.debug("Hammer passed to %s", holder.value if holder else None)
        session.state = MatchState.IN_PROGRESS

    elif continuation is Continuation.AFTER_GAME_WIN:
        winner = RulesEngine.game_winner(config, teams)
        team = teams[winner]
        team.has_won = True
        team.games_won += 1
        result.game_record = session.recorder.close_game(
            teams, winner, session.hammer.game_start_holder,
        )
        logger.info("Game %d won by %s", result.game_record.game_number, team.name)

        if RulesEngine.is_match_won(config, team.games_won):
            session.state = MatchState.MATCH_WON
            session.final_record = _finish_match(session, MatchOutcome.WON, winner)
            result.match_record = session.final_record
        else:
            session.state = MatchState.GAME_WON

    elif continuation is Continuation.AFTER_FINAL_ROUND:
        winner = RulesEngine.final_round_verdict(teams)
        if winner is None:
            session.state = MatchState.TIED
            outcome = MatchOutcome.TIED
        else:
            teams[winner].has_won = True
            session.state = MatchState.MATCH_WON
            outcome = MatchOutcome.WON
        session.final_record = _finish_match(session, outcome, winner)
        result.match_record = session.final_record


def _complete_round(session: MatchSession, result: ScoreResult) -> None:
    continuation = _choose_continuation(session)
    logger.debug(
        "Round %d complete (%d - %d), continuing %s",
        session.detector.rounds_played, session.teams.team_a.points,
        session.teams.team_b.points, continuation.value,
    )

    if session.configuration.track_bonus:
        # The round is recorded once both bonus amounts are in
        session.intake = BonusIntake(continuation=continuation)
        session.state = MatchState.AWAITING_BONUS_INPUT
        result.bonus_required = True
        return

    result.round_record = _record_round(session)
    _run_continuation(session, continuation, result)


# ============ Operations ============

def get_state(session: MatchSession) -> SessionState:
    return session.snapshot()


def apply_score(session: MatchSession, side: Side, delta: int) -> ScoreResult:
    """
    Add `delta` points to `side`.

    Raises:
        UnknownTeamError: side is not a Side
        InvalidDeltaError: delta is negative or not an integer
    """
    RulesEngine.validate_side(side)
    RulesEngine.validate_score_delta(delta)

    reason = _play_guard(session)
    if reason is not None:
        return _reject(session, reason, "apply_score")

    if delta == 0:
        return ScoreResult(state=session.snapshot())

    if session.state == MatchState.IDLE:
        _start_match(session)

    session.teams[side].add_points(delta)
    result = ScoreResult(state=session.snapshot())

    if session.detector.observe(session.teams, delta) is RoundSignal.ROUND_COMPLETE:
        _complete_round(session, result)

    result.state = session.snapshot()
    return result


def correct_score(session: MatchSession, side: Side, amount: int) -> ScoreResult:
    """
    Take `amount` points away from `side`, never below zero.

    Corrections never close a round.
    """
    RulesEngine.validate_side(side)
    RulesEngine.validate_correction(amount)

    if session.state == MatchState.IDLE:
        return _reject(session, GuardReason.MATCH_NOT_STARTED, "correct_score")
    reason = _play_guard(session)
    if reason is not None:
        return _reject(session, reason, "correct_score")

    session.teams[side].add_points(-amount)
    session.detector.lower_baseline(session.teams, side)
    logger.debug("Corrected %s by -%d to %d", side.value, amount, session.teams[side].points)
    return ScoreResult(state=session.snapshot())


def select_starting_team(session: MatchSession, side: Side) -> ScoreResult:
    """
    Choose the team that shoots first. The other team takes the hammer
    and the match starts.
    """
    RulesEngine.validate_side(side)

    if not session.configuration.track_hammer:
        return _reject(session, GuardReason.HAMMER_NOT_TRACKED, "select_starting_team")
    if session.state != MatchState.IDLE:
        return _reject(session, GuardReason.MATCH_ALREADY_STARTED, "select_starting_team")

    holder = session.hammer.select_starting_team(side)
    session.hammer.apply_to(session.teams)
    logger.debug("%s shoots first, hammer to %s", side.value, holder.value)
    _start_match(session)
    return ScoreResult(state=session.snapshot())


def submit_bonus(session: MatchSession, side: Side, amount: int) -> ScoreResult:
    """
    Record the twenties one side sank in the round just completed.

    Team A is asked first, then team B. Once both are in, the round is
    recorded and the match continues.

    Raises:
        InvalidBonusError: amount is negative, above the cap, or not an integer
        BonusOutOfTurnError: the other side's amount is expected
    """
    RulesEngine.validate_side(side)
    RulesEngine.validate_bonus(amount, session.configuration.game_type)

    if session.state != MatchState.AWAITING_BONUS_INPUT or session.intake is None:
        return _reject(session, GuardReason.NO_BONUS_PENDING, "submit_bonus")

    intake = session.intake
    if not intake.submit(side, amount):
        logger.debug("Bonus %d for %s, waiting on %s", amount, side.value, intake.expected.value)
        return ScoreResult(state=session.snapshot(), bonus_required=True)

    for bonus_side, bonus_amount in intake.amounts.items():
        session.teams[bonus_side].bonus_count += bonus_amount
    session.intake = None

    result = ScoreResult(state=session.snapshot())
    result.round_record = _record_round(session)
    _run_continuation(session, intake.continuation, result)
    result.state = session.snapshot()
    return result


def reset_game(session: MatchSession) -> ScoreResult:
    """
    Start the next game of a point-race match.

    Per-game scores are cleared, games won are kept, and the hammer goes
    to the team that did not start the previous game with it.
    """
    if not session.configuration.is_point_race:
        return _reject(session, GuardReason.NOT_POINT_RACE, "reset_game")
    if session.state == MatchState.IDLE:
        return _reject(session, GuardReason.MATCH_NOT_STARTED, "reset_game")
    if session.state.is_terminal:
        return _reject(session, GuardReason.MATCH_DECIDED, "reset_game")
    if session.state == MatchState.AWAITING_BONUS_INPUT:
        return _reject(session, GuardReason.BONUS_INPUT_PENDING, "reset_game")

    for team in session.teams:
        team.reset_game()
    session.detector.reset()
    session.recorder.clear_game()

    if session.configuration.track_hammer:
        session.hammer.start_new_game()
        session.hammer.apply_to(session.teams)

    session.state = MatchState.IN_PROGRESS
    logger.debug("Game %d started", session.game_number)
    return ScoreResult(state=session.snapshot())


def _abandon(session: MatchSession) -> Optional[MatchRecord]:
    """Close out the current match and return the session to IDLE."""
    if session.intake is not None:
        # The round waiting on bonus input still counts; missing amounts are 0
        for side, amount in session.intake.amounts.items():
            session.teams[side].bonus_count += amount
        session.intake = None
        _record_round(session)

    if session.state.is_terminal:
        record = session.final_record
    elif session.match_id is not None and session.recorder.has_content:
        record = _finish_match(session, MatchOutcome.ABANDONED, None)
    else:
        record = None

    for team in session.teams:
        team.reset_match()
    session.detector.reset()
    session.hammer.clear()
    session.recorder.clear()
    session.intake = None
    session.match_id = None
    session.started_at = None
    session.final_record = None
    session.state = MatchState.IDLE
    return record


def reset_match(session: MatchSession) -> ScoreResult:
    """
    Clear everything and go back to IDLE.

    The result carries the match record when the match is worth keeping:
    the final record of a decided match, or an abandoned record once at
    least one round was completed.
    """
    record = _abandon(session)
    logger.debug("Match reset")
    return ScoreResult(state=session.snapshot(), match_record=record)


def update_configuration(session: MatchSession,
                         configuration: MatchConfiguration) -> ScoreResult:
    """Abandon the current match and start over with new settings."""
    if not isinstance(configuration, MatchConfiguration):
        raise InvalidInputError(f"Expected MatchConfiguration, got {type(configuration).__name__}")

    record = _abandon(session)
    session.configuration = configuration
    logger.info("Configuration updated: %s", configuration.mode.value)
    return ScoreResult(state=session.snapshot(), match_record=record)


def rename_team(session: MatchSession, side: Side, name: Optional[str] = None,
                color: Optional[str] = None) -> ScoreResult:
    """Change a team's name and/or color. Allowed in any state."""
    RulesEngine.validate_side(side)
    team = session.teams[side]

    try:
        identity = TeamSnapshot(
            name=team.name if name is None else name,
            color=team.color if color is None else color,
        )
    except ValidationError as e:
        raise InvalidInputError(f"Invalid team identity: {e}") from e

    team.name = identity.name
    team.color = identity.color
    return ScoreResult(state=session.snapshot())
