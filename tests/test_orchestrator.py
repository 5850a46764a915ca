"""
Unit tests for the match orchestrator.

Tests cover fixed-rounds and point-race matches, bonus intake, hammer
tracking, guards, corrections, and resets.
"""

import itertools
import random
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from engine import orchestrator as orch
from engine.orchestrator import GuardReason
from engine.session import new_session
from engine.errors import (
    BonusOutOfTurnError, InvalidBonusError, InvalidDeltaError, InvalidInputError,
    UnknownTeamError,
)
from models.match import GameMode, GameType, MatchOutcome, MatchState, Side
from models.schemas import MatchConfiguration

A, B = Side.TEAM_A, Side.TEAM_B


def make_clock(start=datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)):
    """Clock that advances one minute per reading."""
    ticks = itertools.count()
    return lambda: start + timedelta(minutes=next(ticks))


def play(session, *moves):
    """Apply (side, delta) moves and return the last result."""
    result = None
    for side, delta in moves:
        result = orch.apply_score(session, side, delta)
    return result


class TestFixedRounds:
    """Tests for fixed-rounds matches."""

    def setup_method(self):
        self.config = MatchConfiguration(mode=GameMode.FIXED_ROUNDS, rounds_to_play=4)
        self.session = new_session(self.config, clock=make_clock())

    def test_first_score_starts_match(self):
        result = orch.apply_score(self.session, A, 1)
        assert result.state.state == MatchState.IN_PROGRESS
        assert result.state.match_id is not None
        assert self.session.started_at is not None

    def test_zero_delta_changes_nothing(self):
        result = orch.apply_score(self.session, A, 0)
        assert result.accepted
        assert result.state.state == MatchState.IDLE
        assert result.state.team_a.points == 0

    def test_round_record_on_completion(self):
        result = play(self.session, (A, 1), (B, 1))
        assert result.round_record is not None
        assert result.round_record.round_number == 1
        assert result.round_record.team_a.points_after_round == 1
        assert result.round_record.team_b.points_after_round == 1
        assert result.state.rounds_played == 1

    def test_five_three_wins_after_four_rounds(self):
        result = play(self.session, (A, 2), (B, 2), (A, 1), (B, 1), (A, 2))

        assert result.state.state == MatchState.MATCH_WON
        record = result.match_record
        assert record is not None
        assert record.outcome == MatchOutcome.WON
        assert record.winner == A
        assert (record.team_a_score, record.team_b_score) == (5, 3)
        assert [r.round_number for r in record.rounds] == [1, 2, 3, 4]
        assert record.games == ()
        assert result.state.team_a.has_won

    def test_equal_points_is_tie(self):
        result = play(self.session, (A, 2), (B, 2), (A, 2), (B, 2))

        assert result.state.state == MatchState.TIED
        assert result.match_record.outcome == MatchOutcome.TIED
        assert result.match_record.winner is None
        assert not result.state.team_a.has_won
        assert not result.state.team_b.has_won

    def test_scoring_after_match_is_rejected(self):
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        before = orch.get_state(self.session)

        result = orch.apply_score(self.session, B, 2)

        assert result.rejected == GuardReason.MATCH_DECIDED
        assert result.state == before

    def test_record_carries_configuration_and_duration(self):
        result = play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        record = result.match_record
        assert record.configuration == self.config
        assert record.duration_seconds == 60
        assert record.team_a.name == "Team 1"
        assert record.team_b.color == "#3CBCFB"

    def test_state_snapshot_is_read_only(self):
        state = orch.get_state(self.session)
        with pytest.raises(ValidationError):
            state.rounds_played = 3


class TestPointRace:
    """Tests for point-race matches."""

    def setup_method(self):
        self.config = MatchConfiguration(
            mode=GameMode.POINT_RACE, points_to_win=7,
            min_points_difference=2, games_to_win_match=2,
        )
        self.session = new_session(self.config, clock=make_clock())

    def test_game_won_at_target(self):
        result = play(self.session, (A, 2), (A, 2), (A, 2), (A, 1), (B, 1))

        assert result.state.state == MatchState.GAME_WON
        assert result.game_record is not None
        assert result.game_record.winner == A
        assert result.game_record.game_number == 1
        assert len(result.game_record.rounds) == 4
        assert result.state.team_a.games_won == 1
        assert result.match_record is None

    def test_margin_keeps_game_going(self):
        for _ in range(7):
            result = play(self.session, (A, 1), (B, 1))
        assert result.state.state == MatchState.IN_PROGRESS
        assert result.state.team_a.points == 7

        result = play(self.session, (A, 2))
        assert result.state.state == MatchState.GAME_WON
        assert result.game_record.team_a.final_points == 9

    def test_scoring_after_game_win_is_rejected(self):
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        result = orch.apply_score(self.session, B, 1)
        assert result.rejected == GuardReason.GAME_DECIDED

    def test_two_games_win_match(self):
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        orch.reset_game(self.session)
        result = play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))

        assert result.state.state == MatchState.MATCH_WON
        record = result.match_record
        assert record.winner == A
        assert (record.team_a_score, record.team_b_score) == (2, 0)
        assert [g.game_number for g in record.games] == [1, 2]
        assert result.game_record.game_number == 2

    def test_reset_game_keeps_games_won(self):
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        result = orch.reset_game(self.session)

        assert result.state.state == MatchState.IN_PROGRESS
        assert result.state.team_a.games_won == 1
        assert result.state.team_a.points == 0
        assert not result.state.team_a.has_won
        assert result.state.rounds_played == 0
        assert result.state.game_number == 2

    def test_round_numbers_restart_each_game(self):
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        orch.reset_game(self.session)
        result = play(self.session, (B, 2))
        assert result.round_record.round_number == 1

    def test_reset_game_mid_game_drops_rounds(self):
        play(self.session, (A, 2), (B, 1))
        result = orch.reset_game(self.session)
        assert result.accepted
        assert result.state.team_a.points == 0
        assert result.state.team_b.points == 0
        assert self.session.recorder.rounds == ()

    def test_reset_game_before_start_is_rejected(self):
        result = orch.reset_game(self.session)
        assert result.rejected == GuardReason.MATCH_NOT_STARTED

    def test_reset_game_after_match_is_rejected(self):
        config = self.config.model_copy(update={"games_to_win_match": 1})
        session = new_session(config)
        play(session, (A, 2), (A, 2), (A, 2), (A, 2))
        assert orch.reset_game(session).rejected == GuardReason.MATCH_DECIDED

    def test_reset_game_rejected_in_fixed_rounds(self):
        session = new_session(MatchConfiguration(mode=GameMode.FIXED_ROUNDS))
        play(session, (A, 2))
        assert orch.reset_game(session).rejected == GuardReason.NOT_POINT_RACE

    def test_no_double_winner(self):
        """A won game cannot produce a second winner before reset."""
        play(self.session, (A, 2), (A, 2), (A, 2), (A, 2))
        orch.apply_score(self.session, B, 2)
        state = orch.get_state(self.session)
        assert state.team_a.games_won == 1
        assert state.team_b.games_won == 0
        assert not state.team_b.has_won


class TestBonusIntake:
    """Tests for bonus (twenties) input."""

    def setup_method(self):
        self.config = MatchConfiguration(
            mode=GameMode.FIXED_ROUNDS, rounds_to_play=4, track_bonus=True,
        )
        self.session = new_session(self.config)

    def test_round_completion_requests_bonus(self):
        result = orch.apply_score(self.session, A, 2)

        assert result.bonus_required
        assert result.round_record is None
        assert result.state.state == MatchState.AWAITING_BONUS_INPUT
        assert result.state.bonus_pending_for == A

    def test_scoring_while_pending_is_rejected(self):
        orch.apply_score(self.session, A, 2)
        result = orch.apply_score(self.session, B, 1)
        assert result.rejected == GuardReason.BONUS_INPUT_PENDING
        assert result.state.team_b.points == 0

    def test_team_a_is_asked_first(self):
        orch.apply_score(self.session, A, 2)
        with pytest.raises(BonusOutOfTurnError) as exc_info:
            orch.submit_bonus(self.session, B, 1)
        assert exc_info.value.expected == A
        assert exc_info.value.received == B

    def test_bonus_round_trip(self):
        orch.apply_score(self.session, A, 2)

        first = orch.submit_bonus(self.session, A, 3)
        assert first.bonus_required
        assert first.state.bonus_pending_for == B
        assert first.round_record is None

        second = orch.submit_bonus(self.session, B, 1)
        assert second.state.state == MatchState.IN_PROGRESS
        assert second.round_record.team_a.bonus_this_round == 3
        assert second.round_record.team_b.bonus_this_round == 1
        assert second.state.team_a.bonus_count == 3
        assert second.state.team_b.bonus_count == 1

    def test_bonus_is_per_round(self):
        orch.apply_score(self.session, A, 2)
        orch.submit_bonus(self.session, A, 3)
        orch.submit_bonus(self.session, B, 1)

        orch.apply_score(self.session, B, 2)
        orch.submit_bonus(self.session, A, 0)
        result = orch.submit_bonus(self.session, B, 2)

        assert result.round_record.round_number == 2
        assert result.round_record.team_a.bonus_this_round == 0
        assert result.round_record.team_b.bonus_this_round == 2
        assert result.state.team_b.bonus_count == 3

    def test_bonus_above_cap_raises(self):
        orch.apply_score(self.session, A, 2)
        with pytest.raises(InvalidBonusError):
            orch.submit_bonus(self.session, A, 9)

    def test_doubles_cap(self):
        session = new_session(self.config.model_copy(update={"game_type": GameType.DOUBLES}))
        orch.apply_score(session, A, 2)
        result = orch.submit_bonus(session, A, 12)
        assert result.accepted

    def test_bonus_without_pending_round_is_rejected(self):
        result = orch.submit_bonus(self.session, A, 1)
        assert result.rejected == GuardReason.NO_BONUS_PENDING

    def test_final_round_waits_for_bonus(self):
        session = new_session(self.config.model_copy(update={"rounds_to_play": 1}))
        result = orch.apply_score(session, A, 2)
        assert result.state.state == MatchState.AWAITING_BONUS_INPUT
        assert result.match_record is None

        orch.submit_bonus(session, A, 1)
        result = orch.submit_bonus(session, B, 0)

        assert result.state.state == MatchState.MATCH_WON
        assert result.match_record.bonus_total(A) == 1
        assert len(result.match_record.rounds) == 1

    def test_game_win_waits_for_bonus(self):
        config = MatchConfiguration(
            mode=GameMode.POINT_RACE, points_to_win=2, track_bonus=True, games_to_win_match=2,
        )
        session = new_session(config)
        orch.apply_score(session, B, 2)
        orch.submit_bonus(session, A, 0)
        result = orch.submit_bonus(session, B, 4)

        assert result.state.state == MatchState.GAME_WON
        assert result.game_record.winner == B
        assert result.game_record.team_b.bonus_total == 4

    def test_reset_game_rejected_while_pending(self):
        config = MatchConfiguration(mode=GameMode.POINT_RACE, track_bonus=True)
        session = new_session(config)
        orch.apply_score(session, A, 2)
        assert orch.reset_game(session).rejected == GuardReason.BONUS_INPUT_PENDING


class TestHammerTracking:
    """Tests for hammer selection and alternation."""

    def setup_method(self):
        self.config = MatchConfiguration(mode=GameMode.FIXED_ROUNDS, track_hammer=True)
        self.session = new_session(self.config)

    def test_scoring_requires_selection(self):
        state = orch.get_state(self.session)
        assert state.hammer_selection_required

        result = orch.apply_score(self.session, A, 1)
        assert result.rejected == GuardReason.HAMMER_SELECTION_PENDING

    def test_selection_starts_match(self):
        result = orch.select_starting_team(self.session, A)

        assert result.state.state == MatchState.IN_PROGRESS
        assert result.state.team_b.has_hammer
        assert not result.state.team_a.has_hammer
        assert result.state.match_id is not None

    def test_hammer_swaps_after_round(self):
        orch.select_starting_team(self.session, A)
        result = orch.apply_score(self.session, A, 2)

        assert result.round_record.team_b.had_hammer
        assert result.state.team_a.has_hammer
        assert not result.state.team_b.has_hammer

    def test_second_selection_is_rejected(self):
        orch.select_starting_team(self.session, A)
        result = orch.select_starting_team(self.session, B)
        assert result.rejected == GuardReason.MATCH_ALREADY_STARTED

    def test_selection_without_tracking_is_rejected(self):
        session = new_session(MatchConfiguration())
        assert orch.select_starting_team(session, A).rejected == GuardReason.HAMMER_NOT_TRACKED

    def test_hammer_alternates_across_games(self):
        config = MatchConfiguration(
            mode=GameMode.POINT_RACE, points_to_win=2, games_to_win_match=3, track_hammer=True,
        )
        session = new_session(config)
        orch.select_starting_team(session, A)

        result = orch.apply_score(session, A, 2)
        assert result.game_record.team_b.had_hammer_at_game_start
        assert result.state.team_b.has_hammer  # not passed on a deciding round

        result = orch.reset_game(session)
        assert result.state.team_a.has_hammer

        orch.apply_score(session, B, 2)
        result = orch.reset_game(session)
        assert result.state.team_b.has_hammer

    def test_reset_match_requires_new_selection(self):
        orch.select_starting_team(self.session, A)
        orch.apply_score(self.session, A, 2)
        result = orch.reset_match(self.session)

        assert result.state.hammer_selection_required
        assert not result.state.team_a.has_hammer
        assert not result.state.team_b.has_hammer


class TestCorrections:
    """Tests for downward score corrections."""

    def setup_method(self):
        self.session = new_session(MatchConfiguration(mode=GameMode.FIXED_ROUNDS, rounds_to_play=10))

    def test_correction_before_start_is_rejected(self):
        result = orch.correct_score(self.session, A, 1)
        assert result.rejected == GuardReason.MATCH_NOT_STARTED

    def test_correction_undoes_a_tap(self):
        orch.apply_score(self.session, A, 1)
        result = orch.correct_score(self.session, A, 1)
        assert result.state.team_a.points == 0
        assert result.round_record is None

    def test_correction_clamps_at_zero(self):
        orch.apply_score(self.session, A, 1)
        result = orch.correct_score(self.session, A, 5)
        assert result.state.team_a.points == 0

    def test_round_detection_resumes_after_correction(self):
        orch.apply_score(self.session, A, 1)
        orch.correct_score(self.session, A, 1)
        orch.apply_score(self.session, B, 1)
        result = orch.apply_score(self.session, A, 1)
        assert result.round_record is not None

    def test_correction_into_previous_round(self):
        orch.apply_score(self.session, A, 2)
        orch.correct_score(self.session, A, 2)
        result = orch.apply_score(self.session, B, 2)
        assert result.round_record is not None
        assert result.state.rounds_played == 2

    def test_correction_must_be_positive(self):
        orch.apply_score(self.session, A, 1)
        with pytest.raises(InvalidDeltaError):
            orch.correct_score(self.session, A, 0)


class TestInvalidInput:
    """Tests for input the engine refuses."""

    def setup_method(self):
        self.session = new_session()

    def test_negative_delta_raises(self):
        with pytest.raises(InvalidDeltaError):
            orch.apply_score(self.session, A, -1)

    @pytest.mark.parametrize("delta", [1.0, "1", True])
    def test_non_integer_delta_raises(self, delta):
        with pytest.raises(InvalidDeltaError):
            orch.apply_score(self.session, A, delta)

    @pytest.mark.parametrize("side", [0, 1, "team_a", None])
    def test_unknown_team_raises(self, side):
        with pytest.raises(UnknownTeamError):
            orch.apply_score(self.session, side, 1)

    def test_invalid_input_leaves_state(self):
        before = orch.get_state(self.session)
        with pytest.raises(InvalidDeltaError):
            orch.apply_score(self.session, A, -3)
        assert orch.get_state(self.session) == before


@pytest.mark.parametrize("seed", range(10))
def test_points_never_negative(seed):
    """Random scoring and correction sequences never push points below zero."""
    rng = random.Random(seed)
    config = MatchConfiguration(
        mode=rng.choice([GameMode.POINT_RACE, GameMode.FIXED_ROUNDS]),
        rounds_to_play=20,
        points_to_win=15,
    )
    session = new_session(config)

    for _ in range(200):
        side = rng.choice([A, B])
        if rng.random() < 0.3:
            orch.correct_score(session, side, rng.randint(1, 4))
        else:
            orch.apply_score(session, side, rng.randint(0, 2))

        if session.state == MatchState.GAME_WON:
            orch.reset_game(session)
        elif session.state.is_terminal:
            orch.reset_match(session)

        state = orch.get_state(session)
        assert state.team_a.points >= 0
        assert state.team_b.points >= 0


class TestResets:
    """Tests for match reset, settings updates, and renames."""

    def setup_method(self):
        self.config = MatchConfiguration(mode=GameMode.FIXED_ROUNDS, rounds_to_play=4)
        self.session = new_session(self.config)

    def test_reset_after_round_records_abandoned_match(self):
        play(self.session, (A, 2), (B, 1))
        result = orch.reset_match(self.session)

        record = result.match_record
        assert record.outcome == MatchOutcome.ABANDONED
        assert record.winner is None
        assert len(record.rounds) == 1

    def test_reset_zeroes_everything(self):
        orch.rename_team(self.session, A, "Alice")
        play(self.session, (A, 2), (B, 1))
        result = orch.reset_match(self.session)

        state = result.state
        assert state.state == MatchState.IDLE
        assert state.rounds_played == 0
        assert state.match_id is None
        for team in (state.team_a, state.team_b):
            assert (team.points, team.bonus_count, team.games_won) == (0, 0, 0)
            assert not team.has_won
        assert state.team_a.name == "Alice"

    def test_reset_without_rounds_records_nothing(self):
        orch.apply_score(self.session, A, 1)
        assert orch.reset_match(self.session).match_record is None

    def test_reset_after_match_returns_final_record(self):
        final = play(self.session, (A, 2), (A, 2), (A, 2), (A, 2)).match_record
        result = orch.reset_match(self.session)
        assert result.match_record is final

    def test_reset_keeps_round_awaiting_bonus(self):
        session = new_session(self.config.model_copy(update={"track_bonus": True}))
        orch.apply_score(session, A, 2)
        result = orch.reset_match(session)

        assert result.state.state == MatchState.IDLE
        assert result.state.bonus_pending_for is None
        record = result.match_record
        assert record.outcome == MatchOutcome.ABANDONED
        assert len(record.rounds) == 1
        assert record.rounds[0].team_a.points_after_round == 2
        assert record.bonus_total(A) == 0

    def test_reset_keeps_partial_bonus_input(self):
        session = new_session(self.config.model_copy(update={"track_bonus": True}))
        orch.apply_score(session, A, 2)
        orch.submit_bonus(session, A, 1)
        orch.submit_bonus(session, B, 0)
        orch.apply_score(session, B, 2)
        orch.submit_bonus(session, A, 2)

        record = orch.reset_match(session).match_record

        assert [r.round_number for r in record.rounds] == [1, 2]
        assert record.rounds[1].team_a.bonus_this_round == 2
        assert record.rounds[1].team_b.bonus_this_round == 0
        assert record.bonus_total(A) == 3

    def test_update_configuration_keeps_round_awaiting_bonus(self):
        session = new_session(self.config.model_copy(update={"track_bonus": True}))
        orch.apply_score(session, B, 2)

        result = orch.update_configuration(session, MatchConfiguration(mode=GameMode.POINT_RACE))

        assert result.match_record.outcome == MatchOutcome.ABANDONED
        assert len(result.match_record.rounds) == 1
        assert result.state.bonus_pending_for is None

    def test_update_configuration_starts_new_match(self):
        play(self.session, (A, 2))
        new_config = MatchConfiguration(mode=GameMode.POINT_RACE, points_to_win=11)
        result = orch.update_configuration(self.session, new_config)

        assert result.match_record.outcome == MatchOutcome.ABANDONED
        assert result.match_record.configuration == self.config
        assert result.state.configuration == new_config
        assert result.state.mode == GameMode.POINT_RACE
        assert result.state.state == MatchState.IDLE

    def test_update_configuration_requires_configuration(self):
        with pytest.raises(InvalidInputError):
            orch.update_configuration(self.session, {"mode": "points"})

    def test_rename_team(self):
        result = orch.rename_team(self.session, B, "Bob", "#112233")
        assert result.state.team_b.name == "Bob"
        assert result.state.team_b.color == "#112233"

    def test_rename_keeps_unspecified_fields(self):
        result = orch.rename_team(self.session, A, color="#000000")
        assert result.state.team_a.name == "Team 1"
        assert result.state.team_a.color == "#000000"

    @pytest.mark.parametrize("name,color", [("  ", None), ("Bob", "red")])
    def test_rename_rejects_bad_identity(self, name, color):
        with pytest.raises(InvalidInputError):
            orch.rename_team(self.session, A, name, color)
