"""
Unit tests for game score validation and match state derivation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.errors import ConfigError
from engine.models import Game
from engine.scoring import (
    validate_game_score,
    format_validation_errors,
    errors_for_field,
    derive_game_winner_id,
    compute_match_state,
    can_add_another_game,
    derive_match_status,
    match_winner_id,
    infer_game_numbers_to_show,
    MAX_GAME_SCORE,
)


def games_from(scores, match_id="m1"):
    return [Game(match_id, i, s1, s2) for i, (s1, s2) in enumerate(scores, start=1)]


def codes(result):
    return [e['code'] for e in result['errors']]


class TestValidateGameScore:
    """Tests for table tennis game score rules."""

    @pytest.mark.parametrize("score1,score2", [
        (11, 9), (11, 5), (11, 0), (0, 11), (12, 10), (10, 12), (14, 12), (25, 23),
    ])
    def test_valid_scores(self, score1, score2):
        """Test that legal finished games validate."""
        assert validate_game_score(score1, score2) == {'ok': True}

    def test_margin_of_one_past_ten_invalid(self):
        """Test 11-10 is rejected: no two point lead."""
        result = validate_game_score(11, 10)
        assert result['ok'] is False
        assert 'LEAD_TOO_SMALL' in codes(result)

    def test_deuce_margin_must_be_exactly_two(self):
        """Test 15-10 is rejected in deuce territory."""
        result = validate_game_score(15, 10)
        assert result['ok'] is False
        assert 'DEUCE_NOT_WIN_BY_TWO' in codes(result)

    def test_winner_below_eleven(self):
        """Test 9-7 is rejected and the winner's field is highlighted."""
        result = validate_game_score(9, 7)
        assert result['ok'] is False
        error = next(e for e in result['errors'] if e['code'] == 'WINNER_BELOW_MINIMUM')
        assert error['field'] == 'score1'

    def test_winner_exceeds_eleven_without_deuce(self):
        """Test 5-18 is rejected: the game would have ended at 11-5."""
        result = validate_game_score(5, 18)
        assert codes(result) == ['WINNER_EXCEEDS_NORMAL']
        assert result['errors'][0]['field'] == 'score2'

    def test_equal_scores_below_ten(self):
        """Test a 7-7 tie is impossible."""
        result = validate_game_score(7, 7)
        assert codes(result) == ['SCORE_TIE_NOT_DEUCE']
        assert result['errors'][0]['field'] == 'both'

    def test_equal_scores_in_deuce(self):
        """Test 10-10 is an unfinished game."""
        assert codes(validate_game_score(10, 10)) == ['GAME_WINNER_UNCLEAR']

    def test_both_zero(self):
        """Test 0-0 is rejected."""
        assert codes(validate_game_score(0, 0)) == ['SCORE_BOTH_ZERO']

    def test_negative_scores_attributed_per_field(self):
        """Test negative scores are reported against each offending field."""
        result = validate_game_score(-1, -3)
        assert codes(result) == ['SCORE_NEGATIVE', 'SCORE_NEGATIVE']
        assert [e['field'] for e in result['errors']] == ['score1', 'score2']

    def test_score_above_ceiling(self):
        """Test scores above the sanity ceiling are rejected."""
        result = validate_game_score(MAX_GAME_SCORE + 1, MAX_GAME_SCORE - 1)
        assert codes(result) == ['SCORE_TOO_HIGH']
        assert result['errors'][0]['field'] == 'score1'

    @pytest.mark.parametrize("score1,score2", [(11.5, 9), ("11", 9), (None, 9), (True, 9)])
    def test_non_integer_scores(self, score1, score2):
        """Test non-integer input is rejected before any other check."""
        assert codes(validate_game_score(score1, score2)) == ['SCORE_NOT_INTEGER']

    def test_validation_is_repeatable(self):
        """Test the same input always gives the same result."""
        assert validate_game_score(11, 10) == validate_game_score(11, 10)


class TestValidationHelpers:
    """Tests for formatting and filtering validation errors."""

    def test_format_valid_result(self):
        """Test a valid result formats to an empty string."""
        assert format_validation_errors({'ok': True}) == ''

    def test_format_joins_messages(self):
        """Test every error message is included."""
        result = validate_game_score(-1, -2)
        text = format_validation_errors(result)
        assert 'Player 1' in text and 'Player 2' in text

    def test_errors_for_field_includes_both(self):
        """Test field filtering keeps errors that apply to both inputs."""
        result = validate_game_score(9, 8)
        score1_errors = errors_for_field(result, 'score1')
        assert {e['code'] for e in score1_errors} == {'WINNER_BELOW_MINIMUM', 'LEAD_TOO_SMALL'}
        assert [e['code'] for e in errors_for_field(result, 'score2')] == ['LEAD_TOO_SMALL']

    def test_errors_for_field_valid(self):
        """Test a valid result has no field errors."""
        assert errors_for_field({'ok': True}, 'score1') == []


class TestDeriveGameWinner:
    """Tests for game winner lookup."""

    def test_player1_wins(self):
        assert derive_game_winner_id(11, 6, "a", "b") == "a"

    def test_player2_wins(self):
        assert derive_game_winner_id(10, 12, "a", "b") == "b"


class TestComputeMatchState:
    """Tests for match state derivation."""

    def test_bo5_scenario(self):
        """Test a 3-1 best of five win decided in game 4."""
        games = games_from([(11, 8), (9, 11), (11, 6), (11, 9)])
        state = compute_match_state(games, 'bo5', "a", "b")
        assert state['player1_games'] == 3
        assert state['player2_games'] == 1
        assert state['outcome'] == 'player1_wins'
        assert state['deciding_game'] == 4
        assert state['games_remaining'] == 0

    def test_undecided_match(self):
        """Test a match in progress has no deciding game."""
        state = compute_match_state(games_from([(11, 8), (9, 11)]), 'bo5', "a", "b")
        assert state['outcome'] == 'undecided'
        assert state['deciding_game'] is None
        assert state['games_remaining'] == 3

    def test_no_games(self):
        """Test an empty match."""
        state = compute_match_state([], 'bo3', "a", "b")
        assert state['player1_games'] == 0
        assert state['player2_games'] == 0
        assert state['outcome'] == 'undecided'
        assert state['games_remaining'] == 3

    def test_player2_wins_bo3(self):
        """Test player 2 winning a best of three in straight games."""
        state = compute_match_state(games_from([(5, 11), (10, 12)]), 'bo3', "a", "b")
        assert state['outcome'] == 'player2_wins'
        assert state['deciding_game'] == 2

    def test_bo7_needs_four(self):
        """Test best of seven is not decided at three games."""
        state = compute_match_state(games_from([(11, 1)] * 3), 'bo7', "a", "b")
        assert state['outcome'] == 'undecided'
        state = compute_match_state(games_from([(11, 1)] * 4), 'bo7', "a", "b")
        assert state['outcome'] == 'player1_wins'

    def test_out_of_order_games(self):
        """Test games are processed by game number, not list order."""
        games = games_from([(11, 8), (9, 11), (11, 6), (11, 9)])
        state = compute_match_state(list(reversed(games)), 'bo5', "a", "b")
        assert state['deciding_game'] == 4
        assert [g['game_number'] for g in state['games']] == [1, 2, 3, 4]

    def test_surplus_games_not_counted(self):
        """Test games after the deciding game are flagged and ignored."""
        games = games_from([(11, 1), (11, 2), (11, 3), (3, 11)])
        state = compute_match_state(games, 'bo5', "a", "b")
        assert state['player1_games'] == 3
        assert state['player2_games'] == 0
        assert state['deciding_game'] == 3
        assert state['games'][-1]['counted'] is False

    def test_unscored_games_ignored(self):
        """Test games without both scores are skipped."""
        games = games_from([(11, 5)]) + [Game("m1", 2, None, None)]
        state = compute_match_state(games, 'bo3', "a", "b")
        assert state['player1_games'] == 1
        assert len(state['games']) == 1

    def test_deuce_flag(self):
        """Test deuce games are flagged."""
        state = compute_match_state(games_from([(12, 10), (11, 4)]), 'bo5', "a", "b")
        assert state['games'][0]['is_deuce'] is True
        assert state['games'][1]['is_deuce'] is False

    def test_idempotent(self):
        """Test computing twice from the same games gives identical output."""
        games = games_from([(11, 8), (9, 11), (11, 6)])
        assert compute_match_state(games, 'bo5', "a", "b") == compute_match_state(games, 'bo5', "a", "b")

    def test_deleting_deciding_game_reopens_match(self):
        """Test removing the deciding game reverts the match to live."""
        games = games_from([(11, 8), (9, 11), (11, 6), (11, 9)])
        state = compute_match_state(games, 'bo5', "a", "b")
        assert derive_match_status(state, games) == 'complete'

        remaining = [g for g in games if g.game_number != state['deciding_game']]
        reopened = compute_match_state(remaining, 'bo5', "a", "b")
        assert reopened['outcome'] == 'undecided'
        assert derive_match_status(reopened, remaining) == 'live'
        assert match_winner_id(reopened, "a", "b") is None

    def test_deleting_only_game_makes_match_pending(self):
        """Test a match with no games left goes back to pending."""
        state = compute_match_state([], 'bo5', "a", "b")
        assert derive_match_status(state, []) == 'pending'

    def test_half_entered_game_not_counted(self):
        """Test a game row with only one score neither counts nor makes the match live."""
        games = [Game("m1", 1, score1=11, score2=None)]
        state = compute_match_state(games, 'bo5', "a", "b")
        assert state['player1_games'] == 0
        assert derive_match_status(state, games) == 'pending'

    def test_match_winner_id(self):
        """Test the winner id follows the outcome."""
        state = compute_match_state(games_from([(4, 11), (6, 11)]), 'bo3', "a", "b")
        assert match_winner_id(state, "a", "b") == "b"

    def test_unknown_format(self):
        """Test an unknown format raises a config error."""
        with pytest.raises(ConfigError):
            compute_match_state([], 'bo9', "a", "b")


class TestCanAddAnotherGame:
    """Tests for the add-game guard."""

    def test_first_game_allowed(self):
        """Test game 1 can be added to an empty match."""
        result = can_add_another_game([], 'bo5', "a", "b", 1)
        assert result['allowed'] is True
        assert result['next_game_number'] == 1

    def test_next_game_allowed(self):
        """Test the next sequential game can be added."""
        result = can_add_another_game(games_from([(11, 8), (9, 11)]), 'bo5', "a", "b", 3)
        assert result['allowed'] is True
        assert result['next_game_number'] == 3

    def test_decided_match_refused(self):
        """Test no game can be added once a player reached games needed."""
        games = games_from([(11, 8), (11, 9), (11, 6)])
        result = can_add_another_game(games, 'bo5', "a", "b", 4)
        assert result['allowed'] is False
        assert 'already complete' in result['reason']

    def test_missing_player_refused(self):
        """Test scores cannot be entered while a slot is empty."""
        result = can_add_another_game([], 'bo5', "a", None, 1)
        assert result['allowed'] is False
        assert 'player slots' in result['reason']

    def test_gap_refused(self):
        """Test skipping a game number is refused."""
        result = can_add_another_game(games_from([(11, 8)]), 'bo5', "a", "b", 3)
        assert result['allowed'] is False
        assert result['next_game_number'] == 2

    def test_duplicate_refused(self):
        """Test a game number that already exists is refused."""
        result = can_add_another_game(games_from([(11, 8), (8, 11)]), 'bo5', "a", "b", 2)
        assert result['allowed'] is False
        assert 'already been entered' in result['reason']

    def test_beyond_format_maximum_refused(self):
        """Test game numbers past the format maximum are refused."""
        games = games_from([(11, 8), (8, 11)])
        result = can_add_another_game(games, 'bo3', "a", "b", 4)
        assert result['allowed'] is False
        assert result['reason'] == 'Game 4 is outside the range 1-3 for Best of 3.'

    def test_zero_game_number_refused(self):
        """Test game numbers start at 1."""
        assert can_add_another_game([], 'bo3', "a", "b", 0)['allowed'] is False


class TestInferGameNumbersToShow:
    """Tests for score form row inference."""

    def test_empty_match_shows_first_row(self):
        assert infer_game_numbers_to_show([], 'bo5') == [1]

    def test_open_match_shows_next_row(self):
        games = games_from([(11, 8), (11, 9)])
        assert infer_game_numbers_to_show(games, 'bo5', "a", "b") == [1, 2, 3]

    def test_decided_match_stops_at_deciding_game(self):
        games = games_from([(11, 8), (11, 9), (11, 6)])
        assert infer_game_numbers_to_show(games, 'bo5', "a", "b") == [1, 2, 3]

    def test_capped_at_format_maximum(self):
        games = games_from([(11, 8), (8, 11), (11, 9), (9, 11)])
        assert infer_game_numbers_to_show(games, 'bo5', "a", "b") == [1, 2, 3, 4, 5]
