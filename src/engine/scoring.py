"""
Table tennis match scoring: game score validation and match state derivation.

Rules:
- A game is played to 11 points and must be won by 2 clear points.
- From 10-10 (deuce) play continues until one player leads by exactly 2,
  so 12-10 and 14-12 are valid while 15-10 is not.
- If the loser has fewer than 10 points the game ends at 11, so 18-5 is
  impossible.
- A match is best of 3, 5 or 7 games; it is decided the moment either
  player reaches games_needed wins. Later games are surplus.

Nothing here touches storage. Validation failures are returned as
structured dicts so the caller can highlight the offending input.
"""
from typing import Dict, List

from .formats import get_format_config, format_label

MAX_GAME_SCORE = 99

OUTCOME_UNDECIDED = 'undecided'
OUTCOME_PLAYER1 = 'player1_wins'
OUTCOME_PLAYER2 = 'player2_wins'


def _error(code: str, message: str, field: str) -> Dict:
    return {'code': code, 'message': message, 'field': field}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_game_score(score1, score2) -> Dict:
    """
    Validate a single game score.

    Returns {'ok': True} or {'ok': False, 'errors': [...]} where each error
    has a code, a human-readable message and the field to highlight
    ('score1', 'score2' or 'both'). Every rule violation is reported, not
    just the first one, once the scores are known to be usable numbers.
    """
    if not _is_int(score1) or not _is_int(score2):
        return {'ok': False, 'errors': [
            _error('SCORE_NOT_INTEGER', 'Scores must be whole numbers.', 'both')
        ]}

    errors = []
    for field, label, value in (('score1', 'Player 1', score1), ('score2', 'Player 2', score2)):
        if value < 0:
            errors.append(_error('SCORE_NEGATIVE', f'{label} score cannot be negative.', field))
        elif value > MAX_GAME_SCORE:
            errors.append(_error('SCORE_TOO_HIGH',
                                 f'{label} score cannot exceed {MAX_GAME_SCORE}.', field))
    if errors:
        return {'ok': False, 'errors': errors}

    if score1 == 0 and score2 == 0:
        return {'ok': False, 'errors': [
            _error('SCORE_BOTH_ZERO', 'A 0-0 game is not a valid result.', 'both')
        ]}

    if score1 == score2:
        if score1 < 10:
            message = (f'A {score1}-{score2} tie is impossible. Games can only tie '
                       f'at 10-10 or higher (deuce).')
            return {'ok': False, 'errors': [_error('SCORE_TIE_NOT_DEUCE', message, 'both')]}
        message = (f'At {score1}-{score2} the game is still in progress (deuce). '
                   f'Enter the final score when a player leads by 2.')
        return {'ok': False, 'errors': [_error('GAME_WINNER_UNCLEAR', message, 'both')]}

    winner_field = 'score1' if score1 > score2 else 'score2'
    winner_score, loser_score = max(score1, score2), min(score1, score2)
    margin = winner_score - loser_score

    if winner_score < 11:
        errors.append(_error('WINNER_BELOW_MINIMUM',
                             f'The winning score must be at least 11. Got {winner_score}.',
                             winner_field))

    if margin < 2:
        errors.append(_error('LEAD_TOO_SMALL',
                             f'A game must be won by 2 clear points. The margin is only {margin}.',
                             'both'))

    if loser_score < 10 and winner_score > 11:
        errors.append(_error('WINNER_EXCEEDS_NORMAL',
                             f'If the opponent has {loser_score} points the game ends at '
                             f'11-{loser_score}. {winner_score}-{loser_score} is impossible.',
                             winner_field))

    if loser_score >= 10 and margin > 2:
        errors.append(_error('DEUCE_NOT_WIN_BY_TWO',
                             f'In deuce the margin must be exactly 2. Got '
                             f'{winner_score}-{loser_score}; did you mean '
                             f'{loser_score + 2}-{loser_score}?',
                             'both'))

    if errors:
        return {'ok': False, 'errors': errors}
    return {'ok': True}


def format_validation_errors(result: Dict) -> str:
    """Flatten a validation result into one message (empty when valid)."""
    if result.get('ok'):
        return ''
    return ' '.join(e['message'] for e in result['errors'])


def errors_for_field(result: Dict, field: str) -> List[Dict]:
    """Errors that should be shown next to one input ('both' errors included)."""
    if result.get('ok'):
        return []
    return [e for e in result['errors'] if e['field'] in (field, 'both')]


def derive_game_winner_id(score1: int, score2: int, player1_id, player2_id):
    """Winner of an already-validated game."""
    return player1_id if score1 > score2 else player2_id


def compute_match_state(games, fmt: str, player1_id=None, player2_id=None) -> Dict:
    """
    Derive the match state from its saved games.

    Games are processed in game_number order regardless of input order.
    Unscored games are ignored. Games after the deciding game are returned
    with counted=False so the caller can hide or delete them.
    Calling this twice with the same games gives the same result.
    """
    config = get_format_config(fmt)
    games_needed = config['games_needed']

    player1_games = 0
    player2_games = 0
    deciding_game = None
    computed = []

    for game in sorted(games, key=lambda g: g.game_number):
        if not game.is_scored:
            continue
        outcome = OUTCOME_PLAYER1 if game.score1 > game.score2 else OUTCOME_PLAYER2
        counted = deciding_game is None
        computed.append({
            'game_number': game.game_number,
            'score1': game.score1,
            'score2': game.score2,
            'outcome': outcome,
            'is_deuce': game.score1 >= 10 and game.score2 >= 10,
            'counted': counted,
        })
        if not counted:
            continue

        if outcome == OUTCOME_PLAYER1:
            player1_games += 1
        else:
            player2_games += 1

        if player1_games >= games_needed or player2_games >= games_needed:
            deciding_game = game.game_number

    if player1_games >= games_needed:
        outcome = OUTCOME_PLAYER1
    elif player2_games >= games_needed:
        outcome = OUTCOME_PLAYER2
    else:
        outcome = OUTCOME_UNDECIDED

    played = sum(1 for g in computed if g['counted'])
    games_remaining = 0 if outcome != OUTCOME_UNDECIDED else config['max_games'] - played

    return {
        'player1_games': player1_games,
        'player2_games': player2_games,
        'outcome': outcome,
        'deciding_game': deciding_game,
        'games': computed,
        'games_remaining': games_remaining,
    }


def match_winner_id(state: Dict, player1_id, player2_id):
    if state['outcome'] == OUTCOME_PLAYER1:
        return player1_id
    if state['outcome'] == OUTCOME_PLAYER2:
        return player2_id
    return None


def derive_match_status(state: Dict, games) -> str:
    """Status a match should be stored with after its games change."""
    if state['outcome'] != OUTCOME_UNDECIDED:
        return 'complete'
    if any(g.is_scored for g in games):
        return 'live'
    return 'pending'


def _next_game_number(existing_games) -> int:
    numbers = [g.game_number for g in existing_games]
    return (max(numbers) if numbers else 0) + 1


def can_add_another_game(existing_games, fmt: str, player1_id, player2_id,
                         game_number: int) -> Dict:
    """
    Decide whether a new game row may be saved for a match.

    Always returns next_game_number so the caller can pre-fill the next
    entry. Re-saving an existing game number is an edit, which the caller
    handles without asking this function.
    """
    config = get_format_config(fmt)
    max_games = config['max_games']
    next_number = _next_game_number(existing_games)

    def refuse(reason):
        return {'allowed': False, 'reason': reason, 'next_game_number': next_number}

    if not player1_id or not player2_id:
        return refuse('Both player slots must be filled before scores can be entered.')

    state = compute_match_state(existing_games, fmt, player1_id, player2_id)
    if state['outcome'] != OUTCOME_UNDECIDED:
        winner = 'Player 1' if state['outcome'] == OUTCOME_PLAYER1 else 'Player 2'
        return refuse(f'The match is already complete ({winner} won in game '
                      f'{state["deciding_game"]}). Delete the deciding game first to '
                      f'make a correction.')

    if game_number < 1 or game_number > max_games:
        return refuse(f'Game {game_number} is outside the range 1-{max_games} for '
                      f'{format_label(fmt)}.')

    if any(g.game_number == game_number for g in existing_games):
        return refuse(f'Game {game_number} has already been entered.')

    if game_number != next_number:
        return refuse(f'Game {game_number} cannot be entered before game {next_number}.')

    return {'allowed': True, 'reason': None, 'next_game_number': next_number}


def infer_game_numbers_to_show(existing_games, fmt: str, player1_id=None,
                               player2_id=None) -> List[int]:
    """
    Game rows a score-entry form should render.

    A decided match shows games up to the deciding game; an open match shows
    the saved games plus one empty row, capped at the format maximum.
    """
    max_games = get_format_config(fmt)['max_games']
    state = compute_match_state(existing_games, fmt, player1_id, player2_id)

    if state['deciding_game'] is not None:
        return list(range(1, state['deciding_game'] + 1))

    show_through = min(_next_game_number(existing_games), max_games)
    return list(range(1, show_through + 1))
