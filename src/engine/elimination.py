"""
Single elimination bracket generation.

Players are ranked 1..N (explicit seeds first, then a shuffle of the
unseeded players), placed with the standard complement-interleave order and
paired into first-round matches. The bracket size is the next power of two,
and the P - N byes always go to the best ranks.
"""
import logging
import math
import random
from typing import Dict, List, Optional

from .errors import DomainLimitError

logger = logging.getLogger(__name__)

MIN_BRACKET_PLAYERS = 2
MAX_BRACKET_PLAYERS = 256


def get_round_name(players_in_round: int, bracket_size: int) -> str:
    """Get the name of a round based on number of players still in it."""
    if players_in_round == 2:
        return "Final"
    elif players_in_round == 4:
        return "Semifinal"
    elif players_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {players_in_round}"


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    if num_players == 1:
        return 1
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_players) - num_players


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard bracket order of seed ranks by slot.

    Each doubling pairs every seed x with its complement (size + 1 - x):
    [1] -> [1, 2] -> [1, 4, 2, 3] -> [1, 8, 4, 5, 2, 7, 3, 6]

    Adjacent slots are first-round opponents. Seeds 1 and 2 can only meet in
    the final, seeds 1-4 not before the semifinals, and so on.
    """
    if bracket_size <= 1:
        return [1]
    if bracket_size == 2:
        return [1, 2]

    upper_half = _generate_bracket_order(bracket_size // 2)

    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def first_round_pairings(num_players: int) -> List[tuple]:
    """Seed-rank pairs (a, b) of round 1 for a bracket that fits num_players."""
    order = _generate_bracket_order(calculate_bracket_size(num_players))
    return [(order[i], order[i + 1]) for i in range(0, len(order), 2)]


def rank_players(players, rng) -> Dict[int, object]:
    """
    Map ranks 1..N to players.

    Explicitly seeded players take the rank equal to their seed. Seeds that
    are duplicated or larger than N cannot be honoured; those players take
    the best free ranks in seed order. Unseeded players are shuffled with
    rng and fill the ranks that remain.
    """
    n = len(players)
    seeded = sorted((p for p in players if p.has_valid_seed), key=lambda p: p.seed)
    unseeded = [p for p in players if not p.has_valid_seed]
    rng.shuffle(unseeded)

    rank_to_player = {}
    displaced = []
    for player in seeded:
        if player.seed <= n and player.seed not in rank_to_player:
            rank_to_player[player.seed] = player
        else:
            displaced.append(player)

    if displaced:
        logger.warning("Seeds could not be honoured exactly, compacting: %s",
                       ', '.join(f"{p.name} [{p.seed}]" for p in displaced))

    remaining = displaced + unseeded
    free_ranks = [r for r in range(1, n + 1) if r not in rank_to_player]
    for rank, player in zip(free_ranks, remaining):
        rank_to_player[rank] = player

    return rank_to_player


def generate_bracket(players, random_seed: Optional[int] = None, rng=None,
                     ranked: bool = False) -> Dict:
    """
    Seed players into a knockout bracket.

    Args:
        players: 2..256 Player objects
        random_seed: makes the unseeded shuffle reproducible
        rng: any object with .shuffle(list); takes precedence over random_seed
        ranked: players are already in rank order (rank = list position + 1);
            seeds are ignored and nothing is shuffled

    Returns dict with:
    - bracket_size, bye_count, total_rounds
    - slots: [{'slot_number', 'rank', 'player', 'is_bye'}] in bracket order
    - first_round_matches: [{'match_number', 'slot1', 'slot2', 'is_bye',
      'next_match_index', 'next_slot', 'round_name'}]
    """
    n = len(players)
    if n < MIN_BRACKET_PLAYERS:
        raise DomainLimitError(f"Need at least {MIN_BRACKET_PLAYERS} players for a bracket. Got {n}.")
    if n > MAX_BRACKET_PLAYERS:
        raise DomainLimitError(f"Maximum {MAX_BRACKET_PLAYERS} players in a bracket. Got {n}.")

    bracket_size = calculate_bracket_size(n)
    total_rounds = int(math.log2(bracket_size))
    if ranked:
        rank_to_player = {rank: player for rank, player in enumerate(players, start=1)}
    else:
        if rng is None:
            rng = random.Random(random_seed)
        rank_to_player = rank_players(players, rng)

    slots = []
    for index, rank in enumerate(_generate_bracket_order(bracket_size)):
        slots.append({
            'slot_number': index + 1,
            'rank': rank,
            'player': rank_to_player.get(rank),
            'is_bye': rank > n,
        })

    round_name = get_round_name(bracket_size, bracket_size)
    first_round_matches = []
    for i in range(0, bracket_size, 2):
        slot1, slot2 = slots[i], slots[i + 1]
        index = i // 2
        first_round_matches.append({
            'match_number': index + 1,
            'slot1': slot1,
            'slot2': slot2,
            'is_bye': slot1['is_bye'] or slot2['is_bye'],
            'next_match_index': index // 2,
            'next_slot': 1 if index % 2 == 0 else 2,
            'round_name': round_name,
        })

    logger.debug("Generated bracket: %d players, size %d, %d byes",
                 n, bracket_size, bracket_size - n)

    return {
        'bracket_size': bracket_size,
        'bye_count': bracket_size - n,
        'total_rounds': total_rounds,
        'slots': slots,
        'first_round_matches': first_round_matches,
    }


def _slot_player_id(slot):
    if slot['is_bye'] or slot['player'] is None:
        return None
    return slot['player'].id


def build_knockout_matches(bracket: Dict, match_number_offset: int = 0) -> List[Dict]:
    """
    Expand a generated bracket into match rows for every round.

    Round 1 bye matches get status 'bye' and their real player as winner,
    and that winner is already placed into its round 2 slot. Later rounds
    start with empty slots. match_number restarts per round (like the round
    name, it is unique together with the round) and is offset by
    match_number_offset.

    Each row: round, round_name, match_number, match_code, player1_id,
    player2_id, status, winner_id, next_match_index, next_slot.
    """
    total_rounds = bracket['total_rounds']
    bracket_size = bracket['bracket_size']
    rounds = []

    first_round = []
    for wiring in bracket['first_round_matches']:
        player1_id = _slot_player_id(wiring['slot1'])
        player2_id = _slot_player_id(wiring['slot2'])
        is_bye = wiring['is_bye']
        first_round.append({
            'round': 1,
            'round_name': wiring['round_name'],
            'match_number': wiring['match_number'] + match_number_offset,
            'match_code': f"R1-M{wiring['match_number']}",
            'player1_id': player1_id,
            'player2_id': player2_id,
            'status': 'bye' if is_bye else 'pending',
            'winner_id': (player1_id or player2_id) if is_bye else None,
            'next_match_index': wiring['next_match_index'] if total_rounds > 1 else None,
            'next_slot': wiring['next_slot'] if total_rounds > 1 else None,
        })
    rounds.append(first_round)

    players_in_round = bracket_size // 2
    for round_number in range(2, total_rounds + 1):
        round_matches = []
        for index in range(players_in_round // 2):
            is_last = round_number == total_rounds
            round_matches.append({
                'round': round_number,
                'round_name': get_round_name(players_in_round, bracket_size),
                'match_number': index + 1 + match_number_offset,
                'match_code': f"R{round_number}-M{index + 1}",
                'player1_id': None,
                'player2_id': None,
                'status': 'pending',
                'winner_id': None,
                'next_match_index': None if is_last else index // 2,
                'next_slot': None if is_last else (1 if index % 2 == 0 else 2),
            })
        rounds.append(round_matches)
        players_in_round //= 2

    if total_rounds > 1:
        for match in first_round:
            if match['status'] == 'bye' and match['winner_id']:
                target = rounds[1][match['next_match_index']]
                target['player1_id' if match['next_slot'] == 1 else 'player2_id'] = match['winner_id']

    return [match for round_matches in rounds for match in round_matches]
