"""
Round-robin group assignment and fixture scheduling (circle method).

For an even number of seats, the first seat stays fixed and the others
rotate one position each round (the last seat moves to position 1). Each
round pairs seat[i] with seat[n-1-i]. Odd groups get a BYE seat appended,
so every real player sits out exactly one round.

Example with 4 players A, B, C, D:
    Round 1: A-D, B-C    seats [A, B, C, D]
    Round 2: A-C, D-B    seats [A, D, B, C]
    Round 3: A-B, C-D    seats [A, C, D, B]
"""
import logging
import random
from typing import Dict, List, Optional

from .errors import DomainLimitError

logger = logging.getLogger(__name__)

BYE_PLAYER_ID = '__BYE__'
MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = 32
MIN_GROUPS = 1
MAX_GROUPS = 16


def _rotate_tail(seats: List[str]) -> List[str]:
    if len(seats) <= 2:
        return seats
    return [seats[0], seats[-1]] + seats[1:-1]


def _pairs_for_round(seats: List[str]) -> List[tuple]:
    n = len(seats)
    return [(seats[i], seats[n - 1 - i]) for i in range(n // 2)]


def generate_group_schedule(player_ids: List[str]) -> List[Dict]:
    """
    Generate every fixture for one group.

    Returns a list of {'round', 'player1_id', 'player2_id', 'is_bye'} dicts.
    Fixtures against BYE_PLAYER_ID are included with is_bye=True; the real
    player in them gets a walkover round.
    """
    n = len(player_ids)
    if n < MIN_GROUP_SIZE:
        raise DomainLimitError(
            f"Round robin requires at least {MIN_GROUP_SIZE} players per group. Got {n}.")
    if n > MAX_GROUP_SIZE:
        raise DomainLimitError(
            f"Round robin group size is capped at {MAX_GROUP_SIZE}. Got {n}. Split into more groups.")

    seats = list(player_ids)
    if len(seats) % 2:
        seats.append(BYE_PLAYER_ID)

    fixtures = []
    for round_number in range(1, len(seats)):
        for player1_id, player2_id in _pairs_for_round(seats):
            fixtures.append({
                'round': round_number,
                'player1_id': player1_id,
                'player2_id': player2_id,
                'is_bye': BYE_PLAYER_ID in (player1_id, player2_id),
            })
        seats = _rotate_tail(seats)

    return fixtures


def _group_fields(group):
    if isinstance(group, dict):
        return group['group_number'], group['player_ids']
    return group.group_number, group.player_ids


def generate_multi_group_schedule(groups, match_number_offset: int = 0) -> List[Dict]:
    """
    Generate fixtures for several groups with one shared match-number sequence.

    Rounds are matchdays shared by every group. Numbers run round by round,
    and within a round group by group (ascending group_number), starting at
    match_number_offset + 1 so they do not collide with numbers already used
    in the tournament.
    """
    per_group = []
    for group in sorted(groups, key=lambda g: _group_fields(g)[0]):
        group_number, player_ids = _group_fields(group)
        per_group.append((group_number, generate_group_schedule(player_ids)))

    all_rounds = sorted({f['round'] for _, fixtures in per_group for f in fixtures})

    result = []
    match_number = match_number_offset
    for round_number in all_rounds:
        for group_number, fixtures in per_group:
            for fixture in fixtures:
                if fixture['round'] != round_number:
                    continue
                match_number += 1
                result.append(dict(fixture,
                                   match_number=match_number,
                                   group_number=group_number,
                                   group_index=group_number - 1))

    logger.debug("Generated %d fixtures over %d rounds for %d groups",
                 len(result), len(all_rounds), len(per_group))
    return result


def verify_schedule(player_ids: List[str], fixtures: List[Dict]) -> Dict:
    """
    Check a schedule: expected fixture count, no duplicate pair, no missing
    pair, nobody playing twice in one round. Bye fixtures are ignored.
    """
    real = [f for f in fixtures if not f['is_bye']]
    n = len(player_ids)
    expected = n * (n - 1) // 2

    if len(real) != expected:
        return {'valid': False,
                'reason': f"Expected {expected} fixtures for {n} players, got {len(real)}."}

    seen = set()
    for fixture in real:
        key = frozenset((fixture['player1_id'], fixture['player2_id']))
        if key in seen:
            return {'valid': False,
                    'reason': f"Duplicate fixture: {fixture['player1_id']} vs {fixture['player2_id']}."}
        seen.add(key)

    for i in range(n):
        for j in range(i + 1, n):
            if frozenset((player_ids[i], player_ids[j])) not in seen:
                return {'valid': False,
                        'reason': f"Missing fixture: {player_ids[i]} vs {player_ids[j]}."}

    busy = set()
    for fixture in fixtures:
        for pid in (fixture['player1_id'], fixture['player2_id']):
            if pid == BYE_PLAYER_ID:
                continue
            slot = (fixture['round'], pid)
            if slot in busy:
                return {'valid': False,
                        'reason': f"{pid} plays more than once in round {fixture['round']}."}
            busy.add(slot)

    return {'valid': True, 'reason': None}


def assign_players_to_groups(players, number_of_groups: int,
                             rng: Optional[random.Random] = None) -> Dict[int, List[str]]:
    """
    Distribute players into groups numbered 1..number_of_groups.

    1. Players with a preferred_group in range go straight to that group.
    2. Remaining seeded players, best seed first, are snake-distributed over
       the groups ordered by their size at the start of each pass (left to
       right on even passes, right to left on odd passes).
    3. Remaining unseeded players are shuffled and each goes to the
       currently smallest group.

    Pass rng (anything with .shuffle) for a reproducible draw.
    """
    if not MIN_GROUPS <= number_of_groups <= MAX_GROUPS:
        raise DomainLimitError(
            f"Number of groups must be between {MIN_GROUPS} and {MAX_GROUPS}. Got {number_of_groups}.")

    rng = rng or random.Random()
    group_numbers = list(range(1, number_of_groups + 1))
    assignment = {g: [] for g in group_numbers}

    def by_size():
        # sorted() is stable, so equal-size groups keep group-number order
        return sorted(group_numbers, key=lambda g: len(assignment[g]))

    unassigned = []
    for player in players:
        preferred = player.preferred_group
        if isinstance(preferred, int) and 1 <= preferred <= number_of_groups:
            assignment[preferred].append(player.id)
        else:
            unassigned.append(player)

    seeded = sorted((p for p in unassigned if p.has_valid_seed), key=lambda p: p.seed)
    unseeded = [p for p in unassigned if not p.has_valid_seed]
    rng.shuffle(unseeded)

    ordered = group_numbers
    for i, player in enumerate(seeded):
        pass_number, position = divmod(i, number_of_groups)
        if position == 0:
            # group order is fixed for the whole pass
            ordered = by_size()
            if pass_number % 2:
                ordered.reverse()
        assignment[ordered[position]].append(player.id)

    for player in unseeded:
        assignment[by_size()[0]].append(player.id)

    for group_number, player_ids in assignment.items():
        if len(player_ids) < MIN_GROUP_SIZE:
            raise DomainLimitError(
                f"Group {group_number} would have only {len(player_ids)} player(s). "
                f"Add more players or reduce the number of groups.")

    return assignment
