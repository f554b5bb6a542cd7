"""
Qualification from round-robin groups into a knockout bracket.

Qualifiers are taken rank by rank across groups in group-number order, so
all group winners come first, then all runners-up, and so on. Optionally the
best players of the next rank across groups (e.g. best thirds) are appended,
compared by wins, game difference, points difference and player id; there
is no head-to-head because they never met.

KO seeds are then adjusted so that two players from the same group do not
meet in round 1 where a simple swap can avoid it.
"""
import logging
from typing import Dict, List, Optional

from .elimination import first_round_pairings, generate_bracket
from .errors import DomainLimitError
from .models import Player

logger = logging.getLogger(__name__)


def _qualifier(row: Dict, group, rr_rank: int, is_best_third: bool) -> Dict:
    return {
        'player_id': row['player_id'],
        'name': row['player_name'],
        'seed': row['player_seed'],
        'club': row['player_club'],
        'rr_rank': rr_rank,
        'group_name': group.name,
        'group_id': group.id,
        'group_number': group.group_number,
        'ko_seed': 0,
        'is_best_third': is_best_third,
    }


def _standing_at_rank(standings: List[Dict], rank: int) -> Optional[Dict]:
    for row in standings:
        if row['rank'] == rank:
            return row
    return None


def _cross_group_key(row: Dict):
    return (-row['wins'], -row['game_difference'], -row['points_difference'], row['player_id'])


def build_qualifiers(group_standings: List[Dict], config: Dict) -> List[Dict]:
    """
    Build the ordered qualifier list with ko_seed 1..total.

    Args:
        group_standings: [{'group': Group, 'standings': [...]}] as returned
            by compute_all_group_standings
        config: stage config with advance_count, allow_best_third and
            best_third_count
    """
    advance_count = config['advance_count']
    ordered_groups = sorted(group_standings, key=lambda gs: gs['group'].group_number)

    qualifiers = []
    for rank in range(1, advance_count + 1):
        for entry in ordered_groups:
            row = _standing_at_rank(entry['standings'], rank)
            if row is not None:
                qualifiers.append(_qualifier(row, entry['group'], rank, False))

    best_third_count = config.get('best_third_count', 0)
    if config.get('allow_best_third') and best_third_count > 0:
        next_rank = advance_count + 1
        candidates = []
        for entry in ordered_groups:
            row = _standing_at_rank(entry['standings'], next_rank)
            if row is not None:
                candidates.append((row, entry['group']))
        candidates.sort(key=lambda c: _cross_group_key(c[0]))
        for row, group in candidates[:best_third_count]:
            qualifiers.append(_qualifier(row, group, next_rank, True))

    for ko_seed, qualifier in enumerate(qualifiers, start=1):
        qualifier['ko_seed'] = ko_seed

    return qualifiers


def _real_pairings(n: int) -> List[tuple]:
    return [(a, b) for a, b in first_round_pairings(n) if a <= n and b <= n]


def count_same_group_clashes(qualifiers: List[Dict]) -> int:
    """Number of round 1 pairings between players of the same group."""
    ordered = sorted(qualifiers, key=lambda q: q['ko_seed'])
    n = len(ordered)
    if n < 2:
        return 0
    return sum(1 for a, b in _real_pairings(n)
               if ordered[a - 1]['group_id'] == ordered[b - 1]['group_id'])


def avoid_same_group_clashes(qualifiers: List[Dict]) -> List[Dict]:
    """
    Reorder qualifiers to avoid same-group round 1 pairings where possible.

    For each clashing pairing the weaker seed is swapped with the first
    player in the weaker half of the list (seed > N/2) whose move creates no
    new clash, neither with the stronger seed nor at the candidate's old
    pairing. Clashes that cannot be repaired this way are logged and left in
    place. This is a single greedy pass, not an optimal matching.

    Returns new qualifier dicts with ko_seed renumbered 1..N.
    """
    n = len(qualifiers)
    ordered = [dict(q) for q in sorted(qualifiers, key=lambda q: q['ko_seed'])]
    if n < 2:
        return ordered

    pairings = _real_pairings(n)
    partner_of = {}
    for a, b in pairings:
        partner_of[a] = b
        partner_of[b] = a

    for seed_a, seed_b in pairings:
        upper = ordered[seed_a - 1]
        lower = ordered[seed_b - 1]
        if upper['group_id'] != lower['group_id']:
            continue

        swapped = False
        for candidate_seed in range(n // 2 + 1, n + 1):
            if candidate_seed in (seed_a, seed_b):
                continue
            candidate = ordered[candidate_seed - 1]
            if candidate['group_id'] == upper['group_id']:
                continue

            old_partner_seed = partner_of.get(candidate_seed)
            if old_partner_seed is not None:
                old_partner = ordered[old_partner_seed - 1]
                if old_partner['group_id'] == lower['group_id']:
                    continue

            ordered[seed_b - 1], ordered[candidate_seed - 1] = candidate, lower
            swapped = True
            break

        if not swapped:
            logger.warning("Could not avoid same-group round 1 clash: %s vs %s (%s)",
                           upper['name'], lower['name'], lower['group_name'])

    for ko_seed, qualifier in enumerate(ordered, start=1):
        qualifier['ko_seed'] = ko_seed

    return ordered


def generate_knockout_draw(group_standings: List[Dict], config: Dict) -> Dict:
    """
    Qualify players from the group stage and seed them into a bracket.

    Returns {'qualifiers', 'clashes', 'bracket'} where clashes is the number
    of same-group round 1 pairings that could not be avoided. Bracket rank r
    is always qualifiers[r - 1], whatever the number of qualifiers.
    """
    qualifiers = build_qualifiers(group_standings, config)
    if len(qualifiers) < 2:
        raise DomainLimitError(
            f"Not enough qualifiers for a knockout bracket. Got {len(qualifiers)}.")

    before = count_same_group_clashes(qualifiers)
    qualifiers = avoid_same_group_clashes(qualifiers)
    clashes = count_same_group_clashes(qualifiers)
    logger.debug("Same-group round 1 clashes: %d before repair, %d after", before, clashes)

    ko_players = [Player(id=q['player_id'], name=q['name'], club=q['club'], seed=q['ko_seed'])
                  for q in qualifiers]
    bracket = generate_bracket(ko_players, ranked=True)

    return {'qualifiers': qualifiers, 'clashes': clashes, 'bracket': bracket}
