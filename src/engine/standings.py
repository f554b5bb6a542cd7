"""
Group standings computed from completed matches and their games.

Ranking:
    1. Match wins (desc)
    2. Head-to-head, only when exactly two players are level on wins
    3. Games won (desc), then games lost (asc)
    4. Points scored (desc), then points conceded (asc)
    5. Player id (asc), so the order is always total

Head-to-head is skipped for three or more level players because their
results against each other can be circular.
"""
from itertools import groupby
from typing import Dict, List, Optional

WINS = 'wins'
HEAD_TO_HEAD = 'head_to_head'
GAME_DIFFERENCE = 'game_difference'
POINTS_DIFFERENCE = 'points_difference'
PLAYER_ID = 'player_id'


def _counts(match) -> bool:
    return match.status == 'complete' and match.has_both_players


def _empty_row(player_id, player) -> Dict:
    return {
        'player_id': player_id,
        'player_name': player.name if player else player_id,
        'player_seed': player.seed if player else None,
        'player_club': player.club if player else None,
        'matches_played': 0,
        'wins': 0,
        'losses': 0,
        'games_won': 0,
        'games_lost': 0,
        'points_scored': 0,
        'points_conceded': 0,
    }


def _fallback_key(row: Dict):
    return (-row['games_won'], row['games_lost'],
            -row['points_scored'], row['points_conceded'],
            row['player_id'])


def head_to_head_winner(player_a, player_b, matches) -> Optional[str]:
    """Winner of the completed match between two players, or None."""
    for match in matches:
        if _counts(match) and match.involves(player_a, player_b):
            if match.winner_id in (player_a, player_b):
                return match.winner_id
            return None
    return None


def _resolve_tie(tied: List[Dict], completed_matches) -> List[Dict]:
    if len(tied) == 2:
        winner = head_to_head_winner(tied[0]['player_id'], tied[1]['player_id'], completed_matches)
        if winner == tied[0]['player_id']:
            return [tied[0], tied[1]]
        if winner == tied[1]['player_id']:
            return [tied[1], tied[0]]
    return sorted(tied, key=_fallback_key)


def sort_standings(rows: List[Dict], completed_matches) -> List[Dict]:
    """Order standing rows by the tiebreaker chain. Does not mutate rows."""
    by_wins = sorted(rows, key=lambda r: -r['wins'])
    ordered = []
    for _, cluster in groupby(by_wins, key=lambda r: r['wins']):
        cluster = list(cluster)
        if len(cluster) == 1:
            ordered.extend(cluster)
        else:
            ordered.extend(_resolve_tie(cluster, completed_matches))
    return ordered


def compute_group_standings(group, players, matches, games, advance_count: int) -> List[Dict]:
    """
    Compute the ranked standings for one group.

    Every player in group.player_ids gets a row, including players with no
    completed matches (0-0-0). Only complete matches with both slots filled
    count. Game totals come from the match's player1_games/player2_games;
    points are summed from the match's game scores.
    """
    player_map = {p.id: p for p in players}
    stats = {pid: _empty_row(pid, player_map.get(pid)) for pid in group.player_ids}

    games_by_match = {}
    for game in games:
        games_by_match.setdefault(game.match_id, []).append(game)

    completed = [m for m in matches if _counts(m)]

    for match in completed:
        p1 = stats.get(match.player1_id)
        p2 = stats.get(match.player2_id)
        if p1 is None or p2 is None:
            continue

        p1['matches_played'] += 1
        p2['matches_played'] += 1

        if match.winner_id == match.player1_id:
            p1['wins'] += 1
            p2['losses'] += 1
        elif match.winner_id == match.player2_id:
            p2['wins'] += 1
            p1['losses'] += 1

        p1['games_won'] += match.player1_games
        p1['games_lost'] += match.player2_games
        p2['games_won'] += match.player2_games
        p2['games_lost'] += match.player1_games

        for game in games_by_match.get(match.id, []):
            score1 = game.score1 or 0
            score2 = game.score2 or 0
            p1['points_scored'] += score1
            p1['points_conceded'] += score2
            p2['points_scored'] += score2
            p2['points_conceded'] += score1

    for row in stats.values():
        row['game_difference'] = row['games_won'] - row['games_lost']
        row['points_difference'] = row['points_scored'] - row['points_conceded']

    standings = sort_standings(list(stats.values()), completed)
    for rank, row in enumerate(standings, start=1):
        row['rank'] = rank
        row['advances'] = rank <= advance_count

    return standings


def compute_all_group_standings(groups, players, matches, games, advance_count: int) -> List[Dict]:
    """
    Standings for every group, in ascending group_number order.

    Returns [{'group': group, 'standings': [...]}, ...]. Matches are
    partitioned by group_id and games by their match before delegating.
    """
    results = []
    for group in sorted(groups, key=lambda g: g.group_number):
        group_matches = [m for m in matches if m.group_id == group.id]
        match_ids = {m.id for m in group_matches}
        group_games = [g for g in games if g.match_id in match_ids]
        results.append({
            'group': group,
            'standings': compute_group_standings(group, players, group_matches,
                                                 group_games, advance_count),
        })
    return results


def group_progress(matches) -> Dict:
    """Completed vs total non-bye matches. An empty group is never done."""
    real = [m for m in matches if m.status != 'bye']
    completed = sum(1 for m in real if m.status == 'complete')
    return {
        'completed': completed,
        'total': len(real),
        'all_done': completed > 0 and completed == len(real),
    }


def get_tiebreaker_reason(higher: Dict, lower: Dict, completed_matches, standings: List[Dict]) -> str:
    """
    Which rule separated two adjacent standing rows (for display only).

    standings is the full sorted group table; head-to-head is only reported
    when exactly two rows share the win count, as in sort_standings.
    """
    if higher['wins'] != lower['wins']:
        return WINS
    level = sum(1 for row in standings if row['wins'] == higher['wins'])
    if level == 2 and head_to_head_winner(higher['player_id'], lower['player_id'],
                                          completed_matches) == higher['player_id']:
        return HEAD_TO_HEAD
    if higher['games_won'] != lower['games_won'] or higher['games_lost'] != lower['games_lost']:
        return GAME_DIFFERENCE
    if (higher['points_scored'] != lower['points_scored']
            or higher['points_conceded'] != lower['points_conceded']):
        return POINTS_DIFFERENCE
    return PLAYER_ID
