#!/usr/bin/env python3
"""
Report group standings, qualifiers and the knockout draw for a tournament
described in a YAML file.

    stage:
      number_of_groups: 2
      advance_count: 2
      match_format: bo5
    players:
      - {id: p1, name: Alice, club: Riverside, seed: 1}
      - {id: p2, name: Bob}
    groups:
      Group A: [p1, p2, p3]
    results:
      - {group: Group A, player1: p1, player2: p2, games: [[11, 8], [9, 11], [11, 6], [11, 9]]}

Usage:
    python src/main.py data/tournament.yaml
"""
import argparse
import logging
import os
import sys

import yaml

from engine.config import validate_stage_config
from engine.errors import ConfigError, DomainLimitError
from engine.models import Game, Group, Match, Player
from engine.qualifiers import generate_knockout_draw
from engine.scoring import (
    compute_match_state,
    derive_game_winner_id,
    derive_match_status,
    format_validation_errors,
    match_winner_id,
    validate_game_score,
)
from engine.standings import compute_all_group_standings, group_progress


def load_tournament(file_path):
    """
    Load a tournament file into engine records.

    Returns (config, players, groups, matches, games, errors). Results with
    an invalid game score or an unknown group are left out; they, and a group
    count that differs from the stage config, are described in errors.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}

    config = validate_stage_config(data.get('stage') or {})

    players = [Player(id=str(p['id']), name=p.get('name', str(p['id'])), club=p.get('club'),
                      seed=p.get('seed'), preferred_group=p.get('preferred_group'))
               for p in data.get('players') or []]

    groups = []
    for group_number, (group_name, player_ids) in enumerate((data.get('groups') or {}).items(), start=1):
        groups.append(Group(id=group_name, name=group_name, group_number=group_number,
                            player_ids=[str(pid) for pid in player_ids or []]))

    matches = []
    games = []
    errors = []
    if groups and len(groups) != config['number_of_groups']:
        errors.append(f"Stage config expects {config['number_of_groups']} group(s) "
                      f"but {len(groups)} are listed.")
    group_ids = {g.id for g in groups}

    for index, result in enumerate(data.get('results') or [], start=1):
        match_id = f"M{index}"
        player1_id = str(result['player1'])
        player2_id = str(result['player2'])
        group_id = result.get('group')
        if group_id not in group_ids:
            errors.append(f"Skipped result {match_id} {player1_id} vs {player2_id}: "
                          f"unknown group {group_id!r}.")
            continue

        match_games = []
        invalid = False
        for game_number, (score1, score2) in enumerate(result.get('games') or [], start=1):
            validation = validate_game_score(score1, score2)
            if not validation['ok']:
                errors.append(f"Skipped result {match_id} {player1_id} vs {player2_id}, game {game_number}: "
                              f"{format_validation_errors(validation)}")
                invalid = True
                continue
            match_games.append(Game(match_id, game_number, score1, score2,
                                    derive_game_winner_id(score1, score2, player1_id, player2_id)))
        if invalid:
            continue

        state = compute_match_state(match_games, config['match_format'], player1_id, player2_id)
        matches.append(Match(
            id=match_id,
            player1_id=player1_id,
            player2_id=player2_id,
            status=derive_match_status(state, match_games),
            winner_id=match_winner_id(state, player1_id, player2_id),
            player1_games=state['player1_games'],
            player2_games=state['player2_games'],
            group_id=group_id,
            games=match_games,
        ))
        games.extend(match_games)

    return config, players, groups, matches, games, errors


def format_standings(group, standings, progress):
    lines = [f"# {group.name} ({progress['completed']}/{progress['total']} recorded matches complete)",
             f"{'#':>2}  {'Player':<20} {'P':>2} {'W':>2} {'L':>2} {'GD':>4} {'PD':>5}"]
    for row in standings:
        marker = '*' if row['advances'] else ' '
        lines.append(f"{row['rank']:>2}{marker} {row['player_name']:<20} {row['matches_played']:>2} "
                     f"{row['wins']:>2} {row['losses']:>2} {row['game_difference']:>4} "
                     f"{row['points_difference']:>5}")
    return '\n'.join(lines)


def format_draw(draw):
    lines = ['# Qualifiers']
    for q in draw['qualifiers']:
        suffix = ' (best of next rank)' if q['is_best_third'] else ''
        lines.append(f"{q['ko_seed']:>3}  {q['name']} - {q['group_name']} #{q['rr_rank']}{suffix}")
    if draw['clashes']:
        lines.append(f"Warning: {draw['clashes']} same-group first round pairing(s) could not be avoided")

    bracket = draw['bracket']
    first_round = bracket['first_round_matches']
    lines.append('')
    lines.append(f"# {first_round[0]['round_name']} ({bracket['bracket_size']} draw, {bracket['bye_count']} byes)")
    for match in first_round:
        left = match['slot1']['player'].name if match['slot1']['player'] else 'BYE'
        right = match['slot2']['player'].name if match['slot2']['player'] else 'BYE'
        lines.append(f"{match['match_number']:>3}  [{match['slot1']['rank']}] {left} vs "
                     f"[{match['slot2']['rank']}] {right}")
    return '\n'.join(lines)


def main(argv=None):
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    parser = argparse.ArgumentParser(description='Standings and knockout draw for a group stage')
    parser.add_argument(
        'tournament_file',
        nargs='?',
        default=os.path.join(base_dir, 'data', 'tournament.yaml'),
        help='YAML file with stage config, players, groups and results'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        config, players, groups, matches, games, errors = load_tournament(args.tournament_file)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for error in errors:
        print(error, file=sys.stderr)

    if not groups:
        print(f"No groups found in {args.tournament_file}", file=sys.stderr)
        return 1

    group_standings = compute_all_group_standings(groups, players, matches, games,
                                                  config['advance_count'])
    for entry in group_standings:
        group_matches = [m for m in matches if m.group_id == entry['group'].id]
        print(format_standings(entry['group'], entry['standings'], group_progress(group_matches)))
        print()

    try:
        draw = generate_knockout_draw(group_standings, config)
    except DomainLimitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(format_draw(draw))
    return 0


if __name__ == '__main__':
    sys.exit(main())
