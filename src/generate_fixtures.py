#!/usr/bin/env python3
"""
Print the round-robin fixture list for the groups in a YAML file.

The file maps group names to player names, in group order:

    Group A: [Alice, Bob, Carol, Dan]
    Group B: [Eve, Frank, Grace]

Usage:
    python src/generate_fixtures.py data/groups.yaml
    python src/generate_fixtures.py data/groups.yaml --offset 40
"""
import argparse
import logging
import os
import sys

import yaml

from engine.errors import DomainLimitError
from engine.models import Group
from engine.round_robin import BYE_PLAYER_ID, generate_multi_group_schedule


def load_groups(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        groups_data = yaml.safe_load(file) or {}
    groups = []
    for group_number, (group_name, player_names) in enumerate(groups_data.items(), start=1):
        groups.append(Group(id=group_name, name=group_name, group_number=group_number,
                            player_ids=[str(name) for name in (player_names or [])]))
    return groups


def format_fixtures(groups, fixtures):
    """Render fixtures as text, one block per round."""
    names = {g.group_number: g.name for g in groups}
    lines = []
    current_round = None
    for fixture in fixtures:
        if fixture['round'] != current_round:
            if current_round is not None:
                lines.append('')
            current_round = fixture['round']
            lines.append(f"# Round {current_round}")
        group_name = names[fixture['group_number']]
        if fixture['is_bye']:
            player = fixture['player2_id'] if fixture['player1_id'] == BYE_PLAYER_ID else fixture['player1_id']
            lines.append(f"{fixture['match_number']:>4}  [{group_name}] {player} - bye")
        else:
            lines.append(f"{fixture['match_number']:>4}  [{group_name}] "
                         f"{fixture['player1_id']} vs {fixture['player2_id']}")
    return '\n'.join(lines)


def main(argv=None):
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    parser = argparse.ArgumentParser(description='Generate round-robin fixtures for groups')
    parser.add_argument(
        'groups_file',
        nargs='?',
        default=os.path.join(base_dir, 'data', 'groups.yaml'),
        help='YAML file mapping group names to player names'
    )
    parser.add_argument(
        '--offset',
        type=int,
        default=0,
        help='Highest match number already used in the tournament'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    groups = load_groups(args.groups_file)
    if not groups:
        print(f"No groups found in {args.groups_file}", file=sys.stderr)
        return 1

    try:
        fixtures = generate_multi_group_schedule(groups, args.offset)
    except DomainLimitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(format_fixtures(groups, fixtures))
    return 0


if __name__ == '__main__':
    sys.exit(main())
