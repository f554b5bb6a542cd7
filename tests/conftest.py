"""
Shared pytest fixtures for competition engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips exhaustive size sweeps)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.models import Player, Game, Match, Group
from engine.scoring import compute_match_state, match_winner_id, derive_match_status


def build_match(match_id, player1_id, player2_id, scores, fmt='bo5', group_id=None):
    """Build a Match and its Games from a list of (score1, score2) tuples."""
    games = [Game(match_id, i, s1, s2) for i, (s1, s2) in enumerate(scores, start=1)]
    state = compute_match_state(games, fmt, player1_id, player2_id)
    match = Match(
        id=match_id,
        player1_id=player1_id,
        player2_id=player2_id,
        status=derive_match_status(state, games),
        winner_id=match_winner_id(state, player1_id, player2_id),
        player1_games=state['player1_games'],
        player2_games=state['player2_games'],
        group_id=group_id,
        games=games,
    )
    return match, games


@pytest.fixture
def match_builder():
    """Factory fixture returning build_match."""
    return build_match


@pytest.fixture
def four_players():
    """Four players in one group, none seeded."""
    return [
        Player(id="p1", name="Alice", club="Riverside"),
        Player(id="p2", name="Bob", club="Riverside"),
        Player(id="p3", name="Carol", club="Hillcrest"),
        Player(id="p4", name="Dan", club="Hillcrest"),
    ]


@pytest.fixture
def four_player_group(four_players):
    """Group A holding the four players."""
    return Group(id="gA", name="Group A", group_number=1, player_ids=[p.id for p in four_players])


@pytest.fixture
def sixteen_players():
    """Sixteen players, the first four explicitly seeded."""
    players = []
    for i in range(1, 17):
        seed = i if i <= 4 else None
        players.append(Player(id=f"p{i:02d}", name=f"Player {i}", seed=seed))
    return players


@pytest.fixture
def stage_config():
    """Typical stage config: top two advance, no best thirds."""
    return {
        'number_of_groups': 2,
        'advance_count': 2,
        'match_format': 'bo5',
        'allow_best_third': False,
        'best_third_count': 1,
    }
