MATCH_STATUSES = ('pending', 'live', 'complete', 'bye')

MAX_EXPLICIT_SEED = 64


class Player:
    def __init__(self, id, name, club=None, seed=None, preferred_group=None):
        self.id = id
        self.name = name
        self.club = club
        self.seed = seed  # 1 = best; None when unseeded
        self.preferred_group = preferred_group  # 1-based group number

    @property
    def has_valid_seed(self):
        return (
            isinstance(self.seed, int)
            and not isinstance(self.seed, bool)
            and 1 <= self.seed <= MAX_EXPLICIT_SEED
        )

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, seed={self.seed})"


class Game:
    def __init__(self, match_id, game_number, score1=None, score2=None, winner_id=None):
        self.match_id = match_id
        self.game_number = game_number
        self.score1 = score1
        self.score2 = score2
        self.winner_id = winner_id

    @property
    def is_scored(self):
        return self.score1 is not None and self.score2 is not None

    def __repr__(self):
        return f"Game(match_id={self.match_id}, game_number={self.game_number}, score={self.score1}-{self.score2})"


class Match:
    def __init__(self, id, player1_id=None, player2_id=None, status='pending', winner_id=None,
                 player1_games=0, player2_games=0, group_id=None, round=None,
                 match_number=None, next_match_id=None, next_slot=None, games=None):
        if status not in MATCH_STATUSES:
            raise ValueError(f"Unknown match status: {status}")
        self.id = id
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.status = status
        self.winner_id = winner_id
        self.player1_games = player1_games
        self.player2_games = player2_games
        self.group_id = group_id
        self.round = round
        self.match_number = match_number
        self.next_match_id = next_match_id
        self.next_slot = next_slot  # 1 or 2
        self.games = games if games else []

    @property
    def has_both_players(self):
        return bool(self.player1_id) and bool(self.player2_id)

    def involves(self, player_a, player_b):
        return {self.player1_id, self.player2_id} == {player_a, player_b}

    def __repr__(self):
        return (f"Match(id={self.id}, players=({self.player1_id}, {self.player2_id}), "
                f"status={self.status}, winner={self.winner_id})")


class Group:
    def __init__(self, id, name, group_number, player_ids=None):
        self.id = id
        self.name = name
        self.group_number = group_number  # 1-based
        self.player_ids = list(player_ids) if player_ids else []

    def __repr__(self):
        return f"Group(name={self.name}, group_number={self.group_number}, players={self.player_ids})"
