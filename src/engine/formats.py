from .errors import ConfigError

MATCH_FORMATS = {
    'bo3': {'format': 'bo3', 'games_needed': 2, 'max_games': 3, 'label': 'Best of 3'},
    'bo5': {'format': 'bo5', 'games_needed': 3, 'max_games': 5, 'label': 'Best of 5'},
    'bo7': {'format': 'bo7', 'games_needed': 4, 'max_games': 7, 'label': 'Best of 7'},
}


def get_format_config(fmt):
    """Return the games_needed/max_games entry for a match format key."""
    try:
        return MATCH_FORMATS[fmt]
    except KeyError:
        valid = ', '.join(sorted(MATCH_FORMATS))
        raise ConfigError(f"Unknown match format '{fmt}'. Expected one of: {valid}") from None


def format_label(fmt):
    return get_format_config(fmt)['label']
