"""
Round-robin stage configuration: defaults, YAML loading and validation.
"""
import yaml

from .errors import ConfigError
from .formats import MATCH_FORMATS

# camelCase spellings accepted from older exported stage configs
KEY_ALIASES = {
    'numberOfGroups': 'number_of_groups',
    'advanceCount': 'advance_count',
    'matchFormat': 'match_format',
    'allowBestThird': 'allow_best_third',
    'bestThirdCount': 'best_third_count',
}

INT_RANGES = {
    'number_of_groups': (1, 16),
    'advance_count': (1, 4),
    'best_third_count': (1, 4),
}


def get_default_stage_config():
    """Return the default round-robin stage configuration."""
    return {
        'number_of_groups': 1,
        'advance_count': 2,
        'match_format': 'bo5',
        'allow_best_third': False,
        'best_third_count': 1,
    }


def validate_stage_config(config):
    """Return a normalised copy of config, raising ConfigError if invalid."""
    if not isinstance(config, dict):
        raise ConfigError(f"Stage config must be a mapping, got {type(config).__name__}")

    normalised = get_default_stage_config()
    for key, value in config.items():
        key = KEY_ALIASES.get(key, key)
        if key not in normalised:
            raise ConfigError(f"Unknown stage config option: {key}")
        normalised[key] = value

    for key, (low, high) in INT_RANGES.items():
        value = normalised[key]
        if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
            raise ConfigError(f"{key} must be an integer between {low} and {high}, got {value!r}")

    if normalised['match_format'] not in MATCH_FORMATS:
        raise ConfigError(f"Unknown match format: {normalised['match_format']!r}")

    if not isinstance(normalised['allow_best_third'], bool):
        raise ConfigError(f"allow_best_third must be true or false, got {normalised['allow_best_third']!r}")

    return normalised


def load_stage_config(file_path):
    """
    Load a stage config from YAML.

    The options may sit at the top level or under a 'round_robin' key.
    An empty file gives the defaults.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {file_path}: {e}") from e

    if data is None:
        return get_default_stage_config()
    if isinstance(data, dict) and 'round_robin' in data:
        data = data['round_robin'] or {}
    return validate_stage_config(data)
