class DomainLimitError(ValueError):
    """Raised when an operation is asked to work outside its hard size limits."""


class ConfigError(ValueError):
    """Raised for an invalid stage configuration or unknown match format."""
