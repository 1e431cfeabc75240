"""Exceptions raised by the progression engine."""


class ConfigurationError(Exception):
    """
    Raised before replay when a definition or baseline cannot be used.

    The engine never guesses a missing baseline or ladder, so these are fatal.
    """

    pass
