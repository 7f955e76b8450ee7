"""Exceptions raised by the recommendation core.

Missing listeners, tracks or seeds are not errors: they degrade to empty
results. Only invalid configuration and invalid call arguments raise.
"""


class SgrecError(Exception):
    """Base exception for the recommendation core."""


class InvalidConfigError(SgrecError, ValueError):
    """Configuration value is malformed or out of range."""


class InvalidRequestError(SgrecError, ValueError):
    """A public call received an invalid argument (e.g. a negative limit)."""


def check_limit(limit: int) -> int:
    """Validate a result limit at the call boundary."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidRequestError(f"limit must be an integer, got {limit!r}")
    if limit < 0:
        raise InvalidRequestError(f"limit must be non-negative, got {limit}")
    return limit
