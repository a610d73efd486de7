"""Exception hierarchy for caller mistakes.

Cache misses, expiry and oversized values are not errors and never raise.
"""


class CacheError(Exception):
    """Base class for all cache errors."""


class CacheConfigError(CacheError, ValueError):
    """A cache limit was zero, negative, or otherwise unusable."""


class InvalidPatternError(CacheError, ValueError):
    """An invalidation pattern is not a valid regular expression."""
