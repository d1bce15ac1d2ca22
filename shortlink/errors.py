"""Error taxonomy for link creation and resolution.

Creation failures (``LinkValidationError``, ``CollisionExhausted``) are
expected outcomes and are turned into ``{"success": false}`` bodies by the
HTTP layer. ``UniqueViolation`` never leaves the creation retry loop.
``CacheUnavailable`` never leaves the redirect resolver.
"""

__all__ = [
    "ShortLinkError",
    "LinkValidationError",
    "CollisionExhausted",
    "UniqueViolation",
    "StoreError",
    "CacheUnavailable",
]


class ShortLinkError(Exception):
    """Base class for all shortlink errors."""


class LinkValidationError(ShortLinkError):
    """The submitted URL is empty, malformed, too long or not http(s)."""


class CollisionExhausted(ShortLinkError):
    """Every creation attempt collided with an existing short code."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Could not generate a unique short code after {attempts} attempts")
        self.attempts = attempts


class UniqueViolation(ShortLinkError):
    """The store rejected an insert because the short code is taken."""

    def __init__(self, short_code: str) -> None:
        super().__init__(f"Short code '{short_code}' already exists")
        self.short_code = short_code


class StoreError(ShortLinkError):
    """The link store failed or timed out."""


class CacheUnavailable(ShortLinkError):
    """The cache failed or timed out."""
