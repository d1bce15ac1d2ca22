"""Creation coordinator: validate a URL and insert it under a fresh short code.

Flow Diagram — create_link()
============================
::
    ┌─────────────┐
    │ create_link │
    │ (url)       │
    └──────┬──────┘
           ▼
    ┌─────────────┐   invalid
    │ validate_url├──────────► LinkValidationError
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ attempt 1..N│◄──────────────┐
    │ generate()  │               │
    └──────┬──────┘               │
           ▼                      │
    ┌─────────────┐  Unique       │
    │ store.      ├──Violation────┘
    │ insert()    │
    └──────┬──────┘
   OK  │       │ StoreError → propagate, no retry
       ▼
    return Link          N collisions → CollisionExhausted

Key Behaviours
===============
- Insert-and-retry: the store's unique index is the only collision check,
  so two creators racing for one code cannot both win.
- At most ``max_attempts`` attempts per call (5 by default). A generated code
  that shadows a fixed route (``health``, ``api``, ...) uses up an attempt
  without an insert.
- expires_at is created_at plus the configured window (7 days).
"""

import datetime
import time
from urllib.parse import urlsplit

from shortlink.codegen import CodeGenerator
from shortlink.enums import RequestStatus
from shortlink.errors import CollisionExhausted, LinkValidationError, StoreError, UniqueViolation
from shortlink.log import get_logger
from shortlink.metrics import CODE_COLLISIONS_TOTAL, LINK_CREATION_REQUESTS_TOTAL
from shortlink.models import Link, new_link_id, utcnow
from shortlink.store import LinkStore

__all__ = ["LinkCreator", "validate_url", "ALLOWED_SCHEMES", "RESERVED_CODES"]

ALLOWED_SCHEMES = frozenset({"http", "https"})

# First path segments served by fixed routes; a link under one would be unreachable.
RESERVED_CODES = frozenset({"api", "docs", "health", "metrics", "redoc"})

MISSING_URL_MESSAGE = "URL is required"
INVALID_URL_MESSAGE = "Please enter a valid URL (e.g., https://example.com)"

logger = get_logger("creator")


def validate_url(url: str | None, max_length: int = 2048) -> str:
    """Return the trimmed URL or raise LinkValidationError.

    A URL is accepted when it is absolute, http(s), has a host and fits in
    ``max_length``. Path and query contents are not second-guessed.
    """
    if url is not None and not isinstance(url, str):
        raise LinkValidationError(INVALID_URL_MESSAGE)
    if url is None or not url.strip():
        raise LinkValidationError(MISSING_URL_MESSAGE)
    url = url.strip()
    if len(url) > max_length:
        raise LinkValidationError(f"URL must be at most {max_length} characters")
    if any(char.isspace() for char in url):
        raise LinkValidationError(INVALID_URL_MESSAGE)
    try:
        parts = urlsplit(url)
        parts.port  # raises on a malformed port
    except ValueError as exc:
        raise LinkValidationError(INVALID_URL_MESSAGE) from exc
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        raise LinkValidationError(INVALID_URL_MESSAGE)
    return url


class LinkCreator:
    def __init__(
        self,
        store: LinkStore,
        generator: CodeGenerator,
        max_attempts: int = 5,
        link_ttl: datetime.timedelta = datetime.timedelta(days=7),
        max_url_length: int = 2048,
        reserved_codes: frozenset[str] = RESERVED_CODES,
    ) -> None:
        assert max_attempts > 0, f"max_attempts must be positive, got {max_attempts!r}"
        self._store = store
        self._generator = generator
        self._max_attempts = max_attempts
        self._link_ttl = link_ttl
        self._max_url_length = max_url_length
        self._reserved_codes = reserved_codes

    async def create_link(self, url: str | None) -> Link:
        """Create a link for ``url`` under a newly generated, store-verified unique code.

        Raises:
            LinkValidationError: If the URL is missing, malformed, too long or not http(s).
            CollisionExhausted: If every attempt collided with an existing code.
            StoreError: If the store fails for any other reason.
        """
        start_time = time.perf_counter()
        try:
            target_url = validate_url(url, self._max_url_length)
        except LinkValidationError as exc:
            LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            logger.info(f"Rejected URL {url!r}: {exc}")
            raise

        for attempt in range(1, self._max_attempts + 1):
            short_code = self._generator.generate()
            if short_code in self._reserved_codes:
                logger.warning(f"Generated reserved short code on attempt {attempt}/{self._max_attempts}: {short_code}")
                continue
            created_at = utcnow()
            candidate = Link(
                id=new_link_id(),
                target_url=target_url,
                short_code=short_code,
                created_at=created_at,
                expires_at=created_at + self._link_ttl,
                clicks=0,
            )
            try:
                link = await self._store.insert(candidate)
            except UniqueViolation:
                CODE_COLLISIONS_TOTAL.inc()
                logger.warning(f"Short code collision on attempt {attempt}/{self._max_attempts}: {short_code}")
                continue
            except StoreError:
                LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
                raise

            LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
            duration = time.perf_counter() - start_time
            logger.info(f"Link created: {link.short_code} -> {link.target_url} in {duration:.3f}s")
            return link

        LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.COLLISION_EXHAUSTED).inc()
        logger.error(f"Gave up after {self._max_attempts} short code collisions")
        raise CollisionExhausted(self._max_attempts)
