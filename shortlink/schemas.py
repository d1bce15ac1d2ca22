"""Pydantic schemas for request/response validation and cache payloads.

This module defines the data shapes exchanged with HTTP clients and stored in
Redis. Link bodies use camelCase keys because the form and dashboard
collaborators read them that way.

Key Behaviours
===============
- LinkCreate is read from a JSON or form-encoded body by ``from_body``. A
  missing or unreadable body is a missing URL; URL rules are enforced by the
  creation coordinator so failures come back as ``{"success": false}``.
- LinkResponse reads straight from the ORM row (from_attributes) and is
  serialized by alias.
- CachedLink is the only thing written to Redis: id, target URL and expiry.
  Click counts are never cached.

Classes:
    LinkCreate:  Input schema for link creation.
    LinkResponse:  Output schema for one link.
    CreateLinkResult:  Output envelope of the creation entry point.
    RecentLinksResponse:  Output schema for the listing entry point.
    HealthResponse:  Output schema for health checks.
    CachedLink:  Redis cache payload for a short code.
"""

import datetime
import json
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from shortlink.creator import INVALID_URL_MESSAGE
from shortlink.enums import HealthStatus
from shortlink.errors import LinkValidationError

__all__ = [
    "LinkCreate",
    "LinkResponse",
    "CreateLinkResult",
    "RecentLinksResponse",
    "HealthResponse",
    "CachedLink",
]


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class LinkCreate(BaseModel):
    url: str | None = None

    @classmethod
    def from_body(cls, body: bytes, content_type: str | None = None) -> "LinkCreate":
        """Parse a creation request body.

        Raises:
            LinkValidationError: If ``url`` is present but is not a string.
        """
        if not body.strip():
            return cls()
        if content_type and content_type.startswith(FORM_CONTENT_TYPE):
            fields = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
            return cls(url=fields.get("url", [None])[0])
        try:
            data = json.loads(body)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise LinkValidationError(INVALID_URL_MESSAGE) from exc


class LinkResponse(BaseModel):
    id: str
    short_code: str
    target_url: str
    short_url: str | None = None
    created_at: datetime.datetime
    expires_at: datetime.datetime | None = None
    clicks: int

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_link(cls, link, base_url: str) -> "LinkResponse":
        response = cls.model_validate(link)
        response.short_url = f"{base_url.rstrip('/')}/{link.short_code}"
        return response


class CreateLinkResult(BaseModel):
    success: bool
    link: LinkResponse | None = None
    error: str | None = None


class RecentLinksResponse(BaseModel):
    links: list[LinkResponse]


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    cache: HealthStatus


class CachedLink(BaseModel):
    """Redis cache payload for a short code."""

    id: str
    target_url: str
    expires_at: datetime.datetime | None = None

    model_config = {"from_attributes": True}
