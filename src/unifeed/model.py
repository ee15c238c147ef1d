from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, fields
from typing import Any, Optional


class FeedType(str, enum.Enum):
    RSS = "rss"
    ATOM = "atom"
    JSON_FEED = "json"
    RSS_IN_JSON = "rss-in-json"
    UNKNOWN = "unknown"


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Record:
    """Shared ``to_dict`` for the frozen model dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class ParsedAuthor(_Record):
    name: Optional[str] = None
    url: Optional[str] = None
    avatar_url: Optional[str] = None
    email_address: Optional[str] = None


@dataclass(frozen=True)
class ParsedAttachment(_Record):
    url: str
    mime_type: Optional[str] = None
    title: Optional[str] = None
    size_in_bytes: Optional[int] = None
    duration_in_seconds: Optional[float] = None


@dataclass(frozen=True)
class ParsedHub(_Record):
    """WebSub discovery endpoint advertised by a feed."""

    url: str
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedItem(_Record):
    """One article or entry.

    ``unique_id`` is the source ``guid``/``id`` when one is present, otherwise
    a fingerprint of the entry's fields (see ``utils.derive_unique_id``).
    Consumers key their own per-article state on ``(feed_url, unique_id)``.

    ``url`` is the entry's own permalink and ``external_url`` the link a
    reader should follow; both are set from the same source link unless a
    JSON Feed item names a separate ``external_url``.
    """

    unique_id: str
    feed_url: str
    url: Optional[str] = None
    external_url: Optional[str] = None
    title: Optional[str] = None
    language: Optional[str] = None
    content_html: Optional[str] = None
    content_text: Optional[str] = None
    summary: Optional[str] = None
    image_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    date_published: Optional[datetime.datetime] = None
    date_modified: Optional[datetime.datetime] = None
    authors: tuple[ParsedAuthor, ...] = ()
    tags: tuple[str, ...] = ()
    attachments: tuple[ParsedAttachment, ...] = ()


@dataclass(frozen=True)
class ParsedFeed(_Record):
    """One parsed source document.

    ``feed_url`` is always the URL the caller parsed the document for, never
    a URL advertised inside the document. Items keep document order.
    """

    type: FeedType
    feed_url: str
    title: str = ""
    home_page_url: str = ""
    feed_description: str = ""
    language: str = ""
    icon_url: str = ""
    favicon_url: str = ""
    next_url: str = ""
    authors: tuple[ParsedAuthor, ...] = ()
    hubs: tuple[ParsedHub, ...] = ()
    expired: bool = False
    items: tuple[ParsedItem, ...] = ()


@dataclass(frozen=True)
class FeedVersionInfo(_Record):
    type: FeedType
    version: Optional[str] = None
    namespace: Optional[str] = None
