from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Protocol

from .detect import _sniff
from .errors import (
    FeedParseError,
    InvalidJSONError,
    ParseFailedError,
    UnknownFormatError,
)
from .jsonfeeds import parse_json_feed, parse_rss_in_json
from .model import FeedType, ParsedFeed
from .xmlfeeds import parse_atom, parse_rss

logger = logging.getLogger(__name__)


class FeedParserFunc(Protocol):
    def __call__(
        self,
        raw: str | bytes,
        source_url: str,
        *,
        include_content: bool = True,
        include_tags: bool = True,
        include_attachments: bool = True,
    ) -> ParsedFeed: ...


_PARSERS: MappingProxyType[FeedType, FeedParserFunc] = MappingProxyType(
    {
        FeedType.RSS: parse_rss,
        FeedType.ATOM: parse_atom,
        FeedType.JSON_FEED: parse_json_feed,
        FeedType.RSS_IN_JSON: parse_rss_in_json,
    }
)
_XML_TYPES = frozenset({FeedType.RSS, FeedType.ATOM})


def parse(
    raw: str | bytes,
    source_url: str,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
    recover: bool = False,
) -> ParsedFeed:
    """Detect the format of ``raw`` and parse it with the matching parser.

    Args:
        raw: Feed document as text or undecoded bytes
        source_url: URL the document was fetched from; becomes ``feed_url``
            of the feed and of every item
        include_content: Keep per-item ``content_html``/``content_text``
        include_tags: Keep per-item tags
        include_attachments: Keep per-item attachments
        recover: Retry XML documents with lxml's recovering parser when
            strict parsing fails (ignored for JSON formats)

    Returns:
        ParsedFeed

    Raises:
        UnknownFormatError: the document is none of the supported formats
        InvalidJSONError: the document starts like a JSON object but does
            not decode
        FeedParseError: a parser rejected the document (see subclasses)
        ParseFailedError: a parser failed unexpectedly; ``cause`` holds the
            original exception
    """
    feed_type, text, data = _sniff(raw)
    parser = _PARSERS.get(feed_type)
    if parser is None:
        # An object that would not decode is broken JSON, not an unknown format
        if text.startswith("{") and data is None:
            raise InvalidJSONError("Failed to parse JSON content", source_url)
        raise UnknownFormatError("Unknown feed format", source_url)

    options = {
        "include_content": include_content,
        "include_tags": include_tags,
        "include_attachments": include_attachments,
    }
    if feed_type in _XML_TYPES:
        options["recover"] = recover

    try:
        return parser(raw, source_url, **options)
    except FeedParseError:
        raise
    except Exception as e:
        logger.debug(
            "Unexpected failure parsing %s feed %s",
            feed_type.value,
            source_url,
            exc_info=True,
        )
        raise ParseFailedError(feed_type, source_url, e) from e
