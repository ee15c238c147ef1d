from __future__ import annotations

from typing import Optional

from .model import FeedType


class FeedParseError(ValueError):
    """Base class for every error the engine raises.

    Carries the source URL so callers parsing many feeds can attribute a
    failure without their own bookkeeping.
    """

    feed_type: Optional[FeedType] = None

    def __init__(
        self,
        message: str,
        source_url: str,
        feed_type: Optional[FeedType] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_url = source_url
        if feed_type is not None:
            self.feed_type = feed_type

    def __str__(self) -> str:
        return f"{self.message} ({self.source_url})"


class UnknownFormatError(FeedParseError):
    feed_type = FeedType.UNKNOWN


class InvalidXMLError(FeedParseError):
    pass


class InvalidJSONError(FeedParseError):
    pass


class RSSChannelNotFoundError(FeedParseError):
    pass


class AtomFeedNotFoundError(FeedParseError):
    feed_type = FeedType.ATOM


class RSSItemsNotFoundError(FeedParseError):
    pass


class JSONFeedItemsNotFoundError(FeedParseError):
    feed_type = FeedType.JSON_FEED


class ParseFailedError(FeedParseError):
    """Wraps an unexpected failure raised while parsing a detected format."""

    def __init__(
        self, feed_type: FeedType, source_url: str, cause: BaseException
    ) -> None:
        super().__init__(
            f"Failed to parse {feed_type.value} feed: {cause!r}",
            source_url,
            feed_type=feed_type,
        )
        self.cause = cause
