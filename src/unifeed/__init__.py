from .detect import detect, has_feed_characteristics, version_info
from .errors import (
    AtomFeedNotFoundError,
    FeedParseError,
    InvalidJSONError,
    InvalidXMLError,
    JSONFeedItemsNotFoundError,
    ParseFailedError,
    RSSChannelNotFoundError,
    RSSItemsNotFoundError,
    UnknownFormatError,
)
from .jsonfeeds import parse_json_feed, parse_rss_in_json
from .main import parse
from .model import (
    FeedType,
    FeedVersionInfo,
    ParsedAttachment,
    ParsedAuthor,
    ParsedFeed,
    ParsedHub,
    ParsedItem,
)
from .xmlfeeds import parse_atom, parse_rss

__all__ = [
    "AtomFeedNotFoundError",
    "FeedParseError",
    "FeedType",
    "FeedVersionInfo",
    "InvalidJSONError",
    "InvalidXMLError",
    "JSONFeedItemsNotFoundError",
    "ParseFailedError",
    "ParsedAttachment",
    "ParsedAuthor",
    "ParsedFeed",
    "ParsedHub",
    "ParsedItem",
    "RSSChannelNotFoundError",
    "RSSItemsNotFoundError",
    "UnknownFormatError",
    "detect",
    "has_feed_characteristics",
    "parse",
    "parse_atom",
    "parse_json_feed",
    "parse_rss",
    "parse_rss_in_json",
    "version_info",
]
