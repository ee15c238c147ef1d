"""Classify raw input as one of the supported feed formats.

Detection is a cheap sniff: JSON candidates are decoded and inspected for
their ``version``/``rss`` keys, XML candidates are only checked with
case-insensitive substring tests. Nothing here raises; anything that cannot
be classified is ``FeedType.UNKNOWN``.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from .model import FeedType, FeedVersionInfo
from .utils import json_loads, to_text

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"

_ATOM_NS_DECLARATIONS = (
    'xmlns="http://www.w3.org/2005/atom"',
    "xmlns='http://www.w3.org/2005/atom'",
)
_FEED_KEYWORDS = (
    "<rss",
    "<feed",
    "<atom",
    "<channel",
    "<item",
    "<entry",
    '"version"',
    '"items"',
    '"entries"',
    '"title"',
    '"link"',
)
_JSONFEED_VERSION_MARKER = "jsonfeed.org/version/"
_RE_RSS_VERSION = re.compile(
    r"<rss\b[^>]*?\bversion\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE
)


def _json_version(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    # https://jsonfeed.org/version/1.1 declares version 1.1
    marker = value.lower().find(_JSONFEED_VERSION_MARKER)
    if marker != -1:
        return value[marker + len(_JSONFEED_VERSION_MARKER) :]
    return value


def _classify_json(data: Any) -> FeedType:
    if not isinstance(data, dict):
        return FeedType.UNKNOWN
    version = _json_version(data.get("version"))
    if version is not None and version.startswith("1"):
        return FeedType.JSON_FEED
    if "rss" in data or (version is not None and version.startswith("2")):
        return FeedType.RSS_IN_JSON
    return FeedType.UNKNOWN


def _classify_xml(lowered: str) -> FeedType:
    if "<rss" in lowered and "version=" in lowered:
        return FeedType.RSS
    if "<feed" in lowered and any(decl in lowered for decl in _ATOM_NS_DECLARATIONS):
        return FeedType.ATOM
    return FeedType.UNKNOWN


def _sniff(raw: str | bytes) -> tuple[FeedType, str, Any]:
    text = to_text(raw).lstrip("\ufeff").lstrip()
    if not text:
        return FeedType.UNKNOWN, text, None

    if text.startswith("{"):
        try:
            data = json_loads(text)
        except (ValueError, RecursionError):
            return FeedType.UNKNOWN, text, None
        return _classify_json(data), text, data

    if text.startswith("<"):
        return _classify_xml(text.lower()), text, None

    return FeedType.UNKNOWN, text, None


def detect(raw: str | bytes) -> FeedType:
    """Return the feed format of ``raw``, or ``FeedType.UNKNOWN``."""
    return _sniff(raw)[0]


def version_info(raw: str | bytes) -> FeedVersionInfo:
    """Report the format plus its declared version, for diagnostics."""
    feed_type, text, data = _sniff(raw)

    if feed_type is FeedType.JSON_FEED:
        return FeedVersionInfo(feed_type, version=_json_version(data.get("version")))

    if feed_type is FeedType.RSS_IN_JSON:
        rss = data.get("rss")
        declared = rss.get("version") if isinstance(rss, dict) else None
        if declared is None:
            declared = data.get("version")
        return FeedVersionInfo(feed_type, version=_json_version(declared))

    if feed_type is FeedType.RSS:
        match = _RE_RSS_VERSION.search(text)
        return FeedVersionInfo(feed_type, version=match.group(1) if match else None)

    if feed_type is FeedType.ATOM:
        return FeedVersionInfo(feed_type, version="1.0", namespace=ATOM_NAMESPACE)

    return FeedVersionInfo(FeedType.UNKNOWN)


def has_feed_characteristics(raw: str | bytes) -> bool:
    """Loose keyword heuristic; never used to pick a parser."""
    lowered = to_text(raw).lower()
    return any(keyword in lowered for keyword in _FEED_KEYWORDS)
