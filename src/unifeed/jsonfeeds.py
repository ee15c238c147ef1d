"""JSON Feed (https://jsonfeed.org/) and RSS-in-JSON parsers."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from .errors import (
    InvalidJSONError,
    JSONFeedItemsNotFoundError,
    RSSChannelNotFoundError,
    RSSItemsNotFoundError,
)
from .model import FeedType, ParsedAuthor, ParsedFeed, ParsedItem
from .utils import (
    build_item,
    clean_text,
    json_loads,
    make_attachment,
    make_author,
    make_hub,
    parse_date,
    split_content,
    strip_html,
    unique_values,
)

logger = logging.getLogger(__name__)

# Where RSS-in-JSON converters put the item list, most likely first.
_RSS_IN_JSON_ITEM_LOCATIONS = (
    ("channel", "item"),
    ("root", "item"),
    ("channel", "items"),
    ("root", "items"),
)


def _load_json(raw: str | bytes, source_url: str, loads=json_loads) -> Any:
    if isinstance(raw, bytes):
        raw = raw[3:] if raw.startswith(b"\xef\xbb\xbf") else raw
    else:
        raw = raw.lstrip("\ufeff")
    try:
        return loads(raw)
    except (ValueError, RecursionError) as e:
        raise InvalidJSONError(f"Failed to parse JSON content: {e}", source_url) from e


def _has_lossy_id(items: Iterable[Any], *keys: str) -> bool:
    """True when an item id is an integer too wide for orjson, which returns a float."""
    for item in items:
        if not isinstance(item, dict):
            continue
        for key in keys:
            value = item.get(key)
            if isinstance(value, dict):
                value = value.get("#value")
            if isinstance(value, float) and value.is_integer() and abs(value) >= 2**63:
                return True
    return False


def _payload(value: Any) -> Optional[str]:
    """A non-blank string exactly as the source wrote it."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _identifier(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("#value")
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return _payload(value)


def _objects(value: Any) -> list[dict]:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return []


# --------------------------------------------------------------------------
# JSON Feed
# --------------------------------------------------------------------------


def _json_feed_authors(obj: dict) -> tuple[ParsedAuthor, ...]:
    # JSON Feed 1.1 uses "authors"; 1.0 had a single "author" object
    candidates = obj.get("authors")
    if not isinstance(candidates, list):
        candidates = obj.get("author")
    return unique_values(
        make_author(
            name=author.get("name"),
            url=author.get("url"),
            avatar_url=author.get("avatar"),
        )
        for author in _objects(candidates)
    )


def _json_feed_item(
    item: dict,
    source_url: str,
    *,
    include_content: bool,
    include_tags: bool,
    include_attachments: bool,
) -> Optional[ParsedItem]:
    content_html = _payload(item.get("content_html"))
    content_text = _payload(item.get("content_text"))
    if content_html is not None and "<" not in content_html:
        content_text = content_text or content_html
        content_html = None
    elif content_html is not None and content_html == content_text:
        content_text = None

    url = clean_text(item.get("url"))
    tags = item.get("tags")
    tags = tuple(t for t in map(clean_text, tags) if t) if isinstance(tags, list) else ()

    attachments = tuple(
        a
        for a in (
            make_attachment(
                attachment.get("url"),
                mime_type=attachment.get("mime_type"),
                title=attachment.get("title"),
                size=attachment.get("size_in_bytes"),
                duration=attachment.get("duration_in_seconds"),
            )
            for attachment in _objects(item.get("attachments"))
        )
        if a is not None
    )

    return build_item(
        unique_id=_identifier(item.get("id")),
        source_url=source_url,
        content_html=content_html,
        content_text=content_text,
        title=strip_html(item.get("title")),
        url=url,
        external_url=clean_text(item.get("external_url")) or url,
        language=clean_text(item.get("language")),
        summary=strip_html(item.get("summary")),
        image_url=clean_text(item.get("image")),
        banner_image_url=clean_text(item.get("banner_image")),
        date_published=parse_date(item.get("date_published")),
        date_modified=parse_date(item.get("date_modified")),
        authors=_json_feed_authors(item),
        tags=tags,
        attachments=attachments,
        include_content=include_content,
        include_tags=include_tags,
        include_attachments=include_attachments,
    )


def parse_json_feed(
    raw: str | bytes,
    source_url: str,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
) -> ParsedFeed:
    """Parse a JSON Feed 1.0 or 1.1 document.

    The document's own ``feed_url`` is ignored; ``source_url`` is the feed's
    identity.

    Raises:
        InvalidJSONError: the document is not valid JSON
        JSONFeedItemsNotFoundError: there is no ``items`` array
    """
    data = _load_json(raw, source_url)
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise JSONFeedItemsNotFoundError("JSON Feed has no items array", source_url)
    if _has_lossy_id(data["items"], "id"):
        data = _load_json(raw, source_url, loads=json.loads)

    items = []
    for position, item in enumerate(data["items"]):
        if not isinstance(item, dict):
            logger.debug("Skipping non-object JSON Feed item %d in %s", position, source_url)
            continue
        parsed = _json_feed_item(
            item,
            source_url,
            include_content=include_content,
            include_tags=include_tags,
            include_attachments=include_attachments,
        )
        if parsed is None:
            logger.debug(
                "Dropping JSON Feed item %d with nothing to identify it in %s",
                position,
                source_url,
            )
            continue
        items.append(parsed)

    hubs = unique_values(
        make_hub(hub.get("url"), hub.get("type")) for hub in _objects(data.get("hubs"))
    )

    return ParsedFeed(
        type=FeedType.JSON_FEED,
        feed_url=source_url,
        title=strip_html(data.get("title")) or "",
        home_page_url=clean_text(data.get("home_page_url")) or "",
        feed_description=strip_html(data.get("description")) or "",
        language=clean_text(data.get("language")) or "",
        icon_url=clean_text(data.get("icon")) or "",
        favicon_url=clean_text(data.get("favicon")) or "",
        next_url=clean_text(data.get("next_url")) or "",
        authors=_json_feed_authors(data),
        hubs=hubs,
        expired=data.get("expired") is True,
        items=tuple(items),
    )


# --------------------------------------------------------------------------
# RSS-in-JSON
# --------------------------------------------------------------------------


def _rss_in_json_tags(category: Any) -> tuple[str, ...]:
    if isinstance(category, (dict, str)):
        category = [category]
    if not isinstance(category, list):
        return ()
    return tuple(tag for tag in map(_identifier, category) if tag)


def _rss_in_json_item(
    item: dict,
    source_url: str,
    *,
    include_content: bool,
    include_tags: bool,
    include_attachments: bool,
) -> Optional[ParsedItem]:
    title = strip_html(_identifier(item.get("title")))
    content_html, content_text = split_content(item.get("description"))
    if title is None and content_html is None and content_text is None:
        return None

    email = clean_text(item.get("author"))
    authors = (ParsedAuthor(email_address=email),) if email else ()

    enclosure = item.get("enclosure")
    attachment = None
    if isinstance(enclosure, dict):
        attachment = make_attachment(
            enclosure.get("url"),
            mime_type=enclosure.get("type"),
            size=enclosure.get("length"),
        )

    link = clean_text(item.get("link"))
    unique_id = _identifier(item.get("guid"))
    if unique_id is None:
        unique_id = _identifier(item.get("id"))

    return build_item(
        unique_id=unique_id,
        source_url=source_url,
        content_html=content_html,
        content_text=content_text,
        title=title,
        url=link,
        external_url=link,
        date_published=parse_date(item.get("pubDate")),
        authors=authors,
        tags=_rss_in_json_tags(item.get("category")),
        attachments=(attachment,) if attachment is not None else (),
        include_content=include_content,
        include_tags=include_tags,
        include_attachments=include_attachments,
    )


def _rss_in_json_items(root: dict, channel: dict, source_url: str) -> list:
    containers = {"root": root, "channel": channel}
    for container, key in _RSS_IN_JSON_ITEM_LOCATIONS:
        candidate = containers[container].get(key)
        if isinstance(candidate, list):
            return candidate
    raise RSSItemsNotFoundError(
        "RSS-in-JSON document has no item array", source_url, FeedType.RSS_IN_JSON
    )


def parse_rss_in_json(
    raw: str | bytes,
    source_url: str,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
) -> ParsedFeed:
    """Parse an RSS 2.0 document that was converted to JSON.

    Raises:
        InvalidJSONError: the document is not valid JSON
        RSSChannelNotFoundError: ``rss`` or ``rss.channel`` is not an object
        RSSItemsNotFoundError: no item array at any of the known locations
    """
    data = _load_json(raw, source_url)
    rss = data.get("rss") if isinstance(data, dict) else None
    channel = rss.get("channel") if isinstance(rss, dict) else None
    if not isinstance(channel, dict):
        raise RSSChannelNotFoundError(
            "RSS-in-JSON document has no rss.channel object",
            source_url,
            FeedType.RSS_IN_JSON,
        )

    candidates = _rss_in_json_items(data, channel, source_url)
    if _has_lossy_id(candidates, "guid", "id"):
        data = _load_json(raw, source_url, loads=json.loads)
        channel = data["rss"]["channel"]
        candidates = _rss_in_json_items(data, channel, source_url)

    items = []
    for position, item in enumerate(candidates):
        parsed = None
        if isinstance(item, dict):
            parsed = _rss_in_json_item(
                item,
                source_url,
                include_content=include_content,
                include_tags=include_tags,
                include_attachments=include_attachments,
            )
        if parsed is None:
            logger.debug("Dropping empty RSS-in-JSON item %d in %s", position, source_url)
            continue
        items.append(parsed)

    image = channel.get("image")
    return ParsedFeed(
        type=FeedType.RSS_IN_JSON,
        feed_url=source_url,
        title=strip_html(_identifier(channel.get("title"))) or "",
        home_page_url=clean_text(channel.get("link")) or "",
        feed_description=strip_html(_identifier(channel.get("description"))) or "",
        language=clean_text(channel.get("language")) or "",
        icon_url=(clean_text(image.get("url")) if isinstance(image, dict) else None) or "",
        items=tuple(items),
    )
