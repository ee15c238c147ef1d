"""RSS 2.0 and Atom 1.0 parsers built on lxml element trees."""

from __future__ import annotations

import datetime
import logging
import re
from typing import TYPE_CHECKING, Iterable, Optional
from urllib.parse import urljoin, urlparse

from lxml import etree

from .errors import AtomFeedNotFoundError, InvalidXMLError, RSSChannelNotFoundError
from .model import FeedType, ParsedAuthor, ParsedFeed, ParsedHub, ParsedItem
from .utils import (
    build_item,
    clean_text,
    detect_xml_encoding,
    is_http_url,
    make_attachment,
    make_author,
    make_hub,
    parse_date,
    parse_email_author,
    split_content,
    strip_html,
    unique_values,
)

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger(__name__)

_RE_XML_DECL_ENCODING = re.compile(
    r'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)
_RE_DOUBLE_XML_DECL_BYTES = re.compile(rb"<\?xml\?xml\s+", re.IGNORECASE)
_RE_DOUBLE_CLOSE_BYTES = re.compile(rb"\?\?>\s*")
_RE_UNQUOTED_ATTR_BYTES = re.compile(rb'(\s+[\w:]+)=([^\s>"\']+)')
_RE_START_TAG_BYTES = re.compile(rb"<[^!?/][^>]*>")
_RE_UTF16_ENCODING_BYTES = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])utf-16(-le|-be)?(["\'][^>]*\?>)', re.IGNORECASE
)

_XML_NS = "{http://www.w3.org/XML/1998/namespace}"
_XML_LANG_ATTR = _XML_NS + "lang"
_XML_BASE_ATTR = _XML_NS + "base"
_XHTML_NS_DECL = ' xmlns="http://www.w3.org/1999/xhtml"'

_ATOM_10_NS = "http://www.w3.org/2005/Atom"
_ATOM_03_NS = "http://purl.org/atom/ns#"
_ATOM_NAMESPACES = (_ATOM_10_NS, "https://www.w3.org/2005/Atom", _ATOM_03_NS)
_CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
_DC_NS = "http://purl.org/dc/elements/1.1/"
_DCTERMS_NS = "http://purl.org/dc/terms/"
_MEDIA_NS = "http://search.yahoo.com/mrss/"
_ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"

_MEDIA_THUMBNAIL_TAG = f"{{{_MEDIA_NS}}}thumbnail"
_MEDIA_CONTENT_TAG = f"{{{_MEDIA_NS}}}content"

_STRICT_XML_PARSER = etree.XMLParser(
    ns_clean=True,
    recover=False,
    collect_ids=False,
    resolve_entities=False,
    no_network=True,
)
_RECOVER_XML_PARSER = etree.XMLParser(
    ns_clean=True,
    recover=True,
    collect_ids=False,
    resolve_entities=False,
    no_network=True,
)


# --------------------------------------------------------------------------
# Document preparation
# --------------------------------------------------------------------------


def _ensure_utf8_xml_declaration(content: str) -> str:
    """Ensure the XML declaration's encoding matches the UTF-8 bytes we emit."""
    if not content.lstrip().startswith("<?xml"):
        return content
    return _RE_XML_DECL_ENCODING.sub(r"\1utf-8\3", content, count=1)


def _clean_feed_bytes(content: bytes, source_url: str) -> bytes:
    """Cut the XML document out of any junk that precedes it."""
    stripped_content = content.lstrip()
    preview_lower = stripped_content[:2000].lower()

    if preview_lower.startswith(b"\xef\xbb\xbf"):
        preview_lower = preview_lower[3:]
        stripped_content = stripped_content[3:]

    if preview_lower.startswith((b"<?xml", b"<rss", b"<feed")):
        return stripped_content

    if preview_lower.startswith((b"<!doctype html", b"<html")):
        raise InvalidXMLError("Content appears to be HTML, not a feed", source_url)

    # find() scans in place; splitting multi-megabyte feeds into lines does not
    search_chunk = content[:8192].lower()
    earliest = -1
    for pattern in (b"<?xml", b"<rss", b"<feed"):
        idx = search_chunk.find(pattern)
        if idx != -1 and (earliest == -1 or idx < earliest):
            earliest = idx
    if earliest != -1:
        return content[earliest:]
    return content


def _fix_malformed_xml_bytes(content: bytes, actual_encoding: str = "utf-8") -> bytes:
    # Declaration fixes only ever match the header
    header = content[:2048]
    tail = content[2048:]

    # "<?xml?xml version="1.0"?>"
    header = _RE_DOUBLE_XML_DECL_BYTES.sub(b"<?xml ", header)
    # "??>>"
    header = _RE_DOUBLE_CLOSE_BYTES.sub(b"?>", header)

    if actual_encoding.lower() != "utf-16":
        replacement = (
            rb"\1" + actual_encoding.encode("ascii", errors="replace") + rb"\3"
        )
        header = _RE_UTF16_ENCODING_BYTES.sub(replacement, header)

    # <rss version=2.0>, only inside header start tags so body text is untouched
    header = _RE_START_TAG_BYTES.sub(
        lambda m: _RE_UNQUOTED_ATTR_BYTES.sub(rb'\1="\2"', m.group(0)), header
    )
    return header + tail


def _prepare_xml_bytes(xml_content: str | bytes, source_url: str) -> bytes:
    if isinstance(xml_content, str):
        xml_content = _ensure_utf8_xml_declaration(xml_content).encode(
            "utf-8", errors="replace"
        )

    cleaned = _clean_feed_bytes(xml_content, source_url)
    if not cleaned.strip():
        raise InvalidXMLError("Empty content", source_url)

    # U+2028 and U+2029 are invalid in XML 1.0
    if b"\xe2\x80\xa8" in cleaned or b"\xe2\x80\xa9" in cleaned:
        cleaned = cleaned.replace(b"\xe2\x80\xa8", b"\n").replace(b"\xe2\x80\xa9", b"\n")

    actual_encoding = detect_xml_encoding(cleaned)
    if actual_encoding.startswith("utf-16") and b"\x00" not in cleaned[:200]:
        actual_encoding = "utf-8"

    needs_fixing = (
        b"?xml?xml" in cleaned[:200].lower()
        or b"??>" in cleaned[:200]
        or (
            b"rss:" in cleaned[:500].lower()
            and b"xmlns:rss" not in cleaned[:1000].lower()
        )
        or (b"utf-16" in cleaned[:200].lower() and actual_encoding != "utf-16")
    )
    if needs_fixing:
        cleaned = _fix_malformed_xml_bytes(cleaned, actual_encoding=actual_encoding)
    return cleaned


def _parse_xml_root(xml_content: bytes, source_url: str, recover: bool) -> _Element:
    try:
        root = etree.fromstring(xml_content, parser=_STRICT_XML_PARSER)
    except etree.XMLSyntaxError as e:
        if not recover:
            raise InvalidXMLError(f"Failed to parse XML content: {e}", source_url) from e
        logger.debug("Strict XML parse of %s failed (%s), recovering", source_url, e)
        try:
            root = etree.fromstring(xml_content, parser=_RECOVER_XML_PARSER)
        except etree.XMLSyntaxError as e2:
            raise InvalidXMLError(
                f"Failed to parse XML content: {e2}", source_url
            ) from e2

    if root is None:
        raise InvalidXMLError("Failed to parse XML: no root element", source_url)
    return root


# --------------------------------------------------------------------------
# Element helpers
# --------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1].lower()
    if ":" in tag:
        return tag.split(":", 1)[1].lower()
    return tag.lower()


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


class _ChildIndex:
    """Direct children of one element, indexed once for repeated lookups.

    Un-namespaced children win; namespaced ones are looked up by the
    namespaces a caller names, and ``find_any`` falls back to local-name
    matching in any namespace.
    """

    def __init__(self, element: _Element) -> None:
        self.children: list[_Element] = []
        self._core: dict[str, list[_Element]] = {}
        self._tagged: dict[str, list[_Element]] = {}
        self._local: dict[str, list[_Element]] = {}
        for child in element:
            tag = child.tag
            if not isinstance(tag, str):
                continue
            self.children.append(child)
            local = _local_name(tag)
            if tag.startswith("{"):
                self._tagged.setdefault(tag, []).append(child)
            else:
                self._core.setdefault(local, []).append(child)
            self._local.setdefault(local, []).append(child)

    def findall(self, local: str, *namespaces: str) -> list[_Element]:
        found = list(self._core.get(local, ()))
        for ns in namespaces:
            found.extend(self._tagged.get(f"{{{ns}}}{local}", ()))
        return found

    def tagged(self, local: str, *namespaces: str) -> list[_Element]:
        found: list[_Element] = []
        for ns in namespaces:
            found.extend(self._tagged.get(f"{{{ns}}}{local}", ()))
        return found

    def find(self, local: str, *namespaces: str) -> Optional[_Element]:
        core = self._core.get(local)
        if core:
            return core[0]
        for ns in namespaces:
            tagged = self._tagged.get(f"{{{ns}}}{local}")
            if tagged:
                return tagged[0]
        return None

    def find_any(self, local: str, *namespaces: str) -> Optional[_Element]:
        el = self.find(local, *namespaces)
        if el is None:
            matches = self._local.get(local)
            el = matches[0] if matches else None
        return el

    def text(self, local: str, *namespaces: str) -> Optional[str]:
        return _text(self.find(local, *namespaces))

    def any_text(self, local: str, *namespaces: str) -> Optional[str]:
        return _text(self.find_any(local, *namespaces))


def _text(el: Optional[_Element]) -> Optional[str]:
    return clean_text(el.text) if el is not None else None


def _inner_markup(el: Optional[_Element]) -> Optional[str]:
    """Text of ``el`` including any child markup that was not escaped."""
    if el is None:
        return None
    if len(el) == 0:
        return clean_text(el.text)
    parts = [el.text or ""]
    parts.extend(etree.tostring(child, encoding="unicode", with_tail=True) for child in el)
    return clean_text("".join(parts).replace(_XHTML_NS_DECL, ""))


def _first_date(
    index: _ChildIndex, candidates: Iterable[tuple[str, ...]]
) -> Optional[datetime.datetime]:
    for local, *namespaces in candidates:
        for el in index.findall(local, *namespaces):
            parsed = parse_date(el.text)
            if parsed is not None:
                return parsed
    return None


def _resolve(href: Optional[str], base: Optional[str]) -> Optional[str]:
    if not href or not base or urlparse(href).scheme:
        return href
    return urljoin(base, href)


def _element_base(el: _Element, fallback: Optional[str]) -> Optional[str]:
    base = el.get(_XML_BASE_ATTR)
    return _resolve(base, fallback) if base else fallback


def _links(index: _ChildIndex, namespaces: tuple[str, ...], base: Optional[str]):
    """(rel, href, element) for every link element carrying an href."""
    links = []
    for link in index.findall("link", *namespaces):
        href = clean_text(link.get("href"))
        if not href:
            continue
        rel = (link.get("rel") or "alternate").strip().lower()
        links.append((rel, _resolve(href, base), link))
    return links


def _alternate_href(links) -> Optional[str]:
    alternates = [(href, link) for rel, href, link in links if rel == "alternate"]
    for href, link in alternates:
        if (link.get("type") or "text/html").lower() in {"text/html", "application/xhtml+xml"}:
            return href
    return alternates[0][0] if alternates else None


def _hubs(links) -> tuple[ParsedHub, ...]:
    return unique_values(
        make_hub(href, "websub", link.get("title"))
        for rel, href, link in links
        if rel == "hub"
    )


def _rel_href(links, rel: str) -> Optional[str]:
    return next((href for link_rel, href, _ in links if link_rel == rel), None)


def _atom_person(el: _Element, namespaces: tuple[str, ...]) -> Optional[ParsedAuthor]:
    index = _ChildIndex(el)
    name = index.text("name", *namespaces)
    if name is None and len(index.children) == 0:
        name = _text(el)
    return make_author(
        name=name,
        url=index.text("uri", *namespaces) or index.text("url", *namespaces),
        email_address=index.text("email", *namespaces),
    )


def _image_url(item: _Element, index: _ChildIndex) -> Optional[str]:
    for thumbnail in item.iter(_MEDIA_THUMBNAIL_TAG):
        url = clean_text(thumbnail.get("url"))
        if url:
            return url
    for media in item.iter(_MEDIA_CONTENT_TAG):
        url = clean_text(media.get("url"))
        medium = (media.get("medium") or "").lower()
        mime_type = (media.get("type") or "").lower()
        if url and (medium == "image" or mime_type.startswith("image/")):
            return url
    for enclosure in index.findall("enclosure"):
        url = clean_text(enclosure.get("url"))
        if url and (enclosure.get("type") or "").lower().startswith("image/"):
            return url
    for itunes_image in index.tagged("image", _ITUNES_NS):
        return clean_text(itunes_image.get("href"))
    return None


# --------------------------------------------------------------------------
# RSS
# --------------------------------------------------------------------------


def _locate_rss_channel(
    root: _Element, source_url: str
) -> tuple[_Element, list[_Element]]:
    channel: Optional[_Element] = None
    if _local_name(root.tag) == "channel":
        channel = root
    else:
        channel = next(
            (c for c in _ChildIndex(root).children if _local_name(c.tag) == "channel"),
            None,
        )
        if channel is None:
            nested = root.xpath(".//*[local-name()='channel']")
            channel = nested[0] if nested else None
    if channel is None:
        raise RSSChannelNotFoundError(
            "RSS document has no channel element", source_url, FeedType.RSS
        )

    items = [c for c in channel if isinstance(c.tag, str) and _local_name(c.tag) == "item"]
    # Some feeds close <channel/> early and list items beside it
    if not items and channel is not root:
        items = [c for c in root if isinstance(c.tag, str) and _local_name(c.tag) == "item"]
    if not items:
        items = channel.xpath(".//*[local-name()='item']")
    return channel, items


def _parse_rss_item(
    item: _Element,
    source_url: str,
    *,
    include_content: bool,
    include_tags: bool,
    include_attachments: bool,
) -> Optional[ParsedItem]:
    index = _ChildIndex(item)
    links = _links(index, _ATOM_NAMESPACES, _element_base(item, None))

    guid_el = index.find("guid")
    guid = _text(guid_el)

    link_el = index.find("link")
    external_url = _text(link_el)
    if external_url is None and link_el is not None:
        external_url = clean_text(link_el.get("href"))
    if external_url is None:
        external_url = _alternate_href(links)
    if (
        external_url is None
        and is_http_url(guid)
        and (guid_el.get("isPermaLink") or "true").lower() != "false"
    ):
        external_url = guid

    encoded = index.find("encoded", _CONTENT_NS)
    if encoded is None:
        encoded = index.find("content")
    description = _inner_markup(index.find_any("description"))
    if encoded is not None:
        content_raw = _inner_markup(encoded)
        summary = strip_html(description)
    else:
        content_raw = description
        summary = None

    date_published = _first_date(
        index,
        (
            ("pubdate",),
            ("date", _DC_NS),
            ("published", *_ATOM_NAMESPACES),
            ("issued", _DCTERMS_NS, _ATOM_03_NS),
        ),
    )
    date_modified = _first_date(
        index,
        (
            ("updated", *_ATOM_NAMESPACES),
            ("modified", _DCTERMS_NS, _ATOM_03_NS),
            ("lastbuilddate",),
        ),
    )

    authors = [parse_email_author(_text(el)) for el in index.findall("author")]
    authors.extend(make_author(name=_text(el)) for el in index.findall("creator", _DC_NS))
    authors.extend(
        _atom_person(el, _ATOM_NAMESPACES)
        for el in index.tagged("author", *_ATOM_NAMESPACES)
    )
    if not any(authors):
        authors.extend(
            make_author(name=_text(el)) for el in index.tagged("author", _ITUNES_NS)
        )

    tags = [_text(el) for el in index.findall("category")]
    tags.extend(_text(el) for el in index.findall("subject", _DC_NS))

    duration = index.text("duration", _ITUNES_NS)
    attachments = []
    for position, enclosure in enumerate(index.findall("enclosure")):
        attachments.append(
            make_attachment(
                enclosure.get("url"),
                mime_type=enclosure.get("type"),
                size=enclosure.get("length"),
                duration=duration if position == 0 else None,
            )
        )

    language = item.get(_XML_LANG_ATTR) or index.text("language", _DC_NS)

    content_html, content_text = split_content(content_raw)
    return build_item(
        unique_id=guid,
        source_url=source_url,
        url=external_url,
        external_url=external_url,
        title=strip_html(_inner_markup(index.find_any("title", _DC_NS))),
        language=clean_text(language),
        content_html=content_html,
        content_text=content_text,
        summary=summary,
        image_url=_image_url(item, index),
        date_published=date_published,
        date_modified=date_modified,
        authors=unique_values(authors),
        tags=tuple(tag for tag in tags if tag),
        attachments=tuple(a for a in attachments if a is not None),
        include_content=include_content,
        include_tags=include_tags,
        include_attachments=include_attachments,
    )


def parse_rss(
    raw: str | bytes,
    source_url: str,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
    recover: bool = False,
) -> ParsedFeed:
    """Parse an RSS 2.0 document.

    Raises:
        InvalidXMLError: the document is not well-formed XML
        RSSChannelNotFoundError: no ``channel`` element exists
    """
    root = _parse_xml_root(_prepare_xml_bytes(raw, source_url), source_url, recover)
    channel, items = _locate_rss_channel(root, source_url)
    index = _ChildIndex(channel)
    links = _links(index, _ATOM_NAMESPACES, _element_base(channel, None))

    image = index.find("image")
    icon_url = _ChildIndex(image).text("url") if image is not None else None
    if icon_url is None:
        for itunes_image in index.tagged("image", _ITUNES_NS):
            icon_url = clean_text(itunes_image.get("href"))
            break

    authors = [parse_email_author(index.text("managingeditor"))]
    authors.extend(make_author(name=_text(el)) for el in index.findall("creator", _DC_NS))
    authors.extend(
        _atom_person(el, _ATOM_NAMESPACES)
        for el in index.tagged("author", *_ATOM_NAMESPACES)
    )

    language = (
        index.text("language", _DC_NS)
        or channel.get(_XML_LANG_ATTR)
        or root.get(_XML_LANG_ATTR)
    )

    parsed_items = []
    for item in items:
        parsed = _parse_rss_item(
            item,
            source_url,
            include_content=include_content,
            include_tags=include_tags,
            include_attachments=include_attachments,
        )
        if parsed is None:
            logger.debug("Dropping RSS item with nothing to identify it in %s", source_url)
            continue
        parsed_items.append(parsed)

    return ParsedFeed(
        type=FeedType.RSS,
        feed_url=source_url,
        title=strip_html(_inner_markup(index.find_any("title"))) or "",
        home_page_url=index.any_text("link") or _alternate_href(links) or "",
        feed_description=strip_html(_inner_markup(index.find_any("description"))) or "",
        language=clean_text(language) or "",
        icon_url=icon_url or "",
        next_url=_rel_href(links, "next") or "",
        authors=unique_values(authors),
        hubs=_hubs(links),
        items=tuple(parsed_items),
    )


# --------------------------------------------------------------------------
# Atom
# --------------------------------------------------------------------------


def _locate_atom_feed(root: _Element, source_url: str) -> _Element:
    def is_feed(el: _Element) -> bool:
        return (
            isinstance(el.tag, str)
            and _local_name(el.tag) == "feed"
            and _namespace(el.tag) in (*_ATOM_NAMESPACES, "")
        )

    if is_feed(root):
        return root
    for candidate in root.xpath(".//*[local-name()='feed']"):
        if is_feed(candidate):
            return candidate
    raise AtomFeedNotFoundError("Atom document has no feed element", source_url)


def _atom_text(el: Optional[_Element]) -> Optional[str]:
    """Value of an Atom text construct; xhtml content is serialized."""
    if el is None:
        return None
    if (el.get("type") or "").lower() in {"xhtml", "application/xhtml+xml"}:
        children = [child for child in el if isinstance(child.tag, str)]
        # The xhtml wrapper div is not part of the content
        if (
            len(children) == 1
            and _local_name(children[0].tag) == "div"
            and not clean_text(el.text)
        ):
            return _inner_markup(children[0])
    return _inner_markup(el)


def _parse_atom_entry(
    entry: _Element,
    source_url: str,
    namespaces: tuple[str, ...],
    base: Optional[str],
    feed_language: Optional[str],
    *,
    include_content: bool,
    include_tags: bool,
    include_attachments: bool,
) -> Optional[ParsedItem]:
    index = _ChildIndex(entry)
    base = _element_base(entry, base)
    links = _links(index, namespaces, base)
    is_atom_03 = _ATOM_03_NS in namespaces

    content_raw = _atom_text(index.find("content", *namespaces))
    summary_raw = _atom_text(index.find("summary", *namespaces))
    if content_raw is None:
        content_raw, summary = summary_raw, None
    else:
        summary = strip_html(summary_raw)

    published_tags = ("issued", "published") if is_atom_03 else ("published", "issued")
    updated_tags = ("modified", "updated") if is_atom_03 else ("updated", "modified")
    date_published = _first_date(index, ((tag, *namespaces) for tag in published_tags))
    date_modified = _first_date(index, ((tag, *namespaces) for tag in updated_tags))

    authors = unique_values(
        _atom_person(el, namespaces) for el in index.findall("author", *namespaces)
    )
    terms = (clean_text(el.get("term")) for el in index.findall("category", *namespaces))
    tags = tuple(term for term in terms if term)
    attachments = tuple(
        a
        for a in (
            make_attachment(href, link.get("type"), link.get("title"), link.get("length"))
            for rel, href, link in links
            if rel == "enclosure"
        )
        if a is not None
    )

    link = _alternate_href(links)
    content_html, content_text = split_content(content_raw)
    return build_item(
        unique_id=index.text("id", *namespaces),
        source_url=source_url,
        url=link,
        external_url=link,
        title=strip_html(_atom_text(index.find("title", *namespaces))),
        language=clean_text(entry.get(_XML_LANG_ATTR)) or feed_language,
        content_html=content_html,
        content_text=content_text,
        summary=summary,
        image_url=_image_url(entry, index),
        date_published=date_published,
        date_modified=date_modified,
        authors=authors,
        tags=tags,
        attachments=attachments,
        include_content=include_content,
        include_tags=include_tags,
        include_attachments=include_attachments,
    )


def parse_atom(
    raw: str | bytes,
    source_url: str,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
    recover: bool = False,
) -> ParsedFeed:
    """Parse an Atom 1.0 document (Atom 0.3 element names are tolerated).

    Raises:
        InvalidXMLError: the document is not well-formed XML
        AtomFeedNotFoundError: no Atom ``feed`` element exists
    """
    root = _parse_xml_root(_prepare_xml_bytes(raw, source_url), source_url, recover)
    feed = _locate_atom_feed(root, source_url)
    atom_ns = _namespace(feed.tag)
    namespaces = (atom_ns,) if atom_ns else ()
    index = _ChildIndex(feed)
    base = _element_base(feed, source_url)
    links = _links(index, namespaces, base)
    language = clean_text(feed.get(_XML_LANG_ATTR))
    subtitle = index.find("subtitle", *namespaces)
    if subtitle is None:
        subtitle = index.find("tagline", *namespaces)

    entries = index.findall("entry", *namespaces)
    if not entries:
        entries = [
            el
            for el in feed.iter()
            if isinstance(el.tag, str) and _local_name(el.tag) == "entry"
        ]

    parsed_items = []
    for entry in entries:
        parsed = _parse_atom_entry(
            entry,
            source_url,
            namespaces,
            base,
            language,
            include_content=include_content,
            include_tags=include_tags,
            include_attachments=include_attachments,
        )
        if parsed is None:
            logger.debug("Dropping Atom entry with nothing to identify it in %s", source_url)
            continue
        parsed_items.append(parsed)

    return ParsedFeed(
        type=FeedType.ATOM,
        feed_url=source_url,
        title=strip_html(_atom_text(index.find("title", *namespaces))) or "",
        home_page_url=_alternate_href(links) or "",
        feed_description=strip_html(_atom_text(subtitle)) or "",
        language=language or "",
        icon_url=_resolve(index.text("logo", *namespaces), base) or "",
        favicon_url=_resolve(index.text("icon", *namespaces), base) or "",
        next_url=_rel_href(links, "next") or "",
        authors=unique_values(
            _atom_person(el, namespaces) for el in index.findall("author", *namespaces)
        ),
        hubs=_hubs(links),
        items=tuple(parsed_items),
    )
