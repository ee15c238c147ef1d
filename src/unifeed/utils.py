"""Helpers shared by every format parser: dates, HTML, identity, coercion."""

from __future__ import annotations

import datetime
import html as _html_mod
import json
import math
import re
import struct
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Any, Iterable, Optional

try:
    import orjson

    json_loads = orjson.loads
except ImportError:
    json_loads = json.loads

from dateutil import parser as dateutil_parser

from .model import ParsedAttachment, ParsedAuthor, ParsedHub, ParsedItem

_UTC = datetime.timezone.utc

_RE_FEB29 = re.compile(r"(\d{4})-02-29")
_RE_HTML_TAGS = re.compile(r"<[A-Za-z/!?][^>]*>")
_RE_SCRIPT_STYLE = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_RE_WHITESPACE = re.compile(r"\s+")
_RE_DIGIT_RUN = re.compile(r"\d+")
_RE_ISO_TZ_NO_COLON = re.compile(r"([+-]\d{2})(\d{2})$")
_RE_ISO_TZ_HOUR_ONLY = re.compile(r"([+-]\d{2})$")
_RE_ISO_FRACTION = re.compile(r"\.(\d{7,})(?=(?:[+-]\d{2}:?\d{2}|Z|$))", re.IGNORECASE)
_RE_RFC822 = re.compile(
    r"(?:\w{3},\s+)?(\d{1,2})\s+(\w{3})\s+(\d{4})\s+"
    r"(\d{2}):(\d{2}):(\d{2})\s+([+-]\d{4}|[A-Z]{2,5})"
)
_RE_HOUR24 = re.compile(r"(\d{4}-\d{2}-\d{2})[T ]24:(\d{2}):(\d{2})")
_RE_EMAIL_AUTHOR = re.compile(r"^\s*([^\s()<>]+@[^\s()<>]+)\s*(?:\((.*)\))?\s*$")
_MONTHS_RFC822: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_custom_tzinfos: dict[str, int] = {
    "UTC": 0,
    "UT": 0,
    "GMT": 0,
    "WET": 0,
    "WEST": 3600,
    "BST": 3600,
    "CET": 3600,
    "CEST": 7200,
    "EET": 7200,
    "EEST": 10800,
    "MSK": 10800,
    "IST": 19800,
    "PST": -28800,
    "PDT": -25200,
    "MST": -25200,
    "MDT": -21600,
    "CST": -21600,
    "CDT": -18000,
    "EST": -18000,
    "EDT": -14400,
    "AKST": -32400,
    "AKDT": -28800,
    "HST": -36000,
    "AEST": 36000,
    "AEDT": 39600,
    "ACST": 34200,
    "AWST": 28800,
    "NZST": 43200,
    "NZDT": 46800,
    "JST": 32400,
    "KST": 32400,
    "SGT": 28800,
}


# --------------------------------------------------------------------------
# Dates
# --------------------------------------------------------------------------


def _normalize_iso_datetime_string(value: str) -> str:
    """Coerce flexible ISO-8601 inputs into a form datetime.fromisoformat can parse."""
    cleaned = value.strip()
    if not cleaned:
        return cleaned

    if cleaned[-1] in ("Z", "z"):
        return cleaned[:-1] + "+00:00"

    if len(cleaned) > 6 and cleaned[-6] in ("+", "-") and cleaned[-3] == ":":
        return cleaned

    upper_cleaned = cleaned.upper()
    for suffix in (" UTC", " GMT", " Z"):
        if upper_cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)].rstrip() + "+00:00"
            break

    if (
        " " in cleaned
        and "T" not in cleaned[:11]
        and len(cleaned) >= 10
        and cleaned[4] == "-"
        and cleaned[0:4].isdigit()
    ):
        date_part, rest = cleaned.split(" ", 1)
        if rest and rest[0].isdigit():
            cleaned = f"{date_part}T{rest}"

    # A bare date ends in "-DD", which is not an offset
    match = _RE_ISO_TZ_NO_COLON.search(cleaned) if "T" in cleaned else None
    if match:
        cleaned = cleaned[:-5] + f"{match.group(1)}:{match.group(2)}"
    elif "T" in cleaned:
        match = _RE_ISO_TZ_HOUR_ONLY.search(cleaned)
        if match:
            cleaned = cleaned[:-3] + f"{match.group(1)}:00"

    cleaned = _RE_ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6], cleaned, count=1)
    return cleaned


def _ensure_utc(dt: datetime.datetime) -> Optional[datetime.datetime]:
    """Return a timezone-aware datetime normalized to UTC."""
    try:
        return dt.replace(tzinfo=_UTC) if dt.tzinfo is None else dt.astimezone(_UTC)
    except (ValueError, OverflowError):
        return None


def _fast_rfc822(value: str) -> Optional[datetime.datetime]:
    m = _RE_RFC822.match(value)
    if not m:
        return None
    day, mon_str, year, hour, minute, second, tz = m.groups()
    month = _MONTHS_RFC822.get(mon_str.lower())
    if month is None:
        return None
    if tz[0] in "+-":
        tz_offset_seconds = (int(tz[1:3]) * 3600 + int(tz[3:5]) * 60) * (
            1 if tz[0] == "+" else -1
        )
    else:
        tz_offset_seconds = _custom_tzinfos.get(tz)
        if tz_offset_seconds is None:
            return None  # unknown zone name, let the slower parsers decide
    if not (-86400 < tz_offset_seconds < 86400):
        return None
    h = int(hour)
    try:
        dt = datetime.datetime(
            int(year),
            month,
            int(day),
            0 if h == 24 else h,
            int(minute),
            int(second),
            tzinfo=datetime.timezone(datetime.timedelta(seconds=tz_offset_seconds)),
        )
    except ValueError:
        return None
    # Hour 24 rolls over to midnight of the next day
    if h == 24:
        dt += datetime.timedelta(days=1)
    return _ensure_utc(dt)


def _parsedate_to_utc(value: str) -> Optional[datetime.datetime]:
    """RFC-822 / RFC-2822 parsing via email.utils (fallback)."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return _ensure_utc(parsed)


def _has_explicit_date(value: str) -> bool:
    # dateutil fills missing fields from today's date; insist on a year plus
    # at least one more number so nothing is invented.
    runs = _RE_DIGIT_RUN.findall(value)
    return len(runs) >= 2 and any(len(run) == 4 for run in runs)


@lru_cache(maxsize=512)
def _slow_dateutil_parse(value: str) -> Optional[datetime.datetime]:
    if not _has_explicit_date(value):
        return None
    try:
        return dateutil_parser.parse(value, tzinfos=_custom_tzinfos, ignoretz=False)
    except (ValueError, TypeError, OverflowError):
        return None


@lru_cache(maxsize=8192)
def _parse_date(date_str: str) -> Optional[datetime.datetime]:
    candidate = date_str.strip()
    if not candidate:
        return None

    # Fast path: clean ISO-8601 (covers most Atom and JSON Feed dates)
    clen = len(candidate)
    if clen >= 20 and candidate[4] == "-" and candidate[0:4].isdigit():
        last = candidate[-1]
        if last in ("Z", "z"):
            try:
                return _ensure_utc(
                    datetime.datetime.fromisoformat(candidate[:-1] + "+00:00")
                )
            except ValueError:
                pass
        elif clen > 6 and candidate[-6] in ("+", "-") and candidate[-3] == ":":
            try:
                return _ensure_utc(datetime.datetime.fromisoformat(candidate))
            except (ValueError, OverflowError):
                pass

    if "\n" in candidate or "\r" in candidate or "\t" in candidate or "  " in candidate:
        candidate = _RE_WHITESPACE.sub(" ", candidate)

    # Feeds sometimes publish Feb 29 in non-leap years
    if "-02-29" in candidate:
        year_match = _RE_FEB29.match(candidate)
        if year_match:
            year = int(year_match.group(1))
            if not ((year % 4 == 0 and year % 100 != 0) or (year % 400 == 0)):
                candidate = candidate.replace(f"{year}-02-29", f"{year}-02-28")

    if "T24:" in candidate or " 24:" in candidate:
        m24 = _RE_HOUR24.search(candidate)
        if m24:
            try:
                base = datetime.date.fromisoformat(m24.group(1))
            except ValueError:
                return None
            mins, secs = int(m24.group(2)), int(m24.group(3))
            next_day = base + datetime.timedelta(days=1)
            candidate = (
                candidate[: m24.start()]
                + f"{next_day}T00:{mins:02d}:{secs:02d}"
                + candidate[m24.end() :]
            )

    is_iso_like = (
        len(candidate) >= 10 and candidate[4] == "-" and candidate[0:4].isdigit()
    )
    if is_iso_like:
        try:
            dt = datetime.datetime.fromisoformat(
                _normalize_iso_datetime_string(candidate)
            )
        except ValueError:
            dt = None
        if dt is not None:
            utc_dt = _ensure_utc(dt)
            if utc_dt is not None:
                return utc_dt

    rfc822 = _fast_rfc822(candidate)
    if rfc822 is not None:
        return rfc822

    dt = _parsedate_to_utc(candidate)
    if dt is not None:
        return dt

    slow_dt = _slow_dateutil_parse(candidate)
    if slow_dt is not None:
        return _ensure_utc(slow_dt)

    return None


def parse_date(value: Any) -> Optional[datetime.datetime]:
    """Parse an RFC-822 or ISO-8601 style date into an aware UTC datetime.

    Returns None for anything that is not a recognisable date. Callers must
    treat None as "unknown"; no substitute date is ever produced.
    """
    if not isinstance(value, str) or not value:
        return None
    return _parse_date(value)


# --------------------------------------------------------------------------
# Text and HTML
# --------------------------------------------------------------------------


def clean_text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for empty and non-string values."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def strip_html(value: Any) -> Optional[str]:
    """Reduce markup to display-safe plain text."""
    if not isinstance(value, str) or not value:
        return None
    if "<" in value:
        value = _RE_SCRIPT_STYLE.sub(" ", value)
        value = _RE_HTML_TAGS.sub(" ", value)
    if "&" in value:
        value = _html_mod.unescape(value)
    value = _RE_WHITESPACE.sub(" ", value).strip()
    return value or None


def split_content(value: Any) -> tuple[Optional[str], Optional[str]]:
    """Classify a description-like payload as ``(html, text)``.

    A payload without a ``<`` character is plain text; anything else is
    HTML. Exactly one side is set for a non-blank payload.
    """
    if not isinstance(value, str) or not value.strip():
        return None, None
    if "<" in value:
        return value, None
    return None, value


# --------------------------------------------------------------------------
# Identity
# --------------------------------------------------------------------------


def _rolling_hash(value: str) -> str:
    # 32-bit h = h * 31 + c over UTF-16 code units, read back as signed.
    h = 0
    for (unit,) in struct.iter_unpack("<H", value.encode("utf-16-le")):
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


def derive_unique_id(
    *,
    date_published: Optional[datetime.datetime] = None,
    title: Optional[str] = None,
    external_url: Optional[str] = None,
    author_email: Optional[str] = None,
    attachment_url: Optional[str] = None,
    content_html: Optional[str] = None,
    content_text: Optional[str] = None,
) -> Optional[str]:
    """Fingerprint an entry that carries no guid of its own.

    The published date, title, external URL, first author email and first
    attachment URL are concatenated in that order; content is hashed only
    when all of them are missing. Entries with identical inputs get the same
    ID on purpose. Returns None when there is nothing to hash.
    """
    parts = [
        date_published.astimezone(_UTC).isoformat() if date_published else None,
        title,
        external_url,
        author_email,
        attachment_url,
    ]
    signal = "".join(part for part in parts if part)
    if not signal:
        signal = content_html or content_text or ""
    if not signal:
        return None
    return _rolling_hash(signal)


# --------------------------------------------------------------------------
# Field coercion
# --------------------------------------------------------------------------


def is_http_url(value: Optional[str]) -> bool:
    return bool(value) and value.lower().startswith(("http://", "https://"))


def parse_size(value: Any) -> Optional[int]:
    """Coerce a byte size given as a number or numeric string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value >= 0 else None
    if isinstance(value, str):
        value = value.strip()
        return int(value) if value.isdecimal() else None
    return None


def parse_duration(value: Any) -> Optional[float]:
    """Seconds from a number, ``"SS"``, ``"MM:SS"`` or ``"HH:MM:SS"``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        parts = value.strip().split(":")
        if not 1 <= len(parts) <= 3:
            return None
        seconds = 0.0
        for part in parts:
            try:
                number = float(part)
            except ValueError:
                return None
            if not math.isfinite(number) or number < 0:
                return None
            seconds = seconds * 60 + number
    else:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def make_attachment(
    url: Any,
    mime_type: Any = None,
    title: Any = None,
    size: Any = None,
    duration: Any = None,
) -> Optional[ParsedAttachment]:
    """Build an attachment, or None when the candidate has no URL."""
    url = clean_text(url)
    if url is None:
        return None
    return ParsedAttachment(
        url=url,
        mime_type=clean_text(mime_type),
        title=clean_text(title),
        size_in_bytes=parse_size(size),
        duration_in_seconds=parse_duration(duration),
    )


def make_hub(url: Any, hub_type: Any = None, description: Any = None) -> Optional[ParsedHub]:
    url = clean_text(url)
    if not is_http_url(url):
        return None
    return ParsedHub(
        url=url, type=clean_text(hub_type), description=clean_text(description)
    )


def make_author(
    name: Any = None, url: Any = None, avatar_url: Any = None, email_address: Any = None
) -> Optional[ParsedAuthor]:
    author = ParsedAuthor(
        name=strip_html(name),
        url=clean_text(url),
        avatar_url=clean_text(avatar_url),
        email_address=clean_text(email_address),
    )
    if author == ParsedAuthor():
        return None
    return author


def parse_email_author(value: Any) -> Optional[ParsedAuthor]:
    """Split the RSS ``author`` form ``jane@example.com (Jane Doe)``."""
    value = clean_text(value)
    if value is None:
        return None
    match = _RE_EMAIL_AUTHOR.match(value)
    if match:
        return make_author(name=match.group(2), email_address=match.group(1))
    return make_author(name=value)


# --------------------------------------------------------------------------
# Encoding
# --------------------------------------------------------------------------

_RE_XML_DECL_ENCODING_BYTES = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)


def detect_xml_encoding(content: bytes) -> str:
    """Detect encoding from XML declaration or BOM.

    Returns the detected encoding or 'utf-8' as default.
    """
    if content.startswith(b"\xff\xfe") or content.startswith(b"\xfe\xff"):
        return "utf-16"
    if content.startswith(b"\xef\xbb\xbf"):
        return "utf-8"

    encoding_match = _RE_XML_DECL_ENCODING_BYTES.search(content[:2000])
    if encoding_match:
        return encoding_match.group(2).decode("ascii", errors="replace").lower()
    return "utf-8"


def to_text(raw: str | bytes) -> str:
    """Decode raw feed bytes for sniffing; never raises."""
    if isinstance(raw, str):
        return raw
    encoding = detect_xml_encoding(raw)
    try:
        text = raw.decode(encoding, errors="replace")
    except LookupError:
        text = raw.decode("utf-8", errors="replace")
    return text.lstrip("\ufeff")


# --------------------------------------------------------------------------
# Item assembly
# --------------------------------------------------------------------------


def unique_values(values: Iterable[Any]) -> tuple:
    """Drop None and repeated values, keeping first-seen order."""
    seen: list[Any] = []
    for value in values:
        if value is not None and value not in seen:
            seen.append(value)
    return tuple(seen)


def build_item(
    *,
    unique_id: Optional[str],
    source_url: str,
    content_html: Optional[str],
    content_text: Optional[str],
    title: Optional[str] = None,
    url: Optional[str] = None,
    external_url: Optional[str] = None,
    language: Optional[str] = None,
    summary: Optional[str] = None,
    image_url: Optional[str] = None,
    banner_image_url: Optional[str] = None,
    date_published: Optional[datetime.datetime] = None,
    date_modified: Optional[datetime.datetime] = None,
    authors: tuple[ParsedAuthor, ...] = (),
    tags: tuple[str, ...] = (),
    attachments: tuple[ParsedAttachment, ...] = (),
    include_content: bool = True,
    include_tags: bool = True,
    include_attachments: bool = True,
) -> Optional[ParsedItem]:
    """Assemble a ParsedItem, deriving its ID when the source gave none.

    Returns None when no ID can be derived; callers drop such items.
    Disabled content, tags and attachments still feed ID derivation.
    """
    if unique_id is None:
        unique_id = derive_unique_id(
            date_published=date_published,
            title=title,
            external_url=external_url or url,
            author_email=next((a.email_address for a in authors if a.email_address), None),
            attachment_url=attachments[0].url if attachments else None,
            content_html=content_html,
            content_text=content_text,
        )
    if unique_id is None:
        return None
    return ParsedItem(
        unique_id=unique_id,
        feed_url=source_url,
        url=url,
        external_url=external_url,
        title=title,
        language=language,
        content_html=content_html if include_content else None,
        content_text=content_text if include_content else None,
        summary=summary,
        image_url=image_url,
        banner_image_url=banner_image_url,
        date_published=date_published,
        date_modified=date_modified,
        authors=authors,
        tags=tags if include_tags else (),
        attachments=attachments if include_attachments else (),
    )
