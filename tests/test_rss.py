import datetime

import pytest

from unifeed import (
    FeedType,
    InvalidXMLError,
    ParsedAttachment,
    ParsedAuthor,
    ParsedHub,
    RSSChannelNotFoundError,
    parse_rss,
)
from unifeed.utils import derive_unique_id

SOURCE = "https://example.com/feed.xml"

RSS_FEED = """<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:atom="http://www.w3.org/2005/Atom"
     xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Example &amp; Co</title>
    <link>https://example.com/</link>
    <description>An example feed</description>
    <language>en-us</language>
    <managingEditor>editor@example.com (Ed Itor)</managingEditor>
    <image><url>https://example.com/logo.png</url></image>
    <atom:link rel="self" href="https://mirror.example.net/feed.xml"/>
    <atom:link rel="hub" href="https://pubsubhubbub.appspot.com/"/>
    <item>
      <title>First post</title>
      <link>https://example.com/first</link>
      <guid isPermaLink="false">post-1</guid>
      <pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate>
      <description>Short summary</description>
      <content:encoded><![CDATA[<p>Full body</p>]]></content:encoded>
      <dc:creator>Jane Doe</dc:creator>
      <category>news</category>
      <category>tech</category>
      <enclosure url="https://example.com/a.mp3" type="audio/mpeg" length="12345"/>
      <itunes:duration>01:00</itunes:duration>
    </item>
  </channel>
</rss>
"""


def test_parse_rss_feed_fields():
    feed = parse_rss(RSS_FEED, SOURCE)
    assert feed.type is FeedType.RSS
    assert feed.feed_url == SOURCE
    assert feed.title == "Example & Co"
    assert feed.home_page_url == "https://example.com/"
    assert feed.feed_description == "An example feed"
    assert feed.language == "en-us"
    assert feed.icon_url == "https://example.com/logo.png"
    assert feed.authors == (ParsedAuthor(name="Ed Itor", email_address="editor@example.com"),)
    assert feed.hubs == (ParsedHub(url="https://pubsubhubbub.appspot.com/", type="websub"),)
    assert feed.expired is False


def test_parse_rss_item_fields():
    feed = parse_rss(RSS_FEED, SOURCE)
    assert len(feed.items) == 1
    item = feed.items[0]
    assert item.unique_id == "post-1"
    assert item.feed_url == SOURCE
    assert item.title == "First post"
    assert item.external_url == "https://example.com/first"
    assert item.content_html == "<p>Full body</p>"
    assert item.content_text is None
    assert item.summary == "Short summary"
    assert item.date_published == datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    assert item.authors == (ParsedAuthor(name="Jane Doe"),)
    assert item.tags == ("news", "tech")
    assert item.attachments == (
        ParsedAttachment(
            url="https://example.com/a.mp3",
            mime_type="audio/mpeg",
            size_in_bytes=12345,
            duration_in_seconds=60.0,
        ),
    )


def _rss(items: str) -> str:
    return f'<rss version="2.0"><channel><title>T</title>{items}</channel></rss>'


def test_description_without_markup_is_text():
    feed = parse_rss(
        _rss("<item><guid>1</guid><description>Plain words</description></item>"), SOURCE
    )
    item = feed.items[0]
    assert item.content_text == "Plain words"
    assert item.content_html is None
    assert item.summary is None


def test_escaped_description_is_html():
    feed = parse_rss(
        _rss("<item><guid>1</guid><description>&lt;p&gt;Hi&lt;/p&gt;</description></item>"),
        SOURCE,
    )
    item = feed.items[0]
    assert item.content_html == "<p>Hi</p>"
    assert item.content_text is None


def test_missing_guid_derives_stable_id():
    xml = _rss(
        "<item><title>No guid</title><link>https://example.com/no-guid</link>"
        "<pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate></item>"
    )
    first = parse_rss(xml, SOURCE).items[0]
    second = parse_rss(xml, SOURCE).items[0]
    assert first.unique_id == second.unique_id
    assert first.unique_id == derive_unique_id(
        date_published=datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
        title="No guid",
        external_url="https://example.com/no-guid",
    )


def test_permalink_guid_becomes_link():
    feed = parse_rss(_rss("<item><guid>https://example.com/p/1</guid></item>"), SOURCE)
    assert feed.items[0].external_url == "https://example.com/p/1"

    feed = parse_rss(
        _rss('<item><guid isPermaLink="false">https://example.com/p/1</guid></item>'), SOURCE
    )
    assert feed.items[0].external_url is None


def test_empty_item_is_dropped():
    feed = parse_rss(_rss("<item></item><item><guid>kept</guid></item>"), SOURCE)
    assert [item.unique_id for item in feed.items] == ["kept"]


def test_channel_without_items():
    feed = parse_rss(_rss(""), SOURCE)
    assert feed.title == "T"
    assert feed.items == ()


def test_email_author_on_item():
    feed = parse_rss(
        _rss("<item><guid>1</guid><author>jane@example.com (Jane Doe)</author></item>"), SOURCE
    )
    assert feed.items[0].authors == (
        ParsedAuthor(name="Jane Doe", email_address="jane@example.com"),
    )


def test_media_thumbnail_is_image():
    xml = (
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/"><channel>'
        "<item><guid>1</guid>"
        '<media:thumbnail url="https://example.com/thumb.jpg"/>'
        "</item></channel></rss>"
    )
    assert parse_rss(xml, SOURCE).items[0].image_url == "https://example.com/thumb.jpg"


def test_unparseable_date_is_absent():
    feed = parse_rss(_rss("<item><guid>1</guid><pubDate>sometime soon</pubDate></item>"), SOURCE)
    assert feed.items[0].date_published is None


def test_missing_channel():
    with pytest.raises(RSSChannelNotFoundError) as excinfo:
        parse_rss('<rss version="2.0"><foo/></rss>', SOURCE)
    assert excinfo.value.source_url == SOURCE
    assert excinfo.value.feed_type is FeedType.RSS


def test_malformed_xml_is_rejected_by_default():
    xml = _rss("<item><guid>1</guid><title>Fish & Chips</title></item>")
    with pytest.raises(InvalidXMLError):
        parse_rss(xml, SOURCE)


def test_malformed_xml_recovers_on_request():
    xml = _rss("<item><guid>1</guid><title>Fish & Chips</title></item>")
    feed = parse_rss(xml, SOURCE, recover=True)
    assert [item.unique_id for item in feed.items] == ["1"]


def test_html_document_is_rejected():
    with pytest.raises(InvalidXMLError):
        parse_rss("<!DOCTYPE html><html><body>Not a feed</body></html>", SOURCE)


def test_empty_document_is_rejected():
    with pytest.raises(InvalidXMLError):
        parse_rss(b"", SOURCE)


def test_to_dict_is_plain():
    data = parse_rss(RSS_FEED, SOURCE).to_dict()
    assert data["type"] == "rss"
    assert data["items"][0]["date_published"] == "2024-01-01T00:00:00+00:00"
    assert data["items"][0]["tags"] == ["news", "tech"]
    assert data["items"][0]["attachments"][0]["size_in_bytes"] == 12345


def test_item_link_ignores_non_alternate_atom_links():
    xml = (
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom"><channel>'
        '<item><guid isPermaLink="false">1</guid>'
        '<atom:link rel="enclosure" href="https://example.com/a.mp3"/>'
        '<atom:link rel="alternate" href="https://example.com/post"/>'
        "</item></channel></rss>"
    )
    item = parse_rss(xml, SOURCE).items[0]
    assert item.external_url == "https://example.com/post"
    assert item.url == "https://example.com/post"


def test_header_repair_leaves_body_text_alone():
    xml = (
        '<?xml version="1.0"??><rss version=2.0><channel><title>T</title>'
        "<item><guid>1</guid><description>x=1 and y=2</description></item>"
        "</channel></rss>"
    )
    feed = parse_rss(xml, SOURCE)
    assert feed.title == "T"
    assert feed.items[0].content_text == "x=1 and y=2"
