import json
import logging

import pytest

import unifeed
from unifeed import (
    FeedParseError,
    FeedType,
    InvalidJSONError,
    InvalidXMLError,
    ParseFailedError,
    UnknownFormatError,
    parse,
)

SOURCE = "https://example.com/feed"

MINIMAL_DOCUMENTS = {
    FeedType.RSS: (
        '<rss version="2.0"><channel><title>R</title>'
        "<item><guid>r1</guid><title>Item</title></item></channel></rss>"
    ),
    FeedType.ATOM: (
        '<feed xmlns="http://www.w3.org/2005/Atom"><title>A</title>'
        "<entry><id>a1</id><title>Item</title></entry></feed>"
    ),
    FeedType.JSON_FEED: json.dumps(
        {
            "version": "https://jsonfeed.org/version/1",
            "title": "J",
            "items": [{"id": "j1", "title": "Item"}],
        }
    ),
    FeedType.RSS_IN_JSON: json.dumps(
        {"rss": {"channel": {"title": "RJ", "item": [{"guid": "rj1", "title": "Item"}]}}}
    ),
}


@pytest.mark.parametrize("feed_type", list(MINIMAL_DOCUMENTS))
def test_parse_routes_each_format(feed_type):
    feed = parse(MINIMAL_DOCUMENTS[feed_type], SOURCE)
    assert feed.type is feed_type
    assert feed.feed_url == SOURCE
    assert feed.title
    assert len(feed.items) == 1
    item = feed.items[0]
    assert item.unique_id
    assert item.feed_url == SOURCE
    assert item.title == "Item"


@pytest.mark.parametrize("feed_type", list(MINIMAL_DOCUMENTS))
def test_parse_accepts_bytes(feed_type):
    feed = parse(MINIMAL_DOCUMENTS[feed_type].encode("utf-8"), SOURCE)
    assert feed.type is feed_type


def test_explicit_ids_are_used_exactly():
    ids = [parse(doc, SOURCE).items[0].unique_id for doc in MINIMAL_DOCUMENTS.values()]
    assert ids == ["r1", "a1", "j1", "rj1"]


def test_unknown_format():
    with pytest.raises(UnknownFormatError) as excinfo:
        parse("not a feed", SOURCE)
    assert excinfo.value.feed_type is FeedType.UNKNOWN
    assert excinfo.value.source_url == SOURCE
    assert SOURCE in str(excinfo.value)


def test_rdf_is_unknown():
    rdf = (
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"'
        ' xmlns="http://purl.org/rss/1.0/"><channel/></rdf:RDF>'
    )
    with pytest.raises(UnknownFormatError):
        parse(rdf, SOURCE)


def test_malformed_json_is_invalid_json():
    with pytest.raises(InvalidJSONError) as excinfo:
        parse("{", SOURCE)
    assert excinfo.value.source_url == SOURCE


def test_parser_errors_propagate_unchanged():
    with pytest.raises(InvalidXMLError):
        parse('<rss version="2.0"><channel><title>Broken</channel></rss>', SOURCE)


def test_recover_flag_reaches_xml_parsers():
    raw = '<rss version="2.0"><channel><title>Fish & Chips</title></channel></rss>'
    with pytest.raises(InvalidXMLError):
        parse(raw, SOURCE)
    assert parse(raw, SOURCE, recover=True).type is FeedType.RSS


def test_unexpected_failure_is_wrapped(monkeypatch, caplog):
    def explode(root, source_url):
        raise RuntimeError("boom")

    monkeypatch.setattr(unifeed.xmlfeeds, "_locate_rss_channel", explode)
    with caplog.at_level(logging.DEBUG, logger="unifeed.main"):
        with pytest.raises(ParseFailedError) as excinfo:
            parse(MINIMAL_DOCUMENTS[FeedType.RSS], SOURCE)

    error = excinfo.value
    assert isinstance(error, FeedParseError)
    assert error.feed_type is FeedType.RSS
    assert error.source_url == SOURCE
    assert isinstance(error.cause, RuntimeError)
    assert error.__cause__ is error.cause
    assert "Unexpected failure parsing rss feed" in caplog.text


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse("", SOURCE)


def test_article_link_lands_in_the_same_fields_for_every_format():
    link = "https://example.com/post"
    documents = [
        _rss_with_item(f"<item><guid>p</guid><title>Post</title><link>{link}</link></item>"),
        '<feed xmlns="http://www.w3.org/2005/Atom"><title>A</title>'
        f'<entry><id>p</id><title>Post</title><link href="{link}"/></entry></feed>',
        json.dumps(
            {
                "version": "https://jsonfeed.org/version/1.1",
                "items": [{"id": "p", "title": "Post", "url": link}],
            }
        ),
        json.dumps({"rss": {"channel": {"item": [{"guid": "p", "title": "Post", "link": link}]}}}),
    ]
    for raw in documents:
        item = parse(raw, SOURCE).items[0]
        assert (item.url, item.external_url) == (link, link)


def _rss_with_item(item: str) -> str:
    return f'<rss version="2.0"><channel><title>R</title>{item}</channel></rss>'
