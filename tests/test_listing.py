"""Tests for XML and JSON listing decoding."""

from __future__ import annotations

import pytest

from jsonbucket import ListingEntry, MalformedResponseError, parse_xml_listing
from jsonbucket.listing import entry_from_key, is_xml_content_type, parse_listing
from tests.fakes import xml_listing


def test_entry_from_key() -> None:
    assert entry_from_key("Foo/123") == ListingEntry("Foo", "123")
    assert entry_from_key("Foo/a/b") == ListingEntry("Foo", "a/b")
    assert entry_from_key("noslash") is None
    assert entry_from_key("/leading") is None
    assert entry_from_key("Foo/") is None
    assert entry_from_key("") is None


def test_xml_listing_drops_duplicates_and_bad_keys() -> None:
    body = (
        "<ListBucketResult>"
        "<Contents><Key>Foo/123</Key></Contents>"
        "<Contents><Key>Foo/123</Key></Contents>"
        "<Contents><Key>noslash</Key></Contents>"
        "</ListBucketResult>"
    )
    assert parse_xml_listing(body) == [ListingEntry("Foo", "123")]


def test_xml_listing_keeps_document_order() -> None:
    body = xml_listing(["Foo/3", "Bar/1", "Foo/2", "Foo/3"])
    assert parse_xml_listing(body.encode()) == [
        ListingEntry("Foo", "3"),
        ListingEntry("Bar", "1"),
        ListingEntry("Foo", "2"),
    ]


def test_xml_listing_with_namespace_and_extra_elements() -> None:
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
        "<Name>b</Name><IsTruncated>false</IsTruncated>"
        "<Contents><Key>com.example.Customer/c1</Key><ETag>x</ETag><Size>10</Size></Contents>"
        "<Contents><Size>3</Size></Contents>"
        "</ListBucketResult>"
    )
    assert parse_xml_listing(body) == [ListingEntry("com.example.Customer", "c1")]


def test_empty_xml_listing() -> None:
    assert parse_xml_listing("<ListBucketResult/>") == []


def test_malformed_xml_listing() -> None:
    with pytest.raises(MalformedResponseError, match="Invalid XML listing"):
        parse_xml_listing("<ListBucketResult><Contents>")


@pytest.mark.parametrize(
    "content_type,expected",
    [
        ("application/xml", True),
        ("text/xml", True),
        ("application/xml; charset=UTF-8", True),
        ("Application/XML", True),
        ("application/json", False),
        ("", False),
        (None, False),
    ],
)
def test_is_xml_content_type(content_type, expected) -> None:
    assert is_xml_content_type(content_type) is expected


def test_parse_listing_xml_builds_identity_documents() -> None:
    body = xml_listing(["Foo/123", "Foo/124"])
    assert parse_listing(body, "application/xml; charset=UTF-8", "id") == [
        {"class": "Foo", "id": "123"},
        {"class": "Foo", "id": "124"},
    ]


def test_parse_listing_json_array() -> None:
    body = b'[{"id": "1", "name": "a"}, {"id": "2"}]'
    assert parse_listing(body, "application/json", "id") == [
        {"id": "1", "name": "a"},
        {"id": "2"},
    ]


def test_parse_listing_empty_json_body() -> None:
    assert parse_listing(b"", "application/json", "id") == []
    assert parse_listing(b"  ", "", "id") == []


@pytest.mark.parametrize("body", [b'{"id": "1"}', b"[1, 2]", b"not json"])
def test_parse_listing_rejects_non_array_json(body) -> None:
    with pytest.raises(MalformedResponseError):
        parse_listing(body, "application/json", "id")
