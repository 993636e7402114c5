"""Decoding of bucket enumeration responses.

A backend either returns a JSON array of stored documents, or (for plain
object stores) its native XML key listing::

    <ListBucketResult>
      <Contents><Key>com.example.Foo/123</Key>...</Contents>
    </ListBucketResult>

Each XML key is split on its first ``/`` into a type name and a primary-key
text, then turned into a minimal identity-only document.
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any

from jsonbucket.errors import MalformedResponseError

logger = logging.getLogger(__name__)

XML_CONTENT_TYPES = frozenset({"application/xml", "text/xml"})

# Key under which the type name of an XML-listed entry is carried.
CLASS_KEY = "class"


@dataclass(frozen=True)
class ListingEntry:
    type_name: str
    key: str


def is_xml_content_type(content_type: str | None) -> bool:
    """True for ``application/xml`` / ``text/xml``, ignoring any charset suffix."""
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() in XML_CONTENT_TYPES


def entry_from_key(key_text: str) -> ListingEntry | None:
    slash = key_text.find("/")
    if slash < 1:
        return None
    remainder = key_text[slash + 1 :]
    if not remainder:
        return None
    return ListingEntry(type_name=key_text[:slash], key=remainder)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_xml_listing(body: str | bytes) -> list[ListingEntry]:
    """Return the distinct entries of an XML key listing, in document order."""
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise MalformedResponseError("list", f"Invalid XML listing: {e}") from e

    seen: set[ListingEntry] = set()
    entries: list[ListingEntry] = []
    for contents in root.iter():
        if _local_name(contents.tag) != "Contents":
            continue
        key_el = next((c for c in contents if _local_name(c.tag) == "Key"), None)
        key_text = (key_el.text or "") if key_el is not None else ""
        entry = entry_from_key(key_text)
        if entry is None:
            logger.debug("Ignoring listing key", extra={"key": key_text})
            continue
        if entry in seen:
            continue
        seen.add(entry)
        entries.append(entry)
    return entries


def parse_json_listing(body: str | bytes) -> list[dict[str, Any]]:
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedResponseError("list", f"Invalid JSON listing: {e}") from e
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise MalformedResponseError("list", "JSON listing is not an array of objects")
    return data


def parse_listing(
    body: str | bytes, content_type: str | None, primary_key_column: str
) -> list[dict[str, Any]]:
    """Decode a listing body into documents.

    XML entries become ``{"class": <type name>, <primary_key_column>: <key>}``.
    """
    if is_xml_content_type(content_type):
        return [
            {CLASS_KEY: entry.type_name, primary_key_column: entry.key}
            for entry in parse_xml_listing(body)
        ]
    if not body or not body.strip():
        return []
    return parse_json_listing(body)
