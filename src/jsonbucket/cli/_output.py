"""Output formatting for the CLI: listings, documents and signed requests."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping, Sequence
from typing import Any

from jsonbucket.listing import CLASS_KEY


def emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_columns(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    cells = [[str(v) for v in row] for row in rows]
    widths = [max([len(h), *(len(row[i]) for row in cells)]) for i, h in enumerate(headers)]
    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip())
    print("  ".join("-" * w for w in widths))
    for row in cells:
        print("  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip())


def print_document(document: Mapping[str, Any], *, json_mode: bool = False) -> None:
    """Print one document as JSON or as ``column: value`` lines."""
    if json_mode:
        emit_json(document)
        return
    for column, value in document.items():
        rendered = value if isinstance(value, str) else json.dumps(value, default=str)
        print(f"{column}: {rendered}")


def print_listing(
    documents: Sequence[Mapping[str, Any]], id_column: str, *, json_mode: bool = False
) -> None:
    """Print listed documents.

    Identity-only entries, as produced from an XML key listing, are shown as
    a type/key table. Full documents are printed one block each.
    """
    if json_mode:
        emit_json(list(documents))
        return
    if not documents:
        print("No documents.")
        return
    if all(set(doc) <= {CLASS_KEY, id_column} for doc in documents):
        _print_columns(
            ["type", "key"], [[doc.get(CLASS_KEY, ""), doc.get(id_column, "")] for doc in documents]
        )
        return
    for i, doc in enumerate(documents):
        if i:
            print()
        print_document(doc)


def print_request(
    string_to_sign: str, url: str, headers: Mapping[str, str], *, json_mode: bool = False
) -> None:
    """Print a request as it would be signed and sent."""
    if json_mode:
        emit_json({"string_to_sign": string_to_sign, "url": url, **headers})
        return
    print("String to sign:")
    for line in string_to_sign.split("\n"):
        print(f"  |{line}")
    print(f"\nURL: {url}")
    for name, value in headers.items():
        print(f"{name}: {value}")


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
