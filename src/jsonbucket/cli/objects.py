"""jsonbucket ls/get/head/put/rm — work with stored documents by path."""

from __future__ import annotations

import json

import typer

from jsonbucket.bridge import listing_path_for, object_path_for
from jsonbucket.cli import _exitcodes as ec
from jsonbucket.cli._output import print_document, print_error, print_listing
from jsonbucket.cli._storage import cli_errors, open_client


def ls_cmd(
    base_path: str = typer.Argument(..., help="Type path, e.g. com.example.Customer"),
    prefix: str | None = typer.Option(None, "--prefix", help="Listing prefix (default: base path)"),
    id_column: str = typer.Option("id", "--id-column", help="Identity column of XML-listed keys"),
) -> None:
    """List the documents stored under a type path."""
    from jsonbucket.cli import state

    with cli_errors():
        client = open_client()
        documents = client.list_documents(
            listing_path_for(base_path, prefix), identity_column=id_column
        )

    print_listing(documents, id_column, json_mode=state.json_output)


def get_cmd(
    base_path: str = typer.Argument(..., help="Type path"),
    key: str = typer.Argument(..., help="Primary key text"),
) -> None:
    """Print one stored document."""
    from jsonbucket.cli import state

    with cli_errors():
        document = open_client().read_document(object_path_for(base_path, key), operation="fetch")
    print_document(document, json_mode=state.json_output)


def head_cmd(
    base_path: str = typer.Argument(..., help="Type path"),
    key: str = typer.Argument(..., help="Primary key text"),
) -> None:
    """Check that a document exists."""
    from jsonbucket.cli import state

    path = object_path_for(base_path, key)
    with cli_errors():
        open_client().head(path, operation="locate")
    print_document({"path": path, "exists": True}, json_mode=state.json_output)


def put_cmd(
    base_path: str = typer.Argument(..., help="Type path"),
    key: str = typer.Argument(..., help="Primary key text"),
    document: str = typer.Argument(..., help="JSON object to store"),
) -> None:
    """Store a JSON document at <base-path>/<key>."""
    from jsonbucket.cli import state

    try:
        parsed = json.loads(document)
    except ValueError as e:
        print_error(f"Invalid JSON document: {e}")
        raise typer.Exit(ec.USAGE_ERROR)
    if not isinstance(parsed, dict):
        print_error("Document must be a JSON object")
        raise typer.Exit(ec.USAGE_ERROR)

    path = object_path_for(base_path, key)
    with cli_errors():
        client = open_client()
        client.write_document(path, parsed, verb=client.insert_verb, operation="insert")
    print_document({"path": path, "status": "stored"}, json_mode=state.json_output)


def rm_cmd(
    base_path: str = typer.Argument(..., help="Type path"),
    key: str = typer.Argument(..., help="Primary key text"),
) -> None:
    """Delete a stored document."""
    from jsonbucket.cli import state

    path = object_path_for(base_path, key)
    with cli_errors():
        open_client().remove(path)
    print_document({"path": path, "status": "deleted"}, json_mode=state.json_output)
