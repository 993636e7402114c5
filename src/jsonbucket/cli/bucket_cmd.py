"""jsonbucket ensure-bucket — create the configured bucket if needed."""

from __future__ import annotations

import typer

from jsonbucket.bridge import CloudStorageBridge
from jsonbucket.cli import _exitcodes as ec
from jsonbucket.cli._output import print_document, print_error
from jsonbucket.cli._storage import cli_errors, open_client


def ensure_bucket_cmd() -> None:
    """Create the bucket; succeeds when it already exists and is owned by you."""
    from jsonbucket.cli import state

    with cli_errors():
        client = open_client()
        if not isinstance(client, CloudStorageBridge):
            print_error("ensure-bucket needs a cloud storage URI (s3+... or gs+...)")
            raise typer.Exit(ec.USAGE_ERROR)
        client.ensure_bucket()

    print_document(
        {"bucket": client.config.bucket, "status": "ready"},
        json_mode=state.json_output,
    )
