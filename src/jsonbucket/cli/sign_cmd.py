"""jsonbucket sign — print the headers a request would be signed with."""

from __future__ import annotations

import typer

from jsonbucket.cli._output import print_request
from jsonbucket.cli._storage import cli_errors, resolve_config
from jsonbucket.signing import RequestSigner, canonical_resource, string_to_sign


def sign_cmd(
    verb: str = typer.Argument(..., help="HTTP verb, e.g. GET"),
    path: str = typer.Argument(..., help="Request path, e.g. com.example.Customer/42"),
    content_type: str = typer.Option("", "--content-type", help="Content-Type to sign"),
    date: str | None = typer.Option(None, "--date", help="RFC-1123 date (default: now)"),
) -> None:
    """Show the canonical string and headers for a request (debugging aid)."""
    from jsonbucket.cli import state

    verb = verb.upper()
    with cli_errors():
        config = resolve_config().validate()
        headers = RequestSigner(config).headers_for(
            verb, path, content_type=content_type, date=date
        )
    canonical = string_to_sign(
        verb, "", content_type, headers["Date"], canonical_resource(config.bucket, path)
    )
    print_request(canonical, config.url_for(path), headers, json_mode=state.json_output)
