"""jsonbucket CLI: operator console for a bucket of JSON records."""

from __future__ import annotations

from typing import Optional

import typer

from jsonbucket.cli import bucket_cmd, objects, sign_cmd
from jsonbucket.config import storage_uri_values
from jsonbucket.errors import ConfigurationError

app = typer.Typer(
    name="jsonbucket",
    help="jsonbucket CLI: inspect and manage JSON records stored in a bucket.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    storage_uri: str | None = None
    config: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    realm: str | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        from jsonbucket import __version__

        print(f"jsonbucket {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="JSONBUCKET_STORAGE_URI",
        help="Backend URI (e.g. s3+http://s3.example.com/my-bucket or json+http://host/api)",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="JSONBUCKET_CONFIG",
        help="YAML config file path",
    ),
    access_key: Optional[str] = typer.Option(
        None, "--access-key", envvar="JSONBUCKET_ACCESS_KEY", help="Access key id"
    ),
    secret_key: Optional[str] = typer.Option(
        None, "--secret-key", envvar="JSONBUCKET_SECRET_KEY", help="Secret key"
    ),
    realm: Optional[str] = typer.Option(
        None, "--realm", envvar="JSONBUCKET_REALM", help="Signing realm (AWS or GOOG1)"
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all jsonbucket commands."""
    if storage_uri:
        try:
            storage_uri_values(storage_uri)
        except ConfigurationError as e:
            raise typer.BadParameter(str(e), param_hint="--storage-uri") from e

    state.storage_uri = storage_uri
    state.config = config
    state.access_key = access_key
    state.secret_key = secret_key
    state.realm = realm
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="ensure-bucket")(bucket_cmd.ensure_bucket_cmd)
app.command(name="ls")(objects.ls_cmd)
app.command(name="get")(objects.get_cmd)
app.command(name="head")(objects.head_cmd)
app.command(name="put")(objects.put_cmd)
app.command(name="rm")(objects.rm_cmd)
app.command(name="sign")(sign_cmd.sign_cmd)


def main() -> None:
    """Entry point for the jsonbucket CLI."""
    app()
