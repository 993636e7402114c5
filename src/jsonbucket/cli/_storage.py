"""CLI helpers for resolving configuration and opening a bridge."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from jsonbucket.bridge import JsonBridge, open_bridge
from jsonbucket.cli import _exitcodes as ec
from jsonbucket.cli._output import print_error
from jsonbucket.config import BucketConfig, load_config, parse_storage_uri, storage_uri_values
from jsonbucket.errors import (
    ConfigurationError,
    JsonBucketError,
    ObjectNotFoundError,
    StoreError,
)


def resolve_config() -> BucketConfig:
    """Build the client config from global CLI options.

    A ``--config`` file is read first; ``--storage-uri`` and the credential
    options override what it sets.
    """
    from jsonbucket.cli import state

    overrides = {
        "access_key": state.access_key,
        "secret_key": state.secret_key,
        "realm": state.realm,
    }
    if state.config:
        config = load_config(state.config)
        if state.storage_uri:
            config = config.with_overrides(**storage_uri_values(state.storage_uri))
        return config.with_overrides(**overrides)
    if state.storage_uri:
        return parse_storage_uri(state.storage_uri, **overrides)
    raise ConfigurationError("No storage selected; pass --storage-uri or --config")


def open_client() -> JsonBridge:
    return open_bridge(resolve_config())


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn library errors into an error message and a distinct exit code."""
    try:
        yield
    except ObjectNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(ec.CONFIG_ERROR)
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.STORE_ERROR)
    except JsonBucketError as e:
        print_error(str(e))
        raise typer.Exit(ec.GENERAL_ERROR)
