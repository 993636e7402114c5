"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from jsonbucket.bridge import open_bridge
from jsonbucket.cli import _storage, app
from jsonbucket.http import HttpTransport
from tests.fakes import FakeBucketBackend

if TYPE_CHECKING:
    from click.testing import Result

CLI_BASE_URL = "http://s3.example.com"

S3_ARGS = [
    "--storage-uri",
    f"s3+{CLI_BASE_URL}/data",
    "--access-key",
    "AKIDEXAMPLE",
    "--secret-key",
    "secret",
]

JSON_ARGS = ["--storage-uri", f"json+{CLI_BASE_URL}"]


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_backend(monkeypatch):
    """Route every client the CLI opens to an in-memory bucket."""
    for name in ("STORAGE_URI", "CONFIG", "ACCESS_KEY", "SECRET_KEY", "REALM"):
        monkeypatch.delenv(f"JSONBUCKET_{name}", raising=False)
    backend = FakeBucketBackend(CLI_BASE_URL)

    def _open_bridge(config, **kwargs):
        transport = HttpTransport(config, session_factory=backend.session)
        return open_bridge(config, transport=transport, **kwargs)

    monkeypatch.setattr(_storage, "open_bridge", _open_bridge)
    return backend


def invoke(runner: CliRunner, args: list[str], storage: list[str] | None = None) -> "Result":
    """Invoke the CLI with storage options placed before the subcommand."""
    return runner.invoke(app, [*(storage or []), *args], catch_exceptions=False)
