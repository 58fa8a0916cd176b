"""Shared fixtures for CLI tests."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from obstinate.cli import app


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def remote(monkeypatch, store):
    """Route every store the CLI builds to the in-memory fake."""
    monkeypatch.setattr("obstinate.cache.build_store", lambda *_args, **_kwargs: store)
    return store


@pytest.fixture
def invoke(runner, cache_root):
    """Invoke the CLI with ``--cache-dir`` injected before the subcommand."""

    def _invoke(args: list[str]):
        return runner.invoke(app, ["--cache-dir", str(cache_root), *args])

    return _invoke
