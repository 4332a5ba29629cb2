"""Shared test fixtures for phoxy.

Provides fixtures for isolated config environments, resettable output
state, ready-made cache adapters, a controllable clock, and a CLI runner.
These fixtures are discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import pytest

from phoxy.cache import ArrayAdapter, DiskCacheAdapter, FilesystemAdapter
from phoxy.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config, forces the XDG code path, and clears all PHOXY_* environment
    variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("phoxy.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "PHOXY_CACHE_ADAPTER",
        "PHOXY_CACHE_DIR",
        "PHOXY_CACHE_NAMESPACE",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Clock fixture
# ---------------------------------------------------------------------------


class FakeClock:
    """Stand-in for :func:`time.time` that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze ``time.time`` for the whole process at a controllable instant."""
    fake = FakeClock()
    monkeypatch.setattr(time, "time", fake)
    return fake


# ---------------------------------------------------------------------------
# Adapter fixtures
# ---------------------------------------------------------------------------


ADAPTER_KINDS = ["array", "filesystem", "diskcache"]


def _make_adapter(kind: str, directory: Path, namespace: str = "test") -> Any:
    if kind == "array":
        return ArrayAdapter(namespace)
    if kind == "filesystem":
        return FilesystemAdapter(directory, namespace)
    return DiskCacheAdapter(directory, namespace)


@pytest.fixture
def adapter_factory(tmp_path: Path):
    """Build adapters sharing one store directory; all are closed afterwards.

    Call as ``adapter_factory(kind, namespace="test")``.
    """
    created = []

    def factory(kind: str, namespace: str = "test"):
        a = _make_adapter(kind, tmp_path / "store", namespace)
        created.append(a)
        return a

    yield factory
    for a in created:
        a.close()


@pytest.fixture(params=ADAPTER_KINDS)
def adapter(request: pytest.FixtureRequest, adapter_factory):
    """Every adapter implementation, one test run each."""
    return adapter_factory(request.param)


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
