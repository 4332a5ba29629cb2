"""CLI tests for the ``phoxy config`` command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from phoxy.app import app
from phoxy.config import global_config_path, load_global_config
from phoxy.exit_codes import EXIT_INVALID_USAGE
from phoxy.models import AdapterType


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestConfigShow:
    def test_show_defaults_as_dot_keys(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "cache.adapter\tfilesystem" in result.output
        assert "cache.ttl.json\t3600" in result.output

    def test_show_json(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0, result.output
        assert '"cache.namespace": "phoxy"' in result.output

    def test_show_invalid_file(self, runner: CliRunner, isolated_config: Path) -> None:
        global_config_path().write_text("{broken", encoding="utf-8")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 1
        assert "Invalid global config" in result.output


class TestConfigSet:
    def test_set_string_enum(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "cache.adapter", "diskcache"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.adapter is AdapterType.DISKCACHE

    def test_set_int_through_alias(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "cache.ttl.json", "600"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.ttl.json_ == 600

    def test_set_bool(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "cache.invert_cacheable_types", "true"])
        assert load_global_config().cache.invert_cacheable_types is True

    def test_set_null_clears_optional(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "cache.ttl.html", "null"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.ttl.html is None

    def test_set_directory_from_none(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "cache.directory", "/srv/phoxy"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.directory == "/srv/phoxy"

    def test_explicit_config_file(self, runner: CliRunner, isolated_config: Path) -> None:
        path = isolated_config / "alt.json"
        result = runner.invoke(app, ["--config", str(path), "config", "set", "cache.namespace", "alt"])
        assert result.exit_code == 0, result.output
        assert json.loads(path.read_text(encoding="utf-8"))["cache"]["namespace"] == "alt"
        assert not global_config_path().exists()

    @pytest.mark.parametrize(
        "key, value",
        [
            ("cache.nope", "1"),
            ("nope.adapter", "array"),
            ("cache.ttl", "5"),
            ("cache.ttl.json", "soon"),
            ("cache.adapter", "redis"),
            ("cache.ttl.other", "null"),
        ],
    )
    def test_invalid_input_exits_2(
        self, runner: CliRunner, isolated_config: Path, key: str, value: str
    ) -> None:
        result = runner.invoke(app, ["config", "set", key, value])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert not global_config_path().exists()


class TestConfigReset:
    def test_reset_with_force(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "cache.namespace", "edge"])
        result = runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.namespace == "phoxy"

    def test_reset_declined(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "cache.namespace", "edge"])
        result = runner.invoke(app, ["config", "reset"], input="n\n")
        assert result.exit_code == 0
        assert load_global_config().cache.namespace == "edge"
