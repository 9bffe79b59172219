"""Tests for the typer CLI."""

import pytest
from rich.text import Text
from typer.testing import CliRunner

from movrelay import __version__, cli
from movrelay.core.config import Settings
from movrelay.core.exceptions import MockServerError

runner = CliRunner()


def _plain(output: str) -> str:
    return Text.from_ansi(output).plain


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep loguru sinks pointed at the real stderr while CliRunner swaps streams."""
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


def _use_settings(monkeypatch, **overrides) -> Settings:
    settings = Settings(_env_file=None, **overrides)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return settings


def test_version() -> None:
    result = runner.invoke(cli.app, ["version"])

    assert result.exit_code == 0
    assert __version__ in _plain(result.output)


def test_now_playing_against_offline_tmdb(monkeypatch, fresh_mock_server) -> None:
    """The CLI starts its own JSONPlaceholder mock and reads TMDb from the fixture server."""
    _use_settings(monkeypatch, tmdb_api_key="test-api-key", tmdb_base_url=fresh_mock_server.base_url)

    result = runner.invoke(cli.app, ["now-playing"])

    assert result.exit_code == 0, result.output
    assert "Scenario passed" in _plain(result.output)
    assert "Created post id: 101" in _plain(result.output)
    # Writes went to the CLI's own mock, not to the TMDb fixture server
    assert fresh_mock_server.find_requests("POST") == []


def test_search_against_offline_tmdb(monkeypatch, fresh_mock_server) -> None:
    _use_settings(monkeypatch, tmdb_api_key="test-api-key", tmdb_base_url=fresh_mock_server.base_url)

    result = runner.invoke(cli.app, ["search", "matrix"])

    assert result.exit_code == 0, result.output
    assert "The Matrix" in _plain(result.output)


def test_missing_api_key_exits_non_zero(monkeypatch) -> None:
    _use_settings(monkeypatch, tmdb_api_key=None)

    result = runner.invoke(cli.app, ["now-playing"])

    assert result.exit_code == 1
    assert "ConfigurationError" in _plain(result.output)


def test_serve_mock_port_option_leaves_cached_settings_alone(monkeypatch) -> None:
    settings = _use_settings(monkeypatch)
    seen = []

    def refuse_to_start(effective: Settings):
        seen.append(effective)
        raise MockServerError("port in use")

    monkeypatch.setattr(cli, "start_mock_server", refuse_to_start)

    result = runner.invoke(cli.app, ["serve-mock", "--port", "8089"])

    assert result.exit_code == 1
    assert "port in use" in _plain(result.output)
    assert seen[0].mock.port == 8089
    assert settings.mock_port == 0
