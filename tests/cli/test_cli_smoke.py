"""Smoke tests for the CLI commands with a mocked music service."""

from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from stellar import __version__
from stellar.domain.entities import DiscoveredArtist, TrackRecord
from stellar.infrastructure.cli.app import app
from tests.conftest import make_artist


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CLI runner working inside a scratch directory for log files."""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def service():
    return AsyncMock()


def invoke(runner, service, args):
    with patch("stellar.infrastructure.cli.app.build_service", return_value=service):
        return runner.invoke(app, args)


def test_help(runner):
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("search", "similar", "tags", "related", "top-tracks", "enrich"):
        assert command in result.stdout


def test_version(runner):
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_search(runner, service):
    service.search_artists.return_value = [
        DiscoveredArtist(id="27", name="Daft Punk", genres=["house"], fan_count=10)
    ]

    result = invoke(runner, service, ["search", "daft punk"])

    assert result.exit_code == 0
    assert "Daft Punk" in result.stdout
    service.search_artists.assert_awaited_once_with("daft punk", 6)
    service.aclose.assert_awaited_once()


def test_search_without_results(runner, service):
    service.search_artists.return_value = []

    result = invoke(runner, service, ["search", "zzzz"])

    assert result.exit_code == 0
    assert "No artists found" in result.stdout


def test_tags(runner, service):
    service.lastfm.get_artist_tags = AsyncMock(return_value=["shoegaze", "dream pop"])

    result = invoke(runner, service, ["tags", "Slowdive"])

    assert result.exit_code == 0
    assert "dream pop" in result.stdout


def test_top_tracks(runner, service):
    service.find_artist_by_name.return_value = make_artist("27", "Daft Punk")
    service.get_artist_top_tracks.return_value = [
        TrackRecord(
            id="1",
            name="One More Time",
            duration_ms=320_000,
            album_name="Discovery",
            artist_name="Daft Punk",
            artist_id="27",
            external_url="https://www.deezer.com/track/1",
        )
    ]

    result = invoke(runner, service, ["top-tracks", "Daft Punk"])

    assert result.exit_code == 0
    assert "One More Time" in result.stdout
    assert "5:20" in result.stdout


def test_related_without_match_exits_nonzero(runner, service):
    service.find_artist_by_name.return_value = None

    result = invoke(runner, service, ["related", "Nobody"])

    assert result.exit_code == 1
    assert "No catalog match" in result.stdout
    service.get_related_artists.assert_not_awaited()


def test_enrich(runner, service):
    service.enrich_artists_from_deezer.return_value = {
        "lush": make_artist("d-lush", "Lush"),
    }

    result = invoke(runner, service, ["enrich", "Lush", "Ghost"])

    assert result.exit_code == 0
    assert "Matched 1 of 2" in result.stdout


def test_command_errors_exit_cleanly(runner, service):
    service.discover_related_artists.side_effect = RuntimeError("boom")

    result = invoke(runner, service, ["similar", "Ride"])

    assert result.exit_code == 1
    assert "boom" in result.stdout
    service.aclose.assert_awaited_once()
