"""Tests for the sync CLI subcommands."""

import re
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from lexicard.domain.errors import ConflictError
from lexicard.domain.models import RepoInfo, SyncResult
from lexicard.interface.cli import app

runner = CliRunner()


def strip_ansi(text):
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


@pytest.fixture
def db(tmp_path, isolated_config):
    return tmp_path / "cli.db"


def invoke(db, *args, input=None):
    return runner.invoke(app, ["--db", str(db), *args], input=input)


def configure(db):
    return invoke(
        db, "sync", "configure", "--token", "tok", "--owner", "alice", "--repo", "words"
    )


def test_sync_help():
    result = runner.invoke(app, ["sync", "--help"])
    assert result.exit_code == 0
    output = strip_ansi(result.stdout)
    for command in ("upload", "download", "smart", "status", "configure"):
        assert command in output


def test_status_when_unconfigured(db):
    result = invoke(db, "sync", "status")
    assert result.exit_code == 0
    assert "GitHub sync is not configured" in result.output


def test_upload_when_unconfigured_fails(db):
    result = invoke(db, "sync", "upload")
    assert result.exit_code == 1
    assert "Sync is not configured" in result.output


def test_configure_then_status(db):
    result = configure(db)
    assert result.exit_code == 0, result.output
    assert "Sync configured for alice/words@main." in result.output

    result = invoke(db, "sync", "status")
    assert result.exit_code == 0
    assert "Last sync: never" in result.output


def test_configure_prompts_for_missing_values(db):
    result = invoke(db, "sync", "configure", "--branch", "data", input="tok\nalice\nwords\n")
    assert result.exit_code == 0, result.output
    assert "alice/words@data" in result.output


@patch("lexicard.application.sync_service.SyncService.upload", new_callable=AsyncMock)
def test_upload(mock_upload, db):
    mock_upload.return_value = SyncResult(
        success=True, message="Data uploaded to GitHub", sha="abc"
    )

    result = invoke(db, "sync", "upload")

    assert result.exit_code == 0
    assert "Data uploaded to GitHub" in result.output
    mock_upload.assert_awaited_once()


@patch("lexicard.application.sync_service.SyncService.smart_sync", new_callable=AsyncMock)
def test_smart_sync_conflict_is_reported(mock_smart, db):
    mock_smart.side_effect = ConflictError("data/vocabulary-data.json does not match", status=409)

    result = invoke(db, "sync", "smart")

    assert result.exit_code == 1
    assert "Error: data/vocabulary-data.json does not match" in result.output


@patch("lexicard.application.sync_service.SyncService.download", new_callable=AsyncMock)
def test_download_requires_confirmation(mock_download, db):
    result = invoke(db, "sync", "download", input="n\n")

    assert result.exit_code == 1
    mock_download.assert_not_awaited()


@patch("lexicard.application.sync_service.SyncService.download", new_callable=AsyncMock)
def test_download_forced(mock_download, db):
    mock_download.return_value = SyncResult(
        success=True, message="Data downloaded from GitHub", sha="abc", words_imported=12
    )

    result = invoke(db, "sync", "download", "--force")

    assert result.exit_code == 0
    assert "Data downloaded from GitHub (12 words)." in result.output


@patch("lexicard.application.sync_service.SyncService.test_connection", new_callable=AsyncMock)
def test_connection(mock_test, db):
    mock_test.return_value = RepoInfo(name="alice/words", is_private=True)

    result = invoke(db, "sync", "test")

    assert result.exit_code == 0
    assert "Connected to alice/words (private)." in result.output
