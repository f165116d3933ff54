"""Tests for the command-line front end."""

import importlib
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from cli.status_display import format_size
from stash import CloudStash
from utils.errors import CredentialStorageError

from .conftest import NOW

cli_main = importlib.import_module("cli.main")


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(cli_main, "console", Console(file=buffer, width=120))
    monkeypatch.setattr(cli_main, "setup_logging", MagicMock())
    return buffer


@pytest.fixture
def cli_stash(profile, store, monkeypatch):
    stash = CloudStash(profile, store, open_url=MagicMock())
    monkeypatch.setattr(cli_main.CloudStash, "from_profile", MagicMock(return_value=stash))
    return stash


def run(*argv):
    with pytest.raises(SystemExit) as exc_info:
        cli_main.main(list(argv))
    return exc_info.value.code


class TestCommands:
    """Test command dispatch and exit codes."""

    def test_status_signed_out(self, output, cli_stash):
        assert run("status") == 0
        text = output.getvalue()
        assert "signed_out" in text
        assert "cloudstash" in text

    def test_status_signed_in(self, output, cli_stash, store):
        store.save_tokens("a", "r", NOW + 3600)
        store.save_profile("ada@example.com", "Ada", "")
        assert run("status") == 0
        assert "ada@example.com" in output.getvalue()

    def test_theme(self, output, cli_stash):
        assert run("theme", "dark") == 0
        assert cli_stash.theme.value == "dark"
        assert "dark" in output.getvalue()

    def test_list_requires_sign_in(self, output, cli_stash):
        assert run("list") == 1
        assert "Not signed in" in output.getvalue()

    def test_foreign_callback_url(self, output, cli_stash):
        assert run("callback", "https://example.com/?code=x") == 1

    def test_keychain_failure_during_sign_in(self, output, cli_stash, monkeypatch):
        monkeypatch.setattr(cli_stash, "handle_redirect", AsyncMock(side_effect=CredentialStorageError("keychain is locked")))
        assert run("callback", f"{cli_stash.profile.redirect_uri}?code=x&state=y") == 1
        assert "Sign in failed" in output.getvalue()
        assert "keychain is locked" in output.getvalue()

    def test_upload_missing_file(self, output, cli_stash, tmp_path):
        assert run("upload", str(tmp_path / "nope.png")) == 1

    def test_logout_without_prompt(self, output, cli_stash, store):
        store.save_tokens("a", "r", NOW + 3600)
        assert run("logout", "--yes") == 0
        assert not store.is_signed_in

    def test_debug_flag_reaches_logging(self, output, cli_stash):
        run("--debug", "status")
        cli_main.setup_logging.assert_called_once_with(debug=True)

    def test_profile_flag(self, output, cli_stash):
        run("--profile", "dropover", "status")
        cli_main.CloudStash.from_profile.assert_called_once_with("dropover")


class TestFormatSize:
    """Test human-readable sizes."""

    def test_sizes(self):
        assert format_size(0) == "0 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"
        assert format_size(3 * 1024 ** 3) == "3.0 GB"
