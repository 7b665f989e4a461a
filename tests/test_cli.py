"""Tests for the typer CLI with the API client mocked out."""

import hashlib
import os
from importlib.metadata import PackageNotFoundError
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from neocities_cli.cli import app
from neocities_cli.config import NeocitiesConfig
from neocities_cli.errors import MissingCredentials, RemoteFetchFailure
from neocities_cli.models import FileRecord

runner = CliRunner()

JAN_2_2023 = 1672617600
DEC_31 = "Sat, 31 Dec 2022 00:00:00 -0000"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _remote_file(path: str, content: bytes) -> FileRecord:
    return FileRecord(
        path=path,
        is_directory=False,
        size=len(content),
        modified_at=DEC_31,
        content_hash=hashlib.sha1(content).hexdigest(),
    )


@pytest.fixture
def site(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "site"
    root.mkdir()
    index = root / "index.html"
    index.write_bytes(b"<h1>new</h1>")
    os.utime(index, (JAN_2_2023, JAN_2_2023))
    return root


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture(autouse=True)
def patched_config(client: MagicMock):
    with (
        patch("neocities_cli.cli.load_config", return_value=NeocitiesConfig(api_key="k")),
        patch("neocities_cli.cli.client_from_config", return_value=client) as factory,
    ):
        yield factory


# ---------------------------------------------------------------------------
# diff / sync
# ---------------------------------------------------------------------------


class TestDiffCommand:
    def test_reports_in_sync(self, site: Path, client: MagicMock) -> None:
        client.list_files.return_value = [
            FileRecord(path="site", is_directory=True, size=None, modified_at=DEC_31, content_hash=None),
            _remote_file("site/index.html", b"<h1>new</h1>"),
        ]
        result = runner.invoke(app, ["diff", "./site"])
        assert result.exit_code == 0
        assert "Local and remote version are in sync" in result.output

    def test_prints_one_line_per_item(self, site: Path, client: MagicMock) -> None:
        client.list_files.return_value = [
            _remote_file("site/index.html", b"<h1>old</h1>"),
            _remote_file("site/gone.html", b"bye"),
        ]
        result = runner.invoke(app, ["diff", "site"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert "site <- (missing) remote not found" in lines
        assert "site/gone.html <- (missing) local not found" in lines
        assert "site/index.html <- (ahead) local ahead of remote - Mon, 02 Jan 2023 00:00:00 +0000" in lines
        assert f"site/index.html <- (behind) remote behind local - {DEC_31}" in lines
        assert lines[-1] == "4 difference(s): local-missing 1, remote-missing 1, local-ahead 1, remote-behind 1"

    def test_invalid_path_exits_non_zero(self, site: Path, client: MagicMock) -> None:
        result = runner.invoke(app, ["diff", "missing"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "(invalid-path)" in result.output
        client.list_files.assert_not_called()

    def test_fetch_failure_exits_non_zero(self, site: Path, client: MagicMock) -> None:
        client.list_files.side_effect = RemoteFetchFailure("Could not fetch the remote file list: boom")
        result = runner.invoke(app, ["diff", "site"])
        assert result.exit_code == 1
        assert "Could not fetch the remote file list" in result.output

    def test_missing_credentials(self, site: Path, patched_config: MagicMock) -> None:
        patched_config.side_effect = MissingCredentials("missing username: set NEOCITIES_USER")
        result = runner.invoke(app, ["diff", "site"])
        assert result.exit_code == 1
        assert "NEOCITIES_USER" in result.output

    def test_requires_a_path(self) -> None:
        result = runner.invoke(app, ["diff"])
        assert result.exit_code == 2


class TestSyncCommand:
    def test_reports_plan_and_stops(self, site: Path, client: MagicMock) -> None:
        client.list_files.return_value = [
            FileRecord(path="site", is_directory=True, size=None, modified_at=DEC_31, content_hash=None),
            _remote_file("site/index.html", b"<h1>old</h1>"),
            _remote_file("site/extra.html", b"extra"),
        ]
        result = runner.invoke(app, ["sync", "site"])

        assert result.exit_code == 0
        assert "Would upload (1):" in result.output
        assert "  site/index.html" in result.output
        assert "Only on remote (1):" in result.output
        assert "  site/extra.html" in result.output
        assert "no files were changed" in result.output
        client.upload.assert_not_called()
        client.delete.assert_not_called()

    def test_nothing_to_sync(self, site: Path, client: MagicMock) -> None:
        client.list_files.return_value = [
            FileRecord(path="site", is_directory=True, size=None, modified_at=DEC_31, content_hash=None),
            _remote_file("site/index.html", b"<h1>new</h1>"),
        ]
        result = runner.invoke(app, ["sync", "site"])
        assert result.exit_code == 0
        assert "Nothing to sync." in result.output


# ---------------------------------------------------------------------------
# list / info / key
# ---------------------------------------------------------------------------


class TestListCommand:
    def test_renders_table(self, client: MagicMock) -> None:
        client.list_files.return_value = [_remote_file("a.html", b"a")]
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "a.html" in result.output
        client.list_files.assert_called_once_with(None)

    def test_passes_normalized_path(self, client: MagicMock) -> None:
        client.list_files.return_value = []
        result = runner.invoke(app, ["list", "./images/"])
        assert result.exit_code == 0
        assert "No files found." in result.output
        client.list_files.assert_called_once_with("images")


class TestInfoCommand:
    def test_named_site_needs_no_credentials(self, client: MagicMock, patched_config: MagicMock) -> None:
        client.info.return_value = {"sitename": "youpi", "hits": 5072}
        result = runner.invoke(app, ["info", "youpi"])
        assert result.exit_code == 0
        assert "5072" in result.output
        assert patched_config.call_args.kwargs["authenticated"] is False


class TestKeyCommand:
    def test_fetches_and_saves_key(self, tmp_path: Path) -> None:
        config = NeocitiesConfig(username="u", password="p")
        api_client = MagicMock()
        api_client.fetch_api_key.return_value = "da77c3530c"
        with (
            patch("neocities_cli.cli.load_config", return_value=config),
            patch("neocities_cli.cli.NeocitiesClient", return_value=api_client),
            patch("neocities_cli.cli.save_config", return_value=tmp_path / ".neocities.json") as save,
        ):
            result = runner.invoke(app, ["key", "--save"])

        assert result.exit_code == 0
        assert "da77c3530c" in result.output
        save.assert_called_once()
        assert save.call_args.args[0].api_key == "da77c3530c"

    def test_requires_username(self) -> None:
        with patch("neocities_cli.cli.load_config", return_value=NeocitiesConfig(password="p")):
            result = runner.invoke(app, ["key"])
        assert result.exit_code == 1
        assert "NEOCITIES_USER" in result.output


# ---------------------------------------------------------------------------
# upload / delete / version
# ---------------------------------------------------------------------------


class TestUploadCommand:
    def test_uploads_under_canonical_paths(self, site: Path, client: MagicMock) -> None:
        client.upload.return_value = "your file(s) have been successfully uploaded"
        result = runner.invoke(app, ["upload", "./site/index.html"])

        assert result.exit_code == 0
        client.upload.assert_called_once_with({"site/index.html": Path("./site/index.html")})
        assert "successfully uploaded" in result.output

    def test_missing_file_is_a_usage_error(self, site: Path, client: MagicMock) -> None:
        result = runner.invoke(app, ["upload", "site/nope.html"])
        assert result.exit_code == 2
        client.upload.assert_not_called()


class TestDeleteCommand:
    def test_confirmed_delete(self, client: MagicMock) -> None:
        client.delete.return_value = "file(s) have been deleted"
        result = runner.invoke(app, ["delete", "/img1.jpg", "img2.jpg"], input="y\n")
        assert result.exit_code == 0
        client.delete.assert_called_once_with(["img1.jpg", "img2.jpg"])

    def test_declined_delete(self, client: MagicMock) -> None:
        result = runner.invoke(app, ["delete", "img1.jpg"], input="n\n")
        assert result.exit_code == 1
        assert "Nothing was deleted" in result.output
        client.delete.assert_not_called()

    def test_yes_flag_skips_prompt(self, client: MagicMock) -> None:
        client.delete.return_value = ""
        result = runner.invoke(app, ["delete", "--yes", "img1.jpg"])
        assert result.exit_code == 0
        client.delete.assert_called_once_with(["img1.jpg"])


class TestVersionCommand:
    def test_prints_version(self) -> None:
        with patch("neocities_cli.cli.package_version", return_value="1.2.3"):
            result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "neocities-cli 1.2.3" in result.output

    def test_uninstalled_checkout_prints_unknown(self) -> None:
        with patch("neocities_cli.cli.package_version", side_effect=PackageNotFoundError("neocities-cli")):
            result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "neocities-cli unknown" in result.output
