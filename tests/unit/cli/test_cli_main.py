"""Unit tests for main CLI entry point (main.py).

Tests the Typer CLI application using CliRunner with the store mocked out.
"""

import logging
import warnings
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
import typer
from typer.testing import CliRunner

from wikistore.cli.errors import ConfigError
from wikistore.cli.main import VERSION, _configure_logging, _handle_errors, app
from wikistore.cli.models import ExitCode, WikiConfig
from wikistore.pages.errors import (
    HistoryUnavailableWarning,
    InvalidTitleError,
    PageNotFoundError,
    StorageIOError,
)
from wikistore.pages.models import Page
from wikistore.repository.errors import (
    AlreadyInitializedError,
    CommitFailedError,
    RevisionNotFoundError,
)
from wikistore.repository.models import LogEntry

runner = CliRunner()

ENTRY = LogEntry(
    id="abcdef0123456789" * 2 + "01234567",
    message="init",
    date=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
)


@pytest.fixture
def config(mocker, tmp_path):
    """Configuration pointing at tmp_path, bypassing files and environment."""
    wiki_config = WikiConfig(
        wiki_path=str(tmp_path),
        author_name="Jane Doe",
        author_email="jane@example.com",
    )
    mocker.patch("wikistore.cli.main.ConfigLoader.load", return_value=wiki_config)
    return wiki_config


@pytest.fixture
def mock_store(mocker):
    store_cls = mocker.patch("wikistore.cli.main.PageStore")
    return store_cls.return_value


@pytest.fixture
def mock_open_repo(mocker):
    return mocker.patch("wikistore.cli.main.GitRepository.open")


class TestConfigureLogging:
    """Test cases for _configure_logging function."""

    @pytest.mark.parametrize("verbosity,level", [
        (0, logging.WARNING),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (5, logging.DEBUG),
    ])
    def test_verbosity_sets_level(self, verbosity, level):
        with patch('logging.getLogger') as mock_get_logger:
            mock_app_logger = MagicMock()
            mock_get_logger.return_value = mock_app_logger

            _configure_logging(verbosity)

            mock_get_logger.assert_any_call("wikistore")
            mock_app_logger.setLevel.assert_called_with(level)

    def test_repeated_configuration_keeps_one_console_handler(self):
        app_logger = logging.getLogger("wikistore")
        try:
            _configure_logging(0)
            _configure_logging(1)

            assert len(app_logger.handlers) == 1
        finally:
            for handler in list(app_logger.handlers):
                app_logger.removeHandler(handler)

    def test_logdir_creates_log_file(self, tmp_path):
        app_logger = logging.getLogger("wikistore")
        logdir = tmp_path / "logs"
        try:
            _configure_logging(1, str(logdir))

            log_files = list(logdir.glob("wikistore_*.log"))
            assert len(log_files) == 1
        finally:
            for handler in list(app_logger.handlers):
                app_logger.removeHandler(handler)
                handler.close()


class TestHandleErrors:
    """Test cases for mapping store errors to exit codes."""

    @pytest.mark.parametrize("error,exit_code", [
        (PageNotFoundError("index"), ExitCode.NOT_FOUND),
        (RevisionNotFoundError("/wiki", "deadbeef"), ExitCode.NOT_FOUND),
        (InvalidTitleError("a/b", "title cannot contain '/'"), ExitCode.INVALID_INPUT),
        (StorageIOError("/wiki/index.wiki", "write", "disk full"), ExitCode.GENERAL_ERROR),
        (CommitFailedError("/wiki", "index.wiki", "git commit failed"), ExitCode.GENERAL_ERROR),
    ])
    def test_error_maps_to_exit_code(self, error, exit_code):
        output = Mock()

        with pytest.raises(typer.Exit) as exc_info:
            with _handle_errors(output):
                raise error

        assert exc_info.value.exit_code == exit_code
        output.error.assert_called_once_with(str(error))

    def test_other_exceptions_propagate(self):
        with pytest.raises(KeyError):
            with _handle_errors(Mock()):
                raise KeyError("bug")


class TestGlobalOptions:
    """Test cases for the callback and global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == ExitCode.SUCCESS
        assert f"wikistore version {VERSION}" in result.output

    def test_no_command_prints_help(self):
        result = runner.invoke(app, [])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Usage" in result.output

    def test_invalid_configuration_exits_with_general_error(self, mocker):
        mocker.patch(
            "wikistore.cli.main.ConfigLoader.load",
            side_effect=ConfigError("Missing required fields: wiki_path"),
        )

        result = runner.invoke(app, ["list"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "wiki_path" in result.output


class TestCommands:
    """Test cases for subcommands with the store mocked."""

    def test_init_reports_existing_wiki(self, config, mocker):
        mocker.patch(
            "wikistore.cli.main.GitRepository.initialize",
            side_effect=AlreadyInitializedError(config.wiki_path),
        )

        result = runner.invoke(app, ["init"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "already exists" in result.output

    def test_list_json_is_sorted(self, config, mocker):
        mocker.patch(
            "wikistore.cli.main.PageStore.list_titles",
            return_value={"zebra", "apple", "mango"},
        )

        result = runner.invoke(app, ["list", "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout.strip() == '["apple", "mango", "zebra"]'

    def test_show_prints_document_untouched(self, config, mock_store, mock_open_repo):
        mock_store.load.return_value = Page(title="index", document="[bold]raw[/bold]\n")

        result = runner.invoke(app, ["show", "index"])

        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout == "[bold]raw[/bold]\n"
        mock_store.load.assert_called_once_with("index", mock_open_repo.return_value)

    def test_show_missing_page(self, config, mock_store, mock_open_repo):
        mock_store.load.side_effect = PageNotFoundError("missing")

        result = runner.invoke(app, ["show", "missing"])

        assert result.exit_code == ExitCode.NOT_FOUND

    def test_show_reports_unavailable_history(self, config, mock_store, mock_open_repo):
        def load(title, repo):
            warnings.warn("History of page index is unavailable", HistoryUnavailableWarning)
            return Page(title=title, document="hello")

        mock_store.load.side_effect = load

        result = runner.invoke(app, ["show", "index"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "unavailable" in result.output

    def test_show_revision(self, config, mock_store, mock_open_repo):
        mock_store.load_revision.return_value = Page(title="index", document="old")

        result = runner.invoke(app, ["show", "index", "--revision", "abc123"])

        assert result.exit_code == ExitCode.SUCCESS
        mock_store.load_revision.assert_called_once_with(
            "index", "abc123", mock_open_repo.return_value
        )

    def test_save_from_stdin(self, config, mock_store, mock_open_repo):
        saved = Page(title="index", document="hello\n")
        saved.apply_log([ENTRY])
        mock_store.save.return_value = saved

        result = runner.invoke(app, ["save", "index", "-m", "init"], input="hello\n")

        assert result.exit_code == ExitCode.SUCCESS
        mock_store.save.assert_called_once_with(
            "index", "hello\n", "init", mock_open_repo.return_value
        )
        assert ENTRY.id[:8] in result.output

    def test_save_from_json_payload(self, config, mock_store, mock_open_repo):
        saved = Page(title="index", document="body")
        saved.apply_log([ENTRY])
        mock_store.save.return_value = saved

        result = runner.invoke(
            app,
            ["save", "index", "--from-json"],
            input='{"document": "body", "message": "from payload"}',
        )

        assert result.exit_code == ExitCode.SUCCESS
        mock_store.save.assert_called_once_with(
            "index", "body", "from payload", mock_open_repo.return_value
        )

    def test_save_rejects_bad_payload(self, config, mock_store, mock_open_repo):
        result = runner.invoke(app, ["save", "index", "--from-json"], input="not json")

        assert result.exit_code == ExitCode.INVALID_INPUT
        mock_store.save.assert_not_called()

    def test_save_missing_input_file(self, config, mock_store, tmp_path):
        result = runner.invoke(app, ["save", "index", "--file", str(tmp_path / "nope.txt")])

        assert result.exit_code == ExitCode.INVALID_INPUT
        mock_store.save.assert_not_called()

    def test_remove(self, config, mock_store, mock_open_repo):
        result = runner.invoke(app, ["remove", "index"])

        assert result.exit_code == ExitCode.SUCCESS
        mock_store.remove.assert_called_once_with("index", mock_open_repo.return_value)

    def test_log_limit(self, config, mock_store, mock_open_repo):
        mock_store.repository_log.return_value = iter([ENTRY] * 5)

        result = runner.invoke(app, ["log", "--limit", "2", "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout.count('"id"') == 2

    def test_log_of_page(self, config, mock_store, mock_open_repo):
        mock_store.history.return_value = [ENTRY]

        result = runner.invoke(app, ["log", "index"])

        assert result.exit_code == ExitCode.SUCCESS
        assert ENTRY.id[:8] in result.stdout
        mock_store.history.assert_called_once_with("index", mock_open_repo.return_value)
