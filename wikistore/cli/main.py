"""Main CLI entry point for the wikistore command.

This module provides the Typer application used to administer a wiki
directory from the shell: initialize the repository, list, show, save and
remove pages, and read the history of one page or of the whole wiki.

Exit codes follow ExitCode: missing pages or revisions exit with NOT_FOUND,
rejected titles or payloads with INVALID_INPUT, anything else with
GENERAL_ERROR.
"""

import json
import logging
import sys
import warnings
from contextlib import contextmanager
from datetime import datetime
from itertools import islice
from pathlib import Path
from typing import Iterator, Optional

import typer

from wikistore.cli.config import ConfigLoader
from wikistore.cli.errors import CLIError
from wikistore.cli.models import ExitCode, WikiConfig
from wikistore.cli.output import OutputHandler
from wikistore.pages.codec import decode_page, encode_log, encode_page
from wikistore.pages.errors import DecodeError, HistoryUnavailableWarning, PageNotFoundError
from wikistore.pages.store import PageStore
from wikistore.repository.errors import (
    AlreadyInitializedError,
    RevisionNotFoundError,
    WikiError,
)
from wikistore.repository.git_repository import GitRepository

VERSION = "0.1.0"

app = typer.Typer(
    name="wikistore",
    help="""Versioned wiki page store backed by git.

QUICK START:
  wikistore init                          # Create the wiki repository
  echo hello | wikistore save index       # Create or update a page
  wikistore show index                    # Print a page
  wikistore log index                     # Page history
  wikistore log                           # Whole-wiki history

The wiki directory comes from --config, .wikistore.yaml or WIKIPATH.""",
    add_completion=False,
    rich_markup_mode=None,
    invoke_without_command=True,
)

# Module logger
logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'wikistore' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("wikistore")
    app_logger.setLevel(level)
    # Replace handlers from an earlier invocation in the same process
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"wikistore_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@contextmanager
def _handle_errors(output: OutputHandler) -> Iterator[None]:
    """Turn store errors into messages and exit codes."""
    try:
        yield
    except (PageNotFoundError, RevisionNotFoundError) as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.NOT_FOUND)
    except DecodeError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.INVALID_INPUT)
    except WikiError as e:
        logger.error(f"Operation failed: {e}")
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _output(ctx: typer.Context) -> OutputHandler:
    return ctx.obj["output"]


def _config(ctx: typer.Context) -> WikiConfig:
    """Load configuration once per invocation; invalid configuration is fatal."""
    if ctx.obj.get("config") is None:
        try:
            ctx.obj["config"] = ConfigLoader.load(ctx.obj["config_path"])
        except CLIError as e:
            _output(ctx).error(str(e))
            raise typer.Exit(ExitCode.GENERAL_ERROR)
    return ctx.obj["config"]


def _store(config: WikiConfig) -> PageStore:
    return PageStore(config.author_name, config.author_email)


@app.callback()
def main_options(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file (default: .wikistore.yaml if present)",
        metavar="PATH",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Versioned wiki page store backed by git."""
    if version:
        typer.echo(f"wikistore version {VERSION}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    ctx.obj = {
        "config_path": config_path,
        "config": None,
        "output": OutputHandler(verbosity=verbosity, no_color=no_color),
    }


@app.command("init")
def init_command(ctx: typer.Context) -> None:
    """Initialize the wiki git repository."""
    output = _output(ctx)
    config = _config(ctx)

    with _handle_errors(output):
        try:
            repo = GitRepository.initialize(config.wiki_path)
        except AlreadyInitializedError:
            output.error(f"Wiki already exists at {config.wiki_path}")
            raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success(f"Initialized wiki at {repo.repo_path}")


@app.command("list")
def list_command(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print titles as a JSON array"),
) -> None:
    """List page titles in alphabetical order."""
    output = _output(ctx)
    config = _config(ctx)

    with _handle_errors(output):
        titles = sorted(PageStore.list_titles(config.wiki_path))

    if as_json:
        output.raw(json.dumps(titles, ensure_ascii=False), end="\n")
    else:
        output.print_titles(titles)


@app.command("show")
def show_command(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Page title"),
    revision: Optional[str] = typer.Option(
        None,
        "--revision",
        "-r",
        help="Show the page as of this revision",
        metavar="ID",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the page in wire format"),
) -> None:
    """Print a page document (or the full page as JSON)."""
    output = _output(ctx)
    config = _config(ctx)
    store = _store(config)

    with _handle_errors(output):
        repo = GitRepository.open(config.wiki_path)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", HistoryUnavailableWarning)
            if revision:
                page = store.load_revision(title, revision, repo)
            else:
                page = store.load(title, repo)

    for warning in caught:
        output.warning(str(warning.message))

    if as_json:
        output.raw(encode_page(page), end="\n")
    else:
        output.print_page(page)


@app.command("save")
def save_command(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Page title"),
    file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Read the document from this file instead of stdin",
        metavar="PATH",
    ),
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Change description (default: 'Page <title> saved.')",
    ),
    from_json: bool = typer.Option(
        False,
        "--from-json",
        help="Input is a page payload: {\"document\": ..., \"message\": ...}",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the saved page in wire format"),
) -> None:
    """Create or update a page and record the change."""
    output = _output(ctx)
    config = _config(ctx)
    store = _store(config)

    with _handle_errors(output):
        if file:
            try:
                with open(file, "r", encoding="utf-8", newline="") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                output.error(f"Can't read {file}: {e}")
                raise typer.Exit(ExitCode.INVALID_INPUT)
        else:
            text = sys.stdin.read()

        document = text
        if from_json:
            payload = decode_page(text, title=title)
            document = payload.document
            message = message or payload.message

        repo = GitRepository.open(config.wiki_path)
        page = store.save(title, document, message, repo)

    if as_json:
        output.raw(encode_page(page), end="\n")
    else:
        output.success(f"{page.message} ({page.log[0].id[:8]})")


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Page title"),
) -> None:
    """Delete a page and record the removal."""
    output = _output(ctx)
    config = _config(ctx)
    store = _store(config)

    with _handle_errors(output):
        repo = GitRepository.open(config.wiki_path)
        store.remove(title, repo)

    output.success(f"Page {title} removed")


@app.command("log")
def log_command(
    ctx: typer.Context,
    title: Optional[str] = typer.Argument(None, help="Page title (default: whole wiki)"),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Show at most this many entries",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print entries as a JSON array"),
) -> None:
    """Show history of one page, or of the whole wiki."""
    output = _output(ctx)
    config = _config(ctx)
    store = _store(config)

    with _handle_errors(output):
        repo = GitRepository.open(config.wiki_path)
        if title is not None:
            entries = iter(store.history(title, repo))
        else:
            entries = store.repository_log(repo)
        if limit is not None:
            entries = islice(entries, limit)

        if as_json:
            output.raw(encode_log(entries), end="\n")
        else:
            output.print_log(entries)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m wikistore.cli.main
if __name__ == "__main__":
    main()
