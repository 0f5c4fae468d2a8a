"""Git test utilities for unit and integration tests.

These utilities complement the fixtures in tests.fixtures.wiki_repos: they
inspect real repositories with plain git, and help assert on mocked
subprocess calls.

Usage:
    from tests.helpers.git_test_utils import git_log_subjects, completed

    assert git_log_subjects(repo_path) == ["update", "init"]
"""

import subprocess
from pathlib import Path
from typing import Any, List
from unittest.mock import MagicMock

# Identity the store fixture commits as
TEST_AUTHOR_NAME = "Test User"
TEST_AUTHOR_EMAIL = "test@example.com"


def git_log_subjects(repo_path: Path, *paths: str) -> List[str]:
    """Return commit subjects, newest first, optionally limited to paths."""
    command = ["git", "log", "--format=%s"]
    if paths:
        command += ["--", *paths]
    result = subprocess.run(
        command,
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return [line for line in result.stdout.splitlines() if line]


def git_status_porcelain(repo_path: Path) -> List[str]:
    """Return `git status --porcelain` lines (empty when the tree is clean)."""
    result = subprocess.run(
        ["git", "status", "--porcelain"],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return [line for line in result.stdout.splitlines() if line]


def completed(returncode: int = 0, stdout: Any = "", stderr: Any = "") -> MagicMock:
    """Build a stand-in for subprocess.CompletedProcess."""
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


def get_git_command_calls(mock_run: Any, command: str) -> List[Any]:
    """Extract all calls to a specific git subcommand from a mocked subprocess.run.

    Args:
        mock_run: The mocked subprocess.run object
        command: The git subcommand to filter for (e.g., "add", "commit")

    Returns:
        List of call objects matching the command
    """
    matching_calls = []
    for call_args in mock_run.call_args_list:
        args, _ = call_args
        if args and args[0][:1] == ["git"] and command in args[0][1:3]:
            matching_calls.append(call_args)
    return matching_calls
