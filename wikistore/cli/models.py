"""Data models for CLI operations."""

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    These mirror the status classes an HTTP front end would answer with:
    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Storage, repository or configuration failure
    - NOT_FOUND (2): Requested page or revision does not exist
    - INVALID_INPUT (3): Title or payload rejected
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    INVALID_INPUT = 3


@dataclass
class WikiConfig:
    """Resolved wiki configuration.

    Attributes:
        wiki_path: Wiki root directory, also the git repository root
        author_name: Name recorded on every commit
        author_email: Email recorded on every commit

    Example:
        >>> config = WikiConfig(wiki_path="/srv/wiki", author_name="Wiki", author_email="wiki@example.com")
    """
    wiki_path: str
    author_name: str = ""
    author_email: str = ""
