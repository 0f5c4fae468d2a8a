"""Command-line interface for the versioned wiki page store.

This package provides the `wikistore` CLI tool: configuration loading,
terminal output, and commands that drive the page store against the
configured wiki directory.
"""

from .config import ConfigLoader
from .errors import CLIError, ConfigError, ConfigFilesystemError
from .models import ExitCode, WikiConfig
from .output import OutputHandler

__all__ = [
    'ConfigLoader',
    'OutputHandler',
    'ExitCode',
    'WikiConfig',
    'CLIError',
    'ConfigError',
    'ConfigFilesystemError',
]
