"""Typed exception hierarchy for CLI-related errors.

This module defines the exceptions raised while loading the CLI
configuration. All exceptions inherit from CLIError base class.
"""

from typing import Optional

from wikistore.repository.errors import WikiError


class CLIError(WikiError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ConfigFilesystemError(CLIError):
    """Raised when the configuration file cannot be read."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Config file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
