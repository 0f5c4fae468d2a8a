"""Typed exception hierarchy for page store errors.

This module defines the exceptions raised by the page store and the page
codec. All exceptions inherit from PageError, itself a WikiError.
"""

from typing import Optional

from wikistore.repository.errors import WikiError


class PageError(WikiError):
    """Base exception for all page store errors."""
    pass


class PageNotFoundError(PageError):
    """Raised when a requested page file does not exist."""

    def __init__(self, title: str, revision: Optional[str] = None):
        if revision:
            message = f"Page '{title}' not found at revision {revision}"
        else:
            message = f"Page '{title}' not found"
        super().__init__(message)
        self.title = title
        self.revision = revision


class StorageIOError(PageError):
    """Raised when filesystem operations fail (read, write, delete, list)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class DecodeError(PageError):
    """Raised when a payload does not conform to the page wire format."""

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            full_message = f"Decode error in field '{field}': {message}"
        else:
            full_message = f"Decode error: {message}"
        super().__init__(full_message)
        self.field = field
        self.original_message = message


class InvalidTitleError(DecodeError):
    """Raised when a title cannot name a page file."""

    def __init__(self, title: str, reason: str):
        super().__init__(f"Invalid title {title!r}: {reason}", field="title")
        self.title = title


class HistoryUnavailableWarning(UserWarning):
    """Issued when a page loads but its history could not be read."""
    pass
