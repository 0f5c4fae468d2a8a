"""Data models for wiki pages.

Pages are built per operation and never cached: the document always comes
from the page file and the log from the repository.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from wikistore.pages.errors import InvalidTitleError
from wikistore.repository.models import LogEntry

# Suffix of every page file under the wiki root
PAGE_SUFFIX = ".wiki"


@dataclass
class Page:
    """A single wiki page.

    Attributes:
        title: Page title, also the file name without suffix
        document: Entire page content
        updated: Date of the latest change (None when history is unknown)
        message: Message of the latest change
        log: Changes to the page, most recent first

    Example:
        >>> page = Page(title="index", document="hello")
        >>> page.file_name
        'index.wiki'
    """

    title: str
    document: str = ""
    updated: Optional[datetime] = None
    message: str = ""
    log: List[LogEntry] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return page_file_name(self.title)

    def apply_log(self, entries: List[LogEntry]) -> None:
        """Replace the log and take updated/message from its newest entry."""
        self.log = list(entries)
        if self.log:
            self.updated = self.log[0].date
            self.message = self.log[0].message


def validate_title(title: str) -> None:
    """Check that title can name a file directly under the wiki root.

    Raises:
        InvalidTitleError: If title is empty or contains a path separator
    """
    if not isinstance(title, str) or not title:
        raise InvalidTitleError(title, "title cannot be empty")
    separators = {"/", "\\", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    for sep in separators:
        if sep in title:
            raise InvalidTitleError(title, f"title cannot contain {sep!r}")
    if "\0" in title:
        raise InvalidTitleError(title, "title cannot contain NUL")


def page_file_name(title: str) -> str:
    """Return the file name for title, e.g. 'index' -> 'index.wiki'."""
    return f"{title}{PAGE_SUFFIX}"


def title_from_file_name(file_name: str) -> Optional[str]:
    """Return the title for a page file name, or None for non-page files."""
    if not file_name.endswith(PAGE_SUFFIX):
        return None
    title = file_name[:-len(PAGE_SUFFIX)]
    return title or None
