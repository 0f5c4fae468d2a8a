"""Versioned page store.

This module provides the PageStore class, the component callers use to save,
load and remove pages and to read their history. Every mutation is a file
write or delete followed by one commit through the repository handle passed
in by the caller; the store never keeps a handle of its own.

Mutations are not atomic: if the file operation succeeds and the commit
fails, CommitFailedError is raised and the file is left as written. Callers
that need the two to agree must reconcile (for example by saving again).

History reads pin the tip under the read lock and walk from it unlocked;
commits are immutable, so concurrent writers cannot change what they see.
"""

import logging
import os
import warnings
from typing import Iterator, List, Optional, Set

from wikistore.pages.errors import (
    DecodeError,
    HistoryUnavailableWarning,
    PageNotFoundError,
    StorageIOError,
)
from wikistore.pages.models import (
    Page,
    page_file_name,
    title_from_file_name,
    validate_title,
)
from wikistore.repository.errors import GitRepositoryError
from wikistore.repository.git_repository import GitRepository
from wikistore.repository.locking import lock_for
from wikistore.repository.models import LogEntry

logger = logging.getLogger(__name__)

SAVE_MESSAGE = "Page {title} saved."
REMOVE_MESSAGE = "Page {title} removed."


class PageStore:
    """Saves, loads and removes pages in a git-backed wiki directory.

    The author identity is passed through untouched to every commit.

    Example:
        >>> store = PageStore("Jane Doe", "jane@example.com")
        >>> repo = GitRepository.open("/srv/wiki")
        >>> page = store.save("index", "hello", "init", repo)
        >>> store.load("index", repo).log[0].message
        'init'
    """

    def __init__(self, author_name: str, author_email: str):
        self.author_name = author_name
        self.author_email = author_email

    @staticmethod
    def _page_path(title: str, repo: GitRepository) -> str:
        """Validate title and handle, and return the page file's path."""
        validate_title(title)
        repo.ensure_valid()
        return os.path.join(repo.repo_path, page_file_name(title))

    def save(
        self,
        title: str,
        document: str,
        message: Optional[str],
        repo: GitRepository,
    ) -> Page:
        """Create or update a page and commit it.

        Args:
            title: Page title
            document: Full page content
            message: Commit message; "Page <title> saved." when empty or blank
            repo: Repository handle

        Returns:
            Page whose log holds the new revision

        Raises:
            InvalidTitleError: If title cannot name a page file
            DecodeError: If document cannot be encoded as UTF-8
            StorageIOError: If the file cannot be written
            CommitFailedError: If the file was written but not committed
        """
        file_path = self._page_path(title, repo)
        if not message or not message.strip():
            message = SAVE_MESSAGE.format(title=title)

        # Encode up front so a bad document never truncates the existing file
        try:
            data = document.encode("utf-8")
        except UnicodeEncodeError as e:
            raise DecodeError(f"not encodable as UTF-8: {e}", "document")

        with lock_for(repo.repo_path).writing():
            try:
                with open(file_path, "wb") as f:
                    f.write(data)
            except OSError as e:
                raise StorageIOError(file_path, "write", str(e))

            entry = repo.commit_file(
                page_file_name(title),
                message,
                self.author_name,
                self.author_email,
            )

        logger.info(f"Saved page {title} ({entry.id[:8]})")
        page = Page(title=title, document=document)
        page.apply_log([entry])
        return page

    def load(self, title: str, repo: GitRepository) -> Page:
        """Read a page and its history.

        The history is secondary: if it cannot be read, the page is returned
        with an empty log and a HistoryUnavailableWarning is issued.

        Raises:
            InvalidTitleError: If title cannot name a page file
            PageNotFoundError: If the page file does not exist
            StorageIOError: If the page file cannot be read
            NotInitializedError: If the repository handle is stale
        """
        file_path = self._page_path(title, repo)

        with lock_for(repo.repo_path).reading():
            try:
                with open(file_path, "r", encoding="utf-8", newline="") as f:
                    document = f.read()
            except FileNotFoundError:
                raise PageNotFoundError(title)
            except (OSError, UnicodeDecodeError) as e:
                raise StorageIOError(file_path, "read", str(e))

            page = Page(title=title, document=document)
            try:
                page.apply_log(list(repo.file_history(page.file_name)))
            except GitRepositoryError as e:
                logger.warning(f"Can't load commits log for page {title}: {e}")
                warnings.warn(
                    f"History of page {title} is unavailable: {e}",
                    HistoryUnavailableWarning,
                    stacklevel=2,
                )

        return page

    def load_revision(self, title: str, revision: str, repo: GitRepository) -> Page:
        """Read a page as it was at a given revision.

        The log holds the page's revisions up to and including that one.

        Raises:
            InvalidTitleError: If title cannot name a page file
            RevisionNotFoundError: If revision does not name a commit
            PageNotFoundError: If the page did not exist at that revision
        """
        validate_title(title)
        file_name = page_file_name(title)

        with lock_for(repo.repo_path).reading():
            sha = repo.resolve_revision(revision)
            document = repo.read_file_at(sha, file_name)
        if document is None:
            raise PageNotFoundError(title, revision=revision)

        page = Page(title=title, document=document)
        page.apply_log(list(repo.file_history(file_name, tip=sha)))
        return page

    def remove(self, title: str, repo: GitRepository) -> None:
        """Delete a page file and commit the removal.

        Raises:
            InvalidTitleError: If title cannot name a page file
            PageNotFoundError: If the page file does not exist
            StorageIOError: If the file cannot be deleted
            CommitFailedError: If the file was deleted but not committed
        """
        file_path = self._page_path(title, repo)

        with lock_for(repo.repo_path).writing():
            try:
                os.remove(file_path)
            except FileNotFoundError:
                raise PageNotFoundError(title)
            except OSError as e:
                raise StorageIOError(file_path, "delete", str(e))

            entry = repo.commit_file(
                page_file_name(title),
                REMOVE_MESSAGE.format(title=title),
                self.author_name,
                self.author_email,
            )

        logger.info(f"Removed page {title} ({entry.id[:8]})")

    def history(self, title: str, repo: GitRepository) -> List[LogEntry]:
        """Return the revisions that touched a page, most recent first.

        A page that was never saved has an empty history.
        """
        validate_title(title)
        with lock_for(repo.repo_path).reading():
            tip = repo.head_sha()
        if tip is None:
            return []
        return list(repo.file_history(page_file_name(title), tip=tip))

    def repository_log(self, repo: GitRepository) -> Iterator[LogEntry]:
        """Lazily walk every revision of the wiki, most recent first.

        The tip is fixed when this is called; commits made while iterating
        are not included.
        """
        with lock_for(repo.repo_path).reading():
            tip = repo.head_sha()
        if tip is None:
            return iter(())
        return repo.head_history(tip=tip)

    @staticmethod
    def list_titles(root: str) -> Set[str]:
        """Return the titles of the page files directly under root.

        Non-page files and subdirectories are ignored. The result is
        unordered.

        Raises:
            StorageIOError: If root cannot be listed
        """
        titles = set()
        try:
            with os.scandir(root) as entries:
                for entry in entries:
                    title = title_from_file_name(entry.name)
                    if title is not None and entry.is_file():
                        titles.add(title)
        except OSError as e:
            logger.error(f"Error listing pages: {e}")
            raise StorageIOError(root, "list", str(e))
        return titles
