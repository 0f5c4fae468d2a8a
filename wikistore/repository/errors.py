"""Typed exception hierarchy for repository backend errors.

This module defines the base WikiError used across the whole package and the
exceptions raised by the git repository backend. All exceptions carry the
repository path and a descriptive message to help with debugging.
"""


class WikiError(Exception):
    """Base exception for all wikistore errors.

    Use this to catch any application-level error from the page store.
    """
    pass


class GitRepositoryError(WikiError):
    """Raised when git repository operations fail.

    Attributes:
        repo_path: Path to git repository
        message: Error description
        git_output: Git command stderr output
    """

    def __init__(self, repo_path: str, message: str, git_output: str = ""):
        super().__init__(f"Git repository error at {repo_path}: {message}")
        self.repo_path = repo_path
        self.message = message
        self.git_output = git_output


class NotInitializedError(GitRepositoryError):
    """Raised when no git metadata exists at the repository root."""

    def __init__(self, repo_path: str):
        super().__init__(repo_path, "Repository is not initialized")


class AlreadyInitializedError(GitRepositoryError):
    """Raised when initializing a root that already holds git metadata."""

    def __init__(self, repo_path: str):
        super().__init__(repo_path, "Repository is already initialized")


class CommitFailedError(GitRepositoryError):
    """Raised when a revision could not be recorded.

    Attributes:
        file_name: Page file the commit was meant to record
    """

    def __init__(self, repo_path: str, file_name: str, reason: str, git_output: str = ""):
        super().__init__(
            repo_path,
            f"Failed to commit {file_name}: {reason}",
            git_output=git_output,
        )
        self.file_name = file_name


class RevisionNotFoundError(GitRepositoryError):
    """Raised when a revision id does not name a commit."""

    def __init__(self, repo_path: str, revision: str):
        super().__init__(repo_path, f"Revision {revision} not found")
        self.revision = revision


class RepositoryLockError(GitRepositoryError):
    """Raised when the repository lock cannot be acquired in time."""

    def __init__(self, repo_path: str, timeout: float):
        super().__init__(
            repo_path,
            f"Timeout acquiring repository lock after {timeout}s. "
            f"Another writer may be in progress.",
        )
        self.timeout = timeout
