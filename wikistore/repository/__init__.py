"""Git repository backend for the versioned page store.

This package owns every interaction with git: opening and initializing the
repository rooted at the wiki directory, recording one file per revision, and
walking history for the whole repository or a single page file.
"""

from wikistore.repository.errors import (
    AlreadyInitializedError,
    CommitFailedError,
    GitRepositoryError,
    NotInitializedError,
    RepositoryLockError,
    RevisionNotFoundError,
    WikiError,
)
from wikistore.repository.git_repository import GitRepository
from wikistore.repository.locking import RepositoryLock, lock_for
from wikistore.repository.models import LogEntry

__all__ = [
    # Errors
    'AlreadyInitializedError',
    'CommitFailedError',
    'GitRepositoryError',
    'NotInitializedError',
    'RepositoryLockError',
    'RevisionNotFoundError',
    'WikiError',
    # Components
    'GitRepository',
    'RepositoryLock',
    'lock_for',
    # Models
    'LogEntry',
]
