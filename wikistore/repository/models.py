"""Data models for the repository backend."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LogEntry:
    """One recorded revision, as seen by callers.

    Attributes:
        id: Full commit SHA of the revision
        message: Commit message without trailing newlines
        date: Timezone-aware author date of the revision
    """

    id: str
    message: str
    date: datetime
