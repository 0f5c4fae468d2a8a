"""Git repository backend for the page store.

This module provides the GitRepository class, the only component that talks to
git. It uses subprocess to execute git commands against a repository rooted
exactly at the wiki directory, and exposes commit, head lookup and history
traversal primitives.

An instance is a handle on an opened repository. Handles hold no state beyond
the root path: every operation re-checks that the git metadata still exists,
so a handle on a removed or re-created directory fails with
NotInitializedError rather than with an arbitrary git error.
"""

import logging
import os
import subprocess
from contextlib import closing
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from wikistore.repository.errors import (
    AlreadyInitializedError,
    CommitFailedError,
    GitRepositoryError,
    NotInitializedError,
    RevisionNotFoundError,
)
from wikistore.repository.models import LogEntry

logger = logging.getLogger(__name__)

# Git command timeout in seconds
GIT_TIMEOUT = 10

# One record per commit: sha, strict ISO author date, raw message.
# Fields are separated by US (0x1f); records by NUL via `git log -z`.
LOG_FORMAT = "%H%x1f%aI%x1f%B"

READ_CHUNK_SIZE = 8192


class GitRepository:
    """Handle on a git repository holding wiki pages.

    File structure:
        /srv/wiki/
          .git/                  # Git internals
          index.wiki             # Page "index"
          Getting Started.wiki   # Page "Getting Started"

    Example:
        >>> repo = GitRepository.initialize("/srv/wiki")
        >>> entry = repo.commit_file("index.wiki", "init", "Jane", "jane@example.com")
        >>> [e.message for e in repo.file_history("index.wiki")]
        ['init']
    """

    def __init__(self, repo_path: str):
        """Create a handle without touching the filesystem.

        Use initialize() or open() to get a checked handle.

        Args:
            repo_path: Repository root (also the page directory)
        """
        self.repo_path = os.path.abspath(repo_path)

    def __repr__(self) -> str:
        return f"GitRepository({self.repo_path!r})"

    @property
    def git_dir(self) -> str:
        return os.path.join(self.repo_path, ".git")

    @classmethod
    def initialize(cls, repo_path: str) -> "GitRepository":
        """Create git metadata at repo_path and return a handle on it.

        Creates the directory when missing. Initialization is not idempotent.

        Raises:
            AlreadyInitializedError: If repo_path already has git metadata
            GitRepositoryError: If the directory or repository cannot be created
        """
        repo = cls(repo_path)

        if os.path.exists(repo.git_dir):
            logger.warning(f"Wiki already exists at {repo.repo_path}")
            raise AlreadyInitializedError(repo.repo_path)

        try:
            os.makedirs(repo.repo_path, exist_ok=True)
        except OSError as e:
            raise GitRepositoryError(
                repo_path=repo.repo_path,
                message=f"Failed to create directory: {e}",
            )

        result = repo._run(["init", "--quiet"], check_valid=False)
        if result.returncode != 0:
            raise GitRepositoryError(
                repo_path=repo.repo_path,
                message="Failed to initialize git repository",
                git_output=result.stderr,
            )

        logger.info(f"Initialized git repository at {repo.repo_path}")
        return repo

    @classmethod
    def open(cls, repo_path: str) -> "GitRepository":
        """Return a handle on an existing repository.

        Raises:
            NotInitializedError: If repo_path has no git metadata
        """
        repo = cls(repo_path)
        repo.ensure_valid()
        return repo

    def is_valid(self) -> bool:
        """Check whether the git metadata still exists at the root."""
        return os.path.isdir(self.git_dir)

    def ensure_valid(self) -> None:
        if not self.is_valid():
            logger.debug(f"No git metadata at {self.repo_path}")
            raise NotInitializedError(self.repo_path)

    def _run(
        self,
        args: List[str],
        env: Optional[dict] = None,
        check_valid: bool = True,
        binary: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run a git subcommand in the repository root.

        Pathspecs are always literal, so page titles holding glob
        characters name exactly one file. Output is decoded as UTF-8 text
        unless binary is set.

        Raises:
            NotInitializedError: If the handle is stale
            GitRepositoryError: On timeout or when git is not installed
        """
        if check_valid:
            self.ensure_valid()

        command = ["git", "--literal-pathspecs", *args]
        logger.debug(f"Running {' '.join(command)} in {self.repo_path}")
        try:
            return subprocess.run(
                command,
                cwd=self.repo_path,
                capture_output=True,
                encoding=None if binary else "utf-8",
                timeout=GIT_TIMEOUT,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"Git {args[0]} timed out after {GIT_TIMEOUT} seconds",
            )
        except FileNotFoundError:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Git command not found. Please install git.",
            )

    def head_sha(self) -> Optional[str]:
        """Return the current tip commit, or None before the first commit.

        Raises:
            GitRepositoryError: If git cannot resolve HEAD for another reason
        """
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"])
        if result.returncode == 0:
            return result.stdout.strip()
        if result.returncode == 1 and not result.stderr.strip():
            return None
        raise GitRepositoryError(
            repo_path=self.repo_path,
            message="Failed to get HEAD SHA",
            git_output=result.stderr,
        )

    def _commit_date(self) -> datetime:
        """Wall-clock time, never earlier than the current tip's date."""
        now = datetime.now(timezone.utc).replace(microsecond=0)
        with closing(self.head_history()) as entries:
            tip = next(entries, None)
        if tip is not None and tip.date > now:
            logger.debug(f"Clock is behind tip {tip.id[:8]}, reusing its date")
            return tip.date.astimezone(timezone.utc)
        return now

    def commit_file(
        self,
        file_name: str,
        message: str,
        author_name: str,
        author_email: str,
    ) -> LogEntry:
        """Record the current state of one file as a new revision.

        Only file_name is staged, whatever else the working tree holds. The
        file must already have its final content; if it is absent, its
        removal is recorded. Author and committer are set to the given
        identity.

        If the file has no changes to record, no empty revision is created
        and the file's most recent revision is returned.

        Args:
            file_name: Path relative to the repository root
            message: Commit message
            author_name: Author (and committer) name
            author_email: Author (and committer) email

        Returns:
            LogEntry of the recorded revision

        Raises:
            NotInitializedError: If the handle is stale
            CommitFailedError: If the revision could not be recorded
        """
        result = self._run(["add", "--all", "--", file_name])
        if result.returncode != 0:
            raise CommitFailedError(
                self.repo_path, file_name, "git add failed", git_output=result.stderr
            )

        result = self._run(["diff", "--cached", "--quiet", "--", file_name])
        if result.returncode == 0:
            logger.debug(f"No changes to commit for {file_name}")
            with closing(self.file_history(file_name)) as entries:
                latest = next(entries, None)
            if latest is None:
                raise CommitFailedError(self.repo_path, file_name, "nothing to commit")
            return latest
        if result.returncode != 1:
            raise CommitFailedError(
                self.repo_path, file_name, "git diff failed", git_output=result.stderr
            )

        date = self._commit_date()
        git_date = f"@{int(date.timestamp())} +0000"
        env = dict(os.environ)
        env.update({
            "GIT_AUTHOR_NAME": author_name,
            "GIT_AUTHOR_EMAIL": author_email,
            "GIT_AUTHOR_DATE": git_date,
            "GIT_COMMITTER_NAME": author_name,
            "GIT_COMMITTER_EMAIL": author_email,
            "GIT_COMMITTER_DATE": git_date,
        })

        result = self._run(
            [
                "commit", "--quiet", "--no-verify", "--no-gpg-sign",
                "-m", message,
                "--", file_name,
            ],
            env=env,
        )
        if result.returncode != 0:
            logger.error(f"Commit of {file_name} failed: {result.stderr.strip()}")
            raise CommitFailedError(
                self.repo_path, file_name, "git commit failed", git_output=result.stderr
            )

        # Read the revision back so callers see exactly what history will show
        with closing(self.head_history()) as entries:
            entry = next(entries, None)
        if entry is None:
            raise CommitFailedError(self.repo_path, file_name, "commit not found at HEAD")

        logger.info(f"Committed {file_name}: {entry.id[:8]}")
        return entry

    def head_history(self, tip: Optional[str] = None) -> Iterator[LogEntry]:
        """Lazily walk the whole history from tip (default HEAD) backward.

        Each call starts a fresh traversal. A repository without commits
        yields nothing.
        """
        return self._iter_log(tip, None)

    def file_history(self, file_name: str, tip: Optional[str] = None) -> Iterator[LogEntry]:
        """Lazily walk the revisions that touched file_name, newest first.

        A file that was never committed yields an empty sequence.
        """
        return self._iter_log(tip, file_name)

    def _iter_log(self, tip: Optional[str], file_name: Optional[str]) -> Iterator[LogEntry]:
        if tip is None:
            tip = self.head_sha()
            if tip is None:
                return
        else:
            self.ensure_valid()

        command = ["git", "--literal-pathspecs", "log", "-z", f"--format={LOG_FORMAT}", tip]
        if file_name is not None:
            command += ["--", file_name]
        logger.debug(f"Running {' '.join(command)} in {self.repo_path}")

        try:
            proc = subprocess.Popen(
                command,
                cwd=self.repo_path,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message="Git command not found. Please install git.",
            )

        finished = False
        try:
            buffer = b""
            while True:
                chunk = proc.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                buffer += chunk
                *records, buffer = buffer.split(b"\0")
                for record in records:
                    yield self._parse_record(record)
            if buffer:
                yield self._parse_record(buffer)
            finished = True
        finally:
            if proc.poll() is None:
                proc.kill()
            proc.stdout.close()
            stderr = proc.stderr.read().decode("utf-8", errors="replace")
            proc.stderr.close()
            proc.wait()

        if finished and proc.returncode != 0:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"Failed to read history from {tip}",
                git_output=stderr,
            )

    def _parse_record(self, record: bytes) -> LogEntry:
        try:
            sha, date, message = record.decode("utf-8").split("\x1f", 2)
            return LogEntry(
                id=sha.strip(),
                message=message.rstrip("\n"),
                date=datetime.fromisoformat(date),
            )
        except ValueError as e:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"Unreadable log record: {e}",
            )

    def resolve_revision(self, revision: str) -> str:
        """Return the full commit SHA named by revision.

        Raises:
            RevisionNotFoundError: If revision does not name a commit
        """
        if not revision or revision.startswith("-"):
            raise RevisionNotFoundError(self.repo_path, revision)
        result = self._run(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])
        if result.returncode != 0:
            raise RevisionNotFoundError(self.repo_path, revision)
        return result.stdout.strip()

    def read_file_at(self, revision: str, file_name: str) -> Optional[str]:
        """Retrieve a file's content as of a revision.

        Returns:
            File content, or None if the file did not exist at that revision

        Raises:
            RevisionNotFoundError: If revision does not name a commit
        """
        sha = self.resolve_revision(revision)
        result = self._run(["cat-file", "blob", f"{sha}:{file_name}"], binary=True)
        if result.returncode != 0:
            logger.debug(f"File {file_name} not found at commit {sha[:8]}")
            return None
        try:
            return result.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise GitRepositoryError(
                repo_path=self.repo_path,
                message=f"File {file_name} at {sha[:8]} is not UTF-8 text: {e}",
            )
