"""Repository sync strategies: one class per repository state in a sweep."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from gitfolder_sync.models import RepositoryState, SyncOutcome
from gitfolder_sync.protocols import OutputHandler, ProgressCallback
from gitfolder_sync.synchronizer import RepositorySynchronizer


class RepositorySyncStrategy(ABC):
    """Abstract strategy for syncing one repository during a sweep."""

    def __init__(self, synchronizer: RepositorySynchronizer, output: OutputHandler):
        """Initialize with the synchronizer that performs git operations and an output handler."""
        self.synchronizer = synchronizer
        self.output = output
        self._logger = logging.getLogger(__name__)

    @abstractmethod
    def can_handle(self, state: RepositoryState) -> bool:
        """Return True if this strategy applies to the given repository state."""
        pass

    @abstractmethod
    def sync(self, state: RepositoryState, credential: str | None,
             report: ProgressCallback) -> SyncOutcome:
        """Sync the repository and return its outcome."""
        pass

    def _push_and_fetch(self, path: Path, credential: str | None,
                        report: ProgressCallback, committed: bool) -> SyncOutcome:
        """Push, then always fetch; a failed fetch never downgrades a successful push."""
        report(f"{path.name}: pushing to remote\u2026", 0.8)
        push_result = self.synchronizer.push(path, credential)

        report(f"{path.name}: fetching\u2026", 0.95)
        fetch_result = self.synchronizer.fetch(path)
        if not fetch_result.success:
            self._logger.warning("%s: fetch after push failed: %s", path.name, fetch_result.first_error_line())

        if not push_result.success:
            reason = push_result.first_error_line()
            self.output.error(f"\u2717 Push failed: {reason}", indent=1)
            return SyncOutcome.push_failed(reason)

        if committed:
            self.output.success("\u2713 Committed and pushed", indent=1)
            return SyncOutcome.committed_and_pushed()
        self.output.success("\u2713 Pushed", indent=1)
        return SyncOutcome.pushed_only()


class CleanRepositoryStrategy(RepositorySyncStrategy):
    """Strategy for repositories with nothing to commit or push."""

    def can_handle(self, state: RepositoryState) -> bool:
        """Match repositories with a clean tree that are not ahead of upstream."""
        return not state.needs_sync

    def sync(self, state: RepositoryState, credential: str | None,
             report: ProgressCallback) -> SyncOutcome:
        """No-op."""
        self.output.info("\u2713 No changes", indent=1)
        return SyncOutcome.no_changes()


class UncommittedChangesStrategy(RepositorySyncStrategy):
    """Strategy for repositories with uncommitted changes."""

    def can_handle(self, state: RepositoryState) -> bool:
        return state.has_uncommitted_changes

    def sync(self, state: RepositoryState, credential: str | None,
             report: ProgressCallback) -> SyncOutcome:
        """Commit with the placeholder message, then push; a failed commit skips the push."""
        path = state.path
        self.output.info(f"{len(state.changed_files)} changed file(s)", indent=1)
        report(f"{path.name}: staging & committing (empty message)\u2026", 0.5)

        commit_result = self.synchronizer.commit(path, "")
        if not commit_result.success:
            reason = commit_result.first_error_line()
            self.output.error(f"\u2717 Commit failed: {reason}", indent=1)
            return SyncOutcome.commit_failed(reason)

        return self._push_and_fetch(path, credential, report, committed=True)


class UnpushedCommitsStrategy(RepositorySyncStrategy):
    """Strategy for clean repositories that are ahead of their upstream."""

    def can_handle(self, state: RepositoryState) -> bool:
        return not state.has_uncommitted_changes and state.is_ahead_of_upstream

    def sync(self, state: RepositoryState, credential: str | None,
             report: ProgressCallback) -> SyncOutcome:
        """Push the existing local commits."""
        self.output.info(f"\u2139 {state.commits_ahead} unpushed commit(s)", indent=1)
        return self._push_and_fetch(state.path, credential, report, committed=False)
