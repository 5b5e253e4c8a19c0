"""RepositoryInspector: read-only state queries for a single repository."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from gitfolder_sync.models import ChangeEntry, ChangeStatus, CommandResult, RepositoryState
from gitfolder_sync.protocols import CommandRunner

_AHEAD_RE = re.compile(r'\bahead (\d+)')
_BEHIND_RE = re.compile(r'\bbehind (\d+)')


def is_repository_root(path: Path) -> bool:
    """Return True if `.git` (directory, or file for worktrees/submodules) sits directly under path."""
    return (Path(path) / '.git').exists()


def parse_porcelain_line(line: str) -> ChangeEntry:
    """Split a `status --porcelain` line into code and path."""
    if len(line) > 3:
        code = line[:2].strip()
        file_path = line[3:].strip()
    else:
        code = ""
        file_path = line.strip()
    return ChangeEntry(code, ChangeStatus.from_code(code), file_path)


class RepositoryInspector:
    """Answers state queries; every query fails closed and never raises."""

    def __init__(self, runner: CommandRunner):
        """Create an inspector that runs git through the given runner."""
        self.runner = runner
        self._logger = logging.getLogger(__name__)

    def is_repository_root(self, path: Path) -> bool:
        return is_repository_root(path)

    def _query(self, path: Path, *args: str) -> CommandResult | None:
        """Run a read-only git command; return None (and log) on failure."""
        result = self.runner.run(Path(path), args)
        if not result.success:
            self._logger.warning(
                "git %s failed in %s: %s", ' '.join(args), path, result.first_error_line()
            )
            return None
        return result

    def has_uncommitted_changes(self, path: Path) -> bool:
        """Return True if `status --porcelain` reports anything."""
        result = self._query(path, 'status', '--porcelain')
        return result is not None and bool(result.stdout.strip())

    def list_changed_files(self, path: Path) -> list[ChangeEntry]:
        """Return one entry per non-empty porcelain status line, in git's order."""
        result = self._query(path, 'status', '--porcelain')
        if result is None:
            return []
        return [parse_porcelain_line(line) for line in result.stdout.splitlines() if line.strip()]

    def _branch_header(self, path: Path) -> str:
        """First line of `status --porcelain -b` (the `## branch...upstream` header)."""
        result = self._query(path, 'status', '--porcelain', '-b')
        if result is None:
            return ""
        lines = result.stdout.splitlines()
        return lines[0] if lines else ""

    def commits_ahead(self, path: Path) -> int:
        """Number of local commits missing from the upstream (0 without an upstream)."""
        match = _AHEAD_RE.search(self._branch_header(path))
        return int(match.group(1)) if match else 0

    def is_ahead_of_upstream(self, path: Path) -> bool:
        return self.commits_ahead(path) > 0

    def is_behind_upstream(self, path: Path) -> bool:
        return _BEHIND_RE.search(self._branch_header(path)) is not None

    def current_branch(self, path: Path) -> str | None:
        result = self._query(path, 'rev-parse', '--abbrev-ref', 'HEAD')
        if result is None:
            return None
        return result.stdout.strip() or None

    def upstream_ref(self, path: Path) -> str | None:
        """Upstream tracking ref (e.g. 'origin/main'), or None when unset."""
        # No upstream is a normal state, so this one is not a warning.
        result = self.runner.run(
            Path(path), ('rev-parse', '--abbrev-ref', '--symbolic-full-name', '@{u}')
        )
        if not result.success:
            self._logger.debug("No upstream for %s: %s", path, result.first_error_line())
            return None
        return result.stdout.strip() or None

    def can_commit(self, path: Path) -> bool:
        """Return True if path is a repository root with something to commit."""
        return self.is_repository_root(path) and self.has_uncommitted_changes(path)

    def can_fetch_pull(self, path: Path) -> bool:
        return self.is_repository_root(path)

    def inspect(self, path: Path) -> RepositoryState:
        """Build a fresh snapshot of the repository at path."""
        path = Path(path)
        state = RepositoryState(path=path, is_root=self.is_repository_root(path))
        if not state.is_root:
            self._logger.debug("Not a repository root: %s", path)
            return state

        state.changed_files = self.list_changed_files(path)
        state.has_uncommitted_changes = bool(state.changed_files)

        header = self._branch_header(path)
        ahead = _AHEAD_RE.search(header)
        state.commits_ahead = int(ahead.group(1)) if ahead else 0
        state.is_behind_upstream = _BEHIND_RE.search(header) is not None

        state.branch = self.current_branch(path)
        state.upstream_ref = self.upstream_ref(path)
        return state
