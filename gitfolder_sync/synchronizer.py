"""RepositorySynchronizer: commit, push, fetch and pull a single repository."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from gitfolder_sync.inspector import RepositoryInspector, is_repository_root
from gitfolder_sync.models import (
    CommandResult,
    CommitPushFetchResult,
    ErrorKind,
    SyncConfig,
    SyncStage,
)
from gitfolder_sync.protocols import CommandRunner
from gitfolder_sync.remote import AuthenticatedRemoteResolver

# Blank braille cells: invisible, but not whitespace to git, so the commit
# is accepted.
EMPTY_COMMIT_MESSAGE = "\u2800" * 5

# Direction marks some editors leave in pasted messages
INVISIBLE_MARKS = ("\u200e", "\u200f", "\u202a", "\u202b", "\u202c", "\u202d", "\u202e")

REDACTED = '***'


def strip_invisible(text: str, placeholder: str | None = None) -> str:
    """Remove the placeholder message and invisible direction marks from git output."""
    if placeholder:
        text = text.replace(placeholder, '')
    for mark in INVISIBLE_MARKS:
        text = text.replace(mark, '')
    return text


def _mask(text: str, secrets: tuple[str, ...]) -> str:
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


def scrub(result: CommandResult, secret: str) -> CommandResult:
    """Return result with every occurrence of secret, raw or percent-encoded, masked."""
    if not secret:
        return result
    secrets = (quote(secret, safe=''), secret)
    return CommandResult(
        _mask(result.stdout, secrets),
        _mask(result.stderr, secrets),
        result.exit_code,
        result.error_kind,
    )


class RepositorySynchronizer:
    """Responsible for mutating a single repository; never raises."""

    def __init__(
        self,
        runner: CommandRunner,
        config: SyncConfig | None = None,
        inspector: RepositoryInspector | None = None,
        resolver: AuthenticatedRemoteResolver | None = None,
    ):
        """Create a synchronizer that runs git through the given runner."""
        self.runner = runner
        self.config = config or SyncConfig()
        self.inspector = inspector or RepositoryInspector(runner)
        self.resolver = resolver or AuthenticatedRemoteResolver(runner, self.config.remote_name)
        self.stage = SyncStage.IDLE
        self._logger = logging.getLogger(__name__)

    def _require_root(self, path: Path) -> CommandResult | None:
        if is_repository_root(path):
            return None
        self._logger.error("Not a git repository root: %s", path)
        return CommandResult.failure(ErrorKind.NOT_A_REPOSITORY, f"Not a git repository: {path}")

    def _log_result(self, action: str, path: Path, result: CommandResult) -> None:
        if result.success:
            if result.stdout.strip():
                self._logger.info("[%s] %s: %s", action, path.name, result.stdout.strip())
        else:
            self._logger.error("[%s] %s failed: %s", action, path.name, result.stderr.strip())

    def commit(self, path: Path, message: str = "") -> CommandResult:
        """Stage everything and commit. An empty message becomes EMPTY_COMMIT_MESSAGE."""
        path = Path(path)
        not_root = self._require_root(path)
        if not_root:
            return not_root

        placeholder = None
        if not message:
            message = placeholder = EMPTY_COMMIT_MESSAGE

        self.stage = SyncStage.STAGING
        add_result = self.runner.run(path, ('add', '.'))
        if not add_result.success:
            self._log_result('add', path, add_result)
            return add_result

        self.stage = SyncStage.COMMITTING
        result = self.runner.run(path, ('commit', '-m', message))
        result = CommandResult(
            strip_invisible(result.stdout, placeholder),
            strip_invisible(result.stderr, placeholder),
            result.exit_code,
            result.error_kind,
        )
        self._log_result('commit', path, result)
        return result

    def push(self, path: Path, credential: str | None) -> CommandResult:
        """Push HEAD to the authenticated remote URL; the URL is used once and not stored."""
        path = Path(path)
        not_root = self._require_root(path)
        if not_root:
            return not_root

        self.stage = SyncStage.PUSHING
        if self.config.ambient_auth:
            result = self.runner.run(path, ('push', self.config.remote_name, 'HEAD'))
            self._log_result('push', path, result)
            return result

        target = self.resolver.resolve_push_target(path, credential)
        if not target.ok:
            return CommandResult.failure(target.error_kind or ErrorKind.NO_REMOTE_CONFIGURED, target.message)

        result = scrub(self.runner.run(path, ('push', target.url, target.refspec)), credential)
        self._log_result('push', path, result)
        return result

    def fetch(self, path: Path) -> CommandResult:
        path = Path(path)
        not_root = self._require_root(path)
        if not_root:
            return not_root

        self.stage = SyncStage.FETCHING
        result = self.runner.run(path, ('fetch',))
        self._log_result('fetch', path, result)
        return result

    def pull(self, path: Path) -> CommandResult:
        """Pull only when the branch is behind its upstream."""
        path = Path(path)
        not_root = self._require_root(path)
        if not_root:
            return not_root

        if not self.inspector.is_behind_upstream(path):
            self._logger.info("[pull] %s: repository is up-to-date", path.name)
            return CommandResult.ok("Already up to date.")

        result = self.runner.run(path, ('pull',))
        self._log_result('pull', path, result)
        return result

    def commit_push_fetch(self, path: Path, message: str, credential: str | None) -> CommitPushFetchResult:
        """Commit, then push (even if the commit failed), then fetch to refresh tracking refs."""
        path = Path(path)
        failed_stage = None

        commit_result = self.commit(path, message)
        if not commit_result.success:
            failed_stage = SyncStage.COMMITTING

        push_result = self.push(path, credential)
        if not push_result.success:
            failed_stage = SyncStage.PUSHING

        fetch_result = self.fetch(path)
        if not fetch_result.success and failed_stage is None:
            failed_stage = SyncStage.FETCHING

        self.stage = SyncStage.DONE
        return CommitPushFetchResult(commit_result, push_result, fetch_result, failed_stage)

    def push_fetch(self, path: Path, credential: str | None) -> tuple[CommandResult, CommandResult]:
        push_result = self.push(path, credential)
        fetch_result = self.fetch(path)
        self.stage = SyncStage.DONE
        return push_result, fetch_result

    def fetch_pull(self, path: Path) -> tuple[CommandResult, CommandResult]:
        """Fetch first so the behind check sees fresh tracking refs, then pull if needed."""
        fetch_result = self.fetch(path)
        if not fetch_result.success:
            self.stage = SyncStage.DONE
            return fetch_result, CommandResult.failure(ErrorKind.COMMAND_FAILURE, "Pull skipped: fetch failed")
        pull_result = self.pull(path)
        self.stage = SyncStage.DONE
        return fetch_result, pull_result
