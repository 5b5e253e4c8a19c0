"""Domain models: enums, dataclasses, and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ChangeStatus(Enum):
    """Label for a single porcelain status entry"""
    UNTRACKED = "Untracked"
    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    COPIED = "Copied"
    CONFLICT = "Conflict"
    CHANGED = "Changed"

    @classmethod
    def from_code(cls, code: str) -> ChangeStatus:
        """Map a two-character porcelain code to its label (unknown codes -> CHANGED)."""
        code = code.strip()
        if code == '??':
            return cls.UNTRACKED
        return _STATUS_BY_LETTER.get(code[:1], cls.CHANGED)


_STATUS_BY_LETTER = {
    'A': ChangeStatus.ADDED,
    'M': ChangeStatus.MODIFIED,
    'D': ChangeStatus.DELETED,
    'R': ChangeStatus.RENAMED,
    'C': ChangeStatus.COPIED,
    'U': ChangeStatus.CONFLICT,
}


class ErrorKind(Enum):
    """Type-safe failure categories"""
    PROCESS_LAUNCH_FAILURE = auto()
    COMMAND_FAILURE = auto()
    NO_REMOTE_CONFIGURED = auto()
    UNSUPPORTED_AUTH_SCHEME = auto()
    UNSUPPORTED_REMOTE_FORMAT = auto()
    MISSING_CREDENTIAL = auto()
    NOT_A_REPOSITORY = auto()


class SyncStage(Enum):
    """Stages of a single-repository commit/push/fetch run"""
    IDLE = auto()
    STAGING = auto()
    COMMITTING = auto()
    PUSHING = auto()
    FETCHING = auto()
    DONE = auto()


class OutcomeKind(Enum):
    """Per-repository result of a batch sweep"""
    NO_CHANGES = "No Changes"
    COMMITTED_AND_PUSHED = "Committed and Pushed"
    PUSHED_ONLY = "Pushed"
    COMMIT_FAILED = "Commit Failed"
    PUSH_FAILED = "Push Failed"


@dataclass(frozen=True)
class ChangeEntry:
    """One changed file in the working tree"""
    status_code: str
    status: ChangeStatus
    file_path: str

    def __str__(self) -> str:
        return f"[{self.status.value}] {self.file_path}"


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a single git invocation"""
    stdout: str
    stderr: str
    exit_code: int
    error_kind: ErrorKind | None = None

    @property
    def success(self) -> bool:
        """Return True if the command exited with status 0."""
        return self.exit_code == 0

    @classmethod
    def ok(cls, stdout: str = "") -> CommandResult:
        """Build a successful result that did not require a git process."""
        return cls(stdout, "", 0)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> CommandResult:
        """Build a synthetic failure (no process output, exit code -1)."""
        return cls("", message, -1, kind)

    def first_error_line(self) -> str:
        """First line of the diagnostic, for one-line report entries."""
        text = (self.stderr or self.stdout).replace('\r', '').strip()
        return text.split('\n', 1)[0]


@dataclass(frozen=True)
class PushTarget:
    """Push-capable remote resolved for a single invocation."""
    url: str | None = field(default=None, repr=False)
    refspec: str = 'HEAD'
    error_kind: ErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None and bool(self.url)


@dataclass
class RepositoryState:
    """Snapshot of a repository, recomputed on every inspection"""
    path: Path
    is_root: bool = False
    has_uncommitted_changes: bool = False
    changed_files: list[ChangeEntry] = field(default_factory=list)
    commits_ahead: int = 0
    is_behind_upstream: bool = False
    upstream_ref: str | None = None
    branch: str | None = None

    @property
    def is_ahead_of_upstream(self) -> bool:
        return self.commits_ahead > 0

    @property
    def needs_sync(self) -> bool:
        """Return True if there is anything to commit or push."""
        return self.has_uncommitted_changes or self.is_ahead_of_upstream


@dataclass(frozen=True)
class CommitPushFetchResult:
    """Results of the commit -> push -> fetch sequence"""
    commit: CommandResult
    push: CommandResult
    fetch: CommandResult
    failed_stage: SyncStage | None = None

    @property
    def success(self) -> bool:
        """The sequence succeeds when its push does."""
        return self.push.success


@dataclass(frozen=True)
class SyncOutcome:
    """Tagged outcome for one repository in a sweep"""
    kind: OutcomeKind
    reason: str = ""

    @classmethod
    def no_changes(cls) -> SyncOutcome:
        return cls(OutcomeKind.NO_CHANGES)

    @classmethod
    def committed_and_pushed(cls) -> SyncOutcome:
        return cls(OutcomeKind.COMMITTED_AND_PUSHED)

    @classmethod
    def pushed_only(cls) -> SyncOutcome:
        return cls(OutcomeKind.PUSHED_ONLY)

    @classmethod
    def commit_failed(cls, reason: str) -> SyncOutcome:
        return cls(OutcomeKind.COMMIT_FAILED, reason)

    @classmethod
    def push_failed(cls, reason: str) -> SyncOutcome:
        return cls(OutcomeKind.PUSH_FAILED, reason)

    @property
    def is_failure(self) -> bool:
        return self.kind in (OutcomeKind.COMMIT_FAILED, OutcomeKind.PUSH_FAILED)

    def __str__(self) -> str:
        if self.reason:
            return f"[{self.kind.value}] {self.reason}"
        return f"[{self.kind.value}]"


@dataclass(frozen=True)
class BatchEntry:
    """One line of a batch report"""
    label: str
    path: Path
    outcome: SyncOutcome


@dataclass
class BatchReport:
    """Mutable result accumulator for a multi-repository sweep"""
    entries: list[BatchEntry] = field(default_factory=list)
    repositories_found: int = 0
    cancelled: bool = False

    def add(self, label: str, path: Path, outcome: SyncOutcome) -> None:
        """Record the outcome for one repository."""
        self.entries.append(BatchEntry(label, path, outcome))

    @property
    def outcomes(self) -> list[SyncOutcome]:
        return [entry.outcome for entry in self.entries]

    @property
    def processed(self) -> int:
        return len(self.entries)

    @property
    def committed(self) -> int:
        """Repositories whose new commit reached the remote."""
        return sum(1 for o in self.outcomes if o.kind == OutcomeKind.COMMITTED_AND_PUSHED)

    @property
    def pushed(self) -> int:
        pushed_kinds = {OutcomeKind.COMMITTED_AND_PUSHED, OutcomeKind.PUSHED_ONLY}
        return sum(1 for o in self.outcomes if o.kind in pushed_kinds)

    def get_entries_by_kind(self, kind: OutcomeKind) -> list[BatchEntry]:
        """Filter entries by outcome kind (e.g. PUSH_FAILED)."""
        return [entry for entry in self.entries if entry.outcome.kind == kind]

    def has_failures(self) -> bool:
        """Return True if any repository failed to commit or push."""
        return any(o.is_failure for o in self.outcomes)

    def summary_line(self) -> str:
        return (
            f"Processed: {self.processed}, Repositories Found: {self.repositories_found}, "
            f"Committed: {self.committed}, Pushed: {self.pushed}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for JSON output."""
        return {
            'processed': self.processed,
            'repositories_found': self.repositories_found,
            'committed': self.committed,
            'pushed': self.pushed,
            'cancelled': self.cancelled,
            'repositories': [
                {
                    'label': e.label,
                    'path': str(e.path),
                    'outcome': e.outcome.kind.name,
                    'reason': e.outcome.reason,
                }
                for e in self.entries
            ],
            'has_failures': self.has_failures(),
        }


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for sync operations"""
    remote_name: str = 'origin'
    command_timeout: float | None = 600.0
    ambient_auth: bool = False
    exclude_patterns: list[str] = field(default_factory=list)
    include_ancestor: bool = True
    skip_hidden: bool = True
    verbose: bool = False
    json_output: bool = False
    token_env: str = 'GIT_TOKEN'
    changelog_file: str = 'CHANGELOG.md'
    color: bool = True

    def with_updates(self, **kwargs) -> SyncConfig:
        """Return a new SyncConfig with the given fields replaced."""
        current = {f.name: getattr(self, f.name) for f in self.__dataclass_fields__.values()}
        current.update(kwargs)
        return SyncConfig(**current)
