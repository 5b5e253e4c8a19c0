"""
gitfolder-sync: Git Folder Commit & Push Tool

Inspects, commits, pushes, fetches and pulls a folder's git repository, and
sweeps every repository under a directory with a single commit & push.
"""

from colorama import init as colorama_init

colorama_init(autoreset=True)

__version__ = "1.0.0"

# Re-export public API so `from gitfolder_sync import X` keeps working.
from gitfolder_sync.changelog import ChangelogGenerator  # noqa: E402
from gitfolder_sync.cli import main  # noqa: E402
from gitfolder_sync.config import create_argument_parser, load_config_file  # noqa: E402
from gitfolder_sync.inspector import (  # noqa: E402
    RepositoryInspector,
    is_repository_root,
    parse_porcelain_line,
)
from gitfolder_sync.models import (  # noqa: E402
    BatchEntry,
    BatchReport,
    ChangeEntry,
    ChangeStatus,
    CommandResult,
    CommitPushFetchResult,
    ErrorKind,
    OutcomeKind,
    PushTarget,
    RepositoryState,
    SyncConfig,
    SyncOutcome,
    SyncStage,
)
from gitfolder_sync.orchestrator import BackgroundSync, BatchSynchronizer  # noqa: E402
from gitfolder_sync.output import (  # noqa: E402
    SECTION_WIDTH,
    BufferedOutputHandler,
    ConsoleOutputHandler,
    LineOutputHandler,
    NullOutputHandler,
    ProgressBar,
)
from gitfolder_sync.protocols import CommandRunner, OutputHandler, SyncHook  # noqa: E402
from gitfolder_sync.remote import AuthenticatedRemoteResolver  # noqa: E402
from gitfolder_sync.reporter import SummaryReporter  # noqa: E402
from gitfolder_sync.runner import GitProcessRunner  # noqa: E402
from gitfolder_sync.scanner import RepositoryScanner  # noqa: E402
from gitfolder_sync.strategies import (  # noqa: E402
    CleanRepositoryStrategy,
    RepositorySyncStrategy,
    UncommittedChangesStrategy,
    UnpushedCommitsStrategy,
)
from gitfolder_sync.synchronizer import EMPTY_COMMIT_MESSAGE, RepositorySynchronizer  # noqa: E402

__all__ = [
    "__version__",
    # Models
    "BatchEntry",
    "BatchReport",
    "ChangeEntry",
    "ChangeStatus",
    "CommandResult",
    "CommitPushFetchResult",
    "ErrorKind",
    "OutcomeKind",
    "PushTarget",
    "RepositoryState",
    "SyncConfig",
    "SyncOutcome",
    "SyncStage",
    # Protocols
    "CommandRunner",
    "OutputHandler",
    "SyncHook",
    # Implementations
    "GitProcessRunner",
    "BufferedOutputHandler",
    "ConsoleOutputHandler",
    "LineOutputHandler",
    "NullOutputHandler",
    "ProgressBar",
    "SECTION_WIDTH",
    # Strategies
    "CleanRepositoryStrategy",
    "RepositorySyncStrategy",
    "UncommittedChangesStrategy",
    "UnpushedCommitsStrategy",
    # Services
    "AuthenticatedRemoteResolver",
    "BackgroundSync",
    "BatchSynchronizer",
    "ChangelogGenerator",
    "EMPTY_COMMIT_MESSAGE",
    "RepositoryInspector",
    "RepositoryScanner",
    "RepositorySynchronizer",
    "SummaryReporter",
    "is_repository_root",
    "parse_porcelain_line",
    # Config / CLI
    "create_argument_parser",
    "load_config_file",
    "main",
]
