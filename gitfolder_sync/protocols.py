"""Protocols and abstract interfaces for dependency injection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from gitfolder_sync.models import CommandResult, RepositoryState, SyncOutcome

ProgressCallback = Callable[[str, float], None]


class CommandRunner(Protocol):
    """Protocol for running git in a working directory"""

    def run(self, working_dir: Path, args: Sequence[str]) -> CommandResult: ...


class OutputHandler(Protocol):
    """Protocol for handling output"""

    def info(self, message: str, indent: int = 0) -> None: ...
    def success(self, message: str, indent: int = 0) -> None: ...
    def warning(self, message: str, indent: int = 0) -> None: ...
    def error(self, message: str, indent: int = 0) -> None: ...
    def section(self, title: str) -> None: ...
    def debug(self, message: str) -> None: ...


class SyncHook(ABC):
    """Abstract base class for sync hooks (plugin architecture)"""

    @abstractmethod
    def before_sync(self, path: Path, state: RepositoryState) -> bool:
        """Called before syncing. Return False to skip this repo."""
        pass

    @abstractmethod
    def after_sync(self, path: Path, outcome: SyncOutcome) -> None:
        """Called after syncing a repository with its outcome."""
        pass

    @abstractmethod
    def on_error(self, path: Path, error: Exception) -> None:
        """Called when an unhandled error occurs during sync."""
        pass
