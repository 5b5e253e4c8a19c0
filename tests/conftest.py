"""Shared test doubles."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from gitfolder_sync import CommandResult, ErrorKind


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout, "", 0)


def failed(stderr: str = "fatal: error", exit_code: int = 128) -> CommandResult:
    return CommandResult("", stderr, exit_code, ErrorKind.COMMAND_FAILURE)


class FakeRunner:
    """Scripted CommandRunner: answers by longest matching argument prefix, per path or globally."""

    def __init__(self):
        self.calls: list[tuple[Path, tuple[str, ...]]] = []
        self._responses: list[tuple[str | None, tuple[str, ...], CommandResult]] = []

    def on(self, *prefix: str, result: CommandResult, path: Path | str | None = None) -> FakeRunner:
        key = str(Path(path)) if path is not None else None
        self._responses.append((key, tuple(prefix), result))
        return self

    def run(self, working_dir: Path, args: Sequence[str]) -> CommandResult:
        args = tuple(args)
        self.calls.append((Path(working_dir), args))
        best = None
        best_score = -1
        for key, prefix, result in self._responses:
            if key is not None and key != str(Path(working_dir)):
                continue
            if args[:len(prefix)] != prefix:
                continue
            score = len(prefix) * 2 + (1 if key is not None else 0)
            if score > best_score:
                best, best_score = result, score
        return best if best is not None else ok()

    def commands(self, path: Path | None = None) -> list[tuple[str, ...]]:
        """Argument tuples run so far, optionally only those in `path`."""
        return [args for cwd, args in self.calls if path is None or cwd == Path(path)]

    def subcommands(self, path: Path | None = None) -> list[str]:
        return [args[0] for args in self.commands(path)]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A directory that looks like a repository root (has a .git directory)."""
    path = tmp_path / "repo"
    (path / ".git").mkdir(parents=True)
    return path
