"""GitPython-based process runner: one git invocation, fully captured."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from git.cmd import Git
from git.exc import CommandError

from gitfolder_sync.models import CommandResult, ErrorKind

# Fixed locale so "ahead"/"behind" markers are parseable; never block on a
# credential prompt.
GIT_ENVIRONMENT = {
    'LC_ALL': 'C',
    'LANGUAGE': 'C',
    'GIT_TERMINAL_PROMPT': '0',
}


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value


class GitProcessRunner:
    """Runs git without a shell and encodes every failure in a CommandResult."""

    def __init__(self, timeout: float | None = None, git_executable: str | None = None):
        """Create a runner. `timeout` is the kill deadline per command, in seconds."""
        self.timeout = timeout
        self.git_executable = git_executable
        self._logger = logging.getLogger(__name__)

    def run(self, working_dir: Path, args: Sequence[str]) -> CommandResult:
        """Run `git <args>` in working_dir and capture stdout, stderr and exit status."""
        executable = self.git_executable or Git.GIT_PYTHON_GIT_EXECUTABLE or 'git'
        command = [executable, *args]
        # kill_after_timeout is POSIX-only in GitPython
        timeout = self.timeout if os.name != 'nt' else None
        try:
            status, stdout, stderr = Git(str(working_dir)).execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
                kill_after_timeout=timeout,
                env=GIT_ENVIRONMENT,
                strip_newline_in_stdout=False,
            )
        except (CommandError, OSError) as e:
            self._logger.error("Could not run git %s in %s: %s", args[0] if args else '', working_dir, e)
            return CommandResult.failure(ErrorKind.PROCESS_LAUNCH_FAILURE, str(e))

        status = int(status) if status is not None else -1
        kind = None if status == 0 else ErrorKind.COMMAND_FAILURE
        return CommandResult(_as_text(stdout), _as_text(stderr), status, kind)
