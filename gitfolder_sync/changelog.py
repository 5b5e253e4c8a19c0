"""ChangelogGenerator: renders a repository's commit log to a text report."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from gitfolder_sync.inspector import RepositoryInspector
from gitfolder_sync.protocols import CommandRunner

LOG_FORMAT = '%ad - %h - %s'


class ChangelogGenerator:
    """Writes `git log` as a bullet list with a Repository/Branch/Generated header."""

    def __init__(self, runner: CommandRunner, file_name: str = 'CHANGELOG.md'):
        self.runner = runner
        self.file_name = file_name
        self.inspector = RepositoryInspector(runner)
        self._logger = logging.getLogger(__name__)

    def render(self, path: Path, now: datetime | None = None) -> str | None:
        """Return the changelog text, or None if the log could not be read."""
        path = Path(path)
        result = self.runner.run(
            path, ('log', '--date=iso-strict', f'--pretty=format:{LOG_FORMAT}')
        )
        if not result.success:
            self._logger.error("git log failed in %s: %s", path, result.first_error_line())
            return None

        generated = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        lines = [
            f"Repository: {path.name}",
            f"Branch: {self.inspector.current_branch(path) or 'unknown'}",
            f"Generated: {generated.isoformat(timespec='seconds')}",
            "",
        ]
        for entry in result.stdout.splitlines():
            parts = entry.split(' - ', 2)
            if len(parts) != 3:
                continue
            date, short_hash, subject = parts
            lines.append(f"- {date} \u2014 {short_hash} \u2014 {subject.strip()}")
        return "\n".join(lines) + "\n"

    def generate(self, path: Path) -> Path | None:
        """Write the changelog to the repository root and return the file path."""
        text = self.render(path)
        if text is None:
            return None
        target = Path(path) / self.file_name
        target.write_text(text, encoding='utf-8')
        self._logger.info("Changelog written to %s", target)
        return target
