"""Repository scanner: finds independent git repos under (and above) a directory."""

from __future__ import annotations

import logging
from pathlib import Path

from gitfolder_sync.inspector import is_repository_root


class RepositoryScanner:
    """Responsible for finding git repositories"""

    def __init__(self, exclude_patterns: list[str] = None, skip_hidden: bool = True):
        """Create a scanner with optional substring-based exclude patterns."""
        self.exclude_patterns = exclude_patterns or []
        self.skip_hidden = skip_hidden
        self._logger = logging.getLogger(__name__)

    def find_repositories(self, search_dir: Path) -> list[Path]:
        """Find repository roots under search_dir without descending into any root found."""
        roots: list[Path] = []
        seen_real_paths: set[str] = set()
        stack = [Path(search_dir)]

        while stack:
            current = stack.pop()
            if current.name == '.git' or self._should_exclude(current):
                continue

            if is_repository_root(current):
                real_path = str(current.resolve())
                if real_path not in seen_real_paths:
                    seen_real_paths.add(real_path)
                    roots.append(current)
                continue

            try:
                children = sorted(
                    child for child in current.iterdir()
                    if child.is_dir() and not child.is_symlink()
                )
            except OSError as e:
                self._logger.warning("Failed to enumerate '%s': %s", current, e)
                continue

            # Reversed so the stack pops children in name order
            for child in reversed(children):
                if self.skip_hidden and child.name.startswith('.'):
                    continue
                stack.append(child)

        return roots

    def find_enclosing_repository_root(self, start_dir: Path) -> Path | None:
        """Walk upward from start_dir (inclusive) to the nearest repository root."""
        seen: set[Path] = set()
        try:
            directory = Path(start_dir).resolve()
        except OSError as e:
            self._logger.warning("Failed to resolve '%s': %s", start_dir, e)
            return None

        while directory not in seen:
            if is_repository_root(directory):
                return directory
            seen.add(directory)
            if directory.parent == directory:
                break
            directory = directory.parent
        return None

    def collect_sync_roots(self, search_dir: Path, include_ancestor: bool = True) -> list[Path]:
        """Roots under search_dir, then the enclosing repository last unless already found."""
        roots = self.find_repositories(search_dir)
        if not include_ancestor:
            return roots

        ancestor = self.find_enclosing_repository_root(search_dir)
        if ancestor is not None:
            found = {root.resolve() for root in roots}
            if ancestor.resolve() not in found:
                roots.append(ancestor)
        return roots

    def _should_exclude(self, repo_path: Path) -> bool:
        """Return True if any exclude pattern is a substring of the path."""
        path_str = str(repo_path)
        return any(pattern in path_str for pattern in self.exclude_patterns)
