"""Configuration: argument parser and config file loader."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

try:
    import tomllib
except ModuleNotFoundError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

CONFIG_FILE_NAME = '.gitfolderrc.toml'

logger = logging.getLogger(__name__)

# (command, help, takes a commit message)
COMMANDS = [
    ('status', 'Show changed files and ahead/behind state', False),
    ('commit', 'Stage everything and commit', True),
    ('push', 'Push HEAD using the token from the environment', False),
    ('fetch', 'Fetch from the remote', False),
    ('pull', 'Pull if the branch is behind its upstream', False),
    ('commit-push', 'Commit, push, then fetch', True),
    ('push-fetch', 'Push, then fetch', False),
    ('fetch-pull', 'Fetch, then pull if behind', False),
    ('scan', 'List repository roots under a directory', False),
    ('sync-all', 'Commit & push every repository under a directory', False),
    ('changelog', 'Write the commit log to the repository root', False),
]


def create_common_parser() -> argparse.ArgumentParser:
    """Options shared by every subcommand (and overridable from the config file)."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--remote', dest='remote_name', default='origin',
                        help='Remote to push to (default: origin)')
    common.add_argument('--timeout', dest='command_timeout', type=float, default=600.0,
                        help='Seconds before a git command is killed (default: 600)')
    common.add_argument('--ambient-auth', action='store_true',
                        help='Push with ambient credentials (SSH agent, credential helper) instead of a token')
    common.add_argument('--token-env', default='GIT_TOKEN',
                        help='Environment variable holding the push token (default: GIT_TOKEN)')
    common.add_argument('--exclude', dest='exclude_patterns', action='append', default=[],
                        help='Exclude pattern for scans (can specify multiple)')
    common.add_argument('--no-ancestor', dest='include_ancestor', action='store_false',
                        help='Do not sync the repository enclosing the scanned directory')
    common.add_argument('--include-hidden', dest='skip_hidden', action='store_false',
                        help='Also scan directories whose name starts with "."')
    common.add_argument('--changelog-file', default='CHANGELOG.md',
                        help='File name written by the changelog command')
    common.add_argument('--verbose', action='store_true',
                        help='Verbose output')
    common.add_argument('--json', dest='json_output', action='store_true',
                        help='Output results as JSON (suppresses normal output)')
    common.add_argument('--no-color', dest='color', action='store_false',
                        help='Disable colored console output')
    common.add_argument('--config', type=str, default=None,
                        help=f'Path to config file (default: {CONFIG_FILE_NAME} in target dir or home)')
    return common


def create_argument_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with one subcommand per operation."""
    # Lazy import to avoid circular dependency with __init__.py
    from gitfolder_sync import __version__

    common = create_common_parser()
    parser = argparse.ArgumentParser(
        description="Commit, push, fetch and pull git repositories from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s status ~/project/Assets/MyPackage
  %(prog)s commit-push ~/project/Assets/MyPackage -m "Update"
  GIT_TOKEN=... %(prog)s sync-all ~/project/Assets
  %(prog)s sync-all ~/project/Assets --ambient-auth --json
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)
    for name, help_text, takes_message in COMMANDS:
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        sub.add_argument('path', nargs='?', default='.',
                         help='Repository (or directory to scan) (default: current)')
        if takes_message:
            sub.add_argument('-m', '--message', default='',
                             help='Commit message (empty uses an invisible placeholder)')

    return parser


def load_config_file(search_dir: Path, config_path: str | None = None) -> dict[str, Any]:
    """Load .gitfolderrc.toml from explicit path, search dir, or home dir.

    Returns empty dict if not found or tomllib is unavailable.
    """
    candidates = [Path(config_path)] if config_path else [search_dir / CONFIG_FILE_NAME, Path.home() / CONFIG_FILE_NAME]
    for path in candidates:
        if path.is_file():
            if tomllib is None:
                logger.warning("Found %s but tomllib/tomli is not available (Python 3.11+ or pip install tomli); ignoring it", path)
                return {}
            try:
                with open(path, 'rb') as f:
                    return tomllib.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Failed to parse %s: %s", path, e)
                return {}
    if config_path:
        logger.warning("Config file '%s' not found; ignoring it", config_path)
    return {}
