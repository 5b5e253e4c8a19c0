"""CLI entry point: main() function."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from colorama import Fore, Style

from gitfolder_sync.changelog import ChangelogGenerator
from gitfolder_sync.config import create_argument_parser, create_common_parser, load_config_file
from gitfolder_sync.models import CommandResult, SyncConfig
from gitfolder_sync.orchestrator import BatchSynchronizer
from gitfolder_sync.output import ConsoleOutputHandler, NullOutputHandler, ProgressBar
from gitfolder_sync.reporter import SummaryReporter
from gitfolder_sync.runner import GitProcessRunner
from gitfolder_sync.synchronizer import RepositorySynchronizer

CONFIG_KEYS = (
    'remote_name', 'command_timeout', 'ambient_auth', 'token_env', 'exclude_patterns',
    'include_ancestor', 'skip_hidden', 'changelog_file', 'verbose', 'json_output', 'color',
)


def build_config(args, file_config: dict, argv: list[str]) -> SyncConfig:
    """Merge CLI args and config file values; flags given explicitly on the CLI win."""
    cli_explicit = set()
    for action in create_common_parser()._actions:
        for opt_string in action.option_strings:
            if opt_string in argv:
                cli_explicit.add(action.dest)
                break

    values = {}
    for key in CONFIG_KEYS:
        if key not in cli_explicit and key in file_config:
            values[key] = file_config[key]
        else:
            values[key] = getattr(args, key)
    values['exclude_patterns'] = list(values['exclude_patterns'] or [])
    return SyncConfig(**values)


def _print_result(output, action: str, result: CommandResult) -> bool:
    if result.success:
        output.success(f"\u2713 {action} succeeded")
        if result.stdout.strip():
            output.info(result.stdout.strip(), indent=1)
    else:
        output.error(f"\u2717 {action} failed: {result.first_error_line()}")
    return result.success


def _result_dict(result: CommandResult) -> dict:
    return {
        'exit_code': result.exit_code,
        'stdout': result.stdout,
        'stderr': result.stderr,
        'error_kind': result.error_kind.name if result.error_kind else None,
    }


def run_command(args, config: SyncConfig, output) -> int:
    """Dispatch one subcommand. Returns the process exit code."""
    path = Path(args.path).resolve()
    credential = os.environ.get(config.token_env) or None
    runner = GitProcessRunner(timeout=config.command_timeout)
    synchronizer = RepositorySynchronizer(runner, config)
    command = args.command

    if command in ('scan', 'sync-all'):
        batch = BatchSynchronizer(config, output, runner=runner)
        roots = batch.scan(path)
        if command == 'scan':
            if config.json_output:
                print(json.dumps([str(root) for root in roots], indent=2))
            for root in roots:
                output.info(str(root))
            return 0

        if not roots:
            output.warning(f"No git repositories found under {path}")
            return 0
        if not credential and not config.ambient_auth:
            output.warning(f"\u26a0 No token in ${config.token_env}; pushes will fail. "
                           "Set it or use --ambient-auth.")
        with ProgressBar("Syncing", disable=config.json_output) as bar:
            report = batch.sync_all(roots, credential, progress=bar)
        if config.json_output:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            SummaryReporter(output).print_summary(report)
        return 1 if report.has_failures() else 0

    if command == 'status':
        state = synchronizer.inspector.inspect(path)
        if config.json_output:
            print(json.dumps({
                'path': str(state.path),
                'is_root': state.is_root,
                'branch': state.branch,
                'upstream': state.upstream_ref,
                'commits_ahead': state.commits_ahead,
                'is_behind_upstream': state.is_behind_upstream,
                'changed_files': [
                    {'status': e.status.value, 'code': e.status_code, 'path': e.file_path}
                    for e in state.changed_files
                ],
            }, indent=2))
        else:
            SummaryReporter(output).print_state(state)
        return 0 if state.is_root else 1

    if command == 'changelog':
        target = ChangelogGenerator(runner, config.changelog_file).generate(path)
        if target is None:
            output.error(f"\u2717 Could not read the commit log of {path}")
            return 1
        output.success(f"\u2713 Changelog written to {target}")
        return 0

    if command == 'commit-push':
        outcome = synchronizer.commit_push_fetch(path, args.message, credential)
        steps = [('Commit', outcome.commit), ('Push', outcome.push), ('Fetch', outcome.fetch)]
        success = outcome.success
    elif command == 'push-fetch':
        push_result, fetch_result = synchronizer.push_fetch(path, credential)
        steps = [('Push', push_result), ('Fetch', fetch_result)]
        success = push_result.success
    elif command == 'fetch-pull':
        fetch_result, pull_result = synchronizer.fetch_pull(path)
        steps = [('Fetch', fetch_result), ('Pull', pull_result)]
        success = fetch_result.success and pull_result.success
    else:
        operations = {
            'commit': lambda: synchronizer.commit(path, args.message),
            'push': lambda: synchronizer.push(path, credential),
            'fetch': lambda: synchronizer.fetch(path),
            'pull': lambda: synchronizer.pull(path),
        }
        result = operations[command]()
        steps = [(command.capitalize(), result)]
        success = result.success

    if config.json_output:
        print(json.dumps({name.lower(): _result_dict(r) for name, r in steps}, indent=2))
    else:
        for name, result in steps:
            _print_result(output, name, result)
    return 0 if success else 1


def main(argv: list[str] | None = None):
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    target = Path(args.path).resolve()
    if not target.is_dir():
        print(f"{Fore.RED}Error: Invalid directory '{target}'{Style.RESET_ALL}")
        sys.exit(1)

    file_config = load_config_file(target, args.config)
    config = build_config(args, file_config, argv)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # GitPython logs full command lines at DEBUG, which would include the push URL
    logging.getLogger('git').setLevel(logging.INFO)

    if config.json_output:
        output = NullOutputHandler()
    else:
        output = ConsoleOutputHandler(verbose=config.verbose, color=config.color)

    try:
        sys.exit(run_command(args, config, output))
    except KeyboardInterrupt:
        if not config.json_output:
            output.warning("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        if config.json_output:
            print(json.dumps({'error': str(e)}, indent=2))
        else:
            output.error(f"\nUnexpected error: {e}")
            if config.verbose:
                import traceback
                traceback.print_exc()
        sys.exit(1)
