"""BatchSynchronizer: commits and pushes every repository in a tree."""

from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from pathlib import Path

from gitfolder_sync.inspector import RepositoryInspector
from gitfolder_sync.models import BatchReport, SyncConfig, SyncOutcome, SyncStage
from gitfolder_sync.output import BufferedOutputHandler, NullOutputHandler
from gitfolder_sync.protocols import CommandRunner, OutputHandler, ProgressCallback, SyncHook
from gitfolder_sync.runner import GitProcessRunner
from gitfolder_sync.scanner import RepositoryScanner
from gitfolder_sync.strategies import (
    CleanRepositoryStrategy,
    RepositorySyncStrategy,
    UncommittedChangesStrategy,
    UnpushedCommitsStrategy,
)
from gitfolder_sync.synchronizer import RepositorySynchronizer


def _no_progress(label: str, fraction: float) -> None:
    pass


class BatchSynchronizer:
    """Main orchestrator - coordinates the commit & push sweep"""

    def __init__(
        self,
        config: SyncConfig,
        output: OutputHandler = None,
        hooks: list[SyncHook] = None,
        runner: CommandRunner = None,
    ):
        """Create an orchestrator with the given config, output handler, optional hooks and runner."""
        self.config = config
        self.output = output or NullOutputHandler()
        self.hooks = hooks or []
        self.runner = runner or GitProcessRunner(timeout=config.command_timeout)
        self.inspector = RepositoryInspector(self.runner)
        self.synchronizer = RepositorySynchronizer(self.runner, config, inspector=self.inspector)
        self.scanner = RepositoryScanner(config.exclude_patterns, skip_hidden=config.skip_hidden)
        self.strategies: list[RepositorySyncStrategy] = [
            CleanRepositoryStrategy(self.synchronizer, self.output),
            UncommittedChangesStrategy(self.synchronizer, self.output),
            UnpushedCommitsStrategy(self.synchronizer, self.output),
        ]
        self._logger = logging.getLogger(__name__)

    def scan(self, search_dir: Path) -> list[Path]:
        """Repository roots under search_dir, children first, enclosing repository last."""
        return self.scanner.collect_sync_roots(search_dir, self.config.include_ancestor)

    def sync_directory(
        self,
        search_dir: Path,
        credential: str | None,
        progress: ProgressCallback = None,
        cancel_event: threading.Event = None,
    ) -> BatchReport:
        """Discover repositories under search_dir and sync them all."""
        roots = self.scan(search_dir)
        if not roots:
            self.output.warning(f"No git repositories found in {search_dir}")
            return BatchReport()

        self.output.info(f"Found {len(roots)} repositories")
        return self.sync_all(roots, credential, progress, cancel_event)

    def sync_all(
        self,
        roots: list[Path],
        credential: str | None,
        progress: ProgressCallback = None,
        cancel_event: threading.Event = None,
    ) -> BatchReport:
        """Sync each root in order; one repository's failure never stops the sweep."""
        progress = progress or _no_progress
        report = BatchReport(repositories_found=len(roots))
        total = max(1, len(roots))

        for index, root in enumerate(roots):
            if cancel_event is not None and cancel_event.is_set():
                self.output.warning("Sweep cancelled; remaining repositories skipped")
                report.cancelled = True
                break

            root = Path(root)
            label = root.name or str(root)

            def report_step(message: str, step: float, _index: int = index) -> None:
                fraction = (_index + min(max(step, 0.0), 1.0)) / total
                progress(message, min(max(fraction, 0.0), 1.0))

            outcome = self._sync_single_repo(root, credential, report_step)
            if outcome is not None:
                report.add(label, root, outcome)
            report_step(f"{label}: done", 1.0)

        progress("Done", 1.0)
        self._logger.info("%s", report.summary_line())
        return report

    def _sync_single_repo(
        self, path: Path, credential: str | None, report_step: ProgressCallback
    ) -> SyncOutcome | None:
        """Inspect, run hooks and the matching strategy. Returns None when a hook skips the repo."""
        label = path.name or str(path)
        self.synchronizer.stage = SyncStage.IDLE
        try:
            report_step(f"{label}: checking status\u2026", 1 / 6)
            state = self.inspector.inspect(path)
            if not state.is_root:
                reason = f"Not a git repository: {path}"
                self.output.error(f"\u2717 {reason}")
                self._logger.error("%s", reason)
                return SyncOutcome.commit_failed(reason)

            for hook in self.hooks:
                if not hook.before_sync(path, state):
                    self.output.info(f"Skipping {label} (hook)")
                    return None

            self.output.section(f"Processing: {path}")
            outcome = SyncOutcome.no_changes()
            for strategy in self.strategies:
                if strategy.can_handle(state):
                    outcome = strategy.sync(state, credential, report_step)
                    break

            if outcome.is_failure:
                self._logger.error("%s: %s", label, outcome)

            for hook in self.hooks:
                hook.after_sync(path, outcome)
            return outcome

        except Exception as e:
            self.output.error(f"Unexpected error in {path}: {e}")
            self._logger.exception("Unexpected error while syncing %s", path)
            for hook in self.hooks:
                hook.on_error(path, e)

            if self.synchronizer.stage in (SyncStage.PUSHING, SyncStage.FETCHING):
                return SyncOutcome.push_failed(f"Unexpected error: {e}")
            return SyncOutcome.commit_failed(f"Unexpected error: {e}")


class BackgroundSync:
    """Runs a sweep on a worker thread; the owning thread collects progress with poll()."""

    def __init__(self, batch: BatchSynchronizer):
        """Wrap a BatchSynchronizer whose output is buffered until poll()."""
        self.batch = batch
        self.buffer = BufferedOutputHandler(color=batch.config.color)
        self._events: queue.Queue[tuple[str, float]] = queue.Queue()
        self._cancel = threading.Event()
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        self._future: concurrent.futures.Future | None = None

    @property
    def running(self) -> bool:
        """True while a sweep is in flight; callers disable sync actions meanwhile."""
        return self._future is not None and not self._future.done()

    def start(self, roots: list[Path], credential: str | None) -> None:
        if self.running:
            raise RuntimeError("A sweep is already running")
        self._cancel.clear()
        self._future = self._executor.submit(self._run, list(roots), credential)

    def _run(self, roots: list[Path], credential: str | None) -> BatchReport:
        batch = BatchSynchronizer(
            self.batch.config, self.buffer, self.batch.hooks, self.batch.runner
        )
        return batch.sync_all(
            roots, credential,
            progress=lambda label, fraction: self._events.put((label, fraction)),
            cancel_event=self._cancel,
        )

    def poll(self, output: OutputHandler = None) -> list[tuple[str, float]]:
        """Drain pending progress events, and flush buffered messages to output if given."""
        events = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                break
        if output is not None:
            self.buffer.flush_to(output)
        return events

    def cancel(self) -> None:
        """Stop launching new repositories; an in-flight git process finishes normally."""
        self._cancel.set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: float | None = None) -> BatchReport:
        if self._future is None:
            raise RuntimeError("No sweep has been started")
        return self._future.result(timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
