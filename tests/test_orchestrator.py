"""Tests for BatchSynchronizer and BackgroundSync."""

import threading
from pathlib import Path

import pytest
from conftest import FakeRunner, failed, ok

from gitfolder_sync import (
    BackgroundSync,
    BatchSynchronizer,
    BufferedOutputHandler,
    OutcomeKind,
    SyncConfig,
    SyncHook,
)

REMOTE = "https://example.com/org/repo.git"


def _make_roots(tmp_path: Path, *names: str) -> list[Path]:
    roots = []
    for name in names:
        path = tmp_path / name
        (path / ".git").mkdir(parents=True)
        roots.append(path)
    return roots


def _dirty(runner: FakeRunner, path: Path) -> None:
    runner.on('status', '--porcelain', result=ok(" M Assets/Scene.unity\n"), path=path)
    runner.on('status', '--porcelain', '-b', result=ok("## main...origin/main\n M Assets/Scene.unity\n"), path=path)


def _ahead(runner: FakeRunner, path: Path, count: int = 2) -> None:
    runner.on('status', '--porcelain', '-b', result=ok(f"## main...origin/main [ahead {count}]\n"), path=path)


def _mixed_runner(a: Path, b: Path, c: Path) -> FakeRunner:
    """a is clean, b has changes, c has changes and a push that gets rejected."""
    runner = FakeRunner()
    runner.on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
    runner.on('status', '--porcelain', '-b', result=ok("## main...origin/main\n"), path=a)
    _dirty(runner, b)
    _dirty(runner, c)
    runner.on('push', result=failed("! [rejected]        HEAD -> main (fetch first)", 1), path=c)
    return runner


class RecordingHook(SyncHook):
    def __init__(self, skip: str = None):
        self.skip = skip
        self.seen = []
        self.errors = []

    def before_sync(self, path, state):
        return path.name != self.skip

    def after_sync(self, path, outcome):
        self.seen.append((path.name, outcome.kind))

    def on_error(self, path, error):
        self.errors.append((path.name, error))


class RaisingRunner(FakeRunner):
    def __init__(self, subcommand: str):
        super().__init__()
        self.subcommand = subcommand

    def run(self, working_dir, args):
        result = super().run(working_dir, args)
        if args[0] == self.subcommand:
            raise RuntimeError("runner exploded")
        return result


class TestSyncAll:
    def test_mixed_outcomes(self, tmp_path):
        a, b, c = _make_roots(tmp_path, "A", "B", "C")
        runner = _mixed_runner(a, b, c)

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a, b, c], "tok")

        assert [o.kind for o in report.outcomes] == [
            OutcomeKind.NO_CHANGES,
            OutcomeKind.COMMITTED_AND_PUSHED,
            OutcomeKind.PUSH_FAILED,
        ]
        assert report.processed == 3
        assert report.committed == 1
        assert report.pushed == 1
        assert "rejected" in report.outcomes[2].reason
        assert report.summary_line() == "Processed: 3, Repositories Found: 3, Committed: 1, Pushed: 1"

    def test_clean_repository_runs_no_mutation(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner()
        BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")
        assert set(runner.subcommands()) <= {'status', 'rev-parse'}

    def test_ahead_repository_is_pushed_only(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner().on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
        _ahead(runner, a)

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")

        assert report.outcomes[0].kind is OutcomeKind.PUSHED_ONLY
        assert 'commit' not in runner.subcommands()
        assert report.committed == 0
        assert report.pushed == 1

    def test_commit_failure_skips_push(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner()
        _dirty(runner, a)
        runner.on('commit', result=failed("error: pre-commit hook rejected the commit", 1))

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")

        assert report.outcomes[0].kind is OutcomeKind.COMMIT_FAILED
        assert report.outcomes[0].reason == "error: pre-commit hook rejected the commit"
        assert 'push' not in runner.subcommands()

    def test_missing_token_fails_push(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner().on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
        _dirty(runner, a)

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], None)

        assert report.outcomes[0].kind is OutcomeKind.PUSH_FAILED
        assert 'push' not in runner.subcommands()

    def test_fetch_failure_keeps_push_outcome(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner().on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
        _dirty(runner, a)
        runner.on('fetch', result=failed("fatal: unable to access remote"))

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")

        assert report.outcomes[0].kind is OutcomeKind.COMMITTED_AND_PUSHED

    def test_per_repository_order(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = FakeRunner().on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
        _dirty(runner, a)

        BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")

        mutations = [cmd for cmd in runner.subcommands() if cmd in ('add', 'commit', 'push', 'fetch')]
        assert mutations == ['add', 'commit', 'push', 'fetch']

    def test_non_repository_paths_fail(self, tmp_path):
        plain = tmp_path / "not-a-repo"
        plain.mkdir()
        missing = tmp_path / "gone"
        (a,) = _make_roots(tmp_path, "A")
        output = BufferedOutputHandler(color=False)
        runner = FakeRunner()

        report = BatchSynchronizer(SyncConfig(), output=output, runner=runner).sync_all(
            [plain, missing, a], "tok"
        )

        assert [o.kind for o in report.outcomes] == [
            OutcomeKind.COMMIT_FAILED,
            OutcomeKind.COMMIT_FAILED,
            OutcomeKind.NO_CHANGES,
        ]
        assert report.outcomes[0].reason == f"Not a git repository: {plain}"
        assert report.outcomes[1].reason == f"Not a git repository: {missing}"
        assert report.has_failures() is True
        assert runner.commands(plain) == []
        assert runner.commands(missing) == []
        assert any("Not a git repository" in m for m in output.messages)

    def test_empty_roots(self):
        progress = []
        report = BatchSynchronizer(SyncConfig(), runner=FakeRunner()).sync_all(
            [], "tok", progress=lambda label, fraction: progress.append(fraction)
        )
        assert report.processed == 0
        assert progress == [1.0]


class TestProgress:
    def test_fractions_monotonic_and_complete(self, tmp_path):
        a, b, c = _make_roots(tmp_path, "A", "B", "C")
        events = []

        BatchSynchronizer(SyncConfig(), runner=_mixed_runner(a, b, c)).sync_all(
            [a, b, c], "tok", progress=lambda label, fraction: events.append((label, fraction))
        )

        fractions = [f for _, f in events]
        assert all(0.0 <= f <= 1.0 for f in fractions)
        assert fractions == sorted(fractions)
        assert events[-1] == ("Done", 1.0)
        assert any(label.startswith("B: pushing") for label, _ in events)


class TestCancellation:
    def test_cancelled_before_start(self, tmp_path):
        roots = _make_roots(tmp_path, "A", "B")
        cancel = threading.Event()
        cancel.set()
        runner = FakeRunner()

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all(roots, "tok", cancel_event=cancel)

        assert report.cancelled is True
        assert report.processed == 0
        assert runner.calls == []

    def test_cancel_between_repositories(self, tmp_path):
        roots = _make_roots(tmp_path, "A", "B", "C")
        cancel = threading.Event()

        class CancelAfterFirst(RecordingHook):
            def after_sync(self, path, outcome):
                super().after_sync(path, outcome)
                cancel.set()

        batch = BatchSynchronizer(SyncConfig(), hooks=[CancelAfterFirst()], runner=FakeRunner())
        report = batch.sync_all(roots, "tok", cancel_event=cancel)

        assert report.cancelled is True
        assert report.processed == 1
        assert report.repositories_found == 3


class TestHooks:
    def test_before_sync_can_skip(self, tmp_path):
        roots = _make_roots(tmp_path, "A", "B")
        hook = RecordingHook(skip="A")

        report = BatchSynchronizer(SyncConfig(), hooks=[hook], runner=FakeRunner()).sync_all(roots, "tok")

        assert [e.label for e in report.entries] == ["B"]
        assert hook.seen == [("B", OutcomeKind.NO_CHANGES)]

    def test_unexpected_error_during_push(self, tmp_path):
        a, b = _make_roots(tmp_path, "A", "B")
        runner = RaisingRunner('push').on('remote', 'get-url', 'origin', result=ok(REMOTE + "\n"))
        _dirty(runner, a)
        hook = RecordingHook()

        report = BatchSynchronizer(SyncConfig(), hooks=[hook], runner=runner).sync_all([a, b], "tok")

        assert report.outcomes[0].kind is OutcomeKind.PUSH_FAILED
        assert "runner exploded" in report.outcomes[0].reason
        assert report.outcomes[1].kind is OutcomeKind.NO_CHANGES
        assert [name for name, _ in hook.errors] == ["A"]

    def test_unexpected_error_during_commit(self, tmp_path):
        (a,) = _make_roots(tmp_path, "A")
        runner = RaisingRunner('commit')
        _dirty(runner, a)

        report = BatchSynchronizer(SyncConfig(), runner=runner).sync_all([a], "tok")

        assert report.outcomes[0].kind is OutcomeKind.COMMIT_FAILED


class TestSyncDirectory:
    def test_scans_then_syncs(self, tmp_path):
        _make_roots(tmp_path, "A", "B")
        batch = BatchSynchronizer(SyncConfig(include_ancestor=False), runner=FakeRunner())
        report = batch.sync_directory(tmp_path, "tok")
        assert [e.label for e in report.entries] == ["A", "B"]
        assert report.repositories_found == 2

    def test_no_repositories(self, tmp_path):
        output = BufferedOutputHandler()
        batch = BatchSynchronizer(SyncConfig(include_ancestor=False), output=output, runner=FakeRunner())
        report = batch.sync_directory(tmp_path, "tok")
        assert report.processed == 0
        assert any("No git repositories found" in m for m in output.messages)


class TestBackgroundSync:
    def test_runs_on_worker_and_collects_progress(self, tmp_path):
        a, b, c = _make_roots(tmp_path, "A", "B", "C")
        background = BackgroundSync(BatchSynchronizer(SyncConfig(), runner=_mixed_runner(a, b, c)))
        try:
            background.start([a, b, c], "tok")
            report = background.result(timeout=10)
            assert background.done() is True
            assert background.running is False
            assert report.processed == 3

            events = background.poll()
            assert events[-1] == ("Done", 1.0)
            assert background.poll() == []

            target = BufferedOutputHandler()
            background.poll(target)
            assert any("Processing:" in m for m in target.messages)
            assert background.buffer.messages == []
        finally:
            background.shutdown()

    def test_result_before_start(self):
        background = BackgroundSync(BatchSynchronizer(SyncConfig(), runner=FakeRunner()))
        try:
            with pytest.raises(RuntimeError):
                background.result()
        finally:
            background.shutdown()

    def test_rejects_second_start_while_running(self, tmp_path):
        roots = _make_roots(tmp_path, "A")
        release = threading.Event()

        class BlockingHook(RecordingHook):
            def before_sync(self, path, state):
                release.wait(10)
                return True

        batch = BatchSynchronizer(SyncConfig(), hooks=[BlockingHook()], runner=FakeRunner())
        background = BackgroundSync(batch)
        try:
            background.start(roots, "tok")
            assert background.running is True
            with pytest.raises(RuntimeError):
                background.start(roots, "tok")
            release.set()
            assert background.result(timeout=10).processed == 1
        finally:
            release.set()
            background.shutdown()

    def test_cancel(self, tmp_path):
        roots = _make_roots(tmp_path, "A", "B")
        entered = threading.Event()
        release = threading.Event()

        class BlockingHook(RecordingHook):
            def before_sync(self, path, state):
                entered.set()
                release.wait(10)
                return True

        batch = BatchSynchronizer(SyncConfig(), hooks=[BlockingHook()], runner=FakeRunner())
        background = BackgroundSync(batch)
        try:
            background.start(roots, "tok")
            assert entered.wait(10)
            background.cancel()
            release.set()
            report = background.result(timeout=10)
            assert report.cancelled is True
            assert report.processed == 1
        finally:
            release.set()
            background.shutdown()
