"""SummaryReporter: renders batch reports and single-repository state."""

from __future__ import annotations

from gitfolder_sync.models import BatchEntry, BatchReport, OutcomeKind, RepositoryState
from gitfolder_sync.output import SECTION_WIDTH
from gitfolder_sync.protocols import OutputHandler


class SummaryReporter:
    """Generates and displays summary reports"""

    def __init__(self, output: OutputHandler):
        """Create a reporter that writes to the given output handler."""
        self.output = output

    def print_summary(self, report: BatchReport):
        """Print the final summary with per-repository outcomes grouped by kind."""
        self.output.section("\u2554" + "=" * SECTION_WIDTH + "\u2557")
        self.output.info("\u2551" + "SUMMARY REPORT".center(SECTION_WIDTH) + "\u2551")
        self.output.info("\u255a" + "=" * SECTION_WIDTH + "\u255d")
        self.output.info("")
        self.output.info(report.summary_line())
        self.output.info("")

        self._print_category("\U0001f534 COMMIT FAILED", report.get_entries_by_kind(OutcomeKind.COMMIT_FAILED))
        self._print_category("\U0001f534 PUSH FAILED", report.get_entries_by_kind(OutcomeKind.PUSH_FAILED))
        self._print_category("\u2b06\ufe0f  COMMITTED AND PUSHED",
                             report.get_entries_by_kind(OutcomeKind.COMMITTED_AND_PUSHED))
        self._print_category("\u2b06\ufe0f  PUSHED", report.get_entries_by_kind(OutcomeKind.PUSHED_ONLY))
        self._print_category("\u2713 NO CHANGES", report.get_entries_by_kind(OutcomeKind.NO_CHANGES))

        if report.cancelled:
            self.output.warning("\u26a0 Sweep was cancelled before all repositories were processed")

        if report.has_failures():
            self.output.warning("\u26a0\ufe0f  ATTENTION REQUIRED: some repositories were not pushed")
        elif report.processed:
            self.output.success("\u2705 ALL REPOSITORIES ARE IN SYNC!")

        self.output.info("")
        self.output.info("=" * SECTION_WIDTH)

    def _print_category(self, title: str, entries: list[BatchEntry]):
        if not entries:
            return

        self.output.info(f"{title} ({len(entries)}):")
        self.output.info("-" * SECTION_WIDTH)
        for entry in entries:
            self.output.info(f"  \U0001f4c1 {entry.label}")
            if entry.outcome.reason:
                self.output.info(f"     \u21b3 {entry.outcome.reason}")
        self.output.info("")

    def print_state(self, state: RepositoryState):
        """Print the inspection snapshot of one repository."""
        self.output.section(f"Repository: {state.path}")
        if not state.is_root:
            self.output.error("\u2717 Not a git repository root")
            return

        upstream = state.upstream_ref or "no upstream"
        self.output.info(f"Branch: {state.branch or 'detached'} ({upstream})")
        if state.commits_ahead:
            self.output.info(f"\u2b06 {state.commits_ahead} commit(s) ahead")
        if state.is_behind_upstream:
            self.output.info("\u2b07 behind upstream")

        if not state.changed_files:
            self.output.info("No uncommitted changes detected.")
            return
        self.output.info("Changed Files:")
        for entry in state.changed_files:
            self.output.info(str(entry), indent=1)
        self.output.info(f"Total Changes: {len(state.changed_files)}")
