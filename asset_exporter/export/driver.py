# ==============================================================================
# EXPORT DRIVER MODULE
# ==============================================================================
# Runs an export script against an archive.
#
# The driver reads script lines in order and keeps two pieces of state: the
# active ExportMode and the running BatchResult.
#
#   Comment      ignored
#   ModeChange   replaces the active mode
#   Pattern      mode snapshot taken, pattern resolved, every entry
#                dispatched under that snapshot, outcomes folded
#
# A malformed header (FatalScriptError) stops the run at once; everything
# exported before it stays on disk. Per-entry failures and patterns matching
# nothing mark the batch failed but never stop it.
#
# Usage:
#   driver = ExportDriver(archive, OutputSink("out/"), ConsoleReporter())
#   result = driver.export_file("export.txt")
#   if not result.success:
#       ...
# ==============================================================================

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence

from ..core.config import Config
from ..core.errors import FatalScriptError, ResolutionMiss
from ..core.reporter import Reporter, ConsoleReporter
from .directives import DirectiveParser, ExportMode, ModeChange, Pattern
from .dispatch import (
    DispatchOutcome, DispatchTable, FormatDispatcher, OutputSettings,
    STATUS_SUCCESS, STATUS_UNSUPPORTED,
)
from .resolver import AssetResolver, ResolvedEntry
from .sink import OutputSink


# ==============================================================================
# BATCH RESULT
# ==============================================================================

@dataclass
class BatchResult:
    """
    Aggregate outcome of one export run.

    Attributes:
        success (bool):     False once any entry failed, any pattern missed,
                            or the script was aborted
        exported (int):     Entries with at least one output written
        unsupported (int):  Entries with nothing to write
        failed (list):      Identifiers of failed entries
        misses (list):      Wildcard patterns that matched nothing
        aborted (bool):     A fatal script error stopped the run
        fatal_error (str):  Message of that error
        outcomes (list):    Every DispatchOutcome, in fold order
    """
    success: bool = True
    exported: int = 0
    unsupported: int = 0
    failed: List[str] = field(default_factory=list)
    misses: List[str] = field(default_factory=list)
    aborted: bool = False
    fatal_error: Optional[str] = None
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    def fold(self, outcome: DispatchOutcome):
        self.outcomes.append(outcome)
        if outcome.status == STATUS_SUCCESS:
            self.exported += 1
        elif outcome.status == STATUS_UNSUPPORTED:
            self.unsupported += 1
        else:
            self.failed.append(outcome.identifier)
            self.success = False

    def record_miss(self, pattern: str):
        self.misses.append(pattern)
        self.success = False

    def abort(self, message: str):
        self.aborted = True
        self.fatal_error = message
        self.success = False

    def summary(self) -> str:
        return (f"{self.exported} exported, {self.unsupported} unsupported, "
                f"{len(self.failed)} failed, {len(self.misses)} unmatched patterns")


# ==============================================================================
# EXPORT DRIVER
# ==============================================================================

class ExportDriver:
    """
    Interprets export scripts.

    Attributes:
        archive:    ArchiveProvider to export from
        reporter:   Reporter receiving diagnostics
        resolver:   AssetResolver (grouped suffixes from config)
        dispatcher: FormatDispatcher writing to the sink
        mode:       Active ExportMode
        workers:    Threads per pattern (1 = sequential)
    """

    def __init__(self, archive, sink: OutputSink, reporter: Optional[Reporter] = None,
                 config: Optional[Config] = None, table: Optional[DispatchTable] = None,
                 ledger=None, archive_label: str = ""):
        """
        Args:
            archive: Opened ArchiveProvider
            sink: Output destination
            reporter: Diagnostics receiver (console by default)
            config: Settings (defaults when None)
            table: Dispatch table (build_default_table() when None)
            ledger: Optional ExportLedger recording the run
            archive_label: Archive description stored in the ledger
        """
        self.config = config or Config()
        self.archive = archive
        self.sink = sink
        self.reporter = reporter or ConsoleReporter(use_colors=self.config.use_colors)
        self.parser = DirectiveParser()
        self.resolver = AssetResolver(self.config.grouped_suffixes)
        self.dispatcher = FormatDispatcher(
            archive, sink, table,
            settings=OutputSettings.from_config(self.config),
            debug=self.config.debug_mode,
        )
        self.ledger = ledger
        self.archive_label = archive_label
        self.workers = self.config.export_workers
        self.default_mode = ExportMode.from_names(self.config.default_modes)
        self.mode = self.default_mode

        self._run_id: Optional[int] = None

    # ==========================================================================
    # PUBLIC ENTRY POINTS
    # ==========================================================================

    def export(self, lines: Iterable[str], script_name: str = "<script>") -> BatchResult:
        """
        Run a script.

        Args:
            lines: Script lines, read once
            script_name: Name used in diagnostics and the ledger

        Returns:
            The BatchResult; per-entry problems never raise
        """
        self.mode = self.default_mode
        result = BatchResult()
        self._start_run(script_name)

        try:
            for directive in self.parser.parse_lines(lines):
                if isinstance(directive, ModeChange):
                    self.mode = directive.mode
                    self.reporter.info(f"Line {directive.line_number}: export mode {self.mode}")
                elif isinstance(directive, Pattern):
                    self._export_pattern(directive.text, result, directive.line_number)
        except FatalScriptError as e:
            self.reporter.error(f"{script_name}: {e}")
            result.abort(str(e))

        self._finish_run(result)
        return result

    def export_file(self, path: str) -> BatchResult:
        """Run a script file (UTF-8, BOM tolerated)."""
        with open(path, 'r', encoding='utf-8-sig') as f:
            return self.export(f, script_name=path)

    def export_patterns(self, patterns: Sequence[str], mode: Optional[ExportMode] = None) -> BatchResult:
        """
        Export a list of patterns without a script.

        Args:
            patterns: Patterns, taken verbatim (no comment or header syntax)
            mode: Mode for every pattern (config default when None)

        Returns:
            The BatchResult
        """
        self.mode = mode or self.default_mode
        result = BatchResult()
        self._start_run("<patterns>")

        for pattern in patterns:
            pattern = pattern.strip()
            if pattern:
                self._export_pattern(pattern, result)

        self._finish_run(result)
        return result

    # ==========================================================================
    # PATTERN PROCESSING
    # ==========================================================================

    def _export_pattern(self, text: str, result: BatchResult, line_number: int = 0):
        # Every entry of this pattern is exported under this snapshot
        mode = self.mode
        pattern = self.archive.normalize_key(text)
        where = f"Line {line_number}: " if line_number else ""

        try:
            entries = self.resolver.resolve(pattern, self.archive.keys())
        except ResolutionMiss as e:
            self.reporter.warning(f"{where}{e}")
            result.record_miss(pattern)
            self._record(None, pattern, status="miss")
            return

        self.reporter.info(f"{where}{pattern}: {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} {mode}")

        total = len(entries)
        for index, (entry, outcome) in enumerate(self._dispatch_all(entries, mode), start=1):
            self.reporter.progress(index, total, entry.identifier)
            self._report(outcome, mode)
            result.fold(outcome)
            self._record(outcome, pattern)

    def _dispatch_all(self, entries: List[ResolvedEntry], mode: ExportMode) -> Iterator:
        """Yield (entry, outcome) pairs; entries of one pattern may run in parallel."""
        if self.workers <= 1 or len(entries) <= 1:
            for entry in entries:
                yield entry, self.dispatcher.dispatch(entry, mode)
            return

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [(entry, executor.submit(self.dispatcher.dispatch, entry, mode)) for entry in entries]
            for entry, future in futures:
                yield entry, future.result()

    def _report(self, outcome: DispatchOutcome, mode: ExportMode):
        if outcome.status == STATUS_SUCCESS:
            self.reporter.success(f"{outcome.identifier} ({outcome.detail})")
        elif outcome.status == STATUS_UNSUPPORTED:
            if mode.raw:
                self.reporter.warning(f"{outcome.identifier}: nothing exported")
            else:
                self.reporter.info(f"{outcome.identifier}: unsupported format, skipped")
        else:
            self.reporter.warning(f"{outcome.identifier}: export failed: {outcome.cause}")

    # ==========================================================================
    # LEDGER
    # ==========================================================================

    def _start_run(self, script_name: str):
        self._run_id = None
        if self.ledger is not None:
            self._run_id = self.ledger.start_run(script_name, self.archive_label, self.sink.root)

    def _record(self, outcome: Optional[DispatchOutcome], pattern: str, status: str = ""):
        if self._run_id is None:
            return
        if outcome is None:
            self.ledger.record(self._run_id, pattern, pattern, status)
        else:
            self.ledger.record(
                self._run_id, outcome.identifier, pattern, outcome.status,
                outputs=outcome.outputs, digest=outcome.digest, cause=outcome.cause,
            )

    def _finish_run(self, result: BatchResult):
        self.reporter.info(self.summary_line(result))
        if self._run_id is not None:
            self.ledger.finish_run(self._run_id, result)

    @staticmethod
    def summary_line(result: BatchResult) -> str:
        state = "aborted" if result.aborted else ("done" if result.success else "done with errors")
        return f"Export {state}: {result.summary()}"
