# ==============================================================================
# ASSET EXPORTER - COMMAND LINE INTERFACE
# ==============================================================================
# Command-line interface for script-driven exports.
#
# Commands:
#   - export:  Run an export script (or patterns) against archives
#   - list:    List archive entries, optionally filtered by a pattern
#   - formats: Show how each file extension is exported
#   - history: Show runs recorded in the export ledger
#   - verify:  Re-hash the outputs of a recorded run
#
# Usage:
#   python -m asset_exporter.cli export --archive data.grf --script export.txt --output out/
#   python -m asset_exporter.cli export --archive data.grf --pattern "data/*.pal" --mode json,raw --output out/
#   python -m asset_exporter.cli list --archive data.grf --pattern "data/sprite/*.spr"
#   python -m asset_exporter.cli history --limit 5
#
# Exit codes (export):
#   0  every entry exported or skipped as unsupported
#   1  bad invocation, unreadable script or archive
#   2  one or more entries failed or patterns matched nothing
#   3  the script has a fatal syntax error
# ==============================================================================

import os
import sys
import argparse
from typing import List, Optional

from .core.config import Config, KNOWN_MODES
from .core.errors import ArchiveError
from .core.hasher import OutputHasher
from .core.ledger import ExportLedger
from .core.paths import Paths
from .core.reporter import Colors, ConsoleReporter
from .export import ExportDriver, ExportMode, OutputSink, PatternMatcher, build_default_table
from .extractors import open_archive

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ENTRY_FAILURES = 2
EXIT_FATAL_SCRIPT = 3


# ==============================================================================
# OUTPUT HELPERS
# ==============================================================================

def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    print(f"{Colors.GREEN}[OK] {text}{Colors.END}")


def print_error(text: str):
    print(f"{Colors.RED}[ERROR] {text}{Colors.END}", file=sys.stderr)


def print_warning(text: str):
    print(f"{Colors.YELLOW}[WARN] {text}{Colors.END}", file=sys.stderr)


def load_config(path: Optional[str]) -> Optional[Config]:
    """
    Load the user config, or an explicit config file.

    Returns:
        The Config, or None if an explicit file does not exist
    """
    if path and not os.path.isfile(path):
        print_error(f"Config file not found: {path}")
        return None
    config = Config(path)
    config.load()
    return config


def parse_modes(text: str) -> List[str]:
    """Split a "--mode raw,json" value into mode names."""
    names = [name.strip().lower() for name in text.split(',') if name.strip()]
    unknown = [name for name in names if name not in KNOWN_MODES]
    if unknown or not names:
        raise argparse.ArgumentTypeError(
            f"modes must be a comma-separated subset of: {', '.join(KNOWN_MODES)}"
        )
    return names


# ==============================================================================
# EXPORT COMMAND
# ==============================================================================

def cmd_export(args) -> int:
    """Run an export script or a list of patterns."""
    config = load_config(args.config)
    if config is None:
        return EXIT_USAGE

    if args.no_color or not config.use_colors:
        Colors.disable()
    if args.workers:
        config.export_workers = args.workers
    if args.mode:
        config.default_modes = args.mode
    if args.debug:
        config.debug_mode = True

    output_dir = args.output or config.output_path or Paths.get_default_output_dir()

    if args.script and not os.path.isfile(args.script):
        print_error(f"Script not found: {args.script}")
        return EXIT_USAGE

    try:
        archive = open_archive(args.archive, cache_size_mb=config.grf_cache_size_mb)
    except ArchiveError as e:
        print_error(str(e))
        return EXIT_USAGE

    ledger = None
    if args.ledger or config.ledger_enabled:
        ledger = ExportLedger(config.ledger_path)

    reporter = ConsoleReporter(
        use_colors=not args.no_color and config.use_colors,
        log_file=config.log_file or None,
        show_progress=args.progress,
    )

    try:
        with archive:
            print_header(f"Export to {output_dir}")
            print(f"Archive: {', '.join(args.archive)} ({len(archive.keys())} entries)")

            driver = ExportDriver(
                archive,
                OutputSink(output_dir),
                reporter,
                config=config,
                ledger=ledger,
                archive_label=";".join(args.archive),
            )

            if args.script:
                result = driver.export_file(args.script)
            else:
                result = driver.export_patterns(args.pattern, ExportMode.from_names(config.default_modes))
    finally:
        reporter.close()
        if ledger is not None:
            ledger.close()

    if result.aborted:
        return EXIT_FATAL_SCRIPT
    if not result.success:
        for identifier in result.failed:
            print_warning(f"Failed: {identifier}")
        for pattern in result.misses:
            print_warning(f"No match: {pattern}")
        return EXIT_ENTRY_FAILURES

    print_success(result.summary())
    return EXIT_OK


# ==============================================================================
# LIST COMMAND
# ==============================================================================

def cmd_list(args) -> int:
    """List archive contents."""
    if args.no_color:
        Colors.disable()

    try:
        archive = open_archive(args.archive)
    except ArchiveError as e:
        print_error(str(e))
        return EXIT_USAGE

    with archive:
        print_header(f"Contents: {', '.join(args.archive)}")

        keys = archive.keys()
        if args.pattern:
            matcher = PatternMatcher(archive.normalize_key(args.pattern))
            keys = [key for key in keys if matcher.match(key)]

        for key in keys[:args.limit]:
            if args.verbose:
                entry = archive.get_entry(key)
                size = entry.size if entry else 0
                print(f"{size:>12,}  {key}")
            else:
                print(key)

        if len(keys) > args.limit:
            print(f"\n... and {len(keys) - args.limit} more")
        print(f"\nTotal: {len(keys)} entries")

    return EXIT_OK


# ==============================================================================
# FORMATS COMMAND
# ==============================================================================

def cmd_formats(args) -> int:
    """Show the dispatch table."""
    print_header("Export Formats")

    print(f"{'Extension':<18} {'Handling'}")
    print("-" * 60)
    for extension, handling in build_default_table().describe():
        print(f"{extension:<18} {handling}")

    print(f"\nOther extensions: unsupported (exported only in [raw] mode)")
    return EXIT_OK


# ==============================================================================
# HISTORY COMMAND
# ==============================================================================

def cmd_history(args) -> int:
    """Show export runs recorded in the ledger."""
    config = load_config(args.config)
    if config is None:
        return EXIT_USAGE

    if not os.path.isfile(config.ledger_path):
        print_warning(f"No export ledger at {config.ledger_path}")
        return EXIT_OK

    ledger = ExportLedger(config.ledger_path)
    try:
        if args.run:
            print_header(f"Export Run {args.run}")
            records = ledger.records_for_run(args.run)
            if not records:
                print_warning(f"No records for run {args.run}")
                return EXIT_OK
            print(f"{'Status':<12} {'Digest':<34} {'Identifier'}")
            print("-" * 80)
            for record in records:
                print(f"{record.status:<12} {record.digest or '-':<34} {record.identifier}")
                if record.cause:
                    print(f"{'':<12} {record.cause}")
            return EXIT_OK

        print_header("Export History")
        runs = ledger.recent_runs(args.limit)
        if not runs:
            print_warning("No export runs recorded")
            return EXIT_OK

        print(f"{'ID':<5} {'Started':<20} {'Result':<8} {'Exp':>6} {'Uns':>6} {'Fail':>6} {'Miss':>6}  {'Script'}")
        print("-" * 90)
        for run in runs:
            state = "aborted" if run.aborted else ("ok" if run.success else "errors")
            started = run.started_at.strftime('%Y-%m-%d %H:%M:%S') if run.started_at else '-'
            print(f"{run.id:<5} {started:<20} {state:<8} {run.exported:>6} {run.unsupported:>6} "
                  f"{run.failed:>6} {run.misses:>6}  {run.script}")
    finally:
        ledger.close()

    return EXIT_OK


# ==============================================================================
# VERIFY COMMAND
# ==============================================================================

def cmd_verify(args) -> int:
    """Re-hash the outputs of a recorded run and compare with the ledger."""
    config = load_config(args.config)
    if config is None:
        return EXIT_USAGE

    if not os.path.isfile(config.ledger_path):
        print_error(f"No export ledger at {config.ledger_path}")
        return EXIT_USAGE

    ledger = ExportLedger(config.ledger_path)
    try:
        run = ledger.get_run(args.run)
        if run is None:
            print_error(f"Unknown export run: {args.run}")
            return EXIT_USAGE
        records = ledger.records_for_run(run.id)
    finally:
        ledger.close()

    print_header(f"Verify Run {run.id} ({run.output_dir})")

    hasher = OutputHasher()
    checked = 0
    mismatched = 0
    for record in records:
        if not record.digest:
            continue
        outputs = [path for path in (record.outputs or "").split("\n") if path]
        files = [os.path.join(run.output_dir, *path.split('/')) for path in outputs]
        checked += 1
        if not hasher.compare_hashes(hasher.hash_files_md5(files), record.digest):
            mismatched += 1
            print_warning(f"Changed or missing: {record.identifier}")

    if mismatched:
        print_error(f"{mismatched} of {checked} entries differ from the ledger")
        return EXIT_ENTRY_FAILURES

    print_success(f"{checked} entries match the ledger")
    return EXIT_OK


# ==============================================================================
# MAIN ENTRY POINT
# ==============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='asset-exporter',
        description='Asset Exporter - script-driven export of archive contents',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s export --archive data.grf --archive rdata.grf --script export.txt --output out/
  %(prog)s export --archive data/ --pattern "data/*.pal" --mode json,texture --output out/
  %(prog)s list --archive data.grf --pattern "data/sprite/*.spr" --limit 20
  %(prog)s formats
  %(prog)s history --run 3
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # -------------------------------------------------------------------------
    # EXPORT command
    # -------------------------------------------------------------------------
    export_parser = subparsers.add_parser('export', help='Export archive entries')
    export_parser.add_argument('--archive', action='append', required=True,
                               help='GRF file or directory (repeat for more; later ones override)')
    source = export_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--script', help='Export script file')
    source.add_argument('--pattern', action='append', help='Pattern to export (repeatable)')
    export_parser.add_argument('--output', help='Output directory')
    export_parser.add_argument('--mode', type=parse_modes,
                               help='Initial export modes, e.g. json,raw')
    export_parser.add_argument('--workers', type=int, help='Export threads per pattern')
    export_parser.add_argument('--config', help='Config file (default: user config)')
    export_parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    export_parser.add_argument('--ledger', action='store_true', help='Record the run in the export ledger')
    export_parser.add_argument('--progress', action='store_true', help='Show a progress bar per pattern')
    export_parser.add_argument('--debug', action='store_true', help='Print tracebacks of failures')
    export_parser.set_defaults(func=cmd_export)

    # -------------------------------------------------------------------------
    # LIST command
    # -------------------------------------------------------------------------
    list_parser = subparsers.add_parser('list', help='List archive contents')
    list_parser.add_argument('--archive', action='append', required=True, help='GRF file or directory')
    list_parser.add_argument('--pattern', help='Only list keys matching this pattern')
    list_parser.add_argument('--verbose', '-v', action='store_true', help='Show entry sizes')
    list_parser.add_argument('--limit', type=int, default=100, help='Max entries to show')
    list_parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    list_parser.set_defaults(func=cmd_list)

    # -------------------------------------------------------------------------
    # FORMATS command
    # -------------------------------------------------------------------------
    formats_parser = subparsers.add_parser('formats', help='Show how each extension is exported')
    formats_parser.set_defaults(func=cmd_formats)

    # -------------------------------------------------------------------------
    # HISTORY command
    # -------------------------------------------------------------------------
    history_parser = subparsers.add_parser('history', help='Show recorded export runs')
    history_parser.add_argument('--limit', type=int, default=20, help='Number of runs to show')
    history_parser.add_argument('--run', type=int, help='Show the entries of one run')
    history_parser.add_argument('--config', help='Config file (default: user config)')
    history_parser.set_defaults(func=cmd_history)

    # -------------------------------------------------------------------------
    # VERIFY command
    # -------------------------------------------------------------------------
    verify_parser = subparsers.add_parser('verify', help='Check a run\'s outputs against the ledger')
    verify_parser.add_argument('--run', type=int, required=True, help='Run ID (see history)')
    verify_parser.add_argument('--config', help='Config file (default: user config)')
    verify_parser.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run a command.

    Returns:
        Process exit code
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits with 2 on usage errors; report those as 1
        return EXIT_OK if e.code == 0 else EXIT_USAGE

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
