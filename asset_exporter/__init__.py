# ==============================================================================
# ASSET EXPORTER - SOURCE PACKAGE
# ==============================================================================
# Main package for the Asset Exporter application.
#
# Subpackages:
#   - core: Configuration, errors, reporting, export ledger, hashing
#   - extractors: Archive providers (GRF, directory)
#   - parsers: Resource decoders and texture renderers
#   - export: Script parsing, pattern resolution, dispatch, driver
#
# Entry points:
#   - main.py: Launcher
#   - asset_exporter/cli.py: Command-line interface
# ==============================================================================

__version__ = "1.0.0"
__author__ = "Crow"
__description__ = "Script-driven export of GRF and folder archives"

# Convenience imports
from .core import Config, ExportLedger, OutputHasher, ConsoleReporter, RecordingReporter
from .extractors import ArchiveRegistry, open_archive
from .export import ExportDriver, ExportMode, OutputSink, BatchResult

__all__ = [
    '__version__',
    '__author__',
    '__description__',

    # Core
    'Config',
    'ExportLedger',
    'OutputHasher',
    'ConsoleReporter',
    'RecordingReporter',

    # Extractors
    'ArchiveRegistry',
    'open_archive',

    # Export
    'ExportDriver',
    'ExportMode',
    'OutputSink',
    'BatchResult',
]
