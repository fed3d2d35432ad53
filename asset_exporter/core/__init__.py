# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Core building blocks for Asset Exporter.
#
# This package contains:
#   - Errors: Exception hierarchy shared by archives, decoders and exporter
#   - Config: Application configuration management
#   - Paths: User data / config / ledger locations
#   - Reporter: Leveled diagnostics (console, in-memory)
#   - Ledger: SQLite export history with SQLAlchemy ORM
#   - Hasher: MD5 fingerprints of exported outputs
#
# Usage:
#   from asset_exporter.core import Config, ConsoleReporter, ExportLedger
#   from asset_exporter.core.config import get_config
# ==============================================================================

from .errors import (
    ExporterError, FatalScriptError, ResolutionMiss,
    ArchiveError, EntryNotFound, DecodeError,
)
from .config import Config, get_config
from .paths import Paths
from .reporter import Reporter, ConsoleReporter, RecordingReporter, Colors
from .ledger import ExportLedger, ExportRun, ExportRecord
from .hasher import OutputHasher

__all__ = [
    # Errors
    'ExporterError',
    'FatalScriptError',
    'ResolutionMiss',
    'ArchiveError',
    'EntryNotFound',
    'DecodeError',

    # Configuration
    'Config',
    'get_config',

    # Paths
    'Paths',

    # Reporting
    'Reporter',
    'ConsoleReporter',
    'RecordingReporter',
    'Colors',

    # Ledger
    'ExportLedger',
    'ExportRun',
    'ExportRecord',

    # Hashing
    'OutputHasher',
]
