# ==============================================================================
# EXPORT MODULE INIT
# ==============================================================================
# Script-driven export pipeline.
#
#   PatternMatcher    "*" / "?" wildcard matching of archive keys
#   DirectiveParser   script lines -> Comment / ModeChange / Pattern
#   AssetResolver     pattern -> resolved entries (grouped suffixes -> stems)
#   FormatDispatcher  entry + mode -> files written through an OutputSink
#   ExportDriver      runs a script and folds outcomes into a BatchResult
#
# Usage:
#   from asset_exporter.export import ExportDriver, OutputSink
#   driver = ExportDriver(archive, OutputSink("out/"))
#   result = driver.export(["[json, raw]", "data/*.pal"])
# ==============================================================================

from .pattern import PatternMatcher, matches, has_wildcard
from .directives import (
    DirectiveParser, ExportMode, DEFAULT_MODE, Comment, ModeChange, Pattern,
)
from .resolver import AssetResolver, ResolvedEntry, split_extension
from .sink import OutputSink
from .dispatch import (
    DispatchTable, DispatchOutcome, FormatDispatcher, OutputSettings,
    Strategy, TextStrategy, StructuredStrategy, UnsupportedStrategy,
    build_default_table,
)
from .driver import ExportDriver, BatchResult

__all__ = [
    # Matching
    'PatternMatcher', 'matches', 'has_wildcard',

    # Script
    'DirectiveParser', 'ExportMode', 'DEFAULT_MODE',
    'Comment', 'ModeChange', 'Pattern',

    # Resolution
    'AssetResolver', 'ResolvedEntry', 'split_extension',

    # Dispatch
    'OutputSink',
    'DispatchTable', 'DispatchOutcome', 'FormatDispatcher', 'OutputSettings',
    'Strategy', 'TextStrategy', 'StructuredStrategy', 'UnsupportedStrategy',
    'build_default_table',

    # Driver
    'ExportDriver', 'BatchResult',
]
