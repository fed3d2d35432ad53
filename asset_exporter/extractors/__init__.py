# ==============================================================================
# EXTRACTORS MODULE INIT
# ==============================================================================
# Archive providers for Asset Exporter.
#
# This package contains read-only virtual file systems:
#   - ArchiveProvider: Abstract base class defining the interface
#   - ArchiveRegistry: Registry for picking the provider for a path
#   - GRFVirtualFileSystem: Ragnarok Online GRF/GPF archives
#   - DirectoryArchive: Loose files below a directory
#
# Adding a new provider:
#   1. Create a new file (e.g., myformat_archive.py)
#   2. Subclass ArchiveProvider and implement all abstract methods
#   3. Call ArchiveRegistry.register(MyArchive) at module level
#   4. Import the module here
#
# Usage:
#   from asset_exporter.extractors import open_archive
#   with open_archive(["data.grf", "rdata.grf"]) as archive:
#       keys = archive.keys()
# ==============================================================================

# Import base classes first (required by other providers)
from .base_archive import ArchiveProvider, ArchiveRegistry, ArchiveEntry

# Import specific providers (each one registers itself)
from .grf_archive import GRFVirtualFileSystem, GRFFileEntry
from .directory_archive import DirectoryArchive

# Public exports
__all__ = [
    # Base classes
    'ArchiveProvider',
    'ArchiveRegistry',
    'ArchiveEntry',

    # Providers
    'GRFVirtualFileSystem',  # Ragnarok Online
    'GRFFileEntry',
    'DirectoryArchive',      # Extracted data folders

    'open_archive',
]


# ==============================================================================
# CONVENIENCE FUNCTION
# ==============================================================================
def open_archive(paths, **options) -> ArchiveProvider:
    """
    Open one or more archive sources as a single provider.

    This is a convenience function that wraps ArchiveRegistry.

    Args:
        paths: Archive path or list of paths (later paths override earlier)
        **options: Provider options (e.g., cache_size_mb for GRF)

    Returns:
        An opened ArchiveProvider

    Raises:
        ArchiveError: No provider matched or a source failed to open

    Example:
        >>> archive = open_archive(["data.grf"], cache_size_mb=64)
        >>> "data/idnum2itemdesctable.txt" in archive.keys()
        True
    """
    if isinstance(paths, str):
        paths = [paths]
    return ArchiveRegistry.open_archive(list(paths), **options)
