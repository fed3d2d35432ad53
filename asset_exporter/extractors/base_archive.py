# ==============================================================================
# BASE ARCHIVE MODULE
# ==============================================================================
# Abstract base class that all archive providers must implement, plus an
# ArchiveRegistry for picking the provider that can open a given path.
#
# An archive provider exposes a read-only virtual file system:
#   - keys():                  every addressable entry key, in a stable order
#   - read_raw_bytes(key):     the entry's bytes (EntryNotFound if absent)
#   - decode_resource(key, d): run a resource decoder against the archive
#
# To add support for a new archive format:
#   1. Subclass ArchiveProvider and implement the abstract methods
#   2. Call ArchiveRegistry.register(MyArchive) at module level
#
# Example:
#   with ArchiveRegistry.open_archive(["data.grf"]) as archive:
#       for key in archive.keys():
#           data = archive.read_raw_bytes(key)
# ==============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Dict, Optional, Sequence, Iterator

from ..core.errors import ArchiveError


# ==============================================================================
# ARCHIVE ENTRY DATA CLASS
# ==============================================================================
@dataclass
class ArchiveEntry:
    """
    Metadata of one entry within an archive.

    Attributes:
        key (str):             Normalized entry key
        size (int):            Uncompressed size
        compressed_size (int): Stored size (equals size when not compressed)
        source (str):          Archive file or directory holding the entry
    """
    key: str
    size: int
    compressed_size: int = 0
    source: str = ""

    def __post_init__(self):
        if self.compressed_size == 0:
            self.compressed_size = self.size


# ==============================================================================
# BASE ARCHIVE ABSTRACT CLASS
# ==============================================================================
class ArchiveProvider(ABC):
    """
    Abstract base class for read-only archive-backed file systems.

    The typical workflow is:
        1. Create the provider
        2. open() one or more sources
        3. keys() / read_raw_bytes() / decode_resource()
        4. close()

    Or use as a context manager.
    """

    # ==========================================================================
    # ABSTRACT PROPERTIES - Must be implemented by subclasses
    # ==========================================================================

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable archive format name (e.g., "GRF archive")."""
        pass

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Short unique ID (e.g., "grf", "dir")."""
        pass

    # ==========================================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # ==========================================================================

    @classmethod
    @abstractmethod
    def detect(cls, path: str) -> bool:
        """
        Check if this provider can open the given file or directory.

        Args:
            path: Path to check

        Returns:
            True if this provider can handle the path
        """
        pass

    @abstractmethod
    def open(self, path: str, priority: int = 0) -> bool:
        """
        Load a source into the file system.

        Args:
            path: Archive file or directory
            priority: Higher priority sources override lower ones

        Returns:
            True if successfully opened, False otherwise
        """
        pass

    @abstractmethod
    def close(self):
        """Release all resources."""
        pass

    @abstractmethod
    def keys(self) -> Sequence[str]:
        """
        Every entry key, in a stable iteration order.

        The returned sequence must not be mutated by callers.
        """
        pass

    @abstractmethod
    def read_raw_bytes(self, key: str) -> bytes:
        """
        Read the stored bytes of an entry.

        Args:
            key: Entry key (normalized or not)

        Returns:
            Entry contents

        Raises:
            EntryNotFound: the key is not in the archive
            ArchiveError: the entry exists but cannot be read
        """
        pass

    @abstractmethod
    def get_entry(self, key: str) -> Optional[ArchiveEntry]:
        """Metadata of an entry, or None when absent."""
        pass

    # ==========================================================================
    # COMMON METHODS
    # ==========================================================================

    def normalize_key(self, path: str) -> str:
        """
        Canonical spelling of a key: forward slashes, no leading slash.

        Providers with case-insensitive lookups lower-case as well.
        """
        return path.replace('\\', '/').lstrip('/')

    def contains(self, key: str) -> bool:
        return self.get_entry(key) is not None

    def decode_resource(self, key: str, decoder) -> object:
        """
        Decode an entry into a structured object.

        Args:
            key: Entry key or logical stem
            decoder: ResourceDecoder to apply

        Returns:
            Decoded object (dataclass, dict or list)

        Raises:
            DecodeError: malformed data, missing companion entry
            EntryNotFound: the entry does not exist
        """
        return decoder.decode(self, self.normalize_key(key))

    def iter_entries(self) -> Iterator[ArchiveEntry]:
        for key in self.keys():
            entry = self.get_entry(key)
            if entry is not None:
                yield entry

    def get_total_size(self) -> int:
        """Get the total uncompressed size of all entries."""
        return sum(entry.size for entry in self.iter_entries())

    # ==========================================================================
    # CONTEXT MANAGER SUPPORT
    # ==========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


# ==============================================================================
# ARCHIVE REGISTRY
# ==============================================================================
class ArchiveRegistry:
    """
    Registry of available archive providers.

    Usage:
        ArchiveRegistry.register(GRFVirtualFileSystem)
        archive = ArchiveRegistry.open_archive(["data.grf", "rdata.grf"])
    """

    _providers: Dict[str, type] = {}

    @classmethod
    def register(cls, provider_class: type):
        """
        Register a provider class under its provider_id.

        Args:
            provider_class: Class that inherits from ArchiveProvider
        """
        cls._providers[provider_class.PROVIDER_ID] = provider_class
        return provider_class

    @classmethod
    def get_provider_for_path(cls, path: str) -> Optional[type]:
        """
        Find the provider class whose detect() accepts the path.

        Returns:
            Provider class, or None if no provider matches
        """
        for provider_class in cls._providers.values():
            if provider_class.detect(path):
                return provider_class
        return None

    @classmethod
    def get_all(cls) -> Dict[str, type]:
        return cls._providers.copy()

    @classmethod
    def open_archive(cls, paths: List[str], **options) -> ArchiveProvider:
        """
        Build one provider from one or more sources.

        Later paths get higher priority, so their entries override earlier
        ones (data.grf, then rdata.grf). All paths must be handled by the
        same provider.

        Args:
            paths: Archive files or directories
            **options: Passed to the provider constructor

        Returns:
            An opened provider

        Raises:
            ArchiveError: no provider, mixed providers, or a source failed
                          to open
        """
        if not paths:
            raise ArchiveError("No archive paths given")

        provider_class = None
        for path in paths:
            found = cls.get_provider_for_path(path)
            if found is None:
                raise ArchiveError(f"No archive provider can open: {path}")
            if provider_class is not None and found is not provider_class:
                raise ArchiveError("All archive paths must have the same format")
            provider_class = found

        provider = provider_class(**options)
        for priority, path in enumerate(paths):
            if not provider.open(path, priority=priority):
                provider.close()
                raise ArchiveError(f"Failed to open archive: {path}")
        return provider
