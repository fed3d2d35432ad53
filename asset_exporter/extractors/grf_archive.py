# ==============================================================================
# GRF VIRTUAL FILE SYSTEM MODULE
# ==============================================================================
# Read-only virtual file system over Ragnarok Online GRF archives.
#
# Files are read directly from the GRF without extracting them to disk.
# Several GRFs can be loaded with priority (later GRFs override earlier ones,
# the way the client loads data.grf + rdata.grf).
#
# GRF 0x200 layout:
#   Header (46 bytes):
#     - Signature: "Master of Magic" (15 bytes)
#     - Encryption key (15 bytes, unused)
#     - File table offset (4 bytes, relative to end of header)
#     - Seed (4 bytes)
#     - File count + 7 (4 bytes)
#     - Version (4 bytes, 0x200)
#   File table (at header + offset):
#     - Compressed size, uncompressed size (uint32 each)
#     - zlib stream; per entry: NUL-terminated name (EUC-KR), then
#       compressed size, aligned size, real size (uint32), flags (uint8),
#       data offset (uint32, relative to end of header)
#
# Features:
#   - Unified, priority-ordered key index across all loaded GRFs
#   - LRU memory cache of inflated entries
#   - Thread-safe reads (one lock per GRF file handle, one for the cache)
#
# Usage:
#   vfs = GRFVirtualFileSystem(cache_size_mb=64)
#   vfs.open("data.grf", priority=0)
#   vfs.open("rdata.grf", priority=1)
#   data = vfs.read_raw_bytes("data/sprite/monster.spr")
# ==============================================================================

import os
import struct
import threading
import zlib
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Optional, Dict, Tuple

from .base_archive import ArchiveProvider, ArchiveEntry, ArchiveRegistry
from ..core.errors import ArchiveError, EntryNotFound


# ==============================================================================
# GRF FORMAT CONSTANTS
# ==============================================================================
GRF_SIGNATURE = b"Master of Magic"
GRF_HEADER_SIZE = 46
GRF_VERSION_200 = 0x200

GRF_FILE_FLAG_FILE = 0x01       # Entry is a file (not directory)
GRF_FILE_FLAG_MIXCRYPT = 0x02   # Uses mixed encryption
GRF_FILE_FLAG_DES = 0x04        # Uses DES encryption

# Sanity limits for file table entries
_MAX_NAME_LENGTH = 260
_MAX_ENTRY_SIZE = 500 * 1024 * 1024


# ==============================================================================
# GRF FILE ENTRY
# ==============================================================================

@dataclass
class GRFFileEntry:
    """
    A file entry within a GRF archive.

    Attributes:
        path (str): Normalized path (forward slashes, lowercase)
        original_path (str): Original path from GRF
        compressed_size (int): Stored (aligned) size in bytes
        uncompressed_size (int): Inflated size in bytes
        offset (int): Byte offset in GRF file (after header)
        flags (int): File flags byte
        grf_path (str): Path to the GRF file containing this entry
        priority (int): Priority of the GRF (higher = overrides lower)
    """
    path: str
    original_path: str
    compressed_size: int
    uncompressed_size: int
    offset: int
    flags: int
    grf_path: str
    priority: int = 0

    def is_encrypted(self) -> bool:
        return bool(self.flags & (GRF_FILE_FLAG_MIXCRYPT | GRF_FILE_FLAG_DES))

    def is_compressed(self) -> bool:
        return self.compressed_size != self.uncompressed_size


# ==============================================================================
# GRF FILE CLASS
# ==============================================================================

class GRFFile:
    """
    A single opened GRF file: header, file table and a locked file handle.
    """

    def __init__(self, grf_path: str, priority: int = 0):
        self.grf_path = grf_path
        self.priority = priority
        self.version = 0
        self.file_count = 0
        self._file_handle = None
        self._file_table_offset = 0
        self._entries: Dict[str, GRFFileEntry] = {}
        self._lock = threading.Lock()

    def open(self) -> bool:
        """
        Open and parse the GRF file.

        Returns:
            True if successful, False otherwise
        """
        if self._file_handle:
            self.close()

        try:
            self._file_handle = open(self.grf_path, 'rb')
        except OSError as e:
            print(f"[ERROR] Failed to open GRF {self.grf_path}: {e}")
            return False

        if not self._read_header() or not self._read_file_table():
            self.close()
            return False

        return True

    def close(self):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def list_entries(self) -> List[GRFFileEntry]:
        return list(self._entries.values())

    def read_stored(self, entry: GRFFileEntry) -> bytes:
        """
        Read the stored (still compressed) bytes of an entry.

        Raises:
            ArchiveError: the GRF is closed or the data is truncated
        """
        with self._lock:
            if not self._file_handle:
                raise ArchiveError(f"GRF is closed: {self.grf_path}")
            self._file_handle.seek(GRF_HEADER_SIZE + entry.offset)
            stored = self._file_handle.read(entry.compressed_size)

        if len(stored) != entry.compressed_size:
            raise ArchiveError(
                f"Truncated entry {entry.path}: read {len(stored)} bytes, "
                f"expected {entry.compressed_size}"
            )
        return stored

    def _read_header(self) -> bool:
        """Read and validate GRF header."""
        header = self._file_handle.read(GRF_HEADER_SIZE)
        if len(header) != GRF_HEADER_SIZE:
            print(f"[ERROR] GRF header truncated: {self.grf_path}")
            return False

        if header[:15] != GRF_SIGNATURE:
            print(f"[ERROR] Invalid GRF signature in {self.grf_path}")
            return False

        # Skip encryption key (15 bytes)
        self._file_table_offset, _seed, raw_count, self.version = struct.unpack_from('<IIII', header, 30)

        # Stored as count + 7
        self.file_count = raw_count - 7

        if self.version != GRF_VERSION_200:
            print(f"[WARN] Unsupported GRF version: 0x{self.version:X} (expected 0x{GRF_VERSION_200:X})")

        return True

    def _read_file_table(self) -> bool:
        """Read and parse the zlib-compressed file table."""
        self._file_handle.seek(GRF_HEADER_SIZE + self._file_table_offset)

        sizes = self._file_handle.read(8)
        if len(sizes) != 8:
            print(f"[ERROR] Failed to read file table header: {self.grf_path}")
            return False
        compressed_size, _uncompressed_size = struct.unpack('<II', sizes)

        compressed_table = self._file_handle.read(compressed_size)
        if len(compressed_table) != compressed_size:
            print(f"[ERROR] Failed to read complete file table")
            return False

        try:
            table_data = zlib.decompress(compressed_table)
        except zlib.error as e:
            print(f"[ERROR] Failed to decompress file table: {e}")
            return False

        self._entries = {}
        offset = 0

        while offset < len(table_data):
            name_end = table_data.find(b'\x00', offset)
            if name_end == -1:
                break

            filename_bytes = table_data[offset:name_end]
            offset = name_end + 1

            # Entry info (17 bytes)
            if offset + 17 > len(table_data):
                print(f"[WARN] File table truncated in {self.grf_path}")
                break

            stored_size, aligned_size, real_size, flags, file_offset = struct.unpack_from(
                '<IIIBI', table_data, offset
            )
            offset += 17

            # Directories have no file flag
            if not flags & GRF_FILE_FLAG_FILE:
                continue

            if len(filename_bytes) > _MAX_NAME_LENGTH or real_size > _MAX_ENTRY_SIZE:
                print(f"[WARN] Skipping suspicious entry in {self.grf_path}")
                continue

            # EUC-KR for Korean client data
            original_path = filename_bytes.decode('euc-kr', errors='replace')
            normalized_path = normalize_grf_path(original_path)
            if not normalized_path:
                continue

            self._entries[normalized_path] = GRFFileEntry(
                path=normalized_path,
                original_path=original_path,
                compressed_size=aligned_size,
                uncompressed_size=real_size,
                offset=file_offset,
                flags=flags,
                grf_path=self.grf_path,
                priority=self.priority,
            )

        return True


def normalize_grf_path(path: str) -> str:
    """GRF lookups are case-insensitive: lowercase, forward slashes."""
    return path.replace('\\', '/').lstrip('/').lower()


# ==============================================================================
# GRF VIRTUAL FILE SYSTEM
# ==============================================================================

class GRFVirtualFileSystem(ArchiveProvider):
    """
    Virtual File System for GRF archives.

    Manages multiple GRF files with priority, provides unified file access
    with caching and zlib inflation.
    """

    PROVIDER_ID = "grf"

    def __init__(self, cache_size_mb: int = 64):
        """
        Args:
            cache_size_mb: Maximum cache size in megabytes
        """
        self._grfs: List[GRFFile] = []
        self._file_index: Dict[str, GRFFileEntry] = {}
        self._keys: Tuple[str, ...] = ()

        self._cache: "OrderedDict[str, bytes]" = OrderedDict()
        self._cache_size_limit = cache_size_mb * 1024 * 1024
        self._cache_size_current = 0
        self._cache_lock = threading.Lock()

        self._stats = {
            'files_read': 0,
            'cache_hits': 0,
            'cache_misses': 0,
            'decompression_failures': 0,
        }

    @property
    def format_name(self) -> str:
        return "GRF archive"

    @property
    def provider_id(self) -> str:
        return self.PROVIDER_ID

    @classmethod
    def detect(cls, path: str) -> bool:
        """Check the "Master of Magic" signature (GRF and GPF files)."""
        if not os.path.isfile(path):
            return False
        try:
            with open(path, 'rb') as f:
                return f.read(len(GRF_SIGNATURE)) == GRF_SIGNATURE
        except OSError:
            return False

    # ==========================================================================
    # LOADING
    # ==========================================================================

    def open(self, path: str, priority: int = 0) -> bool:
        """
        Load a GRF file into the virtual file system.

        Args:
            path: Path to GRF file
            priority: Priority level (higher priority overrides lower for duplicate files)

        Returns:
            True if successful, False otherwise
        """
        if not os.path.isfile(path):
            print(f"[ERROR] GRF file not found: {path}")
            return False

        grf = GRFFile(path, priority)
        if not grf.open():
            return False

        self._grfs.append(grf)
        self._grfs.sort(key=lambda g: g.priority)
        self._rebuild_index()

        print(f"[INFO] Loaded GRF: {os.path.basename(path)} (priority {priority}, {len(grf.list_entries())} files)")
        return True

    def close(self):
        for grf in self._grfs:
            grf.close()
        self._grfs = []
        self._file_index = {}
        self._keys = ()
        self.clear_cache()

    def _rebuild_index(self):
        """Rebuild the unified index; lower priorities first, higher override."""
        index: Dict[str, GRFFileEntry] = {}
        for grf in sorted(self._grfs, key=lambda g: g.priority):
            for entry in grf.list_entries():
                current = index.get(entry.path)
                if current is None or entry.priority >= current.priority:
                    index[entry.path] = entry
        self._file_index = index
        self._keys = tuple(index.keys())

    # ==========================================================================
    # ARCHIVE PROVIDER INTERFACE
    # ==========================================================================

    def normalize_key(self, path: str) -> str:
        return normalize_grf_path(path)

    def keys(self) -> Tuple[str, ...]:
        return self._keys

    def get_entry(self, key: str) -> Optional[ArchiveEntry]:
        entry = self._file_index.get(self.normalize_key(key))
        if entry is None:
            return None
        return ArchiveEntry(
            key=entry.path,
            size=entry.uncompressed_size,
            compressed_size=entry.compressed_size,
            source=entry.grf_path,
        )

    def get_file_info(self, key: str) -> Optional[GRFFileEntry]:
        """Raw GRF metadata of an entry without reading it."""
        return self._file_index.get(self.normalize_key(key))

    def read_raw_bytes(self, key: str) -> bytes:
        """
        Read and inflate an entry, using the cache if available.

        Raises:
            EntryNotFound: the key is not in any loaded GRF
            ArchiveError: encrypted, truncated or corrupt entry
        """
        normalized_path = self.normalize_key(key)

        with self._cache_lock:
            if normalized_path in self._cache:
                self._cache.move_to_end(normalized_path)
                self._stats['cache_hits'] += 1
                return self._cache[normalized_path]
            self._stats['cache_misses'] += 1

        entry = self._file_index.get(normalized_path)
        if entry is None:
            raise EntryNotFound(normalized_path)

        if entry.is_encrypted():
            raise ArchiveError(f"Encrypted GRF entry is not supported: {normalized_path}")

        grf = self._grf_for(entry)
        data = self._inflate(entry, grf.read_stored(entry))

        with self._cache_lock:
            self._cache_file(normalized_path, data)
            self._stats['files_read'] += 1
        return data

    def _grf_for(self, entry: GRFFileEntry) -> GRFFile:
        for grf in self._grfs:
            if grf.grf_path == entry.grf_path:
                return grf
        raise ArchiveError(f"GRF no longer loaded: {entry.grf_path}")

    def _inflate(self, entry: GRFFileEntry, stored: bytes) -> bytes:
        """
        Inflate stored entry bytes.

        Tries a zlib stream, then raw deflate. Stored data whose size already
        equals the real size is returned as-is.
        """
        if not entry.is_compressed():
            return stored

        for wbits in (zlib.MAX_WBITS, -zlib.MAX_WBITS):
            try:
                data = zlib.decompress(stored, wbits)
            except zlib.error:
                continue
            if entry.uncompressed_size == 0 or len(data) == entry.uncompressed_size:
                return data

        with self._cache_lock:
            self._stats['decompression_failures'] += 1
        raise ArchiveError(f"Failed to inflate GRF entry: {entry.path}")

    # ==========================================================================
    # CACHE
    # ==========================================================================

    def _cache_file(self, path: str, data: bytes):
        """Add file to cache, evicting old entries if needed (lock held)."""
        data_size = len(data)
        if data_size > self._cache_size_limit:
            return

        while self._cache_size_current + data_size > self._cache_size_limit and self._cache:
            _oldest_path, oldest_data = self._cache.popitem(last=False)
            self._cache_size_current -= len(oldest_data)

        self._cache[path] = data
        self._cache_size_current += data_size

    def clear_cache(self):
        with self._cache_lock:
            self._cache.clear()
            self._cache_size_current = 0

    def get_statistics(self) -> dict:
        """
        Return cache and operation statistics.

        Returns:
            Dictionary with statistics
        """
        with self._cache_lock:
            stats = self._stats.copy()
            stats['cache_size_mb'] = self._cache_size_current / (1024 * 1024)
            stats['cache_entries'] = len(self._cache)
        stats['total_files'] = len(self._file_index)
        stats['loaded_grfs'] = len(self._grfs)
        return stats


ArchiveRegistry.register(GRFVirtualFileSystem)
