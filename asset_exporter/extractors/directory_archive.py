# ==============================================================================
# DIRECTORY ARCHIVE MODULE
# ==============================================================================
# Archive provider over loose files below a root directory, such as an
# already-extracted data/ folder. Keys are paths relative to the root, with
# forward slashes, in sorted walk order.
#
# Several roots can be opened; a higher-priority root overrides files with
# the same key from a lower one.
# ==============================================================================

import os
from typing import Dict, Optional, Tuple

from .base_archive import ArchiveProvider, ArchiveEntry, ArchiveRegistry
from ..core.errors import ArchiveError, EntryNotFound


class DirectoryArchive(ArchiveProvider):
    """Read-only file system over one or more directories."""

    PROVIDER_ID = "dir"

    def __init__(self, **_options):
        # key -> (absolute path, priority)
        self._files: Dict[str, Tuple[str, int]] = {}
        self._keys: Tuple[str, ...] = ()
        self._roots = []

    @property
    def format_name(self) -> str:
        return "Directory"

    @property
    def provider_id(self) -> str:
        return self.PROVIDER_ID

    @classmethod
    def detect(cls, path: str) -> bool:
        return os.path.isdir(path)

    def open(self, path: str, priority: int = 0) -> bool:
        if not os.path.isdir(path):
            print(f"[ERROR] Directory not found: {path}")
            return False

        root = os.path.abspath(path)
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                full_path = os.path.join(dirpath, filename)
                key = self.normalize_key(os.path.relpath(full_path, root))
                current = self._files.get(key)
                if current is None or priority >= current[1]:
                    self._files[key] = (full_path, priority)

        self._roots.append(root)
        self._keys = tuple(sorted(self._files.keys()))
        return True

    def close(self):
        self._files = {}
        self._keys = ()
        self._roots = []

    def normalize_key(self, path: str) -> str:
        return path.replace(os.sep, '/').replace('\\', '/').lstrip('/')

    def keys(self) -> Tuple[str, ...]:
        return self._keys

    def get_entry(self, key: str) -> Optional[ArchiveEntry]:
        found = self._files.get(self.normalize_key(key))
        if found is None:
            return None
        full_path, _priority = found
        return ArchiveEntry(
            key=self.normalize_key(key),
            size=os.path.getsize(full_path),
            source=full_path,
        )

    def read_raw_bytes(self, key: str) -> bytes:
        normalized = self.normalize_key(key)
        found = self._files.get(normalized)
        if found is None:
            raise EntryNotFound(normalized)
        try:
            with open(found[0], 'rb') as f:
                return f.read()
        except OSError as e:
            raise ArchiveError(f"Failed to read {normalized}: {e}") from e


ArchiveRegistry.register(DirectoryArchive)
