# ==============================================================================
# OUTPUT HASHER MODULE
# ==============================================================================
# MD5 fingerprints for exported outputs.
#
# Every dispatched entry gets one digest: the MD5 over all bytes written for
# it, in write order. The export ledger stores that digest, and the "verify"
# command recomputes it from the files on disk, so two runs of the same
# script against the same archive can be checked for byte-identical output.
#
# Usage:
#   hasher = OutputHasher()
#   digest = hasher.hash_bytes_md5(b"...")
#   digest = hasher.hash_files_md5(["out/a.pal.json", "out/a.pal"])
# ==============================================================================

import os
import hashlib
from typing import Iterable, Optional


class OutputHasher:
    """
    Hashing helper for exported files and in-memory payloads.

    Attributes:
        chunk_size (int): Read size used when hashing files from disk
    """

    # 256KB reads keep SSD throughput high without large buffers
    DEFAULT_CHUNK_SIZE = 262144

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    def hash_bytes_md5(self, data: bytes) -> str:
        """
        Compute the MD5 of an in-memory payload.

        Args:
            data: Raw bytes to hash

        Returns:
            32-character hexadecimal digest

        Example:
            >>> OutputHasher().hash_bytes_md5(b"Hello World")
            'b10a8db164e0754105b7a99be72e3fe5'
        """
        return hashlib.md5(data).hexdigest()

    def hash_files_md5(self, file_paths: Iterable[str]) -> Optional[str]:
        """
        Compute one MD5 over the concatenated contents of several files.

        Args:
            file_paths: Files in the order their bytes were written

        Returns:
            Hex digest, or None if any file does not exist
        """
        md5_hash = hashlib.md5()
        for file_path in file_paths:
            if not os.path.isfile(file_path):
                return None
            with open(file_path, 'rb') as f:
                for chunk in iter(lambda: f.read(self.chunk_size), b''):
                    md5_hash.update(chunk)
        return md5_hash.hexdigest()

    @staticmethod
    def compare_hashes(hash1: Optional[str], hash2: Optional[str]) -> bool:
        """Compare two digests case-insensitively; None never matches."""
        if hash1 is None or hash2 is None:
            return False
        return hash1.lower() == hash2.lower()
