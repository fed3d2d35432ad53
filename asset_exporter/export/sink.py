# ==============================================================================
# OUTPUT SINK MODULE
# ==============================================================================
# Writes export outputs below one root directory.
#
# Relative output paths come from archive keys ("data/sprite/a.spr.json").
# The sink creates intermediate directories, refuses paths that would leave
# the root ("../x", absolute paths), and raises OSError when a write fails.
# ==============================================================================

import os
import threading
from typing import List, Union


class OutputSink:
    """
    Destination directory for exported files.

    Attributes:
        root (str): Absolute output directory
        written (List[str]): Relative paths written so far, in write order
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.written: List[str] = []
        self._lock = threading.Lock()

    def resolve(self, relative_path: str) -> str:
        """
        Absolute destination of a relative output path.

        Raises:
            OSError: the path escapes the output root
        """
        cleaned = relative_path.replace('\\', '/').lstrip('/')
        target = os.path.abspath(os.path.join(self.root, *cleaned.split('/')))
        if target != self.root and not target.startswith(self.root + os.sep):
            raise OSError(f"Output path escapes the output directory: {relative_path}")
        if target == self.root:
            raise OSError(f"Output path is empty: {relative_path!r}")
        return target

    def write(self, relative_path: str, content: Union[bytes, str], encoding: str = 'utf-8') -> str:
        """
        Write one output file, replacing any previous one.

        Args:
            relative_path: Path below the root, forward slashes
            content: Bytes, or text encoded with `encoding`
            encoding: Encoding for text content

        Returns:
            The absolute path written

        Raises:
            OSError: the path escapes the root or the write failed
        """
        target = self.resolve(relative_path)
        if isinstance(content, str):
            content = content.encode(encoding)

        directory = os.path.dirname(target)
        os.makedirs(directory, exist_ok=True)

        with open(target, 'wb') as f:
            f.write(content)

        with self._lock:
            self.written.append(relative_path)
        return target
