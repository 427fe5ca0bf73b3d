import os
import stat
import tempfile
from abc import ABC, abstractmethod


class FileSystem(ABC):
    """Low-level filesystem primitives used by the manifest and mirror writers.

    Subclasses must implement existence checks, byte reads, atomic byte
    writes and recursive directory creation. Reads of a missing path raise
    :class:`FileNotFoundError`; callers treat that as "no existing file".
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if *path* exists."""
        ...

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Return the full contents of *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        ...

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        """Replace the contents of *path* with *data* atomically."""
        ...

    @abstractmethod
    def makedirs(self, path: str) -> None:
        """Create *path* and any missing parents. Existing directories are fine."""
        ...


class LocalFileSystem(FileSystem):
    """:class:`FileSystem` backed by the local disk.

    New files get the usual ``0o666 & ~umask`` mode; rewritten files keep
    their existing mode. The umask is sampled once, at construction.
    """

    def __init__(self) -> None:
        umask = os.umask(0o022)
        os.umask(umask)
        self._new_file_mode = 0o666 & ~umask

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: str, data: bytes) -> None:
        # Write to a temp file in the same directory, then rename over the target
        dir_ = os.path.dirname(os.path.abspath(path))
        fd, tmp_path = tempfile.mkstemp(suffix=".tmp", dir=dir_)
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            os.chmod(tmp_path, self._target_mode(path))
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _target_mode(self, path: str) -> int:
        try:
            return stat.S_IMODE(os.stat(path).st_mode)
        except FileNotFoundError:
            return self._new_file_mode

    def makedirs(self, path: str) -> None:
        if path:
            os.makedirs(path, exist_ok=True)
