import pytest

from tree_manifest.components.fs import LocalFileSystem


class CountingFileSystem(LocalFileSystem):
    """Local filesystem that records every write and can fail chosen paths."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self.fail_writes: set[str] = set()
        self.fail_makedirs: set[str] = set()

    def write_bytes(self, path: str, data: bytes) -> None:
        if path in self.fail_writes:
            raise PermissionError(13, "Permission denied", path)
        self.writes.append(path)
        super().write_bytes(path, data)

    def makedirs(self, path: str) -> None:
        if path in self.fail_makedirs:
            raise PermissionError(13, "Permission denied", path)
        super().makedirs(path)


@pytest.fixture()
def counting_fs() -> CountingFileSystem:
    return CountingFileSystem()
