from __future__ import annotations

import posixpath

import pytest


class MemoryFileSystem:
    """In-memory `FileSystem` recording every content read.

    Directory listings keep insertion order, like a real directory enumeration.
    """

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.children: dict[str, list[tuple[str, bool]]] = {}
        self.vanished: set[str] = set()
        self.listing_errors: dict[str, OSError] = {}
        self.reads: list[str] = []

    def _register(self, path: str, *, is_dir: bool) -> None:
        parent = posixpath.dirname(path)
        if parent == path:
            return
        kids = self.children.setdefault(parent, [])
        entry = (posixpath.basename(path), is_dir)
        if entry not in kids:
            kids.append(entry)
        self._register(parent, is_dir=True)

    def add_dir(self, path: str) -> MemoryFileSystem:
        self.children.setdefault(path, [])
        self._register(path, is_dir=True)
        return self

    def add_file(self, path: str, content: str | bytes = "") -> MemoryFileSystem:
        self.files[path] = content.encode("utf-8") if isinstance(content, str) else content
        self._register(path, is_dir=False)
        return self

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.children

    def is_dir(self, path: str) -> bool:
        return path in self.children

    def list_dir(self, path: str) -> list[tuple[str, bool]]:
        if path in self.listing_errors:
            raise self.listing_errors[path]
        return list(self.children[path])

    def size(self, path: str) -> int:
        if path in self.vanished:
            raise FileNotFoundError(path)
        return len(self.files[path])

    def read_head(self, path: str, nbytes: int) -> bytes:
        self.reads.append(path)
        if path in self.vanished:
            raise FileNotFoundError(path)
        return self.files[path][:nbytes]

    def read_text(self, path: str) -> str:
        self.reads.append(path)
        if path in self.vanished:
            raise FileNotFoundError(path)
        return self.files[path].decode("utf-8")


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()
