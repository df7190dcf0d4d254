from __future__ import annotations

import os
import re
import sys
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from files2prompt.config import BINARY_EXTENSIONS, NON_TEXT_RATIO, SNIFF_BYTES
from files2prompt.exceptions import InvalidSizeError

if TYPE_CHECKING:
    from typing import TextIO

_TEXT_BYTES = frozenset({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x7F)))
_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([kKmMgG]?)\s*$")
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}


class FileSystem(Protocol):
    """Filesystem capabilities used by the walker.

    Paths are plain strings, joined with `os.path.join` by callers.
    """

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def list_dir(self, path: str) -> list[tuple[str, bool]]:
        """Return `(name, is_dir)` pairs in enumeration order."""
        ...

    def size(self, path: str) -> int: ...

    def read_head(self, path: str, nbytes: int) -> bytes: ...

    def read_text(self, path: str) -> str:
        """Read the whole file as strict UTF-8."""
        ...


class LocalFileSystem:
    """`FileSystem` backed by the real disk."""

    def exists(self, path: str) -> bool:  # noqa: PLR6301
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:  # noqa: PLR6301
        return os.path.isdir(path)

    def list_dir(self, path: str) -> list[tuple[str, bool]]:  # noqa: PLR6301
        with os.scandir(path) as it:
            return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in it]

    def size(self, path: str) -> int:  # noqa: PLR6301
        return os.stat(path).st_size

    def read_head(self, path: str, nbytes: int) -> bytes:  # noqa: PLR6301
        with open(path, "rb") as f:
            return f.read(nbytes)

    def read_text(self, path: str) -> str:  # noqa: PLR6301
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()


@lru_cache(maxsize=1024)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def fnmatch(name: str, pattern: str) -> bool:
    """Match a basename against a glob pattern.

    `*` matches any run of characters (including none), `?` matches exactly
    one character, everything else is literal. Matching is case-sensitive
    and covers the whole name.

    Args:
        name (str): the basename to test
        pattern (str): the glob pattern

    Returns:
        bool: True if the whole name matches the pattern
    """
    return _compile_glob(pattern).fullmatch(name) is not None


def read_gitignore(directory: str, fs: FileSystem | None = None) -> list[str]:
    """Read the `.gitignore` of a directory.

    Args:
        directory (str): the directory whose `.gitignore` should be read
        fs (FileSystem | None): filesystem to read from, the local disk by default

    Returns:
        list[str]: trimmed rules in file order, without blank lines and comments.
            Empty when the file is missing or unreadable.
    """
    fs = fs or LocalFileSystem()
    path = os.path.join(directory, ".gitignore")
    if not fs.exists(path):
        return []
    try:
        content = fs.read_text(path)
    except (OSError, UnicodeDecodeError):
        return []
    rules: list[str] = []
    for line in content.split("\n"):
        line = line.strip()  # noqa: PLW2901
        if line and not line.startswith("#"):
            rules.append(line)
    return rules


def looks_binary(sample: bytes) -> bool:
    """Heuristic: detect if a content sample looks binary.

    Args:
        sample (bytes): the first bytes of a file

    Returns:
        bool: True if the sample holds a NUL byte or more than 30% non-text bytes
    """
    if not sample:
        return False
    if b"\x00" in sample:
        return True
    nontext = sum(b not in _TEXT_BYTES for b in sample)
    return nontext / len(sample) > NON_TEXT_RATIO


def is_binary(path: str, fs: FileSystem | None = None) -> bool:
    """Check if a file is binary.

    Known binary extensions short-circuit without opening the file. Other
    files are classified from their first 512 bytes. A file that cannot be
    opened is not reported as binary; the subsequent read surfaces the error.

    Args:
        path (str): the file path to check
        fs (FileSystem | None): filesystem to read from, the local disk by default

    Returns:
        bool: True if the file should be treated as binary
    """
    if Path(path).suffix.lower() in BINARY_EXTENSIONS:
        return True
    fs = fs or LocalFileSystem()
    try:
        sample = fs.read_head(path, SNIFF_BYTES)
    except OSError:
        return False
    return looks_binary(sample)


def parse_size(value: str) -> int:
    """Parse a size such as ``512``, ``10k``, ``2M`` or ``1g`` into bytes.

    Args:
        value (str): the size string

    Raises:
        InvalidSizeError: if the value is not an integer with an optional k/m/g suffix

    Returns:
        int: the size in bytes
    """
    m = _SIZE_PATTERN.match(value)
    if not m:
        raise InvalidSizeError(value=value)
    return int(m.group(1)) * _SIZE_UNITS[m.group(2).lower()]


def read_paths_from_stdin(*, use_null: bool, stream: TextIO | None = None) -> list[str]:
    """Read a list of paths from standard input.

    Args:
        use_null (bool): paths are NUL separated instead of whitespace separated
        stream (TextIO | None): the stream to read, `sys.stdin` by default

    Returns:
        list[str]: the paths read, empty when the stream is an interactive terminal
    """
    stream = stream if stream is not None else sys.stdin
    if stream is None or stream.isatty():
        return []
    data = stream.read()
    if use_null:
        return [p for p in data.split("\0") if p.strip()]
    return data.split()


def display_path(path: str, *, relative: bool, cwd: Path) -> str:
    """Return the path to show in the output.

    Args:
        path (str): the path as reached by the walk
        relative (bool): show it relative to `cwd`
        cwd (Path): base directory for relative paths

    Returns:
        str: the display path
    """
    if not relative:
        return path
    try:
        return os.path.relpath(path, cwd)
    except ValueError:
        return path
