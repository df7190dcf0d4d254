"""Directory walker: turns root paths into emitted documents.

Within one directory, files are emitted in sorted filename order, then
subdirectories are visited in enumeration order. Every ceiling and counter
lives in a `RunState` threaded through the calls.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from files2prompt.exceptions import PathNotFoundError
from files2prompt.file_manipulation import LocalFileSystem, display_path, is_binary, read_gitignore
from files2prompt.ignore_rules import is_excluded
from files2prompt.logging import logger

if TYPE_CHECKING:
    from files2prompt.config import RuleSet, TraversalConfig, WalkLimits
    from files2prompt.file_manipulation import FileSystem
    from files2prompt.output_construction import DocumentEmitter


class RunState(BaseModel):
    """Counters shared by every root path of a run.

    Attributes:
        next_index: index of the next emitted document (1-based).
        processed: number of files emitted so far.
    """

    next_index: int = Field(default=1, ge=1, description="Next document index")
    processed: int = Field(default=0, ge=0, description="Files emitted so far")

    def reset(self) -> None:
        """Start a new run: indices restart at 1 and the processed count at 0."""
        self.next_index = 1
        self.processed = 0

    def limit_reached(self, limits: WalkLimits) -> bool:
        """Check whether the max-files ceiling has been reached."""
        return limits.max_files is not None and self.processed >= limits.max_files


def _warn(config: TraversalConfig, event: str, **kw: object) -> None:
    if not config.quiet:
        logger.warning(event, **kw)


def emit_file(
    path: str,
    config: TraversalConfig,
    limits: WalkLimits,
    state: RunState,
    emitter: DocumentEmitter,
    fs: FileSystem,
) -> bool:
    """Run the binary, size and read checks on one file and emit it.

    Args:
        path (str): the file to emit
        config (TraversalConfig): traversal options
        limits (WalkLimits): run ceilings
        state (RunState): run counters
        emitter (DocumentEmitter): the document sink
        fs (FileSystem): the filesystem to read from

    Returns:
        bool: True if the file was emitted
    """
    if is_binary(path, fs):
        return False
    if limits.max_size is not None:
        try:
            size = fs.size(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            _warn(config, "file_skipped", path=path, reason="stat_failed", error=str(e))
            return False
        if size > limits.max_size:
            _warn(config, "file_skipped", path=path, reason="too_large", size=size, max_size=limits.max_size)
            return False
    try:
        content = fs.read_text(path)
    except FileNotFoundError:
        return False
    except UnicodeDecodeError:
        _warn(config, "file_skipped", path=path, reason="encoding_error")
        return False
    except OSError as e:
        _warn(config, "file_skipped", path=path, reason="read_failed", error=str(e))
        return False
    emitter.emit(display_path(path, relative=config.relative, cwd=config.cwd), content)
    state.processed += 1
    return True


def walk_dir(
    root: str,
    config: TraversalConfig,
    rules: RuleSet,
    limits: WalkLimits,
    state: RunState,
    emitter: DocumentEmitter,
    fs: FileSystem | None = None,
) -> None:
    """Recursively emit the qualifying files under `root`.

    Args:
        root (str): the directory to walk
        config (TraversalConfig): extension filter, hidden policy, display options
        rules (RuleSet): ignore rules inherited from the parent level
        limits (WalkLimits): run ceilings
        state (RunState): run counters
        emitter (DocumentEmitter): the document sink
        fs (FileSystem | None): filesystem to walk, the local disk by default
    """
    fs = fs or LocalFileSystem()
    try:
        entries = fs.list_dir(root)
    except FileNotFoundError:
        return
    except OSError as e:
        _warn(config, "dir_skipped", path=root, reason="list_failed", error=str(e))
        return
    if not config.include_hidden:
        entries = [(name, is_dir) for name, is_dir in entries if not name.startswith(".")]

    subdirs = [os.path.join(root, name) for name, is_dir in entries if is_dir]
    files = [name for name, is_dir in entries if not is_dir]

    if rules.project_matcher is None and not rules.ignore_gitignore:
        rules = rules.extended(read_gitignore(root, fs))

    subdirs = [d for d in subdirs if not is_excluded(d, rules, is_dir=True)]
    files = [f for f in files if not is_excluded(os.path.join(root, f), rules)]

    if config.extensions:
        files = [f for f in files if f.endswith(config.extensions)]

    for name in sorted(files):
        if state.limit_reached(limits):
            return
        emit_file(os.path.join(root, name), config, limits, state, emitter, fs)

    for subdir in subdirs:
        if state.limit_reached(limits):
            return
        walk_dir(subdir, config, rules, limits, state, emitter, fs)


def process_path(
    path: str,
    config: TraversalConfig,
    rules: RuleSet,
    limits: WalkLimits,
    state: RunState,
    emitter: DocumentEmitter,
    fs: FileSystem | None = None,
) -> None:
    """Emit a root path: a single file, or every qualifying file below a directory.

    Explicitly named files skip the hidden and extension filters but still
    go through every ignore source, the max-files ceiling, binary detection
    and the size limit.

    Args:
        path (str): the root path given to the run
        config (TraversalConfig): traversal options
        rules (RuleSet): ignore rules for this root
        limits (WalkLimits): run ceilings
        state (RunState): run counters
        emitter (DocumentEmitter): the document sink
        fs (FileSystem | None): filesystem to read from, the local disk by default

    Raises:
        PathNotFoundError: if `path` does not exist
    """
    fs = fs or LocalFileSystem()
    if not fs.exists(path):
        raise PathNotFoundError(path=path)
    if state.limit_reached(limits):
        return
    if fs.is_dir(path):
        walk_dir(path, config, rules, limits, state, emitter, fs)
        return
    if is_excluded(path, rules, use_accumulated=not rules.ignore_gitignore):
        return
    emit_file(path, config, limits, state, emitter, fs)
