"""files2prompt: concatenate files and directories into one prompt for an LLM.

Takes one or more paths to files or directories and outputs every file,
recursively, each one preceded with its filename.

Default format::

    path/to/file.py
    ---
    Contents of file.py goes here

    ---

With ``--cxml`` (XML for long-context models)::

    <documents>
    <document index="1">
    <source>path/to/file1.txt</source>
    <document_content>
    Contents of file1.txt
    </document_content>
    </document>
    ...
    </documents>

With ``--markdown``::

    path/to/file1.py
    ```python
    Contents of file1.py
    ```

With ``--json``, a JSON array of ``{"index", "source", "content"}`` objects,
one per line.

Usage
-----
    files2prompt src tests -e py --cxml -o prompt.xml
    git ls-files -z | files2prompt -0 --markdown
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from files2prompt import __version__
from files2prompt.config import OutputFormat, RuleSet, TraversalConfig, WalkLimits
from files2prompt.exceptions import OutputClosedError, PathNotFoundError
from files2prompt.file_manipulation import LocalFileSystem, parse_size, read_gitignore, read_paths_from_stdin
from files2prompt.ignore_rules import build_project_matcher
from files2prompt.logging import logger, setup_logging
from files2prompt.output_construction import DocumentEmitter
from files2prompt.settings import Settings
from files2prompt.walker import RunState, process_path

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import TextIO

    from files2prompt.file_manipulation import FileSystem

EXIT_OK = 0
EXIT_MISSING_PATH = 1
EXIT_NOTHING_PROCESSED = 2


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into `Settings`.

    Args:
        argv (Sequence[str] | None): arguments without the program name, `sys.argv[1:]` by default

    Returns:
        Settings: the validated settings of the invocation
    """
    p = argparse.ArgumentParser(
        prog="files2prompt",
        description="Output every file under the given paths, each one preceded with its filename.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("paths", nargs="*", help="Paths to files or directories.")
    p.add_argument(
        "-e",
        "--extension",
        action="append",
        default=[],
        help="Filter by extension (repeatable, e.g. -e py -e js).",
    )
    p.add_argument("--include-hidden", action="store_true", help="Include files and folders starting with '.'.")
    p.add_argument("--ignore-files-only", action="store_true", help="--ignore option only ignores files.")
    p.add_argument("--ignore-gitignore", action="store_true", help="Ignore .gitignore files and include all files.")
    p.add_argument(
        "-i",
        "--ignore",
        action="append",
        default=[],
        help="Pattern to ignore (supports * and ?; repeatable).",
    )
    p.add_argument("-o", "--output", type=str, default="", help="Output to file instead of stdout.")

    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument(
        "-c",
        "--cxml",
        dest="format",
        action="store_const",
        const=OutputFormat.XML,
        help="Output in XML format for long-context models.",
    )
    fmt.add_argument(
        "-m",
        "--markdown",
        dest="format",
        action="store_const",
        const=OutputFormat.MARKDOWN,
        help="Output Markdown with fenced code blocks.",
    )
    fmt.add_argument(
        "-j",
        "--json",
        dest="format",
        action="store_const",
        const=OutputFormat.JSON,
        help="Output a JSON array of {index, source, content}.",
    )
    p.set_defaults(format=OutputFormat.DEFAULT)

    p.add_argument("-n", "--line-numbers", action="store_true", help="Add line numbers to output.")
    p.add_argument("-0", "--null", action="store_true", help="Use NUL as separator when reading from stdin.")
    p.add_argument("--relative", action="store_true", help="Output paths relative to the current directory.")
    p.add_argument("--quiet", action="store_true", help="Suppress warnings.")
    p.add_argument("--max-files", type=_non_negative_int, default=None, help="Maximum number of files to process.")
    p.add_argument(
        "--max-size",
        type=parse_size,
        default=None,
        help="Maximum file size to include (bytes; supports k/m/g suffix).",
    )
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    args = p.parse_args(argv)
    return Settings(**vars(args))


def make_writer(stream: TextIO) -> Callable[[str], None]:
    """Build the line sink writing to `stream`.

    Args:
        stream (TextIO): the output destination

    Returns:
        Callable[[str], None]: a callable writing one line per call

    Raises:
        OutputClosedError: from the returned callable, once the destination is closed
    """

    def writer(line: str) -> None:
        try:
            stream.write(line + "\n")
        except BrokenPipeError as e:
            raise OutputClosedError from e

    return writer


def run(
    settings: Settings,
    writer: Callable[[str], None],
    *,
    cwd: Path | None = None,
    fs: FileSystem | None = None,
    state: RunState | None = None,
) -> int:
    """Drain every root path of `settings` through the emitter.

    Args:
        settings (Settings): the invocation settings; `paths` must be non-empty
        writer (Callable[[str], None]): the line sink
        cwd (Path | None): the working directory, `Path.cwd()` by default
        fs (FileSystem | None): filesystem to read from, the local disk by default
        state (RunState | None): run counters; reset before the run starts

    Raises:
        PathNotFoundError: if a root path does not exist (before any output)

    Returns:
        int: the number of files emitted
    """
    fs = fs or LocalFileSystem()
    cwd = cwd or Path.cwd()
    if state is None:
        state = RunState()
    state.reset()

    for p in settings.paths:
        if not fs.exists(p):
            raise PathNotFoundError(path=p)

    config = TraversalConfig(
        extensions=settings.extension,
        include_hidden=settings.include_hidden,
        relative=settings.relative,
        quiet=settings.quiet,
        cwd=cwd,
    )
    limits = WalkLimits(max_files=settings.max_files, max_size=settings.max_size)
    base_rules = RuleSet(
        custom_patterns=tuple(settings.ignore),
        ignore_files_only=settings.ignore_files_only,
        ignore_gitignore=settings.ignore_gitignore,
        project_matcher=None if settings.ignore_gitignore else build_project_matcher(cwd, fs),
    )
    emitter = DocumentEmitter(writer, settings.format, state, line_numbers=settings.line_numbers)

    emitter.begin()
    for p in settings.paths:
        if state.limit_reached(limits):
            break
        rules = base_rules
        if not settings.ignore_gitignore:
            rules = rules.extended(read_gitignore(os.path.dirname(p) or os.curdir, fs))
        process_path(p, config, rules, limits, state, emitter, fs)
    emitter.end()
    return state.processed


def _silence_stdout() -> None:
    # Further writes to a closed pipe (including the interpreter's final flush) go to devnull.
    try:
        fileno = sys.stdout.fileno()
    except (OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fileno)
    finally:
        os.close(devnull)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the `files2prompt` command.

    Args:
        argv (Sequence[str] | None): arguments without the program name

    Returns:
        int: 0 on success, 1 when a path is missing, 2 when no file was processed
    """
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    paths = [*settings.paths, *read_paths_from_stdin(use_null=settings.null)]
    settings = settings.model_copy(update={"paths": paths or [os.curdir]})

    out_path = Path(settings.output) if settings.output else None
    if out_path is not None:
        for p in settings.paths:
            if not os.path.exists(p):
                print(f"Error: Path does not exist: {p}", file=sys.stderr)
                return EXIT_MISSING_PATH
        out_path.parent.mkdir(parents=True, exist_ok=True)

    stream = out_path.open("w", encoding="utf-8") if out_path is not None else sys.stdout
    try:
        processed = run(settings, make_writer(stream))
        stream.flush()
    except PathNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_MISSING_PATH
    except (OutputClosedError, BrokenPipeError):
        if stream is sys.stdout:
            _silence_stdout()
        logger.info("output_closed", output=settings.output or "<stdout>")
        return EXIT_OK
    finally:
        if stream is not sys.stdout:
            stream.close()

    if out_path is not None and not settings.quiet:
        logger.info("output_written", output=str(out_path), format=str(settings.format), files=processed)
    if processed == 0:
        if not settings.quiet:
            print("No files were processed. Check your paths, filters, and ignore settings.", file=sys.stderr)
        return EXIT_NOTHING_PROCESSED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
