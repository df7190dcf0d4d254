from __future__ import annotations

import os
from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Iterable


class OutputFormat(StrEnum):
    """Rendering mode for emitted documents.

    Exactly one format is active for a run.
    """

    DEFAULT = auto()
    XML = auto()
    MARKDOWN = auto()
    JSON = auto()


# Markdown fence language, keyed by lowercase extension.
EXT2LANG: dict[str, str] = {
    ".c": "c",
    ".cpp": "cpp",
    ".css": "css",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".py": "python",
    ".rb": "ruby",
    ".sh": "bash",
    ".ts": "typescript",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
}

DEFAULT_IGNORES: tuple[str, ...] = (".env", ".env.*", ".env*", ".gitignore")

BINARY_EXTENSIONS: frozenset[str] = frozenset({
    # images
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".bmp",
    ".ico",
    ".webp",
    ".tif",
    ".tiff",
    ".psd",
    ".heic",
    # audio
    ".mp3",
    ".wav",
    ".flac",
    ".ogg",
    ".aac",
    ".m4a",
    # video
    ".mp4",
    ".mov",
    ".avi",
    ".mkv",
    ".webm",
    ".wmv",
    # archives
    ".zip",
    ".tar",
    ".gz",
    ".tgz",
    ".bz2",
    ".xz",
    ".7z",
    ".rar",
    ".jar",
    ".whl",
    # documents
    ".pdf",
    # fonts
    ".ttf",
    ".otf",
    ".woff",
    ".woff2",
    ".eot",
    # compiled objects
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".o",
    ".a",
    ".lib",
    ".obj",
    ".class",
    ".pyc",
    ".pyo",
    ".wasm",
    ".bin",
    # databases
    ".db",
    ".sqlite",
    ".sqlite3",
    ".mdb",
})

SNIFF_BYTES = 512
NON_TEXT_RATIO = 0.30


def normalize_extension(ext: str) -> str:
    """Ensure an extension carries a leading dot (``ts`` -> ``.ts``).

    Args:
        ext (str): the raw extension as given by the user

    Returns:
        str: the extension with a leading dot
    """
    ext = ext.strip()
    return ext if ext.startswith(".") else f".{ext}"


class ProjectMatcher(BaseModel):
    """Rooted `.gitignore` matcher built once from the working directory.

    Attributes:
        spec: compiled .gitignore patterns.
        root: directory the patterns are relative to.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    spec: GitIgnoreSpec = Field(..., description="Compiled .gitignore patterns")
    root: Path = Field(..., description="Directory holding the .gitignore")

    def matches(self, path: str | Path, *, is_dir: bool = False) -> bool:
        """Check whether `path` is ignored by the project `.gitignore`.

        Paths outside `root` never match. Directories are tested with a
        trailing slash so that directory-only patterns (``build/``) apply.

        Args:
            path (str | Path): the path to test, absolute or relative to the process cwd
            is_dir (bool): whether `path` is a directory

        Returns:
            bool: True if the path is ignored
        """
        rel = os.path.relpath(os.path.abspath(path), self.root)
        if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return False
        rel = rel.replace(os.sep, "/")
        if is_dir:
            rel += "/"
        return self.spec.match_file(rel)


class RuleSet(BaseModel):
    """Ignore rules active for one directory level of a walk.

    Instances are immutable: descending into a directory with its own
    `.gitignore` produces a new RuleSet through `extended`, so rules added for
    one branch never leak into a sibling.

    Attributes:
        gitignore_rules: accumulated `.gitignore` lines, outermost first.
        custom_patterns: user supplied basename globs.
        default_denylist: basename globs that are always excluded.
        ignore_files_only: custom/default patterns never prune directories.
        ignore_gitignore: disable every `.gitignore` source.
        project_matcher: rooted gitignore matcher built from the working directory.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    gitignore_rules: tuple[str, ...] = Field(default=(), description="Accumulated .gitignore rules")
    custom_patterns: tuple[str, ...] = Field(default=(), description="User supplied ignore globs")
    default_denylist: tuple[str, ...] = Field(default=DEFAULT_IGNORES, description="Always ignored globs")
    ignore_files_only: bool = Field(default=False, description="Custom patterns only exclude files")
    ignore_gitignore: bool = Field(default=False, description="Disable .gitignore handling")
    project_matcher: ProjectMatcher | None = Field(default=None, description="Rooted .gitignore matcher")

    def extended(self, rules: Iterable[str]) -> RuleSet:
        """Return a copy with `rules` appended to the gitignore rules.

        Args:
            rules (Iterable[str]): the rules to append

        Returns:
            RuleSet: self when there is nothing to add, a new RuleSet otherwise
        """
        extra = tuple(rules)
        if not extra:
            return self
        return self.model_copy(update={"gitignore_rules": self.gitignore_rules + extra})

    @property
    def patterns(self) -> tuple[str, ...]:
        """Default denylist followed by custom patterns."""
        return self.default_denylist + self.custom_patterns


class WalkLimits(BaseModel):
    """Run-wide ceilings, enforced across every root path."""

    model_config = ConfigDict(frozen=True)

    max_files: int | None = Field(default=None, ge=0, description="Maximum number of files to emit")
    max_size: int | None = Field(default=None, ge=0, description="Maximum file size in bytes")


class TraversalConfig(BaseModel):
    """Per-run traversal options."""

    model_config = ConfigDict(frozen=True)

    extensions: tuple[str, ...] = Field(default=(), description="Kept file suffixes, with leading dot")
    include_hidden: bool = Field(default=False, description="Include dot files and dot directories")
    relative: bool = Field(default=False, description="Display paths relative to cwd")
    quiet: bool = Field(default=False, description="Suppress warnings")
    cwd: Path = Field(default_factory=Path.cwd, description="Base for relative display paths")

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: Iterable[str]) -> tuple[str, ...]:
        return tuple(normalize_extension(e) for e in value if e and e.strip())


class DocumentRecord(BaseModel):
    """One document as handed to the renderers."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1, description="1-based document index within the run")
    source: str = Field(..., description="Display path")
    content: str = Field(..., description="Raw file content")
    line_numbers: bool = Field(default=False, description="Prefix each line with its number")
