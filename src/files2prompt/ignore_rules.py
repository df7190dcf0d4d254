"""Ignore-rule engine: decides whether a path is excluded from the run.

Three sources are combined, first match wins:

1. the project `.gitignore` of the working directory (rooted gitignore
   semantics through pathspec), when present and not disabled;
2. `.gitignore` rules accumulated down the walk, matched against the basename;
3. the default denylist plus user supplied patterns, matched against the basename.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec

from files2prompt.config import ProjectMatcher
from files2prompt.file_manipulation import LocalFileSystem, fnmatch, read_gitignore

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from files2prompt.config import RuleSet
    from files2prompt.file_manipulation import FileSystem


def should_ignore(path: str, rules: Sequence[str], *, is_dir: bool = False) -> bool:
    """Check a path against basename-scoped gitignore rules.

    Directories are also tested as ``name/`` so that rules such as
    ``build/`` apply to them.

    Args:
        path (str): the path to test
        rules (Sequence[str]): glob rules
        is_dir (bool): whether the path is a directory

    Returns:
        bool: True if any rule matches
    """
    name = os.path.basename(path)
    for rule in rules:
        if fnmatch(name, rule) or (is_dir and fnmatch(name + "/", rule)):
            return True
    return False


def matches_patterns(path: str, patterns: Sequence[str]) -> bool:
    """Check the basename of a path against plain glob patterns (no ``/`` suffix)."""
    name = os.path.basename(path)
    return any(fnmatch(name, p) for p in patterns)


def is_excluded(
    path: str,
    rule_set: RuleSet,
    *,
    is_dir: bool = False,
    use_accumulated: bool | None = None,
) -> bool:
    """Decide whether a path is excluded by any active rule source.

    Args:
        path (str): the path to test
        rule_set (RuleSet): the rules active at this level
        is_dir (bool): whether the path is a directory
        use_accumulated (bool | None): evaluate the accumulated gitignore rules.
            Defaults to True only when there is no project matcher; explicitly
            named files pass True to evaluate both.

    Returns:
        bool: True if the path must not be read or descended into
    """
    matcher = None if rule_set.ignore_gitignore else rule_set.project_matcher
    if matcher is not None and matcher.matches(path, is_dir=is_dir):
        return True
    if use_accumulated is None:
        use_accumulated = matcher is None
    if use_accumulated and rule_set.gitignore_rules and should_ignore(path, rule_set.gitignore_rules, is_dir=is_dir):
        return True
    if is_dir and rule_set.ignore_files_only:
        return False
    return matches_patterns(path, rule_set.patterns)


def build_project_matcher(cwd: str | Path, fs: FileSystem | None = None) -> ProjectMatcher | None:
    """Compile the `.gitignore` found in `cwd`, if any.

    Args:
        cwd (str | Path): the invocation's working directory
        fs (FileSystem | None): filesystem to read from, the local disk by default

    Returns:
        ProjectMatcher | None: the matcher, or None when `cwd` holds no `.gitignore`
    """
    fs = fs or LocalFileSystem()
    root = os.path.abspath(cwd)
    if not fs.exists(os.path.join(root, ".gitignore")):
        return None
    spec = GitIgnoreSpec.from_lines(read_gitignore(root, fs))
    return ProjectMatcher(spec=spec, root=root)
