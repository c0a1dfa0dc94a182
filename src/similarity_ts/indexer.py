# similarity-ts - Find duplicated TypeScript code by structural comparison
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
File discovery - finds the source files to analyze.

Explicit files are taken as given (when their extension matches);
directories are walked honouring nested .gitignore files, the default
excludes and the user's exclude globs.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pathspec

from .errors import InputError
from .models import Diagnostic, DiagnosticKind


logger = logging.getLogger(__name__)

# Directories never worth descending into
DEFAULT_EXCLUDES = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    "dist",
    "build",
    "coverage",
    ".next",
    ".nuxt",
    ".turbo",
    ".cache",
}


# Ignore files in effect for a directory: (directory, spec), outermost first
IgnoreRules = List[Tuple[Path, pathspec.PathSpec]]


def _load_gitignore(directory: Path) -> Optional[pathspec.PathSpec]:
    gitignore = directory / ".gitignore"
    if not gitignore.is_file():
        return None
    try:
        lines = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        logger.warning(f"Could not read {gitignore}: {e}")
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _find_repository_root(directory: Path) -> Optional[Path]:
    for candidate in (directory, *directory.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


def _inherited_gitignores(root: Path) -> IgnoreRules:
    """
    Ignore files of the enclosing repository that sit above root.

    Only directories between the repository root (the one holding .git) and
    root are consulted; outside a repository nothing is inherited.
    """
    repository = _find_repository_root(root)
    if repository is None or repository == root:
        return []

    rules: IgnoreRules = []
    for directory in root.parents:
        spec = _load_gitignore(directory)
        if spec is not None:
            rules.append((directory, spec))
        if directory == repository:
            break
    rules.reverse()
    return rules


def _is_ignored(path: Path, rules: IgnoreRules, is_dir: bool = False) -> bool:
    """Match path against every ignore file, relative to that file's directory."""
    for base, spec in rules:
        rel = path.relative_to(base).as_posix()
        if spec.match_file(rel + "/" if is_dir else rel):
            return True
    return False


def _matches_any(path: Path, patterns: Sequence[str]) -> bool:
    posix = path.as_posix()
    return any(
        fnmatch.fnmatch(posix, pattern) or fnmatch.fnmatch(path.name, pattern)
        for pattern in patterns
    )


def _has_extension(path: Path, extensions: Set[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def _walk_directory(
    root: Path,
    extensions: Set[str],
    exclude_patterns: Sequence[str],
) -> List[Path]:
    """
    Walk one directory tree, pruning ignored directories early.

    Every directory's .gitignore applies to the paths below it, on top of the
    ones inherited from its parents.
    """
    absolute_root = root.resolve()
    rules_by_dir: Dict[Path, IgnoreRules] = {Path("."): _inherited_gitignores(absolute_root)}
    files = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)
        absolute_dir = absolute_root / rel_dir

        rules = rules_by_dir.pop(rel_dir)
        own = _load_gitignore(absolute_dir)
        if own is not None:
            rules = rules + [(absolute_dir, own)]

        kept = []
        for name in sorted(dirnames):
            rel = rel_dir / name
            if name in DEFAULT_EXCLUDES:
                continue
            if _is_ignored(absolute_dir / name, rules, is_dir=True):
                continue
            if _matches_any(rel, exclude_patterns) or _matches_any(current / name, exclude_patterns):
                continue
            kept.append(name)
            rules_by_dir[rel] = rules
        dirnames[:] = kept

        for name in filenames:
            path = current / name
            rel = rel_dir / name
            if not _has_extension(path, extensions):
                continue
            if _is_ignored(absolute_dir / name, rules):
                continue
            if _matches_any(rel, exclude_patterns) or _matches_any(path, exclude_patterns):
                continue
            files.append(path)

    return files


def find_source_files(
    paths: Iterable[str],
    extensions: Iterable[str],
    exclude_patterns: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Collect source files from files and directories.

    Args:
        paths: Files or directories given by the user
        extensions: Accepted extensions without the dot ("ts", "tsx", ...)
        exclude_patterns: Glob patterns to skip (matched against relative
            paths, full paths and base names)

    Returns:
        File paths, de-duplicated by canonical path and sorted
    """
    wanted = {e.lower().lstrip(".") for e in extensions}
    excludes = list(exclude_patterns or [])
    seen: Set[Path] = set()
    found: List[str] = []

    def add(path: Path) -> None:
        canonical = path.resolve()
        if canonical not in seen:
            seen.add(canonical)
            found.append(str(path))

    for raw in paths:
        path = Path(raw)
        if path.is_file():
            if _has_extension(path, wanted) and not _matches_any(path, excludes):
                add(path)
        elif path.is_dir():
            for file_path in _walk_directory(path, wanted, excludes):
                add(file_path)
        else:
            logger.warning(f"Path not found: {raw}")

    found.sort()
    logger.debug(f"Found {len(found)} source files")
    return found


def read_source(file_path: str) -> str:
    """
    Read one source file as UTF-8.

    Raises:
        InputError: the file cannot be read or decoded
    """
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(file_path, str(e)) from e


def read_sources(files: Iterable[str]) -> Tuple[Dict[str, str], List[Diagnostic]]:
    """Read every file; unreadable ones become input-error diagnostics."""
    sources: Dict[str, str] = {}
    diagnostics: List[Diagnostic] = []

    for file_path in files:
        try:
            sources[file_path] = read_source(file_path)
        except InputError as e:
            logger.warning(f"Error reading {e}")
            diagnostics.append(Diagnostic(file_path, DiagnosticKind.INPUT_ERROR, str(e)))

    return sources, diagnostics
