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
Overlap detection - finds duplicated statement runs regardless of function
or type boundaries.

Windows start only at statement boundaries and never grow beyond
max_window_size nodes, which keeps the number of windows per file linear in
the number of statements.

Redundant matches are suppressed with a containment rule: within one file
pair, matches are visited from largest to smallest (then by similarity, then
by position) and a match is dropped when an accepted match already covers
both its source lines and its target lines.
"""

import logging
from collections import Counter
from itertools import combinations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import OverlapOptions
from .errors import SourceSyntaxError
from .fingerprint import fingerprint_trees, might_match
from .languages import StatementSequence, get_extractor
from .models import OverlapMatch, OverlapWindow
from .parallel import run_rows
from .tree import FlatTree, count_nodes, tree_similarity


logger = logging.getLogger(__name__)


def windows_from_sequences(
    sequences: Sequence[StatementSequence],
    file_path: str,
    options: OverlapOptions,
) -> List[OverlapWindow]:
    """Enumerate windows of consecutive statements within the size bounds."""
    windows = []
    for sequence in sequences:
        statements = list(sequence.statements)
        sizes = [count_nodes(s) for s in statements]

        for start in range(len(statements)):
            total = 0
            for end in range(start, len(statements)):
                total += sizes[end]
                if total > options.max_window_size:
                    break
                if total < options.min_window_size:
                    continue

                run = statements[start:end + 1]
                kinds = Counter(s.kind for s in run)
                windows.append(OverlapWindow(
                    file_path=file_path,
                    start_line=run[0].start_line,
                    end_line=run[-1].end_line,
                    node_count=total,
                    node_type=kinds.most_common(1)[0][0],
                    function_name=sequence.function_name,
                    tree=FlatTree.from_forest(run),
                ))

    windows.sort(key=lambda w: (w.start_line, w.end_line, w.node_count))
    return windows


def extract_windows_from_code(
    content: str,
    file_path: str,
    options: OverlapOptions,
) -> List[OverlapWindow]:
    """
    Parse a file and enumerate its overlap windows.

    Raises:
        ParseError: the file could not be parsed
    """
    extractor = get_extractor(file_path)
    root = extractor.parse(content, file_path)
    return windows_from_sequences(extractor.statement_sequences(root), file_path, options)


def _within_tolerance(w1: OverlapWindow, w2: OverlapWindow, tolerance: float) -> bool:
    larger = max(w1.node_count, w2.node_count)
    return abs(w1.node_count - w2.node_count) <= tolerance * larger


def compare_windows(w1: OverlapWindow, w2: OverlapWindow, options: OverlapOptions) -> float:
    """Structural similarity of two windows; size tolerance is checked separately."""
    return tree_similarity(w1.tree, w2.tree, options.rename_cost, size_penalty=False)


def _compare_file_pair(state, file_pair: Tuple[str, str]) -> List[OverlapMatch]:
    """Compare the windows of two files; runs in a worker process."""
    windows_by_file, options = state
    source_path, target_path = file_pair
    source = windows_by_file[source_path]
    target = windows_by_file[target_path]
    same_file = source_path == target_path

    source_fps = fingerprint_trees([w.tree for w in source])
    target_fps = fingerprint_trees([w.tree for w in target])

    candidates = []
    for i, w1 in enumerate(source):
        for j, w2 in enumerate(target):
            if same_file and (j <= i or w1.intersects(w2)):
                continue
            if not _within_tolerance(w1, w2, options.size_tolerance):
                continue
            if not might_match(source_fps[i], target_fps[j], options.threshold, options.rename_cost):
                continue

            try:
                similarity = compare_windows(w1, w2, options)
            except Exception as e:
                logger.warning(
                    f"Failed to compare {w1.file_path}:{w1.start_line}-{w1.end_line} and "
                    f"{w2.file_path}:{w2.start_line}-{w2.end_line}: {e}"
                )
                continue
            if similarity >= options.threshold:
                candidates.append(OverlapMatch(
                    source_file=w1.file_path,
                    target_file=w2.file_path,
                    source_window=w1,
                    target_window=w2,
                    similarity=similarity,
                ))

    return suppress_contained(candidates)


def suppress_contained(matches: Sequence[OverlapMatch]) -> List[OverlapMatch]:
    """Drop matches nested inside a larger accepted match of the same file pair."""
    ordered = sorted(matches, key=lambda m: (-m.node_count, -m.similarity, m.sort_key))
    accepted: List[OverlapMatch] = []

    for match in ordered:
        covered = any(
            kept.source_file == match.source_file
            and kept.target_file == match.target_file
            and kept.source_window.contains(match.source_window)
            and kept.target_window.contains(match.target_window)
            for kept in accepted
        )
        if not covered:
            accepted.append(match)

    return accepted


def find_overlaps(
    windows_by_file: Mapping[str, List[OverlapWindow]],
    options: OverlapOptions,
    workers: Optional[int] = None,
) -> List[OverlapMatch]:
    """
    Compare windows across every pair of files.

    Same-file windows are only compared when options.include_same_file is
    set, and then only when their lines do not intersect.
    """
    files = sorted(f for f, windows in windows_by_file.items() if windows)
    file_pairs: List[Tuple[str, str]] = list(combinations(files, 2))
    if options.include_same_file:
        file_pairs.extend((f, f) for f in files)

    state = (dict(windows_by_file), options)
    matches: List[OverlapMatch] = []
    for pair_matches in run_rows(_compare_file_pair, state, file_pairs, workers):
        matches.extend(pair_matches)

    matches.sort(key=lambda m: m.sort_key)
    return matches


def find_overlaps_across_files(
    file_contents: Mapping[str, str],
    options: OverlapOptions,
    workers: Optional[int] = None,
) -> List[OverlapMatch]:
    """Parse every file, skipping those that fail, and find overlaps."""
    windows_by_file: Dict[str, List[OverlapWindow]] = {}
    for file_path in sorted(file_contents):
        try:
            windows_by_file[file_path] = extract_windows_from_code(
                file_contents[file_path], file_path, options
            )
        except SourceSyntaxError as e:
            logger.debug(f"Skipping {file_path} for overlap detection: {e}")
        except Exception as e:
            logger.warning(f"Skipping {file_path} for overlap detection: {e}")

    return find_overlaps(windows_by_file, options, workers)
