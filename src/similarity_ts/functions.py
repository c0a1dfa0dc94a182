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
Function similarity engine.

Compares function bodies by tree edit distance. In fast mode a fingerprint
pre-filter discards pairs that cannot reach the threshold before the exact
comparison runs.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .aggregator import make_pair, sort_and_dedupe
from .config import FunctionComparisonOptions
from .fingerprint import fingerprint_trees, might_match
from .models import FunctionDefinition, SimilarPair
from .parallel import run_rows
from .tree import tree_similarity


logger = logging.getLogger(__name__)


def compare_functions(
    f1: FunctionDefinition,
    f2: FunctionDefinition,
    options: FunctionComparisonOptions,
) -> float:
    """Similarity of two function bodies in [0, 1]."""
    return tree_similarity(f1.body, f2.body, options.rename_cost, options.size_penalty)


def _is_nested(f1: FunctionDefinition, f2: FunctionDefinition) -> bool:
    """True when the two functions share lines of the same file."""
    return (
        f1.file_path == f2.file_path
        and f1.start_line <= f2.end_line
        and f2.start_line <= f1.end_line
    )


def _compare_function_row(state, i: int) -> List[Tuple[int, int, float]]:
    """Compare unit i with every later unit; runs in a worker process."""
    units, fingerprints, threshold, options = state
    scores = []
    for j in range(i + 1, len(units)):
        f1, f2 = units[i], units[j]
        if _is_nested(f1, f2):
            continue
        if fingerprints is not None and not might_match(
            fingerprints[i], fingerprints[j], threshold, options.rename_cost
        ):
            continue
        try:
            similarity = compare_functions(f1, f2, options)
        except Exception as e:
            logger.warning(f"Failed to compare {f1.location} and {f2.location}: {e}")
            continue
        if similarity >= threshold:
            scores.append((i, j, similarity))
    return scores


def find_similar_functions(
    functions: Sequence[FunctionDefinition],
    threshold: float,
    options: FunctionComparisonOptions,
    fast_mode: bool = True,
    workers: Optional[int] = None,
) -> List[SimilarPair]:
    """
    Find every pair of functions with similarity >= threshold.

    Args:
        functions: Candidate functions (already filtered)
        threshold: Minimum similarity to report
        options: Rename cost and size penalty
        fast_mode: Use the fingerprint pre-filter
        workers: Worker processes (None = CPU count)

    Returns:
        Pairs sorted by file path and line of both operands
    """
    units = sorted(functions, key=lambda f: f.sort_key)
    if len(units) < 2:
        return []

    fingerprints = fingerprint_trees([f.body for f in units]) if fast_mode else None
    state = (units, fingerprints, threshold, options)

    results: List[SimilarPair] = []
    for scores in run_rows(_compare_function_row, state, range(len(units) - 1), workers):
        results.extend(make_pair(units[i], units[j], similarity) for i, j, similarity in scores)

    logger.debug(f"Compared {len(units)} functions, {len(results)} similar pairs")
    return sort_and_dedupe(results)
