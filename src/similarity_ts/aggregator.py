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
Aggregator - collects pairs from the engines into a deterministic report.

Workers finish in any order; everything handed to the reporter is sorted by
file path and line first.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, TypeVar

from .models import (
    Diagnostic,
    DiagnosticKind,
    OverlapMatch,
    SimilarPair,
    TypeComparisonResult,
    TypeLiteralPair,
)


P = TypeVar("P")


def make_pair(unit1, unit2, similarity: float, result: Optional[TypeComparisonResult] = None) -> SimilarPair:
    """Build a pair with its operands in canonical order."""
    if unit2.sort_key < unit1.sort_key:
        unit1, unit2 = unit2, unit1
    return SimilarPair(unit1=unit1, unit2=unit2, similarity=similarity, result=result)


def sort_and_dedupe(pairs: Iterable[P]) -> List[P]:
    """Sort by the pair's sort key and drop repeated keys (first wins)."""
    seen = set()
    result = []
    for pair in sorted(pairs, key=lambda p: p.sort_key):
        if pair.sort_key in seen:
            continue
        seen.add(pair.sort_key)
        result.append(pair)
    return result


@dataclass
class AnalysisReport:
    """Everything the reporter needs for one run."""

    function_pairs: List[SimilarPair] = field(default_factory=list)
    type_pairs: List[SimilarPair] = field(default_factory=list)
    type_literal_pairs: List[TypeLiteralPair] = field(default_factory=list)
    overlaps: List[OverlapMatch] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    analyzers: Tuple[str, ...] = ("functions",)
    files_analyzed: int = 0
    functions_analyzed: int = 0
    types_analyzed: int = 0
    type_literals_analyzed: int = 0

    @property
    def total_duplicates(self) -> int:
        return (
            len(self.function_pairs)
            + len(self.type_pairs)
            + len(self.type_literal_pairs)
            + len(self.overlaps)
        )

    @property
    def has_duplicates(self) -> bool:
        return self.total_duplicates > 0

    def visible_diagnostics(self, show_syntax_errors: bool = False) -> List[Diagnostic]:
        """Diagnostics to surface; syntax errors are hidden unless requested."""
        if show_syntax_errors:
            return list(self.diagnostics)
        return [d for d in self.diagnostics if d.kind is not DiagnosticKind.SYNTAX_ERROR]

    def finalize(self) -> "AnalysisReport":
        """Put every list in canonical order."""
        self.function_pairs = sort_and_dedupe(self.function_pairs)
        self.type_pairs = sort_and_dedupe(self.type_pairs)
        self.type_literal_pairs = sort_and_dedupe(self.type_literal_pairs)
        self.overlaps = sort_and_dedupe(self.overlaps)
        self.diagnostics.sort(key=lambda d: (d.file_path, d.kind.value, d.message))
        return self
