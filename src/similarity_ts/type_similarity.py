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
Type similarity engine.

Scores two object-like types on two axes:
- structural: do the properties agree on name, type and optionality
- naming: do the declaration names and property names look alike

and blends them with user weights. Property differences are always reported
so they stay available even when a weight hides them from the score.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import Levenshtein

from .aggregator import make_pair, sort_and_dedupe
from .config import TypeComparisonOptions
from .models import (
    Property,
    SimilarPair,
    TypeComparisonResult,
    TypeDefinition,
    TypeDifferences,
    TypeLiteralDefinition,
    TypeLiteralPair,
    TypeMismatch,
)
from .parallel import run_rows


logger = logging.getLogger(__name__)

# Credit for a shared property whose types disagree
TYPE_MISMATCH_CREDIT = 0.5

# Deducted from a shared property's credit when optionality differs
OPTIONALITY_PENALTY = 0.1


def _index(properties: Sequence[Property]) -> Dict[str, Property]:
    return {p.name: p for p in properties}


def _normalize_type(annotation: str) -> str:
    return "".join(annotation.split()).replace('"', "'")


def compute_differences(
    properties1: Sequence[Property],
    properties2: Sequence[Property],
) -> TypeDifferences:
    """Property-level differences of the left shape against the right one."""
    props1, props2 = _index(properties1), _index(properties2)
    shared = sorted(props1.keys() & props2.keys())

    mismatches = []
    optionality = []
    for name in shared:
        p1, p2 = props1[name], props2[name]
        if _normalize_type(p1.type_annotation) != _normalize_type(p2.type_annotation):
            mismatches.append(TypeMismatch(name, p1.type_annotation, p2.type_annotation))
        if p1.optional != p2.optional:
            optionality.append(name)

    return TypeDifferences(
        missing_properties=tuple(sorted(props1.keys() - props2.keys())),
        extra_properties=tuple(sorted(props2.keys() - props1.keys())),
        type_mismatches=tuple(mismatches),
        optionality_differences=tuple(optionality),
    )


def structural_similarity(
    properties1: Sequence[Property],
    properties2: Sequence[Property],
) -> float:
    """Credit-weighted overlap of the two property sets."""
    props1, props2 = _index(properties1), _index(properties2)
    union = props1.keys() | props2.keys()
    if not union:
        return 1.0

    credit = 0.0
    for name in sorted(props1.keys() & props2.keys()):
        p1, p2 = props1[name], props2[name]
        if _normalize_type(p1.type_annotation) == _normalize_type(p2.type_annotation):
            score = 1.0
        else:
            score = TYPE_MISMATCH_CREDIT
        if p1.optional != p2.optional:
            score -= OPTIONALITY_PENALTY
        credit += score

    return max(0.0, credit / len(union))


def property_name_overlap(
    properties1: Sequence[Property],
    properties2: Sequence[Property],
) -> float:
    """Jaccard overlap of property names, ignoring types."""
    names1 = {p.name for p in properties1}
    names2 = {p.name for p in properties2}
    union = names1 | names2
    if not union:
        return 1.0
    return len(names1 & names2) / len(union)


def name_similarity(name1: str, name2: str) -> float:
    """Case-insensitive normalized edit similarity of two identifiers."""
    a, b = name1.lower(), name2.lower()
    if a == b:
        return 1.0
    return Levenshtein.ratio(a, b)


def _blend(structural: float, naming: float, options: TypeComparisonOptions) -> float:
    return options.structural_weight * structural + options.naming_weight * naming


def kinds_comparable(t1: TypeDefinition, t2: TypeDefinition, options: TypeComparisonOptions) -> bool:
    return options.allow_cross_kind_comparison or t1.kind is t2.kind


def compare_types(
    t1: TypeDefinition,
    t2: TypeDefinition,
    options: TypeComparisonOptions,
) -> TypeComparisonResult:
    """
    Compare two type declarations.

    When the kinds differ and cross-kind comparison is disabled every score
    is 0.0, but the differences are still filled in.
    """
    differences = compute_differences(t1.properties, t2.properties)
    if not kinds_comparable(t1, t2, options):
        return TypeComparisonResult(0.0, 0.0, 0.0, differences)

    structural = structural_similarity(t1.properties, t2.properties)
    naming = 0.5 * name_similarity(t1.name, t2.name) + 0.5 * property_name_overlap(
        t1.properties, t2.properties
    )
    return TypeComparisonResult(
        similarity=_blend(structural, naming, options),
        structural_similarity=structural,
        naming_similarity=naming,
        differences=differences,
    )


def compare_type_literal(
    literal: TypeLiteralDefinition,
    definition: TypeDefinition,
    options: TypeComparisonOptions,
) -> TypeComparisonResult:
    """
    Compare an anonymous type literal against a named definition.

    A literal has no declaration name of its own, so naming only looks at
    property names.
    """
    differences = compute_differences(literal.properties, definition.properties)
    structural = structural_similarity(literal.properties, definition.properties)
    naming = property_name_overlap(literal.properties, definition.properties)
    return TypeComparisonResult(
        similarity=_blend(structural, naming, options),
        structural_similarity=structural,
        naming_similarity=naming,
        differences=differences,
    )


def _compare_type_row(state, i: int) -> List[Tuple[int, int, TypeComparisonResult]]:
    """Compare type i with every later type; runs in a worker process."""
    units, threshold, options = state
    results = []
    for j in range(i + 1, len(units)):
        t1, t2 = units[i], units[j]
        if t1.sort_key == t2.sort_key or not kinds_comparable(t1, t2, options):
            continue
        try:
            result = compare_types(t1, t2, options)
        except Exception as e:
            logger.warning(f"Failed to compare {t1.location} and {t2.location}: {e}")
            continue
        if result.similarity >= threshold:
            results.append((i, j, result))
    return results


def find_similar_types(
    types: Sequence[TypeDefinition],
    threshold: float,
    options: TypeComparisonOptions,
    workers: Optional[int] = None,
) -> List[SimilarPair]:
    """
    Find pairs of type declarations with similarity >= threshold.

    Declarations without properties (unions, primitives, mapped types) are
    never paired.
    """
    units = sorted((t for t in types if t.properties), key=lambda t: t.sort_key)
    if len(units) < 2:
        return []

    pairs: List[SimilarPair] = []
    state = (units, threshold, options)
    for results in run_rows(_compare_type_row, state, range(len(units) - 1), workers):
        pairs.extend(
            make_pair(units[i], units[j], result.similarity, result) for i, j, result in results
        )

    return sort_and_dedupe(pairs)


def find_similar_type_literals(
    literals: Sequence[TypeLiteralDefinition],
    definitions: Sequence[TypeDefinition],
    threshold: float,
    options: TypeComparisonOptions,
) -> List[TypeLiteralPair]:
    """Pair every type literal with the definitions it resembles."""
    candidates = [d for d in definitions if d.properties]
    pairs: List[TypeLiteralPair] = []

    for literal in literals:
        for definition in candidates:
            try:
                result = compare_type_literal(literal, definition, options)
            except Exception as e:
                logger.warning(
                    f"Failed to compare {literal.location} and {definition.location}: {e}"
                )
                continue
            if result.similarity >= threshold:
                pairs.append(TypeLiteralPair(literal, definition, result))

    return sort_and_dedupe(pairs)

