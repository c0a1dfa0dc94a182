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
Entity extractor - turns source files into comparable units.

Wraps the language front-ends so that every failure surfaces as a
ParseError: SourceSyntaxError for malformed input, ExtractionError for
anything else.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .config import SizeFilter, TypeKindFilter
from .errors import ExtractionError, ParseError
from .languages import StatementSequence, get_extractor
from .models import FunctionDefinition, TypeDefinition, TypeKind, TypeLiteralDefinition


logger = logging.getLogger(__name__)


@dataclass
class FileExtraction:
    """Everything extracted from one file in a single parse."""

    file_path: str
    functions: List[FunctionDefinition] = field(default_factory=list)
    types: List[TypeDefinition] = field(default_factory=list)
    type_literals: List[TypeLiteralDefinition] = field(default_factory=list)
    statement_sequences: List[StatementSequence] = field(default_factory=list)


def extract_file(
    content: str,
    file_path: str,
    include_functions: bool = True,
    include_types: bool = False,
    include_type_literals: bool = False,
    include_statements: bool = False,
) -> FileExtraction:
    """
    Parse a file once and extract the requested unit kinds.

    Raises:
        SourceSyntaxError: the source has syntax errors
        ExtractionError: any other extraction failure
    """
    extractor = get_extractor(file_path)
    try:
        root = extractor.parse(content, file_path)
        result = FileExtraction(file_path=file_path)
        if include_functions:
            result.functions = extractor.functions(root, file_path)
        if include_types:
            result.types = extractor.types(root, file_path)
        if include_type_literals:
            result.type_literals = extractor.type_literals(root, file_path)
        if include_statements:
            result.statement_sequences = extractor.statement_sequences(root)
    except ParseError:
        raise
    except Exception as e:
        raise ExtractionError(file_path, f"{type(e).__name__}: {e}") from e

    logger.debug(
        f"{file_path}: {len(result.functions)} functions, {len(result.types)} types, "
        f"{len(result.type_literals)} type literals"
    )
    return result


def extract_functions_from_code(content: str, file_path: str) -> List[FunctionDefinition]:
    return extract_file(content, file_path).functions


def extract_types_from_code(content: str, file_path: str) -> List[TypeDefinition]:
    return extract_file(content, file_path, include_functions=False, include_types=True).types


def extract_type_literals_from_code(content: str, file_path: str) -> List[TypeLiteralDefinition]:
    return extract_file(
        content, file_path, include_functions=False, include_type_literals=True
    ).type_literals


def filter_types_by_kind(
    types: Iterable[TypeDefinition],
    kind_filter: TypeKindFilter,
) -> List[TypeDefinition]:
    """Keep only aliases or only interfaces, or everything."""
    if kind_filter is TypeKindFilter.TYPE_ALIASES_ONLY:
        return [t for t in types if t.kind is TypeKind.TYPE_ALIAS]
    if kind_filter is TypeKindFilter.INTERFACES_ONLY:
        return [t for t in types if t.kind is TypeKind.INTERFACE]
    return list(types)


def filter_functions_by_size(
    functions: Iterable[FunctionDefinition],
    size_filter: SizeFilter,
) -> List[FunctionDefinition]:
    """Drop functions below the minimum size (tokens when set, else lines)."""
    if size_filter.min_tokens is not None:
        return [f for f in functions if f.token_count >= size_filter.min_tokens]
    if size_filter.min_lines is not None:
        return [f for f in functions if f.line_count >= size_filter.min_lines]
    return list(functions)


def filter_functions(
    functions: Iterable[FunctionDefinition],
    name_substring: Optional[str] = None,
    body_substring: Optional[str] = None,
) -> List[FunctionDefinition]:
    """Keep functions whose name and body contain the given substrings."""
    result = []
    for function in functions:
        if name_substring and name_substring not in function.name:
            continue
        if body_substring and body_substring not in function.body_text:
            continue
        result.append(function)
    return result
