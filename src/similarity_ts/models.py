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
Data models for similarity-ts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

from .tree import FlatTree


SortKey = Tuple[str, int, int, str]


@dataclass(frozen=True)
class FunctionDefinition:
    """A function, method or arrow function extracted from a source file."""

    file_path: str           # As given by discovery
    name: str                # "<anonymous>" when no name can be inferred
    start_line: int          # 1-indexed
    end_line: int            # Inclusive
    kind: str                # "function", "method", "arrow_function"
    parameters: Tuple[str, ...] = ()
    class_name: Optional[str] = None
    token_count: int = 0
    body: FlatTree = field(default=None, compare=False, repr=False)
    body_text: str = field(default="", compare=False, repr=False)

    @property
    def line_count(self) -> int:
        """Number of lines spanned by the function."""
        return self.end_line - self.start_line + 1

    @property
    def qualified_name(self) -> str:
        if self.class_name:
            return f"{self.class_name}.{self.name}"
        return self.name

    @property
    def location(self) -> str:
        """Human-readable location string."""
        return f"{self.file_path}:{self.start_line}-{self.end_line}"

    @property
    def sort_key(self) -> SortKey:
        return (self.file_path, self.start_line, self.end_line, self.name)


class TypeKind(Enum):
    INTERFACE = "interface"
    TYPE_ALIAS = "type"
    TYPE_LITERAL = "type literal"


@dataclass(frozen=True)
class Property:
    """A member of an object-like type."""

    name: str
    type_annotation: str
    optional: bool = False
    readonly: bool = False

    def describe(self) -> str:
        modifiers = "readonly " if self.readonly else ""
        optional = "?" if self.optional else ""
        return f"{modifiers}{self.name}{optional}: {self.type_annotation}"


@dataclass(frozen=True)
class TypeDefinition:
    """An interface or a type alias declaration."""

    file_path: str
    name: str
    kind: TypeKind
    start_line: int
    end_line: int
    properties: Tuple[Property, ...] = ()
    generics: Tuple[str, ...] = ()
    extends: Tuple[str, ...] = ()

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.start_line}-{self.end_line}"

    @property
    def sort_key(self) -> SortKey:
        return (self.file_path, self.start_line, self.end_line, self.name)


class TypeLiteralContextKind(Enum):
    FUNCTION_RETURN = "function_return"
    FUNCTION_PARAMETER = "function_parameter"
    VARIABLE_DECLARATION = "variable_declaration"
    ARROW_FUNCTION_RETURN = "arrow_function_return"


@dataclass(frozen=True)
class TypeLiteralContext:
    """Where an anonymous object type appears."""

    kind: TypeLiteralContextKind
    name: str                              # Enclosing function or variable
    parameter_name: Optional[str] = None   # Only for FUNCTION_PARAMETER

    def describe(self) -> str:
        if self.kind is TypeLiteralContextKind.FUNCTION_RETURN:
            return f"Function '{self.name}' return type"
        if self.kind is TypeLiteralContextKind.FUNCTION_PARAMETER:
            return f"Function '{self.name}' parameter '{self.parameter_name}'"
        if self.kind is TypeLiteralContextKind.VARIABLE_DECLARATION:
            return f"Variable '{self.name}' type annotation"
        return f"Arrow function '{self.name}' return type"


@dataclass(frozen=True)
class TypeLiteralDefinition:
    """An anonymous object type literal."""

    file_path: str
    name: str
    context: TypeLiteralContext
    start_line: int
    end_line: int
    properties: Tuple[Property, ...] = ()

    @property
    def kind(self) -> TypeKind:
        return TypeKind.TYPE_LITERAL

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.start_line}-{self.end_line}"

    @property
    def sort_key(self) -> SortKey:
        return (self.file_path, self.start_line, self.end_line, self.name)


@dataclass(frozen=True)
class TypeMismatch:
    property: str
    type1: str
    type2: str


@dataclass(frozen=True)
class TypeDifferences:
    """Property-level differences between two type shapes (left vs right)."""

    missing_properties: Tuple[str, ...] = ()       # Left only
    extra_properties: Tuple[str, ...] = ()         # Right only
    type_mismatches: Tuple[TypeMismatch, ...] = ()
    optionality_differences: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (
            self.missing_properties
            or self.extra_properties
            or self.type_mismatches
            or self.optionality_differences
        )


@dataclass(frozen=True)
class TypeComparisonResult:
    similarity: float
    structural_similarity: float
    naming_similarity: float
    differences: TypeDifferences = field(default_factory=TypeDifferences)


T = TypeVar("T")


@dataclass(frozen=True)
class SimilarPair(Generic[T]):
    """Two similar units; ``unit1`` always has the smaller sort key."""

    unit1: T
    unit2: T
    similarity: float
    result: Optional[TypeComparisonResult] = None

    @property
    def sort_key(self):
        return (self.unit1.sort_key, self.unit2.sort_key)


@dataclass(frozen=True)
class TypeLiteralPair:
    """A type literal similar to a named type definition."""

    type_literal: TypeLiteralDefinition
    type_definition: TypeDefinition
    result: TypeComparisonResult

    @property
    def similarity(self) -> float:
        return self.result.similarity

    @property
    def sort_key(self):
        return (self.type_literal.sort_key, self.type_definition.sort_key)


@dataclass(frozen=True)
class OverlapWindow:
    """A run of consecutive statements used as an overlap comparison unit."""

    file_path: str
    start_line: int
    end_line: int
    node_count: int
    node_type: str            # Dominant statement kind in the window
    function_name: str        # Enclosing function, or "<top-level>"
    tree: FlatTree = field(compare=False, repr=False, default=None)

    @property
    def line_span(self) -> Tuple[int, int]:
        return (self.start_line, self.end_line)

    def contains(self, other: "OverlapWindow") -> bool:
        return self.start_line <= other.start_line and other.end_line <= self.end_line

    def intersects(self, other: "OverlapWindow") -> bool:
        return self.start_line <= other.end_line and other.start_line <= self.end_line


@dataclass(frozen=True)
class OverlapMatch:
    source_file: str
    target_file: str
    source_window: OverlapWindow
    target_window: OverlapWindow
    similarity: float

    @property
    def node_count(self) -> int:
        return max(self.source_window.node_count, self.target_window.node_count)

    @property
    def node_type(self) -> str:
        return self.source_window.node_type

    @property
    def sort_key(self):
        return (
            self.source_file,
            self.source_window.start_line,
            self.source_window.end_line,
            self.target_file,
            self.target_window.start_line,
            self.target_window.end_line,
        )


class DiagnosticKind(Enum):
    INPUT_ERROR = "input_error"
    SYNTAX_ERROR = "syntax_error"
    EXTRACTION_ERROR = "extraction_error"


@dataclass(frozen=True)
class Diagnostic:
    """A per-file problem that did not stop the run."""

    file_path: str
    kind: DiagnosticKind
    message: str
