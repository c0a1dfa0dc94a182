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
Base extractor interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Sequence

from ..models import FunctionDefinition, TypeDefinition, TypeLiteralDefinition
from ..tree import SyntaxNode


@dataclass(frozen=True)
class StatementSequence:
    """Consecutive sibling statements inside one block."""

    statements: Sequence[SyntaxNode]
    function_name: str


class BaseExtractor(ABC):
    """Abstract base class for language front-ends."""

    @abstractmethod
    def parse(self, content: str, file_path: str) -> Any:
        """
        Parse source text into the front-end's own tree.

        Raises:
            SourceSyntaxError: if the source contains syntax errors
        """
        pass

    @abstractmethod
    def functions(self, root: Any, file_path: str) -> List[FunctionDefinition]:
        """Functions, methods and arrow functions in source order."""
        pass

    @abstractmethod
    def types(self, root: Any, file_path: str) -> List[TypeDefinition]:
        """Interfaces and type aliases in source order."""
        pass

    @abstractmethod
    def type_literals(self, root: Any, file_path: str) -> List[TypeLiteralDefinition]:
        """Anonymous object types attached to functions and variables."""
        pass

    @abstractmethod
    def statement_sequences(self, root: Any) -> List[StatementSequence]:
        """Every block of statements, used to enumerate overlap windows."""
        pass
