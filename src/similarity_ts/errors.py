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
Exception hierarchy for similarity-ts.
"""

from typing import Optional


class SimilarityError(Exception):
    """Base class for all errors raised by similarity-ts."""


class ConfigurationError(SimilarityError):
    """Invalid or contradictory analysis settings. Fatal to the whole run."""


class InputError(SimilarityError):
    """A source file could not be read."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(f"{file_path}: {message}")


class ParseError(SimilarityError):
    """A source file could not be turned into comparable units."""

    def __init__(self, file_path: str, message: str, line: Optional[int] = None):
        self.file_path = file_path
        self.line = line
        location = f"{file_path}:{line}" if line is not None else file_path
        super().__init__(f"{location}: {message}")


class SourceSyntaxError(ParseError):
    """The parser reported syntax errors in the source text."""


class ExtractionError(ParseError):
    """Extraction failed for a reason other than a syntax error."""
