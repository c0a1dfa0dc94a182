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
Language front-ends.

Every front-end turns source text into the parser-agnostic views the
comparison engines consume. TypeScript uses the TypeScript grammar; TSX and
every JavaScript flavour use the TSX grammar, which also accepts JSX.
"""

from functools import lru_cache
from pathlib import PurePath
from typing import Optional

from .base import BaseExtractor, StatementSequence
from .typescript import TypeScriptExtractor, TreeSitterNode


# Extension to grammar mapping
EXTENSION_MAP = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
    ".tsx": "tsx",
    ".jsx": "tsx",
}

SUPPORTED_LANGUAGES = {"typescript", "tsx"}

__all__ = [
    "BaseExtractor",
    "StatementSequence",
    "TypeScriptExtractor",
    "TreeSitterNode",
    "EXTENSION_MAP",
    "SUPPORTED_LANGUAGES",
    "detect_language",
    "get_extractor",
]


def detect_language(file_path: str) -> Optional[str]:
    """Detect grammar from file extension."""
    return EXTENSION_MAP.get(PurePath(file_path).suffix.lower())


def get_extractor(file_path: str) -> BaseExtractor:
    """
    Get an extractor instance for the given file.

    Unknown extensions are parsed as TypeScript.
    """
    return _extractor_for(detect_language(file_path) == "tsx")


@lru_cache(maxsize=None)
def _extractor_for(tsx: bool) -> BaseExtractor:
    # Extractors only hold the loaded grammar, so one per grammar is shared
    return TypeScriptExtractor(tsx=tsx)
