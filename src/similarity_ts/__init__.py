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
similarity-ts - Find duplicated TypeScript/JavaScript code.

Compares the syntax trees of functions, the property shapes of types and
runs of statements, so renamed or lightly edited copies are still found.
"""

__version__ = "0.1.0"

from .config import SimilarityConfig, load_config, find_config_file
from .errors import ConfigurationError, ParseError, SimilarityError
from .extractor import extract_functions_from_code, extract_types_from_code
from .functions import compare_functions, find_similar_functions
from .indexer import find_source_files, read_sources
from .overlap import find_overlaps, find_overlaps_across_files
from .pipeline import run_analysis
from .reporter import OutputFormat, report_analysis
from .type_similarity import compare_types, find_similar_type_literals, find_similar_types

__all__ = [
    "__version__",
    "SimilarityConfig",
    "load_config",
    "find_config_file",
    "ConfigurationError",
    "ParseError",
    "SimilarityError",
    "extract_functions_from_code",
    "extract_types_from_code",
    "compare_functions",
    "find_similar_functions",
    "find_source_files",
    "read_sources",
    "find_overlaps",
    "find_overlaps_across_files",
    "run_analysis",
    "OutputFormat",
    "report_analysis",
    "compare_types",
    "find_similar_type_literals",
    "find_similar_types",
]
