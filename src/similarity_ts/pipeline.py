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
Analysis pipeline - extraction, filtering and the enabled engines.

Each file is parsed once, in parallel. A file that fails to parse or
extract becomes a Diagnostic and the run continues with the rest.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import PurePath
from typing import Dict, List, Mapping, Optional, Tuple

from .aggregator import AnalysisReport
from .config import OverlapOptions, SimilarityConfig
from .errors import ParseError, SourceSyntaxError
from .extractor import (
    FileExtraction,
    extract_file,
    filter_functions,
    filter_functions_by_size,
    filter_types_by_kind,
)
from .functions import find_similar_functions
from .models import Diagnostic, DiagnosticKind, OverlapWindow
from .overlap import find_overlaps, windows_from_sequences
from .type_similarity import find_similar_type_literals, find_similar_types


logger = logging.getLogger(__name__)


def _has_extension(file_path: str, extensions: Tuple[str, ...]) -> bool:
    return PurePath(file_path).suffix.lower().lstrip(".") in extensions


def _diagnostic_for(error: ParseError) -> Diagnostic:
    kind = (
        DiagnosticKind.SYNTAX_ERROR
        if isinstance(error, SourceSyntaxError)
        else DiagnosticKind.EXTRACTION_ERROR
    )
    return Diagnostic(file_path=error.file_path, kind=kind, message=str(error))


def _process_file(
    file_path: str,
    content: str,
    config: SimilarityConfig,
    overlap_options: OverlapOptions,
) -> Tuple[FileExtraction, List[OverlapWindow]]:
    """Extract one file and enumerate its overlap windows."""
    is_function_file = _has_extension(file_path, config.function_extensions())
    is_type_file = _has_extension(file_path, config.type_extensions())

    extraction = extract_file(
        content,
        file_path,
        include_functions=config.functions_enabled and is_function_file,
        include_types=config.types_enabled and is_type_file,
        include_type_literals=(
            config.types_enabled and config.include_type_literals and is_type_file
        ),
        include_statements=config.overlap_enabled and is_function_file,
    )

    windows = []
    if extraction.statement_sequences:
        windows = windows_from_sequences(extraction.statement_sequences, file_path, overlap_options)
    return extraction, windows


def run_analysis(
    sources: Mapping[str, str],
    config: SimilarityConfig,
    diagnostics: Optional[List[Diagnostic]] = None,
    validate: bool = True,
) -> AnalysisReport:
    """
    Run every enabled engine over the given sources.

    Args:
        sources: File path -> file content
        config: Analysis settings
        diagnostics: Problems found before extraction (e.g. unreadable files)
        validate: Check the settings first (skip when the caller already did)

    Raises:
        ConfigurationError: the settings are invalid

    Returns:
        An AnalysisReport with every list in canonical order
    """
    if validate:
        config.validate()

    workers = config.max_workers()
    overlap_options = config.overlap_options()
    report = AnalysisReport(
        diagnostics=list(diagnostics or []),
        analyzers=config.enabled_analyzers(),
    )

    extractions: Dict[str, FileExtraction] = {}
    windows_by_file: Dict[str, List[OverlapWindow]] = {}

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_process_file, file_path, content, config, overlap_options): file_path
            for file_path, content in sources.items()
        }
        for future in as_completed(futures):
            file_path = futures[future]
            try:
                extraction, windows = future.result()
            except ParseError as e:
                logger.debug(f"Skipping {file_path}: {e}")
                report.diagnostics.append(_diagnostic_for(e))
                continue
            except Exception as e:
                logger.warning(f"Failed to process {file_path}: {e}")
                report.diagnostics.append(
                    Diagnostic(file_path, DiagnosticKind.EXTRACTION_ERROR, f"{file_path}: {e}")
                )
                continue
            extractions[file_path] = extraction
            if windows:
                windows_by_file[file_path] = windows

    report.files_analyzed = len(extractions)
    ordered = [extractions[path] for path in sorted(extractions)]

    if config.functions_enabled:
        functions = [f for e in ordered for f in e.functions]
        functions = filter_functions_by_size(functions, config.size_filter())
        functions = filter_functions(
            functions,
            name_substring=config.filter_function,
            body_substring=config.filter_function_body,
        )
        report.functions_analyzed = len(functions)
        report.function_pairs = find_similar_functions(
            functions,
            config.threshold,
            config.function_options(),
            fast_mode=config.fast_mode,
            workers=workers,
        )

    if config.types_enabled:
        types = filter_types_by_kind((t for e in ordered for t in e.types), config.type_kind)
        report.types_analyzed = len(types)
        type_options = config.type_options()
        report.type_pairs = find_similar_types(types, config.threshold, type_options, workers=workers)

        if config.include_type_literals:
            literals = [lit for e in ordered for lit in e.type_literals]
            report.type_literals_analyzed = len(literals)
            report.type_literal_pairs = find_similar_type_literals(
                literals, types, config.threshold, type_options
            )

    if config.overlap_enabled:
        report.overlaps = find_overlaps(windows_by_file, overlap_options, workers=workers)

    logger.debug(
        f"Analyzed {report.files_analyzed} files: {len(report.function_pairs)} function pairs, "
        f"{len(report.type_pairs)} type pairs, {len(report.type_literal_pairs)} type literal "
        f"pairs, {len(report.overlaps)} overlaps"
    )
    return report.finalize()
