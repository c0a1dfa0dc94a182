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
Report generator - formats analysis results for output.

Supports text, markdown, and json output formats.
"""

import json
import os
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .aggregator import AnalysisReport
from .models import (
    Diagnostic,
    OverlapMatch,
    SimilarPair,
    TypeComparisonResult,
    TypeDefinition,
    TypeLiteralDefinition,
    TypeLiteralPair,
)


SEPARATOR = "-" * 60


class OutputFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


def report_analysis(
    report: AnalysisReport,
    output_format: OutputFormat = OutputFormat.TEXT,
    sources: Optional[Mapping[str, str]] = None,
    print_code: bool = False,
    show_syntax_errors: bool = False,
) -> str:
    """
    Generate a report of similar code.

    Args:
        report: Finalized analysis report
        output_format: Desired output format
        sources: File contents, needed to print code excerpts
        print_code: Include the code of every reported unit
        show_syntax_errors: Also list files skipped for syntax errors

    Returns:
        Formatted report string
    """
    sources = sources or {}
    diagnostics = report.visible_diagnostics(show_syntax_errors)

    if output_format == OutputFormat.TEXT:
        return _format_text(report, sources, print_code, diagnostics)
    elif output_format == OutputFormat.MARKDOWN:
        return _format_markdown(report, sources, print_code, diagnostics)
    elif output_format == OutputFormat.JSON:
        return _format_json(report, sources, print_code, diagnostics)
    else:
        raise ValueError(f"Unknown format: {output_format}")


def display_path(file_path: str) -> str:
    """Path relative to the working directory when it lies below it."""
    try:
        relative = os.path.relpath(file_path)
    except ValueError:
        return file_path
    return file_path if relative.startswith("..") else relative


def extract_code_lines(content: str, start_line: int, end_line: int) -> Optional[str]:
    """Lines start_line..end_line (1-indexed, inclusive), or None when out of range."""
    lines = content.splitlines()
    if start_line > len(lines) or end_line > len(lines):
        return None
    return "\n".join(lines[start_line - 1:end_line])


def _percent(value: float) -> str:
    return f"{value * 100:.2f}%"


def _excerpt(sources: Mapping[str, str], file_path: str, start_line: int, end_line: int) -> Optional[str]:
    content = sources.get(file_path)
    if content is None:
        return None
    return extract_code_lines(content, start_line, end_line)


# ---------------------------------------------------------------- text


def _type_details(definition: TypeDefinition) -> List[str]:
    lines = ["", f"--- {definition.name} ({definition.kind.value}) ---"]
    if definition.generics:
        lines.append(f"Generics: <{', '.join(definition.generics)}>")
    if definition.extends:
        lines.append(f"Extends: {', '.join(definition.extends)}")
    if definition.properties:
        lines.append("Properties:")
        lines.extend(f"  {p.describe()}" for p in definition.properties)
    return lines


def _type_literal_details(literal: TypeLiteralDefinition) -> List[str]:
    lines = ["", f"--- {literal.name} (type literal) ---"]
    lines.append(f"Context: {literal.context.describe()}")
    if literal.properties:
        lines.append("Properties:")
        lines.extend(f"  {p.describe()}" for p in literal.properties)
    return lines


def _comparison_details(result: TypeComparisonResult) -> List[str]:
    differences = result.differences
    lines = []
    if differences.missing_properties:
        lines.append(f"Missing properties: {', '.join(differences.missing_properties)}")
    if differences.extra_properties:
        lines.append(f"Extra properties: {', '.join(differences.extra_properties)}")
    if differences.type_mismatches:
        lines.append("Type mismatches:")
        for mismatch in differences.type_mismatches:
            lines.append(f"  {mismatch.property}: {mismatch.type1} vs {mismatch.type2}")
    if differences.optionality_differences:
        lines.append(f"Optionality differences: {', '.join(differences.optionality_differences)}")
    return lines


def _text_functions(report: AnalysisReport, sources: Mapping[str, str], print_code: bool) -> List[str]:
    lines = ["=== Function Similarity ==="]
    if not report.function_pairs:
        lines.append("")
        lines.append("No duplicate functions found!")
        return lines

    lines.append("")
    lines.append(f"Duplicates analysis ({report.functions_analyzed} functions):")
    lines.append(SEPARATOR)
    for pair in report.function_pairs:
        lines.append("")
        lines.append(f"Similarity: {_percent(pair.similarity)}")
        for function in (pair.unit1, pair.unit2):
            lines.append(
                f"  {display_path(function.file_path)}:{function.start_line} | "
                f"L{function.start_line}-{function.end_line} "
                f"similar-function: {function.qualified_name}"
            )
        if print_code:
            for function in (pair.unit1, pair.unit2):
                code = _excerpt(sources, function.file_path, function.start_line, function.end_line)
                if code is not None:
                    lines.append("")
                    lines.append(f"--- {display_path(function.file_path)}:{function.name} ---")
                    lines.append(code)

    lines.append("")
    lines.append(f"Total duplicate pairs found: {len(report.function_pairs)}")
    return lines


def _text_types(report: AnalysisReport, print_code: bool) -> List[str]:
    lines = ["=== Type Similarity ==="]
    if not report.type_pairs and not report.type_literal_pairs:
        lines.append("")
        lines.append("No similar types found!")
        return lines

    if report.type_pairs:
        lines.append("")
        lines.append("Similar types found:")
        lines.append(SEPARATOR)
        for pair in report.type_pairs:
            result = pair.result
            lines.append("")
            lines.append(
                f"Similarity: {_percent(result.similarity)} "
                f"(structural: {_percent(result.structural_similarity)}, "
                f"naming: {_percent(result.naming_similarity)})"
            )
            for definition in (pair.unit1, pair.unit2):
                lines.append(
                    f"  {display_path(definition.file_path)}:{definition.start_line} | "
                    f"L{definition.start_line}-{definition.end_line} "
                    f"similar-type: {definition.name} ({definition.kind.value})"
                )
            if print_code:
                lines.extend(_type_details(pair.unit1))
                lines.extend(_type_details(pair.unit2))
                lines.extend(_comparison_details(result))
        lines.append("")
        lines.append(f"Total similar type pairs found: {len(report.type_pairs)}")

    if report.type_literal_pairs:
        lines.append("")
        lines.append("Type literals similar to type definitions:")
        lines.append(SEPARATOR)
        for pair in report.type_literal_pairs:
            result = pair.result
            literal, definition = pair.type_literal, pair.type_definition
            lines.append("")
            lines.append(
                f"Similarity: {_percent(result.similarity)} "
                f"(structural: {_percent(result.structural_similarity)}, "
                f"naming: {_percent(result.naming_similarity)})"
            )
            lines.append(
                f"  {display_path(literal.file_path)}:{literal.start_line} | "
                f"L{literal.start_line} similar-type-literal: {literal.name}"
            )
            lines.append(
                f"  {display_path(definition.file_path)}:{definition.start_line} | "
                f"L{definition.start_line}-{definition.end_line} "
                f"similar-type: {definition.name} ({definition.kind.value})"
            )
            if print_code:
                lines.extend(_type_literal_details(literal))
                lines.extend(_type_details(definition))
                lines.extend(_comparison_details(result))
        lines.append("")
        lines.append(f"Total type literal pairs found: {len(report.type_literal_pairs)}")

    return lines


def _text_overlaps(report: AnalysisReport, sources: Mapping[str, str], print_code: bool) -> List[str]:
    lines = ["=== Overlap Detection ==="]
    if not report.overlaps:
        lines.append("")
        lines.append("No code overlaps found!")
        return lines

    lines.append("")
    lines.append("Code overlaps found:")
    lines.append(SEPARATOR)
    for match in report.overlaps:
        lines.append("")
        lines.append(
            f"Similarity: {_percent(match.similarity)} | {match.node_count} nodes | {match.node_type}"
        )
        for window in (match.source_window, match.target_window):
            lines.append(
                f"  {display_path(window.file_path)}:{window.start_line} | "
                f"L{window.start_line}-{window.end_line} in function: {window.function_name}"
            )
        if print_code:
            for label, window in (("Source", match.source_window), ("Target", match.target_window)):
                code = _excerpt(sources, window.file_path, window.start_line, window.end_line)
                if code is not None:
                    lines.append("")
                    lines.append(f"--- {label} Code ---")
                    lines.append(code)

    lines.append("")
    lines.append(f"Total overlaps found: {len(report.overlaps)}")
    return lines


def _format_text(
    report: AnalysisReport,
    sources: Mapping[str, str],
    print_code: bool,
    diagnostics: List[Diagnostic],
) -> str:
    """Console format of the similarity-ts tool."""
    sections = []
    if "functions" in report.analyzers:
        sections.append(_text_functions(report, sources, print_code))
    if "types" in report.analyzers:
        sections.append(_text_types(report, print_code))
    if "overlap" in report.analyzers:
        sections.append(_text_overlaps(report, sources, print_code))

    lines = ["Analyzing code similarity...", ""]
    for i, section in enumerate(sections):
        if i:
            lines.extend(["", SEPARATOR, ""])
        lines.extend(section)

    if diagnostics:
        lines.append("")
        lines.append(f"Skipped {len(diagnostics)} files:")
        for diagnostic in diagnostics:
            lines.append(f"  {diagnostic.kind.value}: {diagnostic.message}")

    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------- markdown


def _md_code_block(code: Optional[str]) -> List[str]:
    if code is None:
        return []
    return ["", "```typescript", code, "```"]


def _format_markdown(
    report: AnalysisReport,
    sources: Mapping[str, str],
    print_code: bool,
    diagnostics: List[Diagnostic],
) -> str:
    """Markdown format for documentation."""
    lines = ["# Code Similarity Report", ""]
    lines.append(f"**Files Analyzed:** {report.files_analyzed}  ")
    lines.append(f"**Duplicates Found:** {report.total_duplicates}")
    lines.append("")

    if "functions" in report.analyzers:
        lines.append("## Function Similarity")
        lines.append("")
        if report.function_pairs:
            lines.append("| Similarity | Function | Location | Function | Location |")
            lines.append("|------------|----------|----------|----------|----------|")
            for pair in report.function_pairs:
                f1, f2 = pair.unit1, pair.unit2
                lines.append(
                    f"| {_percent(pair.similarity)} | `{f1.qualified_name}` | "
                    f"`{display_path(f1.file_path)}:{f1.start_line}-{f1.end_line}` | "
                    f"`{f2.qualified_name}` | "
                    f"`{display_path(f2.file_path)}:{f2.start_line}-{f2.end_line}` |"
                )
            if print_code:
                for pair in report.function_pairs:
                    for function in (pair.unit1, pair.unit2):
                        lines.append("")
                        lines.append(f"### `{function.qualified_name}` ({display_path(function.location)})")
                        lines.extend(_md_code_block(
                            _excerpt(sources, function.file_path, function.start_line, function.end_line)
                        ))
        else:
            lines.append("No duplicate functions found.")
        lines.append("")

    if "types" in report.analyzers:
        lines.append("## Type Similarity")
        lines.append("")
        if report.type_pairs or report.type_literal_pairs:
            lines.append("| Similarity | Structural | Naming | Type | Location | Type | Location |")
            lines.append("|------------|------------|--------|------|----------|------|----------|")
            for pair in report.type_pairs:
                t1, t2, result = pair.unit1, pair.unit2, pair.result
                lines.append(
                    f"| {_percent(result.similarity)} | {_percent(result.structural_similarity)} | "
                    f"{_percent(result.naming_similarity)} | "
                    f"`{t1.name}` ({t1.kind.value}) | `{display_path(t1.location)}` | "
                    f"`{t2.name}` ({t2.kind.value}) | `{display_path(t2.location)}` |"
                )
            for pair in report.type_literal_pairs:
                literal, definition, result = pair.type_literal, pair.type_definition, pair.result
                lines.append(
                    f"| {_percent(result.similarity)} | {_percent(result.structural_similarity)} | "
                    f"{_percent(result.naming_similarity)} | "
                    f"`{literal.name}` (type literal) | `{display_path(literal.location)}` | "
                    f"`{definition.name}` ({definition.kind.value}) | "
                    f"`{display_path(definition.location)}` |"
                )
        else:
            lines.append("No similar types found.")
        lines.append("")

    if "overlap" in report.analyzers:
        lines.append("## Overlap Detection")
        lines.append("")
        if report.overlaps:
            lines.append("| Similarity | Nodes | Kind | Source | Target |")
            lines.append("|------------|-------|------|--------|--------|")
            for match in report.overlaps:
                source, target = match.source_window, match.target_window
                lines.append(
                    f"| {_percent(match.similarity)} | {match.node_count} | {match.node_type} | "
                    f"`{display_path(source.file_path)}:{source.start_line}-{source.end_line}` "
                    f"({source.function_name}) | "
                    f"`{display_path(target.file_path)}:{target.start_line}-{target.end_line}` "
                    f"({target.function_name}) |"
                )
            if print_code:
                for match in report.overlaps:
                    source = match.source_window
                    lines.append("")
                    lines.append(
                        f"### {display_path(source.file_path)}:{source.start_line}-{source.end_line}"
                    )
                    lines.extend(_md_code_block(
                        _excerpt(sources, source.file_path, source.start_line, source.end_line)
                    ))
        else:
            lines.append("No code overlaps found.")
        lines.append("")

    if diagnostics:
        lines.append("## Skipped Files")
        lines.append("")
        for diagnostic in diagnostics:
            lines.append(f"- `{display_path(diagnostic.file_path)}` ({diagnostic.kind.value}): {diagnostic.message}")
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------- json


def _result_data(result: TypeComparisonResult) -> Dict:
    differences = result.differences
    return {
        "similarity": round(result.similarity, 4),
        "structural_similarity": round(result.structural_similarity, 4),
        "naming_similarity": round(result.naming_similarity, 4),
        "differences": {
            "missing_properties": list(differences.missing_properties),
            "extra_properties": list(differences.extra_properties),
            "type_mismatches": [
                {"property": m.property, "type1": m.type1, "type2": m.type2}
                for m in differences.type_mismatches
            ],
            "optionality_differences": list(differences.optionality_differences),
        },
    }


def _type_data(definition: TypeDefinition) -> Dict:
    return {
        "file": definition.file_path,
        "name": definition.name,
        "kind": definition.kind.value,
        "start_line": definition.start_line,
        "end_line": definition.end_line,
        "properties": [p.describe() for p in definition.properties],
    }


def _function_pair_data(pair: SimilarPair, sources: Mapping[str, str], print_code: bool) -> Dict:
    units = []
    for function in (pair.unit1, pair.unit2):
        data = {
            "file": function.file_path,
            "name": function.name,
            "class_name": function.class_name,
            "kind": function.kind,
            "start_line": function.start_line,
            "end_line": function.end_line,
        }
        if print_code:
            data["content"] = _excerpt(sources, function.file_path, function.start_line, function.end_line)
        units.append(data)
    return {"similarity": round(pair.similarity, 4), "functions": units}


def _type_literal_pair_data(pair: TypeLiteralPair) -> Dict:
    literal = pair.type_literal
    return {
        "type_literal": {
            "file": literal.file_path,
            "name": literal.name,
            "context": literal.context.describe(),
            "start_line": literal.start_line,
            "end_line": literal.end_line,
            "properties": [p.describe() for p in literal.properties],
        },
        "type_definition": _type_data(pair.type_definition),
        **_result_data(pair.result),
    }


def _overlap_data(match: OverlapMatch, sources: Mapping[str, str], print_code: bool) -> Dict:
    windows = {}
    for label, window in (("source", match.source_window), ("target", match.target_window)):
        data = {
            "file": window.file_path,
            "start_line": window.start_line,
            "end_line": window.end_line,
            "function": window.function_name,
            "node_count": window.node_count,
        }
        if print_code:
            data["content"] = _excerpt(sources, window.file_path, window.start_line, window.end_line)
        windows[label] = data
    return {
        "similarity": round(match.similarity, 4),
        "node_count": match.node_count,
        "node_type": match.node_type,
        **windows,
    }


def _format_json(
    report: AnalysisReport,
    sources: Mapping[str, str],
    print_code: bool,
    diagnostics: List[Diagnostic],
) -> str:
    """JSON format for programmatic use."""
    data = {
        "meta": {
            "analyzers": list(report.analyzers),
            "files_analyzed": report.files_analyzed,
            "functions_analyzed": report.functions_analyzed,
            "types_analyzed": report.types_analyzed,
            "type_literals_analyzed": report.type_literals_analyzed,
            "total_duplicates": report.total_duplicates,
        },
        "function_pairs": [_function_pair_data(p, sources, print_code) for p in report.function_pairs],
        "type_pairs": [
            {"types": [_type_data(p.unit1), _type_data(p.unit2)], **_result_data(p.result)}
            for p in report.type_pairs
        ],
        "type_literal_pairs": [_type_literal_pair_data(p) for p in report.type_literal_pairs],
        "overlaps": [_overlap_data(m, sources, print_code) for m in report.overlaps],
        "diagnostics": [
            {"file": d.file_path, "kind": d.kind.value, "message": d.message}
            for d in diagnostics
        ],
    }
    return json.dumps(data, indent=2)
