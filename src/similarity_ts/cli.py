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
CLI entry point for similarity-ts.

Usage:
    similarity-ts [PATHS]... [options]
    similarity-ts --help
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import __version__
from .config import (
    DEFAULT_NAMING_WEIGHT,
    DEFAULT_OVERLAP_MAX_WINDOW,
    DEFAULT_OVERLAP_MIN_WINDOW,
    DEFAULT_OVERLAP_SIZE_TOLERANCE,
    DEFAULT_RENAME_COST,
    DEFAULT_STRUCTURAL_WEIGHT,
    DEFAULT_THRESHOLD,
    SimilarityConfig,
    TypeKindFilter,
    load_config,
    merge_config_with_cli,
)
from .errors import ConfigurationError
from .indexer import find_source_files, read_sources
from .pipeline import run_analysis
from .reporter import OutputFormat, report_analysis


logger = logging.getLogger(__name__)

# Extension to output format mapping for -o FILE.EXT
EXTENSION_FORMAT_MAP = {
    ".txt": "text",
    ".md": "markdown",
    ".json": "json",
}


def _split_extensions(values: Tuple[str, ...]) -> Optional[list]:
    """Accept both repeated -e flags and comma-separated lists."""
    extensions = [
        part.strip().lstrip(".")
        for value in values
        for part in value.split(",")
        if part.strip()
    ]
    return extensions or None


def _as_list(value) -> list:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return value
    return []


def build_config(
    file_config: dict,
    *,
    threshold: float,
    no_functions: bool,
    experimental_types: bool,
    extensions: Tuple[str, ...],
    min_lines: Optional[int],
    min_tokens: Optional[int],
    rename_cost: float,
    no_size_penalty: bool,
    filter_function: Optional[str],
    filter_function_body: Optional[str],
    types_only: bool,
    interfaces_only: bool,
    allow_cross_kind: bool,
    structural_weight: float,
    naming_weight: float,
    include_type_literals: bool,
    no_fast: bool,
    exclude: Tuple[str, ...],
    experimental_overlap: bool,
    overlap_min_window: int,
    overlap_max_window: int,
    overlap_size_tolerance: float,
    overlap_same_file: bool,
    jobs: Optional[int],
    show_syntax_errors: bool,
) -> SimilarityConfig:
    """
    Combine CLI values with the project config file.

    Explicit CLI values win over file values, file values win over defaults.

    Raises:
        ConfigurationError: contradictory flags
    """
    def merged(value, key, default):
        return merge_config_with_cli(file_config, value, key, default)

    types_only = merged(types_only, "types_only", False)
    interfaces_only = merged(interfaces_only, "interfaces_only", False)
    if types_only and interfaces_only:
        raise ConfigurationError("--types-only and --interfaces-only cannot be used together")
    if types_only:
        type_kind = TypeKindFilter.TYPE_ALIASES_ONLY
    elif interfaces_only:
        type_kind = TypeKindFilter.INTERFACES_ONLY
    else:
        type_kind = TypeKindFilter.ALL

    # These are lists in config, tuples from CLI
    extension_list = _split_extensions(extensions)
    if extension_list is None and "extensions" in file_config:
        extension_list = _split_extensions(tuple(_as_list(file_config["extensions"])))
    exclude_list = list(exclude) if exclude else _as_list(file_config.get("exclude"))

    return SimilarityConfig(
        threshold=merged(threshold, "threshold", DEFAULT_THRESHOLD),
        functions_enabled=not merged(no_functions, "no_functions", False),
        types_enabled=merged(experimental_types, "experimental_types", False),
        overlap_enabled=merged(experimental_overlap, "experimental_overlap", False),
        min_lines=merged(min_lines, "min_lines", None),
        min_tokens=merged(min_tokens, "min_tokens", None),
        rename_cost=merged(rename_cost, "rename_cost", DEFAULT_RENAME_COST),
        size_penalty=not merged(no_size_penalty, "no_size_penalty", False),
        filter_function=merged(filter_function, "filter_function", None),
        filter_function_body=merged(filter_function_body, "filter_function_body", None),
        fast_mode=not merged(no_fast, "no_fast", False),
        type_kind=type_kind,
        allow_cross_kind=merged(allow_cross_kind, "allow_cross_kind", True),
        structural_weight=merged(structural_weight, "structural_weight", DEFAULT_STRUCTURAL_WEIGHT),
        naming_weight=merged(naming_weight, "naming_weight", DEFAULT_NAMING_WEIGHT),
        include_type_literals=merged(include_type_literals, "include_type_literals", False),
        overlap_min_window=merged(overlap_min_window, "overlap_min_window", DEFAULT_OVERLAP_MIN_WINDOW),
        overlap_max_window=merged(overlap_max_window, "overlap_max_window", DEFAULT_OVERLAP_MAX_WINDOW),
        overlap_size_tolerance=merged(
            overlap_size_tolerance, "overlap_size_tolerance", DEFAULT_OVERLAP_SIZE_TOLERANCE
        ),
        overlap_same_file=merged(overlap_same_file, "overlap_same_file", False),
        extensions=extension_list,
        exclude=exclude_list,
        workers=merged(jobs, "jobs", None),
        show_syntax_errors=merged(show_syntax_errors, "show_syntax_errors", False),
    )


def _discovery_extensions(config: SimilarityConfig) -> Tuple[str, ...]:
    extensions = set()
    if config.functions_enabled or config.overlap_enabled:
        extensions.update(config.function_extensions())
    if config.types_enabled:
        extensions.update(config.type_extensions())
    return tuple(sorted(extensions))


@click.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("-p", "--print", "print_code", is_flag=True, help="Print code in output")
@click.option(
    "-t", "--threshold",
    type=float,
    default=DEFAULT_THRESHOLD,
    help=f"Similarity threshold 0.0-1.0 (default: {DEFAULT_THRESHOLD})"
)
@click.option("--no-functions", is_flag=True, help="Disable function similarity checking")
@click.option(
    "--experimental-types",
    is_flag=True,
    help="Enable type similarity checking (experimental)"
)
@click.option(
    "-e", "--extensions",
    multiple=True,
    help="File extensions to check, comma separated (repeatable)"
)
@click.option(
    "-m", "--min-lines",
    type=int,
    default=None,
    help="Minimum lines for functions to be considered (default: 3)"
)
@click.option(
    "--min-tokens",
    type=int,
    default=None,
    help="Minimum tokens for functions to be considered (overrides --min-lines)"
)
@click.option(
    "-r", "--rename-cost",
    type=float,
    default=DEFAULT_RENAME_COST,
    help=f"Cost of relabeling a node in the tree edit distance (default: {DEFAULT_RENAME_COST})"
)
@click.option(
    "--no-size-penalty",
    is_flag=True,
    help="Disable size penalty for very different sized functions"
)
@click.option("--filter-function", type=str, default=None, help="Filter functions by name (substring match)")
@click.option(
    "--filter-function-body",
    type=str,
    default=None,
    help="Filter functions by body content (substring match)"
)
@click.option("--types-only", is_flag=True, help="Only check type aliases (exclude interfaces)")
@click.option("--interfaces-only", is_flag=True, help="Only check interfaces (exclude type aliases)")
@click.option(
    "--allow-cross-kind/--no-allow-cross-kind",
    default=True,
    help="Allow comparison between interfaces and type aliases (default: on)"
)
@click.option(
    "--structural-weight",
    type=float,
    default=DEFAULT_STRUCTURAL_WEIGHT,
    help=f"Weight for structural similarity (default: {DEFAULT_STRUCTURAL_WEIGHT})"
)
@click.option(
    "--naming-weight",
    type=float,
    default=DEFAULT_NAMING_WEIGHT,
    help=f"Weight for naming similarity (default: {DEFAULT_NAMING_WEIGHT})"
)
@click.option(
    "--include-type-literals",
    is_flag=True,
    help="Include type literals (function return types, parameters, etc.)"
)
@click.option("--no-fast", is_flag=True, help="Disable fingerprint pre-filtering")
@click.option(
    "--exclude",
    multiple=True,
    help="Glob patterns to exclude (repeatable)"
)
@click.option("--experimental-overlap", is_flag=True, help="Enable experimental overlap detection mode")
@click.option(
    "--overlap-min-window",
    type=int,
    default=DEFAULT_OVERLAP_MIN_WINDOW,
    help=f"Minimum window size for overlap detection in nodes (default: {DEFAULT_OVERLAP_MIN_WINDOW})"
)
@click.option(
    "--overlap-max-window",
    type=int,
    default=DEFAULT_OVERLAP_MAX_WINDOW,
    help=f"Maximum window size for overlap detection in nodes (default: {DEFAULT_OVERLAP_MAX_WINDOW})"
)
@click.option(
    "--overlap-size-tolerance",
    type=float,
    default=DEFAULT_OVERLAP_SIZE_TOLERANCE,
    help=f"Size tolerance for overlap detection (default: {DEFAULT_OVERLAP_SIZE_TOLERANCE})"
)
@click.option(
    "--overlap-same-file",
    is_flag=True,
    help="Also report overlaps between two regions of the same file"
)
@click.option("--fail-on-duplicates", is_flag=True, help="Exit with code 1 if duplicates are found")
@click.option(
    "-o", "--output",
    type=str,
    default=None,
    help="Output file path (e.g., report.txt, report.md, data.json)"
)
@click.option("-j", "--jobs", type=int, default=None, help="Number of worker threads (default: CPU count)")
@click.option("--show-syntax-errors", is_flag=True, help="List files skipped because of syntax errors")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.version_option(version=__version__)
def main(
    paths: Tuple[str, ...],
    print_code: bool,
    threshold: float,
    no_functions: bool,
    experimental_types: bool,
    extensions: Tuple[str, ...],
    min_lines: Optional[int],
    min_tokens: Optional[int],
    rename_cost: float,
    no_size_penalty: bool,
    filter_function: Optional[str],
    filter_function_body: Optional[str],
    types_only: bool,
    interfaces_only: bool,
    allow_cross_kind: bool,
    structural_weight: float,
    naming_weight: float,
    include_type_literals: bool,
    no_fast: bool,
    exclude: Tuple[str, ...],
    experimental_overlap: bool,
    overlap_min_window: int,
    overlap_max_window: int,
    overlap_size_tolerance: float,
    overlap_same_file: bool,
    fail_on_duplicates: bool,
    output: Optional[str],
    jobs: Optional[int],
    show_syntax_errors: bool,
    verbose: bool,
):
    """
    TypeScript/JavaScript code similarity analyzer.

    PATHS are files or directories to analyze (default: current directory).

    Examples:

      # Duplicate functions under src/
      similarity-ts ./src

      # Also compare interfaces and type aliases
      similarity-ts ./src --experimental-types --include-type-literals

      # Duplicated statement runs, written as markdown
      similarity-ts ./src --experimental-overlap -o report.md
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    paths = paths or (".",)

    output_format = OutputFormat.TEXT
    if output:
        ext = Path(output).suffix.lower()
        if ext not in EXTENSION_FORMAT_MAP:
            valid_exts = ", ".join(EXTENSION_FORMAT_MAP.keys())
            click.echo(f"Error: Invalid output extension '{ext}'. Valid: {valid_exts}", err=True)
            sys.exit(1)
        output_format = OutputFormat(EXTENSION_FORMAT_MAP[ext])

    # Load config file and merge with CLI args
    file_config = load_config(Path(paths[0]))

    try:
        config = build_config(
            file_config,
            threshold=threshold,
            no_functions=no_functions,
            experimental_types=experimental_types,
            extensions=extensions,
            min_lines=min_lines,
            min_tokens=min_tokens,
            rename_cost=rename_cost,
            no_size_penalty=no_size_penalty,
            filter_function=filter_function,
            filter_function_body=filter_function_body,
            types_only=types_only,
            interfaces_only=interfaces_only,
            allow_cross_kind=allow_cross_kind,
            structural_weight=structural_weight,
            naming_weight=naming_weight,
            include_type_literals=include_type_literals,
            no_fast=no_fast,
            exclude=exclude,
            experimental_overlap=experimental_overlap,
            overlap_min_window=overlap_min_window,
            overlap_max_window=overlap_max_window,
            overlap_size_tolerance=overlap_size_tolerance,
            overlap_same_file=overlap_same_file,
            jobs=jobs,
            show_syntax_errors=show_syntax_errors,
        )
        config.validate()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    files = find_source_files(paths, _discovery_extensions(config), config.exclude)
    if not files:
        click.echo("No JavaScript/TypeScript files found in specified paths")
        sys.exit(0)

    logger.debug(f"Checking {len(files)} files")
    sources, diagnostics = read_sources(files)

    try:
        report = run_analysis(sources, config, diagnostics, validate=False)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    rendered = report_analysis(
        report,
        output_format=output_format,
        sources=sources,
        print_code=print_code,
        show_syntax_errors=config.show_syntax_errors,
    )

    if output:
        Path(output).write_text(rendered, encoding="utf-8")
        click.echo(f"Report written to: {output}")
    else:
        click.echo(rendered, nl=False)

    if fail_on_duplicates and report.has_duplicates:
        sys.exit(1)


# Entry point alias for pyproject.toml
cli = main


if __name__ == "__main__":
    main()
