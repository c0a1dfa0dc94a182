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
Analysis settings and configuration file support.

Settings are carried in an explicit SimilarityConfig value that the pipeline
threads into every extraction and comparison call. A project can keep
defaults in .similarityrc or .similarity.toml in the analysed directory or
any of its parents.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

CONFIG_NAMES = [".similarityrc", ".similarity.toml"]
CONFIG_SECTION = "similarity"

DEFAULT_THRESHOLD = 0.87
DEFAULT_RENAME_COST = 0.3
DEFAULT_MIN_LINES = 3
DEFAULT_STRUCTURAL_WEIGHT = 0.6
DEFAULT_NAMING_WEIGHT = 0.4
DEFAULT_OVERLAP_MIN_WINDOW = 8
DEFAULT_OVERLAP_MAX_WINDOW = 25
DEFAULT_OVERLAP_SIZE_TOLERANCE = 0.25

# Allowed deviation of structural_weight + naming_weight from 1.0
WEIGHT_SUM_TOLERANCE = 0.001

FUNCTION_EXTENSIONS = ("js", "ts", "jsx", "tsx", "mjs", "mts", "cjs", "cts")
TYPE_EXTENSIONS = ("ts", "tsx", "mts", "cts")


class TypeKindFilter(Enum):
    ALL = "all"
    TYPE_ALIASES_ONLY = "aliases"
    INTERFACES_ONLY = "interfaces"


@dataclass(frozen=True)
class FunctionComparisonOptions:
    rename_cost: float = DEFAULT_RENAME_COST
    size_penalty: bool = True


@dataclass(frozen=True)
class TypeComparisonOptions:
    allow_cross_kind_comparison: bool = False
    structural_weight: float = DEFAULT_STRUCTURAL_WEIGHT
    naming_weight: float = DEFAULT_NAMING_WEIGHT


@dataclass(frozen=True)
class OverlapOptions:
    min_window_size: int = DEFAULT_OVERLAP_MIN_WINDOW
    max_window_size: int = DEFAULT_OVERLAP_MAX_WINDOW
    threshold: float = DEFAULT_THRESHOLD
    size_tolerance: float = DEFAULT_OVERLAP_SIZE_TOLERANCE
    rename_cost: float = DEFAULT_RENAME_COST
    include_same_file: bool = False


@dataclass(frozen=True)
class SizeFilter:
    """Minimum function size; exactly one of the two fields is set."""

    min_lines: Optional[int] = None
    min_tokens: Optional[int] = None


@dataclass
class SimilarityConfig:
    """Every setting of an analysis run."""

    threshold: float = DEFAULT_THRESHOLD
    functions_enabled: bool = True
    types_enabled: bool = False
    overlap_enabled: bool = False

    # Functions
    min_lines: Optional[int] = None
    min_tokens: Optional[int] = None
    rename_cost: float = DEFAULT_RENAME_COST
    size_penalty: bool = True
    filter_function: Optional[str] = None
    filter_function_body: Optional[str] = None
    fast_mode: bool = True

    # Types
    type_kind: TypeKindFilter = TypeKindFilter.ALL
    allow_cross_kind: bool = True
    structural_weight: float = DEFAULT_STRUCTURAL_WEIGHT
    naming_weight: float = DEFAULT_NAMING_WEIGHT
    include_type_literals: bool = False

    # Overlap
    overlap_min_window: int = DEFAULT_OVERLAP_MIN_WINDOW
    overlap_max_window: int = DEFAULT_OVERLAP_MAX_WINDOW
    overlap_size_tolerance: float = DEFAULT_OVERLAP_SIZE_TOLERANCE
    overlap_same_file: bool = False

    # Run
    extensions: Optional[List[str]] = None
    exclude: List[str] = field(default_factory=list)
    workers: Optional[int] = None
    show_syntax_errors: bool = False

    def validate(self) -> List[str]:
        """
        Check settings before a run.

        Raises:
            ConfigurationError: no analyzer enabled, or a value out of range

        Returns:
            Warnings for recoverable problems (already logged)
        """
        if not (self.functions_enabled or self.types_enabled or self.overlap_enabled):
            raise ConfigurationError(
                "At least one analyzer must be enabled. Use --experimental-types "
                "to enable type checking, --experimental-overlap for overlap "
                "detection, or remove --no-functions."
            )

        _check_unit_interval("threshold", self.threshold)
        _check_unit_interval("rename_cost", self.rename_cost)
        _check_unit_interval("structural_weight", self.structural_weight)
        _check_unit_interval("naming_weight", self.naming_weight)
        _check_unit_interval("overlap_size_tolerance", self.overlap_size_tolerance)

        for name in ("min_lines", "min_tokens"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{name} must not be negative (got {value})")

        if self.overlap_min_window < 1:
            raise ConfigurationError(
                f"overlap_min_window must be at least 1 (got {self.overlap_min_window})"
            )
        if self.overlap_max_window < self.overlap_min_window:
            raise ConfigurationError(
                f"overlap_max_window ({self.overlap_max_window}) must not be smaller "
                f"than overlap_min_window ({self.overlap_min_window})"
            )
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1 (got {self.workers})")

        warnings = []
        if self.min_lines is not None and self.min_tokens is not None:
            warnings.append(
                f"Both --min-lines and --min-tokens specified. "
                f"Using --min-tokens={self.min_tokens}"
            )
        if abs(self.structural_weight + self.naming_weight - 1.0) > WEIGHT_SUM_TOLERANCE:
            warnings.append(
                f"structural_weight + naming_weight should equal 1.0 "
                f"(got {self.structural_weight} + {self.naming_weight})"
            )

        for message in warnings:
            logger.warning(message)
        return warnings

    def enabled_analyzers(self) -> Tuple[str, ...]:
        enabled = (
            ("functions", self.functions_enabled),
            ("types", self.types_enabled),
            ("overlap", self.overlap_enabled),
        )
        return tuple(name for name, on in enabled if on)

    def size_filter(self) -> SizeFilter:
        """Resolve min lines / min tokens; tokens take precedence."""
        if self.min_tokens is not None:
            return SizeFilter(min_tokens=self.min_tokens)
        if self.min_lines is not None:
            return SizeFilter(min_lines=self.min_lines)
        return SizeFilter(min_lines=DEFAULT_MIN_LINES)

    def function_options(self) -> FunctionComparisonOptions:
        return FunctionComparisonOptions(
            rename_cost=self.rename_cost,
            size_penalty=self.size_penalty,
        )

    def type_options(self) -> TypeComparisonOptions:
        return TypeComparisonOptions(
            allow_cross_kind_comparison=self.allow_cross_kind,
            structural_weight=self.structural_weight,
            naming_weight=self.naming_weight,
        )

    def overlap_options(self) -> OverlapOptions:
        return OverlapOptions(
            min_window_size=self.overlap_min_window,
            max_window_size=self.overlap_max_window,
            threshold=self.threshold,
            size_tolerance=self.overlap_size_tolerance,
            rename_cost=self.rename_cost,
            include_same_file=self.overlap_same_file,
        )

    def function_extensions(self) -> Tuple[str, ...]:
        return tuple(self.extensions) if self.extensions else FUNCTION_EXTENSIONS

    def type_extensions(self) -> Tuple[str, ...]:
        return tuple(self.extensions) if self.extensions else TYPE_EXTENSIONS

    def max_workers(self) -> int:
        return self.workers or os.cpu_count() or 1


def _check_unit_interval(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be between 0.0 and 1.0 (got {value})")


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for .similarityrc or .similarity.toml in start_path and parents.

    Args:
        start_path: Directory (or file) to start searching from

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_path.resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_NAMES:
            config_path = current / name
            if config_path.is_file():
                return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load the [similarity] table of the nearest configuration file.

    Returns an empty dict when no file is found. An unreadable or invalid
    file is reported as a warning and ignored.

    Example config file (.similarityrc or .similarity.toml):
        [similarity]
        threshold = 0.9
        min_tokens = 40
        exclude = ["**/generated/**"]
        experimental_types = true
        structural_weight = 0.7
        naming_weight = 0.3
    """
    config_path = find_config_file(path)
    if config_path is None:
        return {}

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring config file {config_path}: {e}")
        return {}

    section = data.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        logger.warning(f"Ignoring config file {config_path}: [{CONFIG_SECTION}] is not a table")
        return {}

    logger.debug(f"Loaded config from {config_path}")
    return section


def merge_config_with_cli(
    config: Dict[str, Any],
    cli_value,
    config_key: str,
    default_value,
):
    """
    Merge config file value with CLI value.

    If CLI value differs from default, use CLI (user explicitly set it).
    Otherwise, use config value if present, else use default.
    """
    if cli_value != default_value:
        return cli_value
    return config.get(config_key, default_value)
