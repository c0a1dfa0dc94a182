"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from similarity_ts import __version__
from similarity_ts.cli import build_config, main
from similarity_ts.config import TypeKindFilter
from similarity_ts.errors import ConfigurationError

from conftest import OVERLAP_SOURCE, OVERLAP_TARGET


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def in_project(project, monkeypatch):
    monkeypatch.chdir(project)
    return project


def cli_defaults(**overrides):
    values = dict(
        threshold=0.87,
        no_functions=False,
        experimental_types=False,
        extensions=(),
        min_lines=None,
        min_tokens=None,
        rename_cost=0.3,
        no_size_penalty=False,
        filter_function=None,
        filter_function_body=None,
        types_only=False,
        interfaces_only=False,
        allow_cross_kind=True,
        structural_weight=0.6,
        naming_weight=0.4,
        include_type_literals=False,
        no_fast=False,
        exclude=(),
        experimental_overlap=False,
        overlap_min_window=8,
        overlap_max_window=25,
        overlap_size_tolerance=0.25,
        overlap_same_file=False,
        jobs=None,
        show_syntax_errors=False,
    )
    values.update(overrides)
    return values


class TestBuildConfig:
    def test_defaults(self):
        config = build_config({}, **cli_defaults())

        assert config.functions_enabled
        assert not config.types_enabled
        assert config.allow_cross_kind
        assert config.extensions is None

    def test_file_values_fill_defaults(self):
        file_config = {"threshold": 0.95, "experimental_types": True, "exclude": "**/gen/**"}
        config = build_config(file_config, **cli_defaults())

        assert config.threshold == 0.95
        assert config.types_enabled
        assert config.exclude == ["**/gen/**"]

    def test_cli_values_win(self):
        config = build_config({"threshold": 0.95}, **cli_defaults(threshold=0.7))
        assert config.threshold == 0.7

    def test_comma_separated_extensions(self):
        config = build_config({}, **cli_defaults(extensions=("ts,.tsx", "js")))
        assert config.extensions == ["ts", "tsx", "js"]

    def test_type_kind_flags(self):
        assert build_config({}, **cli_defaults(types_only=True)).type_kind is TypeKindFilter.TYPE_ALIASES_ONLY
        assert build_config({}, **cli_defaults(interfaces_only=True)).type_kind is TypeKindFilter.INTERFACES_ONLY

    def test_conflicting_type_kind_flags(self):
        with pytest.raises(ConfigurationError):
            build_config({}, **cli_defaults(types_only=True, interfaces_only=True))


class TestMain:
    def test_reports_duplicate_functions(self, runner, in_project):
        result = runner.invoke(main, ["."])

        assert result.exit_code == 0
        assert "src/math.ts:1 | L1-7 similar-function: calculateTotal" in result.output
        assert "node_modules" not in result.output

    def test_fail_on_duplicates(self, runner, in_project):
        result = runner.invoke(main, [".", "--fail-on-duplicates"])
        assert result.exit_code == 1

        result = runner.invoke(main, [".", "--fail-on-duplicates", "--filter-function", "greet"])
        assert result.exit_code == 0

    def test_no_analyzer_is_an_error(self, runner, in_project):
        result = runner.invoke(main, [".", "--no-functions"])

        assert result.exit_code == 1
        assert "At least one analyzer must be enabled" in result.output

    def test_invalid_threshold(self, runner, in_project):
        result = runner.invoke(main, [".", "--threshold", "1.5"])

        assert result.exit_code == 1
        assert "threshold" in result.output

    def test_no_files(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path)])

        assert result.exit_code == 0
        assert "No JavaScript/TypeScript files found" in result.output

    def test_types_and_overlap(self, runner, in_project):
        (in_project / "src" / "a.js").write_text(OVERLAP_SOURCE)
        (in_project / "src" / "b.js").write_text(OVERLAP_TARGET)

        result = runner.invoke(main, [
            ".", "--experimental-types", "--experimental-overlap", "-t", "0.8",
        ])

        assert result.exit_code == 0
        assert "=== Type Similarity ===" in result.output
        assert "similar-type: Person (type)" in result.output
        assert "=== Overlap Detection ===" in result.output
        assert "in function: first" in result.output

    def test_show_syntax_errors(self, runner, in_project):
        hidden = runner.invoke(main, ["."])
        shown = runner.invoke(main, [".", "--show-syntax-errors"])

        assert "broken.ts" not in hidden.output
        assert "syntax_error" in shown.output
        assert "broken.ts" in shown.output

    @pytest.mark.parametrize("name,marker", [
        ("report.txt", "=== Function Similarity ==="),
        ("report.md", "# Code Similarity Report"),
    ])
    def test_output_file(self, runner, in_project, name, marker):
        result = runner.invoke(main, [".", "-o", name])

        assert result.exit_code == 0
        assert f"Report written to: {name}" in result.output
        assert marker in (in_project / name).read_text()

    def test_json_output(self, runner, in_project):
        result = runner.invoke(main, [".", "-o", "data.json"])

        assert result.exit_code == 0
        data = json.loads((in_project / "data.json").read_text())
        assert data["meta"]["files_analyzed"] == 2
        assert len(data["function_pairs"]) == 1

    def test_invalid_output_extension(self, runner, in_project):
        result = runner.invoke(main, [".", "-o", "report.html"])

        assert result.exit_code == 1
        assert "Invalid output extension" in result.output

    def test_config_file(self, runner, in_project):
        (in_project / ".similarityrc").write_text(
            "[similarity]\n"
            "exclude = [\"*math.ts\"]\n"
        )

        result = runner.invoke(main, ["."])

        assert result.exit_code == 0
        assert "No duplicate functions found!" in result.output

    def test_extensions_option(self, runner, in_project):
        result = runner.invoke(main, [".", "-e", "js"])

        assert result.exit_code == 0
        assert "No JavaScript/TypeScript files found" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
