"""Tests for settings validation and configuration files."""

import logging

import pytest

from similarity_ts.config import (
    SimilarityConfig,
    SizeFilter,
    TypeKindFilter,
    find_config_file,
    load_config,
    merge_config_with_cli,
)
from similarity_ts.errors import ConfigurationError


class TestValidate:
    def test_defaults_are_valid(self):
        assert SimilarityConfig().validate() == []

    def test_requires_an_analyzer(self):
        config = SimilarityConfig(functions_enabled=False)

        with pytest.raises(ConfigurationError, match="At least one analyzer"):
            config.validate()

    @pytest.mark.parametrize("overrides", [
        {"threshold": 1.5},
        {"threshold": -0.1},
        {"rename_cost": 2.0},
        {"structural_weight": -1.0},
        {"overlap_size_tolerance": 1.2},
        {"min_lines": -1},
        {"overlap_min_window": 0},
        {"overlap_min_window": 10, "overlap_max_window": 5},
        {"workers": 0},
    ])
    def test_rejects_out_of_range_values(self, overrides):
        with pytest.raises(ConfigurationError):
            SimilarityConfig(**overrides).validate()

    def test_warns_when_both_size_limits_set(self, caplog):
        config = SimilarityConfig(min_lines=5, min_tokens=40)

        with caplog.at_level(logging.WARNING):
            warnings = config.validate()

        assert len(warnings) == 1
        assert "--min-tokens=40" in warnings[0]
        assert "--min-tokens=40" in caplog.text

    def test_warns_on_unbalanced_weights(self):
        warnings = SimilarityConfig(structural_weight=0.7, naming_weight=0.7).validate()

        assert len(warnings) == 1
        assert "should equal 1.0" in warnings[0]


class TestDerivedOptions:
    def test_size_filter_precedence(self):
        assert SimilarityConfig().size_filter() == SizeFilter(min_lines=3)
        assert SimilarityConfig(min_lines=8).size_filter() == SizeFilter(min_lines=8)
        assert SimilarityConfig(min_lines=8, min_tokens=30).size_filter() == SizeFilter(min_tokens=30)

    def test_enabled_analyzers(self):
        assert SimilarityConfig().enabled_analyzers() == ("functions",)
        config = SimilarityConfig(functions_enabled=False, types_enabled=True, overlap_enabled=True)
        assert config.enabled_analyzers() == ("types", "overlap")

    def test_overlap_options_share_threshold(self):
        options = SimilarityConfig(threshold=0.9, overlap_same_file=True).overlap_options()

        assert options.threshold == 0.9
        assert options.include_same_file

    def test_extension_defaults(self):
        config = SimilarityConfig()
        assert "js" in config.function_extensions()
        assert "js" not in config.type_extensions()

        custom = SimilarityConfig(extensions=["ts"])
        assert custom.function_extensions() == ("ts",)
        assert custom.type_extensions() == ("ts",)

    def test_library_type_options_follow_config(self):
        options = SimilarityConfig(allow_cross_kind=False, structural_weight=0.5, naming_weight=0.5).type_options()

        assert not options.allow_cross_kind_comparison
        assert options.structural_weight == 0.5

    def test_type_kind_default(self):
        assert SimilarityConfig().type_kind is TypeKindFilter.ALL


class TestConfigFile:
    def test_finds_config_in_parent(self, tmp_path):
        (tmp_path / ".similarityrc").write_text("[similarity]\nthreshold = 0.9\n")
        nested = tmp_path / "src" / "deep"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == (tmp_path / ".similarityrc").resolve()

    def test_rc_preferred_over_toml(self, tmp_path):
        (tmp_path / ".similarityrc").write_text("[similarity]\n")
        (tmp_path / ".similarity.toml").write_text("[similarity]\n")

        assert find_config_file(tmp_path).name == ".similarityrc"

    def test_load_config_section(self, tmp_path):
        (tmp_path / ".similarity.toml").write_text(
            "[similarity]\n"
            "threshold = 0.9\n"
            "exclude = [\"**/generated/**\"]\n"
            "experimental_types = true\n"
        )

        config = load_config(tmp_path)

        assert config == {
            "threshold": 0.9,
            "exclude": ["**/generated/**"],
            "experimental_types": True,
        }

    def test_start_from_file(self, tmp_path):
        (tmp_path / ".similarityrc").write_text("[similarity]\nmin_tokens = 40\n")
        source = tmp_path / "a.ts"
        source.write_text("")

        assert load_config(source) == {"min_tokens": 40}

    def test_invalid_file_is_ignored(self, tmp_path, caplog):
        (tmp_path / ".similarityrc").write_text("[similarity\nthreshold = ")

        with caplog.at_level(logging.WARNING):
            assert load_config(tmp_path) == {}
        assert "Ignoring config file" in caplog.text

    def test_missing_section(self, tmp_path):
        (tmp_path / ".similarityrc").write_text("[other]\nthreshold = 0.9\n")

        assert load_config(tmp_path) == {}


class TestMergeConfigWithCli:
    def test_cli_value_wins_when_set(self):
        assert merge_config_with_cli({"threshold": 0.9}, 0.8, "threshold", 0.87) == 0.8

    def test_config_used_when_cli_is_default(self):
        assert merge_config_with_cli({"threshold": 0.9}, 0.87, "threshold", 0.87) == 0.9

    def test_default_when_nothing_set(self):
        assert merge_config_with_cli({}, 0.87, "threshold", 0.87) == 0.87
