"""Tests for the type similarity engine."""

import Levenshtein
import pytest

from similarity_ts.config import TypeComparisonOptions
from similarity_ts.extractor import extract_type_literals_from_code, extract_types_from_code
from similarity_ts.models import Property, TypeDefinition, TypeKind
from similarity_ts.type_similarity import (
    compare_type_literal,
    compare_types,
    compute_differences,
    find_similar_type_literals,
    find_similar_types,
    name_similarity,
    property_name_overlap,
    structural_similarity,
)

from conftest import TYPE_LITERALS, USER_TYPES


def make_type(type_name, kind=TypeKind.INTERFACE, line=1, **props):
    properties = tuple(
        Property(prop, annotation.rstrip("?"), optional=annotation.endswith("?"))
        for prop, annotation in props.items()
    )
    return TypeDefinition("t.ts", type_name, kind, line, line + len(properties) + 1, properties)


@pytest.fixture
def user_types():
    types = extract_types_from_code(USER_TYPES, "types.ts")
    return {t.name: t for t in types}


class TestStructuralSimilarity:
    def test_identical_shapes(self):
        t = make_type("A", id="string", count="number")
        assert structural_similarity(t.properties, t.properties) == 1.0

    def test_type_mismatch_gets_partial_credit(self):
        a = make_type("A", id="string")
        b = make_type("B", id="number")
        assert structural_similarity(a.properties, b.properties) == pytest.approx(0.5)

    def test_optionality_penalty(self):
        a = make_type("A", id="string", age="number")
        b = make_type("B", id="string", age="number?")
        assert structural_similarity(a.properties, b.properties) == pytest.approx(1.9 / 2)

    def test_disjoint_shapes(self):
        a = make_type("A", id="string")
        b = make_type("B", name="string")
        assert structural_similarity(a.properties, b.properties) == 0.0

    def test_empty_shapes(self):
        assert structural_similarity((), ()) == 1.0

    def test_whitespace_in_types_is_ignored(self):
        a = make_type("A", cb="(a: number) => void")
        b = make_type("B", cb="(a:number)=>void")
        assert structural_similarity(a.properties, b.properties) == 1.0


class TestNaming:
    def test_name_similarity_is_case_insensitive(self):
        assert name_similarity("UserData", "userdata") == 1.0

    def test_name_similarity_uses_edit_ratio(self):
        assert name_similarity("User", "Users") == pytest.approx(Levenshtein.ratio("user", "users"))

    def test_property_name_overlap(self):
        a = make_type("A", id="string", name="string")
        b = make_type("B", id="number", email="string")
        assert property_name_overlap(a.properties, b.properties) == pytest.approx(1 / 3)


class TestDifferences:
    def test_all_difference_kinds(self):
        a = make_type("A", id="string", name="string", age="number")
        b = make_type("B", id="number", age="number?", email="string")
        diff = compute_differences(a.properties, b.properties)

        assert diff.missing_properties == ("name",)
        assert diff.extra_properties == ("email",)
        assert [(m.property, m.type1, m.type2) for m in diff.type_mismatches] == [
            ("id", "string", "number")
        ]
        assert diff.optionality_differences == ("age",)
        assert not diff.is_empty

    def test_identical_has_no_differences(self):
        a = make_type("A", id="string")
        assert compute_differences(a.properties, a.properties).is_empty


class TestCompareTypes:
    def test_interface_and_alias(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=True)
        result = compare_types(user_types["User"], user_types["Person"], options)

        expected_naming = 0.5 * Levenshtein.ratio("user", "person") + 0.5 * 1.0
        assert result.structural_similarity == pytest.approx(3.9 / 4)
        assert result.naming_similarity == pytest.approx(expected_naming)
        assert result.similarity == pytest.approx(0.6 * 3.9 / 4 + 0.4 * expected_naming)
        assert result.differences.optionality_differences == ("age",)
        assert result.differences.missing_properties == ()
        assert result.differences.extra_properties == ()

    def test_cross_kind_disabled_scores_zero_but_keeps_differences(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=False)
        result = compare_types(user_types["User"], user_types["Person"], options)

        assert result.similarity == 0.0
        assert result.structural_similarity == 0.0
        assert result.naming_similarity == 0.0
        assert result.differences.optionality_differences == ("age",)

    def test_symmetric(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=True)
        forward = compare_types(user_types["User"], user_types["Person"], options)
        backward = compare_types(user_types["Person"], user_types["User"], options)

        assert forward.similarity == backward.similarity

    def test_weights(self, user_types):
        structural_only = TypeComparisonOptions(True, structural_weight=1.0, naming_weight=0.0)
        naming_only = TypeComparisonOptions(True, structural_weight=0.0, naming_weight=1.0)

        a = compare_types(user_types["User"], user_types["Person"], structural_only)
        b = compare_types(user_types["User"], user_types["Person"], naming_only)

        assert a.similarity == pytest.approx(a.structural_similarity)
        assert b.similarity == pytest.approx(b.naming_similarity)

    def test_identical_types_score_one(self):
        a = make_type("Config", host="string", port="number")
        b = make_type("Config", line=10, host="string", port="number")
        assert compare_types(a, b, TypeComparisonOptions()).similarity == pytest.approx(1.0)


class TestFindSimilarTypes:
    def test_pairs_interface_with_alias(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=True)
        pairs = find_similar_types(list(user_types.values()), 0.8, options)

        assert [(p.unit1.name, p.unit2.name) for p in pairs] == [("User", "Person")]
        assert pairs[0].result is not None
        assert pairs[0].similarity == pairs[0].result.similarity

    def test_same_kind_only_pairs(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=False)
        pairs = find_similar_types(list(user_types.values()), 0.0, options)

        assert [(p.unit1.name, p.unit2.name) for p in pairs] == [("User", "Product")]

    def test_types_without_properties_are_skipped(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=True)
        pairs = find_similar_types(list(user_types.values()), 0.0, options)

        assert all("Status" not in (p.unit1.name, p.unit2.name) for p in pairs)

    def test_worker_count_does_not_change_result(self, user_types):
        options = TypeComparisonOptions(allow_cross_kind_comparison=True)
        units = list(user_types.values())

        single = find_similar_types(units, 0.0, options, workers=1)
        many = find_similar_types(units, 0.0, options, workers=3)

        assert single == many


class TestTypeLiterals:
    def test_literal_matches_interface(self):
        types = extract_types_from_code(TYPE_LITERALS, "point.ts")
        literals = extract_type_literals_from_code(TYPE_LITERALS, "point.ts")

        pairs = find_similar_type_literals(literals, types, 0.87, TypeComparisonOptions())

        assert [p.type_literal.name for p in pairs] == ["makePoint (return)", "move.delta", "origin"]
        assert all(p.type_definition.name == "Point" for p in pairs)
        assert all(p.similarity == pytest.approx(1.0) for p in pairs)

    def test_literal_naming_ignores_declaration_name(self):
        point = make_type("Point", x="number", y="number")
        literal = extract_type_literals_from_code(TYPE_LITERALS, "point.ts")[0]

        result = compare_type_literal(literal, point, TypeComparisonOptions())
        assert result.naming_similarity == 1.0
