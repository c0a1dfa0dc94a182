"""Tests for the function similarity engine."""

import pytest

from similarity_ts.config import FunctionComparisonOptions
from similarity_ts.extractor import extract_functions_from_code
from similarity_ts.functions import compare_functions, find_similar_functions

from conftest import ADD_FUNCTIONS, RENAMED_SUM


def long_function(name: str, statements: int) -> str:
    body = "\n".join(f"    const v{i} = input.value + {i};" for i in range(statements))
    return f"function {name}(input) {{\n{body}\n    return input;\n}}\n"


@pytest.fixture
def options():
    return FunctionComparisonOptions()


@pytest.fixture
def functions():
    return extract_functions_from_code(ADD_FUNCTIONS, "math.ts")


class TestCompareFunctions:
    def test_identical_bodies(self, functions, options):
        total, sum_items, _ = functions
        assert compare_functions(total, sum_items, options) == 1.0

    def test_symmetric(self, functions, options):
        total, _, greet = functions
        assert compare_functions(total, greet, options) == compare_functions(greet, total, options)

    def test_renamed_variables_score_below_identical(self, functions, options):
        renamed = extract_functions_from_code(RENAMED_SUM, "renamed.ts")[0]
        score = compare_functions(functions[0], renamed, options)

        assert 0.8 < score < 1.0

    def test_rename_cost_zero_ignores_identifiers(self, functions):
        renamed = extract_functions_from_code(RENAMED_SUM, "renamed.ts")[0]
        options = FunctionComparisonOptions(rename_cost=0.0)

        assert compare_functions(functions[0], renamed, options) == 1.0

    def test_size_penalty(self):
        small = extract_functions_from_code(long_function("small", 5), "a.ts")[0]
        large = extract_functions_from_code(long_function("large", 50), "b.ts")[0]

        penalized = compare_functions(small, large, FunctionComparisonOptions(size_penalty=True))
        plain = compare_functions(small, large, FunctionComparisonOptions(size_penalty=False))

        assert penalized < plain
        assert penalized < 0.87


class TestFindSimilarFunctions:
    def test_finds_identical_pair(self, functions, options):
        pairs = find_similar_functions(functions, 0.87, options)

        assert len(pairs) == 1
        pair = pairs[0]
        assert pair.similarity == 1.0
        assert pair.unit1.name == "calculateTotal"
        assert pair.unit2.name == "sumItems"

    def test_same_function_in_two_files(self, options):
        units = (
            extract_functions_from_code(RENAMED_SUM, "b.ts")
            + extract_functions_from_code(RENAMED_SUM, "a.ts")
        )

        pairs = find_similar_functions(units, 0.87, options, workers=2)

        assert len(pairs) == 1
        assert pairs[0].similarity == 1.0
        assert (pairs[0].unit1.file_path, pairs[0].unit2.file_path) == ("a.ts", "b.ts")

    def test_no_self_pairs(self, functions, options):
        for pair in find_similar_functions(functions, 0.0, options):
            assert pair.unit1 != pair.unit2

    def test_threshold_monotonic(self, functions, options):
        renamed = extract_functions_from_code(RENAMED_SUM, "renamed.ts")
        units = functions + renamed

        previous = None
        for threshold in (0.95, 0.9, 0.8, 0.5, 0.0):
            keys = {p.sort_key for p in find_similar_functions(units, threshold, options)}
            if previous is not None:
                assert previous <= keys
            previous = keys

    def test_fast_mode_matches_exhaustive(self, functions, options):
        renamed = extract_functions_from_code(RENAMED_SUM, "renamed.ts")
        units = functions + renamed

        for threshold in (0.5, 0.8, 0.87):
            fast = find_similar_functions(units, threshold, options, fast_mode=True)
            slow = find_similar_functions(units, threshold, options, fast_mode=False)
            assert [p.sort_key for p in fast] == [p.sort_key for p in slow]
            assert [p.similarity for p in fast] == [p.similarity for p in slow]

    def test_order_independent(self, functions, options):
        forward = find_similar_functions(functions, 0.5, options)
        backward = find_similar_functions(list(reversed(functions)), 0.5, options)

        assert [p.sort_key for p in forward] == [p.sort_key for p in backward]

    def test_worker_count_does_not_change_result(self, functions, options):
        renamed = extract_functions_from_code(RENAMED_SUM, "renamed.ts")
        units = functions + renamed

        single = find_similar_functions(units, 0.5, options, workers=1)
        many = find_similar_functions(units, 0.5, options, workers=4)

        assert single == many

    def test_nested_functions_are_not_paired(self, options):
        source = (
            "function outer(items) {\n"
            "    const inner = function (items) {\n"
            "        return items.length;\n"
            "    };\n"
            "    return inner(items);\n"
            "}\n"
        )
        units = extract_functions_from_code(source, "nested.ts")

        assert len(units) == 2
        assert find_similar_functions(units, 0.0, options) == []

    def test_fewer_than_two_units(self, functions, options):
        assert find_similar_functions(functions[:1], 0.5, options) == []
        assert find_similar_functions([], 0.5, options) == []
