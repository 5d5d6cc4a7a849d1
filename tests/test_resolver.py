"""Tests for highlight resolution."""

from types import MappingProxyType

import pytest

from provmap.loader import ReportContext
from provmap.models import Artifact, CodeVariant, MappingTables
from provmap.resolver import has_match, matched_lines, resolve


def _tables(**channels) -> MappingTables:
    variant = channels.pop("variant", CodeVariant.PYTHON)
    return MappingTables(
        variant=variant,
        **{name: MappingProxyType(table) for name, table in channels.items()},
    )


def _numbered(lines_by_number, total):
    """Text with the given 1-based lines filled in and filler everywhere else."""
    return "\n".join(lines_by_number.get(n, "") for n in range(1, total + 1))


class TestScenarios:
    """End-to-end scenarios from raw text to highlight result."""

    def test_pre_line_maps_to_post_line_without_code(self):
        context = ReportContext.build(
            _numbered({3: "foo = op(x)"}, 5),
            _numbered({5: "foo_1 = op2(x)"}, 6),
            None,
            {"preToPost": {"foo": ["foo_1"]}},
        )

        assert resolve(Artifact.PRE_GRAPH, 3, context.tables) == {
            Artifact.POST_GRAPH: [5],
            Artifact.GENERATED_CODE: [],
        }

    def test_code_line_chains_through_post_graph(self):
        code = _numbered(
            {
                10: "k0 = async_compile.triton('k0', '''",
                11: "@triton.jit",
                12: "def k0(in_ptr0):",
                13: "    pass",
                14: "''', device_str='cuda')",
            },
            15,
        )
        context = ReportContext.build(
            _numbered({3: "foo = op(x)"}, 5),
            _numbered({5: "foo_1 = op2(x)"}, 6),
            code,
            {"cppCodeToPost": {"k0": ["foo_1"]}, "postToPre": {"foo_1": ["foo"]}},
        )

        assert context.variant is CodeVariant.PYTHON
        assert resolve(Artifact.GENERATED_CODE, 12, context.tables) == {
            Artifact.POST_GRAPH: [5],
            Artifact.PRE_GRAPH: [3],
        }

    def test_unknown_line_gives_empty_lists(self, python_context: ReportContext):
        assert resolve(Artifact.PRE_GRAPH, 99, python_context.tables) == {
            Artifact.POST_GRAPH: [],
            Artifact.GENERATED_CODE: [],
        }


class TestResolve:
    """Tests for hop structure, duplicates and purity."""

    def test_pre_source_two_hops(self, python_context: ReportContext):
        result = resolve(Artifact.PRE_GRAPH, 3, python_context.tables)

        assert result[Artifact.POST_GRAPH] == [5]
        assert result[Artifact.GENERATED_CODE] == [10, 11, 12, 13, 14]

    def test_post_source_single_hop(self, python_context: ReportContext):
        result = resolve(Artifact.POST_GRAPH, 6, python_context.tables)

        assert result == {
            Artifact.PRE_GRAPH: [4],
            Artifact.GENERATED_CODE: list(range(17, 23)),
        }

    def test_cpp_variant_channels(self, cpp_context: ReportContext):
        assert resolve(Artifact.GENERATED_CODE, 13, cpp_context.tables) == {
            Artifact.POST_GRAPH: [5],
            Artifact.PRE_GRAPH: [3],
        }
        assert resolve(Artifact.POST_GRAPH, 6, cpp_context.tables)[Artifact.GENERATED_CODE] == [12]

    def test_two_hop_consistency(self):
        tables = _tables(pre_to_post={1: (7,)}, post_to_code={7: (40,)})
        assert 40 in resolve(Artifact.PRE_GRAPH, 1, tables)[Artifact.GENERATED_CODE]

    def test_two_hop_results_keep_duplicates(self):
        tables = _tables(
            pre_to_post={1: (7, 8)},
            post_to_code={7: (40, 41), 8: (41,)},
        )
        assert resolve(Artifact.PRE_GRAPH, 1, tables)[Artifact.GENERATED_CODE] == [40, 41, 41]

    def test_code_to_pre_keeps_duplicates(self):
        tables = _tables(code_to_post={40: (7, 7)}, post_to_pre={7: (1,)})
        assert resolve(Artifact.GENERATED_CODE, 40, tables) == {
            Artifact.POST_GRAPH: [7, 7],
            Artifact.PRE_GRAPH: [1, 1],
        }

    def test_no_chain_when_first_hop_is_empty(self):
        tables = _tables(post_to_code={7: (40,)})
        assert resolve(Artifact.PRE_GRAPH, 1, tables)[Artifact.GENERATED_CODE] == []

    @pytest.mark.parametrize("source", list(Artifact))
    @pytest.mark.parametrize("line", [-1, 0, 1, 10_000])
    def test_never_raises_on_unknown_lines(self, source: Artifact, line: int):
        result = resolve(source, line, MappingTables())

        assert source not in result
        assert set(result) == set(Artifact) - {source}
        assert all(lines == [] for lines in result.values())

    def test_is_deterministic(self, python_context: ReportContext):
        first = resolve(Artifact.GENERATED_CODE, 18, python_context.tables)
        second = resolve(Artifact.GENERATED_CODE, 18, python_context.tables)

        assert first == second
        assert repr(first) == repr(second)

    def test_result_does_not_alias_tables(self, python_context: ReportContext):
        result = resolve(Artifact.PRE_GRAPH, 3, python_context.tables)
        result[Artifact.POST_GRAPH].append(999)

        assert resolve(Artifact.PRE_GRAPH, 3, python_context.tables)[Artifact.POST_GRAPH] == [5]


class TestMatches:
    """Tests for has-match marking."""

    def test_has_match(self, python_context: ReportContext):
        tables = python_context.tables

        assert has_match(Artifact.PRE_GRAPH, 3, tables)
        assert not has_match(Artifact.PRE_GRAPH, 2, tables)
        assert has_match(Artifact.POST_GRAPH, 5, tables)
        assert has_match(Artifact.GENERATED_CODE, 20, tables)
        assert not has_match(Artifact.GENERATED_CODE, 25, tables)

    def test_matched_lines(self, python_context: ReportContext):
        tables = python_context.tables

        assert matched_lines(Artifact.PRE_GRAPH, tables) == {3, 4}
        assert matched_lines(Artifact.POST_GRAPH, tables) == {5, 6}
        assert matched_lines(Artifact.GENERATED_CODE, tables) == set(range(10, 15)) | set(range(17, 23))
