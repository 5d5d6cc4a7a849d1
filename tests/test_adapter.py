"""Tests for the interaction adapter."""

from types import MappingProxyType
from typing import List, Tuple

from provmap.adapter import HighlightPlan, InteractionAdapter
from provmap.loader import ReportContext
from provmap.models import Artifact, CodeVariant, MappingTables


class RecordingSurface:
    """Surface double that records every call in order."""

    def __init__(self):
        self.calls: List[Tuple] = []

    def clear_highlights(self) -> None:
        self.calls.append(("clear",))

    def highlight(self, artifact: Artifact, line: int) -> None:
        self.calls.append(("highlight", artifact, line))

    def scroll_to(self, artifact: Artifact, line: int) -> None:
        self.calls.append(("scroll", artifact, line))

    @property
    def highlighted(self):
        return [(c[1], c[2]) for c in self.calls if c[0] == "highlight"]

    @property
    def scrolls(self):
        return [(c[1], c[2]) for c in self.calls if c[0] == "scroll"]


def _adapter(context: ReportContext) -> InteractionAdapter:
    return InteractionAdapter(context.tables, context.line_counts)


def test_plan_includes_source_and_targets(python_context: ReportContext):
    plan = _adapter(python_context).plan(Artifact.PRE_GRAPH, 3)

    assert plan.highlights == {
        Artifact.PRE_GRAPH: [3],
        Artifact.POST_GRAPH: [5],
        Artifact.GENERATED_CODE: [10, 11, 12, 13, 14],
    }
    assert not plan.is_empty


def test_scroll_target_is_middle_of_longest_list(python_context: ReportContext):
    plan = _adapter(python_context).plan(Artifact.PRE_GRAPH, 3)
    assert plan.scroll_target == (Artifact.GENERATED_CODE, 12)


def test_source_panel_is_never_scrolled(python_context: ReportContext):
    adapter = _adapter(python_context)

    for source in Artifact:
        for line in range(1, 30):
            plan = adapter.plan(source, line)
            if plan.scroll_target is not None:
                assert plan.scroll_target[0] is not source


def test_ties_go_to_first_artifact_in_order():
    tables = MappingTables(
        post_to_pre=MappingProxyType({5: (1, 2)}),
        post_to_code=MappingProxyType({5: (8, 9)}),
        variant=CodeVariant.CPP,
    )
    adapter = InteractionAdapter(tables, {a: 20 for a in Artifact})

    assert adapter.plan(Artifact.POST_GRAPH, 5).scroll_target == (Artifact.PRE_GRAPH, 2)


def test_out_of_range_lines_are_dropped():
    tables = MappingTables(pre_to_post=MappingProxyType({1: (3, 50)}))
    adapter = InteractionAdapter(tables, {Artifact.PRE_GRAPH: 4, Artifact.POST_GRAPH: 10})

    plan = adapter.plan(Artifact.PRE_GRAPH, 1)
    assert plan.highlights[Artifact.POST_GRAPH] == [3]
    assert plan.highlights[Artifact.GENERATED_CODE] == []


def test_unmatched_line_plan_is_empty(python_context: ReportContext):
    plan = _adapter(python_context).plan(Artifact.POST_GRAPH, 1)

    assert plan.is_empty
    assert plan.scroll_target is None
    assert plan.highlights[Artifact.POST_GRAPH] == [1]


def test_hover_clears_then_highlights_then_scrolls(python_context: ReportContext):
    surface = RecordingSurface()
    _adapter(python_context).on_hover(Artifact.GENERATED_CODE, 12, surface)

    assert surface.calls[0] == ("clear",)
    # equal-length lists: the first artifact in order wins
    assert surface.calls[-1] == ("scroll", Artifact.PRE_GRAPH, 3)
    assert set(surface.highlighted) == {
        (Artifact.GENERATED_CODE, 12),
        (Artifact.POST_GRAPH, 5),
        (Artifact.PRE_GRAPH, 3),
    }


def test_click_matches_hover(python_context: ReportContext):
    adapter = _adapter(python_context)
    hover, click = RecordingSurface(), RecordingSurface()

    adapter.on_hover(Artifact.POST_GRAPH, 6, hover)
    adapter.on_click(Artifact.POST_GRAPH, 6, click)

    assert hover.calls == click.calls


def test_leave_clears(python_context: ReportContext):
    surface = RecordingSurface()
    _adapter(python_context).on_leave(surface)
    assert surface.calls == [("clear",)]


def test_apply_without_scroll_target():
    surface = RecordingSurface()
    plan = HighlightPlan(source=Artifact.PRE_GRAPH, line=2, highlights={Artifact.PRE_GRAPH: [2]})

    InteractionAdapter(MappingTables(), {}).apply(plan, surface)

    assert surface.scrolls == []
    assert surface.highlighted == [(Artifact.PRE_GRAPH, 2)]
