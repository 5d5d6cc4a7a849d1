"""Bind highlight resolution to a rendering surface.

The adapter owns no correspondence logic: it calls :func:`resolve`, drops
lines that fall outside a panel, and decides what to mark and where to
scroll. Anything that can clear, mark and scroll lines (a browser page, a
terminal view, a test double) can act as a :class:`Surface`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Tuple

from .models import Artifact, MappingTables
from .resolver import resolve


class Surface(Protocol):
    def clear_highlights(self) -> None: ...

    def highlight(self, artifact: Artifact, line: int) -> None: ...

    def scroll_to(self, artifact: Artifact, line: int) -> None: ...


@dataclass(frozen=True)
class HighlightPlan:
    """Everything a surface needs to render one interaction."""

    source: Artifact
    line: int
    highlights: Dict[Artifact, List[int]] = field(default_factory=dict)
    scroll_target: Optional[Tuple[Artifact, int]] = None

    @property
    def is_empty(self) -> bool:
        return not any(
            lines for artifact, lines in self.highlights.items() if artifact is not self.source
        )


class InteractionAdapter:
    """Turns pointer events on a line into highlight plans."""

    def __init__(self, tables: MappingTables, line_counts: Mapping[Artifact, int]):
        self.tables = tables
        self.line_counts = dict(line_counts)

    def _in_range(self, artifact: Artifact, lines: List[int]) -> List[int]:
        count = self.line_counts.get(artifact, 0)
        return [line for line in lines if 1 <= line <= count]

    def plan(self, source: Artifact, line: int) -> HighlightPlan:
        """Resolve *line* of *source* into highlight and scroll decisions.

        The scroll target is the middle entry of the longest corresponding
        list; the source panel is never scrolled.
        """
        highlights: Dict[Artifact, List[int]] = {source: self._in_range(source, [line])}
        scroll_target: Optional[Tuple[Artifact, int]] = None
        longest = 0
        result = resolve(source, line, self.tables)

        for artifact in Artifact:
            if artifact is source:
                continue
            lines = self._in_range(artifact, result[artifact])
            highlights[artifact] = lines
            if len(lines) > longest:
                longest = len(lines)
                scroll_target = (artifact, lines[len(lines) // 2])

        return HighlightPlan(source=source, line=line, highlights=highlights, scroll_target=scroll_target)

    def apply(self, plan: HighlightPlan, surface: Surface) -> None:
        surface.clear_highlights()
        for artifact, lines in plan.highlights.items():
            for line in lines:
                surface.highlight(artifact, line)
        if plan.scroll_target is not None:
            surface.scroll_to(*plan.scroll_target)

    def on_hover(self, source: Artifact, line: int, surface: Surface) -> HighlightPlan:
        plan = self.plan(source, line)
        self.apply(plan, surface)
        return plan

    def on_click(self, source: Artifact, line: int, surface: Surface) -> HighlightPlan:
        return self.on_hover(source, line, surface)

    def on_leave(self, surface: Surface) -> None:
        surface.clear_highlights()
