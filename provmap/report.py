"""Standalone HTML report and JSON export for provenance highlighting.

Highlight plans are resolved ahead of time for every line that has a match,
so the page script only looks plans up and never re-implements resolution.
"""

from __future__ import annotations

import html
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Set, Tuple

from .adapter import InteractionAdapter
from .config import DEFAULT_MARKERS, Markers
from .loader import ReportContext
from .models import Artifact, CodeVariant, LineMapping, MappingTables
from .resolver import matched_lines

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).parent / "templates" / "provenance_tracking.html"
_PLACEHOLDER = re.compile(r"\{\{ [A-Z_]+ \}\}")

_CODE_TITLES = {
    CodeVariant.PYTHON: "Generated code (Python)",
    CodeVariant.CPP: "Generated code (C++ wrapper)",
    None: "Generated code",
}


def _table_json(table: LineMapping) -> Dict[str, list]:
    return {str(line): list(targets) for line, targets in sorted(table.items())}


def line_mappings_json(tables: MappingTables) -> Dict[str, Dict[str, list]]:
    """Export tables under the six keys the report page historically used.

    Only the pair matching the active variant is populated.
    """
    code_to_post = _table_json(tables.code_to_post)
    post_to_code = _table_json(tables.post_to_code)
    is_python = tables.variant is CodeVariant.PYTHON
    is_cpp = tables.variant is CodeVariant.CPP
    return {
        "preToPost": _table_json(tables.pre_to_post),
        "postToPre": _table_json(tables.post_to_pre),
        "pyCodeToPost": code_to_post if is_python else {},
        "postToPyCode": post_to_code if is_python else {},
        "cppCodeToPost": code_to_post if is_cpp else {},
        "postToCppCode": post_to_code if is_cpp else {},
    }


def precompute_highlights(context: ReportContext) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Resolve a highlight plan for every line that has a correspondence.

    Keyed ``panel id -> line -> {"highlights": {...}, "scroll": [panel, line] | None}``.
    The source line itself is left out of ``highlights``; the page marks it.
    """
    adapter = InteractionAdapter(context.tables, context.line_counts)
    plans: Dict[str, Dict[str, Dict[str, Any]]] = {}

    for artifact in Artifact:
        per_line: Dict[str, Dict[str, Any]] = {}
        for line in sorted(matched_lines(artifact, context.tables)):
            plan = adapter.plan(artifact, line)
            if plan.is_empty:
                continue
            per_line[str(line)] = {
                "highlights": {
                    target.value: lines
                    for target, lines in plan.highlights.items()
                    if target is not artifact
                },
                "scroll": (
                    [plan.scroll_target[0].value, plan.scroll_target[1]]
                    if plan.scroll_target
                    else None
                ),
            }
        plans[artifact.value] = per_line
    return plans


def initial_scroll(context: ReportContext, markers: Markers = DEFAULT_MARKERS) -> Optional[Tuple[str, int]]:
    """C++ wrappers open scrolled to the model's entry point."""
    if context.variant is not CodeVariant.CPP:
        return None
    for lineno, line in enumerate(context.code_lines, start=1):
        if markers.entry_point in line:
            return (Artifact.GENERATED_CODE.value, lineno)
    return None


def _render_panel(lines: Sequence[str], matched: Set[int]) -> str:
    if not lines:
        return '<div class="empty">Not available</div>'
    rows = []
    for lineno, line in enumerate(lines, start=1):
        content_cls = "line-content has-match" if lineno in matched else "line-content"
        rows.append(
            f'<div class="line" data-line="{lineno}">'
            f'<span class="line-number">{lineno}</span>'
            f'<span class="{content_cls}">{html.escape(line)}</span></div>'
        )
    return "\n".join(rows)


def _script_json(payload: Any) -> str:
    # keep "</script>" inside embedded strings from closing the tag
    return json.dumps(payload, sort_keys=True).replace("</", "<\\/")


def render_report(
    context: ReportContext,
    title: str = "Provenance Tracking",
    markers: Markers = DEFAULT_MARKERS,
) -> str:
    """Render the three-panel report as a standalone HTML document."""
    template = TEMPLATE_PATH.read_text(encoding="utf-8")
    tables = context.tables

    replacements = {
        "{{ TITLE }}": html.escape(title),
        "{{ CODE_TITLE }}": _CODE_TITLES[context.variant],
        "{{ PRE_GRAD_GRAPH }}": _render_panel(
            context.pre_lines, matched_lines(Artifact.PRE_GRAPH, tables)
        ),
        "{{ POST_GRAD_GRAPH }}": _render_panel(
            context.post_lines, matched_lines(Artifact.POST_GRAPH, tables)
        ),
        "{{ GENERATED_CODE }}": _render_panel(
            context.code_lines, matched_lines(Artifact.GENERATED_CODE, tables)
        ),
        "{{ HIGHLIGHT_PLANS }}": _script_json(precompute_highlights(context)),
        "{{ INITIAL_SCROLL }}": _script_json(initial_scroll(context, markers)),
    }

    # single pass, so placeholder-like text inside artifacts is never expanded
    return _PLACEHOLDER.sub(lambda m: replacements.get(m.group(0), m.group(0)), template)


def write_report(
    context: ReportContext,
    output_file: Path,
    title: str = "Provenance Tracking",
    markers: Markers = DEFAULT_MARKERS,
) -> Path:
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(render_report(context, title, markers), encoding="utf-8")
    logger.info("Wrote provenance report to %s", output_file)
    return output_file
