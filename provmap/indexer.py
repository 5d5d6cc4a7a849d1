"""Line indexing of report artifacts.

Each artifact is scanned once and turned into a ``name -> [line, ...]`` table.
The scanners are deliberately textual: graph dumps are keyed by the target of
each assignment, the Python wrapper by its ``async_compile.triton(`` blocks,
and the C++ wrapper by call sites of known kernel names.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_MARKERS, Markers
from .models import Artifact, CodeVariant, LineIndex

logger = logging.getLogger(__name__)

# kernel names in newer mappings carry a debug handle: "<kernel>:<handle>"
DEBUG_HANDLE_SEPARATOR = ":"
_DECLARATION_PREFIXES = ("def", "static inline void")


def is_content_line(line: str, comment: str = "#") -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith(comment)


def unit_name(line: str) -> str:
    """Name declared on a graph line: text before ``=``, then before ``:``."""
    before_equals = line.strip().split("=", 1)[0]
    return before_equals.split(":", 1)[0].strip()


def build_graph_index(lines: Sequence[str], comment: str = "#") -> LineIndex:
    """Index a graph dump by declared node name.

    A repeated name keeps only its last line.
    """
    index: Dict[str, List[int]] = {}
    for lineno, line in enumerate(lines, start=1):
        if not is_content_line(line, comment):
            continue
        name = unit_name(line)
        if name:
            index[name] = [lineno]
    return index


def build_block_index(
    lines: Sequence[str],
    start_marker: str,
    end_marker: str,
    comment: str = "#",
) -> LineIndex:
    """Index kernel definition blocks of the Python wrapper.

    Every line from the start marker through the end marker, inclusive,
    belongs to the kernel named on the start line. A block that is still open
    at EOF is dropped.
    """
    index: Dict[str, List[int]] = {}
    current: Optional[str] = None
    block: List[int] = []

    for lineno, line in enumerate(lines, start=1):
        content = is_content_line(line, comment)
        if content and start_marker in line:
            if current is not None:
                logger.debug("Kernel block '%s' restarted at line %d before its end", current, lineno)
            current = line.split("=", 1)[0].strip()
            block = [lineno]
        elif current is None:
            continue
        elif content and end_marker in line:
            block.append(lineno)
            if current:
                index[current] = block
            current = None
            block = []
        else:
            block.append(lineno)

    if current is not None:
        logger.debug("Dropping unterminated kernel block '%s'", current)
    return index


def _debug_handle_lines(lines: Sequence[str], name: str, start: int, comment: str) -> List[int]:
    """Lines for a ``kernel:handle`` name, searched from index *start* on.

    The line mentioning the full name annotates the launch that follows it, so
    the first later line containing the bare kernel name is used. When the
    full name never appears, every line containing the bare name is used.
    """
    bare = name.split(DEBUG_HANDLE_SEPARATOR, 1)[0]
    for i in range(start, len(lines)):
        line = lines[i]
        if name not in line or line.strip().startswith(_DECLARATION_PREFIXES):
            continue
        for j in range(i + 1, len(lines)):
            if bare in lines[j]:
                return [j + 1]

    return [
        i + 1
        for i in range(start, len(lines))
        if is_content_line(lines[i], comment) and bare in lines[i]
    ]


def build_call_site_index(
    lines: Sequence[str],
    known_names: Sequence[str],
    comment: str = "#",
    call_suffix: str = "(",
    entry_point: str = "::run_impl(",
) -> LineIndex:
    """Index call sites of *known_names* in the C++ wrapper.

    Each line is assigned to at most one name: the first of *known_names*
    (in the order given) that appears immediately followed by *call_suffix*.
    This is a substring test, so ``kernelA(`` will also match inside
    ``my_kernelA(``.

    Names carrying a debug handle (``triton_poi_fused_mul_1:2``) never appear
    as call sites. They are looked up from the *entry_point* line on instead,
    see :func:`_debug_handle_lines`.
    """
    index: Dict[str, List[int]] = {}
    if not known_names:
        return index

    plain = [n for n in known_names if n and DEBUG_HANDLE_SEPARATOR not in n]
    handled = [n for n in known_names if DEBUG_HANDLE_SEPARATOR in n and not n.startswith(DEBUG_HANDLE_SEPARATOR)]

    patterns = [(name, name + call_suffix) for name in plain]
    for lineno, line in enumerate(lines, start=1):
        if not is_content_line(line, comment):
            continue
        for name, pattern in patterns:
            if pattern in line:
                index.setdefault(name, []).append(lineno)
                break

    if handled:
        start = next((i for i, line in enumerate(lines) if entry_point in line), 0)
        for name in handled:
            found = _debug_handle_lines(lines, name, start, comment)
            if found:
                index[name] = found
            else:
                logger.debug("No call site found for kernel '%s'", name)
    return index


def build_index(
    artifact: Artifact,
    lines: Sequence[str],
    known_names: Optional[Sequence[str]] = None,
    variant: Optional[CodeVariant] = None,
    markers: Markers = DEFAULT_MARKERS,
) -> LineIndex:
    """Build the line index appropriate to *artifact*.

    ``variant`` selects the generated-code convention and ``known_names`` is
    only consulted for the C++ call-site convention.
    """
    if artifact in (Artifact.PRE_GRAPH, Artifact.POST_GRAPH):
        index = build_graph_index(lines, markers.comment)
    elif variant is CodeVariant.PYTHON:
        index = build_block_index(lines, markers.kernel_start, markers.kernel_end, markers.comment)
    elif variant is CodeVariant.CPP:
        index = build_call_site_index(
            lines, known_names or (), markers.comment, markers.call_suffix, markers.entry_point
        )
    else:
        logger.warning("No generated code variant given; code index is empty")
        index = {}

    logger.debug("Indexed %d units in %s", len(index), artifact.value)
    return index
