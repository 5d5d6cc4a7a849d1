"""Highlight query resolution over prebuilt line mapping tables."""

from __future__ import annotations

from typing import List, Set

from .models import Artifact, HighlightResult, LineMapping, MappingTables


def _lookup(table: LineMapping, line: int) -> List[int]:
    return list(table.get(line, ()))


def _chain(table: LineMapping, lines: List[int]) -> List[int]:
    chained: List[int] = []
    for line in lines:
        chained.extend(table.get(line, ()))
    return chained


def resolve(source: Artifact, line: int, tables: MappingTables) -> HighlightResult:
    """Return the lines corresponding to *line* of *source* in every other artifact.

    Graph-to-code and code-to-graph correspondences hop through the post
    graph. Chained results are concatenated without deduplication. Lines with
    no entry yield empty lists.
    """
    if source is Artifact.PRE_GRAPH:
        post = _lookup(tables.pre_to_post, line)
        return {
            Artifact.POST_GRAPH: post,
            Artifact.GENERATED_CODE: _chain(tables.post_to_code, post),
        }

    if source is Artifact.POST_GRAPH:
        return {
            Artifact.PRE_GRAPH: _lookup(tables.post_to_pre, line),
            Artifact.GENERATED_CODE: _lookup(tables.post_to_code, line),
        }

    post = _lookup(tables.code_to_post, line)
    return {
        Artifact.POST_GRAPH: post,
        Artifact.PRE_GRAPH: _chain(tables.post_to_pre, post),
    }


def has_match(artifact: Artifact, line: int, tables: MappingTables) -> bool:
    """Whether *line* has any outgoing correspondence."""
    if artifact is Artifact.PRE_GRAPH:
        return bool(tables.pre_to_post.get(line))
    if artifact is Artifact.POST_GRAPH:
        return bool(tables.post_to_pre.get(line) or tables.post_to_code.get(line))
    return bool(tables.code_to_post.get(line))


def matched_lines(artifact: Artifact, tables: MappingTables) -> Set[int]:
    if artifact is Artifact.PRE_GRAPH:
        candidates = set(tables.pre_to_post)
    elif artifact is Artifact.POST_GRAPH:
        candidates = set(tables.post_to_pre) | set(tables.post_to_code)
    else:
        candidates = set(tables.code_to_post)
    return {line for line in candidates if has_match(artifact, line, tables)}
