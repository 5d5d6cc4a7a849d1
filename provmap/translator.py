"""Translation of the name-level correspondence graph into line-level tables."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from .models import CodeVariant, LineIndex, LineMapping, MappingTables, NameMapping

logger = logging.getLogger(__name__)


def translate(
    channel: Mapping[str, Sequence[str]],
    source_index: LineIndex,
    target_index: LineIndex,
) -> LineMapping:
    """Map every line of each source unit to the lines of its target units.

    Source and target names missing from their index are skipped. Target
    lines are appended in iteration order and never deduplicated, so a line
    reached through several names appears once per name.
    """
    table: Dict[int, List[int]] = {}
    unresolved = 0

    for source_name, target_names in channel.items():
        source_lines = source_index.get(source_name)
        if not source_lines:
            unresolved += 1
            continue

        target_lines: List[int] = []
        for target_name in target_names:
            lines = target_index.get(target_name)
            if lines:
                target_lines.extend(lines)
            else:
                unresolved += 1

        if not target_lines:
            continue
        for line in source_lines:
            table.setdefault(line, []).extend(target_lines)

    if unresolved:
        logger.debug("Skipped %d unresolved names while translating", unresolved)
    return MappingProxyType({line: tuple(targets) for line, targets in table.items()})


def translate_all(
    name_mapping: NameMapping,
    pre_index: LineIndex,
    post_index: LineIndex,
    code_index: LineIndex,
    variant: Optional[CodeVariant],
) -> MappingTables:
    """Translate the four channels independently.

    The code-facing channels stay empty when the report carries no generated
    code (``variant is None``).
    """
    pre_to_post = translate(name_mapping.pre_to_post, pre_index, post_index)
    post_to_pre = translate(name_mapping.post_to_pre, post_index, pre_index)

    if variant is None:
        return MappingTables(pre_to_post=pre_to_post, post_to_pre=post_to_pre)

    return MappingTables(
        pre_to_post=pre_to_post,
        post_to_pre=post_to_pre,
        code_to_post=translate(name_mapping.code_to_post, code_index, post_index),
        post_to_code=translate(name_mapping.post_to_code, post_index, code_index),
        variant=variant,
    )
