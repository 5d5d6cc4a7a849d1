"""Core data models shared by the indexer, translator, resolver and report layers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class Artifact(str, Enum):
    """One panel of the report. Values double as the HTML panel ids."""

    PRE_GRAPH = "preGradGraph"
    POST_GRAPH = "postGradGraph"
    GENERATED_CODE = "generatedCode"


class CodeVariant(str, Enum):
    """Flavor of generated code.

    ``PYTHON`` is the JIT wrapper, where each kernel is a block delimited by
    ``async_compile.triton(`` ... ``''', device_str='cuda')``.
    ``CPP`` is the AOT wrapper, where kernels only appear as call sites.
    """

    PYTHON = "python"
    CPP = "cpp"


# name -> ordered 1-based line numbers
LineIndex = Dict[str, List[int]]
# source line -> ordered target lines (read-only once built)
LineMapping = Mapping[int, Tuple[int, ...]]
# target artifact -> corresponding lines, for a single query
HighlightResult = Dict[Artifact, List[int]]

EMPTY_LINE_MAPPING: LineMapping = MappingProxyType({})


def _empty_line_mapping() -> LineMapping:
    return EMPTY_LINE_MAPPING


def split_lines(text: Optional[str]) -> Tuple[str, ...]:
    """Split an artifact blob into lines; ``None`` behaves like empty text."""
    if not text:
        return ()
    return tuple(text.splitlines())


@dataclass(frozen=True)
class GeneratedCode:
    """Generated code tagged with the variant decided at load time."""

    variant: CodeVariant
    lines: Tuple[str, ...] = ()

    @classmethod
    def from_text(cls, variant: CodeVariant, text: str) -> "GeneratedCode":
        return cls(variant=variant, lines=split_lines(text))


# Wire names used by the upstream producer. Both code channels are called
# "cpp" regardless of which variant the report carries.
_CHANNEL_KEYS = {
    "pre_to_post": "preToPost",
    "post_to_pre": "postToPre",
    "code_to_post": "cppCodeToPost",
    "post_to_code": "postToCppCode",
}


def _coerce_channel(raw: Any, key: str) -> Dict[str, Tuple[str, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.warning("Ignoring node mapping channel '%s': expected an object, got %s", key, type(raw).__name__)
        return {}

    channel: Dict[str, Tuple[str, ...]] = {}
    for source, targets in raw.items():
        if not isinstance(source, str) or not isinstance(targets, list):
            logger.debug("Skipping malformed entry %r in channel '%s'", source, key)
            continue
        channel[source] = tuple(t for t in targets if isinstance(t, str))
    return channel


@dataclass(frozen=True)
class NameMapping:
    """Sparse name-level correspondence graph supplied by the compiler.

    Channels are not required to be symmetric or complete.
    """

    pre_to_post: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    post_to_pre: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    code_to_post: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    post_to_code: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    version: int = 1

    @classmethod
    def from_dict(cls, raw: Any) -> "NameMapping":
        """Build from the decoded JSON object, treating bad shapes as empty."""
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Node mappings must be a JSON object, got %s", type(raw).__name__)
            return cls()

        version = raw.get("version", 1)
        if isinstance(version, bool) or not isinstance(version, (int, float)):
            version = 1

        channels = {
            attr: _coerce_channel(raw.get(key), key)
            for attr, key in _CHANNEL_KEYS.items()
        }
        return cls(version=int(version), **channels)

    @classmethod
    def from_json(cls, text: Optional[str]) -> "NameMapping":
        if not text or not text.strip():
            return cls()
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Could not decode node mappings: %s", exc)
            return cls()
        return cls.from_dict(raw)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            key: {name: list(targets) for name, targets in getattr(self, attr).items()}
            for attr, key in _CHANNEL_KEYS.items()
        }
        payload["version"] = self.version
        return payload

    @property
    def kernel_names(self) -> List[str]:
        """Kernel names known to the compiler, in the order supplied."""
        return list(self.code_to_post.keys())

    def is_empty(self) -> bool:
        return not (self.pre_to_post or self.post_to_pre or self.code_to_post or self.post_to_code)


@dataclass(frozen=True)
class MappingTables:
    """Line-level correspondence tables for one report load.

    ``variant`` records which generated-code flavor the code channels were
    built from; it is ``None`` when the report has no generated code, in which
    case both code channels are empty.
    """

    pre_to_post: LineMapping = field(default_factory=_empty_line_mapping)
    post_to_pre: LineMapping = field(default_factory=_empty_line_mapping)
    code_to_post: LineMapping = field(default_factory=_empty_line_mapping)
    post_to_code: LineMapping = field(default_factory=_empty_line_mapping)
    variant: Optional[CodeVariant] = None
