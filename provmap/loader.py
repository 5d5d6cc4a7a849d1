"""Build the immutable per-report context from artifact texts or files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

from . import config
from .config import DEFAULT_MARKERS, Markers
from .indexer import build_index
from .models import (
    Artifact,
    CodeVariant,
    GeneratedCode,
    LineIndex,
    MappingTables,
    NameMapping,
    split_lines,
)
from .translator import translate_all

logger = logging.getLogger(__name__)


def detect_variant(code_text: Optional[str], markers: Markers = DEFAULT_MARKERS) -> Optional[CodeVariant]:
    """Decide the generated-code variant once, at load time."""
    if not code_text or not code_text.strip():
        return None
    if markers.kernel_start in code_text:
        return CodeVariant.PYTHON
    return CodeVariant.CPP


@dataclass(frozen=True)
class ReportContext:
    """Artifacts, indices and tables for one report load.

    Built once; a reload builds a new context instead of mutating this one.
    """

    pre_lines: Tuple[str, ...]
    post_lines: Tuple[str, ...]
    code: Optional[GeneratedCode]
    name_mapping: NameMapping
    indices: Dict[Artifact, LineIndex] = field(default_factory=dict)
    tables: MappingTables = field(default_factory=MappingTables)

    @property
    def variant(self) -> Optional[CodeVariant]:
        return self.code.variant if self.code is not None else None

    @property
    def code_lines(self) -> Tuple[str, ...]:
        return self.code.lines if self.code is not None else ()

    def lines(self, artifact: Artifact) -> Tuple[str, ...]:
        if artifact is Artifact.PRE_GRAPH:
            return self.pre_lines
        if artifact is Artifact.POST_GRAPH:
            return self.post_lines
        return self.code_lines

    @property
    def line_counts(self) -> Dict[Artifact, int]:
        return {artifact: len(self.lines(artifact)) for artifact in Artifact}

    @classmethod
    def build(
        cls,
        pre_text: Optional[str],
        post_text: Optional[str],
        code: Union[GeneratedCode, str, None] = None,
        name_mapping: Union[NameMapping, dict, str, None] = None,
        markers: Markers = DEFAULT_MARKERS,
    ) -> "ReportContext":
        """Index every artifact and translate the name mapping into line tables.

        *code* may be raw text, in which case its variant is detected here.
        *name_mapping* may be a :class:`NameMapping`, a decoded JSON object or
        JSON text.
        """
        if isinstance(code, str):
            variant = detect_variant(code, markers)
            code = GeneratedCode.from_text(variant, code) if variant is not None else None

        if isinstance(name_mapping, str):
            name_mapping = NameMapping.from_json(name_mapping)
        elif not isinstance(name_mapping, NameMapping):
            name_mapping = NameMapping.from_dict(name_mapping)

        pre_lines = split_lines(pre_text)
        post_lines = split_lines(post_text)
        if not pre_lines:
            logger.warning("Pre-grad graph is empty; its correspondences are disabled")
        if not post_lines:
            logger.warning("Post-grad graph is empty; all correspondences are disabled")
        if code is None:
            logger.warning("No generated code; code correspondences are disabled")
        if name_mapping.is_empty():
            logger.warning("Node mappings are empty; nothing will be highlighted")

        variant = code.variant if code is not None else None
        indices = {
            Artifact.PRE_GRAPH: build_index(Artifact.PRE_GRAPH, pre_lines, markers=markers),
            Artifact.POST_GRAPH: build_index(Artifact.POST_GRAPH, post_lines, markers=markers),
            Artifact.GENERATED_CODE: (
                build_index(
                    Artifact.GENERATED_CODE,
                    code.lines,
                    known_names=name_mapping.kernel_names,
                    variant=variant,
                    markers=markers,
                )
                if code is not None
                else {}
            ),
        }
        tables = translate_all(
            name_mapping,
            indices[Artifact.PRE_GRAPH],
            indices[Artifact.POST_GRAPH],
            indices[Artifact.GENERATED_CODE],
            variant,
        )
        logger.info(
            "Built provenance tables (%s code): %d pre->post, %d post->pre, %d code->post, %d post->code",
            variant.value if variant else "no",
            len(tables.pre_to_post),
            len(tables.post_to_pre),
            len(tables.code_to_post),
            len(tables.post_to_code),
        )
        return cls(
            pre_lines=pre_lines,
            post_lines=post_lines,
            code=code,
            name_mapping=name_mapping,
            indices=indices,
            tables=tables,
        )

    @classmethod
    def from_files(
        cls,
        pre_file: Optional[Path],
        post_file: Optional[Path],
        code_file: Optional[Path] = None,
        mappings_file: Optional[Path] = None,
        variant: Optional[CodeVariant] = None,
        markers: Markers = DEFAULT_MARKERS,
    ) -> "ReportContext":
        """Load artifacts from disk. Missing files load as empty artifacts.

        When *variant* is omitted it is detected from the code text.
        """
        code_text = _read_text(code_file)
        code: Union[GeneratedCode, str, None] = code_text
        if variant is not None and code_text:
            code = GeneratedCode.from_text(variant, code_text)

        return cls.build(
            _read_text(pre_file),
            _read_text(post_file),
            code,
            _read_text(mappings_file),
            markers=markers,
        )

    @classmethod
    def from_directory(cls, directory: Path, markers: Markers = DEFAULT_MARKERS) -> "ReportContext":
        """Load one compile's output directory by filename prefix.

        The Python output code wins over the C++ wrapper when both exist.
        """
        files = sorted(p for p in directory.iterdir() if p.is_file())

        python_code = _find_by_prefix(files, config.PYTHON_CODE_PREFIXES)
        cpp_code = _find_by_prefix(files, config.CPP_CODE_PREFIXES)
        if python_code is not None:
            code_file, variant = python_code, CodeVariant.PYTHON
        elif cpp_code is not None:
            code_file, variant = cpp_code, CodeVariant.CPP
        else:
            code_file, variant = None, None

        return cls.from_files(
            _find_by_prefix(files, config.PRE_GRAPH_PREFIXES),
            _find_by_prefix(files, config.POST_GRAPH_PREFIXES),
            code_file,
            _find_by_prefix(files, config.NODE_MAPPINGS_PREFIXES),
            variant=variant,
            markers=markers,
        )


_COUNTER_SUFFIX = re.compile(r"_(\d+)\.\w+$")


def _counter_key(path: Path) -> Tuple[int, str]:
    """Sort key by the trailing ``_<n>`` counter the compiler appends to dumps."""
    match = _COUNTER_SUFFIX.search(path.name)
    return (int(match.group(1)) if match else -1, path.name)


def _find_by_prefix(files: Sequence[Path], prefixes: Sequence[str]) -> Optional[Path]:
    """Newest file (highest counter) matching the first prefix that matches anything."""
    for prefix in prefixes:
        matches = [p for p in files if p.name.startswith(prefix)]
        if matches:
            return max(matches, key=_counter_key)
    return None


def _read_text(path: Optional[Path]) -> str:
    if path is None:
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return ""
