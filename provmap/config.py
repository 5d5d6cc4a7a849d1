"""Configuration paths and textual markers used when indexing artifacts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(os.environ.get("PROVMAP_HOME", str(Path.home() / ".provmap"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
DEFAULT_OUTPUT_NAME = "provenance_tracking.html"

# Filename prefixes of the compiler's per-compile output directory.
# Earlier prefixes take precedence.
PRE_GRAPH_PREFIXES = ("before_pre_grad_graph", "inductor_pre_grad_graph")
POST_GRAPH_PREFIXES = ("after_post_grad_graph", "inductor_post_grad_graph")
PYTHON_CODE_PREFIXES = ("inductor_output_code",)
CPP_CODE_PREFIXES = ("inductor_aot_wrapper_code",)
NODE_MAPPINGS_PREFIXES = ("inductor_provenance_tracking_node_mappings",)


@dataclass(frozen=True)
class Markers:
    """Lightweight textual markers; no parsing beyond these substrings."""

    comment: str = "#"
    kernel_start: str = "async_compile.triton("
    kernel_end: str = "''', device_str='cuda')"
    call_suffix: str = "("
    entry_point: str = "::run_impl("


DEFAULT_MARKERS = Markers()
