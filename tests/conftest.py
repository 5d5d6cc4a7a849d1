"""Pytest configuration and fixtures for provmap tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from provmap.loader import ReportContext
from provmap.models import CodeVariant, GeneratedCode, NameMapping


FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def _isolated_config(temp_dir: Path, monkeypatch):
    """Keep tests away from the user's ~/.provmap/config.toml."""
    monkeypatch.setattr("provmap.config.CONFIG_FILE", temp_dir / "config.toml")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def pre_text() -> str:
    return (FIXTURES / "pre_grad_graph.txt").read_text()


@pytest.fixture
def post_text() -> str:
    return (FIXTURES / "post_grad_graph.txt").read_text()


@pytest.fixture
def python_code_text() -> str:
    return (FIXTURES / "output_code.txt").read_text()


@pytest.fixture
def cpp_code_text() -> str:
    return (FIXTURES / "aot_wrapper.cpp").read_text()


@pytest.fixture
def node_mappings_text() -> str:
    return (FIXTURES / "node_mappings.json").read_text()


@pytest.fixture
def python_context(pre_text, post_text, python_code_text, node_mappings_text) -> ReportContext:
    """Report with the Python wrapper: k0 spans lines 10-14, k1 lines 17-22."""
    return ReportContext.build(pre_text, post_text, python_code_text, node_mappings_text)


@pytest.fixture
def cpp_context(pre_text, post_text, cpp_code_text, node_mappings_text) -> ReportContext:
    """Report with the C++ wrapper: k1 called on line 12, k0 on line 13."""
    code = GeneratedCode.from_text(CodeVariant.CPP, cpp_code_text)
    return ReportContext.build(pre_text, post_text, code, NameMapping.from_json(node_mappings_text))
