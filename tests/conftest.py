"""
Pytest configuration and shared fixtures for all Proplang tests.

The compiler driver is stateless apart from its parser (built once, with
Lark's native cache), so one instance is shared by the whole session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from proplang.compiler.driver import CompilerDriver
from proplang.runtime.runtime import ProplangRuntime


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_compiler():
    """
    Session-scoped compiler instance shared across ALL tests.

    - Parser is created once with Lark native caching
    - Every compile() builds a fresh CompilationContext, so nothing leaks
    """
    return CompilerDriver()


@pytest.fixture(scope="session")
def session_runtime():
    return ProplangRuntime()


# =============================================================================
# Class/function-scoped fixtures
# =============================================================================

@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - shared across all tests in a class."""
    return session_compiler


@pytest.fixture
def runtime():
    """Function-scoped runtime - fresh backend per test."""
    return ProplangRuntime()


@pytest.fixture
def parser(session_compiler):
    return session_compiler.parser


@pytest.fixture
def stage_dir(tmp_path):
    """Working directory for file-based stage tests."""
    out = tmp_path / "build"
    out.mkdir()
    return out


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
