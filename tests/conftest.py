"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test modules.
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["APP_ENV"] = "development"
os.environ["APP_DEBUG"] = "true"

ProjectWriter = Callable[[dict[str, str]], Path]


def write_project(root: Path, files: dict[str, str]) -> Path:
    """Create files under root from a relative-path -> content mapping."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def make_project(project_root: Path) -> ProjectWriter:
    """Write files into the project directory.

    Returns:
        A function taking a relative-path -> content mapping.
    """

    def _write(files: dict[str, str]) -> Path:
        return write_project(project_root, files)

    return _write


@pytest.fixture
def analysis_config() -> Any:
    """Enabled analysis options with defaults otherwise."""
    from smart_select.config import AnalysisConfig

    return AnalysisConfig(enabled=True)


@pytest.fixture
def analyzer(project_root: Path) -> Any:
    """Analyzer over the project directory, ignoring global git excludes."""
    from smart_select.analysis.analyzer import DependencyAnalyzer

    return DependencyAnalyzer(project_root, include_global_excludes=False)


@pytest.fixture
def mock_settings(project_root: Path) -> Generator[Any, None, None]:
    """Provide mocked settings for testing.

    Args:
        project_root: Temporary workspace root.

    Yields:
        Mocked settings instance.
    """
    with patch.dict(
        os.environ,
        {
            "APP_ENV": "development",
            "APP_DEBUG": "true",
            "WORKSPACE_ROOT": str(project_root),
            "WORKSPACE_USE_GLOBAL_EXCLUDES": "false",
            "SMART_SELECT_ENABLED": "true",
        },
    ):
        # Clear cached settings
        from smart_select.config import get_settings

        get_settings.cache_clear()
        yield get_settings()
        get_settings.cache_clear()


@pytest.fixture
def app(mock_settings: Any) -> Any:
    """Create a test application instance.

    Args:
        mock_settings: Mocked settings fixture.

    Returns:
        FastAPI application instance.
    """
    from smart_select.main import create_app

    return create_app()


@pytest.fixture
def client(app: Any) -> Generator[TestClient, None, None]:
    """Create a synchronous test client; runs the app lifespan.

    Args:
        app: FastAPI application instance.

    Yields:
        TestClient instance.
    """
    with TestClient(app) as test_client:
        yield test_client


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
