"""
Shared test fixtures and configuration.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fakes import FakeDocker, FakePortInspector

from dev_service.app_config import TEMPLATES_DIR
from dev_service.libs.schemas.paths import ServicePaths


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Return an empty project directory."""
    root = tmp_path / "dev-service-test"
    root.mkdir()
    return root


@pytest.fixture
def paths(project_root: Path) -> ServicePaths:
    return ServicePaths(root=project_root, templates_dir=TEMPLATES_DIR)


@pytest.fixture
def write_manifest(project_root: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a package.json style manifest into the project root."""

    def write(content: dict[str, Any]) -> Path:
        path = project_root / "package.json"
        path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return write


@pytest.fixture
def docker() -> FakeDocker:
    return FakeDocker()


@pytest.fixture
def inspector() -> FakePortInspector:
    return FakePortInspector()
