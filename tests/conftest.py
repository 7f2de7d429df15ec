"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from statusboard.config import DEFAULT_TEMPLATES_DIR, Settings
from statusboard.rendering import TemplateRenderer

from fakes import FIXED_NOW


@pytest.fixture
def clock() -> Any:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer over the bundled templates."""
    return TemplateRenderer(DEFAULT_TEMPLATES_DIR)


@pytest.fixture
def subscribers_file(tmp_path: Path) -> Path:
    """Subscriber list with one GitHub and one Steam subscription."""
    path = tmp_path / "subscribers.yaml"
    path.write_text(
        "users:\n"
        "  - name: Alice\n"
        "    services:\n"
        "      - name: github\n"
        "        username: alice\n"
        "      - name: steam\n"
        "        username: '765'\n"
        "        interval: 5\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def settings(subscribers_file: Path) -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        subscribers_file=str(subscribers_file),
        github_interval=3600,
        steam_interval=3600,
    )

