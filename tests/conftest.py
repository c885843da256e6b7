from __future__ import annotations

import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from gemini_plugin.config import PluginConfig


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture(autouse=True)
def _clean_plugin_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PLUGIN_* settings from the host environment out of tests."""
    for key in list(os.environ):
        if key.startswith("PLUGIN_") or key == "DRONE_COMMIT_SHA":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_config():
    def _make(**overrides) -> PluginConfig:
        overrides.setdefault("prompt", "Review this code")
        return PluginConfig(**overrides)

    return _make


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"
