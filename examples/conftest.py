"""Shared pytest configuration for blockwork examples.

Each example directory holds an ``app.py`` that builds its environment and
renders at import time. The ``example_app`` fixture executes that file in a
fresh module so a test never sees another test's caches or load state.
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """Execute the app.py beside the requesting test and return its module."""
    app_path = Path(request.path).parent / "app.py"
    spec = importlib.util.spec_from_file_location(f"blockwork_example_{app_path.parent.name}", app_path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
