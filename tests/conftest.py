"""Pytest configuration and fixtures for blockwork tests."""

import pytest

from blockwork import DictLoader, Environment, SourceStore

LAYOUT_TEMPLATES = {
    "base": (
        "<html>"
        '<head>{{#block "head"}}<title>Site</title>{{/block}}</head>'
        '<body>{{#block "body"}}Default body{{/block}}</body>'
        "</html>"
    ),
    "child": '{{#extend "base"}}{{#block "body"}}Hello {{name}}{{/block}}',
    "card": "<div class=\"card\">{{title}}</div>",
}


@pytest.fixture
def env():
    """Create a basic blockwork Environment."""
    return Environment()


@pytest.fixture
def env_with_templates():
    """Create an Environment seeded with a small inheritance setup."""
    return Environment(templates=LAYOUT_TEMPLATES)


@pytest.fixture
def env_with_loader():
    """Create an Environment backed by a DictLoader (sources not yet loaded)."""
    loader = DictLoader({f"{name}.html": body for name, body in LAYOUT_TEMPLATES.items()})
    return Environment(loader=loader)


@pytest.fixture
def store():
    """Create an empty SourceStore."""
    return SourceStore()

