from __future__ import annotations

import json
import os
import platform
import sys
from importlib import metadata as importlib_metadata
from pathlib import Path

import pytest
from jinja2 import DictLoader as Jinja2DictLoader
from jinja2 import Environment as Jinja2Environment

from blockwork import Environment as BlockworkEnvironment

BASE_DIR = Path(__file__).resolve().parent
BENCHMARK_OUTPUT_DIR = BASE_DIR.parent / ".benchmarks"

# Equivalent sources for both engines: a three-level layout chain, a row
# partial and a flat loop.
BLOCKWORK_TEMPLATES = {
    "minimal": "Hello, {{name}}!",
    "base": (
        "<html><head><title>{{#block \"title\"}}Site{{/block}}</title></head>"
        "<body>{{#block \"content\"}}{{/block}}</body></html>"
    ),
    "section": '{{#extend "base"}}{{#block "title"}}{{section}}{{/block}}',
    "page": (
        '{{#extend "section"}}'
        '{{#block "content"}}<table>{{#each rows}}{{> row}}{{/each}}</table>{{/block}}'
    ),
    "row": "<tr><td>{{label | uppercase}}</td><td>{{#if active}}yes{{else}}no{{/if}}</td></tr>",
    "list": "<ul>{{#each items}}<li>{{this}}</li>{{/each}}</ul>",
}

JINJA2_TEMPLATES = {
    "minimal": "Hello, {{ name }}!",
    "base": (
        "<html><head><title>{% block title %}Site{% endblock %}</title></head>"
        "<body>{% block content %}{% endblock %}</body></html>"
    ),
    "section": '{% extends "base" %}{% block title %}{{ section }}{% endblock %}',
    "page": (
        '{% extends "section" %}'
        '{% block content %}<table>{% for row in rows %}{% include "row" %}{% endfor %}'
        "</table>{% endblock %}"
    ),
    "row": (
        "<tr><td>{{ row.label | upper }}</td>"
        "<td>{% if row.active %}yes{% else %}no{% endif %}</td></tr>"
    ),
    "list": "<ul>{% for item in items %}<li>{{ item }}</li>{% endfor %}</ul>",
}


def _version(dist: str) -> str:
    try:
        return importlib_metadata.version(dist)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def collect_environment_metadata() -> dict[str, object]:
    """Capture reproducibility metadata for each benchmark run."""
    return {
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable,
        },
        "os": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu": {
            "processor": platform.processor(),
            "count": os.cpu_count(),
        },
        "blockwork": _version("blockwork"),
        "jinja2": _version("jinja2"),
    }


@pytest.fixture(scope="session", autouse=True)
def environment_metadata() -> dict[str, object]:
    """Write environment metadata to .benchmarks for ingestion."""
    metadata = collect_environment_metadata()
    BENCHMARK_OUTPUT_DIR.mkdir(exist_ok=True)
    (BENCHMARK_OUTPUT_DIR / "environment.json").write_text(json.dumps(metadata, indent=2))
    return metadata


@pytest.fixture
def blockwork_env() -> BlockworkEnvironment:
    return BlockworkEnvironment(templates=BLOCKWORK_TEMPLATES)


@pytest.fixture
def jinja2_env() -> Jinja2Environment:
    return Jinja2Environment(loader=Jinja2DictLoader(JINJA2_TEMPLATES), autoescape=True)


@pytest.fixture(scope="session")
def table_context() -> dict[str, object]:
    return {
        "section": "Inventory",
        "rows": [{"label": f"item {i}", "active": i % 3 == 0} for i in range(200)],
    }


@pytest.fixture(scope="session")
def list_context() -> dict[str, object]:
    return {"items": [f"<entry {i}>" for i in range(1000)]}
