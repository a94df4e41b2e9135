"""Template source providers for the blockwork load coordinator.

Providers deliver raw template text to the ``LoadCoordinator``. They
implement ``async fetch_one(name) -> str`` and, optionally,
``list_templates()`` so the coordinator can discover what to load.

Built-in Providers:
- `FileSystemLoader`: Load from filesystem directories
- `DictLoader`: Load from an in-memory dictionary (testing/embedded)
- `ChoiceLoader`: Try multiple loaders in order (theme fallback)
- `FunctionLoader`: Wrap a sync or async callable as a loader

Custom Providers:
Implement the TemplateProvider protocol:
    ```python
    class HttpLoader:
        def __init__(self, client, names):
            self._client = client
            self._names = names

        async def fetch_one(self, name: str) -> str:
            response = await self._client.get(f"/templates/{name}")
            if response.status_code == 404:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return response.text

        def list_templates(self) -> list[str]:
            return list(self._names)
    ```

Naming:
Providers work with file names (``partials/card.html``). The coordinator
commits each source under ``template_name_for(filename, aliases)``.

"""

from __future__ import annotations

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path

from blockwork.environment.exceptions import TemplateNotFoundError

TEMPLATE_SUFFIXES = (".html", ".hbs", ".tmpl")

_SUFFIX_RE = re.compile(r"\.(html|hbs|tmpl)$")


def template_name_for(filename: str, aliases: Mapping[str, str] | None = None) -> str:
    """Map a provider file name to the logical template name.

    An exact alias entry wins; otherwise a trailing ``.html``, ``.hbs`` or
    ``.tmpl`` is removed.

    Example:
            >>> template_name_for("partials/card.html")
            'partials/card'
            >>> template_name_for("table-of-contents.html", {"table-of-contents.html": "toc"})
            'toc'

    """
    if aliases and filename in aliases:
        return aliases[filename]
    return _SUFFIX_RE.sub("", filename)


class FileSystemLoader:
    """Load templates from filesystem directories.

    Searches one or more directories for templates by name. The first matching
    file is returned. Reads run in a worker thread so concurrent fetches do
    not block the event loop.

    Search Order:
        Directories are searched in order. First match wins:
            ```python
            loader = FileSystemLoader(["themes/custom/", "themes/default/"])
            # Looks in themes/custom/ first, then themes/default/
            ```

    Example:
            >>> loader = FileSystemLoader("templates/")
            >>> await loader.fetch_one("pages/about.html")
            '<section>...</section>'

            >>> loader.list_templates()
        ['base.html', 'partials/card.hbs', 'pages/home.html']

    Raises:
        TemplateNotFoundError: If template not found in any search path

    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def get_source(self, name: str) -> str:
        """Read template source synchronously."""
        for base in self._paths:
            path = base / name
            if path.is_file():
                return path.read_text(self._encoding)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}"
        )

    async def fetch_one(self, name: str) -> str:
        return await asyncio.to_thread(self.get_source, name)

    def list_templates(self) -> list[str]:
        """List all template files in search paths (posix-style names)."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for suffix in TEMPLATE_SUFFIXES:
                    for path in base.rglob(f"*{suffix}"):
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Maps template names to source strings. Useful for testing, embedded
    templates, or dynamically generated templates.

    Example:
            >>> loader = DictLoader({
            ...     "base.html": '<html>{{#block "content"}}{{/block}}</html>',
            ...     "page.html": '{{#extend "base"}}{{#block "content"}}Hi{{/block}}',
            ... })
            >>> env = Environment(loader=loader)
            >>> await env.render_async("page")
            '<html>Hi</html>'

    Raises:
        TemplateNotFoundError: If template name not in mapping

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> str:
        if name not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[name]

    async def fetch_one(self, name: str) -> str:
        return self.get_source(name)

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())


class ChoiceLoader:
    """Try multiple loaders in order, returning the first match.

    Useful for theme fallback patterns where a custom theme overrides
    a subset of templates and the default theme provides the rest.

    Example:
            >>> custom = DictLoader({"nav.html": "<nav>Custom</nav>"})
            >>> default = DictLoader({
            ...     "nav.html": "<nav>Default</nav>",
            ...     "footer.html": "<footer>Default</footer>",
            ... })
            >>> loader = ChoiceLoader([custom, default])
            >>> await loader.fetch_one("nav.html")     # from custom
            '<nav>Custom</nav>'
            >>> await loader.fetch_one("footer.html")  # from default
            '<footer>Default</footer>'

    Raises:
        TemplateNotFoundError: If no loader can find the template
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[FileSystemLoader | DictLoader | ChoiceLoader | FunctionLoader]):
        self._loaders = loaders

    async def fetch_one(self, name: str) -> str:
        """Try each loader in order, return first match."""
        for loader in self._loaders:
            try:
                return await loader.fetch_one(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders"
        )

    def list_templates(self) -> list[str]:
        """Merge template lists from all loaders (deduplicated, sorted)."""
        templates: set[str] = set()
        for loader in self._loaders:
            if hasattr(loader, "list_templates"):
                templates.update(loader.list_templates())
        return sorted(templates)


class FunctionLoader:
    """Wrap a callable as a template loader.

    The callable takes a template name and returns the source, or ``None``
    if not found. Coroutine functions are awaited.

    Example:
            >>> async def load(name):
            ...     return await cms.fetch(name)
            >>> loader = FunctionLoader(load, names=["header.html", "footer.html"])

    Args:
        load_func: Callable that takes a template name and returns a source
            string (or an awaitable of one), or ``None``.
        names: Names returned by ``list_templates()``; a function cannot
            enumerate what it serves.

    Raises:
        TemplateNotFoundError: If ``load_func`` returns ``None``
    """

    __slots__ = ("_load_func", "_names")

    def __init__(
        self,
        load_func: Callable[[str], str | None | Awaitable[str | None]],
        names: list[str] | None = None,
    ):
        self._load_func = load_func
        self._names = list(names or [])

    async def fetch_one(self, name: str) -> str:
        """Call the load function and normalize the result."""
        result = self._load_func(name)
        if inspect.isawaitable(result):
            result = await result

        if result is None:
            raise TemplateNotFoundError(f"Template '{name}' not found")
        return result

    def list_templates(self) -> list[str]:
        return list(self._names)
