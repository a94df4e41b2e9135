"""blockwork: Handlebars-style HTML templates with block inheritance.

Renders HTML fragments from named templates and a data context:
interpolation, loops, conditionals, partials, a helper/filter pipeline and
multi-level ``{{#extend}}``/``{{#block}}`` inheritance.

Quickstart:
    >>> from blockwork import Environment
    >>> env = Environment()
    >>> env.from_string("Hello, {{name}}!").render(name="World")
    'Hello, World!'

Inheritance:
    >>> env = Environment(templates={
    ...     "base": '<main>{{#block "content"}}Default{{/block}}</main>',
    ...     "page": '{{#extend "base"}}{{#block "content"}}Hi{{/block}}',
    ... })
    >>> env.render("page")
    '<main>Hi</main>'

Loading from a provider:
    >>> env = Environment(loader=FileSystemLoader("templates/"))
    >>> html = await env.render_async("report", data)

Architecture:
Provider → LoadCoordinator → SourceStore → InheritanceResolver → Compiler →
Template → text

Pipeline stages:
1. **Loading**: every source is fetched once, however many callers wait
2. **Inheritance**: the ``extend`` chain is walked and blocks substituted
3. **Compilation**: six fixed passes (loop, partial, if, block, raw, output)
   build a small parse tree
4. **Rendering**: the tree is walked against the data context; compiled
   templates are cached until the sources change

Degraded Output:
``Environment.render()`` never raises. Missing templates, partials, helpers
and filters render as ``<!-- ... -->`` comments and are logged.

"""

from blockwork.environment import (
    ChoiceLoader,
    CircularInheritanceError,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    FunctionLoader,
    FunctionRegistry,
    MalformedBlockError,
    PerformanceReport,
    TemplateError,
    TemplateLoadError,
    TemplateNotFoundError,
    ValidationResult,
    template_name_for,
)
from blockwork.cache import (
    CacheKey,
    LoadCoordinator,
    LoadFailure,
    LoadResult,
    LoadState,
    RenderCache,
    SourceStore,
    TemplateProvider,
    TemplateSource,
)
from blockwork.inheritance import InheritanceResolver, Resolution, parse_template
from blockwork.compiler import compile_source
from blockwork.render_state import RenderState, get_render_state, render_state
from blockwork.template import LoopContext, Template
from blockwork.utils.html import html_escape

__version__ = "0.1.0"

__all__ = [
    "CacheKey",
    "ChoiceLoader",
    "CircularInheritanceError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "FunctionRegistry",
    "InheritanceResolver",
    "LoadCoordinator",
    "LoadFailure",
    "LoadResult",
    "LoadState",
    "LoopContext",
    "MalformedBlockError",
    "PerformanceReport",
    "RenderCache",
    "RenderState",
    "Resolution",
    "SourceStore",
    "Template",
    "TemplateError",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "TemplateProvider",
    "TemplateSource",
    "ValidationResult",
    "__version__",
    "compile_source",
    "get_render_state",
    "html_escape",
    "parse_template",
    "render_state",
    "template_name_for",
]
