"""Exceptions for the blockwork template system.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError      # Template not found in the store or by a loader
├── MalformedBlockError        # Unterminated {{#block}} marker
├── CircularInheritanceError   # {{#extend}} chain loops back on itself
└── TemplateLoadError          # Provider could not deliver a source

None of these escape ``Environment.render()``. They are raised inside the
resolver and loaders, then caught at the render boundary and turned into
inline diagnostics (see ``blockwork.utils.html.diagnostic``).

Example:
    ```
    BW-INH-002: Circular inheritance detected: page -> layout -> page
    ```

"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Searchable error codes for blockwork diagnostics.

    Format: BW-{CATEGORY}-{NUMBER}
    Categories: TPL (template lookup), INH (inheritance), RUN (runtime),
    LOD (loading)
    """

    # Template lookup (BW-TPL-xxx)
    TEMPLATE_NOT_FOUND = "BW-TPL-001"
    PARTIAL_NOT_FOUND = "BW-TPL-002"

    # Inheritance (BW-INH-xxx)
    MALFORMED_BLOCK = "BW-INH-001"
    CIRCULAR_INHERITANCE = "BW-INH-002"
    PASS_LIMIT = "BW-INH-003"

    # Runtime (BW-RUN-xxx)
    HELPER_NOT_FOUND = "BW-RUN-001"
    FILTER_NOT_FOUND = "BW-RUN-002"
    HELPER_ERROR = "BW-RUN-003"
    FILTER_ERROR = "BW-RUN-004"
    PARTIAL_DEPTH = "BW-RUN-005"
    RENDER_ERROR = "BW-RUN-006"

    # Loading (BW-LOD-xxx)
    LOAD_FAILURE = "BW-LOD-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'inheritance')."""
        prefix = self.value.split("-")[1]
        return {
            "TPL": "template",
            "INH": "inheritance",
            "RUN": "runtime",
            "LOD": "loading",
        }.get(prefix, "unknown")


class TemplateError(Exception):
    """Base exception for all blockwork template errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a single-line summary prefixed with its code."""
        message = str(self)
        if self.code and self.code.value not in message:
            return f"{self.code.value}: {message}"
        return message


class TemplateNotFoundError(TemplateError):
    """Template not found in the source store or by a loader.

    Example:
            >>> resolver.chain("nonexistent")
        TemplateNotFoundError: Template 'nonexistent' not found

    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class MalformedBlockError(TemplateError):
    """A ``{{#block "name"}}`` marker has no matching ``{{/block}}``.

    The block parser reports these rather than raising them, so a single
    broken block never aborts the render.
    """

    code: ErrorCode | None = ErrorCode.MALFORMED_BLOCK

    def __init__(self, block_name: str, position: int, template_name: str | None = None):
        self.block_name = block_name
        self.position = position
        self.template_name = template_name
        location = template_name or "<template>"
        super().__init__(
            f"Unterminated block '{block_name}' at offset {position} in {location}"
        )


class CircularInheritanceError(TemplateError):
    """An ``{{#extend}}`` chain revisits a template it already passed through."""

    code: ErrorCode | None = ErrorCode.CIRCULAR_INHERITANCE

    def __init__(self, chain: list[str]):
        self.chain = tuple(chain)
        super().__init__(f"Circular inheritance detected: {' -> '.join(chain)}")


class TemplateLoadError(TemplateError):
    """A template source provider could not deliver a source."""

    code: ErrorCode | None = ErrorCode.LOAD_FAILURE
