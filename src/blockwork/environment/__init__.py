"""Environment subpackage for blockwork.

Exports the Environment, its source providers, registries and the
exception types used for diagnostics.
"""

from blockwork.environment.exceptions import (
    CircularInheritanceError,
    ErrorCode,
    MalformedBlockError,
    TemplateError,
    TemplateLoadError,
    TemplateNotFoundError,
)
from blockwork.environment.loaders import (
    ChoiceLoader,
    DictLoader,
    FileSystemLoader,
    FunctionLoader,
    template_name_for,
)
from blockwork.environment.registry import FunctionRegistry
from blockwork.environment.core import Environment, PerformanceReport, ValidationResult

__all__ = [
    "ChoiceLoader",
    "CircularInheritanceError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FunctionLoader",
    "FunctionRegistry",
    "MalformedBlockError",
    "PerformanceReport",
    "TemplateError",
    "TemplateLoadError",
    "TemplateNotFoundError",
    "ValidationResult",
    "template_name_for",
]
