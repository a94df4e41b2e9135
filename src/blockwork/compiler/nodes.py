"""Parse-tree nodes produced by the blockwork compiler.

All nodes are immutable. Container nodes hold their children as tuples so
compiled templates can be shared between renders without copying.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all template nodes."""


# -- Arguments ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StringArg:
    """Quoted literal argument: ``"text"`` or ``'text'``."""

    value: str


@dataclass(frozen=True, slots=True)
class NumberArg:
    """Numeric literal argument: ``3`` or ``1.5``."""

    value: int | float


@dataclass(frozen=True, slots=True)
class PathArg:
    """Argument resolved from the render context: ``user.name``."""

    path: str


Arg = StringArg | NumberArg | PathArg


# -- Conditions --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Truthy:
    """Plain truthiness of a resolved path: ``{{#if user}}``"""

    path: str


@dataclass(frozen=True, slots=True)
class Not:
    """Negated condition: ``{{#if !user}}``"""

    operand: Condition


@dataclass(frozen=True, slots=True)
class Equals:
    """Equality against a quoted literal: ``a == 'x'`` / ``a === 'x'``"""

    path: str
    literal: str
    strict: bool


@dataclass(frozen=True, slots=True)
class NotEquals:
    """Inequality against a quoted literal: ``a != 'x'``"""

    path: str
    literal: str


@dataclass(frozen=True, slots=True)
class Compare:
    """Numeric comparison against an integer literal: ``count >= 3``"""

    path: str
    operator: str
    number: int


Condition = Truthy | Not | Equals | NotEquals | Compare


# -- Filters -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FilterCall:
    """One stage of a filter pipeline: ``truncate:20``"""

    name: str
    args: tuple[Arg, ...] = ()


# -- Template nodes ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Literal template text."""

    value: str


@dataclass(frozen=True, slots=True)
class Each(Node):
    """Loop: ``{{#each items}}...{{/each}}``"""

    path: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Partial(Node):
    """Partial inclusion: ``{{> card}}``"""

    name: str


@dataclass(frozen=True, slots=True)
class If(Node):
    """Conditional: ``{{#if cond}}...{{else}}...{{/if}}``"""

    test: Condition
    source: str
    body: Sequence[Node]
    else_: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class BlockRegion(Node):
    """Leftover inheritance block, rendered as its content."""

    name: str
    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Raw(Node):
    """Unescaped output: ``{{{html}}}``"""

    path: str


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Escaped variable output: ``{{title | uppercase}}``"""

    path: str
    filters: tuple[FilterCall, ...] = ()


@dataclass(frozen=True, slots=True)
class HelperCall(Node):
    """Helper invocation: ``{{formatSize width "rem"}}``"""

    name: str
    args: tuple[Arg, ...] = ()
    filters: tuple[FilterCall, ...] = ()
