"""Expression parsing for blockwork directives.

Covers the three small grammars that appear inside directives:

- **Output**: ``path``, ``path | filter | filter:arg``, or a helper call
  ``helper arg1 "quoted arg" 3 | filter``
- **Arguments**: quoted string → number → path reference
- **Conditions**: ``!cond``, ``a == 'x'``, ``a === 'x'``, ``a != 'x'``,
  ``a > 3``, ``a >= 3``, ``a < 3``, ``a <= 3``, or plain truthiness

Everything here runs once at compile time; evaluation lives in
``blockwork.template.helpers``.
"""

from __future__ import annotations

import re

from blockwork.compiler.nodes import (
    Arg,
    Compare,
    Condition,
    Equals,
    FilterCall,
    HelperCall,
    Not,
    NotEquals,
    NumberArg,
    Output,
    PathArg,
    StringArg,
    Truthy,
)

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

_EQUALITY = re.compile(r"""^([^\s!=<>]+)\s*(===?)\s*(['"])(.*)\3$""")
_INEQUALITY = re.compile(r"""^([^\s!=<>]+)\s*!==?\s*(['"])(.*)\2$""")
_COMPARISON = re.compile(r"^([^\s!=<>]+)\s*([<>]=?)\s*(-?\d+)$")


def split_unquoted(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator`` outside single/double quotes."""
    parts: list[str] = []
    current: list[str] = []
    quote = ""
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def tokenize(expression: str) -> list[str]:
    """Split a helper invocation on whitespace, keeping quoted tokens whole.

    Example:
        >>> tokenize('concat "Hello world" name')
        ['concat', '"Hello world"', 'name']
    """
    tokens: list[str] = []
    current: list[str] = []
    quote = ""
    for char in expression:
        if quote:
            current.append(char)
            if char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
    if current:
        tokens.append("".join(current))
    return tokens


def has_unquoted_space(text: str) -> bool:
    return len(tokenize(text)) > 1


def _is_quoted(token: str) -> bool:
    return len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'"


def _number(token: str) -> int | float:
    return float(token) if "." in token else int(token)


def parse_arg(token: str) -> Arg:
    """Coerce one token: quoted string, then numeric literal, then path."""
    if _is_quoted(token):
        return StringArg(token[1:-1])
    if _NUMBER.fullmatch(token):
        return NumberArg(_number(token))
    return PathArg(token)


def parse_filter(stage: str) -> FilterCall:
    """Parse ``name:arg:arg``. Bare filter arguments are literal strings."""
    name, *raw_args = (part.strip() for part in split_unquoted(stage, ":"))
    args: list[Arg] = []
    for raw in raw_args:
        arg = parse_arg(raw)
        args.append(StringArg(raw) if isinstance(arg, PathArg) else arg)
    return FilterCall(name=name, args=tuple(args))


def parse_output(expression: str) -> Output | HelperCall:
    """Classify a ``{{ ... }}`` expression as a helper call or a variable."""
    head, *stages = split_unquoted(expression.strip(), "|")
    filters = tuple(parse_filter(stage) for stage in stages if stage.strip())
    head = head.strip()

    if has_unquoted_space(head):
        name, *tokens = tokenize(head)
        return HelperCall(name=name, args=tuple(parse_arg(t) for t in tokens), filters=filters)
    return Output(path=head, filters=filters)


def parse_condition(source: str) -> Condition:
    """Parse an ``{{#if ...}}`` condition.

    Example:
        >>> parse_condition("!user.active")
        Not(operand=Truthy(path='user.active'))
        >>> parse_condition("count >= 3")
        Compare(path='count', operator='>=', number=3)
    """
    source = source.strip()
    if source.startswith("!") and not source.startswith("!="):
        return Not(parse_condition(source[1:]))

    match = _EQUALITY.match(source)
    if match:
        path, operator, _, literal = match.groups()
        return Equals(path=path, literal=literal, strict=operator == "===")

    match = _INEQUALITY.match(source)
    if match:
        path, _, literal = match.groups()
        return NotEquals(path=path, literal=literal)

    match = _COMPARISON.match(source)
    if match:
        path, operator, number = match.groups()
        return Compare(path=path, operator=operator, number=int(number))

    return Truthy(source)
