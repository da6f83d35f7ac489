"""
Format macro support: template parsing and format-call decomposition.

A format macro invocation (``print!``, ``writeln!`` ...) reaches the rules as a
``MacroCall`` node holding a ``FormatArgsNode``. ``decompose_format_call``
flattens it into a ``FormatCall``: the literal segments, one ``FormatArg`` per
interpolation site, and the per-call value reference counts.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Union

from hirlint.hir.nodes import (
    Expr,
    FormatArgsNode,
    FormatString,
    FormatTrait,
    MacroCall,
    Placeholder,
)
from hirlint.utils.errors import HostContractError
from hirlint.utils.span import Span, SyntaxContext


# Macros whose expansion appends a newline to the format string
LINE_MACROS = frozenset({"println", "eprintln", "writeln"})

# Macros that take a destination before the format string
WRITE_MACROS = frozenset({"write", "writeln"})

FORMAT_MACROS = frozenset({"print", "println", "eprint", "eprintln", "write", "writeln", "format"})


# =============================================================================
# Template parsing
# =============================================================================


ArgRef = Union[int, str]

_COUNT_ARG = re.compile(r"(\w+)\$")


@dataclass(slots=True)
class ParsedPlaceholder:
    """
    One ``{...}`` site as written in a template, before name resolution.

    ``argument``, ``width`` and ``precision`` are positional indices or names.
    """

    argument: ArgRef
    spec: str = ""
    explicit: Optional[str] = None
    width: Optional[ArgRef] = None
    precision: Optional[ArgRef] = None


@dataclass(slots=True)
class ParsedTemplate:
    pieces: list[str] = field(default_factory=list)
    placeholders: list[ParsedPlaceholder] = field(default_factory=list)


def _count_ref(text: str) -> ArgRef:
    return int(text) if text.isdigit() else text


def parse_format_template(template: str) -> ParsedTemplate:
    """
    Split a decoded format string into literal pieces and placeholders.

    Supports ``{}``, ``{0}``, ``{name}``, ``{:spec}``, ``{{`` / ``}}`` escapes,
    ``width$`` / ``.precision$`` count arguments and ``.*``.

    Raises:
        HostContractError: If a brace is unmatched
    """
    result = ParsedTemplate()
    current: list[str] = []
    next_positional = 0
    i = 0
    n = len(template)

    while i < n:
        ch = template[i]
        if ch == "{":
            if i + 1 < n and template[i + 1] == "{":
                current.append("{")
                i += 2
                continue
            end = template.find("}", i + 1)
            if end == -1:
                raise HostContractError(f"unterminated placeholder in format string {template!r}")
            inner = template[i + 1:end]
            arg_text, _, spec = inner.partition(":")
            arg_text = arg_text.strip()

            precision: Optional[ArgRef] = None
            width: Optional[ArgRef] = None
            if ".*" in spec:
                precision = next_positional
                next_positional += 1
            else:
                dot = spec.find(".")
                if dot != -1:
                    m = _COUNT_ARG.match(spec, dot + 1)
                    if m:
                        precision = _count_ref(m.group(1))
                width_part = spec[:dot] if dot != -1 else spec
                m = _COUNT_ARG.search(width_part)
                if m:
                    width = _count_ref(m.group(1))

            if not arg_text:
                argument: ArgRef = next_positional
                next_positional += 1
            else:
                argument = _count_ref(arg_text)

            result.pieces.append("".join(current))
            current = []
            result.placeholders.append(
                ParsedPlaceholder(
                    argument=argument,
                    spec=spec,
                    explicit=arg_text or None,
                    width=width,
                    precision=precision,
                )
            )
            i = end + 1
        elif ch == "}":
            if i + 1 < n and template[i + 1] == "}":
                current.append("}")
                i += 2
                continue
            raise HostContractError(f"unmatched '}}' in format string {template!r}")
        else:
            current.append(ch)
            i += 1

    result.pieces.append("".join(current))
    return result


# =============================================================================
# Decomposed view
# =============================================================================


@dataclass(frozen=True, slots=True)
class MacroCallInfo:
    """
    The outermost macro invocation an expression was expanded from.

    Attributes:
        expn: Hygiene context of the expansion
        logical_name: Stable name of the macro (``println_macro``)
        name: Name as written, without ``!`` (``println``)
        span: Span of the whole invocation in user text
        node: The invocation node itself
    """

    expn: SyntaxContext
    logical_name: str
    name: str
    span: Span
    node: MacroCall


@dataclass(frozen=True, slots=True)
class FormatArg:
    """
    One interpolation site and the value it formats.

    Attributes:
        value: The value expression
        placeholder: The ``{...}`` node
        trait: Formatting trait selected by the placeholder
        has_custom_spec: Whether anything beyond the default ``{}`` is given
        reference_count: How many sites (counts included) use the same value
    """

    value: Expr
    placeholder: Placeholder
    trait: FormatTrait
    has_custom_spec: bool
    reference_count: int

    @property
    def placeholder_span(self) -> Span:
        return self.placeholder.span

    @property
    def uses_debug_trait(self) -> bool:
        return self.trait is FormatTrait.DEBUG


@dataclass(frozen=True, slots=True)
class FormatCall:
    """
    A format macro invocation flattened for analysis.

    ``literal_parts`` always has one more element than ``arguments``. For the
    ``*ln`` macros the last part includes the implied trailing newline.
    """

    literal_parts: tuple[str, ...]
    arguments: tuple[FormatArg, ...]
    is_raw: bool
    format_string: FormatString
    values: tuple[Expr, ...]

    @property
    def format_string_span(self) -> Span:
        return self.format_string.span


def decompose_format_call(call: MacroCall, expn: SyntaxContext) -> Optional[FormatCall]:
    """
    Flatten the format arguments of the macro invocation owning ``expn``.

    Returns None when the invocation has no format arguments.

    Raises:
        HostContractError: If segment and placeholder counts disagree or a
            placeholder refers to a missing value
    """
    if call.expn is not expn or call.format_args is None:
        return None
    node: FormatArgsNode = call.format_args
    fmt = node.format_string

    if len(fmt.pieces) != len(fmt.placeholders) + 1:
        raise HostContractError(
            f"format string has {len(fmt.pieces)} pieces for {len(fmt.placeholders)} placeholders",
            node_kind="FormatString",
        )

    counts: Counter[int] = Counter()
    for placeholder in fmt.placeholders:
        for index in (placeholder.arg_index, placeholder.width_arg, placeholder.precision_arg):
            if index is None:
                continue
            if not 0 <= index < len(node.values):
                raise HostContractError(
                    f"placeholder refers to argument {index} of {len(node.values)}",
                    node_kind="FormatArgs",
                )
            counts[node.values[index].hir_id] += 1

    arguments = tuple(
        FormatArg(
            value=node.values[placeholder.arg_index],
            placeholder=placeholder,
            trait=placeholder.trait,
            has_custom_spec=not placeholder.is_default,
            reference_count=counts[node.values[placeholder.arg_index].hir_id],
        )
        for placeholder in fmt.placeholders
    )

    parts = list(fmt.pieces)
    if call.name in LINE_MACROS:
        parts[-1] += "\n"

    return FormatCall(
        literal_parts=tuple(parts),
        arguments=arguments,
        is_raw=fmt.is_raw,
        format_string=fmt,
        values=node.values,
    )
