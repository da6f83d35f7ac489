"""
The format-macro rule family.

Checks ``print!``, ``println!``, ``eprint!``, ``eprintln!``, ``write!`` and
``writeln!`` invocations:

    print!("done\\n")           print-with-newline    println!("done")
    println!("")               println-empty-string  println!()
    println!("{}", "hello")    print-literal         println!("hello")
    println!("{:?}", v)        use-debug             (report only)
    println!(..)               print-stdout          (report only)
    eprintln!(..)              print-stderr          (report only)

Each check abstains silently when its precondition fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from hirlint.hir.macros import FormatCall, MacroCallInfo
from hirlint.hir.nodes import Expr, ImplItem, Item, Lit, LitKind
from hirlint.lints.rules import (
    LintRule,
    LintViolation,
    PRINT_LITERAL,
    PRINT_STDERR,
    PRINT_STDOUT,
    PRINT_WITH_NEWLINE,
    PRINTLN_EMPTY_STRING,
    USE_DEBUG,
    WRITE_LITERAL,
    WRITE_WITH_NEWLINE,
    WRITELN_EMPTY_STRING,
)
from hirlint.lints.unescape import UnescapeStatus, unescape
from hirlint.utils.diagnostics import Edit, Suggestion
from hirlint.utils.errors import HostContractError

if TYPE_CHECKING:
    from hirlint.hir.context import LintContext

logger = logging.getLogger(__name__)


BUILD_SCRIPT_CRATE = "build_script_build"

_STDOUT_MACROS = ("print_macro", "println_macro")
_STDERR_MACROS = ("eprint_macro", "eprintln_macro")
_WRITE_MACROS = ("write_macro", "writeln_macro")


def is_debug_impl(item: Item) -> bool:
    """Whether ``item`` is an ``impl Debug for ..`` block."""
    return isinstance(item, ImplItem) and item.trait_diagnostic_name == "Debug"


def check_format_macro(cx: "LintContext", expr: Expr, in_debug_impl: bool) -> list[LintViolation]:
    """
    Run every format-macro check on the invocation rooted at ``expr``.

    Malformed format arguments from the host end the checks early; the
    restriction rules found before that are still returned.

    Args:
        cx: Host queries for the crate
        expr: Candidate node; anything but a root print/write macro is ignored
        in_debug_impl: Whether ``expr`` is inside an ``impl Debug`` block
    """
    macro_call = cx.first_macro_call_at(expr)
    if macro_call is None or not macro_call.logical_name.endswith("_macro"):
        return []
    logical_name = macro_call.logical_name
    name = logical_name.removesuffix("_macro")

    violations: list[LintViolation] = []
    if logical_name in _STDOUT_MACROS:
        if cx.crate_name != BUILD_SCRIPT_CRATE:
            violations.append(_report_only(PRINT_STDOUT, macro_call, name))
    elif logical_name in _STDERR_MACROS:
        violations.append(_report_only(PRINT_STDERR, macro_call, name))
    elif logical_name not in _WRITE_MACROS:
        return []

    try:
        format_call = cx.decompose_format_call(expr, macro_call.expn)
    except HostContractError as e:
        logger.warning(f"format checks skipped `{name}!`: {e}")
        return violations
    if format_call is None:
        return violations

    # `writeln!(w)` and `println!()` have no format string of their own
    if format_call.format_string_span.from_expansion:
        logger.debug(f"{name}!: format string at {macro_call.span} comes from an expansion")
        return violations

    if name in ("print", "eprint", "write"):
        violation = check_newline(cx, format_call, macro_call, name)
    else:
        violation = check_empty_string(cx, format_call, macro_call, name)
    if violation is not None:
        violations.append(violation)

    violations.extend(check_literal(cx, format_call, macro_call, name))

    if not in_debug_impl:
        violations.extend(check_debug(format_call, macro_call))
    return violations


def _report_only(rule: LintRule, macro_call: MacroCallInfo, name: str) -> LintViolation:
    return LintViolation(
        rule=rule,
        span=macro_call.span,
        message=rule.message.format(name),
        hir_id=macro_call.node.hir_id,
    )


# =============================================================================
# Trailing newline
# =============================================================================


def check_newline(
    cx: "LintContext", format_call: FormatCall, macro_call: MacroCallInfo, name: str
) -> Optional[LintViolation]:
    """``print!("..\\n")`` and friends, which should use the ``ln`` form."""
    parts = format_call.literal_parts
    last = parts[-1]
    vertical_whitespace = sum(part.count("\n") + part.count("\r") for part in parts)

    # Other line breaks, or a trailing argument after the newline, keep the call as is
    if not (
        last.endswith("\n")
        and vertical_whitespace == 1
        and len(parts) > len(format_call.arguments)
    ):
        return None

    format_span = format_call.format_string_span
    if name == "write":
        format_span = cx.source_map.expand_past_previous_comma(format_span)
        rule = WRITE_WITH_NEWLINE
    else:
        rule = PRINT_WITH_NEWLINE

    suggestion = None
    name_span = cx.source_map.span_until_char(macro_call.span, "!")
    format_snippet = cx.snippet_opt(format_span)
    if format_snippet is not None:
        edit = None
        if len(parts) == 1 and last == "\n":
            # print!("\n"), write!(f, "\n")
            edit = Edit(format_span, "")
        elif format_snippet.endswith('\\n"'):
            hi = format_span.hi
            edit = Edit(format_span.with_lo(hi - 3).with_hi(hi - 1), "")
        if edit is not None:
            suggestion = Suggestion(
                rule.suggestion.format(name), (Edit(name_span, f"{name}ln"), edit)
            )

    return LintViolation(
        rule=rule,
        span=macro_call.span,
        message=rule.message.format(name),
        suggestion=suggestion,
        hir_id=macro_call.node.hir_id,
    )


# =============================================================================
# Empty format string
# =============================================================================


def check_empty_string(
    cx: "LintContext", format_call: FormatCall, macro_call: MacroCallInfo, name: str
) -> Optional[LintViolation]:
    """``println!("")``, which is just ``println!()``."""
    if format_call.literal_parts != ("\n",):
        return None

    span = format_call.format_string_span
    if name == "writeln":
        span = cx.source_map.expand_past_previous_comma(span)
        rule = WRITELN_EMPTY_STRING
    else:
        rule = PRINTLN_EMPTY_STRING

    return LintViolation(
        rule=rule,
        span=macro_call.span,
        message=rule.message.format(name),
        suggestion=Suggestion.single(rule.suggestion, span, ""),
        hir_id=macro_call.node.hir_id,
    )


# =============================================================================
# Literal arguments
# =============================================================================


def extract_str_literal(literal: str) -> tuple[str, bool]:
    """
    Strip the raw marker, ``#`` delimiters and quotes from string literal text.

    Returns:
        The text between the quotes and whether the literal was raw

    Examples:
        extract_str_literal('r#"a"#')  -> ("a", True)
        extract_str_literal('"b"')     -> ("b", False)
    """
    raw = literal.startswith("r")
    if raw:
        literal = literal[1:].strip("#")
    return literal[1:-1], raw


def _literal_text(lit: Lit, snippet: str) -> Optional[tuple[str, bool]]:
    if lit.kind is LitKind.STR:
        return extract_str_literal(snippet)
    if lit.kind is LitKind.CHAR:
        if lit.value == '"':
            return '\\"', False
        if lit.value == "'":
            return "'", False
        return snippet[1:-1], False
    if lit.kind is LitKind.BOOL:
        return ("true" if lit.value else "false"), False
    return None


def check_literal(
    cx: "LintContext", format_call: FormatCall, macro_call: MacroCallInfo, name: str
) -> list[LintViolation]:
    """Literal values passed through a plain ``{}`` that could be written inline."""
    rule = WRITE_LITERAL if name.startswith("write") else PRINT_LITERAL
    violations: list[LintViolation] = []

    for arg in format_call.arguments:
        value = arg.value
        if arg.reference_count != 1 or arg.has_custom_spec or not isinstance(value, Lit):
            continue
        if value.span.from_expansion:
            continue
        snippet = cx.snippet_opt(value.span)
        if snippet is None:
            continue
        extracted = _literal_text(value, snippet)
        if extracted is None:
            continue
        text, value_is_raw = extracted

        replacement: Optional[str]
        if not format_call.is_raw:
            if value_is_raw:
                replacement = text.replace("\\", "\\\\").replace('"', '\\"')
            else:
                replacement = text
        elif value_is_raw:
            # Widening the delimiters is not attempted
            replacement = None if "#" in text or '"' in text else text
        else:
            result = unescape(text)
            if result.status is UnescapeStatus.ABSTAIN:
                logger.debug(f"{name}!: {snippet} has no raw spelling")
                continue
            replacement = result.text

        suggestion = None
        if replacement is not None:
            doubled = replacement.replace("{", "{{").replace("}", "}}")
            suggestion = Suggestion(
                rule.suggestion,
                (
                    Edit(arg.placeholder_span, doubled),
                    Edit(cx.source_map.expand_past_previous_comma(value.span), ""),
                ),
            )
        violations.append(
            LintViolation(
                rule=rule,
                span=value.span,
                message=rule.message,
                suggestion=suggestion,
                hir_id=macro_call.node.hir_id,
            )
        )
    return violations


# =============================================================================
# Debug formatting
# =============================================================================


def check_debug(format_call: FormatCall, macro_call: MacroCallInfo) -> list[LintViolation]:
    """``{:?}`` placeholders; the caller skips this inside ``impl Debug``."""
    return [
        LintViolation(
            rule=USE_DEBUG,
            span=arg.placeholder_span,
            message=USE_DEBUG.message,
            hir_id=macro_call.node.hir_id,
        )
        for arg in format_call.arguments
        if arg.uses_debug_trait
    ]
