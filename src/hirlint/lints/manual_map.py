"""
The manual-map rule.

Reports a ``match`` or ``if let`` over an ``Option`` that only transforms the
contained value, and suggests the equivalent ``Option::map`` call:

    match x {                       x.map(|n| n + 1)
        Some(n) => Some(n + 1),  ->
        None => None,
    }

The rule abstains whenever it cannot show the rewrite keeps the program's
meaning: guarded arms, or-patterns, coercions on the mapped value, closures
that would conflict with the scrutinee's borrow, and so on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from hirlint.hir.nodes import (
    AddrOf,
    BindingPat,
    Call,
    Expr,
    If,
    Let,
    Match,
    Mutability,
    Pat,
    PREC_POSTFIX,
    precedence,
)
from hirlint.lints.captures import captures_conflict, compute_captures
from hirlint.lints.option_shape import extract_wrapped_value, pair_arms
from hirlint.lints.rules import MANUAL_MAP, MATCH_AS_REF, OPTION_MAP_UNIT_FN, LintViolation
from hirlint.utils.diagnostics import Applicability, Suggestion

if TYPE_CHECKING:
    from hirlint.hir.context import LintContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClosureText:
    """The argument text for ``.map(..)`` and the confidence in it."""

    text: str
    applicability: Applicability


def check_match(cx: "LintContext", expr: Match) -> Optional[LintViolation]:
    """Check a two-armed, unguarded ``match``."""
    if len(expr.arms) != 2 or any(arm.guard is not None for arm in expr.arms):
        return None
    first, second = expr.arms
    return _check(cx, expr, expr.scrutinee, first.pat, first.body, second.pat, second.body)


def check_if_let(cx: "LintContext", expr: If) -> Optional[LintViolation]:
    """Check ``if let PAT = EXPR { .. } else { .. }``."""
    if not isinstance(expr.cond, Let) or expr.else_ is None:
        return None
    return _check(cx, expr, expr.cond.init, expr.cond.pat, expr.then, None, expr.else_)


def _check(
    cx: "LintContext",
    expr: Expr,
    scrutinee: Expr,
    then_pat: Pat,
    then_body: Expr,
    else_pat: Optional[Pat],
    else_body: Expr,
) -> Optional[LintViolation]:
    scrutinee_ty = cx.expr_ty(scrutinee)
    peeled_ty, ty_ref_count, ty_mutability = scrutinee_ty.peel_refs_is_mutable()
    if not (
        cx.is_type_diagnostic_item(peeled_ty, "Option")
        and cx.is_type_diagnostic_item(cx.expr_ty(expr), "Option")
    ):
        return None

    expr_ctxt = expr.span.ctxt
    pairing = pair_arms(cx, then_pat, then_body, else_pat, else_body, expr_ctxt)
    if pairing is None:
        logger.debug(f"manual-map: branches at {expr.span} are not `Some(..)` / `None`")
        return None

    some_expr = extract_wrapped_value(cx, pairing.some_body, expr_ctxt)
    if some_expr is None:
        return None

    # `Some(())` bodies are option-map-unit-fn's territory
    if cx.expr_ty(some_expr.expr).is_unit and not cx.is_lint_allowed(OPTION_MAP_UNIT_FN, expr):
        return None

    # A closure body would not receive the same coercion
    if cx.expr_adjustments(some_expr.expr):
        logger.debug(f"manual-map: mapped value at {some_expr.expr.span} is adjusted")
        return None

    explicit_ref = pairing.some_pat.contains_explicit_ref_binding()
    binding_ref = explicit_ref
    if binding_ref is None and ty_ref_count != pairing.pat_ref_count:
        binding_ref = ty_mutability

    captures = compute_captures(cx, some_expr.expr)
    if captures is None:
        return None
    if captures_conflict(captures, scrutinee, binding_ref, scrutinee_ty.is_copy):
        logger.debug(f"manual-map: closure captures conflict with the scrutinee at {scrutinee.span}")
        return None

    closure = synthesize_closure(
        cx,
        expr,
        pairing.some_pat,
        some_expr.expr,
        some_expr.needs_unsafe_block,
        binding_ref,
        explicit_ref,
        pairing.is_wild_none,
        Applicability.MACHINE_APPLICABLE,
    )
    if closure is None:
        return None

    receiver, applicability = scrutinee_text(cx, scrutinee, expr, closure.applicability)
    text = f"{receiver}{as_ref_method(binding_ref)}.map({closure.text})"
    if else_pat is None and cx.is_else_clause(expr):
        text = f"{{ {text} }}"

    return LintViolation(
        rule=MANUAL_MAP,
        span=expr.span,
        message=MANUAL_MAP.message,
        suggestion=Suggestion.single(MANUAL_MAP.suggestion, expr.span, text, applicability),
        hir_id=expr.hir_id,
    )


# =============================================================================
# Fix text
# =============================================================================


def as_ref_method(binding_ref: Optional[Mutability]) -> str:
    """The adapter call that makes ``.map`` see references: ``.as_ref()`` or ``.as_mut()``."""
    if binding_ref is Mutability.MUT:
        return ".as_mut()"
    if binding_ref is Mutability.NOT:
        return ".as_ref()"
    return ""


def scrutinee_text(
    cx: "LintContext", scrutinee: Expr, expr: Expr, applicability: Applicability
) -> tuple[str, Applicability]:
    """
    Receiver text for the ``.map`` call.

    Leading ``&`` / ``&mut`` are dropped (the adapter call replaces them) and
    the rest is parenthesized when a method call would bind tighter than it.
    """
    while isinstance(scrutinee, AddrOf):
        scrutinee = scrutinee.operand
    text, applicability = cx.snippet_with_context(scrutinee.span, expr.span.ctxt, "..", applicability)
    if scrutinee.span.ctxt is expr.span.ctxt and precedence(scrutinee) < PREC_POSTFIX:
        text = f"({text})"
    return text, applicability


def can_pass_as_func(cx: "LintContext", binding_id: int, expr: Expr) -> Optional[Expr]:
    """
    The callee of ``expr`` when it is ``f(binding)`` and ``f`` can be passed
    to ``.map`` directly.
    """
    if not isinstance(expr, Call) or len(expr.args) != 1:
        return None
    arg = expr.args[0]
    if not cx.path_to_local_id(arg, binding_id) or cx.expr_adjustments(arg):
        return None
    if cx.is_unsafe_fn(cx.expr_ty(expr.func)):
        return None
    return expr.func


def synthesize_closure(
    cx: "LintContext",
    expr: Expr,
    some_pat: Pat,
    body: Expr,
    needs_unsafe_block: bool,
    binding_ref: Optional[Mutability],
    explicit_ref: Optional[Mutability],
    is_wild_none: bool,
    applicability: Applicability,
) -> Optional[ClosureText]:
    """
    Build the argument of ``.map(..)`` for the payload pattern and body.

    Returns None when the closure cannot be written, or when a plain
    ``Some(x) => Some(x)`` under a reference is left to match-as-ref.
    """
    expr_ctxt = expr.span.ctxt

    if isinstance(some_pat, BindingPat) and some_pat.sub is None:
        func = None if needs_unsafe_block else can_pass_as_func(cx, some_pat.binding_id, body)
        if func is not None and func.span.ctxt is body.span.ctxt:
            text, applicability = cx.snippet_with_applicability(func.span, "..", applicability)
            return ClosureText(text, applicability)

        if (
            cx.path_to_local_id(body, some_pat.binding_id)
            and not cx.is_lint_allowed(MATCH_AS_REF, expr)
            and binding_ref is not None
        ):
            logger.debug(f"manual-map: deferring to match-as-ref at {expr.span}")
            return None

        # `ref` / `ref mut` are expressed by the adapter call instead
        annotation = "mut " if some_pat.mutable and some_pat.by_ref is None else ""
        param = f"{annotation}{some_pat.name}"
    elif not is_wild_none and explicit_ref is None:
        param, applicability = cx.snippet_with_context(some_pat.span, expr_ctxt, "..", applicability)
    else:
        # Refutable against `_`, or `ref` bindings nested in a destructuring pattern
        return None

    body_text, applicability = cx.snippet_with_context(body.span, expr_ctxt, "..", applicability)
    if needs_unsafe_block:
        return ClosureText(f"|{param}| unsafe {{ {body_text} }}", applicability)
    return ClosureText(f"|{param}| {body_text}", applicability)
