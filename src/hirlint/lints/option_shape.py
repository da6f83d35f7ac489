"""
Shape classification for `Option` patterns and expressions.

Recognizes the canonical forms manual-map rewrites: the patterns ``_``,
``None`` and ``Some(p)`` (under any number of ``&`` / ``&mut``), the value
``Some(e)`` (under statement-free blocks, possibly ``unsafe``), and the value
``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from hirlint.hir.nodes import (
    BlockCheckMode,
    BlockExpr,
    Call,
    Expr,
    LangItem,
    OrPat,
    Pat,
    PathExpr,
    PathPat,
    RefPat,
    TupleStructPat,
    WildPat,
)
from hirlint.utils.span import SyntaxContext

if TYPE_CHECKING:
    from hirlint.hir.context import LintContext

logger = logging.getLogger(__name__)


# =============================================================================
# Shapes
# =============================================================================


@dataclass(frozen=True, slots=True)
class WildShape:
    """The catch-all pattern ``_``."""


@dataclass(frozen=True, slots=True)
class AbsentShape:
    """The pattern ``None``."""


@dataclass(frozen=True, slots=True)
class PresentShape:
    """
    The pattern ``Some(inner)``.

    Attributes:
        inner: The payload pattern; never an or-pattern
        ref_depth: Number of ``&`` / ``&mut`` layers peeled to reach ``Some``
    """

    inner: Pat
    ref_depth: int


OptionalShape = Union[WildShape, AbsentShape, PresentShape]

WILD = WildShape()
ABSENT = AbsentShape()


@dataclass(frozen=True, slots=True)
class SomeExpr:
    """
    The payload of a ``Some(..)`` value.

    Attributes:
        expr: The wrapped expression
        needs_unsafe_block: Whether a user-written ``unsafe`` block was peeled
    """

    expr: Expr
    needs_unsafe_block: bool


@dataclass(frozen=True, slots=True)
class ArmPairing:
    """
    A two-way branch recognized as a manual ``Option::map``.

    Attributes:
        some_body: Body of the branch that matched ``Some``
        some_pat: Payload pattern of that branch
        pat_ref_count: Reference layers around the ``Some`` pattern
        is_wild_none: Whether the other branch was ``_`` rather than ``None``
    """

    some_body: Expr
    some_pat: Pat
    pat_ref_count: int
    is_wild_none: bool


# =============================================================================
# Classification
# =============================================================================


def classify_pattern(cx: "LintContext", pat: Pat, ctxt: SyntaxContext) -> Optional[OptionalShape]:
    """
    Classify ``pat`` as ``_``, ``None`` or ``Some(p)``.

    ``Some(p)`` only qualifies when the pattern was written in ``ctxt``, and
    never when ``p`` is an or-pattern (a closure parameter cannot spell it).
    """
    ref_depth = 0
    while isinstance(pat, RefPat):
        pat = pat.inner
        ref_depth += 1

    if isinstance(pat, WildPat):
        return WILD
    if isinstance(pat, PathPat) and cx.is_lang_ctor(pat.res, LangItem.OPTION_NONE):
        return ABSENT
    if (
        isinstance(pat, TupleStructPat)
        and len(pat.elements) == 1
        and cx.is_lang_ctor(pat.res, LangItem.OPTION_SOME)
        and pat.span.ctxt is ctxt
    ):
        inner = pat.elements[0]
        if isinstance(inner, OrPat):
            logger.debug("Some(..) payload is an or-pattern")
            return None
        return PresentShape(inner, ref_depth)
    return None


def extract_wrapped_value(
    cx: "LintContext", expr: Expr, ctxt: SyntaxContext, needs_unsafe_block: bool = False
) -> Optional[SomeExpr]:
    """Find ``e`` in ``Some(e)``, looking through statement-free blocks."""
    while True:
        if (
            isinstance(expr, Call)
            and len(expr.args) == 1
            and isinstance(expr.func, PathExpr)
            and expr.span.ctxt is ctxt
            and cx.is_lang_ctor(expr.func.res, LangItem.OPTION_SOME)
        ):
            return SomeExpr(expr.args[0], needs_unsafe_block)
        if isinstance(expr, BlockExpr) and not expr.block.stmts and expr.block.expr is not None:
            if expr.block.rules is BlockCheckMode.UNSAFE_USER:
                needs_unsafe_block = True
            expr = expr.block.expr
            continue
        return None


def peel_blocks(expr: Expr) -> Expr:
    """Strip plain (non-``unsafe``) blocks that only hold a trailing expression."""
    while (
        isinstance(expr, BlockExpr)
        and not expr.block.stmts
        and expr.block.expr is not None
        and expr.block.rules is BlockCheckMode.DEFAULT
    ):
        expr = expr.block.expr
    return expr


def is_absent_value(cx: "LintContext", expr: Expr) -> bool:
    """Whether ``expr`` is ``None``, possibly inside plain blocks."""
    expr = peel_blocks(expr)
    return isinstance(expr, PathExpr) and cx.is_lang_ctor(expr.res, LangItem.OPTION_NONE)


def pair_arms(
    cx: "LintContext",
    then_pat: Pat,
    then_body: Expr,
    else_pat: Optional[Pat],
    else_body: Expr,
    ctxt: SyntaxContext,
) -> Optional[ArmPairing]:
    """
    Match a two-way branch against ``Some(p) => .., None | _ => None``.

    ``else_pat`` is None for the ``else`` of an ``if let``, which behaves like
    ``_``. Either order of the two branches is accepted.
    """
    then_shape = classify_pattern(cx, then_pat, ctxt)
    else_shape = WILD if else_pat is None else classify_pattern(cx, else_pat, ctxt)
    if then_shape is None or else_shape is None:
        return None

    if isinstance(else_shape, PresentShape) and not isinstance(then_shape, PresentShape):
        if is_absent_value(cx, then_body):
            return ArmPairing(
                else_body, else_shape.inner, else_shape.ref_depth, isinstance(then_shape, WildShape)
            )
    elif isinstance(then_shape, PresentShape) and not isinstance(else_shape, PresentShape):
        if is_absent_value(cx, else_body):
            return ArmPairing(
                then_body, then_shape.inner, then_shape.ref_depth, isinstance(else_shape, WildShape)
            )
    return None
