"""
Closure capture analysis.

Before an expression is moved into the closure passed to ``Option::map``,
``compute_captures`` works out how that closure would capture each outer local
the expression uses. It is a conservative approximation of the borrow
checker: any construct whose capture it cannot describe makes it give up, and
the rule that asked then abstains.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import TYPE_CHECKING, Optional

from hirlint.hir.nodes import (
    AddrOf,
    AdjustKind,
    Assign,
    AssignOp,
    Binary,
    BinOp,
    BlockExpr,
    Break,
    Call,
    Closure,
    Continue,
    Expr,
    ExprStmt,
    FieldExpr,
    If,
    IndexExpr,
    Let,
    LetStmt,
    Lit,
    LocalRes,
    Loop,
    MacroCall,
    Match,
    MethodCall,
    Mutability,
    Pat,
    PathExpr,
    Return,
    Tuple,
    Unary,
    UnOp,
)
from hirlint.hir.macros import WRITE_MACROS

if TYPE_CHECKING:
    from hirlint.hir.context import LintContext

logger = logging.getLogger(__name__)


class CaptureKind(IntEnum):
    """
    How a closure captures a local, ordered so that ``max`` merges two uses.
    """

    BY_REF = 0
    BY_MUT_REF = 1
    BY_VALUE = 2

    @property
    def mutability(self) -> Optional[Mutability]:
        """Mutability of a by-reference capture; None for ``BY_VALUE``."""
        if self is CaptureKind.BY_REF:
            return Mutability.NOT
        if self is CaptureKind.BY_MUT_REF:
            return Mutability.MUT
        return None


class _Usage(IntEnum):
    REF = 0
    MUT_REF = 1
    MOVE = 2


class _CannotMove(Exception):
    """Raised internally when the expression cannot become a closure body."""


_BY_REF_OPS = {BinOp.EQ, BinOp.NE, BinOp.LT, BinOp.LE, BinOp.GT, BinOp.GE}


class _CaptureCollector:
    """Walks one expression, threading how each sub-expression is used."""

    def __init__(self, cx: "LintContext") -> None:
        self.cx = cx
        self.captures: dict[int, CaptureKind] = {}
        self._locals: set[int] = set()
        self._loops: list[list[Optional[str]]] = [[]]
        self._closure_depth = 0
        self._move_closure_depth = 0

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _declare(self, pat: Pat) -> None:
        for binding in pat.bindings():
            self._locals.add(binding.binding_id)

    def _capture(self, binding_id: int, kind: CaptureKind) -> None:
        current = self.captures.get(binding_id)
        self.captures[binding_id] = kind if current is None else max(current, kind)

    def _outer_local(self, expr: Expr) -> Optional[int]:
        if isinstance(expr, PathExpr) and isinstance(expr.res, LocalRes):
            if expr.res.binding_id not in self._locals:
                return expr.res.binding_id
        return None

    def _place_root(self, expr: Expr) -> Optional[int]:
        while isinstance(expr, (FieldExpr, IndexExpr)):
            expr = expr.base
        return self._outer_local(expr)

    @staticmethod
    def _is_copy(expr: Expr) -> bool:
        return expr.ty is not None and expr.ty.is_copy

    def _adjusted_usage(self, expr: Expr, usage: _Usage) -> _Usage:
        for adjustment in self.cx.expr_adjustments(expr):
            if adjustment.kind is AdjustKind.BORROW:
                return _Usage.MUT_REF if adjustment.mutability is Mutability.MUT else _Usage.REF
        return usage

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def walk(self, expr: Expr, usage: _Usage = _Usage.MOVE) -> None:
        usage = self._adjusted_usage(expr, usage)

        if isinstance(expr, PathExpr):
            binding_id = self._outer_local(expr)
            if binding_id is not None:
                self._capture(binding_id, self._kind_for(expr, usage))
        elif isinstance(expr, Lit):
            pass
        elif isinstance(expr, AddrOf):
            self.walk(expr.operand, _Usage.MUT_REF if expr.mutability is Mutability.MUT else _Usage.REF)
        elif isinstance(expr, (FieldExpr, IndexExpr)):
            if isinstance(expr, IndexExpr):
                self.walk(expr.index)
            if usage is _Usage.MOVE and not self._is_copy(expr) and self._place_root(expr) is not None:
                raise _CannotMove("moves a field out of a captured local")
            self.walk(expr.base, _Usage.REF if usage is _Usage.MOVE else usage)
        elif isinstance(expr, Unary):
            if expr.op is UnOp.DEREF:
                self.walk(expr.operand, _Usage.MUT_REF if usage is _Usage.MUT_REF else _Usage.REF)
            else:
                self.walk(expr.operand)
        elif isinstance(expr, Binary):
            operand_usage = _Usage.REF if expr.op in _BY_REF_OPS else _Usage.MOVE
            self.walk(expr.left, operand_usage)
            self.walk(expr.right, operand_usage)
        elif isinstance(expr, (Assign, AssignOp)):
            self.walk(expr.target, _Usage.MUT_REF)
            self.walk(expr.value)
        elif isinstance(expr, Call):
            self.walk(expr.func, _Usage.REF)
            for arg in expr.args:
                self.walk(arg)
        elif isinstance(expr, MethodCall):
            self.walk(expr.receiver)
            for arg in expr.args:
                self.walk(arg)
        elif isinstance(expr, Tuple):
            for element in expr.elements:
                self.walk(element)
        elif isinstance(expr, BlockExpr):
            self._block(expr, usage)
        elif isinstance(expr, Let):
            self.walk(expr.init, self._scrutinee_usage((expr.pat,)))
            self._declare(expr.pat)
        elif isinstance(expr, If):
            self.walk(expr.cond)
            self.walk(expr.then, usage)
            if expr.else_ is not None:
                self.walk(expr.else_, usage)
        elif isinstance(expr, Match):
            self.walk(expr.scrutinee, self._scrutinee_usage(tuple(arm.pat for arm in expr.arms)))
            for arm in expr.arms:
                self._declare(arm.pat)
                if arm.guard is not None:
                    self.walk(arm.guard)
                self.walk(arm.body, usage)
        elif isinstance(expr, Closure):
            self._closure(expr)
        elif isinstance(expr, Loop):
            self._loops[-1].append(expr.label)
            try:
                self._block(BlockExpr(expr.body), _Usage.MOVE)
            finally:
                self._loops[-1].pop()
        elif isinstance(expr, (Break, Continue)):
            self._check_jump(expr.label)
            if isinstance(expr, Break) and expr.value is not None:
                self.walk(expr.value)
        elif isinstance(expr, Return):
            if self._closure_depth == 0:
                raise _CannotMove("`return` would return from the closure instead")
            if expr.value is not None:
                self.walk(expr.value)
        elif isinstance(expr, MacroCall):
            dest_usage = _Usage.MUT_REF if expr.name in WRITE_MACROS else _Usage.REF
            for input_expr in expr.inputs:
                self.walk(input_expr, dest_usage)
            if expr.format_args is not None:
                for value in expr.format_args.values:
                    self.walk(value, _Usage.REF)
        else:
            raise _CannotMove(f"unsupported expression {type(expr).__name__}")

    def _kind_for(self, expr: PathExpr, usage: _Usage) -> CaptureKind:
        if usage is _Usage.MUT_REF:
            return CaptureKind.BY_MUT_REF
        if usage is _Usage.MOVE and not self._is_copy(expr):
            return CaptureKind.BY_VALUE
        if self._move_closure_depth and not self._is_copy(expr):
            return CaptureKind.BY_VALUE
        return CaptureKind.BY_REF

    @staticmethod
    def _scrutinee_usage(pats: tuple[Pat, ...]) -> _Usage:
        """A by-value binding moves out of the scrutinee; otherwise it is only borrowed."""
        for pat in pats:
            for binding in pat.bindings():
                if binding.by_ref is Mutability.MUT:
                    return _Usage.MUT_REF
                if binding.by_ref is None:
                    return _Usage.MOVE
        return _Usage.REF

    def _block(self, expr: BlockExpr, usage: _Usage) -> None:
        saved = set(self._locals)
        try:
            for stmt in expr.block.stmts:
                if isinstance(stmt, LetStmt):
                    if stmt.init is not None:
                        self.walk(stmt.init, self._scrutinee_usage((stmt.pat,)))
                    self._declare(stmt.pat)
                elif isinstance(stmt, ExprStmt):
                    self.walk(stmt.expr)
            if expr.block.expr is not None:
                self.walk(expr.block.expr, usage)
        finally:
            self._locals = saved

    def _closure(self, expr: Closure) -> None:
        saved = set(self._locals)
        for param in expr.params:
            self._declare(param)
        self._closure_depth += 1
        if expr.is_move:
            self._move_closure_depth += 1
        self._loops.append([])
        try:
            self.walk(expr.body)
        finally:
            self._loops.pop()
            self._closure_depth -= 1
            if expr.is_move:
                self._move_closure_depth -= 1
            self._locals = saved

    def _check_jump(self, label: Optional[str]) -> None:
        loops = self._loops[-1]
        if not loops:
            raise _CannotMove("`break`/`continue` leaves the expression")
        if label is not None and label not in loops:
            raise _CannotMove(f"`break`/`continue` targets outer loop '{label}")


def compute_captures(cx: "LintContext", expr: Expr) -> Optional[dict[int, CaptureKind]]:
    """
    How a closure whose body is ``expr`` would capture outer locals.

    Returns:
        A mapping from binding id to capture kind, or None if ``expr`` cannot
        be moved into a closure at all (it returns, breaks out of an enclosing
        loop, or moves a non-``Copy`` field out of an outer local)
    """
    collector = _CaptureCollector(cx)
    try:
        collector.walk(expr)
    except _CannotMove as e:
        logger.debug(f"expression cannot be moved into a closure: {e}")
        return None
    return collector.captures


def scrutinee_root_local(scrutinee: Expr) -> Optional[int]:
    """The local at the root of ``<local>(.<field>)*``, looking through ``&`` / ``&mut``."""
    expr = scrutinee
    while isinstance(expr, (FieldExpr, AddrOf)):
        expr = expr.base if isinstance(expr, FieldExpr) else expr.operand
    if isinstance(expr, PathExpr) and isinstance(expr.res, LocalRes):
        return expr.res.binding_id
    return None


def captures_conflict(
    captures: dict[int, CaptureKind],
    scrutinee: Expr,
    binding_ref: Optional[Mutability],
    scrutinee_is_copy: bool = True,
) -> bool:
    """
    Whether the closure's captures clash with the borrow ``.map`` takes of
    the scrutinee.

    With a reference adapter (``binding_ref`` set) the scrutinee stays
    borrowed: a by-value or mutable capture of its root local conflicts, and
    an immutable capture conflicts only with ``as_mut()``. Without one the
    scrutinee is moved, so any capture of its root conflicts unless it is
    ``Copy``.
    """
    root = scrutinee_root_local(scrutinee)
    if root is None or root not in captures:
        return False
    kind = captures[root]
    if binding_ref is None:
        return not scrutinee_is_copy
    if kind in (CaptureKind.BY_VALUE, CaptureKind.BY_MUT_REF):
        return True
    return binding_ref is Mutability.MUT
