"""
The host interface rules query while checking a crate.

``LintContext`` bundles everything a rule may ask the host compiler: the
resolved type and adjustments of an expression, parent links, whether a lint
is enabled at a node, source snippets, and format macro decomposition.
"""

from __future__ import annotations

from typing import Iterator, Optional

from hirlint.hir.macros import FormatCall, MacroCallInfo, decompose_format_call
from hirlint.hir.nodes import (
    Adjustment,
    Crate,
    DefRes,
    Expr,
    If,
    LangItem,
    LocalRes,
    MacroCall,
    Node,
    PathExpr,
    Res,
    Ty,
    TyKind,
)
from hirlint.hir.source_map import SourceMap
from hirlint.lints.rules import LintConfiguration, LintLevel, LintRule
from hirlint.utils.diagnostics import Applicability
from hirlint.utils.errors import HostContractError
from hirlint.utils.span import Span, SyntaxContext


class LintContext:
    """
    Host-side queries for one crate.

    Args:
        crate: The crate being checked; its spans must already be stamped
        source_map: Source text the spans point into
        config: Rule levels for this run
        crate_name: Name the host compiles the crate under
    """

    def __init__(
        self,
        crate: Crate,
        source_map: SourceMap,
        config: Optional[LintConfiguration] = None,
        crate_name: Optional[str] = None,
    ) -> None:
        self.crate = crate
        self.source_map = source_map
        self.config = config or LintConfiguration()
        self.crate_name = crate_name or crate.name
        self._parents: dict[int, Node] = {}
        self._nodes: dict[int, Node] = {}
        self._index(crate)

    def _index(self, root: Node) -> None:
        stack: list[Node] = [root]
        while stack:
            node = stack.pop()
            self._nodes[node.hir_id] = node
            for child in node.children():
                self._parents[child.hir_id] = node
                stack.append(child)

    # -------------------------------------------------------------------------
    # Tree navigation
    # -------------------------------------------------------------------------

    def node(self, hir_id: int) -> Optional[Node]:
        return self._nodes.get(hir_id)

    def parent(self, node: Node) -> Optional[Node]:
        return self._parents.get(node.hir_id)

    def ancestors(self, node: Node) -> Iterator[Node]:
        """The node itself followed by each enclosing node up to the crate."""
        current: Optional[Node] = node
        while current is not None:
            yield current
            current = self._parents.get(current.hir_id)

    def is_else_clause(self, expr: Expr) -> bool:
        """Whether ``expr`` is the ``else`` branch of an ``if``."""
        parent = self.parent(expr)
        return isinstance(parent, If) and parent.else_ is expr

    # -------------------------------------------------------------------------
    # Type queries
    # -------------------------------------------------------------------------

    def expr_ty(self, expr: Expr) -> Ty:
        """
        The resolved type of ``expr``.

        Raises:
            HostContractError: If the host left the expression untyped
        """
        if expr.ty is None:
            raise HostContractError("expression has no resolved type", node_kind=type(expr).__name__)
        return expr.ty

    def expr_adjustments(self, expr: Expr) -> tuple[Adjustment, ...]:
        return expr.adjustments

    def is_type_diagnostic_item(self, ty: Ty, name: str) -> bool:
        """Whether ``ty`` is the ADT the host knows under the logical name ``name``."""
        return ty.kind is TyKind.ADT and ty.diagnostic_item == name

    def is_unsafe_fn(self, ty: Ty) -> bool:
        ty = ty.peel_refs()
        return ty.kind in (TyKind.FN_DEF, TyKind.FN_PTR) and ty.is_unsafe

    def is_lang_ctor(self, res: Res, item: LangItem) -> bool:
        return isinstance(res, DefRes) and res.lang_item is item

    def path_to_local_id(self, expr: Expr, binding_id: int) -> bool:
        """Whether ``expr`` is a plain path to the local ``binding_id``."""
        return (
            isinstance(expr, PathExpr)
            and isinstance(expr.res, LocalRes)
            and expr.res.binding_id == binding_id
        )

    # -------------------------------------------------------------------------
    # Lint levels
    # -------------------------------------------------------------------------

    def lint_level(self, rule: LintRule, node: Node) -> LintLevel:
        """
        Effective level of ``rule`` at ``node``.

        The innermost lint attribute naming the rule wins; otherwise the
        configured level applies.
        """
        for ancestor in self.ancestors(node):
            for attr in reversed(ancestor.attrs):
                if attr.applies_to(rule):
                    return attr.level
        return self.config.get_level(rule)

    def is_lint_allowed(self, rule: LintRule, node: Node) -> bool:
        return self.lint_level(rule, node) is LintLevel.ALLOW

    # -------------------------------------------------------------------------
    # Source text
    # -------------------------------------------------------------------------

    def snippet_opt(self, span: Span) -> Optional[str]:
        return self.source_map.snippet_opt(span)

    def snippet(self, span: Span, default: str = "..") -> str:
        return self.source_map.snippet(span, default)

    def snippet_with_applicability(
        self, span: Span, default: str, applicability: Applicability
    ) -> tuple[str, Applicability]:
        return self.source_map.snippet_with_applicability(span, default, applicability)

    def snippet_with_context(
        self, span: Span, outer: SyntaxContext, default: str, applicability: Applicability
    ) -> tuple[str, Applicability]:
        return self.source_map.snippet_with_context(span, outer, default, applicability)

    # -------------------------------------------------------------------------
    # Macros
    # -------------------------------------------------------------------------

    def first_macro_call_at(self, expr: Expr) -> Optional[MacroCallInfo]:
        """
        The macro invocation ``expr`` is the outermost node of, if any.

        Only invocations written in user text count; a macro call produced by
        another expansion is not a root call.
        """
        if not isinstance(expr, MacroCall) or expr.span.from_expansion:
            return None
        if expr.logical_name is None:
            return None
        return MacroCallInfo(expr.expn, expr.logical_name, expr.name, expr.span, expr)

    def decompose_format_call(self, expr: Expr, expn: SyntaxContext) -> Optional[FormatCall]:
        """
        Flatten the format arguments of the invocation ``expn`` belongs to.

        Raises:
            HostContractError: If the format arguments are malformed
        """
        if not isinstance(expr, MacroCall):
            return None
        return decompose_format_call(expr, expn)
