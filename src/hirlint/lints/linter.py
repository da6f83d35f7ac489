"""
hirlint driver - runs the rules over a typed crate.

The ``Linter`` walks the crate once, feeding each ``match`` / ``if let`` to
manual-map and each macro invocation to the format-macro checks, and keeps
only the violations whose rule is enabled at the reporting node.

Example:
    linter = Linter()
    violations = linter.lint(crate, source_map)
    for v in violations:
        print(v.format_full(source_map))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from hirlint.hir.context import LintContext
from hirlint.hir.nodes import BaseHirVisitor, Crate, If, ImplItem, MacroCall, Match
from hirlint.hir.printer import PrintConfig, print_crate
from hirlint.hir.source_map import SourceMap
from hirlint.lints.format_macros import check_format_macro, is_debug_impl
from hirlint.lints.manual_map import check_if_let, check_match
from hirlint.lints.rules import LintConfiguration, LintLevel, LintViolation
from hirlint.utils.diagnostics import Applicability, Edit
from hirlint.utils.errors import HostContractError

logger = logging.getLogger(__name__)


class Linter(BaseHirVisitor):
    """
    Runs every rule over one crate.

    A ``Linter`` keeps per-traversal state (the ``impl Debug`` scope stack), so
    use one instance per traversal.

    Example:
        linter = Linter(config)
        violations = linter.lint(crate, source_map, crate_name="app")
    """

    def __init__(self, config: Optional[LintConfiguration] = None) -> None:
        self.config = config or LintConfiguration()
        self.violations: list[LintViolation] = []
        self._cx: Optional[LintContext] = None
        self._debug_impl_stack: list[bool] = []

    def lint(
        self, crate: Crate, source_map: SourceMap, crate_name: Optional[str] = None
    ) -> list[LintViolation]:
        """
        Run all rules on a crate whose spans point into ``source_map``.

        Args:
            crate: The typed crate
            source_map: Source text the crate was printed to
            crate_name: Name the host compiles the crate under

        Returns:
            Enabled violations in traversal order
        """
        self.violations = []
        self._debug_impl_stack = []
        self._cx = LintContext(crate, source_map, self.config, crate_name)
        try:
            self.visit(crate)
        finally:
            self._cx = None
        return self.violations

    @property
    def _in_debug_impl(self) -> bool:
        return bool(self._debug_impl_stack) and self._debug_impl_stack[-1]

    def _emit(self, violation: Optional[LintViolation]) -> None:
        """Record a violation if its rule is enabled at the reporting node."""
        if violation is None:
            return
        node = self._cx.node(violation.hir_id) if violation.hir_id is not None else None
        if node is not None:
            level = self._cx.lint_level(violation.rule, node)
        else:
            level = self.config.get_level(violation.rule)
        if level is LintLevel.ALLOW:
            return
        violation.level = level
        self.violations.append(violation)

    # -------------------------------------------------------------------------
    # Visitors
    # -------------------------------------------------------------------------

    def visit_impl_item(self, node: ImplItem) -> None:
        self._debug_impl_stack.append(is_debug_impl(node))
        try:
            self.walk(node)
        finally:
            self._debug_impl_stack.pop()

    def visit_match(self, node: Match) -> None:
        try:
            self._emit(check_match(self._cx, node))
        except HostContractError as e:
            logger.warning(f"manual-map skipped a match: {e}")
        self.walk(node)

    def visit_if(self, node: If) -> None:
        try:
            self._emit(check_if_let(self._cx, node))
        except HostContractError as e:
            logger.warning(f"manual-map skipped an if let: {e}")
        self.walk(node)

    def visit_macro_call(self, node: MacroCall) -> None:
        for violation in check_format_macro(self._cx, node, self._in_debug_impl):
            self._emit(violation)
        self.walk(node)


# =============================================================================
# Utility Functions
# =============================================================================


@dataclass
class LintReport:
    """Violations found in one printed crate, with the text they point into."""

    violations: list[LintViolation]
    source_map: SourceMap

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.level is LintLevel.DENY)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.level is LintLevel.WARN)

    def render(self, use_color: bool = True) -> str:
        """Render every violation as a Rust-style diagnostic."""
        return "\n".join(
            v.to_diagnostic(self.source_map).render(self.source_map.text, use_color)
            for v in self.violations
        )

    def apply_fixes(
        self, min_applicability: Applicability = Applicability.MACHINE_APPLICABLE
    ) -> str:
        """
        Apply every sufficiently safe suggestion to the source text.

        A suggestion whose edits overlap one already taken is skipped whole.
        """
        taken: list[Edit] = []
        for violation in self.violations:
            suggestion = violation.suggestion
            if suggestion is None or suggestion.applicability < min_applicability:
                continue
            edits = suggestion.sorted_edits()
            if any(e.span.overlaps(t.span) for e in edits for t in taken):
                logger.debug(f"skipping overlapping fix for {violation.rule.name} at {violation.span}")
                continue
            taken.extend(edits)

        text = self.source_map.text
        for edit in sorted(taken, key=lambda e: e.span.lo, reverse=True):
            text = text[:edit.span.lo] + edit.replacement + text[edit.span.hi:]
        return text


def lint_crate(
    crate: Crate,
    config: Optional[LintConfiguration] = None,
    filename: str = "<input>",
    crate_name: Optional[str] = None,
    print_config: Optional[PrintConfig] = None,
) -> LintReport:
    """
    Print a typed crate to source text and lint it.

    This is a convenience function for trees built without a host compiler:
    printing stamps the spans that rules need for fix text.
    """
    source_map = print_crate(crate, filename, print_config)
    linter = Linter(config)
    return LintReport(linter.lint(crate, source_map, crate_name), source_map)
