"""
Pytest configuration and shared fixtures for hirlint tests.
"""

from typing import Optional

import pytest

from hirlint.hir.builder import HirBuilder
from hirlint.hir.context import LintContext
from hirlint.hir.nodes import Crate, Expr, Item, Param
from hirlint.hir.printer import print_crate
from hirlint.lints.linter import LintReport, lint_crate
from hirlint.lints.rules import LintConfiguration


@pytest.fixture
def b() -> HirBuilder:
    """A fresh tree builder with an empty binding scope."""
    return HirBuilder()


@pytest.fixture
def lint_items():
    """Fixture to print and lint a crate made of the given items."""

    def _lint(
        *items: Item,
        config: Optional[LintConfiguration] = None,
        crate_name: Optional[str] = None,
    ) -> LintReport:
        return lint_crate(Crate(tuple(items)), config, filename="lib.rs", crate_name=crate_name)

    return _lint


@pytest.fixture
def lint_expr(b, lint_items):
    """
    Fixture to lint one expression as the tail of ``fn f(params)``.

    Statements are placed before the expression in the function body.
    """

    def _lint(
        expr: Expr,
        params: tuple[Param, ...] = (),
        *stmts,
        config: Optional[LintConfiguration] = None,
        crate_name: Optional[str] = None,
    ) -> LintReport:
        return lint_items(b.fn("f", params, *stmts, expr=expr), config=config, crate_name=crate_name)

    return _lint


@pytest.fixture
def make_context():
    """Fixture to print a crate and return the host context for it."""

    def _context(*items: Item, config: Optional[LintConfiguration] = None) -> LintContext:
        crate = Crate(tuple(items))
        source_map = print_crate(crate, "lib.rs")
        return LintContext(crate, source_map, config)

    return _context


@pytest.fixture
def empty_context() -> LintContext:
    """A context over an empty crate, for queries that never touch source text."""
    crate = Crate(())
    return LintContext(crate, print_crate(crate))
