"""
Tests for the linter driver and lint reports.
"""

import logging

from hirlint.hir.nodes import FormatArgsNode, FormatString
from hirlint.lints.linter import Linter
from hirlint.lints.rules import (
    PRINT_STDOUT,
    PRINT_WITH_NEWLINE,
    PRINTLN_EMPTY_STRING,
    LintConfiguration,
    LintLevel,
)
from hirlint.utils.diagnostics import Applicability


# =============================================================================
# Driver
# =============================================================================


class TestLinter:
    """Test traversal, level filtering and host contract handling."""

    def test_violations_in_traversal_order(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.print_("a\n"), b.println("")))
        assert [v.rule for v in report.violations] == [PRINT_WITH_NEWLINE, PRINTLN_EMPTY_STRING]
        assert report.warning_count == 2
        assert report.error_count == 0

    def test_levels_are_filled_in(self, b, lint_items) -> None:
        config = LintConfiguration()
        config.deny("println-empty-string")
        report = lint_items(b.fn("main", (), b.print_("a\n"), b.println("")), config=config)
        assert [v.level for v in report.violations] == [LintLevel.WARN, LintLevel.DENY]

    def test_allow_all(self, b, lint_items) -> None:
        config = LintConfiguration()
        config.allow_all()
        assert lint_items(b.fn("main", (), b.print_("a\n")), config=config).violations == []

    def test_untyped_scrutinee_is_skipped(self, b, lint_expr, caplog) -> None:
        """Test that a host contract violation abstains instead of failing the run."""
        stmt = b.let(b.bind("x"), b.call("make"))
        v = b.bind("v")
        expr = b.match(
            b.local("x"),
            b.arm(b.some_pat(v), b.some(b.local("v"))),
            b.arm(b.none_pat(), b.none()),
        )
        with caplog.at_level(logging.WARNING, logger="hirlint"):
            report = lint_expr(expr, (), stmt)
        assert report.violations == []
        assert "manual-map skipped a match" in caplog.text
        assert "expression has no resolved type (in PathExpr)" in caplog.text

    def test_malformed_format_args_are_skipped(self, b, lint_items, caplog) -> None:
        call = b.print_("x\n")
        call.format_args = FormatArgsNode(FormatString(("a", "b")))
        with caplog.at_level(logging.WARNING, logger="hirlint"):
            report = lint_items(b.fn("main", (), call, b.print_("y\n")))
        assert "format checks skipped `print!`" in caplog.text
        assert [v.rule for v in report.violations] == [PRINT_WITH_NEWLINE]

    def test_malformed_format_args_keep_restriction_violation(self, b, lint_items, caplog) -> None:
        """Test that `print-stdout` is still reported when the format arguments are unusable."""
        config = LintConfiguration()
        config.warn("print-stdout")
        call = b.print_("x\n")
        call.format_args = FormatArgsNode(FormatString(("a", "b")))
        with caplog.at_level(logging.WARNING, logger="hirlint"):
            report = lint_items(b.fn("main", (), call), config=config)
        assert "format checks skipped `print!`" in caplog.text
        assert [v.rule for v in report.violations] == [PRINT_STDOUT]

    def test_linter_is_reusable(self, b, make_context) -> None:
        item = b.fn("main", (), b.print_("a\n"))
        cx = make_context(item)
        linter = Linter()
        first = linter.lint(cx.crate, cx.source_map)
        second = linter.lint(cx.crate, cx.source_map)
        assert len(first) == len(second) == 1
        assert first is not second


# =============================================================================
# Reports
# =============================================================================


class TestLintReport:
    """Test rendering and fix application."""

    def test_render(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.print_("a\n")))
        text = report.render(use_color=False)
        assert text.startswith("warning[H0201]: using `print!()`")
        assert "  --> lib.rs:2:5" in text
        assert "= note: `#[warn(print_with_newline)]` is in effect" in text
        assert '|       println!("a");' in text

    def test_render_deny_as_error(self, b, lint_items) -> None:
        config = LintConfiguration()
        config.deny("print-with-newline")
        report = lint_items(b.fn("main", (), b.print_("a\n")), config=config)
        assert report.render(use_color=False).startswith("error[H0201]")

    def test_format_full(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.println("")))
        lines = report.violations[0].format_full(report.source_map).splitlines()
        assert lines[0] == "[H0202] lib.rs:2:5: empty string literal in `println!`"
        assert lines[1] == "  remove the empty string: 25..27 -> ''"

    def test_apply_fixes(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.print_("a\n"), b.println("")))
        assert report.apply_fixes() == 'fn main() {\n    println!("a");\n    println!();\n}\n'

    def test_apply_fixes_respects_applicability(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.print_("a\n")))
        violation = report.violations[0]
        assert violation.suggestion.applicability is Applicability.MACHINE_APPLICABLE
        assert report.apply_fixes(Applicability.MACHINE_APPLICABLE) != report.source_map.text

    def test_no_fixes(self, b, lint_items) -> None:
        report = lint_items(b.fn("main", (), b.println("fine")))
        assert report.apply_fixes() == report.source_map.text
