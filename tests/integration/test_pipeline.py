"""
Integration tests for the complete hirlint pipeline.

These tests build whole crates, lint them with every rule, and check that the
report, its rendering, the LSP conversion and the applied fixes agree.
"""

from hirlint import lint_crate
from hirlint.hir.nodes import Crate, Ty
from hirlint.lints.rules import (
    MANUAL_MAP,
    PRINT_LITERAL,
    PRINT_WITH_NEWLINE,
    LintAttribute,
    LintConfiguration,
)
from hirlint.lsp.diagnostics import DiagnosticProvider


def _opt_int() -> Ty:
    return Ty.option(Ty.int())


def _increment(b):
    """`fn inc(x: Option<i32>) -> Option<i32> { match x { Some(n) => Some(n + 1), None => None } }`"""
    x = b.param("x", _opt_int())
    n = b.bind("n", Ty.int())
    body = b.match(
        b.local("x"),
        b.arm(b.some_pat(n), b.some(b.binary("+", b.local("n"), b.lit_int(1)))),
        b.arm(b.none_pat(), b.none(Ty.int())),
    )
    return b.fn("inc", (x,), expr=body)


def _main(b, **kw):
    """`fn main() { print!("total\\n"); println!("{}", "done"); }`"""
    return b.fn("main", (), b.print_("total\n"), b.println("{}", b.lit_str("done")), **kw)


class TestPipeline:
    """Test linting and fixing crates with several rules at once."""

    def test_all_rules_together(self, b) -> None:
        report = lint_crate(Crate((_increment(b), _main(b))), filename="lib.rs")

        assert [v.rule for v in report.violations] == [MANUAL_MAP, PRINT_WITH_NEWLINE, PRINT_LITERAL]
        assert report.warning_count == 3
        assert report.apply_fixes() == (
            "fn inc(x: Option<i32>) -> Option<i32> {\n"
            "    x.map(|n| n + 1)\n"
            "}\n"
            "\n"
            "fn main() {\n"
            '    println!("total");\n'
            '    println!("done");\n'
            "}\n"
        )

    def test_render_every_violation(self, b) -> None:
        report = lint_crate(Crate((_increment(b), _main(b))), filename="lib.rs")
        text = report.render(use_color=False)

        assert text.count("warning[") == 3
        assert "warning[H0101]: manual implementation of `Option::map`" in text
        assert "  --> lib.rs:2:5" in text
        assert "|       x.map(|n| n + 1)" in text

    def test_item_attribute_scopes_levels(self, b) -> None:
        """Test that an item attribute only affects that item."""
        attrs = (LintAttribute.parse("#[deny(print_with_newline, print_literal)]"),)
        report = lint_crate(Crate((_increment(b), _main(b, attrs=attrs))))

        assert report.error_count == 2
        assert report.warning_count == 1
        assert report.source_map.text.startswith("fn inc(")
        assert "#[deny(print_with_newline, print_literal)]\nfn main()" in report.source_map.text

    def test_configuration_and_lsp_agree(self, b) -> None:
        config = LintConfiguration.from_mapping({"allow": ["manual-map"], "deny": ["print-literal"]})
        report = lint_crate(Crate((_increment(b), _main(b))), config, filename="lib.rs")
        provider = DiagnosticProvider(report, "file:///lib.rs")

        diagnostics = provider.get_diagnostics()
        assert [d.code for d in diagnostics] == ["H0201", "H0203"]
        assert len(provider.get_code_actions()) == 2

    def test_fixed_code_is_clean(self, b) -> None:
        """Test that the rewritten forms do not trigger the rules again."""
        x = b.param("x", _opt_int())
        n = b.bind("n", Ty.int())
        mapped = b.method(
            b.local("x"),
            "map",
            b.closure((n,), b.binary("+", b.local("n"), b.lit_int(1))),
            ty=_opt_int(),
        )
        main = b.fn("main", (), b.println("total"), b.println("done"))
        report = lint_crate(Crate((b.fn("inc", (x,), expr=mapped), main)))

        assert report.violations == []
        assert report.apply_fixes() == report.source_map.text
