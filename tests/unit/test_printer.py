"""
Tests for the tree printer and span stamping.
"""

import pytest

from hirlint.hir.nodes import Crate, Ty
from hirlint.hir.printer import HirPrinter, PrintConfig, escape_char, escape_str, print_crate


def _text(expr) -> str:
    return HirPrinter().print_expr(expr).text


# =============================================================================
# Expressions
# =============================================================================


class TestExpressionPrinting:
    """Test printing of individual expressions."""

    def test_parenthesizes_looser_left_operand(self, b) -> None:
        expr = b.binary("*", b.binary("+", b.lit_int(1), b.lit_int(2)), b.lit_int(3))
        assert _text(expr) == "(1 + 2) * 3"

    def test_parenthesizes_same_precedence_right_operand(self, b) -> None:
        expr = b.binary("-", b.lit_int(1), b.binary("-", b.lit_int(2), b.lit_int(3)))
        assert _text(expr) == "1 - (2 - 3)"

    def test_no_parens_for_tighter_operand(self, b) -> None:
        expr = b.binary("+", b.lit_int(1), b.binary("*", b.lit_int(2), b.lit_int(3)))
        assert _text(expr) == "1 + 2 * 3"

    def test_deref_receiver(self, b) -> None:
        b.bind("r", Ty.ref(Ty.string()))
        expr = b.method(b.deref(b.local("r")), "len", ty=Ty.int())
        assert _text(expr) == "(*r).len()"

    def test_closure(self, b) -> None:
        n = b.bind("n", Ty.int())
        expr = b.closure((n,), b.binary("+", b.local("n"), b.lit_int(1)))
        assert _text(expr) == "|n| n + 1"

    def test_move_closure(self, b) -> None:
        assert _text(b.closure((), b.lit_int(0), is_move=True)) == "move || 0"

    def test_one_element_tuple(self, b) -> None:
        assert _text(b.tuple_(b.lit_int(1))) == "(1,)"

    def test_labeled_loop(self, b) -> None:
        expr = b.loop(b.break_(label="outer"), label="outer")
        assert _text(expr) == "'outer: loop {\n    break 'outer;\n}"

    def test_prefix_operators(self, b) -> None:
        assert _text(b.neg(b.binary("+", b.lit_int(1), b.lit_int(2)))) == "-(1 + 2)"
        assert _text(b.not_(b.lit_bool(True))) == "!true"

    def test_assignment(self, b) -> None:
        b.bind("n", Ty.int(), mutable=True)
        assert _text(b.assign(b.local("n"), b.lit_int(2))) == "n = 2"

    @pytest.mark.parametrize("op", ["+=", "+"])
    def test_compound_assignment(self, b, op) -> None:
        b.bind("n", Ty.int(), mutable=True)
        assert _text(b.assign_op(op, b.local("n"), b.lit_int(1))) == "n += 1"

    def test_if_let(self, b) -> None:
        b.bind("x", Ty.option(Ty.int()))
        expr = b.if_let(b.some_pat(b.bind("v", Ty.int())), b.local("x"), b.local("v"), b.lit_int(0))
        assert _text(expr) == "if let Some(v) = x { v } else { 0 }"

    @pytest.mark.parametrize(
        "lit,expected",
        [
            ("str", '"a\\"b"'),
            ("raw", 'r#"a"b"#'),
            ("char", "'\\''"),
            ("bool", "false"),
            ("float", "1.5"),
        ],
    )
    def test_literals(self, b, lit, expected) -> None:
        expr = {
            "str": lambda: b.lit_str('a"b'),
            "raw": lambda: b.lit_str('a"b', raw_hashes=1),
            "char": lambda: b.lit_char("'"),
            "bool": lambda: b.lit_bool(False),
            "float": lambda: b.lit_float(1.5),
        }[lit]()
        assert _text(expr) == expected


class TestEscaping:
    """Test literal escaping helpers."""

    def test_escape_str(self) -> None:
        assert escape_str('say "hi"\n') == 'say \\"hi\\"\\n'
        assert escape_str("tab\there\\") == "tab\\there\\\\"

    def test_escape_char(self) -> None:
        assert escape_char("'") == "\\'"
        assert escape_char('"') == '"'
        assert escape_char("\n") == "\\n"


# =============================================================================
# Format macros
# =============================================================================


class TestMacroPrinting:
    """Test printing of format macro invocations."""

    def test_braces_are_doubled(self, b) -> None:
        assert _text(b.println("{{x}} {}", b.lit_int(1))) == 'println!("{{x}} {}", 1)'

    def test_named_argument(self, b) -> None:
        expr = b.println("{x}", named={"x": b.lit_int(1)})
        assert _text(expr) == 'println!("{x}", x = 1)'

    def test_raw_format_string(self, b) -> None:
        assert _text(b.println("a\\b", raw_hashes=0)) == 'println!(r"a\\b")'

    def test_write_destination(self, b) -> None:
        b.bind("out", Ty.string())
        expr = b.write(b.local("out"), "{:?}", b.lit_int(1))
        assert _text(expr) == 'write!(out, "{:?}", 1)'

    def test_implicit_format_string(self, b) -> None:
        """Test that the generated format string of `println!()` takes the call's span."""
        call = b.println()
        printer = HirPrinter()
        source_map = printer.print_expr(call)
        assert source_map.text == "println!()"
        fmt = call.format_args.format_string
        assert fmt.span.ctxt is call.expn
        assert (fmt.span.lo, fmt.span.hi) == (0, len("println!()"))

    def test_writeln_without_template(self, b) -> None:
        b.bind("out", Ty.string())
        assert _text(b.writeln(b.local("out"))) == "writeln!(out)"


# =============================================================================
# Items and spans
# =============================================================================


class TestCratePrinting:
    """Test item layout and span stamping."""

    def test_items_are_separated(self, b) -> None:
        source_map = print_crate(Crate((b.fn("a"), b.fn("b"))))
        assert source_map.text == "fn a() {\n}\n\nfn b() {\n}\n"

    def test_let_statement(self, b) -> None:
        item = b.fn("f", (), b.let(b.bind("x", Ty.int()), b.lit_int(1)))
        assert print_crate(Crate((item,))).text == "fn f() {\n    let x = 1;\n}\n"

    def test_impl(self, b) -> None:
        item = b.impl("Point", b.fn("show"), trait="fmt::Display")
        assert print_crate(Crate((item,))).text == (
            "impl fmt::Display for Point {\n    fn show() {\n    }\n}\n"
        )

    def test_indent_size(self, b) -> None:
        item = b.fn("f", (), b.call("run"))
        config = PrintConfig(indent_size=2, trailing_newline=False)
        assert print_crate(Crate((item,)), config=config).text == "fn f() {\n  run();\n}"

    def test_spans_cover_node_text(self, b) -> None:
        inner = b.binary("+", b.lit_int(1), b.lit_int(2))
        expr = b.binary("*", inner, b.lit_int(3))
        source_map = HirPrinter().print_expr(expr)
        assert source_map.snippet(expr.span) == "(1 + 2) * 3"
        assert source_map.snippet(inner.span) == "1 + 2"
        assert source_map.snippet(inner.right.span) == "2"

    def test_placeholder_spans(self, b) -> None:
        call = b.println("x = {:>4}", b.lit_int(7))
        source_map = HirPrinter().print_expr(call)
        placeholder = call.format_args.format_string.placeholders[0]
        assert source_map.snippet(placeholder.span) == "{:>4}"
        assert source_map.snippet(call.format_args.format_string.span) == '"x = {:>4}"'
