"""
Tests for format template parsing and format-call decomposition.
"""

import pytest

from hirlint.hir.macros import decompose_format_call, parse_format_template
from hirlint.hir.nodes import FormatArgsNode, FormatString, FormatTrait, MacroCall, Ty
from hirlint.utils.errors import HostContractError
from hirlint.utils.span import SyntaxContext


# =============================================================================
# Template parsing
# =============================================================================


class TestParseFormatTemplate:
    """Test splitting templates into pieces and placeholders."""

    def test_positional(self) -> None:
        parsed = parse_format_template("a {} b {}")
        assert parsed.pieces == ["a ", " b ", ""]
        assert [ph.argument for ph in parsed.placeholders] == [0, 1]
        assert parsed.placeholders[0].explicit is None

    def test_brace_escapes(self) -> None:
        parsed = parse_format_template("{{x}}")
        assert parsed.pieces == ["{x}"]
        assert parsed.placeholders == []

    def test_explicit_arguments(self) -> None:
        parsed = parse_format_template("{0} {name}")
        assert [ph.argument for ph in parsed.placeholders] == [0, "name"]
        assert [ph.explicit for ph in parsed.placeholders] == ["0", "name"]

    def test_spec(self) -> None:
        placeholder = parse_format_template("{:>5}").placeholders[0]
        assert placeholder.spec == ">5"
        assert placeholder.width is None

    def test_count_arguments(self) -> None:
        placeholder = parse_format_template("{:1$.2$}").placeholders[0]
        assert placeholder.argument == 0
        assert placeholder.width == 1
        assert placeholder.precision == 2

    def test_named_width(self) -> None:
        placeholder = parse_format_template("{:>width$}").placeholders[0]
        assert placeholder.width == "width"

    def test_star_precision_takes_next_positional(self) -> None:
        """Test that `.*` consumes a positional argument before the value."""
        placeholder = parse_format_template("{:.*}").placeholders[0]
        assert placeholder.precision == 0
        assert placeholder.argument == 1

    @pytest.mark.parametrize("template", ["{", "a {b", "}", "x } y"])
    def test_unmatched_braces(self, template) -> None:
        with pytest.raises(HostContractError):
            parse_format_template(template)


# =============================================================================
# Decomposition
# =============================================================================


class TestDecomposeFormatCall:
    """Test the flattened view of a format macro invocation."""

    def test_literal_parts_include_newline(self, b) -> None:
        call = b.println("{} and {}", b.lit_int(1), b.lit_int(2))
        view = decompose_format_call(call, call.expn)
        assert view.literal_parts == ("", " and ", "\n")
        assert len(view.arguments) == 2
        assert view.is_raw is False

    def test_print_has_no_implied_newline(self, b) -> None:
        call = b.print_("x")
        assert decompose_format_call(call, call.expn).literal_parts == ("x",)

    def test_no_template(self, b) -> None:
        call = b.println()
        view = decompose_format_call(call, call.expn)
        assert view.literal_parts == ("\n",)
        assert view.arguments == ()

    def test_reference_count(self, b) -> None:
        value = b.lit_int(1)
        call = b.println("{} {0}", value)
        view = decompose_format_call(call, call.expn)
        assert [arg.reference_count for arg in view.arguments] == [2, 2]
        assert all(arg.value is value for arg in view.arguments)

    def test_width_counts_as_reference(self, b) -> None:
        call = b.println("{:1$} {}", b.lit_int(1), b.lit_int(5))
        view = decompose_format_call(call, call.expn)
        assert view.arguments[0].has_custom_spec
        assert view.arguments[1].reference_count == 2

    def test_debug_trait(self, b) -> None:
        call = b.println("{:?} {:x}", b.lit_int(1), b.lit_int(2))
        view = decompose_format_call(call, call.expn)
        assert view.arguments[0].uses_debug_trait
        assert view.arguments[1].trait is FormatTrait.LOWER_HEX

    def test_raw(self, b) -> None:
        call = b.println("x", raw_hashes=0)
        assert decompose_format_call(call, call.expn).is_raw

    def test_other_expansion(self, b) -> None:
        call = b.println("x")
        assert decompose_format_call(call, SyntaxContext("other")) is None

    def test_missing_value(self, b) -> None:
        call = b.println("{} {}", b.lit_int(1))
        with pytest.raises(HostContractError, match="refers to argument 1"):
            decompose_format_call(call, call.expn)

    def test_piece_count_mismatch(self) -> None:
        call = MacroCall("println", "println_macro", ty=Ty.unit())
        call.format_args = FormatArgsNode(FormatString(("a", "b")))
        with pytest.raises(HostContractError) as exc_info:
            decompose_format_call(call, call.expn)
        assert exc_info.value.node_kind == "FormatString"
