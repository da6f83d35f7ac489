"""
Tests for closure capture analysis.
"""

import pytest

from hirlint.hir.nodes import Mutability, Ty
from hirlint.lints.captures import (
    CaptureKind,
    captures_conflict,
    compute_captures,
    scrutinee_root_local,
)


@pytest.fixture
def locals_(b):
    """Bind the outer locals the tests refer to."""
    b.bind("s", Ty.string())
    b.bind("n", Ty.int())
    b.bind("p", Ty.adt("Person"))
    b.bind("c", Ty.char())
    return b


class TestComputeCaptures:
    """Test how a closure body would capture outer locals."""

    def test_literal_captures_nothing(self, b, empty_context) -> None:
        assert compute_captures(empty_context, b.lit_int(1)) == {}

    def test_move_of_non_copy_local(self, locals_, empty_context) -> None:
        """Test that passing a `String` by value captures it by value."""
        b = locals_
        expr = b.call("consume", b.local("s"))
        assert compute_captures(empty_context, expr) == {b.binding_id("s"): CaptureKind.BY_VALUE}

    def test_move_of_copy_local_is_a_borrow(self, locals_, empty_context) -> None:
        b = locals_
        expr = b.call("consume", b.local("n"))
        assert compute_captures(empty_context, expr) == {b.binding_id("n"): CaptureKind.BY_REF}

    def test_auto_ref_receiver(self, locals_, empty_context) -> None:
        """Test that a `&self` method call borrows its receiver."""
        b = locals_
        expr = b.method(b.local("s", adjustments=b.borrow_adjustment()), "len", ty=Ty.int())
        assert compute_captures(empty_context, expr) == {b.binding_id("s"): CaptureKind.BY_REF}

    def test_auto_ref_mut_receiver(self, locals_, empty_context) -> None:
        """Test that a `&mut self` method call borrows its receiver mutably."""
        b = locals_
        receiver = b.local("s", adjustments=b.borrow_adjustment(mutable=True))
        expr = b.method(receiver, "push", b.local("c"), ty=Ty.unit())
        assert compute_captures(empty_context, expr) == {
            b.binding_id("s"): CaptureKind.BY_MUT_REF,
            b.binding_id("c"): CaptureKind.BY_REF,
        }

    def test_uses_merge_to_strongest(self, locals_, empty_context) -> None:
        """Test that `(&s, consume(s))` captures `s` by value."""
        b = locals_
        expr = b.tuple_(b.addr_of(b.local("s")), b.call("consume", b.local("s")))
        assert compute_captures(empty_context, expr) == {b.binding_id("s"): CaptureKind.BY_VALUE}

    def test_assignment_borrows_mutably(self, locals_, empty_context) -> None:
        b = locals_
        expr = b.assign_op("+=", b.local("n"), b.lit_int(1))
        assert compute_captures(empty_context, expr) == {b.binding_id("n"): CaptureKind.BY_MUT_REF}

    def test_compound_assignment_value_is_used(self, locals_, empty_context) -> None:
        """Test that `n += consume(s)` borrows `n` mutably and moves `s`."""
        b = locals_
        expr = b.assign_op("+=", b.local("n"), b.call("consume", b.local("s")))
        assert compute_captures(empty_context, expr) == {
            b.binding_id("n"): CaptureKind.BY_MUT_REF,
            b.binding_id("s"): CaptureKind.BY_VALUE,
        }

    def test_comparison_borrows(self, locals_, empty_context) -> None:
        """Test that `s == other` only borrows both sides."""
        b = locals_
        b.bind("other", Ty.string())
        expr = b.binary("==", b.local("s"), b.local("other"))
        assert set(compute_captures(empty_context, expr).values()) == {CaptureKind.BY_REF}

    def test_copy_field_of_outer_local(self, locals_, empty_context) -> None:
        """Test that reading a Copy field borrows the whole local."""
        b = locals_
        expr = b.field(b.local("p"), "age", Ty.int())
        assert compute_captures(empty_context, expr) == {b.binding_id("p"): CaptureKind.BY_REF}

    def test_partial_move_cannot_be_captured(self, locals_, empty_context) -> None:
        """Test that moving a non-Copy field out of an outer local gives up."""
        b = locals_
        expr = b.call("consume", b.field(b.local("p"), "name", Ty.string()))
        assert compute_captures(empty_context, expr) is None

    def test_block_locals_are_not_captured(self, b, empty_context) -> None:
        """Test that a local declared inside the expression is not a capture."""
        expr = b.block(
            b.let(b.bind("t", Ty.string()), b.call("make", ty=Ty.string())),
            expr=b.call("consume", b.local("t")),
        )
        assert compute_captures(empty_context, expr) == {}

    def test_move_closure_captures_by_value(self, locals_, empty_context) -> None:
        b = locals_
        body = b.method(b.local("s", adjustments=b.borrow_adjustment()), "len", ty=Ty.int())
        expr = b.closure((), body, is_move=True)
        assert compute_captures(empty_context, expr) == {b.binding_id("s"): CaptureKind.BY_VALUE}

    def test_format_macro_borrows_its_values(self, locals_, empty_context) -> None:
        b = locals_
        expr = b.format_macro("format", "{}", b.local("s"), ty=Ty.string())
        assert compute_captures(empty_context, expr) == {b.binding_id("s"): CaptureKind.BY_REF}


class TestCannotMove:
    """Test expressions that cannot become a closure body."""

    def test_return(self, b, empty_context) -> None:
        assert compute_captures(empty_context, b.return_(b.lit_int(1))) is None

    def test_return_inside_closure(self, b, empty_context) -> None:
        """Test that `return` inside a nested closure stays in that closure."""
        expr = b.closure((), b.return_(b.lit_int(1)))
        assert compute_captures(empty_context, expr) == {}

    def test_break_out_of_enclosing_loop(self, b, empty_context) -> None:
        assert compute_captures(empty_context, b.break_()) is None

    def test_break_inside_own_loop(self, b, empty_context) -> None:
        assert compute_captures(empty_context, b.loop(b.break_())) == {}

    def test_labeled_break_to_outer_loop(self, b, empty_context) -> None:
        """Test that a labeled jump past the expression's own loops gives up."""
        expr = b.loop(b.continue_(label="outer"), label="inner")
        assert compute_captures(empty_context, expr) is None

    def test_break_from_closure_loop_does_not_escape(self, b, empty_context) -> None:
        """Test that a loop outside a closure does not cover jumps inside it."""
        expr = b.loop(b.closure((), b.break_()))
        assert compute_captures(empty_context, expr) is None


class TestCapturesConflict:
    """Test the scrutinee conflict decision."""

    def test_root_local_through_fields_and_borrows(self, locals_) -> None:
        b = locals_
        scrutinee = b.addr_of(b.field(b.local("p"), "nickname", Ty.option(Ty.string())))
        assert scrutinee_root_local(scrutinee) == b.binding_id("p")

    def test_non_local_scrutinee_has_no_root(self, b) -> None:
        assert scrutinee_root_local(b.call("make", ty=Ty.option(Ty.int()))) is None

    @pytest.mark.parametrize(
        "kind,binding_ref,expected",
        [
            (CaptureKind.BY_VALUE, Mutability.NOT, True),
            (CaptureKind.BY_MUT_REF, Mutability.NOT, True),
            (CaptureKind.BY_REF, Mutability.NOT, False),
            (CaptureKind.BY_REF, Mutability.MUT, True),
        ],
    )
    def test_borrowed_scrutinee(self, locals_, kind, binding_ref, expected) -> None:
        b = locals_
        captures = {b.binding_id("s"): kind}
        assert captures_conflict(captures, b.addr_of(b.local("s")), binding_ref) is expected

    def test_uncaptured_root(self, locals_) -> None:
        b = locals_
        captures = {b.binding_id("n"): CaptureKind.BY_VALUE}
        assert captures_conflict(captures, b.local("s"), Mutability.MUT) is False

    def test_moved_scrutinee(self, locals_) -> None:
        """Test that a moved scrutinee conflicts with any capture unless Copy."""
        b = locals_
        captures = {b.binding_id("s"): CaptureKind.BY_REF}
        assert captures_conflict(captures, b.local("s"), None, scrutinee_is_copy=False) is True
        assert captures_conflict(captures, b.local("s"), None, scrutinee_is_copy=True) is False

    def test_capture_kind_mutability(self) -> None:
        assert CaptureKind.BY_REF.mutability is Mutability.NOT
        assert CaptureKind.BY_MUT_REF.mutability is Mutability.MUT
        assert CaptureKind.BY_VALUE.mutability is None
        assert max(CaptureKind.BY_REF, CaptureKind.BY_VALUE) is CaptureKind.BY_VALUE
