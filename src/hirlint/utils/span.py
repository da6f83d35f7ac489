"""
Source spans and hygiene contexts.

Every node of the host tree carries a ``Span`` (a byte range into the printed
source) tagged with the ``SyntaxContext`` of the macro expansion that produced
it. Two spans are only substitutable for each other when their contexts are
the same object.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Optional


class SyntaxContext:
    """
    Opaque hygiene token identifying one macro-expansion universe.

    The root context belongs to user-written text. Every other context
    remembers the node whose span is its call site, so a span produced by an
    expansion can be walked back to the text the user wrote.
    """

    __slots__ = ("id", "macro_name", "call_site")

    _ids = itertools.count(1)

    def __init__(self, macro_name: Optional[str] = None, call_site: Any = None) -> None:
        self.id = 0 if macro_name is None else next(SyntaxContext._ids)
        self.macro_name = macro_name
        self.call_site = call_site

    @property
    def is_root(self) -> bool:
        return self.macro_name is None

    def call_site_span(self) -> Optional["Span"]:
        """Span of the macro invocation that created this context."""
        if self.call_site is None:
            return None
        return self.call_site.span

    def __repr__(self) -> str:
        if self.is_root:
            return "SyntaxContext(root)"
        return f"SyntaxContext({self.macro_name}!#{self.id})"


ROOT_CONTEXT = SyntaxContext()


@dataclass(frozen=True, slots=True)
class Span:
    """
    A half-open byte range ``[lo, hi)`` in the source, tagged with a context.

    Attributes:
        lo: Offset of the first character
        hi: Offset one past the last character
        ctxt: Hygiene context of the text
    """

    lo: int
    hi: int
    ctxt: SyntaxContext = ROOT_CONTEXT

    @property
    def from_expansion(self) -> bool:
        return not self.ctxt.is_root

    @property
    def is_dummy(self) -> bool:
        return self.lo < 0

    def with_lo(self, lo: int) -> "Span":
        return Span(lo, self.hi, self.ctxt)

    def with_hi(self, hi: int) -> "Span":
        return Span(self.lo, hi, self.ctxt)

    def overlaps(self, other: "Span") -> bool:
        return self.lo < other.hi and other.lo < self.hi

    def source_callsite(self) -> "Span":
        """Walk expansions outward until reaching user-written text."""
        span = self
        while span.from_expansion:
            call_site = span.ctxt.call_site_span()
            if call_site is None:
                break
            span = call_site
        return span

    def __str__(self) -> str:
        return f"{self.lo}..{self.hi}"


DUMMY_SPAN = Span(-1, -1)
