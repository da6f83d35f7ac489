"""
Source text lookup for spans.

``SourceMap`` answers the snippet queries rules make when building fix text.
Every query that can fail to return the text a user wrote downgrades the
applicability it is given rather than raising.
"""

from __future__ import annotations

import bisect
from typing import Optional

from hirlint.utils.diagnostics import Applicability, SourceSpan
from hirlint.utils.errors import SourceLocation
from hirlint.utils.span import Span, SyntaxContext


class SourceMap:
    """
    The text of one source file plus line bookkeeping.

    Example:
        sm = SourceMap("fn f() {}\\n", "lib.rs")
        sm.snippet(Span(0, 2))  # "fn"
    """

    def __init__(self, text: str, filename: str = "<input>") -> None:
        self.text = text
        self.filename = filename
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    # -------------------------------------------------------------------------
    # Snippets
    # -------------------------------------------------------------------------

    def snippet_opt(self, span: Span) -> Optional[str]:
        """Text covered by ``span``, or None if the span is not in this file."""
        if span.is_dummy or span.lo > span.hi or span.hi > len(self.text):
            return None
        return self.text[span.lo:span.hi]

    def snippet(self, span: Span, default: str = "..") -> str:
        text = self.snippet_opt(span)
        return default if text is None else text

    def snippet_with_applicability(
        self, span: Span, default: str, applicability: Applicability
    ) -> tuple[str, Applicability]:
        """
        Snippet for ``span``, weakening ``applicability`` when the text is
        unreliable.

        Text from a macro expansion caps it at ``MAYBE_INCORRECT``; a missing
        snippet falls back to ``default`` and caps it at ``HAS_PLACEHOLDERS``.
        """
        if applicability is not Applicability.UNSPECIFIED and span.from_expansion:
            applicability = applicability.downgrade(Applicability.MAYBE_INCORRECT)
        text = self.snippet_opt(span)
        if text is None:
            if applicability is not Applicability.UNSPECIFIED:
                applicability = applicability.downgrade(Applicability.HAS_PLACEHOLDERS)
            return default, applicability
        return text, applicability

    def snippet_with_context(
        self,
        span: Span,
        outer: SyntaxContext,
        default: str,
        applicability: Applicability,
    ) -> tuple[str, Applicability]:
        """
        Snippet for ``span`` as seen from the hygiene context ``outer``.

        A span produced by a macro expansion nested inside ``outer`` is walked
        out to the invocation written in ``outer``. If that is impossible the
        original span is used and the fix is marked ``MAYBE_INCORRECT``.
        """
        walked = walk_span_to_context(span, outer)
        if walked is None:
            if applicability is not Applicability.UNSPECIFIED:
                applicability = applicability.downgrade(Applicability.MAYBE_INCORRECT)
            walked = span
        return self.snippet_with_applicability(walked, default, applicability)

    # -------------------------------------------------------------------------
    # Span arithmetic
    # -------------------------------------------------------------------------

    def span_until_char(self, span: Span, ch: str) -> Span:
        """Shrink ``span`` to end before the first ``ch`` (trailing whitespace trimmed)."""
        text = self.snippet_opt(span)
        if text is None:
            return span
        head = text.split(ch, 1)[0].rstrip()
        if not head:
            return span
        return span.with_hi(span.lo + len(head))

    def expand_past_previous_comma(self, span: Span) -> Span:
        """Extend ``span`` backwards to cover the preceding ``,`` and whatever follows it."""
        if span.is_dummy:
            return span
        comma = self.text.rfind(",", 0, span.lo)
        if comma == -1:
            return span
        return span.with_lo(comma)

    # -------------------------------------------------------------------------
    # Line/column lookup
    # -------------------------------------------------------------------------

    def line_col(self, offset: int) -> tuple[int, int]:
        """1-indexed line and column of a byte offset."""
        offset = max(0, min(offset, len(self.text)))
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return line + 1, offset - self._line_starts[line] + 1

    def line_text(self, line: int) -> str:
        start = self._line_starts[line - 1]
        end = self.text.find("\n", start)
        return self.text[start:] if end == -1 else self.text[start:end]

    def to_source_span(self, span: Span) -> SourceSpan:
        """Convert to the line/column form used for rendering."""
        span = span.source_callsite()
        if span.is_dummy:
            return SourceSpan(1, 1, 1, 1, self.filename)
        start_line, start_col = self.line_col(span.lo)
        end_line, end_col = self.line_col(span.hi)
        return SourceSpan(start_line, start_col, end_line, end_col, self.filename)

    def to_location(self, span: Span) -> SourceLocation:
        span = span.source_callsite()
        lo = max(span.lo, 0)
        line, column = self.line_col(lo)
        return SourceLocation(line, column, lo, self.filename)


def walk_span_to_context(span: Span, outer: SyntaxContext) -> Optional[Span]:
    """
    Walk ``span`` out through macro call sites until its context is ``outer``.

    Returns None when ``outer`` is never reached.
    """
    while span.ctxt is not outer:
        if span.ctxt.is_root:
            return None
        call_site = span.ctxt.call_site_span()
        if call_site is None:
            return None
        span = call_site
    return span
