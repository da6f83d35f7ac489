"""
Rust-like Rich Diagnostics for hirlint.

This module provides the diagnostic records rules produce: a message, the
source spans it points at, and machine-generated fix suggestions rated by how
safely they can be applied.

Example output:
    warning[H0101]: manual implementation of `Option::map`
      --> lib.rs:2:5
       |
     2 |     match x {
       |     ^^^^^^^^^
       |
       = suggestion: try this
       |   x.map(|n| n + 1)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from hirlint.utils.errors import SuggestionError
from hirlint.utils.span import Span


# =============================================================================
# Applicability
# =============================================================================


class Applicability(IntEnum):
    """
    Confidence that a suggestion can be applied without review.

    Ordered weakest to strongest so that ``min()`` of several decisions gives
    the applicability of the combined suggestion.
    """

    UNSPECIFIED = 0
    HAS_PLACEHOLDERS = 1
    MAYBE_INCORRECT = 2
    MACHINE_APPLICABLE = 3

    def downgrade(self, other: "Applicability") -> "Applicability":
        """Combine with another decision, keeping the weaker of the two."""
        return min(self, other)


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",  # Red
            DiagnosticLevel.WARNING: "\033[93m",  # Yellow
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code in line/column form, used for display.

    Attributes:
        start_line: 1-indexed starting line number
        start_col: 1-indexed starting column number
        end_line: 1-indexed ending line number
        end_col: 1-indexed ending column number (exclusive)
        filename: Optional filename for display
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    def __str__(self) -> str:
        return f"{self.filename}:{self.start_line}:{self.start_col}"

    @property
    def is_multiline(self) -> bool:
        """Check if this span covers multiple lines."""
        return self.start_line != self.end_line

    @property
    def length(self) -> int:
        """Get the length of the span on a single line."""
        if self.is_multiline:
            return 1
        return max(1, self.end_col - self.start_col)


@dataclass(slots=True)
class DiagnosticLabel:
    """
    A label pointing to a specific span of source code.

    Attributes:
        span: The source span this label points to
        message: Optional message to display with the label
        is_primary: Whether this is the primary label (shown with ^^^)
    """

    span: SourceSpan
    message: str = ""
    is_primary: bool = True


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace the text covered by ``span`` with ``replacement``."""

    span: Span
    replacement: str


@dataclass(frozen=True, slots=True)
class Suggestion:
    """
    A fix made of one or more edits that must be applied together.

    Attributes:
        message: Short description shown to the user ("try this")
        edits: Non-overlapping edits, applied all-or-nothing
        applicability: How safely the edits can be applied automatically
    """

    message: str
    edits: tuple[Edit, ...]
    applicability: Applicability = Applicability.MACHINE_APPLICABLE

    @classmethod
    def single(
        cls,
        message: str,
        span: Span,
        replacement: str,
        applicability: Applicability = Applicability.MACHINE_APPLICABLE,
    ) -> "Suggestion":
        return cls(message, (Edit(span, replacement),), applicability)

    def sorted_edits(self) -> list[Edit]:
        """Edits ordered by position, validated to be disjoint."""
        edits = sorted(self.edits, key=lambda e: (e.span.lo, e.span.hi))
        for prev, cur in zip(edits, edits[1:]):
            if cur.span.lo < prev.span.hi:
                raise SuggestionError(
                    f"overlapping edits at {prev.span} and {cur.span} in suggestion '{self.message}'"
                )
        return edits

    def apply(self, source: str) -> str:
        """
        Apply every edit to ``source`` and return the rewritten text.

        Raises:
            SuggestionError: If edits overlap or point outside the source
        """
        edits = self.sorted_edits()
        out: list[str] = []
        pos = 0
        for edit in edits:
            if edit.span.is_dummy or edit.span.hi > len(source):
                raise SuggestionError(f"edit span {edit.span} is outside the source")
            out.append(source[pos:edit.span.lo])
            out.append(edit.replacement)
            pos = edit.span.hi
        out.append(source[pos:])
        return "".join(out)


@dataclass
class Diagnostic:
    """
    A rich diagnostic message with source context and suggestions.

    Attributes:
        code: Rule code (e.g., "H0101")
        level: Severity level (ERROR or WARNING)
        message: The main diagnostic message
        labels: List of source code labels
        notes: Additional notes to display
        suggestions: Code suggestions for fixes
    """

    code: str
    level: DiagnosticLevel
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        lines: list[str] = []
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""

        lines.append(
            f"{level_color}{bold}{self.level.value}[{self.code}]{reset}: {bold}{self.message}{reset}"
        )

        if self.labels:
            primary_label = next((l for l in self.labels if l.is_primary), self.labels[0])
            lines.append(f"  {blue}-->{reset} {primary_label.span}")

        if self.labels and source_lines:
            lines.append(f"   {blue}|{reset}")

            labels_by_line: dict[int, list[DiagnosticLabel]] = {}
            for label in self.labels:
                labels_by_line.setdefault(label.span.start_line, []).append(label)

            for line_num in sorted(labels_by_line.keys()):
                if 1 <= line_num <= len(source_lines):
                    lines.append(f"{blue}{line_num:3} |{reset} {source_lines[line_num - 1]}")

                    for label in labels_by_line[line_num]:
                        underline_char = "^" if label.is_primary else "-"
                        underline_color = level_color if label.is_primary else blue
                        padding = " " * (label.span.start_col - 1)
                        underline = underline_char * label.span.length

                        underline_line = (
                            f"   {blue}|{reset} {padding}{underline_color}{underline}{reset}"
                        )
                        if label.message:
                            underline_line += f" {underline_color}{label.message}{reset}"
                        lines.append(underline_line)

            lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for suggestion in self.suggestions:
            lines.append(f"   {blue}={reset} {green}suggestion:{reset} {suggestion.message}")
            for preview_line in _preview(suggestion, source_code):
                lines.append(f"   {blue}|{reset}   {preview_line}")

        return "\n".join(lines)


def _preview(suggestion: Suggestion, source_code: str) -> list[str]:
    """The source lines touched by a suggestion, after applying it."""
    if not suggestion.edits:
        return []
    try:
        patched = suggestion.apply(source_code)
    except SuggestionError:
        return [edit.replacement for edit in suggestion.edits]

    lo = min(edit.span.lo for edit in suggestion.edits)
    hi = max(edit.span.hi for edit in suggestion.edits)
    delta = sum(len(e.replacement) - (e.span.hi - e.span.lo) for e in suggestion.edits)

    start = source_code.rfind("\n", 0, lo) + 1
    end = source_code.find("\n", hi)
    end = len(source_code) if end == -1 else end
    return patched[start:end + delta].splitlines() or [""]
