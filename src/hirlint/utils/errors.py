"""
Error types and source location tracking for hirlint.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed byte offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class HirLintError(Exception):
    """Base exception for all hirlint errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Add caret pointing to the error column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class HostContractError(HirLintError):
    """
    Raised when the host tree violates an invariant the rules rely on.

    Rules never see this error: the linter catches it and abstains for the
    offending node.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        node_kind: Optional[str] = None,
    ) -> None:
        self.node_kind = node_kind
        super().__init__(message, location)

    def _format_message(self) -> str:
        base = super()._format_message()
        if self.node_kind:
            return f"{base} (in {self.node_kind})"
        return base


class ConfigError(HirLintError):
    """Raised for invalid lint configuration or lint directives."""

    pass


class SuggestionError(HirLintError):
    """Raised when a suggestion's edits overlap or fall outside the source."""

    pass
