"""
hirlint Utilities Package.

Common utilities for spans, error handling, source locations, and diagnostics.
"""

from hirlint.utils.diagnostics import (
    # Fix confidence
    Applicability,
    Diagnostic,
    DiagnosticLabel,
    # Core diagnostic types
    DiagnosticLevel,
    Edit,
    SourceSpan,
    Suggestion,
)
from hirlint.utils.errors import (
    ConfigError,
    HirLintError,
    HostContractError,
    SourceLocation,
    SuggestionError,
)
from hirlint.utils.span import DUMMY_SPAN, ROOT_CONTEXT, Span, SyntaxContext

__all__ = [
    # Spans
    "Span",
    "SyntaxContext",
    "ROOT_CONTEXT",
    "DUMMY_SPAN",
    # Errors
    "HirLintError",
    "HostContractError",
    "ConfigError",
    "SuggestionError",
    "SourceLocation",
    # Core diagnostic types
    "Applicability",
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Edit",
    "Suggestion",
    "Diagnostic",
]
