"""
hirlint Language Server Protocol (LSP) support.

Converts lint results into LSP structures so an editor integration can show
them:
- Diagnostics with severity taken from the effective lint level
- Quick-fix code actions built from machine-generated suggestions
"""

from hirlint.lsp.diagnostics import DiagnosticProvider, get_diagnostics_for_report, span_to_range

__all__ = [
    "DiagnosticProvider",
    "get_diagnostics_for_report",
    "span_to_range",
]
