"""
hirlint Host Tree Package.

The typed tree the rules consume, as a host compiler would hand it over:
- nodes: Expressions, patterns, statements and items with types and resolutions
- macros: Format string parsing and format-call decomposition
- printer: Renders a tree to source text and stamps node spans
- source_map: Snippet and span queries over the printed source
- builder: Convenience constructors for typed trees
- context: LintContext, the interface rules query
"""

from hirlint.hir.builder import HirBuilder
from hirlint.hir.context import LintContext
from hirlint.hir.macros import FormatArg, FormatCall, MacroCallInfo, parse_format_template
from hirlint.hir.printer import HirPrinter, print_crate
from hirlint.hir.source_map import SourceMap

__all__ = [
    "HirBuilder",
    "HirPrinter",
    "print_crate",
    "SourceMap",
    "LintContext",
    "FormatArg",
    "FormatCall",
    "MacroCallInfo",
    "parse_format_template",
]
