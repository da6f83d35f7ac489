"""
hirlint - rule-based linting of a typed compiler tree.

hirlint inspects a fully resolved and typed syntax tree handed over by a host
compiler and reports idiom violations with machine-applicable rewrites:
manual ``Option::map`` implementations and misuse of the print/write format
macros.
"""

from hirlint.hir.builder import HirBuilder
from hirlint.hir.context import LintContext
from hirlint.hir.source_map import SourceMap
from hirlint.lints.linter import Linter, LintReport, lint_crate
from hirlint.lints.rules import ALL_RULES, LintConfiguration, LintLevel, LintViolation

__version__ = "0.1.0"
__all__ = [
    "lint_crate",
    "Linter",
    "LintReport",
    "LintContext",
    "LintConfiguration",
    "LintLevel",
    "LintViolation",
    "ALL_RULES",
    "HirBuilder",
    "SourceMap",
]
