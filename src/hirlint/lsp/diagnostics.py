"""
LSP conversion for hirlint results.

This module converts lint violations into LSP diagnostics, and their fix
suggestions into quick-fix code actions, for display in editors.
"""

from __future__ import annotations

from lsprotocol import types

from hirlint.hir.source_map import SourceMap
from hirlint.lints.linter import LintReport
from hirlint.lints.rules import LintCategory, LintLevel, LintViolation
from hirlint.utils.diagnostics import Applicability, Suggestion
from hirlint.utils.span import Span


SOURCE = "hirlint"


def span_to_range(source_map: SourceMap, span: Span) -> types.Range:
    """Convert a byte span to a 0-indexed LSP range."""
    source_span = source_map.to_source_span(span)
    return types.Range(
        start=types.Position(line=source_span.start_line - 1, character=source_span.start_col - 1),
        end=types.Position(line=source_span.end_line - 1, character=source_span.end_col - 1),
    )


class DiagnosticProvider:
    """
    Generates LSP diagnostics and code actions from a lint report.

    Args:
        report: Violations and the source text they point into
        uri: The document URI the report belongs to
    """

    def __init__(self, report: LintReport, uri: str) -> None:
        self.report = report
        self.uri = uri
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            One LSP diagnostic per reported violation
        """
        self._diagnostics = []
        for violation in self.report.violations:
            self._add_lint_violation(violation)
        return self._diagnostics

    def _add_lint_violation(self, violation: LintViolation) -> None:
        # Map lint level to LSP severity
        severity_map = {
            LintLevel.ALLOW: None,  # Skip allowed rules
            LintLevel.WARN: types.DiagnosticSeverity.Warning,
            LintLevel.DENY: types.DiagnosticSeverity.Error,
        }
        severity = severity_map.get(violation.level)
        if severity is None:
            return

        message = violation.message
        if violation.suggestion:
            message = f"{message}\n\nhint: {violation.suggestion.message}"

        diagnostic = types.Diagnostic(
            range=span_to_range(self.report.source_map, violation.span),
            message=message,
            severity=severity,
            source=SOURCE,
            code=violation.rule.code,
            tags=self._get_diagnostic_tags(violation),
        )
        self._diagnostics.append(diagnostic)

    def _get_diagnostic_tags(self, violation: LintViolation) -> list[types.DiagnosticTag]:
        """Literal arguments and empty format strings are dead text once fixed."""
        tags: list[types.DiagnosticTag] = []
        if violation.rule.category is LintCategory.STYLE and violation.rule.name.endswith(
            ("-literal", "-empty-string")
        ):
            tags.append(types.DiagnosticTag.Unnecessary)
        return tags

    def get_code_actions(self) -> list[types.CodeAction]:
        """
        Get a quick-fix code action for every violation with a suggestion.

        Machine-applicable fixes are marked preferred so editors can apply
        them with a single keystroke.
        """
        actions: list[types.CodeAction] = []
        for violation in self.report.violations:
            if violation.suggestion is None:
                continue
            actions.append(self._code_action(violation, violation.suggestion))
        return actions

    def _code_action(self, violation: LintViolation, suggestion: Suggestion) -> types.CodeAction:
        source_map = self.report.source_map
        edits = [
            types.TextEdit(range=span_to_range(source_map, edit.span), new_text=edit.replacement)
            for edit in suggestion.sorted_edits()
        ]
        return types.CodeAction(
            title=f"{suggestion.message} ({violation.rule.name})",
            kind=types.CodeActionKind.QuickFix,
            edit=types.WorkspaceEdit(changes={self.uri: edits}),
            is_preferred=suggestion.applicability is Applicability.MACHINE_APPLICABLE,
        )


def get_diagnostics_for_report(report: LintReport, uri: str) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        report: The lint report for the document
        uri: The document URI

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(report, uri)
    return provider.get_diagnostics()
