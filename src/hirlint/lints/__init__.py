"""
hirlint Rules Package.

- rules: Rule registry, levels, configuration and violations
- option_shape: Option pattern/value shape classification
- captures: Closure capture analysis
- manual_map: The manual-map rule
- unescape: Conservative unescaping for raw format strings
- format_macros: The print/write format-macro rules
- linter: The driver that runs every rule over a crate

Only the registry is re-exported here; import the driver from
``hirlint.lints.linter`` (or ``hirlint``).
"""

from hirlint.lints.rules import (
    ALL_RULES,
    RULES_BY_NAME,
    LintAttribute,
    LintCategory,
    LintConfiguration,
    LintLevel,
    LintRule,
    LintViolation,
    get_rule,
    get_rule_by_code,
    get_rule_by_name,
    get_rules_by_category,
)

__all__ = [
    # Registry
    "ALL_RULES",
    "RULES_BY_NAME",
    "get_rule",
    "get_rule_by_code",
    "get_rule_by_name",
    "get_rules_by_category",
    # Configuration
    "LintLevel",
    "LintCategory",
    "LintRule",
    "LintConfiguration",
    "LintAttribute",
    # Output
    "LintViolation",
]
