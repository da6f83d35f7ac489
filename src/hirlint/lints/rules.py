"""
Lint rule definitions, levels and configuration.

Every rule hirlint knows about is declared here as a ``LintRule`` and
registered in ``ALL_RULES``. ``LintConfiguration`` decides the effective level
of each rule for a run; ``LintAttribute`` overrides it for one subtree, the
way ``#[allow(manual_map)]`` does on an item or statement.

Example:
    config = LintConfiguration()
    config.deny("manual-map")
    config.set_level_by_category(LintCategory.RESTRICTION, LintLevel.WARN)
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from hirlint.utils.diagnostics import Diagnostic, DiagnosticLabel, DiagnosticLevel, Suggestion
from hirlint.utils.errors import ConfigError
from hirlint.utils.span import Span

if TYPE_CHECKING:
    from hirlint.hir.source_map import SourceMap


# =============================================================================
# Lint Rule Configuration
# =============================================================================


class LintLevel(Enum):
    """
    Severity level for lint rules.

    ALLOW: Rule is disabled, no diagnostic produced
    WARN: Rule produces a warning
    DENY: Rule produces an error
    """

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"

    @classmethod
    def parse(cls, text: str) -> "LintLevel":
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise ConfigError(f"unknown lint level '{text}' (expected allow, warn or deny)") from None


class LintCategory(Enum):
    """
    Categories of lint rules for organization and filtering.
    """

    STYLE = "style"                # Idiomatic rewrites
    COMPLEXITY = "complexity"      # Code that does something simple in a complex way
    RESTRICTION = "restriction"    # Opt-in restrictions on language features


@dataclass(frozen=True)
class LintRule:
    """
    Definition of a single lint rule.

    Attributes:
        code: Unique rule identifier (e.g., "H0101")
        name: Kebab-case rule name (e.g., "manual-map")
        category: The category this rule belongs to
        message: Template message for the violation (use {} for placeholders)
        level: Default severity level
        suggestion: Template for the fix suggestion label
        description: One-paragraph explanation for ``hirlint explain``
        example: A (before, after) pair for ``hirlint explain``
    """

    code: str
    name: str
    category: LintCategory
    message: str
    level: LintLevel = LintLevel.WARN
    suggestion: Optional[str] = None
    description: str = ""
    example: Optional[tuple[str, str]] = None

    @property
    def attr_name(self) -> str:
        """Name as written in attributes: ``manual_map``."""
        return self.name.replace("-", "_")

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"


# =============================================================================
# Lint Rules - Option mapping
# =============================================================================

MANUAL_MAP = LintRule(
    code="H0101",
    name="manual-map",
    category=LintCategory.STYLE,
    message="manual implementation of `Option::map`",
    suggestion="try this",
    description=(
        "Checks for a `match` or `if let` over an `Option` whose only effect is to "
        "transform the contained value. `Option::map` says the same thing directly."
    ),
    example=(
        "match x {\n    Some(n) => Some(n + 1),\n    None => None,\n}",
        "x.map(|n| n + 1)",
    ),
)

OPTION_MAP_UNIT_FN = LintRule(
    code="H0102",
    name="option-map-unit-fn",
    category=LintCategory.COMPLEXITY,
    message="called `map(f)` on an `Option` value where `f` returns the unit type",
    suggestion="try this",
    description=(
        "Mapping a function that returns `()` over an `Option` is better written as "
        "`if let`. manual-map stays silent while this rule is active so the two never "
        "rewrite each other's suggestions."
    ),
    example=("x.map(|v| log(v));", "if let Some(v) = x { log(v) }"),
)

MATCH_AS_REF = LintRule(
    code="H0103",
    name="match-as-ref",
    category=LintCategory.COMPLEXITY,
    message="use `as_ref()` or `as_mut()` instead",
    suggestion="try this",
    description=(
        "A match that only re-wraps a reference to the contained value is `as_ref()` "
        "or `as_mut()`. manual-map defers to this rule when it is active."
    ),
    example=(
        "match &x {\n    Some(v) => Some(v),\n    None => None,\n}",
        "x.as_ref()",
    ),
)


# =============================================================================
# Lint Rules - Format macros
# =============================================================================

PRINT_WITH_NEWLINE = LintRule(
    code="H0201",
    name="print-with-newline",
    category=LintCategory.STYLE,
    message="using `{}!()` with a format string that ends in a single newline",
    suggestion="use `{}ln!` instead",
    description="`print!` and `eprint!` calls whose format string ends in `\\n` should use the `ln` form.",
    example=('print!("Hello {}!\\n", name);', 'println!("Hello {}!", name);'),
)

PRINTLN_EMPTY_STRING = LintRule(
    code="H0202",
    name="println-empty-string",
    category=LintCategory.STYLE,
    message="empty string literal in `{}!`",
    suggestion="remove the empty string",
    description="`println!(\"\")` prints exactly what `println!()` prints.",
    example=('println!("");', "println!();"),
)

PRINT_LITERAL = LintRule(
    code="H0203",
    name="print-literal",
    category=LintCategory.STYLE,
    message="literal with an empty format string",
    suggestion="try this",
    description="A literal passed through a plain `{}` placeholder can be written into the format string.",
    example=('println!("{}", "foo");', 'println!("foo");'),
)

WRITE_WITH_NEWLINE = LintRule(
    code="H0204",
    name="write-with-newline",
    category=LintCategory.STYLE,
    message="using `{}!()` with a format string that ends in a single newline",
    suggestion="use `{}ln!` instead",
    description="`write!` calls whose format string ends in `\\n` should use `writeln!`.",
    example=('write!(buf, "Hello {}!\\n", name);', 'writeln!(buf, "Hello {}!", name);'),
)

WRITELN_EMPTY_STRING = LintRule(
    code="H0205",
    name="writeln-empty-string",
    category=LintCategory.STYLE,
    message="empty string literal in `{}!`",
    suggestion="remove the empty string",
    description="`writeln!(buf, \"\")` writes exactly what `writeln!(buf)` writes.",
    example=('writeln!(buf, "");', "writeln!(buf);"),
)

WRITE_LITERAL = LintRule(
    code="H0206",
    name="write-literal",
    category=LintCategory.STYLE,
    message="literal with an empty format string",
    suggestion="try this",
    description="A literal passed through a plain `{}` placeholder can be written into the format string.",
    example=('writeln!(buf, "{}", "foo");', 'writeln!(buf, "foo");'),
)

PRINT_STDOUT = LintRule(
    code="H0207",
    name="print-stdout",
    category=LintCategory.RESTRICTION,
    message="use of `{}!`",
    level=LintLevel.ALLOW,
    description="Reports every `print!` and `println!`, for code that must not write to stdout.",
)

PRINT_STDERR = LintRule(
    code="H0208",
    name="print-stderr",
    category=LintCategory.RESTRICTION,
    message="use of `{}!`",
    level=LintLevel.ALLOW,
    description="Reports every `eprint!` and `eprintln!`, for code that must not write to stderr.",
)

USE_DEBUG = LintRule(
    code="H0209",
    name="use-debug",
    category=LintCategory.RESTRICTION,
    message="use of `Debug`-based formatting",
    level=LintLevel.ALLOW,
    description=(
        "Reports `{:?}` placeholders outside `Debug` implementations; debug output is "
        "usually not meant for end users."
    ),
    example=('println!("{:?}", foo);', 'println!("{}", foo);'),
)


# =============================================================================
# Rule Registry
# =============================================================================


ALL_RULES: dict[str, LintRule] = {
    # Option mapping
    MANUAL_MAP.code: MANUAL_MAP,
    OPTION_MAP_UNIT_FN.code: OPTION_MAP_UNIT_FN,
    MATCH_AS_REF.code: MATCH_AS_REF,
    # Format macros
    PRINT_WITH_NEWLINE.code: PRINT_WITH_NEWLINE,
    PRINTLN_EMPTY_STRING.code: PRINTLN_EMPTY_STRING,
    PRINT_LITERAL.code: PRINT_LITERAL,
    WRITE_WITH_NEWLINE.code: WRITE_WITH_NEWLINE,
    WRITELN_EMPTY_STRING.code: WRITELN_EMPTY_STRING,
    WRITE_LITERAL.code: WRITE_LITERAL,
    PRINT_STDOUT.code: PRINT_STDOUT,
    PRINT_STDERR.code: PRINT_STDERR,
    USE_DEBUG.code: USE_DEBUG,
}

# Also index by name
RULES_BY_NAME: dict[str, LintRule] = {
    rule.name: rule for rule in ALL_RULES.values()
}


def get_rule(rule_id: str) -> Optional[LintRule]:
    """Look a rule up by code, kebab-case name or attribute (snake_case) name."""
    if rule_id in ALL_RULES:
        return ALL_RULES[rule_id]
    return RULES_BY_NAME.get(rule_id.replace("_", "-"))


def get_rule_by_name(name: str) -> Optional[LintRule]:
    """Get a lint rule by its name."""
    return RULES_BY_NAME.get(name)


def get_rule_by_code(code: str) -> Optional[LintRule]:
    """Get a lint rule by its code."""
    return ALL_RULES.get(code)


def get_rules_by_category(category: LintCategory) -> list[LintRule]:
    """Get all lint rules in a category."""
    return [rule for rule in ALL_RULES.values() if rule.category == category]


def _require_rule(rule_id: str) -> LintRule:
    rule = get_rule(rule_id)
    if rule is None:
        raise ConfigError(f"unknown lint rule '{rule_id}'")
    return rule


# =============================================================================
# Lint Configuration
# =============================================================================


_DIRECTIVE = re.compile(r"#!?\[(allow|warn|deny)\(([a-zA-Z0-9_-]+(?:\s*,\s*[a-zA-Z0-9_-]+)*)\)\]")


@dataclass
class LintConfiguration:
    """
    Configuration for the linter specifying rule levels.

    Levels are stored by rule code; rules are accepted by code or name.

    Example:
        config = LintConfiguration()
        config.set_level("print-stdout", LintLevel.WARN)
        config.set_level_by_category(LintCategory.STYLE, LintLevel.DENY)
    """

    rule_levels: dict[str, LintLevel] = field(default_factory=dict)

    def get_level(self, rule: LintRule) -> LintLevel:
        """Get the effective level for a rule."""
        return self.rule_levels.get(rule.code, rule.level)

    def set_level(self, rule_id: str, level: LintLevel) -> None:
        """
        Set the level for a rule by code or name.

        Raises:
            ConfigError: If the rule is unknown
        """
        self.rule_levels[_require_rule(rule_id).code] = level

    def set_level_by_category(self, category: LintCategory, level: LintLevel) -> None:
        """Set the level for all rules in a category."""
        for rule in get_rules_by_category(category):
            self.rule_levels[rule.code] = level

    def allow(self, rule_id: str) -> None:
        """Disable a rule."""
        self.set_level(rule_id, LintLevel.ALLOW)

    def warn(self, rule_id: str) -> None:
        """Set a rule to warning level."""
        self.set_level(rule_id, LintLevel.WARN)

    def deny(self, rule_id: str) -> None:
        """Set a rule to error level."""
        self.set_level(rule_id, LintLevel.DENY)

    def allow_all(self) -> None:
        """Disable all rules."""
        for rule in ALL_RULES.values():
            self.rule_levels[rule.code] = LintLevel.ALLOW

    def warn_all(self) -> None:
        """Set all rules to warning level."""
        for rule in ALL_RULES.values():
            self.rule_levels[rule.code] = LintLevel.WARN

    def deny_all(self) -> None:
        """Set all rules to error level."""
        for rule in ALL_RULES.values():
            self.rule_levels[rule.code] = LintLevel.DENY

    def apply_directive(self, directive: str) -> None:
        """Apply a ``#![level(rule)]`` directive to this configuration."""
        for _, rule_name, level in self.parse_directive(directive):
            self.set_level(rule_name, level)

    @classmethod
    def parse_directive(cls, directive: str) -> list[tuple[str, str, LintLevel]]:
        """
        Parse a lint directive.

        Formats:
            #![allow(rule-name)]
            #![warn(rule_name, other-rule)]
            #[deny(rule-name)]

        Returns:
            One (action, rule_name, level) tuple per rule named

        Raises:
            ConfigError: If directive format is invalid
        """
        match = _DIRECTIVE.fullmatch(directive.strip())
        if not match:
            raise ConfigError(f"Invalid lint directive: {directive}")

        action = match.group(1)
        level = LintLevel(action)
        return [(action, name.strip(), level) for name in match.group(2).split(",")]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LintConfiguration":
        """
        Build a configuration from a ``[lint]``-style table.

        Recognized keys, applied in this order: ``allow_all`` / ``warn_all`` /
        ``deny_all`` (booleans), ``categories`` (category -> level), then
        ``allow`` / ``warn`` / ``deny`` (lists of rule codes or names).

        Raises:
            ConfigError: On unknown keys, rules, categories or levels
        """
        known = {"allow_all", "warn_all", "deny_all", "categories", "allow", "warn", "deny"}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"unknown lint configuration keys: {', '.join(sorted(unknown))}")

        config = cls()
        if data.get("allow_all"):
            config.allow_all()
        if data.get("warn_all"):
            config.warn_all()
        if data.get("deny_all"):
            config.deny_all()

        categories = data.get("categories", {})
        if not isinstance(categories, Mapping):
            raise ConfigError("'categories' must be a table of category = level")
        for category_name, level_name in categories.items():
            try:
                category = LintCategory(category_name)
            except ValueError:
                raise ConfigError(f"unknown lint category '{category_name}'") from None
            config.set_level_by_category(category, LintLevel.parse(str(level_name)))

        for level in LintLevel:
            rule_ids = data.get(level.value, [])
            if isinstance(rule_ids, str) or not isinstance(rule_ids, list):
                raise ConfigError(f"'{level.value}' must be a list of rule names")
            for rule_id in rule_ids:
                config.set_level(str(rule_id), level)
        return config

    @classmethod
    def from_toml(cls, path: Path | str) -> "LintConfiguration":
        """
        Load the ``[lint]`` table of a TOML file.

        A file without a ``[lint]`` table yields the default configuration.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read lint configuration {path}: {e}") from e
        try:
            data = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e
        section = data.get("lint", {})
        if not isinstance(section, dict):
            raise ConfigError(f"[lint] in {path} must be a table")
        return cls.from_mapping(section)


@dataclass(frozen=True)
class LintAttribute:
    """
    A ``#[level(rule, ...)]`` attribute attached to a node.

    It overrides the configured level of the named rules for the node and
    everything nested inside it.
    """

    level: LintLevel
    rules: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "LintAttribute":
        entries = LintConfiguration.parse_directive(text)
        for _, name, _ in entries:
            _require_rule(name)
        return cls(entries[0][2], tuple(name for _, name, _ in entries))

    def applies_to(self, rule: LintRule) -> bool:
        return any(get_rule(name) is rule for name in self.rules)

    def __str__(self) -> str:
        return f"#[{self.level.value}({', '.join(self.rules)})]"


# =============================================================================
# Violations
# =============================================================================


@dataclass
class LintViolation:
    """
    A detected lint violation.

    Attributes:
        rule: The lint rule that was violated
        span: Primary span of the violation
        message: Formatted message describing the issue
        suggestion: Machine-generated fix, if one could be built
        hir_id: Id of the node the violation was reported on
        level: Effective level, filled in by the linter
    """

    rule: LintRule
    span: Span
    message: str
    suggestion: Optional[Suggestion] = None
    hir_id: Optional[int] = None
    level: LintLevel = LintLevel.WARN

    def __str__(self) -> str:
        return f"[{self.rule.code}] {self.span}: {self.message}"

    def format_full(self, source_map: "SourceMap") -> str:
        """Format the violation with location and suggested edits."""
        lines = [f"[{self.rule.code}] {source_map.to_location(self.span)}: {self.message}"]
        if self.suggestion:
            for edit in self.suggestion.edits:
                lines.append(f"  {self.suggestion.message}: {edit.span} -> {edit.replacement!r}")
        return "\n".join(lines)

    def to_diagnostic(self, source_map: "SourceMap") -> Diagnostic:
        """Convert to a renderable ``Diagnostic``."""
        level = DiagnosticLevel.ERROR if self.level is LintLevel.DENY else DiagnosticLevel.WARNING
        return Diagnostic(
            code=self.rule.code,
            level=level,
            message=self.message,
            labels=[DiagnosticLabel(source_map.to_source_span(self.span))],
            notes=[f"`#[{self.level.value}({self.rule.attr_name})]` is in effect"],
            suggestions=[self.suggestion] if self.suggestion else [],
        )
