"""
Tests for lint rule lookup, levels and configuration loading.
"""

import pytest

from hirlint.lints.rules import (
    ALL_RULES,
    MANUAL_MAP,
    PRINT_STDOUT,
    USE_DEBUG,
    LintAttribute,
    LintCategory,
    LintConfiguration,
    LintLevel,
    get_rule,
    get_rules_by_category,
)
from hirlint.utils.errors import ConfigError


# =============================================================================
# Rule registry
# =============================================================================


class TestRuleRegistry:
    """Test the rule registry and lookups."""

    def test_codes_are_unique_and_indexed(self) -> None:
        for code, rule in ALL_RULES.items():
            assert rule.code == code

    @pytest.mark.parametrize("rule_id", ["H0101", "manual-map", "manual_map"])
    def test_get_rule_spellings(self, rule_id) -> None:
        assert get_rule(rule_id) is MANUAL_MAP

    def test_unknown_rule(self) -> None:
        assert get_rule("no-such-rule") is None

    def test_attr_name(self) -> None:
        assert MANUAL_MAP.attr_name == "manual_map"
        assert str(MANUAL_MAP) == "H0101 (manual-map)"

    def test_restriction_rules_are_off_by_default(self) -> None:
        for rule in get_rules_by_category(LintCategory.RESTRICTION):
            assert rule.level is LintLevel.ALLOW


# =============================================================================
# Configuration
# =============================================================================


class TestLintConfiguration:
    """Test rule level configuration."""

    def test_defaults(self) -> None:
        config = LintConfiguration()
        assert config.get_level(MANUAL_MAP) is LintLevel.WARN
        assert config.get_level(PRINT_STDOUT) is LintLevel.ALLOW

    def test_set_by_name(self) -> None:
        config = LintConfiguration()
        config.deny("manual-map")
        assert config.get_level(MANUAL_MAP) is LintLevel.DENY
        assert config.rule_levels == {"H0101": LintLevel.DENY}

    def test_set_unknown_rule(self) -> None:
        with pytest.raises(ConfigError, match="unknown lint rule"):
            LintConfiguration().warn("nope")

    def test_category(self) -> None:
        config = LintConfiguration()
        config.set_level_by_category(LintCategory.RESTRICTION, LintLevel.WARN)
        assert config.get_level(USE_DEBUG) is LintLevel.WARN
        assert config.get_level(MANUAL_MAP) is LintLevel.WARN

    def test_allow_all(self) -> None:
        config = LintConfiguration()
        config.allow_all()
        assert all(config.get_level(rule) is LintLevel.ALLOW for rule in ALL_RULES.values())

    def test_apply_directive(self) -> None:
        config = LintConfiguration()
        config.apply_directive("#![warn(print_stdout, use-debug)]")
        assert config.get_level(PRINT_STDOUT) is LintLevel.WARN
        assert config.get_level(USE_DEBUG) is LintLevel.WARN


class TestParseDirective:
    """Test lint directive parsing."""

    def test_inner_directive(self) -> None:
        assert LintConfiguration.parse_directive("#![allow(manual-map)]") == [
            ("allow", "manual-map", LintLevel.ALLOW)
        ]

    def test_outer_directive_with_several_rules(self) -> None:
        entries = LintConfiguration.parse_directive("#[deny(manual_map, print-literal)]")
        assert [name for _, name, _ in entries] == ["manual_map", "print-literal"]
        assert all(level is LintLevel.DENY for _, _, level in entries)

    @pytest.mark.parametrize(
        "directive",
        ["allow(manual-map)", "#![forbid(manual-map)]", "#![allow()]", "#![allow(manual map)]"],
    )
    def test_invalid(self, directive) -> None:
        with pytest.raises(ConfigError, match="Invalid lint directive"):
            LintConfiguration.parse_directive(directive)


class TestLintAttribute:
    """Test subtree level overrides."""

    def test_parse_and_apply(self) -> None:
        attr = LintAttribute.parse("#[allow(manual_map)]")
        assert attr.level is LintLevel.ALLOW
        assert attr.applies_to(MANUAL_MAP)
        assert not attr.applies_to(USE_DEBUG)
        assert str(attr) == "#[allow(manual_map)]"

    def test_unknown_rule(self) -> None:
        with pytest.raises(ConfigError):
            LintAttribute.parse("#[allow(clippy_everything)]")


# =============================================================================
# Loading
# =============================================================================


class TestConfigLoading:
    """Test building a configuration from a table or a TOML file."""

    def test_from_mapping_order(self) -> None:
        """Test that rule lists override categories, which override the *_all flags."""
        config = LintConfiguration.from_mapping(
            {
                "deny_all": True,
                "categories": {"restriction": "allow"},
                "warn": ["use-debug"],
            }
        )
        assert config.get_level(MANUAL_MAP) is LintLevel.DENY
        assert config.get_level(PRINT_STDOUT) is LintLevel.ALLOW
        assert config.get_level(USE_DEBUG) is LintLevel.WARN

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"bogus": 1}, "unknown lint configuration keys"),
            ({"categories": {"pedantic": "warn"}}, "unknown lint category"),
            ({"categories": {"style": "loud"}}, "unknown lint level"),
            ({"allow": "manual-map"}, "must be a list"),
            ({"deny": ["H9999"]}, "unknown lint rule"),
        ],
    )
    def test_from_mapping_errors(self, data, message) -> None:
        with pytest.raises(ConfigError, match=message):
            LintConfiguration.from_mapping(data)

    def test_from_toml(self, tmp_path) -> None:
        path = tmp_path / "hirlint.toml"
        path.write_text(
            '[lint]\ndeny = ["manual-map"]\n\n[lint.categories]\nrestriction = "warn"\n',
            encoding="utf-8",
        )
        config = LintConfiguration.from_toml(path)
        assert config.get_level(MANUAL_MAP) is LintLevel.DENY
        assert config.get_level(PRINT_STDOUT) is LintLevel.WARN

    def test_from_toml_without_lint_table(self, tmp_path) -> None:
        path = tmp_path / "hirlint.toml"
        path.write_text('[other]\nkey = 1\n', encoding="utf-8")
        assert LintConfiguration.from_toml(path).rule_levels == {}

    def test_from_toml_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            LintConfiguration.from_toml(tmp_path / "missing.toml")

    def test_from_toml_invalid(self, tmp_path) -> None:
        path = tmp_path / "hirlint.toml"
        path.write_text("[lint\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid TOML"):
            LintConfiguration.from_toml(path)
