"""
hirlint Command-Line Interface.

Inspects the rule registry and the standalone transforms. Linting itself runs
inside a host compiler, which hands hirlint its typed tree.

Usage:
    hirlint rules                       # List every rule
    hirlint rules --category style      # List one category
    hirlint rules --config hirlint.toml # Show effective levels
    hirlint explain manual-map          # Describe a rule
    hirlint unescape 'a\\\\b'             # Run the raw-string unescape transform
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from hirlint import __version__
from hirlint.lints.rules import (
    ALL_RULES,
    LintCategory,
    LintConfiguration,
    LintLevel,
    LintRule,
    get_rule,
)
from hirlint.lints.unescape import UnescapeStatus, unescape
from hirlint.utils.errors import HirLintError


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


def _level_str(level: LintLevel) -> str:
    color = {
        LintLevel.ALLOW: Colors.GRAY,
        LintLevel.WARN: Colors.YELLOW,
        LintLevel.DENY: Colors.RED,
    }[level]
    return f"{color}{level.value}{Colors.RESET}"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="hirlint",
        description="hirlint - rule-based linting of typed compiler trees",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log rule decisions to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Rules command
    rules_parser = subparsers.add_parser(
        "rules",
        aliases=["r"],
        help="List the available lint rules",
    )
    rules_parser.add_argument(
        "--category",
        type=str,
        metavar="CATEGORY",
        help="Only list rules in CATEGORY (style, complexity, restriction)",
    )
    rules_parser.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="TOML file whose [lint] table sets rule levels",
    )
    rules_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the rule list as JSON",
    )

    # Explain command
    explain_parser = subparsers.add_parser(
        "explain",
        aliases=["e"],
        help="Describe a rule with an example rewrite",
    )
    explain_parser.add_argument(
        "rule",
        type=str,
        help="Rule code or name (e.g., 'H0101' or 'manual-map')",
    )

    # Unescape command
    unescape_parser = subparsers.add_parser(
        "unescape",
        help="Convert escaped literal text for a raw format string",
    )
    unescape_parser.add_argument(
        "text",
        type=str,
        help="Text between the quotes of a cooked literal, escapes included",
    )

    return parser


# =============================================================================
# Commands
# =============================================================================


def cmd_rules(args: argparse.Namespace) -> int:
    """Handle the rules command."""
    try:
        config = LintConfiguration.from_toml(args.config) if args.config else LintConfiguration()
    except HirLintError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    rules = list(ALL_RULES.values())
    if args.category:
        try:
            category = LintCategory(args.category.lower())
        except ValueError:
            print(f"Error: Unknown category '{args.category}'", file=sys.stderr)
            print("Valid categories: " + ", ".join(c.value for c in LintCategory))
            return 1
        rules = [rule for rule in rules if rule.category is category]

    if args.json:
        _print_rules_json(rules, config)
    else:
        _print_rules(rules, config)
    return 0


def _print_rules_json(rules: list[LintRule], config: LintConfiguration) -> None:
    result = {
        "rules": [
            {
                "code": rule.code,
                "name": rule.name,
                "category": rule.category.value,
                "default_level": rule.level.value,
                "level": config.get_level(rule).value,
                "message": rule.message,
            }
            for rule in rules
        ],
        "summary": {
            "total": len(rules),
            "by_category": {},
        },
    }
    for rule in rules:
        cat = rule.category.value
        result["summary"]["by_category"][cat] = result["summary"]["by_category"].get(cat, 0) + 1
    print(json.dumps(result, indent=2))


def _print_rules(rules: list[LintRule], config: LintConfiguration) -> None:
    """Print rules grouped by category."""
    print(f"\n{Colors.BOLD}Available Lint Rules{Colors.RESET}")
    print("=" * 60)

    for category in LintCategory:
        in_category = [rule for rule in rules if rule.category is category]
        if not in_category:
            continue
        print(f"\n{Colors.CYAN}{category.value.upper()}{Colors.RESET}")
        for rule in sorted(in_category, key=lambda r: r.code):
            print(f"  {rule.code} {rule.name:30s} [{_level_str(config.get_level(rule))}]")
            msg = rule.message.replace("{}", "<macro>")
            if len(msg) > 50:
                msg = msg[:47] + "..."
            print(f"    {Colors.GRAY}{msg}{Colors.RESET}")

    print()


def cmd_explain(args: argparse.Namespace) -> int:
    """Handle the explain command."""
    rule = get_rule(args.rule)
    if rule is None:
        print(f"Error: Unknown rule '{args.rule}'", file=sys.stderr)
        return 1

    print(f"{Colors.BOLD}{rule.code} {rule.name}{Colors.RESET}")
    print(f"  category:      {rule.category.value}")
    print(f"  default level: {_level_str(rule.level)}")
    print(f"  attribute:     #[allow({rule.attr_name})]")
    print()
    if rule.description:
        print(rule.description)
        print()
    if rule.example:
        before, after = rule.example
        print(f"{Colors.YELLOW}Before:{Colors.RESET}")
        for line in before.splitlines():
            print(f"    {line}")
        print(f"{Colors.GREEN}After:{Colors.RESET}")
        for line in after.splitlines():
            print(f"    {line}")
    return 0


def cmd_unescape(args: argparse.Namespace) -> int:
    """Handle the unescape command."""
    result = unescape(args.text)
    if result.status is UnescapeStatus.FIXABLE:
        print(f"{Colors.GREEN}fixable{Colors.RESET}: {result.text}")
    elif result.status is UnescapeStatus.LINT_ONLY:
        print(f"{Colors.YELLOW}lint only{Colors.RESET}: no raw-literal spelling, fix by hand")
    else:
        print(f"{Colors.GRAY}abstain{Colors.RESET}: contains an escape with no raw form")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "rules": cmd_rules,
        "r": cmd_rules,
        "explain": cmd_explain,
        "e": cmd_explain,
        "unescape": cmd_unescape,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
