"""
Tests for the hirlint command-line interface.
"""

import json

import pytest

from hirlint.cli import Colors, create_parser, main


@pytest.fixture(autouse=True)
def no_colors():
    """Keep assertions free of ANSI escapes."""
    Colors.disable()


class TestParser:
    """Test argument parsing."""

    def test_aliases(self) -> None:
        parser = create_parser()
        assert parser.parse_args(["r"]).command == "r"
        assert parser.parse_args(["e", "H0101"]).rule == "H0101"

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "hirlint 0.1.0" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys) -> None:
        assert main([]) == 0
        assert "usage: hirlint" in capsys.readouterr().out


class TestRulesCommand:
    """Test `hirlint rules`."""

    def test_lists_every_category(self, capsys) -> None:
        assert main(["rules"]) == 0
        out = capsys.readouterr().out
        assert "Available Lint Rules" in out
        for heading in ("STYLE", "COMPLEXITY", "RESTRICTION"):
            assert heading in out
        assert "H0101 manual-map" in out
        assert "use of `<macro>!`" in out

    def test_category_filter(self, capsys) -> None:
        assert main(["rules", "--category", "restriction"]) == 0
        out = capsys.readouterr().out
        assert "print-stdout" in out
        assert "manual-map" not in out

    def test_unknown_category(self, capsys) -> None:
        assert main(["rules", "--category", "pedantic"]) == 1
        assert "Unknown category 'pedantic'" in capsys.readouterr().err

    def test_json(self, capsys) -> None:
        assert main(["rules", "--json", "--category", "style"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["total"] == len(data["rules"])
        assert data["summary"]["by_category"] == {"style": data["summary"]["total"]}
        manual_map = next(rule for rule in data["rules"] if rule["code"] == "H0101")
        assert manual_map["level"] == "warn"

    def test_config_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "hirlint.toml"
        path.write_text('[lint]\ndeny = ["manual-map"]\n', encoding="utf-8")
        assert main(["rules", "--json", "--config", str(path)]) == 0
        data = json.loads(capsys.readouterr().out)
        levels = {rule["name"]: rule["level"] for rule in data["rules"]}
        assert levels["manual-map"] == "deny"
        assert levels["print-stdout"] == "allow"

    def test_bad_config_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "hirlint.toml"
        path.write_text('[lint]\ndeny = ["no-such-rule"]\n', encoding="utf-8")
        assert main(["rules", "--config", str(path)]) == 1
        assert "unknown lint rule 'no-such-rule'" in capsys.readouterr().err


class TestExplainCommand:
    """Test `hirlint explain`."""

    def test_explain_by_name(self, capsys) -> None:
        assert main(["explain", "manual-map"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("H0101 manual-map")
        assert "#[allow(manual_map)]" in out
        assert "Before:" in out
        assert "    x.map(|n| n + 1)" in out

    def test_explain_rule_without_example(self, capsys) -> None:
        assert main(["e", "print_stdout"]) == 0
        out = capsys.readouterr().out
        assert "default level: allow" in out
        assert "Before:" not in out

    def test_unknown_rule(self, capsys) -> None:
        assert main(["explain", "H9999"]) == 1
        assert "Unknown rule 'H9999'" in capsys.readouterr().err


class TestUnescapeCommand:
    """Test `hirlint unescape`."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("a\\\\b", "fixable: a\\b"),
            ('say \\"hi\\"', "lint only:"),
            ("a\\rb", "abstain:"),
        ],
    )
    def test_statuses(self, capsys, text, expected) -> None:
        assert main(["unescape", text]) == 0
        assert expected in capsys.readouterr().out
