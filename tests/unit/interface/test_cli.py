"""Unit tests for the Typer-based CLI interface."""

import json
from pathlib import Path
from unittest.mock import Mock

from typer.testing import CliRunner

from corolint.domain.config import ConfigurationLoader
from corolint.domain.entities import AnalysisReport, Finding, Severity, UnitFailure
from corolint.domain.rules.catalog import RuleCatalog
from corolint.domain.syntax import Span
from corolint.infrastructure.gateways.tree_document_gateway import TreeDocumentGateway
from corolint.infrastructure.reporters import JsonReporter, TextReporter
from corolint.infrastructure.services.guidance_service import GuidanceService
from corolint.interface.cli import (
    EXIT_CLEAN,
    EXIT_FINDINGS,
    EXIT_INPUT_FAILURE,
    CLIAppFactory,
    CLIDependencies,
)

runner = CliRunner()

UNSCOPED = {
    "kind": "file",
    "statements": [
        {
            "kind": "call",
            "callee": "launch",
            "receiver": {"kind": "name", "name": "GlobalScope"},
            "lambda": {"kind": "lambda"},
        }
    ],
}

CLEAN = {
    "kind": "file",
    "statements": [
        {
            "kind": "function",
            "name": "load",
            "is_suspend": True,
            "body": {"kind": "block", "statements": [{"kind": "call", "callee": "delay"}]},
        }
    ],
}

# Warning-only: a suspend loop with no cooperation point.
LOOPING = {
    "kind": "file",
    "statements": [
        {
            "kind": "function",
            "name": "crunch",
            "is_suspend": True,
            "body": {
                "kind": "loop",
                "loop_kind": "for",
                "iterable": {"kind": "name", "name": "items"},
                "body": {"kind": "block", "statements": [{"kind": "call", "callee": "step"}]},
            },
        }
    ],
}


def _make_deps(config: dict | None = None, **overrides) -> CLIDependencies:
    defaults: dict = {
        "config_loader": ConfigurationLoader(config or {}),
        "tree_loader": TreeDocumentGateway(),
        "guidance_service": GuidanceService(),
        "catalog": RuleCatalog(),
    }
    defaults.update(overrides)
    return CLIDependencies(**defaults)


def _write(tmp_path: Path, name: str, document: dict) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestExitCode:
    """Exit code policy."""

    def _finding(self, severity: Severity) -> Finding:
        return Finding("X_001", "X", severity, Span("A.kt", 1, 1, 1, 2), "[X_001] x", "")

    def test_clean(self) -> None:
        assert CLIAppFactory.exit_code(AnalysisReport()) == EXIT_CLEAN

    def test_warnings_only_are_clean(self) -> None:
        report = AnalysisReport(findings=(self._finding(Severity.WARNING), self._finding(Severity.INFO)))
        assert CLIAppFactory.exit_code(report) == EXIT_CLEAN

    def test_error_findings_win_over_failures(self) -> None:
        report = AnalysisReport(findings=(self._finding(Severity.ERROR),), errors=(UnitFailure("b.json", "bad"),))
        assert CLIAppFactory.exit_code(report) == EXIT_FINDINGS

    def test_input_failures_only(self) -> None:
        assert CLIAppFactory.exit_code(AnalysisReport(errors=(UnitFailure("b.json", "bad"),))) == EXIT_INPUT_FAILURE

    def test_reporter_for(self) -> None:
        assert isinstance(CLIAppFactory.reporter_for("json"), JsonReporter)
        text = CLIAppFactory.reporter_for("text", show_docs=True)
        assert isinstance(text, TextReporter) and text.show_docs


class TestCheckCommand:
    """`corolint check` over tree documents on disk."""

    def test_clean_unit_exits_zero(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "Clean.json", CLEAN)
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(path)])

        assert result.exit_code == EXIT_CLEAN
        assert "1 file(s) analyzed: 0 error(s), 0 warning(s), 0 info" in result.stdout

    def test_error_finding_exits_one(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "Unscoped.json", UNSCOPED)
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(path)])

        assert result.exit_code == EXIT_FINDINGS
        assert "[SCOPE_001]" in result.stdout
        assert "(Unscoped-launch)" in result.stdout

    def test_warning_finding_exits_zero(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "Looping.json", LOOPING)
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(path)])

        assert result.exit_code == EXIT_CLEAN
        assert "[CANCEL_001]" in result.stdout

    def test_unreadable_unit_exits_two(self, tmp_path: Path) -> None:
        _write(tmp_path, "Clean.json", CLEAN)
        (tmp_path / "Broken.json").write_text('{"kind": "spaceship"}', encoding="utf-8")
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(tmp_path)])

        assert result.exit_code == EXIT_INPUT_FAILURE

    def test_deeply_nested_unit_fails_alone(self, tmp_path: Path) -> None:
        _write(tmp_path, "a_good.json", UNSCOPED)
        depth = 3000
        chain = '{"kind": "name", "name": "a", "receiver": ' * depth + '{"kind": "name", "name": "a"}' + "}" * depth
        (tmp_path / "b_deep.json").write_text(
            '{"kind": "file", "statements": [{"kind": "call", "callee": "launch", "receiver": ' + chain + "}]}",
            encoding="utf-8",
        )
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(tmp_path), "--format", "json"])

        assert result.exit_code == EXIT_FINDINGS
        document = json.loads(result.stdout)
        assert [f["span"]["file"] for f in document["findings"]] == [str(tmp_path / "a_good.json")]
        assert [e["unit"] for e in document["errors"]] == [str(tmp_path / "b_deep.json")]
        assert "nested too deeply" in document["errors"][0]["message"]

    def test_json_output(self, tmp_path: Path) -> None:
        _write(tmp_path, "Unscoped.json", UNSCOPED)
        _write(tmp_path, "Clean.json", CLEAN)
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(tmp_path), "--format", "json", "--workers", "2"])

        assert result.exit_code == EXIT_FINDINGS
        document = json.loads(result.stdout)
        assert document["summary"]["units"] == 2
        assert [f["ruleId"] for f in document["findings"]] == ["SCOPE_001"]
        assert document["findings"][0]["span"]["file"] == str(tmp_path / "Unscoped.json")

    def test_disable_option_and_config(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "Unscoped.json", UNSCOPED)

        by_option = runner.invoke(CLIAppFactory.create_app(_make_deps()), ["check", str(path), "-d", "SCOPE_001"])
        by_config = runner.invoke(
            CLIAppFactory.create_app(_make_deps({"disable": ["Unscoped-launch"]})), ["check", str(path)]
        )

        assert by_option.exit_code == EXIT_CLEAN
        assert by_config.exit_code == EXIT_CLEAN

    def test_bad_format(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "Clean.json", CLEAN)
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["check", str(path), "--format", "xml"])

        assert result.exit_code == 2
        assert "--format" in result.output

    def test_uses_injected_tree_loader(self) -> None:
        loader = Mock()
        loader.discover.return_value = []
        app = CLIAppFactory.create_app(_make_deps(tree_loader=loader))

        result = runner.invoke(app, ["check", "trees"])

        assert result.exit_code == EXIT_CLEAN
        loader.discover.assert_called_once_with(["trees"])
        loader.load.assert_not_called()


class TestRulesAndExplain:
    """`corolint rules` and `corolint explain`."""

    def test_rules_lists_catalog(self) -> None:
        app = CLIAppFactory.create_app(_make_deps({"disable": ["CHANNEL_002"]}))

        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert len(lines) == 23
        assert lines[0].startswith("SCOPE_001")
        assert [line for line in lines if line.endswith("(disabled)")] == [
            line for line in lines if line.startswith("CHANNEL_002")
        ]

    def test_explain_by_symbol(self) -> None:
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["explain", "Scope-relaunch-after-cancel"])

        assert result.exit_code == 0
        assert result.stdout.startswith("CANCEL_005 (Scope-relaunch-after-cancel) [warning]")
        assert "Docs: https://" in result.stdout

    def test_explain_lists_references(self) -> None:
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["explain", "SCOPE_001"])

        assert result.exit_code == 0
        assert result.stdout.rstrip().endswith(
            "See also: https://kotlinlang.org/docs/coroutines-basics.html#structured-concurrency"
        )

    def test_explain_internal_code(self) -> None:
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["explain", "internal_001"])

        assert result.exit_code == 0
        assert result.stdout.startswith("INTERNAL_001 (Rule-failed) [info]")
        assert "Docs:" not in result.stdout

    def test_explain_unknown(self) -> None:
        app = CLIAppFactory.create_app(_make_deps())

        result = runner.invoke(app, ["explain", "NOPE_404"])

        assert result.exit_code == EXIT_INPUT_FAILURE
        assert "Unknown rule: NOPE_404" in result.output
