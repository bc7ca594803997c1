"""Terminal and JSON reporters for analysis results."""

import json
from collections import defaultdict

import typer

from corolint.domain.entities import AnalysisReport, Finding, Severity
from corolint.domain.protocols import ReporterProtocol

SEVERITY_COLORS: dict[Severity, str] = {
    Severity.ERROR: typer.colors.RED,
    Severity.WARNING: typer.colors.YELLOW,
    Severity.INFO: typer.colors.BLUE,
}


class TextReporter(ReporterProtocol):
    """Findings grouped by file, one line per finding, then a summary line."""

    def __init__(self, show_docs: bool = False) -> None:
        self.show_docs = show_docs

    def report(self, report: AnalysisReport) -> None:
        by_file: dict[str, list[Finding]] = defaultdict(list)
        for finding in report.findings:
            by_file[finding.span.file].append(finding)

        for path, findings in by_file.items():
            typer.secho(path, bold=True)
            for finding in findings:
                location = f"{finding.span.start_line}:{finding.span.start_col}"
                severity = typer.style(f"{finding.severity.value:<7}", fg=SEVERITY_COLORS[finding.severity])
                typer.echo(f"  {location:<9} {severity} {finding.message} ({finding.symbol})")
                if self.show_docs:
                    typer.echo(f"            {finding.doc_anchor}")

        for failure in report.errors:
            typer.secho(f"{failure.unit}: could not analyze: {failure.message}", fg=typer.colors.RED, err=True)

        counts = report.counts()
        summary = (
            f"{report.units_analyzed} file(s) analyzed: "
            f"{counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info"
        )
        if report.errors:
            summary += f", {len(report.errors)} file(s) failed"
        typer.secho(summary, fg=typer.colors.RED if report.has_errors() else typer.colors.GREEN)


class JsonReporter(ReporterProtocol):
    """The whole report as one JSON document on stdout."""

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def report(self, report: AnalysisReport) -> None:
        typer.echo(json.dumps(report.to_dict(), indent=self.indent))
