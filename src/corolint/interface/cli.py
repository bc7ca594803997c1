"""CLI entry points for corolint - Thin Controller using Typer."""

import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from corolint.domain.config import ConfigurationLoader
from corolint.domain.entities import AnalysisReport
from corolint.domain.protocols import GuidanceServiceProtocol, ReporterProtocol, TreeLoaderProtocol
from corolint.domain.rules.catalog import RuleCatalog
from corolint.infrastructure.reporters import JsonReporter, TextReporter
from corolint.use_cases.analyze import AnalyzeUseCase

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
OUTPUT_FORMATS: tuple[str, ...] = ("text", "json")

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_INPUT_FAILURE = 2


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    tree_loader: TreeLoaderProtocol
    guidance_service: GuidanceServiceProtocol
    catalog: RuleCatalog


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def configure_logging(verbose: bool = False) -> None:
        level = logging.DEBUG if verbose else logging.WARNING
        logging.basicConfig(level=level, format=LOG_FORMAT)
        logging.getLogger("corolint").setLevel(level)

    @staticmethod
    def exit_code(report: AnalysisReport) -> int:
        """1 when error findings exist, 2 when only input failures occurred, else 0."""
        if report.has_errors():
            return EXIT_FINDINGS
        if report.errors:
            return EXIT_INPUT_FAILURE
        return EXIT_CLEAN

    @staticmethod
    def reporter_for(output_format: str, show_docs: bool = False) -> ReporterProtocol:
        if output_format == "json":
            return JsonReporter()
        return TextReporter(show_docs=show_docs)

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="corolint",
            help="corolint: structured-concurrency checks over coroutine syntax trees.",
            add_completion=False,
        )

        @app.command()
        def check(
            paths: list[Path] = typer.Argument(..., help="Tree documents or directories to analyze"),  # noqa: B008
            output_format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
            workers: int | None = typer.Option(None, "--workers", "-j", min=1, help="Analyze files in parallel"),
            disable: list[str] | None = typer.Option(  # noqa: B008
                None, "--disable", "-d", help="Rule code or symbol to disable (repeatable)"
            ),
            show_docs: bool = typer.Option(False, "--docs", help="Print the documentation link for each finding"),
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
        ) -> None:
            """Analyze tree documents and report findings."""
            if output_format not in OUTPUT_FORMATS:
                raise typer.BadParameter(
                    f"must be one of: {', '.join(OUTPUT_FORMATS)}", param_hint="--format"
                )
            CLIAppFactory.configure_logging(verbose)
            config = deps.config_loader.engine_config(workers=workers, disable=disable or [])
            use_case = AnalyzeUseCase(config, deps.catalog)
            report = use_case.execute_paths([str(p) for p in paths], deps.tree_loader)
            CLIAppFactory.reporter_for(output_format, show_docs).report(report)
            raise typer.Exit(code=CLIAppFactory.exit_code(report))

        @app.command(name="rules")
        def list_rules() -> None:
            """List every rule with its default severity; disabled rules are marked."""
            config = deps.config_loader.engine_config()
            for rule in deps.catalog.rules:
                status = "" if config.is_enabled(rule.code, rule.symbol) else "  (disabled)"
                typer.echo(f"{rule.code:<13} {rule.severity.value:<8} {rule.symbol:<36} {rule.description}{status}")

        @app.command()
        def explain(
            code: str = typer.Argument(..., help="Rule code (SCOPE_001) or symbol (Unscoped-launch)"),
        ) -> None:
            """Show the guidance for one rule."""
            rule = deps.catalog.get(code)
            entry = deps.guidance_service.get_entry(rule.code if rule else code)
            if rule is None and entry is None:
                typer.secho(f"Unknown rule: {code}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=EXIT_INPUT_FAILURE)
            entry = entry or {}
            rule_code = rule.code if rule else code.upper()
            symbol = rule.symbol if rule else entry.get("symbol", "")
            severity = rule.severity.value if rule else entry.get("severity", "")
            typer.secho(f"{rule_code} ({symbol}) [{severity}]", bold=True)
            typer.echo(entry.get("short_description") or (rule.description if rule else ""))
            instructions = deps.guidance_service.get_manual_instructions(rule_code)
            if instructions:
                typer.echo("")
                typer.echo(instructions)
            if rule is not None:
                typer.echo("")
                typer.echo(f"Docs: {rule.doc_url}")
            for reference in deps.guidance_service.get_references(rule_code):
                typer.echo(f"See also: {reference}")

        return app
