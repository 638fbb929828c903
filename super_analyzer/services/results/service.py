"""
Results accumulator.

Gathers the findings and internal analysis errors of one package and
renders them as ``results.json`` or ``index.html`` in the package's results
folder.
"""

from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...core.config import Config
from ...core.exceptions import ResultsError
from ...core.logging import get_logger
from ...models.criticality import Criticality
from ...models.package import get_package_name
from ...models.results import Report, Vulnerability

logger = get_logger(__name__)

HTML_REPORT_NAME = "index.html"
JSON_REPORT_NAME = "results.json"

_CRITICALITY_STYLES = {
    Criticality.WARNING: "dim",
    Criticality.LOW: "cyan",
    Criticality.MEDIUM: "yellow",
    Criticality.HIGH: "red",
    Criticality.CRITICAL: "bold red",
}


class Results:
    """Findings of one package, owned by its pipeline run."""

    def __init__(self, app_package: str) -> None:
        self.app_package = app_package
        self._vulnerabilities: list[Vulnerability] = []
        self.errors: list[str] = []

    @classmethod
    def init(cls, config: Config, package: str | Path) -> Results:
        """Create the accumulator and the results folder of ``package``.

        Raises:
            ResultsError: If the results folder cannot be created.
        """
        app_package = get_package_name(package)
        folder = config.package_results_folder(app_package)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResultsError(
                message=f"Could not create the results folder {folder}",
                context={"package": app_package},
                cause=e,
            ) from e
        return cls(app_package)

    def add_vulnerability(self, vulnerability: Vulnerability) -> None:
        self._vulnerabilities.append(vulnerability)

    def add_error(self, message: str) -> None:
        """Record an analysis problem that did not stop the pipeline."""
        logger.warning("Analysis error", package=self.app_package, error=message)
        self.errors.append(message)

    @property
    def vulnerabilities(self) -> list[Vulnerability]:
        """Findings, most critical first."""
        return sorted(self._vulnerabilities, key=lambda v: v.criticality, reverse=True)

    def to_report(self, min_criticality: Criticality = Criticality.WARNING) -> Report:
        """Build the report, keeping findings at or above ``min_criticality``."""
        vulnerabilities = [v for v in self.vulnerabilities if v.criticality >= min_criticality]
        counts = {str(c): 0 for c in reversed(Criticality)}
        for vulnerability in vulnerabilities:
            counts[str(vulnerability.criticality)] += 1
        return Report(
            app_package=self.app_package,
            total_vulnerabilities=len(vulnerabilities),
            counts=counts,
            vulnerabilities=vulnerabilities,
            errors=list(self.errors),
        )

    def report_path(self, config: Config) -> Path:
        """Where the report of this package is (or will be) written."""
        name = HTML_REPORT_NAME if config.has_to_generate_html() else JSON_REPORT_NAME
        return config.package_results_folder(self.app_package) / name

    def generate_report(self, config: Config, package_name: str) -> Path:
        """Write the report and return its path.

        Raises:
            OSError: If the report cannot be written.
        """
        report = self.to_report(config.min_criticality)
        path = self.report_path(config)
        path.parent.mkdir(parents=True, exist_ok=True)

        if config.has_to_generate_html():
            path.write_text(render_html(report), encoding="utf-8")
        else:
            path.write_text(report.model_dump_json(indent=2), encoding="utf-8")

        logger.info(
            "Report generated",
            package=package_name,
            path=str(path),
            vulnerabilities=report.total_vulnerabilities,
        )
        return path


def render_html(report: Report) -> str:
    """Render a report as a standalone HTML page."""
    console = Console(
        record=True, file=io.StringIO(), width=140, force_terminal=True, highlight=False
    )

    console.print(f"[bold]SUPER Analyzer report for[/bold] [italic]{escape(report.app_package)}[/italic]")
    console.print(f"Generated at {report.generated_at:%Y-%m-%d %H:%M:%S}")
    console.print()

    summary = Table(title="Summary")
    summary.add_column("Criticality", style="cyan")
    summary.add_column("Findings", justify="right")
    for name, count in report.counts.items():
        summary.add_row(name, str(count))
    console.print(summary)

    findings = Table(title="Vulnerabilities")
    findings.add_column("Criticality")
    findings.add_column("Name", style="bold")
    findings.add_column("Location")
    findings.add_column("Code", overflow="fold")
    for v in report.vulnerabilities:
        location = f"{v.file}:{v.line}" if v.file and v.line else str(v.file or "")
        findings.add_row(
            f"[{_CRITICALITY_STYLES[v.criticality]}]{v.criticality}[/]",
            escape(v.name),
            escape(location),
            escape(v.code or ""),
        )
    console.print(findings)

    if report.errors:
        console.print()
        console.print("[bold red]Analysis errors[/bold red]")
        for error in report.errors:
            console.print(f"  - {error}", markup=False)

    return console.export_html(inline_styles=True)
