"""
Package pipeline orchestration.

Drives one package through decompression, DEX to JAR conversion,
decompilation, static analysis and report generation. Every failure is
wrapped with the context of the stage it happened in and aborts the
package; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console

from ..core import benchmark
from ..core.benchmark import BenchmarkLedger
from ..core.config import Config
from ..core.exceptions import (
    ReportGenerationError,
    ReportOpenError,
    ResultsError,
    StageError,
)
from ..core.logging import bind_context, clear_context, get_logger
from ..models.package import PackageRun, PipelineState, Stage, get_package_name
from ..services.results import Results
from ..services.stages import StageRunner, StaticAnalyzer

logger = get_logger(__name__)

ReportOpener = Callable[[str], int]

DECOMPRESSION_LABEL = "Apk decompression"
DEX_TO_JAR_LABEL = "Dex to Jar decompilation (dex2jar Java dependency)"
DECOMPILATION_LABEL = "Decompilation (jd-cli Java dependency)"
STATIC_ANALYSIS_LABEL = "Total static analysis"
REPORT_LABEL = "Report generation"

# (stage, method of StageRunner, error context, benchmark label, state reached)
_EXTERNAL_STAGES: tuple[tuple[Stage, str, str, str, PipelineState], ...] = (
    (Stage.UNPACK, "decompress", "apk decompression failed", DECOMPRESSION_LABEL, PipelineState.UNPACKED),
    (Stage.CONVERT, "dex_to_jar", "Conversion from DEX to JAR failed", DEX_TO_JAR_LABEL, PipelineState.CONVERTED),
    (Stage.DECOMPILE, "decompile", "JAR decompression failed", DECOMPILATION_LABEL, PipelineState.DECOMPILED),
)


def open_with_default_handler(path: str) -> int:
    """Open a file with the host's default application.

    Waits for the handler to exit and returns its exit status.
    """
    return typer.launch(path, wait=True)


class PackagePipeline:
    """Runs the analysis pipeline for a single package.

    The stage runner, static analyzer and report opener are injected so
    tests can replace the external tools.
    """

    def __init__(
        self,
        stages: StageRunner,
        analyzer: StaticAnalyzer,
        console: Console | None = None,
        opener: ReportOpener = open_with_default_handler,
    ) -> None:
        self.stages = stages
        self.analyzer = analyzer
        self.console = console or Console()
        self.opener = opener

    def analyze_package(
        self, package: str | Path, config: Config, ledger: BenchmarkLedger
    ) -> PackageRun:
        """Analyze ``package`` and write its report.

        Benchmarks are recorded in ``ledger`` only when benchmarking is
        enabled in ``config``.

        Raises:
            StageError: If decompression, conversion or decompilation fails.
            ResultsError: If the results accumulator cannot be created.
            ReportGenerationError: If the report cannot be written.
            ReportOpenError: If the report was written but could not be opened.
        """
        package = Path(package)
        package_name = get_package_name(package)
        run = PackageRun(package_name=package_name, package_path=package)

        bind_context(package=package_name)
        try:
            self._run(run, config, ledger)
        finally:
            clear_context()
        return run

    def _record(self, config: Config, ledger: BenchmarkLedger, run: PackageRun, started: float, label: str) -> None:
        if config.bench:
            ledger.record(run.package_name, benchmark.finish(started, label))

    def _run(self, run: PackageRun, config: Config, ledger: BenchmarkLedger) -> None:
        package_name = run.package_name
        if config.bench:
            ledger.register(package_name)
        if not config.quiet:
            self.console.print()
            self.console.print(f"Starting analysis of [italic]{package_name}[/italic].")

        start_time = benchmark.start()

        for stage, method, context, label, reached in _EXTERNAL_STAGES:
            if stage == Stage.DECOMPILE and config.verbose:
                self.console.print()
                self.console.print(
                    "Now it's time for the actual decompilation of the source code. We'll "
                    "translate Android JVM bytecode to Java, so that we can check the code "
                    "afterwards."
                )
            stage_start = benchmark.start() if stage != Stage.UNPACK else start_time
            logger.debug("Running stage", stage=stage.value)
            try:
                getattr(self.stages, method)(config, run.package_path)
            except Exception as e:
                run.mark_failed(stage)
                raise StageError(
                    message=context,
                    stage=stage.value,
                    package=package_name,
                    cause=e,
                ) from e
            run.advance(reached)
            self._record(config, ledger, run, stage_start, label)

        try:
            results = Results.init(config, run.package_path)
        except Exception as e:
            run.mark_failed(Stage.ANALYZE)
            raise ResultsError(
                message="Results could not be initialized",
                context={"package": package_name},
                cause=e,
            ) from e

        static_start = benchmark.start()
        self.analyzer.analyze(config, package_name, results)
        run.advance(PipelineState.ANALYZED)
        self._record(config, ledger, run, static_start, STATIC_ANALYSIS_LABEL)

        if not config.quiet:
            self.console.print()

        report_start = benchmark.start()
        try:
            results.generate_report(config, package_name)
        except Exception as e:
            run.mark_failed(Stage.REPORT)
            target = config.package_results_folder(package_name)
            raise ReportGenerationError(
                message=(
                    "There was an error generating the results report. "
                    f"Tried to generate at: {target}"
                ),
                path=str(target),
                cause=e,
            ) from e
        run.advance(PipelineState.REPORTED)

        if config.verbose:
            self.console.print("Everything went smoothly, now you can check all the results.")
            self.console.print()

        self._record(config, ledger, run, report_start, REPORT_LABEL)
        self._record(config, ledger, run, start_time, f"Total time for {package_name}")

        if config.open_report:
            self._open_report(run, config, results)

        run.advance(PipelineState.DONE)

    def _open_report(self, run: PackageRun, config: Config, results: Results) -> None:
        open_path = results.report_path(config)
        logger.debug("Opening report", path=str(open_path))
        try:
            status = self.opener(str(open_path))
        except Exception as e:
            run.mark_failed(Stage.OPEN)
            raise ReportOpenError(
                message="Report could not be opened automatically",
                context={"path": str(open_path)},
                cause=e,
            ) from e

        if status != 0:
            run.mark_failed(Stage.OPEN)
            raise ReportOpenError(
                message=f"Report opening errored with status code: {status}",
                context={"path": str(open_path)},
                status=status,
            )
