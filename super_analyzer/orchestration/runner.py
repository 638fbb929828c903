"""
Run controller.

Analyzes every configured package in order. Batch processing is fail-fast:
the first package that fails aborts the whole run and the remaining
packages are never started.
"""

from __future__ import annotations

from rich.console import Console

from ..core import benchmark
from ..core.benchmark import BenchmarkLedger
from ..core.config import Config
from ..core.exceptions import PackageAnalysisError
from ..core.logging import get_logger
from ..models.package import PackageRun, get_package_name
from .pipeline import PackagePipeline

logger = get_logger(__name__)

BANNER = r"""
 ____  _   _ ____  _____ ____       _                _
/ ___|| | | |  _ \| ____|  _ \     / \   _ __   __ _| |_   _ _______ _ __
\___ \| | | | |_) |  _| | |_) |   / _ \ | '_ \ / _` | | | | |_  / _ \ '__|
 ___) | |_| |  __/| |___|  _ <   / ___ \| | | | (_| | | |_| |/ /  __/ |
|____/ \___/|_|   |_____|_| \_\ /_/   \_\_| |_|\__,_|_|\__, /___\___|_|
                                                       |___/
"""


class RunController:
    """Drives the package pipeline over every package of a configuration."""

    def __init__(self, pipeline: PackagePipeline, console: Console | None = None) -> None:
        self.pipeline = pipeline
        self.console = console or pipeline.console
        self.ledger = BenchmarkLedger()

    def run(self, config: Config) -> list[PackageRun]:
        """Analyze all packages of ``config``.

        Raises:
            PackageAnalysisError: On the first package that fails, wrapping
                the stage error.
        """
        if config.verbose:
            self._print_welcome()

        runs: list[PackageRun] = []
        total_start = benchmark.start()
        for package in config.app_packages:
            config.reset_force()
            try:
                runs.append(self.pipeline.analyze_package(package, config, self.ledger))
            except Exception as e:
                logger.debug("Package analysis failed", package=str(package))
                raise PackageAnalysisError(
                    message="Application analysis failed",
                    package=get_package_name(package),
                    cause=e,
                ) from e

        if config.bench:
            self.ledger.render(self.console, total=benchmark.finish(total_start, "Total time"))

        return runs

    def _print_welcome(self) -> None:
        self.console.print(BANNER, markup=False, highlight=False)
        self.console.print(
            "Welcome to the SUPER Android Analyzer. We will now try to audit the given application."
        )
        self.console.print("You activated the verbose mode. [bold]May Tux be with you![/bold]")
        self.console.print()
