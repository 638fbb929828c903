"""
SUPER Analyzer CLI.

Command-line interface for auditing Android application packages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

from .core.config import CliOverrides, Config, format_config_errors, initialize_config
from .core.exceptions import AnalyzerError, ConfigError, exit_code_for, iter_chain
from .core.logging import LogSettings, get_logger, setup_logging
from .models.criticality import Criticality

app = typer.Typer(
    name="super-analyzer",
    help="Secure, Unified, Powerful and Extensible Android Analyzer",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from . import __version__
        console.print(f"SUPER Analyzer v{__version__}")
        raise typer.Exit()


def report_error(error: BaseException, debug_enabled: bool) -> int:
    """Print an error with its causation chain and return the exit code.

    The traceback is printed whenever the error carries one. The hint about
    the ``-v`` flag is printed unless debug output is already enabled.
    """
    logger.error(str(error))

    for link in list(iter_chain(error))[1:]:
        console.print(f"\t[bold]Caused by: [/bold]{escape(str(link))}")

    if error.__traceback__ is not None:
        console.print(Traceback.from_exception(type(error), error, error.__traceback__))
    if not debug_enabled:
        console.print(
            "If you need more information, try to run the program again with the [bold]-v[/bold] flag."
        )

    return exit_code_for(error)


def load_checked_config(overrides: CliOverrides) -> Config:
    """Load the configuration and validate it.

    Raises:
        ConfigError: If loading fails or the configuration is not valid.
    """
    config = initialize_config(overrides)
    errors = config.check()
    if errors:
        raise ConfigError(
            message=format_config_errors(config, errors),
            errors=errors,
            sources=config.config_sources(),
        )
    return config


def run_analysis(config: Config) -> None:
    """Analyze every configured package with the external tool stages."""
    from .orchestration import PackagePipeline, RunController
    from .services.stages import ExternalToolStages
    from .services.static_analysis import RuleAnalyzer

    pipeline = PackagePipeline(ExternalToolStages(), RuleAnalyzer(), console=console)
    RunController(pipeline, console=console).run(config)


@app.command()
def analyze(
    packages: Optional[list[str]] = typer.Argument(
        None,
        help="Packages to analyze: APK paths, or names of APKs in the downloads folder",
    ),
    all_packages: bool = typer.Option(
        False, "--all", help="Analyze every APK in the downloads folder"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print detailed progress"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors"),
    force: bool = typer.Option(False, "--force", help="Redo every stage even if its output exists"),
    bench: bool = typer.Option(False, "--bench", help="Print stage benchmarks"),
    open_report: bool = typer.Option(False, "--open", help="Open the report once generated"),
    html_report: Optional[bool] = typer.Option(
        None, "--html/--json", help="Generate an HTML or a JSON report"
    ),
    min_criticality: Optional[str] = typer.Option(
        None,
        "--min-criticality",
        help="Minimum criticality reported: warning, low, medium, high or critical",
    ),
    downloads_folder: Optional[Path] = typer.Option(None, "--downloads", help="Folder holding the APKs"),
    dist_folder: Optional[Path] = typer.Option(None, "--dist", help="Working folder for extracted APKs"),
    results_folder: Optional[Path] = typer.Option(None, "--results", help="Folder for the reports"),
    dex2jar_folder: Optional[Path] = typer.Option(None, "--dex2jar", help="dex2jar installation folder"),
    jd_cmd_file: Optional[Path] = typer.Option(None, "--jd-cli", help="jd-cli JAR file"),
    rules_json: Optional[Path] = typer.Option(None, "--rules", help="Static analysis rules file"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Audit Android applications for security vulnerabilities."""
    settings = LogSettings.from_env(verbose=verbose)
    setup_logging(settings)

    try:
        overrides = CliOverrides(
            verbose=verbose or None,
            quiet=quiet or None,
            force=force or None,
            bench=bench or None,
            open_report=open_report or None,
            html_report=html_report,
            min_criticality=Criticality.parse(min_criticality) if min_criticality else None,
            downloads_folder=downloads_folder,
            dist_folder=dist_folder,
            results_folder=results_folder,
            dex2jar_folder=dex2jar_folder,
            jd_cmd_file=jd_cmd_file,
            rules_json=rules_json,
            packages=packages or [],
            all_packages=all_packages,
        )
        config = load_checked_config(overrides)
        run_analysis(config)
    except AnalyzerError as e:
        raise typer.Exit(report_error(e, settings.debug_enabled)) from e


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
