"""Core infrastructure components for SUPER Analyzer.

Configuration lives in ``super_analyzer.core.config`` and is imported from
there, since it depends on the models package.
"""

from .benchmark import Benchmark, BenchmarkLedger
from .exceptions import (
    AnalyzerError,
    ConfigError,
    PackageAnalysisError,
    ParseError,
    ReportGenerationError,
    ReportOpenError,
    ResultsError,
    StageError,
    exit_code_for,
    iter_chain,
)
from .logging import LogSettings, get_logger, setup_logging

__all__ = [
    "Benchmark",
    "BenchmarkLedger",
    "AnalyzerError",
    "ConfigError",
    "PackageAnalysisError",
    "ParseError",
    "ReportGenerationError",
    "ReportOpenError",
    "ResultsError",
    "StageError",
    "exit_code_for",
    "iter_chain",
    "LogSettings",
    "get_logger",
    "setup_logging",
]
