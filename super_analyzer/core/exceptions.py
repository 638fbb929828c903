"""
Custom exception hierarchy for SUPER Analyzer.

All exceptions inherit from AnalyzerError so the CLI can print a single,
linear causation chain and map it to a process exit code. Each exception
keeps the error it wraps in ``cause`` (and in ``__cause__`` when raised
with ``raise ... from``).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

GENERIC_EXIT_CODE = 1


@dataclass
class AnalyzerError(Exception):
    """Base exception for all SUPER Analyzer errors."""

    exit_code: ClassVar[int] = GENERIC_EXIT_CODE

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: BaseException | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class PackageAnalysisError(AnalyzerError):
    """Raised by the run controller when one package could not be analyzed."""

    package: str = ""


@dataclass
class ConfigError(AnalyzerError):
    """Raised when the configuration is invalid or could not be loaded."""

    exit_code: ClassVar[int] = 10

    errors: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)


@dataclass
class ParseError(AnalyzerError, ValueError):
    """Raised when a criticality could not be parsed.

    Also a ValueError so pydantic validators report it as a validation error.
    """

    exit_code: ClassVar[int] = 20

    value: Any = None


@dataclass
class StageError(AnalyzerError):
    """Raised when one of the external pipeline stages fails."""

    exit_code: ClassVar[int] = 30

    stage: str = ""
    package: str = ""


@dataclass
class InvalidPackageError(AnalyzerError):
    """Raised when a package file is not a valid application archive."""

    exit_code: ClassVar[int] = 32

    package: str = ""

    def __str__(self) -> str:
        return f"Invalid package {self.package}: {self.message}" if self.package else self.message


@dataclass
class ToolError(AnalyzerError):
    """Raised when an external tool exits with a non-zero status."""

    exit_code: ClassVar[int] = 31

    command: list[str] = field(default_factory=list)
    returncode: int = 0
    stderr: str = ""

    def __str__(self) -> str:
        tail = f": {self.stderr.strip()}" if self.stderr.strip() else ""
        return f"{self.message} (exit status {self.returncode}){tail}"


@dataclass
class ToolNotFoundError(AnalyzerError):
    """Raised when a required external tool is not available."""

    exit_code: ClassVar[int] = 31

    tool_name: str = ""
    expected_path: str = ""
    install_hint: str = ""

    def __str__(self) -> str:
        hint = f" Install hint: {self.install_hint}" if self.install_hint else ""
        return f"Tool '{self.tool_name}' not found at '{self.expected_path}'.{hint}"


@dataclass
class ResultsError(AnalyzerError):
    """Raised when the results accumulator could not be initialized."""

    exit_code: ClassVar[int] = 40


@dataclass
class ReportGenerationError(AnalyzerError):
    """Raised when the report could not be written."""

    exit_code: ClassVar[int] = 50

    path: str = ""


@dataclass
class ReportOpenError(AnalyzerError):
    """Raised when the generated report could not be opened."""

    exit_code: ClassVar[int] = 60

    status: int | None = None


def iter_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield the causation chain of ``error``, top-level error first."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if isinstance(current, AnalyzerError) and current.cause is not None:
            current = current.cause
        elif current.__cause__ is not None or current.__suppress_context__:
            current = current.__cause__
        else:
            current = current.__context__


def exit_code_for(error: BaseException) -> int:
    """Return the exit code of the most specific classified error in the chain."""
    for link in iter_chain(error):
        if isinstance(link, AnalyzerError) and link.exit_code != GENERIC_EXIT_CODE:
            return link.exit_code
    return GENERIC_EXIT_CODE
