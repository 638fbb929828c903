"""
Stage interfaces.

The pipeline only knows the stages through these interfaces, so the external
tools behind them can be swapped or faked.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.config import Config
    from ..results import Results


class StageRunner(ABC):
    """Unpack, convert and decompile stages. Each raises on failure."""

    @abstractmethod
    def decompress(self, config: Config, package: Path) -> None:
        """Extract the package into its working folder.

        Args:
            config: Run configuration. May be marked as forced for the
                remaining stages of this package.
            package: Path to the package file.
        """
        ...

    @abstractmethod
    def dex_to_jar(self, config: Config, package: Path) -> None:
        """Convert the extracted DEX bytecode into a JAR archive."""
        ...

    @abstractmethod
    def decompile(self, config: Config, package: Path) -> None:
        """Decompile the JAR archive into Java sources."""
        ...


class StaticAnalyzer(ABC):
    """Static analysis of decompiled sources."""

    @abstractmethod
    def analyze(self, config: Config, package_name: str, results: Results) -> None:
        """Inspect the decompiled package and populate ``results``.

        Problems found while analyzing are recorded with
        ``results.add_error`` instead of being raised.
        """
        ...
