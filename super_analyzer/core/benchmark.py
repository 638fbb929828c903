"""
Benchmark recording.

Benchmarks are named wall-clock measurements of pipeline stages. They are
gathered per package in a BenchmarkLedger owned by the run controller and
only read once, to print the summary at the end of a run.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import timedelta

from rich.console import Console
from rich.table import Table


@dataclass(frozen=True)
class Benchmark:
    """A named elapsed-time measurement."""

    label: str
    duration: timedelta

    @property
    def seconds(self) -> float:
        return self.duration.total_seconds()

    def __str__(self) -> str:
        return f"{self.label}: {self.seconds:.3f}s"


def start() -> float:
    """Return a timestamp to measure from."""
    return time.perf_counter()


def finish(started: float, label: str) -> Benchmark:
    """Build a benchmark with the time elapsed since ``started``."""
    return Benchmark(label=label, duration=timedelta(seconds=time.perf_counter() - started))


class BenchmarkLedger:
    """Benchmarks of every analyzed package, in package insertion order."""

    def __init__(self) -> None:
        self._entries: dict[str, list[Benchmark]] = {}

    def register(self, package_name: str) -> None:
        """Start an empty benchmark list for ``package_name``."""
        self._entries[package_name] = []

    def record(self, package_name: str, benchmark: Benchmark) -> None:
        """Append a benchmark to a registered package."""
        self._entries[package_name].append(benchmark)

    def get(self, package_name: str) -> list[Benchmark]:
        return list(self._entries.get(package_name, []))

    def __contains__(self, package_name: object) -> bool:
        return package_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str, list[Benchmark]]]:
        for package_name, benchmarks in self._entries.items():
            yield package_name, list(benchmarks)

    def render(self, console: Console, total: Benchmark | None = None) -> None:
        """Print the benchmarks of every package, then the total time."""
        console.print()
        console.print("[bold]Benchmarks:[/bold]")
        for package_name, benchmarks in self:
            table = Table(title=f"[italic]{package_name}[/italic]", title_justify="left")
            table.add_column("Stage", style="cyan")
            table.add_column("Duration", justify="right", style="green")
            for bench in benchmarks:
                table.add_row(bench.label, f"{bench.seconds:.3f}s")
            console.print(table)
            console.print()
        if total is not None:
            console.print(str(total))
