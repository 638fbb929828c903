"""
Per-package run tracking.

A PackageRun follows one package through the pipeline states, ending either
in DONE or in FAILED with the stage that failed.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class PipelineState(str, Enum):
    """State of a package in the pipeline."""

    START = "start"
    UNPACKED = "unpacked"
    CONVERTED = "converted"
    DECOMPILED = "decompiled"
    ANALYZED = "analyzed"
    REPORTED = "reported"
    DONE = "done"
    FAILED = "failed"


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    UNPACK = "unpack"
    CONVERT = "convert"
    DECOMPILE = "decompile"
    ANALYZE = "analyze"
    REPORT = "report"
    OPEN = "open"


class PackageRun(BaseModel):
    """Progress of one package through the pipeline."""

    package_name: str = Field(description="Package identifier derived from the file name")
    package_path: Path = Field(description="Path of the analyzed package")
    state: PipelineState = Field(default=PipelineState.START)
    failed_stage: Stage | None = Field(default=None)
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = Field(default=None)

    def advance(self, state: PipelineState) -> None:
        self.state = state
        if state == PipelineState.DONE:
            self.completed_at = datetime.now()

    def mark_failed(self, stage: Stage) -> None:
        """Move to the absorbing FAILED state."""
        self.state = PipelineState.FAILED
        self.failed_stage = stage
        self.completed_at = datetime.now()

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE


def get_package_name(package: str | Path) -> str:
    """Name of a package, taken from its file name without extension."""
    return Path(package).stem
