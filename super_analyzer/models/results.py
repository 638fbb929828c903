"""
Report data models.

These models are what gets persisted in ``results.json``. Criticalities are
serialized as their lowercase names.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from .criticality import Criticality


class Vulnerability(BaseModel):
    """A finding reported by the static analysis."""

    criticality: Criticality
    name: str = Field(description="Rule label")
    description: str = Field(default="")
    file: Path | None = Field(default=None, description="File relative to the decompiled sources")
    line: int | None = Field(default=None, ge=1)
    code: str | None = Field(default=None, description="Matched source line")


class Report(BaseModel):
    """Content of the JSON report of one package."""

    app_package: str
    generated_at: datetime = Field(default_factory=datetime.now)
    total_vulnerabilities: int = 0
    counts: dict[str, int] = Field(default_factory=dict)
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
