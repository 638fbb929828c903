"""Data models for SUPER Analyzer."""

from .criticality import Criticality
from .package import PackageRun, PipelineState, Stage, get_package_name
from .results import Report, Vulnerability

__all__ = [
    "Criticality",
    "PackageRun",
    "PipelineState",
    "Stage",
    "get_package_name",
    "Report",
    "Vulnerability",
]
