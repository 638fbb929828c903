"""Orchestration module for SUPER Analyzer."""

from .pipeline import PackagePipeline, open_with_default_handler
from .runner import RunController

__all__ = [
    "PackagePipeline",
    "RunController",
    "open_with_default_handler",
]
