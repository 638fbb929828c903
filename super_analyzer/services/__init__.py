"""Services package for SUPER Analyzer."""

from .results import Results
from .stages import ExternalToolStages, StageRunner, StaticAnalyzer
from .static_analysis import RuleAnalyzer

__all__ = [
    "Results",
    "ExternalToolStages",
    "StageRunner",
    "StaticAnalyzer",
    "RuleAnalyzer",
]
