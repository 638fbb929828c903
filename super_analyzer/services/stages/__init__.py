"""Pipeline stages: interfaces and the external tool implementation."""

from .interface import StageRunner, StaticAnalyzer
from .service import ExternalToolStages

__all__ = ["StageRunner", "StaticAnalyzer", "ExternalToolStages"]
