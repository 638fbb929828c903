"""Static analysis service."""

from .service import Rule, RuleAnalyzer, load_rules

__all__ = ["Rule", "RuleAnalyzer", "load_rules"]
