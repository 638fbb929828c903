"""
Static Analysis Service.

Matches regex rules against the decompiled Java sources of a package. Every
problem met while analyzing (unreadable rules, invalid regex, unreadable
source file) is recorded in the results instead of stopping the pipeline.
"""

from __future__ import annotations

import re
import time
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ...core.config import Config
from ...core.logging import get_logger
from ...models.criticality import Criticality
from ...models.results import Vulnerability
from ..results import Results
from ..stages.interface import StaticAnalyzer
from ..stages.service import SOURCES_FOLDER

logger = get_logger(__name__)


class Rule(BaseModel):
    """A source code rule."""

    label: str = Field(description="Short name of the vulnerability")
    description: str = Field(default="", description="What the vulnerability means")
    criticality: Criticality
    regex: str = Field(description="Pattern matched against the source code")
    include_file_regex: str | None = Field(
        default=None, description="Only check files whose relative path matches"
    )


_RULES_ADAPTER = TypeAdapter(list[Rule])


def load_rules(path: Path) -> list[Rule]:
    """Load rules from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        pydantic.ValidationError: If the content is not a valid rule list.
    """
    return _RULES_ADAPTER.validate_json(path.read_bytes())


class _CompiledRule:
    def __init__(self, rule: Rule) -> None:
        self.rule = rule
        self.pattern = re.compile(rule.regex)
        self.include = re.compile(rule.include_file_regex) if rule.include_file_regex else None

    def applies_to(self, relative_path: str) -> bool:
        return self.include is None or self.include.search(relative_path) is not None


class RuleAnalyzer(StaticAnalyzer):
    """Regex rule matcher over decompiled sources."""

    def _compile(self, config: Config, results: Results) -> list[_CompiledRule]:
        try:
            rules = load_rules(config.rules_json)
        except (OSError, PydanticValidationError) as e:
            results.add_error(f"The rules file {config.rules_json} could not be loaded: {e}")
            return []

        compiled: list[_CompiledRule] = []
        for rule in rules:
            if rule.criticality < config.min_criticality:
                continue
            try:
                compiled.append(_CompiledRule(rule))
            except re.error as e:
                results.add_error(f"Invalid regex in rule `{rule.label}`: {e}")
        return compiled

    def analyze(self, config: Config, package_name: str, results: Results) -> None:
        started = time.perf_counter()
        rules = self._compile(config, results)
        if not rules:
            return

        source_root = config.package_dist_folder(package_name) / SOURCES_FOLDER
        if not source_root.is_dir():
            results.add_error(f"No decompiled sources found at {source_root}")
            return

        files = sorted(source_root.rglob("*.java"))
        found = 0
        for path in files:
            relative = path.relative_to(source_root)
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                results.add_error(f"The file {relative} could not be read: {e}")
                continue

            lines = text.split("\n")
            for compiled in rules:
                if not compiled.applies_to(relative.as_posix()):
                    continue
                for match in compiled.pattern.finditer(text):
                    line = text.count("\n", 0, match.start()) + 1
                    results.add_vulnerability(
                        Vulnerability(
                            criticality=compiled.rule.criticality,
                            name=compiled.rule.label,
                            description=compiled.rule.description,
                            file=relative,
                            line=line,
                            code=lines[line - 1].strip(),
                        )
                    )
                    found += 1

        logger.info(
            "Static analysis finished",
            package=package_name,
            files=len(files),
            vulnerabilities=found,
            seconds=round(time.perf_counter() - started, 3),
        )
