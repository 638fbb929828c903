"""Unit tests for the regex rule analyzer."""

import json
import re

import pytest

from super_analyzer.core.config import DEFAULT_RULES_PATH
from super_analyzer.models.criticality import Criticality
from super_analyzer.services.results import Results
from super_analyzer.services.static_analysis import Rule, RuleAnalyzer, load_rules

MAIN_JAVA = """package com.example;

import java.security.MessageDigest;

public class Main {
    public void run() throws Exception {
        MessageDigest md = MessageDigest.getInstance("MD5");
        Log.d("TAG", "password");
    }
}
"""

HELPER_JAVA = """package com.test;

public class Helper {
    void foo() {}
}
"""


@pytest.fixture
def rules_file(temp_dir):
    """A rules file with one rule per criticality of interest."""
    rules = [
        {
            "label": "Weak hash",
            "description": "MD5 is broken",
            "criticality": "high",
            "regex": r'MessageDigest\.getInstance\("MD5"\)',
        },
        {
            "label": "Debug log",
            "criticality": "low",
            "regex": r"Log\.d\(",
        },
        {
            "label": "Test helper",
            "criticality": "medium",
            "regex": r"void foo\(",
            "include_file_regex": r"^com/test/",
        },
    ]
    path = temp_dir / "rules.json"
    path.write_text(json.dumps(rules))
    return path


@pytest.fixture
def sources(config):
    """Decompiled sources of the ``sample`` package."""
    root = config.package_dist_folder("sample") / "classes"
    (root / "com" / "example").mkdir(parents=True)
    (root / "com" / "test").mkdir(parents=True)
    (root / "com" / "example" / "Main.java").write_text(MAIN_JAVA)
    (root / "com" / "test" / "Helper.java").write_text(HELPER_JAVA)
    return root


class TestLoadRules:
    """Tests for rule loading."""

    def test_bundled_rules(self):
        """Test that the bundled rules load and compile."""
        rules = load_rules(DEFAULT_RULES_PATH)

        assert rules
        assert all(isinstance(rule, Rule) for rule in rules)
        for rule in rules:
            re.compile(rule.regex)

    def test_criticality_parsed(self, rules_file):
        """Test that criticalities are read from their names."""
        rules = load_rules(rules_file)
        assert [rule.criticality for rule in rules] == [
            Criticality.HIGH,
            Criticality.LOW,
            Criticality.MEDIUM,
        ]


class TestRuleAnalyzer:
    """Tests for RuleAnalyzer.analyze."""

    def test_finds_vulnerabilities(self, config, rules_file, sources):
        """Test matches with their file, line and code."""
        config.rules_json = rules_file
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        found = {(v.name, v.file.as_posix(), v.line) for v in results.vulnerabilities}
        assert found == {
            ("Weak hash", "com/example/Main.java", 7),
            ("Debug log", "com/example/Main.java", 8),
            ("Test helper", "com/test/Helper.java", 4),
        }
        weak_hash = results.vulnerabilities[0]
        assert weak_hash.criticality == Criticality.HIGH
        assert weak_hash.code == 'MessageDigest md = MessageDigest.getInstance("MD5");'
        assert results.errors == []

    def test_include_file_regex(self, config, rules_file, sources):
        """Test that rules limited to some files skip the others."""
        (sources / "com" / "example" / "Other.java").write_text("void foo() {}\n")
        config.rules_json = rules_file
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        helper_files = [v.file.as_posix() for v in results.vulnerabilities if v.name == "Test helper"]
        assert helper_files == ["com/test/Helper.java"]

    def test_min_criticality(self, config, rules_file, sources):
        """Test that rules below the minimum criticality are not run."""
        config.rules_json = rules_file
        config.min_criticality = Criticality.MEDIUM
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        assert sorted(v.name for v in results.vulnerabilities) == ["Test helper", "Weak hash"]

    def test_invalid_regex_is_recorded(self, config, temp_dir, sources):
        """Test that a rule with an invalid regex is reported and skipped."""
        path = temp_dir / "broken_rules.json"
        path.write_text(
            json.dumps(
                [
                    {"label": "Broken", "criticality": "high", "regex": "(unclosed"},
                    {"label": "Debug log", "criticality": "low", "regex": r"Log\.d\("},
                ]
            )
        )
        config.rules_json = path
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        assert [v.name for v in results.vulnerabilities] == ["Debug log"]
        assert len(results.errors) == 1
        assert "Invalid regex in rule `Broken`" in results.errors[0]

    def test_unreadable_rules_file(self, config, temp_dir, sources):
        """Test that a malformed rules file is recorded, not raised."""
        path = temp_dir / "rules.json"
        path.write_text('{"not": "a list"}')
        config.rules_json = path
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        assert results.vulnerabilities == []
        assert "could not be loaded" in results.errors[0]

    def test_missing_sources(self, config, rules_file):
        """Test that missing decompiled sources are recorded."""
        config.rules_json = rules_file
        results = Results("sample")

        RuleAnalyzer().analyze(config, "sample", results)

        assert results.vulnerabilities == []
        assert results.errors[0].startswith("No decompiled sources found at")
