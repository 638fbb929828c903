"""Test configuration for SUPER Analyzer."""

import io
import tempfile
import zipfile
from pathlib import Path

import pytest
from rich.console import Console

from super_analyzer.core.config import Config
from super_analyzer.models.criticality import Criticality
from super_analyzer.models.results import Vulnerability
from super_analyzer.services.stages import StageRunner, StaticAnalyzer


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_apk_bytes():
    """Create minimal valid APK-like bytes for testing.

    Returns:
        bytes: A ZIP archive with an AndroidManifest.xml and a classes.dex.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("AndroidManifest.xml", b'<?xml version="1.0"?><manifest/>')
        zf.writestr("classes.dex", b"dex\n035\x00")
    return buffer.getvalue()


@pytest.fixture
def sample_apk(temp_dir, sample_apk_bytes):
    """Create a sample APK file in the downloads folder."""
    downloads = temp_dir / "downloads"
    downloads.mkdir()
    apk_path = downloads / "sample.apk"
    apk_path.write_bytes(sample_apk_bytes)
    return apk_path


@pytest.fixture
def config(temp_dir):
    """Configuration writing everything inside the temporary directory."""
    return Config(
        downloads_folder=temp_dir / "downloads",
        dist_folder=temp_dir / "dist",
        results_folder=temp_dir / "results",
        html_report=False,
        quiet=True,
    )


@pytest.fixture
def quiet_console():
    """A console whose output is kept in memory."""
    return Console(file=io.StringIO(), width=120, color_system=None)


class FakeStages(StageRunner):
    """Stage runner recording calls instead of running external tools.

    ``failures`` maps ``(package_name, method)`` to the exception to raise.
    ``force_observed`` records ``config.is_force()`` at decompression time.
    """

    def __init__(self, failures=None, set_force_on=()):
        self.calls = []
        self.failures = failures or {}
        self.set_force_on = set(set_force_on)
        self.force_observed = {}

    def _call(self, method, config, package):
        name = Path(package).stem
        self.calls.append((name, method))
        error = self.failures.get((name, method))
        if error is not None:
            raise error

    def decompress(self, config, package):
        name = Path(package).stem
        self.force_observed[name] = config.is_force()
        self._call("decompress", config, package)
        if name in self.set_force_on:
            config.set_force()

    def dex_to_jar(self, config, package):
        self._call("dex_to_jar", config, package)

    def decompile(self, config, package):
        self._call("decompile", config, package)


class FakeAnalyzer(StaticAnalyzer):
    """Analyzer adding one finding per package."""

    def __init__(self):
        self.analyzed = []

    def analyze(self, config, package_name, results):
        self.analyzed.append(package_name)
        results.add_vulnerability(
            Vulnerability(criticality=Criticality.HIGH, name="Fake finding", description="fake")
        )


@pytest.fixture
def fake_stages():
    return FakeStages()


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()


@pytest.fixture
def make_stages():
    """Factory building stage runners with scripted failures."""
    return FakeStages
