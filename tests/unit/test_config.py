"""Unit tests for configuration loading."""

import os
from pathlib import Path

import pytest

from super_analyzer.core.config import (
    DEFAULT_RULES_PATH,
    DEFAULT_SOURCE,
    CliOverrides,
    Config,
    format_config_errors,
    initialize_config,
)
from super_analyzer.core.exceptions import ConfigError
from super_analyzer.models.criticality import Criticality


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(
        'verbose = true\nmin_criticality = "medium"\nresults_folder = "out"\nunknown_key = 1\n'
    )
    return path


@pytest.fixture
def ready_config(config, temp_dir, sample_apk):
    """Configuration that passes every check."""
    dex2jar = temp_dir / "dex2jar"
    dex2jar.mkdir()
    jd_cli = temp_dir / "jd-cli.jar"
    jd_cli.write_bytes(b"jar")
    config.dex2jar_folder = dex2jar
    config.jd_cmd_file = jd_cli
    config.app_packages = [sample_apk]
    return config


class TestDefaults:
    """Tests for the built-in configuration."""

    def test_defaults(self):
        """Test the default values."""
        config = Config()

        assert config.html_report
        assert not config.force
        assert config.min_criticality == Criticality.WARNING
        assert config.results_folder == Path("results")
        assert config.rules_json == DEFAULT_RULES_PATH
        assert config.app_packages == []
        assert config.config_sources() == [DEFAULT_SOURCE]

    def test_package_folders(self, config):
        """Test the per-package folders."""
        assert config.package_dist_folder("app") == config.dist_folder / "app"
        assert config.package_results_folder("app") == config.results_folder / "app"


class TestFromFile:
    """Tests for Config.from_file."""

    def test_loads_values(self, config_file):
        """Test values read from TOML, unknown keys being ignored."""
        config = Config.from_file(config_file)

        assert config.verbose
        assert config.min_criticality == Criticality.MEDIUM
        assert config.results_folder == Path("out")
        assert config.loaded_config_files == [config_file]
        assert config.config_sources() == [DEFAULT_SOURCE, str(config_file)]

    def test_invalid_toml(self, temp_dir):
        """Test that a malformed file raises ConfigError."""
        path = temp_dir / "config.toml"
        path.write_text("verbose = \n")

        with pytest.raises(ConfigError) as exc_info:
            Config.from_file(path)
        assert str(exc_info.value) == f"There was an error when reading the {path} file"
        assert exc_info.value.cause is not None

    def test_invalid_criticality(self, temp_dir):
        """Test that a non-string criticality is rejected."""
        path = temp_dir / "config.toml"
        path.write_text("min_criticality = 3\n")

        with pytest.raises(ConfigError):
            Config.from_file(path)

    def test_unknown_criticality(self, temp_dir):
        """Test that an unknown criticality name is rejected."""
        path = temp_dir / "config.toml"
        path.write_text('min_criticality = "severe"\n')

        with pytest.raises(ConfigError):
            Config.from_file(path)


class TestInitializeConfig:
    """Tests for initialize_config."""

    def test_local_file(self, config_file, temp_dir):
        """Test that the local file is used when present."""
        config = initialize_config(
            CliOverrides(), local_path=config_file, global_path=temp_dir / "global.toml"
        )
        assert config.loaded_config_files == [config_file]

    @pytest.mark.skipif(os.name != "posix", reason="global configuration is Unix only")
    def test_global_file_when_no_local(self, config_file, temp_dir):
        """Test that the global file is used when the local one is missing."""
        config = initialize_config(
            CliOverrides(), local_path=temp_dir / "missing.toml", global_path=config_file
        )
        assert config.loaded_config_files == [config_file]

    @pytest.mark.skipif(os.name != "posix", reason="global configuration is Unix only")
    def test_local_file_wins(self, config_file, temp_dir):
        """Test that the global file is ignored when a local one exists."""
        global_file = temp_dir / "global.toml"
        global_file.write_text("bench = true\n")

        config = initialize_config(CliOverrides(), local_path=config_file, global_path=global_file)

        assert config.loaded_config_files == [config_file]
        assert not config.bench

    def test_defaults_without_file(self, temp_dir):
        """Test that defaults are used without any file."""
        config = initialize_config(
            CliOverrides(),
            local_path=temp_dir / "missing.toml",
            global_path=temp_dir / "missing-global.toml",
        )
        assert config.loaded_config_files == []

    def test_cli_overrides_file(self, config_file, temp_dir):
        """Test that command line values win over the file."""
        overrides = CliOverrides(quiet=True, min_criticality=Criticality.HIGH)

        config = initialize_config(
            overrides, local_path=config_file, global_path=temp_dir / "global.toml"
        )

        assert config.quiet
        assert not config.verbose
        assert config.min_criticality == Criticality.HIGH

    def test_contradictory_cli(self, temp_dir):
        """Test that verbose and quiet together are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            initialize_config(
                CliOverrides(verbose=True, quiet=True),
                local_path=temp_dir / "missing.toml",
                global_path=temp_dir / "missing-global.toml",
            )

        assert str(exc_info.value) == "There was an error reading config from CLI"
        assert isinstance(exc_info.value.cause, ConfigError)


class TestDecorateWithCli:
    """Tests for package selection from the command line."""

    def test_package_names(self, config, sample_apk):
        """Test that names resolve inside the downloads folder."""
        config.decorate_with_cli(CliOverrides(packages=["sample", "other.apk"]))

        assert config.app_packages == [
            config.downloads_folder / "sample.apk",
            config.downloads_folder / "other.apk",
        ]

    def test_package_paths(self, config, sample_apk):
        """Test that existing files are used as given."""
        config.decorate_with_cli(CliOverrides(packages=[str(sample_apk)]))
        assert config.app_packages == [sample_apk]

    def test_all_packages(self, config, sample_apk):
        """Test that --all selects every APK of the downloads folder."""
        (config.downloads_folder / "another.apk").write_bytes(b"")
        (config.downloads_folder / "notes.txt").write_text("")

        config.decorate_with_cli(CliOverrides(all_packages=True, packages=["ignored"]))

        assert [p.name for p in config.app_packages] == ["another.apk", "sample.apk"]

    def test_unset_overrides_keep_values(self, config):
        """Test that options not given keep the loaded values."""
        config.bench = True
        config.decorate_with_cli(CliOverrides(force=True))

        assert config.bench
        assert config.force


class TestCheck:
    """Tests for Config.check."""

    def test_valid(self, ready_config):
        """Test a configuration without errors."""
        assert ready_config.check() == []

    def test_no_packages(self, ready_config):
        """Test that an empty package list is an error."""
        ready_config.app_packages = []
        assert ready_config.check() == ["No package to analyze was given"]

    def test_missing_paths(self, ready_config, temp_dir):
        """Test that every missing path is listed."""
        ready_config.app_packages = [temp_dir / "missing.apk"]
        ready_config.dex2jar_folder = temp_dir / "nope"
        ready_config.jd_cmd_file = temp_dir / "nope.jar"
        ready_config.rules_json = temp_dir / "nope.json"

        errors = ready_config.check()

        assert len(errors) == 4
        assert errors[0] == f"The package `{temp_dir / 'missing.apk'}` does not exist"

    def test_verbose_and_quiet(self, ready_config):
        """Test that both output modes together are an error."""
        ready_config.verbose = True
        ready_config.quiet = True
        assert ready_config.check() == ["Verbose and quiet modes cannot be enabled at the same time"]

    def test_format_errors(self, config_file):
        """Test the message listing errors and configuration sources."""
        config = Config.from_file(config_file)

        message = format_config_errors(config, ["first", "second"])

        assert message.splitlines() == [
            "Configuration errors were found:",
            "first",
            "second",
            "The configuration was loaded, in order, from the following files:",
            f"\t- {DEFAULT_SOURCE}",
            f"\t- {config_file}",
        ]


class TestForce:
    """Tests for the per-package force override."""

    def test_override(self, config):
        """Test setting and clearing the override."""
        assert not config.is_force()
        config.set_force()
        assert config.is_force()
        config.reset_force()
        assert not config.is_force()

    def test_user_force_survives_reset(self, config):
        """Test that reset does not clear the user's force flag."""
        config.force = True
        config.reset_force()
        assert config.is_force()
