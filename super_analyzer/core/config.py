"""
Configuration management for SUPER Analyzer.

Configuration is layered: built-in defaults, then a TOML file (the local
``config.toml`` or, on Unix, the global ``/etc/super-analyzer/config.toml``),
then command line overrides.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from ..models.criticality import Criticality
from .exceptions import ConfigError
from .logging import get_logger

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()

logger = get_logger(__name__)

LOCAL_CONFIG_PATH = Path("config.toml")
GLOBAL_CONFIG_PATH = Path("/etc/super-analyzer/config.toml")
DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "data" / "rules.json"
DEFAULT_SOURCE = "Default built-in configuration"


class CliOverrides(BaseModel):
    """Values given on the command line. ``None`` means "not given"."""

    verbose: bool | None = None
    quiet: bool | None = None
    force: bool | None = None
    bench: bool | None = None
    open_report: bool | None = None
    html_report: bool | None = None
    min_criticality: Criticality | None = None
    downloads_folder: Path | None = None
    dist_folder: Path | None = None
    results_folder: Path | None = None
    dex2jar_folder: Path | None = None
    jd_cmd_file: Path | None = None
    rules_json: Path | None = None
    packages: list[str] = Field(default_factory=list)
    all_packages: bool = False


class Config(BaseModel):
    """Root configuration for SUPER Analyzer."""

    verbose: bool = Field(default=False, description="Print verbose progress messages")
    quiet: bool = Field(default=False, description="Print nothing but errors")
    force: bool = Field(default=False, description="Redo every stage even if its output exists")
    bench: bool = Field(default=False, description="Record and print stage benchmarks")
    open_report: bool = Field(default=False, description="Open the report once generated")
    html_report: bool = Field(default=True, description="Generate an HTML report instead of JSON")
    min_criticality: Criticality = Field(
        default=Criticality.WARNING, description="Minimum criticality reported"
    )

    downloads_folder: Path = Field(default=Path("downloads"), description="Folder holding the packages")
    dist_folder: Path = Field(default=Path("dist"), description="Working folder for extracted packages")
    results_folder: Path = Field(default=Path("results"), description="Folder where reports are written")
    dex2jar_folder: Path = Field(default=Path("vendor/dex2jar-2.1"), description="dex2jar installation")
    jd_cmd_file: Path = Field(default=Path("vendor/jd-cli.jar"), description="jd-cli JAR")
    rules_json: Path = Field(default=DEFAULT_RULES_PATH, description="Static analysis rules")

    app_packages: list[Path] = Field(default_factory=list, description="Packages to analyze")

    model_config = {"extra": "ignore", "validate_assignment": True}

    _forced: bool = PrivateAttr(default=False)
    _loaded_config_files: list[Path] = PrivateAttr(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> Config:
        """Load configuration from a TOML file on top of the defaults.

        Raises:
            ConfigError: If the file cannot be read, parsed or validated.
        """
        message = f"There was an error when reading the {path} file"
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(message=message, context={"path": str(path)}, cause=e) from e

        try:
            config = cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(message=message, context={"path": str(path)}, cause=e) from e

        config._loaded_config_files.append(path)
        return config

    @property
    def loaded_config_files(self) -> list[Path]:
        """Configuration files loaded, in order."""
        return list(self._loaded_config_files)

    def config_sources(self) -> list[str]:
        """Every configuration source consulted, in order."""
        return [DEFAULT_SOURCE, *(str(p) for p in self._loaded_config_files)]

    def decorate_with_cli(self, overrides: CliOverrides) -> None:
        """Layer command line values on top of the loaded configuration.

        Raises:
            ConfigError: If the overrides are contradictory.
        """
        if overrides.verbose and overrides.quiet:
            raise ConfigError(message="The verbose and quiet flags cannot be used together")

        for name in CliOverrides.model_fields:
            if name in ("packages", "all_packages"):
                continue
            value = getattr(overrides, name)
            if value is not None:
                setattr(self, name, value)

        if overrides.verbose:
            self.quiet = False
        if overrides.quiet:
            self.verbose = False

        if overrides.all_packages:
            self.app_packages = sorted(self.downloads_folder.glob("*.apk"))
        elif overrides.packages:
            self.app_packages = [self._resolve_package(name) for name in overrides.packages]

    def _resolve_package(self, name: str) -> Path:
        path = Path(name)
        if path.is_file():
            return path
        if path.suffix == ".apk":
            return self.downloads_folder / path.name
        return self.downloads_folder / f"{name}.apk"

    def check(self) -> list[str]:
        """Validate the configuration.

        Returns:
            Human-readable error messages; empty when the configuration is valid.
        """
        errors: list[str] = []
        if self.verbose and self.quiet:
            errors.append("Verbose and quiet modes cannot be enabled at the same time")
        if not self.app_packages:
            errors.append("No package to analyze was given")
        for package in self.app_packages:
            if not package.is_file():
                errors.append(f"The package `{package}` does not exist")
        if not self.dex2jar_folder.is_dir():
            errors.append(f"The dex2jar folder `{self.dex2jar_folder}` does not exist")
        if not self.jd_cmd_file.is_file():
            errors.append(f"The jd-cli file `{self.jd_cmd_file}` does not exist")
        if not self.rules_json.is_file():
            errors.append(f"The rules file `{self.rules_json}` does not exist")
        return errors

    def is_force(self) -> bool:
        """Whether stages must redo their work for the current package."""
        return self.force or self._forced

    def set_force(self) -> None:
        """Force the remaining stages of the current package."""
        self._forced = True

    def reset_force(self) -> None:
        """Clear the per-package force override."""
        self._forced = False

    def has_to_generate_html(self) -> bool:
        return self.html_report

    def package_dist_folder(self, package_name: str) -> Path:
        return self.dist_folder / package_name

    def package_results_folder(self, package_name: str) -> Path:
        return self.results_folder / package_name


def initialize_config(
    overrides: CliOverrides,
    local_path: Path = LOCAL_CONFIG_PATH,
    global_path: Path = GLOBAL_CONFIG_PATH,
) -> Config:
    """Load the configuration file and apply command line overrides.

    On Unix, the global file is used only when the local one does not exist.
    Without any file, the built-in defaults are used.
    """
    if os.name == "posix" and not local_path.exists() and global_path.exists():
        config = Config.from_file(global_path)
    elif local_path.exists():
        config = Config.from_file(local_path)
    else:
        logger.warning("Config file not found. Using default configuration")
        config = Config()

    try:
        config.decorate_with_cli(overrides)
    except ConfigError as e:
        raise ConfigError(
            message="There was an error reading config from CLI",
            cause=e,
        ) from e

    return config


def format_config_errors(config: Config, errors: list[str]) -> str:
    """Build the message shown when the configuration check fails."""
    lines = ["Configuration errors were found:", *errors]
    lines.append("The configuration was loaded, in order, from the following files:")
    lines.extend(f"\t- {source}" for source in config.config_sources())
    return "\n".join(lines)
