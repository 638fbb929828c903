"""
External tool stages.

Runs apktool, dex2jar and jd-cli to turn an APK into Java sources under
``<dist>/<package>``. Each stage is skipped when its output already exists,
unless the run is forced. A stage that does work forces the remaining stages
of the same package.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import zipfile
from pathlib import Path

from ...core.config import Config
from ...core.exceptions import InvalidPackageError, ToolError, ToolNotFoundError
from ...core.logging import get_logger
from ...models.package import get_package_name
from .interface import StageRunner

logger = get_logger(__name__)

MANIFEST_NAME = "AndroidManifest.xml"
JAR_NAME = "classes.jar"
SOURCES_FOLDER = "classes"


class ExternalToolStages(StageRunner):
    """Stages backed by external command line tools."""

    def _find_tool(self, tool_name: str) -> Path:
        """Find a tool in PATH."""
        tool_path = shutil.which(tool_name)
        if tool_path:
            return Path(tool_path)

        raise ToolNotFoundError(
            message=f"Tool not found: {tool_name}",
            tool_name=tool_name,
            expected_path="PATH",
            install_hint=f"Install {tool_name} and add it to PATH",
        )

    def _run_command(self, cmd: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
        """Run a command to completion, raising on a non-zero exit status."""
        logger.debug("Running command", command=" ".join(cmd), cwd=str(cwd) if cwd else None)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(
                message=f"Tool not found: {cmd[0]}",
                tool_name=Path(cmd[0]).name,
                expected_path=cmd[0],
                cause=e,
            ) from e

        if result.returncode != 0:
            raise ToolError(
                message=f"{Path(cmd[0]).name} failed",
                command=cmd,
                returncode=result.returncode,
                stderr=result.stderr[-500:] if result.stderr else "",
            )

        logger.debug("Command completed", command=Path(cmd[0]).name)
        return result

    def _validate_apk(self, apk_path: Path) -> None:
        """Check that the file is a ZIP archive with a manifest and DEX files.

        Raises:
            InvalidPackageError: If the package is missing or malformed.
        """
        if not apk_path.is_file():
            raise InvalidPackageError(message="file not found", package=str(apk_path))

        try:
            with zipfile.ZipFile(apk_path, "r") as zf:
                names = zf.namelist()
        except zipfile.BadZipFile as e:
            raise InvalidPackageError(
                message="not a valid ZIP archive", package=str(apk_path), cause=e
            ) from e

        if MANIFEST_NAME not in names:
            raise InvalidPackageError(message=f"missing {MANIFEST_NAME}", package=str(apk_path))
        if not any(n.startswith("classes") and n.endswith(".dex") for n in names):
            raise InvalidPackageError(message="missing DEX files", package=str(apk_path))

    def _extract(self, apk_path: Path, output_dir: Path) -> None:
        """Plain ZIP extraction, used when apktool is unavailable or fails."""
        output_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(apk_path, "r") as zf:
            zf.extractall(output_dir)

    def decompress(self, config: Config, package: Path) -> None:
        package = Path(package)
        output_dir = config.package_dist_folder(get_package_name(package))

        if output_dir.exists() and not config.is_force():
            logger.info("Seems that the apk was already decompressed", path=str(output_dir))
            return

        self._validate_apk(package)
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.parent.mkdir(parents=True, exist_ok=True)

        try:
            apktool = self._find_tool("apktool")
        except ToolNotFoundError:
            logger.debug("apktool not found, using plain extraction")
            self._extract(package, output_dir)
        else:
            try:
                self._run_command(
                    [str(apktool), "d", "-f", "-s", "-o", str(output_dir), str(package)]
                )
            except ToolError as e:
                logger.warning("apktool failed, using plain extraction", error=str(e))
                self._extract(package, output_dir)

        logger.info("The application has been decompressed", path=str(output_dir))
        config.set_force()

    def dex_to_jar(self, config: Config, package: Path) -> None:
        package_dir = config.package_dist_folder(get_package_name(package))
        jar = package_dir / JAR_NAME

        if jar.exists() and not config.is_force():
            logger.info("Seems that there is already a jar file for the application", path=str(jar))
            return

        script_name = "d2j-dex2jar.bat" if os.name == "nt" else "d2j-dex2jar.sh"
        script = config.dex2jar_folder / script_name
        if not script.is_file():
            raise ToolNotFoundError(
                message=f"Tool not found: {script_name}",
                tool_name="dex2jar",
                expected_path=str(script),
                install_hint="Set dex2jar_folder to a dex2jar installation",
            )

        self._run_command([str(script), str(package_dir / "classes.dex"), "-f", "-o", str(jar)])
        logger.info("The application .jar file has been generated", path=str(jar))
        config.set_force()

    def decompile(self, config: Config, package: Path) -> None:
        package_dir = config.package_dist_folder(get_package_name(package))
        sources = package_dir / SOURCES_FOLDER

        if sources.exists() and not config.is_force():
            logger.info("Seems that the package was already decompiled", path=str(sources))
            return

        if not config.jd_cmd_file.is_file():
            raise ToolNotFoundError(
                message="Tool not found: jd-cli",
                tool_name="jd-cli",
                expected_path=str(config.jd_cmd_file),
                install_hint="Set jd_cmd_file to the jd-cli JAR",
            )
        java = self._find_tool("java")

        if sources.exists():
            shutil.rmtree(sources)
        self._run_command(
            [str(java), "-jar", str(config.jd_cmd_file), str(package_dir / JAR_NAME), "-od", str(sources)]
        )
        logger.info("The application has been decompiled", path=str(sources))
