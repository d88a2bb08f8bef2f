"""
Package builder - turns the staged Electron app into a distributable artifact.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from claude_desktop_linux.exceptions import BuildError
from claude_desktop_linux.icons import available_icons
from claude_desktop_linux.models import AppMetadata, Architecture, BuildFormat, PackageArtifact
from claude_desktop_linux.output import step, success, warning


class FormatBuilder(ABC):
    """Base class for format-specific package builders."""

    extension: str = ""

    def __init__(
        self,
        metadata: AppMetadata,
        version: str,
        architecture: Architecture,
        work_dir: Path,
        staging_dir: Path,
    ):
        self.metadata = metadata
        self.version = version
        self.architecture = architecture
        self.work_dir = Path(work_dir)
        self.staging_dir = Path(staging_dir)

    @abstractmethod
    def build(self) -> Path:
        """Build the package into the working tree and return its expected path."""
        pass

    def write_extras(self, output_dir: Path, artifact: Path) -> Path | None:
        """Write any companion file next to the final artifact."""
        return None

    @property
    def package_name(self) -> str:
        return self.metadata.package_name

    @property
    def output_name(self) -> str:
        return f"{self.package_name}-{self.version}-{self.architecture.value}.{self.extension}"

    @property
    def output_path(self) -> Path:
        return self.work_dir / self.output_name

    @property
    def icons(self) -> dict[int, Path]:
        return available_icons(self.work_dir / "icons")


class PackageBuilder:
    """
    Dispatch a staged tree to one of the format back-ends.

    Usage:
        builder = PackageBuilder(metadata, "0.12.34", Architecture.AMD64, work_dir, staging_dir)
        artifact = builder.build(BuildFormat.FLATPAK)
    """

    def __init__(
        self,
        metadata: AppMetadata,
        version: str,
        architecture: Architecture,
        work_dir: Path | str,
        staging_dir: Path | str,
        output_dir: Path | str | None = None,
    ):
        self.metadata = metadata
        self.version = version
        self.architecture = architecture
        self.work_dir = Path(work_dir)
        self.staging_dir = Path(staging_dir)
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()

    def build(self, fmt: BuildFormat) -> PackageArtifact:
        builders = {
            BuildFormat.DEB: self.build_deb,
            BuildFormat.APPIMAGE: self.build_appimage,
            BuildFormat.FLATPAK: self.build_flatpak,
        }
        return builders[BuildFormat(fmt)]()

    def build_deb(self) -> PackageArtifact:
        """Build Debian .deb package."""
        from claude_desktop_linux.builders.deb import DebBuilder
        return self._build_with(DebBuilder, BuildFormat.DEB)

    def build_appimage(self) -> PackageArtifact:
        """Build portable AppImage."""
        from claude_desktop_linux.builders.appimage import AppImageBuilder
        return self._build_with(AppImageBuilder, BuildFormat.APPIMAGE)

    def build_flatpak(self) -> PackageArtifact:
        """Build Flatpak single-file bundle."""
        from claude_desktop_linux.builders.flatpak import FlatpakBuilder
        return self._build_with(FlatpakBuilder, BuildFormat.FLATPAK)

    def _build_with(self, builder_class: type[FormatBuilder], fmt: BuildFormat) -> PackageArtifact:
        builder = builder_class(
            self.metadata, self.version, self.architecture, self.work_dir, self.staging_dir
        )
        step(f"Calling {fmt.value} packaging for {self.architecture.value}...")
        produced = builder.build()

        if not produced.is_file():
            warning(f"Could not determine final {fmt.value} file path from {self.work_dir}")
            return PackageArtifact(path=None, format=fmt, version=self.version, architecture=self.architecture)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        final_path = self.output_dir / produced.name
        try:
            shutil.move(str(produced), str(final_path))
        except OSError as e:
            raise BuildError(f"Could not move {produced} to {final_path}: {e}")
        success(f"Package created at: {final_path}")

        desktop_file = builder.write_extras(self.output_dir, final_path)
        return PackageArtifact(
            path=final_path,
            format=fmt,
            version=self.version,
            architecture=self.architecture,
            desktop_file=desktop_file,
        )
