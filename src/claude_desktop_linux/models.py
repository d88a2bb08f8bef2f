"""
Build configuration and artifact models.

Defines the values that flow between pipeline stages: the resolved
build configuration, the application metadata baked into every package,
the detected vendor package and the final artifact.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BuildFormat(str, Enum):
    """Output artifact format."""
    DEB = "deb"            # System package
    APPIMAGE = "appimage"  # Portable bundle
    FLATPAK = "flatpak"    # Sandboxed bundle


class Architecture(str, Enum):
    """Supported target architectures, named the Debian way."""
    AMD64 = "amd64"
    ARM64 = "arm64"

    @property
    def machine(self) -> str:
        """uname/Flatpak style name."""
        return {"amd64": "x86_64", "arm64": "aarch64"}[self.value]

    @property
    def node_arch(self) -> str:
        """Architecture suffix used by Node.js release tarballs."""
        return {"amd64": "x64", "arm64": "arm64"}[self.value]


CLEANUP_CHOICES = {"yes": True, "no": False}


class BuildConfig(BaseModel):
    """Resolved command-line configuration. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    format: BuildFormat = Field(default=BuildFormat.DEB)
    cleanup: bool = Field(default=True, description="Remove the working tree after the build")
    architecture: Optional[Architecture] = Field(default=None, description="Filled in after host detection")

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in {f.value for f in BuildFormat}:
                raise ValueError(
                    f"Invalid build format specified: '{value}'. Must be 'deb', 'appimage', or 'flatpak'."
                )
        return value

    @field_validator("cleanup", mode="before")
    @classmethod
    def _normalize_cleanup(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            if key not in CLEANUP_CHOICES:
                raise ValueError(f"Invalid cleanup option specified: '{value}'. Must be 'yes' or 'no'.")
            return CLEANUP_CHOICES[key]
        return value

    @property
    def cleanup_label(self) -> str:
        return "yes" if self.cleanup else "no"

    def with_architecture(self, arch: Architecture) -> BuildConfig:
        return self.model_copy(update={"architecture": arch})


class AppMetadata(BaseModel):
    """Application metadata shared by all back-ends."""
    package_name: str = Field(default="claude-desktop", description="Package name (lowercase, no spaces)")
    display_name: str = Field(default="Claude")
    maintainer: str = Field(default="Claude Desktop Linux Maintainers")
    description: str = Field(default="Claude Desktop for Linux")
    app_id: str = Field(default="com.anthropic.ClaudeDesktop", description="Flatpak application id")
    wm_class: str = Field(default="Claude")
    url_scheme: str = Field(default="claude")
    categories: list[str] = Field(default_factory=lambda: ["Office", "Utility", "Network"])
    homepage: Optional[str] = Field(default="https://claude.ai")


VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


class VendorPackage(BaseModel):
    """The vendor package detected inside the downloaded installer."""
    version: str
    architecture: Architecture
    download_url: str
    archive_path: Path

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not VERSION_PATTERN.match(value):
            raise ValueError(f"Not a semantic version triple: {value!r}")
        return value


class PackageArtifact(BaseModel):
    """
    The pipeline's terminal output.

    path is None when the back-end reported success but its output file
    could not be found.
    """
    path: Optional[Path]
    format: BuildFormat
    version: str
    architecture: Architecture
    desktop_file: Optional[Path] = Field(default=None, description="Extra desktop entry (AppImage only)")

    @property
    def found(self) -> bool:
        return self.path is not None

    def display_path(self) -> str:
        return str(self.path) if self.path is not None else "Not Found"
