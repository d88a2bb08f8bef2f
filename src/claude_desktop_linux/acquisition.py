"""
Vendor installer download and extraction.

The Windows installer is a self-extracting archive holding a NuGet
package (AnthropicClaude-<version>-full.nupkg), which in turn holds the
Electron application under lib/net45.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from claude_desktop_linux import download, tools
from claude_desktop_linux.environment import DownloadTarget
from claude_desktop_linux.exceptions import AcquisitionError
from claude_desktop_linux.models import VendorPackage
from claude_desktop_linux.output import step, success

NUPKG_GLOB = "AnthropicClaude-*.nupkg"
NUPKG_VERSION = re.compile(r"AnthropicClaude-(\d+\.\d+\.\d+)-(?:arm64-)?full")

EXTRACT_DIRNAME = "claude-extract"
APP_ROOT = Path("lib") / "net45"


@dataclass(frozen=True)
class VendorPayload:
    """The extracted vendor payload and the package it came from."""
    extract_dir: Path
    package: VendorPackage

    @property
    def app_root(self) -> Path:
        return self.extract_dir / APP_ROOT

    @property
    def resources_dir(self) -> Path:
        return self.app_root / "resources"

    @property
    def app_asar(self) -> Path:
        return self.resources_dir / "app.asar"

    @property
    def app_asar_unpacked(self) -> Path:
        return self.resources_dir / "app.asar.unpacked"

    @property
    def exe_path(self) -> Path:
        return self.app_root / "claude.exe"

    @property
    def version(self) -> str:
        return self.package.version


def parse_version(filename: str) -> str:
    """
    Extract the semantic version from a nupkg filename.

    Raises:
        AcquisitionError: If the name has no version followed by -full
    """
    match = NUPKG_VERSION.search(filename)
    if not match:
        raise AcquisitionError(f"Could not extract version from nupkg filename: {filename}")
    return match.group(1)


def find_nupkg(extract_dir: Path) -> Path:
    """Locate the single inner package; zero or several matches is fatal."""
    matches = sorted(extract_dir.glob(NUPKG_GLOB))
    if not matches:
        raise AcquisitionError(f"Could not find AnthropicClaude nupkg file in {extract_dir}")
    if len(matches) > 1:
        names = ", ".join(m.name for m in matches)
        raise AcquisitionError(f"Expected exactly one nupkg in {extract_dir}, found {len(matches)}: {names}")
    return matches[0]


def extract_archive(archive: Path, output_dir: Path) -> None:
    """Extract any 7z-readable archive (PE installer, nupkg) into output_dir."""
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        tools.run(["7z", "x", "-y", str(archive), f"-o{output_dir}"], error=AcquisitionError)
    except AcquisitionError as e:
        raise AcquisitionError(f"Failed to extract {archive.name}: {e}")


def acquire(target: DownloadTarget, work_dir: Path) -> VendorPayload:
    """
    Download the installer for target and unpack its application payload.

    Returns:
        VendorPayload describing the extraction directory and version
    """
    installer = work_dir / target.filename
    step(f"Downloading Claude Desktop installer for {target.architecture.value}...")
    download.fetch(target.url, installer, error=AcquisitionError)
    success(f"Download complete: {target.filename}")

    extract_dir = work_dir / EXTRACT_DIRNAME
    step(f"Extracting resources from {target.filename}...")
    extract_archive(installer, extract_dir)

    nupkg = find_nupkg(extract_dir)
    version = parse_version(nupkg.name)
    success(f"Found nupkg: {nupkg.name} (version {version})")

    extract_archive(nupkg, extract_dir)
    success("Resources extracted from nupkg")

    payload = VendorPayload(
        extract_dir=extract_dir,
        package=VendorPackage(
            version=version,
            architecture=target.architecture,
            download_url=target.url,
            archive_path=nupkg,
        ),
    )
    if not payload.app_asar.is_file():
        raise AcquisitionError(f"app.asar not found at {payload.app_asar}")
    return payload
