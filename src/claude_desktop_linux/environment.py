"""
Host environment checks.

Detects the CPU architecture, maps it to the vendor download, and
enforces the preconditions that must hold before anything touches the
network or asks for sudo.
"""

from __future__ import annotations

import os
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from claude_desktop_linux import tools
from claude_desktop_linux.exceptions import ConfigurationError, HostEnvironmentError
from claude_desktop_linux.models import Architecture, BuildFormat

DOWNLOAD_BASE = "https://storage.googleapis.com/osprey-downloads-c02f6a0d-347c-492b-a752-3e0651722e97"


@dataclass(frozen=True)
class DownloadTarget:
    """Vendor installer location for one architecture."""
    architecture: Architecture
    url: str
    filename: str


DOWNLOAD_TARGETS = {
    Architecture.AMD64: DownloadTarget(
        Architecture.AMD64,
        f"{DOWNLOAD_BASE}/nest-win-x64/Claude-Setup-x64.exe",
        "Claude-Setup-x64.exe",
    ),
    Architecture.ARM64: DownloadTarget(
        Architecture.ARM64,
        f"{DOWNLOAD_BASE}/nest-win-arm64/Claude-Setup-arm64.exe",
        "Claude-Setup-arm64.exe",
    ),
}

_MACHINE_ALIASES = {
    "x86_64": Architecture.AMD64,
    "amd64": Architecture.AMD64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
}


def _dpkg_architecture() -> str | None:
    if not tools.has_command("dpkg"):
        return None
    try:
        result = tools.run(["dpkg", "--print-architecture"], error=HostEnvironmentError)
    except HostEnvironmentError:
        return None
    return result.stdout.strip() or None


def detect_architecture(machine: str | None = None, dpkg_arch: str | None = None) -> Architecture:
    """
    Map host CPU identification strings to a supported architecture.

    Args:
        machine: uname -m style string (defaults to platform.machine())
        dpkg_arch: dpkg --print-architecture output, if available

    Raises:
        ConfigurationError: If neither string names a supported architecture
    """
    if machine is None and dpkg_arch is None:
        machine = platform.machine()
        dpkg_arch = _dpkg_architecture()

    for candidate in (machine, dpkg_arch):
        if candidate and candidate.strip().lower() in _MACHINE_ALIASES:
            return _MACHINE_ALIASES[candidate.strip().lower()]

    reported = machine or "unknown"
    if dpkg_arch:
        reported += f" (dpkg reported: {dpkg_arch})"
    raise ConfigurationError(
        f"Unsupported architecture: {reported}. Only amd64 and arm64 are supported."
    )


def download_target(arch: Architecture) -> DownloadTarget:
    return DOWNLOAD_TARGETS[arch]


def ensure_not_root(euid: int | None = None) -> None:
    """Refuse to run with root privileges; sudo is requested only when needed."""
    if euid is None:
        euid = os.geteuid()
    if euid == 0:
        raise ConfigurationError(
            "This tool should not be run using sudo or as the root user. "
            "It will prompt for a sudo password when needed. Please run as a normal user."
        )


def ensure_debian_host(fmt: BuildFormat, marker: Path = Path("/etc/debian_version")) -> None:
    """deb and AppImage builds rely on Debian tooling; Flatpak does not."""
    if fmt != BuildFormat.FLATPAK and not marker.exists():
        raise ConfigurationError(f"The {fmt.value} build target requires a Debian-based Linux distribution")


def _version_key(path: Path) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", path.name))


def find_nvm_node_bin(home: Path | str | None = None) -> Path | None:
    """
    Find the newest Node.js installed through nvm.

    Returns the bin directory, or None when nvm is absent.
    """
    home = Path(home) if home else Path.home()
    versions = home / ".nvm" / "versions" / "node"
    if not versions.is_dir():
        return None

    candidates = [d / "bin" for d in versions.iterdir() if (d / "bin").is_dir()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: _version_key(p.parent))


def activate_nvm(home: Path | str | None = None) -> Path | None:
    """Prepend the nvm-managed Node.js to PATH if one exists."""
    bin_dir = find_nvm_node_bin(home)
    if bin_dir is not None:
        tools.prepend_path(bin_dir)
    return bin_dir


def is_ci(environ: Mapping[str, str] | None = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_ACTIONS") == "true"


def describe_host(os_release: Path = Path("/etc/os-release")) -> str:
    """Human-readable distribution name."""
    if not os_release.exists():
        return "(unknown)"
    for line in os_release.read_text(errors="replace").splitlines():
        if line.startswith("PRETTY_NAME="):
            return line.split("=", 1)[1].strip().strip('"')
    return "(unknown)"
