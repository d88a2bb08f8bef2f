"""
Node.js, Electron and asar provisioning.

A system Node.js 20+ is used when available; otherwise a pinned release
is downloaded into the working tree. Electron and the asar packer are
always installed locally under the working tree and reused on later
runs as long as the cached install still looks complete.
"""

from __future__ import annotations

import json
import re
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path

from claude_desktop_linux import download, tools
from claude_desktop_linux.exceptions import ToolchainError
from claude_desktop_linux.models import Architecture
from claude_desktop_linux.output import step, success, warning

MIN_NODE_MAJOR = 20
NODE_VERSION = "20.18.1"
NODE_DIST_URL = "https://nodejs.org/dist/v{version}/{tarball}"

BUILD_MANIFEST = {"name": "claude-desktop-build", "version": "0.0.1", "private": True}


@dataclass(frozen=True)
class Toolchain:
    """Resolved locations of the Electron module and the asar binary."""
    electron_module: Path
    asar: Path

    @property
    def electron_dist(self) -> Path:
        return self.electron_module / "dist"


def node_major_version() -> int | None:
    """Major version of the node on PATH, or None if node is missing."""
    if not tools.has_command("node"):
        return None
    try:
        result = tools.run(["node", "--version"], error=ToolchainError)
    except ToolchainError:
        return None
    match = re.match(r"v?(\d+)\.", result.stdout.strip())
    return int(match.group(1)) if match else None


def node_tarball(arch: Architecture, version: str = NODE_VERSION) -> str:
    return f"node-v{version}-linux-{arch.node_arch}.tar.xz"


def install_local_node(work_dir: Path, arch: Architecture, version: str = NODE_VERSION) -> Path:
    """
    Download and unpack Node.js into work_dir/node.

    Returns:
        The bin directory of the local install, already prepended to PATH
    """
    tarball = node_tarball(arch, version)
    url = NODE_DIST_URL.format(version=version, tarball=tarball)
    archive = work_dir / tarball
    install_dir = work_dir / "node"

    step(f"Downloading Node.js v{version} for {arch.node_arch}...")
    download.fetch(url, archive, error=ToolchainError)

    step("Extracting Node.js...")
    try:
        with tarfile.open(archive, "r:xz") as tar:
            tar.extractall(work_dir)
    except (tarfile.TarError, OSError) as e:
        raise ToolchainError(f"Failed to extract Node.js tarball: {e}")

    extracted = work_dir / archive.name.removesuffix(".tar.xz")
    if not extracted.is_dir():
        raise ToolchainError(f"Node.js tarball did not contain {extracted.name}")
    if install_dir.exists():
        shutil.rmtree(install_dir)
    extracted.rename(install_dir)
    archive.unlink(missing_ok=True)

    bin_dir = install_dir / "bin"
    tools.prepend_path(bin_dir)
    return bin_dir


def ensure_node(work_dir: Path, arch: Architecture) -> None:
    """Guarantee node >= 20 is reachable on PATH."""
    major = node_major_version()
    if major is not None and major >= MIN_NODE_MAJOR:
        success(f"System Node.js is adequate (major version {major})")
        return

    if major is None:
        warning("Node.js not found in system")
    else:
        warning(f"System Node.js is too old (major version {major}). Need v{MIN_NODE_MAJOR}+")

    install_local_node(work_dir, arch)
    major = node_major_version()
    if major is None or major < MIN_NODE_MAJOR:
        raise ToolchainError("Failed to install local Node.js")
    success(f"Local Node.js installed (major version {major})")


class LocalInstallCache:
    """
    Electron and asar installed under the working tree.

    The cache is valid when the Electron dist directory and the asar
    binary both exist. Nothing else is checked.
    """

    def __init__(self, work_dir: Path):
        self.work_dir = Path(work_dir)

    @property
    def electron_module(self) -> Path:
        return self.work_dir / "node_modules" / "electron"

    @property
    def electron_dist(self) -> Path:
        return self.electron_module / "dist"

    @property
    def asar_bin(self) -> Path:
        return self.work_dir / "node_modules" / ".bin" / "asar"

    def is_valid(self) -> bool:
        return self.electron_dist.is_dir() and self.asar_bin.is_file()

    def install(self) -> None:
        manifest = self.work_dir / "package.json"
        if not manifest.exists():
            manifest.write_text(json.dumps(BUILD_MANIFEST))
        step(f"Installing Electron and asar locally into {self.work_dir}...")
        tools.run(
            ["npm", "install", "--no-save", "electron", "@electron/asar"],
            error=ToolchainError,
            cwd=self.work_dir,
            capture=False,
        )

    def ensure(self) -> Toolchain:
        if self.is_valid():
            success("Local Electron distribution and asar binary already present")
        else:
            self.install()
            if not self.electron_dist.is_dir():
                raise ToolchainError(f"Electron distribution not found at {self.electron_dist} after install")
            if not self.asar_bin.is_file():
                raise ToolchainError(f"asar binary not found at {self.asar_bin} after install")
            success("Electron and asar installed")
        return Toolchain(
            electron_module=self.electron_module.resolve(),
            asar=self.asar_bin.resolve(),
        )


def provision(work_dir: Path, arch: Architecture) -> Toolchain:
    """Run the whole provisioning sequence."""
    ensure_node(work_dir, arch)
    return LocalInstallCache(work_dir).ensure()
