"""
Patch engine - turns the vendor app.asar into a Linux-ready staging tree.
"""

from __future__ import annotations

import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path

from claude_desktop_linux.acquisition import VendorPayload
from claude_desktop_linux.asar import AsarArchive
from claude_desktop_linux.exceptions import PatchError
from claude_desktop_linux.output import step, success, warning
from claude_desktop_linux.patching.base import PatchOperation, PatchResult
from claude_desktop_linux.patching.frame import DecorationFlags, EntryPointWrapper
from claude_desktop_linux.patching.native_stub import NativeModuleStub
from claude_desktop_linux.patching.platform import LinuxBinaryPlatform
from claude_desktop_linux.patching.titlebar import TitleBarGuard
from claude_desktop_linux.patching.tray import TrayHandlerFix
from claude_desktop_linux.toolchain import Toolchain

LOCALE_GLOB = "*-*.json"
TRAY_ICON_GLOB = "Tray*"
I18N_DIR = Path("resources") / "i18n"


@dataclass
class PatchReport:
    """What the engine did, step by step."""
    staging_dir: Path
    app_asar: Path
    results: list[PatchResult] = field(default_factory=list)

    @property
    def changed(self) -> list[PatchResult]:
        return [r for r in self.results if r.changed]


def default_operations(unpacked_dir: Path | None = None) -> list[PatchOperation]:
    """The fixed patch list, in application order."""
    return [
        EntryPointWrapper(),
        DecorationFlags(),
        NativeModuleStub(extra_roots=[unpacked_dir] if unpacked_dir else None),
        TitleBarGuard(),
        TrayHandlerFix(),
        LinuxBinaryPlatform(),
    ]


def apply_operations(contents_dir: Path, operations: list[PatchOperation]) -> list[PatchResult]:
    """Apply operations in order; the first failure aborts the run."""
    results = []
    for operation in operations:
        result = operation.apply(contents_dir)
        if result.changed:
            success(f"{result.name}: {result.detail or 'applied'}")
        else:
            step(f"  [dim]{result.name}: {result.detail or 'already applied'}[/dim]")
        results.append(result)
    return results


def locale_files(resources_dir: Path) -> list[Path]:
    files = sorted(p for p in resources_dir.glob(LOCALE_GLOB) if p.is_file())
    if not files:
        raise PatchError(f"No locale files matching {LOCALE_GLOB} in {resources_dir}")
    return files


def copy_files(files: list[Path], destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    for path in files:
        shutil.copy2(path, destination / path.name)


class PatchEngine:
    """
    Extract, patch and repack the application archive.

    Usage:
        engine = PatchEngine(toolchain, payload, work_dir / "electron-app")
        report = engine.run()
    """

    def __init__(self, toolchain: Toolchain, payload: VendorPayload, staging_dir: Path | str):
        self.toolchain = toolchain
        self.payload = payload
        self.staging_dir = Path(staging_dir)

    @property
    def app_asar(self) -> Path:
        return self.staging_dir / "app.asar"

    @property
    def unpacked_dir(self) -> Path:
        return self.staging_dir / "app.asar.unpacked"

    @property
    def staged_electron(self) -> Path:
        return self.staging_dir / "node_modules" / self.toolchain.electron_module.name

    @property
    def electron_resources(self) -> Path:
        return self.staged_electron / "dist" / "resources"

    def run(self) -> PatchReport:
        self.stage_archive()

        archive = AsarArchive(self.toolchain.asar, self.app_asar)
        step("Extracting app.asar...")
        contents = archive.extract()
        step(f"Original main entry: {archive.main_entry()}")

        report = PatchReport(self.staging_dir, self.app_asar)
        report.results = apply_operations(contents, default_operations(self.unpacked_dir))

        locales = locale_files(self.payload.resources_dir)
        copy_files(locales, contents / I18N_DIR)

        step("Repacking app.asar...")
        archive.pack()

        self.stage_electron()
        self.propagate_resources(locales)
        success(f"app.asar processed and staged in {self.staging_dir}")
        return report

    def stage_archive(self) -> None:
        """Copy app.asar and app.asar.unpacked from the vendor payload."""
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.payload.app_asar, self.app_asar)
        if self.payload.app_asar_unpacked.is_dir():
            if self.unpacked_dir.exists():
                shutil.rmtree(self.unpacked_dir)
            shutil.copytree(self.payload.app_asar_unpacked, self.unpacked_dir, symlinks=True)
        else:
            self.unpacked_dir.mkdir(parents=True, exist_ok=True)

    def stage_electron(self) -> None:
        """Copy the local Electron module next to the archive."""
        step("Copying Electron installation to staging area...")
        if self.staged_electron.exists():
            shutil.rmtree(self.staged_electron)
        shutil.copytree(self.toolchain.electron_module, self.staged_electron, symlinks=True)

        binary = self.staged_electron / "dist" / "electron"
        if binary.is_file():
            binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            warning(f"Staged Electron binary not found at expected path: {binary}")

    def propagate_resources(self, locales: list[Path]) -> None:
        """
        Locale files and tray icons for the Electron runtime.

        Tray icons have to live on the real filesystem: the Tray API
        cannot load images from inside app.asar.
        """
        copy_files(locales, self.electron_resources)
        success("Locale files copied to Electron resources directory")

        tray_icons = sorted(p for p in self.payload.resources_dir.glob(TRAY_ICON_GLOB) if p.is_file())
        if tray_icons:
            copy_files(tray_icons, self.electron_resources)
            success(f"{len(tray_icons)} tray icon file(s) copied to Electron resources directory")
        else:
            warning(f"No tray icon files found at {self.payload.resources_dir / TRAY_ICON_GLOB}")
