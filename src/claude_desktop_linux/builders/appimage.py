"""
AppImage builder.

Assembles an AppDir from the staged app and hands it to appimagetool.
The tool is taken from PATH when installed, otherwise the continuous
release is downloaded into the working tree.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from claude_desktop_linux import download, tools
from claude_desktop_linux.builder import FormatBuilder
from claude_desktop_linux.exceptions import BuildError
from claude_desktop_linux.icons import best_icon
from claude_desktop_linux.launcher import desktop_entry, launcher_script
from claude_desktop_linux.output import step, success, warning

APPIMAGETOOL_URL = (
    "https://github.com/AppImage/appimagetool/releases/download/continuous/"
    "appimagetool-{machine}.AppImage"
)

ICON_SIZE = 256


class AppImageBuilder(FormatBuilder):
    """Build a portable AppImage."""

    extension = "AppImage"

    @property
    def app_dir(self) -> Path:
        return self.work_dir / f"{self.package_name}.AppDir"

    @property
    def install_dir(self) -> Path:
        return self.app_dir / "usr" / "lib" / self.package_name

    def build(self) -> Path:
        self.prepare_appdir()
        tool = self.find_appimagetool()

        step(f"Running {tool.name}...")
        env = dict(os.environ)
        env["ARCH"] = self.architecture.machine
        # appimagetool is itself an AppImage; FUSE is often unavailable in containers
        env.setdefault("APPIMAGE_EXTRACT_AND_RUN", "1")
        tools.run([tool, self.app_dir, self.output_path], error=BuildError, env=env, capture=False)

        success(f"AppImage built: {self.output_path.name}")
        return self.output_path

    def prepare_appdir(self) -> None:
        """Lay out AppRun, the desktop entry and icon, and the app tree."""
        if self.app_dir.exists():
            shutil.rmtree(self.app_dir)
        self.install_dir.parent.mkdir(parents=True)
        shutil.copytree(self.staging_dir, self.install_dir, symlinks=True)

        resources = self.install_dir / "node_modules" / "electron" / "dist" / "resources"
        resources.mkdir(parents=True, exist_ok=True)
        for name in ("app.asar", "app.asar.unpacked"):
            src = self.install_dir / name
            if src.exists():
                shutil.move(str(src), str(resources / name))

        app_run = self.app_dir / "AppRun"
        app_run.write_text(
            launcher_script(
                f'$(dirname "$(readlink -f "$0")")/usr/lib/{self.package_name}',
                f"{self.package_name}-appimage",
                f"{self.metadata.display_name} AppImage Launcher",
            )
        )
        app_run.chmod(0o755)

        (self.app_dir / f"{self.package_name}.desktop").write_text(
            desktop_entry(self.metadata, exec_command="AppRun", icon=self.package_name)
        )

        icon = best_icon(self.icons, ICON_SIZE, self.app_dir / f"{self.package_name}.png")
        if icon is None:
            warning("No icons available; appimagetool requires one and will likely fail")
        else:
            (self.app_dir / ".DirIcon").symlink_to(icon.name)

    def find_appimagetool(self) -> Path:
        """appimagetool from PATH, or a copy downloaded into the working tree."""
        found = tools.which("appimagetool")
        if found:
            return Path(found)

        machine = self.architecture.machine
        target = self.work_dir / f"appimagetool-{machine}.AppImage"
        if not target.exists():
            step("appimagetool not found on PATH, downloading...")
            download.fetch(APPIMAGETOOL_URL.format(machine=machine), target, error=BuildError)
        target.chmod(0o755)
        return target

    def write_extras(self, output_dir: Path, artifact: Path) -> Path:
        """Desktop entry for integrating the AppImage by hand or with Gear Lever."""
        desktop_path = Path(output_dir) / f"{self.package_name}-appimage.desktop"
        step(f"Generating .desktop file for AppImage at {desktop_path}...")
        desktop_path.write_text(
            desktop_entry(
                self.metadata,
                exec_command=artifact.name,
                icon=self.package_name,
                name=f"{self.metadata.display_name} (AppImage)",
                comment=f"{self.metadata.description} (AppImage Version {self.version})",
                extra={
                    "X-AppImage-Version": self.version,
                    "X-AppImage-Name": f"{self.metadata.display_name} Desktop (AppImage)",
                },
            )
        )
        success(".desktop file generated.")
        return desktop_path
