"""
Flatpak bundle builder.

Creates a single-file .flatpak bundle using flatpak-builder and
flatpak build-bundle. The sandbox provides the isolation, so Electron
itself runs with --no-sandbox.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import yaml

from claude_desktop_linux import tools
from claude_desktop_linux.builder import FormatBuilder
from claude_desktop_linux.exceptions import BuildError
from claude_desktop_linux.icons import best_icon
from claude_desktop_linux.launcher import desktop_entry, launcher_script
from claude_desktop_linux.output import step, success, warning

RUNTIME = "org.freedesktop.Platform"
RUNTIME_VERSION = "23.08"
SDK = "org.freedesktop.Sdk"
BRANCH = "stable"

FINISH_ARGS = [
    "--share=network",
    "--socket=fallback-x11",
    "--socket=wayland",
    "--device=dri",
    "--filesystem=home",
    "--talk-name=org.freedesktop.portal.Desktop",
    "--talk-name=org.freedesktop.portal.FileChooser",
    "--talk-name=org.freedesktop.Notifications",
]

ICON_SIZES = [256, 64]


class FlatpakBuilder(FormatBuilder):
    """Build a Flatpak bundle from the staged app."""

    extension = "flatpak"

    @property
    def app_id(self) -> str:
        return self.metadata.app_id

    @property
    def build_dir(self) -> Path:
        return self.work_dir / "flatpak-build"

    @property
    def context_dir(self) -> Path:
        return self.work_dir / "flatpak-context"

    @property
    def repo_dir(self) -> Path:
        return self.work_dir / "flatpak-repo"

    @property
    def manifest_path(self) -> Path:
        return self.work_dir / f"{self.package_name}-flatpak.yml"

    @property
    def install_dir(self) -> str:
        return f"/app/lib/{self.package_name}"

    def build(self) -> Path:
        step(f"App ID: {self.app_id}")
        step(f"Architecture: {self.architecture.value} (Flatpak: {self.architecture.machine})")

        icons = self.prepare_context()
        self.manifest_path.write_text(yaml.safe_dump(self.generate_manifest(icons), sort_keys=False))

        step("Building Flatpak bundle...")
        tools.run(
            [
                "flatpak-builder",
                "--force-clean",
                f"--default-branch={BRANCH}",
                f"--repo={self.repo_dir}",
                self.build_dir,
                self.manifest_path,
            ],
            error=BuildError,
            capture=False,
        )
        tools.run(
            [
                "flatpak",
                "build-bundle",
                self.repo_dir,
                self.output_path,
                self.app_id,
                BRANCH,
                f"--arch={self.architecture.machine}",
            ],
            error=BuildError,
            capture=False,
        )
        success(f"Flatpak bundle created at {self.output_path}")
        return self.output_path

    def prepare_context(self) -> list[int]:
        """
        Lay out the build context directory.

        Returns:
            The icon sizes that were written
        """
        for directory in (self.build_dir, self.context_dir, self.repo_dir):
            if directory.exists():
                shutil.rmtree(directory)
        self.build_dir.mkdir(parents=True)
        (self.context_dir / "app").mkdir(parents=True)
        (self.context_dir / "icons").mkdir()

        tools.run(["rsync", "-a", f"{self.staging_dir}/", f"{self.context_dir / 'app'}/"], error=BuildError)

        written = []
        icons = self.icons
        for size in ICON_SIZES:
            target = self.context_dir / "icons" / f"{self.package_name}-{size}.png"
            if best_icon(icons, size, target) is not None:
                written.append(size)
        if not written:
            warning(f"No icons found in {self.work_dir / 'icons'}; bundle will have no icon")

        launcher = self.context_dir / f"{self.package_name}.sh"
        launcher.write_text(
            launcher_script(self.install_dir, f"{self.package_name}-flatpak", f"{self.metadata.display_name} Flatpak Launcher")
        )
        launcher.chmod(0o755)

        (self.context_dir / f"{self.package_name}.desktop").write_text(
            desktop_entry(
                self.metadata,
                exec_command=self.package_name,
                icon=self.app_id,
                extra={"X-Flatpak": self.app_id},
            )
        )
        return written

    def generate_manifest(self, icon_sizes: list[int]) -> dict:
        """flatpak-builder manifest with the sandbox permission grants."""
        name = self.package_name
        resources = f"{self.install_dir}/node_modules/electron/dist/resources"
        commands = [
            f"install -Dm755 {name}.sh /app/bin/{name}",
            f"install -Dm644 {name}.desktop /app/share/applications/{self.app_id}.desktop",
        ]
        for size in icon_sizes:
            commands.append(
                f"install -Dm644 icons/{name}-{size}.png "
                f"/app/share/icons/hicolor/{size}x{size}/apps/{self.app_id}.png"
            )
        commands += [
            f"mkdir -p {self.install_dir}",
            f"cp -r app/* {self.install_dir}/",
            f"mkdir -p {resources}",
            f"mv {self.install_dir}/app.asar {resources}/",
            f"mv {self.install_dir}/app.asar.unpacked {resources}/",
        ]

        return {
            "app-id": self.app_id,
            "runtime": RUNTIME,
            "runtime-version": RUNTIME_VERSION,
            "sdk": SDK,
            "command": name,
            "finish-args": list(FINISH_ARGS),
            "modules": [
                {
                    "name": name,
                    "buildsystem": "simple",
                    "build-commands": commands,
                    "sources": [{"type": "dir", "path": str(self.context_dir)}],
                }
            ],
        }
