"""
Debian .deb package builder.

Lays out /usr/lib/<package> with the Electron runtime and the patched
archive, adds a launcher, desktop entry and hicolor icons, then runs
dpkg-deb.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from textwrap import dedent

from claude_desktop_linux import tools
from claude_desktop_linux.builder import FormatBuilder
from claude_desktop_linux.exceptions import BuildError
from claude_desktop_linux.launcher import desktop_entry, launcher_script
from claude_desktop_linux.output import step, success

DEPENDS = [
    "libgtk-3-0 | libgtk-3-0t64",
    "libnss3",
    "libxss1",
    "libxtst6",
    "libnotify4",
    "libasound2 | libasound2t64",
]
RECOMMENDS = ["xdg-utils"]


class DebBuilder(FormatBuilder):
    """Build Debian .deb packages."""

    extension = "deb"

    @property
    def output_name(self) -> str:
        return f"{self.package_name}_{self.version}_{self.architecture.value}.deb"

    @property
    def package_root(self) -> Path:
        return self.work_dir / "deb-package"

    @property
    def install_dir(self) -> Path:
        return self.package_root / "usr" / "lib" / self.package_name

    def build(self) -> Path:
        """Build .deb package."""
        if self.package_root.exists():
            shutil.rmtree(self.package_root)

        self._stage_app()
        self._stage_desktop_integration()

        debian_dir = self.package_root / "DEBIAN"
        debian_dir.mkdir(parents=True)
        (debian_dir / "control").write_text(self._generate_control())
        for name, content in (("postinst", self._generate_postinst()), ("postrm", self._generate_postrm())):
            script = debian_dir / name
            script.write_text(content)
            script.chmod(0o755)

        step("Building .deb with dpkg-deb...")
        tools.run(
            ["dpkg-deb", "--build", "--root-owner-group", self.package_root, self.output_path],
            error=BuildError,
        )
        success(f"Debian package built: {self.output_path.name}")
        return self.output_path

    def _stage_app(self) -> None:
        """Copy the staged app and move the archive next to the Electron runtime."""
        shutil.copytree(self.staging_dir, self.install_dir, symlinks=True)

        resources = self.install_dir / "node_modules" / "electron" / "dist" / "resources"
        resources.mkdir(parents=True, exist_ok=True)
        for name in ("app.asar", "app.asar.unpacked"):
            src = self.install_dir / name
            if src.exists():
                dest = resources / name
                if dest.is_dir():
                    shutil.rmtree(dest)
                elif dest.exists():
                    dest.unlink()
                shutil.move(str(src), str(dest))

    def _stage_desktop_integration(self) -> None:
        usr = self.package_root / "usr"

        launcher = usr / "bin" / self.package_name
        launcher.parent.mkdir(parents=True, exist_ok=True)
        launcher.write_text(
            launcher_script(f"/usr/lib/{self.package_name}", self.package_name, f"{self.metadata.display_name} Launcher")
        )
        launcher.chmod(0o755)

        applications = usr / "share" / "applications"
        applications.mkdir(parents=True, exist_ok=True)
        (applications / f"{self.package_name}.desktop").write_text(
            desktop_entry(self.metadata, exec_command=f"/usr/bin/{self.package_name}", icon=self.package_name)
        )

        icons_base = usr / "share" / "icons" / "hicolor"
        for size, icon in sorted(self.icons.items()):
            size_dir = icons_base / f"{size}x{size}" / "apps"
            size_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(icon, size_dir / f"{self.package_name}.png")

    def _generate_control(self) -> str:
        """Generate Debian control file."""
        # Installed size in KB
        installed_size = sum(
            f.stat().st_size for f in self.package_root.rglob("*") if f.is_file() and not f.is_symlink()
        ) // 1024

        control = dedent(f'''\
            Package: {self.package_name}
            Version: {self.version}
            Section: utils
            Priority: optional
            Architecture: {self.architecture.value}
            Installed-Size: {installed_size}
            Maintainer: {self.metadata.maintainer}
            Description: {self.metadata.description}
             {self.metadata.display_name} desktop application repackaged from the
             official Windows release to run natively on Linux.
        ''')
        control += f"Depends: {', '.join(DEPENDS)}\n"
        control += f"Recommends: {', '.join(RECOMMENDS)}\n"
        if self.metadata.homepage:
            control += f"Homepage: {self.metadata.homepage}\n"
        return control

    def _generate_postinst(self) -> str:
        """chrome-sandbox must be setuid root for Electron to start."""
        return dedent(f'''\
            #!/bin/bash
            set -e

            SANDBOX="/usr/lib/{self.package_name}/node_modules/electron/dist/chrome-sandbox"
            if [ -f "$SANDBOX" ]; then
                chown root:root "$SANDBOX" || true
                chmod 4755 "$SANDBOX" || true
            fi

            if command -v update-desktop-database &>/dev/null; then
                update-desktop-database -q /usr/share/applications || true
            fi

            if command -v gtk-update-icon-cache &>/dev/null; then
                gtk-update-icon-cache -q /usr/share/icons/hicolor || true
            fi

            exit 0
        ''')

    def _generate_postrm(self) -> str:
        return dedent('''\
            #!/bin/bash
            set -e

            if command -v update-desktop-database &>/dev/null; then
                update-desktop-database -q /usr/share/applications || true
            fi

            exit 0
        ''')
