"""
Build pipeline - runs every stage from host checks to the final artifact.

Stages run strictly in order and the first failure aborts the run. Only
one pipeline may use a given project directory at a time; the working
tree is deleted and recreated at the start of every run.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from claude_desktop_linux import acquisition, dependencies, environment, icons, toolchain
from claude_desktop_linux.builder import PackageBuilder
from claude_desktop_linux.models import AppMetadata, BuildConfig, BuildFormat, PackageArtifact
from claude_desktop_linux.output import console, section, step, success, warning
from claude_desktop_linux.patching import PatchEngine

WORK_DIRNAME = "build"
STAGING_DIRNAME = "electron-app"
ICONS_DIRNAME = "icons"

RELEASES_URL = "https://github.com/aaddrick/claude-desktop-debian/releases"


class BuildPipeline:
    """
    Usage:
        config = BuildConfig(format="flatpak", cleanup="no")
        artifact = BuildPipeline(config).run()
    """

    def __init__(
        self,
        config: BuildConfig,
        project_root: Path | str | None = None,
        metadata: AppMetadata | None = None,
    ):
        self.config = config
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.metadata = metadata or AppMetadata()

    @property
    def work_dir(self) -> Path:
        return self.project_root / WORK_DIRNAME

    @property
    def staging_dir(self) -> Path:
        return self.work_dir / STAGING_DIRNAME

    def run(self) -> PackageArtifact:
        config = self.resolve()
        arch = config.architecture

        section("Dependency check")
        dependencies.ensure_dependencies(config.format)

        self.reset_work_dir()

        section("Toolchain")
        tc = toolchain.provision(self.work_dir, arch)

        section("Download the latest Claude executable")
        payload = acquisition.acquire(environment.download_target(arch), self.work_dir)
        version = payload.version

        section("Processing app.asar")
        report = PatchEngine(tc, payload, self.staging_dir).run()
        step(f"{len(report.changed)} of {len(report.results)} patch operation(s) changed the archive")

        section("Icons")
        extracted = icons.extract_icons(payload.exe_path, self.work_dir / ICONS_DIRNAME)
        success(f"Extracted {len(extracted)} icon size(s): {', '.join(str(s) for s in sorted(extracted))}")

        section("Call Packaging Script")
        artifact = PackageBuilder(
            self.metadata, version, arch, self.work_dir, self.staging_dir, output_dir=self.project_root
        ).build(config.format)

        section("Cleanup")
        self.cleanup()
        success("Build process finished.")

        print_next_steps(artifact)
        return artifact

    def resolve(self) -> BuildConfig:
        """Host preconditions and architecture; returns the config with architecture set."""
        section("Architecture Detection")
        environment.ensure_not_root()

        config = self.config
        if config.architecture is None:
            config = config.with_architecture(environment.detect_architecture())
        step(f"Detected host: {environment.describe_host()}")
        step(f"Target Architecture: {config.architecture.value}")

        environment.ensure_debian_host(config.format)

        node_bin = environment.activate_nvm()
        if node_bin is not None:
            step(f"Using nvm Node.js from {node_bin}")

        step(f"Build format: {config.format.value}")
        step(f"Cleanup intermediate files: {config.cleanup_label}")
        self.config = config
        return config

    def reset_work_dir(self) -> None:
        if self.work_dir.exists():
            step(f"Removing previous build directory: {self.work_dir}")
            shutil.rmtree(self.work_dir)
        self.staging_dir.mkdir(parents=True)
        success(f"Working directory ready: {self.work_dir}")

    def cleanup(self) -> None:
        if not self.config.cleanup:
            step(f"Skipping cleanup of intermediate build files in {self.work_dir}")
            return
        step(f"Cleaning up intermediate build files in {self.work_dir}...")
        try:
            shutil.rmtree(self.work_dir)
        except OSError as e:
            warning(f"Cleanup of {self.work_dir} failed: {e}")
            return
        success(f"Cleanup complete ({self.work_dir} removed)")


def print_next_steps(artifact: PackageArtifact, ci: bool | None = None) -> None:
    """Installation guidance for the artifact that was produced."""
    if ci is None:
        ci = environment.is_ci()

    console.print()
    console.print("[bold blue]====== Next Steps ======[/bold blue]")
    path = artifact.display_path()

    if artifact.format == BuildFormat.DEB:
        if artifact.found:
            console.print("To install the Debian package, run:")
            console.print(f"   [green]sudo apt install {path}[/green]")
            console.print(f"   (or `sudo dpkg -i {path}`)")
        else:
            warning("Debian package file not found. Cannot provide installation instructions.")

    elif artifact.format == BuildFormat.APPIMAGE:
        if artifact.found:
            console.print(f"AppImage created at: [cyan]{path}[/cyan]")
            console.print()
            console.print(
                "[yellow]IMPORTANT:[/yellow] This AppImage requires [cyan]Gear Lever[/cyan] "
                "for proper desktop integration and to handle the `claude://` login process correctly."
            )
            console.print("   1. Install via Flatpak: [green]flatpak install flathub it.mijorus.gearlever[/green]")
            console.print(f"   2. Open Gear Lever, drag and drop [cyan]{path}[/cyan] into it and click 'Integrate'")
            if ci:
                success("This AppImage includes embedded update information.")
            else:
                console.print("   [yellow]ℹ[/yellow] This locally-built AppImage does not include update information.")
                console.print(
                    "   3. In Gear Lever choose 'Github' as update source with URL: "
                    f"[yellow]{RELEASES_URL}/download/*/{artifact_glob(artifact)}[/yellow]"
                )
        else:
            warning("AppImage file not found. Cannot provide usage instructions.")

    elif artifact.format == BuildFormat.FLATPAK:
        if artifact.found:
            console.print(f"Flatpak bundle created at: [cyan]{path}[/cyan]")
            console.print("Install locally (user scope):")
            console.print(f"   [green]flatpak install --user {path}[/green]")
            console.print("If you prefer system-wide installation:")
            console.print(f"   [green]sudo flatpak install {path}[/green]")
        else:
            warning("Flatpak bundle not found. Cannot provide install instructions.")

    console.print("[bold blue]======================[/bold blue]")


def artifact_glob(artifact: PackageArtifact, package_name: str = "claude-desktop") -> str:
    return f"{package_name}-*-{artifact.architecture.value}.AppImage"
