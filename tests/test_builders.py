"""Tests for the packaging dispatcher and the format back-ends."""

import yaml
import pytest

from claude_desktop_linux import launcher
from claude_desktop_linux.builder import FormatBuilder, PackageBuilder
from claude_desktop_linux.builders.appimage import AppImageBuilder
from claude_desktop_linux.builders.deb import DebBuilder
from claude_desktop_linux.builders.flatpak import FlatpakBuilder
from claude_desktop_linux.icons import available_icons, best_icon
from claude_desktop_linux.models import AppMetadata, Architecture, BuildFormat

from conftest import write_icons

VERSION = "0.12.34"


@pytest.fixture
def staged(tmp_path):
    """A work dir with a staged app and extracted icons."""
    work_dir = tmp_path / "build"
    staging = work_dir / "electron-app"
    dist = staging / "node_modules" / "electron" / "dist"
    dist.mkdir(parents=True)
    (dist / "electron").write_bytes(b"\x7fELF")
    (dist / "resources").mkdir()
    (staging / "app.asar").write_bytes(b"asar")
    (staging / "app.asar.unpacked").mkdir()
    write_icons(work_dir / "icons")
    return work_dir, staging


def make(builder_class, staged, arch=Architecture.AMD64):
    work_dir, staging = staged
    return builder_class(AppMetadata(), VERSION, arch, work_dir, staging)


class TestLauncher:
    """Tests for the generated launcher and desktop entry."""

    def test_launcher_flags(self):
        script = launcher.launcher_script("/app/lib/claude-desktop", "claude-desktop-flatpak", "Launcher")
        assert script.startswith("#!/bin/bash\n")
        assert 'APP_DIR="/app/lib/claude-desktop"' in script
        assert 'if [ -n "${WAYLAND_DISPLAY:-}" ]; then' in script
        assert '"--ozone-platform=wayland"' in script
        assert '"--wayland-text-input-version=3"' in script
        assert 'ELECTRON_ARGS=("$APP_PATH" "--disable-features=CustomTitlebar" "--no-sandbox")' in script
        assert "export ELECTRON_FORCE_IS_PACKAGED=true" in script
        assert "export ELECTRON_USE_SYSTEM_TITLE_BAR=1" in script

    def test_desktop_entry(self):
        entry = launcher.desktop_entry(AppMetadata(), exec_command="/usr/bin/claude-desktop", icon="claude-desktop")
        assert "Exec=/usr/bin/claude-desktop %u\n" in entry
        assert "MimeType=x-scheme-handler/claude;\n" in entry
        assert "StartupWMClass=Claude\n" in entry


class TestIcons:
    """Tests for icon selection."""

    def test_available_icons(self, tmp_path):
        write_icons(tmp_path, sizes=(16, 256))
        assert sorted(available_icons(tmp_path)) == [16, 256]

    def test_best_icon_scales_largest(self, tmp_path):
        from PIL import Image

        icons = write_icons(tmp_path / "icons", sizes=(16, 256))
        out = best_icon(icons, 64, tmp_path / "out" / "icon-64.png")
        with Image.open(out) as img:
            assert img.size == (64, 64)

    def test_best_icon_without_icons(self, tmp_path):
        assert best_icon({}, 64, tmp_path / "icon.png") is None


class TestFlatpak:
    """Tests for the Flatpak back-end."""

    def test_manifest(self, staged):
        builder = make(FlatpakBuilder, staged)
        manifest = builder.generate_manifest([256, 64])

        assert manifest["app-id"] == "com.anthropic.ClaudeDesktop"
        assert manifest["runtime"] == "org.freedesktop.Platform"
        assert manifest["finish-args"] == [
            "--share=network",
            "--socket=fallback-x11",
            "--socket=wayland",
            "--device=dri",
            "--filesystem=home",
            "--talk-name=org.freedesktop.portal.Desktop",
            "--talk-name=org.freedesktop.portal.FileChooser",
            "--talk-name=org.freedesktop.Notifications",
        ]
        commands = manifest["modules"][0]["build-commands"]
        assert any("hicolor/64x64/apps/com.anthropic.ClaudeDesktop.png" in c for c in commands)

    def test_prepare_context(self, staged, fake_tools):
        builder = make(FlatpakBuilder, staged)
        sizes = builder.prepare_context()

        assert sizes == [256, 64]
        context = builder.context_dir
        assert (context / "app" / "app.asar").is_file()
        assert (context / "icons" / "claude-desktop-64.png").is_file()
        assert (context / "claude-desktop.sh").stat().st_mode & 0o111
        assert "X-Flatpak=com.anthropic.ClaudeDesktop" in (context / "claude-desktop.desktop").read_text()

    def test_build(self, staged, fake_tools):
        builder = make(FlatpakBuilder, staged, Architecture.ARM64)
        output = builder.build()

        assert output.name == "claude-desktop-0.12.34-arm64.flatpak"
        assert output.is_file()
        manifest = yaml.safe_load(builder.manifest_path.read_text())
        assert manifest["command"] == "claude-desktop"
        bundle_call = fake_tools.commands("flatpak")[0]
        assert bundle_call[-1] == "--arch=aarch64"
        assert bundle_call[4:6] == ["com.anthropic.ClaudeDesktop", "stable"]


class TestDeb:
    """Tests for the Debian back-end."""

    def test_build(self, staged, fake_tools):
        builder = make(DebBuilder, staged)
        output = builder.build()

        assert output.name == "claude-desktop_0.12.34_amd64.deb"
        root = builder.package_root
        resources = root / "usr/lib/claude-desktop/node_modules/electron/dist/resources"
        assert (resources / "app.asar").is_file()
        assert not (root / "usr/lib/claude-desktop/app.asar").exists()
        assert (root / "usr/bin/claude-desktop").stat().st_mode & 0o111
        assert (root / "usr/share/icons/hicolor/256x256/apps/claude-desktop.png").is_file()

        control = (root / "DEBIAN/control").read_text()
        assert "Package: claude-desktop\n" in control
        assert "Version: 0.12.34\n" in control
        assert "Architecture: amd64\n" in control
        assert "chmod 4755" in (root / "DEBIAN/postinst").read_text()
        assert fake_tools.commands("dpkg-deb")[0][:3] == ["dpkg-deb", "--build", "--root-owner-group"]


class TestAppImage:
    """Tests for the AppImage back-end."""

    def test_prepare_appdir(self, staged):
        builder = make(AppImageBuilder, staged)
        builder.prepare_appdir()

        app_dir = builder.app_dir
        assert (app_dir / "AppRun").stat().st_mode & 0o111
        assert (app_dir / "claude-desktop.desktop").is_file()
        assert (app_dir / "claude-desktop.png").is_file()
        assert (app_dir / "usr/lib/claude-desktop/node_modules/electron/dist/resources/app.asar").is_file()

    def test_appimagetool_is_downloaded_when_missing(self, staged, fake_tools, monkeypatch):
        from claude_desktop_linux import tools

        monkeypatch.setattr(tools, "which", lambda command: None)
        builder = make(AppImageBuilder, staged, Architecture.ARM64)

        tool = builder.find_appimagetool()

        assert tool.name == "appimagetool-aarch64.AppImage"
        assert fake_tools.calls[-1][1].endswith("appimagetool-aarch64.AppImage")

    def test_desktop_file_next_to_artifact(self, staged, tmp_path):
        builder = make(AppImageBuilder, staged)
        artifact = tmp_path / "claude-desktop-0.12.34-amd64.AppImage"

        desktop = builder.write_extras(tmp_path, artifact)

        text = desktop.read_text()
        assert desktop.name == "claude-desktop-appimage.desktop"
        assert "Name=Claude (AppImage)\n" in text
        assert "Exec=claude-desktop-0.12.34-amd64.AppImage %u\n" in text
        assert "X-AppImage-Version=0.12.34\n" in text
        assert "X-AppImage-Name=Claude Desktop (AppImage)\n" in text


class EmptyBuilder(FormatBuilder):
    extension = "pkg"

    def build(self):
        return self.output_path


class TestDispatcher:
    """Tests for PackageBuilder."""

    def test_missing_output_is_not_found(self, staged, tmp_path, monkeypatch):
        work_dir, staging = staged
        builder = PackageBuilder(AppMetadata(), VERSION, Architecture.AMD64, work_dir, staging, tmp_path / "out")
        monkeypatch.setattr(builder, "build_deb", lambda: builder._build_with(EmptyBuilder, BuildFormat.DEB))

        artifact = builder.build(BuildFormat.DEB)

        assert artifact.path is None
        assert artifact.display_path() == "Not Found"

    def test_output_moved_to_invocation_dir(self, staged, tmp_path, fake_tools):
        work_dir, staging = staged
        out = tmp_path / "out"
        builder = PackageBuilder(AppMetadata(), VERSION, Architecture.AMD64, work_dir, staging, out)

        artifact = builder.build("deb")

        assert artifact.path == out / "claude-desktop_0.12.34_amd64.deb"
        assert artifact.path.is_file()
        assert not (work_dir / "claude-desktop_0.12.34_amd64.deb").exists()

    def test_package_does_not_import_back_ends(self):
        import claude_desktop_linux.builders as builders

        assert not hasattr(builders, "AppImageBuilder")
        assert not hasattr(builders, "DebBuilder")
        assert not hasattr(builders, "FlatpakBuilder")
