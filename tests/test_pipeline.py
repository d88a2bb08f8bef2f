"""End-to-end pipeline tests with every external program faked."""

import pytest

from claude_desktop_linux import dependencies, environment, icons, toolchain
from claude_desktop_linux.exceptions import ConfigurationError
from claude_desktop_linux.models import Architecture, BuildConfig, BuildFormat, PackageArtifact
from claude_desktop_linux.pipeline import BuildPipeline, print_next_steps

from conftest import write_icons


@pytest.fixture
def host(monkeypatch, tmp_path, fake_tools):
    """A non-root host with node 20 and every system tool installed."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setattr(environment, "ensure_not_root", lambda: None)
    monkeypatch.setattr(dependencies, "ensure_dependencies", lambda fmt: [])
    monkeypatch.setattr(toolchain, "node_major_version", lambda: 20)
    monkeypatch.setattr(
        icons, "extract_icons", lambda exe_path, output_dir: write_icons(output_dir, sizes=(32, 256))
    )
    return fake_tools


class TestFlatpakPipeline:
    """Tests for a full flatpak run."""

    def test_bundle_lands_in_invocation_dir(self, tmp_path, host):
        project = tmp_path / "project"
        project.mkdir()
        config = BuildConfig(format="flatpak", cleanup="no", architecture=Architecture.AMD64)

        artifact = BuildPipeline(config, project_root=project).run()

        assert artifact.path == project / "claude-desktop-0.12.34-amd64.flatpak"
        assert artifact.path.is_file()
        assert artifact.version == "0.12.34"
        work_dir = project / "build"
        assert (work_dir / "electron-app" / "app.asar").is_file()
        assert (work_dir / "claude-desktop-flatpak.yml").is_file()

    def test_staging_tree(self, tmp_path, host):
        config = BuildConfig(format="flatpak", cleanup="no", architecture=Architecture.AMD64)
        BuildPipeline(config, project_root=tmp_path).run()

        staging = tmp_path / "build" / "electron-app"
        resources = staging / "node_modules" / "electron" / "dist" / "resources"
        assert (resources / "en-US.json").is_file()
        assert (resources / "TrayIconTemplate.png").is_file()
        assert (staging / "app.asar.unpacked" / "node_modules" / "@ant" / "claude-native" / "index.js").is_file()
        assert (staging / "app.asar").read_bytes().startswith(b"packed:")

        contents = staging / "app.asar.contents"
        assert (contents / "resources" / "i18n" / "de-DE.json").is_file()
        assert "async function rT()" in (contents / ".vite" / "build" / "index.js").read_text()

    def test_cleanup_removes_work_dir(self, tmp_path, host):
        config = BuildConfig(format="flatpak", cleanup="yes", architecture=Architecture.AMD64)
        artifact = BuildPipeline(config, project_root=tmp_path).run()

        assert artifact.path.is_file()
        assert not (tmp_path / "build").exists()

    def test_previous_work_dir_is_replaced(self, tmp_path, host):
        stale = tmp_path / "build" / "stale.txt"
        stale.parent.mkdir()
        stale.write_text("old")
        config = BuildConfig(format="flatpak", cleanup="no", architecture=Architecture.AMD64)

        BuildPipeline(config, project_root=tmp_path).run()

        assert not stale.exists()

    def test_patch_summary_is_reported(self, tmp_path, host, capsys):
        config = BuildConfig(format="flatpak", cleanup="no", architecture=Architecture.AMD64)
        BuildPipeline(config, project_root=tmp_path).run()

        assert "6 of 6 patch operation(s) changed the archive" in capsys.readouterr().out


class TestResolve:
    """Tests for the resolver stage."""

    def test_architecture_is_detected(self, tmp_path, host, monkeypatch):
        monkeypatch.setattr(environment, "detect_architecture", lambda: Architecture.ARM64)
        pipeline = BuildPipeline(BuildConfig(format="flatpak"), project_root=tmp_path)

        config = pipeline.resolve()

        assert config.architecture == Architecture.ARM64
        assert pipeline.config.architecture == Architecture.ARM64

    def test_root_stops_before_any_work(self, tmp_path, host, monkeypatch):
        def refuse():
            raise ConfigurationError("This tool should not be run using sudo or as the root user.")

        monkeypatch.setattr(environment, "ensure_not_root", refuse)
        config = BuildConfig(format="flatpak", architecture=Architecture.AMD64)

        with pytest.raises(ConfigurationError):
            BuildPipeline(config, project_root=tmp_path).run()
        assert host.calls == []
        assert not (tmp_path / "build").exists()


class TestNextSteps:
    """Tests for the closing guidance."""

    def test_appimage_guidance_depends_on_ci(self, tmp_path, capsys):
        artifact = PackageArtifact(
            path=tmp_path / "claude-desktop-1.0.0-amd64.AppImage",
            format=BuildFormat.APPIMAGE,
            version="1.0.0",
            architecture=Architecture.AMD64,
        )

        print_next_steps(artifact, ci=True)
        ci_out = capsys.readouterr().out
        print_next_steps(artifact, ci=False)
        local_out = capsys.readouterr().out

        assert "embedded update information" in ci_out
        assert "does not include update information" in local_out

    def test_not_found(self, capsys):
        artifact = PackageArtifact(
            path=None, format=BuildFormat.DEB, version="1.0.0", architecture=Architecture.AMD64
        )
        print_next_steps(artifact, ci=False)
        assert "Debian package file not found" in capsys.readouterr().out
