"""
claude-desktop-linux - Repackage Claude Desktop for Windows as native Linux packages.

Example usage:
    from claude_desktop_linux import BuildConfig, BuildPipeline

    config = BuildConfig(format="flatpak", cleanup="no")
    artifact = BuildPipeline(config, project_root="/tmp/claude-build").run()
    print(artifact.display_path())
"""

__version__ = "0.1.0"

from claude_desktop_linux.models import AppMetadata, Architecture, BuildConfig, BuildFormat, PackageArtifact
from claude_desktop_linux.pipeline import BuildPipeline

__all__ = [
    "AppMetadata",
    "Architecture",
    "BuildConfig",
    "BuildFormat",
    "BuildPipeline",
    "PackageArtifact",
]
