"""
Electron application archive (asar) handling.
"""

from __future__ import annotations

import json
from pathlib import Path

from claude_desktop_linux import tools
from claude_desktop_linux.exceptions import PatchError

MANIFEST_NAME = "package.json"


class AsarArchive:
    """
    An app.asar plus its extracted content tree.

    Usage:
        archive = AsarArchive(asar_bin, staging / "app.asar")
        contents = archive.extract()
        ...mutate contents...
        archive.pack()
    """

    def __init__(self, asar_bin: Path | str, archive_path: Path | str, contents_dir: Path | str | None = None):
        self.asar_bin = Path(asar_bin)
        self.archive_path = Path(archive_path)
        self.contents_dir = (
            Path(contents_dir) if contents_dir else self.archive_path.with_name(self.archive_path.name + ".contents")
        )

    def extract(self) -> Path:
        tools.run(
            [self.asar_bin, "extract", self.archive_path, self.contents_dir],
            error=PatchError,
        )
        return self.contents_dir

    def pack(self) -> Path:
        tools.run(
            [self.asar_bin, "pack", self.contents_dir, self.archive_path],
            error=PatchError,
        )
        return self.archive_path

    @property
    def manifest_path(self) -> Path:
        return self.contents_dir / MANIFEST_NAME

    def read_manifest(self) -> dict:
        return read_manifest(self.contents_dir)

    def main_entry(self) -> str:
        main = self.read_manifest().get("main")
        if not main:
            raise PatchError(f"{self.manifest_path} has no main entry")
        return main


def read_manifest(contents_dir: Path) -> dict:
    """Parsed package.json of an extracted archive."""
    path = Path(contents_dir) / MANIFEST_NAME
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PatchError(f"Cannot read {path}: {e}")


def write_manifest(contents_dir: Path, manifest: dict) -> Path:
    path = Path(contents_dir) / MANIFEST_NAME
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return path
