"""Test configuration for claude-desktop-linux."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest
from PIL import Image

from claude_desktop_linux import download, tools

INDEX_JS = (
    'const e=require("electron");'
    'function Wn(){if(process.platform==="darwin")return"darwin-universal";'
    'if(process.platform==="win32")return"win32-x64";throw new Error("unsupported")}'
    'e.app.whenReady().then(()=>{Bt.on("menuBarEnabled",()=>{rT()})});'
    'let Zt=null;function rT(){const t=Bt.get("menuBarEnabled");'
    'Zt&&(Zt.destroy(),Zt=null);if(t){Zt=new e.Tray(Pn())}}'
    'function mk(){return new e.BrowserWindow({width:800,frame:!1,titleBarStyle:"hidden",show:!1})}'
)

MAIN_WINDOW_JS = 'function Rw(){const isWin=$e(),isMain=Xe();if(!isWin && isMain)return null;return h("div")}'

# Not valid UTF-8; must survive the patch run byte for byte
OPAQUE_BYTES = b"/* vendor */\xff\xfe\x00var q=1;\n"


def write_app_tree(root: Path) -> Path:
    """Lay out a minimal extracted app.asar."""
    build = root / ".vite" / "build"
    assets = root / ".vite" / "renderer" / "main_window" / "assets"
    build.mkdir(parents=True, exist_ok=True)
    assets.mkdir(parents=True, exist_ok=True)

    (root / "package.json").write_text(json.dumps({"name": "claude", "main": ".vite/build/index.js"}))
    (build / "index.js").write_text(INDEX_JS)
    (build / "vendor.js").write_bytes(OPAQUE_BYTES)
    (assets / "MainWindowPage-Bq3x9.js").write_text(MAIN_WINDOW_JS)
    (assets / "styles-1a2b.css").write_bytes(b"body{margin:0}\n")
    return root


def write_icons(output_dir: Path, sizes=(16, 32, 256)) -> dict:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = {}
    for size in sizes:
        path = output_dir / f"claude-{size}.png"
        Image.new("RGBA", (size, size), (200, 100, 50, 255)).save(path, "PNG")
        written[size] = path
    return written


@pytest.fixture
def app_tree(tmp_path):
    """Extracted application archive contents."""
    return write_app_tree(tmp_path / "app.asar.contents")


class FakeTools:
    """
    Stand-in for the external programs.

    Each handled command mimics the filesystem effect of the real tool;
    every call is recorded in self.calls.
    """

    def __init__(self, version="0.12.34"):
        self.version = version
        self.calls = []

    def __call__(self, cmd, *, error=None, cwd=None, env=None, capture=True):
        args = [str(part) for part in cmd]
        self.calls.append(args)
        program = Path(args[0]).name

        if program == "7z":
            self._sevenzip(Path(args[3]), Path(args[4][2:]))
        elif program == "npm":
            self._npm(Path(cwd))
        elif program == "asar":
            self._asar(args[1], Path(args[2]), Path(args[3]))
        elif program == "rsync":
            shutil.copytree(args[2], args[3], symlinks=True, dirs_exist_ok=True)
        elif program == "flatpak" and args[1] == "build-bundle":
            Path(args[3]).write_bytes(b"flatpak bundle")
        elif program == "dpkg-deb":
            Path(args[-1]).write_bytes(b"!<arch>\n")
        return subprocess.CompletedProcess(args, 0, stdout="", stderr="")

    def commands(self, program):
        return [c for c in self.calls if Path(c[0]).name == program]

    def _sevenzip(self, archive: Path, output_dir: Path):
        output_dir.mkdir(parents=True, exist_ok=True)
        if archive.suffix == ".exe":
            (output_dir / f"AnthropicClaude-{self.version}-full.nupkg").write_bytes(b"PK")
            return
        app_root = output_dir / "lib" / "net45"
        resources = app_root / "resources"
        (resources / "app.asar.unpacked" / "node_modules").mkdir(parents=True, exist_ok=True)
        (resources / "app.asar").write_bytes(b"asar")
        (resources / "en-US.json").write_text('{"hello": "Hello"}')
        (resources / "de-DE.json").write_text('{"hello": "Hallo"}')
        (resources / "TrayIconTemplate.png").write_bytes(b"\x89PNG")
        (app_root / "claude.exe").write_bytes(b"MZ")

    def _npm(self, cwd: Path):
        dist = cwd / "node_modules" / "electron" / "dist"
        dist.mkdir(parents=True, exist_ok=True)
        (dist / "electron").write_bytes(b"\x7fELF")
        (dist / "chrome-sandbox").write_bytes(b"\x7fELF")
        asar = cwd / "node_modules" / ".bin" / "asar"
        asar.parent.mkdir(parents=True, exist_ok=True)
        asar.write_text("#!/bin/sh\n")

    def _asar(self, action: str, source: Path, dest: Path):
        if action == "extract":
            write_app_tree(dest)
        elif action == "pack":
            dest.write_bytes(b"packed:" + (source / "package.json").read_bytes())


@pytest.fixture
def fake_tools(monkeypatch):
    """Route tools.run and download.fetch through FakeTools."""
    fake = FakeTools()
    monkeypatch.setattr(tools, "run", fake)

    def fake_fetch(url, destination, *, error=None, client=None):
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"MZ installer")
        fake.calls.append(["fetch", url, str(destination)])
        return destination

    monkeypatch.setattr(download, "fetch", fake_fetch)
    return fake
