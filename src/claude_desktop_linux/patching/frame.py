"""
Native window decorations.

Two complementary patches: an entry-point wrapper that rewrites the
options of every BrowserWindow at construction time, and a lexical pass
over the bundled main-process code that turns frameless windows into
framed ones.
"""

from __future__ import annotations

import re
from pathlib import Path
from textwrap import dedent

from claude_desktop_linux.asar import MANIFEST_NAME, read_manifest, write_manifest
from claude_desktop_linux.exceptions import PatchError
from claude_desktop_linux.patching.base import (
    PatchOperation,
    PatchResult,
    read_source,
    write_source,
)

WRAPPER_FILE = "frame-fix-wrapper.js"
ENTRY_FILE = "frame-fix-entry.js"
BUILD_DIR = Path(".vite") / "build"

WRAPPER_JS = dedent('''\
    // Inject frame fix before main app loads
    const Module = require('module');
    const originalRequire = Module.prototype.require;

    console.log('[Frame Fix] Wrapper loaded');

    Module.prototype.require = function(id) {
      const module = originalRequire.apply(this, arguments);

      if (id === 'electron') {
        console.log('[Frame Fix] Intercepting electron module');
        const OriginalBrowserWindow = module.BrowserWindow;

        module.BrowserWindow = class BrowserWindowWithFrame extends OriginalBrowserWindow {
          constructor(options) {
            if (process.platform === 'linux') {
              options = options || {};
              const originalFrame = options.frame;
              options.frame = true;
              delete options.titleBarStyle;
              delete options.titleBarOverlay;
              console.log(`[Frame Fix] Modified frame from ${originalFrame} to true`);
            }
            super(options);
          }
        };

        // Static members only; the prototype chain comes from extends
        for (const key of Object.getOwnPropertyNames(OriginalBrowserWindow)) {
          if (key !== 'prototype' && key !== 'length' && key !== 'name') {
            try {
              const descriptor = Object.getOwnPropertyDescriptor(OriginalBrowserWindow, key);
              if (descriptor) {
                Object.defineProperty(module.BrowserWindow, key, descriptor);
              }
            } catch (e) {
              // non-configurable
            }
          }
        }
      }

      return module;
    };
''')


def entry_js(original_main: str) -> str:
    return dedent(f'''\
        // Load frame fix first
        require('./{WRAPPER_FILE}');
        // Then load original main
        require('./{original_main}');
    ''')


class EntryPointWrapper(PatchOperation):
    """
    Route package.json main through the frame-fix bootstrap.

    The previous main is kept under originalMain. When main already points
    at the bootstrap the manifest is not touched again.
    """

    name = "entry-point wrapper"

    def apply(self, root: Path) -> PatchResult:
        manifest = read_manifest(root)
        main = manifest.get("main")
        if not main:
            raise PatchError(f"{root / MANIFEST_NAME} has no main entry")

        if main == ENTRY_FILE:
            original_main = manifest.get("originalMain")
            if not original_main:
                raise PatchError(f"{root / MANIFEST_NAME} points at {ENTRY_FILE} but has no originalMain")
            changed = self._write_bootstrap(root, original_main)
            detail = "bootstrap files refreshed" if changed else "already applied"
            return PatchResult(self.name, changed, [root / ENTRY_FILE], detail)

        self._write_bootstrap(root, main)
        manifest["originalMain"] = main
        manifest["main"] = ENTRY_FILE
        manifest_path = write_manifest(root, manifest)
        return PatchResult(
            self.name,
            True,
            [manifest_path, root / WRAPPER_FILE, root / ENTRY_FILE],
            f"main {main} -> {ENTRY_FILE}",
        )

    def _write_bootstrap(self, root: Path, original_main: str) -> bool:
        changed = False
        for path, content in ((root / WRAPPER_FILE, WRAPPER_JS), (root / ENTRY_FILE, entry_js(original_main))):
            if not path.exists() or path.read_text(encoding="utf-8") != content:
                path.write_text(content, encoding="utf-8")
                changed = True
        return changed


FRAME_DISABLED = re.compile(r"(?<![\w$])frame\s*:\s*(?:false|!0|!1)(?![\w$])")
TITLE_BAR_STYLE = re.compile(r"(?<![\w$])titleBarStyle\s*:\s*[^,}]*")


def normalize_decorations(source: str) -> str:
    """Force frame:true and blank every titleBarStyle value."""
    source = FRAME_DISABLED.sub("frame:true", source)
    return TITLE_BAR_STYLE.sub('titleBarStyle:""', source)


class DecorationFlags(PatchOperation):
    """Lexical decoration rewrite over every bundled file that creates windows."""

    name = "decoration flags"

    def apply(self, root: Path) -> PatchResult:
        build_dir = root / BUILD_DIR
        if not build_dir.is_dir():
            raise PatchError(f"Bundled build directory not found: {build_dir}")

        candidates = []
        for path in sorted(build_dir.rglob("*.js")):
            source = read_source(path)
            if "BrowserWindow" in source:
                candidates.append((path, source))
        if not candidates:
            raise PatchError(f"No file under {build_dir} references BrowserWindow")

        changed = []
        for path, source in candidates:
            patched = normalize_decorations(source)
            if patched != source:
                write_source(path, patched)
                changed.append(path)

        return PatchResult(self.name, bool(changed), changed, f"{len(changed)} of {len(candidates)} files rewritten")
