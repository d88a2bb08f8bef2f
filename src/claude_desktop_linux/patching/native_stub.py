"""
Linux replacement for the @ant/claude-native addon.

The Windows build ships a native module for platform integration. On
Linux every hook becomes a no-op, and AuthRequest reports itself
unavailable so that sign-in falls back to the system browser.
"""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

from claude_desktop_linux.patching.base import PatchOperation, PatchResult

MODULE_PATH = Path("node_modules") / "@ant" / "claude-native" / "index.js"

KEYBOARD_KEYS = {
    "Backspace": 43,
    "Tab": 280,
    "Enter": 261,
    "Shift": 272,
    "Control": 61,
    "Alt": 40,
    "CapsLock": 56,
    "Escape": 85,
    "Space": 276,
    "PageUp": 251,
    "PageDown": 250,
    "End": 83,
    "Home": 154,
    "LeftArrow": 175,
    "UpArrow": 282,
    "RightArrow": 262,
    "DownArrow": 81,
    "Delete": 79,
    "Meta": 187,
}

NOOP_HOOKS = [
    "setWindowEffect",
    "removeWindowEffect",
    "flashFrame",
    "clearFlashFrame",
    "showNotification",
    "setProgressBar",
    "clearProgressBar",
    "setOverlayIcon",
    "clearOverlayIcon",
]


def render_stub() -> str:
    keys = ", ".join(f"{name}: {code}" for name, code in KEYBOARD_KEYS.items())
    hooks = "".join(f"  {hook}: () => {{}},\n" for hook in NOOP_HOOKS)
    return (
        "// Stub implementation of claude-native for Linux\n"
        f"const KeyboardKey = {{ {keys} }};\n"
        "Object.freeze(KeyboardKey);\n"
        "\n"
        + dedent('''\
            // Not available on Linux; callers fall back to the system browser
            class AuthRequest {
              static isAvailable() {
                return false;
              }

              async start(url, scheme, windowHandle) {
                throw new Error('AuthRequest not available on Linux');
              }

              cancel() {
              }
            }

        ''')
        + "module.exports = {\n"
        '  getWindowsVersion: () => "10.0.0",\n'
        "  getIsMaximized: () => false,\n"
        + hooks
        + "  KeyboardKey,\n"
        "  AuthRequest\n"
        "};\n"
    )


STUB_JS = render_stub()


class NativeModuleStub(PatchOperation):
    """
    Write the stub module under each given root.

    The archive contents resolve the module from inside app.asar, while
    code loaded from app.asar.unpacked resolves it next to the archive,
    so the engine passes both trees.
    """

    name = "native module stub"

    def __init__(self, extra_roots: list[Path] | None = None):
        self.extra_roots = [Path(r) for r in extra_roots or []]

    def apply(self, root: Path) -> PatchResult:
        written = []
        for base in [root, *self.extra_roots]:
            target = base / MODULE_PATH
            if target.is_file() and target.read_text(encoding="utf-8") == STUB_JS:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(STUB_JS, encoding="utf-8")
            written.append(target)
        return PatchResult(self.name, bool(written), written)
