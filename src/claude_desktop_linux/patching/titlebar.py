"""
Title bar visibility fix in the main window renderer.

The renderer hides its title bar with a guard shaped like
if(!isWindows && isMainWindow). Dropping the negation makes the bar
render on Linux. Only this two-identifier shape is recognised; any other
shape leaves the post-condition unmet and the patch fails.
"""

from __future__ import annotations

import re
from pathlib import Path

from claude_desktop_linux.exceptions import PatchError, VerificationError
from claude_desktop_linux.patching.base import (
    PatchOperation,
    PatchResult,
    find_single_file,
    read_source,
    write_source,
)

ASSETS_DIR = Path(".vite") / "renderer" / "main_window" / "assets"
TARGET_GLOB = "MainWindowPage-*.js"

NEGATED_GUARD = re.compile(r"if\(!([a-zA-Z]+)\s*&&\s*([a-zA-Z]+)\)")
PATCHED_GUARD = re.compile(r"if\(([a-zA-Z]+) && ([a-zA-Z]+)\)")


def flip_guard(source: str) -> tuple[str, int]:
    """Rewrite every if(!A && B) to if(A && B); returns the new text and count."""
    return NEGATED_GUARD.subn(r"if(\1 && \2)", source)


def verify_guard(source: str, path: Path | str = "<source>") -> None:
    if NEGATED_GUARD.search(source):
        raise VerificationError(
            f"Failed to replace patterns like 'if(!VAR1 && VAR2)' in {path}. Check file contents."
        )


class TitleBarGuard(PatchOperation):
    """Flip the negated window-type guard in the single MainWindowPage chunk."""

    name = "title bar guard"

    def apply(self, root: Path) -> PatchResult:
        target = find_single_file(root / ASSETS_DIR, TARGET_GLOB)
        source = read_source(target)

        patched, count = flip_guard(source)
        if count == 0:
            if PATCHED_GUARD.search(source):
                verify_guard(source, target)
                return PatchResult(self.name, False, [target], "already applied")
            raise PatchError(f"No 'if(!VAR1 && VAR2)' guard found in {target}")

        verify_guard(patched, target)
        write_source(target, patched)
        return PatchResult(self.name, True, [target], f"{count} guard(s) flipped")
