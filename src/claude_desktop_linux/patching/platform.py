"""
Linux branch for the Claude Code binary platform lookup.
"""

from __future__ import annotations

from pathlib import Path

from claude_desktop_linux.exceptions import PatchError
from claude_desktop_linux.patching.base import (
    PatchOperation,
    PatchResult,
    read_source,
    replace_exactly_once,
    write_source,
)

INDEX_FILE = Path(".vite") / "build" / "index.js"

WIN32_BRANCH = 'if(process.platform==="win32")return"win32-x64";'
LINUX_EXPR = 'process.arch==="arm64"?"linux-arm64":"linux-x64"'
LINUX_BRANCH = f'if(process.platform==="linux")return {LINUX_EXPR};'


def add_linux_branch(source: str) -> tuple[str, bool]:
    if LINUX_EXPR in source:
        return source, False
    return replace_exactly_once(source, WIN32_BRANCH, WIN32_BRANCH + LINUX_BRANCH, "platform dispatch"), True


class LinuxBinaryPlatform(PatchOperation):
    name = "linux binary platform"

    def apply(self, root: Path) -> PatchResult:
        index = root / INDEX_FILE
        if not index.is_file():
            raise PatchError(f"{index} not found")

        source = read_source(index)
        patched, changed = add_linux_branch(source)
        if changed:
            write_source(index, patched)
        return PatchResult(self.name, changed, [index], "" if changed else "already applied")
