"""
Tray menu handler race fix.

Toggling the menu bar setting rebuilds the tray icon. Two toggles in
quick succession destroy and recreate the Tray before the StatusNotifier
D-Bus object is gone, leaving duplicate or dead icons. The handler is
made async, overlapping calls within 500ms are dropped, and a 50ms pause
follows the destroy inside the handler.

The handler and tray variable names are minified, so both are bound
from the code around the menuBarEnabled listener:

    ...on("menuBarEnabled",()=>{F()})});let V=null;function F(){const X=...
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from claude_desktop_linux.exceptions import PatchError
from claude_desktop_linux.patching.base import (
    IDENT,
    PatchOperation,
    PatchResult,
    capture_one,
    read_source,
    replace_exactly_once,
    write_source,
)

INDEX_FILE = Path(".vite") / "build" / "index.js"

GUARD_WINDOW_MS = 500
DESTROY_DELAY_MS = 50

HANDLER_PATTERN = rf'on\("menuBarEnabled",\(\)=>\{{({IDENT})\(\)\}}'


@dataclass(frozen=True)
class TrayNames:
    """Identifiers bound from the minified source."""
    function: str
    tray_var: str


def guard_flag(function: str) -> str:
    return f"{function}._running"


def guard_code(function: str) -> str:
    flag = guard_flag(function)
    return f"if({flag})return;{flag}=true;setTimeout(()=>{flag}=false,{GUARD_WINDOW_MS});"


def destroy_sequence(tray_var: str) -> str:
    return f"{tray_var}&&({tray_var}.destroy(),{tray_var}=null)"


def delayed_destroy_sequence(tray_var: str) -> str:
    return (
        f"{tray_var}&&({tray_var}.destroy(),{tray_var}=null,"
        f"await new Promise(r=>setTimeout(r,{DESTROY_DELAY_MS})))"
    )


def find_handler(source: str) -> str:
    return capture_one(HANDLER_PATTERN, source, "tray menu function name")


def find_tray_var(source: str, function: str) -> str:
    pattern = rf"\}}\);let ({IDENT})=null;(?:async )?function {re.escape(function)}\("
    return capture_one(pattern, source, "tray variable name")


def make_async(source: str, function: str) -> str:
    """Promote function F(){ to async function F(){ unless already async."""
    plain = re.compile(rf"(?<!async )function {re.escape(function)}\(\)\{{")
    if not plain.search(source):
        if f"async function {function}(){{" in source:
            return source
        raise PatchError(f"Declaration of {function}() not found")
    return plain.sub(f"async function {function}(){{", source)


def find_first_local(source: str, function: str) -> tuple[str, str]:
    """
    Bind the first local declaration in the async handler body.

    An already injected guard is skipped. Returns (keyword, name).
    """
    fn = re.escape(function)
    pattern = rf"async function {fn}\(\)\{{(?:if\({fn}\._running\)[^}}]*?)?(const|let|var) ({IDENT})="
    match = re.search(pattern, source)
    if not match:
        raise PatchError(f"Failed to extract first local variable name in {function}()")
    return match.group(1), match.group(2)


def inject_guard(source: str, function: str) -> tuple[str, bool]:
    if guard_flag(function) in source:
        return source, False
    keyword, name = find_first_local(source, function)
    head = f"async function {function}(){{{keyword} {name}="
    guarded = f"async function {function}(){{{guard_code(function)}{keyword} {name}="
    return replace_exactly_once(source, head, guarded, f"guard injection for {function}()"), True


def function_body(source: str, function: str) -> tuple[int, int]:
    """
    Span of the body of async function F(){...}, braces excluded.

    Braces are counted without regard to strings or regex literals.
    """
    head = f"async function {function}(){{"
    start = source.find(head)
    if start < 0:
        raise PatchError(f"Declaration of async {function}() not found")
    open_at = start + len(head) - 1
    depth = 0
    for index in range(open_at, len(source)):
        char = source[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return open_at + 1, index
    raise PatchError(f"Unbalanced braces in {function}()")


def inject_destroy_delay(source: str, function: str, tray_var: str) -> tuple[str, bool]:
    """Add the settle delay to the one destroy sequence inside the async handler."""
    delayed = delayed_destroy_sequence(tray_var)
    plain = destroy_sequence(tray_var)
    start, end = function_body(source, function)
    body = source[start:end]
    # plain is never a substring of delayed
    if plain not in body:
        if delayed in body:
            return source, False
        raise PatchError(f"Tray destroy sequence for {tray_var} not found in {function}()")
    body = replace_exactly_once(body, plain, delayed, f"tray destroy sequence in {function}()")
    return source[:start] + body + source[end:], True


def patch_tray_source(source: str) -> tuple[str, TrayNames, list[str]]:
    """
    Apply the whole tray fix to the text of index.js.

    Returns:
        (patched source, bound names, list of changes made)
    """
    function = find_handler(source)
    tray_var = find_tray_var(source, function)
    changes = []

    patched = make_async(source, function)
    if patched != source:
        changes.append(f"made {function}() async")

    patched, guarded = inject_guard(patched, function)
    if guarded:
        changes.append(f"added guard to {function}()")

    patched, delayed = inject_destroy_delay(patched, function, tray_var)
    if delayed:
        changes.append(f"added delay after {tray_var}.destroy()")

    return patched, TrayNames(function, tray_var), changes


class TrayHandlerFix(PatchOperation):
    name = "tray handler"

    def apply(self, root: Path) -> PatchResult:
        index = root / INDEX_FILE
        if not index.is_file():
            raise PatchError(f"{index} not found")

        source = read_source(index)
        patched, names, changes = patch_tray_source(source)
        if patched != source:
            write_source(index, patched)

        detail = f"function={names.function}, tray_var={names.tray_var}"
        if not changes:
            detail += " (already applied)"
        return PatchResult(self.name, bool(changes), [index], detail)
