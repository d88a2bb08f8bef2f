"""
Building blocks shared by the patch operations.

The application code is minified and its identifiers change between
releases, so patches never hard-code names. Instead a small capture
language binds names from a known structural shape:

    func = capture_one(r'on\\("menuBarEnabled",\\(\\)=>\\{([\\w$]+)\\(\\)\\}\\)', text, "tray handler")

capture_one fails when the shape is missing, and also when the shape
occurs several times but binds different names, since that means the
patch cannot tell which one is meant.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from claude_desktop_linux.exceptions import PatchError

# Minified JS identifiers, including $-prefixed ones
IDENT = r"[\w$]+"


@dataclass
class PatchResult:
    """Outcome of one operation."""
    name: str
    changed: bool
    files: list[Path] = field(default_factory=list)
    detail: str = ""


class PatchOperation(ABC):
    """
    An idempotent rewrite of the extracted application tree.

    Subclasses check their marker first; when it is present the operation
    reports no change. Otherwise every precondition is checked before any
    file is written, so an operation either applies completely or raises.
    How many matches an operation needs is decided inside apply with
    capture_one, replace_exactly_once or find_single_file.
    """

    name: str = ""

    @abstractmethod
    def apply(self, root: Path) -> PatchResult:
        """Apply to the tree rooted at root (the app.asar contents)."""
        pass


def read_source(path: Path) -> str:
    """Read a source file so that every byte survives a write back, line endings included."""
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
        return handle.read()


def write_source(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as handle:
        handle.write(content)


def capture_all(pattern: str | re.Pattern, text: str, group: int | str = 1) -> list[str]:
    """Every value bound by group, in order of appearance."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [m.group(group) for m in regex.finditer(text)]


def capture_one(pattern: str | re.Pattern, text: str, what: str, group: int | str = 1) -> str:
    """
    Bind a single name from a structural shape.

    Raises:
        PatchError: If the shape is absent or binds more than one distinct name
    """
    values = capture_all(pattern, text, group)
    if not values:
        raise PatchError(f"Failed to extract {what}: pattern not found")
    distinct = list(dict.fromkeys(values))
    if len(distinct) > 1:
        raise PatchError(f"Failed to extract {what}: ambiguous matches {', '.join(distinct)}")
    return distinct[0]


def replace_exactly_once(text: str, old: str, new: str, what: str) -> str:
    """Replace old with new, requiring old to occur exactly once."""
    count = text.count(old)
    if count == 0:
        raise PatchError(f"{what}: expected code not found")
    if count > 1:
        raise PatchError(f"{what}: expected one occurrence, found {count}")
    return text.replace(old, new, 1)


def find_single_file(base: Path, pattern: str) -> Path:
    """
    Resolve a filename glob under base to exactly one file.

    Raises:
        PatchError: If base is missing or the glob matches zero or several files
    """
    if not base.is_dir():
        raise PatchError(f"Search directory not found: {base}")
    matches = sorted(p for p in base.rglob(pattern) if p.is_file())
    if not matches:
        raise PatchError(f"No file matching '{pattern}' found within '{base}'")
    if len(matches) > 1:
        listing = ", ".join(str(p.relative_to(base)) for p in matches)
        raise PatchError(
            f"Expected exactly one file matching '{pattern}' within '{base}', "
            f"but found {len(matches)}: {listing}"
        )
    return matches[0]
