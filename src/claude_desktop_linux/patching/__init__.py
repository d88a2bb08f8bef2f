"""Patches applied to the extracted Claude Desktop application."""

from claude_desktop_linux.patching.base import PatchOperation, PatchResult
from claude_desktop_linux.patching.engine import PatchEngine, PatchReport, default_operations

__all__ = [
    "PatchEngine",
    "PatchOperation",
    "PatchReport",
    "PatchResult",
    "default_operations",
]
