"""
Error taxonomy for the build pipeline.

Every expected failure raises a subclass of ClaudeBuildError. The CLI
catches the base class, prints the message and exits with status 1.
"""

from __future__ import annotations


class ClaudeBuildError(Exception):
    """Base class for all expected pipeline failures."""
    pass


class ConfigurationError(ClaudeBuildError):
    """Invalid option value, unsupported architecture or running as root."""
    pass


class HostEnvironmentError(ClaudeBuildError):
    """Missing package manager, failed sudo validation or failed install."""
    pass


class ToolchainError(ClaudeBuildError):
    """Node.js, Electron or asar could not be provisioned."""
    pass


class AcquisitionError(ClaudeBuildError):
    """Download, extraction or version detection failed."""
    pass


class PatchError(ClaudeBuildError):
    """An expected pattern, function or variable was absent or ambiguous."""
    pass


class VerificationError(PatchError):
    """A rewrite was applied but its post-condition does not hold."""
    pass


class BuildError(ClaudeBuildError):
    """Error during package build."""
    pass
