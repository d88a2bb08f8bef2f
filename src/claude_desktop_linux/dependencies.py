"""
System dependency check and installation through apt or dnf.
"""

from __future__ import annotations

from claude_desktop_linux import tools
from claude_desktop_linux.exceptions import HostEnvironmentError
from claude_desktop_linux.models import BuildFormat
from claude_desktop_linux.output import step, success, warning

COMMON_COMMANDS = ["7z", "rsync"]
FORMAT_COMMANDS = {
    BuildFormat.DEB: ["dpkg-deb"],
    BuildFormat.APPIMAGE: [],
    BuildFormat.FLATPAK: ["flatpak-builder", "flatpak"],
}

# command -> distribution packages providing it
PACKAGES = {
    "apt": {
        "7z": ["p7zip-full"],
        "rsync": ["rsync"],
        "dpkg-deb": ["dpkg-dev"],
        "flatpak-builder": ["flatpak-builder"],
        "flatpak": ["flatpak"],
    },
    "dnf": {
        "7z": ["p7zip", "p7zip-plugins"],
        "rsync": ["rsync"],
        "dpkg-deb": ["dpkg"],
        "flatpak-builder": ["flatpak-builder"],
        "flatpak": ["flatpak"],
    },
}


def required_commands(fmt: BuildFormat) -> list[str]:
    return COMMON_COMMANDS + FORMAT_COMMANDS[fmt]


def detect_package_manager() -> str | None:
    for manager in ("apt", "dnf"):
        if tools.has_command(manager):
            return manager
    return None


def missing_commands(fmt: BuildFormat) -> list[str]:
    missing = []
    for command in required_commands(fmt):
        if tools.has_command(command):
            success(f"{command} found")
        else:
            warning(f"{command} not found")
            missing.append(command)
    return missing


def packages_for(commands: list[str], manager: str) -> list[str]:
    """Translate missing commands into a de-duplicated package list."""
    packages: list[str] = []
    for command in commands:
        for package in PACKAGES[manager].get(command, []):
            if package not in packages:
                packages.append(package)
    return packages


def ensure_dependencies(fmt: BuildFormat) -> list[str]:
    """
    Install whatever system tools the selected format needs.

    Returns:
        The packages that were installed (empty if nothing was missing)

    Raises:
        HostEnvironmentError: No package manager, sudo refused, or install failed
    """
    step("Checking dependencies...")
    missing = missing_commands(fmt)
    if not missing:
        return []

    manager = detect_package_manager()
    if manager is None:
        raise HostEnvironmentError(
            "Could not detect a supported package manager (apt or dnf). "
            f"Please install manually: {' '.join(missing)}"
        )

    packages = packages_for(missing, manager)
    step(f"System dependencies needed: {' '.join(packages)}")
    step(f"Attempting to install using sudo {manager}...")

    try:
        tools.run(["sudo", "-v"], error=HostEnvironmentError, capture=False)
    except HostEnvironmentError:
        raise HostEnvironmentError("Failed to validate sudo credentials. Please ensure you can run sudo.")

    try:
        if manager == "apt":
            tools.run(["sudo", "apt", "update"], error=HostEnvironmentError, capture=False)
        tools.run(["sudo", manager, "install", "-y", *packages], error=HostEnvironmentError, capture=False)
    except HostEnvironmentError as e:
        raise HostEnvironmentError(f"Failed to install dependencies using 'sudo {manager} install': {e}")

    success("System dependencies installed successfully via sudo")
    return packages
