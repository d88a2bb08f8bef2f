"""
Command-line interface for claude-desktop-linux.

Usage:
    claude-desktop-build
    claude-desktop-build --build appimage --clean no
    claude-desktop-build -b flatpak --test-flags
"""

from __future__ import annotations

import sys

import click
from pydantic import ValidationError
from rich.table import Table

from claude_desktop_linux import __version__
from claude_desktop_linux.exceptions import ClaudeBuildError, ConfigurationError
from claude_desktop_linux.models import BuildConfig
from claude_desktop_linux.output import console, error, section


def make_config(build_format: str, clean: str) -> BuildConfig:
    """Validate raw option values into a BuildConfig."""
    try:
        return BuildConfig(format=build_format, cleanup=clean)
    except ValidationError as e:
        first = e.errors()[0]
        cause = first.get("ctx", {}).get("error")
        raise ConfigurationError(str(cause) if cause else first["msg"])


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__)
@click.option("-b", "--build", "build_format", default="deb", show_default=True, metavar="deb|appimage|flatpak",
              help="Build format (case-insensitive)")
@click.option("-c", "--clean", default="yes", show_default=True, metavar="yes|no",
              help="Remove intermediate build files when done")
@click.option("--test-flags", is_flag=True, help="Parse flags, print results, and exit without building")
def cli(build_format: str, clean: str, test_flags: bool):
    """Repackage Claude Desktop for Windows as a native Linux package."""
    config = make_config(build_format, clean)

    section("Argument Parsing")
    console.print(f"Selected build format: {config.format.value}")
    console.print(f"Cleanup intermediate files: {config.cleanup_label}")

    if test_flags:
        table = Table(show_header=False, box=None, title="Test Flags Mode Enabled")
        table.add_column("Option", style="bold")
        table.add_column("Value")
        table.add_row("Build Format", config.format.value)
        table.add_row("Clean Action", config.cleanup_label)
        console.print(table)
        console.print("Exiting without build.")
        return

    from claude_desktop_linux.pipeline import BuildPipeline

    BuildPipeline(config).run()


def main(argv: list[str] | None = None) -> int:
    """Entry point. Returns the process exit status."""
    try:
        result = cli.main(args=argv, prog_name="claude-desktop-build", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        error("Aborted")
        return 1
    except ClaudeBuildError as e:
        error(str(e))
        return 1
    # --help and --version exit through click.exceptions.Exit, which main() returns as a code
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())
