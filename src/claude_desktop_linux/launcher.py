"""
Launcher script and desktop entry generation.

Every back-end starts Electron the same way: pick the display protocol
at run time, then exec the bundled electron binary against app.asar with
native decorations and without Chromium's own sandbox.
"""

from __future__ import annotations

from textwrap import dedent

from claude_desktop_linux.models import AppMetadata

# Flags passed on every launch
BASE_FLAGS = ["--disable-features=CustomTitlebar", "--no-sandbox"]

WAYLAND_FLAGS = [
    "--ozone-platform=wayland",
    "--enable-features=UseOzonePlatform,WaylandWindowDecorations,GlobalShortcutsPortal",
    "--enable-wayland-ime",
    "--wayland-text-input-version=3",
]

X11_FLAGS = ["--enable-features=UseOzonePlatform"]

# Paths of the staged app relative to its install root
ELECTRON_BINARY = "node_modules/electron/dist/electron"
APP_ARCHIVE = "node_modules/electron/dist/resources/app.asar"


def _bash_array_items(flags: list[str]) -> str:
    return " ".join(f'"{flag}"' for flag in flags)


def launcher_script(app_dir: str, log_name: str, title: str) -> str:
    """
    Generate a bash launcher.

    Args:
        app_dir: Install root of the staged app; may reference shell variables
        log_name: Directory name under $XDG_CACHE_HOME for the launcher log
        title: First line written to the log
    """
    wayland = "\n".join(f'  ELECTRON_ARGS+=("{flag}")' for flag in WAYLAND_FLAGS)
    x11 = "\n".join(f'  ELECTRON_ARGS+=("{flag}")' for flag in X11_FLAGS)
    return dedent('''\
        #!/bin/bash
        set -euo pipefail

        LOG_DIR="${{XDG_CACHE_HOME:-$HOME/.cache}}/{log_name}"
        mkdir -p "$LOG_DIR"
        LOG_FILE="$LOG_DIR/launcher.log"
        echo "--- {title} ---" > "$LOG_FILE"
        echo "Timestamp: $(date)" >> "$LOG_FILE"
        echo "Args: $*" >> "$LOG_FILE"

        APP_DIR="{app_dir}"
        ELECTRON_EXEC="$APP_DIR/{electron}"
        APP_PATH="$APP_DIR/{archive}"

        export ELECTRON_FORCE_IS_PACKAGED=true
        export ELECTRON_USE_SYSTEM_TITLE_BAR=1

        IS_WAYLAND=false
        if [ -n "${{WAYLAND_DISPLAY:-}}" ]; then
          IS_WAYLAND=true
        fi
        echo "Wayland: $IS_WAYLAND" >> "$LOG_FILE"

        ELECTRON_ARGS=("$APP_PATH" {base})

        if [ "$IS_WAYLAND" = true ]; then
        {wayland}
        else
        {x11}
        fi

        cd "$APP_DIR"
        exec "$ELECTRON_EXEC" "${{ELECTRON_ARGS[@]}}" "$@"
    ''').format(
        log_name=log_name,
        title=title,
        app_dir=app_dir,
        electron=ELECTRON_BINARY,
        archive=APP_ARCHIVE,
        base=_bash_array_items(BASE_FLAGS),
        wayland=wayland,
        x11=x11,
    )


def desktop_entry(
    metadata: AppMetadata,
    *,
    exec_command: str,
    icon: str,
    name: str | None = None,
    comment: str | None = None,
    extra: dict[str, str] | None = None,
) -> str:
    """Generate a freedesktop .desktop file."""
    lines = [
        "[Desktop Entry]",
        "Type=Application",
        f"Name={name or metadata.display_name}",
        f"Comment={comment or metadata.description}",
        f"Exec={exec_command} %u",
        f"Icon={icon}",
        f"Categories={';'.join(metadata.categories)};",
        "Terminal=false",
        f"MimeType=x-scheme-handler/{metadata.url_scheme};",
        f"StartupWMClass={metadata.wm_class}",
    ]
    for key, value in (extra or {}).items():
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"
