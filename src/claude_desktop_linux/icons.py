"""
Icon extraction from Windows executables.

Uses icoextract to pull the icon group out of the PE file,
then Pillow to write each embedded size as a PNG.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from icoextract import IconExtractor, IconExtractorError
from PIL import Image

from claude_desktop_linux.exceptions import ClaudeBuildError


class IconExtractionError(ClaudeBuildError):
    """Error extracting icon from executable."""
    pass


def icon_filename(name: str, size: int) -> str:
    return f"{name}-{size}.png"


def extract_icons(
    exe_path: Path | str,
    output_dir: Path | str,
    name: str = "claude",
) -> dict[int, Path]:
    """
    Write every size in the executable's main icon group as a PNG.

    Args:
        exe_path: Path to .exe file
        output_dir: Directory for output PNGs
        name: Base name for icon files

    Returns:
        Dict mapping pixel size to output path

    Raises:
        IconExtractionError: If the executable or its icon cannot be read
    """
    exe_path = Path(exe_path)
    output_dir = Path(output_dir)
    if not exe_path.is_file():
        raise IconExtractionError(f"Cannot find executable at {exe_path}")

    try:
        extractor = IconExtractor(str(exe_path))
    except Exception as e:
        raise IconExtractionError(f"Failed to open executable: {e}")

    output_dir.mkdir(parents=True, exist_ok=True)
    results: dict[int, Path] = {}

    with tempfile.TemporaryDirectory(prefix="claude-icons-") as tmpdir:
        tmp_ico = Path(tmpdir) / "icon.ico"
        try:
            extractor.export_icon(str(tmp_ico), num=0)
        except (IconExtractorError, OSError) as e:
            raise IconExtractionError(f"Failed to extract icons from exe: {e}")

        try:
            with Image.open(tmp_ico) as ico:
                for width, height in sorted(ico.info.get("sizes", {ico.size})):
                    frame = ico.ico.getimage((width, height)).convert("RGBA")
                    output_path = output_dir / icon_filename(name, width)
                    frame.save(output_path, "PNG")
                    results[width] = output_path
        except OSError as e:
            raise IconExtractionError(f"Failed to convert icons: {e}")

    if not results:
        raise IconExtractionError(f"No icons found in {exe_path}")
    return results


def available_icons(icons_dir: Path | str, name: str = "claude") -> dict[int, Path]:
    """Icons previously written by extract_icons, keyed by size."""
    icons_dir = Path(icons_dir)
    found = {}
    for path in icons_dir.glob(f"{name}-*.png"):
        suffix = path.stem.rsplit("-", 1)[-1]
        if suffix.isdigit():
            found[int(suffix)] = path
    return found


def best_icon(icons: dict[int, Path], size: int, output_path: Path | str) -> Path | None:
    """
    Produce a size x size PNG at output_path.

    Uses the exact size when present, otherwise scales the largest
    available raster. Returns None when there are no icons at all.
    """
    if not icons:
        return None

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    source = icons.get(size) or icons[max(icons)]
    with Image.open(source) as img:
        img = img.convert("RGBA")
        if img.size != (size, size):
            img = img.resize((size, size), Image.Resampling.LANCZOS)
        img.save(output_path, "PNG")
    return output_path
