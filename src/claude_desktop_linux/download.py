"""
Single-attempt HTTP downloads with a progress bar.
"""

from __future__ import annotations

from pathlib import Path

import httpx
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)

from claude_desktop_linux.exceptions import ClaudeBuildError
from claude_desktop_linux.output import console

CHUNK_SIZE = 1024 * 256


def fetch(
    url: str,
    destination: Path | str,
    *,
    error: type[ClaudeBuildError] = ClaudeBuildError,
    client: httpx.Client | None = None,
) -> Path:
    """
    Download url to destination.

    There is no retry and no timeout beyond httpx's connect defaults.
    A partially written file is removed on failure.

    Raises:
        error: On any transport error or non-success status
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, timeout=httpx.Timeout(30.0, read=None))

    try:
        with client.stream("GET", url) as response:
            if response.status_code != 200:
                raise error(f"Failed to download {url}: HTTP {response.status_code}")

            total = int(response.headers.get("content-length", 0)) or None
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task(f"Downloading {destination.name}", total=total)
                with destination.open("wb") as handle:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        handle.write(chunk)
                        progress.update(task, advance=len(chunk))
    except httpx.HTTPError as e:
        destination.unlink(missing_ok=True)
        raise error(f"Failed to download {url}: {e}")
    except ClaudeBuildError:
        destination.unlink(missing_ok=True)
        raise
    finally:
        if own_client:
            client.close()

    return destination
