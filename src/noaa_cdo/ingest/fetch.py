"""Download raw GHCN-Daily files from NCEI."""

from __future__ import annotations

from pathlib import Path
import logging

import requests

from noaa_cdo.config import DATA_DIR, GHCN_DLY_URL, GHCN_STATIONS_URL
from noaa_cdo.errors import SourceUnavailable, WriteFailure

logger = logging.getLogger(__name__)


def download_file(url: str, dest: str | Path, timeout: int = 60) -> Path:
    """Stream a URL to a local file.

    Raises SourceUnavailable on any HTTP/network error and WriteFailure when
    the destination can't be written.
    """
    dest = Path(dest)
    logger.info("Downloading %s", url)

    try:
        resp = requests.get(url, stream=True, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise SourceUnavailable(f"Failed to download {url}: {exc}") from exc

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "wb") as f:
            for chunk in resp.iter_content(chunk_size=1 << 16):
                f.write(chunk)
    except OSError as exc:
        raise WriteFailure(f"Could not write {dest}: {exc}") from exc
    finally:
        resp.close()

    logger.info("Saved %s", dest)
    return dest


def fetch_stations_file(dest_dir: str | Path = DATA_DIR) -> Path:
    """Download ``ghcnd-stations.txt``."""
    return download_file(GHCN_STATIONS_URL, Path(dest_dir) / "ghcnd-stations.txt")


def fetch_dly_files(station_ids: list[str], dest_dir: str | Path = DATA_DIR) -> list[Path]:
    """Download the ``.dly`` file of each station. Stops at the first failure."""
    dest_dir = Path(dest_dir)
    paths = []
    for station_id in station_ids:
        url = f"{GHCN_DLY_URL}{station_id}.dly"
        paths.append(download_file(url, dest_dir / f"{station_id}.dly"))
    return paths
