"""GHCN-Daily station inventory (``ghcnd-stations.txt``) parser.

    ------------------------------
    Variable   Columns   Type
    ------------------------------
    ID            1-11   Character
    LATITUDE     13-20   Real
    LONGITUDE    22-30   Real
    ELEVATION    32-37   Real
    STATE        39-40   Character
    NAME         42-71   Character
    GSN FLAG     73-75   Character
    HCN/CRN FLAG 77-79   Character
    WMO ID       81-85   Character
    ------------------------------
"""

from __future__ import annotations

from pathlib import Path
import logging

import pandas as pd

from noaa_cdo.db.sources import write_frame
from noaa_cdo.errors import SourceUnavailable

logger = logging.getLogger(__name__)

COLUMNS = ["id", "lat", "lon", "elevation", "state", "name", "gsn", "hcn", "crn", "wmo"]

STATION_TYPES = {
    "id": "VARCHAR", "lat": "DOUBLE", "lon": "DOUBLE", "elevation": "DOUBLE",
    "state": "VARCHAR", "name": "VARCHAR", "gsn": "BOOLEAN", "hcn": "BOOLEAN",
    "crn": "BOOLEAN", "wmo": "VARCHAR",
}
_EMPTY_DTYPES = {
    "id": "string", "lat": "float64", "lon": "float64", "elevation": "float64",
    "state": "string", "name": "string", "gsn": "bool", "hcn": "bool",
    "crn": "bool", "wmo": "string",
}

STATION_COLSPECS = [
    (0, 11), (12, 20), (21, 30), (31, 37), (38, 40),
    (41, 71), (72, 75), (76, 79), (80, 85),
]
STATION_NAMES = ["id", "lat", "lon", "elevation", "state", "name", "gsn_flag", "hcn_crn_flag", "wmo"]


def parse_stations_file(path: str | Path) -> pd.DataFrame:
    """Parse the station inventory into one row per station."""
    path = Path(path)
    if not path.is_file():
        raise SourceUnavailable(f"Station inventory must be a file: {path}")

    try:
        raw = pd.read_fwf(
            path,
            colspecs=STATION_COLSPECS,
            names=STATION_NAMES,
            header=None,
            dtype=str,
            na_filter=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=COLUMNS).astype(_EMPTY_DTYPES)

    hcn_crn = raw["hcn_crn_flag"].str.strip()
    df = pd.DataFrame({
        "id": raw["id"].str.strip(),
        "lat": pd.to_numeric(raw["lat"], errors="coerce"),
        "lon": pd.to_numeric(raw["lon"], errors="coerce"),
        "elevation": pd.to_numeric(raw["elevation"], errors="coerce"),
        "state": raw["state"].str.strip(),
        "name": raw["name"].str.strip(),
        "gsn": raw["gsn_flag"].str.strip() == "GSN",
        "hcn": hcn_crn == "HCN",
        "crn": hcn_crn == "CRN",
        "wmo": raw["wmo"].str.strip(),
    })

    logger.info("Parsed %d stations (%d GSN) from %s", len(df), int(df["gsn"].sum()), path)
    return df


def write_stations(path: str | Path, output_path: str | Path) -> int:
    """Parse the station inventory and write it to CSV/Parquet."""
    df = parse_stations_file(path)
    count = write_frame(df, output_path, STATION_TYPES)
    logger.info("Wrote %d station rows to %s", count, output_path)
    return count
