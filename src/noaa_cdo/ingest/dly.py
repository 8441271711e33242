"""GHCN-Daily ``.dly`` parser.

Each line holds one station/month/element with 31 day slots:

    ------------------------------
    Variable   Columns   Type
    ------------------------------
    ID            1-11   Character
    YEAR         12-15   Integer
    MONTH        16-17   Integer
    ELEMENT      18-21   Character
    VALUE1       22-26   Integer
    MFLAG1       27-27   Character
    QFLAG1       28-28   Character
    SFLAG1       29-29   Character
      ...
    VALUE31    262-266   Integer
    ...
    SFLAG31    269-269   Character
    ------------------------------

Values are kept as published (tenths of the element's unit, -9999 missing).
"""

from __future__ import annotations

from pathlib import Path
import logging

import pandas as pd

from noaa_cdo.db.sources import write_frame
from noaa_cdo.errors import SourceUnavailable

logger = logging.getLogger(__name__)

COLUMNS = ["id", "year", "month", "day", "date", "element", "value", "mflag", "qflag", "sflag"]

DLY_TYPES = {
    "id": "VARCHAR", "year": "INTEGER", "month": "INTEGER", "day": "INTEGER",
    "date": "DATE", "element": "VARCHAR", "value": "INTEGER",
    "mflag": "VARCHAR", "qflag": "VARCHAR", "sflag": "VARCHAR",
}
_EMPTY_DTYPES = {
    "id": "string", "year": "int64", "month": "int64", "day": "int64",
    "date": "datetime64[ns]", "element": "string", "value": "int64",
    "mflag": "string", "qflag": "string", "sflag": "string",
}

_HEADER_SPECS = [("id", 0, 11), ("year", 11, 15), ("month", 15, 17), ("element", 17, 21)]
_DAY_WIDTH = 8
_DAYS = range(1, 32)


def _colspecs() -> tuple[list[tuple[int, int]], list[str]]:
    specs = [(start, end) for _, start, end in _HEADER_SPECS]
    names = [name for name, _, _ in _HEADER_SPECS]
    for day in _DAYS:
        start = 21 + (day - 1) * _DAY_WIDTH
        specs += [(start, start + 5), (start + 5, start + 6), (start + 6, start + 7), (start + 7, start + 8)]
        names += [f"value{day}", f"mflag{day}", f"qflag{day}", f"sflag{day}"]
    return specs, names


DLY_COLSPECS, DLY_NAMES = _colspecs()


def parse_dly_file(path: str | Path) -> pd.DataFrame:
    """Parse one ``.dly`` file into one row per calendar day.

    Day slots that don't exist in the month (Feb 30, Apr 31, ...) are dropped.
    """
    try:
        raw = pd.read_fwf(
            path,
            colspecs=DLY_COLSPECS,
            names=DLY_NAMES,
            header=None,
            dtype=str,
            na_filter=False,
        )
    except pd.errors.EmptyDataError:
        return _empty_df()

    if raw.empty:
        return _empty_df()

    frames = []
    for day in _DAYS:
        frames.append(pd.DataFrame({
            "line": raw.index,
            "id": raw["id"],
            "year": raw["year"],
            "month": raw["month"],
            "day": day,
            "element": raw["element"],
            "value": raw[f"value{day}"],
            "mflag": raw[f"mflag{day}"],
            "qflag": raw[f"qflag{day}"],
            "sflag": raw[f"sflag{day}"],
        }))
    df = pd.concat(frames, ignore_index=True)

    df["year"] = df["year"].astype(int)
    df["month"] = df["month"].astype(int)
    df["value"] = pd.to_numeric(df["value"], errors="coerce").fillna(-9999).astype(int)

    dates = pd.to_datetime(
        pd.DataFrame({"year": df["year"], "month": df["month"], "day": df["day"]}),
        errors="coerce",
    )
    df = df[dates.notna()].copy()
    df["date"] = dates[dates.notna()].dt.date

    df = df.sort_values(["line", "day"], kind="stable").reset_index(drop=True)
    return df[COLUMNS]


def find_dly_files(directory: str | Path) -> list[Path]:
    """All ``.dly`` files directly inside a directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise SourceUnavailable(f"Not a directory: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".dly")


def parse_dly_directory(directory: str | Path, output_path: str | Path) -> int:
    """Parse every ``.dly`` file in a directory into one CSV/Parquet file.

    Returns the number of rows written.
    """
    files = find_dly_files(directory)
    logger.info("Found %d .dly files in %s", len(files), directory)

    frames = []
    for i, path in enumerate(files, start=1):
        logger.debug("Parsing file %d of %d: %s", i, len(files), path)
        frames.append(parse_dly_file(path))

    if frames:
        df = pd.concat(frames, ignore_index=True)
    else:
        logger.warning("No .dly files in %s", directory)
        df = _empty_df()

    count = write_frame(df, output_path, DLY_TYPES)
    logger.info("Wrote %d observation rows to %s", count, output_path)
    return count


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame(columns=COLUMNS).astype(_EMPTY_DTYPES)
