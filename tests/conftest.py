"""Shared test fixtures."""

from datetime import date

import duckdb
import numpy as np
import pandas as pd
import pytest


def make_observations(
    n_stations: int,
    years: tuple[int, ...] = (2008, 2009, 2010, 2011),
    elements: tuple[str, ...] = ("TMAX", "PRCP", "WT01"),
    prefix: str = "USW",
) -> pd.DataFrame:
    """One observation per station/year/element on Jan 1st."""
    rng = np.random.default_rng(0)
    rows = []
    for i in range(n_stations):
        station_id = f"{prefix}{i:08d}"
        for year in years:
            for element in elements:
                rows.append({
                    "id": station_id,
                    "year": year,
                    "month": 1,
                    "day": 1,
                    "date": date(year, 1, 1),
                    "element": element,
                    "value": int(rng.integers(-300, 300)),
                    "mflag": "",
                    "qflag": "",
                    "sflag": "7",
                })
    return pd.DataFrame(rows)


def make_stations(ids: list[str], gsn_ids: set[str]) -> pd.DataFrame:
    return pd.DataFrame({
        "id": ids,
        "lat": np.linspace(-60.0, 60.0, len(ids)),
        "lon": np.linspace(-120.0, 120.0, len(ids)),
        "elevation": [10.0] * len(ids),
        "state": [""] * len(ids),
        "name": [f"STATION {i}" for i in range(len(ids))],
        "gsn": [s in gsn_ids for s in ids],
        "hcn": [False] * len(ids),
        "crn": [False] * len(ids),
        "wmo": [""] * len(ids),
    })


def load_frame(conn: duckdb.DuckDBPyConnection, table: str, df: pd.DataFrame) -> None:
    conn.register("frame_view", df)
    conn.execute(f"CREATE OR REPLACE TABLE {table} AS SELECT * FROM frame_view")
    conn.unregister("frame_view")


@pytest.fixture
def db():
    """In-memory DuckDB."""
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def observations_df() -> pd.DataFrame:
    """200 stations, four years, two allowed elements and one filtered out."""
    return make_observations(200)


@pytest.fixture
def stations_df(observations_df) -> pd.DataFrame:
    """Every observed station plus ten unobserved ones; every third is GSN."""
    ids = sorted(observations_df["id"].unique().tolist()) + [f"ASN{i:08d}" for i in range(10)]
    gsn_ids = {s for i, s in enumerate(ids) if i % 3 == 0}
    return make_stations(ids, gsn_ids)


@pytest.fixture
def loaded_db(db, observations_df, stations_df):
    """In-memory DuckDB with noaa and stations tables."""
    load_frame(db, "noaa", observations_df)
    load_frame(db, "stations", stations_df)
    return db


def read_artifact(conn: duckdb.DuckDBPyConnection, path) -> pd.DataFrame:
    return conn.execute(f"SELECT * FROM read_parquet('{path.as_posix()}')").fetchdf()
