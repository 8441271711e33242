from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = Path(os.environ.get("NOAA_CDO_DATA_DIR", PROJECT_ROOT / "data"))
DB_PATH = DATA_DIR / "noaa-cdo.duckdb"
SMALL_DB_PATH = DATA_DIR / "noaa-cdo-small.duckdb"
OUTPUT_DIR = DATA_DIR

# Flat files produced by the parsers
OBSERVATIONS_FILE = DATA_DIR / "noaa-cdo.parquet"
STATIONS_FILE = DATA_DIR / "noaa-stations.parquet"

# Pipeline artifacts
SAMPLE_ARTIFACT = "noaa-sample.parquet"
GSN_ARTIFACT = "noaa-gsn-stations.parquet"
PARQUET_COMPRESSION = "zstd"

# GHCN Daily (NCEI)
GHCN_DAILY_URL = "https://www.ncei.noaa.gov/pub/data/ghcn/daily/"
GHCN_DLY_URL = GHCN_DAILY_URL + "all/"
GHCN_STATIONS_URL = GHCN_DAILY_URL + "ghcnd-stations.txt"

# Source relations inside the database
OBSERVATIONS_TABLE = "noaa"
STATIONS_TABLE = "stations"
SAMPLE_TEMP_TABLE = "sample"

OBSERVATION_COLUMNS = ["id", "year", "element"]
STATION_COLUMNS = ["id", "gsn"]

# Sampling defaults
YEAR_THRESHOLD = 2010
ELEMENTS = ["PRCP", "SNOW", "SNWD", "TMAX", "TMIN", "TAVG", "AWND", "AWDR"]
SAMPLE_SIZE = 100
SAMPLE_SEED: int | None = None


class SampleSettings(BaseModel):
    """Parameters of one sampling run."""

    year_threshold: int = YEAR_THRESHOLD
    elements: list[str] = Field(default_factory=lambda: list(ELEMENTS))
    sample_size: int = Field(SAMPLE_SIZE, ge=1)
    seed: int | None = SAMPLE_SEED

    @field_validator("elements")
    @classmethod
    def _normalize_elements(cls, v: list[str]) -> list[str]:
        cleaned = []
        for element in v:
            code = element.strip().upper()
            if code and code not in cleaned:
                cleaned.append(code)
        if not cleaned:
            raise ValueError("at least one element code is required")
        return cleaned
