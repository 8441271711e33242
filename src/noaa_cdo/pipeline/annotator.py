"""Station annotator: GSN stations flagged by sample membership."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging

import duckdb

from noaa_cdo.config import STATION_COLUMNS, STATIONS_TABLE
from noaa_cdo.db.sources import export_query, relation_sql, require_columns
from noaa_cdo.errors import SourceUnavailable, stage

logger = logging.getLogger(__name__)


@dataclass
class AnnotateResult:
    path: Path
    rows: int = 0
    sampled: int = 0


def gsn_stations_query(
    sample_path: str | Path,
    source: str | Path = STATIONS_TABLE,
    replace_sampled: bool = False,
) -> str:
    """SELECT for every GSN station with a non-null ``sampled`` flag.

    Sampled ids are read back from the persisted sample artifact, not from
    the in-session temp table, so this stage can run in its own process.
    An existing ``sampled`` column (stations loaded from an earlier artifact)
    is replaced when ``replace_sampled`` is set.
    """
    columns = "s.* EXCLUDE (sampled)" if replace_sampled else "s.*"
    return f"""
        SELECT {columns}, (sam.id IS NOT NULL) AS sampled
        FROM {relation_sql(source)} s
        LEFT JOIN (
            SELECT DISTINCT id FROM {relation_sql(sample_path)}
        ) sam ON s.id = sam.id
        WHERE s.gsn = TRUE
    """


def annotate_stations(
    conn: duckdb.DuckDBPyConnection,
    sample_path: str | Path,
    output_path: str | Path,
    source: str | Path = STATIONS_TABLE,
) -> AnnotateResult:
    """Export GSN stations with a ``sampled`` column to Parquet."""
    result = AnnotateResult(path=Path(output_path))

    with stage("annotate"):
        if not Path(sample_path).is_file():
            raise SourceUnavailable(f"Sample artifact not found: {sample_path}")
        require_columns(conn, sample_path, ["id"])
        columns = require_columns(conn, source, STATION_COLUMNS)

        query = gsn_stations_query(sample_path, source, "sampled" in columns)
        export_query(conn, query, result.path)

        result.rows, result.sampled = conn.execute(f"""
            SELECT COUNT(*), COUNT(*) FILTER (WHERE sampled)
            FROM {relation_sql(result.path)}
        """).fetchone()

    logger.info(
        "%s created: %d GSN station(s), %d sampled",
        result.path, result.rows, result.sampled,
    )
    return result
