"""Sampler: a random subset of stations' recent observations.

Draws ``sample_size`` distinct station ids from the whole observation table,
keeps the rows of those stations that pass the year and element filters,
and exports them to Parquet.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging

import duckdb

from noaa_cdo.config import (
    OBSERVATION_COLUMNS,
    OBSERVATIONS_TABLE,
    SAMPLE_TEMP_TABLE,
    SampleSettings,
)
from noaa_cdo.db.sources import (
    count_rows,
    distinct_ids,
    export_query,
    quote_identifier,
    relation_sql,
    require_columns,
)
from noaa_cdo.errors import SchemaMismatch, stage

logger = logging.getLogger(__name__)

SAMPLE_IDS_TABLE = "sample_ids"


@dataclass
class SampleResult:
    path: Path
    rows: int = 0
    stations: int = 0
    drawn: int = 0


def draw_station_sample(
    conn: duckdb.DuckDBPyConnection,
    settings: SampleSettings,
    source: str | Path = OBSERVATIONS_TABLE,
) -> int:
    """Materialize a random set of distinct station ids as a temp table.

    Reservoir sampling without replacement; a population smaller than
    ``sample_size`` is taken whole. With a seed the draw runs single-threaded
    so the same inputs give the same set. Returns the number of ids drawn.
    """
    relation = relation_sql(source)
    clause = f"reservoir({int(settings.sample_size)} ROWS)"
    if settings.seed is not None:
        clause += f" REPEATABLE ({int(settings.seed)})"

    query = f"""
        CREATE OR REPLACE TEMP TABLE {SAMPLE_IDS_TABLE} AS
        SELECT id FROM (
            SELECT DISTINCT id FROM {relation} WHERE id IS NOT NULL
        ) USING SAMPLE {clause}
    """

    if settings.seed is None:
        conn.execute(query)
    else:
        threads = conn.execute("SELECT current_setting('threads')").fetchone()[0]
        conn.execute("SET threads = 1")
        try:
            conn.execute(query)
        finally:
            conn.execute(f"SET threads = {int(threads)}")

    drawn = count_rows(conn, SAMPLE_IDS_TABLE)
    logger.info("Drew %d station id(s) (target %d)", drawn, settings.sample_size)
    return drawn


def sample_observations(
    conn: duckdb.DuckDBPyConnection,
    settings: SampleSettings,
    output_path: str | Path,
    source: str | Path = OBSERVATIONS_TABLE,
) -> SampleResult:
    """Build the sample artifact.

    1. Check the observation source and its id/year/element columns.
    2. Draw the station sample from all distinct non-null ids.
    3. Materialize sampled rows with year >= threshold and an allowed element.
    4. Export the rows to Parquet.
    """
    result = SampleResult(path=Path(output_path))

    with stage("sample"):
        require_columns(conn, source, OBSERVATION_COLUMNS)
        result.drawn = draw_station_sample(conn, settings, source)

        table = quote_identifier(SAMPLE_TEMP_TABLE)
        try:
            conn.execute(f"""
                CREATE OR REPLACE TEMP TABLE {table} AS
                SELECT * FROM {relation_sql(source)}
                WHERE year >= ?
                  AND list_contains(?::VARCHAR[], element)
                  AND id IN (SELECT id FROM {SAMPLE_IDS_TABLE})
            """, [settings.year_threshold, settings.elements])
        except duckdb.BinderException as exc:
            raise SchemaMismatch(f"Column types of {source} do not fit the filters: {exc}") from exc
        logger.info("Temp table %s created", SAMPLE_TEMP_TABLE)

        result.rows = count_rows(conn, SAMPLE_TEMP_TABLE)
        export_query(conn, f"SELECT * FROM {table}", result.path)
        result.stations = len(distinct_ids(conn, result.path))

    logger.info(
        "%s created: %d rows from %d station(s)",
        result.path, result.rows, result.stations,
    )
    return result
