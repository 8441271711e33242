"""Source relations, table loading and columnar export.

A source is either a table/view name inside the connected database or a
path to a Parquet/CSV file. DuckDB errors are translated into the pipeline
error kinds here so callers only deal with ``noaa_cdo.errors``.
"""

from __future__ import annotations

from pathlib import Path
import logging

import duckdb
import pandas as pd

from noaa_cdo.config import PARQUET_COMPRESSION
from noaa_cdo.errors import SchemaMismatch, SourceUnavailable, WriteFailure

logger = logging.getLogger(__name__)

FILE_READERS = {
    ".parquet": "read_parquet",
    ".csv": "read_csv_auto",
}

_READ_ERRORS = (
    duckdb.CatalogException,
    duckdb.IOException,
    duckdb.InvalidInputException,
)


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def is_file_source(source: str | Path) -> bool:
    return Path(source).suffix.lower() in FILE_READERS


def relation_sql(source: str | Path) -> str:
    """Return a SQL fragment usable after FROM for a table name or file path."""
    if not is_file_source(source):
        return quote_identifier(str(source))

    path = Path(source)
    if not path.is_file():
        raise SourceUnavailable(f"File not found: {path}")
    reader = FILE_READERS[path.suffix.lower()]
    return f"{reader}({quote_literal(path.as_posix())})"


def get_columns(conn: duckdb.DuckDBPyConnection, source: str | Path) -> list[str]:
    """Column names of a source, in order."""
    relation = relation_sql(source)
    try:
        cursor = conn.execute(f"SELECT * FROM {relation} LIMIT 0")
    except _READ_ERRORS as exc:
        raise SourceUnavailable(f"Cannot read source {source}: {exc}") from exc
    return [col[0] for col in cursor.description]


def require_columns(
    conn: duckdb.DuckDBPyConnection,
    source: str | Path,
    required: list[str],
) -> list[str]:
    """Raise SchemaMismatch unless every required column is present.

    Returns the full column list of the source.
    """
    columns = get_columns(conn, source)
    missing = [c for c in required if c not in columns]
    if missing:
        raise SchemaMismatch(
            f"Source {source} is missing column(s): {', '.join(missing)}"
        )
    return columns


def count_rows(conn: duckdb.DuckDBPyConnection, source: str | Path) -> int:
    relation = relation_sql(source)
    try:
        return int(conn.execute(f"SELECT COUNT(*) FROM {relation}").fetchone()[0])
    except _READ_ERRORS as exc:
        raise SourceUnavailable(f"Cannot read source {source}: {exc}") from exc


def distinct_ids(
    conn: duckdb.DuckDBPyConnection,
    source: str | Path,
    column: str = "id",
) -> set[str]:
    """Distinct values of an id column."""
    relation = relation_sql(source)
    try:
        rows = conn.execute(
            f"SELECT DISTINCT {quote_identifier(column)} FROM {relation}"
        ).fetchall()
    except duckdb.BinderException as exc:
        raise SchemaMismatch(f"Source {source} has no column {column}") from exc
    except _READ_ERRORS as exc:
        raise SourceUnavailable(f"Cannot read source {source}: {exc}") from exc
    return {r[0] for r in rows}


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_table(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    path: str | Path,
    replace: bool = False,
) -> int:
    """Create a table from a Parquet/CSV file. Returns the table's row count.

    Without ``replace`` an existing table is left untouched.
    """
    if not is_file_source(path):
        raise SourceUnavailable(f"Unsupported file type for {path}; expected .parquet or .csv")
    relation = relation_sql(path)

    verb = "CREATE OR REPLACE TABLE" if replace else "CREATE TABLE IF NOT EXISTS"
    try:
        conn.execute(f"{verb} {quote_identifier(table)} AS SELECT * FROM {relation}")
    except _READ_ERRORS as exc:
        raise SourceUnavailable(f"Cannot load {path}: {exc}") from exc

    count = count_rows(conn, table)
    logger.info("Table %s ready with %d rows (from %s)", table, count, path)
    return count


def load_tables(
    conn: duckdb.DuckDBPyConnection,
    observations_path: str | Path,
    stations_path: str | Path,
    observations_table: str = "noaa",
    stations_table: str = "stations",
    replace: bool = False,
) -> dict[str, int]:
    """Load the observation and station tables. Returns row counts by table."""
    return {
        observations_table: load_table(conn, observations_table, observations_path, replace),
        stations_table: load_table(conn, stations_table, stations_path, replace),
    }


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_query(
    conn: duckdb.DuckDBPyConnection,
    query: str,
    path: str | Path,
    compression: str = PARQUET_COMPRESSION,
) -> Path:
    """COPY the result of a query to a Parquet (default) or CSV file."""
    path = Path(path)
    if path.suffix.lower() == ".csv":
        options = "FORMAT CSV, HEADER"
    else:
        options = f"FORMAT PARQUET, COMPRESSION {compression}"

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn.execute(f"COPY ({query}) TO {quote_literal(path.as_posix())} ({options})")
    except duckdb.BinderException as exc:
        raise SchemaMismatch(f"Export query does not match its sources: {exc}") from exc
    except (duckdb.Error, OSError) as exc:
        raise WriteFailure(f"Could not write {path}: {exc}") from exc

    logger.debug("Wrote %s", path)
    return path


def write_frame(
    df: pd.DataFrame,
    path: str | Path,
    types: dict[str, str] | None = None,
) -> int:
    """Write a DataFrame to Parquet or CSV through DuckDB. Returns the row count.

    ``types`` maps column names to DuckDB types; those columns are cast so the
    file schema does not depend on what pandas inferred (an empty frame has
    no values to infer from).
    """
    types = types or {}
    select = ", ".join(
        f"CAST({quote_identifier(c)} AS {types[c]}) AS {quote_identifier(c)}"
        if c in types else quote_identifier(c)
        for c in df.columns
    )
    conn = duckdb.connect(":memory:")
    try:
        conn.register("frame", df)
        export_query(conn, f"SELECT {select} FROM frame", path)
    finally:
        conn.close()
    return len(df)
