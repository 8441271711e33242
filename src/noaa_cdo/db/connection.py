"""DuckDB connection management."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import logging

import duckdb

from noaa_cdo.config import DB_PATH

logger = logging.getLogger(__name__)


def get_connection(db_path: Path | str = DB_PATH) -> duckdb.DuckDBPyConnection:
    """Return a file-backed DuckDB connection."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path))


def get_memory_connection() -> duckdb.DuckDBPyConnection:
    """Return an in-memory DuckDB connection (for testing)."""
    return duckdb.connect(":memory:")


@contextmanager
def open_connection(db_path: Path | str = DB_PATH) -> Iterator[duckdb.DuckDBPyConnection]:
    """Open a connection for the duration of a block and always close it."""
    conn = get_connection(db_path)
    logger.debug("Opened %s", db_path)
    try:
        yield conn
    finally:
        conn.close()
        logger.debug("Closed %s", db_path)
