"""NOAA CDO - GHCN-Daily parsing, DuckDB loading and sample export."""

__version__ = "0.1.0"
