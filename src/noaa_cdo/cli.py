"""CLI entry point for noaa-cdo."""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from noaa_cdo.config import (
    DATA_DIR,
    DB_PATH,
    ELEMENTS,
    GSN_ARTIFACT,
    OBSERVATIONS_FILE,
    OUTPUT_DIR,
    SAMPLE_ARTIFACT,
    SAMPLE_SIZE,
    SMALL_DB_PATH,
    STATIONS_FILE,
    YEAR_THRESHOLD,
    SampleSettings,
)
from noaa_cdo.errors import PipelineError

logger = logging.getLogger("noaa_cdo")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="noaa-cdo",
        description="GHCN-Daily parsing, DuckDB loading and sample export",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # parse subcommand
    parse_parser = subparsers.add_parser("parse", help="Parse raw GHCN-Daily files")
    parse_parser.add_argument("input", type=Path, help="Directory of .dly files, or the stations file with --stations")
    parse_parser.add_argument("--stations", action="store_true", help="Input is ghcnd-stations.txt")
    parse_parser.add_argument("-o", "--output", type=Path, help="Output .parquet or .csv file")

    # fetch subcommand
    fetch_parser = subparsers.add_parser("fetch", help="Download raw files from NCEI")
    fetch_parser.add_argument("--stations-file", action="store_true", help="Download ghcnd-stations.txt")
    fetch_parser.add_argument("--station", action="append", default=[], help="GHCN station ID (repeatable)")
    fetch_parser.add_argument("--dest", type=Path, default=DATA_DIR, help="Download directory")

    # load subcommand
    load_parser = subparsers.add_parser("load", help="Create the noaa and stations tables")
    load_parser.add_argument("--observations", type=Path, default=OBSERVATIONS_FILE, help="Observations file")
    load_parser.add_argument("--stations", type=Path, default=STATIONS_FILE, help="Stations file")
    load_parser.add_argument("--db", type=Path, default=DB_PATH, help="DuckDB database path")
    load_parser.add_argument("--replace", action="store_true", help="Replace existing tables")

    # sample subcommand
    sample_parser = subparsers.add_parser("sample", help="Export the station sample and GSN stations")
    sample_parser.add_argument("--db", type=Path, default=DB_PATH, help="DuckDB database path")
    sample_parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Artifact directory")
    sample_parser.add_argument("--year", type=int, default=YEAR_THRESHOLD, help="Minimum year to keep")
    sample_parser.add_argument("--elements", default=",".join(ELEMENTS), help="Comma-separated element codes")
    sample_parser.add_argument("--sample-size", type=int, default=SAMPLE_SIZE, help="Number of stations to draw")
    sample_parser.add_argument("--seed", type=int, default=None, help="Seed for a repeatable draw")

    # make-small subcommand
    small_parser = subparsers.add_parser("make-small", help="Load the sample artifacts into a small database")
    small_parser.add_argument("--db", type=Path, default=SMALL_DB_PATH, help="Small DuckDB database path")
    small_parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Artifact directory")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "fetch" and not args.stations_file and not args.station:
        parser.error("fetch: nothing to fetch; pass --stations-file and/or --station")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    commands = {
        "parse": _parse,
        "fetch": _fetch,
        "load": _load,
        "sample": _sample,
        "make-small": _make_small,
    }

    try:
        commands[args.command](args)
    except ValidationError as e:
        logger.error("Invalid settings: %s", e)
        return 1
    except PipelineError as e:
        logger.error("%s failed: %s", e.__class__.__name__, e)
        return 1
    return 0


def _parse(args: argparse.Namespace) -> None:
    from noaa_cdo.ingest.dly import parse_dly_directory
    from noaa_cdo.ingest.stations import write_stations

    if args.stations:
        write_stations(args.input, args.output or STATIONS_FILE)
    else:
        parse_dly_directory(args.input, args.output or OBSERVATIONS_FILE)


def _fetch(args: argparse.Namespace) -> None:
    from noaa_cdo.ingest.fetch import fetch_dly_files, fetch_stations_file

    if args.stations_file:
        fetch_stations_file(args.dest)
    if args.station:
        fetch_dly_files(args.station, args.dest)


def _load(args: argparse.Namespace) -> None:
    from noaa_cdo.db.connection import open_connection
    from noaa_cdo.db.sources import load_tables
    from noaa_cdo.errors import stage

    with stage("load"), open_connection(args.db) as conn:
        load_tables(conn, args.observations, args.stations, replace=args.replace)


def _sample(args: argparse.Namespace) -> None:
    from noaa_cdo.db.connection import open_connection
    from noaa_cdo.pipeline.orchestrator import run_pipeline

    settings = SampleSettings(
        year_threshold=args.year,
        elements=args.elements.split(","),
        sample_size=args.sample_size,
        seed=args.seed,
    )

    with open_connection(args.db) as conn:
        result = run_pipeline(conn, settings, args.output_dir)

    logger.info(
        "Done: %d sample rows from %d station(s); %d GSN stations, %d sampled",
        result.sample.rows, result.sample.stations,
        result.stations.rows, result.stations.sampled,
    )


def _make_small(args: argparse.Namespace) -> None:
    from noaa_cdo.db.connection import open_connection
    from noaa_cdo.db.sources import load_tables
    from noaa_cdo.errors import stage

    with stage("load"), open_connection(args.db) as conn:
        load_tables(
            conn,
            args.output_dir / SAMPLE_ARTIFACT,
            args.output_dir / GSN_ARTIFACT,
        )


if __name__ == "__main__":
    sys.exit(main())
