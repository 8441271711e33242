"""Tests for the GHCN-Daily .dly parser."""

from datetime import date

import pytest

from noaa_cdo.db.connection import get_memory_connection
from noaa_cdo.db.sources import count_rows
from noaa_cdo.errors import SourceUnavailable
from noaa_cdo.ingest.dly import COLUMNS, find_dly_files, parse_dly_directory, parse_dly_file


def _dly_line(station_id: str, year: int, month: int, element: str, values: list[int], flags=("", "", "")) -> str:
    """Build one fixed-width line; missing trailing days are -9999."""
    mflag, qflag, sflag = (f or " " for f in flags)
    line = f"{station_id:<11}{year:4d}{month:02d}{element:<4}"
    for day in range(31):
        value = values[day] if day < len(values) else -9999
        line += f"{value:5d}{mflag}{qflag}{sflag}"
    return line


def _write(path, lines: list[str]):
    path.write_text("\n".join(lines) + "\n")
    return path


def test_one_row_per_day(tmp_path):
    path = _write(tmp_path / "USW00094728.dly", [
        _dly_line("USW00094728", 2024, 1, "TMAX", list(range(31)), ("", "", "W")),
    ])

    df = parse_dly_file(path)

    assert list(df.columns) == COLUMNS
    assert len(df) == 31
    assert df.iloc[0]["id"] == "USW00094728"
    assert df.iloc[0]["element"] == "TMAX"
    assert df.iloc[0]["date"] == date(2024, 1, 1)
    assert df.iloc[30]["day"] == 31
    assert df.iloc[30]["value"] == 30
    assert df.iloc[0]["sflag"] == "W"
    assert df.iloc[0]["mflag"] == ""


def test_impossible_dates_dropped(tmp_path):
    path = _write(tmp_path / "a.dly", [
        _dly_line("USW00094728", 2023, 2, "PRCP", [5] * 31),
        _dly_line("USW00094728", 2024, 2, "PRCP", [5] * 31),
        _dly_line("USW00094728", 2024, 4, "PRCP", [5] * 31),
    ])

    df = parse_dly_file(path)

    counts = df.groupby(["year", "month"]).size().to_dict()
    assert counts == {(2023, 2): 28, (2024, 2): 29, (2024, 4): 30}


def test_missing_values_kept(tmp_path):
    path = _write(tmp_path / "a.dly", [
        _dly_line("USW00094728", 2024, 1, "SNOW", [0, 12]),
    ])

    df = parse_dly_file(path)

    assert df.iloc[1]["value"] == 12
    assert (df.iloc[2:]["value"] == -9999).all()


def test_negative_values(tmp_path):
    path = _write(tmp_path / "a.dly", [
        _dly_line("USW00094728", 2024, 1, "TMIN", [-156, -9]),
    ])

    df = parse_dly_file(path)

    assert df.iloc[0]["value"] == -156
    assert df.iloc[1]["value"] == -9


def test_rows_ordered_by_line_then_day(tmp_path):
    path = _write(tmp_path / "a.dly", [
        _dly_line("USW00094728", 2024, 1, "TMAX", [1] * 31),
        _dly_line("USW00094728", 2024, 1, "TMIN", [2] * 31),
    ])

    df = parse_dly_file(path)

    assert df["element"].tolist() == ["TMAX"] * 31 + ["TMIN"] * 31
    assert df["day"].tolist()[:3] == [1, 2, 3]


def test_empty_file(tmp_path):
    path = tmp_path / "empty.dly"
    path.write_text("")

    df = parse_dly_file(path)

    assert df.empty
    assert list(df.columns) == COLUMNS


def test_find_dly_files(tmp_path):
    (tmp_path / "b.dly").write_text("")
    (tmp_path / "a.dly").write_text("")
    (tmp_path / "readme.txt").write_text("")
    (tmp_path / "sub.dly").mkdir()

    assert [p.name for p in find_dly_files(tmp_path)] == ["a.dly", "b.dly"]


def test_find_dly_files_not_a_directory(tmp_path):
    path = tmp_path / "file.dly"
    path.write_text("")
    with pytest.raises(SourceUnavailable):
        find_dly_files(path)


def test_parse_directory_to_parquet(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    _write(raw / "USW00094728.dly", [_dly_line("USW00094728", 2024, 1, "TMAX", [1] * 31)])
    _write(raw / "USC00305800.dly", [_dly_line("USC00305800", 2023, 2, "PRCP", [0] * 31)])
    output = tmp_path / "noaa-cdo.parquet"

    count = parse_dly_directory(raw, output)

    assert count == 31 + 28
    conn = get_memory_connection()
    assert count_rows(conn, output) == 59
    types = dict(conn.execute(
        f"SELECT column_name, column_type FROM (DESCRIBE SELECT * FROM read_parquet('{output.as_posix()}'))"
    ).fetchall())
    assert types["date"] == "DATE"
    conn.close()


def test_parse_directory_to_csv(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    _write(raw / "USW00094728.dly", [_dly_line("USW00094728", 2024, 1, "TMAX", [1] * 31)])
    output = tmp_path / "noaa-cdo.csv"

    parse_dly_directory(raw, output)

    header = output.read_text().splitlines()[0]
    assert header == ",".join(COLUMNS)


def test_parse_empty_directory_keeps_column_types(tmp_path):
    raw = tmp_path / "raw"
    raw.mkdir()
    output = tmp_path / "noaa-cdo.parquet"

    assert parse_dly_directory(raw, output) == 0

    conn = get_memory_connection()
    types = dict(conn.execute(
        f"SELECT column_name, column_type FROM (DESCRIBE SELECT * FROM read_parquet('{output.as_posix()}'))"
    ).fetchall())
    assert types["id"] == "VARCHAR"
    assert types["element"] == "VARCHAR"
    assert types["year"] == "INTEGER"
    assert types["date"] == "DATE"
    conn.close()
