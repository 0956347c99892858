"""
Tests for CSV ingestion: header canonicalization, quoting, row-width handling
and source reading.
"""
import sys
import urllib.error
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from digggin.data import csv_io
from digggin.data.csv_io import canonical_header, parse_table, read_source
from digggin.data.errors import GalleryLoadError, MalformedInput, SourceUnavailable
from digggin.data.load_report import LoadReport
from digggin.data.records import normalize_rows


def test_canonical_header_synonyms():
    assert canonical_header("Artwork Name") == "artwork_name"
    assert canonical_header("  Song   Genre ") == "genre"
    assert canonical_header("SongTitle") == "song_title"
    assert canonical_header("Title") == "song_title"
    assert canonical_header("Category") == "artistic_category"
    assert canonical_header("Colour") == "colors"
    assert canonical_header("Collection") == "collections"
    assert canonical_header("\ufeffCover") == "cover"


def test_canonical_header_unknown_is_underscored():
    assert canonical_header("Record  Label") == "record_label"
    assert canonical_header("") == ""


def test_parse_table_quotes_and_doubled_quotes():
    text = (
        'cover,artist,song title\n'
        'http://x/a.jpg,"Crosby, Stills & Nash","Say ""Hi"""\n'
    )
    rows = parse_table(text)
    assert rows == [{
        "cover": "http://x/a.jpg",
        "artist": "Crosby, Stills & Nash",
        "song_title": 'Say "Hi"',
    }]


def test_parse_table_skips_blank_lines_and_trims():
    text = "cover,artist\n\n  http://x/a.jpg ,  Nina Simone \n\n\n"
    report = LoadReport()
    rows = parse_table(text, report=report)
    assert rows == [{"cover": "http://x/a.jpg", "artist": "Nina Simone"}]
    assert report.lines_read == 2
    assert report.rows_parsed == 1


def test_parse_table_drops_field_count_mismatch():
    text = (
        "cover,artist,mood\n"
        "a.jpg,A,calm\n"
        "b.jpg,B\n"
        "c.jpg,C,calm,extra\n"
        "d.jpg,D,happy\n"
    )
    report = LoadReport()
    rows = parse_table(text, report=report)
    assert [r["artist"] for r in rows] == ["A", "D"]
    assert report.rows_field_mismatch == 2


def test_parse_table_folds_overflow_into_trailing_multi_value_column():
    text = (
        "cover,artist,collections\n"
        "a.jpg,Miles Davis,jazz,classic\n"
    )
    rows = parse_table(text)
    assert rows == [{"cover": "a.jpg", "artist": "Miles Davis", "collections": "jazz,classic"}]


def test_parse_table_strips_bom():
    rows = parse_table("\ufeffcover,artist\na.jpg,A\n")
    assert list(rows[0]) == ["cover", "artist"]


@pytest.mark.parametrize("text", ["", "   \n\n", "cover,artist\n", "cover,artist\n,\n"])
def test_parse_table_without_data_rows_is_malformed(text):
    with pytest.raises(MalformedInput):
        parse_table(text)


def test_malformed_input_is_a_value_error():
    with pytest.raises(ValueError):
        parse_table("only one line")


def test_read_source_local_file(tmp_path):
    p = tmp_path / "db.csv"
    p.write_bytes("\ufeffcover,artist\na.jpg,Björk\n".encode("utf-8"))
    text = read_source(p)
    assert text.startswith("cover")
    assert "Björk" in text


def test_read_source_missing_file(tmp_path):
    with pytest.raises(SourceUnavailable) as exc:
        read_source(tmp_path / "nope.csv")
    assert isinstance(exc.value, GalleryLoadError)
    assert exc.value.source.endswith("nope.csv")


def test_read_source_network_errors(monkeypatch):
    def refuse(url, timeout=None):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(csv_io.urllib.request, "urlopen", refuse)
    with pytest.raises(SourceUnavailable):
        read_source("https://example.invalid/DiggerDB.csv")


def test_read_source_http_error(monkeypatch):
    def not_found(url, timeout=None):
        raise urllib.error.HTTPError(url, 404, "Not Found", None, None)

    monkeypatch.setattr(csv_io.urllib.request, "urlopen", not_found)
    with pytest.raises(SourceUnavailable) as exc:
        read_source("https://example.invalid/DiggerDB.csv")
    assert "404" in str(exc.value)


def test_read_source_file_url(tmp_path):
    p = tmp_path / "db.csv"
    p.write_text("cover,artist\na.jpg,A\n", encoding="utf-8")
    assert "a.jpg" in read_source(p.as_uri())


def test_duplicate_canonical_columns_keep_first_non_empty(caplog):
    with caplog.at_level("WARNING", logger="digggin.data.csv"):
        rows = parse_table(
            "cover,artist,genre,song genre,title,song title\n"
            "a.jpg,A,Jazz,,,So What\n"
            "b.jpg,B,,Grunge,Lithium,Ignored\n"
        )
    assert rows[0]["genre"] == "Jazz"
    assert rows[0]["song_title"] == "So What"
    assert rows[1]["genre"] == "Grunge"
    assert rows[1]["song_title"] == "Lithium"
    assert list(rows[0]) == ["cover", "artist", "genre", "song_title"]
    assert sum("both map to 'genre'" in r.getMessage() for r in caplog.records) == 1


def test_duplicate_columns_survive_normalization():
    recs = normalize_rows(parse_table("cover,artist,genre,song genre\na.jpg,A,Jazz,\n"))
    assert recs[0].genre == "Jazz"
