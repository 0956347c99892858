"""
Tests for whole-source loading, the JSON cache and the ticketed GalleryStore.
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from digggin.data.errors import MalformedInput, SourceUnavailable
from digggin.data.gallery_config import GalleryConfig
from digggin.data.json_cache import (
    build_cache_document,
    compute_statistics,
    records_from_document,
    write_cache,
)
from digggin.data.load_report import LoadReport
from digggin.data.loader import GalleryStore, load, load_gallery
from digggin.data.records import normalize_rows
from digggin.search.interfaces import FilterQuery

CSV_TEXT = (
    "Cover,Artwork Name,Song Genre,Artist,Song Title,Artistic Category,Mood,Year,Colors,Collections\n"
    'http://img.example.com/a.jpg,Kind of Blue,Jazz,Miles Davis,So What,photography,Calm,1959,"blue, dark","jazz, classic"\n'
    "http://img.example.com/b.jpg,Nevermind,Grunge,Nirvana,Lithium,photography,Energetic,1991,white,90s\n"
    "https://cdn.example.org/c.jpg,Currents,Psychedelic,Tame Impala,Let It Happen,abstract,Euphoric,2015,purple,\n"
    ",Untitled,Indie,,Nothing,abstract,Calm,1999,,\n"
    "broken,row\n"
)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DIGGGIN_DATA_DIR", str(tmp_path))
    (tmp_path / "DiggerDB.csv").write_text(CSV_TEXT, encoding="utf-8")
    return tmp_path


def test_load_csv_counts_exclusions(data_dir):
    report = LoadReport()
    records = load("DiggerDB.csv", report=report)
    assert [r.artist for r in records] == ["Miles Davis", "Nirvana", "Tame Impala"]
    assert report.source == str((data_dir / "DiggerDB.csv").resolve())
    assert report.rows_field_mismatch == 1
    assert report.rows_missing_required == 1
    assert report.records_kept == 3
    assert report.rows_excluded == 2


def test_load_missing_source(data_dir):
    with pytest.raises(SourceUnavailable):
        load("absent.csv")


def test_load_json_cache_round_trip(data_dir):
    records = load("DiggerDB.csv")
    out = data_dir / "records.json"
    write_cache(out, build_cache_document(records, source="DiggerDB.csv"), pretty=True)

    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc["metadata"]["recordCount"] == 3
    assert doc["filterOptions"]["genres"] == ["Grunge", "Jazz", "Psychedelic"]
    assert load(out) == records


def test_json_bare_array_and_invalid_items(data_dir):
    p = data_dir / "items.json"
    p.write_text(json.dumps([
        {"cover": "a.jpg", "artist": "A", "collections": ["x", "X"]},
        {"cover": "b.jpg"},
        "not an object",
    ]), encoding="utf-8")
    report = LoadReport()
    records = load(p, report=report)
    assert [r.artist for r in records] == ["A"]
    assert records[0].collections == {"x"}
    assert report.rows_missing_required == 2


@pytest.mark.parametrize("text", ["{not json", '{"version": "1.0.0"}', "42"])
def test_json_malformed_documents(text):
    with pytest.raises(MalformedInput):
        records_from_document(text)


def test_load_gallery_prefers_json_and_falls_back(data_dir):
    config = GalleryConfig()
    # No records.json yet: falls back to CSV
    assert len(load_gallery(config)) == 3

    (data_dir / "records.json").write_text(
        json.dumps({"records": [{"cover": "z.jpg", "artist": "Cached"}]}), encoding="utf-8"
    )
    assert [r.artist for r in load_gallery(config)] == ["Cached"]

    config.prefer_json = False
    assert len(load_gallery(config)) == 3


def test_load_gallery_corrupt_cache_falls_back(data_dir):
    (data_dir / "records.json").write_text("[{", encoding="utf-8")
    assert len(load_gallery(GalleryConfig())) == 3


def test_load_gallery_propagates_when_csv_unavailable(data_dir):
    config = GalleryConfig(csv_path="missing.csv", json_path="")
    with pytest.raises(SourceUnavailable):
        load_gallery(config)


def _batch(*artists):
    return normalize_rows([{"cover": f"{a}.jpg", "artist": a} for a in artists])


def test_store_commit_swaps_records_and_options():
    store = GalleryStore()
    ticket = store.begin_load()
    assert store.commit(ticket, _batch("A", "B"))
    assert [r.artist for r in store.records] == ["A", "B"]
    assert store.filter_options.artists == ("A", "B")


def test_store_rejects_stale_commit():
    store = GalleryStore()
    slow = store.begin_load()
    fast = store.begin_load()
    assert fast > slow
    assert store.commit(fast, _batch("New"))
    assert not store.commit(slow, _batch("Old"))
    assert [r.artist for r in store.records] == ["New"]
    assert store.filter_options.artists == ("New",)


def test_store_fail_keeps_previous_records(data_dir):
    store = GalleryStore()
    store.load(GalleryConfig())
    assert len(store.records) == 3

    with pytest.raises(SourceUnavailable):
        store.load(GalleryConfig(csv_path="missing.csv", json_path=""))
    assert isinstance(store.last_error, SourceUnavailable)
    assert len(store.records) == 3


def test_store_stale_failure_is_ignored():
    store = GalleryStore()
    old = store.begin_load()
    new = store.begin_load()
    store.commit(new, _batch("A"))
    assert not store.fail(old, SourceUnavailable("gone"))
    assert store.last_error is None


def test_store_ignores_older_failure_while_newer_load_runs():
    store = GalleryStore()
    t0 = store.begin_load()
    t1 = store.begin_load()
    # t1 has not committed yet; t0's failure is still superseded
    assert not store.fail(t0, SourceUnavailable("gone"))
    assert store.last_error is None
    assert store.commit(t1, _batch("Fresh"))
    assert [r.artist for r in store.records] == ["Fresh"]
    assert store.last_error is None


def test_store_newest_failure_is_recorded():
    store = GalleryStore()
    store.begin_load()
    t1 = store.begin_load()
    assert store.fail(t1, MalformedInput("bad header"))
    assert isinstance(store.last_error, MalformedInput)


def test_store_queries(data_dir):
    store = GalleryStore(max_display=2)
    store.load(GalleryConfig())
    assert len(store.apply_filters(FilterQuery())) == 2
    assert len(store.apply_filters(FilterQuery(), limit=10)) == 3
    assert [r.artist for r in store.search("grunge")] == ["Nirvana"]
    assert len(store.random_sample(2)) == 2
    assert store.statistics()["totalRecords"] == 3


def test_statistics(data_dir):
    stats = compute_statistics(load("DiggerDB.csv"))
    assert stats["totalRecords"] == 3
    assert stats["genres"] == 3
    assert stats["breakdown"]["colors"]["blue"] == 1
    assert stats["dataQuality"]["imagesAvailable"] == 100
    assert stats["dataQuality"]["collectionsTagged"] == 67
    assert stats["imageHosts"] == ["cdn.example.org", "img.example.com"]
    assert compute_statistics([])["dataQuality"]["completeness"] == 0
