"""
Tests for the filter engine: conjunction, search, distinct options and the
random sample helpers.
"""
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from digggin.data.records import normalize_rows
from digggin.search.engine import (
    apply_filters,
    build_filter_options,
    count_by,
    group_by_genre,
    random_sample,
    search,
)
from digggin.search.interfaces import FilterOptions, FilterQuery


def _records():
    rows = [
        {"cover": "1.jpg", "artist": "Miles Davis", "song_title": "So What", "genre": "Jazz",
         "mood": "Calm", "artistic_category": "photography", "colors": "blue, dark",
         "collections": "jazz, classic"},
        {"cover": "2.jpg", "artist": "Nirvana", "song_title": "Lithium", "genre": "Grunge",
         "mood": "Energetic", "artistic_category": "photography", "colors": "blue, white",
         "collections": "90s"},
        {"cover": "3.jpg", "artist": "Tame Impala", "song_title": "Let It Happen", "genre": "Psychedelic",
         "mood": "Euphoric", "artistic_category": "abstract", "colors": "purple, orange",
         "collections": "psych"},
        {"cover": "4.jpg", "artist": "The Strokes", "song_title": "Last Nite", "genre": "Indie",
         "mood": "Energetic", "artistic_category": "photography", "colors": "white"},
        {"cover": "5.jpg", "artist": "Arcade Fire", "song_title": "Wake Up", "genre": "indie ",
         "mood": "Uplifting", "artistic_category": "illustration", "colors": "brown",
         "collections": "indie"},
    ]
    return normalize_rows(rows)


def test_empty_query_returns_everything_in_order():
    recs = _records()
    assert apply_filters(recs, FilterQuery()) == recs
    assert apply_filters(recs, FilterQuery(genre="   ", mood="")) == recs


def test_single_dimension_is_case_insensitive_substring():
    recs = _records()
    out = apply_filters(recs, FilterQuery(genre="INDIE"))
    assert [r.artist for r in out] == ["The Strokes", "Arcade Fire"]
    out = apply_filters(recs, FilterQuery(artist="davis"))
    assert [r.artist for r in out] == ["Miles Davis"]


def test_set_dimensions_match_any_token():
    recs = _records()
    assert [r.artist for r in apply_filters(recs, FilterQuery(color="Blue"))] == ["Miles Davis", "Nirvana"]
    assert [r.artist for r in apply_filters(recs, FilterQuery(collection="class"))] == ["Miles Davis"]
    assert apply_filters(recs, FilterQuery(collection="zydeco")) == []


def test_conjunction_composes_across_dimensions():
    recs = _records()
    q1 = FilterQuery(mood="energetic")
    q2 = FilterQuery(color="white")
    nested = apply_filters(apply_filters(recs, q1), q2)
    combined = apply_filters(recs, q1.merged(q2))
    assert nested == combined
    assert [r.artist for r in combined] == ["Nirvana", "The Strokes"]
    assert apply_filters(apply_filters(recs, q2), q1) == combined


def test_filter_output_is_a_stable_subsequence():
    recs = _records()
    out = apply_filters(recs, FilterQuery(category="photo"))
    positions = [recs.index(r) for r in out]
    assert positions == sorted(positions)


def test_search_monotonicity():
    recs = _records()
    assert search(recs, "") == recs
    assert search(recs, None) == recs
    for text in ("a", "blue", "indie", "nothing-matches-this"):
        out = search(recs, text)
        assert all(r in recs for r in out)
        assert len(out) <= len(recs)
    assert [r.artist for r in search(recs, "LAST nite")] == ["The Strokes"]


def test_filter_options_keep_display_casing():
    opts = build_filter_options(_records())
    assert "Indie" in opts.genres and "indie" in opts.genres
    assert opts.genres == tuple(sorted(opts.genres))
    assert opts.colors == ("blue", "brown", "dark", "orange", "purple", "white")
    assert opts.collections == ("90s", "classic", "indie", "jazz", "psych")


def test_filter_options_case_fold():
    opts = build_filter_options(_records(), case_fold=True)
    assert [g for g in opts.genres if g.lower() == "indie"] == ["Indie"]


def test_filter_options_empty():
    assert build_filter_options([]) == FilterOptions()
    assert FilterOptions().for_dimension("genre") == ()


def test_shuffle_and_limit():
    recs = _records()
    a = apply_filters(recs, FilterQuery(), shuffle=True, rng=random.Random(7))
    b = apply_filters(recs, FilterQuery(), shuffle=True, rng=random.Random(7))
    assert a == b
    assert sorted(r.id for r in a) == sorted(r.id for r in recs)
    assert len(apply_filters(recs, FilterQuery(), limit=2)) == 2
    assert apply_filters(recs, FilterQuery(), limit=2) == recs[:2]


def test_random_sample():
    recs = _records()
    sample = random_sample(recs, 3, rng=random.Random(1))
    assert len(sample) == 3
    assert len({r.id for r in sample}) == 3
    assert len(random_sample(recs, 50)) == len(recs)
    assert random_sample([], 5) == []


def test_group_by_genre_preserves_order():
    grouped = group_by_genre(_records())
    assert list(grouped) == ["Jazz", "Grunge", "Psychedelic", "Indie", "indie"]
    assert [r.artist for r in grouped["Jazz"]] == ["Miles Davis"]


def test_count_by_most_frequent_first():
    counts = count_by(_records(), lambda r: r.colors)
    assert list(counts.items())[:2] == [("blue", 2), ("white", 2)]
    moods = count_by(_records(), lambda r: [r.mood])
    assert next(iter(moods)) == "Energetic"
