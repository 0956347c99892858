# digggin/data/records.py
"""
Normalization: RawRow (or a JSON cache object) -> Record.

Rows missing a required field are excluded, never kept as partial records.
Optional text fields fall back to placeholders; multi-value fields become
lowercase token sets. Nothing here raises for bad row content.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import re

from .dataset_paths import REQUIRED_FIELDS
from .load_report import LoadReport

_log = logging.getLogger("digggin.data.records")

RecordId = Union[int, str]

# Closed vocabulary of color/tone words recognized in free text
COLOR_VOCABULARY: Tuple[str, ...] = (
    "red", "green", "blue", "yellow", "orange", "purple", "pink", "black",
    "white", "brown", "gold", "vibrant", "dark", "cool", "warm",
)

DEFAULT_PLACEHOLDERS: Dict[str, str] = {
    "artwork_name": "Untitled",
    "song_title": "Untitled",
    "genre": "Unknown",
    "artistic_category": "abstract",
    "mood": "neutral",
    "year": "Unknown",
}

# Higher wins when picking the card accent color
COLOR_PRIORITY: Dict[str, int] = {
    "red": 10,
    "blue": 9,
    "green": 8,
    "purple": 7,
    "orange": 6,
    "yellow": 5,
    "pink": 4,
    "black": 3,
    "white": 2,
    "gray": 1,
    "grey": 1,
}


@dataclass(frozen=True)
class NormalizeSettings:
    placeholders: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PLACEHOLDERS))
    color_vocabulary: Tuple[str, ...] = COLOR_VOCABULARY
    infer_colors_from_year: bool = False

    def __post_init__(self):
        # Partial overrides keep the defaults for every other field
        object.__setattr__(self, "placeholders", {**DEFAULT_PLACEHOLDERS, **(self.placeholders or {})})


@dataclass(frozen=True)
class Record:
    id: RecordId
    cover: str
    artist: str
    artwork_name: str
    song_title: str
    genre: str
    mood: str
    artistic_category: str
    year: str
    colors: FrozenSet[str]
    collections: FrozenSet[str]
    search_blob: str

    @property
    def tags(self) -> FrozenSet[str]:
        return self.collections

    @property
    def display_title(self) -> str:
        return f"{self.song_title} by {self.artist}"

    @property
    def primary_color(self) -> str:
        best, best_rank = "neutral", 0
        for color in self.colors:
            for key, rank in COLOR_PRIORITY.items():
                if key in color and rank > best_rank:
                    best, best_rank = key, rank
        return best


# -------- field helpers --------
def _text(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()

def parse_multi(text: Optional[str]) -> FrozenSet[str]:
    """Split a comma-joined field into a set of trimmed, lowercase, non-empty tokens."""
    if not text:
        return frozenset()
    return frozenset(t for t in (p.strip().lower() for p in str(text).split(",")) if t)

def _multi_from_any(value: Any) -> FrozenSet[str]:
    """JSON caches store multi-value fields either as lists or comma strings."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(t for t in (_text(v).lower() for v in value) if t)
    return parse_multi(_text(value))

def extract_colors(text: Optional[str], vocabulary: Sequence[str] = COLOR_VOCABULARY) -> FrozenSet[str]:
    """
    Pick known color/tone words out of free text, e.g.
    "Pink, green, blue, cool tone" -> {"pink", "green", "blue", "cool"}.
    Whole words only, case-insensitive; each word collected once.
    """
    if not text or not vocabulary:
        return frozenset()
    pattern = _vocabulary_pattern(tuple(vocabulary))
    return frozenset(m.lower() for m in pattern.findall(text))

_PATTERN_CACHE: Dict[Tuple[str, ...], "re.Pattern[str]"] = {}

def _vocabulary_pattern(vocabulary: Tuple[str, ...]) -> "re.Pattern[str]":
    pat = _PATTERN_CACHE.get(vocabulary)
    if pat is None:
        words = "|".join(re.escape(w) for w in vocabulary)
        pat = re.compile(rf"\b({words})\b", re.IGNORECASE)
        _PATTERN_CACHE[vocabulary] = pat
    return pat

def build_search_blob(
    artwork_name: str,
    genre: str,
    artist: str,
    song_title: str,
    artistic_category: str,
    mood: str,
    year: str,
    colors: Iterable[str],
    collections: Iterable[str],
) -> str:
    parts = [artwork_name, genre, artist, song_title, artistic_category, mood, year]
    parts.extend(sorted(colors))
    parts.extend(sorted(collections))
    return " ".join(p for p in parts if p).lower()


# -------- row -> Record --------
def _missing_required(values: Mapping[str, str]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if not values.get(f)]

def _assemble(
    record_id: RecordId,
    values: Mapping[str, str],
    colors: FrozenSet[str],
    collections: FrozenSet[str],
    settings: NormalizeSettings,
) -> Record:
    ph = settings.placeholders

    def opt(name: str) -> str:
        return values.get(name) or ph.get(name, "")

    artwork_name = opt("artwork_name")
    song_title = opt("song_title")
    genre = opt("genre")
    mood = opt("mood")
    category = opt("artistic_category")
    year = opt("year")
    return Record(
        id=record_id,
        cover=values["cover"],
        artist=values["artist"],
        artwork_name=artwork_name,
        song_title=song_title,
        genre=genre,
        mood=mood,
        artistic_category=category,
        year=year,
        colors=colors,
        collections=collections,
        search_blob=build_search_blob(
            artwork_name, genre, values["artist"], song_title, category, mood, year,
            colors, collections,
        ),
    )

def _row_colors(raw: Mapping[str, str], settings: NormalizeSettings) -> FrozenSet[str]:
    explicit = raw.get("colors", "")
    if explicit:
        return parse_multi(explicit)
    if settings.infer_colors_from_year:
        return extract_colors(raw.get("year", ""), settings.color_vocabulary)
    return frozenset()

def normalize_row(
    raw: Mapping[str, str],
    index: int,
    *,
    settings: Optional[NormalizeSettings] = None,
) -> Optional[Record]:
    """Return a Record for one RawRow, or None when a required field is missing."""
    settings = settings or NormalizeSettings()
    values = {k: _text(v) for k, v in raw.items()}
    missing = _missing_required(values)
    if missing:
        _log.debug("exclude row=%d missing=%s", index, missing)
        return None

    record_id: RecordId = values.get("id") or index
    return _assemble(
        record_id,
        values,
        _row_colors(values, settings),
        parse_multi(values.get("collections", "")),
        settings,
    )

def normalize_rows(
    rows: Iterable[Mapping[str, str]],
    *,
    settings: Optional[NormalizeSettings] = None,
    report: Optional[LoadReport] = None,
) -> List[Record]:
    """Normalize all rows; ordinal ids count kept records only."""
    settings = settings or NormalizeSettings()
    report = report if report is not None else LoadReport()
    out: List[Record] = []
    for raw in rows:
        rec = normalize_row(raw, len(out), settings=settings)
        if rec is None:
            report.rows_missing_required += 1
            continue
        out.append(rec)
    out = ensure_unique_ids(out)
    report.records_kept = len(out)
    _log.info(
        "normalized kept=%d excluded_missing_required=%d",
        len(out), report.rows_missing_required,
    )
    return out


def ensure_unique_ids(records: List[Record]) -> List[Record]:
    """Supplied ids that repeat fall back to the record's ordinal position."""
    seen: set = set()
    out: List[Record] = []
    for pos, rec in enumerate(records):
        rid = rec.id
        if rid in seen:
            _log.warning("duplicate id=%r at position %d, using ordinal", rid, pos)
            rid, bump = pos, 0
            while rid in seen:
                bump += 1
                rid = f"{pos}-{bump}"
            rec = replace(rec, id=rid)
        seen.add(rid)
        out.append(rec)
    return out


# -------- JSON cache objects --------
# camelCase (cache/legacy JS shape) and snake_case keys -> canonical field
_MAPPING_KEYS: Dict[str, Tuple[str, ...]] = {
    "id": ("id",),
    "cover": ("cover", "coverUrl", "cover_url"),
    "artist": ("artist",),
    "artwork_name": ("artworkName", "artwork_name"),
    "song_title": ("songTitle", "song_title", "title"),
    "genre": ("genre", "songGenre", "song_genre"),
    "mood": ("mood",),
    "artistic_category": ("artisticCategory", "artistic_category", "category"),
    "year": ("year",),
}

def _first_present(obj: Mapping[str, Any], keys: Tuple[str, ...]) -> str:
    for k in keys:
        v = _text(obj.get(k))
        if v:
            return v
    return ""

def record_from_mapping(
    obj: Any,
    index: int,
    *,
    settings: Optional[NormalizeSettings] = None,
) -> Optional[Record]:
    """Validate one already-shaped JSON object; same exclusion rules as CSV rows."""
    if not isinstance(obj, Mapping):
        _log.debug("exclude json item=%d type=%s", index, type(obj).__name__)
        return None
    settings = settings or NormalizeSettings()
    values = {name: _first_present(obj, keys) for name, keys in _MAPPING_KEYS.items()}
    missing = _missing_required(values)
    if missing:
        _log.debug("exclude json item=%d missing=%s", index, missing)
        return None

    colors = _multi_from_any(obj.get("colors"))
    if not colors and settings.infer_colors_from_year:
        colors = extract_colors(values.get("year", ""), settings.color_vocabulary)
    collections = _multi_from_any(obj.get("collections", obj.get("tags")))

    raw_id = obj.get("id")
    record_id: RecordId = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else (values["id"] or index)
    return _assemble(record_id, values, colors, collections, settings)

def record_to_mapping(record: Record) -> Dict[str, Any]:
    """JSON-ready camelCase shape used by the records cache."""
    return {
        "id": record.id,
        "cover": record.cover,
        "artworkName": record.artwork_name,
        "genre": record.genre,
        "artist": record.artist,
        "songTitle": record.song_title,
        "artisticCategory": record.artistic_category,
        "mood": record.mood,
        "year": record.year,
        "colors": sorted(record.colors),
        "collections": sorted(record.collections),
        "searchTerms": record.search_blob,
        "displayTitle": record.display_title,
        "primaryColor": record.primary_color,
    }
