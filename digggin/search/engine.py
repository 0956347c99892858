# digggin/search/engine.py
from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from collections import OrderedDict
import logging
import random
import time

from digggin.data.records import Record
from .interfaces import FieldPredicate, FilterOptions, FilterQuery
from .fields_text import TextContainsPredicate, SearchBlobPredicate
from .fields_set import TokenSetContainsPredicate

logger = logging.getLogger("digggin.search.engine")

# =============================================================================
# FILTER DIMENSIONS
# =============================================================================

# Single-valued display fields: FilterQuery attribute -> Record attribute
TEXT_DIMENSIONS: Dict[str, str] = {
    "genre": "genre",
    "mood": "mood",
    "category": "artistic_category",
    "artist": "artist",
}

# Multi-valued token sets: FilterQuery attribute -> Record attribute
SET_DIMENSIONS: Dict[str, str] = {
    "collection": "collections",
    "color": "colors",
}


def _build_predicates() -> Dict[str, FieldPredicate]:
    preds: Dict[str, FieldPredicate] = {"search": SearchBlobPredicate()}
    for dim, attr in TEXT_DIMENSIONS.items():
        preds[dim] = TextContainsPredicate(dim, attr)
    for dim, attr in SET_DIMENSIONS.items():
        preds[dim] = TokenSetContainsPredicate(dim, attr)
    return preds


PREDICATES: Dict[str, FieldPredicate] = _build_predicates()


# =============================================================================
# DISTINCT VALUES
# =============================================================================

def _distinct(values: Iterable[str], case_fold: bool) -> Tuple[str, ...]:
    if not case_fold:
        return tuple(sorted({v for v in values if v}))
    first_seen: Dict[str, str] = {}
    for v in values:
        if v:
            first_seen.setdefault(v.casefold(), v)
    return tuple(sorted(first_seen.values()))


def build_filter_options(records: Sequence[Record], *, case_fold: bool = False) -> FilterOptions:
    """
    Distinct non-empty values per dimension, sorted.
    case_fold=False keeps "Indie" and "indie" as separate options;
    case_fold=True collapses them onto the first-seen spelling.
    """
    opts = FilterOptions(
        genres=_distinct((r.genre for r in records), case_fold),
        moods=_distinct((r.mood for r in records), case_fold),
        categories=_distinct((r.artistic_category for r in records), case_fold),
        collections=_distinct((t for r in records for t in r.collections), case_fold),
        colors=_distinct((c for r in records for c in r.colors), case_fold),
        artists=_distinct((r.artist for r in records), case_fold),
    )
    logger.info(
        "filter_options genres=%d moods=%d categories=%d collections=%d colors=%d artists=%d",
        len(opts.genres), len(opts.moods), len(opts.categories),
        len(opts.collections), len(opts.colors), len(opts.artists),
    )
    return opts


# =============================================================================
# QUERIES
# =============================================================================

def _compile(query: FilterQuery) -> List[Tuple[FieldPredicate, str]]:
    return [(PREDICATES[dim], needle) for dim, needle in query.active().items()]


def apply_filters(
    records: Sequence[Record],
    query: FilterQuery,
    *,
    shuffle: bool = False,
    limit: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Record]:
    """
    Records for which every present predicate holds, in their original order.
    shuffle=True randomizes the order of the matches (random sample mode);
    limit caps the result after ordering.
    """
    t0 = time.perf_counter()
    compiled = _compile(query)
    if compiled:
        out = [r for r in records if all(p.matches(r, needle) for p, needle in compiled)]
    else:
        out = list(records)

    if shuffle:
        (rng or random).shuffle(out)
    if limit is not None and limit >= 0:
        out = out[:limit]

    logger.debug(
        "apply_filters active=%s n_in=%d n_out=%d shuffle=%s dt_ms=%.1f",
        sorted(query.active()), len(records), len(out), shuffle,
        (time.perf_counter() - t0) * 1000.0,
    )
    return out


def search(records: Sequence[Record], text: Optional[str]) -> List[Record]:
    """Substring search over search_blob; blank text matches everything."""
    return apply_filters(records, FilterQuery(search=text))


def random_sample(
    records: Sequence[Record],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[Record]:
    """Up to `count` records in random order."""
    n = max(0, min(int(count), len(records)))
    return (rng or random).sample(list(records), n)


def group_by_genre(records: Iterable[Record]) -> Dict[str, List[Record]]:
    grouped: Dict[str, List[Record]] = OrderedDict()
    for r in records:
        grouped.setdefault(r.genre, []).append(r)
    return grouped


def count_by(records: Iterable[Record], key: Callable[[Record], Iterable[str]]) -> Dict[str, int]:
    """Occurrence counts, most frequent first (ties keep first-seen order)."""
    counts: Dict[str, int] = {}
    for r in records:
        for v in key(r):
            if v:
                counts[v] = counts.get(v, 0) + 1
    return dict(sorted(counts.items(), key=lambda kv: -kv[1]))
