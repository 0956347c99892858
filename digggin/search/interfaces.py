# digggin/search/interfaces.py
from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Protocol, Dict, Optional, Tuple

from digggin.data.records import Record


class FieldPredicate(Protocol):
    """
    A pluggable matcher for one filter dimension.
    The engine lowercases/strips the needle once per query; matches() is then
    called per record and must be total (never raise for any Record).
    """
    name: str  # FilterQuery attribute this predicate answers

    def matches(self, record: Record, needle: str) -> bool: ...


@dataclass(frozen=True)
class FilterQuery:
    """Active user selections. None/blank means the dimension is not filtered."""
    search: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None
    category: Optional[str] = None
    collection: Optional[str] = None
    color: Optional[str] = None
    artist: Optional[str] = None

    def active(self) -> Dict[str, str]:
        """Present predicates as {dimension: lowercased needle}."""
        out: Dict[str, str] = {}
        for f in fields(self):
            v = getattr(self, f.name)
            if v is None:
                continue
            needle = str(v).strip().lower()
            if needle:
                out[f.name] = needle
        return out

    def is_empty(self) -> bool:
        return not self.active()

    def merged(self, other: "FilterQuery") -> "FilterQuery":
        """Union of two queries; predicates present in `other` win."""
        return replace(self, **{k: getattr(other, k) for k in other.active()})


@dataclass(frozen=True)
class FilterOptions:
    """Sorted distinct values per dimension, used to fill selection controls."""
    genres: Tuple[str, ...] = ()
    moods: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    collections: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    artists: Tuple[str, ...] = ()

    def for_dimension(self, dimension: str) -> Tuple[str, ...]:
        return {
            "genre": self.genres,
            "mood": self.moods,
            "category": self.categories,
            "collection": self.collections,
            "color": self.colors,
            "artist": self.artists,
        }.get(dimension, ())
