# digggin/search/fields_text.py
from __future__ import annotations

from digggin.data.records import Record

class TextContainsPredicate:
    """Case-insensitive substring match against one single-valued Record attribute."""
    def __init__(self, name: str, attribute: str):
        self.name = name
        self.attribute = attribute

    def matches(self, record: Record, needle: str) -> bool:
        value = getattr(record, self.attribute, "") or ""
        return needle in value.lower()

class SearchBlobPredicate(TextContainsPredicate):
    """Free-text search over the precomputed (already lowercase) search blob."""
    def __init__(self, name: str = "search"):
        super().__init__(name, "search_blob")

    def matches(self, record: Record, needle: str) -> bool:
        return needle in record.search_blob
