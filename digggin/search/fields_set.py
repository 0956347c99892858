# digggin/search/fields_set.py
from __future__ import annotations

from digggin.data.records import Record

class TokenSetContainsPredicate:
    """
    Multi-value dimension (colors, collections): true when any token contains
    the needle. Tokens are stored lowercase, so no per-record folding.
    """
    def __init__(self, name: str, attribute: str):
        self.name = name
        self.attribute = attribute

    def matches(self, record: Record, needle: str) -> bool:
        tokens = getattr(record, self.attribute, ()) or ()
        return any(needle in t for t in tokens)
