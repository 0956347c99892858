# digggin/data/loader.py
"""
Load the gallery dataset and hold it for the session.

    from digggin.data.loader import GalleryStore, load_gallery

    store = GalleryStore()
    ticket = store.begin_load()
    records = load_gallery(config)          # may run on a worker thread
    store.commit(ticket, records)           # False if a newer load already landed
    store.apply_filters(FilterQuery(genre="indie"))
"""
from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple
import logging
import random

from .csv_io import parse_table, read_source
from .dataset_paths import resolve_source
from .errors import GalleryLoadError, MalformedInput, SourceUnavailable
from .gallery_config import GalleryConfig
from .json_cache import compute_statistics, records_from_document
from .load_report import LoadReport
from .records import NormalizeSettings, Record, normalize_rows
from digggin.search import engine
from digggin.search.interfaces import FilterOptions, FilterQuery

log = logging.getLogger("digggin.data.loader")


def _is_json_source(source: str) -> bool:
    path = source.split("?", 1)[0].split("#", 1)[0]
    return Path(path).suffix.lower() == ".json"


def load(
    source: str | Path,
    *,
    settings: Optional[NormalizeSettings] = None,
    report: Optional[LoadReport] = None,
    timeout: float = 15.0,
) -> List[Record]:
    """
    Read and normalize one source. `.json` sources are consumed as a
    pre-normalized cache; anything else goes through CSV ingestion.
    Raises SourceUnavailable or MalformedInput.
    """
    src = resolve_source(source)
    report = report if report is not None else LoadReport()
    report.source = src

    text = read_source(src, timeout=timeout)
    if _is_json_source(src):
        records = records_from_document(text, settings=settings, report=report)
    else:
        rows = parse_table(text, report=report)
        records = normalize_rows(rows, settings=settings, report=report)
    log.info("load %s", report.summary())
    return records


def load_gallery(config: GalleryConfig, report: Optional[LoadReport] = None) -> List[Record]:
    """Load using the configured sources: JSON cache first when preferred, CSV as fallback."""
    settings = config.normalize_settings()
    json_src = config.json_source()
    if config.prefer_json and json_src:
        # Both failures surface before any row is counted, so the report stays clean.
        try:
            return load(json_src, settings=settings, report=report,
                        timeout=config.fetch_timeout_s)
        except (SourceUnavailable, MalformedInput) as e:
            log.warning("JSON cache unusable (%s); falling back to CSV", e)

    return load(config.csv_source(), settings=settings, report=report,
                timeout=config.fetch_timeout_s)


class GalleryStore:
    """
    The single owner of the loaded record collection.

    Loads are ticketed: begin_load() hands out increasing tickets and commit()
    refuses results from a ticket older than the newest committed one, so a
    slow earlier load can never overwrite a newer one. The collection and its
    filter options are swapped in together as one tuple.
    """

    def __init__(self, *, case_fold_options: bool = False, max_display: Optional[int] = None):
        self._lock = Lock()
        self._next_ticket = 0
        self._committed_ticket = -1
        self._case_fold = case_fold_options
        self.max_display = max_display
        self._state: Tuple[Tuple[Record, ...], FilterOptions] = ((), FilterOptions())
        self.last_report: Optional[LoadReport] = None
        self.last_error: Optional[GalleryLoadError] = None

    # ---------------- loading ----------------
    def begin_load(self) -> int:
        with self._lock:
            ticket = self._next_ticket
            self._next_ticket += 1
        log.debug("begin_load ticket=%d", ticket)
        return ticket

    def commit(self, ticket: int, records: List[Record], report: Optional[LoadReport] = None) -> bool:
        """Swap in a finished load. Returns False (and keeps the current data) if stale."""
        # Build off to the side; readers only ever see a complete state tuple.
        new_state = (tuple(records), engine.build_filter_options(records, case_fold=self._case_fold))
        with self._lock:
            if ticket < self._committed_ticket:
                log.warning(
                    "Discarding stale load ticket=%d (committed=%d)", ticket, self._committed_ticket
                )
                return False
            self._committed_ticket = ticket
            self._state = new_state
            self.last_report = report
            self.last_error = None
        log.info("commit ticket=%d records=%d", ticket, len(records))
        return True

    def fail(self, ticket: int, error: GalleryLoadError) -> bool:
        """Record a failed load unless a newer load was started or committed since."""
        with self._lock:
            newest = self._next_ticket - 1
            if ticket < newest:
                log.info("Ignoring stale failure ticket=%d (newest=%d): %s", ticket, newest, error)
                return False
            self.last_error = error
        log.error("load ticket=%d failed: %s", ticket, error)
        return True

    def load(self, config: GalleryConfig) -> List[Record]:
        """Synchronous convenience: ticket, load, commit. Raises on whole-load failure."""
        ticket = self.begin_load()
        report = LoadReport()
        try:
            records = load_gallery(config, report=report)
        except GalleryLoadError as e:
            self.fail(ticket, e)
            raise
        self.commit(ticket, records, report)
        return records

    # ---------------- queries ----------------
    @property
    def records(self) -> Tuple[Record, ...]:
        return self._state[0]

    @property
    def filter_options(self) -> FilterOptions:
        return self._state[1]

    def apply_filters(
        self,
        query: FilterQuery,
        *,
        shuffle: bool = False,
        limit: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> List[Record]:
        return engine.apply_filters(
            self.records, query, shuffle=shuffle,
            limit=self.max_display if limit is None else limit, rng=rng,
        )

    def search(self, text: Optional[str]) -> List[Record]:
        return engine.search(self.records, text)

    def random_sample(self, count: int, rng: Optional[random.Random] = None) -> List[Record]:
        return engine.random_sample(self.records, count, rng=rng)

    def statistics(self) -> Dict[str, Any]:
        return compute_statistics(self.records)
