# digggin/data/json_cache.py
"""
Pre-normalized JSON cache of the records table.

The cache document carries the records plus informational blocks (filter
options, statistics, metadata). Loading consumes only `records`; every item
is re-validated, so a stale or hand-edited cache cannot smuggle in records
without a cover or artist.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from .errors import MalformedInput
from .load_report import LoadReport
from .records import NormalizeSettings, Record, ensure_unique_ids, record_from_mapping, record_to_mapping
from digggin.search.engine import build_filter_options, count_by

_log = logging.getLogger("digggin.data.json_cache")

CACHE_VERSION = "1.0.0"
TOP_N = 10


def _pct(n: int, total: int) -> int:
    return int(round(100.0 * n / total)) if total else 0


def compute_statistics(records: Sequence[Record]) -> Dict[str, Any]:
    """Totals, per-dimension breakdowns and simple data quality figures."""
    total = len(records)
    genres = count_by(records, lambda r: [r.genre])
    moods = count_by(records, lambda r: [r.mood])
    artists = count_by(records, lambda r: [r.artist])
    colors = count_by(records, lambda r: r.colors)
    collections = count_by(records, lambda r: r.collections)

    complete = sum(1 for r in records if r.cover and r.artist and r.song_title and r.genre)
    with_colors = sum(1 for r in records if r.colors)
    with_collections = sum(1 for r in records if r.collections)

    return {
        "totalRecords": total,
        "genres": len(genres),
        "artists": len(artists),
        "moods": len(moods),
        "colors": len(colors),
        "collections": len(collections),
        "breakdown": {
            "genres": genres,
            "moods": moods,
            "artists": artists,
            "colors": colors,
            "collections": collections,
        },
        "topArtists": [{"artist": k, "count": v} for k, v in list(artists.items())[:TOP_N]],
        "topColors": [{"color": k, "count": v} for k, v in list(colors.items())[:TOP_N]],
        "dataQuality": {
            "completeness": _pct(complete, total),
            "imagesAvailable": _pct(sum(1 for r in records if r.cover), total),
            "colorsSpecified": _pct(with_colors, total),
            "collectionsTagged": _pct(with_collections, total),
        },
        "imageHosts": image_hosts(records),
    }


def image_hosts(records: Sequence[Record]) -> List[str]:
    hosts = set()
    for r in records:
        host = urlparse(r.cover).hostname
        if host:
            hosts.add(host)
    return sorted(hosts)


def build_cache_document(records: Sequence[Record], source: str = "") -> Dict[str, Any]:
    opts = build_filter_options(records)
    return {
        "version": CACHE_VERSION,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "metadata": {"source": source, "recordCount": len(records)},
        "records": [record_to_mapping(r) for r in records],
        "filterOptions": {
            "genres": list(opts.genres),
            "moods": list(opts.moods),
            "categories": list(opts.categories),
            "collections": list(opts.collections),
            "colors": list(opts.colors),
            "artists": list(opts.artists),
        },
        "statistics": compute_statistics(records),
    }


def write_cache(path: Path, document: Dict[str, Any], *, pretty: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(document, f, indent=2 if pretty else None, ensure_ascii=False)
    tmp.replace(path)
    _log.info("Wrote records cache %s (%d records)", path, len(document.get("records", [])))


def records_from_document(
    text: str,
    *,
    settings: Optional[NormalizeSettings] = None,
    report: Optional[LoadReport] = None,
) -> List[Record]:
    """
    Parse cache text. Accepts a bare array of record objects or an object with
    a `records` array; anything else is MalformedInput.
    """
    report = report if report is not None else LoadReport()
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInput(f"Invalid JSON: {e}", report.source) from e

    items = doc.get("records") if isinstance(doc, dict) else doc
    if not isinstance(items, list):
        raise MalformedInput("JSON cache has no records array", report.source)

    report.lines_read = len(items)
    report.rows_parsed = len(items)
    out: List[Record] = []
    for obj in items:
        rec = record_from_mapping(obj, len(out), settings=settings)
        if rec is None:
            report.rows_missing_required += 1
            continue
        out.append(rec)
    out = ensure_unique_ids(out)
    report.records_kept = len(out)
    _log.info(
        "json records kept=%d excluded=%d", len(out), report.rows_missing_required
    )
    return out
