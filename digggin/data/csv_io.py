from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional
import csv
import http.client
import io
import logging
import re
import urllib.error
import urllib.request

from .dataset_paths import HEADER_SYNONYMS, is_url
from .errors import MalformedInput, SourceUnavailable
from .load_report import LoadReport

log = logging.getLogger("digggin.data.csv")

RawRow = Dict[str, str]

_WS_RUN = re.compile(r"\s+")

# -------- normalization helpers --------
def normalize_key(s: str) -> str:
    """Normalize CSV header keys: strip whitespace and remove BOM."""
    if s is None:
        return ""
    return s.replace("\ufeff", "").strip()

def canonical_header(name: str) -> str:
    """
    Map a header cell to its canonical column name.
    Known header text goes through HEADER_SYNONYMS; anything else is lowercased
    with internal whitespace runs collapsed to a single underscore.
    """
    key = normalize_key(name).lower()
    spaced = _WS_RUN.sub(" ", key)
    if spaced in HEADER_SYNONYMS:
        return HEADER_SYNONYMS[spaced]
    return _WS_RUN.sub("_", key)

def _is_blank(cells: List[str]) -> bool:
    return not cells or all(not (c or "").strip() for c in cells)

# Trailing multi-value columns absorb unquoted overflow ("jazz,classic")
FOLDABLE_TAIL_COLUMNS = {"collections", "colors"}

# ---------------------------------------
def _fit_to_header(cells: List[str], header: List[str]) -> Optional[List[str]]:
    """
    Return cells aligned to the header, or None when the row must be dropped.
    Rows with too few fields are never padded. Rows with too many are kept only
    when the last column is a multi-value column, whose value then takes the
    comma-joined overflow.
    """
    width = len(header)
    if len(cells) == width:
        return cells
    if len(cells) > width and header[-1] in FOLDABLE_TAIL_COLUMNS:
        return cells[: width - 1] + [",".join(cells[width - 1:])]
    return None

def _warn_duplicate_columns(raw_header: List[str], header: List[str]) -> None:
    seen: Dict[str, str] = {}
    for raw, col in zip(raw_header, header):
        if col in seen:
            log.warning(
                "Columns %r and %r both map to '%s'; the first non-empty value wins",
                seen[col], normalize_key(raw), col,
            )
        else:
            seen[col] = normalize_key(raw)

def _row_from_cells(header: List[str], cells: List[str]) -> RawRow:
    """Zip cells onto the header; a repeated column keeps its first non-empty value."""
    row: RawRow = {}
    for col, val in zip(header, cells):
        val = (val or "").strip()
        if not row.get(col):
            row[col] = val
    return row

def parse_table(text: str, report: Optional[LoadReport] = None) -> List[RawRow]:
    """
    Parse delimited text (header row + data rows) into RawRows keyed by canonical header.
    - Blank lines are skipped.
    - A data row whose field count does not fit the header is dropped (counted, not raised).
    - Headers that canonicalize to the same column keep the first non-empty value.
    - Fewer than two non-blank lines raises MalformedInput.
    """
    report = report if report is not None else LoadReport()
    reader = csv.reader(io.StringIO((text or "").replace("\ufeff", "", 1)))
    try:
        lines = [cells for cells in reader if not _is_blank(cells)]
    except csv.Error as e:
        raise MalformedInput(f"Unparseable table: {e}", report.source) from e

    report.lines_read = len(lines)
    if len(lines) < 2:
        raise MalformedInput(
            "Table must have at least a header and one data row", report.source
        )

    header = [canonical_header(h) for h in lines[0]]
    _warn_duplicate_columns(lines[0], header)
    rows: List[RawRow] = []
    for lineno, cells in enumerate(lines[1:], start=2):
        fitted = _fit_to_header(cells, header)
        if fitted is None:
            report.rows_field_mismatch += 1
            log.debug("skip line=%d fields=%d expected=%d", lineno, len(cells), len(header))
            continue
        rows.append(_row_from_cells(header, fitted))

    report.rows_parsed = len(rows)
    if report.rows_field_mismatch:
        log.warning(
            "Skipped %d row(s) with a field count different from the header (%d)",
            report.rows_field_mismatch, len(header),
        )
    log.info("parsed rows=%d columns=%s", len(rows), header)
    return rows

def read_source(source: str | Path, timeout: float = 15.0) -> str:
    """Read the whole table from a local path or an http(s)/file URL (BOM-tolerant)."""
    src = str(source)
    if is_url(src):
        try:
            with urllib.request.urlopen(src, timeout=timeout) as resp:
                data = resp.read()
        except urllib.error.HTTPError as e:
            raise SourceUnavailable(f"HTTP {e.code} fetching {src}", src) from e
        except (urllib.error.URLError, OSError, ValueError, http.client.HTTPException) as e:
            raise SourceUnavailable(f"Failed to fetch {src}: {e}", src) from e
        log.info("fetched url=%s bytes=%d", src, len(data))
        return data.decode("utf-8-sig", errors="replace")

    path = Path(src)
    if not path.is_file():
        raise SourceUnavailable(f"Source file not found: {path}", src)
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        raise SourceUnavailable(f"Failed to read {path}: {e}", src) from e
    log.info("read file=%s chars=%d", path, len(text))
    return text
