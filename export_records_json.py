#!/usr/bin/env python3
"""
export_records_json.py: convert the records CSV into the pre-normalized JSON cache

The gallery can load either the raw CSV table or this cache. The cache holds
the normalized records plus filter options and collection statistics, so the
app (or anything else) can skip CSV parsing and inspect the collection at a
glance.

USAGE:
    python export_records_json.py                                  # data/DiggerDB.csv -> data/records.json
    python export_records_json.py --input DiggerDB.csv --output records.json --pretty
    python export_records_json.py --input https://example.org/DiggerDB.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running from project root without installing as a package
sys.path.insert(0, str(Path(__file__).resolve().parent))

from digggin.data.dataset_paths import default_csv_path, default_json_path, is_url
from digggin.data.errors import GalleryLoadError, MalformedInput
from digggin.data.gallery_config import get_gallery_config
from digggin.data.json_cache import build_cache_document, write_cache
from digggin.data.load_report import LoadReport
from digggin.data.loader import load


def _print_summary(document: dict, report: LoadReport, output: Path) -> None:
    stats = document["statistics"]
    quality = stats["dataQuality"]
    print(f"\n{'='*60}")
    print("EXPORT COMPLETE")
    print(f"{'='*60}")
    print(f"Source:          {report.source}")
    print(f"Lines read:      {report.lines_read}")
    print(f"Records kept:    {report.records_kept}")
    print(f"Rows excluded:   {report.rows_excluded}"
          f" (field mismatch {report.rows_field_mismatch},"
          f" missing required {report.rows_missing_required})")
    print(f"Genres/Artists:  {stats['genres']} / {stats['artists']}")
    print(f"Completeness:    {quality['completeness']}%")
    print(f"Colors given:    {quality['colorsSpecified']}%")
    if stats["topArtists"]:
        print("Top artists:")
        for row in stats["topArtists"][:5]:
            print(f"  - {row['artist']} ({row['count']})")
    print(f"\nOutput: {output}")
    print(f"{'='*60}\n")


def main():
    parser = argparse.ArgumentParser(
        description="Convert the records CSV into the JSON cache used by the gallery.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
    # Default locations under the data root
    python export_records_json.py

    # Explicit paths, human-readable output
    python export_records_json.py --input ./DiggerDB.csv --output ./records.json --pretty
        """,
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="CSV path or URL (default: <data root>/DiggerDB.csv)",
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output JSON path (default: <data root>/records.json)",
    )

    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent the JSON output",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log each excluded row",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    source = args.input or str(default_csv_path())
    if not is_url(source):
        source = str(Path(source).expanduser().resolve())  # CLI paths are relative to cwd
    output = (args.output or default_json_path()).resolve()
    if not is_url(source) and Path(source).suffix.lower() == ".json":
        print(f"ERROR: Input must be a CSV table, got: {source}", file=sys.stderr)
        sys.exit(2)

    config = get_gallery_config()
    report = LoadReport()
    try:
        records = load(
            source,
            settings=config.normalize_settings(),
            report=report,
            timeout=config.fetch_timeout_s,
        )
    except MalformedInput as e:
        print(f"ERROR: Could not parse {e.source or source}: {e}", file=sys.stderr)
        sys.exit(1)
    except GalleryLoadError as e:
        print(f"ERROR: Could not read {e.source or source}: {e}", file=sys.stderr)
        sys.exit(1)

    document = build_cache_document(records, source=report.source)
    write_cache(output, document, pretty=args.pretty)
    _print_summary(document, report, output)


if __name__ == "__main__":
    main()
