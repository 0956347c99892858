from __future__ import annotations

from pathlib import Path
from typing import Dict, List
import os

# =============================================================================
# CANONICAL COLUMNS
# =============================================================================
# Rows missing any of these are excluded at normalization
REQUIRED_FIELDS: List[str] = ["cover", "artist"]

# Human-readable header text -> canonical column name (keys already lowercased)
HEADER_SYNONYMS: Dict[str, str] = {
    "cover": "cover",
    "artwork name": "artwork_name",
    "artwork_name": "artwork_name",
    "artworkname": "artwork_name",
    "song genre": "genre",
    "song_genre": "genre",
    "songgenre": "genre",
    "genre": "genre",
    "artist": "artist",
    "song title": "song_title",
    "song_title": "song_title",
    "songtitle": "song_title",
    "title": "song_title",
    "artistic category": "artistic_category",
    "artistic_category": "artistic_category",
    "artisticcategory": "artistic_category",
    "category": "artistic_category",
    "mood": "mood",
    "year": "year",
    "collections": "collections",
    "collection": "collections",
    "colors": "colors",
    "colours": "colors",
    "color": "colors",
    "colour": "colors",
    "id": "id",
}

DEFAULT_CSV_NAME = "DiggerDB.csv"
DEFAULT_JSON_NAME = "records.json"
CONFIG_NAME = "gallery_config.yaml"


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def data_root() -> Path:
    env = os.getenv("DIGGGIN_DATA_DIR")
    if env:
        return Path(env).expanduser().resolve()
    return project_root() / "data"


def default_csv_path() -> Path:
    return data_root() / DEFAULT_CSV_NAME


def default_json_path() -> Path:
    return data_root() / DEFAULT_JSON_NAME


def config_path() -> Path:
    return data_root() / CONFIG_NAME


def logs_root() -> Path:
    return data_root() / "logs"


def is_url(source: str) -> bool:
    s = (source or "").strip().lower()
    return s.startswith(("http://", "https://", "file://"))


def resolve_source(source: str | Path) -> str:
    """Relative paths resolve against the data root; URLs pass through."""
    s = str(source).strip()
    if is_url(s):
        return s
    p = Path(s).expanduser()
    if not p.is_absolute():
        p = data_root() / p
    return str(p)
