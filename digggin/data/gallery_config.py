# digggin/data/gallery_config.py
"""
Configuration loader for the gallery.

Loads gallery_config.yaml from the data root and provides:
- Data source locations (CSV table, optional JSON cache)
- Display limits (max cards shown, shuffle sample size)
- Search debounce delay
- Normalization settings (placeholders, color vocabulary, legacy year-as-color mode)

Usage:
    from digggin.data.gallery_config import get_gallery_config

    config = get_gallery_config()
    config.csv_source()           # absolute path or URL of the CSV table
    config.normalize_settings()   # NormalizeSettings for digggin.data.records
"""
from __future__ import annotations
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path
import logging

import yaml

from .dataset_paths import (
    config_path, resolve_source, DEFAULT_CSV_NAME, DEFAULT_JSON_NAME,
)
from .records import NormalizeSettings, COLOR_VOCABULARY, DEFAULT_PLACEHOLDERS

_log = logging.getLogger("digggin.data.gallery_config")

# Lazy-loaded module state
_config_cache: Optional["GalleryConfig"] = None


@dataclass
class GalleryConfig:
    """Complete gallery configuration."""
    csv_path: str = DEFAULT_CSV_NAME
    json_path: str = DEFAULT_JSON_NAME
    prefer_json: bool = True
    fetch_timeout_s: float = 15.0
    max_display_records: int = 100
    random_sample_size: int = 50
    search_debounce_ms: int = 300
    case_fold_filter_options: bool = False
    infer_colors_from_year: bool = False
    placeholders: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PLACEHOLDERS))
    color_vocabulary: List[str] = field(default_factory=lambda: list(COLOR_VOCABULARY))

    def csv_source(self) -> str:
        return resolve_source(self.csv_path)

    def json_source(self) -> Optional[str]:
        if not (self.json_path or "").strip():
            return None
        return resolve_source(self.json_path)

    def normalize_settings(self) -> NormalizeSettings:
        return NormalizeSettings(
            placeholders=dict(self.placeholders),
            color_vocabulary=tuple(self.color_vocabulary),
            infer_colors_from_year=self.infer_colors_from_year,
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file, return empty dict if not found or error."""
    if not path.exists():
        _log.info("Config file not found: %s", path)
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        _log.error("Failed to load %s: %s", path, e)
        return {}


def _parse_placeholders(data: Dict[str, Any]) -> Dict[str, str]:
    out = dict(DEFAULT_PLACEHOLDERS)
    raw = data.get("placeholders", {})
    if not isinstance(raw, dict):
        return out
    for name, value in raw.items():
        if name in out and value is not None:
            out[name] = str(value)
        else:
            _log.warning("Ignoring unknown placeholder field '%s'", name)
    return out


def _parse_vocabulary(data: Dict[str, Any]) -> List[str]:
    raw = data.get("color_vocabulary")
    if not isinstance(raw, list) or not raw:
        return list(COLOR_VOCABULARY)
    words = []
    for w in raw:
        s = str(w).strip().lower()
        if s and s not in words:
            words.append(s)
    return words or list(COLOR_VOCABULARY)


def _parse_config(data: Dict[str, Any]) -> GalleryConfig:
    """Parse full configuration from YAML data."""
    sources = data.get("sources", {}) or {}
    display = data.get("display", {}) or {}
    normalize = data.get("normalization", {}) or {}
    defaults = GalleryConfig()

    return GalleryConfig(
        csv_path=str(sources.get("csv", defaults.csv_path)),
        json_path=str(sources.get("json", defaults.json_path) or ""),
        prefer_json=bool(sources.get("prefer_json", defaults.prefer_json)),
        fetch_timeout_s=float(sources.get("timeout_s", defaults.fetch_timeout_s)),
        max_display_records=int(display.get("max_records", defaults.max_display_records)),
        random_sample_size=int(display.get("random_sample_size", defaults.random_sample_size)),
        search_debounce_ms=int(display.get("search_debounce_ms", defaults.search_debounce_ms)),
        case_fold_filter_options=bool(
            display.get("case_fold_filter_options", defaults.case_fold_filter_options)
        ),
        infer_colors_from_year=bool(
            normalize.get("infer_colors_from_year", defaults.infer_colors_from_year)
        ),
        placeholders=_parse_placeholders(normalize),
        color_vocabulary=_parse_vocabulary(normalize),
    )


def get_gallery_config(*, reload: bool = False, path: Optional[Path] = None) -> GalleryConfig:
    """
    Load and return the gallery configuration.

    Args:
        reload: If True, reload from disk even if cached.
        path: Explicit YAML path (defaults to <data root>/gallery_config.yaml).
    """
    global _config_cache

    if _config_cache is not None and not reload and path is None:
        return _config_cache

    cfg_path = path or config_path()
    data = _load_yaml(cfg_path)

    if not data:
        _log.info("Using default gallery configuration (no %s)", cfg_path.name)
        config = GalleryConfig()
    else:
        try:
            config = _parse_config(data)
        except (AttributeError, TypeError, ValueError) as e:
            _log.error("Invalid values in %s, using defaults: %s", cfg_path, e)
            config = GalleryConfig()
        else:
            _log.info("Loaded gallery configuration from %s", cfg_path)

    if path is None:
        _config_cache = config
    return config
