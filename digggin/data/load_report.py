from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class LoadReport:
    """Per-load diagnostics: how many rows came in and why any were dropped."""
    source: str = ""
    lines_read: int = 0
    rows_parsed: int = 0
    rows_field_mismatch: int = 0
    rows_missing_required: int = 0
    records_kept: int = 0

    @property
    def rows_excluded(self) -> int:
        return self.rows_field_mismatch + self.rows_missing_required

    def summary(self) -> str:
        return (
            f"{self.records_kept} records from {self.source or '<text>'} "
            f"({self.rows_field_mismatch} malformed, "
            f"{self.rows_missing_required} incomplete rows skipped)"
        )

    def as_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["rows_excluded"] = self.rows_excluded
        return d
