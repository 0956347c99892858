# digggin/ui/record_details.py
from __future__ import annotations
from html import escape
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QDialog, QDialogButtonBox, QFormLayout, QHBoxLayout, QLabel, QVBoxLayout

from digggin.data.records import Record
from .cover_loader import CoverLoader
from .record_card import chip_html

_DETAIL_COVER = 360


class RecordDetailsDialog(QDialog):
    """Full view of one record: large cover plus every field."""

    def __init__(self, record: Record, cover_loader: Optional[CoverLoader] = None, parent=None):
        super().__init__(parent)
        self.record = record
        self.setWindowTitle(record.display_title)
        self.setMinimumWidth(640)

        root = QVBoxLayout(self)
        body = QHBoxLayout()
        root.addLayout(body, 1)

        self.lbl_cover = QLabel("Loading…", alignment=Qt.AlignCenter)
        self.lbl_cover.setFixedSize(_DETAIL_COVER, _DETAIL_COVER)
        self.lbl_cover.setStyleSheet("background:#222; color:#888;")
        body.addWidget(self.lbl_cover)

        form = QFormLayout()
        form.setLabelAlignment(Qt.AlignRight)
        for label, value in (
            ("Song", record.song_title),
            ("Artist", record.artist),
            ("Artwork", record.artwork_name),
            ("Genre", record.genre),
            ("Mood", record.mood),
            ("Category", record.artistic_category),
            ("Year", record.year),
            ("Id", str(record.id)),
        ):
            lbl = QLabel(value)
            lbl.setTextFormat(Qt.PlainText)
            lbl.setWordWrap(True)
            lbl.setTextInteractionFlags(Qt.TextSelectableByMouse)
            form.addRow(f"{label}:", lbl)

        if record.colors:
            form.addRow("Colors:", QLabel(" ".join(chip_html(c) for c in sorted(record.colors))))
        if record.collections:
            form.addRow("Collections:", QLabel(escape(", ".join(sorted(record.collections)))))

        lbl_src = QLabel(f"<a href='{escape(record.cover, quote=True)}'>{escape(record.cover)}</a>")
        lbl_src.setOpenExternalLinks(True)
        lbl_src.setWordWrap(True)
        form.addRow("Cover:", lbl_src)
        body.addLayout(form, 1)

        buttons = QDialogButtonBox(QDialogButtonBox.Close)
        buttons.rejected.connect(self.reject)
        root.addWidget(buttons)

        self._covers = cover_loader
        if cover_loader is not None:
            cover_loader.coverReady.connect(self._on_cover_ready)
            # Pinned so a grid rebuild does not drop this request
            img = cover_loader.request(record.cover, pinned=True)
            if img is not None:
                self._set_cover(img)

    def _on_cover_ready(self, source: str, img: Optional[QImage]) -> None:
        if source == self.record.cover:
            self._set_cover(img)

    def _set_cover(self, img: Optional[QImage]) -> None:
        if img is None or img.isNull():
            self.lbl_cover.setText("No cover")
            return
        self.lbl_cover.setPixmap(
            QPixmap.fromImage(img).scaled(_DETAIL_COVER, _DETAIL_COVER, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )

    def done(self, result: int) -> None:
        if self._covers is not None:
            self._covers.coverReady.disconnect(self._on_cover_ready)
            self._covers.unpin(self.record.cover)
        super().done(result)
