# digggin/ui/gallery_grid.py
from __future__ import annotations
from typing import Dict, List, Optional

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QGridLayout, QLabel, QScrollArea, QStackedWidget, QVBoxLayout, QWidget

from digggin.data.records import Record
from .cover_loader import CoverLoader
from .record_card import RecordCard, COVER_SIZE


class GalleryGrid(QWidget):
    """
    Scrollable card grid over a list of records. Purely presentational:
    it renders whatever list it is given, in that order.
      - column count follows the viewport width
      - covers arrive asynchronously from CoverLoader
      - an empty list shows a "no results" page instead of the grid
    """
    recordActivated = Signal(object)

    def __init__(self, cover_loader: Optional[CoverLoader] = None, parent=None):
        super().__init__(parent)
        self._covers = cover_loader or CoverLoader(long_edge=COVER_SIZE, parent=self)
        self._covers.coverReady.connect(self._on_cover_ready)
        self._records: List[Record] = []
        self._cards_by_cover: Dict[str, List[RecordCard]] = {}
        self._columns = 0

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)

        self._stack = QStackedWidget()
        outer.addWidget(self._stack, 1)

        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self._host = QWidget()
        self._grid = QGridLayout(self._host)
        self._grid.setContentsMargins(8, 8, 8, 8)
        self._grid.setSpacing(10)
        self._grid.setAlignment(Qt.AlignTop | Qt.AlignLeft)
        self.scroll.setWidget(self._host)
        self._stack.addWidget(self.scroll)

        self._empty = QLabel(
            "<b>No records match.</b><br><span style='color:#888'>"
            "Try adjusting your filters or search terms.</span>",
            alignment=Qt.AlignCenter,
        )
        self._stack.addWidget(self._empty)

        self._relayout_timer = QTimer(self)
        self._relayout_timer.setSingleShot(True)
        self._relayout_timer.timeout.connect(self._relayout_if_needed)

    # ---------------- public API ----------------
    def set_records(self, records: List[Record]) -> None:
        self._records = list(records)
        self._rebuild()

    def records(self) -> List[Record]:
        return list(self._records)

    # ---------------- internals ----------------
    def _column_count(self) -> int:
        card_w = COVER_SIZE + 20 + self._grid.spacing()
        avail = max(1, self.scroll.viewport().width() - 16)
        return max(1, avail // card_w)

    def _clear(self) -> None:
        self._covers.cancel_pending()
        self._cards_by_cover.clear()
        while self._grid.count():
            item = self._grid.takeAt(0)
            w = item.widget()
            if w is not None:
                w.deleteLater()

    def _rebuild(self) -> None:
        self._clear()
        if not self._records:
            self._stack.setCurrentWidget(self._empty)
            return
        self._stack.setCurrentWidget(self.scroll)
        self._columns = self._column_count()
        for i, rec in enumerate(self._records):
            card = RecordCard(rec)
            card.clicked.connect(self.recordActivated.emit)
            self._grid.addWidget(card, i // self._columns, i % self._columns)
            self._cards_by_cover.setdefault(rec.cover, []).append(card)
            if self._covers.is_cached(rec.cover):
                card.set_cover(self._covers.request(rec.cover))
            else:
                self._covers.request(rec.cover)
        self.scroll.verticalScrollBar().setValue(0)

    def _on_cover_ready(self, source: str, img: Optional[QImage]) -> None:
        for card in self._cards_by_cover.get(source, []):
            card.set_cover(img)

    def _relayout_if_needed(self) -> None:
        if self._records and self._column_count() != self._columns:
            self._rebuild()

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        # Debounce: resizes arrive in bursts while dragging
        self._relayout_timer.start(150)
