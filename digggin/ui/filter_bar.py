# digggin/ui/filter_bar.py
from __future__ import annotations
from typing import Dict, Optional

from PySide6.QtCore import QTimer, Signal
from PySide6.QtWidgets import QComboBox, QHBoxLayout, QLabel, QLineEdit, QPushButton, QWidget

from digggin.search.interfaces import FilterOptions, FilterQuery

ALL_LABEL = "All"

# (query dimension, combo label) in display order
DIMENSIONS = (
    ("genre", "Genre"),
    ("mood", "Mood"),
    ("category", "Category"),
    ("collection", "Collection"),
    ("color", "Color"),
    ("artist", "Artist"),
)


class FilterBar(QWidget):
    """
    Search box plus one combo per filter dimension.

    Combo changes emit queryChanged right away; typing in the search box is
    debounced so a burst of keystrokes produces a single query.
    """
    queryChanged = Signal(object)   # FilterQuery
    shuffleRequested = Signal()

    def __init__(self, debounce_ms: int = 300, parent=None):
        super().__init__(parent)
        self._suspend = False

        lay = QHBoxLayout(self)
        lay.setContentsMargins(6, 4, 6, 4)

        self.edit_search = QLineEdit()
        self.edit_search.setPlaceholderText("Search artist, title, genre, artwork…")
        self.edit_search.setClearButtonEnabled(True)
        lay.addWidget(self.edit_search, 2)

        self.combos: Dict[str, QComboBox] = {}
        for dim, label in DIMENSIONS:
            lay.addWidget(QLabel(f"{label}:"))
            cmb = QComboBox()
            cmb.setMinimumContentsLength(8)
            cmb.setSizeAdjustPolicy(QComboBox.AdjustToMinimumContentsLengthWithIcon)
            cmb.addItem(ALL_LABEL)
            cmb.currentIndexChanged.connect(self._emit_query)
            self.combos[dim] = cmb
            lay.addWidget(cmb, 1)

        self.btn_shuffle = QPushButton("Shuffle")
        self.btn_shuffle.setToolTip("Show a random sample of the matching records")
        self.btn_shuffle.clicked.connect(self.shuffleRequested.emit)
        lay.addWidget(self.btn_shuffle)

        self.btn_clear = QPushButton("Clear")
        self.btn_clear.clicked.connect(self.clear)
        lay.addWidget(self.btn_clear)

        self.lbl_count = QLabel("")
        lay.addWidget(self.lbl_count)

        self._search_debounce = QTimer(self)
        self._search_debounce.setSingleShot(True)
        self._search_debounce.setInterval(max(0, int(debounce_ms)))
        self._search_debounce.timeout.connect(self._emit_query)
        self.edit_search.textChanged.connect(self._on_search_edited)

    # ---------------- public API ----------------
    def set_options(self, options: FilterOptions) -> None:
        """Refill the combos, keeping current selections where they still exist."""
        self._suspend = True
        try:
            for dim, cmb in self.combos.items():
                current = cmb.currentText()
                cmb.clear()
                cmb.addItem(ALL_LABEL)
                cmb.addItems(list(options.for_dimension(dim)))
                idx = cmb.findText(current)
                cmb.setCurrentIndex(idx if idx >= 0 else 0)
        finally:
            self._suspend = False

    def query(self) -> FilterQuery:
        picks: Dict[str, Optional[str]] = {}
        for dim, cmb in self.combos.items():
            picks[dim] = None if cmb.currentIndex() <= 0 else cmb.currentText()
        return FilterQuery(search=self.edit_search.text() or None, **picks)

    def set_result_count(self, shown: int, total: int) -> None:
        if shown == total:
            self.lbl_count.setText(f"{total} records")
        else:
            self.lbl_count.setText(f"{shown} of {total}")

    def clear(self) -> None:
        self._suspend = True
        try:
            self._search_debounce.stop()
            self.edit_search.clear()
            for cmb in self.combos.values():
                cmb.setCurrentIndex(0)
        finally:
            self._suspend = False
        self._emit_query()

    # ---------------- internals ----------------
    def _on_search_edited(self, _text: str) -> None:
        if not self._suspend:
            self._search_debounce.start()

    def _emit_query(self, *_args) -> None:
        if self._suspend:
            return
        self.queryChanged.emit(self.query())
