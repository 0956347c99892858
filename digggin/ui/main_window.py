# digggin/ui/main_window.py
from __future__ import annotations
from typing import List, Optional
import logging

from PySide6.QtCore import Qt, QObject, QRunnable, QThreadPool, Signal
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFrame, QHBoxLayout, QLabel, QMainWindow, QPushButton, QVBoxLayout, QWidget,
)

from digggin.data.errors import GalleryLoadError, MalformedInput, SourceUnavailable
from digggin.data.gallery_config import GalleryConfig, get_gallery_config
from digggin.data.load_report import LoadReport
from digggin.data.loader import GalleryStore, load_gallery
from digggin.data.records import Record
from digggin.search.interfaces import FilterQuery
from .cover_loader import CoverLoader
from .filter_bar import FilterBar
from .gallery_grid import GalleryGrid
from .record_details import RecordDetailsDialog

log = logging.getLogger("digggin.ui.main_window")


class _LoadSignals(QObject):
    loaded = Signal(int, object, object)   # ticket, records, LoadReport
    failed = Signal(int, object)           # ticket, GalleryLoadError


class _LoadTask(QRunnable):
    def __init__(self, ticket: int, config: GalleryConfig, signals: _LoadSignals):
        super().__init__()
        self.ticket = ticket
        self.config = config
        self.signals = signals

    def run(self):
        report = LoadReport()
        try:
            records = load_gallery(self.config, report=report)
        except GalleryLoadError as e:
            self.signals.failed.emit(self.ticket, e)
            return
        self.signals.loaded.emit(self.ticket, records, report)


class _ErrorBanner(QFrame):
    retryRequested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("QFrame { background:#5a1e1e; color:#fff; border-radius:4px; }")
        lay = QHBoxLayout(self)
        lay.setContentsMargins(10, 6, 10, 6)
        self.lbl = QLabel("")
        self.lbl.setWordWrap(True)
        lay.addWidget(self.lbl, 1)
        btn = QPushButton("Retry")
        btn.clicked.connect(self.retryRequested.emit)
        lay.addWidget(btn)
        self.hide()

    def show_error(self, error: GalleryLoadError) -> None:
        if isinstance(error, SourceUnavailable):
            head = "Could not reach the record collection."
        elif isinstance(error, MalformedInput):
            head = "The record collection could not be read."
        else:
            head = "Loading the record collection failed."
        self.lbl.setText(f"{head}\n{error}")
        self.show()


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[GalleryConfig] = None):
        super().__init__()
        self.setWindowTitle("digggin")
        self.setMinimumSize(640, 480)
        self.resize(1280, 860)

        self.config = config or get_gallery_config()
        self.store = GalleryStore(
            case_fold_options=self.config.case_fold_filter_options,
            max_display=self.config.max_display_records,
        )
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(1)
        self._load_signals = _LoadSignals(self)
        self._load_signals.loaded.connect(self._on_loaded)
        self._load_signals.failed.connect(self._on_failed)

        self.covers = CoverLoader(long_edge=360, timeout=self.config.fetch_timeout_s, parent=self)

        central = QWidget()
        root = QVBoxLayout(central)
        root.setContentsMargins(6, 6, 6, 6)

        self.banner = _ErrorBanner()
        self.banner.retryRequested.connect(self.reload)
        root.addWidget(self.banner)

        self.filter_bar = FilterBar(debounce_ms=self.config.search_debounce_ms)
        self.filter_bar.queryChanged.connect(self._on_query_changed)
        self.filter_bar.shuffleRequested.connect(self._on_shuffle)
        root.addWidget(self.filter_bar)

        self.grid = GalleryGrid(cover_loader=self.covers)
        self.grid.recordActivated.connect(self._open_details)
        root.addWidget(self.grid, 1)

        self.setCentralWidget(central)

        act_reload = QAction("Reload", self)
        act_reload.setShortcut(QKeySequence.Refresh)
        act_reload.triggered.connect(self.reload)
        self.menuBar().addMenu("&File").addAction(act_reload)

        self.reload()

    # ---------------- loading ----------------
    def reload(self) -> None:
        ticket = self.store.begin_load()
        self.banner.hide()
        self.statusBar().showMessage("Loading records…")
        log.info("reload ticket=%d csv=%s json=%s", ticket,
                 self.config.csv_source(), self.config.json_source())
        self._pool.start(_LoadTask(ticket, self.config, self._load_signals))

    def _on_loaded(self, ticket: int, records: List[Record], report: LoadReport) -> None:
        if not self.store.commit(ticket, records, report):
            return
        self.banner.hide()
        self.filter_bar.set_options(self.store.filter_options)
        self._refresh(self.filter_bar.query())
        self.statusBar().showMessage(report.summary())

    def _on_failed(self, ticket: int, error: GalleryLoadError) -> None:
        if not self.store.fail(ticket, error):
            return
        self.banner.show_error(error)
        if self.store.records:
            self.statusBar().showMessage("Reload failed; showing previously loaded records")
        else:
            self.statusBar().showMessage("No records loaded")

    # ---------------- filtering ----------------
    def _refresh(self, query: FilterQuery, *, shuffle: bool = False) -> None:
        limit = self.config.random_sample_size if shuffle else None
        shown = self.store.apply_filters(query, shuffle=shuffle, limit=limit)
        self.grid.set_records(shown)
        total = len(self.store.records) if query.is_empty() else len(
            self.store.apply_filters(query, limit=len(self.store.records))
        )
        self.filter_bar.set_result_count(len(shown), total)

    def _on_query_changed(self, query: FilterQuery) -> None:
        self._refresh(query)

    def _on_shuffle(self) -> None:
        self._refresh(self.filter_bar.query(), shuffle=True)

    def _open_details(self, record: Record) -> None:
        dlg = RecordDetailsDialog(record, cover_loader=self.covers, parent=self)
        dlg.setAttribute(Qt.WA_DeleteOnClose)
        dlg.show()
