# digggin/ui/cover_loader.py
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Optional
import http.client
import logging
import urllib.request

from PySide6.QtCore import Qt, QObject, QRunnable, QThreadPool, Signal
from PySide6.QtGui import QImage, QImageReader

from digggin.data.dataset_paths import is_url

log = logging.getLogger("digggin.ui.covers")


class _TaskSignals(QObject):
    finished = Signal(str, object)  # cover source, QImage (or None on failure)


class _CoverTask(QRunnable):
    def __init__(self, source: str, long_edge: int, timeout: float, signals: _TaskSignals):
        super().__init__()
        self.source = source
        self.long_edge = long_edge
        self.timeout = timeout
        self.signals = signals

    def run(self):
        img = None
        try:
            if is_url(self.source):
                with urllib.request.urlopen(self.source, timeout=self.timeout) as resp:
                    data = resp.read()
                qimg = QImage()
                if qimg.loadFromData(data):
                    img = qimg
            else:
                reader = QImageReader(self.source)
                reader.setAutoTransform(True)  # honor EXIF orientation
                qimg = reader.read()
                if not qimg.isNull():
                    img = qimg
        except (OSError, ValueError, http.client.HTTPException) as e:
            log.debug("cover fetch failed src=%s err=%s", self.source, e)
            img = None
        if img is not None and self.long_edge > 0:
            img = img.scaled(self.long_edge, self.long_edge, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        # deliver back to the GUI thread
        self.signals.finished.emit(self.source, img)


class CoverLoader(QObject):
    """
    Decodes cover images off the GUI thread (small private pool) and keeps an
    LRU cache of decoded QImages. QPixmap conversion is left to the receiver,
    which runs on the GUI thread.

    Failed loads are not cached, so the next request retries them. Pinned
    sources (an open details dialog) survive cancel_pending().
    """
    coverReady = Signal(str, object)  # source, QImage or None

    def __init__(self, long_edge: int = 240, cache_cap: int = 256, timeout: float = 15.0, parent=None):
        super().__init__(parent)
        self._pool = QThreadPool(self)
        self._pool.setMaxThreadCount(4)
        self._cache: "OrderedDict[str, QImage]" = OrderedDict()
        self._cache_cap = cache_cap
        self._long_edge = long_edge
        self._timeout = timeout
        self._inflight: Dict[str, _TaskSignals] = {}
        self._pinned: Dict[str, int] = {}

    def is_cached(self, source: str) -> bool:
        return source in self._cache

    def request(self, source: str, *, pinned: bool = False) -> Optional[QImage]:
        """Return a cached image immediately, or schedule a load and return None."""
        if pinned:
            self._pinned[source] = self._pinned.get(source, 0) + 1
        if source in self._cache:
            self._cache.move_to_end(source)
            return self._cache[source]
        if source in self._inflight:
            return None
        self._schedule(source)
        return None

    def unpin(self, source: str) -> None:
        n = self._pinned.get(source, 0) - 1
        if n > 0:
            self._pinned[source] = n
        else:
            self._pinned.pop(source, None)

    def cancel_pending(self) -> None:
        """Drop queued loads, except pinned sources which are rescheduled."""
        self._pool.clear()
        keep = [s for s in self._inflight if s in self._pinned]
        self._inflight.clear()
        for source in keep:
            self._schedule(source)

    def _schedule(self, source: str) -> None:
        signals = _TaskSignals()
        signals.finished.connect(self._on_finished)
        self._inflight[source] = signals
        self._pool.start(_CoverTask(source, self._long_edge, self._timeout, signals))

    def _on_finished(self, source: str, img: Optional[QImage]):
        self._inflight.pop(source, None)
        if img is not None:
            self._cache[source] = img
            self._cache.move_to_end(source)
            while len(self._cache) > self._cache_cap:
                self._cache.popitem(last=False)
        self.coverReady.emit(source, img)
