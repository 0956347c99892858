# digggin/ui/record_card.py
from __future__ import annotations
from html import escape
from typing import Dict, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QSizePolicy, QVBoxLayout

from digggin.data.records import Record

Color = tuple[int, int, int]

# Swatch colors for the chips under each card; unknown tokens render grey
CHIP_RGB: Dict[str, Color] = {
    "red": (200, 40, 40),
    "green": (40, 150, 70),
    "blue": (40, 90, 200),
    "yellow": (235, 205, 40),
    "orange": (235, 130, 30),
    "purple": (120, 60, 170),
    "pink": (235, 120, 170),
    "black": (20, 20, 20),
    "white": (245, 245, 245),
    "brown": (120, 80, 40),
    "gold": (212, 175, 55),
    "vibrant": (255, 0, 140),
    "dark": (50, 50, 60),
    "cool": (90, 160, 200),
    "warm": (220, 120, 80),
}
_FALLBACK_RGB: Color = (150, 150, 150)

COVER_SIZE = 200


def _text_color_for_bg(rgb: Color) -> str:
    r, g, b = rgb
    l = 0.299*r + 0.587*g + 0.114*b
    return "#000" if l >= 160 else "#fff"

def _css_color(rgb: Color) -> str:
    return f"rgb({rgb[0]}, {rgb[1]}, {rgb[2]})"

def chip_html(token: str) -> str:
    rgb = CHIP_RGB.get(token, _FALLBACK_RGB)
    return (
        f"<span style='background:{_css_color(rgb)}; color:{_text_color_for_bg(rgb)};"
        f" border-radius:3px; padding:0 4px'>&nbsp;{escape(token)}&nbsp;</span>"
    )


class RecordCard(QFrame):
    """
    One gallery card:
      - cover thumbnail (filled in later by set_cover)
      - song title / artist
      - genre, mood and category line
      - color chips
    Clicking anywhere on the card emits clicked(record).
    """
    clicked = Signal(object)

    def __init__(self, record: Record, parent=None):
        super().__init__(parent)
        self.record = record
        self.setFrameShape(QFrame.StyledPanel)
        self.setObjectName("RecordCard")
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        self.setFixedWidth(COVER_SIZE + 20)
        self.setToolTip(f"{record.artwork_name}\n{record.display_title}")

        root = QVBoxLayout(self)
        root.setContentsMargins(8, 8, 8, 8)
        root.setSpacing(4)

        self.lbl_cover = QLabel("Loading…", alignment=Qt.AlignCenter)
        self.lbl_cover.setFixedSize(COVER_SIZE, COVER_SIZE)
        self.lbl_cover.setStyleSheet("background:#222; color:#888;")
        root.addWidget(self.lbl_cover)

        lbl_title = QLabel(f"<b>{escape(record.song_title)}</b>")
        lbl_title.setWordWrap(True)
        root.addWidget(lbl_title)

        lbl_artist = QLabel(record.artist)
        lbl_artist.setTextFormat(Qt.PlainText)
        lbl_artist.setWordWrap(True)
        root.addWidget(lbl_artist)

        lbl_meta = QLabel(
            f"<span style='color:#888'>{escape(record.genre)} · {escape(record.mood)} · {escape(record.artistic_category)}</span>"
        )
        lbl_meta.setWordWrap(True)
        root.addWidget(lbl_meta)

        if record.colors:
            chips = QHBoxLayout()
            chips.setContentsMargins(0, 0, 0, 0)
            lbl_chips = QLabel(" ".join(chip_html(c) for c in sorted(record.colors)))
            lbl_chips.setWordWrap(True)
            chips.addWidget(lbl_chips)
            root.addLayout(chips)

        accent = CHIP_RGB.get(record.primary_color)
        if accent is not None:
            self.setStyleSheet(f"#RecordCard {{ border-top: 3px solid {_css_color(accent)}; }}")

    def set_cover(self, img: Optional[QImage]) -> None:
        if img is None or img.isNull():
            self.lbl_cover.setText("No cover")
            return
        pix = QPixmap.fromImage(img).scaled(
            COVER_SIZE, COVER_SIZE, Qt.KeepAspectRatio, Qt.SmoothTransformation
        )
        self.lbl_cover.setPixmap(pix)

    def mouseReleaseEvent(self, ev):
        if ev.button() == Qt.LeftButton:
            self.clicked.emit(self.record)
        super().mouseReleaseEvent(ev)
