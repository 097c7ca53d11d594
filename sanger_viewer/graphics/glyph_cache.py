# sanger_viewer/graphics/glyph_cache.py

from typing import Dict, Mapping, Optional, Tuple

from PyQt5.QtCore import QRectF, Qt
from PyQt5.QtGui import QColor, QFont, QPainter, QPen, QPixmap

from sanger_viewer.settings.color_palette import ColorPalette
from sanger_viewer.settings.config import ColorPaletteSettings

FALLBACK_COLOR = "#999999"

_CellKey = Tuple[str, str, int, bool, int, int, int]


def nucleotide_color_map(palette: Optional[ColorPalette] = None) -> Dict[str, QColor]:
    """
    Base -> QColor from the configured palette (IUPAC codes and gap included).
    """
    if palette is None:
        colors: Mapping[str, str] = ColorPaletteSettings().nucleotides
    else:
        colors = palette.nucleotide_colors
    return {base: QColor(value) for base, value in colors.items()}


def color_for(color_map: Mapping[str, QColor], base: str) -> QColor:
    color = color_map.get(base.upper())
    return color if color is not None else QColor(FALLBACK_COLOR)


class BaseGlyphCache:
    """
    Pre-rendered base cells for the text display mode.

    Each pixmap is exactly one slot wide and one row high with the letter
    centered, so a row paints a cell with a single drawPixmap at the slot
    origin. Faded match cells are separate entries (alpha is part of the key).

    Key: (base, font family, point size x10, bold, cell w, cell h, rgba)
    """

    def __init__(self, max_entries: int = 4096) -> None:
        self._cache: Dict[_CellKey, QPixmap] = {}
        self.max_entries = max_entries

    def cell(self, base: str, font: QFont, color: QColor, cell_width: float, cell_height: float) -> QPixmap:
        w = max(1, int(round(cell_width)))
        h = max(1, int(round(cell_height)))
        key = (
            base,
            font.family(),
            int(round((font.pointSizeF() or font.pointSize()) * 10)),
            font.bold(),
            w,
            h,
            color.rgba(),
        )
        pm = self._cache.get(key)
        if pm is not None:
            return pm

        # Zoom changes the cell size; drop stale sizes instead of growing forever
        if len(self._cache) >= self.max_entries:
            self._cache.clear()

        pm = QPixmap(w, h)
        pm.fill(Qt.transparent)
        p = QPainter(pm)
        p.setRenderHint(QPainter.TextAntialiasing, True)
        p.setFont(font)
        p.setPen(QPen(color))
        p.drawText(QRectF(0, 0, w, h), Qt.AlignCenter, base)
        p.end()

        self._cache[key] = pm
        return pm

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


GLYPH_CACHE = BaseGlyphCache()
