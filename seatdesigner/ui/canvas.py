from __future__ import annotations
import math
from typing import Dict, Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget

from seatdesigner.domain.models import Point, SeatKey
from seatdesigner.services.engine import SeatingEngine

# géométrie du canevas (pixels canevas)
MARGIN = 24
TABLE_GAP = 28
TITLE_H = 26
SEAT_W = 96
SEAT_H = 24
SEAT_GAP = 6
SEAT_COLS = 2

COLOR_TABLE = QColor("#eceff1")
COLOR_SEAT = QColor("#ffffff")
COLOR_OCCUPIED = QColor("#bbdefb")
COLOR_SELECTED = QColor("#1565c0")


def table_size(seats_per_table: int) -> tuple[float, float]:
    lines = math.ceil(seats_per_table / SEAT_COLS)
    width = SEAT_COLS * SEAT_W + (SEAT_COLS + 1) * SEAT_GAP
    height = TITLE_H + lines * (SEAT_H + SEAT_GAP) + SEAT_GAP
    return width, height


def build_geometry(rows) -> tuple[Dict[int, QRectF], Dict[SeatKey, QRectF]]:
    """Rectangles des tables et des sièges : une rangée de tables par ligne."""
    tables: Dict[int, QRectF] = {}
    seats: Dict[SeatKey, QRectF] = {}
    y = MARGIN
    for row in rows:
        w, h = table_size(row.seats_per_table)
        x = MARGIN
        for t in row.table_ids():
            tables[t] = QRectF(x, y, w, h)
            for s in range(1, row.seats_per_table + 1):
                col = (s - 1) % SEAT_COLS
                line = (s - 1) // SEAT_COLS
                seats[SeatKey(t, s)] = QRectF(
                    x + SEAT_GAP + col * (SEAT_W + SEAT_GAP),
                    y + TITLE_H + line * (SEAT_H + SEAT_GAP),
                    SEAT_W,
                    SEAT_H,
                )
            x += w + TABLE_GAP
        y += h + TABLE_GAP
    return tables, seats


class SeatCanvas(QWidget):
    """Projection du plan : dessine tables et sièges, traduit la souris en opérations."""

    seat_clicked = Signal(object)
    seat_double_clicked = Signal(object)
    seat_menu_requested = Signal(object, object)
    table_menu_requested = Signal(int, object)
    view_changed = Signal()

    def __init__(self, engine: SeatingEngine, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.engine = engine
        self.highlighted: Optional[SeatKey] = None
        self._tables: Dict[int, QRectF] = {}
        self._seats: Dict[SeatKey, QRectF] = {}
        self._pan_start: Optional[QPointF] = None
        self._space_down = False
        self.setMinimumSize(480, 360)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMouseTracking(False)
        self.rebuild()

    # --- état
    def rebuild(self) -> None:
        self._tables, self._seats = build_geometry(self.engine.rows)
        self.update()

    def _to_canvas(self, pos: QPointF) -> Point:
        return self.engine.view.to_canvas(Point(pos.x(), pos.y()), Point())

    def seat_at(self, pos: QPointF) -> Optional[SeatKey]:
        p = self._to_canvas(pos)
        for seat, rect in self._seats.items():
            if rect.contains(QPointF(p.x, p.y)):
                return seat
        return None

    def table_at(self, pos: QPointF) -> Optional[int]:
        p = self._to_canvas(pos)
        for table_id, rect in self._tables.items():
            if rect.contains(QPointF(p.x, p.y)):
                return table_id
        return None

    def focus_seat(self, seat: SeatKey) -> None:
        rect = self._seats.get(seat)
        if rect is None:
            return
        center = rect.center()
        self.engine.view.center_on(Point(center.x(), center.y()), Point(self.width() / 2, self.height() / 2))
        self.highlighted = seat
        self._view_touched()

    def _view_touched(self) -> None:
        self.update()
        self.engine.touch()
        self.view_changed.emit()

    # --- rendu
    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        view = self.engine.view
        painter.translate(view.pan.x, view.pan.y)
        painter.scale(view.scale, view.scale)

        for table_id, rect in self._tables.items():
            occ, total = self.engine.table_occupancy(table_id)
            painter.setPen(QPen(QColor("#90a4ae"), 1))
            painter.setBrush(COLOR_TABLE)
            painter.drawRoundedRect(rect, 6, 6)
            painter.setPen(Qt.black)
            title = QRectF(rect.x() + SEAT_GAP, rect.y(), rect.width() - 2 * SEAT_GAP, TITLE_H)
            painter.drawText(title, Qt.AlignVCenter | Qt.AlignLeft, f"Table {table_id} ({occ}/{total})")

        for seat, rect in self._seats.items():
            occupied = self.engine.store.occupant(seat) is not None
            pen = QPen(COLOR_SELECTED, 2) if seat == self.highlighted else QPen(QColor("#b0bec5"), 1)
            painter.setPen(pen)
            painter.setBrush(COLOR_OCCUPIED if occupied else COLOR_SEAT)
            painter.drawRoundedRect(rect, 4, 4)
            painter.setPen(Qt.black)
            text = painter.fontMetrics().elidedText(self.engine.seat_label(seat), Qt.ElideRight, int(rect.width()) - 6)
            painter.drawText(rect.adjusted(3, 0, -3, 0), Qt.AlignVCenter | Qt.AlignLeft, text)
        painter.end()

    # --- souris / clavier
    def wheelEvent(self, event) -> None:
        if event.modifiers() & Qt.ControlModifier:
            return super().wheelEvent(event)
        delta = event.angleDelta().y() * 0.001
        pos = event.position()
        self.engine.view.zoom_at(Point(pos.x(), pos.y()), Point(), delta)
        self._view_touched()
        event.accept()

    def keyPressEvent(self, event) -> None:
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self._space_down = True
            self.setCursor(Qt.OpenHandCursor)
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event) -> None:
        if event.key() == Qt.Key_Space and not event.isAutoRepeat():
            self._space_down = False
            self.unsetCursor()
            return
        super().keyReleaseEvent(event)

    def mousePressEvent(self, event) -> None:
        pos = event.position()
        on_item = self.table_at(pos) is not None
        if (event.button() == Qt.RightButton and not on_item) or (self._space_down and event.button() == Qt.LeftButton):
            pan = self.engine.view.pan
            self._pan_start = QPointF(pos.x() - pan.x, pos.y() - pan.y)
            self.setCursor(Qt.ClosedHandCursor)
            return
        if event.button() == Qt.LeftButton:
            seat = self.seat_at(pos)
            if seat is not None:
                self.highlighted = seat
                self.seat_clicked.emit(seat)
                self.update()

    def mouseMoveEvent(self, event) -> None:
        if self._pan_start is None:
            return
        pos = event.position()
        self.engine.view.pan_to(pos.x() - self._pan_start.x(), pos.y() - self._pan_start.y())
        self.update()

    def mouseReleaseEvent(self, event) -> None:
        if self._pan_start is not None:
            self._pan_start = None
            if self._space_down:
                self.setCursor(Qt.OpenHandCursor)
            else:
                self.unsetCursor()
            self._view_touched()

    def mouseDoubleClickEvent(self, event) -> None:
        seat = self.seat_at(event.position())
        if seat is not None:
            self.seat_double_clicked.emit(seat)

    def contextMenuEvent(self, event) -> None:
        pos = QPointF(event.pos())
        seat = self.seat_at(pos)
        if seat is not None:
            self.seat_menu_requested.emit(seat, event.globalPos())
            return
        table_id = self.table_at(pos)
        if table_id is not None:
            self.table_menu_requested.emit(table_id, event.globalPos())
