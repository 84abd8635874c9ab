from __future__ import annotations
from typing import Callable, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout, QLabel, QLineEdit, QMenu, QMessageBox, QPushButton, QSlider, QSpinBox,
    QVBoxLayout, QWidget,
)

from seatdesigner.core.config import AppConfig
from seatdesigner.core.constants import SCALE_MAX, SCALE_MIN
from seatdesigner.core.errors import InvalidPattern
from seatdesigner.domain.models import SeatKey
from seatdesigner.services.actions import SeatingActions
from seatdesigner.services.engine import SeatingEngine
from seatdesigner.ui.canvas import SeatCanvas


class LayoutPage(QWidget):
    """Paramètres du plan, zoom et canevas des tables."""

    changed = Signal()

    def __init__(
        self,
        engine: SeatingEngine,
        actions: SeatingActions,
        cfg: AppConfig,
        selected_person: Callable[[], Optional[str]],
    ):
        super().__init__()
        self.engine = engine
        self.actions = actions
        self.selected_person = selected_person

        v = QVBoxLayout(self)
        h = QHBoxLayout()
        self.total_tables = QSpinBox(self); self.total_tables.setRange(1, 500); self.total_tables.setValue(cfg.default_total_tables)
        self.seats_per_table = QSpinBox(self); self.seats_per_table.setRange(1, 50); self.seats_per_table.setValue(cfg.default_seats_per_table)
        self.row_pattern = QLineEdit(",".join(str(n) for n in cfg.default_row_pattern), self)
        self.row_pattern.setPlaceholderText("Tables par rangée, ex. 4,3,4")
        btn_generate = QPushButton("Générer le plan", self); btn_generate.clicked.connect(self.generate)
        for label, w in (("Tables", self.total_tables), ("Sièges/table", self.seats_per_table), ("Rangées", self.row_pattern)):
            h.addWidget(QLabel(label, self)); h.addWidget(w)
        h.addWidget(btn_generate)
        h.addStretch(1)

        self.zoom = QSlider(Qt.Horizontal, self)
        self.zoom.setRange(int(SCALE_MIN * 100), int(SCALE_MAX * 100))
        self.zoom.setFixedWidth(160)
        self.zoom.valueChanged.connect(self._zoom_slider_moved)
        self.lbl_zoom = QLabel("100%", self)
        btn_reset = QPushButton("Réinitialiser la vue", self); btn_reset.clicked.connect(self.reset_view)
        h.addWidget(self.zoom); h.addWidget(self.lbl_zoom); h.addWidget(btn_reset)
        v.addLayout(h)

        self.canvas = SeatCanvas(self.engine, self)
        self.canvas.seat_clicked.connect(self._on_seat_clicked)
        self.canvas.seat_double_clicked.connect(self._on_seat_double_clicked)
        self.canvas.seat_menu_requested.connect(self._show_seat_menu)
        self.canvas.table_menu_requested.connect(self._show_table_menu)
        self.canvas.view_changed.connect(self._sync_zoom)
        v.addWidget(self.canvas, 1)

        hint = QLabel("Sélectionnez un invité puis cliquez sur un siège. Molette : zoom ; clic droit ou Espace + glisser : déplacer.", self)
        hint.setStyleSheet("color: #607d8b;")
        v.addWidget(hint)
        self._sync_zoom()

    # --- rafraîchissement
    def reload(self) -> None:
        self.canvas.rebuild()
        self._sync_zoom()

    def _sync_zoom(self) -> None:
        view = self.engine.view
        self.zoom.blockSignals(True)
        self.zoom.setValue(view.zoom_percent)
        self.zoom.blockSignals(False)
        self.lbl_zoom.setText(f"{view.zoom_percent}%")

    # --- actions
    def generate(self) -> None:
        try:
            rows = self.engine.generate_layout(
                self.total_tables.value(), self.seats_per_table.value(), self.row_pattern.text()
            )
        except InvalidPattern as exc:
            QMessageBox.warning(self, "Motif invalide", str(exc))
            return
        self.canvas.rebuild()
        self.changed.emit()
        total = sum(r.count for r in rows)
        self.window().statusBar().showMessage(f"{total} table(s) générée(s) sur {len(rows)} rangée(s)", 3000)

    def reset_view(self) -> None:
        self.engine.view.reset()
        self.canvas._view_touched()

    def focus_seat(self, seat: SeatKey) -> None:
        self.canvas.focus_seat(seat)

    def _zoom_slider_moved(self, value: int) -> None:
        self.engine.view.set_scale(value / 100)
        self.lbl_zoom.setText(f"{self.engine.view.zoom_percent}%")
        self.canvas.update()
        self.engine.touch()

    def _on_seat_clicked(self, seat: SeatKey) -> None:
        pid = self.selected_person()
        if not pid:
            return
        displaced = self.engine.assign(pid, seat)
        if displaced:
            name = self.engine.store.person(displaced).name
            self.window().statusBar().showMessage(f"{name} est retourné(e) dans la liste des non placés", 3000)
        self.canvas.update()
        self.changed.emit()

    def _on_seat_double_clicked(self, seat: SeatKey) -> None:
        if self.actions.unassign_seat(seat):
            self.canvas.update()
            self.changed.emit()

    def _show_seat_menu(self, seat: SeatKey, global_pos) -> None:
        menu = QMenu(self)
        act_unassign = menu.addAction("Retirer l'invité")
        act_unassign.setEnabled(self.engine.store.occupant(seat) is not None)
        act_focus = menu.addAction("Centrer sur ce siège")
        chosen = menu.exec(global_pos)
        if chosen is act_unassign:
            self._on_seat_double_clicked(seat)
        elif chosen is act_focus:
            self.focus_seat(seat)

    def _show_table_menu(self, table_id: int, global_pos) -> None:
        menu = QMenu(self)
        act_clear = menu.addAction(f"Vider la table {table_id}")
        if menu.exec(global_pos) is act_clear and self.actions.clear_table(table_id):
            self.canvas.update()
            self.changed.emit()
