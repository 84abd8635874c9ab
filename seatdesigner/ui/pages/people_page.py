from __future__ import annotations
from typing import Callable, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QGroupBox, QHBoxLayout, QLineEdit, QListWidget, QListWidgetItem, QMessageBox, QPushButton,
    QVBoxLayout, QWidget,
)

from seatdesigner.domain.models import SeatKey
from seatdesigner.services.actions import SeatingActions
from seatdesigner.services.engine import SeatingEngine


class PeoplePage(QWidget):
    """Listes des invités non placés / placés, avec recherche."""

    changed = Signal()

    def __init__(self, engine: SeatingEngine, actions: SeatingActions, on_locate: Callable[[SeatKey], None]):
        super().__init__()
        self.engine = engine
        self.actions = actions
        self.on_locate = on_locate

        v = QVBoxLayout(self)
        h = QHBoxLayout()
        self.in_name = QLineEdit(self); self.in_name.setPlaceholderText("Nom")
        self.in_name.returnPressed.connect(self.add_clicked)
        btn_add = QPushButton("Ajouter", self); btn_add.clicked.connect(self.add_clicked)
        h.addWidget(self.in_name); h.addWidget(btn_add)
        v.addLayout(h)

        box_free = QGroupBox("Non placés", self)
        vf = QVBoxLayout(box_free)
        self.search_free = QLineEdit(self); self.search_free.setPlaceholderText("Rechercher…")
        self.search_free.textChanged.connect(self.reload)
        self.list_free = QListWidget(self)
        vf.addWidget(self.search_free); vf.addWidget(self.list_free)
        v.addWidget(box_free, 1)

        box_seated = QGroupBox("Placés", self)
        vs = QVBoxLayout(box_seated)
        self.search_seated = QLineEdit(self); self.search_seated.setPlaceholderText("Rechercher…")
        self.search_seated.textChanged.connect(self.reload)
        self.list_seated = QListWidget(self)
        self.list_seated.itemDoubleClicked.connect(self._locate_item)
        vs.addWidget(self.search_seated); vs.addWidget(self.list_seated)
        v.addWidget(box_seated, 1)

        h2 = QHBoxLayout()
        btn_locate = QPushButton("Localiser", self); btn_locate.clicked.connect(self.locate_selected)
        btn_unassign = QPushButton("Retirer du siège", self); btn_unassign.clicked.connect(self.unassign_selected)
        btn_del = QPushButton("Supprimer", self); btn_del.clicked.connect(self.delete_selected)
        btn_clear = QPushButton("Vider la liste", self); btn_clear.clicked.connect(self.clear_all)
        for w in (btn_locate, btn_unassign, btn_del, btn_clear):
            h2.addWidget(w)
        v.addLayout(h2)

    def reload(self) -> None:
        current = self.selected_person_id()
        self.list_free.clear()
        for p in self.engine.store.unassigned_people(self.search_free.text()):
            item = QListWidgetItem(p.name); item.setData(Qt.UserRole, p.id)
            self.list_free.addItem(item)
            if p.id == current:
                self.list_free.setCurrentItem(item)
        self.list_seated.clear()
        for seat, p in self.engine.store.assigned_people(self.search_seated.text()):
            item = QListWidgetItem(f"{seat.label} · {p.name}"); item.setData(Qt.UserRole, p.id)
            self.list_seated.addItem(item)

    def selected_person_id(self) -> Optional[str]:
        for lst in (self.list_free, self.list_seated):
            item = lst.currentItem()
            if item is not None and item.isSelected():
                return item.data(Qt.UserRole)
        return None

    def add_clicked(self) -> None:
        name = self.in_name.text().strip()
        if not name:
            QMessageBox.warning(self, "Nom requis", "Merci de saisir un nom."); return
        self.engine.add_person(name)
        self.in_name.clear()
        self._after_change()

    def locate_selected(self) -> None:
        pid = self.selected_person_id()
        seat = self.engine.find_seat(pid) if pid else None
        if seat is not None:
            self.on_locate(seat)

    def _locate_item(self, item: QListWidgetItem) -> None:
        seat = self.engine.find_seat(item.data(Qt.UserRole))
        if seat is not None:
            self.on_locate(seat)

    def unassign_selected(self) -> None:
        pid = self.selected_person_id()
        if pid and self.actions.unassign_person(pid):
            self._after_change()

    def delete_selected(self) -> None:
        pid = self.selected_person_id()
        if not pid: return
        name = self.engine.store.person(pid).name
        if not self.actions.confirmer.confirm(f"Supprimer {name} de la liste ?"):
            return
        self.engine.remove_person(pid)
        self._after_change()

    def clear_all(self) -> None:
        if not self.engine.people:
            QMessageBox.information(self, "Liste vide", "Aucun invité à supprimer."); return
        if self.actions.clear_people():
            self._after_change()

    def _after_change(self) -> None:
        self.reload()
        self.changed.emit()
