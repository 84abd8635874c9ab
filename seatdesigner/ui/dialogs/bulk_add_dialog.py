from __future__ import annotations
from typing import List

from PySide6.QtWidgets import QDialog, QDialogButtonBox, QLabel, QTextEdit, QVBoxLayout

from seatdesigner.services.engine import split_names


class BulkAddDialog(QDialog):
    """Collage d'une liste d'invités ; OK reste grisé tant qu'aucun nom n'est détecté."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Ajouter des invités")
        self.resize(420, 360)

        v = QVBoxLayout(self)
        hint = QLabel("Un nom par ligne ou des noms séparés par des virgules. Un doublon devient « Nom(1) ».", self)
        hint.setWordWrap(True)
        v.addWidget(hint)

        self.text = QTextEdit(self)
        self.text.setAcceptRichText(False)
        self.text.setPlaceholderText("张三\n李四, 王五")
        self.text.textChanged.connect(self._update_count)
        v.addWidget(self.text, 1)

        self.lbl_count = QLabel(self)
        v.addWidget(self.lbl_count)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel, self)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        v.addWidget(self.buttons)
        self._update_count()

    def get_text(self) -> str:
        return self.text.toPlainText()

    def get_names(self) -> List[str]:
        return split_names(self.get_text())

    def _update_count(self) -> None:
        n = len(self.get_names())
        self.lbl_count.setText(f"{n} nom(s) détecté(s)")
        self.buttons.button(QDialogButtonBox.Ok).setEnabled(n > 0)
