from __future__ import annotations
from PySide6.QtWidgets import QMessageBox, QWidget


class QtConfirmer:
    """``Confirmer`` affichant une boîte de dialogue Oui/Non."""

    def __init__(self, parent: QWidget | None = None, title: str = "Confirmation") -> None:
        self.parent = parent
        self.title = title

    def confirm(self, message: str) -> bool:
        answer = QMessageBox.question(
            self.parent, self.title, message,
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No,
        )
        return answer == QMessageBox.Yes
