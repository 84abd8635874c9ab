from __future__ import annotations
import logging
from typing import Protocol

from seatdesigner.domain.models import SeatKey, table_label
from seatdesigner.services.engine import SeatingEngine

log = logging.getLogger(__name__)


class Confirmer(Protocol):
    def confirm(self, message: str) -> bool: ...


class AutoConfirm:
    """Réponse fixe, pour les usages sans interface (scripts, tests)."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.messages: list[str] = []

    def confirm(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer


class SeatingActions:
    """
    Opérations destructrices demandées par l'utilisateur, soumises à
    confirmation avant d'appeler le moteur. Chaque méthode renvoie True si la
    modification a eu lieu.
    """

    def __init__(self, engine: SeatingEngine, confirmer: Confirmer) -> None:
        self.engine = engine
        self.confirmer = confirmer

    def clear_people(self) -> bool:
        if not self.engine.people:
            return False
        if not self.confirmer.confirm("Vider la liste des invités et toutes les affectations ? Cette action est irréversible."):
            return False
        self.engine.clear_people()
        return True

    def clear_table(self, table_id: int) -> bool:
        if not self.confirmer.confirm(f"Retirer tous les invités de la table {table_label(table_id)} ?"):
            return False
        self.engine.clear_table(table_id)
        return True

    def unassign_seat(self, seat: SeatKey) -> bool:
        pid = self.engine.store.occupant(seat)
        if pid is None:
            return False
        name = self.engine.store.person(pid).name
        if not self.confirmer.confirm(f"Retirer {name} du siège {seat.label} ?"):
            return False
        self.engine.unassign(seat)
        return True

    def unassign_person(self, person_id: str) -> bool:
        seat = self.engine.find_seat(person_id)
        if seat is None:
            return False
        return self.unassign_seat(seat)

    def delete_config(self, name: str) -> bool:
        if not name:
            return False
        if not self.confirmer.confirm(f"Supprimer la configuration « {name} » ?"):
            return False
        return self.engine.delete_config(name)

    def save_config_as(self, name: str) -> bool:
        """« Enregistrer sous » : demande confirmation avant d'écraser un nom existant."""
        name = (name or "").strip()
        if not name:
            return False
        snapshots = self.engine.snapshots
        if snapshots is not None and snapshots.exists(name):
            if not self.confirmer.confirm(f"La configuration « {name} » existe déjà. L'écraser ?"):
                return False
        self.engine.save_config(name)
        return True
