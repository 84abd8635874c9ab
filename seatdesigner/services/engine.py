from __future__ import annotations
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from seatdesigner.core.errors import PersistenceError
from seatdesigner.domain import layout
from seatdesigner.domain.assignment import AssignmentStore
from seatdesigner.domain.models import EngineState, Person, SeatKey, SnapshotInfo, TableRow
from seatdesigner.domain.view import ViewTransform
from seatdesigner.services import serialization
from seatdesigner.services.snapshots import SnapshotStore

log = logging.getLogger(__name__)

_NAME_SPLIT_RE = re.compile(r"\r?\n|,")


def split_names(text: str) -> List[str]:
    """Liste de noms séparés par des retours à la ligne ou des virgules."""
    return [n.strip() for n in _NAME_SPLIT_RE.split(text or "") if n.strip()]


class SeatingEngine:
    """
    Contexte unique du plan de salle : personnes, affectations, topologie et
    vue. Toutes les écritures passent par ces opérations ; chacune déclenche
    l'auto-sauvegarde si un ``SnapshotStore`` est rattaché.
    """

    def __init__(self, snapshots: SnapshotStore | None = None) -> None:
        self.snapshots = snapshots
        self.store = AssignmentStore()
        self.view = ViewTransform()
        self._rows: List[TableRow] = []

    # --- lecture
    @property
    def rows(self) -> List[TableRow]:
        return list(self._rows)

    @property
    def people(self) -> List[Person]:
        return self.store.people

    def seats(self) -> List[SeatKey]:
        return layout.seat_keys(self._rows)

    def table_ids(self) -> List[int]:
        return layout.table_ids(self._rows)

    def table_occupancy(self, table_id: int) -> tuple[int, int]:
        """(sièges occupés, sièges de la table)."""
        return self.store.table_occupancy(table_id), layout.table_capacity(self._rows, table_id)

    def find_seat(self, person_id: str) -> Optional[SeatKey]:
        return self.store.seat_of(person_id)

    def seat_label(self, seat: SeatKey) -> str:
        """Libellé affiché sur un siège : « n. Nom » ou « n »."""
        pid = self.store.occupant(seat)
        if pid is None:
            return str(seat.seat_index)
        return f"{seat.seat_index}. {self.store.person(pid).name}"

    def state(self) -> EngineState:
        return EngineState(
            people=tuple(self.store.people),
            assignment=self.store.assignments(),
            topology=tuple(self._rows),
            view=self.view.state(),
        )

    # --- topologie
    def generate_layout(
        self, total_tables, seats_per_table, row_pattern: Sequence[int] | str | None = None
    ) -> List[TableRow]:
        if row_pattern is None or isinstance(row_pattern, str):
            pattern = layout.parse_pattern(row_pattern)
        else:
            pattern = list(row_pattern)
        rows = layout.generate(layout.clamp_count(total_tables), layout.clamp_count(seats_per_table), pattern)
        self._set_rows(rows)
        log.info("Plan généré : %d table(s) sur %d rangée(s)", sum(r.count for r in rows), len(rows))
        self.touch()
        return list(rows)

    def _set_rows(self, rows: Iterable[TableRow]) -> None:
        self._rows = list(rows)
        self.store.prune_to_topology(layout.valid_seats(self._rows))

    # --- personnes
    def add_person(self, name: str) -> Person:
        p = self.store.add_person(name)
        self.touch()
        return p

    def import_names(self, text_or_names: str | Iterable[str]) -> List[Person]:
        names = split_names(text_or_names) if isinstance(text_or_names, str) else list(text_or_names)
        added = self.store.add_names(names)
        if added:
            log.info("%d nom(s) importé(s)", len(added))
            self.touch()
        return added

    def remove_person(self, person_id: str) -> None:
        self.store.remove_person(person_id)
        self.touch()

    def clear_people(self) -> None:
        self.store.clear_people()
        self.touch()

    # --- affectations
    def assign(self, person_id: str, seat: SeatKey) -> Optional[str]:
        displaced = self.store.assign(person_id, seat)
        self.touch()
        return displaced

    def unassign(self, seat: SeatKey) -> Optional[str]:
        pid = self.store.unassign(seat)
        if pid is not None:
            self.touch()
        return pid

    def unassign_person(self, person_id: str) -> Optional[SeatKey]:
        seat = self.store.unassign_person(person_id)
        if seat is not None:
            self.touch()
        return seat

    def clear_table(self, table_id: int) -> int:
        removed = self.store.clear_table(table_id)
        if removed:
            self.touch()
        return len(removed)

    # --- état complet
    def apply_state(self, state: EngineState) -> None:
        try:
            rows = layout.validate_rows(state.topology)
        except ValueError as exc:
            log.warning("Topologie rejetée (%s), plan vidé", exc)
            rows = []
        self._rows = list(rows)
        self.store.prune_to_topology(layout.valid_seats(self._rows))
        self.store.load(state.people, state.assignment)
        self.view.apply(state.view)
        self.touch()

    def to_payload(self) -> Dict[str, Any]:
        return serialization.encode_state(self.state())

    def load_payload(self, payload: Any) -> None:
        self.apply_state(serialization.decode_state(payload))

    def touch(self) -> None:
        if self.snapshots is not None:
            self.snapshots.schedule_autosave(self.state())

    # --- configurations
    def _require_snapshots(self) -> SnapshotStore:
        if self.snapshots is None:
            raise RuntimeError("Aucun stockage de configurations rattaché")
        return self.snapshots

    def save_config(self, name: str):
        return self._require_snapshots().save(name, self.state())

    def load_config(self, name: str) -> bool:
        state = self._require_snapshots().load(name)
        if state is None:
            return False
        self.apply_state(state)
        return True

    def delete_config(self, name: str) -> bool:
        return self._require_snapshots().delete(name)

    def list_configs(self) -> List[SnapshotInfo]:
        return self._require_snapshots().list()

    def restore_autosave(self) -> bool:
        state = self._require_snapshots().load_autosave()
        if state is None:
            return False
        self.apply_state(state)
        return True

    def bootstrap(
        self,
        sample_names: Iterable[str] = (),
        total_tables: int = 1,
        seats_per_table: int = 1,
        row_pattern: Sequence[int] = (),
    ) -> bool:
        """Reprend l'auto-sauvegarde ; sinon crée des invités d'exemple et un plan par défaut.

        Renvoie True si l'auto-sauvegarde a été reprise.
        """
        if self.snapshots is not None:
            try:
                if self.restore_autosave():
                    log.info("Auto-sauvegarde reprise")
                    return True
            except PersistenceError as exc:
                log.error("Auto-sauvegarde illisible, plan par défaut utilisé : %s", exc)
        self.store.add_names(sample_names)
        self.generate_layout(total_tables, seats_per_table, list(row_pattern))
        return False
