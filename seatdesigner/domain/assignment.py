from __future__ import annotations
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from seatdesigner.core.errors import PersonNotFound, SeatNotFound
from seatdesigner.domain.models import Person, SeatKey, new_person_id

log = logging.getLogger(__name__)

_SUFFIX_RE = re.compile(r"^(.*?)\((\d+)\)$")


class AssignmentStore:
    """
    Détient les personnes et la correspondance bijective siège ↔ personne.

    - un siège porte au plus une personne, une personne occupe au plus un siège
    - toute affectation vise un siège de la topologie courante
    - les appels redondants (désaffecter un siège vide…) sont des no-op
    """

    def __init__(self, valid_seats: Iterable[SeatKey] = ()) -> None:
        self._people: Dict[str, Person] = {}
        self._by_seat: Dict[SeatKey, str] = {}
        self._by_person: Dict[str, SeatKey] = {}
        self._valid: Set[SeatKey] = set(valid_seats)

    # --- personnes
    @property
    def people(self) -> List[Person]:
        return list(self._people.values())

    def person(self, person_id: str) -> Person:
        p = self._people.get(person_id)
        if p is None:
            raise PersonNotFound(person_id)
        return p

    def has_person(self, person_id: str) -> bool:
        return person_id in self._people

    def unique_name(self, name: str) -> str:
        """Renvoie ``name`` ou ``base(n)`` avec le plus petit ``n`` libre."""
        name = name.strip()
        taken = {p.name for p in self._people.values()}
        if name not in taken:
            return name
        m = _SUFFIX_RE.match(name)
        base = m.group(1).strip() if m else name
        n = 1
        while f"{base}({n})" in taken:
            n += 1
        return f"{base}({n})"

    def add_person(self, name: str, person_id: str | None = None) -> Person:
        pid = person_id or new_person_id()
        while person_id is None and pid in self._people:
            pid = new_person_id()
        if pid in self._people:
            raise ValueError(f"Identifiant déjà utilisé : {pid}")
        p = Person(id=pid, name=self.unique_name(name))
        self._people[pid] = p
        return p

    def add_names(self, names: Iterable[str]) -> List[Person]:
        added = []
        for name in names:
            if name and name.strip():
                added.append(self.add_person(name))
        return added

    def remove_person(self, person_id: str) -> None:
        self.unassign_person(person_id)
        self._people.pop(person_id, None)

    def clear_people(self) -> None:
        self._people.clear()
        self._by_seat.clear()
        self._by_person.clear()

    # --- affectations
    def assign(self, person_id: str, seat: SeatKey) -> Optional[str]:
        """Place ``person_id`` sur ``seat`` ; renvoie l'occupant déplacé s'il y en avait un.

        La personne quitte son ancien siège (déplacement) ; l'occupant du siège
        cible retourne dans la liste des non placés (pas d'échange).
        """
        if seat not in self._valid:
            raise SeatNotFound(seat)
        if person_id not in self._people:
            raise PersonNotFound(person_id)

        if self._by_seat.get(seat) == person_id:
            return None

        self.unassign_person(person_id)
        displaced = self._by_seat.get(seat)
        if displaced is not None:
            del self._by_person[displaced]
        self._by_seat[seat] = person_id
        self._by_person[person_id] = seat
        return displaced

    def unassign(self, seat: SeatKey) -> Optional[str]:
        pid = self._by_seat.pop(seat, None)
        if pid is not None:
            del self._by_person[pid]
        return pid

    def unassign_person(self, person_id: str) -> Optional[SeatKey]:
        seat = self._by_person.pop(person_id, None)
        if seat is not None:
            del self._by_seat[seat]
        return seat

    def clear_table(self, table_id: int) -> List[Tuple[SeatKey, str]]:
        removed = [(s, pid) for s, pid in self._by_seat.items() if s.table_id == table_id]
        for seat, _ in removed:
            self.unassign(seat)
        return sorted(removed)

    def prune_to_topology(self, valid_seats: Iterable[SeatKey]) -> List[Tuple[SeatKey, str]]:
        """Adopte une nouvelle topologie et retire les affectations devenues invalides."""
        self._valid = set(valid_seats)
        removed = [(s, pid) for s, pid in self._by_seat.items() if s not in self._valid]
        for seat, _ in removed:
            self.unassign(seat)
        if removed:
            log.info("%d affectation(s) retirée(s) après changement de topologie", len(removed))
        return sorted(removed)

    def load(self, people: Iterable[Person], assignment: Mapping[SeatKey, str]) -> None:
        """Reconstruit l'état depuis des données non fiables (import, configuration)."""
        self.clear_people()
        for p in people:
            if p.id in self._people:
                log.warning("Personne en double ignorée : %s", p.id)
                continue
            self._people[p.id] = p
        for seat, pid in sorted(assignment.items()):
            if seat not in self._valid or pid not in self._people:
                log.warning("Affectation ignorée : %s -> %s", seat, pid)
                continue
            if pid in self._by_person:
                log.warning("Personne affectée deux fois, %s ignoré", seat)
                continue
            self._by_seat[seat] = pid
            self._by_person[pid] = seat

    # --- lecture
    def seat_of(self, person_id: str) -> Optional[SeatKey]:
        return self._by_person.get(person_id)

    def occupant(self, seat: SeatKey) -> Optional[str]:
        return self._by_seat.get(seat)

    def is_valid_seat(self, seat: SeatKey) -> bool:
        return seat in self._valid

    def assignments(self) -> Dict[SeatKey, str]:
        return dict(sorted(self._by_seat.items()))

    def unassigned_people(self, query: str = "") -> List[Person]:
        q = query.strip().casefold()
        return [
            p for p in self._people.values()
            if p.id not in self._by_person and q in p.name.casefold()
        ]

    def assigned_people(self, query: str = "") -> List[Tuple[SeatKey, Person]]:
        q = query.strip().casefold()
        return [
            (seat, self._people[pid])
            for seat, pid in sorted(self._by_seat.items())
            if q in self._people[pid].name.casefold()
        ]

    def table_occupancy(self, table_id: int) -> int:
        return sum(1 for s in self._by_seat if s.table_id == table_id)
