from __future__ import annotations
import logging
import re
from typing import Iterable, List, Sequence, Set

from seatdesigner.core.errors import InvalidPattern
from seatdesigner.domain.models import SeatKey, TableRow

log = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


def parse_pattern(text: str | None) -> List[int]:
    """Lit un motif de rangées saisi par l'utilisateur (« 4,3,4 »).

    Chaque jeton est lu sur son entier de tête (« 3.5 » donne 3) ; les jetons
    vides ou sans entier sont ignorés. Les valeurs non positives sont
    conservées ici et filtrées par ``generate``.
    """
    values: List[int] = []
    for token in (text or "").split(","):
        token = token.strip()
        if not token:
            continue
        m = _LEADING_INT_RE.match(token)
        if m is None:
            log.warning("Valeur de motif ignorée : %r", token)
            continue
        values.append(int(m.group(0)))
    return values


def clamp_count(value, default: int = 1) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return max(1, default)
    return max(1, n)


def generate(total_tables: int, seats_per_table: int, row_pattern: Sequence[int]) -> List[TableRow]:
    """
    Découpe ``total_tables`` tables en rangées selon ``row_pattern`` (répété
    cycliquement). Fonction pure : ne touche pas aux affectations.
    """
    if total_tables < 1:
        raise ValueError("Le nombre de tables doit être ≥ 1")
    if seats_per_table < 1:
        raise ValueError("Le nombre de sièges par table doit être ≥ 1")

    pattern = list(row_pattern)
    if not pattern:
        pattern = [1]
    else:
        pattern = [int(v) for v in pattern if int(v) > 0]
        if not pattern:
            raise InvalidPattern("Le motif de rangées ne contient aucune valeur positive")

    rows: List[TableRow] = []
    remaining = total_tables
    next_id = 1
    i = 0
    while remaining > 0:
        take = min(remaining, pattern[i % len(pattern)])
        rows.append(TableRow(count=take, seats_per_table=seats_per_table, start_id=next_id))
        next_id += take
        remaining -= take
        i += 1
    return rows


def validate_rows(rows: Iterable[TableRow]) -> List[TableRow]:
    """Vérifie une topologie venue de l'extérieur (champs positifs, pas de chevauchement)."""
    checked = list(rows)
    used: Set[int] = set()
    for row in checked:
        if row.count < 1 or row.seats_per_table < 1 or row.start_id < 1:
            raise InvalidPattern(f"Rangée invalide : {row}")
        ids = set(row.table_ids())
        if ids & used:
            raise InvalidPattern(f"Rangées qui se chevauchent à partir de T{row.start_id}")
        used |= ids
    return checked


def table_ids(rows: Iterable[TableRow]) -> List[int]:
    return [t for row in rows for t in row.table_ids()]


def row_grid(rows: Iterable[TableRow]) -> List[List[int]]:
    return [list(row.table_ids()) for row in rows]


def seat_keys(rows: Iterable[TableRow]) -> List[SeatKey]:
    """Sièges dans l'ordre de la topologie (rangée, table, siège)."""
    return [
        SeatKey(t, s)
        for row in rows
        for t in row.table_ids()
        for s in range(1, row.seats_per_table + 1)
    ]


def valid_seats(rows: Iterable[TableRow]) -> Set[SeatKey]:
    return set(seat_keys(rows))


def seat_count(rows: Iterable[TableRow]) -> int:
    return sum(row.count * row.seats_per_table for row in rows)


def table_capacity(rows: Iterable[TableRow], table_id: int) -> int:
    for row in rows:
        if row.start_id <= table_id <= row.end_id:
            return row.seats_per_table
    return 0
