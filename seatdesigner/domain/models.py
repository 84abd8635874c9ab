from __future__ import annotations
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Dict, Tuple

from seatdesigner.core.constants import SCALE_MAX, SCALE_MIN

_SEAT_RE = re.compile(r"^T(\d+)-S(\d+)$")
_ID_ALPHABET = string.ascii_lowercase + string.digits

# --- Entités de base (in-memory)

def new_person_id(prefix: str = "p_") -> str:
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))

def clamp_scale(value: float) -> float:
    return min(SCALE_MAX, max(SCALE_MIN, float(value)))

@dataclass(frozen=True)
class Person:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

@dataclass(frozen=True, order=True)
class SeatKey:
    """Identité d'un siège : (table, numéro de siège à partir de 1).

    La forme textuelle ``T<table>-S<siège>`` n'est utilisée qu'à la frontière
    de sérialisation.
    """

    table_id: int
    seat_index: int

    @property
    def label(self) -> str:
        return f"T{self.table_id}-S{self.seat_index}"

    @property
    def table_label(self) -> str:
        return table_label(self.table_id)

    @classmethod
    def parse(cls, text: str) -> "SeatKey":
        m = _SEAT_RE.match(str(text).strip())
        if not m:
            raise ValueError(f"Identifiant de siège invalide : {text!r}")
        return cls(int(m.group(1)), int(m.group(2)))

    def __str__(self) -> str:
        return self.label

def table_label(table_id: int) -> str:
    return f"T{table_id}"

@dataclass(frozen=True)
class TableRow:
    """Une rangée de ``count`` tables consécutives numérotées depuis ``start_id``."""

    count: int
    seats_per_table: int
    start_id: int

    @property
    def end_id(self) -> int:
        return self.start_id + self.count - 1

    def table_ids(self) -> range:
        return range(self.start_id, self.start_id + self.count)

    def to_dict(self) -> dict:
        return {"count": self.count, "seatsPerTable": self.seats_per_table, "startId": self.start_id}

@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> "Point":
        return Point(self.x * k, self.y * k)

    def __truediv__(self, k: float) -> "Point":
        return Point(self.x / k, self.y / k)

@dataclass(frozen=True)
class ViewState:
    pan: Point = field(default_factory=Point)
    scale: float = 1.0

    def to_dict(self) -> dict:
        return {"pan": {"x": self.pan.x, "y": self.pan.y}, "scale": self.scale}

@dataclass(frozen=True)
class EngineState:
    """Photographie complète du moteur : personnes, affectations, topologie, vue."""

    people: Tuple[Person, ...] = ()
    assignment: Dict[SeatKey, str] = field(default_factory=dict)
    topology: Tuple[TableRow, ...] = ()
    view: ViewState = field(default_factory=ViewState)

@dataclass(frozen=True)
class Snapshot:
    name: str
    state: EngineState
    timestamp: int

@dataclass(frozen=True)
class SnapshotInfo:
    name: str
    timestamp: int
