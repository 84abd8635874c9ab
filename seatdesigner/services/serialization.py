from __future__ import annotations
import json
import logging
import math
from typing import Any, Dict, List, Optional

from seatdesigner.core.errors import InvalidPattern, MalformedSnapshot
from seatdesigner.domain.layout import validate_rows
from seatdesigner.domain.models import (
    EngineState,
    Person,
    Point,
    SeatKey,
    TableRow,
    ViewState,
    clamp_scale,
)

log = logging.getLogger(__name__)


def encode_state(state: EngineState, timestamp: Optional[int] = None) -> Dict[str, Any]:
    """Format persistant : {people, assigned, tables, view[, timestamp]}."""
    payload: Dict[str, Any] = {
        "people": [p.to_dict() for p in state.people],
        "assigned": {seat.label: pid for seat, pid in sorted(state.assignment.items())},
        "tables": [row.to_dict() for row in state.topology],
        "view": state.view.to_dict(),
    }
    if timestamp is not None:
        payload["timestamp"] = int(timestamp)
    return payload


def dumps(state: EngineState, timestamp: Optional[int] = None, indent: int | None = None) -> str:
    return json.dumps(encode_state(state, timestamp), ensure_ascii=False, indent=indent)


def loads(text: str) -> tuple[EngineState, int]:
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedSnapshot(f"JSON invalide : {exc}") from exc
    return decode_state(payload), read_timestamp(payload)


def read_timestamp(payload: Any) -> int:
    if isinstance(payload, dict):
        ts = payload.get("timestamp")
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            return int(ts)
    return 0


def decode_state(payload: Any) -> EngineState:
    """
    Lecture tolérante : chaque champ de premier niveau absent ou mal formé
    est remplacé par sa valeur vide, sans abandonner tout l'import.
    """
    if not isinstance(payload, dict):
        raise MalformedSnapshot("Le contenu n'est pas un objet JSON")

    people = _decode_people(payload.get("people"))
    topology = _decode_tables(payload.get("tables"))
    assignment = _decode_assigned(payload.get("assigned"))
    view = _decode_view(payload.get("view"))
    return EngineState(people=tuple(people), assignment=assignment, topology=tuple(topology), view=view)


def _decode_people(raw: Any) -> List[Person]:
    if not isinstance(raw, list):
        if raw is not None:
            log.warning("Champ 'people' mal formé, liste vide utilisée")
        return []
    people = []
    for item in raw:
        if isinstance(item, dict) and item.get("id") and isinstance(item.get("name"), str):
            people.append(Person(id=str(item["id"]), name=item["name"]))
        else:
            log.warning("Personne ignorée : %r", item)
    return people


def _decode_tables(raw: Any) -> List[TableRow]:
    if not isinstance(raw, list):
        if raw is not None:
            log.warning("Champ 'tables' mal formé, topologie vide utilisée")
        return []
    try:
        rows = [
            TableRow(
                count=int(item["count"]),
                seats_per_table=int(item["seatsPerTable"]),
                start_id=int(item["startId"]),
            )
            for item in raw
        ]
        return validate_rows(rows)
    except (KeyError, TypeError, ValueError, InvalidPattern) as exc:
        log.warning("Topologie invalide (%s), topologie vide utilisée", exc)
        return []


def _decode_assigned(raw: Any) -> Dict[SeatKey, str]:
    if not isinstance(raw, dict):
        if raw is not None:
            log.warning("Champ 'assigned' mal formé, aucune affectation reprise")
        return {}
    assignment: Dict[SeatKey, str] = {}
    for label, pid in raw.items():
        try:
            seat = SeatKey.parse(label)
        except ValueError:
            log.warning("Siège ignoré : %r", label)
            continue
        if pid:
            assignment[seat] = str(pid)
    return assignment


def _decode_view(raw: Any) -> ViewState:
    if not isinstance(raw, dict):
        return ViewState()
    pan_raw = raw.get("pan")
    pan = Point()
    if isinstance(pan_raw, dict):
        try:
            x, y = float(pan_raw.get("x") or 0), float(pan_raw.get("y") or 0)
        except (TypeError, ValueError):
            x = y = math.nan
        if math.isfinite(x) and math.isfinite(y):
            pan = Point(x, y)
        else:
            log.warning("Pan invalide ignoré : %r", pan_raw)
    try:
        scale = float(raw.get("scale") or 1)
    except (TypeError, ValueError):
        scale = math.nan
    # NaN / Infinity sont acceptés par json.loads
    scale = clamp_scale(scale) if math.isfinite(scale) else 1.0
    return ViewState(pan=pan, scale=scale)
