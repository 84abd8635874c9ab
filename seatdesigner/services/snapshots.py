from __future__ import annotations
import json
import logging
import time
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from seatdesigner.core.constants import AUTOSAVE_DELAY_MS, AUTOSAVE_NAME, STORAGE_PREFIX
from seatdesigner.core.errors import MalformedSnapshot, PersistenceError
from seatdesigner.domain.models import EngineState, Snapshot, SnapshotInfo
from seatdesigner.services import serialization
from seatdesigner.services.persistence import Persistence
from seatdesigner.services.scheduler import Debouncer, QtTimer, Timer

log = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class SnapshotStore:
    """
    Configurations nommées et horodatées + emplacement réservé d'auto-sauvegarde.

    Toute erreur de stockage ou de sérialisation est convertie en
    ``PersistenceError`` ; l'état en mémoire n'est jamais modifié ici.
    """

    def __init__(
        self,
        persistence: Persistence,
        *,
        timer: Timer | None = None,
        autosave_delay_ms: int = AUTOSAVE_DELAY_MS,
        clock: Callable[[], int] = now_ms,
        on_error: Callable[[PersistenceError], None] | None = None,
    ) -> None:
        self.persistence = persistence
        self.clock = clock
        self.on_error = on_error
        self._debouncer = Debouncer(timer if timer is not None else QtTimer(), autosave_delay_ms)

    # --- utils
    @staticmethod
    def _key(name: str) -> str:
        return STORAGE_PREFIX + name

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.persistence.get(key)
        except (SQLAlchemyError, RuntimeError) as exc:
            log.error("Lecture de %s impossible : %s", key, exc)
            raise PersistenceError(f"Lecture impossible : {exc}") from exc

    def _write(self, name: str, state: EngineState) -> Snapshot:
        timestamp = self.clock()
        try:
            text = serialization.dumps(state, timestamp)
            self.persistence.set(self._key(name), text)
        except (TypeError, ValueError, SQLAlchemyError, RuntimeError) as exc:
            log.error("Enregistrement de la configuration %r impossible : %s", name, exc)
            raise PersistenceError(f"Enregistrement impossible : {exc}") from exc
        return Snapshot(name=name, state=state, timestamp=timestamp)

    # --- configurations nommées
    def save(self, name: str, state: EngineState) -> Snapshot:
        name = (name or "").strip()
        if not name:
            raise ValueError("Nom de configuration requis")
        if name == AUTOSAVE_NAME:
            raise ValueError(f"Nom réservé : {name}")
        snap = self._write(name, state)
        log.info("Configuration %r enregistrée", name)
        return snap

    def load_snapshot(self, name: str) -> Optional[Snapshot]:
        text = self._read(self._key(name))
        if text is None:
            return None
        try:
            state, timestamp = serialization.loads(text)
        except MalformedSnapshot as exc:
            log.error("Configuration %r illisible : %s", name, exc)
            raise PersistenceError(f"Configuration {name!r} illisible") from exc
        return Snapshot(name=name, state=state, timestamp=timestamp)

    def load(self, name: str) -> Optional[EngineState]:
        snap = self.load_snapshot(name)
        return snap.state if snap else None

    def exists(self, name: str) -> bool:
        return self._read(self._key(name)) is not None

    def list(self) -> List[SnapshotInfo]:
        try:
            keys = self.persistence.keys(STORAGE_PREFIX)
        except (SQLAlchemyError, RuntimeError) as exc:
            raise PersistenceError(f"Lecture impossible : {exc}") from exc

        infos = []
        for key in keys:
            name = key[len(STORAGE_PREFIX):]
            if name == AUTOSAVE_NAME:
                continue
            text = self._read(key)
            try:
                payload = json.loads(text) if text else None
            except ValueError:
                log.warning("Configuration %r ignorée (JSON invalide)", name)
                continue
            infos.append(SnapshotInfo(name=name, timestamp=serialization.read_timestamp(payload)))
        return sorted(infos, key=lambda i: i.timestamp, reverse=True)

    def delete(self, name: str) -> bool:
        try:
            deleted = self.persistence.delete(self._key(name))
        except (SQLAlchemyError, RuntimeError) as exc:
            raise PersistenceError(f"Suppression impossible : {exc}") from exc
        if deleted:
            log.info("Configuration %r supprimée", name)
        return deleted

    # --- auto-sauvegarde
    @property
    def autosave_pending(self) -> bool:
        return self._debouncer.pending

    def schedule_autosave(self, state: EngineState) -> None:
        self._debouncer.schedule(lambda: self._autosave(state))

    def flush_autosave(self) -> bool:
        return self._debouncer.flush()

    def cancel_autosave(self) -> None:
        self._debouncer.cancel()

    def load_autosave(self) -> Optional[EngineState]:
        return self.load(AUTOSAVE_NAME)

    def _autosave(self, state: EngineState) -> None:
        try:
            self._write(AUTOSAVE_NAME, state)
        except PersistenceError as exc:
            if self.on_error:
                self.on_error(exc)
