from __future__ import annotations
import logging
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QTimer

log = logging.getLogger(__name__)


class Timer(Protocol):
    """Minuterie à un coup, annulable, exécutée sur le thread appelant."""

    @property
    def active(self) -> bool: ...

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class QtTimer:
    """Implémentation ``Timer`` sur ``QTimer`` (boucle d'événements Qt)."""

    def __init__(self) -> None:
        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._callback: Optional[Callable[[], None]] = None
        self._timer.timeout.connect(self._fire)

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start(int(delay_ms))

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback:
            callback()


class Debouncer:
    """
    Regroupe des demandes rapprochées : chaque ``schedule`` annule la demande
    en attente et relance le délai ; seule la dernière s'exécute.
    """

    def __init__(self, timer: Timer, delay_ms: int) -> None:
        self.timer = timer
        self.delay_ms = delay_ms
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        self.timer.cancel()
        self._pending = callback
        self.timer.start(self.delay_ms, self._run)

    def cancel(self) -> None:
        self.timer.cancel()
        self._pending = None

    def flush(self) -> bool:
        """Exécute immédiatement la demande en attente ; renvoie False s'il n'y en a pas."""
        if self._pending is None:
            return False
        self.timer.cancel()
        self._run()
        return True

    def _run(self) -> None:
        callback, self._pending = self._pending, None
        if callback:
            callback()
