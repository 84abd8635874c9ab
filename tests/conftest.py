import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from seatdesigner.services.engine import SeatingEngine
from seatdesigner.services.persistence import Persistence
from seatdesigner.services.snapshots import SnapshotStore


class ManualTimer:
    """Minuterie pilotée à la main : ``fire()`` simule l'expiration du délai."""

    def __init__(self):
        self.callback = None
        self.delay_ms = None
        self.starts = 0
        self.cancels = 0

    @property
    def active(self):
        return self.callback is not None

    def start(self, delay_ms, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.starts += 1

    def cancel(self):
        if self.callback is not None:
            self.cancels += 1
        self.callback = None

    def fire(self):
        callback, self.callback = self.callback, None
        if callback:
            callback()


class Clock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        self.now += 1000
        return self.now


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def persistence(tmp_path):
    p = Persistence(tmp_path / "seating.db")
    yield p
    p.close()


@pytest.fixture
def snapshots(persistence, timer, clock):
    return SnapshotStore(persistence, timer=timer, clock=clock)


@pytest.fixture
def engine(snapshots):
    return SeatingEngine(snapshots)
