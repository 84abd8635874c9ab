import json

import pytest

from seatdesigner.core.constants import AUTOSAVE_NAME, STORAGE_PREFIX
from seatdesigner.core.errors import MalformedSnapshot, PersistenceError
from seatdesigner.domain.models import EngineState, Person, Point, SeatKey, TableRow, ViewState
from seatdesigner.services import serialization


def _state(name="Alice"):
    return EngineState(
        people=(Person("p_a", name), Person("p_b", "Bob")),
        assignment={SeatKey(1, 2): "p_a"},
        topology=(TableRow(2, 4, 1), TableRow(1, 4, 3)),
        view=ViewState(pan=Point(15, -30), scale=1.2),
    )


def test_save_then_load_round_trip(snapshots):
    snap = snapshots.save("  Mariage  ", _state())

    assert snap.name == "Mariage"
    assert snapshots.load("Mariage") == _state()
    assert snapshots.load_snapshot("Mariage").timestamp == snap.timestamp
    assert snapshots.exists("Mariage")
    assert snapshots.load("Absent") is None


def test_stored_payload_layout(snapshots, persistence):
    snap = snapshots.save("dîner", _state())
    payload = json.loads(persistence.get(STORAGE_PREFIX + "dîner"))

    assert payload["assigned"] == {"T1-S2": "p_a"}
    assert payload["tables"][0] == {"count": 2, "seatsPerTable": 4, "startId": 1}
    assert payload["view"] == {"pan": {"x": 15, "y": -30}, "scale": 1.2}
    assert payload["timestamp"] == snap.timestamp
    assert payload["people"][0] == {"id": "p_a", "name": "Alice"}


def test_list_is_newest_first_and_hides_autosave(snapshots, timer):
    snapshots.save("a", _state())
    snapshots.save("b", _state())
    snapshots.schedule_autosave(_state())
    timer.fire()
    snapshots.save("c", _state())

    infos = snapshots.list()

    assert [i.name for i in infos] == ["c", "b", "a"]
    assert infos[0].timestamp > infos[1].timestamp > infos[2].timestamp
    assert snapshots.load_autosave() is not None


def test_list_skips_unreadable_entries(snapshots, persistence):
    snapshots.save("ok", _state())
    persistence.set(STORAGE_PREFIX + "cassé", "{pas du json")
    persistence.set("autre_cle", "{}")

    assert [i.name for i in snapshots.list()] == ["ok"]
    with pytest.raises(PersistenceError):
        snapshots.load("cassé")


def test_prefix_is_matched_literally(snapshots, persistence):
    persistence.set("seatingX", "{}")
    snapshots.save("x", _state())
    assert [i.name for i in snapshots.list()] == ["x"]


def test_delete(snapshots):
    snapshots.save("a", _state())
    assert snapshots.delete("a") is True
    assert snapshots.delete("a") is False
    assert snapshots.load("a") is None


def test_reserved_and_blank_names_are_rejected(snapshots):
    with pytest.raises(ValueError):
        snapshots.save(AUTOSAVE_NAME, _state())
    with pytest.raises(ValueError):
        snapshots.save("   ", _state())


def test_autosave_writes_only_last_state_after_delay(snapshots, persistence, timer):
    snapshots.schedule_autosave(_state("v1"))
    snapshots.schedule_autosave(_state("v2"))
    snapshots.schedule_autosave(_state("v3"))

    assert persistence.get(STORAGE_PREFIX + AUTOSAVE_NAME) is None
    assert snapshots.autosave_pending
    assert timer.delay_ms == 1000

    timer.fire()

    assert not snapshots.autosave_pending
    assert snapshots.load_autosave().people[0].name == "v3"


def test_flush_and_cancel_autosave(snapshots, timer):
    assert snapshots.flush_autosave() is False

    snapshots.schedule_autosave(_state("flushed"))
    assert snapshots.flush_autosave() is True
    assert snapshots.load_autosave().people[0].name == "flushed"
    assert not timer.active

    snapshots.schedule_autosave(_state("dropped"))
    snapshots.cancel_autosave()
    timer.fire()
    assert snapshots.load_autosave().people[0].name == "flushed"


def test_storage_failure_surfaces_as_persistence_error(snapshots, persistence):
    persistence.close()
    with pytest.raises(PersistenceError):
        snapshots.save("a", _state())
    with pytest.raises(PersistenceError):
        snapshots.list()
    with pytest.raises(PersistenceError):
        snapshots.delete("a")


def test_autosave_failure_goes_to_callback(persistence, timer, clock):
    from seatdesigner.services.snapshots import SnapshotStore

    errors = []
    store = SnapshotStore(persistence, timer=timer, clock=clock, on_error=errors.append)
    persistence.close()

    store.schedule_autosave(_state())
    timer.fire()

    assert len(errors) == 1
    assert isinstance(errors[0], PersistenceError)


def test_decode_is_tolerant_per_field():
    state = serialization.decode_state({
        "people": "pas une liste",
        "assigned": {"T1-S1": "p_a", "n'importe quoi": "p_b"},
        "tables": [{"count": 2, "seatsPerTable": 3, "startId": 1}],
        "view": {"pan": {"x": "a"}, "scale": 12},
    })

    assert state.people == ()
    assert state.assignment == {SeatKey(1, 1): "p_a"}
    assert state.topology == (TableRow(2, 3, 1),)
    assert state.view == ViewState(pan=Point(), scale=2.0)


def test_overlapping_tables_give_empty_topology():
    state = serialization.decode_state({
        "tables": [{"count": 2, "seatsPerTable": 3, "startId": 1}, {"count": 1, "seatsPerTable": 3, "startId": 2}],
    })
    assert state.topology == ()


def test_non_object_payload_is_malformed():
    with pytest.raises(MalformedSnapshot):
        serialization.decode_state([1, 2])
    with pytest.raises(MalformedSnapshot):
        serialization.loads("{")


def test_zero_seats_per_table_gives_empty_topology():
    state = serialization.decode_state({
        "tables": [{"count": 2, "seatsPerTable": 0, "startId": 1}],
    })
    assert state.topology == ()

    state = serialization.decode_state({"tables": [{"count": 2, "startId": 1}]})
    assert state.topology == ()


def test_non_finite_view_values_fall_back_to_defaults():
    state, _ = serialization.loads(
        '{"view": {"pan": {"x": NaN, "y": 4}, "scale": Infinity}}'
    )
    assert state.view == ViewState()

    state, _ = serialization.loads('{"view": {"pan": {"x": 1, "y": -Infinity}, "scale": NaN}}')
    assert state.view == ViewState()

    state, _ = serialization.loads('{"view": {"pan": {"x": 1, "y": 2}, "scale": 0.5}}')
    assert state.view == ViewState(pan=Point(1, 2), scale=0.5)
