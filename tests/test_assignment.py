import random

import pytest

from seatdesigner.core.errors import PersonNotFound, SeatNotFound
from seatdesigner.domain import layout
from seatdesigner.domain.assignment import AssignmentStore
from seatdesigner.domain.models import Person, SeatKey


def _store(total=3, seats=4, pattern=(2, 1), names=("Alice", "Bob", "Chen")):
    store = AssignmentStore(layout.valid_seats(layout.generate(total, seats, list(pattern))))
    people = [store.add_person(n) for n in names]
    return store, people


def _assert_injective(store):
    mapping = store.assignments()
    assert len(set(mapping.values())) == len(mapping)
    for seat, pid in mapping.items():
        assert store.seat_of(pid) == seat
        assert store.occupant(seat) == pid


def test_assign_moves_person_to_the_new_seat():
    store, (alice, _, _) = _store()
    store.assign(alice.id, SeatKey(1, 1))
    store.assign(alice.id, SeatKey(2, 3))

    assert store.assignments() == {SeatKey(2, 3): alice.id}
    assert store.occupant(SeatKey(1, 1)) is None


def test_assign_is_idempotent():
    store, (alice, _, _) = _store()
    store.assign(alice.id, SeatKey(1, 1))
    before = store.assignments()
    assert store.assign(alice.id, SeatKey(1, 1)) is None
    assert store.assignments() == before


def test_occupied_seat_displaces_without_swap():
    store, (alice, bob, _) = _store()
    store.assign(bob.id, SeatKey(2, 2))
    store.assign(alice.id, SeatKey(1, 1))

    displaced = store.assign(bob.id, SeatKey(1, 1))

    assert displaced == alice.id
    assert store.occupant(SeatKey(1, 1)) == bob.id
    assert store.seat_of(alice.id) is None
    # l'ancien siège de Bob est libéré, Alice n'y est pas déplacée
    assert store.occupant(SeatKey(2, 2)) is None
    assert alice in store.unassigned_people()


def test_assign_rejects_unknown_seat_or_person():
    store, (alice, _, _) = _store()
    with pytest.raises(SeatNotFound):
        store.assign(alice.id, SeatKey(9, 1))
    with pytest.raises(SeatNotFound):
        store.assign(alice.id, SeatKey(1, 5))
    with pytest.raises(PersonNotFound):
        store.assign("p_missing", SeatKey(1, 1))
    assert store.assignments() == {}


def test_redundant_removals_are_noops():
    store, (alice, _, _) = _store()
    assert store.unassign(SeatKey(1, 1)) is None
    assert store.unassign(SeatKey(42, 1)) is None
    assert store.unassign_person(alice.id) is None
    assert store.unassign_person("p_nobody") is None
    store.remove_person("p_nobody")
    assert len(store.people) == 3


def test_unassign_person_and_remove_person():
    store, (alice, bob, _) = _store()
    store.assign(alice.id, SeatKey(1, 1))
    store.assign(bob.id, SeatKey(1, 2))

    assert store.unassign_person(alice.id) == SeatKey(1, 1)
    store.remove_person(bob.id)

    assert store.assignments() == {}
    assert [p.name for p in store.people] == ["Alice", "Chen"]


def test_random_interleaved_operations_keep_bijection():
    rng = random.Random(11)
    store, people = _store(total=4, seats=3, pattern=(2,), names=[f"P{i}" for i in range(10)])
    seats = sorted(layout.valid_seats(layout.generate(4, 3, [2])))
    for _ in range(2000):
        op = rng.random()
        if op < 0.6:
            store.assign(rng.choice(people).id, rng.choice(seats))
        elif op < 0.8:
            store.unassign(rng.choice(seats))
        elif op < 0.95:
            store.unassign_person(rng.choice(people).id)
        else:
            store.clear_table(rng.randint(1, 4))
        _assert_injective(store)


def test_prune_to_smaller_topology():
    store, (alice, bob, chen) = _store()
    store.assign(alice.id, SeatKey(1, 1))
    store.assign(bob.id, SeatKey(2, 4))
    store.assign(chen.id, SeatKey(3, 2))

    removed = store.prune_to_topology(layout.valid_seats(layout.generate(1, 4, [2, 1])))

    assert store.assignments() == {SeatKey(1, 1): alice.id}
    assert removed == [(SeatKey(2, 4), bob.id), (SeatKey(3, 2), chen.id)]
    with pytest.raises(SeatNotFound):
        store.assign(bob.id, SeatKey(2, 1))


def test_prune_to_fewer_seats_per_table():
    store, (alice, bob, _) = _store()
    store.assign(alice.id, SeatKey(1, 2))
    store.assign(bob.id, SeatKey(1, 4))
    store.prune_to_topology(layout.valid_seats(layout.generate(3, 2, [2, 1])))
    assert store.assignments() == {SeatKey(1, 2): alice.id}


def test_duplicate_names_get_smallest_free_suffix():
    store = AssignmentStore()
    added = store.add_names(["张三", "张三", "李四", "张三", "  ", "张三(1)"])

    assert [p.name for p in added] == ["张三", "张三(1)", "李四", "张三(2)", "张三(3)"]
    assert len({p.id for p in added}) == 5
    assert all(p.id.startswith("p_") for p in added)


def test_unique_name_fills_gaps():
    store = AssignmentStore()
    store.add_names(["Ana", "Ana(2)"])
    assert store.unique_name("Ana") == "Ana(1)"
    assert store.unique_name("Bruno") == "Bruno"


def test_clear_table_and_occupancy():
    store, (alice, bob, chen) = _store()
    store.assign(alice.id, SeatKey(1, 1))
    store.assign(bob.id, SeatKey(1, 3))
    store.assign(chen.id, SeatKey(2, 1))

    assert store.table_occupancy(1) == 2
    removed = store.clear_table(1)

    assert removed == [(SeatKey(1, 1), alice.id), (SeatKey(1, 3), bob.id)]
    assert store.table_occupancy(1) == 0
    assert store.assignments() == {SeatKey(2, 1): chen.id}
    assert store.clear_table(1) == []


def test_search_filters_are_case_insensitive():
    store, (alice, bob, _) = _store(names=("Alice", "Bob", "alina"))
    store.assign(bob.id, SeatKey(1, 2))

    assert [p.name for p in store.unassigned_people("ALI")] == ["Alice", "alina"]
    assert [p.name for p in store.unassigned_people()] == ["Alice", "alina"]
    assert store.assigned_people("bo") == [(SeatKey(1, 2), bob)]
    assert store.assigned_people("zzz") == []


def test_load_skips_invalid_entries():
    store = AssignmentStore(layout.valid_seats(layout.generate(2, 2, [2])))
    people = [Person("p_a", "A"), Person("p_b", "B"), Person("p_a", "A bis")]
    store.load(people, {
        SeatKey(1, 1): "p_a",
        SeatKey(1, 2): "p_a",      # même personne deux fois
        SeatKey(2, 1): "p_ghost",  # personne inconnue
        SeatKey(7, 1): "p_b",      # siège hors topologie
    })

    assert [p.name for p in store.people] == ["A", "B"]
    assert store.assignments() == {SeatKey(1, 1): "p_a"}
    _assert_injective(store)


def test_add_person_with_explicit_id():
    store = AssignmentStore()
    p = store.add_person("Zoé", person_id="p_fixed")
    assert store.person("p_fixed") == p
    with pytest.raises(ValueError):
        store.add_person("Autre", person_id="p_fixed")
    with pytest.raises(PersonNotFound):
        store.person("p_none")
