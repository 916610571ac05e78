from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mxt.domain.models import Attendee
from mxt.services.persistence import Persistence
from mxt.services.planner import Planner
from mxt.services.rounds import RoundService


@pytest.fixture
def persistence(tmp_path):
    p = Persistence()
    p.new_event(tmp_path / "event.db", "Event")
    p.add_attendees([
        Attendee(id="k1", name="Minji", is_korean=True),
        Attendee(id="k2", name="Jisoo", is_korean=True),
        Attendee(id="o1", name="Alex"),
        Attendee(id="o2", name="Sam"),
    ])
    yield p
    p.close_event()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def rounds(persistence, messages):
    return RoundService(persistence, planner=Planner(seed=7), notify=messages.append)


def _seated(assignations):
    return sorted(aid for ids in assignations.values() for aid in ids)


def test_shuffle_fills_preview_without_touching_current(rounds, persistence):
    nxt = rounds.shuffle()

    assert _seated(nxt) == ["k1", "k2", "o1", "o2"]
    assert persistence.load_assignations("next") == nxt
    assert _seated(persistence.load_assignations("current")) == []


def test_start_new_round_commits_preview(rounds, persistence):
    preview = rounds.shuffle()

    rounds.start_new_round()

    assert persistence.load_assignations("current") == preview
    assert _seated(persistence.load_assignations("previous")) == []
    assert _seated(persistence.load_assignations("next")) == ["k1", "k2", "o1", "o2"]

    second = persistence.load_assignations("next")
    rounds.start_new_round()
    assert persistence.load_assignations("previous") == preview
    assert persistence.load_assignations("current") == second


def test_new_round_only_keeps_seated_attendees(rounds, persistence):
    rounds.shuffle()
    rounds.start_new_round()
    rounds.remove_from_table("o2")

    nxt = rounds.shuffle()

    assert _seated(nxt) == ["k1", "k2", "o1"]


def test_clear_moves_current_to_preview(rounds, persistence):
    rounds.shuffle()
    rounds.start_new_round()
    current = persistence.load_assignations("current")

    rounds.clear()

    assert persistence.load_assignations("next") == current
    assert _seated(persistence.load_assignations("current")) == []


def test_add_to_random_table_notifies(rounds, persistence, messages):
    placement = rounds.add_to_random_table("k1")

    assert placement.table is not None
    assert persistence.load_assignations("current")[placement.table.id] == ["k1"]
    assert messages == [f"Minji was added to table {placement.table.label()}"]


def test_add_to_random_table_moves_to_another_table(rounds, persistence):
    first = rounds.add_to_random_table("o1").table
    second = rounds.add_to_random_table("o1").table

    assert first.id != second.id
    assert _seated(persistence.load_assignations("current")) == ["o1"]


def test_add_without_room_stays_silent(rounds, persistence, messages):
    for table in persistence.list_tables():
        persistence.update_table(table.id, enabled=False)

    placement = rounds.add_to_random_table("o1")

    assert placement.table is None
    assert messages == []


def test_delete_attendee_cleans_every_slot(rounds, persistence):
    rounds.shuffle()
    rounds.start_new_round()
    rounds.shuffle()

    rounds.delete_attendee("k1")

    assert all(a.id != "k1" for a in persistence.list_attendees())
    for slot in ("current", "previous", "next"):
        assert "k1" not in _seated(persistence.load_assignations(slot))


def test_delete_all(rounds, persistence):
    rounds.shuffle()
    rounds.delete_all()
    assert persistence.list_attendees() == []
    assert rounds.summary().total_people == 0


def test_toggles_and_seats(rounds, persistence):
    assert rounds.toggle_korean("o1").is_korean
    assert not rounds.toggle_korean("o1").is_korean

    assert not rounds.toggle_table(2).enabled
    assert rounds.toggle_table(2).enabled

    assert rounds.edit_seats(1, 1).seats == 2
    assert rounds.edit_seats(1, -1).seats == 1
    # jamais moins d'une place
    assert rounds.edit_seats(1, -1).seats == 1


def test_unknown_ids_raise(rounds):
    with pytest.raises(KeyError):
        rounds.toggle_table(99)
    with pytest.raises(KeyError):
        rounds.add_to_random_table("ghost")


def test_summary_counts(rounds, persistence):
    persistence.update_table(1, seats=3)
    persistence.update_table(10, enabled=False)
    persistence.save_assignations("current", {1: ["k1", "o1"]})

    summary = rounds.summary()

    assert summary.total_tables == 9
    assert summary.total_seats == 3 + 8
    assert summary.total_people == 4
    assert (summary.assigned, summary.pending) == (2, 2)
    first = summary.tables[0]
    assert (first.korean, first.non_korean, first.left) == (1, 1, 1)
    assert sorted(first.names) == ["Alex", "Minji"]


def test_attendee_tables_reports_current_and_next(rounds, persistence):
    persistence.save_assignations("current", {1: ["k1"]})
    persistence.save_assignations("next", {2: ["k1"]})

    rows = {row.attendee.id: row for row in rounds.attendee_tables()}

    assert rows["k1"].current.id == 1 and rows["k1"].next.id == 2
    assert rows["o1"].current is None and rows["o1"].next is None
