from pathlib import Path
import sys

import pytest
from sqlalchemy.exc import IntegrityError

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mxt.domain.models import Attendee
from mxt.services.persistence import Persistence


def _make_event(tmp_path):
    persistence = Persistence()
    persistence.new_event(tmp_path / "event.db", "Language exchange")
    return persistence


def test_new_event_creates_default_tables(tmp_path):
    persistence = _make_event(tmp_path)
    tables = persistence.list_tables()

    assert [t.id for t in tables] == list(range(1, 11))
    assert tables[0].name == "일" and tables[9].name == "십"
    assert all(t.seats == 1 and t.enabled for t in tables)
    assert persistence.get_event_info()["name"] == "Language exchange"


def test_requires_open_event():
    with pytest.raises(RuntimeError):
        Persistence().list_tables()


def test_open_event_reloads_state(tmp_path):
    persistence = _make_event(tmp_path)
    persistence.add_attendees([Attendee(id="a1", name="Minji", is_korean=True)])
    persistence.update_table(3, seats=4, enabled=False)
    persistence.save_assignations("current", {1: ["a1"]})
    persistence.close_event()

    reopened = Persistence()
    reopened.open_event(tmp_path / "event.db")

    assert reopened.get_attendee("a1").is_korean
    table = [t for t in reopened.list_tables() if t.id == 3][0]
    assert table.seats == 4 and not table.enabled
    assert reopened.load_assignations("current")[1] == ["a1"]


def test_open_missing_file_fails(tmp_path):
    with pytest.raises(RuntimeError):
        Persistence().open_event(tmp_path / "missing.db")


def test_assignations_keep_order_and_slots_are_independent(tmp_path):
    persistence = _make_event(tmp_path)
    persistence.add_attendees([Attendee(id=i, name=i.upper()) for i in ("a", "b", "c")])

    persistence.save_assignations("current", {2: ["c", "a"], 5: ["b"]})
    persistence.save_assignations("next", {"1": ["a"]})

    current = persistence.load_assignations("current")
    assert current[2] == ["c", "a"] and current[5] == ["b"]
    assert set(current) == set(range(1, 11))
    assert persistence.load_assignations("next")[1] == ["a"]
    assert all(ids == [] for ids in persistence.load_assignations("previous").values())

    persistence.save_assignations("current", {})
    assert all(ids == [] for ids in persistence.load_assignations("current").values())


def test_unknown_slot_is_rejected(tmp_path):
    persistence = _make_event(tmp_path)
    with pytest.raises(ValueError):
        persistence.load_assignations("tomorrow")


def test_unknown_ids_raise_key_error(tmp_path):
    persistence = _make_event(tmp_path)
    with pytest.raises(KeyError):
        persistence.get_attendee("nobody")
    with pytest.raises(KeyError):
        persistence.update_table(42, seats=2)


def test_remove_all_attendees_clears_assignations(tmp_path):
    persistence = _make_event(tmp_path)
    persistence.add_attendees([Attendee(id="a", name="A"), Attendee(id="b", name="B")])
    persistence.save_assignations("current", {1: ["a"], 2: ["b"]})

    persistence.remove_all_attendees()

    assert persistence.list_attendees() == []
    assert all(ids == [] for ids in persistence.load_assignations("current").values())


def test_assignations_must_reference_existing_attendees(tmp_path):
    persistence = _make_event(tmp_path)
    with pytest.raises(IntegrityError):
        persistence.save_assignations("current", {1: ["ghost"]})
    assert all(ids == [] for ids in persistence.load_assignations("current").values())
