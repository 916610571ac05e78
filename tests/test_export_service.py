from pathlib import Path
import sys

from openpyxl import load_workbook
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mxt.domain.models import Attendee
from mxt.services.export_service import ExportService
from mxt.services.import_service import ImportService
from mxt.services.persistence import Persistence


def _make_event(tmp_path, with_people=True):
    persistence = Persistence()
    persistence.new_event(tmp_path / "event.db", "Soirée")
    if with_people:
        persistence.add_attendees([
            Attendee(id="k1", name="Minji", is_korean=True),
            Attendee(id="o1", name="Alex"),
        ])
        persistence.save_assignations("current", {1: ["k1"], 2: ["o1"]})
        persistence.save_assignations("next", {3: ["k1"]})
    return persistence


def test_export_plan_excel(tmp_path):
    persistence = _make_event(tmp_path)
    output = ExportService(persistence).export_plan_excel(tmp_path / "plan.xlsx")

    wb = load_workbook(output)
    assert wb.sheetnames == ["Plan par table", "Plan par participant", "Résumé"]

    by_table = list(wb["Plan par table"].iter_rows(min_row=2, values_only=True))
    assert len(by_table) == 10
    assert by_table[0][:6] == (1, "일", 1, "Active", "Minji", "-")
    assert by_table[2][5] == "Minji"

    by_attendee = {row[0]: row for row in wb["Plan par participant"].iter_rows(min_row=2, values_only=True)}
    assert by_attendee["Minji"][1:4] == ("Coréen", "1/일", "3/삼")
    assert by_attendee["Alex"][1:4] == ("Non coréen", "2/이", "-")
    assert by_attendee["Alex"][4] == "https://ui-avatars.com/api/?name=Alex"


def test_export_plan_excel_needs_attendees(tmp_path):
    persistence = _make_event(tmp_path, with_people=False)
    with pytest.raises(RuntimeError):
        ExportService(persistence).export_plan_excel(tmp_path / "plan.xlsx")


def test_template_can_be_reimported(tmp_path):
    persistence = _make_event(tmp_path)
    template = ExportService(persistence).export_import_template(tmp_path / "modele.xlsx")

    other = Persistence()
    other.new_event(tmp_path / "other.db", "Autre")
    added = ImportService(other).import_from_excel(template)

    attendees = {a.name: a for a in other.list_attendees()}
    assert added == 2
    assert attendees["Minji"].is_korean
    assert not attendees["Alex"].is_korean


def test_export_badges_pdf(tmp_path):
    persistence = _make_event(tmp_path)
    output = ExportService(persistence).export_badges_pdf(tmp_path / "badges.pdf")

    assert output.exists()
    assert output.read_bytes().startswith(b"%PDF")


def test_export_badges_pdf_without_attendees(tmp_path):
    persistence = _make_event(tmp_path, with_people=False)
    output = ExportService(persistence).export_badges_pdf(tmp_path / "badges.pdf")
    assert output.read_bytes().startswith(b"%PDF")
