from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from mxt.domain.models import Table
from mxt.services.planner import assignations_reverse_index


@dataclass
class BadgeInfo:
    attendee_id: str
    name: str
    is_korean: bool
    current_table: str
    next_table: str


def _group_label(is_korean: bool) -> str:
    return "Coréen" if is_korean else "Non coréen"


def _table_label(table: Table | None) -> str:
    return table.label() if table else "-"


# les polices PDF standard ne couvrent pas le hangeul des noms de table
def _table_number(table: Table | None) -> str:
    return str(table.id) if table else "-"


class ExportService:
    """Service d'export (Excel, PDF Badges)."""

    def __init__(self, persistence=None) -> None:
        self.persistence = persistence

    def export_plan_excel(self, output_path: str | Path) -> Path:
        """Génère un Excel contenant la manche en cours et l'aperçu (vues table et participant)."""

        persistence = self._require_persistence()
        output_path = Path(output_path)

        event_info = persistence.get_event_info()
        attendees = persistence.list_attendees()
        tables = persistence.list_tables()
        current = persistence.load_assignations("current")
        nxt = persistence.load_assignations("next")

        if not attendees:
            raise RuntimeError("Aucun participant enregistré. Ajoutez des participants avant d'exporter.")

        names_by_id = {a.id: a.name for a in attendees}

        wb = Workbook()

        # Vue par table
        ws_tables = wb.active
        ws_tables.title = "Plan par table"
        ws_tables.append(["Table", "Nom", "Places", "État", "Manche en cours", "Prochaine manche"])

        for table in tables:
            row = [
                table.id,
                table.name,
                table.seats,
                "Active" if table.enabled else "Désactivée",
            ]
            for assignations in (current, nxt):
                names = [names_by_id[aid] for aid in assignations.get(table.id, []) if aid in names_by_id]
                row.append("\n".join(names) if names else "-")
            ws_tables.append(row)

        wrap_align = Alignment(wrap_text=True, vertical="top")
        for row in ws_tables.iter_rows(min_row=2, min_col=5):
            for cell in row:
                cell.alignment = wrap_align

        # Vue par participant
        current_idx = assignations_reverse_index(current, tables)
        next_idx = assignations_reverse_index(nxt, tables)
        ws_by_attendee = wb.create_sheet("Plan par participant")
        ws_by_attendee.append(["Participant", "Groupe", "Table actuelle", "Prochaine table", "Image"])
        for a in attendees:
            ws_by_attendee.append([
                a.name,
                _group_label(a.is_korean),
                _table_label(current_idx.get(a.id)),
                _table_label(next_idx.get(a.id)),
                a.avatar_url(),
            ])

        ws_by_attendee.freeze_panes = "B2"
        ws_tables.freeze_panes = "B2"

        # Résumé minimal
        enabled = [t for t in tables if t.enabled]
        summary = wb.create_sheet("Résumé")
        summary.append(["Événement", event_info.get("name", "")])
        summary.append(["Tables actives", len(enabled)])
        summary.append(["Places", sum(t.seats for t in enabled)])
        summary.append(["Participants", len(attendees)])
        summary.append(["Placés (manche en cours)", len(current_idx)])

        wb.save(output_path)
        return output_path

    def export_import_template(self, output_path: str | Path) -> Path:
        """Exporte un modèle Excel pour réimport de participants."""

        persistence = self._require_persistence()
        output_path = Path(output_path)

        wb = Workbook()
        ws = wb.active
        ws.title = "Participants"
        ws.append(["Nom", "Image", "Coréen (Oui/Non)"])

        attendees = persistence.list_attendees()
        if attendees:
            for a in attendees:
                ws.append([a.name, a.image or "", "Oui" if a.is_korean else "Non"])
        else:
            ws.append(["Minji", "", "Oui"])
            ws.append(["Alex", "", "Non"])

        wb.save(output_path)
        return output_path

    def export_badges_pdf(self, output_path: str | Path) -> Path:
        """
        Génère un PDF contenant un badge par participant.

        Format :
        - Nom de l'événement
        - Nom du participant et son groupe
        - Table de la manche en cours et de la prochaine manche
        """
        persistence = self._require_persistence()
        output_path = Path(output_path)

        event_info = persistence.get_event_info()
        attendees = persistence.list_attendees()
        tables = persistence.list_tables()
        current_idx = assignations_reverse_index(persistence.load_assignations("current"), tables)
        next_idx = assignations_reverse_index(persistence.load_assignations("next"), tables)

        badges = [
            BadgeInfo(
                attendee_id=a.id,
                name=a.name,
                is_korean=a.is_korean,
                current_table=_table_number(current_idx.get(a.id)),
                next_table=_table_number(next_idx.get(a.id)),
            )
            for a in attendees
        ]

        self._render_badges(output_path=output_path, event_name=event_info.get("name", ""), badges=badges)
        return output_path

    # --- helpers ---------------------------------------------------------
    def _require_persistence(self):
        if not self.persistence:
            raise RuntimeError("Persistence non fournie pour l'export")
        return self.persistence

    def _render_badges(self, *, output_path: Path, event_name: str, badges: list[BadgeInfo]) -> None:
        c = canvas.Canvas(str(output_path), pagesize=A4)
        page_width, page_height = A4

        badge_width = 90 * mm
        badge_height = 55 * mm
        margin = 10 * mm
        h_spacing = 5 * mm
        v_spacing = 5 * mm

        cols = max(1, int((page_width - 2 * margin + h_spacing) // (badge_width + h_spacing)))
        rows = max(1, int((page_height - 2 * margin + v_spacing) // (badge_height + v_spacing)))
        badges_per_page = max(1, cols * rows)

        for idx, badge in enumerate(badges):
            pos_in_page = idx % badges_per_page
            if idx and pos_in_page == 0:
                c.showPage()

            col = pos_in_page % cols
            row = pos_in_page // cols

            x = margin + col * (badge_width + h_spacing)
            y = page_height - margin - (row + 1) * badge_height - row * v_spacing

            self._draw_badge(c=c, origin_x=x, origin_y=y, width=badge_width, height=badge_height,
                             badge=badge, event_name=event_name)

        if not badges:
            c.setFont("Helvetica", 11)
            c.drawString(margin, page_height - margin - 12, "Aucun participant enregistré.")

        c.save()

    def _draw_badge(
        self,
        *,
        c: canvas.Canvas,
        origin_x: float,
        origin_y: float,
        width: float,
        height: float,
        badge: BadgeInfo,
        event_name: str,
    ) -> None:
        padding = 6 * mm
        box_gap = 4 * mm
        box_height = 14 * mm
        bottom_bar_height = 10 * mm

        c.saveState()
        c.translate(origin_x, origin_y)

        # Contour du badge
        c.setLineWidth(1)
        c.roundRect(0, 0, width, height, radius=4 * mm, stroke=1, fill=0)

        y = height - padding

        # En-tête d'événement
        c.setFillColor(colors.HexColor("#c62828"))
        c.setFont("Helvetica-Bold", 11)
        c.drawString(padding, y - 8, event_name or "")

        # Nom
        y -= 26
        c.setFillColor(colors.black)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(padding, y, badge.name)

        # Tables actuelle / prochaine
        box_width = (width - 2 * padding - box_gap) / 2
        base_y = y - box_height - 8
        for idx, (title, value, color) in enumerate((
            ("Actuelle", badge.current_table, colors.HexColor("#4fc3f7")),
            ("Prochaine", badge.next_table, colors.HexColor("#aed581")),
        )):
            x = padding + idx * (box_width + box_gap)
            c.setFillColor(color)
            c.roundRect(x, base_y, box_width, box_height, radius=2 * mm, stroke=0, fill=1)
            c.setFillColor(colors.black)
            c.setFont("Helvetica-Bold", 9)
            c.drawCentredString(x + box_width / 2, base_y + box_height - 10, title)
            c.setFont("Helvetica", 10)
            c.drawCentredString(x + box_width / 2, base_y + 6, f"Table {value}")

        # Bandeau de groupe
        c.setFillColor(colors.HexColor("#b86d1f") if badge.is_korean else colors.HexColor("#7986cb"))
        c.rect(0, 0, width, bottom_bar_height, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 12)
        c.drawCentredString(width / 2, bottom_bar_height / 2 - 3, _group_label(badge.is_korean))

        c.restoreState()
