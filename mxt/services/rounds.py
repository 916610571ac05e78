from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from mxt.domain.models import SLOTS, Assignations, Attendee, Table, seated_ids
from mxt.services.planner import Placement, Planner, assignations_reverse_index

log = logging.getLogger(__name__)


@dataclass
class TableSummary:
    table: Table
    names: List[str]
    korean: int
    non_korean: int

    @property
    def left(self) -> int:
        return self.table.seats - len(self.names)


@dataclass
class RoundSummary:
    total_tables: int
    total_seats: int
    total_people: int
    assigned: int
    pending: int
    tables: List[TableSummary] = field(default_factory=list)


@dataclass
class AttendeeTables:
    attendee: Attendee
    current: Optional[Table]
    next: Optional[Table]


def _log_notification(message: str) -> None:
    log.info(message)


class RoundService:
    """
    Orchestration des manches au-dessus de la persistence.

    Trois emplacements sont conservés : ``current`` (manche en cours),
    ``next`` (aperçu de la prochaine manche) et ``previous``. Le Planner
    reste pur : on lit l'état, on calcule, on réécrit.
    """

    def __init__(
        self,
        persistence,
        planner: Planner | None = None,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self.p = persistence
        self.planner = planner or Planner()
        self.notify = notify or _log_notification

    # --- manches ---------------------------------------------------------
    def shuffle(self) -> Assignations:
        """Recalcule l'aperçu de la prochaine manche à partir de la manche en cours."""
        current = self.p.load_assignations("current")
        nxt = self.planner.generate_round(self.p.list_attendees(), self.p.list_tables(), current)
        self.p.save_assignations("next", nxt)
        log.info("Aperçu recalculé : %d personne(s) placée(s)", len(seated_ids(nxt)))
        return nxt

    def start_new_round(self) -> Assignations:
        """Valide l'aperçu comme manche en cours puis prépare l'aperçu suivant."""
        current = self.p.load_assignations("current")
        nxt = self.p.load_assignations("next")
        self.p.save_assignations("previous", current)
        self.p.save_assignations("current", nxt)
        log.info("Nouvelle manche démarrée")
        return self.shuffle()

    def clear(self) -> None:
        current = self.p.load_assignations("current")
        self.p.save_assignations("next", current)
        self.p.save_assignations("current", {})
        log.info("Manche en cours vidée")

    # --- actions par participant ------------------------------------------
    def add_to_random_table(self, attendee_id: str) -> Placement:
        attendee = self.p.get_attendee(attendee_id)
        placement = self.planner.place_one(
            attendee,
            self.p.list_attendees(),
            self.p.list_tables(),
            self.p.load_assignations("current"),
        )
        self.p.save_assignations("current", placement.assignations)
        if placement.message:
            self.notify(placement.message)
        return placement

    def remove_from_table(self, attendee_id: str) -> Assignations:
        self.p.get_attendee(attendee_id)
        current = self.planner.remove_from_all_tables(
            attendee_id, self.p.list_tables(), self.p.load_assignations("current")
        )
        self.p.save_assignations("current", current)
        return current

    def delete_attendee(self, attendee_id: str) -> None:
        attendee = self.p.get_attendee(attendee_id)
        tables = self.p.list_tables()
        for slot in SLOTS:
            cleaned = self.planner.remove_from_all_tables(attendee_id, tables, self.p.load_assignations(slot))
            self.p.save_assignations(slot, cleaned)
        self.p.remove_attendee(attendee_id)
        log.info("Participant supprimé : %s", attendee.name)

    def delete_all(self) -> None:
        self.p.remove_all_attendees()
        log.info("Tous les participants ont été supprimés")

    def toggle_korean(self, attendee_id: str) -> Attendee:
        attendee = self.p.get_attendee(attendee_id)
        self.p.update_attendee(attendee_id, is_korean=not attendee.is_korean)
        return self.p.get_attendee(attendee_id)

    # --- tables ------------------------------------------------------------
    def toggle_table(self, table_id: int) -> Table:
        table = self._table(table_id)
        return self.p.update_table(table_id, enabled=not table.enabled)

    def edit_seats(self, table_id: int, diff: int) -> Table:
        table = self._table(table_id)
        seats = table.seats + diff
        if seats <= 0:
            log.info("Table %s : %d place(s) refusée(s)", table.label(), seats)
            return table
        return self.p.update_table(table_id, seats=seats)

    def _table(self, table_id: int) -> Table:
        for table in self.p.list_tables():
            if table.id == table_id:
                return table
        raise KeyError(f"Table inconnue : {table_id}")

    # --- lecture -----------------------------------------------------------
    def summary(self) -> RoundSummary:
        tables = self.p.list_tables()
        attendees = self.p.list_attendees()
        current = self.p.load_assignations("current")
        by_id: Dict[str, Attendee] = {a.id: a for a in attendees}

        rows = []
        for table in tables:
            seated = [by_id[aid] for aid in current.get(table.id, []) if aid in by_id]
            rows.append(TableSummary(
                table=table,
                names=[a.name for a in seated],
                korean=sum(1 for a in seated if a.is_korean),
                non_korean=sum(1 for a in seated if not a.is_korean),
            ))

        enabled = [t for t in tables if t.enabled]
        assigned = len(seated_ids(current) & set(by_id))
        return RoundSummary(
            total_tables=len(enabled),
            total_seats=sum(t.seats for t in enabled),
            total_people=len(attendees),
            assigned=assigned,
            pending=len(attendees) - assigned,
            tables=rows,
        )

    def attendee_tables(self) -> List[AttendeeTables]:
        tables = self.p.list_tables()
        current = assignations_reverse_index(self.p.load_assignations("current"), tables)
        nxt = assignations_reverse_index(self.p.load_assignations("next"), tables)
        return [
            AttendeeTables(attendee=a, current=current.get(a.id), next=nxt.get(a.id))
            for a in self.p.list_attendees()
        ]
