from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from mxt.domain.models import Assignations, Attendee, Table, copy_assignations, empty_assignations, seated_ids

log = logging.getLogger(__name__)


@dataclass
class Placement:
    assignations: Assignations
    table: Optional[Table] = None
    message: Optional[str] = None


class Planner:
    """
    Répartit les participants sur les tables activées en mélangeant autant
    que possible Coréens et non-Coréens.

    Heuristique gloutonne, sans retour arrière : l'ordre de placement donne
    une longueur d'avance aux deux groupes, puis chaque personne tire une
    table au hasard parmi celles qui respectent le biais. Quand le biais ne
    peut pas être tenu, on prend n'importe quelle table libre ; quand il n'y
    a plus de place, la personne reste sans table.
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random(seed)

    # --- tirages -------------------------------------------------------
    def _shuffle(self, items: Sequence) -> list:
        shuffled = list(items)
        self.rng.shuffle(shuffled)
        return shuffled

    def _sample(self, candidates: Sequence[Table]) -> Optional[Table]:
        if not candidates:
            return None
        return self.rng.choice(list(candidates))

    # --- nouvelle manche -----------------------------------------------
    def generate_round(
        self,
        attendees: List[Attendee],
        tables: List[Table],
        previous: Assignations,
    ) -> Assignations:
        seated = seated_ids(previous)
        active = [a for a in attendees if a.id in seated]
        if not active:
            # première manche : personne n'était assis, on prend tout le monde
            active = list(attendees)

        korean_by_id = {a.id: a.is_korean for a in attendees}
        enabled = [t for t in tables if t.enabled]
        k = len(enabled)

        koreans = self._shuffle([a for a in active if a.is_korean])
        others = self._shuffle([a for a in active if not a.is_korean])
        first_koreans, rest_koreans = koreans[:k], koreans[k:]
        first_others, rest_others = others[:k], others[k:]
        order = first_koreans + first_others + self._shuffle(rest_koreans + rest_others)

        result = empty_assignations(tables)
        for attendee in order:
            available = [t for t in enabled if len(result[t.id]) < t.seats]
            without_korean = [
                t for t in available
                if not any(korean_by_id.get(aid, False) for aid in result[t.id])
            ]
            only_korean = [
                t for t in available
                if all(korean_by_id.get(aid, False) for aid in result[t.id])
            ]

            if attendee.is_korean and without_korean:
                candidates = without_korean
            elif not attendee.is_korean and only_korean:
                candidates = only_korean
            else:
                candidates = available

            table = self._sample(candidates)
            if table is None:
                log.info("Aucune place pour %s (%s)", attendee.name, attendee.id)
                continue
            result[table.id].append(attendee.id)
            log.debug("%s placé à la table %s", attendee.name, table.label())

        return result

    # --- placement individuel ------------------------------------------
    def place_one(
        self,
        attendee: Attendee,
        attendees: List[Attendee],
        tables: List[Table],
        assignations: Assignations,
    ) -> Placement:
        """Place une personne sur une table au hasard, différente de sa table actuelle.

        Seule la règle « pas deux Coréens à la même table » s'applique ici ;
        l'annonce à afficher est renvoyée dans ``Placement.message``.
        """
        korean_by_id = {a.id: a.is_korean for a in attendees}
        current = self._with_all_tables(assignations, tables)

        by_id = {t.id: t for t in tables}
        previous_table: Optional[Table] = None
        for tid, ids in current.items():
            if attendee.id in ids:
                previous_table = by_id.get(tid)
                current[tid] = [aid for aid in ids if aid != attendee.id]

        available = [
            t for t in tables
            if t.enabled and len(current[t.id]) < t.seats and t != previous_table
        ]
        without_korean = [
            t for t in available
            if not any(korean_by_id.get(aid, False) for aid in current[t.id])
        ]

        if attendee.is_korean and without_korean:
            table = self._sample(without_korean)
        else:
            table = self._sample(available)

        if table is None:
            log.info("Aucune table disponible pour %s", attendee.name)
            return Placement(assignations=current)

        current[table.id].append(attendee.id)
        message = f"{attendee.name} was added to table {table.label()}"
        return Placement(assignations=current, table=table, message=message)

    # --- retrait -------------------------------------------------------
    def remove_from_all_tables(
        self,
        attendee_id: str,
        tables: List[Table],
        assignations: Assignations,
    ) -> Assignations:
        current = self._with_all_tables(assignations, tables)
        for tid, ids in current.items():
            if attendee_id in ids:
                current[tid] = [aid for aid in ids if aid != attendee_id]
        return current

    def _with_all_tables(self, assignations: Assignations, tables: List[Table]) -> Assignations:
        current = copy_assignations(assignations)
        for table in tables:
            current.setdefault(table.id, [])
        return current


def assignations_reverse_index(assignations: Assignations, tables: List[Table]) -> Dict[str, Table]:
    """Index inverse participant -> table ; les tables inconnues sont ignorées."""
    by_id = {t.id: t for t in tables}
    result: Dict[str, Table] = {}
    for tid, ids in assignations.items():
        try:
            table = by_id.get(int(tid))
        except (TypeError, ValueError):
            table = None
        if table is None:
            continue
        for aid in ids:
            result[aid] = table
    return result
