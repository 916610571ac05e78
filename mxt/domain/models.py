from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import quote

from mxt.core.constants import AVATAR_FALLBACK_URL, DEFAULT_TABLE_NAMES, DEFAULT_TABLE_SEATS

# --- Entités de base (in-memory)

@dataclass(frozen=True)
class Table:
    id: int
    name: str
    seats: int = DEFAULT_TABLE_SEATS
    enabled: bool = True

    def label(self) -> str:
        return f"{self.id}/{self.name}"

@dataclass(frozen=True)
class Attendee:
    id: str
    name: str
    image: Optional[str] = None
    is_korean: bool = False

    def avatar_url(self) -> str:
        if self.image:
            return self.image
        return AVATAR_FALLBACK_URL.format(name=quote(self.name))

# assignations[table_id] -> [attendee_id, ...] dans l'ordre de placement
Assignations = Dict[int, List[str]]

SLOTS = ("current", "previous", "next")


def default_tables() -> List[Table]:
    return [Table(id=i + 1, name=name) for i, name in enumerate(DEFAULT_TABLE_NAMES)]


def empty_assignations(tables: List[Table]) -> Assignations:
    return {t.id: [] for t in tables}


def copy_assignations(assignations: Assignations) -> Assignations:
    return {int(tid): list(ids) for tid, ids in assignations.items()}


def seated_ids(assignations: Assignations) -> set[str]:
    return {aid for ids in assignations.values() for aid in ids}


