from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional
from contextlib import contextmanager

from sqlalchemy import select, delete

from mxt.domain.models import SLOTS, Assignations, Attendee, Table, default_tables, empty_assignations
from mxt.infra.db import Base, make_engine, make_session_factory
from mxt.infra.models_orm import AssignationORM, AttendeeORM, EventORM, TableORM

log = logging.getLogger(__name__)

class Persistence:
    """
    Une façade simple pour piloter l'événement courant.
    - new_event(db_path, name) → crée la BD, l'événement et les tables par défaut
    - open_event(db_path) → ouvre une BD existante et charge le dernier événement
    - close_event() → ferme le contexte
    - tables : lecture, activation, nombre de places
    - CRUD participants
    - save_assignations / load_assignations par emplacement (current, previous, next)
    """

    def __init__(self) -> None:
        self.db_path: Optional[Path] = None
        self.engine = None
        self.Session = None
        self.event_id: Optional[int] = None

    # --- utils
    def _require(self):
        if not self.Session or not self.event_id:
            raise RuntimeError("Aucun événement ouvert")

    def _check_slot(self, slot: str) -> None:
        if slot not in SLOTS:
            raise ValueError(f"Emplacement inconnu : {slot!r}")

    @contextmanager
    def session_scope(self):
        if not self.Session:
            raise RuntimeError("BD non initialisée")
        s = self.Session()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # --- lifecycle
    def new_event(self, db_path: Path, name: str, tables: Iterable[Table] | None = None) -> int:
        self.db_path = Path(db_path)
        self.engine = make_engine(self.db_path)
        self.Session = make_session_factory(self.engine)
        Base.metadata.create_all(self.engine)

        with self.session_scope() as s:
            evt = EventORM(name=name.strip())
            s.add(evt)
            s.flush()
            self.event_id = evt.id
            for t in tables or default_tables():
                s.add(TableORM(event_id=evt.id, id=t.id, name=t.name, seats=t.seats, enabled=t.enabled))
        log.info("Événement %r créé dans %s", name, self.db_path)
        return self.event_id

    def open_event(self, db_path: Path) -> int:
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise RuntimeError(f"Base introuvable : {self.db_path}")
        self.engine = make_engine(self.db_path)
        self.Session = make_session_factory(self.engine)
        # pas de create_all ici; on suppose BD déjà créée
        with self.session_scope() as s:
            evt_id = s.scalar(select(EventORM.id).order_by(EventORM.id.desc()))
            if not evt_id:
                raise RuntimeError("Aucun événement trouvé dans cette base.")
            self.event_id = evt_id
        return self.event_id

    def close_event(self):
        if self.engine is not None:
            self.engine.dispose()
        self.db_path = None
        self.engine = None
        self.Session = None
        self.event_id = None

    def get_event_info(self) -> dict:
        self._require()
        with self.session_scope() as s:
            evt = s.get(EventORM, self.event_id)
            return {"id": evt.id, "name": evt.name, "created_at": evt.created_at}

    # --- tables
    def list_tables(self) -> list[Table]:
        self._require()
        with self.session_scope() as s:
            rows = s.scalars(
                select(TableORM).where(TableORM.event_id == self.event_id).order_by(TableORM.id)
            ).all()
            return [Table(id=r.id, name=r.name, seats=r.seats, enabled=r.enabled) for r in rows]

    def update_table(self, table_id: int, *, seats=None, enabled=None) -> Table:
        self._require()
        with self.session_scope() as s:
            row = s.get(TableORM, (self.event_id, table_id))
            if not row:
                raise KeyError(f"Table inconnue : {table_id}")
            if seats is not None: row.seats = int(seats)
            if enabled is not None: row.enabled = bool(enabled)
            return Table(id=row.id, name=row.name, seats=row.seats, enabled=row.enabled)

    # --- participants
    def list_attendees(self) -> list[Attendee]:
        self._require()
        with self.session_scope() as s:
            rows = s.scalars(
                select(AttendeeORM).where(AttendeeORM.event_id == self.event_id).order_by(AttendeeORM.name)
            ).all()
            return [Attendee(id=r.id, name=r.name, image=r.image, is_korean=r.is_korean) for r in rows]

    def get_attendee(self, attendee_id: str) -> Attendee:
        self._require()
        with self.session_scope() as s:
            row = s.get(AttendeeORM, attendee_id)
            if not row or row.event_id != self.event_id:
                raise KeyError(f"Participant inconnu : {attendee_id}")
            return Attendee(id=row.id, name=row.name, image=row.image, is_korean=row.is_korean)

    def add_attendees(self, attendees: Iterable[Attendee]) -> int:
        self._require()
        added = 0
        with self.session_scope() as s:
            for a in attendees:
                s.add(AttendeeORM(
                    id=a.id,
                    event_id=self.event_id,
                    name=a.name.strip(),
                    image=a.image or None,
                    is_korean=bool(a.is_korean),
                ))
                added += 1
        return added

    def update_attendee(self, attendee_id: str, **fields) -> None:
        self._require()
        with self.session_scope() as s:
            row = s.get(AttendeeORM, attendee_id)
            if not row or row.event_id != self.event_id:
                raise KeyError(f"Participant inconnu : {attendee_id}")
            for k, v in fields.items():
                setattr(row, k, v)

    def remove_attendee(self, attendee_id: str) -> None:
        self._require()
        with self.session_scope() as s:
            row = s.get(AttendeeORM, attendee_id)
            if row: s.delete(row)

    def remove_all_attendees(self) -> None:
        self._require()
        with self.session_scope() as s:
            s.execute(delete(AssignationORM).where(AssignationORM.event_id == self.event_id))
            s.execute(delete(AttendeeORM).where(AttendeeORM.event_id == self.event_id))

    # --- assignations
    def save_assignations(self, slot: str, assignations: Assignations) -> None:
        """assignations[table_id] = [attendee_id, ...] ; remplace tout l'emplacement."""
        self._require()
        self._check_slot(slot)
        with self.session_scope() as s:
            s.execute(delete(AssignationORM).where(
                AssignationORM.event_id == self.event_id,
                AssignationORM.slot == slot,
            ))
            for tid, ids in assignations.items():
                for pos, aid in enumerate(ids):
                    s.add(AssignationORM(
                        event_id=self.event_id,
                        slot=slot,
                        table_id=int(tid),
                        position=pos,
                        attendee_id=aid,
                    ))

    def load_assignations(self, slot: str) -> Assignations:
        self._require()
        self._check_slot(slot)
        result = empty_assignations(self.list_tables())
        with self.session_scope() as s:
            rows = s.scalars(
                select(AssignationORM)
                .where(AssignationORM.event_id == self.event_id, AssignationORM.slot == slot)
                .order_by(AssignationORM.table_id, AssignationORM.position)
            ).all()
        for r in rows:
            result.setdefault(r.table_id, []).append(r.attendee_id)
        return result
