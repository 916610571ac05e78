from __future__ import annotations

from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from mxt.infra.db import Base


class EventORM(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)

    tables: Mapped[list["TableORM"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    attendees: Mapped[list["AttendeeORM"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
    assignations: Mapped[list["AssignationORM"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )


class TableORM(Base):
    __tablename__ = "tables"

    # clé composite : l'id de table (1..10) n'est unique qu'au sein d'un événement
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), primary_key=True)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    seats: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    event: Mapped["EventORM"] = relationship(back_populates="tables")


class AttendeeORM(Base):
    __tablename__ = "attendees"

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_korean: Mapped[bool] = mapped_column(Boolean, default=False)

    event: Mapped["EventORM"] = relationship(back_populates="attendees")


class AssignationORM(Base):
    __tablename__ = "assignations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    slot: Mapped[str] = mapped_column(String(10), nullable=False)  # current / previous / next
    table_id: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    attendee_id: Mapped[str] = mapped_column(ForeignKey("attendees.id"), nullable=False, index=True)

    event: Mapped["EventORM"] = relationship(back_populates="assignations")

    __table_args__ = (
        UniqueConstraint("event_id", "slot", "attendee_id", name="uq_assignation_once_per_slot"),
    )
