from __future__ import annotations

import json
import logging
import random
import string
import unicodedata
from pathlib import Path
from typing import Iterable

from openpyxl import load_workbook

from mxt.domain.models import Attendee

log = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 5


class ImportService:
    """Service d'import (texte collé, JSON, Excel)."""

    def __init__(self, persistence=None, rng: random.Random | None = None) -> None:
        self.persistence = persistence
        self.rng = rng or random.Random()

    # --- public API ------------------------------------------------------
    def parse_bulk_text(self, text: str | None, existing: Iterable[Attendee] = ()) -> list[Attendee]:
        """Transforme un texte collé en nouveaux participants.

        On tente d'abord une liste JSON de ``{"name": ..., "image": ...}`` (les
        noms déjà présents sont ignorés), puis on se rabat sur un nom par ligne.
        """
        existing = list(existing)
        taken_ids = {a.id for a in existing}
        try:
            records = self._parse_json_records(text or "")
        except ValueError:
            log.debug("Texte non JSON, lecture ligne par ligne")
            return [
                Attendee(id=self._new_id(taken_ids), name=name)
                for name in self._parse_lines(text or "")
            ]

        known_names = {a.name for a in existing}
        result: list[Attendee] = []
        for record in records:
            if not record["name"] or record["name"] in known_names:
                continue
            result.append(Attendee(
                id=self._new_id(taken_ids),
                name=record["name"],
                image=record.get("image") or None,
            ))
        return result

    def import_from_text(self, text: str | None) -> int:
        persistence = self._require_persistence()
        attendees = self.parse_bulk_text(text, persistence.list_attendees())
        added = persistence.add_attendees(attendees)
        log.info("%d participant(s) ajouté(s) depuis le texte", added)
        return added

    def import_from_excel(self, file_path: str | Path) -> int:
        """Importe les participants depuis un fichier Excel.

        Le format attendu est une feuille avec les colonnes :
        - Nom
        - Image (optionnelle)
        - Coréen (Oui/Non, optionnelle)
        """

        persistence = self._require_persistence()
        wb = load_workbook(filename=file_path)
        ws = wb.active

        rows = list(ws.iter_rows(values_only=True))
        if not rows:
            return 0

        header = [self._normalize_header(h) for h in rows[0]]
        col_idx = self._map_columns(header)

        existing = persistence.list_attendees()
        taken_ids = {a.id for a in existing}
        known_names = {a.name for a in existing}
        attendees: list[Attendee] = []
        for raw in rows[1:]:
            if not raw or all(v is None or str(v).strip() == "" for v in raw):
                continue

            name = self._read_cell(raw, col_idx.get("name"))
            if not name or name in known_names:
                # ligne incomplète ou doublon : on ignore
                continue
            image = self._read_cell(raw, col_idx.get("image")) or None
            korean = (
                self._parse_bool(raw[col_idx["is_korean"]])
                if col_idx.get("is_korean") is not None
                else False
            )
            attendees.append(Attendee(id=self._new_id(taken_ids), name=name, image=image, is_korean=korean))
            known_names.add(name)

        added = persistence.add_attendees(attendees)
        log.info("%d participant(s) importé(s) depuis %s", added, file_path)
        return added

    # --- helpers ---------------------------------------------------------
    def _require_persistence(self):
        if not self.persistence:
            raise RuntimeError("Persistence non fournie pour l'import")
        return self.persistence

    def _new_id(self, taken: set[str]) -> str:
        while True:
            candidate = "".join(self.rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in taken:
                taken.add(candidate)
                return candidate

    def _parse_json_records(self, text: str) -> list[dict]:
        # json.JSONDecodeError hérite de ValueError
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("Une liste JSON est attendue")
        records = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise ValueError("Chaque élément doit contenir un champ 'name'")
            image = item.get("image")
            records.append({"name": item["name"].strip(), "image": image if isinstance(image, str) else None})
        return records

    def _parse_lines(self, text: str) -> list[str]:
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _normalize_header(self, value) -> str:
        if value is None:
            return ""
        text = str(value).strip().lower()
        text = "".join(c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn")
        # Ignore les indications comme "(oui/non)" dans l'en-tête
        if "(" in text:
            text = text.split("(", 1)[0].strip()
        return text

    def _map_columns(self, header: list[str]) -> dict[str, int | None]:
        mapping = {
            "name": {"nom", "name", "participant"},
            "image": {"image", "photo", "avatar"},
            "is_korean": {"coreen", "korean", "kr"},
        }

        idx: dict[str, int | None] = {key: None for key in mapping}
        for i, col in enumerate(header):
            for field, names in mapping.items():
                if col.replace(" ", "") in names:
                    idx[field] = i
        if idx["name"] is None:
            raise ValueError("Colonne 'Nom' manquante dans l'Excel")
        return idx

    def _parse_bool(self, value) -> bool:
        if value is None:
            return False
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().casefold()
        return text in {"oui", "yes", "true", "1", "y", "o"}

    def _read_cell(self, row: tuple, index: int | None) -> str:
        if index is None or index >= len(row):
            return ""
        value = row[index]
        return "" if value is None else str(value).strip()
