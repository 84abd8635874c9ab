from __future__ import annotations

import csv
import json
import logging
import unicodedata
from pathlib import Path
from typing import List

from openpyxl import load_workbook

from seatdesigner.core.errors import MalformedSnapshot
from seatdesigner.domain.models import Person
from seatdesigner.services.engine import SeatingEngine, split_names

log = logging.getLogger(__name__)

NAME_HEADERS = {"姓名", "名字", "name", "nom", "invite", "guest"}


class ImportService:
    """Service d'import (texte, CSV/TXT, Excel, plan JSON)."""

    def __init__(self, engine: SeatingEngine | None = None) -> None:
        self.engine = engine

    # --- public API ------------------------------------------------------
    def import_from_text(self, text: str) -> List[Person]:
        """Noms séparés par des retours à la ligne ou des virgules ; doublons suffixés « (n) »."""
        return self._require_engine().import_names(split_names(text))

    def import_from_file(self, file_path: str | Path) -> List[Person]:
        """Importe une liste de noms depuis un fichier .txt, .csv ou .xlsx."""
        path = Path(file_path)
        suffix = path.suffix.lower()
        if suffix == ".xlsx":
            names = self.read_excel_names(path)
        elif suffix == ".csv":
            names = self.read_csv_names(path)
        elif suffix == ".txt":
            names = self.read_text_names(path)
        else:
            raise ValueError("Format non pris en charge : CSV, TXT ou XLSX attendu")
        added = self._require_engine().import_names(names)
        log.info("%d nom(s) importé(s) depuis %s", len(added), path.name)
        return added

    def import_layout_json(self, file_path: str | Path) -> None:
        """Remplace tout l'état par le plan exporté en JSON."""
        engine = self._require_engine()
        try:
            payload = json.loads(Path(file_path).read_text(encoding="utf-8-sig"))
        except ValueError as exc:  # UnicodeDecodeError compris
            raise MalformedSnapshot(f"JSON invalide : {exc}") from exc
        engine.load_payload(payload)

    # --- lecteurs --------------------------------------------------------
    def read_text_names(self, path: Path) -> List[str]:
        text = Path(path).read_text(encoding="utf-8-sig")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def read_csv_names(self, path: Path) -> List[str]:
        names: List[str] = []
        with open(path, newline="", encoding="utf-8-sig") as f:
            for row in csv.reader(f):
                names.extend(v.strip() for v in row if v and v.strip())
        return names

    def read_excel_names(self, path: Path) -> List[str]:
        """
        Lit la colonne « 姓名 / Nom / Name » de la feuille active ; à défaut,
        la première colonne (la première ligne est alors traitée comme une
        donnée).
        """
        wb = load_workbook(filename=path, read_only=True, data_only=True)
        try:
            rows = list(wb.active.iter_rows(values_only=True))
        finally:
            wb.close()
        if not rows:
            return []

        header = [self._normalize_header(h) for h in rows[0]]
        col = next((i for i, h in enumerate(header) if h in NAME_HEADERS), None)
        body = rows[1:] if col is not None else rows
        col = col or 0

        names = []
        for raw in body:
            value = self._read_cell(raw, col)
            if value:
                names.append(value)
        return names

    # --- helpers ---------------------------------------------------------
    def _require_engine(self) -> SeatingEngine:
        if not self.engine:
            raise RuntimeError("Moteur non fourni pour l'import")
        return self.engine

    def _normalize_header(self, value) -> str:
        if value is None:
            return ""
        text = str(value).strip().lower()
        text = "".join(c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn")
        # Ignore les précisions entre parenthèses, ex. « Nom (invité) »
        if "(" in text:
            text = text.split("(", 1)[0].strip()
        return text

    def _read_cell(self, row: tuple, index: int) -> str:
        if row is None or index >= len(row):
            return ""
        value = row[index]
        return "" if value is None else str(value).strip()
