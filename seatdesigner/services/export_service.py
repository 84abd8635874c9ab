from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from seatdesigner.domain.models import table_label
from seatdesigner.services.engine import SeatingEngine

DETAIL_HEADER = ["桌号", "座位号", "姓名"]
PDF_FONT = "STSong-Light"


@dataclass
class TableSheet:
    table_id: int
    seats: List[str]

    @property
    def label(self) -> str:
        return table_label(self.table_id)

    @property
    def occupied(self) -> int:
        return sum(1 for s in self.seats if s)


class ExportService:
    """Service d'export (JSON, CSV, Excel, PDF imprimable)."""

    def __init__(self, engine: SeatingEngine | None = None) -> None:
        self.engine = engine

    # --- données -----------------------------------------------------------
    def detail_rows(self) -> List[List[str]]:
        """Une ligne par siège dans l'ordre de la topologie, nom vide si libre."""
        engine = self._require_engine()
        names = self._names_by_id()
        assigned = engine.store.assignments()
        seats = engine.seats() or sorted(assigned)
        return [
            [seat.table_label, f"S{seat.seat_index}", names.get(assigned.get(seat), "")]
            for seat in seats
        ]

    def table_sheets(self) -> List[TableSheet]:
        engine = self._require_engine()
        names = self._names_by_id()
        assigned = engine.store.assignments()

        sheets: Dict[int, TableSheet] = {}
        if engine.rows:
            for row in engine.rows:
                for t in row.table_ids():
                    sheets[t] = TableSheet(t, [""] * row.seats_per_table)
        else:
            # pas de topologie : tables déduites des affectations
            for seat in assigned:
                sheets.setdefault(seat.table_id, TableSheet(seat.table_id, []))

        for seat, pid in assigned.items():
            sheet = sheets.get(seat.table_id)
            if sheet is None:
                continue
            if seat.seat_index > len(sheet.seats):
                sheet.seats.extend([""] * (seat.seat_index - len(sheet.seats)))
            sheet.seats[seat.seat_index - 1] = names.get(pid, "")

        if engine.rows:
            return list(sheets.values())
        return [sheets[t] for t in sorted(sheets)]

    def by_table_rows(self) -> List[List[str]]:
        """En-tête « 桌号, 座位1..座位N » (N = plus grand nombre de sièges) puis une ligne par table."""
        sheets = self.table_sheets()
        width = max((len(s.seats) for s in sheets), default=0)
        rows = [["桌号", *[f"座位{i + 1}" for i in range(width)]]]
        for sheet in sheets:
            rows.append([sheet.label, *sheet.seats, *[""] * (width - len(sheet.seats))])
        return rows

    # --- fichiers ------------------------------------------------------------
    def export_json(self, output_path: str | Path) -> Path:
        output_path = Path(output_path)
        payload = self._require_engine().to_payload()
        output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        return output_path

    def export_csv_detail(self, output_path: str | Path) -> Path:
        return self._write_csv(output_path, [DETAIL_HEADER, *self.detail_rows()])

    def export_csv_by_table(self, output_path: str | Path) -> Path:
        return self._write_csv(output_path, self.by_table_rows())

    def export_excel(self, output_path: str | Path) -> Path:
        """Classeur : détail par siège, synthèse par table, résumé."""
        engine = self._require_engine()
        output_path = Path(output_path)

        wb = Workbook()
        ws_detail = wb.active
        ws_detail.title = "座位明细"
        ws_detail.append(DETAIL_HEADER)
        for row in self.detail_rows():
            ws_detail.append(row)

        ws_tables = wb.create_sheet("按桌汇总")
        for row in self.by_table_rows():
            ws_tables.append(row)

        bold = Font(bold=True)
        for ws in (ws_detail, ws_tables):
            for cell in ws[1]:
                cell.font = bold
            ws.freeze_panes = "B2"
        wrap_align = Alignment(wrap_text=True, vertical="top")
        for row in ws_tables.iter_rows(min_row=2, min_col=2):
            for cell in row:
                cell.alignment = wrap_align

        # Résumé minimal
        summary = wb.create_sheet("摘要")
        summary.append(["桌数", len(engine.table_ids())])
        summary.append(["座位数", len(engine.seats())])
        summary.append(["人数", len(engine.people)])
        summary.append(["已分配", len(engine.store.assignments())])

        wb.save(output_path)
        return output_path

    def export_pdf(self, output_path: str | Path, title: str = "座位安排") -> Path:
        """
        Génère une version imprimable du plan : un bloc par table listant
        « n. Nom » pour chaque siège, blocs répartis en grille sur des pages A4.
        """
        output_path = Path(output_path)
        self._render_tables(output_path=output_path, title=title, sheets=self.table_sheets())
        return output_path

    # --- helpers ---------------------------------------------------------
    def _require_engine(self) -> SeatingEngine:
        if not self.engine:
            raise RuntimeError("Moteur non fourni pour l'export")
        return self.engine

    def _names_by_id(self) -> Dict[str, str]:
        return {p.id: p.name for p in self._require_engine().people}

    def _write_csv(self, output_path: str | Path, rows: List[List[str]]) -> Path:
        output_path = Path(output_path)
        # BOM pour qu'Excel reconnaisse l'UTF-8
        with open(output_path, "w", newline="", encoding="utf-8-sig") as f:
            csv.writer(f).writerows(rows)
        return output_path

    def _render_tables(self, *, output_path: Path, title: str, sheets: List[TableSheet]) -> None:
        if PDF_FONT not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(UnicodeCIDFont(PDF_FONT))

        c = canvas.Canvas(str(output_path), pagesize=A4)
        page_width, page_height = A4

        margin = 12 * mm
        header_height = 14 * mm
        block_width = 58 * mm
        h_spacing = 5 * mm
        v_spacing = 5 * mm
        line_height = 5 * mm

        cols = max(1, int((page_width - 2 * margin + h_spacing) // (block_width + h_spacing)))
        y_top = page_height - margin - header_height

        def draw_header():
            c.setFillColor(colors.HexColor("#1565c0"))
            c.setFont(PDF_FONT, 16)
            c.drawString(margin, page_height - margin - 8 * mm, title)

        draw_header()
        y = y_top
        for start in range(0, len(sheets), cols):
            chunk = sheets[start:start + cols]
            block_height = (max(len(s.seats) for s in chunk) + 1) * line_height + 4 * mm
            if y - block_height < margin:
                c.showPage()
                draw_header()
                y = y_top
            for col, sheet in enumerate(chunk):
                x = margin + col * (block_width + h_spacing)
                self._draw_table_block(c, x, y, block_width, block_height, line_height, sheet)
            y -= block_height + v_spacing

        if not sheets:
            c.setFillColor(colors.black)
            c.setFont(PDF_FONT, 10)
            c.drawString(margin, y_top, "（无桌位）")
        c.save()

    def _draw_table_block(self, c, x, y, width, height, line_height, sheet: TableSheet) -> None:
        c.saveState()
        c.setStrokeColor(colors.HexColor("#90a4ae"))
        c.roundRect(x, y - height, width, height, radius=2 * mm, stroke=1, fill=0)

        c.setFillColor(colors.black)
        c.setFont(PDF_FONT, 11)
        c.drawString(x + 3 * mm, y - line_height, f"{sheet.label} ({sheet.occupied}/{len(sheet.seats)})")

        c.setFont(PDF_FONT, 9)
        for idx, name in enumerate(sheet.seats):
            line = f"{idx + 1}. {name}" if name else f"{idx + 1}."
            c.drawString(x + 5 * mm, y - (idx + 2) * line_height, line)
        c.restoreState()
