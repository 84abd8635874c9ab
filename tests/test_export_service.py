import csv
import json

from openpyxl import load_workbook

from seatdesigner.domain.models import SeatKey
from seatdesigner.services.engine import SeatingEngine
from seatdesigner.services.export_service import DETAIL_HEADER, ExportService


def _engine():
    engine = SeatingEngine()
    engine.generate_layout(3, 2, [2, 1])
    a, b, _ = engine.import_names(["张三", "Bob", "Chen"])
    engine.assign(a.id, SeatKey(1, 2))
    engine.assign(b.id, SeatKey(3, 1))
    return engine


def _read_csv(path):
    with open(path, newline="", encoding="utf-8-sig") as f:
        return list(csv.reader(f))


def test_csv_detail_lists_every_seat(tmp_path):
    exporter = ExportService(_engine())
    path = exporter.export_csv_detail(tmp_path / "detail.csv")

    rows = _read_csv(path)

    assert rows[0] == DETAIL_HEADER
    assert rows[1:] == [
        ["T1", "S1", ""],
        ["T1", "S2", "张三"],
        ["T2", "S1", ""],
        ["T2", "S2", ""],
        ["T3", "S1", "Bob"],
        ["T3", "S2", ""],
    ]
    assert path.read_bytes().startswith(b"\xef\xbb\xbf")


def test_csv_by_table(tmp_path):
    exporter = ExportService(_engine())
    rows = _read_csv(exporter.export_csv_by_table(tmp_path / "tables.csv"))

    assert rows == [
        ["桌号", "座位1", "座位2"],
        ["T1", "", "张三"],
        ["T2", "", ""],
        ["T3", "Bob", ""],
    ]


def test_by_table_pads_to_widest_table():
    engine = SeatingEngine()
    engine.load_payload({
        "people": [{"id": "p_1", "name": "Ana"}],
        "assigned": {"T2-S3": "p_1"},
        "tables": [
            {"count": 1, "seatsPerTable": 1, "startId": 1},
            {"count": 1, "seatsPerTable": 3, "startId": 2},
        ],
    })

    rows = ExportService(engine).by_table_rows()

    assert rows == [["桌号", "座位1", "座位2", "座位3"], ["T1", "", "", ""], ["T2", "", "", "Ana"]]


def test_export_json_matches_engine_payload(tmp_path):
    engine = _engine()
    path = ExportService(engine).export_json(tmp_path / "plan.json")

    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["assigned"] == {"T1-S2": engine.people[0].id, "T3-S1": engine.people[1].id}
    assert [p["name"] for p in payload["people"]] == ["张三", "Bob", "Chen"]
    assert "timestamp" not in payload


def test_export_excel_sheets(tmp_path):
    path = ExportService(_engine()).export_excel(tmp_path / "plan.xlsx")

    wb = load_workbook(path)
    assert wb.sheetnames == ["座位明细", "按桌汇总", "摘要"]
    detail = [list(r) for r in wb["座位明细"].iter_rows(values_only=True)]
    assert detail[0] == DETAIL_HEADER
    assert detail[2] == ["T1", "S2", "张三"]
    summary = {k: v for k, v in wb["摘要"].iter_rows(values_only=True)}
    assert summary == {"桌数": 3, "座位数": 6, "人数": 3, "已分配": 2}


def test_export_pdf(tmp_path):
    path = ExportService(_engine()).export_pdf(tmp_path / "plan.pdf")
    data = path.read_bytes()
    assert data.startswith(b"%PDF")
    assert len(data) > 500


def test_export_pdf_without_tables(tmp_path):
    path = ExportService(SeatingEngine()).export_pdf(tmp_path / "vide.pdf")
    assert path.read_bytes().startswith(b"%PDF")
