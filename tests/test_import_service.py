import json
from pathlib import Path
import sys

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from seatdesigner.core.errors import MalformedSnapshot
from seatdesigner.domain.models import SeatKey
from seatdesigner.services.engine import SeatingEngine
from seatdesigner.services.import_service import ImportService


def _importer():
    engine = SeatingEngine()
    engine.generate_layout(2, 4, [2])
    return engine, ImportService(engine)


def _names(engine):
    return [p.name for p in engine.people]


def test_import_from_text_splits_and_suffixes_duplicates():
    engine, importer = _importer()

    added = importer.import_from_text("张三\n李四, 王五\n\n张三")

    assert [p.name for p in added] == ["张三", "李四", "王五", "张三(1)"]
    assert _names(engine) == ["张三", "李四", "王五", "张三(1)"]


def test_import_txt_file(tmp_path):
    engine, importer = _importer()
    path = tmp_path / "invites.txt"
    path.write_text("\ufeffAlice\n  Bob  \n\n", encoding="utf-8")

    importer.import_from_file(path)

    assert _names(engine) == ["Alice", "Bob"]


def test_import_csv_takes_every_cell(tmp_path):
    engine, importer = _importer()
    path = tmp_path / "invites.csv"
    path.write_text("Alice,Bob\nChen,\n,Dara\n", encoding="utf-8-sig")

    added = importer.import_from_file(path)

    assert len(added) == 4
    assert _names(engine) == ["Alice", "Bob", "Chen", "Dara"]


def test_import_excel_uses_name_column(tmp_path):
    engine, importer = _importer()
    path = tmp_path / "invites.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Table", "Nom (invité)", "Remarque"])
    ws.append([1, "Élodie", "végétarienne"])
    ws.append([2, None, ""])
    ws.append([2, "Marc", None])
    wb.save(path)

    importer.import_from_file(path)

    assert _names(engine) == ["Élodie", "Marc"]


def test_import_excel_chinese_header(tmp_path):
    engine, importer = _importer()
    path = tmp_path / "名单.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["序号", "姓名"])
    ws.append([1, "赵六"])
    ws.append([2, "钱七"])
    wb.save(path)

    importer.import_from_file(path)

    assert _names(engine) == ["赵六", "钱七"]


def test_import_excel_without_header_reads_first_column(tmp_path):
    engine, importer = _importer()
    path = tmp_path / "sans_entete.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Alice", "x"])
    ws.append(["Bob", "y"])
    wb.save(path)

    importer.import_from_file(path)

    assert _names(engine) == ["Alice", "Bob"]


def test_unsupported_extension_is_rejected(tmp_path):
    _, importer = _importer()
    path = tmp_path / "invites.doc"
    path.write_text("Alice", encoding="utf-8")
    with pytest.raises(ValueError):
        importer.import_from_file(path)


def test_import_layout_json_replaces_state(tmp_path):
    engine, importer = _importer()
    engine.import_names(["Ancien"])
    path = tmp_path / "plan.json"
    path.write_text(json.dumps({
        "people": [{"id": "p_x", "name": "Xia"}],
        "assigned": {"T3-S1": "p_x"},
        "tables": [{"count": 3, "seatsPerTable": 2, "startId": 1}],
        "view": {"pan": {"x": 5, "y": 6}, "scale": 0.5},
    }, ensure_ascii=False), encoding="utf-8")

    importer.import_layout_json(path)

    assert _names(engine) == ["Xia"]
    assert engine.find_seat("p_x") == SeatKey(3, 1)
    assert engine.table_ids() == [1, 2, 3]
    assert engine.view.scale == 0.5


def test_import_layout_json_rejects_invalid_json(tmp_path):
    engine, importer = _importer()
    engine.import_names(["Reste"])
    path = tmp_path / "plan.json"
    path.write_text("{pas du json", encoding="utf-8")

    with pytest.raises(MalformedSnapshot):
        importer.import_layout_json(path)
    assert _names(engine) == ["Reste"]


def test_import_needs_an_engine():
    with pytest.raises(RuntimeError):
        ImportService().import_from_text("Alice")


def test_import_layout_json_rejects_undecodable_bytes(tmp_path):
    engine, importer = _importer()
    engine.import_names(["Reste"])
    path = tmp_path / "plan.json"
    path.write_bytes(b'{"people": [{"id": "p_a", "name": "\xff\xfe"}]}')

    with pytest.raises(MalformedSnapshot):
        importer.import_layout_json(path)
    assert _names(engine) == ["Reste"]
