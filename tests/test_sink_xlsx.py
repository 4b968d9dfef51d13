from __future__ import annotations

import sys
import zipfile
from pathlib import Path
from typing import Any

import pytest
import xlsxwriter

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sheetbind.binding import EnumCellValueType, SheetBinder, SpecCellCoordinate  # noqa: E402
from sheetbind.sink import (  # noqa: E402
    SheetSink,
    SheetSinkError,
    SpecAutofitPolicy,
    XlsxSheetSink,
)


@pytest.fixture
def workbook(tmp_path: Path):
    wb = xlsxwriter.Workbook(str(tmp_path / "out.xlsx"))
    yield wb
    if not wb.fileclosed:
        wb.close()


def _cell_kind(sink: XlsxSheetSink, col_idx: int, row_idx: int) -> str | None:
    obj_cell = sink.ws.table.get(row_idx - 1, {}).get(col_idx)
    return None if obj_cell is None else type(obj_cell).__name__


def test_sink_registers_worksheet_and_satisfies_protocol(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook, title="People")
    assert isinstance(cls_sink, SheetSink)
    assert cls_sink.get_title() == "People"
    assert workbook.get_worksheet_by_name("People") is cls_sink.ws


def test_colliding_and_illegal_titles_are_adjusted(workbook) -> None:
    XlsxSheetSink(workbook, title="Data")
    cls_second = XlsxSheetSink(workbook, title="data")
    cls_third = XlsxSheetSink(workbook, title="a/b")
    assert cls_second.get_title() == "data__2"
    assert cls_third.get_title() == "a_b"


def test_default_title_comes_from_workbook(workbook) -> None:
    assert XlsxSheetSink(workbook).get_title() == "Sheet1"


def test_set_title_renames_worksheet(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook, title="Old")
    cls_sink.set_title("New")
    assert cls_sink.get_title() == "New"
    assert workbook.get_worksheet_by_name("New") is cls_sink.ws
    assert workbook.get_worksheet_by_name("Old") is None


def test_renamed_title_is_saved_in_workbook_file(tmp_path: Path) -> None:
    path_out = tmp_path / "renamed.xlsx"
    wb = xlsxwriter.Workbook(str(path_out))
    cls_sink = XlsxSheetSink(wb, title="Old")
    cls_sink.set_cell_value(SpecCellCoordinate(0, 1), "x")
    cls_sink.set_title("New")
    wb.close()

    with zipfile.ZipFile(path_out) as zf:
        v_xml_workbook = zf.read("xl/workbook.xml")
    assert b'name="New"' in v_xml_workbook
    assert b'name="Old"' not in v_xml_workbook


def test_existing_worksheet_must_belong_to_workbook(workbook, tmp_path: Path) -> None:
    wb_other = xlsxwriter.Workbook(str(tmp_path / "other.xlsx"))
    try:
        ws_foreign = wb_other.add_worksheet("Foreign")
        with pytest.raises(ValueError, match="does not belong"):
            XlsxSheetSink(workbook, ws_foreign)
    finally:
        wb_other.close()

    ws_own = workbook.add_worksheet("Own")
    assert XlsxSheetSink(workbook, ws_own).ws is ws_own


def test_typed_writes_use_matching_cell_kinds(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(0, 1), "12", EnumCellValueType.NUMERIC)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(1, 1), 42, EnumCellValueType.STRING)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(2, 1), 1, EnumCellValueType.BOOL)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(3, 1), "=1+1", EnumCellValueType.FORMULA)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(4, 1), None, EnumCellValueType.STRING)

    assert _cell_kind(cls_sink, 0, 1) == "Number"
    assert cls_sink.ws.table[0][0].number == 12.0
    assert _cell_kind(cls_sink, 1, 1) == "String"
    assert _cell_kind(cls_sink, 2, 1) == "Boolean"
    assert _cell_kind(cls_sink, 3, 1) == "Formula"
    # unformatted blanks are not stored by xlsxwriter
    assert _cell_kind(cls_sink, 4, 1) is None


def test_untyped_writes_follow_python_type(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook)
    cls_sink.set_cell_value(SpecCellCoordinate(0, 1), 3.5)
    cls_sink.set_cell_value(SpecCellCoordinate(1, 1), "text")
    cls_sink.set_cell_value(SpecCellCoordinate(2, 1), None)
    assert _cell_kind(cls_sink, 0, 1) == "Number"
    assert _cell_kind(cls_sink, 1, 1) == "String"
    assert _cell_kind(cls_sink, 2, 1) is None


def test_non_numeric_value_in_numeric_column_raises(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook)
    with pytest.raises(SheetSinkError, match="as a number at B3"):
        cls_sink.set_cell_value_typed(
            SpecCellCoordinate(1, 3), "abc", EnumCellValueType.NUMERIC
        )


def test_rejected_write_raises_sink_error(workbook) -> None:
    cls_sink = XlsxSheetSink(workbook)
    with pytest.raises(SheetSinkError):
        cls_sink.set_cell_value_typed(SpecCellCoordinate(0, 1), "", EnumCellValueType.FORMULA)
    with pytest.raises(SheetSinkError):
        cls_sink.set_cell_value(SpecCellCoordinate(0, 0), "x")


def test_column_format_targets_exact_range(workbook, monkeypatch) -> None:
    cls_sink = XlsxSheetSink(workbook)
    l_calls: list[tuple[Any, ...]] = []
    fn_conditional_format = cls_sink.ws.conditional_format

    def _spy(*args: Any) -> int:
        l_calls.append(args)
        return fn_conditional_format(*args)

    monkeypatch.setattr(cls_sink.ws, "conditional_format", _spy)
    cls_sink.set_column_format(2, 2, 5, "0.00")
    cls_sink.set_column_format(3, 2, 5, "0.00")

    assert [_call[:4] for _call in l_calls] == [(1, 2, 4, 2), (1, 3, 4, 3)]
    dict_options = l_calls[0][4]
    assert dict_options["type"] == "formula"
    # one Format object per distinct format code
    assert dict_options["format"] is l_calls[1][4]["format"]


def test_auto_size_width_is_clamped_by_policy(workbook, monkeypatch) -> None:
    cls_sink = XlsxSheetSink(
        workbook,
        autofit_policy=SpecAutofitPolicy(width_cell_min=5, width_cell_max=12, width_cell_padding=1),
    )
    l_calls: list[tuple[Any, ...]] = []
    monkeypatch.setattr(
        cls_sink.ws, "set_column", lambda *args: l_calls.append(args) or 0
    )

    cls_sink.set_cell_value_typed(SpecCellCoordinate(0, 1), "ab", EnumCellValueType.STRING)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(1, 1), "x" * 30, EnumCellValueType.STRING)
    cls_sink.set_cell_value_typed(SpecCellCoordinate(2, 1), "1234567", EnumCellValueType.STRING)
    for _col_idx in range(3):
        cls_sink.set_column_auto_size(_col_idx, True)
    cls_sink.set_column_auto_size(0, False)

    assert l_calls == [(0, 0, 5), (1, 1, 12), (2, 2, 8), (0, 0, None)]
    assert cls_sink.get_estimated_width(1) == 30


def test_estimated_width_counts_wide_glyphs() -> None:
    assert XlsxSheetSink._estimate_width_len("abc") == 3
    assert XlsxSheetSink._estimate_width_len("数据") == 3
    assert XlsxSheetSink._estimate_width_len(12.0) == 2
    assert XlsxSheetSink._estimate_width_len(True) == 4
    assert XlsxSheetSink._estimate_width_len(None) == 0


def test_binder_renders_into_workbook_file(tmp_path: Path) -> None:
    path_out = tmp_path / "people.xlsx"
    wb = xlsxwriter.Workbook(str(path_out))
    cls_sink = XlsxSheetSink(wb, title="People")
    SheetBinder(
        cls_sink,
        columns={"name": "Name", "age": "Age"},
        records=[{"name": "Martin", "age": 40}, {"name": "Anna", "age": "31"}],
        types={"age": "n"},
        formats={"age": "0"},
        if_include_header=True,
        if_auto_size=True,
    ).render()

    assert _cell_kind(cls_sink, 0, 1) == "String"
    assert _cell_kind(cls_sink, 1, 3) == "Number"
    wb.close()
    assert path_out.is_file()
    assert path_out.stat().st_size > 0
