from __future__ import annotations

import sys
from pathlib import Path

import polars as pl
import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sheetbind.binding.spec import EnumCellValueType, SpecCellCoordinate  # noqa: E402
from sheetbind.sink import RecordingSink, SheetSink, SheetSinkError  # noqa: E402
from sheetbind.sink.base import (  # noqa: E402
    convert_coordinate_to_a1,
    convert_column_range_to_a1,
    create_unique_sheet_name,
    sanitize_sheet_name,
)
from sheetbind.sink.spec import SpecSinkCall  # noqa: E402


def test_recording_sink_satisfies_protocol() -> None:
    assert isinstance(RecordingSink(), SheetSink)


def test_call_log_keeps_order_and_arguments() -> None:
    cls_sink = RecordingSink()
    cls_sink.set_cell_value_typed(SpecCellCoordinate(0, 1), "Name", "s")
    cls_sink.set_cell_value(SpecCellCoordinate(1, 1), 2.5)
    cls_sink.set_column_format(1, 2, 3, "0.00")
    cls_sink.set_column_auto_size(1, True)

    assert cls_sink.calls == [
        SpecSinkCall(
            "set_cell_value_typed",
            (SpecCellCoordinate(0, 1), "Name", EnumCellValueType.STRING),
        ),
        SpecSinkCall("set_cell_value", (SpecCellCoordinate(1, 1), 2.5)),
        SpecSinkCall("set_column_format", (1, 2, 3, "0.00")),
        SpecSinkCall("set_column_auto_size", (1, True)),
    ]


def test_to_rows_fills_unwritten_cells_with_none() -> None:
    cls_sink = RecordingSink()
    cls_sink.set_cell_value(SpecCellCoordinate(2, 2), "x")
    assert cls_sink.width == 3
    assert cls_sink.height == 2
    assert cls_sink.to_rows() == [[None, None, None], [None, None, "x"]]


def test_last_write_wins_per_cell() -> None:
    cls_sink = RecordingSink()
    cls_sink.set_cell_value(SpecCellCoordinate(0, 1), "old")
    cls_sink.set_cell_value_typed(SpecCellCoordinate(0, 1), 7, EnumCellValueType.NUMERIC)
    assert cls_sink.get_value(0, 1) == 7
    assert cls_sink.get_cell(0, 1).value_type is EnumCellValueType.NUMERIC


def test_format_code_lookup_respects_row_range() -> None:
    cls_sink = RecordingSink()
    cls_sink.set_column_format(0, 2, 4, "0.0")
    assert cls_sink.get_format_code(0, 1) is None
    assert cls_sink.get_format_code(0, 2) == "0.0"
    assert cls_sink.get_format_code(0, 4) == "0.0"
    assert cls_sink.get_format_code(0, 5) is None
    assert cls_sink.get_format_code(1, 3) is None


@pytest.mark.parametrize(
    "coordinate",
    [SpecCellCoordinate(-1, 1), SpecCellCoordinate(0, 0), SpecCellCoordinate(16_384, 1)],
)
def test_out_of_bounds_coordinates_raise(coordinate: SpecCellCoordinate) -> None:
    with pytest.raises(SheetSinkError):
        RecordingSink().set_cell_value(coordinate, 1)


def test_reversed_format_range_raises() -> None:
    with pytest.raises(SheetSinkError, match="reversed"):
        RecordingSink().set_column_format(0, 5, 2, "0")


def test_unknown_value_type_raises() -> None:
    with pytest.raises(ValueError):
        RecordingSink().set_cell_value_typed(SpecCellCoordinate(0, 1), 1, "date")


def test_to_polars_with_letters_and_with_header() -> None:
    cls_sink = RecordingSink()
    for _col_idx, _label in enumerate(["Name", "Qty", "Price"]):
        cls_sink.set_cell_value(SpecCellCoordinate(_col_idx, 1), _label)
    cls_sink.set_cell_value(SpecCellCoordinate(0, 2), "a")
    cls_sink.set_cell_value(SpecCellCoordinate(1, 2), 3)
    cls_sink.set_cell_value(SpecCellCoordinate(2, 2), 1)
    cls_sink.set_cell_value(SpecCellCoordinate(0, 3), "b")
    cls_sink.set_cell_value(SpecCellCoordinate(2, 3), 2.5)

    df = cls_sink.to_polars(if_header=True)
    assert df.columns == ["Name", "Qty", "Price"]
    assert df["Name"].to_list() == ["a", "b"]
    assert df["Qty"].to_list() == [3, None]
    assert df["Price"].dtype == pl.Float64
    assert df["Price"].to_list() == [1.0, 2.5]

    df_raw = cls_sink.to_polars()
    assert df_raw.columns == ["A", "B", "C"]
    assert df_raw.height == 3
    # header text mixed with numbers falls back to strings
    assert df_raw["B"].to_list() == ["Qty", "3", None]


def test_to_polars_rejects_duplicate_header_names() -> None:
    cls_sink = RecordingSink()
    cls_sink.set_cell_value(SpecCellCoordinate(0, 1), "x")
    cls_sink.set_cell_value(SpecCellCoordinate(1, 1), "x")
    with pytest.raises(ValueError, match="Duplicate column names"):
        cls_sink.to_polars(if_header=True)


def test_title_is_sanitized() -> None:
    cls_sink = RecordingSink("a/b")
    assert cls_sink.get_title() == "a_b"
    cls_sink.set_title("x" * 40)
    assert cls_sink.get_title() == "x" * 31
    cls_sink.set_title("   ")
    assert cls_sink.get_title() == "Sheet"


def test_sheet_name_helpers() -> None:
    assert sanitize_sheet_name("Q1:[draft]") == "Q1__draft_"
    assert create_unique_sheet_name("Data", {"data"}) == "Data__2"
    assert create_unique_sheet_name("Data", {"Data", "Data__2"}) == "Data__3"
    assert create_unique_sheet_name("Other", {"Data"}) == "Other"


def test_a1_helpers() -> None:
    assert convert_coordinate_to_a1(SpecCellCoordinate(0, 1)) == "A1"
    assert convert_coordinate_to_a1(SpecCellCoordinate(27, 10)) == "AB10"
    assert convert_column_range_to_a1(1, 2, 5) == "B2:B5"
    assert convert_column_range_to_a1(0, 3, 3) == "A3"
