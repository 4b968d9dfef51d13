from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sheetbind.binding.renderer import render_row, resolve_value_type  # noqa: E402
from sheetbind.binding.spec import (  # noqa: E402
    EnumCellValueType,
    SpecCellCoordinate,
    SpecCellInstruction,
    SpecColumn,
)

TUP_COLUMNS = (
    SpecColumn(key="first_name", label="First Name"),
    SpecColumn(key="age", label="Age", value_type=EnumCellValueType.NUMERIC),
    SpecColumn(key="raw", label="Raw", value_type=EnumCellValueType.UNTYPED),
)


def test_header_row_writes_labels_as_strings() -> None:
    tup_cells = render_row(1, TUP_COLUMNS, if_header=True)
    assert tup_cells == (
        SpecCellInstruction(SpecCellCoordinate(0, 1), "First Name", EnumCellValueType.STRING),
        SpecCellInstruction(SpecCellCoordinate(1, 1), "Age", EnumCellValueType.STRING),
        SpecCellInstruction(SpecCellCoordinate(2, 1), "Raw", EnumCellValueType.STRING),
    )


def test_data_row_resolves_declared_default_and_untyped() -> None:
    tup_cells = render_row(4, TUP_COLUMNS, {"first_name": "Anna", "age": 31, "raw": 1.5})
    assert [_c.value for _c in tup_cells] == ["Anna", 31, 1.5]
    assert [_c.value_type for _c in tup_cells] == [
        EnumCellValueType.STRING,
        EnumCellValueType.NUMERIC,
        None,
    ]
    assert [_c.coordinate for _c in tup_cells] == [
        SpecCellCoordinate(0, 4),
        SpecCellCoordinate(1, 4),
        SpecCellCoordinate(2, 4),
    ]


def test_one_instruction_per_column_even_when_values_are_missing() -> None:
    tup_cells = render_row(2, TUP_COLUMNS, {})
    assert len(tup_cells) == len(TUP_COLUMNS)
    assert all(_c.value is None for _c in tup_cells)


def test_unknown_record_shape_renders_absent_values() -> None:
    tup_cells = render_row(2, TUP_COLUMNS, 12345)
    assert [_c.value for _c in tup_cells] == [None, None, None]


def test_positional_record_follows_column_order() -> None:
    tup_cells = render_row(2, TUP_COLUMNS, ("Martin", 40))
    assert [_c.value for _c in tup_cells] == ["Martin", 40, None]


def test_no_columns_renders_nothing() -> None:
    assert render_row(1, (), {"a": 1}) == ()


def test_row_index_must_be_one_based() -> None:
    with pytest.raises(ValueError):
        render_row(0, TUP_COLUMNS, {})


def test_resolve_value_type_header_ignores_declared_type() -> None:
    assert (
        resolve_value_type(TUP_COLUMNS[1], if_header=True) is EnumCellValueType.STRING
    )
    assert resolve_value_type(TUP_COLUMNS[2], if_header=True) is EnumCellValueType.STRING
    assert resolve_value_type(TUP_COLUMNS[2], if_header=False) is None
