from collections.abc import Sequence
from typing import Any

from .accessor import classify_record, extract_value
from .conf import DEFAULT_HEADER_VALUE_TYPE, DEFAULT_VALUE_TYPE
from .spec import (
    EnumCellValueType,
    EnumRecordShape,
    SpecCellCoordinate,
    SpecCellInstruction,
    SpecColumn,
)


def resolve_value_type(
    column: SpecColumn, *, if_header: bool
) -> EnumCellValueType | None:
    """
    Header cells are always written as strings. Data cells use the declared
    type, falling back to the default string type when unset; an explicit
    ``UNTYPED`` declaration resolves to ``None`` (plain write).
    """
    if if_header:
        return DEFAULT_HEADER_VALUE_TYPE
    cfg_value_type = (
        DEFAULT_VALUE_TYPE if column.value_type is None else column.value_type
    )
    if cfg_value_type is EnumCellValueType.UNTYPED:
        return None
    return cfg_value_type


def render_row(
    row_idx: int,
    columns: Sequence[SpecColumn],
    record: Any = None,
    *,
    if_header: bool = False,
    shape: EnumRecordShape | None = None,
) -> tuple[SpecCellInstruction, ...]:
    """
    Render one logical row into cell instructions, one per column in order.

    Args:
        row_idx (int): Target row (1-based).
        columns (Sequence[SpecColumn]): Resolved columns, in physical order.
        record (Any, optional): The data record. Ignored for header rows.
            Defaults to None.
        if_header (bool, optional): Render column labels instead of record
            values. Defaults to False.
        shape (EnumRecordShape | None, optional): Pre-computed shape of
            ``record``. Defaults to None.

    Returns:
        tuple[SpecCellInstruction, ...]: Exactly ``len(columns)`` instructions.
    """
    if row_idx < 1:
        raise ValueError(f"row_idx must be >= 1, got {row_idx}.")

    if not if_header and shape is None:
        shape = classify_record(record)

    l_cells: list[SpecCellInstruction] = []
    for _col_idx, _column in enumerate(columns):
        if if_header:
            obj_value: Any = _column.label
        else:
            obj_value = extract_value(
                record, _column.key, position=_col_idx, shape=shape
            )
        l_cells.append(
            SpecCellInstruction(
                coordinate=SpecCellCoordinate(_col_idx, row_idx),
                value=obj_value,
                value_type=resolve_value_type(_column, if_header=if_header),
            )
        )
    return tuple(l_cells)
