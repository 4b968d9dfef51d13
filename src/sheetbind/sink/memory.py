from collections import defaultdict
from typing import Any

import polars as pl
from loguru import logger

from sheetbind.binding.spec import (
    EnumCellValueType,
    SpecCellCoordinate,
    SpecColumnFormatRange,
)

from .base import (
    convert_col_idx_to_name,
    convert_column_range_to_a1,
    sanitize_sheet_name,
    validate_coordinate,
)
from .conf import C_SHEET_NAME_DEFAULT
from .spec import SpecCellWrite, SpecSinkCall


class RecordingSink:
    """
    In-memory sink that keeps every instruction it receives.

    Useful for previews, for asserting on rendered output, and for handing the
    rendered grid to polars::

        sink = RecordingSink("People")
        SheetBinder(sink, columns=..., records=..., if_include_header=True).render()
        df = sink.to_polars(if_header=True)

    Attributes
    ----------
    calls:
        Ordered log of every call, as ``SpecSinkCall(method, args)``.
    cells:
        Last write per coordinate.
    column_formats:
        Format ranges applied per column index, in call order.
    column_auto_sizes:
        Auto-size flag per column index.
    """

    def __init__(self, title: str = C_SHEET_NAME_DEFAULT) -> None:
        self.calls: list[SpecSinkCall] = []
        self.cells: dict[SpecCellCoordinate, SpecCellWrite] = {}
        self.column_formats: defaultdict[int, list[SpecColumnFormatRange]] = (
            defaultdict(list)
        )
        self.column_auto_sizes: dict[int, bool] = {}
        self._title = sanitize_sheet_name(title)

    def _log(self, method: str, *args: Any) -> None:
        self.calls.append(SpecSinkCall(method=method, args=args))

    ############################################################
    # #region SheetSink
    def set_cell_value(self, coordinate: SpecCellCoordinate, value: Any) -> None:
        cfg_coordinate = validate_coordinate(coordinate)
        self._log("set_cell_value", cfg_coordinate, value)
        self.cells[cfg_coordinate] = SpecCellWrite(value=value, value_type=None)

    def set_cell_value_typed(
        self,
        coordinate: SpecCellCoordinate,
        value: Any,
        value_type: EnumCellValueType,
    ) -> None:
        cfg_coordinate = validate_coordinate(coordinate)
        cfg_value_type = EnumCellValueType(value_type)
        self._log("set_cell_value_typed", cfg_coordinate, value, cfg_value_type)
        self.cells[cfg_coordinate] = SpecCellWrite(
            value=value, value_type=cfg_value_type
        )

    def set_column_format(
        self, col_idx: int, row_start: int, row_end: int, format_code: str
    ) -> None:
        # validates bounds and ordering
        convert_column_range_to_a1(col_idx, row_start, row_end)
        self._log("set_column_format", col_idx, row_start, row_end, format_code)
        self.column_formats[col_idx].append(
            SpecColumnFormatRange(
                col_idx=col_idx,
                row_start=row_start,
                row_end=row_end,
                format_code=format_code,
            )
        )

    def set_column_auto_size(self, col_idx: int, enabled: bool) -> None:
        convert_col_idx_to_name(col_idx)
        self._log("set_column_auto_size", col_idx, bool(enabled))
        self.column_auto_sizes[col_idx] = bool(enabled)

    def get_title(self) -> str:
        return self._title

    def set_title(self, title: str) -> None:
        c_title = sanitize_sheet_name(title)
        if c_title != title:
            logger.warning("Sheet title sanitized: {!r} -> {!r}", title, c_title)
        self._log("set_title", c_title)
        self._title = c_title

    # #endregion
    ############################################################
    # #region Inspection
    def get_cell(self, col_idx: int, row_idx: int) -> SpecCellWrite | None:
        return self.cells.get(SpecCellCoordinate(col_idx, row_idx))

    def get_value(self, col_idx: int, row_idx: int) -> Any:
        cfg_cell = self.get_cell(col_idx, row_idx)
        return None if cfg_cell is None else cfg_cell.value

    def get_format_code(self, col_idx: int, row_idx: int) -> str | None:
        """Return the last format applied to the cell, if any range covers it."""
        c_format_code = None
        for _rng in self.column_formats.get(col_idx, ()):
            if _rng.row_start <= row_idx <= _rng.row_end:
                c_format_code = _rng.format_code
        return c_format_code

    @property
    def width(self) -> int:
        return 1 + max((_c.col_idx for _c in self.cells), default=-1)

    @property
    def height(self) -> int:
        return max((_c.row_idx for _c in self.cells), default=0)

    def to_rows(self) -> list[list[Any]]:
        """Dense grid from row 1 and column A; unwritten cells are ``None``."""
        return [
            [self.get_value(_col_idx, _row_idx) for _col_idx in range(self.width)]
            for _row_idx in range(1, self.height + 1)
        ]

    def to_polars(self, *, if_header: bool = False) -> pl.DataFrame:
        """
        Export the written grid as a polars DataFrame.

        Args:
            if_header (bool, optional): Use the first row as column names.
                Otherwise columns are named by their letters (A, B, ...).
                Defaults to False.

        Returns:
            pl.DataFrame: One column per sheet column. Columns with mixed value
            types (other than int/float) are written as strings.
        """
        l_rows = self.to_rows()
        n_width = self.width
        if if_header and l_rows:
            l_names = ["" if _v is None else str(_v) for _v in l_rows[0]]
            l_rows = l_rows[1:]
        else:
            l_names = [convert_col_idx_to_name(_i) for _i in range(n_width)]
        _validate_unique_names(l_names)

        return pl.DataFrame(
            [
                _build_series(_name, [_row[_col_idx] for _row in l_rows])
                for _col_idx, _name in enumerate(l_names)
            ]
        )

    # #endregion
    ############################################################


def _validate_unique_names(names: list[str]) -> None:
    # fast path: no duplicates
    if len(names) == len(set(names)):
        return

    dict_pos: dict[str, list[int]] = defaultdict(list)
    for _idx, _val in enumerate(names):
        dict_pos[_val].append(_idx)
    c_msg = "; ".join(
        f"{c_name!r} x{len(l_pos)} at indices {l_pos}"
        for c_name, l_pos in dict_pos.items()
        if len(l_pos) > 1
    )
    raise ValueError(f"Duplicate column names detected: {c_msg}")


def _build_series(name: str, values: list[Any]) -> pl.Series:
    set_types = {type(_v) for _v in values if _v is not None}
    if set_types == {int, float}:
        return pl.Series(
            name, [None if _v is None else float(_v) for _v in values], pl.Float64
        )
    if len(set_types) <= 1:
        return pl.Series(name, values, strict=False)
    return pl.Series(
        name, [None if _v is None else str(_v) for _v in values], pl.String
    )
