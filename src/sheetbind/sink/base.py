from typing import Any, Protocol, runtime_checkable

from xlsxwriter.utility import xl_col_to_name, xl_range, xl_rowcol_to_cell

from sheetbind.binding.spec import EnumCellValueType, SpecCellCoordinate

from .conf import (
    C_SHEET_NAME_DEFAULT,
    N_LEN_EXCEL_SHEET_NAME_MAX,
    N_NCOLS_EXCEL_MAX,
    N_NROWS_EXCEL_MAX,
    TUP_EXCEL_ILLEGAL,
)
from .errors import SheetSinkError


@runtime_checkable
class SheetSink(Protocol):
    """
    Narrow write interface a :class:`~sheetbind.binding.binder.SheetBinder`
    renders into.

    Coordinate semantics
    --------------------
    ``col_idx`` is 0-based and ``row_idx`` is 1-based; each sink translates
    them to its native addressing. Failures are raised, never swallowed.
    """

    def set_cell_value(self, coordinate: SpecCellCoordinate, value: Any) -> None: ...

    def set_cell_value_typed(
        self,
        coordinate: SpecCellCoordinate,
        value: Any,
        value_type: EnumCellValueType,
    ) -> None: ...

    def set_column_format(
        self, col_idx: int, row_start: int, row_end: int, format_code: str
    ) -> None: ...

    def set_column_auto_size(self, col_idx: int, enabled: bool) -> None: ...

    def get_title(self) -> str: ...

    def set_title(self, title: str) -> None: ...


################################################################################
# #region CoordinateTranslation


def validate_coordinate(coordinate: SpecCellCoordinate) -> SpecCellCoordinate:
    col_idx, row_idx = coordinate
    if not 0 <= col_idx < N_NCOLS_EXCEL_MAX:
        raise SheetSinkError(
            f"Column index out of worksheet bounds: {col_idx} "
            f"(expected 0 <= col_idx < {N_NCOLS_EXCEL_MAX})."
        )
    if not 1 <= row_idx <= N_NROWS_EXCEL_MAX:
        raise SheetSinkError(
            f"Row index out of worksheet bounds: {row_idx} "
            f"(expected 1 <= row_idx <= {N_NROWS_EXCEL_MAX})."
        )
    return SpecCellCoordinate(col_idx, row_idx)


def convert_coordinate_to_a1(coordinate: SpecCellCoordinate) -> str:
    """``SpecCellCoordinate(0, 1)`` -> ``"A1"``."""
    col_idx, row_idx = validate_coordinate(coordinate)
    return xl_rowcol_to_cell(row_idx - 1, col_idx)


def convert_col_idx_to_name(col_idx: int) -> str:
    """``0`` -> ``"A"``, ``27`` -> ``"AB"``."""
    validate_coordinate(SpecCellCoordinate(col_idx, 1))
    return xl_col_to_name(col_idx)


def convert_column_range_to_a1(col_idx: int, row_start: int, row_end: int) -> str:
    """Column range in A1 notation, e.g. ``(1, 2, 5)`` -> ``"B2:B5"``."""
    validate_coordinate(SpecCellCoordinate(col_idx, row_start))
    validate_coordinate(SpecCellCoordinate(col_idx, row_end))
    if row_end < row_start:
        raise SheetSinkError(
            f"Row range is reversed for column {col_idx}: {row_start} > {row_end}."
        )
    return xl_range(row_start - 1, col_idx, row_end - 1, col_idx)


# #endregion
################################################################################
# #region SheetNames


def sanitize_sheet_name(name: str, *, replace_to: str = "_") -> str:
    for ch in TUP_EXCEL_ILLEGAL:
        name = name.replace(ch, replace_to)
    name = name.strip().strip("'") or C_SHEET_NAME_DEFAULT
    return name[:N_LEN_EXCEL_SHEET_NAME_MAX]


def create_unique_sheet_name(name: str, names_existing: set[str]) -> str:
    """Bump ``name`` deterministically (``name__2``, ``name__3`` ...) until unique.

    Comparison is case-insensitive, like Excel.
    """
    set_names_lower = {_n.lower() for _n in names_existing}
    if name.lower() not in set_names_lower:
        return name

    c_base_name = name[: max(1, N_LEN_EXCEL_SHEET_NAME_MAX - 3)]
    i = 2
    c_candidate_name = f"{c_base_name}__{i}"[:N_LEN_EXCEL_SHEET_NAME_MAX]
    while c_candidate_name.lower() in set_names_lower:
        i += 1
        c_candidate_name = f"{c_base_name}__{i}"[:N_LEN_EXCEL_SHEET_NAME_MAX]
    return c_candidate_name


# #endregion
################################################################################
