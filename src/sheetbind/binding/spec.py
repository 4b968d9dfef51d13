# "Facts/Results/Plans" produced while binding records to a sheet grid.

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NamedTuple, TypeAlias

ColumnKey: TypeAlias = str | int


################################################################################
# #region Enums
class EnumCellValueType(StrEnum):
    # values follow the OOXML cell `t` attribute
    STRING = "s"
    NUMERIC = "n"
    BOOL = "b"
    FORMULA = "f"
    NULL = "null"
    INLINE = "inlineStr"
    ERROR = "e"
    # explicit "no type": forces a plain, untyped write
    UNTYPED = "untyped"


class EnumRecordShape(StrEnum):
    KEYED = "keyed"
    POSITIONAL = "positional"
    DERIVED = "derived"
    UNKNOWN = "unknown"


# #endregion
################################################################################
# #region ColumnSpecification
@dataclass(frozen=True, slots=True)
class SpecColumn:
    key: ColumnKey
    label: str
    value_type: EnumCellValueType | None = None  # None: unset, default applies
    format_code: str | None = None


# #endregion
################################################################################
# #region CellSpecification
class SpecCellCoordinate(NamedTuple):
    col_idx: int  # 0-based
    row_idx: int  # 1-based


@dataclass(frozen=True, slots=True)
class SpecCellInstruction:
    coordinate: SpecCellCoordinate
    value: Any
    value_type: EnumCellValueType | None  # None: untyped write


# #endregion
################################################################################
# #region ColumnPresentation
@dataclass(frozen=True, slots=True)
class SpecColumnFormatRange:
    col_idx: int
    row_start: int  # inclusive, 1-based
    row_end: int  # inclusive, 1-based
    format_code: str


@dataclass(frozen=True, slots=True)
class SpecColumnAutoSize:
    col_idx: int
    enabled: bool = True


# #endregion
################################################################################
# #region RenderSpecification
@dataclass(frozen=True, slots=True)
class SpecRenderResult:
    rows_data: int
    cols: int
    row_idx_data_start: int
    row_idx_last: int  # 0 when nothing was written

    @property
    def is_empty(self) -> bool:
        return self.row_idx_last == 0 or self.cols == 0

    @property
    def coordinate_start(self) -> SpecCellCoordinate | None:
        return None if self.is_empty else SpecCellCoordinate(0, 1)

    @property
    def coordinate_end(self) -> SpecCellCoordinate | None:
        if self.is_empty:
            return None
        return SpecCellCoordinate(self.cols - 1, self.row_idx_last)


@dataclass(frozen=True, slots=True)
class SpecRenderPlan:
    cells: tuple[SpecCellInstruction, ...]
    column_formats: tuple[SpecColumnFormatRange, ...]
    column_auto_sizes: tuple[SpecColumnAutoSize, ...]
    result: SpecRenderResult
    cnt_records_unknown_shape: int = 0


# #endregion
################################################################################
