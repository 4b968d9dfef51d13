from .accessor import classify_record, convert_records, extract_value
from .binder import SheetBinder
from .columns import ColumnFormatMap, ColumnMap, ColumnTypeMap
from .renderer import render_row, resolve_value_type
from .spec import (
    ColumnKey,
    EnumCellValueType,
    EnumRecordShape,
    SpecCellCoordinate,
    SpecCellInstruction,
    SpecColumn,
    SpecColumnAutoSize,
    SpecColumnFormatRange,
    SpecRenderPlan,
    SpecRenderResult,
)

__all__ = [
    "SheetBinder",
    "ColumnMap",
    "ColumnTypeMap",
    "ColumnFormatMap",
    "ColumnKey",
    "EnumCellValueType",
    "EnumRecordShape",
    "SpecCellCoordinate",
    "SpecCellInstruction",
    "SpecColumn",
    "SpecColumnAutoSize",
    "SpecColumnFormatRange",
    "SpecRenderPlan",
    "SpecRenderResult",
    "classify_record",
    "convert_records",
    "extract_value",
    "render_row",
    "resolve_value_type",
]
