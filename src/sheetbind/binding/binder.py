from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, ClassVar, Self

from loguru import logger

from sheetbind.sink.base import SheetSink

from .accessor import classify_record, convert_records
from .columns import ColumnFormatMap, ColumnMap, ColumnTypeMap
from .conf import N_ROW_IDX_HEADER
from .renderer import render_row
from .spec import (
    ColumnKey,
    EnumCellValueType,
    EnumRecordShape,
    SpecCellInstruction,
    SpecColumn,
    SpecColumnAutoSize,
    SpecColumnFormatRange,
    SpecRenderPlan,
    SpecRenderResult,
)


class SheetBinder:
    """
    Bind an ordered set of records to the cells of one sheet.

    The binder owns the column map, the per-column type and format overrides
    and the record set; a :class:`~sheetbind.sink.base.SheetSink` receives the
    resulting writes. Records may be sequences (read by column position),
    mappings (read by column key) or objects (zero-argument method, then
    attribute, named like the column key)::

        from sheetbind.binding import SheetBinder
        from sheetbind.sink import RecordingSink

        binder = SheetBinder(
            RecordingSink("People"),
            columns={"first_name": "First Name", "last_name": "Last Name"},
            records=[{"first_name": "Martin", "last_name": "Hoover"}],
            if_include_header=True,
        )
        sink = binder.render()

    Subclasses may declare defaults as class attributes; each instance gets
    its own copy::

        class PeopleSheet(SheetBinder):
            TITLE = "People"
            COLUMNS = {"name": "Name", "born": "Born"}
            FORMATS = {"born": "yyyy-mm-dd"}
            INCLUDE_HEADER = True

    Parameters
    ----------
    sink:
        Target of every write. Failures raised by the sink propagate unchanged.
    columns:
        ``{key: label}`` mapping, or a sequence of labels (keys 0..N-1).
    records:
        Ordered records, or a polars DataFrame / LazyFrame.
    types:
        ``{key: EnumCellValueType}``; ``None`` values declare an untyped column.
    formats:
        ``{key: number format code}``, applied from the first data row on, never
        to the header row.
    if_include_header:
        Write column labels to row 1 and start data at row 2.
    if_auto_size:
        Mark every column for automatic width sizing after rendering.
    title:
        Sheet title pushed to the sink on construction.
    """

    TITLE: ClassVar[str | None] = None
    COLUMNS: ClassVar[Mapping[ColumnKey, str] | Sequence[str]] = ()
    TYPES: ClassVar[Mapping[ColumnKey, EnumCellValueType | str | None]] = (
        MappingProxyType({})
    )
    FORMATS: ClassVar[Mapping[ColumnKey, str]] = MappingProxyType({})
    INCLUDE_HEADER: ClassVar[bool] = False
    AUTO_SIZE: ClassVar[bool] = False

    def __init__(
        self,
        sink: SheetSink,
        *,
        columns: Mapping[ColumnKey, str] | Sequence[str] | None = None,
        records: Iterable[Any] | None = None,
        types: Mapping[ColumnKey, EnumCellValueType | str | None] | None = None,
        formats: Mapping[ColumnKey, str] | None = None,
        if_include_header: bool | None = None,
        if_auto_size: bool | None = None,
        title: str | None = None,
    ) -> None:
        self.sink = sink
        self._columns = ColumnMap(self.COLUMNS if columns is None else columns)
        self._types = ColumnTypeMap(self.TYPES if types is None else types)
        self._formats = ColumnFormatMap(self.FORMATS if formats is None else formats)
        self._records: list[Any] = []
        if records is not None:
            self.set_records(records)

        self.if_include_header = (
            self.INCLUDE_HEADER if if_include_header is None else bool(if_include_header)
        )
        self.if_auto_size = self.AUTO_SIZE if if_auto_size is None else bool(if_auto_size)
        self.last_result: SpecRenderResult | None = None

        c_title = self.TITLE if title is None else title
        if c_title is not None:
            self.set_title(c_title)

    ############################################################
    # #region Columns
    def set_columns(self, columns: Mapping[ColumnKey, str] | Sequence[str]) -> Self:
        self._columns.replace(columns)
        return self

    def set_column(self, key: ColumnKey, label: str | None) -> Self:
        self._columns.set(key, label)
        return self

    def remove_column(self, key: ColumnKey) -> Self:
        self._columns.remove(key)
        return self

    def get_columns(self) -> dict[ColumnKey, str]:
        return self._columns.to_dict()

    def get_column(self, key: ColumnKey) -> str | None:
        return self._columns.get(key)

    # #endregion
    ############################################################
    # #region Types
    def set_types(
        self, types: Mapping[ColumnKey, EnumCellValueType | str | None]
    ) -> Self:
        self._types.replace(types)
        return self

    def set_type(
        self, key: ColumnKey, value_type: EnumCellValueType | str | None
    ) -> Self:
        self._types.set(key, value_type)
        return self

    def get_types(self) -> dict[ColumnKey, EnumCellValueType]:
        return self._types.to_dict()

    # #endregion
    ############################################################
    # #region Formats
    def set_formats(self, formats: Mapping[ColumnKey, str]) -> Self:
        self._formats.replace(formats)
        return self

    def set_format(self, key: ColumnKey, format_code: str) -> Self:
        self._formats.set(key, format_code)
        return self

    def get_formats(self) -> dict[ColumnKey, str]:
        return self._formats.to_dict()

    # #endregion
    ############################################################
    # #region Records
    def set_records(self, records: Iterable[Any]) -> Self:
        self._records = convert_records(records)
        return self

    def set_record(self, idx: int, record: Any) -> Self:
        """Replace the record at ``idx``; ``idx == len(records)`` appends."""
        if idx == len(self._records):
            self._records.append(record)
        else:
            self._records[idx] = record
        return self

    def append_record(self, record: Any) -> Self:
        self._records.append(record)
        return self

    def get_records(self) -> list[Any]:
        return list(self._records)

    # #endregion
    ############################################################
    # #region Title
    def get_title(self) -> str:
        return self.sink.get_title()

    def set_title(self, title: str) -> Self:
        self.sink.set_title(title)
        return self

    # #endregion
    ############################################################
    # #region Render
    def iter_columns(self) -> tuple[SpecColumn, ...]:
        """Snapshot of the columns as they will be rendered."""
        return self._columns.resolve(self._types, self._formats)

    def plan(self) -> SpecRenderPlan:
        """
        Compute every write of a render pass without touching the sink.

        Returns:
            SpecRenderPlan: Cell instructions in row-major order, the
            per-column format ranges and auto-size flags, and the render result.
        """
        tup_columns = self.iter_columns()
        l_cells: list[SpecCellInstruction] = []

        # header
        if self.if_include_header:
            l_cells.extend(render_row(N_ROW_IDX_HEADER, tup_columns, if_header=True))
            n_offset = N_ROW_IDX_HEADER + 1
        else:
            n_offset = N_ROW_IDX_HEADER

        # data
        n_row_idx = n_offset
        n_rows_data = 0
        n_cnt_unknown_shape = 0
        for _record in self._records:
            cfg_shape = classify_record(_record)
            if cfg_shape is EnumRecordShape.UNKNOWN:
                n_cnt_unknown_shape += 1
            l_cells.extend(render_row(n_row_idx, tup_columns, _record, shape=cfg_shape))
            n_row_idx += 1
            n_rows_data += 1

        # column formats and widths
        l_column_formats: list[SpecColumnFormatRange] = []
        l_column_auto_sizes: list[SpecColumnAutoSize] = []
        for _col_idx, _column in enumerate(tup_columns):
            if _column.format_code is not None:
                # rows [offset, offset + rows_data]; the header row is never covered
                l_column_formats.append(
                    SpecColumnFormatRange(
                        col_idx=_col_idx,
                        row_start=n_offset,
                        row_end=n_offset + n_rows_data,
                        format_code=_column.format_code,
                    )
                )
            if self.if_auto_size:
                l_column_auto_sizes.append(SpecColumnAutoSize(col_idx=_col_idx))

        n_row_idx_last = n_row_idx - 1 if tup_columns else 0
        return SpecRenderPlan(
            cells=tuple(l_cells),
            column_formats=tuple(l_column_formats),
            column_auto_sizes=tuple(l_column_auto_sizes),
            result=SpecRenderResult(
                rows_data=n_rows_data,
                cols=len(tup_columns),
                row_idx_data_start=n_offset,
                row_idx_last=n_row_idx_last,
            ),
            cnt_records_unknown_shape=n_cnt_unknown_shape,
        )

    def apply_plan(self, plan: SpecRenderPlan) -> SheetSink:
        """Send a planned render pass to the sink, in order."""
        for _cell in plan.cells:
            if _cell.value_type is None:
                self.sink.set_cell_value(_cell.coordinate, _cell.value)
            else:
                self.sink.set_cell_value_typed(
                    _cell.coordinate, _cell.value, _cell.value_type
                )

        dict_formats_by_col: dict[int, list[SpecColumnFormatRange]] = {}
        for _rng in plan.column_formats:
            dict_formats_by_col.setdefault(_rng.col_idx, []).append(_rng)
        dict_auto_sizes_by_col = {
            _auto_size.col_idx: _auto_size for _auto_size in plan.column_auto_sizes
        }
        for _col_idx in range(plan.result.cols):
            for _rng in dict_formats_by_col.get(_col_idx, ()):
                self.sink.set_column_format(
                    _rng.col_idx, _rng.row_start, _rng.row_end, _rng.format_code
                )
            if (cfg_auto_size := dict_auto_sizes_by_col.get(_col_idx)) is not None:
                self.sink.set_column_auto_size(
                    cfg_auto_size.col_idx, cfg_auto_size.enabled
                )
        return self.sink

    def render(self) -> SheetSink:
        """
        Render the header (optional) and every record, then apply column
        formats and auto sizing.

        Returns:
            SheetSink: The sink that received the writes.
        """
        plan = self.plan()
        if plan.cnt_records_unknown_shape > 0:
            logger.warning(
                "Records with unrecognized shape rendered as empty rows: count={}, sheet={}",
                plan.cnt_records_unknown_shape,
                self.get_title(),
            )
        logger.debug(
            f"Render [{self.get_title()}]:: rows={plan.result.rows_data}, "
            f"cols={plan.result.cols}, header={self.if_include_header}"
        )
        self.last_result = plan.result
        return self.apply_plan(plan)

    # #endregion
    ############################################################
