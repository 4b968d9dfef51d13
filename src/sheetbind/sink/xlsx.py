import math
from typing import Any

import xlsxwriter
import xlsxwriter.format
import xlsxwriter.worksheet
from loguru import logger

from sheetbind.binding.spec import EnumCellValueType, SpecCellCoordinate

from .base import (
    convert_coordinate_to_a1,
    convert_column_range_to_a1,
    convert_col_idx_to_name,
    create_unique_sheet_name,
    sanitize_sheet_name,
    validate_coordinate,
)
from .conf import DEFAULT_AUTOFIT_POLICY
from .errors import SheetSinkError
from .spec import SpecAutofitPolicy


class XlsxSheetSink:
    """
    Sink writing into one worksheet of an :class:`xlsxwriter.Workbook`.

    The workbook is owned by the caller, who closes it. When no worksheet is
    given, a new one is registered on the workbook::

        import xlsxwriter
        from sheetbind.binding import SheetBinder
        from sheetbind.sink import XlsxSheetSink

        wb = xlsxwriter.Workbook("people.xlsx")
        sink = XlsxSheetSink(wb, title="People")
        SheetBinder(sink, columns={"name": "Name"}, records=rows).render()
        wb.close()

    Parameters
    ----------
    workbook:
        Parent workbook. In ``constant_memory`` mode rows must arrive in
        order, which :class:`SheetBinder` guarantees.
    worksheet:
        Existing worksheet of ``workbook``. If None, one is added.
    title:
        Worksheet name. Sanitized for Excel and bumped (``name__2``) when it
        collides with an existing sheet.
    autofit_policy:
        Width bounds used for auto-sized columns.
    """

    def __init__(
        self,
        workbook: xlsxwriter.Workbook,
        worksheet: xlsxwriter.worksheet.Worksheet | None = None,
        *,
        title: str | None = None,
        autofit_policy: SpecAutofitPolicy | None = None,
    ) -> None:
        self.wb = workbook
        self.autofit_policy = (
            DEFAULT_AUTOFIT_POLICY if autofit_policy is None else autofit_policy
        )
        self._format_cache: dict[str, xlsxwriter.format.Format] = {}
        self._col_widths: dict[int, int] = {}

        if worksheet is None:
            c_sheet_name = (
                None
                if title is None
                else create_unique_sheet_name(
                    sanitize_sheet_name(title), self._collect_sheet_names()
                )
            )
            self.ws = self.wb.add_worksheet(c_sheet_name)
        else:
            if worksheet not in self.wb.worksheets():
                raise ValueError(
                    f"Worksheet {worksheet.get_name()!r} does not belong to the workbook."
                )
            self.ws = worksheet
            if title is not None:
                self.set_title(title)

    def _collect_sheet_names(self, *, exclude_self: bool = False) -> set[str]:
        return {
            _ws.get_name()
            for _ws in self.wb.worksheets()
            if not (exclude_self and _ws is getattr(self, "ws", None))
        }

    def _create_format_cached(self, format_code: str) -> xlsxwriter.format.Format:
        fmt = self._format_cache.get(format_code)
        if fmt is None:
            fmt = self.wb.add_format({"num_format": format_code})
            self._format_cache[format_code] = fmt
        return fmt

    @staticmethod
    def _estimate_width_len(value: Any) -> int:
        """Estimate display string length for column width calculation.

        Notes
        -----
        - Excel column width is not strictly character count; this is a pragmatic
          heuristic good enough for most reports.
        - Non-ASCII characters are counted as 1.6 to approximate wide glyphs.
        """
        if value is None:
            return 0
        if isinstance(value, bool):
            return len("FALSE") if not value else len("TRUE")
        if isinstance(value, float):
            if not math.isfinite(value):
                return len(str(value))
            if value.is_integer():
                return len(str(int(value)))

        s = str(value)
        n_ascii = sum(1 for _chr in s if ord(_chr) < 128)
        n_non_ascii = len(s) - n_ascii
        return n_ascii + int(1.6 * n_non_ascii)

    def _track_width(self, col_idx: int, value: Any) -> None:
        n_len = self._estimate_width_len(value)
        if n_len > self._col_widths.get(col_idx, 0):
            self._col_widths[col_idx] = n_len

    @staticmethod
    def _check_return_code(rc: int, action: str, coordinate: str) -> None:
        if rc == -1:
            raise SheetSinkError(f"xlsxwriter rejected {action} at {coordinate}.")
        if rc == -2:
            raise SheetSinkError(
                f"xlsxwriter truncated or rejected the value of {action} at {coordinate}."
            )

    ############################################################
    # #region SheetSink
    def set_cell_value(self, coordinate: SpecCellCoordinate, value: Any) -> None:
        col_idx, row_idx = validate_coordinate(coordinate)
        if value is None:
            # nothing to store for an unformatted blank
            return
        rc = self.ws.write(row_idx - 1, col_idx, value)
        self._check_return_code(rc, "write", convert_coordinate_to_a1(coordinate))
        self._track_width(col_idx, value)

    def set_cell_value_typed(
        self,
        coordinate: SpecCellCoordinate,
        value: Any,
        value_type: EnumCellValueType,
    ) -> None:
        col_idx, row_idx = validate_coordinate(coordinate)
        cfg_value_type = EnumCellValueType(value_type)
        if cfg_value_type is EnumCellValueType.UNTYPED:
            self.set_cell_value(coordinate, value)
            return

        n_row, n_col = row_idx - 1, col_idx
        if value is None or cfg_value_type is EnumCellValueType.NULL:
            # xlsxwriter skips unformatted blanks
            rc = self.ws.write_blank(n_row, n_col, None)
            self._check_return_code(
                rc, "write_blank", convert_coordinate_to_a1(coordinate)
            )
            return

        obj_written: Any
        if cfg_value_type is EnumCellValueType.NUMERIC:
            obj_written = _convert_number(value, coordinate)
            rc = self.ws.write_number(n_row, n_col, obj_written)
        elif cfg_value_type is EnumCellValueType.BOOL:
            obj_written = bool(value)
            rc = self.ws.write_boolean(n_row, n_col, obj_written)
        elif cfg_value_type is EnumCellValueType.FORMULA:
            obj_written = str(value)
            rc = self.ws.write_formula(n_row, n_col, obj_written)
        else:
            # STRING, INLINE, ERROR: stored as text
            obj_written = str(value)
            rc = self.ws.write_string(n_row, n_col, obj_written)

        self._check_return_code(
            rc, f"{cfg_value_type.name} write", convert_coordinate_to_a1(coordinate)
        )
        if cfg_value_type is not EnumCellValueType.FORMULA:
            self._track_width(col_idx, obj_written)

    def set_column_format(
        self, col_idx: int, row_start: int, row_end: int, format_code: str
    ) -> None:
        """
        Apply ``format_code`` to the cells of one column between two rows.

        xlsxwriter cannot restyle cells already written, so the number format
        is attached through an always-true formula conditional format scoped
        to exactly this range.
        """
        c_range = convert_column_range_to_a1(col_idx, row_start, row_end)
        rc = self.ws.conditional_format(
            row_start - 1,
            col_idx,
            row_end - 1,
            col_idx,
            {
                "type": "formula",
                "criteria": "=TRUE",
                "format": self._create_format_cached(format_code),
            },
        )
        if rc not in (0, None):
            raise SheetSinkError(
                f"xlsxwriter rejected format {format_code!r} over {c_range} (rc={rc})."
            )

    def set_column_auto_size(self, col_idx: int, enabled: bool) -> None:
        c_col_name = convert_col_idx_to_name(col_idx)
        if enabled:
            n_min = max(1, int(self.autofit_policy.width_cell_min))
            n_max = min(255, max(n_min, int(self.autofit_policy.width_cell_max)))
            n_pad = max(0, int(self.autofit_policy.width_cell_padding))
            n_width: float | None = min(
                n_max, max(n_min, self._col_widths.get(col_idx, 0) + n_pad)
            )
        else:
            n_width = None
        rc = self.ws.set_column(col_idx, col_idx, n_width)
        if rc == -1:
            raise SheetSinkError(f"xlsxwriter rejected width of column {c_col_name}.")

    def get_title(self) -> str:
        return self.ws.get_name()

    def set_title(self, title: str) -> None:
        c_name_old = self.ws.get_name()
        c_name = create_unique_sheet_name(
            sanitize_sheet_name(title), self._collect_sheet_names(exclude_self=True)
        )
        if c_name != title:
            logger.warning("Sheet title adjusted: {!r} -> {!r}", title, c_name)
        if c_name == c_name_old:
            return
        # xlsxwriter has no rename API; relies on Workbook.sheetnames and
        # Worksheet.name, both read again when the workbook is closed
        self.wb.sheetnames.pop(c_name_old, None)
        self.ws.name = c_name
        self.wb.sheetnames[c_name] = self.ws

    # #endregion
    ############################################################

    def get_estimated_width(self, col_idx: int) -> int:
        return self._col_widths.get(col_idx, 0)


def _convert_number(value: Any, coordinate: SpecCellCoordinate) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, bool):
        return int(value)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise SheetSinkError(
            f"Cannot write {value!r} as a number at {convert_coordinate_to_a1(coordinate)}."
        ) from e
