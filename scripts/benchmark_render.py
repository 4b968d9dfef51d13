from __future__ import annotations

import argparse
import json
import statistics
import sys
import tempfile
import zipfile
from dataclasses import asdict, dataclass
from pathlib import Path
from time import perf_counter

import polars as pl
import xlsxwriter
from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sheetbind.binding import SheetBinder, SpecCellCoordinate  # noqa: E402
from sheetbind.sink import RecordingSink, XlsxSheetSink  # noqa: E402
from sheetbind.sink.base import convert_coordinate_to_a1  # noqa: E402

TUP_SINKS = ("xlsx", "memory")


@dataclass(frozen=True)
class SpecRenderCase:
    name: str
    n_rows: int
    n_cols_numeric: int
    n_cols_text: int
    if_include_header: bool = True


@dataclass(frozen=True)
class SpecRenderTiming:
    sink: str
    case: str
    n_cells: int
    seconds_median: float
    seconds_best: float
    seconds_all: list[float]


DICT_CASES: dict[str, list[SpecRenderCase]] = {
    "small": [
        SpecRenderCase("mixed_tall", n_rows=20_000, n_cols_numeric=6, n_cols_text=2),
        SpecRenderCase(
            "mixed_wide_bare",
            n_rows=5_000,
            n_cols_numeric=20,
            n_cols_text=10,
            if_include_header=False,
        ),
    ],
    "large": [
        SpecRenderCase("mixed_tall", n_rows=200_000, n_cols_numeric=8, n_cols_text=4),
        SpecRenderCase("mixed_wide", n_rows=40_000, n_cols_numeric=40, n_cols_text=20),
    ],
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Time SheetBinder.render() into the xlsx and in-memory sinks.",
    )
    parser.add_argument("--size", choices=tuple(DICT_CASES), default="small")
    parser.add_argument("--sink", choices=(*TUP_SINKS, "all"), default="all")
    parser.add_argument("--repeat", type=int, default=3, help="Measured runs per case.")
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the timings as JSON to this file instead of stdout.",
    )
    return parser.parse_args()


def build_records(case: SpecRenderCase) -> pl.DataFrame:
    """Numeric columns hold floats with every 97th value null; text columns cycle."""
    df = pl.DataFrame({"id": pl.int_range(case.n_rows, eager=True)})
    return df.with_columns(
        *[
            pl.when(pl.col("id") % 97 == 0)
            .then(None)
            .otherwise(pl.col("id") * (_i + 1) / 3.0)
            .alias(f"num_{_i}")
            for _i in range(case.n_cols_numeric)
        ],
        *[
            pl.format("t{}_{}", pl.lit(_i), pl.col("id") % 1_000).alias(f"txt_{_i}")
            for _i in range(case.n_cols_text)
        ],
    )


def render_once(sink_name: str, case: SpecRenderCase, df: pl.DataFrame, path_out: Path) -> float:
    l_cols_num = [_c for _c in df.columns if _c.startswith("num_")]
    dict_binder_kwargs = {
        "columns": {_c: _c.upper() for _c in df.columns},
        "records": df,
        "types": dict.fromkeys(l_cols_num, "n"),
        "formats": dict.fromkeys(l_cols_num, "0.00"),
        "if_include_header": case.if_include_header,
        "if_auto_size": True,
    }

    n_t_start = perf_counter()
    if sink_name == "memory":
        SheetBinder(RecordingSink(case.name), **dict_binder_kwargs).render()
        return perf_counter() - n_t_start

    wb = xlsxwriter.Workbook(str(path_out), {"constant_memory": True})
    try:
        SheetBinder(XlsxSheetSink(wb, title=case.name), **dict_binder_kwargs).render()
    finally:
        wb.close()
    return perf_counter() - n_t_start


def check_sheet_extent(path_out: Path, case: SpecRenderCase, n_cols: int) -> None:
    n_rows = case.n_rows + (1 if case.if_include_header else 0)
    c_cell_last = convert_coordinate_to_a1(SpecCellCoordinate(n_cols - 1, n_rows))
    with zipfile.ZipFile(path_out) as zf:
        v_xml = zf.read("xl/worksheets/sheet1.xml")
    if f'<dimension ref="A1:{c_cell_last}"/>'.encode() not in v_xml:
        raise ValueError(f"{path_out.name}: expected the sheet to end at {c_cell_last}.")


def time_case(sink_name: str, case: SpecRenderCase, repeat: int, path_dir: Path) -> SpecRenderTiming:
    df = build_records(case)
    path_out = path_dir / f"{sink_name}_{case.name}.xlsx"

    # first run warms up polars and xlsxwriter
    render_once(sink_name, case, df, path_out)
    l_seconds = []
    for _ in range(repeat):
        l_seconds.append(render_once(sink_name, case, df, path_out))
        if sink_name == "xlsx":
            check_sheet_extent(path_out, case, df.width)

    logger.info(
        "{} / {}: median {:.3f}s over {} runs",
        sink_name,
        case.name,
        statistics.median(l_seconds),
        repeat,
    )
    return SpecRenderTiming(
        sink=sink_name,
        case=case.name,
        n_cells=df.height * df.width,
        seconds_median=statistics.median(l_seconds),
        seconds_best=min(l_seconds),
        seconds_all=l_seconds,
    )


def main() -> int:
    args = parse_args()
    if args.repeat < 1:
        raise ValueError("--repeat must be >= 1")

    l_sink_names = list(TUP_SINKS) if args.sink == "all" else [args.sink]
    with tempfile.TemporaryDirectory(prefix="sheetbind_bench_") as c_dir_tmp:
        l_timings = [
            time_case(_sink_name, _case, args.repeat, Path(c_dir_tmp))
            for _sink_name in l_sink_names
            for _case in DICT_CASES[args.size]
        ]

    c_json = json.dumps(
        {
            "xlsxwriter": xlsxwriter.__version__,
            "polars": pl.__version__,
            "timings": [asdict(_t) for _t in l_timings],
        },
        indent=2,
    )
    if args.out is None:
        print(c_json)
    else:
        args.out.write_text(c_json + "\n", encoding="utf-8")
        logger.info("Timings written to {}", args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
