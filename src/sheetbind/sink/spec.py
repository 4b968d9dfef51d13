# "Facts/Results/Plans" recorded by spreadsheet sinks.

from dataclasses import dataclass
from typing import Any

from sheetbind.binding.spec import EnumCellValueType


@dataclass(frozen=True, slots=True)
class SpecAutofitPolicy:
    width_cell_min: int = 8
    width_cell_max: int = 60
    width_cell_padding: int = 2


@dataclass(frozen=True, slots=True)
class SpecSinkCall:
    method: str
    args: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class SpecCellWrite:
    value: Any
    value_type: EnumCellValueType | None  # None: untyped write
