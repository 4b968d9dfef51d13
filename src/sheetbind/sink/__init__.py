from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "SheetSink",
    "SheetSinkError",
    "RecordingSink",
    "XlsxSheetSink",
    "SpecAutofitPolicy",
]

if TYPE_CHECKING:
    from .base import SheetSink
    from .errors import SheetSinkError
    from .memory import RecordingSink
    from .spec import SpecAutofitPolicy
    from .xlsx import XlsxSheetSink

_ALIAS_ATTRS: dict[str, str] = {
    "SheetSink": ".base",
    "SheetSinkError": ".errors",
    "RecordingSink": ".memory",
    "XlsxSheetSink": ".xlsx",
    "SpecAutofitPolicy": ".spec",
}


def __getattr__(name: str) -> Any:
    module_name = _ALIAS_ATTRS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    attr_loaded = getattr(import_module(module_name, package=__name__), name)
    globals()[name] = attr_loaded
    return attr_loaded


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
