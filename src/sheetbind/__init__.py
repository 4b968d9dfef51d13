from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version
from types import ModuleType
from typing import TYPE_CHECKING, Any

__all__ = [
    "__version__",
    "binding",
    "sink",
]

try:
    __version__ = version("sheetbind")
except PackageNotFoundError:
    __version__ = "0.0.0"

if TYPE_CHECKING:
    import sheetbind.binding as binding
    import sheetbind.sink as sink

_ALIAS_MODULES: dict[str, str] = {
    "binding": "sheetbind.binding",
    "sink": "sheetbind.sink",
}


def __getattr__(name: str) -> Any:
    module_name = _ALIAS_MODULES.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_loaded: ModuleType = import_module(module_name)
    globals()[name] = module_loaded
    return module_loaded


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
