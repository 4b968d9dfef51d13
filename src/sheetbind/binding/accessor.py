import inspect
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import polars as pl

from .spec import ColumnKey, EnumRecordShape

_TUP_SCALAR_TYPES: tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    memoryview,
    bool,
    int,
    float,
    complex,
)

################################################################################
# #region ShapeClassification


def classify_record(record: Any) -> EnumRecordShape:
    """
    Decide how values are read from one record.

    Precedence:
        1. ``None`` and scalars (str/bytes/numbers) -> UNKNOWN
        2. ``Mapping`` -> KEYED
        3. named tuples -> DERIVED (fields are addressed by name)
        4. other ``Sequence`` -> POSITIONAL
        5. any other object -> DERIVED
    """
    if record is None or isinstance(record, _TUP_SCALAR_TYPES):
        return EnumRecordShape.UNKNOWN
    if isinstance(record, Mapping):
        return EnumRecordShape.KEYED
    if isinstance(record, tuple) and hasattr(type(record), "_fields"):
        return EnumRecordShape.DERIVED
    if isinstance(record, Sequence):
        return EnumRecordShape.POSITIONAL
    return EnumRecordShape.DERIVED


# #endregion
################################################################################
# #region DerivedRecords


def _find_accessor(record: Any, key: ColumnKey) -> Callable[[], Any] | None:
    """Return the bound zero-argument method named ``key``, if the class defines one."""
    if not isinstance(key, str):
        return None
    try:
        obj_static = inspect.getattr_static(type(record), key)
    except AttributeError:
        return None

    if not (
        inspect.isfunction(obj_static)
        or isinstance(obj_static, (staticmethod, classmethod))
        or inspect.ismethoddescriptor(obj_static)
    ):
        return None

    # class-level method wins over an instance attribute of the same name
    fn_bound = obj_static.__get__(record, type(record))
    if not callable(fn_bound):
        return None
    try:
        inspect.signature(fn_bound).bind()
    except TypeError:
        # requires arguments: not an accessor
        return None
    except ValueError:
        # builtin without introspectable signature
        return None
    return fn_bound


def _find_field(record: Any, key: ColumnKey) -> Any:
    if not isinstance(key, str):
        return None
    try:
        obj_static = inspect.getattr_static(type(record), key)
    except AttributeError:
        obj_static = None
    else:
        # methods that failed the accessor probe are not fields
        if (
            inspect.isfunction(obj_static)
            or isinstance(obj_static, (staticmethod, classmethod))
            or inspect.ismethoddescriptor(obj_static)
        ):
            return None
    return getattr(record, key, None)


def extract_derived_value(record: Any, key: ColumnKey) -> Any:
    """
    Resolution order: zero-argument accessor named ``key`` -> field named
    ``key`` -> ``None``.

    Notes
    -----
    A field that exists but holds ``None`` is indistinguishable from an
    absent field; both yield ``None``.
    """
    if (fn_accessor := _find_accessor(record, key)) is not None:
        return fn_accessor()
    return _find_field(record, key)


# #endregion
################################################################################
# #region ValueExtraction


def extract_value(
    record: Any,
    key: ColumnKey,
    *,
    position: int,
    shape: EnumRecordShape | None = None,
) -> Any:
    """
    Extract the value of one column from one record.

    Args:
        record (Any): The record; never mutated.
        key (ColumnKey): Column key, used by KEYED and DERIVED records.
        position (int): 0-based column position, used by POSITIONAL records.
        shape (EnumRecordShape | None, optional): Pre-computed shape of
            ``record``. Classified on the fly when None. Defaults to None.

    Returns:
        Any: The raw value, or ``None`` when it cannot be resolved.
    """
    if shape is None:
        shape = classify_record(record)

    if shape is EnumRecordShape.KEYED:
        return record.get(key)
    if shape is EnumRecordShape.POSITIONAL:
        if 0 <= position < len(record):
            return record[position]
        return None
    if shape is EnumRecordShape.DERIVED:
        return extract_derived_value(record, key)
    return None


# #endregion
################################################################################
# #region RecordSets


def convert_records(records: Iterable[Any] | pl.DataFrame | pl.LazyFrame) -> list[Any]:
    """
    Materialize a record set into a list, preserving order.

    Polars frames are read row-wise as KEYED records (``{column: value}``).
    """
    if isinstance(records, pl.LazyFrame):
        records = records.collect()
    if isinstance(records, pl.DataFrame):
        return list(records.iter_rows(named=True))
    if isinstance(records, (str, bytes, Mapping)):
        raise TypeError(
            "Records must be an ordered sequence of records, "
            f"got {type(records).__name__}."
        )
    return list(records)


# #endregion
################################################################################
