from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Generic, Self, TypeVar

from .spec import ColumnKey, EnumCellValueType, SpecColumn

_T = TypeVar("_T")


def validate_column_key(key: Any) -> ColumnKey:
    """
    Column keys double as mapping keys and as member names probed on records,
    so only non-empty ``str`` and plain ``int`` keys are accepted.
    """
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise TypeError(
            f"Column key must be str or int, got {type(key).__name__}: {key!r}."
        )
    if isinstance(key, str) and not key:
        raise ValueError("Column key cannot be an empty string.")
    return key


class _KeyedColumnStore(Generic[_T]):
    """Ordered ``{column key: item}`` container with explicit read/write methods."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[ColumnKey, Any] | None = None) -> None:
        self._items: dict[ColumnKey, _T] = {}
        if items:
            self.replace(items)

    def _convert_item(self, key: ColumnKey, item: Any) -> _T:
        return item

    # #tag Write
    def replace(self, items: Mapping[ColumnKey, Any]) -> Self:
        if not isinstance(items, Mapping):
            raise TypeError(
                f"{type(self).__name__} expects a mapping, got {type(items).__name__}."
            )
        dict_items: dict[ColumnKey, _T] = {}
        for _key, _item in items.items():
            c_key = validate_column_key(_key)
            dict_items[c_key] = self._convert_item(c_key, _item)
        self._items = dict_items
        return self

    def set(self, key: ColumnKey, item: Any) -> Self:
        c_key = validate_column_key(key)
        self._items[c_key] = self._convert_item(c_key, item)
        return self

    def remove(self, key: ColumnKey) -> Self:
        self._items.pop(key, None)
        return self

    def clear(self) -> Self:
        self._items.clear()
        return self

    # #tag Read
    def get(self, key: ColumnKey) -> _T | None:
        return self._items.get(key)

    def to_dict(self) -> dict[ColumnKey, _T]:
        return dict(self._items)

    def keys(self) -> tuple[ColumnKey, ...]:
        return tuple(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[ColumnKey]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _KeyedColumnStore):
            return NotImplemented
        return type(self) is type(other) and list(self._items.items()) == list(
            other._items.items()
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"


class ColumnMap(_KeyedColumnStore[str]):
    """
    Ordered column keys with their display labels.

    Order defines the physical column order (left to right, 0-based) for both
    the header row and every data row.

    Two input forms are accepted by :meth:`replace`::

        ColumnMap(["First Name", "Last Name"])            # keys 0, 1
        ColumnMap({"first_name": "First Name", "last_name": "Last Name"})

    A ``None`` label falls back to ``str(key)``.
    """

    __slots__ = ()

    def __init__(
        self, items: Mapping[ColumnKey, Any] | Sequence[str] | None = None
    ) -> None:
        super().__init__()
        if items:
            self.replace(items)

    def _convert_item(self, key: ColumnKey, item: Any) -> str:
        return str(key) if item is None else str(item)

    def replace(self, items: Mapping[ColumnKey, Any] | Sequence[str]) -> Self:
        if isinstance(items, (str, bytes)):
            raise TypeError("Columns must be a mapping or a sequence of labels.")
        if not isinstance(items, Mapping):
            items = dict(enumerate(items))
        return super().replace(items)

    def resolve(
        self,
        types: "ColumnTypeMap | None" = None,
        formats: "ColumnFormatMap | None" = None,
    ) -> tuple[SpecColumn, ...]:
        """
        Snapshot the columns together with their declared type and format.

        Type and format containers are consulted independently; keys they hold
        that are not in this map are ignored.
        """
        return tuple(
            SpecColumn(
                key=_key,
                label=_label,
                value_type=None if types is None else types.get(_key),
                format_code=None if formats is None else formats.get(_key),
            )
            for _key, _label in self._items.items()
        )


class ColumnTypeMap(_KeyedColumnStore[EnumCellValueType]):
    """Per-column value type overrides, keyed like :class:`ColumnMap`."""

    __slots__ = ()

    def _convert_item(self, key: ColumnKey, item: Any) -> EnumCellValueType:
        if item is None:
            # explicit "no type" declaration
            return EnumCellValueType.UNTYPED
        try:
            return EnumCellValueType(item)
        except ValueError as e:
            l_allowed = [_v.value for _v in EnumCellValueType]
            raise ValueError(
                f"Unknown value type {item!r} for column {key!r}; "
                f"expected one of {l_allowed}."
            ) from e


class ColumnFormatMap(_KeyedColumnStore[str]):
    """Per-column number format codes, keyed like :class:`ColumnMap`."""

    __slots__ = ()

    def _convert_item(self, key: ColumnKey, item: Any) -> str:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(
                f"Format code for column {key!r} must be a non-empty string, got {item!r}."
            )
        return item
