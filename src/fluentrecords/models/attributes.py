"""Attribute storage for models."""

from collections.abc import MutableMapping
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

from fluentrecords.utils.time import parse_timestamp

FieldValue = Union[None, str, int, float, bool, datetime, List[Any], Dict[str, Any]]

RAW_PREFIX = "~"

TRUE_VALUES = ("Y", "1", "TRUE", "YES")
FALSE_VALUES = ("N", "0", "FALSE", "NO", "")


class AttributeBag(MutableMapping):
    """
    Field name -> value mapping with two side channels.

    * raw variants: legacy sources ship undecoded copies of a field under a
      ``~`` prefixed name. Those land in a separate map, stay readable as
      ``bag["~NAME"]`` or ``bag.raw("NAME")``, and are never written back.
    * derived keys: values synthesized during hydration (flattened
      properties, compatibility mirrors). Assigning to a derived key makes
      it an ordinary, writable field.

    Iteration, ``len`` and ``to_dict`` cover ordinary and derived fields only.
    """

    def __init__(self, values: Optional[Mapping[str, FieldValue]] = None):
        self._values: Dict[str, FieldValue] = {}
        self._raw: Dict[str, FieldValue] = {}
        self._derived: Set[str] = set()
        if values:
            self.update(values)

    def __getitem__(self, key: str) -> FieldValue:
        if key.startswith(RAW_PREFIX):
            return self._raw[key[len(RAW_PREFIX):]]
        return self._values[key]

    def __setitem__(self, key: str, value: FieldValue) -> None:
        if key.startswith(RAW_PREFIX):
            self._raw[key[len(RAW_PREFIX):]] = value
            return
        self._values[key] = value
        self._derived.discard(key)

    def __delitem__(self, key: str) -> None:
        if key.startswith(RAW_PREFIX):
            del self._raw[key[len(RAW_PREFIX):]]
            return
        del self._values[key]
        self._derived.discard(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AttributeBag({self._values!r})"

    def copy(self) -> "AttributeBag":
        clone = AttributeBag()
        clone._values = dict(self._values)
        clone._raw = dict(self._raw)
        clone._derived = set(self._derived)
        return clone

    # -- side channels ---------------------------------------------------------

    def raw(self, key: str, default: FieldValue = None) -> FieldValue:
        return self._raw.get(key, default)

    def set_raw(self, key: str, value: FieldValue) -> None:
        self._raw[key] = value

    def set_derived(self, key: str, value: FieldValue) -> None:
        self._values[key] = value
        self._derived.add(key)

    def is_derived(self, key: str) -> bool:
        return key in self._derived

    def writable_items(self) -> List[Tuple[str, FieldValue]]:
        """Ordinary fields only: no raw variants, no derived keys."""
        return [(key, value) for key, value in self._values.items() if key not in self._derived]

    def to_dict(self, include_raw: bool = False) -> Dict[str, FieldValue]:
        data = dict(self._values)
        if include_raw:
            for key, value in self._raw.items():
                data[RAW_PREFIX + key] = value
        return data

    # -- typed accessors -------------------------------------------------------

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return default
        return str(value)

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Field {key} is not an integer: {value!r}") from None

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Booleans, with the legacy Y/N flags understood."""
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().upper()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
        raise ValueError(f"Field {key} is not a flag: {value!r}")

    def get_list(self, key: str) -> List[Any]:
        value = self.get(key)
        if value is None or value == "" or value is False:
            return []
        if isinstance(value, (list, tuple, set)):
            return list(value)
        return [value]

    def get_datetime(self, key: str) -> Optional[datetime]:
        return parse_timestamp(self.get(key))
