"""Ordered, dual-mode container for models returned by list queries."""

from typing import Any, Dict, Iterator, List, Optional, Tuple


class ResultCollection:
    """
    Models in insertion order, addressable either by position or by key.

    Positional items get the next free integer key, so a collection built
    without a key-by field behaves like a list (``collection[0]``) while one
    built with a key-by field behaves like a mapping
    (``collection["news-1"]``). Iteration yields models, not keys.
    """

    def __init__(self, items: Optional[Dict[Any, Any]] = None):
        self._items: Dict[Any, Any] = dict(items or {})
        self._next_index = 0
        for key in self._items:
            if isinstance(key, int) and not isinstance(key, bool) and key >= self._next_index:
                self._next_index = key + 1

    def append(self, model: Any) -> None:
        self._items[self._next_index] = model
        self._next_index += 1

    def __setitem__(self, key: Any, model: Any) -> None:
        self._items[key] = model
        if isinstance(key, int) and not isinstance(key, bool) and key >= self._next_index:
            self._next_index = key + 1

    def __getitem__(self, key: Any) -> Any:
        return self._items[key]

    def __contains__(self, key: Any) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"ResultCollection({self._items!r})"

    def get(self, key: Any, default: Any = None) -> Any:
        return self._items.get(key, default)

    def keys(self) -> List[Any]:
        return list(self._items.keys())

    def values(self) -> List[Any]:
        return list(self._items.values())

    def items(self) -> List[Tuple[Any, Any]]:
        return list(self._items.items())

    def first(self) -> Optional[Any]:
        """First model in insertion order, or None when empty."""
        return next(iter(self._items.values()), None)

    def is_empty(self) -> bool:
        return not self._items

    def to_list(self) -> List[Any]:
        return list(self._items.values())

    def pluck(self, field: str) -> List[Any]:
        """Value of ``field`` for every model, in order."""
        return [model.get(field) for model in self._items.values()]


def key_by(collection: ResultCollection, key: Any, model: Any) -> None:
    """
    Place ``model`` into ``collection`` under ``key``.

    A truthy key overwrites whatever was stored under it before; an empty or
    missing key appends the model positionally.
    """
    if key:
        collection[key] = model
    else:
        collection.append(model)
