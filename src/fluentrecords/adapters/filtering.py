"""Legacy filter-key grammar shared by the reference adapters.

A filter key is a field name optionally prefixed by an operator::

    {"ACTIVE": "Y", "!CODE": "news", ">=SORT": 100, "%NAME": "widget"}

List values mean "one of". ``split_filter_key`` is also used by query
normalization so aliases keep their operator prefix.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

# Longest prefixes first so ">=" is not read as ">"
OPERATOR_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("!%", "not_like"),
    (">=", "ge"),
    ("<=", "le"),
    ("!", "ne"),
    ("=", "eq"),
    (">", "gt"),
    ("<", "lt"),
    ("%", "like"),
)


def split_filter_key(key: str) -> Tuple[str, str]:
    """
    Split a filter key into (prefix, field).

    >>> split_filter_key(">=SORT")
    ('>=', 'SORT')
    >>> split_filter_key("NAME")
    ('', 'NAME')
    """
    for prefix, _ in OPERATOR_PREFIXES:
        if key.startswith(prefix):
            return prefix, key[len(prefix):]
    return "", key


def parse_filter_key(key: str) -> Tuple[str, str]:
    """Return (operator name, field) for a filter key; bare keys mean "eq"."""
    prefix, field = split_filter_key(key)
    for candidate, operator in OPERATOR_PREFIXES:
        if candidate == prefix:
            return operator, field
    return "eq", field


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def loose_equal(left: Any, right: Any) -> bool:
    """Stringly comparison: legacy sources hand out ids as strings."""
    if left == right:
        return True
    if left is None or right is None:
        return False
    return str(left) == str(right)


def _compare(left: Any, right: Any) -> Optional[int]:
    if left is None or right is None:
        return None
    left_num, right_num = _as_number(left), _as_number(right)
    if left_num is not None and right_num is not None:
        left, right = left_num, right_num
    else:
        left, right = str(left), str(right)
    return (left > right) - (left < right)


def _equals_any(actual: Any, expected: Any) -> bool:
    actual_values = actual if isinstance(actual, (list, tuple, set)) else [actual]
    expected_values = expected if isinstance(expected, (list, tuple, set)) else [expected]
    return any(loose_equal(a, e) for a in actual_values for e in expected_values)


def value_matches(operator: str, actual: Any, expected: Any) -> bool:
    """Evaluate one filter condition against a record value."""
    if operator == "eq":
        return _equals_any(actual, expected)
    if operator == "ne":
        return not _equals_any(actual, expected)
    if operator in ("like", "not_like"):
        needle = str(expected).strip("%").lower()
        found = actual is not None and needle in str(actual).lower()
        return found if operator == "like" else not found

    result = _compare(actual, expected)
    if result is None:
        return False
    if operator == "gt":
        return result > 0
    if operator == "lt":
        return result < 0
    if operator == "ge":
        return result >= 0
    if operator == "le":
        return result <= 0
    raise ValueError(f"Unsupported filter operator: {operator}")


def record_matches(
    record: Mapping[str, Any],
    filter: Mapping[str, Any],
    virtual_fields: Optional[Dict[str, Callable[[Mapping[str, Any]], Any]]] = None,
) -> bool:
    """Check a raw record against every condition of ``filter``."""
    virtual_fields = virtual_fields or {}
    for key, expected in filter.items():
        operator, field = parse_filter_key(key)
        if field in virtual_fields:
            actual = virtual_fields[field](record)
        else:
            actual = record.get(field)
        if not value_matches(operator, actual, expected):
            return False
    return True


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (2, "")
    number = _as_number(value)
    if number is not None:
        return (0, number)
    return (1, str(value))


def sort_records(records: Iterable[Mapping[str, Any]], sort: Mapping[str, str]) -> List[Any]:
    """Stable multi-field sort honoring ASC/DESC per field."""
    ordered = list(records)
    for field, direction in reversed(list(sort.items())):
        ordered.sort(
            key=lambda record: _sort_key(record.get(field)),
            reverse=str(direction).upper() == "DESC",
        )
    return ordered
